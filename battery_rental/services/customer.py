from typing import List

from loguru import logger
from sqlalchemy.orm import Session

from battery_rental.config.settings import Settings
from battery_rental.core.exceptions import (
    ConflictException,
    InvalidInputException,
    NotFoundException,
)
from battery_rental.core.utils import uuid4
from battery_rental.db.models import Customer
from battery_rental.db.repositories.customer import CustomerRepository
from battery_rental.schemas import (
    CustomerCreateRequest,
    CustomerProfileResponse,
    CustomerResponse,
    CustomerUpdateRequest,
)
from battery_rental.services.credit_rating import MAX_RATING
from battery_rental.services.dashboard import due_amount


class CustomerService:
    def __init__(
        self,
        session: Session,
        customer_repo: CustomerRepository,
        settings: Settings,
    ):
        self.session = session
        self.customer_repo = customer_repo
        self.default_credit_rating = settings.default_credit_rating

    def list_customers(self) -> List[CustomerResponse]:
        return [
            CustomerResponse.model_validate(c)
            for c in self.customer_repo.list_customers()
        ]

    def get_profile(self, customer_id: str) -> CustomerProfileResponse:
        customer = self.customer_repo.get_profile(customer_id)
        if not customer:
            raise NotFoundException("Customer")

        profile = CustomerProfileResponse.model_validate(customer)
        profile.rentals.sort(key=lambda r: r.rent_date, reverse=True)
        profile.payments.sort(key=lambda p: p.payment_date, reverse=True)
        profile.due_balance = due_amount(customer.rentals)
        return profile

    def create_customer(self, request: CustomerCreateRequest) -> CustomerResponse:
        credit_rating = request.credit_rating
        if credit_rating is None:
            credit_rating = self.default_credit_rating
        if not 0 <= credit_rating <= MAX_RATING:
            raise InvalidInputException(
                "credit_rating", f"Credit rating must be between 0 and {MAX_RATING}"
            )

        if self.customer_repo.get_by_phone_number(request.phone_number):
            raise ConflictException("Customer with this phone number already exists")

        customer = Customer(
            id=uuid4(),
            name=request.name,
            phone_number=request.phone_number,
            address=request.address or "",
            credit_rating=credit_rating,
        )
        try:
            self.customer_repo.create_customer(customer)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.info(f"Customer {customer.id} created")
        return CustomerResponse.model_validate(customer)

    def update_customer(
        self, customer_id: str, request: CustomerUpdateRequest
    ) -> CustomerResponse:
        customer = self.customer_repo.get_by_id(customer_id)
        if not customer:
            raise NotFoundException("Customer")

        if request.phone_number and request.phone_number != customer.phone_number:
            if self.customer_repo.get_by_phone_number(request.phone_number):
                raise ConflictException(
                    "Customer with this phone number already exists"
                )

        try:
            if request.name:
                customer.name = request.name
            if request.phone_number:
                customer.phone_number = request.phone_number
            if request.address is not None:
                customer.address = request.address
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.info(f"Customer {customer_id} updated")
        return CustomerResponse.model_validate(customer)

    def delete_customer(self, customer_id: str) -> None:
        customer = self.customer_repo.get_by_id(customer_id)
        if not customer:
            raise NotFoundException("Customer")

        if self.customer_repo.has_history(customer_id):
            raise ConflictException(
                "Cannot delete customer with rental or payment history."
            )

        try:
            self.customer_repo.delete_customer(customer)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.info(f"Customer {customer_id} deleted")
