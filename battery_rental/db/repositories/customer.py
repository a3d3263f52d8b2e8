from typing import List, Optional, Tuple

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from battery_rental.db.models import Customer, Payment, Rental


class CustomerRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, customer_id: str) -> Optional[Customer]:
        return self.session.get(Customer, customer_id)

    def get_profile(self, customer_id: str) -> Optional[Customer]:
        return self.session.execute(
            select(Customer)
            .where(Customer.id == customer_id)
            .options(
                selectinload(Customer.rentals).selectinload(Rental.battery),
                selectinload(Customer.rentals).selectinload(Rental.payments),
                selectinload(Customer.payments),
            )
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def get_by_phone_number(self, phone_number: str) -> Optional[Customer]:
        return self.session.execute(
            select(Customer).where(Customer.phone_number == phone_number)
        ).scalar_one_or_none()

    def list_customers(self) -> List[Customer]:
        return list(
            self.session.execute(select(Customer).order_by(Customer.name)).scalars()
        )

    def list_with_rentals(self) -> List[Customer]:
        return list(
            self.session.execute(
                select(Customer).options(
                    selectinload(Customer.rentals).selectinload(Rental.payments)
                ).execution_options(populate_existing=True)
            ).scalars()
        )

    def create_customer(self, customer: Customer) -> None:
        self.session.add(customer)
        self.session.flush()

    def delete_customer(self, customer: Customer) -> None:
        self.session.delete(customer)
        self.session.flush()

    def has_history(self, customer_id: str) -> bool:
        rentals = self.session.execute(
            select(func.count(Rental.id)).where(Rental.customer_id == customer_id)
        ).scalar_one()
        payments = self.session.execute(
            select(func.count(Payment.id)).where(Payment.customer_id == customer_id)
        ).scalar_one()
        return rentals > 0 or payments > 0

    def set_credit_rating(self, customer_id: str, credit_rating: int) -> bool:
        customer = self.get_by_id(customer_id)
        if not customer:
            return False

        old_rating = customer.credit_rating
        customer.credit_rating = credit_rating
        self.session.flush()
        logger.debug(
            f"Updated customer {customer_id} credit_rating: {old_rating} -> {credit_rating}"
        )
        return True

    def top_by_rental_count(self, limit: int) -> List[Tuple[Customer, int]]:
        rental_count = func.count(Rental.id).label("rental_count")
        rows = self.session.execute(
            select(Customer, rental_count)
            .outerjoin(Rental, Rental.customer_id == Customer.id)
            .group_by(Customer.id)
            .order_by(rental_count.desc(), Customer.name)
            .limit(limit)
        ).all()
        return [(customer, count) for customer, count in rows]

    def lowest_credit_ratings(self, limit: int) -> List[Customer]:
        return list(
            self.session.execute(
                select(Customer)
                .order_by(Customer.credit_rating.asc(), Customer.name)
                .limit(limit)
            ).scalars()
        )
