from datetime import datetime
from typing import List

from loguru import logger
from sqlalchemy.orm import Session

from battery_rental.core.exceptions import (
    ConflictException,
    InvalidInputException,
    NotFoundException,
)
from battery_rental.core.utils import ensure_aware
from battery_rental.db.repositories.customer import CustomerRepository
from battery_rental.db.repositories.payment import PaymentRepository
from battery_rental.db.repositories.rental import RentalRepository
from battery_rental.monitoring.metrics import MetricsCollector
from battery_rental.schemas import (
    PaymentDetailResponse,
    PaymentResponse,
    RecordPaymentRequest,
)
from battery_rental.services.credit_rating import CreditRatingService


class PaymentService:
    def __init__(
        self,
        session: Session,
        payment_repo: PaymentRepository,
        rental_repo: RentalRepository,
        customer_repo: CustomerRepository,
        credit_service: CreditRatingService,
    ):
        self.session = session
        self.payment_repo = payment_repo
        self.rental_repo = rental_repo
        self.customer_repo = customer_repo
        self.credit_service = credit_service

    def record_payment(self, request: RecordPaymentRequest) -> PaymentResponse:
        logger.info(
            f"Recording payment: rental={request.rental_id}, amount={request.amount}"
        )

        if request.amount <= 0:
            raise InvalidInputException("amount", "Payment amount must be positive")

        rental = self.rental_repo.get_by_id(request.rental_id)
        if not rental:
            logger.warning(f"Rental {request.rental_id} not found")
            raise NotFoundException("Rental")

        customer = self.customer_repo.get_by_id(request.customer_id)
        if not customer:
            logger.warning(f"Customer {request.customer_id} not found")
            raise NotFoundException("Customer")

        if rental.customer_id != customer.id:
            logger.warning(
                f"Customer {customer.id} does not match rental {rental.id} "
                f"(owner {rental.customer_id})"
            )
            raise ConflictException("Customer does not match the rental")

        method = request.payment_method.value
        try:
            total_paid = self.payment_repo.get_total_paid(rental.id) + request.amount
            payment = self.payment_repo.create_payment(
                rental_id=rental.id,
                customer_id=customer.id,
                amount=request.amount,
                payment_method=method,
            )
            # overpayment is accepted; is_paid never flips back here
            if total_paid >= rental.rental_price and not rental.is_paid:
                self.rental_repo.set_paid(rental, True)
                logger.info(f"Rental {rental.id} fully paid ({total_paid}/{rental.rental_price})")
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        MetricsCollector.record_payment(method, request.amount)
        response = PaymentResponse.model_validate(payment)

        self.credit_service.recompute_safely(customer.id)
        return response

    def get_payment(self, payment_id: str) -> PaymentDetailResponse:
        payment = self.payment_repo.get_by_id(payment_id)
        if not payment:
            logger.warning(f"Payment {payment_id} not found")
            raise NotFoundException("Payment")
        return PaymentDetailResponse.model_validate(payment)

    def list_payments(self) -> List[PaymentDetailResponse]:
        return [
            PaymentDetailResponse.model_validate(p)
            for p in self.payment_repo.list_payments()
        ]

    def list_payments_by_date(
        self, start: datetime, end: datetime
    ) -> List[PaymentDetailResponse]:
        start, end = ensure_aware(start), ensure_aware(end)
        if start > end:
            raise InvalidInputException("start_date", "Start date must not be after end date")

        return [
            PaymentDetailResponse.model_validate(p)
            for p in self.payment_repo.list_by_payment_date(start, end)
        ]
