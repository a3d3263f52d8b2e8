from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from battery_rental.core.utils import to_money, utcnow
from battery_rental.db.models import Payment, Rental


class PaymentRepository:
    def __init__(self, session: Session):
        self.session = session

    def create_payment(
        self,
        rental_id: str,
        customer_id: str,
        amount: Decimal,
        payment_method: str,
        payment_date: Optional[datetime] = None,
    ) -> Payment:
        payment = Payment(
            rental_id=rental_id,
            customer_id=customer_id,
            amount=amount,
            payment_method=payment_method,
            payment_date=payment_date or utcnow(),
        )
        self.session.add(payment)
        self.session.flush()

        logger.info(
            f"Payment recorded: rental={rental_id}, amount={amount}, method={payment_method}"
        )
        return payment

    def get_total_paid(self, rental_id: str) -> Decimal:
        total = self.session.execute(
            select(func.coalesce(func.sum(Payment.amount), 0)).where(
                Payment.rental_id == rental_id
            )
        ).scalar_one()
        return to_money(total)

    def get_by_id(self, payment_id: str) -> Optional[Payment]:
        return self.session.execute(
            select(Payment)
            .where(Payment.id == payment_id)
            .options(
                selectinload(Payment.rental).selectinload(Rental.battery),
                selectinload(Payment.customer),
            )
        ).scalar_one_or_none()

    def list_payments(self) -> List[Payment]:
        return list(
            self.session.execute(
                select(Payment)
                .options(selectinload(Payment.rental), selectinload(Payment.customer))
                .order_by(Payment.payment_date.desc())
            ).scalars()
        )

    def list_by_payment_date(self, start: datetime, end: datetime) -> List[Payment]:
        return list(
            self.session.execute(
                select(Payment)
                .where(Payment.payment_date >= start, Payment.payment_date <= end)
                .options(selectinload(Payment.rental), selectinload(Payment.customer))
                .order_by(Payment.payment_date.desc())
            ).scalars()
        )

    def sum_between(self, start: datetime, end: datetime) -> Decimal:
        total = self.session.execute(
            select(func.coalesce(func.sum(Payment.amount), 0)).where(
                Payment.payment_date >= start, Payment.payment_date <= end
            )
        ).scalar_one()
        return to_money(total)
