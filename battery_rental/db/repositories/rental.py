from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from battery_rental.core.utils import to_money
from battery_rental.db.models import Payment, Rental


def _with_relations(stmt):
    return stmt.options(
        selectinload(Rental.battery),
        selectinload(Rental.customer),
        selectinload(Rental.payments),
    ).execution_options(populate_existing=True)


class RentalRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, rental_id: str) -> Optional[Rental]:
        return self.session.get(Rental, rental_id)

    def get_with_relations(self, rental_id: str) -> Optional[Rental]:
        return self.session.execute(
            _with_relations(select(Rental).where(Rental.id == rental_id))
        ).scalar_one_or_none()

    def create_rental(self, rental: Rental) -> None:
        self.session.add(rental)
        self.session.flush()

    def list_rentals(self) -> List[Rental]:
        return list(
            self.session.execute(
                _with_relations(select(Rental).order_by(Rental.rent_date.desc()))
            ).scalars()
        )

    def list_active(self) -> List[Rental]:
        return list(
            self.session.execute(
                _with_relations(
                    select(Rental)
                    .where(Rental.return_date.is_(None))
                    .order_by(Rental.rent_date.desc())
                )
            ).scalars()
        )

    def list_by_rent_date(self, start: datetime, end: datetime) -> List[Rental]:
        return list(
            self.session.execute(
                _with_relations(
                    select(Rental)
                    .where(Rental.rent_date >= start, Rental.rent_date <= end)
                    .order_by(Rental.rent_date.desc())
                )
            ).scalars()
        )

    def list_for_customer(self, customer_id: str) -> List[Rental]:
        return list(
            self.session.execute(
                select(Rental)
                .where(Rental.customer_id == customer_id)
                .options(selectinload(Rental.payments))
                .execution_options(populate_existing=True)
            ).scalars()
        )

    def list_unpaid(self) -> List[Rental]:
        return list(
            self.session.execute(
                select(Rental)
                .where(Rental.is_paid.is_(False))
                .options(selectinload(Rental.payments))
                .execution_options(populate_existing=True)
            ).scalars()
        )

    def get_open_rental_for_battery(self, battery_id: str) -> Optional[Rental]:
        return self.session.execute(
            select(Rental).where(
                Rental.battery_id == battery_id, Rental.return_date.is_(None)
            )
        ).scalars().first()

    def close_rental(
        self, rental_id: str, return_date: datetime, is_paid: Optional[bool] = None
    ) -> bool:
        """Sets return_date only if the rental is still open."""
        values = {"return_date": return_date}
        if is_paid is not None:
            values["is_paid"] = is_paid

        result = self.session.execute(
            update(Rental)
            .where(Rental.id == rental_id, Rental.return_date.is_(None))
            .values(**values)
        )

        updated = result.rowcount > 0
        if updated:
            logger.info(f"Closed rental {rental_id} at {return_date.isoformat()}")
        return updated

    def set_paid(self, rental: Rental, is_paid: bool) -> None:
        rental.is_paid = is_paid
        self.session.flush()

    @staticmethod
    def total_paid(rental: Rental) -> Decimal:
        payments: List[Payment] = rental.payments or []
        return to_money(sum((p.amount for p in payments), Decimal("0")))


__all__ = ["RentalRepository"]
