from typing import Dict, List, Optional

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, selectinload

from battery_rental.db.models import Battery, BatteryStatus, Rental


class BatteryRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, battery_id: str) -> Optional[Battery]:
        return self.session.get(Battery, battery_id)

    def get_with_rentals(self, battery_id: str) -> Optional[Battery]:
        return self.session.execute(
            select(Battery)
            .where(Battery.id == battery_id)
            .options(selectinload(Battery.rentals).selectinload(Rental.customer))
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def get_by_serial_number(self, serial_number: str) -> Optional[Battery]:
        return self.session.execute(
            select(Battery).where(Battery.serial_number == serial_number)
        ).scalar_one_or_none()

    def list_batteries(self) -> List[Battery]:
        return list(
            self.session.execute(
                select(Battery).order_by(Battery.date_added.desc())
            ).scalars()
        )

    def create_battery(self, battery: Battery) -> None:
        self.session.add(battery)
        self.session.flush()

    def delete_battery(self, battery: Battery) -> None:
        self.session.delete(battery)
        self.session.flush()

    def has_rentals(self, battery_id: str) -> bool:
        count = self.session.execute(
            select(func.count(Rental.id)).where(Rental.battery_id == battery_id)
        ).scalar_one()
        return count > 0

    def count_by_status(self) -> Dict[str, int]:
        rows = self.session.execute(
            select(Battery.status, func.count(Battery.id)).group_by(Battery.status)
        ).all()
        counts = {status.value: 0 for status in BatteryStatus}
        for status, count in rows:
            counts[status] = count
        return counts

    def mark_rented(self, battery_id: str) -> bool:
        """
        AVAILABLE -> RENTED. Returns False when the battery was not AVAILABLE
        at write time, e.g. a concurrent rental got there first.
        """
        result = self.session.execute(
            update(Battery)
            .where(
                Battery.id == battery_id,
                Battery.status == BatteryStatus.AVAILABLE.value,
            )
            .values(status=BatteryStatus.RENTED.value)
        )

        updated = result.rowcount > 0
        if updated:
            logger.info(f"Battery {battery_id}: AVAILABLE -> RENTED")
        return updated

    def mark_available(self, battery_id: str) -> bool:
        result = self.session.execute(
            update(Battery)
            .where(Battery.id == battery_id)
            .values(status=BatteryStatus.AVAILABLE.value)
        )

        updated = result.rowcount > 0
        if updated:
            logger.info(f"Battery {battery_id}: -> AVAILABLE")
        return updated
