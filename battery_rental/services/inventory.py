from typing import List

from loguru import logger
from sqlalchemy.orm import Session

from battery_rental.core.exceptions import (
    ConflictException,
    InvalidInputException,
    NotFoundException,
)
from battery_rental.core.utils import uuid4
from battery_rental.db.models import Battery, BatteryStatus
from battery_rental.db.repositories.battery import BatteryRepository
from battery_rental.db.repositories.rental import RentalRepository
from battery_rental.schemas import (
    BatteryCreateRequest,
    BatteryDetailResponse,
    BatteryResponse,
    BatteryUpdateRequest,
)


class InventoryService:
    def __init__(
        self,
        session: Session,
        battery_repo: BatteryRepository,
        rental_repo: RentalRepository,
    ):
        self.session = session
        self.battery_repo = battery_repo
        self.rental_repo = rental_repo

    def list_batteries(self) -> List[BatteryResponse]:
        return [
            BatteryResponse.model_validate(b) for b in self.battery_repo.list_batteries()
        ]

    def get_battery(self, battery_id: str) -> BatteryDetailResponse:
        battery = self.battery_repo.get_with_rentals(battery_id)
        if not battery:
            raise NotFoundException("Battery")

        response = BatteryDetailResponse.model_validate(battery)
        response.rentals.sort(key=lambda r: r.rent_date, reverse=True)
        return response

    def create_battery(self, request: BatteryCreateRequest) -> BatteryResponse:
        if request.price <= 0:
            raise InvalidInputException("price", "Price must be positive")

        if self.battery_repo.get_by_serial_number(request.serial_number):
            raise ConflictException("Battery with this serial number already exists")

        battery = Battery(
            id=uuid4(),
            serial_number=request.serial_number,
            price=request.price,
            status=BatteryStatus.AVAILABLE.value,
        )
        try:
            self.battery_repo.create_battery(battery)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.info(f"Battery {battery.id} ({battery.serial_number}) added to inventory")
        return BatteryResponse.model_validate(battery)

    def update_battery(
        self, battery_id: str, request: BatteryUpdateRequest
    ) -> BatteryResponse:
        battery = self.battery_repo.get_by_id(battery_id)
        if not battery:
            raise NotFoundException("Battery")

        if request.serial_number and request.serial_number != battery.serial_number:
            if self.battery_repo.get_by_serial_number(request.serial_number):
                raise ConflictException(
                    "Battery with this serial number already exists"
                )

        if request.price is not None and request.price <= 0:
            raise InvalidInputException("price", "Price must be positive")

        if request.status is not None and request.status.value != battery.status:
            # RENTED is only reachable through the rental lifecycle
            if request.status == BatteryStatus.RENTED:
                raise InvalidInputException(
                    "status", "Batteries are marked RENTED by creating a rental"
                )
            if self.rental_repo.get_open_rental_for_battery(battery.id):
                raise ConflictException(
                    "Battery is currently rented; return it before changing status"
                )

        try:
            if request.serial_number:
                battery.serial_number = request.serial_number
            if request.price is not None:
                battery.price = request.price
            if request.status is not None:
                battery.status = request.status.value
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.info(f"Battery {battery.id} updated: status={battery.status}")
        return BatteryResponse.model_validate(battery)

    def delete_battery(self, battery_id: str) -> None:
        battery = self.battery_repo.get_by_id(battery_id)
        if not battery:
            raise NotFoundException("Battery")

        if self.battery_repo.has_rentals(battery.id):
            raise ConflictException(
                "Cannot delete battery with rental history. "
                "Consider marking it as MAINTENANCE instead."
            )

        try:
            self.battery_repo.delete_battery(battery)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.info(f"Battery {battery_id} deleted")
