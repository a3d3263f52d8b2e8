from datetime import datetime
from typing import List

from loguru import logger
from sqlalchemy.orm import Session

from battery_rental.core.exceptions import (
    ConflictException,
    InvalidInputException,
    NotFoundException,
)
from battery_rental.core.utils import ensure_aware, utcnow, uuid4
from battery_rental.db.models import BatteryStatus, Rental
from battery_rental.db.repositories.battery import BatteryRepository
from battery_rental.db.repositories.customer import CustomerRepository
from battery_rental.db.repositories.rental import RentalRepository
from battery_rental.monitoring.metrics import MetricsCollector
from battery_rental.schemas import (
    CreateRentalRequest,
    RentalDetailResponse,
    ReturnBatteryRequest,
)
from battery_rental.services.credit_rating import CreditRatingService


class RentalService:
    def __init__(
        self,
        session: Session,
        rental_repo: RentalRepository,
        battery_repo: BatteryRepository,
        customer_repo: CustomerRepository,
        credit_service: CreditRatingService,
    ):
        self.session = session
        self.rental_repo = rental_repo
        self.battery_repo = battery_repo
        self.customer_repo = customer_repo
        self.credit_service = credit_service

    def create_rental(self, request: CreateRentalRequest) -> RentalDetailResponse:
        logger.info(
            f"Creating rental: battery={request.battery_id}, customer={request.customer_id}"
        )

        if request.rental_price <= 0:
            raise InvalidInputException("rental_price", "Rental price must be positive")

        battery = self.battery_repo.get_by_id(request.battery_id)
        if not battery:
            logger.warning(f"Battery {request.battery_id} not found")
            raise NotFoundException("Battery")

        if battery.status != BatteryStatus.AVAILABLE.value:
            logger.warning(
                f"Battery {battery.id} is {battery.status}, refusing to rent it out"
            )
            MetricsCollector.record_rental("rejected")
            raise ConflictException("Battery is not available for rent")

        customer = self.customer_repo.get_by_id(request.customer_id)
        if not customer:
            logger.warning(f"Customer {request.customer_id} not found")
            raise NotFoundException("Customer")

        rental = Rental(
            id=uuid4(),
            battery_id=battery.id,
            customer_id=customer.id,
            rent_date=utcnow(),
            return_date=None,
            rental_price=request.rental_price,
            is_paid=request.is_paid,
        )

        try:
            self.rental_repo.create_rental(rental)
            # re-checks AVAILABLE inside the transaction
            if not self.battery_repo.mark_rented(battery.id):
                MetricsCollector.record_rental("rejected")
                raise ConflictException("Battery is not available for rent")
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        MetricsCollector.record_rental("created")
        logger.info(f"Rental {rental.id} created for battery {battery.id}")
        return self._detail(rental.id)

    def return_battery(
        self, rental_id: str, request: ReturnBatteryRequest
    ) -> RentalDetailResponse:
        logger.info(f"Returning battery for rental {rental_id}")

        rental = self.rental_repo.get_by_id(rental_id)
        if not rental:
            logger.warning(f"Rental {rental_id} not found")
            raise NotFoundException("Rental")

        if rental.return_date is not None:
            logger.warning(f"Rental {rental_id} already returned")
            raise ConflictException("Battery has already been returned")

        rent_date = ensure_aware(rental.rent_date)
        return_date = ensure_aware(request.return_date) if request.return_date else utcnow()
        if return_date < rent_date:
            raise InvalidInputException(
                "return_date", "Return date cannot be before the rent date"
            )

        customer_id = rental.customer_id
        try:
            if not self.rental_repo.close_rental(rental_id, return_date, request.is_paid):
                raise ConflictException("Battery has already been returned")
            self.battery_repo.mark_available(rental.battery_id)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        MetricsCollector.record_return((return_date - rent_date).total_seconds() / 86400)
        logger.info(f"Rental {rental_id} returned, battery {rental.battery_id} available")

        self.credit_service.recompute_safely(customer_id)
        return self._detail(rental_id)

    def set_payment_status(self, rental_id: str, is_paid: bool) -> RentalDetailResponse:
        rental = self.rental_repo.get_by_id(rental_id)
        if not rental:
            logger.warning(f"Rental {rental_id} not found")
            raise NotFoundException("Rental")

        try:
            self.rental_repo.set_paid(rental, is_paid)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.info(f"Rental {rental_id} marked is_paid={is_paid}")
        self.credit_service.recompute_safely(rental.customer_id)
        return self._detail(rental_id)

    def get_rental(self, rental_id: str) -> RentalDetailResponse:
        rental = self.rental_repo.get_with_relations(rental_id)
        if not rental:
            logger.warning(f"Rental {rental_id} not found")
            raise NotFoundException("Rental")

        response = RentalDetailResponse.model_validate(rental)
        response.remaining_balance = rental.rental_price - self.rental_repo.total_paid(
            rental
        )
        return response

    def list_rentals(self) -> List[RentalDetailResponse]:
        return [
            RentalDetailResponse.model_validate(r)
            for r in self.rental_repo.list_rentals()
        ]

    def list_active_rentals(self) -> List[RentalDetailResponse]:
        return [
            RentalDetailResponse.model_validate(r)
            for r in self.rental_repo.list_active()
        ]

    def list_rentals_by_date(
        self, start: datetime, end: datetime
    ) -> List[RentalDetailResponse]:
        start, end = ensure_aware(start), ensure_aware(end)
        if start > end:
            raise InvalidInputException("start_date", "Start date must not be after end date")

        return [
            RentalDetailResponse.model_validate(r)
            for r in self.rental_repo.list_by_rent_date(start, end)
        ]

    def _detail(self, rental_id: str) -> RentalDetailResponse:
        rental = self.rental_repo.get_with_relations(rental_id)
        return RentalDetailResponse.model_validate(rental)
