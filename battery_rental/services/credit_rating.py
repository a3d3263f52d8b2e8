from typing import Iterable, Optional

from loguru import logger
from sqlalchemy.orm import Session

from battery_rental.config.settings import Settings
from battery_rental.core.utils import ensure_aware
from battery_rental.db.models import Rental
from battery_rental.db.repositories.customer import CustomerRepository
from battery_rental.db.repositories.rental import RentalRepository
from battery_rental.monitoring.metrics import MetricsCollector

MAX_RATING = 5
# 2 for payment + 1 for an on-time return
MAX_POINTS_PER_RENTAL = 3


def rental_points(rental: Rental, standard_period_days: int) -> int:
    points = 0

    if rental.is_paid:
        points += 2
    elif rental.payments:
        # partially paid
        points += 1

    if rental.return_date is not None:
        held_for = ensure_aware(rental.return_date) - ensure_aware(rental.rent_date)
        if held_for.days <= standard_period_days:
            points += 1

    return points


def rating_from_points(total_points: int, rental_count: int) -> int:
    """
    Scales average points per rental (0..3) onto 0..5, rounding half up.

    round_half_up(5 * p / (3 * n)) == floor((10 * p + 3 * n) / (6 * n)),
    kept in integers so .5 boundaries are exact.
    """
    denominator = 2 * MAX_POINTS_PER_RENTAL * rental_count
    return (2 * MAX_RATING * total_points + MAX_POINTS_PER_RENTAL * rental_count) // denominator


def compute_rating(rentals: Iterable[Rental], standard_period_days: int) -> Optional[int]:
    rentals = list(rentals)
    if not rentals:
        return None

    total_points = sum(rental_points(r, standard_period_days) for r in rentals)
    return rating_from_points(total_points, len(rentals))


class CreditRatingService:
    def __init__(
        self,
        session: Session,
        rental_repo: RentalRepository,
        customer_repo: CustomerRepository,
        settings: Settings,
    ):
        self.session = session
        self.rental_repo = rental_repo
        self.customer_repo = customer_repo
        self.standard_period_days = settings.standard_rental_period_days

    def recompute(self, customer_id: str) -> Optional[int]:
        """
        Recomputes and stores the customer's rating from the full rental
        history. Returns the new rating, or None when the customer has no
        rentals yet (the stored rating is left alone).
        """
        rentals = self.rental_repo.list_for_customer(customer_id)
        rating = compute_rating(rentals, self.standard_period_days)

        if rating is None:
            logger.debug(f"Customer {customer_id} has no rentals, rating unchanged")
            MetricsCollector.record_credit_recompute("skipped")
            return None

        self.customer_repo.set_credit_rating(customer_id, rating)
        MetricsCollector.record_credit_recompute("updated")
        logger.info(
            f"Customer {customer_id} credit rating -> {rating} ({len(rentals)} rentals)"
        )
        return rating

    def recompute_safely(self, customer_id: str) -> Optional[int]:
        try:
            rating = self.recompute(customer_id)
            self.session.commit()
            return rating
        except Exception:
            self.session.rollback()
            MetricsCollector.record_credit_recompute("failed")
            logger.exception(f"Failed to update credit rating for customer {customer_id}")
            return None
