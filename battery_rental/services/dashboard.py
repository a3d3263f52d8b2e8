from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, List, Optional

from battery_rental.config.settings import Settings
from battery_rental.core.exceptions import InvalidInputException
from battery_rental.core.utils import day_bounds, ensure_aware, month_bounds, utcnow
from battery_rental.db.models import Rental
from battery_rental.db.repositories.battery import BatteryRepository
from battery_rental.db.repositories.customer import CustomerRepository
from battery_rental.db.repositories.payment import PaymentRepository
from battery_rental.db.repositories.rental import RentalRepository
from battery_rental.schemas import (
    CustomerDueResponse,
    CustomerRatingResponse,
    CustomerRentalCountResponse,
    DailyEarningsResponse,
    DashboardCustomers,
    DashboardFinancial,
    DashboardSummaryResponse,
    FinancialSummaryResponse,
    InventoryStatsResponse,
    MonthlyEarningsResponse,
)

# month_bounds needs the first day of the following month
MIN_YEAR = 1
MAX_YEAR = 9998


def due_amount(rentals: Iterable[Rental]) -> Decimal:
    """Outstanding balance over the unpaid rentals in `rentals`."""
    total = Decimal("0.00")
    for rental in rentals:
        if rental.is_paid:
            continue
        total += rental.rental_price - RentalRepository.total_paid(rental)
    return total


class DashboardService:
    """Read-only rollups over inventory, payments and customers."""

    def __init__(
        self,
        battery_repo: BatteryRepository,
        payment_repo: PaymentRepository,
        rental_repo: RentalRepository,
        customer_repo: CustomerRepository,
        settings: Settings,
    ):
        self.battery_repo = battery_repo
        self.payment_repo = payment_repo
        self.rental_repo = rental_repo
        self.customer_repo = customer_repo
        self.top_n = settings.dashboard_top_n

    def inventory_stats(self) -> InventoryStatsResponse:
        counts = self.battery_repo.count_by_status()
        return InventoryStatsResponse(
            total=sum(counts.values()),
            available=counts["AVAILABLE"],
            rented=counts["RENTED"],
            maintenance=counts["MAINTENANCE"],
        )

    def earnings_between(self, start: datetime, end: datetime) -> Decimal:
        return self.payment_repo.sum_between(ensure_aware(start), ensure_aware(end))

    def daily_earnings(self, day: Optional[date] = None) -> DailyEarningsResponse:
        day = day or utcnow().date()
        return DailyEarningsResponse(
            day=day, total_earned=self.earnings_between(*day_bounds(day))
        )

    def monthly_earnings(
        self, year: Optional[int] = None, month: Optional[int] = None
    ) -> MonthlyEarningsResponse:
        today = utcnow().date()
        if year is None:
            year = today.year
        if month is None:
            month = today.month
        if not MIN_YEAR <= year <= MAX_YEAR:
            raise InvalidInputException(
                "year", f"Year must be between {MIN_YEAR} and {MAX_YEAR}"
            )
        if not 1 <= month <= 12:
            raise InvalidInputException("month", "Month must be between 1 and 12")

        return MonthlyEarningsResponse(
            year=year,
            month=month,
            total_earned=self.earnings_between(*month_bounds(year, month)),
        )

    def total_due(self) -> Decimal:
        return due_amount(self.rental_repo.list_unpaid())

    def financial_summary(self) -> FinancialSummaryResponse:
        now = utcnow()
        today_start, today_end = day_bounds(now.date())
        month_start, _ = month_bounds(now.year, now.month)
        return FinancialSummaryResponse(
            earned_today=self.earnings_between(today_start, today_end),
            earned_this_month=self.earnings_between(month_start, today_end),
            total_due=self.total_due(),
        )

    def customers_with_dues(self) -> List[CustomerDueResponse]:
        owing = []
        for customer in self.customer_repo.list_with_rentals():
            amount = due_amount(customer.rentals)
            if amount > 0:
                owing.append(
                    CustomerDueResponse(
                        id=customer.id,
                        name=customer.name,
                        phone_number=customer.phone_number,
                        credit_rating=customer.credit_rating,
                        due_amount=amount,
                    )
                )
        return sorted(owing, key=lambda c: c.due_amount, reverse=True)

    def top_renters(self, limit: Optional[int] = None) -> List[CustomerRentalCountResponse]:
        rows = self.customer_repo.top_by_rental_count(limit or self.top_n)
        return [
            CustomerRentalCountResponse(
                id=customer.id,
                name=customer.name,
                phone_number=customer.phone_number,
                rental_count=count,
                credit_rating=customer.credit_rating,
            )
            for customer, count in rows
        ]

    def worst_credit_ratings(
        self, limit: Optional[int] = None
    ) -> List[CustomerRatingResponse]:
        return [
            CustomerRatingResponse.model_validate(c)
            for c in self.customer_repo.lowest_credit_ratings(limit or self.top_n)
        ]

    def summary(self) -> DashboardSummaryResponse:
        today_start, today_end = day_bounds(utcnow().date())
        return DashboardSummaryResponse(
            inventory=self.inventory_stats(),
            financial=DashboardFinancial(
                earned_today=self.earnings_between(today_start, today_end),
                total_due=self.total_due(),
            ),
            customers=DashboardCustomers(
                top_renters=self.top_renters(),
                worst_credit_ratings=self.worst_credit_ratings(),
            ),
        )
