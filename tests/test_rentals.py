from datetime import timedelta
from decimal import Decimal
from unittest.mock import Mock

import pytest
from sqlalchemy import func, select, text

from battery_rental.core.exceptions import (
    ConflictException,
    InvalidInputException,
    NotFoundException,
)
from battery_rental.db.models import Battery, Rental
from battery_rental.schemas import CreateRentalRequest, ReturnBatteryRequest


def rent(rental_service, battery_id, customer_id, price=100, is_paid=False):
    return rental_service.create_rental(
        CreateRentalRequest(
            battery_id=battery_id,
            customer_id=customer_id,
            rental_price=price,
            is_paid=is_paid,
        )
    )


def count_rentals(session) -> int:
    return session.execute(select(func.count(Rental.id))).scalar_one()


def test_create_rental_marks_battery_rented(
    rental_service, make_battery, make_customer, assert_status_invariant
):
    battery = make_battery()
    customer = make_customer()

    rental = rent(rental_service, battery.id, customer.id, price=100)

    assert rental.return_date is None
    assert rental.is_paid is False
    assert rental.rental_price == 100
    assert rental.battery.status == "RENTED"
    assert rental.customer.id == customer.id
    assert_status_invariant()


def test_second_rental_on_same_battery_conflicts(
    sqlite_session, rental_service, make_battery, make_customer, assert_status_invariant
):
    battery = make_battery()
    rent(rental_service, battery.id, make_customer().id)

    with pytest.raises(ConflictException):
        rent(rental_service, battery.id, make_customer().id)

    assert count_rentals(sqlite_session) == 1
    assert_status_invariant()


def test_battery_in_maintenance_cannot_be_rented(
    sqlite_session, rental_service, make_battery, make_customer
):
    battery = make_battery()
    sqlite_session.get(Battery, battery.id).status = "MAINTENANCE"
    sqlite_session.commit()

    with pytest.raises(ConflictException):
        rent(rental_service, battery.id, make_customer().id)
    assert count_rentals(sqlite_session) == 0


def test_create_rental_missing_battery_or_customer(
    sqlite_session, rental_service, make_battery, make_customer
):
    with pytest.raises(NotFoundException) as exc:
        rent(rental_service, "no-such-battery", make_customer().id)
    assert exc.value.entity == "Battery"

    battery = make_battery()
    with pytest.raises(NotFoundException) as exc:
        rent(rental_service, battery.id, "no-such-customer")
    assert exc.value.entity == "Customer"

    assert count_rentals(sqlite_session) == 0
    assert sqlite_session.get(Battery, battery.id).status == "AVAILABLE"


def test_create_rental_requires_positive_price(
    rental_service, make_battery, make_customer
):
    with pytest.raises(InvalidInputException) as exc:
        rent(rental_service, make_battery().id, make_customer().id, price=0)
    assert exc.value.field == "rental_price"


def test_status_recheck_inside_transaction_rejects_stale_read(
    sqlite_session, rental_service, make_battery, make_customer
):
    battery = make_battery()
    customer = make_customer()

    # warm the identity map, then let "another request" rent the battery
    assert sqlite_session.get(Battery, battery.id).status == "AVAILABLE"
    sqlite_session.execute(
        text("UPDATE batteries SET status = 'RENTED' WHERE id = :id"),
        {"id": battery.id},
    )
    sqlite_session.commit()

    with pytest.raises(ConflictException):
        rent(rental_service, battery.id, customer.id)

    assert count_rentals(sqlite_session) == 0
    assert sqlite_session.get(Battery, battery.id).status == "RENTED"


def test_return_battery_makes_it_available_again(
    rental_service, make_battery, make_customer, assert_status_invariant
):
    battery = make_battery()
    rental = rent(rental_service, battery.id, make_customer().id)

    returned = rental_service.return_battery(rental.id, ReturnBatteryRequest())

    assert returned.return_date is not None
    assert returned.return_date >= returned.rent_date
    assert returned.battery.status == "AVAILABLE"
    assert_status_invariant()

    # and it can be rented out again
    again = rent(rental_service, battery.id, make_customer().id)
    assert again.battery.status == "RENTED"
    assert_status_invariant()


def test_return_with_paid_override(rental_service, make_battery, make_customer):
    rental = rent(rental_service, make_battery().id, make_customer().id)

    returned = rental_service.return_battery(
        rental.id, ReturnBatteryRequest(is_paid=True)
    )

    assert returned.is_paid is True


def test_return_twice_conflicts_and_changes_nothing(
    rental_service, make_battery, make_customer, assert_status_invariant
):
    battery = make_battery()
    rental = rent(rental_service, battery.id, make_customer().id)
    first = rental_service.return_battery(
        rental.id, ReturnBatteryRequest(return_date=rental.rent_date + timedelta(days=2))
    )

    with pytest.raises(ConflictException) as exc:
        rental_service.return_battery(
            rental.id,
            ReturnBatteryRequest(
                return_date=rental.rent_date + timedelta(days=9), is_paid=True
            ),
        )
    assert "already been returned" in exc.value.reason

    after = rental_service.get_rental(rental.id)
    assert after.return_date == first.return_date
    assert after.is_paid == first.is_paid
    assert after.battery.status == "AVAILABLE"
    assert_status_invariant()


def test_failed_battery_write_rolls_back_the_return(
    rental_service, make_battery, make_customer, assert_status_invariant
):
    battery = make_battery()
    rental = rent(rental_service, battery.id, make_customer().id)
    rental_service.battery_repo.mark_available = Mock(side_effect=RuntimeError("db down"))

    with pytest.raises(RuntimeError):
        rental_service.return_battery(rental.id, ReturnBatteryRequest(is_paid=True))

    after = rental_service.get_rental(rental.id)
    assert after.return_date is None
    assert after.is_paid is False
    assert after.battery.status == "RENTED"
    assert_status_invariant()


def test_fractional_rental_price(rental_service, make_battery, make_customer):
    rental = rent(rental_service, make_battery().id, make_customer().id, price=12.5)

    assert rental.rental_price == Decimal("12.50")
    assert rental_service.get_rental(rental.id).remaining_balance == Decimal("12.50")


def test_return_unknown_rental(rental_service):
    with pytest.raises(NotFoundException):
        rental_service.return_battery("missing", ReturnBatteryRequest())


def test_return_before_rent_date_is_rejected(
    rental_service, make_battery, make_customer
):
    rental = rent(rental_service, make_battery().id, make_customer().id)

    with pytest.raises(InvalidInputException):
        rental_service.return_battery(
            rental.id,
            ReturnBatteryRequest(return_date=rental.rent_date - timedelta(days=1)),
        )
    assert rental_service.get_rental(rental.id).return_date is None


def test_paid_on_time_return_gives_top_rating(
    rental_service, customer_service, make_battery, make_customer
):
    customer = make_customer()
    rental = rent(rental_service, make_battery().id, customer.id, is_paid=True)

    rental_service.return_battery(
        rental.id, ReturnBatteryRequest(return_date=rental.rent_date + timedelta(days=5))
    )

    assert customer_service.get_profile(customer.id).credit_rating == 5


def test_set_payment_status_recomputes_rating(
    rental_service, customer_service, make_battery, make_customer
):
    customer = make_customer()
    rental = rent(rental_service, make_battery().id, customer.id)

    updated = rental_service.set_payment_status(rental.id, True)

    assert updated.is_paid is True
    # 2 of 3 points, not yet returned
    assert customer_service.get_profile(customer.id).credit_rating == 3

    rental_service.set_payment_status(rental.id, False)
    assert customer_service.get_profile(customer.id).credit_rating == 0


def test_rental_queries(rental_service, make_battery, make_customer):
    customer = make_customer()
    open_rental = rent(rental_service, make_battery().id, customer.id)
    closed = rent(rental_service, make_battery().id, customer.id, price=60)
    rental_service.return_battery(closed.id, ReturnBatteryRequest())

    assert {r.id for r in rental_service.list_rentals()} == {open_rental.id, closed.id}
    assert [r.id for r in rental_service.list_active_rentals()] == [open_rental.id]

    window = rental_service.list_rentals_by_date(
        open_rental.rent_date - timedelta(hours=1),
        open_rental.rent_date + timedelta(hours=1),
    )
    assert {r.id for r in window} == {open_rental.id, closed.id}

    with pytest.raises(InvalidInputException):
        rental_service.list_rentals_by_date(
            open_rental.rent_date, open_rental.rent_date - timedelta(days=1)
        )


def test_get_rental_reports_remaining_balance(
    rental_service, make_battery, make_customer
):
    rental = rent(rental_service, make_battery().id, make_customer().id, price=150)

    assert rental_service.get_rental(rental.id).remaining_balance == 150

    with pytest.raises(NotFoundException):
        rental_service.get_rental("missing")
