from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.orm import Session

from battery_rental.config.settings import Settings
from battery_rental.db.database import get_engine, get_sessionmaker
from battery_rental.db.models import Base, Battery, BatteryStatus, Rental
from battery_rental.db.repositories.battery import BatteryRepository
from battery_rental.db.repositories.customer import CustomerRepository
from battery_rental.db.repositories.payment import PaymentRepository
from battery_rental.db.repositories.rental import RentalRepository
from battery_rental.main import create_app
from battery_rental.schemas import BatteryCreateRequest, CustomerCreateRequest
from battery_rental.services.credit_rating import CreditRatingService
from battery_rental.services.customer import CustomerService
from battery_rental.services.dashboard import DashboardService
from battery_rental.services.inventory import InventoryService
from battery_rental.services.payment import PaymentService
from battery_rental.services.rental import RentalService

STAFF_HEADERS = {"X-User-Id": "staff-1", "X-User-Role": "STAFF"}


def pytest_configure(config):
    config.addinivalue_line("markers", "api: mark test as going through the HTTP layer")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite+pysqlite:///:memory:",
        metrics_enabled=False,
        log_level="WARNING",
        standard_rental_period_days=7,
        default_credit_rating=3,
        dashboard_top_n=5,
    )


@pytest.fixture
def sqlite_session(settings: Settings) -> Generator[Session, None, None]:
    engine = get_engine(settings.database_url)
    Base.metadata.create_all(engine)
    session = get_sessionmaker(engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def repositories(sqlite_session):
    return (
        BatteryRepository(sqlite_session),
        CustomerRepository(sqlite_session),
        RentalRepository(sqlite_session),
        PaymentRepository(sqlite_session),
    )


@pytest.fixture
def credit_service(sqlite_session, repositories, settings) -> CreditRatingService:
    _, customer_repo, rental_repo, _ = repositories
    return CreditRatingService(sqlite_session, rental_repo, customer_repo, settings)


@pytest.fixture
def rental_service(sqlite_session, repositories, credit_service) -> RentalService:
    battery_repo, customer_repo, rental_repo, _ = repositories
    return RentalService(
        sqlite_session, rental_repo, battery_repo, customer_repo, credit_service
    )


@pytest.fixture
def payment_service(sqlite_session, repositories, credit_service) -> PaymentService:
    _, customer_repo, rental_repo, payment_repo = repositories
    return PaymentService(
        sqlite_session, payment_repo, rental_repo, customer_repo, credit_service
    )


@pytest.fixture
def inventory_service(sqlite_session, repositories) -> InventoryService:
    battery_repo, _, rental_repo, _ = repositories
    return InventoryService(sqlite_session, battery_repo, rental_repo)


@pytest.fixture
def customer_service(sqlite_session, repositories, settings) -> CustomerService:
    _, customer_repo, _, _ = repositories
    return CustomerService(sqlite_session, customer_repo, settings)


@pytest.fixture
def dashboard_service(repositories, settings) -> DashboardService:
    battery_repo, customer_repo, rental_repo, payment_repo = repositories
    return DashboardService(
        battery_repo, payment_repo, rental_repo, customer_repo, settings
    )


@pytest.fixture
def make_battery(inventory_service):
    counter = {"n": 0}

    def _make(price: int = 500, serial_number: str = None):
        counter["n"] += 1
        serial = serial_number or f"BAT-{counter['n']:04d}"
        return inventory_service.create_battery(
            BatteryCreateRequest(serial_number=serial, price=price)
        )

    return _make


@pytest.fixture
def make_customer(customer_service):
    counter = {"n": 0}

    def _make(name: str = None, credit_rating: int = None):
        counter["n"] += 1
        return customer_service.create_customer(
            CustomerCreateRequest(
                name=name or f"Customer {counter['n']}",
                phone_number=f"+25570000{counter['n']:04d}",
                credit_rating=credit_rating,
            )
        )

    return _make


@pytest.fixture
def assert_status_invariant(sqlite_session):
    """RENTED if and only if the battery has an open rental."""

    def _check():
        stmt = select(Battery).execution_options(populate_existing=True)
        for battery in sqlite_session.execute(stmt).scalars():
            open_rentals = sqlite_session.execute(
                select(Rental).where(
                    Rental.battery_id == battery.id, Rental.return_date.is_(None)
                )
            ).scalars().all()
            assert len(open_rentals) <= 1
            is_rented = battery.status == BatteryStatus.RENTED.value
            assert is_rented == (len(open_rentals) == 1), battery.serial_number

    return _check


@pytest.fixture
def client(settings) -> Generator[TestClient, None, None]:
    app = create_app(settings)
    with TestClient(app) as test_client:
        test_client.headers.update(STAFF_HEADERS)
        yield test_client
