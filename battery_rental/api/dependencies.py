from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from battery_rental.config.settings import Settings
from battery_rental.core.exceptions import (
    admin_required_exception,
    unauthorized_exception,
)
from battery_rental.core.principal import Principal
from battery_rental.db.repositories.battery import BatteryRepository
from battery_rental.db.repositories.customer import CustomerRepository
from battery_rental.db.repositories.payment import PaymentRepository
from battery_rental.db.repositories.rental import RentalRepository
from battery_rental.db.repositories.user import UserRepository
from battery_rental.services.credit_rating import CreditRatingService
from battery_rental.services.customer import CustomerService
from battery_rental.services.dashboard import DashboardService
from battery_rental.services.inventory import InventoryService
from battery_rental.services.payment import PaymentService
from battery_rental.services.rental import RentalService
from battery_rental.services.user import UserService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_session(request: Request) -> Session:
    session = request.app.state.sessionmaker()
    try:
        yield session
    finally:
        session.close()


def get_principal(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    x_user_role: Optional[str] = Header(None, alias="X-User-Role"),
) -> Principal:
    if not x_user_id:
        raise unauthorized_exception()
    return Principal(id=x_user_id, role=(x_user_role or "STAFF").upper())


def require_admin(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.is_admin:
        raise admin_required_exception()
    return principal


def get_battery_repository(session: Session = Depends(get_session)) -> BatteryRepository:
    return BatteryRepository(session)


def get_customer_repository(
    session: Session = Depends(get_session),
) -> CustomerRepository:
    return CustomerRepository(session)


def get_rental_repository(session: Session = Depends(get_session)) -> RentalRepository:
    return RentalRepository(session)


def get_payment_repository(session: Session = Depends(get_session)) -> PaymentRepository:
    return PaymentRepository(session)


def get_user_repository(session: Session = Depends(get_session)) -> UserRepository:
    return UserRepository(session)


def get_credit_rating_service(
    session: Session = Depends(get_session),
    rental_repo: RentalRepository = Depends(get_rental_repository),
    customer_repo: CustomerRepository = Depends(get_customer_repository),
    settings: Settings = Depends(get_settings),
) -> CreditRatingService:
    return CreditRatingService(session, rental_repo, customer_repo, settings)


def get_rental_service(
    session: Session = Depends(get_session),
    rental_repo: RentalRepository = Depends(get_rental_repository),
    battery_repo: BatteryRepository = Depends(get_battery_repository),
    customer_repo: CustomerRepository = Depends(get_customer_repository),
    credit_service: CreditRatingService = Depends(get_credit_rating_service),
) -> RentalService:
    return RentalService(session, rental_repo, battery_repo, customer_repo, credit_service)


def get_payment_service(
    session: Session = Depends(get_session),
    payment_repo: PaymentRepository = Depends(get_payment_repository),
    rental_repo: RentalRepository = Depends(get_rental_repository),
    customer_repo: CustomerRepository = Depends(get_customer_repository),
    credit_service: CreditRatingService = Depends(get_credit_rating_service),
) -> PaymentService:
    return PaymentService(
        session, payment_repo, rental_repo, customer_repo, credit_service
    )


def get_inventory_service(
    session: Session = Depends(get_session),
    battery_repo: BatteryRepository = Depends(get_battery_repository),
    rental_repo: RentalRepository = Depends(get_rental_repository),
) -> InventoryService:
    return InventoryService(session, battery_repo, rental_repo)


def get_customer_service(
    session: Session = Depends(get_session),
    customer_repo: CustomerRepository = Depends(get_customer_repository),
    settings: Settings = Depends(get_settings),
) -> CustomerService:
    return CustomerService(session, customer_repo, settings)


def get_dashboard_service(
    battery_repo: BatteryRepository = Depends(get_battery_repository),
    payment_repo: PaymentRepository = Depends(get_payment_repository),
    rental_repo: RentalRepository = Depends(get_rental_repository),
    customer_repo: CustomerRepository = Depends(get_customer_repository),
    settings: Settings = Depends(get_settings),
) -> DashboardService:
    return DashboardService(
        battery_repo, payment_repo, rental_repo, customer_repo, settings
    )


def get_user_service(
    session: Session = Depends(get_session),
    user_repo: UserRepository = Depends(get_user_repository),
) -> UserService:
    return UserService(session, user_repo)
