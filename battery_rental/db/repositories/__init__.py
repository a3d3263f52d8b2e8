from .battery import BatteryRepository
from .customer import CustomerRepository
from .payment import PaymentRepository
from .rental import RentalRepository
from .user import UserRepository

__all__ = [
    "BatteryRepository",
    "CustomerRepository",
    "PaymentRepository",
    "RentalRepository",
    "UserRepository",
]
