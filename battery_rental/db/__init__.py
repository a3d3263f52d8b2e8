from .database import get_engine, get_sessionmaker
from .models import (
    Base,
    Battery,
    BatteryStatus,
    Customer,
    Payment,
    PaymentMethod,
    Rental,
    User,
    UserRole,
)

__all__ = [
    "Base",
    "Battery",
    "BatteryStatus",
    "Customer",
    "Payment",
    "PaymentMethod",
    "Rental",
    "User",
    "UserRole",
    "get_engine",
    "get_sessionmaker",
]
