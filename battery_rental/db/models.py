import enum
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    TypeDecorator,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from battery_rental.core.utils import ensure_aware, utcnow, uuid4


class BatteryStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    RENTED = "RENTED"
    MAINTENANCE = "MAINTENANCE"


class PaymentMethod(str, enum.Enum):
    CASH = "CASH"
    MOBILE_MONEY = "MOBILE_MONEY"
    BANK_TRANSFER = "BANK_TRANSFER"


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    STAFF = "STAFF"


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC datetimes on every backend, SQLite included."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return ensure_aware(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return ensure_aware(value)


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, onupdate=utcnow
    )


class Battery(TimestampMixin, Base):
    __tablename__ = "batteries"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=uuid4)
    serial_number: Mapped[str] = mapped_column(String(128))
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    status: Mapped[str] = mapped_column(
        String(16), default=BatteryStatus.AVAILABLE.value
    )  # AVAILABLE / RENTED / MAINTENANCE
    date_added: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)

    rentals: Mapped[List["Rental"]] = relationship(back_populates="battery")

    __table_args__ = (UniqueConstraint("serial_number", name="uq_battery_serial"),)


class Customer(TimestampMixin, Base):
    __tablename__ = "customers"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(255))
    phone_number: Mapped[str] = mapped_column(String(32))
    address: Mapped[str] = mapped_column(String(512), default="")
    credit_rating: Mapped[int] = mapped_column(Integer, default=3)

    rentals: Mapped[List["Rental"]] = relationship(back_populates="customer")
    payments: Mapped[List["Payment"]] = relationship(back_populates="customer")

    __table_args__ = (UniqueConstraint("phone_number", name="uq_customer_phone"),)


class Rental(TimestampMixin, Base):
    __tablename__ = "rentals"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=uuid4)
    battery_id: Mapped[str] = mapped_column(ForeignKey("batteries.id"))
    customer_id: Mapped[str] = mapped_column(ForeignKey("customers.id"))
    rent_date: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)
    return_date: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(), nullable=True
    )
    rental_price: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    is_paid: Mapped[bool] = mapped_column(Boolean, default=False)

    battery: Mapped["Battery"] = relationship(back_populates="rentals")
    customer: Mapped["Customer"] = relationship(back_populates="rentals")
    payments: Mapped[List["Payment"]] = relationship(
        back_populates="rental", order_by="Payment.payment_date"
    )


Index("ix_rentals_battery_id", Rental.battery_id)
Index("ix_rentals_customer_id", Rental.customer_id)


class Payment(TimestampMixin, Base):
    __tablename__ = "payments"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=uuid4)
    rental_id: Mapped[str] = mapped_column(ForeignKey("rentals.id"))
    customer_id: Mapped[str] = mapped_column(ForeignKey("customers.id"))
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    payment_date: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)
    payment_method: Mapped[str] = mapped_column(
        String(32)
    )  # CASH / MOBILE_MONEY / BANK_TRANSFER

    rental: Mapped["Rental"] = relationship(back_populates="payments")
    customer: Mapped["Customer"] = relationship(back_populates="payments")


Index("ix_payments_rental_id", Payment.rental_id)
Index("ix_payments_payment_date", Payment.payment_date)


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=uuid4)
    email: Mapped[str] = mapped_column(String(255))
    name: Mapped[str] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(String(16), default=UserRole.STAFF.value)

    __table_args__ = (UniqueConstraint("email", name="uq_user_email"),)
