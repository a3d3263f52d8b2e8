from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer

from battery_rental.db.models import BatteryStatus, PaymentMethod, UserRole

# two decimal places in and out, a plain JSON number on the wire
Money = Annotated[
    Decimal,
    Field(max_digits=12, decimal_places=2),
    PlainSerializer(float, return_type=float, when_used="json"),
]


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class HealthResponse(BaseModel):
    ok: bool = True


# Inventory
class BatteryCreateRequest(BaseModel):
    serial_number: str = Field(min_length=1)
    price: Money


class BatteryUpdateRequest(BaseModel):
    serial_number: Optional[str] = Field(None, min_length=1)
    price: Optional[Money] = None
    status: Optional[BatteryStatus] = None


class BatteryResponse(ORMModel):
    id: str
    serial_number: str
    price: Money
    status: str
    date_added: datetime
    created_at: datetime
    updated_at: datetime


class InventoryStatsResponse(BaseModel):
    total: int
    available: int
    rented: int
    maintenance: int


# Customers
class CustomerCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    phone_number: str = Field(min_length=1)
    address: str = ""
    credit_rating: Optional[int] = Field(
        None, description="Initial rating 0..5, defaults to the configured value"
    )


class CustomerUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    phone_number: Optional[str] = Field(None, min_length=1)
    address: Optional[str] = None


class CustomerResponse(ORMModel):
    id: str
    name: str
    phone_number: str
    address: str
    credit_rating: int
    created_at: datetime
    updated_at: datetime


class CustomerDueResponse(BaseModel):
    id: str
    name: str
    phone_number: str
    credit_rating: int
    due_amount: Money


class CustomerRentalCountResponse(BaseModel):
    id: str
    name: str
    phone_number: str
    rental_count: int
    credit_rating: int


class CustomerRatingResponse(ORMModel):
    id: str
    name: str
    phone_number: str
    credit_rating: int


# Payments
class RecordPaymentRequest(BaseModel):
    rental_id: str
    customer_id: str
    amount: Money
    payment_method: PaymentMethod


class PaymentResponse(ORMModel):
    id: str
    rental_id: str
    customer_id: str
    amount: Money
    payment_date: datetime
    payment_method: str
    created_at: datetime


# Rentals
class CreateRentalRequest(BaseModel):
    battery_id: str
    customer_id: str
    rental_price: Money
    is_paid: bool = False


class ReturnBatteryRequest(BaseModel):
    return_date: Optional[datetime] = None
    is_paid: Optional[bool] = None


class RentalPaymentStatusRequest(BaseModel):
    is_paid: bool


class RentalResponse(ORMModel):
    id: str
    battery_id: str
    customer_id: str
    rent_date: datetime
    return_date: Optional[datetime] = None
    rental_price: Money
    is_paid: bool
    created_at: datetime
    updated_at: datetime


class RentalDetailResponse(RentalResponse):
    battery: Optional[BatteryResponse] = None
    customer: Optional[CustomerResponse] = None
    payments: List[PaymentResponse] = []
    remaining_balance: Optional[Money] = None


class PaymentDetailResponse(PaymentResponse):
    rental: Optional[RentalResponse] = None
    customer: Optional[CustomerResponse] = None


class BatteryRentalEntry(RentalResponse):
    customer: Optional[CustomerResponse] = None


class BatteryDetailResponse(BatteryResponse):
    rentals: List[BatteryRentalEntry] = []


class CustomerRentalEntry(RentalResponse):
    battery: Optional[BatteryResponse] = None
    payments: List[PaymentResponse] = []


class CustomerProfileResponse(CustomerResponse):
    rentals: List[CustomerRentalEntry] = []
    payments: List[PaymentResponse] = []
    due_balance: Money = Decimal("0.00")


# Reporting
class DailyEarningsResponse(BaseModel):
    day: date
    total_earned: Money


class MonthlyEarningsResponse(BaseModel):
    year: int
    month: int
    total_earned: Money


class FinancialSummaryResponse(BaseModel):
    earned_today: Money
    earned_this_month: Money
    total_due: Money


class DashboardFinancial(BaseModel):
    earned_today: Money
    total_due: Money


class DashboardCustomers(BaseModel):
    top_renters: List[CustomerRentalCountResponse]
    worst_credit_ratings: List[CustomerRatingResponse]


class DashboardSummaryResponse(BaseModel):
    inventory: InventoryStatsResponse
    financial: DashboardFinancial
    customers: DashboardCustomers


# Users
class UserCreateRequest(BaseModel):
    email: str = Field(min_length=3)
    name: str = Field(min_length=1)
    role: UserRole = UserRole.STAFF


class UserUpdateRequest(BaseModel):
    email: Optional[str] = Field(None, min_length=3)
    name: Optional[str] = Field(None, min_length=1)
    role: Optional[UserRole] = None


class UserResponse(ORMModel):
    id: str
    email: str
    name: str
    role: str
    created_at: datetime


class CurrentUserResponse(BaseModel):
    id: str
    role: str
    name: Optional[str] = None
    email: Optional[str] = None
