import uuid
from datetime import date, datetime, time
from decimal import Decimal
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from nightshift.schemas.user import UserPublic


class PaymentType(StrEnum):
    PER_HOUR = "PerHour"
    FIXED_PRICE = "FixedPrice"
    WITH_TIPS = "WithTips"
    TIP_BASED_MIN_WAGE = "TipBasedMinWage"


class Currency(StrEnum):
    USD = "USD"
    EUR = "EUR"
    ILS = "ILS"


class DateRange(StrEnum):
    ALL = "all"
    TODAY = "today"
    TOMORROW = "tomorrow"
    THIS_WEEK = "this_week"
    THIS_MONTH = "this_month"


class LocationSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    city: str = Field(..., min_length=1, max_length=100)
    street: str | None = Field(None, max_length=200)
    number: str | None = Field(None, max_length=20)


class JobCreate(BaseModel):
    role: str = Field(..., min_length=1, max_length=100)
    venue: str = Field(..., min_length=1, max_length=200)
    location: LocationSchema
    date: date
    start_time: time
    end_time: time
    payment_type: PaymentType
    payment_amount: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    currency: Currency
    description: str | None = None


class JobUpdate(JobCreate):
    """Full replacement of the mutable job fields."""


class JobRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    role: str
    venue: str
    location: LocationSchema
    date: date
    start_time: time
    end_time: time
    payment_type: str
    payment_amount: Decimal
    currency: str
    description: str | None
    created_by: uuid.UUID
    owner: UserPublic
    is_active: bool
    deleted_at: datetime | None
    created_at: datetime
    updated_at: datetime


class JobSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    role: str
    venue: str
    location: LocationSchema
    date: date
    start_time: time
    end_time: time
    payment_type: str
    payment_amount: Decimal
    currency: str
    description: str | None
    is_active: bool
    deleted_at: datetime | None


class JobFilters(BaseModel):
    exclude_applied: bool = False
    exclude_posted_by_me: bool = False
    city: str | None = None
    role: str | None = None
    date_range: DateRange = DateRange.ALL


class FilterOptions(BaseModel):
    cities: list[str]
    roles: list[str]
