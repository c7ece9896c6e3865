"""Domain Value Objects"""
from pydantic import BaseModel, Field, validator
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Optional

from domain.enums import CancelledBy
from domain.exceptions import InvalidRange

SECONDS_PER_DAY = 24 * 60 * 60


def _as_datetime(value):
    """Naive UTC datetime for a date (midnight) or a datetime (aware ones converted)"""
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime.combine(value, time.min)
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class DateRange(BaseModel):
    """Half-open stay interval [check_in, check_out), stored as naive UTC"""
    check_in: datetime
    check_out: datetime

    @validator('check_in', 'check_out', pre=True)
    def dates_to_midnight(cls, v):
        return _as_datetime(v)

    @validator('check_in', 'check_out')
    def to_naive_utc(cls, v):
        # Parsed ISO strings may still carry an offset
        return _as_datetime(v)

    @validator('check_out')
    def check_out_after_check_in(cls, v, values):
        if 'check_in' in values and v <= values['check_in']:
            raise ValueError('Check-out must be after check-in')
        return v

    @classmethod
    def between(cls, check_in, check_out) -> "DateRange":
        """Build a range, raising InvalidRange instead of a validation error"""
        start, end = _as_datetime(check_in), _as_datetime(check_out)
        if start is None or end is None or end <= start:
            raise InvalidRange("Check-out must be after check-in")
        return cls(check_in=start, check_out=end)

    def overlaps(self, other: "DateRange") -> bool:
        return overlaps(self, other)

    def nights(self) -> int:
        """Number of nights, partial days rounded up"""
        seconds = (self.check_out - self.check_in).total_seconds()
        return -int(-seconds // SECONDS_PER_DAY)

    class Config:
        frozen = True


def overlaps(a: DateRange, b: DateRange) -> bool:
    """True when the half-open ranges share any instant.

    A check-out on day X does not collide with a check-in on day X, and a
    zero-length range never overlaps anything, itself included.
    """
    return a.check_in < b.check_out and b.check_in < a.check_out


class CancellationInfo(BaseModel):
    """Who cancelled a booking, when and why"""
    reason: Optional[str] = None
    cancelled_at: datetime = Field(default_factory=datetime.utcnow)
    cancelled_by: CancelledBy

    class Config:
        frozen = True


class PriceRange(BaseModel):
    """Advertised nightly price band of a hotel"""
    min: Decimal = Field(ge=0)
    max: Decimal = Field(ge=0)

    @validator('max')
    def max_not_below_min(cls, v, values):
        if 'min' in values and v < values['min']:
            raise ValueError('Maximum price must not be below minimum price')
        return v

    class Config:
        frozen = True


class Address(BaseModel):
    """Postal address of a user"""
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None

    class Config:
        frozen = True
