"""Domain Entities - Aggregates"""
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from datetime import datetime
from typing import Optional, List
from decimal import Decimal

from domain.enums import (
    BookingStatus, CancelledBy, PaymentMethod, RoomType,
    ACTIVE_BOOKING_STATUSES, TERMINAL_BOOKING_STATUSES,
)
from domain.exceptions import InvalidTransition
from domain.value_objects import DateRange, CancellationInfo, PriceRange


# Allowed status changes; anything leaving a terminal status is rejected
ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING: frozenset({
        BookingStatus.CONFIRMED, BookingStatus.CANCELLED, BookingStatus.COMPLETED,
    }),
    BookingStatus.CONFIRMED: frozenset({
        BookingStatus.CANCELLED, BookingStatus.COMPLETED,
    }),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
}


class Hotel(BaseModel):
    """Hotel Entity - only the join point for rooms and ownership matters to booking logic"""

    hotel_id: UUID = Field(default_factory=uuid4)
    owner_id: UUID

    name: str
    description: str
    address: str
    city: str
    state: str
    country: str
    zip_code: Optional[str] = None
    contact: str
    email: Optional[str] = None
    website: Optional[str] = None
    images: List[str] = []
    amenities: List[str] = []
    rating: float = Field(default=0, ge=0, le=5)
    total_reviews: int = Field(default=0, ge=0)
    price_range: PriceRange
    is_active: bool = True

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        from_attributes = True

    def is_owned_by(self, user_id: UUID) -> bool:
        return self.owner_id == user_id


class Room(BaseModel):
    """Room Entity - read-only to the booking core"""

    room_id: UUID = Field(default_factory=uuid4)
    hotel_id: UUID

    room_type: RoomType
    room_number: str
    description: str
    price_per_night: Decimal = Field(ge=0)
    capacity: int = Field(ge=1, le=10)
    amenities: List[str] = []
    images: List[str] = []
    size: float = Field(gt=0)
    floor: int = 1
    has_balcony: bool = False
    has_ocean_view: bool = False
    has_mountain_view: bool = False
    is_smoking_allowed: bool = False
    is_pet_friendly: bool = False

    # Administrative switch, independent from bookings
    is_available: bool = True

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        from_attributes = True


class Booking(BaseModel):
    """Booking Aggregate Root Entity"""

    # Identity
    booking_id: UUID = Field(default_factory=uuid4)

    # References to other aggregates
    user_id: UUID
    room_id: UUID
    hotel_id: UUID

    # Value Objects
    date_range: DateRange
    cancellation: Optional[CancellationInfo] = None

    guests: int = Field(ge=1)
    total_price: Decimal = Field(ge=0)
    status: BookingStatus = BookingStatus.PENDING
    payment_method: PaymentMethod
    is_paid: bool = False
    payment_id: Optional[str] = None
    special_requests: Optional[str] = None

    # Metadata
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        from_attributes = True

    # ==================== QUERIES ====================
    def is_active(self) -> bool:
        """Pending and confirmed bookings hold the room"""
        return self.status in ACTIVE_BOOKING_STATUSES

    def is_terminal(self) -> bool:
        return self.status in TERMINAL_BOOKING_STATUSES

    def can_transition_to(self, new_status: BookingStatus) -> bool:
        return new_status in ALLOWED_TRANSITIONS[self.status]

    # ==================== STATE TRANSITIONS ====================
    # Transitions never touch self; they hand back an updated copy so the
    # stored booking and the pending change stay distinct values.
    def transition_to(
        self,
        new_status: BookingStatus,
        cancelled_by: Optional[CancelledBy] = None,
        reason: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> "Booking":
        """Return a copy of the booking moved to new_status"""
        if not self.can_transition_to(new_status):
            raise InvalidTransition(
                f"Cannot change booking status from {self.status.value} to {new_status.value}"
            )

        now = now or datetime.utcnow()
        changes = {"status": new_status, "updated_at": now}

        if new_status == BookingStatus.CANCELLED:
            changes["cancellation"] = CancellationInfo(
                reason=reason,
                cancelled_at=now,
                cancelled_by=cancelled_by or CancelledBy.USER
            )

        return self.model_copy(update=changes)

    def cancel(self, cancelled_by: CancelledBy, reason: Optional[str] = None,
               now: Optional[datetime] = None) -> "Booking":
        """Return a cancelled copy of the booking"""
        if self.is_terminal():
            raise InvalidTransition(
                f"Booking cannot be cancelled in {self.status.value} status"
            )
        return self.transition_to(
            BookingStatus.CANCELLED, cancelled_by=cancelled_by, reason=reason, now=now
        )
