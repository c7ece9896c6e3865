"""Domain Events - produced by services, delivered by a NotificationDispatcher"""
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from datetime import datetime
from decimal import Decimal
from typing import ClassVar, List, Optional

from domain.entities import Booking, Hotel, Room
from domain.enums import BookingStatus, BookingUpdateType, CancelledBy


class NotificationTarget(BaseModel):
    """Subscribers an event is meant for"""
    hotel_id: Optional[UUID] = None
    user_id: Optional[UUID] = None
    broadcast: bool = False

    class Config:
        frozen = True


class DomainEvent(BaseModel):
    """Base Domain Event"""
    name: ClassVar[str] = "domain-event"

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        frozen = True


class BookingCreated(DomainEvent):
    name: ClassVar[str] = "new-booking"

    booking_id: UUID
    hotel_id: UUID
    user_id: UUID
    room_type: str
    check_in: datetime
    check_out: datetime
    guests: int
    total_price: Decimal
    status: BookingStatus = BookingStatus.PENDING


class BookingStatusChanged(DomainEvent):
    name: ClassVar[str] = "booking-status-updated"

    booking_id: UUID
    hotel_id: UUID
    user_id: UUID
    previous_status: BookingStatus
    status: BookingStatus
    cancelled_by: Optional[CancelledBy] = None


class BookingCancelled(DomainEvent):
    name: ClassVar[str] = "booking-cancelled"

    booking_id: UUID
    hotel_id: UUID
    user_id: UUID
    reason: Optional[str] = None
    cancelled_by: CancelledBy


class BookingUpdate(DomainEvent):
    """Generic fan-out to every connected client"""
    name: ClassVar[str] = "booking-update"

    type: BookingUpdateType
    booking_id: UUID
    hotel_id: UUID
    user_id: UUID


class HotelCreated(DomainEvent):
    name: ClassVar[str] = "new-hotel-added"

    hotel_id: UUID
    hotel_name: str
    city: str
    country: str
    rating: float


class HotelUpdated(DomainEvent):
    name: ClassVar[str] = "hotel-updated"

    hotel_id: UUID
    updated_fields: List[str] = []


class HotelDeleted(DomainEvent):
    name: ClassVar[str] = "hotel-deleted"

    hotel_id: UUID


class Notification(BaseModel):
    """An event paired with its audience"""
    event: DomainEvent
    targets: NotificationTarget

    class Config:
        frozen = True


# ==================== EVENT BUILDERS ====================

def booking_created_notifications(booking: Booking, room: Room) -> List[Notification]:
    return [
        Notification(
            event=BookingCreated(
                booking_id=booking.booking_id,
                hotel_id=booking.hotel_id,
                user_id=booking.user_id,
                room_type=room.room_type.value,
                check_in=booking.date_range.check_in,
                check_out=booking.date_range.check_out,
                guests=booking.guests,
                total_price=booking.total_price,
                status=booking.status
            ),
            targets=NotificationTarget(hotel_id=booking.hotel_id, user_id=booking.user_id)
        ),
        _booking_update(booking, BookingUpdateType.CREATED),
    ]


def booking_status_notifications(previous: Booking, booking: Booking) -> List[Notification]:
    cancelled_by = booking.cancellation.cancelled_by if booking.cancellation else None
    return [
        Notification(
            event=BookingStatusChanged(
                booking_id=booking.booking_id,
                hotel_id=booking.hotel_id,
                user_id=booking.user_id,
                previous_status=previous.status,
                status=booking.status,
                cancelled_by=cancelled_by
            ),
            targets=NotificationTarget(hotel_id=booking.hotel_id, user_id=booking.user_id)
        ),
        _booking_update(booking, BookingUpdateType.STATUS_CHANGED),
    ]


def booking_cancelled_notifications(booking: Booking) -> List[Notification]:
    return [
        Notification(
            event=BookingCancelled(
                booking_id=booking.booking_id,
                hotel_id=booking.hotel_id,
                user_id=booking.user_id,
                reason=booking.cancellation.reason,
                cancelled_by=booking.cancellation.cancelled_by
            ),
            targets=NotificationTarget(hotel_id=booking.hotel_id, user_id=booking.user_id)
        ),
        _booking_update(booking, BookingUpdateType.CANCELLED),
    ]


def _booking_update(booking: Booking, update_type: BookingUpdateType) -> Notification:
    return Notification(
        event=BookingUpdate(
            type=update_type,
            booking_id=booking.booking_id,
            hotel_id=booking.hotel_id,
            user_id=booking.user_id
        ),
        targets=NotificationTarget(broadcast=True)
    )


def hotel_created_notifications(hotel: Hotel) -> List[Notification]:
    return [Notification(
        event=HotelCreated(
            hotel_id=hotel.hotel_id,
            hotel_name=hotel.name,
            city=hotel.city,
            country=hotel.country,
            rating=hotel.rating
        ),
        targets=NotificationTarget(broadcast=True)
    )]


def hotel_updated_notifications(hotel: Hotel, updated_fields: List[str]) -> List[Notification]:
    return [Notification(
        event=HotelUpdated(hotel_id=hotel.hotel_id, updated_fields=sorted(updated_fields)),
        targets=NotificationTarget(broadcast=True)
    )]


def hotel_deleted_notifications(hotel: Hotel) -> List[Notification]:
    return [Notification(
        event=HotelDeleted(hotel_id=hotel.hotel_id),
        targets=NotificationTarget(broadcast=True)
    )]
