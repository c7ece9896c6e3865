"""Domain Services - Availability checking and aggregation

Everything here is a pure function over values already fetched from storage.
Derived numbers are returned as separate view objects; entities passed in are
never annotated or modified.
"""
import math
from pydantic import BaseModel, Field
from uuid import UUID
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from domain.entities import Booking, Hotel, Room
from domain.value_objects import DateRange, overlaps


BookingsByRoom = Mapping[UUID, Sequence[Booking]]


# ==================== VIEW MODELS ====================

class RoomAvailabilitySummary(BaseModel):
    """Room counts for a set of rooms"""
    total_rooms: int = Field(ge=0)
    available_rooms: int = Field(ge=0)

    class Config:
        frozen = True


class RoomAvailabilityView(BaseModel):
    """A room together with its booking-derived availability"""
    room: Room
    is_available: bool
    conflicting_bookings: int = Field(ge=0)


class HotelAvailabilityView(BaseModel):
    """A hotel together with counts derived from its rooms and bookings"""
    hotel: Hotel
    room_count: int
    available_room_count: int
    availability_percentage: int
    occupancy_rate: int


# ==================== CHECKER ====================

def conflicting_bookings(date_range: DateRange, bookings: Iterable[Booking]) -> List[Booking]:
    """Active bookings whose range overlaps date_range"""
    return [
        booking for booking in bookings
        if booking.is_active() and overlaps(booking.date_range, date_range)
    ]


def is_room_available(room_id: UUID, date_range: DateRange, active_bookings: Iterable[Booking]) -> bool:
    """False iff one of the room's active bookings overlaps date_range.

    active_bookings is the room's booking list as returned by storage; inactive
    entries in it are ignored.
    """
    return not conflicting_bookings(date_range, active_bookings)


# ==================== AGGREGATOR ====================

def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def room_availability(
    rooms: Sequence[Room],
    active_bookings_by_room: BookingsByRoom,
    date_range: Optional[DateRange] = None
) -> RoomAvailabilitySummary:
    """Count rooms that are switched on and, for a given range, free of conflicts"""
    available = 0
    for room in rooms:
        if not room.is_available:
            continue
        if date_range is not None and not is_room_available(
            room.room_id, date_range, active_bookings_by_room.get(room.room_id, ())
        ):
            continue
        available += 1

    return RoomAvailabilitySummary(total_rooms=len(rooms), available_rooms=available)


def hotel_occupancy(
    rooms: Sequence[Room],
    active_bookings_by_room: BookingsByRoom,
    date_range: Optional[DateRange] = None
) -> int:
    """Percentage (0-100) of rooms not available; 0 for a hotel without rooms"""
    summary = room_availability(rooms, active_bookings_by_room, date_range)
    if summary.total_rooms == 0:
        return 0
    occupied = summary.total_rooms - summary.available_rooms
    return _round_half_up(100 * occupied / summary.total_rooms)


def availability_percentage(summary: RoomAvailabilitySummary) -> int:
    if summary.total_rooms == 0:
        return 0
    return _round_half_up(100 * summary.available_rooms / summary.total_rooms)


# ==================== PROJECTIONS ====================

def project_hotel_availability(
    hotel: Hotel,
    rooms: Sequence[Room],
    active_bookings_by_room: BookingsByRoom,
    date_range: Optional[DateRange] = None
) -> HotelAvailabilityView:
    summary = room_availability(rooms, active_bookings_by_room, date_range)
    return HotelAvailabilityView(
        hotel=hotel,
        room_count=summary.total_rooms,
        available_room_count=summary.available_rooms,
        availability_percentage=availability_percentage(summary),
        occupancy_rate=hotel_occupancy(rooms, active_bookings_by_room, date_range)
    )


def project_room_availability(
    room: Room,
    active_bookings: Sequence[Booking],
    date_range: Optional[DateRange] = None
) -> RoomAvailabilityView:
    """Room view; without a range any active booking counts as a conflict"""
    if date_range is None:
        conflicts = [b for b in active_bookings if b.is_active()]
    else:
        conflicts = conflicting_bookings(date_range, active_bookings)
    return RoomAvailabilityView(
        room=room,
        is_available=not conflicts,
        conflicting_bookings=len(conflicts)
    )


def group_by_room(bookings: Iterable[Booking]) -> Dict[UUID, List[Booking]]:
    grouped: Dict[UUID, List[Booking]] = {}
    for booking in bookings:
        grouped.setdefault(booking.room_id, []).append(booking)
    return grouped
