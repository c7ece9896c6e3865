"""In-Memory Repository Implementations"""
import threading
from typing import Optional, List, Dict
from uuid import UUID

from domain.auth import UserInDB
from domain.entities import Booking, Hotel, Room
from domain.exceptions import BookingOverlapError, PersistenceError
from domain.repositories import BookingRepository, HotelRepository, RoomRepository, UserRepository
from domain.value_objects import overlaps

# Stored documents are copied on the way in and out, so callers only ever
# hold values and a change becomes visible through update() alone.


def _copy(entity):
    return entity.model_copy(deep=True)


class InMemoryBookingRepository(BookingRepository):
    """In-memory implementation of BookingRepository"""

    def __init__(self):
        self._storage: Dict[UUID, Booking] = {}
        self._lock = threading.Lock()

    async def insert(self, booking: Booking) -> Booking:
        """Store booking unless an active booking of the same room overlaps it"""
        with self._lock:
            if booking.booking_id in self._storage:
                raise PersistenceError(f"Booking already exists: {booking.booking_id}")
            if booking.is_active():
                for existing in self._storage.values():
                    if (existing.room_id == booking.room_id and existing.is_active()
                            and overlaps(existing.date_range, booking.date_range)):
                        raise BookingOverlapError(
                            f"Room {booking.room_id} already booked by {existing.booking_id}"
                        )
            self._storage[booking.booking_id] = _copy(booking)
        return booking

    async def update(self, booking: Booking) -> Booking:
        """Update booking"""
        with self._lock:
            if booking.booking_id not in self._storage:
                raise PersistenceError(f"Booking not found: {booking.booking_id}")
            self._storage[booking.booking_id] = _copy(booking)
        return booking

    async def find_by_id(self, booking_id: UUID) -> Optional[Booking]:
        """Find booking by ID"""
        booking = self._storage.get(booking_id)
        return _copy(booking) if booking else None

    async def find_active_by_room(self, room_id: UUID) -> List[Booking]:
        """Find pending and confirmed bookings of a room"""
        return [_copy(b) for b in self._storage.values() if b.room_id == room_id and b.is_active()]

    async def find_active_by_rooms(self, room_ids: List[UUID]) -> List[Booking]:
        """Find pending and confirmed bookings of several rooms"""
        wanted = set(room_ids)
        return [_copy(b) for b in self._storage.values() if b.room_id in wanted and b.is_active()]

    async def find_by_user(self, user_id: UUID) -> List[Booking]:
        """Find bookings of a user, newest first"""
        bookings = [_copy(b) for b in self._storage.values() if b.user_id == user_id]
        return sorted(bookings, key=lambda b: b.created_at, reverse=True)

    async def find_by_hotels(self, hotel_ids: List[UUID]) -> List[Booking]:
        """Find bookings of hotels, newest first"""
        wanted = set(hotel_ids)
        bookings = [_copy(b) for b in self._storage.values() if b.hotel_id in wanted]
        return sorted(bookings, key=lambda b: b.created_at, reverse=True)


class InMemoryRoomRepository(RoomRepository):
    """In-memory implementation of RoomRepository"""

    def __init__(self):
        self._storage: Dict[UUID, Room] = {}

    async def save(self, room: Room) -> Room:
        """Save room to memory"""
        self._storage[room.room_id] = _copy(room)
        return room

    async def find_by_id(self, room_id: UUID) -> Optional[Room]:
        """Find room by ID"""
        room = self._storage.get(room_id)
        return _copy(room) if room else None

    async def find_by_hotel(self, hotel_id: UUID) -> List[Room]:
        """Find rooms of a hotel"""
        return [_copy(r) for r in self._storage.values() if r.hotel_id == hotel_id]

    async def find_all(self) -> List[Room]:
        """Find all rooms"""
        return [_copy(r) for r in self._storage.values()]

    async def update(self, room: Room) -> Room:
        """Update room"""
        if room.room_id in self._storage:
            self._storage[room.room_id] = _copy(room)
            return room
        raise PersistenceError(f"Room not found: {room.room_id}")

    async def delete(self, room_id: UUID) -> bool:
        """Delete room"""
        if room_id in self._storage:
            del self._storage[room_id]
            return True
        return False


class InMemoryHotelRepository(HotelRepository):
    """In-memory implementation of HotelRepository"""

    def __init__(self):
        self._storage: Dict[UUID, Hotel] = {}

    async def save(self, hotel: Hotel) -> Hotel:
        """Save hotel to memory"""
        self._storage[hotel.hotel_id] = _copy(hotel)
        return hotel

    async def find_by_id(self, hotel_id: UUID) -> Optional[Hotel]:
        """Find hotel by ID"""
        hotel = self._storage.get(hotel_id)
        return _copy(hotel) if hotel else None

    async def find_by_owner(self, owner_id: UUID) -> List[Hotel]:
        """Find hotels of an owner"""
        return [_copy(h) for h in self._storage.values() if h.owner_id == owner_id]

    async def find_all(self) -> List[Hotel]:
        """Find all hotels, newest first"""
        hotels = [_copy(h) for h in self._storage.values()]
        return sorted(hotels, key=lambda h: h.created_at, reverse=True)

    async def update(self, hotel: Hotel) -> Hotel:
        """Update hotel"""
        if hotel.hotel_id in self._storage:
            self._storage[hotel.hotel_id] = _copy(hotel)
            return hotel
        raise PersistenceError(f"Hotel not found: {hotel.hotel_id}")

    async def delete(self, hotel_id: UUID) -> bool:
        """Delete hotel"""
        if hotel_id in self._storage:
            del self._storage[hotel_id]
            return True
        return False


class InMemoryUserRepository(UserRepository):
    """In-memory implementation of UserRepository"""

    def __init__(self):
        self._storage: Dict[UUID, UserInDB] = {}

    def _ensure_unique_username(self, user: UserInDB) -> None:
        for existing in self._storage.values():
            if existing.username == user.username and existing.user_id != user.user_id:
                raise PersistenceError(f"Username already taken: {user.username}")

    async def save(self, user: UserInDB) -> UserInDB:
        """Save user to memory"""
        self._ensure_unique_username(user)
        self._storage[user.user_id] = _copy(user)
        return user

    async def find_by_id(self, user_id: UUID) -> Optional[UserInDB]:
        """Find user by ID"""
        user = self._storage.get(user_id)
        return _copy(user) if user else None

    async def find_by_username(self, username: str) -> Optional[UserInDB]:
        """Find user by username"""
        for user in self._storage.values():
            if user.username == username:
                return _copy(user)
        return None

    async def find_all(self) -> List[UserInDB]:
        """Find all users"""
        return [_copy(u) for u in self._storage.values()]

    async def update(self, user: UserInDB) -> UserInDB:
        """Update user"""
        if user.user_id in self._storage:
            self._ensure_unique_username(user)
            self._storage[user.user_id] = _copy(user)
            return user
        raise PersistenceError(f"User not found: {user.user_id}")

    async def delete(self, user_id: UUID) -> bool:
        """Delete user"""
        if user_id in self._storage:
            del self._storage[user_id]
            return True
        return False
