"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from typing import Optional, List
from uuid import UUID

from domain.auth import UserInDB
from domain.entities import Booking, Hotel, Room


class BookingRepository(ABC):
    """Repository interface for Booking Aggregate"""

    @abstractmethod
    async def insert(self, booking: Booking) -> Booking:
        """Insert a new booking.

        Must refuse, atomically with the write, an active booking that
        overlaps another active booking of the same room by raising
        BookingOverlapError.
        """
        pass

    @abstractmethod
    async def update(self, booking: Booking) -> Booking:
        """Update booking"""
        pass

    @abstractmethod
    async def find_by_id(self, booking_id: UUID) -> Optional[Booking]:
        """Find booking by ID"""
        pass

    @abstractmethod
    async def find_active_by_room(self, room_id: UUID) -> List[Booking]:
        """Find pending and confirmed bookings referencing a room"""
        pass

    @abstractmethod
    async def find_active_by_rooms(self, room_ids: List[UUID]) -> List[Booking]:
        """Find pending and confirmed bookings referencing any of the rooms"""
        pass

    @abstractmethod
    async def find_by_user(self, user_id: UUID) -> List[Booking]:
        """Find bookings of a user, newest first"""
        pass

    @abstractmethod
    async def find_by_hotels(self, hotel_ids: List[UUID]) -> List[Booking]:
        """Find bookings of the given hotels, newest first"""
        pass


class RoomRepository(ABC):
    """Repository interface for Room Aggregate"""

    @abstractmethod
    async def save(self, room: Room) -> Room:
        """Save room"""
        pass

    @abstractmethod
    async def find_by_id(self, room_id: UUID) -> Optional[Room]:
        """Find room by ID"""
        pass

    @abstractmethod
    async def find_by_hotel(self, hotel_id: UUID) -> List[Room]:
        """Find rooms of a hotel"""
        pass

    @abstractmethod
    async def find_all(self) -> List[Room]:
        """Find all rooms"""
        pass

    @abstractmethod
    async def update(self, room: Room) -> Room:
        """Update room"""
        pass

    @abstractmethod
    async def delete(self, room_id: UUID) -> bool:
        """Delete room"""
        pass


class HotelRepository(ABC):
    """Repository interface for Hotel Aggregate"""

    @abstractmethod
    async def save(self, hotel: Hotel) -> Hotel:
        """Save hotel"""
        pass

    @abstractmethod
    async def find_by_id(self, hotel_id: UUID) -> Optional[Hotel]:
        """Find hotel by ID"""
        pass

    @abstractmethod
    async def find_by_owner(self, owner_id: UUID) -> List[Hotel]:
        """Find hotels owned by a user"""
        pass

    @abstractmethod
    async def find_all(self) -> List[Hotel]:
        """Find all hotels, newest first"""
        pass

    @abstractmethod
    async def update(self, hotel: Hotel) -> Hotel:
        """Update hotel"""
        pass

    @abstractmethod
    async def delete(self, hotel_id: UUID) -> bool:
        """Delete hotel"""
        pass


class UserRepository(ABC):
    """Repository interface for User accounts"""

    @abstractmethod
    async def save(self, user: UserInDB) -> UserInDB:
        """Save user"""
        pass

    @abstractmethod
    async def find_by_id(self, user_id: UUID) -> Optional[UserInDB]:
        """Find user by ID"""
        pass

    @abstractmethod
    async def find_by_username(self, username: str) -> Optional[UserInDB]:
        """Find user by username"""
        pass

    @abstractmethod
    async def find_all(self) -> List[UserInDB]:
        """Find all users"""
        pass

    @abstractmethod
    async def update(self, user: UserInDB) -> UserInDB:
        """Update user"""
        pass

    @abstractmethod
    async def delete(self, user_id: UUID) -> bool:
        """Delete user"""
        pass
