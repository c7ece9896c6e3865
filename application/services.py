"""Application Services - Business use cases"""
import logging
from pydantic import BaseModel
from uuid import UUID
from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, List, Optional

from domain.auth import User, UserInDB
from domain.availability import (
    HotelAvailabilityView, RoomAvailabilityView, group_by_room, is_room_available,
    project_hotel_availability, project_room_availability, room_availability,
)
from domain.entities import Booking, Hotel, Room
from domain.enums import BookingStatus, CancelledBy, PaymentMethod, RoomType, UserRole
from domain.events import (
    Notification, booking_cancelled_notifications, booking_created_notifications,
    booking_status_notifications, hotel_created_notifications,
    hotel_deleted_notifications, hotel_updated_notifications,
)
from domain.exceptions import (
    BookingOverlapError, DateConflict, Forbidden, InvalidGuestCount,
    NotFound, RoomUnavailable, UsernameTaken,
)
from domain.pricing import compute_total_price
from domain.repositories import BookingRepository, HotelRepository, RoomRepository, UserRepository
from domain.value_objects import DateRange

logger = logging.getLogger(__name__)

# Fields callers may never overwrite through an update payload
_IMMUTABLE_FIELDS = {"hotel_id", "room_id", "user_id", "owner_id", "created_at", "hashed_password"}


class BookingResult(BaseModel):
    """Stored booking plus the notifications to send about it"""
    booking: Booking
    notifications: List[Notification] = []


class HotelResult(BaseModel):
    """Stored hotel plus the notifications to send about it"""
    hotel: Hotel
    notifications: List[Notification] = []


class HotelDateAvailability(BaseModel):
    """Rooms of a hotel bookable for a stay"""
    hotel_id: UUID
    date_range: DateRange
    guests: int
    total_rooms: int
    available_rooms: int
    rooms: List[Room]


def _apply_changes(entity, changes: dict):
    """Validated copy of entity with changes applied"""
    allowed = {k: v for k, v in changes.items() if k not in _IMMUTABLE_FIELDS}
    data = entity.model_dump()
    data.update(allowed)
    if "updated_at" in data:
        data["updated_at"] = datetime.utcnow()
    return type(entity)(**data)


def _ensure_can_manage_hotel(hotel: Hotel, actor: User) -> None:
    if not (actor.is_admin() or hotel.is_owned_by(actor.user_id)):
        logger.warning("User %s may not manage hotel %s", actor.user_id, hotel.hotel_id)
        raise Forbidden("Not authorized to manage this hotel")


class BookingService:
    """Booking lifecycle: creation, status changes, cancellation and queries.

    Holds no state between calls. Every mutation returns the notifications to
    forward; sending them is up to the caller.
    """

    def __init__(self,
                 repository: BookingRepository,
                 room_repo: RoomRepository,
                 hotel_repo: HotelRepository):
        self.repository = repository
        self.room_repo = room_repo
        self.hotel_repo = hotel_repo

    async def create_booking(
        self,
        room_id: UUID,
        check_in,
        check_out,
        guests: int,
        payment_method: PaymentMethod,
        requester_id: UUID,
        special_requests: Optional[str] = None
    ) -> BookingResult:
        """Create a pending booking if the room is free for the stay"""
        date_range = DateRange.between(check_in, check_out)
        if guests < 1:
            raise InvalidGuestCount("At least one guest is required")

        room = await self.room_repo.find_by_id(room_id)
        if not room:
            raise NotFound("Room not found")
        if not room.is_available:
            raise RoomUnavailable("Room is not available")
        if guests > room.capacity:
            raise InvalidGuestCount(
                f"Room holds at most {room.capacity} guests, {guests} requested"
            )

        active_bookings = await self.repository.find_active_by_room(room_id)
        if not is_room_available(room_id, date_range, active_bookings):
            logger.warning("Date conflict for room %s between %s and %s",
                           room_id, date_range.check_in, date_range.check_out)
            raise DateConflict("Room is not available for selected dates")

        booking = Booking(
            user_id=requester_id,
            room_id=room.room_id,
            hotel_id=room.hotel_id,
            date_range=date_range,
            guests=guests,
            total_price=compute_total_price(room.price_per_night, date_range),
            payment_method=payment_method,
            special_requests=special_requests
        )

        # A concurrent create may have taken the dates since the check above
        try:
            await self.repository.insert(booking)
        except BookingOverlapError as e:
            logger.warning("Insert-time date conflict for room %s: %s", room_id, e)
            raise DateConflict("Room is not available for selected dates") from e

        logger.info("Booking %s created for room %s by user %s",
                    booking.booking_id, room_id, requester_id)
        return BookingResult(
            booking=booking,
            notifications=booking_created_notifications(booking, room)
        )

    async def update_status(
        self,
        booking_id: UUID,
        new_status: BookingStatus,
        actor_role: UserRole,
        actor_id: UUID
    ) -> BookingResult:
        """Move a booking along its state machine.

        The caller has already checked that the actor manages the hotel.
        """
        booking = await self.repository.find_by_id(booking_id)
        if not booking:
            raise NotFound("Booking not found")

        cancelled_by = CancelledBy.ADMIN if actor_role == UserRole.ADMIN else CancelledBy.HOTEL
        updated = booking.transition_to(BookingStatus(new_status), cancelled_by=cancelled_by)
        await self.repository.update(updated)

        logger.info("Booking %s moved from %s to %s by %s %s",
                    booking_id, booking.status.value, updated.status.value,
                    UserRole(actor_role).value, actor_id)
        return BookingResult(
            booking=updated,
            notifications=booking_status_notifications(booking, updated)
        )

    async def cancel_booking(
        self,
        booking_id: UUID,
        reason: Optional[str],
        requester_id: UUID
    ) -> BookingResult:
        """Cancel a booking on behalf of the guest who made it"""
        booking = await self.repository.find_by_id(booking_id)
        if not booking:
            raise NotFound("Booking not found")
        if booking.user_id != requester_id:
            logger.warning("User %s tried to cancel booking %s", requester_id, booking_id)
            raise Forbidden("Not authorized to cancel this booking")

        cancelled = booking.cancel(CancelledBy.USER, reason=reason)
        await self.repository.update(cancelled)

        logger.info("Booking %s cancelled by user %s", booking_id, requester_id)
        return BookingResult(
            booking=cancelled,
            notifications=booking_cancelled_notifications(cancelled)
        )

    async def get_booking(self, booking_id: UUID) -> Optional[Booking]:
        """Get booking by ID"""
        return await self.repository.find_by_id(booking_id)

    async def get_booking_for(self, booking_id: UUID, viewer: User) -> Booking:
        """Get a booking visible to its guest, the hotel owner or an admin"""
        booking = await self.repository.find_by_id(booking_id)
        if not booking:
            raise NotFound("Booking not found")
        if viewer.is_admin() or booking.user_id == viewer.user_id:
            return booking

        hotel = await self.hotel_repo.find_by_id(booking.hotel_id)
        if hotel and hotel.is_owned_by(viewer.user_id):
            return booking
        raise Forbidden("Not authorized to view this booking")

    async def get_user_bookings(self, user_id: UUID) -> List[Booking]:
        """Get all bookings of a user, newest first"""
        return await self.repository.find_by_user(user_id)

    async def get_hotel_bookings(self, hotel_id: UUID, actor: User) -> List[Booking]:
        """Get all bookings of a hotel for its owner or an admin"""
        hotel = await self.hotel_repo.find_by_id(hotel_id)
        if not hotel:
            raise NotFound("Hotel not found")
        _ensure_can_manage_hotel(hotel, actor)
        return await self.repository.find_by_hotels([hotel_id])

    async def get_stats(self, user: User) -> Dict[str, int]:
        """Booking counters for a hotel owner's hotels or for a guest"""
        if user.role == UserRole.HOTEL_OWNER:
            hotels = await self.hotel_repo.find_by_owner(user.user_id)
            bookings = await self.repository.find_by_hotels([h.hotel_id for h in hotels])
            return {
                "total_bookings": len(bookings),
                "pending_bookings": _count_status(bookings, BookingStatus.PENDING),
                "confirmed_bookings": _count_status(bookings, BookingStatus.CONFIRMED),
                "completed_bookings": _count_status(bookings, BookingStatus.COMPLETED),
                "total_hotels": len(hotels),
            }

        bookings = await self.repository.find_by_user(user.user_id)
        now = datetime.utcnow()
        return {
            "total_bookings": len(bookings),
            "upcoming_bookings": len([
                b for b in bookings
                if b.status == BookingStatus.CONFIRMED and b.date_range.check_in >= now
            ]),
            "completed_bookings": _count_status(bookings, BookingStatus.COMPLETED),
            "cancelled_bookings": _count_status(bookings, BookingStatus.CANCELLED),
        }


def _count_status(bookings: List[Booking], status: BookingStatus) -> int:
    return len([b for b in bookings if b.status == status])


class HotelService:
    """Service for Hotel use cases and availability read models"""

    def __init__(self,
                 repository: HotelRepository,
                 room_repo: RoomRepository,
                 booking_repo: BookingRepository):
        self.repository = repository
        self.room_repo = room_repo
        self.booking_repo = booking_repo

    async def create_hotel(self, owner: User, data: dict) -> HotelResult:
        """Create hotel owned by the acting user"""
        hotel = Hotel(**{**data, "owner_id": owner.user_id})
        await self.repository.save(hotel)
        logger.info("Hotel %s created by %s", hotel.hotel_id, owner.user_id)
        return HotelResult(hotel=hotel, notifications=hotel_created_notifications(hotel))

    async def get_hotel(self, hotel_id: UUID) -> Optional[Hotel]:
        """Get hotel by ID"""
        return await self.repository.find_by_id(hotel_id)

    async def ensure_manager(self, hotel_id: UUID, actor: User) -> Hotel:
        """Return the hotel if actor owns it or is an admin"""
        hotel = await self.repository.find_by_id(hotel_id)
        if not hotel:
            raise NotFound("Hotel not found")
        _ensure_can_manage_hotel(hotel, actor)
        return hotel

    async def update_hotel(self, hotel_id: UUID, actor: User, changes: dict) -> HotelResult:
        """Update hotel details"""
        hotel = await self.ensure_manager(hotel_id, actor)
        updated = _apply_changes(hotel, changes)
        await self.repository.update(updated)
        logger.info("Hotel %s updated by %s", hotel_id, actor.user_id)
        return HotelResult(
            hotel=updated,
            notifications=hotel_updated_notifications(updated, list(changes))
        )

    async def delete_hotel(self, hotel_id: UUID, actor: User) -> HotelResult:
        """Delete hotel"""
        hotel = await self.ensure_manager(hotel_id, actor)
        await self.repository.delete(hotel_id)
        logger.info("Hotel %s deleted by %s", hotel_id, actor.user_id)
        return HotelResult(hotel=hotel, notifications=hotel_deleted_notifications(hotel))

    async def _bookings_by_room(self, rooms: List[Room]):
        bookings = await self.booking_repo.find_active_by_rooms([r.room_id for r in rooms])
        return group_by_room(bookings)

    async def get_hotel_overview(self, hotel_id: UUID) -> HotelAvailabilityView:
        """Hotel with room counts based on the administrative room flag"""
        hotel = await self.repository.find_by_id(hotel_id)
        if not hotel:
            raise NotFound("Hotel not found")
        rooms = await self.room_repo.find_by_hotel(hotel_id)
        return project_hotel_availability(hotel, rooms, {})

    async def list_hotels(
        self,
        city: Optional[str] = None,
        min_rating: Optional[float] = None,
        amenities: Optional[List[str]] = None,
        check_in=None,
        check_out=None,
        guests: Optional[int] = None
    ) -> List[HotelAvailabilityView]:
        """Active hotels matching the filters.

        With check_in, check_out and guests all given, only hotels with at
        least one free room large enough are returned.
        """
        hotels = [h for h in await self.repository.find_all() if h.is_active]
        if city:
            hotels = [h for h in hotels if city.lower() in h.city.lower()]
        if min_rating is not None:
            hotels = [h for h in hotels if h.rating >= min_rating]
        if amenities:
            hotels = [h for h in hotels if set(amenities).issubset(h.amenities)]

        date_range = None
        if check_in and check_out and guests:
            date_range = DateRange.between(check_in, check_out)

        views = []
        for hotel in hotels:
            rooms = await self.room_repo.find_by_hotel(hotel.hotel_id)
            if date_range is not None:
                rooms = [r for r in rooms if r.capacity >= guests]
                view = project_hotel_availability(
                    hotel, rooms, await self._bookings_by_room(rooms), date_range
                )
                if view.available_room_count == 0:
                    continue
            else:
                view = project_hotel_availability(hotel, rooms, {})
            views.append(view)
        return views

    async def get_owner_hotels(self, owner_id: UUID) -> List[HotelAvailabilityView]:
        """Hotels of an owner with their occupancy"""
        views = []
        for hotel in await self.repository.find_by_owner(owner_id):
            rooms = await self.room_repo.find_by_hotel(hotel.hotel_id)
            views.append(project_hotel_availability(hotel, rooms, {}))
        return views

    async def check_availability(self, hotel_id: UUID, check_in, check_out,
                                 guests: int) -> HotelDateAvailability:
        """Rooms of a hotel that can take guests for the stay"""
        date_range = DateRange.between(check_in, check_out)
        if guests < 1:
            raise InvalidGuestCount("At least one guest is required")
        if not await self.repository.find_by_id(hotel_id):
            raise NotFound("Hotel not found")

        rooms = [r for r in await self.room_repo.find_by_hotel(hotel_id) if r.capacity >= guests]
        bookings_by_room = await self._bookings_by_room(rooms)
        summary = room_availability(rooms, bookings_by_room, date_range)
        free_rooms = [
            room for room in rooms
            if room.is_available and is_room_available(
                room.room_id, date_range, bookings_by_room.get(room.room_id, [])
            )
        ]
        return HotelDateAvailability(
            hotel_id=hotel_id,
            date_range=date_range,
            guests=guests,
            total_rooms=summary.total_rooms,
            available_rooms=summary.available_rooms,
            rooms=free_rooms
        )

    async def get_hotel_rooms(self, hotel_id: UUID) -> List[RoomAvailabilityView]:
        """All rooms of a hotel with their current booking state"""
        if not await self.repository.find_by_id(hotel_id):
            raise NotFound("Hotel not found")
        rooms = await self.room_repo.find_by_hotel(hotel_id)
        bookings_by_room = await self._bookings_by_room(rooms)
        return [
            project_room_availability(room, bookings_by_room.get(room.room_id, []))
            for room in rooms
        ]


class RoomService:
    """Service for Room use cases"""

    def __init__(self, repository: RoomRepository, hotel_repo: HotelRepository):
        self.repository = repository
        self.hotel_repo = hotel_repo

    async def list_rooms(
        self,
        hotel_id: Optional[UUID] = None,
        room_type: Optional[RoomType] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        is_available: Optional[bool] = None
    ) -> List[Room]:
        """Rooms matching the filters, cheapest first"""
        rooms = await self.repository.find_all()
        if hotel_id is not None:
            rooms = [r for r in rooms if r.hotel_id == hotel_id]
        if room_type is not None:
            rooms = [r for r in rooms if r.room_type == room_type]
        if min_price is not None:
            rooms = [r for r in rooms if r.price_per_night >= min_price]
        if max_price is not None:
            rooms = [r for r in rooms if r.price_per_night <= max_price]
        if is_available is not None:
            rooms = [r for r in rooms if r.is_available == is_available]
        return sorted(rooms, key=lambda r: r.price_per_night)

    async def get_room(self, room_id: UUID) -> Optional[Room]:
        """Get room by ID"""
        return await self.repository.find_by_id(room_id)

    async def get_available_rooms(self, hotel_id: UUID) -> List[Room]:
        """Rooms of a hotel that are administratively switched on"""
        return [r for r in await self.repository.find_by_hotel(hotel_id) if r.is_available]

    async def _managed_hotel(self, hotel_id: UUID, actor: User) -> Hotel:
        hotel = await self.hotel_repo.find_by_id(hotel_id)
        if not hotel:
            raise NotFound("Hotel not found")
        _ensure_can_manage_hotel(hotel, actor)
        return hotel

    async def create_room(self, actor: User, hotel_id: UUID, data: dict) -> Room:
        """Add a room to a hotel the actor manages"""
        await self._managed_hotel(hotel_id, actor)
        room = Room(**{**data, "hotel_id": hotel_id})
        await self.repository.save(room)
        logger.info("Room %s added to hotel %s", room.room_id, hotel_id)
        return room

    async def update_room(self, room_id: UUID, actor: User, changes: dict) -> Room:
        """Update room details"""
        room = await self.repository.find_by_id(room_id)
        if not room:
            raise NotFound("Room not found")
        await self._managed_hotel(room.hotel_id, actor)
        updated = _apply_changes(room, changes)
        return await self.repository.update(updated)

    async def delete_room(self, room_id: UUID, actor: User) -> bool:
        """Delete room"""
        room = await self.repository.find_by_id(room_id)
        if not room:
            raise NotFound("Room not found")
        await self._managed_hotel(room.hotel_id, actor)
        logger.info("Room %s deleted by %s", room_id, actor.user_id)
        return await self.repository.delete(room_id)


class UserService:
    """Service for user accounts and profiles"""

    def __init__(self, repository: UserRepository, password_hasher: Callable[[str], str]):
        self.repository = repository
        self.password_hasher = password_hasher

    async def create_user(
        self,
        username: str,
        password: str,
        email: Optional[str] = None,
        full_name: Optional[str] = None,
        role: UserRole = UserRole.USER,
        user_id: Optional[UUID] = None
    ) -> UserInDB:
        """Register a new account"""
        await self._ensure_username_free(username)
        data = dict(
            username=username,
            email=email,
            full_name=full_name,
            role=role,
            hashed_password=self.password_hasher(password)
        )
        if user_id is not None:
            data["user_id"] = user_id
        user = UserInDB(**data)
        await self.repository.save(user)
        logger.info("User %s registered with role %s", username, UserRole(role).value)
        return user

    async def _ensure_username_free(self, username: str, user_id: Optional[UUID] = None) -> None:
        existing = await self.repository.find_by_username(username)
        if existing and existing.user_id != user_id:
            logger.warning("Username %s already taken", username)
            raise UsernameTaken("Username already taken")

    async def get_user(self, user_id: UUID) -> Optional[UserInDB]:
        """Get user by ID"""
        return await self.repository.find_by_id(user_id)

    async def get_user_by_username(self, username: str) -> Optional[UserInDB]:
        """Get user by username"""
        return await self.repository.find_by_username(username)

    async def get_user_for(self, user_id: UUID, actor: User) -> UserInDB:
        """Get a profile visible to its owner or an admin"""
        if actor.user_id != user_id and not actor.is_admin():
            raise Forbidden("Not authorized to view this user")
        user = await self.repository.find_by_id(user_id)
        if not user:
            raise NotFound("User not found")
        return user

    async def list_users(self) -> List[UserInDB]:
        """Get all users"""
        return await self.repository.find_all()

    async def update_profile(self, user_id: UUID, actor: User, changes: dict) -> UserInDB:
        """Update profile fields; empty values keep the current ones"""
        user = await self.get_user_for(user_id, actor)
        changes = {k: v for k, v in changes.items() if v not in (None, "") and k != "role"}
        if "username" in changes:
            await self._ensure_username_free(changes["username"], user.user_id)
        updated = _apply_changes(user, changes)
        return await self.repository.update(updated)

    async def delete_user(self, user_id: UUID) -> bool:
        """Delete user"""
        if not await self.repository.delete(user_id):
            raise NotFound("User not found")
        return True

    async def add_recent_search(self, user_id: UUID, city: str) -> List[str]:
        """Remember a searched city, most recent first"""
        city = (city or "").strip()
        if not city:
            raise ValueError("City is required")
        user = await self.repository.find_by_id(user_id)
        if not user:
            raise NotFound("User not found")
        updated = user.with_recent_search(city)
        if updated is not user:
            await self.repository.update(updated)
        return updated.recent_searched_cities
