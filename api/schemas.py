"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from typing import List, Optional, Union

from domain.enums import BookingStatus, CancelledBy, PaymentMethod, RoomType, UserRole
from domain.value_objects import Address, PriceRange


# ============================================================================
# AUTH SCHEMAS
# ============================================================================

class Token(BaseModel):
    access_token: str
    token_type: str


class TokenData(BaseModel):
    username: Optional[str] = None


class RegisterUserRequest(BaseModel):
    """Register user request DTO"""
    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=6)
    email: Optional[str] = None
    full_name: Optional[str] = None


class UserResponse(BaseModel):
    """User response DTO"""
    user_id: UUID
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    image: Optional[str] = None
    role: UserRole
    phone: Optional[str] = None
    address: Optional[Address] = None
    recent_searched_cities: List[str] = []
    disabled: bool = False

    class Config:
        from_attributes = True


class UpdateUserRequest(BaseModel):
    """Update profile request DTO"""
    username: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    image: Optional[str] = None
    address: Optional[Address] = None
    recent_searched_cities: Optional[List[str]] = None


class RecentSearchRequest(BaseModel):
    """Recent search request DTO"""
    city: str = ""


# ============================================================================
# HOTEL SCHEMAS
# ============================================================================

class CreateHotelRequest(BaseModel):
    """Create hotel request DTO"""
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
    price_range: PriceRange


class UpdateHotelRequest(BaseModel):
    """Update hotel request DTO"""
    name: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    zip_code: Optional[str] = None
    contact: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    images: Optional[List[str]] = None
    amenities: Optional[List[str]] = None
    rating: Optional[float] = Field(None, ge=0, le=5)
    price_range: Optional[PriceRange] = None
    is_active: Optional[bool] = None


class HotelResponse(BaseModel):
    """Hotel response DTO"""
    hotel_id: UUID
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
    images: List[str]
    amenities: List[str]
    rating: float
    total_reviews: int
    price_range: PriceRange
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class HotelAvailabilityResponse(BaseModel):
    """Hotel with derived room counts"""
    hotel: HotelResponse
    room_count: int
    available_room_count: int
    availability_percentage: int
    occupancy_rate: int


# ============================================================================
# ROOM SCHEMAS
# ============================================================================

class CreateRoomRequest(BaseModel):
    """Create room request DTO"""
    hotel_id: UUID
    room_type: RoomType
    room_number: str
    description: str
    price_per_night: Decimal = Field(ge=0)
    capacity: int = Field(ge=1, le=10)
    amenities: List[str] = []
    images: List[str] = []
    is_available: bool = True
    size: float = Field(gt=0)
    floor: int = 1
    has_balcony: bool = False
    has_ocean_view: bool = False
    has_mountain_view: bool = False
    is_smoking_allowed: bool = False
    is_pet_friendly: bool = False


class UpdateRoomRequest(BaseModel):
    """Update room request DTO"""
    room_type: Optional[RoomType] = None
    room_number: Optional[str] = None
    description: Optional[str] = None
    price_per_night: Optional[Decimal] = Field(None, ge=0)
    capacity: Optional[int] = Field(None, ge=1, le=10)
    amenities: Optional[List[str]] = None
    images: Optional[List[str]] = None
    is_available: Optional[bool] = None
    size: Optional[float] = Field(None, gt=0)
    floor: Optional[int] = None
    has_balcony: Optional[bool] = None
    has_ocean_view: Optional[bool] = None
    has_mountain_view: Optional[bool] = None
    is_smoking_allowed: Optional[bool] = None
    is_pet_friendly: Optional[bool] = None


class RoomResponse(BaseModel):
    """Room response DTO"""
    room_id: UUID
    hotel_id: UUID
    room_type: RoomType
    room_number: str
    description: str
    price_per_night: Decimal
    capacity: int
    amenities: List[str]
    images: List[str]
    is_available: bool
    size: float
    floor: int
    has_balcony: bool
    has_ocean_view: bool
    has_mountain_view: bool
    is_smoking_allowed: bool
    is_pet_friendly: bool

    class Config:
        from_attributes = True


class RoomAvailabilityResponse(BaseModel):
    """Room with its booking-derived availability"""
    room: RoomResponse
    is_available: bool
    conflicting_bookings: int


class HotelRoomsResponse(BaseModel):
    hotel_id: UUID
    hotel_name: str
    total_rooms: int
    available_rooms: int
    rooms: List[RoomAvailabilityResponse]


class DateAvailabilityResponse(BaseModel):
    hotel_id: UUID
    check_in: datetime
    check_out: datetime
    guests: int
    total_rooms: int
    available_rooms: int
    rooms: List[RoomResponse]


# ============================================================================
# BOOKING SCHEMAS
# ============================================================================

class CreateBookingRequest(BaseModel):
    """Create booking request DTO"""
    room_id: UUID
    check_in: Union[datetime, date]
    check_out: Union[datetime, date]
    guests: int = Field(ge=1, le=10)
    payment_method: PaymentMethod
    special_requests: Optional[str] = None


class UpdateBookingStatusRequest(BaseModel):
    """Update booking status request DTO"""
    status: BookingStatus


class CancelBookingRequest(BaseModel):
    """Cancel booking request DTO"""
    reason: Optional[str] = None


class CancellationResponse(BaseModel):
    reason: Optional[str] = None
    cancelled_at: datetime
    cancelled_by: CancelledBy


class BookingResponse(BaseModel):
    """Booking response DTO"""
    booking_id: UUID
    user_id: UUID
    room_id: UUID
    hotel_id: UUID
    check_in: datetime
    check_out: datetime
    nights: int
    guests: int
    total_price: Decimal
    status: BookingStatus
    payment_method: PaymentMethod
    is_paid: bool
    payment_id: Optional[str] = None
    special_requests: Optional[str] = None
    cancellation: Optional[CancellationResponse] = None
    created_at: datetime
    updated_at: datetime
