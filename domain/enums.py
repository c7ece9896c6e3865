"""Domain Enums"""
from enum import Enum


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


ACTIVE_BOOKING_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})
TERMINAL_BOOKING_STATUSES = frozenset({BookingStatus.CANCELLED, BookingStatus.COMPLETED})


class CancelledBy(str, Enum):
    USER = "user"
    HOTEL = "hotel"
    ADMIN = "admin"


class PaymentMethod(str, Enum):
    STRIPE = "Stripe"
    PAY_AT_HOTEL = "Pay At Hotel"
    PAYPAL = "PayPal"


class RoomType(str, Enum):
    SINGLE_BED = "Single Bed"
    DOUBLE_BED = "Double Bed"
    TWIN_BED = "Twin Bed"
    QUEEN_BED = "Queen Bed"
    KING_BED = "King Bed"
    SUITE = "Suite"
    DELUXE_SUITE = "Deluxe Suite"


class UserRole(str, Enum):
    USER = "user"
    HOTEL_OWNER = "hotelOwner"
    ADMIN = "admin"


class BookingUpdateType(str, Enum):
    CREATED = "created"
    STATUS_CHANGED = "status-changed"
    CANCELLED = "cancelled"
