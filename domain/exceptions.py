"""Domain Exceptions"""


class DomainException(Exception):
    """Base for every recoverable booking-domain error"""
    pass


class InvalidRange(DomainException, ValueError):
    """Check-out is not strictly after check-in"""
    pass


class InvalidRate(DomainException, ValueError):
    """Nightly rate is negative"""
    pass


class InvalidGuestCount(DomainException, ValueError):
    """Guest count is below one or above the room capacity"""
    pass


class NotFound(DomainException):
    """Referenced hotel, room, booking or user does not exist"""
    pass


class RoomUnavailable(DomainException):
    """Room is administratively switched off"""
    pass


class DateConflict(DomainException):
    """An active booking already holds an overlapping range for the room"""
    pass


class InvalidTransition(DomainException):
    """Requested status change is not allowed from the current status"""
    pass


class Forbidden(DomainException):
    """Actor is not allowed to act on the resource"""
    pass


class UsernameTaken(DomainException):
    """Another account already uses the username"""
    pass


class PersistenceError(Exception):
    """Failure raised by the storage layer"""
    pass


class BookingOverlapError(PersistenceError):
    """Insert rejected because an active booking overlaps the same room"""
    pass
