"""API Dependencies - wiring, authentication and role checks"""
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from uuid import UUID

from application.services import BookingService, HotelService, RoomService, UserService
from domain.auth import User
from domain.enums import UserRole
from infrastructure.config import DEFAULT_PASSWORDS
from infrastructure.notifications import ConnectionManager
from infrastructure.repositories.in_memory_repositories import (
    InMemoryBookingRepository, InMemoryHotelRepository, InMemoryRoomRepository,
    InMemoryUserRepository,
)
from infrastructure.security import decode_access_token, get_password_hash
from api.schemas import TokenData

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")

# Initialize repositories
booking_repo = InMemoryBookingRepository()
room_repo = InMemoryRoomRepository()
hotel_repo = InMemoryHotelRepository()
user_repo = InMemoryUserRepository()

# Socket fan-out shared by every request
connection_manager = ConnectionManager()

# Built-in accounts, created on first access with passwords from the environment
DEFAULT_USERS = [
    {
        "username": "admin",
        "full_name": "Admin User",
        "email": "admin@example.com",
        "role": UserRole.ADMIN,
        "user_id": UUID("123e4567-e89b-12d3-a456-426614174000"),
    },
    {
        "username": "owner",
        "full_name": "Hotel Owner",
        "email": "owner@example.com",
        "role": UserRole.HOTEL_OWNER,
        "user_id": UUID("123e4567-e89b-12d3-a456-426614174001"),
    },
    {
        "username": "guest",
        "full_name": "Guest User",
        "email": "guest@example.com",
        "role": UserRole.USER,
        "user_id": UUID("123e4567-e89b-12d3-a456-426614174002"),
    },
]

_default_users_created = False


async def _ensure_default_users(service: UserService) -> None:
    global _default_users_created
    if _default_users_created:
        return
    for account in DEFAULT_USERS:
        if not await service.get_user_by_username(account["username"]):
            await service.create_user(password=DEFAULT_PASSWORDS[account["username"]], **account)
    _default_users_created = True


# Dependency injection
def get_booking_service() -> BookingService:
    return BookingService(booking_repo, room_repo, hotel_repo)


def get_hotel_service() -> HotelService:
    return HotelService(hotel_repo, room_repo, booking_repo)


def get_room_service() -> RoomService:
    return RoomService(room_repo, hotel_repo)


async def get_user_service() -> UserService:
    service = UserService(user_repo, get_password_hash)
    await _ensure_default_users(service)
    return service


def get_notifier() -> ConnectionManager:
    return connection_manager


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    users: UserService = Depends(get_user_service)
):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_access_token(token)
        username: str = payload.get("sub")
        if username is None:
            raise credentials_exception
        token_data = TokenData(username=username)
    except JWTError:
        raise credentials_exception

    user = await users.get_user_by_username(token_data.username)
    if user is None:
        raise credentials_exception
    return user


async def get_current_active_user(current_user: User = Depends(get_current_user)):
    if current_user.disabled:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user


def require_roles(*roles: UserRole):
    """Dependency letting only users with one of the roles through"""
    async def role_checker(current_user: User = Depends(get_current_active_user)):
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"User role {current_user.role.value} is not authorized to access this route"
            )
        return current_user
    return role_checker
