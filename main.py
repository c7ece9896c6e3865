import json
import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import Depends, FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordRequestForm

from api.schemas import (
    # Auth / users
    Token, UserResponse, RegisterUserRequest, UpdateUserRequest, RecentSearchRequest,
    # Hotels
    CreateHotelRequest, UpdateHotelRequest, HotelResponse, HotelAvailabilityResponse,
    HotelRoomsResponse, DateAvailabilityResponse,
    # Rooms
    CreateRoomRequest, UpdateRoomRequest, RoomResponse, RoomAvailabilityResponse,
    # Bookings
    CreateBookingRequest, UpdateBookingStatusRequest, CancelBookingRequest, BookingResponse,
)
from api.dependencies import (
    get_booking_service, get_hotel_service, get_room_service, get_user_service,
    get_notifier, get_current_active_user, require_roles,
)
from application.notifications import dispatch_notifications
from application.services import BookingService, HotelService, RoomService, UserService
from domain.auth import User
from domain.enums import BookingStatus, PaymentMethod, RoomType, UserRole
from domain.exceptions import (
    DateConflict, DomainException, Forbidden, NotFound, PersistenceError, UsernameTaken,
)
from infrastructure.config import (
    APP_ENV, CLIENT_URL, CORS_ORIGIN_REGEX, HOST, PORT, configure_logging,
)
from infrastructure.notifications import ConnectionManager, parse_join_request
from infrastructure.security import verify_password, create_access_token, ACCESS_TOKEN_EXPIRE_MINUTES

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Hotel Booking API",
    description="Hotels, rooms, bookings and users with real-time booking notifications",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[CLIENT_URL],
    allow_origin_regex=CORS_ORIGIN_REGEX,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

MANAGER_ROLES = (UserRole.HOTEL_OWNER, UserRole.ADMIN)

# ============================================================================
# ERROR MAPPING
# ============================================================================

_STATUS_BY_ERROR = (
    (NotFound, 404),
    (Forbidden, 403),
    (DateConflict, 409),
    (UsernameTaken, 409),
)


@app.exception_handler(DomainException)
async def domain_exception_handler(request: Request, exc: DomainException):
    status_code = 400
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status_code = code
            break
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(PersistenceError)
async def persistence_exception_handler(request: Request, exc: PersistenceError):
    logger.error("Persistence failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Storage unavailable"})

# ============================================================================
# HEALTH & ENUM REFERENCE ENDPOINTS
# ============================================================================

@app.get("/", tags=["Health"])
async def root():
    """Endpoint index"""
    return {
        "message": "Hotel Booking API",
        "version": app.version,
        "endpoints": {
            "health": "/api/health",
            "auth": "/token",
            "hotels": "/api/hotels",
            "rooms": "/api/rooms",
            "bookings": "/api/bookings",
            "users": "/api/users",
            "socket": "/ws",
        }
    }

@app.get("/api/health", tags=["Health"])
async def health_check(notifier: ConnectionManager = Depends(get_notifier)):
    """Health check endpoint"""
    return {
        "status": "OK",
        "message": "Hotel Booking API is running",
        "timestamp": datetime.utcnow().isoformat(),
        "environment": APP_ENV,
        "socket_connections": notifier.connection_count
    }

@app.get("/api/enums/booking-status", tags=["Enum Reference"])
async def get_booking_statuses():
    """Get all BookingStatus enum values"""
    return {
        "values": [item.value for item in BookingStatus],
        "description": "pending and confirmed bookings hold the room; cancelled and completed are final"
    }

@app.get("/api/enums/payment-method", tags=["Enum Reference"])
async def get_payment_methods():
    """Get all PaymentMethod enum values"""
    return {"values": [item.value for item in PaymentMethod]}

@app.get("/api/enums/room-type", tags=["Enum Reference"])
async def get_room_types():
    """Get all RoomType enum values"""
    return {"values": [item.value for item in RoomType]}

@app.get("/api/enums/user-role", tags=["Enum Reference"])
async def get_user_roles():
    """Get all UserRole enum values"""
    return {"values": [item.value for item in UserRole]}

# ============================================================================
# AUTH ENDPOINTS
# ============================================================================

@app.post("/token", response_model=Token, tags=["Auth"])
async def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    users: UserService = Depends(get_user_service)
):
    user = await users.get_user_by_username(form_data.username)
    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token_expires = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_access_token(
        data={"sub": user.username}, expires_delta=access_token_expires
    )
    return {"access_token": access_token, "token_type": "bearer"}

@app.get("/users/me", response_model=UserResponse, tags=["Auth"])
async def read_users_me(current_user: User = Depends(get_current_active_user)):
    return _user_to_response(current_user)

# ============================================================================
# USER ENDPOINTS
# ============================================================================

@app.post("/api/users/register", response_model=UserResponse, status_code=201, tags=["Users"])
async def register_user(
    request: RegisterUserRequest,
    users: UserService = Depends(get_user_service)
):
    """Register a guest account"""
    user = await users.create_user(
        username=request.username,
        password=request.password,
        email=request.email,
        full_name=request.full_name
    )
    return _user_to_response(user)

@app.get("/api/users", response_model=List[UserResponse], tags=["Users"])
async def get_all_users(
    users: UserService = Depends(get_user_service),
    current_user: User = Depends(require_roles(UserRole.ADMIN))
):
    """Get all users (admin only)"""
    return [_user_to_response(u) for u in await users.list_users()]

@app.post("/api/users/recent-searches", response_model=List[str], tags=["Users"])
async def add_recent_search(
    request: RecentSearchRequest,
    users: UserService = Depends(get_user_service),
    current_user: User = Depends(get_current_active_user)
):
    """Remember a searched city for the current user"""
    try:
        return await users.add_recent_search(current_user.user_id, request.city)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.get("/api/users/{user_id}", response_model=UserResponse, tags=["Users"])
async def get_user(
    user_id: UUID,
    users: UserService = Depends(get_user_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get a user profile (self or admin)"""
    return _user_to_response(await users.get_user_for(user_id, current_user))

@app.put("/api/users/{user_id}", response_model=UserResponse, tags=["Users"])
async def update_user(
    user_id: UUID,
    request: UpdateUserRequest,
    users: UserService = Depends(get_user_service),
    current_user: User = Depends(get_current_active_user)
):
    """Update a user profile (self or admin)"""
    user = await users.update_profile(user_id, current_user, request.model_dump(exclude_unset=True))
    return _user_to_response(user)

@app.delete("/api/users/{user_id}", tags=["Users"])
async def delete_user(
    user_id: UUID,
    users: UserService = Depends(get_user_service),
    current_user: User = Depends(require_roles(UserRole.ADMIN))
):
    """Delete a user (admin only)"""
    await users.delete_user(user_id)
    return {"success": True}

# ============================================================================
# HOTEL ENDPOINTS
# ============================================================================

@app.get("/api/hotels", response_model=List[HotelAvailabilityResponse], tags=["Hotels"])
async def list_hotels(
    city: Optional[str] = None,
    rating: Optional[float] = None,
    amenities: Optional[str] = None,
    check_in: Optional[date] = None,
    check_out: Optional[date] = None,
    guests: Optional[int] = None,
    service: HotelService = Depends(get_hotel_service)
):
    """List active hotels; with dates and guests only hotels with a free room"""
    amenity_list = [a.strip() for a in amenities.split(",") if a.strip()] if amenities else None
    views = await service.list_hotels(
        city=city,
        min_rating=rating,
        amenities=amenity_list,
        check_in=check_in,
        check_out=check_out,
        guests=guests
    )
    return [_hotel_view_to_response(v) for v in views]

@app.get("/api/hotels/owner/my-hotels", response_model=List[HotelAvailabilityResponse], tags=["Hotels"])
async def get_my_hotels(
    service: HotelService = Depends(get_hotel_service),
    current_user: User = Depends(require_roles(*MANAGER_ROLES))
):
    """Hotels of the current owner with occupancy"""
    views = await service.get_owner_hotels(current_user.user_id)
    return [_hotel_view_to_response(v) for v in views]

@app.get("/api/hotels/{hotel_id}", response_model=HotelAvailabilityResponse, tags=["Hotels"])
async def get_hotel(
    hotel_id: UUID,
    service: HotelService = Depends(get_hotel_service)
):
    """Get hotel with room counts"""
    return _hotel_view_to_response(await service.get_hotel_overview(hotel_id))

@app.post("/api/hotels", response_model=HotelResponse, status_code=201, tags=["Hotels"])
async def create_hotel(
    request: CreateHotelRequest,
    service: HotelService = Depends(get_hotel_service),
    notifier: ConnectionManager = Depends(get_notifier),
    current_user: User = Depends(require_roles(*MANAGER_ROLES))
):
    """Create hotel owned by the current user"""
    result = await service.create_hotel(current_user, request.model_dump())
    await dispatch_notifications(notifier, result.notifications)
    return _hotel_to_response(result.hotel)

@app.put("/api/hotels/{hotel_id}", response_model=HotelResponse, tags=["Hotels"])
async def update_hotel(
    hotel_id: UUID,
    request: UpdateHotelRequest,
    service: HotelService = Depends(get_hotel_service),
    notifier: ConnectionManager = Depends(get_notifier),
    current_user: User = Depends(require_roles(*MANAGER_ROLES))
):
    """Update hotel (owner or admin)"""
    result = await service.update_hotel(hotel_id, current_user, request.model_dump(exclude_unset=True))
    await dispatch_notifications(notifier, result.notifications)
    return _hotel_to_response(result.hotel)

@app.delete("/api/hotels/{hotel_id}", tags=["Hotels"])
async def delete_hotel(
    hotel_id: UUID,
    service: HotelService = Depends(get_hotel_service),
    notifier: ConnectionManager = Depends(get_notifier),
    current_user: User = Depends(require_roles(*MANAGER_ROLES))
):
    """Delete hotel (owner or admin)"""
    result = await service.delete_hotel(hotel_id, current_user)
    await dispatch_notifications(notifier, result.notifications)
    return {"success": True}

@app.get("/api/hotels/{hotel_id}/availability", response_model=DateAvailabilityResponse, tags=["Hotels"])
async def get_hotel_availability(
    hotel_id: UUID,
    check_in: date,
    check_out: date,
    guests: int,
    service: HotelService = Depends(get_hotel_service)
):
    """Rooms of a hotel free for the given stay"""
    availability = await service.check_availability(hotel_id, check_in, check_out, guests)
    return DateAvailabilityResponse(
        hotel_id=availability.hotel_id,
        check_in=availability.date_range.check_in,
        check_out=availability.date_range.check_out,
        guests=availability.guests,
        total_rooms=availability.total_rooms,
        available_rooms=availability.available_rooms,
        rooms=[_room_to_response(r) for r in availability.rooms]
    )

@app.get("/api/hotels/{hotel_id}/rooms", response_model=HotelRoomsResponse, tags=["Hotels"])
async def get_hotel_rooms(
    hotel_id: UUID,
    service: HotelService = Depends(get_hotel_service)
):
    """Rooms of a hotel with their current booking state"""
    views = await service.get_hotel_rooms(hotel_id)
    hotel = await service.get_hotel(hotel_id)
    return HotelRoomsResponse(
        hotel_id=hotel_id,
        hotel_name=hotel.name,
        total_rooms=len(views),
        available_rooms=len([v for v in views if v.is_available]),
        rooms=[
            RoomAvailabilityResponse(
                room=_room_to_response(v.room),
                is_available=v.is_available,
                conflicting_bookings=v.conflicting_bookings
            )
            for v in views
        ]
    )

# ============================================================================
# ROOM ENDPOINTS
# ============================================================================

@app.get("/api/rooms", response_model=List[RoomResponse], tags=["Rooms"])
async def list_rooms(
    hotel: Optional[UUID] = None,
    room_type: Optional[RoomType] = None,
    min_price: Optional[Decimal] = None,
    max_price: Optional[Decimal] = None,
    is_available: Optional[bool] = None,
    service: RoomService = Depends(get_room_service)
):
    """List rooms, cheapest first"""
    rooms = await service.list_rooms(
        hotel_id=hotel,
        room_type=room_type,
        min_price=min_price,
        max_price=max_price,
        is_available=is_available
    )
    return [_room_to_response(r) for r in rooms]

@app.get("/api/rooms/hotel/{hotel_id}", response_model=List[RoomResponse], tags=["Rooms"])
async def get_rooms_by_hotel(
    hotel_id: UUID,
    service: RoomService = Depends(get_room_service)
):
    """Administratively available rooms of a hotel"""
    return [_room_to_response(r) for r in await service.get_available_rooms(hotel_id)]

@app.get("/api/rooms/{room_id}", response_model=RoomResponse, tags=["Rooms"])
async def get_room(
    room_id: UUID,
    service: RoomService = Depends(get_room_service)
):
    """Get room by ID"""
    room = await service.get_room(room_id)
    if not room:
        raise HTTPException(status_code=404, detail="Room not found")
    return _room_to_response(room)

@app.post("/api/rooms", response_model=RoomResponse, status_code=201, tags=["Rooms"])
async def create_room(
    request: CreateRoomRequest,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(require_roles(*MANAGER_ROLES))
):
    """Add room to a hotel (owner or admin)"""
    data = request.model_dump(exclude={"hotel_id"})
    room = await service.create_room(current_user, request.hotel_id, data)
    return _room_to_response(room)

@app.put("/api/rooms/{room_id}", response_model=RoomResponse, tags=["Rooms"])
async def update_room(
    room_id: UUID,
    request: UpdateRoomRequest,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(require_roles(*MANAGER_ROLES))
):
    """Update room (owner or admin)"""
    room = await service.update_room(room_id, current_user, request.model_dump(exclude_unset=True))
    return _room_to_response(room)

@app.delete("/api/rooms/{room_id}", tags=["Rooms"])
async def delete_room(
    room_id: UUID,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(require_roles(*MANAGER_ROLES))
):
    """Delete room (owner or admin)"""
    await service.delete_room(room_id, current_user)
    return {"success": True}

# ============================================================================
# BOOKING ENDPOINTS
# ============================================================================

@app.post("/api/bookings", response_model=BookingResponse, status_code=201, tags=["Bookings"])
async def create_booking(
    request: CreateBookingRequest,
    service: BookingService = Depends(get_booking_service),
    notifier: ConnectionManager = Depends(get_notifier),
    current_user: User = Depends(get_current_active_user)
):
    """Book a room for the current user"""
    result = await service.create_booking(
        room_id=request.room_id,
        check_in=request.check_in,
        check_out=request.check_out,
        guests=request.guests,
        payment_method=request.payment_method,
        requester_id=current_user.user_id,
        special_requests=request.special_requests
    )
    await dispatch_notifications(notifier, result.notifications)
    return _booking_to_response(result.booking)

@app.get("/api/bookings/my-bookings", response_model=List[BookingResponse], tags=["Bookings"])
async def get_my_bookings(
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Bookings of the current user, newest first"""
    bookings = await service.get_user_bookings(current_user.user_id)
    return [_booking_to_response(b) for b in bookings]

@app.get("/api/bookings/stats/real-time", tags=["Bookings"])
async def get_booking_stats(
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Booking counters for the current user"""
    return await service.get_stats(current_user)

@app.get("/api/bookings/hotel/{hotel_id}", response_model=List[BookingResponse], tags=["Bookings"])
async def get_hotel_bookings(
    hotel_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(require_roles(*MANAGER_ROLES))
):
    """Bookings of a hotel (owner or admin)"""
    bookings = await service.get_hotel_bookings(hotel_id, current_user)
    return [_booking_to_response(b) for b in bookings]

@app.get("/api/bookings/{booking_id}", response_model=BookingResponse, tags=["Bookings"])
async def get_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get booking (guest, hotel owner or admin)"""
    return _booking_to_response(await service.get_booking_for(booking_id, current_user))

@app.put("/api/bookings/{booking_id}/status", response_model=BookingResponse, tags=["Bookings"])
async def update_booking_status(
    booking_id: UUID,
    request: UpdateBookingStatusRequest,
    service: BookingService = Depends(get_booking_service),
    hotels: HotelService = Depends(get_hotel_service),
    notifier: ConnectionManager = Depends(get_notifier),
    current_user: User = Depends(require_roles(*MANAGER_ROLES))
):
    """Change booking status (hotel owner or admin)"""
    booking = await service.get_booking(booking_id)
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    await hotels.ensure_manager(booking.hotel_id, current_user)

    result = await service.update_status(
        booking_id=booking_id,
        new_status=request.status,
        actor_role=current_user.role,
        actor_id=current_user.user_id
    )
    await dispatch_notifications(notifier, result.notifications)
    return _booking_to_response(result.booking)

@app.put("/api/bookings/{booking_id}/cancel", response_model=BookingResponse, tags=["Bookings"])
async def cancel_booking(
    booking_id: UUID,
    request: CancelBookingRequest,
    service: BookingService = Depends(get_booking_service),
    notifier: ConnectionManager = Depends(get_notifier),
    current_user: User = Depends(get_current_active_user)
):
    """Cancel own booking"""
    result = await service.cancel_booking(
        booking_id=booking_id,
        reason=request.reason,
        requester_id=current_user.user_id
    )
    await dispatch_notifications(notifier, result.notifications)
    return _booking_to_response(result.booking)

# ============================================================================
# REAL-TIME SOCKET
# ============================================================================

@app.websocket("/ws")
async def booking_socket(websocket: WebSocket):
    """Join user-<id> / hotel-<id> channels to receive booking events"""
    manager = get_notifier()
    await manager.connect(websocket)
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
                channel = parse_join_request(message)
            except (ValueError, TypeError, AttributeError) as e:
                await websocket.send_json({"event": "error", "data": {"detail": str(e)}})
                continue

            if message["action"].startswith("leave"):
                manager.leave(websocket, channel)
                await websocket.send_json({"event": "left", "data": {"channel": channel}})
            else:
                manager.join(websocket, channel)
                await websocket.send_json({"event": "joined", "data": {"channel": channel}})
    except WebSocketDisconnect:
        logger.debug("Socket closed by client")
    finally:
        manager.disconnect(websocket)

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def _booking_to_response(booking) -> BookingResponse:
    """Convert Booking entity to BookingResponse"""
    return BookingResponse(
        booking_id=booking.booking_id,
        user_id=booking.user_id,
        room_id=booking.room_id,
        hotel_id=booking.hotel_id,
        check_in=booking.date_range.check_in,
        check_out=booking.date_range.check_out,
        nights=booking.date_range.nights(),
        guests=booking.guests,
        total_price=booking.total_price,
        status=booking.status,
        payment_method=booking.payment_method,
        is_paid=booking.is_paid,
        payment_id=booking.payment_id,
        special_requests=booking.special_requests,
        cancellation=booking.cancellation.model_dump() if booking.cancellation else None,
        created_at=booking.created_at,
        updated_at=booking.updated_at
    )

def _hotel_to_response(hotel) -> HotelResponse:
    """Convert Hotel entity to HotelResponse"""
    return HotelResponse(**hotel.model_dump())

def _hotel_view_to_response(view) -> HotelAvailabilityResponse:
    return HotelAvailabilityResponse(
        hotel=_hotel_to_response(view.hotel),
        room_count=view.room_count,
        available_room_count=view.available_room_count,
        availability_percentage=view.availability_percentage,
        occupancy_rate=view.occupancy_rate
    )

def _room_to_response(room) -> RoomResponse:
    """Convert Room entity to RoomResponse"""
    return RoomResponse(**room.model_dump(exclude={"created_at", "updated_at"}))

def _user_to_response(user) -> UserResponse:
    """Convert User entity to UserResponse, never exposing the password hash"""
    return UserResponse(**user.model_dump(exclude={"hashed_password", "created_at"}))

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=HOST, port=PORT)
