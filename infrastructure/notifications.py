"""WebSocket fan-out of domain events to joined channels"""
import logging
from typing import Dict, Set
from uuid import UUID

from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder

from application.notifications import NotificationDispatcher
from domain.events import DomainEvent, NotificationTarget

logger = logging.getLogger(__name__)


def user_channel(user_id) -> str:
    return f"user-{user_id}"


def hotel_channel(hotel_id) -> str:
    return f"hotel-{hotel_id}"


class ConnectionManager(NotificationDispatcher):
    """Tracks open sockets and the channels each one joined"""

    def __init__(self):
        self._connections: Set[WebSocket] = set()
        self._channels: Dict[str, Set[WebSocket]] = {}

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def subscribers(self, channel: str) -> Set[WebSocket]:
        return set(self._channels.get(channel, ()))

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._connections.add(websocket)
        logger.info("Socket connected (%d open)", len(self._connections))

    def register(self, websocket) -> None:
        """Track an already accepted socket"""
        self._connections.add(websocket)

    def join(self, websocket, channel: str) -> None:
        self._channels.setdefault(channel, set()).add(websocket)
        logger.info("Socket joined %s", channel)

    def leave(self, websocket, channel: str) -> None:
        members = self._channels.get(channel)
        if members is not None:
            members.discard(websocket)
            if not members:
                del self._channels[channel]

    def disconnect(self, websocket) -> None:
        self._connections.discard(websocket)
        for channel in list(self._channels):
            self.leave(websocket, channel)
        logger.info("Socket disconnected (%d open)", len(self._connections))

    def _recipients(self, targets: NotificationTarget) -> Set:
        if targets.broadcast:
            return set(self._connections)
        recipients = set()
        if targets.hotel_id is not None:
            recipients |= self.subscribers(hotel_channel(targets.hotel_id))
        if targets.user_id is not None:
            recipients |= self.subscribers(user_channel(targets.user_id))
        return recipients

    async def emit(self, event: DomainEvent, targets: NotificationTarget) -> None:
        """Send event to every recipient; a failing socket is dropped, not raised"""
        message = {"event": event.name, "data": jsonable_encoder(event)}
        for websocket in self._recipients(targets):
            try:
                await websocket.send_json(message)
            except Exception:
                logger.exception("Dropping socket after failed send of %s", event.name)
                self.disconnect(websocket)


def parse_join_request(message: dict) -> str:
    """Channel name for a join/leave message from a client.

    Raises ValueError for unknown actions or malformed ids.
    """
    action = message.get("action")
    entity_id = UUID(str(message.get("id")))
    if action in ("join-user-room", "leave-user-room"):
        return user_channel(entity_id)
    if action in ("join-hotel-room", "leave-hotel-room"):
        return hotel_channel(entity_id)
    raise ValueError(f"Unknown socket action: {action!r}")
