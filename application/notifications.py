"""Application Notifications - delivery contract for domain events"""
import logging
from abc import ABC, abstractmethod
from typing import Iterable

from domain.events import DomainEvent, Notification, NotificationTarget

logger = logging.getLogger(__name__)


class NotificationDispatcher(ABC):
    """Delivers domain events to subscribers"""

    @abstractmethod
    async def emit(self, event: DomainEvent, targets: NotificationTarget) -> None:
        """Send event to the hotel, user and/or broadcast audience"""
        pass


async def dispatch_notifications(dispatcher: NotificationDispatcher,
                                 notifications: Iterable[Notification]) -> int:
    """Forward notifications after the state change was stored.

    Delivery is best effort: a failing emit is logged and the remaining
    notifications are still sent. Returns the number delivered.
    """
    delivered = 0
    for notification in notifications:
        try:
            await dispatcher.emit(notification.event, notification.targets)
            delivered += 1
        except Exception:
            logger.exception(
                "Failed to deliver %s event %s",
                notification.event.name, notification.event.event_id
            )
    return delivered
