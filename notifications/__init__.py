"""Notification bus for marketplace outcomes.

Core operations never present anything themselves. They publish a
Notification here and whatever presentation layer is attached (the HTTP API,
a CLI, a test) subscribes to the bus or reads its recent history.
"""

import logging
from collections import deque
from datetime import datetime
from typing import Any, Callable, Deque, Dict, List, Optional

from pydantic import BaseModel, Field

from store.models import utcnow

logger = logging.getLogger(__name__)

VARIANT_DEFAULT = 'default'
VARIANT_DESTRUCTIVE = 'destructive'

class Notification(BaseModel):
    """A user-facing outcome of a marketplace operation."""
    kind: str
    title: str
    description: str = ''
    variant: str = VARIANT_DEFAULT
    data: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)

Subscriber = Callable[[Notification], None]

class NotificationBus:
    """Fan-out of notifications to subscribers, with a bounded history."""

    def __init__(self, history_size: int = 100):
        self._subscribers: List[Subscriber] = []
        self._history: Deque[Notification] = deque(maxlen=history_size)

    def subscribe(self, callback: Subscriber) -> None:
        if callback not in self._subscribers:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def publish(self, notification: Notification) -> None:
        """Record a notification and hand it to every subscriber.

        A failing subscriber is logged and skipped; it never fails the
        operation that published.
        """
        self._history.append(notification)
        logger.debug(f"Notification {notification.kind}: {notification.title}")

        for callback in list(self._subscribers):
            try:
                callback(notification)
            except Exception as e:
                logger.error(f"Notification subscriber {callback!r} failed: {e}")

    def notify(
        self,
        kind: str,
        title: str,
        description: str = '',
        variant: str = VARIANT_DEFAULT,
        **data: Any
    ) -> Notification:
        """Build and publish a notification in one call."""
        notification = Notification(
            kind=kind,
            title=title,
            description=description,
            variant=variant,
            data=data
        )
        self.publish(notification)
        return notification

    def recent(self, limit: Optional[int] = None, kind: Optional[str] = None) -> List[Notification]:
        """Most recent notifications, newest first."""
        items = [n for n in reversed(self._history) if kind is None or n.kind == kind]
        return items[:limit] if limit is not None else items

    def clear(self) -> None:
        self._history.clear()


__all__ = [
    'Notification', 'NotificationBus',
    'VARIANT_DEFAULT', 'VARIANT_DESTRUCTIVE',
]
