"""
Real-Time Channel Abstract Base Class

Publish/subscribe over named rooms. Rooms are scoped to one shop or one
user and named through ``shop_room`` / ``user_room``.

Delivery contract:
    - best-effort, no persistence, no acknowledgement
    - a subscriber that fails to receive is dropped from its rooms
    - a publish never raises because of a subscriber or transport failure
"""

import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Optional, Protocol, Union

logger = logging.getLogger(__name__)


def shop_room(shop_id: Union[int, str]) -> str:
    return f"shop:{shop_id}"


def user_room(user_id: Union[int, str]) -> str:
    return f"user:{user_id}"


class Subscriber(Protocol):
    """Anything that can receive a room event, e.g. a WebSocket connection."""

    async def send(self, event: str, payload: dict[str, Any]) -> None:
        ...


@dataclass
class PublishResult:
    """Result from publishing an event."""
    success: bool
    room: str
    event: str
    delivered: int = 0
    error_message: Optional[str] = None


class BaseRealtimeChannel(ABC):
    """
    Abstract base class for real-time channels.

    Keeps the process-local room registry; subclasses decide how a
    published event reaches every process.
    """

    def __init__(self) -> None:
        self._rooms: dict[str, set[Subscriber]] = defaultdict(set)

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    # =========================================================================
    # ROOM MEMBERSHIP
    # =========================================================================

    async def join(self, room: str, subscriber: Subscriber) -> None:
        self._rooms[room].add(subscriber)
        logger.debug(f"Subscriber joined room {room} ({len(self._rooms[room])} members)")

    async def leave(self, room: str, subscriber: Subscriber) -> None:
        members = self._rooms.get(room)
        if not members:
            return
        members.discard(subscriber)
        if not members:
            del self._rooms[room]

    async def leave_all(self, subscriber: Subscriber) -> None:
        for room in [r for r, members in self._rooms.items() if subscriber in members]:
            await self.leave(room, subscriber)

    def subscriber_count(self, room: str) -> int:
        return len(self._rooms.get(room, ()))

    async def _deliver(self, room: str, event: str, payload: dict[str, Any]) -> int:
        """Fan an event out to this process's subscribers of ``room``."""
        delivered = 0
        for subscriber in list(self._rooms.get(room, ())):
            try:
                await subscriber.send(event, payload)
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping subscriber of room {room}: {e}")
                await self.leave_all(subscriber)
        return delivered

    # =========================================================================
    # PUBLISHING
    # =========================================================================

    @abstractmethod
    async def publish(self, room: str, event: str, payload: dict[str, Any]) -> PublishResult:
        """Broadcast ``event`` to every current subscriber of ``room``."""
        pass

    async def start(self) -> None:
        """Open transport resources. Called at application startup."""

    async def stop(self) -> None:
        """Release transport resources. Called at application shutdown."""

    @abstractmethod
    async def health_check(self) -> bool:
        """Check transport connectivity."""
        pass
