"""
In-Memory Real-Time Channel

Process-local fan-out for development and tests. Events only reach
subscribers connected to the same process.
"""

import logging
from typing import Any

from menumate.services.realtime.base import BaseRealtimeChannel, PublishResult

logger = logging.getLogger(__name__)


class InMemoryRealtimeChannel(BaseRealtimeChannel):
    """Single-process channel."""

    def __init__(self) -> None:
        super().__init__()
        logger.info("InMemoryRealtimeChannel initialized")

    @property
    def provider_name(self) -> str:
        return "memory"

    async def publish(self, room: str, event: str, payload: dict[str, Any]) -> PublishResult:
        delivered = await self._deliver(room, event, payload)
        logger.info(f"Event '{event}' published to room {room} ({delivered} delivered)")
        return PublishResult(success=True, room=room, event=event, delivered=delivered)

    async def health_check(self) -> bool:
        """Always healthy."""
        return True
