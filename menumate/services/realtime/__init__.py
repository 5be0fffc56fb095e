"""
Real-Time Channel Factory

Returns the in-memory or Redis channel based on ENV_MODE. Handlers
receive the channel through ``Depends(get_realtime_channel)``.
"""

import logging
from functools import lru_cache

from menumate.core.config import get_settings
from menumate.services.realtime.base import (
    BaseRealtimeChannel,
    PublishResult,
    Subscriber,
    shop_room,
    user_room,
)
from menumate.services.realtime.memory import InMemoryRealtimeChannel
from menumate.services.realtime.redis import RedisRealtimeChannel

logger = logging.getLogger(__name__)


@lru_cache()
def get_realtime_channel() -> BaseRealtimeChannel:
    """Get the configured real-time channel."""
    settings = get_settings()

    if settings.is_development:
        logger.info("Real-Time Channel: Using InMemoryRealtimeChannel (development mode)")
        return InMemoryRealtimeChannel()
    else:
        logger.info(f"Real-Time Channel: Using RedisRealtimeChannel ({settings.env_mode.value} mode)")
        return RedisRealtimeChannel()


__all__ = [
    "get_realtime_channel",
    "BaseRealtimeChannel",
    "InMemoryRealtimeChannel",
    "RedisRealtimeChannel",
    "PublishResult",
    "Subscriber",
    "shop_room",
    "user_room",
]
