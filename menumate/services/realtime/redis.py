"""
Redis Real-Time Channel

Production implementation using Redis pub/sub so that every API worker
sees every event:

    publish  -> PUBLISH <prefix><room> {"event": ..., "payload": ...}
    listener -> PSUBSCRIBE <prefix>* and fan out to local subscribers

Redis pub/sub has no persistence: an event published while nobody is
listening is lost, which matches the channel's best-effort contract.
"""

import asyncio
import json
import logging
from typing import Any, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from menumate.core.config import get_settings
from menumate.services.realtime.base import BaseRealtimeChannel, PublishResult

logger = logging.getLogger(__name__)


class RedisRealtimeChannel(BaseRealtimeChannel):
    """Multi-process channel backed by Redis pub/sub."""

    def __init__(
        self,
        redis_url: Optional[str] = None,
        prefix: Optional[str] = None,
        client: Optional[aioredis.Redis] = None,
        retry_delay: float = 1.0,
    ) -> None:
        super().__init__()
        settings = get_settings()
        self.prefix = prefix or settings.realtime_channel_prefix
        self._client = client or aioredis.from_url(
            redis_url or settings.redis_url,
            decode_responses=True,
        )
        self._pubsub: Optional[aioredis.client.PubSub] = None
        self._listener: Optional[asyncio.Task] = None
        self.retry_delay = retry_delay
        logger.info(f"RedisRealtimeChannel initialized (prefix={self.prefix!r})")

    @property
    def provider_name(self) -> str:
        return "redis"

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def start(self) -> None:
        self._pubsub = self._client.pubsub()
        await self._pubsub.psubscribe(f"{self.prefix}*")
        self._listener = asyncio.create_task(self._listen(), name="realtime-listener")
        logger.info(f"Listening on {self.prefix}*")

    async def stop(self) -> None:
        if self._listener is not None:
            self._listener.cancel()
            try:
                await self._listener
            except asyncio.CancelledError:
                pass
            self._listener = None
        if self._pubsub is not None:
            await self._pubsub.aclose()
            self._pubsub = None
        await self._client.aclose()

    async def _listen(self) -> None:
        while True:
            try:
                async for message in self._pubsub.listen():
                    await self._handle(message)
            except RedisError as e:
                logger.error(f"Real-time listener lost Redis: {e}")
            await asyncio.sleep(self.retry_delay)
            await self._resubscribe()

    async def _resubscribe(self) -> None:
        try:
            await self._pubsub.aclose()
        except RedisError as e:
            logger.debug(f"Closing the broken subscription failed: {e}")
        self._pubsub = self._client.pubsub()
        try:
            await self._pubsub.psubscribe(f"{self.prefix}*")
        except RedisError as e:
            logger.error(f"Resubscribe to {self.prefix}* failed: {e}")

    async def _handle(self, message: dict) -> None:
        if message.get("type") != "pmessage":
            return
        room = message["channel"][len(self.prefix):]
        try:
            envelope = json.loads(message["data"])
            event = envelope["event"]
        except (json.JSONDecodeError, KeyError, TypeError):
            logger.warning(f"Ignoring malformed message on {message['channel']}")
            return
        await self._deliver(room, event, envelope.get("payload") or {})

    # =========================================================================
    # PUBLISHING
    # =========================================================================

    async def publish(self, room: str, event: str, payload: dict[str, Any]) -> PublishResult:
        message = json.dumps({"event": event, "payload": payload}, default=str)
        try:
            receivers = await self._client.publish(f"{self.prefix}{room}", message)
        except RedisError as e:
            logger.error(f"Failed to publish '{event}' to room {room}: {e}")
            return PublishResult(success=False, room=room, event=event, error_message=str(e))

        logger.info(f"Event '{event}' published to room {room} ({receivers} listeners)")
        return PublishResult(success=True, room=room, event=event, delivered=int(receivers))

    async def health_check(self) -> bool:
        if self._listener is not None and self._listener.done():
            logger.error("Real-time listener is not running")
            return False
        try:
            return bool(await self._client.ping())
        except RedisError as e:
            logger.error(f"Redis health check failed: {e}")
            return False
