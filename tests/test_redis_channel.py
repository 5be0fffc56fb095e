import asyncio

import pytest
from fakeredis import FakeServer
from fakeredis.aioredis import FakeRedis
from redis.exceptions import ConnectionError as RedisConnectionError

from menumate.services.realtime import RedisRealtimeChannel, shop_room

from conftest import RecordingSubscriber

PREFIX = "test:room:"


async def wait_until(predicate, timeout=2.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


class FailingPubSub:
    """Subscription whose connection drops on the first read."""

    async def listen(self):
        raise RedisConnectionError("connection reset by peer")
        yield

    async def aclose(self):
        pass


def fake_channel(server=None):
    client = FakeRedis(server=server or FakeServer(), decode_responses=True)
    return RedisRealtimeChannel(prefix=PREFIX, client=client, retry_delay=0)


@pytest.fixture
async def redis_channel():
    channel = fake_channel()
    await channel.start()
    yield channel
    await channel.stop()


async def test_published_event_reaches_local_subscriber(redis_channel):
    kitchen = RecordingSubscriber()
    await redis_channel.join(shop_room(3), kitchen)

    result = await redis_channel.publish(shop_room(3), "new_order", {"id": 9})

    assert result.success
    assert result.delivered >= 1
    await wait_until(lambda: kitchen.events)
    assert kitchen.events == [("new_order", {"id": 9})]


async def test_malformed_message_is_skipped(redis_channel):
    kitchen = RecordingSubscriber()
    await redis_channel.join(shop_room(3), kitchen)

    await redis_channel._client.publish(f"{PREFIX}{shop_room(3)}", "not json")
    await redis_channel._client.publish(f"{PREFIX}{shop_room(3)}", '{"payload": {}}')
    await redis_channel.publish(shop_room(3), "order_updated", {"status": "ready"})

    await wait_until(lambda: kitchen.events)
    assert kitchen.events == [("order_updated", {"status": "ready"})]
    assert await redis_channel.health_check() is True


async def test_health_fails_once_listener_has_exited(redis_channel):
    assert await redis_channel.health_check() is True

    redis_channel._listener.cancel()
    with pytest.raises(asyncio.CancelledError):
        await redis_channel._listener

    assert await redis_channel.health_check() is False


async def test_listener_resubscribes_after_connection_loss():
    channel = fake_channel()
    kitchen = RecordingSubscriber()
    await channel.join(shop_room(4), kitchen)
    failing = FailingPubSub()
    channel._pubsub = failing
    channel._listener = asyncio.create_task(channel._listen())

    await wait_until(lambda: channel._pubsub is not failing and channel._pubsub.subscribed)
    await channel.publish(shop_room(4), "waiter_call", {"table": "7"})

    await wait_until(lambda: kitchen.events)
    assert kitchen.events == [("waiter_call", {"table": "7"})]
    assert await channel.health_check() is True
    await channel.stop()


async def test_publish_while_redis_is_down_reports_failure():
    server = FakeServer()
    channel = fake_channel(server)
    server.connected = False

    result = await channel.publish(shop_room(1), "new_order", {"id": 1})

    assert result.success is False
    assert result.error_message
    assert await channel.health_check() is False
