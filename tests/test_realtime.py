import pytest
from fastapi.testclient import TestClient

from menumate.main import app
from menumate.routers.realtime import WAITER_CALL_EVENT, call_waiter
from menumate.services.realtime import InMemoryRealtimeChannel, get_realtime_channel, shop_room, user_room

from conftest import RecordingSubscriber


class BrokenSubscriber:
    async def send(self, event, payload):
        raise ConnectionError("socket closed")


# =============================================================================
# CHANNEL
# =============================================================================

async def test_publish_reaches_room_members_only(channel):
    kitchen, customer = RecordingSubscriber(), RecordingSubscriber()
    await channel.join(shop_room(1), kitchen)
    await channel.join(user_room(1), customer)

    result = await channel.publish(shop_room(1), "new_order", {"id": 5})

    assert result.success
    assert result.delivered == 1
    assert kitchen.events == [("new_order", {"id": 5})]
    assert customer.events == []


async def test_publish_to_empty_room_succeeds(channel):
    result = await channel.publish(shop_room(404), "new_order", {})
    assert result.success
    assert result.delivered == 0


async def test_failing_subscriber_is_dropped(channel):
    good, bad = RecordingSubscriber(), BrokenSubscriber()
    await channel.join(shop_room(1), good)
    await channel.join(shop_room(1), bad)
    await channel.join(user_room(2), bad)

    result = await channel.publish(shop_room(1), "ping", {})

    assert result.success
    assert result.delivered == 1
    assert channel.subscriber_count(shop_room(1)) == 1
    assert channel.subscriber_count(user_room(2)) == 0


async def test_leave_all_removes_every_membership(channel):
    subscriber = RecordingSubscriber()
    await channel.join(shop_room(1), subscriber)
    await channel.join(user_room(1), subscriber)

    await channel.leave_all(subscriber)

    assert channel.subscriber_count(shop_room(1)) == 0
    assert channel.subscriber_count(user_room(1)) == 0


# =============================================================================
# WAITER CALLS
# =============================================================================

async def test_call_waiter_publishes_table_and_time(channel):
    kitchen = RecordingSubscriber()
    await channel.join(shop_room(3), kitchen)

    await call_waiter(channel, 3, 12)

    [(event, payload)] = kitchen.events
    assert event == WAITER_CALL_EVENT
    assert payload["tableNumber"] == "12"
    assert payload["time"]


@pytest.mark.parametrize("shop_id, table_number", [(None, "1"), (3, None), (3, ""), ("", "")])
async def test_call_waiter_ignores_incomplete_requests(channel, shop_id, table_number):
    kitchen = RecordingSubscriber()
    await channel.join(shop_room(3), kitchen)

    assert await call_waiter(channel, shop_id, table_number) is None
    assert kitchen.events == []


async def test_call_waiter_over_http(client, factory, channel):
    shop = await factory.shop(await factory.vendor())
    kitchen = RecordingSubscriber()
    await channel.join(shop_room(shop.id), kitchen)

    response = await client.post(f"/api/public/shops/{shop.id}/call-waiter", json={"tableNumber": 7})

    assert response.status_code == 200
    assert kitchen.events[0][0] == WAITER_CALL_EVENT
    assert kitchen.events[0][1]["tableNumber"] == "7"

    response = await client.post(f"/api/public/shops/{shop.id}/call-waiter", json={})
    assert response.status_code == 400

    response = await client.post("/api/public/shops/999/call-waiter", json={"tableNumber": 7})
    assert response.status_code == 404


# =============================================================================
# WEBSOCKET
# =============================================================================

@pytest.fixture
def ws_client():
    channel = InMemoryRealtimeChannel()
    app.dependency_overrides[get_realtime_channel] = lambda: channel
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_socket_joins_room_and_receives_waiter_calls(ws_client):
    with ws_client.websocket_connect("/ws") as ws:
        ws.send_text("not json")
        ws.send_json({"event": "joinShopRoom", "data": 8})
        ws.send_json({"event": "call_waiter_request", "data": {"targetShopId": 8, "tableNumber": "2"}})

        message = ws.receive_json()

    assert message["event"] == WAITER_CALL_EVENT
    assert message["data"]["tableNumber"] == "2"


def test_socket_accepts_shop_id_alias(ws_client):
    with ws_client.websocket_connect("/ws") as ws:
        ws.send_json({"event": "joinShopRoom", "data": "8"})
        ws.send_json({"event": "unknown", "data": 1})
        ws.send_json({"event": "call_waiter_request", "data": {"shopId": 8}})
        ws.send_json({"event": "call_waiter_request", "data": {"shopId": 8, "tableNumber": 5}})

        message = ws.receive_json()

    # The incomplete request was dropped; the first alert is for table 5
    assert message["data"]["tableNumber"] == "5"
