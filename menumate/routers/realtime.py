"""
Real-time endpoints.

WebSocket ``/ws`` protocol, one JSON object per message:

    {"event": "joinShopRoom", "data": <shopId>}
    {"event": "joinUserRoom", "data": <userId>}
    {"event": "call_waiter_request", "data": {"shopId" | "targetShopId": ..., "tableNumber": ...}}

Room events are sent back as ``{"event": ..., "data": ...}``.
"""

import json
import logging
from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from sqlalchemy.ext.asyncio import AsyncSession

from menumate.database import get_db
from menumate.schemas import CallWaiterRequest, Envelope
from menumate.services.authorization import get_shop_or_404
from menumate.services.realtime import (
    BaseRealtimeChannel,
    PublishResult,
    get_realtime_channel,
    shop_room,
    user_room,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Real-Time"])

WAITER_CALL_EVENT = "waiter_call_alert"


class WebSocketSubscriber:
    """Adapts a WebSocket connection to the channel's subscriber interface."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket

    async def send(self, event: str, payload: dict[str, Any]) -> None:
        await self.websocket.send_json({"event": event, "data": payload})


async def call_waiter(
    channel: BaseRealtimeChannel,
    shop_id: Any,
    table_number: Any,
) -> Optional[PublishResult]:
    """Alert a shop's room that a table wants a waiter. Ignored when data is missing."""
    if not shop_id or not table_number:
        logger.info(f"Waiter call ignored, missing shop or table: shop={shop_id!r} table={table_number!r}")
        return None

    result = await channel.publish(
        shop_room(shop_id),
        WAITER_CALL_EVENT,
        {"tableNumber": str(table_number), "time": datetime.now().astimezone().isoformat()},
    )
    logger.info(f"Waiter called to table {table_number} of shop {shop_id}")
    return result


@router.websocket("/ws")
async def realtime_socket(
    websocket: WebSocket,
    channel: BaseRealtimeChannel = Depends(get_realtime_channel),
) -> None:
    await websocket.accept()
    subscriber = WebSocketSubscriber(websocket)
    logger.info("Real-time client connected")

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                logger.debug("Ignoring non-JSON real-time message")
                continue
            if not isinstance(message, dict):
                continue
            event = message.get("event")
            data = message.get("data")

            if event == "joinShopRoom" and data:
                await channel.join(shop_room(data), subscriber)
            elif event == "joinUserRoom" and data:
                await channel.join(user_room(data), subscriber)
            elif event == "call_waiter_request" and isinstance(data, dict):
                await call_waiter(
                    channel,
                    data.get("targetShopId") or data.get("shopId"),
                    data.get("tableNumber"),
                )
            else:
                logger.debug(f"Ignoring real-time message: {event!r}")
    except WebSocketDisconnect:
        logger.info("Real-time client disconnected")
    finally:
        await channel.leave_all(subscriber)


@router.post("/api/public/shops/{shop_id}/call-waiter", response_model=Envelope[None], tags=["Public"])
async def call_waiter_http(
    shop_id: int,
    payload: CallWaiterRequest,
    db: AsyncSession = Depends(get_db),
    channel: BaseRealtimeChannel = Depends(get_realtime_channel),
) -> Envelope[None]:
    """HTTP variant of ``call_waiter_request`` for clients without a socket."""
    shop = await get_shop_or_404(db, shop_id)
    await call_waiter(channel, shop.id, payload.table_number)
    return Envelope(message="A waiter has been notified.")
