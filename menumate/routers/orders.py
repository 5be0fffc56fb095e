"""
Order placement for customers and order handling for vendors.

Status changes are pushed to the customer's room and the shop's room
through the injected real-time channel.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from menumate.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from menumate.database import get_db
from menumate.models import MenuItem, Order, OrderItem, OrderStatus, User, Vendor, utc_now
from menumate.routers.deps import get_current_user, get_current_vendor, get_optional_user
from menumate.schemas import Envelope, OrderCreate, OrderResponse, OrderStatusUpdate
from menumate.services.authorization import ensure_shop_access, get_shop_or_404
from menumate.services.realtime import (
    BaseRealtimeChannel,
    get_realtime_channel,
    shop_room,
    user_room,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Orders"])


async def _get_order_or_404(db: AsyncSession, order_id: int) -> Order:
    order = await db.get(Order, order_id)
    if order is None:
        raise NotFoundError("Order not found.")
    return order


# =============================================================================
# CUSTOMER
# =============================================================================

@router.post("/orders", response_model=Envelope[OrderResponse], status_code=201)
async def create_order(
    payload: OrderCreate,
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
    channel: BaseRealtimeChannel = Depends(get_realtime_channel),
) -> Envelope[OrderResponse]:
    """
    Place an order at a shop, as a logged-in user or as a guest.

    Prices and names are taken from the menu at the time of ordering.
    """
    shop = await get_shop_or_404(db, payload.shop_id)
    if not shop.is_open:
        raise ConflictError("This shop is not accepting orders right now.")

    wanted_ids = {line.menu_item_id for line in payload.items}
    menu = {
        item.id: item
        for item in await db.scalars(
            select(MenuItem).where(
                MenuItem.shop_id == shop.id,
                MenuItem.id.in_(wanted_ids),
                MenuItem.is_available.is_(True),
            )
        )
    }
    missing = sorted(wanted_ids - menu.keys())
    if missing:
        raise ValidationError(f"Menu items not available at this shop: {missing}")

    order = Order(
        shop_id=shop.id,
        user_id=user.id if user else None,
        table_number=payload.table_number,
        order_status=OrderStatus.PENDING,
    )
    for line in payload.items:
        item = menu[line.menu_item_id]
        order.items.append(
            OrderItem(
                menu_item_id=item.id,
                name=item.name,
                unit_price=item.price,
                quantity=line.quantity,
            )
        )
    order.total_amount = round(sum(i.unit_price * i.quantity for i in order.items), 2)

    db.add(order)
    await db.commit()
    await db.refresh(order)

    logger.info(f"Order #{order.id} placed at shop #{shop.id} (total {order.total_amount:.2f})")

    data = OrderResponse.model_validate(order)
    await channel.publish(shop_room(shop.id), "new_order", data.model_dump(mode="json", by_alias=True))

    return Envelope(message="Order placed successfully!", data=data)


@router.get("/orders/my", response_model=Envelope[List[OrderResponse]])
async def list_my_orders(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Envelope[List[OrderResponse]]:
    orders = (
        await db.scalars(
            select(Order)
            .where(Order.user_id == user.id)
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
    ).all()
    return Envelope(count=len(orders), data=[OrderResponse.model_validate(o) for o in orders])


@router.get("/orders/{order_id}", response_model=Envelope[OrderResponse])
async def get_my_order(
    order_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Envelope[OrderResponse]:
    order = await _get_order_or_404(db, order_id)
    if order.user_id != user.id:
        raise AuthorizationError("You can only view your own orders.")
    return Envelope(data=OrderResponse.model_validate(order))


# =============================================================================
# VENDOR
# =============================================================================

@router.get("/vendor/shops/{shop_id}/orders", response_model=Envelope[List[OrderResponse]])
async def list_shop_orders(
    shop_id: int,
    status: Optional[OrderStatus] = Query(None),
    vendor: Vendor = Depends(get_current_vendor),
    db: AsyncSession = Depends(get_db),
) -> Envelope[List[OrderResponse]]:
    await ensure_shop_access(db, shop_id, vendor)

    query = select(Order).where(Order.shop_id == shop_id)
    if status is not None:
        query = query.where(Order.order_status == status)
    orders = (await db.scalars(query.order_by(Order.created_at.desc(), Order.id.desc()))).all()

    return Envelope(count=len(orders), data=[OrderResponse.model_validate(o) for o in orders])


@router.patch("/vendor/orders/{order_id}/status", response_model=Envelope[OrderResponse])
async def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    vendor: Vendor = Depends(get_current_vendor),
    db: AsyncSession = Depends(get_db),
    channel: BaseRealtimeChannel = Depends(get_realtime_channel),
) -> Envelope[OrderResponse]:
    """
    Move an order to a new status.

    Completed and Cancelled orders are final.
    """
    order = await _get_order_or_404(db, order_id)
    await ensure_shop_access(db, order.shop_id, vendor)

    if order.order_status.is_terminal:
        raise ConflictError(f"Order is already {order.order_status.value}.")

    order.order_status = payload.order_status
    if payload.order_status == OrderStatus.COMPLETED:
        order.completed_at = utc_now()
    await db.commit()
    await db.refresh(order)

    logger.info(f"Order #{order.id} -> {order.order_status.value} by vendor #{vendor.id}")

    data = OrderResponse.model_validate(order)
    event = data.model_dump(mode="json", by_alias=True)
    if order.user_id is not None:
        await channel.publish(user_room(order.user_id), "order_status_update", event)
    await channel.publish(shop_room(order.shop_id), "order_status_update", event)

    return Envelope(message="Order status updated.", data=data)
