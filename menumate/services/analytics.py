"""
Shop Analytics

Read-only dashboard snapshot for one shop over a duration window.

Everything except the average rating is computed over the shop's
Completed orders created inside the window. The average rating covers
every review the shop ever received.

The sub-queries have no ordering dependency: they run concurrently, each
on its own session, and the report fails as a whole if any one fails.
"""

import asyncio
import calendar
import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Awaitable, Callable, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from menumate.models import Order, OrderItem, OrderStatus, Review, User
from menumate.schemas import (
    AnalyticsReport,
    CustomerProfile,
    ItemStat,
    RepeatCustomer,
    TableStat,
)

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
TOP_TABLES_LIMIT = 5

Query = Callable[[AsyncSession], Awaitable[Any]]


# =============================================================================
# DATE RANGE
# =============================================================================

def subtract_months(moment: datetime, months: int) -> datetime:
    """Calendar month subtraction, clamping the day to the target month's length."""
    month_index = moment.month - 1 - months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def date_range(duration: str, now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    """
    Resolve a duration keyword to a ``(start, end)`` window ending at ``now``.

    Args:
        duration: day | week | month | 3month | 6month; anything else is all-time
        now: reference instant, defaults to the current local time

    Returns:
        Timezone-aware start and end datetimes
    """
    now = now or datetime.now()
    if now.tzinfo is None:
        now = now.astimezone()

    if duration == "day":
        start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    elif duration == "week":
        start = now - timedelta(days=7)
    elif duration == "month":
        start = subtract_months(now, 1)
    elif duration == "3month":
        start = subtract_months(now, 3)
    elif duration == "6month":
        start = subtract_months(now, 6)
    else:
        start = EPOCH

    return start, now


def round_rating(value: Optional[float]) -> float:
    """One decimal place, half-up; 0 when there is nothing to average."""
    if value is None:
        return 0.0
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


# =============================================================================
# SUB-QUERIES
# =============================================================================

class ShopAnalytics:
    """Builds the analytics report of one shop for one window."""

    def __init__(self, shop_id: int, start: datetime, end: datetime):
        self.shop_id = shop_id
        self.start = start.astimezone(timezone.utc)
        self.end = end.astimezone(timezone.utc)

    def _completed_in_range(self) -> tuple:
        return (
            Order.shop_id == self.shop_id,
            Order.order_status == OrderStatus.COMPLETED,
            Order.created_at >= self.start,
            Order.created_at <= self.end,
        )

    async def totals(self, db: AsyncSession) -> tuple[float, int]:
        result = await db.execute(
            select(
                func.coalesce(func.sum(Order.total_amount), 0.0),
                func.count(Order.id),
            ).where(*self._completed_in_range())
        )
        revenue, orders = result.one()
        return float(revenue or 0), int(orders or 0)

    async def top_selling_items(self, db: AsyncSession) -> list[ItemStat]:
        quantity = func.sum(OrderItem.quantity).label("quantity")
        result = await db.execute(
            select(
                OrderItem.menu_item_id,
                func.min(OrderItem.name).label("name"),
                quantity,
            )
            .join(Order, OrderItem.order_id == Order.id)
            .where(*self._completed_in_range())
            .group_by(OrderItem.menu_item_id)
            .order_by(quantity.desc(), OrderItem.menu_item_id.asc())
        )
        return [
            ItemStat(menu_item_id=row.menu_item_id, name=row.name, count=int(row.quantity))
            for row in result
        ]

    async def top_tables(self, db: AsyncSession) -> list[TableStat]:
        order_count = func.count(Order.id).label("order_count")
        result = await db.execute(
            select(Order.table_number, order_count)
            .where(
                *self._completed_in_range(),
                Order.table_number.is_not(None),
                Order.table_number != "",
            )
            .group_by(Order.table_number)
            .order_by(order_count.desc(), Order.table_number.asc())
            .limit(TOP_TABLES_LIMIT)
        )
        return [
            TableStat(table_number=row.table_number, order_count=int(row.order_count))
            for row in result
        ]

    async def repeat_customers(self, db: AsyncSession) -> list[RepeatCustomer]:
        per_user = (
            select(Order.user_id, func.count(Order.id).label("order_count"))
            .where(*self._completed_in_range(), Order.user_id.is_not(None))
            .group_by(Order.user_id)
            .having(func.count(Order.id) > 1)
            .subquery()
        )
        result = await db.execute(
            select(User.id, User.name, User.email, User.phone, per_user.c.order_count)
            .join(per_user, per_user.c.user_id == User.id)
            .order_by(per_user.c.order_count.desc(), User.id.asc())
        )
        return [
            RepeatCustomer(
                user_id=row.id,
                name=row.name,
                email=row.email,
                phone=row.phone,
                order_count=int(row.order_count),
            )
            for row in result
        ]

    async def average_rating(self, db: AsyncSession) -> float:
        # Not windowed: every review the shop has received
        result = await db.execute(
            select(func.avg(Review.rating)).where(Review.shop_id == self.shop_id)
        )
        return round_rating(result.scalar())

    async def customers(self, db: AsyncSession) -> list[CustomerProfile]:
        customer_ids = (
            select(Order.user_id)
            .where(*self._completed_in_range(), Order.user_id.is_not(None))
            .distinct()
        )
        result = await db.execute(
            select(User).where(User.id.in_(customer_ids)).order_by(User.id.asc())
        )
        return [CustomerProfile.model_validate(user) for user in result.scalars()]

    # =========================================================================
    # REPORT
    # =========================================================================

    async def build(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        duration: str,
    ) -> AnalyticsReport:
        """Run every sub-query concurrently and assemble the report."""

        async def run(query: Query) -> Any:
            async with session_factory() as session:
                return await query(session)

        (
            (total_revenue, total_orders),
            top_items,
            top_tables,
            repeat_customers,
            average_rating,
            customers,
        ) = await asyncio.gather(
            run(self.totals),
            run(self.top_selling_items),
            run(self.top_tables),
            run(self.repeat_customers),
            run(self.average_rating),
            run(self.customers),
        )

        logger.debug(
            f"Analytics for shop #{self.shop_id} ({duration}): "
            f"{total_orders} orders, {len(top_items)} items, {len(customers)} customers"
        )

        return AnalyticsReport(
            duration=duration,
            start_date=self.start,
            end_date=self.end,
            total_revenue=round(total_revenue, 2),
            total_orders=total_orders,
            average_rating=average_rating,
            most_fav_item=top_items[0] if top_items else None,
            least_fav_item=top_items[-1] if top_items else None,
            top_tables=top_tables,
            total_customers=len(customers),
            repeat_customers_count=len(repeat_customers),
            repeat_customers=repeat_customers,
            all_customers=customers,
        )


async def build_shop_report(
    session_factory: async_sessionmaker[AsyncSession],
    shop_id: int,
    duration: str,
    now: Optional[datetime] = None,
) -> AnalyticsReport:
    start, end = date_range(duration, now)
    return await ShopAnalytics(shop_id, start, end).build(session_factory, duration)
