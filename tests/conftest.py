import os
import tempfile
from datetime import datetime, timezone
from itertools import count
from typing import Optional, Sequence

_TEST_DIR = tempfile.mkdtemp(prefix="menumate-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/menumate.db"
os.environ["ENV_MODE"] = "development"
os.environ["UPLOAD_DIRECTORY"] = os.path.join(_TEST_DIR, "uploads")

import httpx
import pytest

from menumate.database import Base, async_session_maker, engine
from menumate.main import app
from menumate.models import (
    FoodCourt,
    MenuItem,
    Order,
    OrderItem,
    OrderStatus,
    Review,
    Shop,
    ShopTable,
    User,
    Vendor,
    VendorRole,
)
from menumate.core.security import USER_TOKEN, VENDOR_TOKEN, create_access_token, pwd_context
from menumate.services.realtime import InMemoryRealtimeChannel, get_realtime_channel

PASSWORD = "secret123"
_PASSWORD_HASH = pwd_context.hash(PASSWORD)


class RecordingSubscriber:
    """Collects every event it receives."""

    def __init__(self):
        self.events = []

    async def send(self, event, payload):
        self.events.append((event, payload))


class Factory:
    """Inserts rows directly, bypassing the API."""

    def __init__(self, session):
        self.session = session
        self._seq = count(1)

    async def _save(self, obj):
        self.session.add(obj)
        await self.session.commit()
        await self.session.refresh(obj)
        return obj

    async def user(self, name: str = "Customer", phone: Optional[str] = "555-0100") -> User:
        n = next(self._seq)
        return await self._save(
            User(name=f"{name} {n}", email=f"user{n}@example.com", phone=phone, password_hash=_PASSWORD_HASH)
        )

    async def vendor(self, role: VendorRole = VendorRole.OWNER, food_court: Optional[FoodCourt] = None) -> Vendor:
        n = next(self._seq)
        return await self._save(
            Vendor(
                name=f"Vendor {n}",
                email=f"vendor{n}@example.com",
                password_hash=_PASSWORD_HASH,
                role=role,
                manages_food_court_id=food_court.id if food_court else None,
            )
        )

    async def food_court(self, name: str = "City Mall Court") -> FoodCourt:
        return await self._save(FoodCourt(name=name))

    async def shop(self, owner: Vendor, food_court: Optional[FoodCourt] = None, **kwargs) -> Shop:
        return await self._save(
            Shop(
                name=kwargs.pop("name", "Dosa Corner"),
                owner_id=owner.id,
                food_court_id=food_court.id if food_court else None,
                **kwargs,
            )
        )

    async def table(self, shop: Shop, table_number: str, qr_identifier: str) -> ShopTable:
        return await self._save(
            ShopTable(shop_id=shop.id, table_number=table_number, qr_identifier=qr_identifier)
        )

    async def menu_item(self, shop: Shop, name: str = "Masala Dosa", price: float = 100.0, **kwargs) -> MenuItem:
        return await self._save(MenuItem(shop_id=shop.id, name=name, price=price, **kwargs))

    async def order(
        self,
        shop: Shop,
        user: Optional[User] = None,
        lines: Sequence[tuple] = (),
        status: OrderStatus = OrderStatus.COMPLETED,
        table_number: Optional[str] = None,
        created_at: Optional[datetime] = None,
        total_amount: Optional[float] = None,
    ) -> Order:
        order = Order(
            shop_id=shop.id,
            user_id=user.id if user else None,
            table_number=table_number,
            order_status=status,
        )
        if created_at is not None:
            order.created_at = created_at.astimezone(timezone.utc)
        for item, quantity in lines:
            order.items.append(
                OrderItem(menu_item_id=item.id, name=item.name, unit_price=item.price, quantity=quantity)
            )
        if total_amount is None:
            total_amount = sum(i.unit_price * i.quantity for i in order.items)
        order.total_amount = total_amount
        return await self._save(order)

    async def review(self, order: Order, rating: int, comment: Optional[str] = None) -> Review:
        return await self._save(
            Review(
                order_id=order.id,
                user_id=order.user_id,
                shop_id=order.shop_id,
                rating=rating,
                comment=comment,
            )
        )


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def vendor_headers(vendor: Vendor) -> dict:
    return bearer(create_access_token(VENDOR_TOKEN, vendor.id))


def user_headers(user: User) -> dict:
    return bearer(create_access_token(USER_TOKEN, user.id))


@pytest.fixture
async def db_engine():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(db_engine):
    async with async_session_maker() as session:
        yield session


@pytest.fixture
async def factory(session):
    return Factory(session)


@pytest.fixture
def channel():
    return InMemoryRealtimeChannel()


@pytest.fixture
async def client(db_engine, channel):
    app.dependency_overrides[get_realtime_channel] = lambda: channel
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
