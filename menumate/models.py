"""
SQLAlchemy Database Models

Tenancy model:
- A Vendor is any non-customer actor (admin, food court manager, shop owner)
- A Shop belongs to one owner and optionally to one food court
- Tables, menu items, orders and reviews hang off a Shop

All timestamps are stored in UTC.
"""

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    Integer,
    String,
    Float,
    DateTime,
    Text,
    Enum,
    Boolean,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from menumate.database import Base


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class VendorRole(str, enum.Enum):
    """Roles a vendor account can hold."""
    ADMIN = "admin"
    MANAGER = "manager"
    OWNER = "owner"


class OrderStatus(str, enum.Enum):
    """Order status workflow."""
    PENDING = "Pending"
    ACCEPTED = "Accepted"
    PREPARING = "Preparing"
    READY = "Ready"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.COMPLETED, OrderStatus.CANCELLED)


# =============================================================================
# IDENTITIES
# =============================================================================

class User(Base):
    """Customer account."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    phone = Column(String(20), nullable=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    def __repr__(self):
        return f"<User #{self.id} - {self.email}>"


class Vendor(Base):
    """
    Shop-side account.

    ``manages_food_court_id`` is only set for managers.
    """
    __tablename__ = "vendors"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(Enum(VendorRole), default=VendorRole.OWNER, nullable=False)
    manages_food_court_id = Column(
        Integer, ForeignKey("food_courts.id", ondelete="SET NULL"), nullable=True
    )
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    def __repr__(self):
        return f"<Vendor #{self.id} - {self.role.value}>"


# =============================================================================
# VENUES
# =============================================================================

class FoodCourt(Base):
    """A grouping of shops under one delegated manager."""
    __tablename__ = "food_courts"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    location = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)


class Shop(Base):
    """
    A sellable venue.

    Either standalone (no food court, authority with the owner) or part of
    exactly one food court (authority with that food court's manager).
    """
    __tablename__ = "shops"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    owner_id = Column(Integer, ForeignKey("vendors.id"), nullable=False, index=True)
    food_court_id = Column(
        Integer, ForeignKey("food_courts.id", ondelete="SET NULL"), nullable=True, index=True
    )
    is_open = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    def __repr__(self):
        return f"<Shop #{self.id} - {self.name}>"


class ShopTable(Base):
    """A physical ordering point identified by a printed QR code."""
    __tablename__ = "tables"
    __table_args__ = (
        UniqueConstraint("shop_id", "qr_identifier", name="uq_tables_shop_qr"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    shop_id = Column(Integer, ForeignKey("shops.id", ondelete="CASCADE"), nullable=False, index=True)
    table_number = Column(String(20), nullable=False)
    qr_identifier = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)


class MenuItem(Base):
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    shop_id = Column(Integer, ForeignKey("shops.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False)
    category = Column(String(50), nullable=True)
    image_url = Column(String(500), nullable=True)
    is_available = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=utc_now, nullable=True)


# =============================================================================
# ORDERS & REVIEWS
# =============================================================================

class Order(Base):
    """
    A purchase at one shop.

    ``user_id`` is empty for guest orders placed anonymously at a table.
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    shop_id = Column(Integer, ForeignKey("shops.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    table_number = Column(String(20), nullable=True)
    total_amount = Column(Float, nullable=False, default=0.0)
    order_status = Column(
        Enum(OrderStatus),
        default=OrderStatus.PENDING,
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=utc_now, nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
        lazy="selectin",
    )

    def __repr__(self):
        return f"<Order #{self.id} - shop {self.shop_id} - {self.order_status.value}>"


class OrderItem(Base):
    """Order line with a snapshot of the menu item's name and price."""
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    menu_item_id = Column(
        Integer, ForeignKey("menu_items.id", ondelete="SET NULL"), nullable=True, index=True
    )
    name = Column(String(100), nullable=False)
    unit_price = Column(Float, nullable=False)
    quantity = Column(Integer, nullable=False)

    order = relationship("Order", back_populates="items")


class Review(Base):
    """
    One review per completed order.

    The unique constraint on ``order_id`` is what guarantees a single
    review per order; the check in the route is only a fast path.
    """
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_id = Column(
        Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    shop_id = Column(Integer, ForeignKey("shops.id", ondelete="CASCADE"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)  # 1..5
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    user = relationship("User", lazy="joined")
