"""
Pydantic Schemas for Request/Response Validation

JSON bodies use camelCase on the wire; Python code uses snake_case.
Both spellings are accepted on input.
"""

from datetime import datetime
from typing import Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from menumate.models import OrderStatus, VendorRole

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _table_number_to_str(v: Union[int, str, None]) -> Optional[str]:
    if v is None:
        return None
    v = str(v).strip()
    return v or None


# =============================================================================
# ENVELOPES
# =============================================================================

class Envelope(CamelModel, Generic[T]):
    """Standard response envelope."""
    success: bool = True
    message: Optional[str] = None
    count: Optional[int] = None
    data: Optional[T] = None


class ErrorResponse(CamelModel):
    """Standard error response."""
    success: bool = False
    message: str
    detail: Optional[str] = None


class HealthResponse(CamelModel):
    """Health check response."""
    status: str
    database: str
    realtime: str
    storage: str
    timestamp: datetime


# =============================================================================
# IDENTITY
# =============================================================================

class UserRegister(CamelModel):
    name: str = Field(..., min_length=2, max_length=100, examples=["Asha Rao"])
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=20, examples=["+91-98450-00000"])
    password: str = Field(..., min_length=6, max_length=128)


class VendorRegister(CamelModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str


class UserResponse(CamelModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    created_at: datetime


class VendorResponse(CamelModel):
    id: int
    name: str
    email: str
    role: VendorRole
    manages_food_court_id: Optional[int] = None


class UserSession(CamelModel):
    """Login result: the bearer token and who it identifies."""
    token: str
    token_type: str = "bearer"
    user: UserResponse


class VendorSession(CamelModel):
    token: str
    token_type: str = "bearer"
    vendor: VendorResponse


# =============================================================================
# SHOPS & FOOD COURTS
# =============================================================================

class FoodCourtCreate(CamelModel):
    name: str = Field(..., min_length=2, max_length=100)
    location: Optional[str] = Field(None, max_length=255)


class FoodCourtResponse(CamelModel):
    id: int
    name: str
    location: Optional[str] = None
    created_at: datetime


class ManagerAssign(CamelModel):
    vendor_id: int


class ShopCreate(CamelModel):
    name: str = Field(..., min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    food_court_id: Optional[int] = None
    owner_id: Optional[int] = None


class ShopResponse(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    owner_id: int
    food_court_id: Optional[int] = None
    is_open: bool
    created_at: datetime


# =============================================================================
# TABLES
# =============================================================================

class TableCreateItem(CamelModel):
    table_number: str = Field(..., min_length=1, max_length=20)
    qr_identifier: str = Field(..., min_length=1, max_length=100)

    @field_validator("table_number", mode="before")
    @classmethod
    def coerce_table_number(cls, v):
        return _table_number_to_str(v)


class TableCreateRequest(CamelModel):
    """Either a single pair or a ``tableNumbers`` batch."""
    table_number: Optional[str] = Field(None, max_length=20)
    qr_identifier: Optional[str] = Field(None, max_length=100)
    table_numbers: Optional[List[TableCreateItem]] = None

    @field_validator("table_number", mode="before")
    @classmethod
    def coerce_table_number(cls, v):
        return _table_number_to_str(v)

    def to_items(self) -> List[TableCreateItem]:
        """Normalise the body to a list of pairs; empty when neither form is valid."""
        if self.table_numbers:
            return list(self.table_numbers)
        if self.table_number and self.qr_identifier:
            return [TableCreateItem(table_number=self.table_number, qr_identifier=self.qr_identifier)]
        return []


class TableResponse(CamelModel):
    id: int
    shop_id: int
    table_number: str
    qr_identifier: str
    created_at: datetime


# =============================================================================
# MENU
# =============================================================================

class MenuItemCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100, examples=["Masala Dosa"])
    description: Optional[str] = Field(None, max_length=1000)
    price: float = Field(..., ge=0, examples=[120.0])
    category: Optional[str] = Field(None, max_length=50)
    is_available: bool = True


class MenuItemUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    price: Optional[float] = Field(None, ge=0)
    category: Optional[str] = Field(None, max_length=50)
    is_available: Optional[bool] = None


class MenuItemResponse(CamelModel):
    id: int
    shop_id: int
    name: str
    description: Optional[str] = None
    price: float
    category: Optional[str] = None
    image_url: Optional[str] = None
    is_available: bool


class TableLanding(CamelModel):
    """What a customer sees after scanning a table's QR code."""
    table: TableResponse
    shop: ShopResponse
    menu: List[MenuItemResponse]


# =============================================================================
# ORDERS
# =============================================================================

class OrderItemCreate(CamelModel):
    menu_item_id: int
    quantity: int = Field(..., ge=1, le=99)


class OrderCreate(CamelModel):
    shop_id: int
    table_number: Optional[str] = Field(None, max_length=20)
    items: List[OrderItemCreate] = Field(..., min_length=1)

    @field_validator("table_number", mode="before")
    @classmethod
    def coerce_table_number(cls, v):
        return _table_number_to_str(v)


class OrderItemResponse(CamelModel):
    menu_item_id: Optional[int] = None
    name: str
    unit_price: float
    quantity: int


class OrderResponse(CamelModel):
    id: int
    shop_id: int
    user_id: Optional[int] = None
    table_number: Optional[str] = None
    total_amount: float
    order_status: OrderStatus
    items: List[OrderItemResponse]
    created_at: datetime
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class OrderStatusUpdate(CamelModel):
    order_status: OrderStatus


class CallWaiterRequest(CamelModel):
    table_number: str = Field(..., min_length=1, max_length=20)

    @field_validator("table_number", mode="before")
    @classmethod
    def coerce_table_number(cls, v):
        return _table_number_to_str(v)


# =============================================================================
# REVIEWS
# =============================================================================

class ReviewCreate(CamelModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)


class ReviewResponse(CamelModel):
    id: int
    order_id: int
    user_id: int
    shop_id: int
    rating: int
    comment: Optional[str] = None
    created_at: datetime


class ReviewerName(CamelModel):
    name: str


class ShopReview(ReviewResponse):
    """Public review row; only the reviewer's display name is exposed."""
    user: Optional[ReviewerName] = None


class ShopReviewList(Envelope[List[ShopReview]]):
    average_rating: float = 0
    review_count: int = 0


# =============================================================================
# ANALYTICS
# =============================================================================

class ItemStat(CamelModel):
    menu_item_id: Optional[int] = None
    name: str
    count: int


class TableStat(CamelModel):
    table_number: str
    order_count: int


class RepeatCustomer(CamelModel):
    user_id: int
    name: str
    email: str
    phone: Optional[str] = None
    order_count: int


class CustomerProfile(CamelModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    created_at: datetime


class AnalyticsReport(CamelModel):
    duration: str
    start_date: datetime
    end_date: datetime
    total_revenue: float = 0
    total_orders: int = 0
    average_rating: float = 0
    most_fav_item: Optional[ItemStat] = None
    least_fav_item: Optional[ItemStat] = None
    top_tables: List[TableStat] = []
    total_customers: int = 0
    repeat_customers_count: int = 0
    repeat_customers: List[RepeatCustomer] = []
    all_customers: List[CustomerProfile] = []
