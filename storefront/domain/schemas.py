# storefront/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Generic, List, Optional, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

from storefront.domain.tracking import TrackingStatus

T = TypeVar("T")

# two-decimal amounts leave the API as JSON numbers
Money = Annotated[Decimal, PlainSerializer(lambda v: float(v), return_type=float, when_used="json")]

CATEGORIES = (
    "Electronics",
    "Clothing",
    "Home & Kitchen",
    "Books",
    "Toys",
    "Sports",
    "Beauty",
    "Other",
)


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# =====================================================
# ENVELOPES
# =====================================================
class Envelope(BaseModel, Generic[T]):
    success: bool = True
    data: T


class ListEnvelope(BaseModel, Generic[T]):
    success: bool = True
    count: int
    data: List[T]


# =====================================================
# CART
# =====================================================
class CartItemIn(CamelModel):
    """Schema for adding a product to the cart."""

    product_id: Optional[int] = None
    quantity: int = 1


class CartItemUpdate(CamelModel):
    quantity: Optional[int] = None


class GuestCart(CamelModel):
    """Lines are checked one by one during the merge, so a bad line only skips itself."""

    items: List[Any]


class MergeCartIn(CamelModel):
    guest_cart: GuestCart


class ImageOut(CamelModel):
    url: str
    alt: Optional[str] = None


class ProductProjection(CamelModel):
    """Live product fields shown next to a cart line, never written back."""

    id: int
    name: str
    price: Money
    images: List[ImageOut] = []
    stock: int


class CartItemOut(CamelModel):
    product_id: int
    name: str
    price: Money
    image: str
    quantity: int
    product: Optional[ProductProjection] = None


class CartOut(CamelModel):
    id: int
    user: str
    items: List[CartItemOut]
    total_items: int
    total_price: Money
    version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CartSummaryOut(CamelModel):
    total_items: int
    total_price: Money
    items: int


# =====================================================
# ORDERS
# =====================================================
class OrderItemIn(CamelModel):
    product_id: int = Field(..., validation_alias=AliasChoices("product", "productId", "product_id"))
    quantity: int = Field(..., ge=1)
    price: Decimal = Field(..., ge=0)
    name: Optional[str] = None
    image: Optional[str] = None


class ShippingInfo(CamelModel):
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)
    postal_code: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)


class OrderCreate(CamelModel):
    """Checkout request, prices as the client computed them."""

    order_items: List[OrderItemIn] = []
    shipping_info: ShippingInfo = Field(
        ..., validation_alias=AliasChoices("shippingInfo", "shippingAddress", "shipping_info")
    )
    payment_method: Optional[str] = None
    items_price: Decimal
    tax_price: Optional[Decimal] = None
    shipping_price: Optional[Decimal] = None
    total_price: Decimal


class PaymentResultIn(BaseModel):
    """Payment confirmation as sent by the payment provider, keys kept as-is."""

    id: Optional[str] = None
    status: Optional[str] = None
    update_time: Optional[str] = None
    email_address: Optional[str] = None


class PaymentInfoOut(BaseModel):
    id: str
    status: str
    update_time: str
    email_address: str


class StatusUpdateIn(CamelModel):
    status: TrackingStatus
    tracking_number: Optional[str] = None
    location: Optional[str] = None
    details: Optional[str] = None


class OrderItemOut(CamelModel):
    product_id: int
    name: str
    price: Money
    image: str
    quantity: int


class TrackingUpdateOut(CamelModel):
    date: datetime
    status: str
    location: str
    details: str


class OrderOut(CamelModel):
    id: int
    order_number: str
    user: str
    order_items: List[OrderItemOut]
    shipping_info: ShippingInfo
    payment_method: Optional[str] = None
    payment_info: Optional[PaymentInfoOut] = None
    items_price: Money
    tax_price: Money
    shipping_price: Money
    total_price: Money
    order_status: str
    is_paid: bool
    paid_at: Optional[datetime] = None
    is_delivered: bool
    delivered_at: Optional[datetime] = None
    tracking_number: str
    tracking_updates: List[TrackingUpdateOut]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MonthlySalesOut(CamelModel):
    year: int
    month: int
    total_sales: Money
    num_orders: int


class OrderStatsOut(CamelModel):
    total_sales: Optional[Money] = None
    total_orders: Optional[int] = None
    avg_order_value: Optional[Money] = None
    min_order_value: Optional[Money] = None
    max_order_value: Optional[Money] = None


# =====================================================
# PRODUCTS
# =====================================================
class ImageIn(CamelModel):
    url: str = Field(..., min_length=1)
    alt: Optional[str] = None


class ProductCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1)
    price: Decimal = Field(..., ge=0)
    category: str
    stock: int = Field(0, ge=0)
    images: List[ImageIn] = []


class ProductUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    category: Optional[str] = None
    stock: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None
    images: Optional[List[ImageIn]] = None


class ReviewIn(CamelModel):
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=1)


class ReviewOut(CamelModel):
    user: str
    name: str
    rating: int
    comment: str
    created_at: Optional[datetime] = None


class ProductOut(CamelModel):
    id: int
    name: str
    description: str
    price: Money
    category: str
    stock: int
    images: List[ImageOut] = []
    ratings: float
    num_reviews: int
    seller: str
    is_active: bool
    reviews: List[ReviewOut] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PageRef(BaseModel):
    page: int
    limit: int


class Pagination(BaseModel):
    next: Optional[PageRef] = None
    prev: Optional[PageRef] = None


class ProductPage(BaseModel):
    success: bool = True
    count: int
    total: int
    pagination: Pagination
    data: List[ProductOut]


class UploadOut(CamelModel):
    url: str
    key: str
