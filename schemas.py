"""
Request/response schemas for the e-commerce API

The ORM tables live in models.py; these Pydantic models describe what
goes over the wire. Field names are snake_case in Python and camelCase in
JSON (e.g. count_in_stock <-> "countInStock").
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# Users
class RegisterRequest(CamelModel):
    name: str = Field(..., min_length=1, description="Full name")
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., min_length=1)


class SigninRequest(CamelModel):
    email: EmailStr
    password: str


class UserUpdateRequest(CamelModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None


class AuthResponse(CamelModel):
    id: int
    name: str
    email: str
    is_admin: bool
    token: str


class UserSummary(CamelModel):
    id: int
    name: str
    email: str


# Products and reviews
class ReviewIn(CamelModel):
    name: Optional[str] = Field(None, description="Reviewer display name, defaults to the caller's name")
    rating: int = Field(..., ge=0, le=5)
    comment: str


class ReviewOut(CamelModel):
    id: int
    name: str
    rating: int
    comment: str
    product_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProductIn(CamelModel):
    name: str
    image: str
    brand: str
    price: float = Field(0, ge=0, description="Unit price")
    category: str
    count_in_stock: int = Field(0, ge=0)
    description: str


class ProductCreate(ProductIn):
    rating: float = Field(0, ge=0, le=5)
    num_reviews: int = Field(0, ge=0)


class ProductOut(CamelModel):
    id: int
    name: str
    image: str
    brand: str
    price: float
    category: str
    count_in_stock: int
    description: str
    rating: float
    num_reviews: int
    reviews: List[ReviewOut] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProductEnvelope(CamelModel):
    message: str
    data: ProductOut


class ReviewEnvelope(CamelModel):
    message: str
    data: ReviewOut


# Orders
class ShippingIn(CamelModel):
    address: str
    city: str
    postal_code: str
    country: str


class PaymentIn(CamelModel):
    payment_method: str


class OrderItemIn(CamelModel):
    name: str
    qty: int = Field(..., ge=1)
    image: str
    price: float = Field(..., ge=0)
    product_id: int = Field(..., alias="product", description="Product id")


class OrderCreate(CamelModel):
    shipping: ShippingIn
    payment: PaymentIn
    # taken as-is from the client, never recomputed from the items
    items_price: float
    tax_price: float
    shipping_price: float
    total_price: float
    order_items: List[OrderItemIn]


class OrderItemOut(CamelModel):
    id: int
    name: str
    qty: int
    image: str
    price: float
    product_id: int
    order_id: int


class OrderOut(CamelModel):
    id: int
    user_id: int
    shipping_address: str
    shipping_city: str
    shipping_postal_code: str
    shipping_country: str
    payment_method: str
    items_price: Optional[float] = None
    tax_price: Optional[float] = None
    shipping_price: Optional[float] = None
    total_price: Optional[float] = None
    is_paid: bool
    paid_at: Optional[datetime] = None
    is_delivered: bool
    delivered_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    order_items: List[OrderItemOut] = []


class AdminOrderOut(OrderOut):
    user: Optional[UserSummary] = None


class OrderCreated(CamelModel):
    message: str
    data: OrderOut


class OrderUpdated(CamelModel):
    message: str
    order: OrderOut


class MessageResponse(BaseModel):
    message: str
