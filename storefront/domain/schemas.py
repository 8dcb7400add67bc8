# storefront/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List
from decimal import Decimal
from datetime import datetime


class ItemIn(BaseModel):
    """Catalog product added to a cart."""

    product_id: int = Field(..., gt=0, description="Product id")
    quantity: int = Field(1, gt=0, description="Quantity (> 0)")


class ExternalItemIn(BaseModel):
    """Third-party listing added to a cart or ordered directly."""

    name: str = Field(..., min_length=1, max_length=500)
    url: str = Field(..., min_length=1, max_length=2000)
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    image_url: str | None = Field(None, max_length=2000)
    quantity: int = Field(1, gt=0)


class QuantityIn(BaseModel):
    quantity: int = Field(..., gt=0)


class CartItemOut(BaseModel):
    id: int
    kind: str
    product_id: int | None = None
    name: str | None = None
    url: str | None = None
    image_url: str | None = None
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class CartOut(BaseModel):
    cart_id: int
    user_id: int | None = None
    session_id: str | None = None
    items: List[CartItemOut]
    total: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderCreate(BaseModel):
    """Checkout of the caller's cart."""

    address_id: int | None = Field(None, gt=0)
    payment_method: str = Field(..., min_length=1, max_length=50)


class OrderLineOut(BaseModel):
    kind: str
    product_id: int | None = None
    name: str | None = None
    url: str | None = None
    image_url: str | None = None
    quantity: int
    unit_price: Decimal


class OrderOut(BaseModel):
    id: int
    user_id: int | None = None
    session_id: str | None = None
    address_id: int | None = None
    items: List[OrderLineOut]
    total_amount: Decimal
    payment_method: str
    status: str
    payment_status: str
    is_external: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StatusUpdate(BaseModel):
    # walidacja wartosci w serwisie (InvalidStatus), nie w pydantic
    status: str


class SessionOut(BaseModel):
    session_id: str


class MigrateIn(BaseModel):
    session_id: str


class MigrateOut(BaseModel):
    migrated: int
    cart_items_merged: int = 0


class PaymentEventIn(BaseModel):
    """Payment provider callback (already verified upstream)."""

    type: str
    data: dict = Field(default_factory=dict)
