from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from app.sarisuki.schemas.products import Product


class SaleItem(BaseModel):
    product_id: str
    product_name: str
    quantity: int = Field(ge=1)
    unit_price: Decimal
    total_price: Decimal


class Sale(BaseModel):
    id: str | None = None
    store_id: str
    staff_id: str
    staff_name: str | None = None
    items: list[SaleItem]
    total_amount: Decimal
    timestamp: datetime | None = None


class CartItemResponse(SaleItem):
    product_image_url: str | None = None


class CartResponse(BaseModel):
    items: list[CartItemResponse]
    cart_total: Decimal
    is_submitting: bool


class AddToCartRequest(BaseModel):
    product_id: str = Field(min_length=1)


class UpdateQuantityRequest(BaseModel):
    # Raw stepper value: anything that does not parse to a positive integer removes the line.
    quantity: int | str | None = None


class RecordSaleView(BaseModel):
    products: list[Product]
    loading: bool
    notice: str | None = None
    cart: CartResponse
    trace_id: str


class CartMutationResponse(BaseModel):
    cart: CartResponse
    trace_id: str


class RecordSaleResponse(BaseModel):
    sale: Sale
    cart: CartResponse
    message: str
    trace_id: str


class SalesReportResponse(BaseModel):
    store_id: str
    date_from: date
    date_to: date
    timezone: str
    total_revenue: Decimal
    total_items: int
    sales: list[Sale]
    loading: bool
    notice: str | None = None
    trace_id: str
