from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, HttpUrl, TypeAdapter, ValidationError, computed_field, field_validator

from app.sarisuki.core.config import settings

_http_url = TypeAdapter(HttpUrl)


class ProductDraft(BaseModel):
    """Editable product fields, validated before any write."""

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Rice 1kg",
                "price": "50.00",
                "category": "Grocery",
                "image_url": "https://placehold.co/200x200.png",
            }
        }
    }

    name: str
    price: Decimal = Field(gt=0, le=settings.MAX_PRODUCT_PRICE)
    category: str | None = None
    image_url: str = ""

    @field_validator("name")
    @classmethod
    def name_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Product name is required")
        return value

    @field_validator("price")
    @classmethod
    def quantize_price(cls, value: Decimal) -> Decimal:
        return value.quantize(Decimal("0.01"))

    @field_validator("category")
    @classmethod
    def blank_category(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @field_validator("image_url", mode="before")
    @classmethod
    def image_url_empty_or_valid(cls, value):
        if value is None:
            return ""
        value = str(value).strip()
        if not value:
            return ""
        try:
            _http_url.validate_python(value)
        except ValidationError as exc:
            raise ValueError("Must be a valid URL (e.g., https://placehold.co/200x200.png)") from exc
        return value


class Product(BaseModel):
    id: str
    name: str
    price: Decimal
    category: str | None = None
    image_url: str = ""
    store_id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @computed_field
    @property
    def display_image_url(self) -> str:
        return self.image_url or settings.PLACEHOLDER_IMAGE_URL

    @computed_field
    @property
    def price_label(self) -> str:
        return f"{settings.CURRENCY_SYMBOL}{self.price:.2f}"


class ProductListResponse(BaseModel):
    rows: list[Product]
    total: int
    loading: bool
    notice: str | None = None
    trace_id: str


class ProductResponse(BaseModel):
    product: Product
    message: str
    trace_id: str


class ProductDeleteResponse(BaseModel):
    ok: bool
    message: str
    trace_id: str
