from __future__ import annotations

import logging
import re
import sys
import threading
from dataclasses import dataclass, replace
from decimal import Decimal

from app.sarisuki.backend.documents import SERVER_TIMESTAMP, DocumentStore, collection_path
from app.sarisuki.core.config import settings
from app.sarisuki.core.error_catalog import (
    AppError,
    ErrorCatalog,
    InputValidationError,
    TransientBackendError,
)
from app.sarisuki.core.logging import log_event
from app.sarisuki.schemas.products import Product
from app.sarisuki.schemas.profiles import UserProfile
from app.sarisuki.schemas.sales import CartItemResponse, CartResponse, Sale, SaleItem

logger = logging.getLogger(__name__)

_ZERO = Decimal("0.00")
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def sales_collection(store_id: str) -> str:
    return collection_path("stores", store_id, "sales")


def coerce_quantity(raw) -> int:
    """Read a quantity stepper value the way the register screen does.

    Leading-integer parse; anything unparsable or negative becomes 0, which
    removes the line. The upper bound is enforced by the cart.
    """
    if raw is None or isinstance(raw, bool):
        return 0
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, (float, Decimal)):
        try:
            value = int(raw)
        except (ValueError, OverflowError):
            return 0
    else:
        match = _LEADING_INT.match(str(raw))
        if match is None:
            return 0
        digits = match.group(1)
        if digits.startswith("-"):
            return 0
        try:
            value = int(digits)
        except ValueError:
            # longer than the interpreter will convert
            return sys.maxsize
    return max(value, 0)


@dataclass(frozen=True)
class CartItem:
    product_id: str
    product_name: str
    quantity: int
    unit_price: Decimal
    product_image_url: str | None = None

    @property
    def total_price(self) -> Decimal:
        return (self.unit_price * self.quantity).quantize(Decimal("0.01"))

    def to_sale_item(self) -> SaleItem:
        return SaleItem(
            product_id=self.product_id,
            product_name=self.product_name,
            quantity=self.quantity,
            unit_price=self.unit_price,
            total_price=self.total_price,
        )


class Cart:
    """Pending sale lines, at most one per product, in insertion order.

    Name and unit price are captured when a product is first added and are
    not refreshed from the catalog afterwards. Lines cannot be changed while
    a checkout holds the cart.
    """

    def __init__(self) -> None:
        self._items: dict[str, CartItem] = {}
        self._lock = threading.RLock()
        self._checking_out = False

    def __len__(self) -> int:
        return len(self._items)

    @property
    def items(self) -> list[CartItem]:
        with self._lock:
            return list(self._items.values())

    @property
    def is_empty(self) -> bool:
        return not self._items

    @property
    def total(self) -> Decimal:
        with self._lock:
            return sum((item.total_price for item in self._items.values()), _ZERO)

    def get(self, product_id: str) -> CartItem | None:
        return self._items.get(product_id)

    def _ensure_open(self) -> None:
        if self._checking_out:
            raise AppError(ErrorCatalog.SALE_SUBMISSION_IN_PROGRESS)

    @staticmethod
    def _ensure_quantity_allowed(quantity: int) -> None:
        if quantity > settings.MAX_LINE_QUANTITY:
            raise InputValidationError.for_field(
                "quantity",
                f"Quantity cannot exceed {settings.MAX_LINE_QUANTITY}",
            )

    def add(self, product: Product) -> CartItem:
        with self._lock:
            self._ensure_open()
            existing = self._items.get(product.id)
            if existing is not None:
                self._ensure_quantity_allowed(existing.quantity + 1)
                item = replace(existing, quantity=existing.quantity + 1)
            else:
                item = CartItem(
                    product_id=product.id,
                    product_name=product.name,
                    quantity=1,
                    unit_price=product.price,
                    product_image_url=product.image_url or None,
                )
            self._items[product.id] = item
            return item

    def update_quantity(self, product_id: str, quantity) -> CartItem | None:
        new_quantity = coerce_quantity(quantity)
        with self._lock:
            self._ensure_open()
            existing = self._items.get(product_id)
            if existing is None:
                return None
            if new_quantity <= 0:
                del self._items[product_id]
                return None
            self._ensure_quantity_allowed(new_quantity)
            item = replace(existing, quantity=new_quantity)
            self._items[product_id] = item
            return item

    def remove(self, product_id: str) -> None:
        with self._lock:
            self._ensure_open()
            self._items.pop(product_id, None)

    def clear(self) -> None:
        with self._lock:
            self._items = {}

    def begin_checkout(self) -> tuple[CartItem, ...]:
        with self._lock:
            self._checking_out = True
            return tuple(self._items.values())

    def end_checkout(self, *, clear: bool) -> None:
        with self._lock:
            if clear:
                self._items = {}
            self._checking_out = False

    def snapshot(self) -> tuple[CartItem, ...]:
        with self._lock:
            return tuple(self._items.values())

    def to_response(self, *, is_submitting: bool = False) -> CartResponse:
        items = self.snapshot()
        return CartResponse(
            items=[
                CartItemResponse(**item.to_sale_item().model_dump(), product_image_url=item.product_image_url)
                for item in items
            ],
            cart_total=sum((item.total_price for item in items), _ZERO),
            is_submitting=is_submitting,
        )


class SaleRecorder:
    """Commits the cart as one sale document.

    One ``add`` against the store's sales collection per sale; the cart is
    emptied only after that write succeeds and is left as-is otherwise.
    Concurrent calls are rejected while a submission is in flight.
    """

    def __init__(self, cart: Cart):
        self.cart = cart
        self._submitting = False
        self._flag_lock = threading.Lock()

    @property
    def is_submitting(self) -> bool:
        return self._submitting

    def record(self, documents: DocumentStore, profile: UserProfile | None) -> Sale:
        if not self._begin():
            raise AppError(ErrorCatalog.SALE_SUBMISSION_IN_PROGRESS)
        try:
            return self._record(documents, profile)
        finally:
            self._end()

    def _begin(self) -> bool:
        with self._flag_lock:
            if self._submitting:
                return False
            self._submitting = True
            return True

    def _end(self) -> None:
        with self._flag_lock:
            self._submitting = False

    def _record(self, documents: DocumentStore, profile: UserProfile | None) -> Sale:
        items = self.cart.begin_checkout()
        recorded = False
        try:
            sale = self._write(documents, profile, items)
            recorded = True
        finally:
            self.cart.end_checkout(clear=recorded)
        return sale

    def _write(self, documents: DocumentStore, profile: UserProfile | None, items: tuple[CartItem, ...]) -> Sale:
        if not items:
            raise InputValidationError.for_field("cart", ErrorCatalog.CART_EMPTY.message, error=ErrorCatalog.CART_EMPTY)
        if profile is None or not profile.store_id or not profile.uid:
            raise InputValidationError.for_field(
                None,
                ErrorCatalog.SESSION_SCOPE_MISSING.message,
                error=ErrorCatalog.SESSION_SCOPE_MISSING,
            )

        sale_items = [item.to_sale_item() for item in items]
        total_amount = sum((item.total_price for item in sale_items), _ZERO)
        data = {
            "store_id": profile.store_id,
            "staff_id": profile.uid,
            "staff_name": profile.label,
            "items": [item.model_dump() for item in sale_items],
            "total_amount": total_amount,
            "timestamp": SERVER_TIMESTAMP,
        }
        try:
            document = documents.add(sales_collection(profile.store_id), data)
        except TransientBackendError as exc:
            logger.exception("Error recording sale")
            raise TransientBackendError(ErrorCatalog.SALE_RECORD_FAILED) from exc

        log_event(
            logger,
            "sale.recorded",
            store_id=profile.store_id,
            staff_id=profile.uid,
            sale_id=document.id,
            total_amount=total_amount,
            line_count=len(sale_items),
        )
        return Sale.model_validate({"id": document.id, **document.data})
