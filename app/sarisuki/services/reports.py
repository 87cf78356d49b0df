from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from functools import partial
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import ValidationError

from app.sarisuki.backend.documents import Document, DocumentStore
from app.sarisuki.backend.realtime import Query, RealtimeHub, Subscription
from app.sarisuki.core.config import settings
from app.sarisuki.core.error_catalog import ErrorCatalog, InputValidationError
from app.sarisuki.schemas.sales import Sale
from app.sarisuki.services.cart import sales_collection
from app.sarisuki.services.catalog import Notice

logger = logging.getLogger(__name__)

_ZERO = Decimal("0.00")


class ReportDateRange:
    def __init__(
        self,
        *,
        start_local: datetime,
        end_local: datetime,
        timezone_name: str,
    ) -> None:
        self.start_local = start_local
        self.end_local = end_local
        self.start_utc = start_local.astimezone(timezone.utc)
        self.end_utc = end_local.astimezone(timezone.utc)
        self.timezone_name = timezone_name

    @property
    def start_date(self) -> date:
        return self.start_local.date()

    @property
    def end_date(self) -> date:
        return self.end_local.date()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ReportDateRange):
            return NotImplemented
        return (self.start_utc, self.end_utc) == (other.start_utc, other.end_utc)


def resolve_timezone(timezone_name: str | None):
    tz_name = timezone_name or settings.REPORT_DEFAULT_TIMEZONE
    if tz_name in ("UTC", "Z", "Etc/UTC"):
        return timezone.utc
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise InputValidationError.for_field("timezone", "invalid timezone") from exc


def start_of_day(day: date, tz) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def end_of_day(day: date, tz) -> datetime:
    return datetime.combine(day, time.max, tzinfo=tz)


def resolve_report_range(
    date_from: date | str | None,
    date_to: date | str | None,
    tz,
) -> ReportDateRange:
    """Whole local days from ``date_from`` through ``date_to``; both default to today."""
    today = datetime.now(tz).date()
    start_day = _parse_date(date_from, "from", default=today)
    end_day = _parse_date(date_to, "to", default=start_day if date_from else today)
    if end_day < start_day:
        raise InputValidationError.for_field("to", "to must be after from")
    return ReportDateRange(
        start_local=start_of_day(start_day, tz),
        end_local=end_of_day(end_day, tz),
        timezone_name=str(tz),
    )


def validate_date_range(date_range: ReportDateRange, *, max_days: int) -> None:
    if max_days <= 0:
        return
    days = (date_range.end_date - date_range.start_date).days + 1
    if days > max_days:
        raise InputValidationError.for_field("to", f"date range exceeds {max_days} days")


def _parse_date(value: date | str | None, field: str, *, default: date) -> date:
    if value is None or value == "":
        return default
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value[:10])
    except ValueError as exc:
        raise InputValidationError.for_field(field, "invalid date") from exc


def sales_query(store_id: str, date_range: ReportDateRange) -> Query:
    return (
        Query(sales_collection(store_id))
        .where("timestamp", ">=", date_range.start_utc)
        .where("timestamp", "<=", date_range.end_utc)
        .order("timestamp", descending=True)
    )


def total_revenue(sales: list[Sale]) -> Decimal:
    return sum((sale.total_amount for sale in sales), _ZERO)


def total_items(sales: list[Sale]) -> int:
    return sum(item.quantity for sale in sales for item in sale.items)


class SalesReport:
    """Live list of a store's sales in a date range, newest first."""

    def __init__(self, hub: RealtimeHub, on_notice: Callable[[Notice], None] | None = None):
        self.hub = hub
        self.on_notice = on_notice
        self.store_id: str | None = None
        self.date_range: ReportDateRange | None = None
        self.sales: list[Sale] = []
        self.loading = False
        self.notice: Notice | None = None
        self._subscription: Subscription | None = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def subscribed(self) -> bool:
        return self._subscription is not None and self._subscription.active

    @property
    def total_revenue(self) -> Decimal:
        with self._lock:
            return total_revenue(self.sales)

    @property
    def total_items(self) -> int:
        with self._lock:
            return total_items(self.sales)

    def bind(self, store_id: str, date_range: ReportDateRange, documents: DocumentStore) -> None:
        if store_id == self.store_id and date_range == self.date_range and self.subscribed:
            return
        with self._lock:
            previous = self._subscription
            self._subscription = None
            self._generation += 1
            generation = self._generation
            self.store_id = store_id
            self.date_range = date_range
            self.sales = []
            self.loading = True
            self.notice = None
        if previous is not None:
            previous.cancel()

        subscription = self.hub.subscribe(
            sales_query(store_id, date_range),
            documents,
            on_data=partial(self._on_data, generation),
            on_error=partial(self._on_error, generation),
        )
        with self._lock:
            stale = generation != self._generation
            if not stale:
                self._subscription = subscription
        if stale:
            subscription.cancel()

    def close(self) -> None:
        with self._lock:
            previous = self._subscription
            self._subscription = None
            self._generation += 1
            self.store_id = None
            self.date_range = None
            self.sales = []
            self.loading = False
        if previous is not None:
            previous.cancel()

    def _on_data(self, generation: int, documents: list[Document]) -> None:
        sales = []
        for document in documents:
            try:
                sales.append(Sale.model_validate({"id": document.id, **document.data}))
            except ValidationError:
                logger.warning("Skipping malformed sale document %s", document.path)
        with self._lock:
            if generation != self._generation:
                return
            self.sales = sales
            self.loading = False

    def _on_error(self, generation: int, exc: Exception) -> None:
        notice = Notice(level="error", title="Error", message=ErrorCatalog.SALES_UNAVAILABLE.message)
        with self._lock:
            if generation != self._generation:
                return
            self.loading = False
            self.notice = notice
        logger.error("Error fetching sales: %s", exc)
        if self.on_notice is not None:
            self.on_notice(notice)
