from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from typing import Any

logger = logging.getLogger(__name__)

_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "==": lambda left, right: left == right,
    "<": lambda left, right: left < right,
    "<=": lambda left, right: left <= right,
    ">": lambda left, right: left > right,
    ">=": lambda left, right: left >= right,
}


@dataclass(frozen=True)
class FieldFilter:
    field: str
    op: str
    value: Any

    def matches(self, data: dict) -> bool:
        if self.field not in data or data[self.field] is None:
            return False
        try:
            return _OPERATORS[self.op](data[self.field], self.value)
        except TypeError:
            return False


@dataclass(frozen=True)
class Query:
    """Descriptor of a collection query: equality/range filters plus one ordering."""

    collection: str
    filters: tuple[FieldFilter, ...] = ()
    order_by: str | None = None
    descending: bool = False

    def where(self, field_name: str, op: str, value: Any) -> Query:
        if op not in _OPERATORS:
            raise ValueError(f"unsupported operator {op!r}")
        return replace(self, filters=self.filters + (FieldFilter(field_name, op, value),))

    def order(self, field_name: str, *, descending: bool = False) -> Query:
        return replace(self, order_by=field_name, descending=descending)

    def apply(self, documents: Iterable) -> list:
        rows = [doc for doc in documents if all(f.matches(doc.data) for f in self.filters)]
        if self.order_by:
            key = self.order_by
            present = [doc for doc in rows if doc.data.get(key) is not None]
            missing = [doc for doc in rows if doc.data.get(key) is None]
            present.sort(key=lambda doc: doc.data[key], reverse=self.descending)
            rows = present + missing
        return rows


@dataclass(eq=False)
class Subscription:
    query: Query
    on_data: Callable[[list], None]
    on_error: Callable[[Exception], None] | None
    _hub: RealtimeHub
    _active: bool = True
    _lock: threading.RLock = field(default_factory=threading.RLock)

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        with self._lock:
            if not self._active:
                return
            self._active = False
        self._hub._discard(self)

    def deliver(self, documents: list) -> None:
        with self._lock:
            if not self._active:
                return
            try:
                self.on_data(documents)
            except Exception as exc:
                logger.exception("Subscription listener failed for %s", self.query.collection)
                self._fail(exc)

    def fail(self, exc: Exception) -> None:
        with self._lock:
            if not self._active:
                return
            self._fail(exc)

    def _fail(self, exc: Exception) -> None:
        self._active = False
        self._hub._discard(self)
        if self.on_error is not None:
            self.on_error(exc)


class RealtimeHub:
    """Push-based live queries over the document store.

    Writers call ``publish`` after a commit; every active subscription on a
    touched collection re-runs its query against the writer's store and
    receives the full fresh result set.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscriptions: list[Subscription] = []

    def subscribe(
        self,
        query: Query,
        store,
        on_data: Callable[[list], None],
        on_error: Callable[[Exception], None] | None = None,
    ) -> Subscription:
        subscription = Subscription(query=query, on_data=on_data, on_error=on_error, _hub=self)
        with self._lock:
            self._subscriptions.append(subscription)
        self._refresh(subscription, store)
        return subscription

    def publish(self, collections: Iterable[str], store) -> None:
        touched = set(collections)
        if not touched:
            return
        with self._lock:
            targets = [sub for sub in self._subscriptions if sub.query.collection in touched]
        for subscription in targets:
            self._refresh(subscription, store)

    def active_count(self, collection: str | None = None) -> int:
        with self._lock:
            return sum(
                1
                for sub in self._subscriptions
                if sub.active and (collection is None or sub.query.collection == collection)
            )

    def _refresh(self, subscription: Subscription, store) -> None:
        # query and delivery share the lock so a stale result set never lands last
        with subscription._lock:
            if not subscription.active:
                return
            try:
                documents = store.query(subscription.query)
            except Exception as exc:
                logger.exception("Live query failed for %s", subscription.query.collection)
                subscription.fail(exc)
                return
            subscription.deliver(documents)

    def _discard(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)
