from __future__ import annotations

import locale
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from functools import partial

from pydantic import ValidationError

from app.sarisuki.backend.documents import SERVER_TIMESTAMP, Document, DocumentStore, collection_path
from app.sarisuki.backend.realtime import Query, RealtimeHub, Subscription
from app.sarisuki.core.error_catalog import (
    AppError,
    ErrorCatalog,
    InputValidationError,
    ScopeError,
    TransientBackendError,
)
from app.sarisuki.core.logging import log_event
from app.sarisuki.schemas.products import Product, ProductDraft

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notice:
    level: str
    title: str
    message: str


def products_collection(store_id: str) -> str:
    return collection_path("stores", store_id, "products")


def product_sort_key(product: Product) -> tuple[str, str]:
    return locale.strxfrm(product.name.casefold()), product.name


def filter_products(products: list[Product], term: str | None) -> list[Product]:
    if not term:
        return list(products)
    needle = term.casefold()
    return [product for product in products if needle in product.name.casefold()]


def validation_errors(exc: ValidationError) -> list[dict]:
    errors = []
    for error in exc.errors():
        field = ".".join(str(item) for item in error.get("loc", ())) or None
        message = error.get("msg", "Invalid value")
        errors.append({"field": field, "message": message.removeprefix("Value error, ")})
    return errors


def _product_from_document(document: Document) -> Product:
    return Product.model_validate({"id": document.id, **document.data})


class CatalogSync:
    """Live, name-sorted view of one store's products plus admin mutations."""

    def __init__(self, hub: RealtimeHub, on_notice: Callable[[Notice], None] | None = None):
        self.hub = hub
        self.on_notice = on_notice
        self.store_id: str | None = None
        self.products: list[Product] = []
        self.loading = False
        self.notice: Notice | None = None
        self._subscription: Subscription | None = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def subscribed(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def bind(self, store_id: str, documents: DocumentStore) -> None:
        if store_id == self.store_id and self.subscribed:
            return
        with self._lock:
            previous = self._subscription
            self._subscription = None
            self._generation += 1
            generation = self._generation
            self.store_id = store_id
            self.products = []
            self.loading = True
            self.notice = None
        if previous is not None:
            previous.cancel()

        subscription = self.hub.subscribe(
            Query(products_collection(store_id)),
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
            self.products = []
            self.loading = False
        if previous is not None:
            previous.cancel()

    def get(self, product_id: str) -> Product | None:
        with self._lock:
            for product in self.products:
                if product.id == product_id:
                    return product
        return None

    def filter(self, term: str | None) -> list[Product]:
        with self._lock:
            products = list(self.products)
        return filter_products(products, term)

    def create(self, documents: DocumentStore, draft: ProductDraft | dict) -> Product:
        store_id = self._require_store()
        validated = self._validate(draft)
        data = {
            **validated.model_dump(),
            "store_id": store_id,
            "created_at": SERVER_TIMESTAMP,
            "updated_at": SERVER_TIMESTAMP,
        }
        try:
            document = documents.add(products_collection(store_id), data)
        except TransientBackendError as exc:
            logger.exception("Error saving product")
            raise TransientBackendError(ErrorCatalog.PRODUCT_SAVE_FAILED) from exc
        log_event(logger, "product.created", store_id=store_id, product_id=document.id)
        return _product_from_document(document)

    def update(self, documents: DocumentStore, product_id: str, draft: ProductDraft | dict) -> Product:
        store_id = self._require_store()
        validated = self._validate(draft)
        data = {
            **validated.model_dump(),
            "store_id": store_id,
            "updated_at": SERVER_TIMESTAMP,
        }
        try:
            document = documents.update(f"{products_collection(store_id)}/{product_id}", data)
        except AppError as exc:
            if exc.error is ErrorCatalog.DOCUMENT_NOT_FOUND:
                raise AppError(ErrorCatalog.PRODUCT_NOT_FOUND, details={"product_id": product_id}) from exc
            if isinstance(exc, TransientBackendError):
                logger.exception("Error saving product")
                raise TransientBackendError(ErrorCatalog.PRODUCT_SAVE_FAILED) from exc
            raise
        log_event(logger, "product.updated", store_id=store_id, product_id=product_id)
        return _product_from_document(document)

    def delete(self, documents: DocumentStore, product_id: str) -> None:
        store_id = self._require_store()
        try:
            documents.delete(f"{products_collection(store_id)}/{product_id}")
        except TransientBackendError as exc:
            logger.exception("Error deleting product")
            raise TransientBackendError(ErrorCatalog.PRODUCT_DELETE_FAILED) from exc
        log_event(logger, "product.deleted", store_id=store_id, product_id=product_id)

    def _require_store(self) -> str:
        if not self.store_id:
            raise ScopeError(ErrorCatalog.SESSION_SCOPE_MISSING)
        return self.store_id

    @staticmethod
    def _validate(draft: ProductDraft | dict) -> ProductDraft:
        if isinstance(draft, ProductDraft):
            return draft
        try:
            return ProductDraft.model_validate(draft)
        except ValidationError as exc:
            raise InputValidationError(validation_errors(exc)) from exc

    def _on_data(self, generation: int, documents: list[Document]) -> None:
        products = sorted((_product_from_document(doc) for doc in documents), key=product_sort_key)
        with self._lock:
            if generation != self._generation:
                return
            self.products = products
            self.loading = False

    def _on_error(self, generation: int, exc: Exception) -> None:
        notice = Notice(level="error", title="Error", message=ErrorCatalog.PRODUCTS_UNAVAILABLE.message)
        with self._lock:
            if generation != self._generation:
                return
            self.loading = False
            self.notice = notice
        logger.error("Error fetching products: %s", exc)
        if self.on_notice is not None:
            self.on_notice(notice)
