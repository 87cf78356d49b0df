from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from app.sarisuki.backend.realtime import Query, RealtimeHub
from app.sarisuki.core.error_catalog import AppError, ErrorCatalog, TransientBackendError
from app.sarisuki.db.models import DocumentRecord

_DECIMAL_TAG = "$decimal"
_TIMESTAMP_TAG = "$timestamp"


class _ServerTimestamp:
    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


def _segments(path: str) -> list[str]:
    parts = [part for part in path.strip("/").split("/") if part]
    if not parts:
        raise ValueError("path must not be empty")
    return parts


def collection_path(*parts: str) -> str:
    segments = _segments("/".join(parts))
    if len(segments) % 2 != 1:
        raise ValueError(f"{'/'.join(segments)!r} is not a collection path")
    return "/".join(segments)


def document_path(*parts: str) -> str:
    segments = _segments("/".join(parts))
    if len(segments) % 2 != 0:
        raise ValueError(f"{'/'.join(segments)!r} is not a document path")
    return "/".join(segments)


def _split(path: str) -> tuple[str, str, str]:
    normalized = document_path(path)
    collection, _, doc_id = normalized.rpartition("/")
    return normalized, collection, doc_id


def _resolve(value: Any, now: datetime) -> Any:
    if value is SERVER_TIMESTAMP:
        return now
    if isinstance(value, dict):
        return {key: _resolve(item, now) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_resolve(item, now) for item in value]
    return value


def encode_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return {_DECIMAL_TAG: format(value, "f")}
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return {_TIMESTAMP_TAG: value.astimezone(timezone.utc).isoformat()}
    if isinstance(value, dict):
        return {key: encode_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode_value(item) for item in value]
    return value


def decode_value(value: Any) -> Any:
    if isinstance(value, dict):
        if len(value) == 1 and _DECIMAL_TAG in value:
            return Decimal(value[_DECIMAL_TAG])
        if len(value) == 1 and _TIMESTAMP_TAG in value:
            return datetime.fromisoformat(value[_TIMESTAMP_TAG])
        return {key: decode_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [decode_value(item) for item in value]
    return value


@dataclass(frozen=True)
class Document:
    id: str
    path: str
    data: dict

    def to_dict(self) -> dict:
        return {"id": self.id, **self.data}


def _to_document(record: DocumentRecord) -> Document:
    return Document(id=record.doc_id, path=record.path, data=decode_value(record.data))


class DocumentStore:
    """Hierarchical collection/document store persisted through SQLAlchemy.

    Each public write commits on its own; ``batch()`` groups several writes
    into one commit. Committed writes are published to the realtime hub.
    """

    def __init__(self, db, hub: RealtimeHub | None = None):
        self.db = db
        self.hub = hub

    def get(self, path: str) -> Document | None:
        normalized, _, _ = _split(path)
        try:
            record = self.db.get(DocumentRecord, normalized)
        except SQLAlchemyError as exc:
            raise TransientBackendError(ErrorCatalog.DB_UNAVAILABLE, details={"path": normalized}) from exc
        return _to_document(record) if record is not None else None

    def exists(self, path: str) -> bool:
        return self.get(path) is not None

    def query(self, query: Query) -> list[Document]:
        stmt = select(DocumentRecord).where(DocumentRecord.collection == collection_path(query.collection))
        try:
            records = self.db.execute(stmt.order_by(DocumentRecord.created_at)).scalars().all()
        except SQLAlchemyError as exc:
            raise TransientBackendError(
                ErrorCatalog.DB_UNAVAILABLE, details={"collection": query.collection}
            ) from exc
        return query.apply(_to_document(record) for record in records)

    def set(self, path: str, data: dict, *, merge: bool = False) -> Document:
        with self.batch() as batch:
            batch.set(path, data, merge=merge)
        return batch.results[0]

    def add(self, collection: str, data: dict) -> Document:
        doc_id = uuid.uuid4().hex
        return self.set(f"{collection_path(collection)}/{doc_id}", data)

    def update(self, path: str, data: dict) -> Document:
        with self.batch() as batch:
            batch.update(path, data)
        return batch.results[0]

    def delete(self, path: str) -> None:
        with self.batch() as batch:
            batch.delete(path)

    def batch(self) -> WriteBatch:
        return WriteBatch(self)

    def _publish(self, collections: set[str]) -> None:
        if self.hub is not None:
            self.hub.publish(collections, self)


class WriteBatch:
    """Atomic group of writes; used as a context manager or committed explicitly."""

    def __init__(self, store: DocumentStore):
        self._store = store
        self._operations: list[tuple[str, str, dict | None, bool]] = []
        self.results: list[Document] = []
        self.committed = False

    def set(self, path: str, data: dict, *, merge: bool = False) -> WriteBatch:
        self._operations.append(("set", path, dict(data), merge))
        return self

    def update(self, path: str, data: dict) -> WriteBatch:
        self._operations.append(("update", path, dict(data), True))
        return self

    def delete(self, path: str) -> WriteBatch:
        self._operations.append(("delete", path, None, False))
        return self

    def __enter__(self) -> WriteBatch:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.commit()

    def commit(self) -> list[Document]:
        if self.committed:
            raise RuntimeError("batch already committed")
        db = self._store.db
        now = datetime.now(timezone.utc)
        touched: set[str] = set()
        results: list[Document] = []
        try:
            for kind, path, data, merge in self._operations:
                normalized, collection, doc_id = _split(path)
                record = db.get(DocumentRecord, normalized)
                touched.add(collection)
                if kind == "delete":
                    if record is not None:
                        db.delete(record)
                    continue
                if kind == "update" and record is None:
                    raise AppError(ErrorCatalog.DOCUMENT_NOT_FOUND, details={"path": normalized})
                resolved = _resolve(data, now)
                if record is None:
                    record = DocumentRecord(
                        path=normalized,
                        collection=collection,
                        doc_id=doc_id,
                        data=encode_value(resolved),
                        created_at=now.replace(tzinfo=None),
                        updated_at=now.replace(tzinfo=None),
                    )
                    db.add(record)
                else:
                    current = decode_value(record.data) if merge else {}
                    current.update(resolved)
                    record.data = encode_value(current)
                    record.updated_at = now.replace(tzinfo=None)
                db.flush()
                results.append(_to_document(record))
            db.commit()
        except AppError:
            db.rollback()
            raise
        except SQLAlchemyError as exc:
            db.rollback()
            raise TransientBackendError(ErrorCatalog.DB_UNAVAILABLE, details={"operations": len(self._operations)}) from exc
        except Exception:
            db.rollback()
            raise
        self.committed = True
        self.results = results
        self._store._publish(touched)
        return results
