from datetime import datetime, timezone
from decimal import Decimal
import threading

import pytest

from app.sarisuki.backend import documents as documents_module
from app.sarisuki.backend.documents import (
    SERVER_TIMESTAMP,
    DocumentStore,
    collection_path,
    decode_value,
    document_path,
    encode_value,
)
from app.sarisuki.backend.realtime import Query
from app.sarisuki.core.error_catalog import AppError, ErrorCatalog


def test_path_helpers_reject_wrong_depth():
    assert collection_path("stores", "abc", "products") == "stores/abc/products"
    assert document_path("users", "u1") == "users/u1"
    with pytest.raises(ValueError):
        collection_path("users", "u1")
    with pytest.raises(ValueError):
        document_path("stores")


def test_decimal_and_timestamp_values_survive_encoding():
    moment = datetime(2024, 5, 1, 8, 30, tzinfo=timezone.utc)
    encoded = encode_value({"price": Decimal("12.50"), "at": moment, "tags": [Decimal("1.00")]})

    assert encoded["price"] == {"$decimal": "12.50"}
    assert decode_value(encoded) == {"price": Decimal("12.50"), "at": moment, "tags": [Decimal("1.00")]}


def test_set_get_merge_and_server_timestamp(documents: DocumentStore):
    documents.set("users/u1", {"email": "a@example.com", "role": "staff", "seen_at": SERVER_TIMESTAMP})
    documents.set("users/u1", {"display_name": "Ana"}, merge=True)

    document = documents.get("users/u1")
    assert document.id == "u1"
    assert document.data["email"] == "a@example.com"
    assert document.data["display_name"] == "Ana"
    assert isinstance(document.data["seen_at"], datetime)

    documents.set("users/u1", {"email": "b@example.com"})
    assert documents.get("users/u1").data == {"email": "b@example.com"}


def test_update_requires_existing_document(documents: DocumentStore):
    with pytest.raises(AppError) as exc_info:
        documents.update("stores/s1/products/missing", {"name": "x"})
    assert exc_info.value.error is ErrorCatalog.DOCUMENT_NOT_FOUND


def test_batch_commits_all_or_nothing(documents: DocumentStore):
    batch = documents.batch()
    batch.set("users/u1", {"role": "admin"})
    batch.update("stores/missing", {"name": "nope"})
    with pytest.raises(AppError):
        batch.commit()

    assert documents.get("users/u1") is None


def test_batch_rolls_back_on_unexpected_errors(documents: DocumentStore, monkeypatch):
    real_encode = documents_module.encode_value

    def encode(value):
        if isinstance(value, dict) and value.get("role") == "broken":
            raise ValueError("cannot encode")
        return real_encode(value)

    monkeypatch.setattr(documents_module, "encode_value", encode)
    batch = documents.batch()
    batch.set("users/u1", {"role": "admin"})
    batch.set("users/u2", {"role": "broken"})
    with pytest.raises(ValueError):
        batch.commit()

    assert documents.get("users/u1") is None
    documents.set("users/u3", {"role": "staff"})
    assert documents.get("users/u3").data == {"role": "staff"}
    assert documents.get("users/u1") is None


def test_query_filters_and_orders(documents: DocumentStore):
    for name, price in [("Soap", "25.00"), ("Rice", "50.00"), ("Oil", "120.00")]:
        documents.add("stores/s1/products", {"name": name, "price": Decimal(price)})
    documents.add("stores/s2/products", {"name": "Other", "price": Decimal("1.00")})

    rows = documents.query(
        Query("stores/s1/products").where("price", ">=", Decimal("30")).order("price", descending=True)
    )

    assert [row.data["name"] for row in rows] == ["Oil", "Rice"]


def test_subscription_receives_snapshots_until_cancelled(documents: DocumentStore, hub):
    snapshots = []
    subscription = hub.subscribe(
        Query("stores/s1/products"),
        documents,
        on_data=lambda docs: snapshots.append([doc.data["name"] for doc in docs]),
    )
    documents.add("stores/s1/products", {"name": "Rice"})
    documents.add("stores/s2/products", {"name": "Elsewhere"})

    assert snapshots == [[], ["Rice"]]
    assert hub.active_count("stores/s1/products") == 1

    subscription.cancel()
    subscription.cancel()
    documents.add("stores/s1/products", {"name": "Oil"})

    assert snapshots == [[], ["Rice"]]
    assert hub.active_count() == 0


def test_failing_listener_reports_error_and_closes(documents: DocumentStore, hub):
    errors = []

    def explode(docs):
        if docs:
            raise RuntimeError("boom")

    subscription = hub.subscribe(
        Query("stores/s1/sales"),
        documents,
        on_data=explode,
        on_error=errors.append,
    )
    documents.add("stores/s1/sales", {"total_amount": Decimal("1.00")})

    assert len(errors) == 1
    assert subscription.active is False
    assert hub.active_count() == 0


def test_overlapping_refreshes_deliver_the_newest_snapshot_last(hub):
    state = {"version": 0}
    first_publish_queried = threading.Event()
    release_first_publish = threading.Event()
    query_calls = []

    class SlowStore:
        def query(self, query):
            query_calls.append(query.collection)
            snapshot = [state["version"]]
            if len(query_calls) == 2:
                first_publish_queried.set()
                release_first_publish.wait(timeout=5)
            return snapshot

    store = SlowStore()
    received = []
    hub.subscribe(Query("stores/s1/products"), store, on_data=received.append)

    state["version"] = 1
    older = threading.Thread(target=hub.publish, args=(["stores/s1/products"], store))
    older.start()
    assert first_publish_queried.wait(timeout=5)

    state["version"] = 2
    newer = threading.Thread(target=hub.publish, args=(["stores/s1/products"], store))
    newer.start()
    newer.join(timeout=0.2)
    release_first_publish.set()
    older.join(timeout=5)
    newer.join(timeout=5)

    assert received == [[0], [1], [2]]
