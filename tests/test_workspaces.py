from decimal import Decimal

from app.sarisuki.schemas.products import Product
from app.sarisuki.schemas.profiles import UserProfile
from app.sarisuki.services.catalog import products_collection
from app.sarisuki.services.workspaces import WorkspaceRegistry


def _profile(store_id: str) -> UserProfile:
    return UserProfile(uid="staff-1", email="cashier@example.com", role="staff", store_id=store_id)


def test_workspace_is_reused_for_same_store(hub):
    registry = WorkspaceRegistry(hub)

    first = registry.for_profile(_profile("store001"))
    second = registry.for_profile(_profile("store001"))

    assert first is second
    assert first.recorder.cart is first.cart
    assert len(registry) == 1


def test_store_change_tears_down_workspace(documents, hub):
    registry = WorkspaceRegistry(hub)
    workspace = registry.for_profile(_profile("store001"))
    workspace.catalog.bind("store001", documents)
    workspace.cart.add(Product(id="rice", name="Rice", price=Decimal("50.00"), store_id="store001"))

    replacement = registry.for_profile(_profile("store002"))

    assert replacement is not workspace
    assert replacement.cart.is_empty
    assert workspace.cart.is_empty
    assert hub.active_count(products_collection("store001")) == 0


def test_discard_cancels_subscriptions(documents, hub):
    registry = WorkspaceRegistry(hub)
    workspace = registry.for_profile(_profile("store001"))
    workspace.catalog.bind("store001", documents)
    assert hub.active_count() == 1

    registry.discard("staff-1")
    registry.discard("staff-1")

    assert registry.get("staff-1") is None
    assert hub.active_count() == 0
