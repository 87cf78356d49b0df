from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

from app.sarisuki.backend.realtime import RealtimeHub
from app.sarisuki.schemas.profiles import UserProfile
from app.sarisuki.services.cart import Cart, SaleRecorder
from app.sarisuki.services.catalog import CatalogSync
from app.sarisuki.services.reports import SalesReport

logger = logging.getLogger(__name__)


@dataclass
class Workspace:
    """Long-lived view state of one signed-in user, scoped to one store."""

    uid: str
    store_id: str
    catalog: CatalogSync
    report: SalesReport
    cart: Cart = field(default_factory=Cart)
    recorder: SaleRecorder = field(init=False)

    def __post_init__(self) -> None:
        self.recorder = SaleRecorder(self.cart)

    def close(self) -> None:
        self.catalog.close()
        self.report.close()
        self.cart.clear()


class WorkspaceRegistry:
    def __init__(self, hub: RealtimeHub | None = None):
        self.hub = hub or RealtimeHub()
        self._workspaces: dict[str, Workspace] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._workspaces)

    def get(self, uid: str) -> Workspace | None:
        return self._workspaces.get(uid)

    def for_profile(self, profile: UserProfile) -> Workspace:
        stale = None
        with self._lock:
            workspace = self._workspaces.get(profile.uid)
            if workspace is not None and workspace.store_id != profile.store_id:
                stale = workspace
                workspace = None
            if workspace is None:
                workspace = Workspace(
                    uid=profile.uid,
                    store_id=profile.store_id,
                    catalog=CatalogSync(self.hub),
                    report=SalesReport(self.hub),
                )
                self._workspaces[profile.uid] = workspace
        if stale is not None:
            logger.info("Store changed for uid=%s, discarding workspace", profile.uid)
            stale.close()
        return workspace

    def discard(self, uid: str) -> None:
        with self._lock:
            workspace = self._workspaces.pop(uid, None)
        if workspace is not None:
            workspace.close()

    def close(self) -> None:
        with self._lock:
            workspaces = list(self._workspaces.values())
            self._workspaces = {}
        for workspace in workspaces:
            workspace.close()
