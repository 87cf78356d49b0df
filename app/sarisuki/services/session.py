from __future__ import annotations

import logging
from collections.abc import Callable

from pydantic import ValidationError

from app.sarisuki.backend.documents import DocumentStore, document_path
from app.sarisuki.backend.identity import AuthClient, Identity
from app.sarisuki.core.logging import log_event
from app.sarisuki.schemas.profiles import ROLE_ADMIN, ROLE_STAFF, UserProfile

logger = logging.getLogger(__name__)

LOGIN_ROUTE = "/login"
LANDING_ROUTES = {
    ROLE_ADMIN: "/admin/products",
    ROLE_STAFF: "/staff/record-sale",
}


def landing_route_for(role: str | None) -> str:
    return LANDING_ROUTES.get(role or "", LOGIN_ROUTE)


def profile_path(uid: str) -> str:
    return document_path("users", uid)


def profile_to_document(profile: UserProfile) -> dict:
    return profile.model_dump()


def load_profile(documents: DocumentStore, uid: str) -> UserProfile | None:
    document = documents.get(profile_path(uid))
    if document is None:
        return None
    try:
        return UserProfile.model_validate(document.data)
    except ValidationError:
        logger.warning("Malformed profile document for uid=%s", uid)
        return None


class SessionManager:
    """Current identity plus its store-scoped profile.

    ``loading`` stays true from construction until the first session-change
    notification has been fully handled; gated views render nothing while it
    is set.
    """

    def __init__(self, auth: AuthClient, documents: DocumentStore):
        self.auth = auth
        self.documents = documents
        self.identity: Identity | None = None
        self.profile: UserProfile | None = None
        self.loading = True
        self._unsubscribe: Callable[[], None] | None = None

    def start(self) -> SessionManager:
        if self._unsubscribe is None:
            self._unsubscribe = self.auth.on_session_change(self._handle_session_change)
        return self

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def __enter__(self) -> SessionManager:
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def store_id(self) -> str | None:
        return self.profile.store_id if self.profile else None

    @property
    def is_admin(self) -> bool:
        return self.profile is not None and self.profile.role == ROLE_ADMIN

    @property
    def is_staff(self) -> bool:
        return self.profile is not None and self.profile.role == ROLE_STAFF

    @property
    def landing_route(self) -> str:
        if self.identity is None or self.profile is None:
            return LOGIN_ROUTE
        return landing_route_for(self.profile.role)

    def fetch_profile(self, uid: str) -> UserProfile | None:
        return load_profile(self.documents, uid)

    def update_profile(self, uid: str, data: dict) -> None:
        self.documents.set(profile_path(uid), data, merge=True)
        if self.identity is not None and self.identity.uid == uid and self.profile is not None:
            self.profile = self.profile.model_copy(update=data)

    def logout(self) -> str:
        self.loading = True
        try:
            self.auth.sign_out()
            self.identity = None
            self.profile = None
            log_event(logger, "session.logout")
        except Exception:
            logger.exception("Error signing out")
        finally:
            self.loading = False
        return LOGIN_ROUTE

    def _handle_session_change(self, identity: Identity | None) -> None:
        self.loading = True
        self.identity = identity
        try:
            self.profile = self.fetch_profile(identity.uid) if identity is not None else None
        except Exception:
            logger.exception("Error fetching profile")
            self.profile = None
        finally:
            self.loading = False
