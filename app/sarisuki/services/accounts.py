from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from app.sarisuki.backend.documents import SERVER_TIMESTAMP, DocumentStore, document_path
from app.sarisuki.backend.identity import AuthClient
from app.sarisuki.core.config import settings
from app.sarisuki.core.error_catalog import (
    AuthError,
    ErrorCatalog,
    ScopeError,
    TransientBackendError,
)
from app.sarisuki.core.logging import log_event
from app.sarisuki.schemas.profiles import (
    ROLE_ADMIN,
    ROLE_STAFF,
    AdminRegisterRequest,
    LoginRequest,
    StaffRegisterRequest,
    Store,
    UserProfile,
)
from app.sarisuki.services.session import LANDING_ROUTES, load_profile, profile_path, profile_to_document

logger = logging.getLogger(__name__)

STORE_ID_ATTEMPTS = 5


@dataclass(frozen=True)
class RegistrationResult:
    profile: UserProfile
    message: str


@dataclass(frozen=True)
class LoginResult:
    token: str
    profile: UserProfile
    redirect_to: str


def store_path(store_id: str) -> str:
    return document_path("stores", store_id)


def new_store_id() -> str:
    return uuid.uuid4().hex[: settings.STORE_ID_LENGTH]


def fetch_store(documents: DocumentStore, store_id: str) -> Store | None:
    document = documents.get(store_path(store_id))
    if document is None:
        return None
    return Store.model_validate({"id": document.id, **document.data})


def _allocate_store_id(documents: DocumentStore) -> str:
    for _ in range(STORE_ID_ATTEMPTS):
        store_id = new_store_id()
        if not documents.exists(store_path(store_id)):
            return store_id
        logger.warning("Store id collision on %s, retrying", store_id)
    raise TransientBackendError(ErrorCatalog.REGISTRATION_FAILED, details={"reason": "store id allocation"})


def _finish_registration(auth: AuthClient, uid: str, write) -> None:
    # The identity exists from here on; a failed profile write leaves it orphaned.
    try:
        write()
    except TransientBackendError as exc:
        logger.error("Profile write failed after sign-up; identity %s has no profile", uid)
        raise TransientBackendError(ErrorCatalog.REGISTRATION_FAILED, details={"uid": uid}) from exc
    finally:
        auth.sign_out()


def register_admin(auth: AuthClient, documents: DocumentStore, payload: AdminRegisterRequest) -> RegistrationResult:
    """Create an admin identity together with a brand-new store."""
    store_id = _allocate_store_id(documents)
    identity = auth.sign_up(payload.email, payload.password)
    profile = UserProfile(
        uid=identity.uid,
        email=identity.email,
        role=ROLE_ADMIN,
        store_id=store_id,
        store_name=payload.store_name,
    )

    def write() -> None:
        with documents.batch() as batch:
            batch.set(profile_path(identity.uid), profile_to_document(profile))
            batch.set(
                store_path(store_id),
                {"name": payload.store_name, "admin_uid": identity.uid, "created_at": SERVER_TIMESTAMP},
            )

    _finish_registration(auth, identity.uid, write)
    log_event(logger, "account.admin_registered", uid=identity.uid, store_id=store_id)
    return RegistrationResult(
        profile=profile,
        message=(
            f'Your store "{payload.store_name}" has been created. '
            f"Your Store ID is {store_id}. Please save it."
        ),
    )


def register_staff(auth: AuthClient, documents: DocumentStore, payload: StaffRegisterRequest) -> RegistrationResult:
    """Create a staff identity attached to an existing store.

    The store is looked up before the identity is created, so an unknown
    store id never leaves an account behind.
    """
    store = fetch_store(documents, payload.store_id)
    if store is None:
        raise ScopeError(ErrorCatalog.STORE_NOT_FOUND, details={"store_id": payload.store_id})

    identity = auth.sign_up(payload.email, payload.password)
    profile = UserProfile(
        uid=identity.uid,
        email=identity.email,
        display_name=payload.display_name,
        role=ROLE_STAFF,
        store_id=store.id,
        store_name=store.name or "Unknown Store",
    )
    _finish_registration(
        auth,
        identity.uid,
        lambda: documents.set(profile_path(identity.uid), profile_to_document(profile)),
    )
    log_event(logger, "account.staff_registered", uid=identity.uid, store_id=store.id)
    return RegistrationResult(profile=profile, message="Your staff account has been created.")


def login(auth: AuthClient, documents: DocumentStore, payload: LoginRequest) -> LoginResult:
    identity = auth.sign_in(payload.email, payload.password)
    try:
        profile = load_profile(documents, identity.uid)
        if profile is None:
            raise AuthError(ErrorCatalog.PROFILE_NOT_FOUND)
        if profile.store_id != payload.store_id:
            raise ScopeError(ErrorCatalog.STORE_SCOPE_MISMATCH)
        if profile.role not in LANDING_ROUTES:
            raise AuthError(ErrorCatalog.UNKNOWN_ROLE, details={"role": profile.role})
    except Exception:
        auth.sign_out()
        raise
    log_event(logger, "account.login", uid=identity.uid, store_id=profile.store_id, role=profile.role)
    return LoginResult(token=auth.token, profile=profile, redirect_to=LANDING_ROUTES[profile.role])

