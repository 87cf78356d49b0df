from fastapi import Depends, Request

from app.sarisuki.backend.documents import DocumentStore
from app.sarisuki.backend.identity import AuthClient, IdentityProvider
from app.sarisuki.backend.realtime import RealtimeHub
from app.sarisuki.core.context import bind_request_context
from app.sarisuki.core.error_catalog import RedirectRequired
from app.sarisuki.core.security import oauth2_scheme
from app.sarisuki.db.session import get_db
from app.sarisuki.schemas.profiles import ROLE_ADMIN, ROLE_STAFF
from app.sarisuki.services.guard import RouteGuard
from app.sarisuki.services.session import LOGIN_ROUTE, SessionManager
from app.sarisuki.services.workspaces import Workspace, WorkspaceRegistry


def get_hub(request: Request) -> RealtimeHub:
    return request.app.state.hub


def get_workspaces(request: Request) -> WorkspaceRegistry:
    return request.app.state.workspaces


def get_documents(db=Depends(get_db), hub: RealtimeHub = Depends(get_hub)) -> DocumentStore:
    return DocumentStore(db, hub)


def get_auth_client(token: str | None = Depends(oauth2_scheme), db=Depends(get_db)) -> AuthClient:
    return AuthClient(IdentityProvider(db), token)


def get_session(
    request: Request,
    auth: AuthClient = Depends(get_auth_client),
    documents: DocumentStore = Depends(get_documents),
):
    session = SessionManager(auth, documents).start()
    bind_request_context(
        request,
        user_id=session.identity.uid if session.identity else None,
        store_id=session.store_id,
        role=session.profile.role if session.profile else None,
    )
    try:
        yield session
    finally:
        session.close()


def require_roles(*roles: str):
    guard = RouteGuard(roles)

    def dependency(session: SessionManager = Depends(get_session)) -> SessionManager:
        decision = guard.evaluate(session)
        if not decision.render_children:
            raise RedirectRequired(decision.redirect_to or LOGIN_ROUTE)
        return session

    return dependency


require_admin = require_roles(ROLE_ADMIN)
require_staff = require_roles(ROLE_STAFF)
require_signed_in = require_roles(ROLE_ADMIN, ROLE_STAFF)


def get_admin_workspace(
    session: SessionManager = Depends(require_admin),
    workspaces: WorkspaceRegistry = Depends(get_workspaces),
) -> Workspace:
    return workspaces.for_profile(session.profile)


def get_staff_workspace(
    session: SessionManager = Depends(require_staff),
    workspaces: WorkspaceRegistry = Depends(get_workspaces),
) -> Workspace:
    return workspaces.for_profile(session.profile)


__all__ = [
    "get_hub",
    "get_workspaces",
    "get_documents",
    "get_auth_client",
    "get_session",
    "require_roles",
    "require_admin",
    "require_staff",
    "require_signed_in",
    "get_admin_workspace",
    "get_staff_workspace",
]
