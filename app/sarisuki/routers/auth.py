from fastapi import APIRouter, Depends, Request, status

from app.sarisuki.backend.documents import DocumentStore
from app.sarisuki.backend.identity import AuthClient
from app.sarisuki.core.context import bind_request_context
from app.sarisuki.core.deps import (
    get_auth_client,
    get_documents,
    get_session,
    get_workspaces,
    require_signed_in,
)
from app.sarisuki.core.error_catalog import RedirectRequired
from app.sarisuki.schemas.profiles import (
    AdminRegisterRequest,
    LoginRequest,
    LogoutResponse,
    ProfileResponse,
    ProfileUpdateRequest,
    RegistrationResponse,
    StaffRegisterRequest,
    TokenResponse,
)
from app.sarisuki.services import accounts
from app.sarisuki.services.session import LOGIN_ROUTE, SessionManager
from app.sarisuki.services.workspaces import WorkspaceRegistry

router = APIRouter()


@router.get("/", summary="Landing redirect", status_code=status.HTTP_303_SEE_OTHER)
def landing(session: SessionManager = Depends(get_session)):
    raise RedirectRequired(session.landing_route)


@router.post("/login", response_model=TokenResponse)
def login(
    request: Request,
    payload: LoginRequest,
    auth: AuthClient = Depends(get_auth_client),
    documents: DocumentStore = Depends(get_documents),
):
    result = accounts.login(auth, documents, payload)
    bind_request_context(
        request,
        user_id=result.profile.uid,
        store_id=result.profile.store_id,
        role=result.profile.role,
    )
    return TokenResponse(
        access_token=result.token,
        redirect_to=result.redirect_to,
        profile=result.profile,
        trace_id=getattr(request.state, "trace_id", ""),
    )


def _registration_response(request: Request, result: accounts.RegistrationResult) -> RegistrationResponse:
    return RegistrationResponse(
        uid=result.profile.uid,
        store_id=result.profile.store_id,
        store_name=result.profile.store_name,
        role=result.profile.role,
        message=result.message,
        redirect_to=LOGIN_ROUTE,
        trace_id=getattr(request.state, "trace_id", ""),
    )


@router.post("/register/admin", response_model=RegistrationResponse, status_code=status.HTTP_201_CREATED)
def register_admin(
    request: Request,
    payload: AdminRegisterRequest,
    auth: AuthClient = Depends(get_auth_client),
    documents: DocumentStore = Depends(get_documents),
):
    result = accounts.register_admin(auth, documents, payload)
    return _registration_response(request, result)


@router.post("/register/staff", response_model=RegistrationResponse, status_code=status.HTTP_201_CREATED)
def register_staff(
    request: Request,
    payload: StaffRegisterRequest,
    auth: AuthClient = Depends(get_auth_client),
    documents: DocumentStore = Depends(get_documents),
):
    result = accounts.register_staff(auth, documents, payload)
    return _registration_response(request, result)


@router.post("/logout", response_model=LogoutResponse)
def logout(
    request: Request,
    session: SessionManager = Depends(get_session),
    workspaces: WorkspaceRegistry = Depends(get_workspaces),
):
    uid = session.identity.uid if session.identity else None
    redirect_to = session.logout()
    if uid is not None:
        workspaces.discard(uid)
    return LogoutResponse(ok=True, redirect_to=redirect_to, trace_id=getattr(request.state, "trace_id", ""))


def _profile_response(request: Request, session: SessionManager) -> ProfileResponse:
    return ProfileResponse(
        profile=session.profile,
        is_admin=session.is_admin,
        is_staff=session.is_staff,
        trace_id=getattr(request.state, "trace_id", ""),
    )


@router.get("/me", response_model=ProfileResponse)
def me(request: Request, session: SessionManager = Depends(require_signed_in)):
    return _profile_response(request, session)


@router.patch("/me", response_model=ProfileResponse)
def update_me(
    request: Request,
    payload: ProfileUpdateRequest,
    session: SessionManager = Depends(require_signed_in),
):
    session.update_profile(session.identity.uid, payload.model_dump())
    return _profile_response(request, session)
