import pytest

from app.sarisuki.backend.identity import AuthClient, IdentityProvider
from app.sarisuki.core.error_catalog import AuthError, ErrorCatalog
from app.sarisuki.services.guard import RouteGuard
from app.sarisuki.services.session import SessionManager, profile_path


def _seed_profile(documents, uid: str, role: str, **extra) -> None:
    documents.set(
        profile_path(uid),
        {"uid": uid, "email": f"{uid}@example.com", "role": role, "store_id": "store001", **extra},
    )


def _signed_in_session(db_session, documents, role: str | None) -> SessionManager:
    auth = AuthClient(IdentityProvider(db_session))
    identity = auth.sign_up(f"{role or 'nobody'}@example.com", "secret1")
    if role is not None:
        _seed_profile(documents, identity.uid, role)
    return SessionManager(auth, documents).start()


def test_session_is_loading_until_started(db_session, documents):
    session = SessionManager(AuthClient(IdentityProvider(db_session)), documents)
    assert session.loading is True
    assert RouteGuard(["admin"]).evaluate(session).pending is True

    session.start()

    assert session.loading is False
    assert session.identity is None
    assert session.landing_route == "/login"


def test_session_tracks_sign_in_and_sign_out(db_session, documents):
    provider = IdentityProvider(db_session)
    registered = provider.sign_up("ana@example.com", "secret1")
    _seed_profile(documents, registered.uid, "staff", display_name="Ana")
    auth = AuthClient(provider)

    with SessionManager(auth, documents) as session:
        auth.sign_in("ANA@example.com", "secret1")
        assert session.identity.uid == registered.uid
        assert session.profile.display_name == "Ana"
        assert session.is_staff and not session.is_admin
        assert session.store_id == "store001"
        assert session.landing_route == "/staff/record-sale"

        assert session.logout() == "/login"
        assert session.identity is None
        assert session.profile is None
        assert session.loading is False
        assert session.logout() == "/login"


def test_token_resolves_until_session_closed(db_session, documents):
    provider = IdentityProvider(db_session)
    auth = AuthClient(provider)
    auth.sign_up("owner@example.com", "secret1")
    token = auth.token

    assert AuthClient(provider, token).current_identity is not None
    auth.sign_out()
    assert AuthClient(provider, token).current_identity is None
    assert AuthClient(provider, "not-a-token").current_identity is None


def test_duplicate_email_and_bad_password_are_auth_errors(db_session):
    provider = IdentityProvider(db_session)
    provider.sign_up("owner@example.com", "secret1")

    with pytest.raises(AuthError) as exc_info:
        provider.sign_up("Owner@Example.com", "secret2")
    assert exc_info.value.error is ErrorCatalog.EMAIL_ALREADY_REGISTERED

    with pytest.raises(AuthError) as exc_info:
        provider.sign_in("owner@example.com", "wrong-password")
    assert exc_info.value.error is ErrorCatalog.INVALID_CREDENTIALS


def test_update_profile_merges_and_refreshes_memory(db_session, documents):
    session = _signed_in_session(db_session, documents, "staff")
    uid = session.identity.uid

    session.update_profile(uid, {"display_name": "Bong"})

    assert session.profile.display_name == "Bong"
    stored = documents.get(profile_path(uid)).data
    assert stored["display_name"] == "Bong"
    assert stored["role"] == "staff"


def test_logout_failure_is_swallowed_and_logged(db_session, documents, caplog):
    session = _signed_in_session(db_session, documents, "staff")

    def broken_sign_out():
        raise RuntimeError("provider down")

    session.auth.sign_out = broken_sign_out

    assert session.logout() == "/login"
    assert session.loading is False
    assert "Error signing out" in caplog.text


def test_guard_redirects_staff_away_from_admin_routes(db_session, documents):
    session = _signed_in_session(db_session, documents, "staff")

    decision = RouteGuard(["admin"]).evaluate(session)

    assert decision.allowed is False
    assert decision.render_children is False
    assert decision.redirect_to == "/staff/record-sale"


def test_guard_redirects_admin_away_from_staff_routes(db_session, documents):
    session = _signed_in_session(db_session, documents, "admin")

    decision = RouteGuard(["staff"]).evaluate(session)

    assert decision.redirect_to == "/admin/products"


def test_guard_sends_identity_without_profile_to_login(db_session, documents):
    session = _signed_in_session(db_session, documents, None)

    assert session.identity is not None
    assert RouteGuard(["admin", "staff"]).evaluate(session).redirect_to == "/login"


def test_guard_allows_matching_role(db_session, documents):
    session = _signed_in_session(db_session, documents, "admin")

    decision = RouteGuard(["admin"]).evaluate(session)

    assert decision.allowed is True
    assert decision.render_children is True
