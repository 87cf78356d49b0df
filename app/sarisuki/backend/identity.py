from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from jose import JWTError
from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.sarisuki.core.error_catalog import AuthError, ErrorCatalog, TransientBackendError
from app.sarisuki.core.security import (
    TokenData,
    create_session_token,
    decode_token,
    get_password_hash,
    verify_password,
)
from app.sarisuki.db.models import Identity as IdentityRecord
from app.sarisuki.db.models import IdentitySession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    uid: str
    email: str | None


def _normalize_email(email: str) -> str:
    return email.strip().lower()


class IdentityProvider:
    """Credential store and session issuer.

    Sessions are opaque bearer tokens (JWT carrying ``sub`` and ``sid``);
    a session is valid only while its ``identity_sessions`` row exists.
    """

    def __init__(self, db):
        self.db = db

    def sign_up(self, email: str, password: str) -> Identity:
        normalized = _normalize_email(email)
        existing = self.db.execute(
            select(IdentityRecord).where(func.lower(IdentityRecord.email) == normalized)
        ).scalars().first()
        if existing is not None:
            raise AuthError(ErrorCatalog.EMAIL_ALREADY_REGISTERED)
        record = IdentityRecord(email=normalized, hashed_password=get_password_hash(password))
        try:
            self.db.add(record)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise AuthError(ErrorCatalog.EMAIL_ALREADY_REGISTERED) from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise TransientBackendError(ErrorCatalog.REGISTRATION_FAILED) from exc
        self.db.refresh(record)
        return Identity(uid=record.uid, email=record.email)

    def sign_in(self, email: str, password: str) -> Identity:
        record = self.db.execute(
            select(IdentityRecord).where(func.lower(IdentityRecord.email) == _normalize_email(email))
        ).scalars().first()
        if record is None or not verify_password(password, record.hashed_password):
            raise AuthError(ErrorCatalog.INVALID_CREDENTIALS)
        return Identity(uid=record.uid, email=record.email)

    def open_session(self, identity: Identity) -> str:
        session = IdentitySession(uid=identity.uid)
        self.db.add(session)
        self.db.commit()
        self.db.refresh(session)
        return create_session_token(identity.uid, session.id, identity.email)

    def resolve(self, token: str | None) -> Identity | None:
        token_data = self._token_data(token)
        if token_data is None:
            return None
        session = self.db.get(IdentitySession, token_data.sid)
        if session is None or session.uid != token_data.sub:
            return None
        record = self.db.get(IdentityRecord, token_data.sub)
        if record is None:
            return None
        return Identity(uid=record.uid, email=record.email)

    def close_session(self, token: str | None) -> None:
        token_data = self._token_data(token)
        if token_data is None:
            return
        session = self.db.get(IdentitySession, token_data.sid)
        if session is None:
            return
        self.db.delete(session)
        self.db.commit()

    @staticmethod
    def _token_data(token: str | None) -> TokenData | None:
        if not token:
            return None
        try:
            return TokenData(**decode_token(token))
        except (JWTError, ValidationError, TypeError):
            return None


SessionListener = Callable[[Identity | None], None]


class AuthClient:
    """Client-side view of the identity provider: one signed-in identity at a time.

    Listeners registered with ``on_session_change`` are called once with the
    current identity and then after every sign-in or sign-out.
    """

    def __init__(self, provider: IdentityProvider, token: str | None = None):
        self.provider = provider
        self.token: str | None = None
        self.current_identity: Identity | None = None
        self._listeners: list[SessionListener] = []
        if token:
            identity = provider.resolve(token)
            if identity is not None:
                self.token = token
                self.current_identity = identity

    def sign_in(self, email: str, password: str) -> Identity:
        identity = self.provider.sign_in(email, password)
        self._open(identity)
        return identity

    def sign_up(self, email: str, password: str) -> Identity:
        identity = self.provider.sign_up(email, password)
        self._open(identity)
        return identity

    def sign_out(self) -> None:
        token = self.token
        self.provider.close_session(token)
        self.token = None
        self.current_identity = None
        self._notify()

    def on_session_change(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)
        listener(self.current_identity)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _open(self, identity: Identity) -> None:
        self.token = self.provider.open_session(identity)
        self.current_identity = identity
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.current_identity)
