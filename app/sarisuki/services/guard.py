from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from app.sarisuki.services.session import LOGIN_ROUTE, SessionManager, landing_route_for


@dataclass(frozen=True)
class GuardDecision:
    allowed: bool
    pending: bool = False
    redirect_to: str | None = None

    @property
    def render_children(self) -> bool:
        return self.allowed and not self.pending


class RouteGuard:
    def __init__(self, allowed_roles: Iterable[str]):
        self.allowed_roles = frozenset(allowed_roles)

    def evaluate(self, session: SessionManager) -> GuardDecision:
        if session.loading:
            return GuardDecision(allowed=False, pending=True)
        if session.identity is None or session.profile is None:
            return GuardDecision(allowed=False, redirect_to=LOGIN_ROUTE)
        if session.profile.role not in self.allowed_roles:
            return GuardDecision(allowed=False, redirect_to=landing_route_for(session.profile.role))
        return GuardDecision(allowed=True)
