"""
Route guard: the check every protected page runs before it renders.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from auth.navigation import Navigator, Route
from auth.session_controller import RoleSpec, SessionController, SessionStatus
from services.auth_service.models import Session
from utils.logging_config import get_logger


class GuardDecision(str, Enum):
    PENDING = "pending"
    ALLOW = "allow"
    REDIRECT_LOGIN = "redirect_login"
    REDIRECT_DASHBOARD = "redirect_dashboard"


_REDIRECT_TARGETS = {
    GuardDecision.REDIRECT_LOGIN: Route.LOGIN,
    GuardDecision.REDIRECT_DASHBOARD: Route.DASHBOARD,
}


@dataclass(frozen=True)
class _Requirement:
    """What the page currently on screen asked for"""
    allowed_roles: Optional[Tuple] = None
    anonymous_only: bool = False


class RouteGuard:
    """
    Redirects visitors who may not see the current page

    The guard keeps the requirement of the last page that called it and
    re-evaluates it every time the session changes, so a logout or a forced
    401 logout elsewhere still moves the visitor off a protected page.
    """

    def __init__(self, controller: SessionController, navigator: Navigator):
        self.controller = controller
        self.navigator = navigator
        self.logger = get_logger(__name__)
        self._requirement: Optional[_Requirement] = None
        self._unsubscribe = controller.subscribe(self._on_session_change)

    def evaluate(self, allowed_roles: Optional[RoleSpec] = None) -> GuardDecision:
        """Decision for the current session, without side effects"""
        if self.controller.status == SessionStatus.UNINITIALIZED or self.controller.is_loading:
            return GuardDecision.PENDING
        if not self.controller.is_authenticated():
            return GuardDecision.REDIRECT_LOGIN
        if allowed_roles is not None and not self.controller.has_role(allowed_roles):
            return GuardDecision.REDIRECT_DASHBOARD
        return GuardDecision.ALLOW

    def require_auth(self, allowed_roles: Optional[RoleSpec] = None) -> GuardDecision:
        """
        Protect the current page

        Args:
            allowed_roles: Role or roles allowed on the page; None means any
                authenticated user

        Returns:
            PENDING while the session is settling (show a loading state),
            ALLOW to render, or the redirect that was issued
        """
        if allowed_roles is not None and not isinstance(allowed_roles, str):
            allowed_roles = tuple(allowed_roles)
        self._requirement = _Requirement(allowed_roles=allowed_roles)
        return self._apply()

    def redirect_if_authenticated(self) -> bool:
        """On login/signup pages: send a signed-in visitor to the dashboard"""
        self._requirement = _Requirement(anonymous_only=True)
        return self._apply() == GuardDecision.REDIRECT_DASHBOARD

    def release(self):
        """The page on screen is public; stop re-evaluating"""
        self._requirement = None

    def _apply(self) -> Optional[GuardDecision]:
        requirement = self._requirement
        if requirement is None:
            return None

        if requirement.anonymous_only:
            if not self.controller.is_loading and self.controller.is_authenticated():
                self.navigator.navigate(Route.DASHBOARD)
                return GuardDecision.REDIRECT_DASHBOARD
            return GuardDecision.ALLOW

        decision = self.evaluate(requirement.allowed_roles)
        target = _REDIRECT_TARGETS.get(decision)
        if target is not None and self.navigator.navigate(target):
            self.logger.info(f"Route guard redirect: {decision.value}")
        return decision

    def _on_session_change(self, session: Session):
        self._apply()

    def close(self):
        self._unsubscribe()
