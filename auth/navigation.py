"""
Routes, role allow-lists and the role-filtered navigation menu.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Collection, List, Optional, Tuple

from services.auth_service.models import Role


class Route(str, Enum):
    """Entry points of the portal, valued by URL path"""
    LOGIN = "login"
    SIGNUP = "signup"
    DASHBOARD = "dashboard"
    PROFILE = "profile"
    USERS = "users"
    DEPARTMENTS = "departments"
    ATTENDANCE = "attendance"
    LEAVES = "leaves"
    PAYROLL = "payroll"
    DOCUMENTS = "documents"
    VERIFY_EMAIL = "verify-email"
    RESEND_VERIFICATION = "resend-verification"

    @property
    def url_path(self) -> str:
        return self.value


# Pages reachable without a session
PUBLIC_ROUTES = frozenset({
    Route.LOGIN,
    Route.SIGNUP,
    Route.VERIFY_EMAIL,
    Route.RESEND_VERIFICATION,
})

# Routes from which a failed session restore does not force a login redirect
AUTH_ENTRY_ROUTES = frozenset({Route.LOGIN, Route.SIGNUP})

ALL_ROLES: Tuple[Role, ...] = tuple(Role)

# Allow-lists declared by role-gated pages
PAGE_ROLES = {
    Route.USERS: (Role.SUPERADMIN, Role.ADMIN, Role.HR),
}


class Navigator(ABC):
    """
    Moves the visitor between pages

    Navigating to the route the visitor is already on (or already being sent
    to) is a no-op, so the controller and the route guard can both react to
    the same session change without producing two redirects.
    """

    def __init__(self):
        self.current_route: Optional[Route] = None
        self._lock = threading.Lock()

    def mark_current(self, route: Optional[Route]):
        """Record the page being rendered"""
        with self._lock:
            self.current_route = route

    def navigate(self, route: Route) -> bool:
        """Returns False when the visitor is already there"""
        with self._lock:
            if route == self.current_route:
                return False
            self.current_route = route
        self._go(route)
        return True

    @abstractmethod
    def _go(self, route: Route) -> None:
        ...

    @abstractmethod
    def schedule_reload(self, delay_seconds: float) -> None:
        """Ask for a full page reload after `delay_seconds`"""
        ...

    @property
    def pending(self) -> Optional[Route]:
        """Redirect requested but not carried out yet"""
        return None

    def take_reload(self) -> Optional[float]:
        """Pop the delay of a scheduled reload that still has to be emitted"""
        return None

    def flush(self) -> None:
        """Carry out deferred navigation; immediate navigators have nothing to do"""


@dataclass(frozen=True)
class MenuItem:
    label: str
    route: Route
    roles: Tuple[Role, ...]
    icon: str = ""


MENU_ITEMS: Tuple[MenuItem, ...] = (
    MenuItem("Dashboard", Route.DASHBOARD, ALL_ROLES, "🏠"),
    MenuItem("Users", Route.USERS, (Role.ADMIN, Role.HR), "👥"),
    MenuItem("Departments", Route.DEPARTMENTS, (Role.ADMIN, Role.HR), "🏢"),
    MenuItem("Attendance", Route.ATTENDANCE, (Role.ADMIN, Role.HR, Role.EMPLOYEE), "🕒"),
    MenuItem("Leaves", Route.LEAVES, (Role.ADMIN, Role.HR, Role.EMPLOYEE), "📅"),
    MenuItem("Payroll", Route.PAYROLL, (Role.ADMIN, Role.PAYROLL), "💵"),
    MenuItem("Documents", Route.DOCUMENTS, (Role.ADMIN, Role.HR, Role.EMPLOYEE), "📄"),
)


def visible_menu_items(controller, available_routes: Optional[Collection[Route]] = None) -> List[MenuItem]:
    """
    Menu entries the current user may see

    A super-admin only gets the dashboard (the companies list); everyone
    else gets the items whose role list contains their role.

    Args:
        controller: SessionController answering has_role / is_super_admin
        available_routes: If given, drop items whose page is not registered
    """
    if controller.user is None:
        return []

    if controller.is_super_admin():
        items = [item for item in MENU_ITEMS if item.route == Route.DASHBOARD]
    else:
        items = [item for item in MENU_ITEMS if controller.has_role(item.roles)]

    if available_routes is not None:
        items = [item for item in items if item.route in available_routes]
    return items
