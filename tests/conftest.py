"""
Shared fixtures: in-memory storage, recording navigator/notifier and an
httpx.MockTransport-backed API client.
"""

import sys
from pathlib import Path
from typing import Callable, List, Optional

import httpx
import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from auth.navigation import Navigator, Route  # noqa: E402
from auth.route_guard import RouteGuard  # noqa: E402
from auth.session_controller import SessionController  # noqa: E402
from config.app_config import AuthConfig  # noqa: E402
from infrastructure.storage.browser_storage import MemoryStorage  # noqa: E402
from services.api_service.client import ApiClient  # noqa: E402
from services.auth_service.credential_store import CredentialStore  # noqa: E402
from services.ui_service.notifications import Notifier  # noqa: E402

BASE_URL = "http://api.test/api/v1"

ADMIN_USER = {
    "id": "u-1",
    "username": "demoadmin",
    "email": "admin@demo.com",
    "first_name": "Demo",
    "last_name": "Admin",
    "role": "admin",
    "is_super_admin": False,
    "status": "active",
    "email_verified": True,
}

EMPLOYEE_USER = {
    "id": "u-2",
    "username": "jdoe",
    "email": "jdoe@demo.com",
    "first_name": "Jane",
    "last_name": "Doe",
    "role": "employee",
    "status": "active",
}

SUPER_ADMIN_USER = {
    "id": "u-0",
    "username": "superadmin",
    "email": "root@workzen.io",
    "first_name": "Super",
    "last_name": "Admin",
    "role": "admin",
    "is_super_admin": True,
}

DEMO_COMPANY = {"id": "c-1", "name": "Demo Corp", "is_approved": True, "is_active": True}


class RecordingNavigator(Navigator):
    """Navigator that remembers where it was sent"""

    def __init__(self):
        super().__init__()
        self.history: List[Route] = []
        self.reloads: List[float] = []

    def _go(self, route: Route) -> None:
        self.history.append(route)

    def schedule_reload(self, delay_seconds: float) -> None:
        self.reloads.append(delay_seconds)


class RecordingNotifier(Notifier):
    """Notifier that remembers every message"""

    def __init__(self):
        self.successes: List[str] = []
        self.errors: List[str] = []
        self.infos: List[str] = []

    def success(self, message: str) -> None:
        self.successes.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)

    def info(self, message: str) -> None:
        self.infos.append(message)


def envelope(data=None, success: bool = True, message: str = "", status_code: int = 200) -> httpx.Response:
    """JSON envelope response as the backend sends it"""
    return httpx.Response(
        status_code,
        json={"success": success, "message": message, "data": data},
    )


def error_response(status_code: int, message: str = "") -> httpx.Response:
    return httpx.Response(status_code, json={"success": False, "message": message})


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def credentials(storage) -> CredentialStore:
    return CredentialStore(storage)


@pytest.fixture
def navigator() -> RecordingNavigator:
    return RecordingNavigator()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def make_client(credentials) -> Callable[..., ApiClient]:
    """Factory: ApiClient whose requests are answered by `handler`"""
    clients = []

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> ApiClient:
        client = ApiClient(BASE_URL, credentials, transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.close()


@pytest.fixture
def make_controller(make_client, credentials, navigator, notifier) -> Callable[..., SessionController]:
    """Factory: SessionController wired to the recording fakes"""

    def factory(handler: Callable[[httpx.Request], httpx.Response],
                auth_config: Optional[AuthConfig] = None) -> SessionController:
        api = make_client(handler)
        return SessionController(api, credentials, navigator, notifier, auth_config or AuthConfig())

    return factory


@pytest.fixture
def make_guard(navigator) -> Callable[[SessionController], RouteGuard]:
    def factory(controller: SessionController) -> RouteGuard:
        return RouteGuard(controller, navigator)

    return factory
