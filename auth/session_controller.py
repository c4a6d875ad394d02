"""
Session/auth controller: owns the in-memory session and orchestrates
login, signup, logout, password change and session restore.
"""

import threading
from enum import Enum
from typing import Callable, Iterable, List, Optional, Union

from auth.navigation import AUTH_ENTRY_ROUTES, Navigator, Route
from config.app_config import AuthConfig
from services.api_service.client import ApiClient
from services.api_service.errors import SessionExpiredError, ValidationError
from services.auth_service.credential_store import CredentialStore
from services.auth_service.models import Company, Role, Session, SignupRequest, User
from services.ui_service.notifications import Notifier, error_message
from utils.logging_config import get_logger, log_execution_time, log_user_interaction
from utils.validators import require, validate_email, validate_login, validate_new_password

SessionListener = Callable[[Session], None]
RoleSpec = Union[str, Role, Iterable[Union[str, Role]]]


class SessionStatus(str, Enum):
    UNINITIALIZED = "uninitialized"
    RESTORING = "restoring"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"
    SUBMITTING = "submitting"


class SessionController:
    """
    Current session plus the operations that change it

    Collaborators are injected; one controller lives for the whole browser
    session and is only reset through logout or a 401 from the API.

    Args:
        api: API gateway client; the controller subscribes to its
            unauthorized events at construction
        credentials: Persistent credential store shared with the client
        navigator: Page navigation
        notifier: Toast notifications
        auth_config: Password rules and logout reload delay
    """

    def __init__(self, api: ApiClient, credentials: CredentialStore, navigator: Navigator,
                 notifier: Notifier, auth_config: Optional[AuthConfig] = None):
        self.api = api
        self.credentials = credentials
        self.navigator = navigator
        self.notifier = notifier
        self.auth_config = auth_config or AuthConfig()
        self.logger = get_logger(__name__)

        self._lock = threading.RLock()
        self._status = SessionStatus.UNINITIALIZED
        self._user: Optional[User] = None
        self._company: Optional[Company] = None
        self._listeners: List[SessionListener] = []
        self._last_snapshot = self.snapshot()

        self._unsubscribe_api = api.on_unauthorized(self._on_unauthorized)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def user(self) -> Optional[User]:
        return self._user

    @property
    def company(self) -> Optional[Company]:
        return self._company

    @property
    def is_loading(self) -> bool:
        return self._status in (SessionStatus.RESTORING, SessionStatus.SUBMITTING)

    def is_authenticated(self) -> bool:
        """User present and the token still stored"""
        return self._user is not None and self.credentials.read_token() is not None

    def snapshot(self) -> Session:
        return Session(
            user=self._user,
            company=self._company,
            is_authenticated=self.is_authenticated(),
            is_loading=self.is_loading,
        )

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Call `listener` with the new Session whenever it changes"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _update(self, status: SessionStatus, **fields):
        with self._lock:
            previous = self._status
            self._status = status
            if "user" in fields:
                self._user = fields["user"]
            if "company" in fields:
                self._company = fields["company"]
            session = self.snapshot()
            changed = session != self._last_snapshot
            self._last_snapshot = session

        if previous != status:
            self.logger.info(f"Session {previous.value} -> {status.value}")
        if changed:
            for listener in list(self._listeners):
                listener(session)

    def _clear(self):
        self._update(SessionStatus.ANONYMOUS, user=None, company=None)

    # ------------------------------------------------------------------
    # Restore
    # ------------------------------------------------------------------

    def restore(self, current_route: Optional[Route] = None):
        """
        Turn a stored token back into a session; runs once per controller

        Args:
            current_route: Page being mounted; defaults to the navigator's
        """
        if self._status != SessionStatus.UNINITIALIZED:
            return

        if current_route is None:
            current_route = self.navigator.current_route

        if self.credentials.read_token() is None:
            self._update(SessionStatus.ANONYMOUS)
            return

        self._update(SessionStatus.RESTORING)
        try:
            with log_execution_time(self.logger, "session_restore"):
                user = self.api.fetch_current_user()
        except Exception:
            self.credentials.clear_all()
            self._clear()
            if current_route not in AUTH_ENTRY_ROUTES:
                self.navigator.navigate(Route.LOGIN)
            return

        self._update(SessionStatus.AUTHENTICATED, user=user, company=self.credentials.read_company())
        self.logger.info(f"Session restored for user: {user.username}")

    def refresh_user(self) -> User:
        """Re-fetch /auth/me after the profile changed"""
        user = self.api.fetch_current_user()
        self._update(self._status, user=user)
        return user

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def _submit(self, action: Callable, fallback: str, interaction: str):
        """
        Run `action` in SUBMITTING

        On failure the previous status comes back (unless a 401 already moved
        the session on), the visitor is notified and the error re-raised. On
        success the caller picks the next status.

        Returns:
            (result, previous status)
        """
        previous = self._status
        self._update(SessionStatus.SUBMITTING)
        log_user_interaction(self.logger, interaction)
        try:
            with log_execution_time(self.logger, interaction):
                result = action()
        except Exception as e:
            if self._status == SessionStatus.SUBMITTING:
                self._update(previous)
            self._notify_failure(e, fallback)
            raise
        return result, previous

    def _notify_failure(self, error: Exception, fallback: str):
        # A 401 already logged the visitor out and said so
        if isinstance(error, SessionExpiredError):
            return
        self.logger.warning(f"{fallback}: {type(error).__name__}: {error}")
        self.notifier.error(error_message(error, fallback))

    def _validated(self, check: Callable, fallback: str):
        try:
            return check()
        except ValidationError as e:
            self._notify_failure(e, fallback)
            raise

    def login(self, username: str, password: str):
        """
        Authenticate and go to the dashboard

        Raises:
            ValidationError, or any ApiError from the backend call, after the
            failure has been shown to the visitor
        """
        username = self._validated(lambda: validate_login(username, password), "Login failed")

        result, _ = self._submit(lambda: self.api.login(username, password), "Login failed", "login_submit")

        self._update(SessionStatus.AUTHENTICATED, user=result.user, company=result.company)
        self.logger.info(f"User logged in: {result.user.username}")
        self.notifier.success("Login successful!")
        self.navigator.navigate(Route.DASHBOARD)

    def signup(self, signup: SignupRequest, confirm_password: str):
        """Register a company and its admin; does not log the caller in"""
        def check():
            require(signup.company_name, "company_name", "Company name")
            require(signup.first_name, "first_name", "First name")
            require(signup.last_name, "last_name", "Last name")
            validate_email(signup.email)
            require(signup.phone, "phone", "Phone")
            validate_new_password(signup.password, confirm_password,
                                  self.auth_config.password_min_length, field="password")

        self._validated(check, "Signup failed")

        envelope, previous = self._submit(lambda: self.api.signup(signup), "Signup failed", "signup_submit")
        self._update(previous)

        self.logger.info(f"Company registered: {signup.company_name}")
        self.notifier.success(envelope.message or "Account created! Please verify your email, then log in.")
        self.navigator.navigate(Route.LOGIN)

    def change_password(self, old_password: str, new_password: str, confirm_password: str):
        """Change the current user's password; the session identity is unchanged"""
        def check():
            if not old_password:
                raise ValidationError("Current password is required", field="old_password")
            validate_new_password(new_password, confirm_password, self.auth_config.password_min_length)

        self._validated(check, "Failed to change password")

        envelope, previous = self._submit(
            lambda: self.api.change_password(old_password, new_password),
            "Failed to change password",
            "change_password_submit",
        )
        self._update(previous)
        self.notifier.success(envelope.message or "Password changed successfully")

    def logout(self):
        """Purge credentials and session, then go to login and reload the page"""
        username = self._user.username if self._user else None
        self.credentials.clear_all()
        self._clear()
        self.logger.info(f"User logged out: {username}")
        self.notifier.success("Logged out successfully")
        self.navigator.schedule_reload(self.auth_config.logout_reload_delay_seconds)
        self.navigator.navigate(Route.LOGIN)

    def _on_unauthorized(self):
        """API rejected the token; the client has already purged storage"""
        was_restoring = self._status == SessionStatus.RESTORING
        self._clear()
        if was_restoring:
            # restore() decides where to send the visitor
            return
        self.notifier.info(SessionExpiredError.default_message)
        self.navigator.navigate(Route.LOGIN)

    def close(self):
        self._unsubscribe_api()

    # ------------------------------------------------------------------
    # Role predicates
    # ------------------------------------------------------------------

    def has_role(self, roles: RoleSpec) -> bool:
        """Set membership of the user's role; no hierarchy"""
        if self._user is None:
            return False
        if isinstance(roles, (str, Role)):
            roles = [roles]
        allowed = {_role_value(role) for role in roles}
        return self._user.role.value in allowed

    def is_super_admin(self) -> bool:
        """Platform-wide flag only; a role string of 'superadmin' does not count"""
        return self._user is not None and self._user.is_super_admin


def _role_value(role: Union[str, Role]) -> str:
    if isinstance(role, Role):
        return role.value
    return str(role)
