"""
Streamlit authentication components and per-session wiring
"""

import functools
from typing import Callable, Optional

import httpx
import streamlit as st

from auth.navigation import PUBLIC_ROUTES, Route, visible_menu_items
from auth.route_guard import GuardDecision, RouteGuard
from auth.session_controller import RoleSpec, SessionController, SessionStatus
from config.app_config import AppConfig, get_config
from infrastructure.storage.browser_storage import KeyValueStorage, StreamlitStorage
from services.api_service.client import ApiClient
from services.api_service.errors import WorkZenError
from services.auth_service.credential_store import CredentialStore
from services.auth_service.models import SignupRequest
from services.ui_service.navigator import StreamlitNavigator
from services.ui_service.notifications import Notifier, StreamlitNotifier
from utils.logging_config import get_logger

AUTH_STATE_KEY = "workzen_auth"


class StreamlitAuth:
    """
    Everything one browser session needs to talk to the API as a user

    Builds the credential store, API client, session controller and route
    guard once, and exposes the page guard plus the login, signup and user
    menu widgets. Collaborators can be injected for tests.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        storage: Optional[KeyValueStorage] = None,
        navigator: Optional[StreamlitNavigator] = None,
        notifier: Optional[Notifier] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.config = config or get_config()
        self.logger = get_logger(__name__)

        self.storage = storage if storage is not None else StreamlitStorage()
        self.navigator = navigator or StreamlitNavigator()
        self.notifier = notifier or StreamlitNotifier()

        self.credentials = CredentialStore(self.storage)
        self.api = ApiClient(
            self.config.api.base_url,
            self.credentials,
            timeout=self.config.api.timeout_seconds,
            transport=transport,
            log_requests=self.config.logging.log_api_requests,
        )
        self.controller = SessionController(
            self.api, self.credentials, self.navigator, self.notifier, self.config.auth
        )
        self.guard = RouteGuard(self.controller, self.navigator)

    # ------------------------------------------------------------------
    # Script run lifecycle
    # ------------------------------------------------------------------

    def begin_run(self, route: Route):
        """
        Called before a page body renders

        Records the page, restores the session on the first run and drops the
        previous page's guard requirement when the new page is public.
        """
        self.navigator.mark_current(route)
        self.restore_session(route)
        if route in PUBLIC_ROUTES:
            self.guard.release()

    def finish_run(self):
        """
        Called after a page body returned

        Cookies, a scheduled reload and toasts are only emitted on a run that
        stays on its page; a pending redirect carries them over to the
        destination. The reload goes out in the same script as the cookie
        writes, after them.
        """
        if self.navigator.pending is None:
            self.storage.flush_to_browser(reload_after=self.navigator.take_reload())
            self.notifier.show_pending()
        self.navigator.flush()

    def restore_session(self, route: Optional[Route] = None):
        if self.controller.status != SessionStatus.UNINITIALIZED:
            return
        with st.spinner("Restoring your session..."):
            self.controller.restore(route)

    # ------------------------------------------------------------------
    # Page guard
    # ------------------------------------------------------------------

    def require_authentication(self, page_func: Callable, allowed_roles: Optional[RoleSpec] = None,
                               *args, **kwargs):
        """
        Render `page_func` only for a signed-in user with an allowed role

        Args:
            page_func: Page body
            allowed_roles: Roles allowed on the page; None means any signed-in user

        Returns:
            Whatever the page returns, or None when it was not rendered
        """
        # Check if authentication is disabled (for development)
        if not self.config.auth.enabled:
            return page_func(*args, **kwargs)

        decision = self.guard.require_auth(allowed_roles)

        if decision == GuardDecision.PENDING:
            st.info("Loading your session...")
            return None
        if decision != GuardDecision.ALLOW:
            self.logger.debug(f"Page not rendered: {decision.value}")
            return None

        return page_func(*args, **kwargs)

    # ------------------------------------------------------------------
    # Widgets
    # ------------------------------------------------------------------

    def render_login_form(self):
        """Render login form, or send a signed-in visitor to the dashboard"""
        if self.guard.redirect_if_authenticated():
            return

        ui = self.config.ui
        st.title(f"{ui.page_icon} {ui.app_title}")
        st.caption(ui.tagline)

        with st.form("login_form"):
            st.subheader("Sign In")

            username = st.text_input("👤 Login ID or Email", placeholder="Enter your login ID or email")
            password = st.text_input("🔒 Password", type="password", placeholder="Enter your password")

            submitted = st.form_submit_button(
                "🔑 Sign In",
                type="primary",
                use_container_width=True,
                disabled=self.controller.is_loading,
            )

        if submitted:
            with st.spinner("Authenticating..."):
                self._run_form_action(lambda: self.controller.login(username, password))

        if ui.show_demo_credentials and ui.demo_credentials:
            with st.expander("Demo credentials"):
                for credential in ui.demo_credentials:
                    st.code(f"{credential['username']} / {credential['password']}", language=None)

        if self.config.auth.allow_self_registration:
            st.divider()
            self.page_link(Route.SIGNUP, "Don't have an account? Register your company", "📝")

    def render_signup_form(self):
        """Render company registration form"""
        if self.guard.redirect_if_authenticated():
            return

        st.title("📝 Register your company")

        with st.form("signup_form"):
            company_name = st.text_input("🏢 Company Name")
            industry = st.text_input("🏭 Industry (optional)")

            col1, col2 = st.columns(2)
            with col1:
                first_name = st.text_input("First Name")
                email = st.text_input("📧 Email", placeholder="admin@company.com")
            with col2:
                last_name = st.text_input("Last Name")
                phone = st.text_input("📞 Phone")

            password = st.text_input("🔒 Password", type="password",
                                     help=f"At least {self.config.auth.password_min_length} characters")
            confirm_password = st.text_input("🔒 Confirm Password", type="password")

            submitted = st.form_submit_button(
                "📝 Create Account",
                type="primary",
                use_container_width=True,
                disabled=self.controller.is_loading,
            )

        if submitted:
            signup = SignupRequest(
                company_name=company_name.strip(),
                email=email.strip(),
                phone=phone.strip(),
                industry=industry.strip() or None,
                first_name=first_name.strip(),
                last_name=last_name.strip(),
                password=password,
            )
            with st.spinner("Creating account..."):
                self._run_form_action(lambda: self.controller.signup(signup, confirm_password))

        self.page_link(Route.LOGIN, "Already registered? Sign in", "🔑")

    def render_user_menu(self):
        """Render identity, role-filtered menu and logout in the sidebar"""
        user = self.controller.user
        if user is None:
            return

        with st.sidebar:
            st.markdown(f"## {self.config.ui.page_icon} {self.config.ui.app_title}")

            for item in visible_menu_items(self.controller, self.navigator.routes):
                self.page_link(item.route, item.label, item.icon)

            st.divider()
            st.subheader("👤 User Account")
            st.write(f"**{user.full_name}**")
            st.caption(user.email)

            role_label = "Super Admin" if self.controller.is_super_admin() else user.role.value.title()
            st.write(f"Role: {role_label}")
            if self.controller.company is not None:
                st.write(f"Company: {self.controller.company.name}")

            self.page_link(Route.PROFILE, "My Profile", "⚙️")

            if st.button("🚪 Logout", use_container_width=True):
                self.controller.logout()

    def page_link(self, route: Route, label: str, icon: str = ""):
        page = self.navigator.page_for(route)
        if page is not None:
            st.page_link(page, label=label, icon=icon or None)

    def _run_form_action(self, action: Callable):
        try:
            action()
        except WorkZenError as e:
            # Already shown to the visitor by the controller
            self.logger.debug(f"Form action failed: {type(e).__name__}")

    def close(self):
        self.guard.close()
        self.controller.close()
        self.api.close()


def get_auth() -> StreamlitAuth:
    """Get the authentication wiring of the current browser session"""
    if AUTH_STATE_KEY not in st.session_state:
        st.session_state[AUTH_STATE_KEY] = StreamlitAuth()
    return st.session_state[AUTH_STATE_KEY]


def guard_page(allowed_roles: Optional[RoleSpec] = None):
    """
    Decorator to require authentication (and optionally a role) for a page

    Usage:
        @guard_page(allowed_roles=["admin", "hr"])
        def users_page():
            st.write("Only admins and HR get here")
    """
    def decorator(page_func: Callable):
        @functools.wraps(page_func)
        def wrapper(*args, **kwargs):
            return get_auth().require_authentication(page_func, allowed_roles, *args, **kwargs)
        return wrapper
    return decorator
