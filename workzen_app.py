"""
WorkZen HR portal

Run with: streamlit run workzen_app.py
"""

import streamlit as st

from auth.navigation import Route
from auth.streamlit_auth import StreamlitAuth, get_auth
from config.app_config import get_config
from services.ui_service import pages
from utils.logging_config import get_logger, initialize_logging

# Initialize logging and error tracking
error_tracker = initialize_logging()
logger = get_logger(__name__)

# Get configuration
config = get_config()
logger.debug("Configuration loaded", extra=config.to_dict())

# Route -> (page body, title, icon)
PAGE_BODIES = {
    Route.DASHBOARD: (pages.dashboard_page, "Dashboard", "🏠"),
    Route.LOGIN: (pages.login_page, "Sign In", "🔑"),
    Route.SIGNUP: (pages.signup_page, "Register", "📝"),
    Route.PROFILE: (pages.profile_page, "My Profile", "⚙️"),
    Route.USERS: (pages.users_page, "Users", "👥"),
    Route.VERIFY_EMAIL: (pages.verify_email_page, "Verify Email", "📧"),
    Route.RESEND_VERIFICATION: (pages.resend_verification_page, "Resend Verification", "📨"),
}


def page_runner(auth: StreamlitAuth, route: Route, body):
    """Wrap a page body with the per-run session lifecycle"""
    def run():
        auth.begin_run(route)
        auth.render_user_menu()
        try:
            body()
        except Exception as e:
            error_tracker.track_error(e, f"page_{route.value}")
            st.error("Something went wrong while rendering this page. Please refresh.")
        auth.finish_run()

    run.__name__ = f"{route.value.replace('-', '_')}_page"
    return run


def render_diagnostics():
    """Configuration summary and error counts, development only"""
    with st.sidebar.expander("🛠️ Diagnostics"):
        st.json(config.to_dict())
        st.json(error_tracker.get_error_summary())


def build_pages(auth: StreamlitAuth):
    """Build this run's st.Page objects and register them with the navigator"""
    built = []
    for route, (body, title, icon) in PAGE_BODIES.items():
        page = st.Page(
            page_runner(auth, route, body),
            title=title,
            icon=icon,
            url_path=route.url_path,
            default=route == Route.DASHBOARD,
        )
        auth.navigator.register(route, page)
        built.append(page)
    return built


def main():
    st.set_page_config(
        page_title=config.ui.app_title,
        page_icon=config.ui.page_icon,
        layout="wide",
    )

    auth = get_auth()
    if config.debug:
        render_diagnostics()

    # The sidebar menu is rendered by the auth layer, filtered by role
    navigation = st.navigation(build_pages(auth), position="hidden")
    navigation.run()


if __name__ == "__main__":
    main()
