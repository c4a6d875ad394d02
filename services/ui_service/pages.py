"""
Page bodies of the portal.

Protected pages are wrapped in `guard_page`; public pages render their
forms directly. Backend failures are reported with `notify_failure` and the
page falls back to an empty state.
"""

from typing import Any, Dict, List

import streamlit as st

from auth.navigation import PAGE_ROLES, Route
from auth.streamlit_auth import get_auth, guard_page
from services.api_service.errors import WorkZenError
from services.ui_service.notifications import notify_failure
from utils.concurrency import run_concurrently
from utils.logging_config import get_logger
from utils.validators import validate_email

logger = get_logger(__name__)

DEFAULT_STATS = {
    "total_employees": 0,
    "total_departments": 0,
    "present_today": 0,
    "pending_leaves": 0,
}

COMPANY_STAT_CARDS = (
    ("Total Employees", "total_employees", "👥"),
    ("Departments", "total_departments", "🏢"),
    ("Present Today", "present_today", "🕒"),
    ("Pending Leaves", "pending_leaves", "📅"),
)

PLATFORM_STAT_CARDS = (
    ("Total Companies", "total_companies", "🏢"),
    ("Active Companies", "active_companies", "✅"),
    ("Pending Approvals", "pending_approvals", "⏳"),
    ("Total Employees", "total_employees", "👥"),
)


def login_page():
    get_auth().render_login_form()


def signup_page():
    get_auth().render_signup_form()


# ----------------------------------------------------------------------
# Dashboard
# ----------------------------------------------------------------------

def fetch_dashboard_stats(auth) -> Dict[str, Any]:
    """
    Stats for the dashboard cards

    A super-admin gets the platform-wide figures. Any failure yields zeros.
    """
    endpoint = "/dashboard/superadmin" if auth.controller.is_super_admin() else "/dashboard"
    try:
        data = auth.api.get(endpoint).data
    except WorkZenError as e:
        notify_failure(auth.notifier, e, "Failed to load dashboard", context="dashboard_stats")
        return dict(DEFAULT_STATS)

    if not isinstance(data, dict):
        return dict(DEFAULT_STATS)
    return {**DEFAULT_STATS, **data}


@guard_page()
def dashboard_page():
    auth = get_auth()
    user = auth.controller.user

    if user is not None:
        st.title(f"Welcome back, {user.first_name}!")
    else:
        st.title("Dashboard")
    if auth.controller.company is not None:
        st.caption(auth.controller.company.name)

    stats = fetch_dashboard_stats(auth)
    cards = PLATFORM_STAT_CARDS if auth.controller.is_super_admin() else COMPANY_STAT_CARDS

    columns = st.columns(len(cards))
    for column, (label, key, icon) in zip(columns, cards):
        with column:
            st.metric(f"{icon} {label}", stats.get(key) or 0)


# ----------------------------------------------------------------------
# Profile
# ----------------------------------------------------------------------

def refresh_profile(auth) -> bool:
    """Re-fetch the signed-in user; True when the profile was updated"""
    try:
        auth.controller.refresh_user()
    except WorkZenError as e:
        notify_failure(auth.notifier, e, "Failed to refresh profile", context="profile_refresh")
        return False
    auth.notifier.success("Profile refreshed")
    return True


@guard_page()
def profile_page():
    auth = get_auth()
    title_col, refresh_col = st.columns([4, 1])
    with title_col:
        st.title("⚙️ My Profile")
    with refresh_col:
        if st.button("🔄 Refresh", use_container_width=True):
            refresh_profile(auth)

    # A rejected refresh has already logged the visitor out
    user = auth.controller.user
    if user is None:
        return

    col1, col2 = st.columns(2)
    with col1:
        st.write(f"**Name:** {user.full_name}")
        st.write(f"**Login ID:** {user.username}")
        st.write(f"**Email:** {user.email}")
        if user.phone:
            st.write(f"**Phone:** {user.phone}")
    with col2:
        st.write(f"**Role:** {user.role.value.title()}")
        if user.designation:
            st.write(f"**Designation:** {user.designation}")
        if user.employee_code:
            st.write(f"**Employee Code:** {user.employee_code}")
        st.write(f"**Email verified:** {'Yes' if user.email_verified else 'No'}")

    st.divider()
    st.subheader("🔒 Change Password")

    with st.form("change_password_form", clear_on_submit=True):
        old_password = st.text_input("Current Password", type="password")
        new_password = st.text_input("New Password", type="password")
        confirm_password = st.text_input("Confirm New Password", type="password")
        submitted = st.form_submit_button("Update Password", type="primary",
                                          disabled=auth.controller.is_loading)

    if submitted:
        with st.spinner("Updating password..."):
            try:
                auth.controller.change_password(old_password, new_password, confirm_password)
            except WorkZenError as e:
                # Already shown to the visitor by the controller
                logger.debug(f"Password change failed: {type(e).__name__}")


# ----------------------------------------------------------------------
# Users
# ----------------------------------------------------------------------

def fetch_users_and_departments(auth):
    """
    Users and departments, fetched concurrently

    Returns:
        (users, departments); both empty lists on failure
    """
    try:
        users_envelope, departments_envelope = run_concurrently(
            lambda: auth.api.get("/users"),
            lambda: auth.api.get("/departments"),
        )
    except WorkZenError as e:
        notify_failure(auth.notifier, e, "Failed to load users", context="users_page")
        return [], []

    return _as_list(users_envelope.data), _as_list(departments_envelope.data)


def users_table_rows(users: List[Dict[str, Any]], departments: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    department_names = {d.get("id"): d.get("name") for d in departments}
    rows = []
    for user in users:
        rows.append({
            "Name": f"{user.get('first_name', '')} {user.get('last_name', '')}".strip(),
            "Login ID": user.get("username", ""),
            "Email": user.get("email", ""),
            "Role": str(user.get("role", "")).title(),
            "Department": department_names.get(user.get("department_id"), "-"),
            "Status": str(user.get("status", "")).title(),
        })
    return rows


@guard_page(allowed_roles=PAGE_ROLES[Route.USERS])
def users_page():
    auth = get_auth()
    st.title("👥 Users")

    with st.spinner("Loading users..."):
        users, departments = fetch_users_and_departments(auth)

    if not users:
        st.info("No users found.")
        return

    st.caption(f"{len(users)} user{'s' if len(users) != 1 else ''}")
    st.dataframe(users_table_rows(users, departments), use_container_width=True, hide_index=True)


# ----------------------------------------------------------------------
# Email verification
# ----------------------------------------------------------------------

def verify_email_page():
    auth = get_auth()
    st.title("📧 Email Verification")

    token = st.query_params.get("token")
    if not token:
        st.error("Invalid verification link. No token provided.")
        _auth_links(auth)
        return

    # Verify once per token; reruns of the page reuse the outcome
    state_key = f"verify_email_{token}"
    if state_key not in st.session_state:
        with st.spinner("Verifying your email..."):
            try:
                envelope = auth.api.verify_email(token)
            except WorkZenError as e:
                message = notify_failure(auth.notifier, e, "Verification failed", context="verify_email")
                st.session_state[state_key] = (False, message or "Verification failed")
            else:
                message = envelope.message or "Email verified successfully!"
                auth.notifier.success(message)
                st.session_state[state_key] = (True, message)

    verified, message = st.session_state[state_key]
    if verified:
        st.success(message)
        st.write("You can now sign in.")
    else:
        st.error(message)
        if st.button("🔁 Retry"):
            del st.session_state[state_key]
            st.rerun()
    _auth_links(auth)


def resend_verification_page():
    auth = get_auth()
    st.title("📨 Resend Verification Email")

    with st.form("resend_verification_form"):
        email = st.text_input("📧 Email", placeholder="you@company.com")
        submitted = st.form_submit_button("Send verification email", type="primary")

    if submitted:
        try:
            email = validate_email(email)
            with st.spinner("Sending..."):
                envelope = auth.api.resend_verification(email)
        except WorkZenError as e:
            notify_failure(auth.notifier, e, "Failed to send verification email", context="resend_verification")
        else:
            message = envelope.message or "Verification email sent successfully!"
            auth.notifier.success(message)
            st.success(f"{message} Check your inbox.")

    _auth_links(auth)


def _auth_links(auth):
    st.divider()
    auth.page_link(Route.LOGIN, "Back to sign in", "🔑")


def _as_list(data: Any) -> List[Dict[str, Any]]:
    if isinstance(data, list):
        return [item for item in data if isinstance(item, dict)]
    return []
