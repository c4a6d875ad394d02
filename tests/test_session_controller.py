"""
Tests for the session/auth controller
"""

import json
import logging

import httpx
import pytest

from auth.navigation import Route
from auth.session_controller import SessionStatus
from config.app_config import AuthConfig
from conftest import ADMIN_USER, DEMO_COMPANY, EMPLOYEE_USER, SUPER_ADMIN_USER, envelope, error_response
from services.api_service.errors import (
    NetworkError,
    RequestFailedError,
    SessionExpiredError,
    ValidationError,
)
from services.auth_service.models import Company, Role, SignupRequest, User


def login_handler(request):
    if request.url.path.endswith("/auth/login"):
        body = json.loads(request.content)
        if body == {"username": "demoadmin", "password": "Admin@123"}:
            return envelope({"token": "abc", "user": ADMIN_USER, "company": DEMO_COMPANY})
        return error_response(401, "Invalid credentials")
    return error_response(404)


def valid_signup(**overrides) -> SignupRequest:
    fields = dict(
        company_name="Acme", email="ann@acme.io", phone="5551234",
        first_name="Ann", last_name="Smith", password="Secret@123",
    )
    fields.update(overrides)
    return SignupRequest(**fields)


class TestLogin:
    """Test the login round trip"""

    def test_login_round_trip(self, make_controller, credentials, navigator, notifier):
        controller = make_controller(login_handler)

        controller.login("demoadmin", "Admin@123")

        assert credentials.read_token() == "abc"
        assert controller.is_authenticated() is True
        assert controller.status == SessionStatus.AUTHENTICATED
        assert controller.has_role(["admin"]) is True
        assert controller.user.username == "demoadmin"
        assert controller.company.name == "Demo Corp"
        assert navigator.history == [Route.DASHBOARD]
        assert notifier.successes == ["Login successful!"]

    def test_login_strips_username(self, make_controller, credentials):
        controller = make_controller(login_handler)
        controller.login("  demoadmin  ", "Admin@123")
        assert credentials.read_token() == "abc"

    def test_wrong_password_notifies_and_stays_anonymous(self, make_controller, credentials, navigator, notifier):
        controller = make_controller(login_handler)
        controller.restore()

        with pytest.raises(RequestFailedError):
            controller.login("demoadmin", "nope")

        assert notifier.errors == ["Invalid credentials"]
        assert controller.status == SessionStatus.ANONYMOUS
        assert controller.is_authenticated() is False
        assert credentials.read_token() is None
        assert navigator.history == []

    def test_empty_fields_fail_before_any_request(self, make_controller, notifier):
        calls = []

        def handler(request):
            calls.append(request)
            return envelope({})

        controller = make_controller(handler)

        with pytest.raises(ValidationError) as exc_info:
            controller.login("   ", "secret")

        assert exc_info.value.field == "username"
        assert calls == []
        assert notifier.errors == ["Username or email is required"]

    def test_network_failure_restores_previous_status(self, make_controller, notifier):
        def handler(request):
            raise httpx.ConnectError("down", request=request)

        controller = make_controller(handler)
        controller.restore()

        with pytest.raises(NetworkError):
            controller.login("demoadmin", "Admin@123")

        assert controller.status == SessionStatus.ANONYMOUS
        assert notifier.errors == [NetworkError.default_message]

    def test_login_notifies_subscribers(self, make_controller):
        controller = make_controller(login_handler)
        sessions = []
        controller.subscribe(sessions.append)

        controller.login("demoadmin", "Admin@123")

        # Submitting, then authenticated; never an anonymous settled state in between
        assert [(s.is_loading, s.is_authenticated) for s in sessions] == [(True, False), (False, True)]
        assert sessions[-1].user.username == "demoadmin"


class TestRestore:
    """Test session restore on mount"""

    def test_restore_without_token_is_anonymous(self, make_controller, navigator):
        controller = make_controller(login_handler)

        controller.restore(Route.DASHBOARD)

        assert controller.status == SessionStatus.ANONYMOUS
        assert controller.is_loading is False
        assert navigator.history == []

    def test_restore_with_valid_token(self, make_controller, credentials, navigator):
        credentials.save_token("abc")
        credentials.save_company(Company.model_validate(DEMO_COMPANY))
        controller = make_controller(lambda request: envelope(ADMIN_USER))

        controller.restore(Route.USERS)

        assert controller.status == SessionStatus.AUTHENTICATED
        assert controller.user.username == "demoadmin"
        assert controller.company.name == "Demo Corp"
        assert navigator.history == []

    def test_restore_runs_once(self, make_controller, credentials):
        credentials.save_token("abc")
        calls = []

        def handler(request):
            calls.append(request.url.path)
            return envelope(ADMIN_USER)

        controller = make_controller(handler)
        controller.restore()
        controller.restore()

        assert calls == ["/api/v1/auth/me"]

    def test_restore_is_timed(self, make_controller, credentials, caplog):
        credentials.save_token("abc")
        controller = make_controller(lambda request: envelope(ADMIN_USER))

        with caplog.at_level(logging.INFO, logger="auth.session_controller"):
            controller.restore()

        timed = [r for r in caplog.records if getattr(r, "operation", None) == "session_restore"]
        assert len(timed) == 1
        assert timed[0].status == "success"

    def test_restore_with_rejected_token_redirects_to_login(self, make_controller, credentials,
                                                             navigator, notifier):
        credentials.save_token("stale")
        credentials.save_user(User.model_validate(ADMIN_USER))
        controller = make_controller(lambda request: error_response(401, "Token expired"))

        controller.restore(Route.DASHBOARD)

        assert controller.status == SessionStatus.ANONYMOUS
        assert credentials.read_token() is None
        assert credentials.read_user() is None
        assert navigator.history == [Route.LOGIN]
        # Restore failures are silent
        assert notifier.infos == []
        assert notifier.errors == []

    def test_restore_failure_on_signup_page_does_not_redirect(self, make_controller, credentials, navigator):
        credentials.save_token("stale")
        controller = make_controller(lambda request: error_response(500, "boom"))

        controller.restore(Route.SIGNUP)

        assert credentials.read_token() is None
        assert navigator.history == []

    def test_restore_failure_defaults_to_navigator_route(self, make_controller, credentials, navigator):
        credentials.save_token("stale")
        navigator.mark_current(Route.LOGIN)
        controller = make_controller(lambda request: error_response(401))

        controller.restore()

        assert navigator.history == []

    def test_restore_with_network_failure_purges_too(self, make_controller, credentials, navigator):
        def handler(request):
            raise httpx.ConnectError("down", request=request)

        credentials.save_token("abc")
        controller = make_controller(handler)

        controller.restore(Route.PROFILE)

        assert credentials.read_token() is None
        assert navigator.history == [Route.LOGIN]


class TestLogout:
    """Test explicit logout"""

    def test_logout_clears_everything(self, make_controller, credentials, navigator, notifier):
        controller = make_controller(login_handler, AuthConfig(logout_reload_delay_seconds=0.25))
        controller.login("demoadmin", "Admin@123")

        controller.logout()

        assert credentials.read_token() is None
        assert credentials.read_user() is None
        assert credentials.read_company() is None
        assert controller.user is None
        assert controller.is_authenticated() is False
        assert navigator.history == [Route.DASHBOARD, Route.LOGIN]
        assert navigator.reloads == [0.25]
        assert notifier.successes[-1] == "Logged out successfully"


class TestForcedLogout:
    """Test the reaction to a 401 on an authenticated call"""

    def test_401_clears_session_and_redirects(self, make_controller, credentials, navigator, notifier):
        credentials.save_token("abc")

        def handler(request):
            if request.url.path.endswith("/auth/me"):
                return envelope(ADMIN_USER)
            return error_response(401)

        controller = make_controller(handler)
        controller.restore(Route.USERS)
        navigator.mark_current(Route.USERS)

        with pytest.raises(SessionExpiredError):
            controller.api.get("/users")

        assert controller.user is None
        assert controller.status == SessionStatus.ANONYMOUS
        assert navigator.history == [Route.LOGIN]
        assert notifier.infos == ["Session expired. Please log in again."]

    def test_401_during_password_change_is_not_toasted_twice(self, make_controller, credentials, notifier):
        credentials.save_token("abc")

        def handler(request):
            if request.url.path.endswith("/auth/me"):
                return envelope(ADMIN_USER)
            return error_response(401)

        controller = make_controller(handler)
        controller.restore(Route.PROFILE)

        with pytest.raises(SessionExpiredError):
            controller.change_password("Old@1234", "New@12345", "New@12345")

        assert notifier.errors == []
        assert notifier.infos == ["Session expired. Please log in again."]
        assert controller.status == SessionStatus.ANONYMOUS


class TestSignup:
    """Test company registration"""

    def test_signup_success_goes_to_login(self, make_controller, credentials, navigator, notifier):
        controller = make_controller(lambda request: envelope(message="Company registered. Check your email."))
        controller.restore()

        controller.signup(valid_signup(), "Secret@123")

        assert navigator.history == [Route.LOGIN]
        assert notifier.successes == ["Company registered. Check your email."]
        assert credentials.read_token() is None
        assert controller.status == SessionStatus.ANONYMOUS

    @pytest.mark.parametrize("overrides, confirm, field", [
        ({"company_name": ""}, "Secret@123", "company_name"),
        ({"email": "not-an-email"}, "Secret@123", "email"),
        ({"phone": " "}, "Secret@123", "phone"),
        ({}, "Different@123", "confirm_password"),
        ({"password": "short"}, "short", "password"),
    ])
    def test_signup_validation(self, make_controller, notifier, overrides, confirm, field):
        calls = []

        def handler(request):
            calls.append(request)
            return envelope()

        controller = make_controller(handler)

        with pytest.raises(ValidationError) as exc_info:
            controller.signup(valid_signup(**overrides), confirm)

        assert exc_info.value.field == field
        assert calls == []
        assert len(notifier.errors) == 1

    def test_signup_server_rejection(self, make_controller, notifier, navigator):
        controller = make_controller(lambda request: error_response(409, "Email already registered"))

        with pytest.raises(RequestFailedError):
            controller.signup(valid_signup(), "Secret@123")

        assert notifier.errors == ["Email already registered"]
        assert navigator.history == []


class TestChangePassword:
    """Test password change"""

    def test_change_password_keeps_session(self, make_controller, credentials, notifier):
        credentials.save_token("abc")

        def handler(request):
            if request.url.path.endswith("/auth/me"):
                return envelope(ADMIN_USER)
            return envelope(message="Password changed successfully")

        controller = make_controller(handler)
        controller.restore()

        controller.change_password("Old@1234", "New@12345", "New@12345")

        assert controller.status == SessionStatus.AUTHENTICATED
        assert credentials.read_token() == "abc"
        assert notifier.successes == ["Password changed successfully"]

    def test_mismatched_confirmation(self, make_controller, notifier):
        controller = make_controller(lambda request: envelope())

        with pytest.raises(ValidationError) as exc_info:
            controller.change_password("Old@1234", "New@12345", "New@54321")

        assert exc_info.value.field == "confirm_password"
        assert notifier.errors == ["Passwords do not match"]

    def test_short_new_password(self, make_controller):
        controller = make_controller(lambda request: envelope(), AuthConfig(password_min_length=10))

        with pytest.raises(ValidationError) as exc_info:
            controller.change_password("Old@1234", "New@1234", "New@1234")

        assert exc_info.value.message == "Password must be at least 10 characters"

    def test_missing_current_password(self, make_controller):
        controller = make_controller(lambda request: envelope())
        with pytest.raises(ValidationError) as exc_info:
            controller.change_password("", "New@12345", "New@12345")
        assert exc_info.value.field == "old_password"


class TestRolePredicates:
    """Test has_role and is_super_admin"""

    def _restored(self, make_controller, credentials, user_payload):
        credentials.save_token("abc")
        controller = make_controller(lambda request: envelope(user_payload))
        controller.restore()
        return controller

    def test_has_role_is_plain_membership(self, make_controller, credentials):
        controller = self._restored(make_controller, credentials, EMPLOYEE_USER)

        assert controller.has_role(["employee"]) is True
        assert controller.has_role("employee") is True
        assert controller.has_role(Role.EMPLOYEE) is True
        assert controller.has_role([Role.HR, Role.ADMIN]) is False
        assert controller.has_role([]) is False

    def test_no_user_has_no_role(self, make_controller):
        controller = make_controller(login_handler)
        assert controller.has_role(["admin", "employee"]) is False
        assert controller.is_super_admin() is False

    def test_super_admin_flag_is_independent_of_role(self, make_controller, credentials):
        controller = self._restored(make_controller, credentials, SUPER_ADMIN_USER)

        assert controller.is_super_admin() is True
        assert controller.has_role(["superadmin"]) is False
        assert controller.has_role(["admin"]) is True

    def test_superadmin_role_without_flag(self, make_controller, credentials):
        controller = self._restored(make_controller, credentials,
                                    {**ADMIN_USER, "role": "superadmin", "is_super_admin": False})

        assert controller.has_role(["superadmin"]) is True
        assert controller.is_super_admin() is False
