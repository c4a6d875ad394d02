"""
API gateway client: the single entry point for every call to the WorkZen backend.

Attaches the bearer token, interprets the JSON envelope and maps transport and
HTTP failures onto the error taxonomy in `services.api_service.errors`. On a
401 it purges the stored credential and tells its `on_unauthorized`
subscribers; it never navigates itself.
"""

import threading
import time
from typing import Any, Callable, Dict, List, Optional

import httpx
from pydantic import TypeAdapter
from pydantic import ValidationError as ModelValidationError

from services.api_service.errors import (
    MalformedResponseError,
    NetworkError,
    NotFoundError,
    RequestFailedError,
    ServerError,
    SessionExpiredError,
)
from services.auth_service.credential_store import CredentialStore
from services.auth_service.models import Envelope, LoginResult, SignupRequest, User
from utils.logging_config import get_logger, log_api_request

UnauthorizedCallback = Callable[[], None]

_MESSAGE_FIELDS = ("message", "error", "msg")

# Parses any JSON document with pydantic's depth-limited parser
_JSON_BODY = TypeAdapter(Any)


class ApiClient:
    """
    HTTP client for the WorkZen REST API

    Args:
        base_url: API root, e.g. http://localhost:8080/api/v1
        credential_store: Where the bearer token and cached records live
        timeout: Per-request timeout in seconds; None keeps the httpx default
        transport: Optional httpx transport (tests pass an httpx.MockTransport)
        log_requests: Emit one DEBUG record per call
    """

    def __init__(
        self,
        base_url: str,
        credential_store: CredentialStore,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
        log_requests: bool = True,
    ):
        self.base_url = base_url.rstrip("/")
        self.credentials = credential_store
        self.log_requests = log_requests
        self.logger = get_logger(__name__)

        client_kwargs: Dict[str, Any] = {"base_url": self.base_url}
        if timeout is not None:
            client_kwargs["timeout"] = timeout
        if transport is not None:
            client_kwargs["transport"] = transport
        self._http = httpx.Client(**client_kwargs)

        self._unauthorized_lock = threading.Lock()
        self._unauthorized_callbacks: List[UnauthorizedCallback] = []

    # ------------------------------------------------------------------
    # Unauthorized notification
    # ------------------------------------------------------------------

    def on_unauthorized(self, callback: UnauthorizedCallback) -> Callable[[], None]:
        """Subscribe to forced-logout events; returns an unsubscribe function"""
        self._unauthorized_callbacks.append(callback)

        def unsubscribe():
            if callback in self._unauthorized_callbacks:
                self._unauthorized_callbacks.remove(callback)

        return unsubscribe

    def _handle_unauthorized(self, sent_token: Optional[str]):
        """
        Purge and notify once per credential.

        A 401 only counts if the token it was sent with is still the stored
        one; concurrent 401s for the same token after the first find the
        store already empty.
        """
        with self._unauthorized_lock:
            current = self.credentials.read_token()
            if current is None:
                self.logger.debug("401 after credentials were already purged")
                return
            if sent_token is not None and current != sent_token:
                self.logger.debug("401 for a superseded credential, keeping the new one")
                return

            self.credentials.clear_all()
            self.logger.warning("Session rejected by the API, credentials purged")

            for callback in list(self._unauthorized_callbacks):
                callback()

    # ------------------------------------------------------------------
    # Generic request
    # ------------------------------------------------------------------

    def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        handle_unauthorized: bool = True,
        authenticated: bool = True,
    ) -> Envelope:
        """
        Send a request and return the parsed success envelope

        Args:
            method: GET, POST, PUT, PATCH or DELETE
            path: Path relative to the base URL
            json: Request body, serialized as JSON
            params: Query string parameters
            handle_unauthorized: When False a 401 is reported as a plain
                RequestFailedError without purging the session (used by login)
            authenticated: When False no bearer token is attached, even if
                one is stored (login, signup and e-mail verification)

        Raises:
            NetworkError, MalformedResponseError, ServerError, NotFoundError,
            SessionExpiredError, RequestFailedError
        """
        token = self.credentials.read_token() if authenticated else None
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        method = method.upper()
        start = time.monotonic()
        try:
            response = self._http.request(method, path, json=json, params=params, headers=headers)
        except httpx.TransportError as e:
            self._log_request(method, path, None, start, error_type=type(e).__name__)
            raise NetworkError() from e

        self._log_request(method, path, response.status_code, start)
        return self._interpret(response, token, handle_unauthorized)

    def _log_request(self, method: str, path: str, status_code: Optional[int], start: float, **details):
        if self.log_requests:
            log_api_request(self.logger, method, path, status_code, time.monotonic() - start, **details)

    def _interpret(self, response: httpx.Response, sent_token: Optional[str],
                   handle_unauthorized: bool) -> Envelope:
        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type.lower():
            if response.is_error:
                raise ServerError(response.status_code, response.reason_phrase)
            raise MalformedResponseError()

        try:
            body = _JSON_BODY.validate_json(response.content)
        except ModelValidationError as e:
            raise MalformedResponseError() from e

        if response.is_error:
            status = response.status_code
            server_message = _extract_message(body)

            if status == 401 and handle_unauthorized:
                self._handle_unauthorized(sent_token)
                raise SessionExpiredError()
            if status == 404:
                raise NotFoundError(server_message)

            raise RequestFailedError(
                server_message or response.reason_phrase or None,
                status,
            )

        try:
            return Envelope.model_validate(body)
        except ModelValidationError as e:
            raise MalformedResponseError() from e

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Envelope:
        return self.request("GET", path, params=params)

    def post(self, path: str, json: Any = None) -> Envelope:
        return self.request("POST", path, json=json)

    def put(self, path: str, json: Any = None) -> Envelope:
        return self.request("PUT", path, json=json)

    def patch(self, path: str, json: Any = None) -> Envelope:
        return self.request("PATCH", path, json=json)

    def delete(self, path: str) -> Envelope:
        return self.request("DELETE", path)

    def close(self):
        self._http.close()

    # ------------------------------------------------------------------
    # Auth endpoints
    # ------------------------------------------------------------------

    def login(self, username: str, password: str) -> LoginResult:
        """POST /auth/login; stores token, user and company on success"""
        envelope = _require_success(self.request(
            "POST", "/auth/login",
            json={"username": username, "password": password},
            handle_unauthorized=False, authenticated=False,
        ))
        result = _parse_data(envelope, LoginResult)

        self.credentials.save_token(result.token)
        self.credentials.save_user(result.user)
        if result.company is not None:
            self.credentials.save_company(result.company)
        else:
            self.credentials.clear_company()

        return result

    def signup(self, signup: SignupRequest) -> Envelope:
        """POST /auth/signup; registers a company, no session side effect"""
        return _require_success(self.request(
            "POST", "/auth/signup",
            json=signup.model_dump(exclude_none=True),
            handle_unauthorized=False, authenticated=False,
        ))

    def fetch_current_user(self) -> User:
        """GET /auth/me; refreshes the cached user"""
        envelope = _require_success(self.get("/auth/me"))
        user = _parse_data(envelope, User)
        self.credentials.save_user(user)
        return user

    def change_password(self, old_password: str, new_password: str) -> Envelope:
        return _require_success(self.post(
            "/auth/change-password",
            json={"old_password": old_password, "new_password": new_password},
        ))

    def verify_email(self, token: str) -> Envelope:
        return _require_success(self.request(
            "GET", "/auth/verify-email", params={"token": token},
            handle_unauthorized=False, authenticated=False,
        ))

    def resend_verification(self, email: str) -> Envelope:
        return _require_success(self.request(
            "POST", "/auth/resend-verification", json={"email": email},
            handle_unauthorized=False, authenticated=False,
        ))


def _extract_message(body: Any) -> Optional[str]:
    if not isinstance(body, dict):
        return None
    for key in _MESSAGE_FIELDS:
        value = body.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def _require_success(envelope: Envelope) -> Envelope:
    if not envelope.success:
        raise RequestFailedError(envelope.message or None)
    return envelope


def _parse_data(envelope: Envelope, model_cls):
    if not isinstance(envelope.data, dict):
        raise MalformedResponseError()
    try:
        return model_cls.model_validate(envelope.data)
    except ModelValidationError as e:
        raise MalformedResponseError() from e
