"""
Error taxonomy for backend calls and client-side form checks.
"""

from typing import Optional


class WorkZenError(Exception):
    """Base class for every error the portal surfaces to a page"""

    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or self.default_message
        self.status_code = status_code
        super().__init__(self.message)


class ApiError(WorkZenError):
    """Failure of a call to the backend API"""


class NetworkError(ApiError):
    """The request never produced a response (connection refused, DNS, timeout)"""

    default_message = "Unable to reach the server. Check your connection and try again."


class MalformedResponseError(ApiError):
    """A response arrived but its body is not the JSON envelope the API promises"""

    default_message = "Invalid response from server"


class ServerError(ApiError):
    """Error status with a non-JSON body, typically a proxy or gateway page"""

    def __init__(self, status_code: int, reason: str = ""):
        self.reason = reason
        message = f"Server error: {status_code}"
        if reason:
            message = f"{message} {reason}"
        super().__init__(message, status_code)


class NotFoundError(ApiError):
    """HTTP 404"""

    default_message = "Resource not found"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, 404)


class SessionExpiredError(ApiError):
    """HTTP 401 on an authenticated call; the session has already been purged"""

    default_message = "Session expired. Please log in again."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, 401)


class RequestFailedError(ApiError):
    """Any other failed call, carrying the server-supplied message"""

    default_message = "Request failed"


class ValidationError(WorkZenError):
    """Client-side form check failed before any request was sent"""

    default_message = "Invalid input"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None):
        self.field = field
        super().__init__(message)
