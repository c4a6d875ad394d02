"""
API service - HTTP client for the WorkZen backend and its error taxonomy.
"""

from .client import ApiClient
from .errors import (
    WorkZenError,
    ApiError,
    NetworkError,
    MalformedResponseError,
    ServerError,
    NotFoundError,
    SessionExpiredError,
    RequestFailedError,
    ValidationError
)

__all__ = [
    'ApiClient',
    'WorkZenError',
    'ApiError',
    'NetworkError',
    'MalformedResponseError',
    'ServerError',
    'NotFoundError',
    'SessionExpiredError',
    'RequestFailedError',
    'ValidationError'
]
