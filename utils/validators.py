"""
Client-side form checks run before any request is sent.
"""

import re

from services.api_service.errors import ValidationError

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def require(value: str, field: str, label: str) -> str:
    """Strip `value` and fail if nothing is left"""
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(f"{label} is required", field=field)
    return cleaned


def validate_email(email: str, field: str = "email") -> str:
    cleaned = require(email, field, "Email")
    if not _EMAIL_PATTERN.match(cleaned):
        raise ValidationError("Please enter a valid email address", field=field)
    return cleaned


def validate_new_password(password: str, confirm_password: str, min_length: int = 8,
                          field: str = "new_password"):
    """Matching confirmation and minimum length"""
    if password != confirm_password:
        raise ValidationError("Passwords do not match", field="confirm_password")
    if len(password or "") < min_length:
        raise ValidationError(f"Password must be at least {min_length} characters", field=field)


def validate_login(username: str, password: str):
    """Returns the stripped username"""
    username = require(username, "username", "Username or email")
    if not password:
        raise ValidationError("Password is required", field="password")
    return username
