"""
User, company and envelope models for the authentication service.

These are validated at the API boundary; anything that does not fit is
rejected there instead of leaking half-parsed dicts into the session.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    """Closed set of account roles"""
    SUPERADMIN = "superadmin"
    ADMIN = "admin"
    HR = "hr"
    PAYROLL = "payroll"
    EMPLOYEE = "employee"


class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class User(BaseModel):
    """Authenticated account as returned by /auth/me and /auth/login"""
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    username: str
    email: str
    first_name: str = ""
    last_name: str = ""
    role: Role
    # Platform-wide flag, independent of the role string
    is_super_admin: bool = False
    designation: Optional[str] = None
    department_id: Optional[str] = None
    phone: Optional[str] = None
    employee_code: Optional[str] = None
    company: Optional[str] = None
    status: UserStatus = UserStatus.ACTIVE
    email_verified: bool = False

    @property
    def full_name(self) -> str:
        name = f"{self.first_name} {self.last_name}".strip()
        return name or self.username

    @property
    def initials(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        if not parts:
            return self.username[:2].upper()
        return "".join(p[0] for p in parts).upper()


class Company(BaseModel):
    """Tenant a non-super-admin user belongs to"""
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    industry: Optional[str] = None
    is_approved: bool = False
    is_active: bool = True


class Envelope(BaseModel):
    """Uniform response wrapper every backend endpoint returns"""
    model_config = ConfigDict(extra="ignore")

    success: bool
    message: Optional[str] = ""
    data: Any = None
    meta: Optional[Dict[str, Any]] = None


class LoginResult(BaseModel):
    """`data` of a successful POST /auth/login"""
    model_config = ConfigDict(extra="ignore")

    token: str = Field(min_length=1)
    user: User
    company: Optional[Company] = None


class SignupRequest(BaseModel):
    """Body of POST /auth/signup; creates a company and its first admin"""
    company_name: str
    email: str
    phone: str
    industry: Optional[str] = None
    first_name: str
    last_name: str
    password: str


@dataclass(frozen=True)
class Session:
    """Immutable view of the current session handed to guards and pages"""
    user: Optional[User] = None
    company: Optional[Company] = None
    is_authenticated: bool = False
    is_loading: bool = False
