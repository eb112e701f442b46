"""
API request and response models for CoverDesk REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
audit/models.py, which own the internal domain representation. Route handlers
map between the two.

Separation of concerns: auth/ and audit/ models = domain truth; api/ models = API contract.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.models import Identity
from auth.passwords import MAX_PASSWORD_BYTES

# Deliberately loose: one "@", no whitespace. Deliverability is not our concern.
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+$"


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class RoleEnum(str, Enum):
    customer = "customer"
    agent = "agent"
    admin = "admin"


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/auth/register.

    name and email are stripped of surrounding whitespace; the password is
    taken exactly as sent. Email keeps its case -- uniqueness is case-sensitive.
    """

    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=6, max_length=MAX_PASSWORD_BYTES)
    role: RoleEnum = RoleEnum.customer

    @field_validator("name", "email", mode="before")
    @classmethod
    def strip_text(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        """bcrypt reads at most 72 bytes; multi-byte characters count more than once."""
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
        return value


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login."""

    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public projection of an identity. Never carries the password hash."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    email: str
    role: RoleEnum

    @classmethod
    def from_identity(cls, identity: Identity) -> "UserResponse":
        return cls(**identity.public())


class LoginResponse(BaseModel):
    """Response for POST /api/v1/auth/login."""

    model_config = ConfigDict(frozen=True)

    token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


class AdminSummaryResponse(BaseModel):
    """Response for GET /api/v1/admin/summary."""

    model_config = ConfigDict(frozen=True)

    total_users: int
    users_by_role: dict[str, int]
    audit_records: int


class AuditRecordResponse(BaseModel):
    """One audit trail entry with its actor resolved where possible.

    actor is None when the referenced identity no longer resolves.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    action: str
    actor_id: int
    actor: Optional[UserResponse] = None
    details: Any = None
    ip: str
    timestamp: str
    created_at: str


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
