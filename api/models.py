"""
API request and response models for TicketDesk REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/models.py and
tickets/models.py, which own the internal domain representation. Route
handlers map between the two through the from_* factory methods below.

No response model carries a password hash.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.models import SessionClaims, User
from auth.tokens import MAX_PASSWORD_BYTES
from tickets.models import Ticket

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class PriorityEnum(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /register."""

    username: str = Field(min_length=1, max_length=255)
    email: str = Field(max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=1, max_length=MAX_PASSWORD_BYTES)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return str(value).strip().lower()

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        # max_length counts characters; bcrypt counts UTF-8 bytes.
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes when UTF-8 encoded.")
        return value


class LoginRequest(BaseModel):
    """Request body for POST /login."""

    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=MAX_PASSWORD_BYTES)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return str(value).strip().lower()


class TicketCreate(BaseModel):
    """Request body for POST /tickets.

    internal_sec_id addresses the ticket to another sector; when omitted the
    ticket goes to the author's own sector.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=5000)
    priority: PriorityEnum = PriorityEnum.medium
    internal_sec_id: Optional[int] = Field(default=None, ge=1)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class PublicUserResponse(BaseModel):
    """Safe projection of a user returned by POST /register."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    email: str

    @classmethod
    def from_user(cls, user: User) -> "PublicUserResponse":
        return cls(id=user.id, username=user.username, email=user.email)


class UserDetailResponse(BaseModel):
    """User with role names and internal sector ids, returned by POST /login.

    Lists are ordered earliest binding first; element 0 is what the session
    token carries.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    email: str
    created_at: str
    roles: list[str]
    internal_secs: list[int]

    @classmethod
    def from_user(cls, user: User) -> "UserDetailResponse":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            created_at=user.created_at or "",
            roles=[r.name for r in user.roles],
            internal_secs=[s.id for s in user.internal_secs],
        )


class ProfileResponse(BaseModel):
    """Response for GET /profile."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    email: str
    role: Optional[str] = None


class VerifyTokenResponse(BaseModel):
    """Decoded session claims returned verbatim by GET /verifyToken.

    role and internalSec are absent on tokens issued at registration.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    role: Optional[str] = None
    internalSec: Optional[int] = None
    iat: int
    exp: int

    @classmethod
    def from_claims(cls, claims: SessionClaims) -> "VerifyTokenResponse":
        return cls(
            id=claims.user_id,
            role=claims.role,
            internalSec=claims.internal_sec_id,
            iat=claims.issued_at,
            exp=claims.expires_at,
        )


class TicketResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    description: str
    priority: str
    status: str
    author_id: int
    internal_sec_id: Optional[int]
    dependency_id: Optional[int]
    created_at: str

    @classmethod
    def from_ticket(cls, ticket: Ticket) -> "TicketResponse":
        return cls(
            id=ticket.id,
            title=ticket.title,
            description=ticket.description,
            priority=ticket.priority,
            status=ticket.status,
            author_id=ticket.author_id,
            internal_sec_id=ticket.internal_sec_id,
            dependency_id=ticket.dependency_id,
            created_at=ticket.created_at,
        )


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


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
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
