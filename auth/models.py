"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and services do
the work; routes map these onto the pydantic models in api/models.py.

Layer rule: no imports from api/ or tickets/.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class User:
    """A registered account.

    hashed_password is a bcrypt hash. It never leaves the auth layer: every
    HTTP response is built from a projection that omits it.

    roles / internal_secs are populated only by the store lookups that join
    the binding tables (get_user_detail). They are ordered earliest binding
    first, so index 0 is the binding used when issuing login claims.
    """

    username: str
    email: str
    hashed_password: str
    id: int | None = None
    created_at: str | None = None
    roles: list[Role] = field(default_factory=list)
    internal_secs: list[InternalSec] = field(default_factory=list)


@dataclass
class Role:
    name: str  # "admin", "ejecutor"
    id: int | None = None


@dataclass
class Dependency:
    """An organizational unit that groups internal sectors."""

    name: str
    id: int | None = None


@dataclass
class InternalSec:
    """An internal sector. Every sector belongs to at most one dependency."""

    name: str
    id: int | None = None
    dependency_id: int | None = None


@dataclass
class SessionClaims:
    """The authorization claims carried inside a signed session token.

    role and internal_sec_id are None for tokens issued at registration and
    set for tokens issued at login. issued_at / expires_at are Unix seconds.
    Never persisted server-side.
    """

    user_id: int
    issued_at: int
    expires_at: int
    role: str | None = None
    internal_sec_id: int | None = None
