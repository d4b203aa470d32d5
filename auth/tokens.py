"""
auth/tokens.py -- Session tokens, password hashing, and the session cookie.

Security design decisions:
  JWT: python-jose with HS256. TokenCodec is constructed with the signing
       secret and TTL; nothing here reads configuration on its own. Tokens
       carry "id", the optional "role" / "internalSec" claims, and the
       standard "iat" / "exp" claims. decode() raises InvalidTokenError on any
       failure; the authorization gate turns that into 401.

  Passwords: bcrypt used directly (no passlib wrapper). Cost factor is a
       constructor argument of AuthService so tests can run with a low one.

  Cookie: "access-token", httpOnly, SameSite=None, Secure. The frontend is
       served from a different site, so the cookie must be sent cross-site;
       browsers only accept SameSite=None together with Secure.

Layer rule: no imports from api/ or tickets/.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone

import bcrypt
from jose import JWTError, jwt

from auth.models import SessionClaims
from core.exceptions import InvalidTokenError

logger = logging.getLogger("ticketdesk.auth")

ALGORITHM = "HS256"
COOKIE_NAME = "access-token"
# bcrypt only reads this many bytes of the encoded password.
MAX_PASSWORD_BYTES = 72

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str, rounds: int = 12) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    Raises ValueError if the UTF-8 encoding exceeds MAX_PASSWORD_BYTES.
    Depending on its version bcrypt either truncates or rejects such input,
    so the limit is enforced here. The API layer rejects these with 422.
    """
    encoded = plain.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A password longer than MAX_PASSWORD_BYTES can never have been hashed,
    so it fails without reaching bcrypt.
    """
    encoded = plain.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, hashed.encode("utf-8"))
    except ValueError:
        # Malformed hash in the store.
        logger.warning("Stored password hash could not be parsed")
        return False


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


class TokenCodec:
    """Encode and decode signed, time-bound session tokens.

    Usage:
        codec = TokenCodec(secret, ttl_seconds=86400)
        token = codec.issue(user_id=1, role="ejecutor", internal_sec_id=3)
        claims = codec.decode(token)
    """

    def __init__(self, secret: str, ttl_seconds: int, algorithm: str = ALGORITHM) -> None:
        if not secret:
            raise ValueError("Token secret must not be empty.")
        if ttl_seconds <= 0:
            raise ValueError("Token TTL must be positive.")
        self._secret = secret
        self.ttl_seconds = ttl_seconds
        self._algorithm = algorithm

    def claims_for(self, user_id: int, role: str | None = None, internal_sec_id: int | None = None) -> SessionClaims:
        """Build claims valid from now until now + TTL."""
        now = int(time.time())
        return SessionClaims(
            user_id=user_id,
            role=role,
            internal_sec_id=internal_sec_id,
            issued_at=now,
            expires_at=now + self.ttl_seconds,
        )

    def issue(self, user_id: int, role: str | None = None, internal_sec_id: int | None = None) -> str:
        return self.encode(self.claims_for(user_id, role, internal_sec_id))

    def encode(self, claims: SessionClaims) -> str:
        return jwt.encode(claims_to_payload(claims), self._secret, algorithm=self._algorithm)

    def decode(self, token: str) -> SessionClaims:
        """Verify signature and expiry and return the claims.

        Raises InvalidTokenError for a bad signature, a malformed token, an
        expired token, or a payload without a usable "id" / "exp".
        """
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except JWTError as exc:
            raise InvalidTokenError("Invalid session token.", detail=str(exc)) from exc
        return payload_to_claims(payload)


def claims_to_payload(claims: SessionClaims) -> dict:
    """Serialize claims to the JWT payload shape clients see from /verifyToken.

    role and internalSec are omitted, not null, on registration tokens.
    """
    payload: dict = {"id": claims.user_id}
    if claims.role is not None:
        payload["role"] = claims.role
    if claims.internal_sec_id is not None:
        payload["internalSec"] = claims.internal_sec_id
    payload["iat"] = claims.issued_at
    payload["exp"] = claims.expires_at
    return payload


def payload_to_claims(payload: dict) -> SessionClaims:
    user_id = payload.get("id")
    expires_at = payload.get("exp")
    if not isinstance(user_id, int) or isinstance(user_id, bool) or not isinstance(expires_at, int):
        raise InvalidTokenError("Invalid session token.", detail="missing id or exp claim")
    internal_sec = payload.get("internalSec")
    return SessionClaims(
        user_id=user_id,
        role=payload.get("role"),
        internal_sec_id=internal_sec if isinstance(internal_sec, int) else None,
        issued_at=payload.get("iat") or 0,
        expires_at=expires_at,
    )


# ---------------------------------------------------------------------------
# Session transport (cookie)
# ---------------------------------------------------------------------------


def set_auth_cookie(response, token: str, max_age: int, secure: bool = True) -> None:
    """Write the session token as an httpOnly cross-site cookie.

    max_age matches the token TTL so cookie and token expire together.
    """
    response.set_cookie(
        COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="none",
        secure=secure,
        max_age=max_age,
    )


def clear_auth_cookie(response, secure: bool = True) -> None:
    """Overwrite the session cookie with an empty value that expired at the epoch."""
    response.set_cookie(
        COOKIE_NAME,
        value="",
        httponly=True,
        samesite="none",
        secure=secure,
        expires=datetime(1970, 1, 1, tzinfo=timezone.utc),
    )


def read_session_token(cookies, headers) -> str | None:
    """Return the session token from the cookie, else from a Bearer header.

    An empty cookie (what logout leaves behind) counts as no token.
    """
    token = cookies.get(COOKIE_NAME)
    if token:
        return token
    auth_header = headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:] or None
    return None
