"""
auth/gate.py -- The authorization gate in front of every protected operation.

SessionGate turns a raw token (or its absence) into SessionClaims. Every
failure -- missing token, bad signature, malformed token, expiry -- raises
the same UnauthenticatedError so callers cannot tell them apart.

The gate enforces no role or sector rule itself. Downstream services filter
on the claims they receive.

Layer rule: no imports from api/ or tickets/.
"""

from __future__ import annotations

import logging

from auth.models import SessionClaims, User
from auth.store import UserStore
from auth.tokens import TokenCodec
from core.exceptions import InvalidTokenError, NotFoundError, UnauthenticatedError

logger = logging.getLogger("ticketdesk.auth")

_NOT_AUTHENTICATED = "User not authenticated"


class SessionGate:
    def __init__(self, codec: TokenCodec, store: UserStore) -> None:
        self.codec = codec
        self.store = store

    def require_session(self, token: str | None) -> SessionClaims:
        """Return the claims of a valid token or raise UnauthenticatedError."""
        if not token:
            raise UnauthenticatedError(_NOT_AUTHENTICATED)
        try:
            return self.codec.decode(token)
        except InvalidTokenError as exc:
            logger.debug("Session token rejected: %s", exc.detail)
            raise UnauthenticatedError(_NOT_AUTHENTICATED) from None

    def profile(self, token: str | None) -> tuple[User, str | None]:
        """Re-fetch the token's user; return (user, first role name).

        Raises NotFoundError if the user was deleted after the token was issued.
        """
        claims = self.require_session(token)
        user = self.store.get_user_detail(claims.user_id)
        if user is None:
            raise NotFoundError("User not found.")
        role = user.roles[0].name if user.roles else None
        return user, role

    def verify_token(self, token: str | None) -> SessionClaims:
        """Return the decoded claims verbatim, without touching the store."""
        return self.require_session(token)
