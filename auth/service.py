"""
auth/service.py -- Registration and login.

AuthService owns the credential workflow: hash, persist, bind defaults, and
issue a session token. It knows nothing about HTTP; the route layer writes
the returned token to the session cookie.

Claims shape:
  register() issues a token with only the user id. login() issues a token
  with id, the first role name and the first internal sector id. A freshly
  registered user therefore has no sector/role claims until they log in;
  ticket queries treat the missing claims as "no access".

Layer rule: no imports from api/ or tickets/.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.models import User
from auth.store import UserStore
from auth.tokens import TokenCodec, hash_password, verify_password
from core.exceptions import ConflictError, InternalError, NotFoundError, UnauthorizedError

logger = logging.getLogger("ticketdesk.auth")


class AuthService:
    """Register and authenticate users.

    Args:
        store:               Credential store.
        codec:               Token codec holding the signing secret and TTL.
        default_role:        Role bound to every new user.
        default_internal_sec: Internal sector bound to every new user.
        bcrypt_rounds:       bcrypt cost factor for new hashes.
        strict_login_errors: When True, unknown email and wrong password both
                             raise UnauthorizedError and take the same time.
    """

    def __init__(
        self,
        store: UserStore,
        codec: TokenCodec,
        default_role: str = "ejecutor",
        default_internal_sec: str = "Guest",
        bcrypt_rounds: int = 12,
        strict_login_errors: bool = False,
    ) -> None:
        self.store = store
        self.codec = codec
        self.default_role = default_role
        self.default_internal_sec = default_internal_sec
        self.bcrypt_rounds = bcrypt_rounds
        self.strict_login_errors = strict_login_errors
        # Same cost as real hashes so an unknown email costs one full bcrypt check.
        self._dummy_hash = hash_password("ticketdesk_timing_dummy", rounds=bcrypt_rounds)

    def register(self, username: str, email: str, password: str) -> tuple[User, str]:
        """Create a user bound to the default role and sector; return (user, token).

        Raises ConflictError if the email is taken, NotFoundError if seed data
        is missing, InternalError on any other store failure. No user row is
        left behind on failure. A password over MAX_PASSWORD_BYTES raises
        ValueError before the store is touched.
        """
        candidate = User(
            username=username,
            email=email,
            hashed_password=hash_password(password, rounds=self.bcrypt_rounds),
        )
        try:
            user_id = self.store.register_user(
                candidate,
                role_name=self.default_role,
                internal_sec_name=self.default_internal_sec,
            )
        except IntegrityError as exc:
            raise ConflictError("A user with that email already exists.") from exc
        except SQLAlchemyError as exc:
            logger.exception("Registration failed for a new user")
            raise InternalError("Registration failed.") from exc

        candidate.id = user_id
        token = self.codec.issue(user_id)
        logger.info("Registered user id=%d", user_id)
        return candidate, token

    def login(self, email: str, password: str) -> tuple[User, str]:
        """Check credentials and return (user with bindings, token).

        Raises NotFoundError for an unknown email and UnauthorizedError for a
        wrong password. With strict_login_errors both raise UnauthorizedError.
        """
        try:
            user = self.store.get_by_email(email)
            detail = self.store.get_user_detail(user.id) if user is not None else None
        except SQLAlchemyError as exc:
            logger.exception("Login lookup failed")
            raise InternalError("Login failed.") from exc

        if detail is None:
            if self.strict_login_errors:
                verify_password(password, self._dummy_hash)
                raise UnauthorizedError("Invalid email or password.")
            raise NotFoundError("User not found.")

        if not verify_password(password, detail.hashed_password):
            logger.info("Rejected login for user id=%d", detail.id)
            if self.strict_login_errors:
                raise UnauthorizedError("Invalid email or password.")
            raise UnauthorizedError("Invalid password.")

        role = detail.roles[0].name if detail.roles else None
        internal_sec_id = detail.internal_secs[0].id if detail.internal_secs else None
        token = self.codec.issue(detail.id, role=role, internal_sec_id=internal_sec_id)
        logger.info("User id=%d logged in (role=%s, internal_sec=%s)", detail.id, role, internal_sec_id)
        return detail, token
