"""
core/exceptions.py -- Domain error taxonomy for TicketDesk.

Services raise these; api/main.py maps each one to an HTTP status and the
shared ErrorResponse envelope. The `code` attribute is the machine-readable
value clients see in error.code.

Layer rule: no imports from api/, auth/ or tickets/.
"""


class TicketDeskError(Exception):
    """Base exception for all TicketDesk domain errors."""

    code = "error"

    def __init__(self, message: str, detail: str | None = None) -> None:
        self.message = message
        self.detail = detail
        super().__init__(message)


class ConflictError(TicketDeskError):
    """Raised when a write collides with a uniqueness constraint (duplicate email)."""

    code = "conflict"


class NotFoundError(TicketDeskError):
    """Raised when a user, seed role or seed sector does not exist."""

    code = "not_found"


class UnauthorizedError(TicketDeskError):
    """Raised when credentials are presented but do not match."""

    code = "bad_credentials"


class UnauthenticatedError(TicketDeskError):
    """Raised when no valid session token accompanies a protected request."""

    code = "unauthenticated"


class InternalError(TicketDeskError):
    """Raised when the store or the token codec fails unexpectedly."""

    code = "internal_error"


class InvalidTokenError(TicketDeskError):
    """Raised by the token codec for tampered, malformed or expired tokens.

    Never surfaces over HTTP: the authorization gate converts it into
    UnauthenticatedError so callers cannot tell the failure modes apart.
    """

    code = "invalid_token"
