"""
api/main.py -- FastAPI application entry point for TicketDesk.

Run with:  uvicorn asgi:app --reload
           python asgi.py

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- credentialed CORS for the browser frontend
  3. log_requests          -- one log line per request

Lifespan builds the stores and services from Settings, attaches them to
app.state, and closes the stores on shutdown. Nothing below this module reads
configuration directly: each service receives its values through its
constructor.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.auth import router as auth_router
from api.routes.tickets import router as tickets_router
from auth.gate import SessionGate
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import TokenCodec
from core.config import Settings, get_settings
from core.exceptions import (
    ConflictError,
    InternalError,
    NotFoundError,
    TicketDeskError,
    UnauthenticatedError,
    UnauthorizedError,
)
from tickets.service import TicketService
from tickets.store import TicketStore

VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("ticketdesk.api")

_settings = get_settings()

# Domain error -> HTTP status. Subclasses not listed fall back to 500.
_STATUS_BY_ERROR: dict[type[TicketDeskError], int] = {
    ConflictError: 409,
    NotFoundError: 404,
    UnauthorizedError: 401,
    UnauthenticatedError: 401,
    InternalError: 500,
}


# ---------------------------------------------------------------------------
# Service wiring
# ---------------------------------------------------------------------------


def init_state(app: FastAPI, settings: Settings, user_store: UserStore, ticket_store: TicketStore) -> None:
    """Build the codec, gate and services and attach everything to app.state.

    Shared by the real lifespan and the test fixtures so both wire the
    application the same way.
    """
    codec = TokenCodec(settings.token_secret, settings.token_expire_seconds)
    app.state.settings = settings
    app.state.codec = codec
    app.state.user_store = user_store
    app.state.ticket_store = ticket_store
    app.state.gate = SessionGate(codec, user_store)
    app.state.auth_service = AuthService(
        user_store,
        codec,
        default_role=settings.default_role,
        default_internal_sec=settings.default_internal_sec,
        bcrypt_rounds=settings.bcrypt_rounds,
        strict_login_errors=settings.strict_login_errors,
    )
    app.state.ticket_service = TicketService(ticket_store, user_store)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the stores, seed defaults, wire services; close the stores on shutdown."""
    settings = get_settings()
    logger.info("TicketDesk API starting up")
    user_store = UserStore(settings.database_url, timeout=settings.db_timeout_seconds)
    ticket_store = TicketStore(settings.database_url, timeout=settings.db_timeout_seconds)
    if settings.seed_defaults:
        user_store.seed_defaults(
            roles=["admin", settings.default_role],
            dependency=settings.default_dependency,
            internal_sec=settings.default_internal_sec,
        )
    init_state(app, settings, user_store, ticket_store)
    logger.info("Stores initialized (token ttl=%ds)", settings.token_expire_seconds)

    yield

    ticket_store.close()
    user_store.close()
    logger.info("TicketDesk API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="TicketDesk API",
    description="Support tickets scoped by role, internal sector and dependency.",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(TrustedHostMiddleware, allowed_hosts=_settings.allowed_hosts)

# allow_credentials is required: the session travels in a cross-site cookie.
app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, tags=["Auth"])
app.include_router(tickets_router, tags=["Tickets"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so clients can parse
# errors uniformly.
# ---------------------------------------------------------------------------


def _error_response(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(),
    )


@app.exception_handler(TicketDeskError)
async def domain_error_handler(request: Request, exc: TicketDeskError) -> JSONResponse:
    """Map a domain error to its HTTP status.

    The detail field is only forwarded for client errors; internal errors
    keep their cause in the server log.
    """
    status_code = _STATUS_BY_ERROR.get(type(exc), 500)
    if status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
        return _error_response(status_code, exc.code, exc.message)
    return _error_response(status_code, exc.code, exc.message, exc.detail)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or query params fail validation."""
    return _error_response(422, "validation_error", "Request validation failed.", str(exc.errors()))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})
    return _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------


@app.get("/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return liveness, version and a database round-trip check. No auth."""
    try:
        request.app.state.user_store.ping()
        database = "ok"
    except SQLAlchemyError:
        logger.exception("Health check database ping failed")
        database = "error"
    return HealthResponse(version=VERSION, components={"app": "ok", "database": database})
