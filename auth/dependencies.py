"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The session token is read from the "access-token" cookie first, then from
an "Authorization: Bearer <token>" header for non-browser clients.

get_session_claims() is the dependency every protected route uses. It
raises UnauthenticatedError, which api/main.py turns into a 401.

The gate and services live on app.state; they are built once in the
application lifespan.

Layer rule: no imports from api/ or tickets/.
  auth/dependencies.py may import from fastapi because it is part of the
  FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.gate import SessionGate
from auth.models import SessionClaims
from auth.service import AuthService
from auth.tokens import read_session_token


def get_session_token(request: Request) -> str | None:
    return read_session_token(request.cookies, request.headers)


def get_gate(request: Request) -> SessionGate:
    return request.app.state.gate


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_session_claims(request: Request) -> SessionClaims:
    """Require a valid session. Raises UnauthenticatedError otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(claims: SessionClaims = Depends(get_session_claims)): ...
    """
    return get_gate(request).require_session(get_session_token(request))
