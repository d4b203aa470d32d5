"""
api/routes/auth.py -- Session endpoints.

Routes:
  POST /register     -- create account; sets session cookie (id-only claims)
  POST /login        -- password login; sets session cookie (id, role, internalSec)
  POST /logout       -- clears the session cookie; always 200
  GET  /profile      -- current user's public profile (requires session)
  GET  /verifyToken  -- decoded session claims (requires session)

Security:
  Responses never include the password hash.
  Cache-Control: no-store on every response that sets a session cookie.
  The cookie is httpOnly, SameSite=None and Secure (see auth/tokens.py).

Handlers are plain `def`: bcrypt and the store are blocking, so FastAPI runs
them in its threadpool.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import (
    LoginRequest,
    MessageResponse,
    ProfileResponse,
    PublicUserResponse,
    RegisterRequest,
    UserDetailResponse,
    VerifyTokenResponse,
)
from auth.dependencies import get_auth_service, get_gate, get_session_token
from auth.gate import SessionGate
from auth.service import AuthService
from auth.tokens import clear_auth_cookie, set_auth_cookie

# Auth policy:
# - POST /register, /login: public -- they create the session
# - POST /logout:           public -- clearing a cookie needs no prior auth
# - GET  /profile:          requires session (gate.profile)
# - GET  /verifyToken:      requires session (gate.verify_token)
router = APIRouter()


def _session_response(request: Request, content: dict, token: str, status_code: int = 200) -> JSONResponse:
    resp = JSONResponse(status_code=status_code, content=content)
    set_auth_cookie(
        resp,
        token,
        max_age=request.app.state.codec.ttl_seconds,
        secure=request.app.state.settings.secure_cookies,
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/register", response_model=PublicUserResponse, status_code=201)
def register(
    request: Request,
    body: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    """Create an account bound to the default role and sector; set the session cookie.

    The session issued here carries only the user id. Sector and dependency
    ticket views stay empty until the user logs in.
    """
    user, token = service.register(body.username, body.email, body.password)
    return _session_response(request, PublicUserResponse.from_user(user).model_dump(), token, status_code=201)


@router.post("/login", response_model=UserDetailResponse)
def login(
    request: Request,
    body: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    """Authenticate with email and password; set the session cookie."""
    user, token = service.login(body.email, body.password)
    return _session_response(request, UserDetailResponse.from_user(user).model_dump(), token)


@router.post("/logout", response_model=MessageResponse)
def logout(request: Request) -> JSONResponse:
    """Expire the session cookie. Idempotent; works without a session."""
    resp = JSONResponse(content=MessageResponse(message="Logged out").model_dump())
    clear_auth_cookie(resp, secure=request.app.state.settings.secure_cookies)
    return resp


@router.get("/profile", response_model=ProfileResponse)
def profile(
    token: str | None = Depends(get_session_token),
    gate: SessionGate = Depends(get_gate),
) -> ProfileResponse:
    """Return id, username, email and primary role of the session's user."""
    user, role = gate.profile(token)
    return ProfileResponse(id=user.id, username=user.username, email=user.email, role=role)


@router.get("/verifyToken", response_model=VerifyTokenResponse, response_model_exclude_none=True)
def verify_token(
    token: str | None = Depends(get_session_token),
    gate: SessionGate = Depends(get_gate),
) -> VerifyTokenResponse:
    """Return the session's signed claims without consulting the store."""
    return VerifyTokenResponse.from_claims(gate.verify_token(token))
