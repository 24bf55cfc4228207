"""
api/routes/v1/auth.py -- Session endpoints.

Routes:
  POST /api/v1/auth/login    -- username/password login; returns access + refresh tokens
  POST /api/v1/auth/refresh  -- exchange a refresh token for a new pair (rotation)
  GET  /api/v1/auth/me       -- identity carried by the current access token

Security:
  POST /login is rate-limited per client IP (LOGIN_RATE_LIMIT).
  Login and refresh failures return the same 401 "unauthenticated" code
  whatever the cause -- wrong password, unknown user, expired, revoked or
  never-issued refresh token all look alike.
  Cache-Control: no-store on every response that carries tokens.
  Passwords and tokens are never logged.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import LOGIN_RATE_LIMIT, limiter
from api.models import LoginRequest, LoginResponse, MeResponse, RefreshRequest
from auth.dependencies import get_current_user
from auth.models import UserCredential
from auth.tokens import TokenAuthority

logger = logging.getLogger("ticketdesk.api.auth")

# Auth policy:
# - POST /api/v1/auth/login:    public -- login endpoint must be unauthenticated
# - POST /api/v1/auth/refresh:  public -- the refresh token is the credential
# - GET  /api/v1/auth/me:       requires auth (get_current_user)
router = APIRouter()


def _unauthenticated(message: str) -> JSONResponse:
    resp = JSONResponse(
        status_code=401,
        content={"error": {"code": "unauthenticated", "message": message}},
        headers={"WWW-Authenticate": "Bearer"},
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


def _session_response(authority: TokenAuthority, user: UserCredential) -> JSONResponse:
    session = authority.issue_session(user.username, user.role)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse.from_session(session).model_dump(mode="json"),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@limiter.limit(LOGIN_RATE_LIMIT)  # brute-force mitigation -- must be ABOVE @router to preserve FastAPI introspection
@router.post("/auth/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with username and password; return a new token pair."""
    authority: TokenAuthority = request.app.state.token_authority
    logger.info("Login attempt for user %s", body.username)

    user = authority.validate_credentials(body.username, body.password)
    if user is None:
        logger.warning("Invalid login attempt for user %s", body.username)
        return _unauthenticated("Invalid username or password.")

    logger.info("User %s logged in", user.username)
    return _session_response(authority, user)


@router.post("/auth/refresh", response_model=LoginResponse)
def refresh(request: Request, body: RefreshRequest) -> JSONResponse:
    """Redeem a refresh token once and return a fresh access token and refresh token.

    The presented token is revoked in the same step that validates it, so a
    replayed token -- or a second concurrent request with the same token --
    gets 401.
    """
    authority: TokenAuthority = request.app.state.token_authority

    user = authority.rotate_refresh_token(body.refresh_token)
    if user is None:
        logger.info("Refresh rejected (unknown, expired or already used token)")
        return _unauthenticated("Invalid or expired refresh token.")

    logger.info("Refresh token rotated for user %s", user.username)
    return _session_response(authority, user)


@router.get("/auth/me", response_model=MeResponse)
async def me(current_user: UserCredential = Depends(get_current_user)) -> MeResponse:
    """Return identity information for the currently authenticated user."""
    return MeResponse(username=current_user.username, role=current_user.role)
