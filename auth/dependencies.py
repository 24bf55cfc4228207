"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Requests authenticate with an `Authorization: Bearer <access token>` header.
The token is verified by the TokenAuthority stored on app.state during
lifespan startup; no server-side session lookup is involved.

try_get_current_user() is the soft variant (returns None on failure).
get_current_user() wraps it and raises HTTP 401 if unauthenticated.
require_roles() builds a dependency that also raises HTTP 403 when the
token's role is not one of the accepted roles.

Layer rule: no imports from tickets/.
  auth/dependencies.py may import from fastapi (for HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import HTTPException, Request

from auth.models import UserCredential
from auth.tokens import TokenAuthority


def try_get_current_user(request: Request) -> UserCredential | None:
    """Attempt to authenticate the request via its Bearer token.

    Returns a credential view (username + role) on success, None on any
    failure. Never raises -- callers that need a hard 401 should use
    get_current_user().
    """
    authority: TokenAuthority = request.app.state.token_authority

    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    token = auth_header[7:].strip()
    if not token:
        return None

    payload = authority.decode_access_token(token)
    if payload is None:
        return None
    return UserCredential(username=payload["sub"], role=payload["role"])


def get_current_user(request: Request) -> UserCredential:
    """Require authentication. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(user: UserCredential = Depends(get_current_user)): ...
    """
    user = try_get_current_user(request)
    if user is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthenticated", "message": "Authentication required."},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_roles(*roles: str) -> Callable[[Request], UserCredential]:
    """Build a dependency that requires one of roles. 401 if unauthenticated, 403 otherwise.

    Role names are compared exactly ("Admin" is not "admin").

    Use as a FastAPI dependency:
        @router.post("/admin-only")
        async def route(user: UserCredential = Depends(require_roles(ADMIN_ROLE))): ...
    """
    accepted = frozenset(roles)

    def dependency(request: Request) -> UserCredential:
        user = get_current_user(request)
        if user.role not in accepted:
            raise HTTPException(
                status_code=403,
                detail={"code": "forbidden", "message": "Insufficient role for this operation."},
            )
        return user

    return dependency
