"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in tickets/models.py -- dataclasses own domain shape; the authority and routes
do the work.

Layer rule: no imports from api/ or tickets/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

ADMIN_ROLE = "Admin"
USER_ROLE = "User"


@dataclass(frozen=True)
class UserCredential:
    """An identity the service recognizes.

    Built from configuration at startup (password set) or reconstructed from a
    refresh token record (password empty -- a credential view, not a login).
    Usernames are unique case-insensitively across the configured set.
    """

    username: str
    role: str
    password: str = ""


@dataclass(frozen=True)
class RefreshTokenRecord:
    """Server-side state for one opaque refresh token.

    Owned exclusively by TokenAuthority's registry, keyed by the token string.
    The token itself is not stored on the record.
    """

    username: str
    role: str
    expires_at: datetime  # aware UTC


@dataclass(frozen=True)
class SessionTokens:
    """Everything a client receives on login or refresh."""

    access_token: str
    access_expires_at: datetime
    refresh_token: str
    refresh_expires_at: datetime
    username: str
    role: str
