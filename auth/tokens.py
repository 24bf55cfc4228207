"""
auth/tokens.py -- Access tokens, refresh tokens, and credential checks.

Security design decisions:
  Access tokens: python-jose with HS256. Tokens are signed with JWT_SECRET_KEY
       and carry sub, name, role, jti, iat and exp (plus iss/aud when
       configured). They are stateless -- nothing is stored server-side.
       Verification returns None on any failure; the route layer turns that
       into a 401.

  Refresh tokens: secrets.token_bytes(64), base64-encoded. 512 bits of entropy,
       so no collision check is made on insert. Every record lives in an
       in-memory registry keyed by the token string. Expiry is lazy: an
       expired record is only removed when someone presents it.

  Rotation: a refresh token can be redeemed once. rotate_refresh_token()
       validates and removes the record under one lock acquisition, so two
       concurrent refreshes with the same token cannot both succeed.

  Passwords: plaintext from configuration, compared with hmac.compare_digest.
       Hashing is out of scope for this service.

  Uniform failure: unknown, expired and revoked refresh tokens all produce
       None. Callers cannot tell them apart, which keeps token existence
       private.

Layer rule: no imports from api/ or tickets/. Import from core/ is allowed.
"""

from __future__ import annotations

import base64
import hmac
import logging
import secrets
import threading
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from auth.models import RefreshTokenRecord, SessionTokens, UserCredential
from core.config import ConfigurationError, Settings

logger = logging.getLogger("ticketdesk.auth")

_ALGORITHM = "HS256"
_REFRESH_TOKEN_BYTES = 64
_REQUIRED_CLAIMS = ("sub", "role", "jti")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenAuthority:
    """Issues, validates, rotates and revokes session tokens.

    Construct once at startup and share the instance. All methods are safe to
    call from concurrent request handlers.

    Usage:
        authority = TokenAuthority(get_settings())
        user = authority.validate_credentials("alice", "pw1")
        session = authority.issue_session(user.username, user.role)
        user = authority.rotate_refresh_token(session.refresh_token)
    """

    def __init__(self, settings: Settings, clock: Callable[[], datetime] = _utcnow) -> None:
        if not settings.jwt_secret_key:
            raise ConfigurationError("JWT secret key is not configured")
        self._secret_key = settings.jwt_secret_key
        self._issuer = settings.jwt_issuer or None
        self._audience = settings.jwt_audience or None
        self._access_minutes = settings.jwt_expiry_minutes
        self._refresh_minutes = settings.jwt_refresh_expiry_minutes
        self._users = tuple(UserCredential(username=u.username, role=u.role, password=u.password) for u in settings.users)
        self._clock = clock
        self._refresh_tokens: dict[str, RefreshTokenRecord] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def get_access_token_expiry_minutes(self) -> int:
        return self._access_minutes

    def get_refresh_token_expiry_minutes(self) -> int:
        return self._refresh_minutes

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    def validate_credentials(self, username: str, password: str) -> UserCredential | None:
        """Return the configured user matching username (any case) and password.

        Pure lookup: no lockout, no attempt counting. Returns None when either
        part does not match.
        """
        folded = username.casefold()
        for user in self._users:
            if user.username.casefold() != folded:
                continue
            if hmac.compare_digest(user.password.encode("utf-8"), password.encode("utf-8")):
                return user
            return None
        return None

    # ------------------------------------------------------------------
    # Access tokens
    # ------------------------------------------------------------------

    def issue_access_token(self, username: str, role: str) -> str:
        """Encode a signed JWT for username/role expiring after the access lifetime."""
        token, _expires_at = self._encode_access_token(username, role)
        return token

    def _encode_access_token(self, username: str, role: str) -> tuple[str, datetime]:
        # JWT times are whole seconds; the reported expiry must equal the exp claim.
        issued_at = self._clock().replace(microsecond=0)
        expires_at = issued_at + timedelta(minutes=self._access_minutes)
        payload = {
            "sub": username,
            "name": username,
            "role": role,
            "jti": str(uuid.uuid4()),
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        if self._issuer:
            payload["iss"] = self._issuer
        if self._audience:
            payload["aud"] = self._audience
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM), expires_at

    def decode_access_token(self, token: str) -> dict | None:
        """Decode and verify a JWT. Returns the payload dict or None on any failure.

        Signature, expiry (no leeway), issuer and audience are all checked.
        Returning None rather than raising keeps the caller simple: any invalid
        token is treated as unauthenticated.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[_ALGORITHM],
                audience=self._audience,
                issuer=self._issuer,
            )
        except JWTError:
            return None
        if any(claim not in payload for claim in _REQUIRED_CLAIMS):
            return None
        return payload

    # ------------------------------------------------------------------
    # Refresh tokens
    # ------------------------------------------------------------------

    def issue_refresh_token(self, username: str, role: str) -> tuple[str, datetime]:
        """Create and register an opaque refresh token. Returns (token, expires_at)."""
        token = base64.b64encode(secrets.token_bytes(_REFRESH_TOKEN_BYTES)).decode("ascii")
        expires_at = self._clock() + timedelta(minutes=self._refresh_minutes)
        record = RefreshTokenRecord(username=username, role=role, expires_at=expires_at)
        with self._lock:
            self._refresh_tokens[token] = record
        return token, expires_at

    def validate_refresh_token(self, token: str) -> UserCredential | None:
        """Return the credential view for a live refresh token, else None.

        An expired record is removed on the way out, so it fails on this call
        and stays absent on every later one.
        """
        with self._lock:
            record = self._live_record(token)
        if record is None:
            return None
        return UserCredential(username=record.username, role=record.role)

    def revoke_refresh_token(self, token: str) -> None:
        """Remove the record if present. No-op for unknown tokens."""
        with self._lock:
            self._refresh_tokens.pop(token, None)

    def rotate_refresh_token(self, token: str) -> UserCredential | None:
        """Validate and revoke token as one step. The token is spent either way."""
        with self._lock:
            record = self._live_record(token)
            if record is not None:
                del self._refresh_tokens[token]
        if record is None:
            return None
        return UserCredential(username=record.username, role=record.role)

    def _live_record(self, token: str) -> RefreshTokenRecord | None:
        # Caller holds self._lock.
        record = self._refresh_tokens.get(token)
        if record is None:
            return None
        if record.expires_at <= self._clock():
            del self._refresh_tokens[token]
            return None
        return record

    @property
    def active_refresh_tokens(self) -> int:
        """Number of records in the registry, expired-but-unread ones included."""
        with self._lock:
            return len(self._refresh_tokens)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def issue_session(self, username: str, role: str) -> SessionTokens:
        """Issue an access token and a refresh token for one authenticated user."""
        access_token, access_expires_at = self._encode_access_token(username, role)
        refresh_token, refresh_expires_at = self.issue_refresh_token(username, role)
        return SessionTokens(
            access_token=access_token,
            access_expires_at=access_expires_at,
            refresh_token=refresh_token,
            refresh_expires_at=refresh_expires_at,
            username=username,
            role=role,
        )
