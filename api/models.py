"""
API request and response models for TicketDesk REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in tickets/models.py and
auth/models.py, which own the internal domain representation. Route handlers
map between the two.

Separation of concerns: domain dataclasses = domain truth; api/ models = API contract.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.models import SessionTokens
from tickets.models import Ticket

# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login.

    Values are passed through untouched: the password must match exactly,
    surrounding whitespace included. Whitespace-only values are rejected.
    """

    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)

    @field_validator("username", "password")
    @classmethod
    def reject_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class RefreshRequest(BaseModel):
    """Request body for POST /api/v1/auth/refresh."""

    model_config = ConfigDict(str_strip_whitespace=True)

    refresh_token: str = Field(min_length=1, max_length=512)


class LoginResponse(BaseModel):
    """Response for login and refresh. Expiry timestamps are absolute UTC."""

    model_config = ConfigDict(frozen=True)

    token: str
    token_type: str = "bearer"
    username: str
    role: str
    expires_at: datetime
    refresh_token: str
    refresh_expires_at: datetime

    @classmethod
    def from_session(cls, session: SessionTokens) -> "LoginResponse":
        return cls(
            token=session.access_token,
            username=session.username,
            role=session.role,
            expires_at=session.access_expires_at,
            refresh_token=session.refresh_token,
            refresh_expires_at=session.refresh_expires_at,
        )


class MeResponse(BaseModel):
    """Response for GET /api/v1/auth/me."""

    model_config = ConfigDict(frozen=True)

    username: str
    role: str


# ---------------------------------------------------------------------------
# Tickets
# ---------------------------------------------------------------------------


class TicketFields(BaseModel):
    """The mutable part of a ticket. PUT replaces all of these; omitted means null."""

    model_config = ConfigDict(str_strip_whitespace=True)

    email: Optional[str] = Field(default=None, max_length=320)
    type: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = Field(default=None, max_length=10000)
    status: Optional[str] = Field(default=None, max_length=100)
    resolution: Optional[str] = Field(default=None, max_length=10000)


class TicketCreate(TicketFields):
    """Request body for POST /api/v1/tickets. Identifier uniqueness is not checked."""

    ticket_id: str = Field(min_length=1, max_length=100)


class TicketResponse(BaseModel):
    """One ticket as returned to clients."""

    model_config = ConfigDict(frozen=True)

    ticket_id: str
    email: Optional[str]
    type: Optional[str]
    description: Optional[str]
    status: Optional[str]
    resolution: Optional[str]

    @classmethod
    def from_ticket(cls, ticket: Ticket) -> "TicketResponse":
        return cls(
            ticket_id=ticket.ticket_id,
            email=ticket.email,
            type=ticket.type,
            description=ticket.description,
            status=ticket.status,
            resolution=ticket.resolution,
        )


class MessageResponse(BaseModel):
    """Plain acknowledgement for update and delete."""

    model_config = ConfigDict(frozen=True)

    message: str


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
