"""
api/routes/v1/tickets.py -- Ticket CRUD REST endpoints.

Routes:
  GET    /api/v1/tickets        -- all tickets, load order then insertion order
  GET    /api/v1/tickets/{id}   -- one ticket; 404 if unknown
  POST   /api/v1/tickets        -- add a ticket; 201
  PUT    /api/v1/tickets/{id}   -- replace every mutable field; 404 if unknown
  DELETE /api/v1/tickets/{id}   -- remove the first match; 404 if unknown

Identifiers are strings matched exactly. Duplicate identifiers are accepted
on POST; reads, updates and deletes act on the earliest one.
"""

from __future__ import annotations

from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from api.models import MessageResponse, TicketCreate, TicketFields, TicketResponse
from auth.dependencies import require_roles
from auth.models import ADMIN_ROLE, USER_ROLE, UserCredential
from tickets.models import Ticket
from tickets.store import TicketStore

# Auth policy:
# - GET    /api/v1/tickets, /tickets/{id}:  Admin or User
# - POST   /api/v1/tickets:                 Admin
# - PUT    /api/v1/tickets/{id}:            Admin
# - DELETE /api/v1/tickets/{id}:            Admin
router = APIRouter()

_read_access = require_roles(ADMIN_ROLE, USER_ROLE)
_write_access = require_roles(ADMIN_ROLE)


def _not_found(ticket_id: str) -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={"code": "not_found", "message": f"Ticket with ID {ticket_id} not found."},
    )


@router.get("/tickets", response_model=list[TicketResponse])
def list_tickets(
    request: Request,
    current_user: UserCredential = Depends(_read_access),
) -> list[TicketResponse]:
    store: TicketStore = request.app.state.ticket_store
    return [TicketResponse.from_ticket(t) for t in store.get_all()]


@router.get("/tickets/{ticket_id}", response_model=TicketResponse)
def get_ticket(
    request: Request,
    ticket_id: str,
    current_user: UserCredential = Depends(_read_access),
) -> TicketResponse:
    store: TicketStore = request.app.state.ticket_store
    ticket = store.get_by_id(ticket_id)
    if ticket is None:
        raise _not_found(ticket_id)
    return TicketResponse.from_ticket(ticket)


@router.post("/tickets", response_model=TicketResponse, status_code=201)
def create_ticket(
    request: Request,
    body: TicketCreate,
    current_user: UserCredential = Depends(_write_access),
) -> JSONResponse:
    """Add a ticket. The Location header points at GET /tickets/{id}."""
    store: TicketStore = request.app.state.ticket_store
    ticket = Ticket(**body.model_dump())
    # Identifiers are free text, so quote every reserved character, "/" included.
    location = f"{request.url_for('list_tickets')}/{quote(ticket.ticket_id, safe='')}"
    store.add(ticket)
    return JSONResponse(
        status_code=201,
        content=TicketResponse.from_ticket(ticket).model_dump(),
        headers={"Location": location},
    )


@router.put("/tickets/{ticket_id}", response_model=MessageResponse)
def update_ticket(
    request: Request,
    ticket_id: str,
    body: TicketFields,
    current_user: UserCredential = Depends(_write_access),
) -> MessageResponse:
    store: TicketStore = request.app.state.ticket_store
    if not store.update(ticket_id, Ticket(ticket_id=ticket_id, **body.model_dump())):
        raise _not_found(ticket_id)
    return MessageResponse(message="Ticket updated successfully.")


@router.delete("/tickets/{ticket_id}", response_model=MessageResponse)
def delete_ticket(
    request: Request,
    ticket_id: str,
    current_user: UserCredential = Depends(_write_access),
) -> MessageResponse:
    store: TicketStore = request.app.state.ticket_store
    if not store.delete(ticket_id):
        raise _not_found(ticket_id)
    return MessageResponse(message="Ticket deleted successfully.")
