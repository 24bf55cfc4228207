"""
tickets/store.py -- In-memory ticket registry.

Pattern: Repository. TicketStore owns the ordered list of tickets for the
process lifetime; routes never touch the list directly. Nothing is persisted
-- a restart reloads the startup file and loses every write since.

Concurrency: one coarse threading.Lock around the list. get_all() hands out a
snapshot copy so callers can iterate while other requests add or delete.

Identifiers are matched by exact string equality. Duplicates are allowed;
every lookup, update and delete acts on the earliest match.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable

from tickets.models import Ticket

_MUTABLE_FIELDS = ("email", "type", "description", "status", "resolution")


class TicketStore:
    """Repository for Ticket entities.

    Usage:
        store = TicketStore(load_tickets_file(path).tickets)
        store.add(Ticket(ticket_id="T-1", email="a@example.com"))
        ticket = store.get_by_id("T-1")
        store.delete("T-1")
    """

    def __init__(self, tickets: Iterable[Ticket] = ()) -> None:
        self._tickets: list[Ticket] = list(tickets)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._tickets)

    def get_all(self) -> list[Ticket]:
        """Return all tickets in insertion order (a snapshot, not the live list)."""
        with self._lock:
            return list(self._tickets)

    def get_by_id(self, ticket_id: str) -> Ticket | None:
        with self._lock:
            return self._find(ticket_id)

    def add(self, ticket: Ticket) -> None:
        """Append ticket. Uniqueness of ticket_id is the caller's concern."""
        with self._lock:
            self._tickets.append(ticket)

    def update(self, ticket_id: str, values: Ticket) -> bool:
        """Overwrite every mutable field of the first match in place.

        values.ticket_id is ignored; the stored identifier never changes.
        Returns False and changes nothing when ticket_id is unknown.
        """
        with self._lock:
            existing = self._find(ticket_id)
            if existing is None:
                return False
            for name in _MUTABLE_FIELDS:
                setattr(existing, name, getattr(values, name))
            return True

    def delete(self, ticket_id: str) -> bool:
        """Remove the first match. Returns False when ticket_id is unknown."""
        with self._lock:
            for index, ticket in enumerate(self._tickets):
                if ticket.ticket_id == ticket_id:
                    del self._tickets[index]
                    return True
            return False

    def _find(self, ticket_id: str) -> Ticket | None:
        # Caller holds self._lock.
        for ticket in self._tickets:
            if ticket.ticket_id == ticket_id:
                return ticket
        return None
