"""
tickets/models.py -- Domain dataclasses for the ticket registry.

These are pure data containers with zero logic. Parsing rules live in
tickets/ingest.py; CRUD and locking live in tickets/store.py.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


@dataclass
class Ticket:
    """A support ticket.

    ticket_id is expected to be unique but nothing enforces it; lookups return
    the earliest match. Every other field is mutable through
    TicketStore.update().
    """

    ticket_id: str
    email: Optional[str] = None
    type: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    resolution: Optional[str] = None


class SkipReason(str, Enum):
    blank = "blank"
    too_few_fields = "too_few_fields"
    missing_id = "missing_id"
    missing_email = "missing_email"


@dataclass
class RowResult:
    """Outcome of parsing one data row: exactly one of ticket / skip_reason is set."""

    line_number: int  # 1-based, header is line 1
    ticket: Optional[Ticket] = None
    skip_reason: Optional[SkipReason] = None

    @property
    def accepted(self) -> bool:
        return self.ticket is not None


@dataclass
class LoadSummary:
    """Aggregate result of loading a ticket file.

    tickets keeps file order. skipped counts rows per SkipReason; reasons that
    never occurred are absent.
    """

    tickets: list[Ticket] = field(default_factory=list)
    total_rows: int = 0
    skipped: dict[SkipReason, int] = field(default_factory=dict)
    source: Optional[str] = None  # path the rows came from, None for in-memory input

    @property
    def loaded(self) -> int:
        return len(self.tickets)

    @property
    def skipped_total(self) -> int:
        return sum(self.skipped.values())
