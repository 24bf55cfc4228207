"""
tickets/ingest.py -- Ticket file parser for the in-memory registry.

Reads a delimiter-separated file (UTF-8, header row required) into Ticket
records at startup. Columns are found by header name, not position, so the
file may order them any way it likes and carry extra columns.

Pipeline:
  file -> lines -> parse_tickets() -> LoadSummary(tickets, skipped counts)
  -> caller: TicketStore(summary.tickets)

Row acceptance (anything else is skipped, never raised):
  - blank rows and rows made only of quote characters
  - rows with fewer than six fields
  - rows whose identifier is empty
  - rows whose email is empty

Quoting: each double quote toggles a quoted span and never appears in a
value. Inside a span the delimiter is ordinary text. Each line is parsed on
its own, so a quote left open runs to the end of that line only.
"""

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from tickets.models import LoadSummary, RowResult, SkipReason, Ticket

logger = logging.getLogger("ticketdesk.tickets")

MIN_FIELDS = 6
ABSENT = -1

# Accepted header names per Ticket field, compared case-insensitively.
COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "ticket_id": ("ticket_id", "ticketid"),
    "email": ("email",),
    "type": ("type",),
    "description": ("description",),
    "status": ("status",),
    "resolution": ("resolution",),
}


@dataclass(frozen=True)
class ColumnMap:
    """Header position of each Ticket field; ABSENT (-1) when the header lacks it."""

    ticket_id: int = ABSENT
    email: int = ABSENT
    type: int = ABSENT
    description: int = ABSENT
    status: int = ABSENT
    resolution: int = ABSENT


# ---------------------------------------------------------------------------
# Line and header parsing
# ---------------------------------------------------------------------------


def parse_csv_line(line: str, delimiter: str = ",") -> list[str]:
    """Split one line into trimmed field values.

    Every double quote flips the quoted state and is dropped from the value;
    the delimiter only ends a field outside a quoted span. So `a,"b,c",d` is
    three fields with `b,c` in the middle, and `a"b,c"d` is the single value
    `ab,cd`. A quote left open runs to the end of the line.
    """
    fields: list[str] = []
    current: list[str] = []
    quoted = False
    for char in line:
        if char == '"':
            quoted = not quoted
        elif char == delimiter and not quoted:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    fields.append("".join(current).strip())
    return fields


def resolve_columns(header: list[str]) -> ColumnMap:
    """Map each Ticket field to the first header position matching one of its aliases."""
    normalized = [h.strip().lower() for h in header]
    positions: dict[str, int] = {}
    for name, aliases in COLUMN_ALIASES.items():
        positions[name] = next((i for i, h in enumerate(normalized) if h in aliases), ABSENT)
    return ColumnMap(**positions)


def _value_at(values: list[str], index: int) -> str:
    if index < 0 or index >= len(values):
        return ""
    return values[index].strip()


# ---------------------------------------------------------------------------
# Row parsing
# ---------------------------------------------------------------------------


def parse_row(line: str, columns: ColumnMap, line_number: int = 0, delimiter: str = ",") -> RowResult:
    """Turn one data line into a Ticket or a skip reason. Never raises."""
    stripped = line.strip()
    if not stripped.strip('"'):
        return RowResult(line_number=line_number, skip_reason=SkipReason.blank)

    values = parse_csv_line(stripped, delimiter)

    if len(values) < MIN_FIELDS:
        return RowResult(line_number=line_number, skip_reason=SkipReason.too_few_fields)

    ticket_id = _value_at(values, columns.ticket_id)
    if not ticket_id:
        return RowResult(line_number=line_number, skip_reason=SkipReason.missing_id)

    email = _value_at(values, columns.email)
    if not email:
        return RowResult(line_number=line_number, skip_reason=SkipReason.missing_email)

    ticket = Ticket(
        ticket_id=ticket_id,
        email=email,
        type=_value_at(values, columns.type),
        description=_value_at(values, columns.description),
        status=_value_at(values, columns.status),
        resolution=_value_at(values, columns.resolution),
    )
    return RowResult(line_number=line_number, ticket=ticket)


def parse_tickets(lines: Iterable[str], delimiter: str = ",") -> LoadSummary:
    """Parse a header line followed by data lines into a LoadSummary.

    An empty input or a header with no data rows yields an empty summary.
    """
    summary = LoadSummary()
    iterator = iter(lines)
    header_line = next(iterator, None)
    if header_line is None:
        return summary

    columns = resolve_columns(parse_csv_line(header_line, delimiter))

    logger.debug(
        "Ticket columns found: ticket_id=%d email=%d type=%d description=%d status=%d resolution=%d",
        columns.ticket_id,
        columns.email,
        columns.type,
        columns.description,
        columns.status,
        columns.resolution,
    )
    if columns.ticket_id == ABSENT or columns.email == ABSENT:
        logger.warning("Ticket header has no ticket_id or email column -- every row will be skipped")

    for offset, line in enumerate(iterator, start=2):
        summary.total_rows += 1
        result = parse_row(line, columns, line_number=offset, delimiter=delimiter)
        if result.accepted:
            summary.tickets.append(result.ticket)
        else:
            summary.skipped[result.skip_reason] = summary.skipped.get(result.skip_reason, 0) + 1
            logger.debug("Skipped ticket row %d (%s)", offset, result.skip_reason.value)

    return summary


# ---------------------------------------------------------------------------
# File loading
# ---------------------------------------------------------------------------


def _split_lines(content: str) -> list[str]:
    # Universal newlines: \n, \r\n and bare \r all end a line.
    return [line.rstrip("\n") for line in io.StringIO(content, newline=None)]


def load_tickets_file(path: Path) -> LoadSummary:
    """Load tickets from path. Missing, empty or unreadable files give an empty summary.

    The file is read as UTF-8; a leading BOM is ignored and undecodable bytes
    are replaced rather than failing the whole load.
    """
    path = Path(path)
    if not path.is_file():
        logger.warning("Ticket file not found at %s -- starting with an empty ticket list", path)
        return LoadSummary(source=str(path))

    try:
        content = path.read_text(encoding="utf-8-sig", errors="replace")
    except OSError as exc:
        logger.error("Could not read ticket file %s: %s -- starting with an empty ticket list", path, exc)
        return LoadSummary(source=str(path))

    lines = _split_lines(content)
    if len(lines) <= 1:
        logger.warning("Ticket file %s is empty or contains only a header", path)
        return LoadSummary(source=str(path))

    summary = parse_tickets(lines)
    summary.source = str(path)
    logger.info(
        "Loaded %d tickets from %s (%d rows, %d skipped)",
        summary.loaded,
        path,
        summary.total_rows,
        summary.skipped_total,
    )
    return summary


def find_tickets_file(path: Path) -> Optional[Path]:
    """Return path if it exists, else the first *.csv (by name) in its directory, else None."""
    path = Path(path)
    if path.is_file():
        return path
    directory = path.parent
    if not directory.is_dir():
        return None
    candidates = sorted(p for p in directory.glob("*.csv") if p.is_file())
    if not candidates:
        return None
    logger.info("Ticket file %s not found -- using %s instead", path.name, candidates[0].name)
    return candidates[0]
