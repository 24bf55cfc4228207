#!/usr/bin/env python3
"""
TicketDesk -- ticket tracking REST service with JWT sessions.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8080
  python main.py serve --reload
  python main.py check tickets.csv

Environment variables (see core/config.py for the full list):
  JWT_SECRET_KEY   Required for `serve`. At least 32 characters.
  USERS            JSON list of {"username", "password", "role"} objects.
  TICKETS_CSV_PATH Ticket file loaded at startup (default: tickets.csv).
"""

import argparse
import sys
from pathlib import Path
from typing import Optional

from tickets.ingest import load_tickets_file


def _check(path: str) -> int:
    """Load a ticket file the way the server would and print what happened."""
    file_path = Path(path)
    if not file_path.is_file():
        print(f"  [!] '{path}' is not a readable file.")
        return 1

    summary = load_tickets_file(file_path)
    print(f"  {summary.source}")
    print(f"  rows:    {summary.total_rows}")
    print(f"  loaded:  {summary.loaded}")
    print(f"  skipped: {summary.skipped_total}")
    for reason, count in sorted(summary.skipped.items(), key=lambda item: item[0].value):
        print(f"    {reason.value:<15} {count}")
    return 0


def _serve(host: str, port: int, reload: bool) -> int:
    import uvicorn

    uvicorn.run("api.main:app", host=host, port=port, reload=reload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ticketdesk",
        description="Ticket tracking REST service.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development)")

    check = commands.add_parser("check", help="Parse a ticket file and report accepted/skipped rows")
    check.add_argument("file")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == "serve":
        return _serve(args.host, args.port, args.reload)
    return _check(args.file)


if __name__ == "__main__":
    sys.exit(main())
