"""
tests/test_cli.py -- Tests for the `check` command in main.py.

`serve` only hands off to uvicorn and is not exercised here.
"""

from main import build_parser, main


def test_check_reports_counts(tmp_path, capsys):
    path = tmp_path / "tickets.csv"
    path.write_text(
        "ticket_id,email,type,description,status,resolution\n"
        "T-1,a@example.com,Bug,d,Open,\n"
        "T-2,,Bug,d,Open,\n",
        encoding="utf-8",
    )
    assert main(["check", str(path)]) == 0
    out = capsys.readouterr().out
    assert "loaded:  1" in out
    assert "skipped: 1" in out
    assert "missing_email" in out


def test_check_missing_file(tmp_path, capsys):
    assert main(["check", str(tmp_path / "missing.csv")]) == 1
    assert "not a readable file" in capsys.readouterr().out


def test_serve_defaults():
    args = build_parser().parse_args(["serve"])
    assert args.host == "127.0.0.1"
    assert args.port == 8000
    assert args.reload is False
