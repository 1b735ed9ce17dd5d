"""Command-line entry point: argument parsing and command dispatch."""

from __future__ import annotations

import argparse
import sqlite3
import sys
from typing import Callable, Sequence

from ..database import Database, open_database
from ..model import TallyError
from .config_cmd import run_config_get, run_config_list, run_config_set
from .delete_cmd import run_delete
from .edit_cmd import run_edit
from .log_cmd import run_log
from .report_cmd import run_report
from .timer import run_pause, run_resume, run_start, run_status, run_stop

VERSION = "dev"

_DESCRIPTION = (
    "Tally is a command-line time tracking utility that helps you track time "
    "spent on projects."
)


def build_parser() -> argparse.ArgumentParser:
    """The argument parser for every command."""
    parser = argparse.ArgumentParser(prog="tally", description=_DESCRIPTION)
    commands = parser.add_subparsers(dest="command", metavar="<command>")

    commands.add_parser("version", help="Print the version number")

    start = commands.add_parser("start", help="Start a new time entry")
    start.add_argument("args", nargs="+", metavar="@project|title|+tag")

    commands.add_parser("stop", help="Stop the current time entry")
    commands.add_parser("status", help="Show current timer status")

    pause = commands.add_parser("pause", help="Pause the current timer")
    pause.add_argument(
        "-f", "--from", dest="pause_from", default="",
        help="Pause start time (HH:MM or YYYY-MM-DD HH:MM:SS)",
    )
    pause.add_argument(
        "-t", "--to", dest="pause_to", default="",
        help="Pause end time (HH:MM or YYYY-MM-DD HH:MM:SS)",
    )

    commands.add_parser("resume", help="Resume a paused or stopped timer")

    log = commands.add_parser("log", help="Show time entries")
    log.add_argument("filters", nargs="*", metavar="@project|+tag")
    log.add_argument("-n", "--limit", type=int, default=10, help="Number of entries to show")
    log.add_argument("--from", dest="date_from", default="", help="Start date (YYYY-MM-DD)")
    log.add_argument("--to", dest="date_to", default="", help="End date (YYYY-MM-DD)")

    edit = commands.add_parser("edit", help="Edit a time entry")
    edit.add_argument("id", nargs="?")

    delete = commands.add_parser("delete", help="Delete a time entry")
    delete.add_argument("id", nargs="?")
    delete.add_argument("-f", "--force", action="store_true", help="Skip confirmation prompt")

    report = commands.add_parser("report", help="Generate time reports")
    report.add_argument("args", nargs="*", metavar="period|@project|+tag")
    report.add_argument(
        "--format", dest="output_format", default="",
        help="Output format: table, json, csv",
    )

    config = commands.add_parser("config", help="Manage configuration")
    config.set_defaults(config_help=config.print_help)
    settings = config.add_subparsers(dest="config_command", metavar="<action>")
    settings.add_parser("list", help="List all configuration settings")
    get = settings.add_parser("get", help="Get a configuration value")
    get.add_argument("key")
    set_ = settings.add_parser("set", help="Set a configuration value")
    set_.add_argument("key")
    set_.add_argument("value")

    return parser


def _config(db: Database, ns: argparse.Namespace) -> None:
    if ns.config_command == "list":
        run_config_list(db)
    elif ns.config_command == "get":
        run_config_get(db, ns.key)
    elif ns.config_command == "set":
        run_config_set(db, ns.key, ns.value)
    else:
        ns.config_help()


_HANDLERS: dict[str, Callable[[Database, argparse.Namespace], None]] = {
    "start": lambda db, ns: run_start(db, ns.args),
    "stop": lambda db, ns: run_stop(db),
    "status": lambda db, ns: run_status(db),
    "pause": lambda db, ns: run_pause(db, ns.pause_from, ns.pause_to),
    "resume": lambda db, ns: run_resume(db),
    "log": lambda db, ns: run_log(db, ns.filters, ns.limit, ns.date_from, ns.date_to),
    "edit": lambda db, ns: run_edit(db, ns.id),
    "delete": lambda db, ns: run_delete(db, ns.id, ns.force),
    "report": lambda db, ns: run_report(db, ns.args, ns.output_format),
    "config": _config,
}


def main(argv: Sequence[str] | None = None) -> int:
    """Run one command and return the process exit status."""
    parser = build_parser()
    try:
        ns = parser.parse_args(argv)
    except SystemExit as exc:
        if exc.code is None:
            return 0
        return exc.code if isinstance(exc.code, int) else 1

    if ns.command is None:
        parser.print_help()
        return 0
    if ns.command == "version":
        print(f"tally {VERSION}")
        return 0

    try:
        db = open_database()
    except (OSError, sqlite3.Error) as exc:
        print(f"Error: failed to initialize database: {exc}", file=sys.stderr)
        return 1

    try:
        with db:
            _HANDLERS[ns.command](db, ns)
    except (TallyError, sqlite3.Error, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0