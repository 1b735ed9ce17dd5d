"""The ``delete`` command: remove a time entry."""

from __future__ import annotations

import sys

from ..database import Database, NotFoundError
from ..entries import delete_entry, get_entry_by_id, get_last_entry
from ..formatting import format_duration
from ..model import TallyError


def _confirm(prompt: str) -> bool:
    print(prompt, end="", flush=True)
    line = sys.stdin.readline()
    if not line.endswith("\n"):
        raise TallyError("unexpected end of input")
    return line.strip().lower() in ("y", "yes")


def run_delete(db: Database, entry_id: str | None = None, force: bool = False) -> None:
    """Delete an entry (the latest by default), asking first unless ``force``."""
    if entry_id is None:
        last = get_last_entry(db)
        if last is None:
            print("No entries to delete")
            return
        entry_id = last.id

    try:
        entry = get_entry_by_id(db, entry_id)
    except NotFoundError as exc:
        raise TallyError(f"entry not found: {exc}") from exc

    name = entry.project.name if entry.project is not None else ""
    print(f"Entry: {entry.id}")
    print(f"  Project: @{name}")
    if entry.title:
        print(f"  Title:   {entry.title}")
    print(f"  Date:    {entry.start_time.strftime('%Y-%m-%d %H:%M')}")
    print(f"  Duration: {format_duration(entry.duration())}")
    print()

    if not force and not _confirm("Delete this entry? [y/N]: "):
        print("Cancelled")
        return

    delete_entry(db, entry_id)
    print("Entry deleted")