"""The ``log`` command: list recent time entries."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Iterable, Sequence

from ..database import Database
from ..entries import ListEntriesOptions, list_entries
from ..formatting import format_duration_short, render_table
from ..model import Entry, EntryStatus, TallyError

_HEADER = ["ID", "Project", "Title", "Duration", "Tags", "Date"]
_TITLE_WIDTH = 30
_LEGEND = "* = running, ~ = paused"


def _parse_date(text: str, flag: str) -> datetime:
    try:
        return datetime.combine(date.fromisoformat(text), time())
    except ValueError as exc:
        raise TallyError(f"invalid --{flag} date (use YYYY-MM-DD): {exc}") from exc


def run_log(
    db: Database,
    filters: Sequence[str] = (),
    limit: int = 10,
    date_from: str | None = None,
    date_to: str | None = None,
) -> None:
    """Print entries, newest first, filtered by ``@project``, ``+tag`` and dates."""
    options = ListEntriesOptions(limit=limit)

    for arg in filters:
        if arg.startswith("@"):
            name = arg[1:]
            project = db.get_project_by_name(name)
            if project is None:
                print(f"No entries found for project @{name}")
                return
            options.project_id = project.id
        elif arg.startswith("+"):
            name = arg[1:]
            tag = db.get_tag_by_name(name)
            if tag is None:
                print(f"No entries found with tag +{name}")
                return
            options.tag_ids.append(tag.id)

    if date_from:
        options.date_from = _parse_date(date_from, "from")
    if date_to:
        # The whole 'to' day is included.
        options.date_to = _parse_date(date_to, "to") + timedelta(days=1)

    entries = list_entries(db, options)
    if not entries:
        print("No entries found")
        return
    print_entries_table(entries)


def print_entries_table(entries: Iterable[Entry], now: datetime | None = None) -> None:
    """Print entries as a table followed by the status legend."""
    now = now or datetime.now()
    rows = []
    for entry in entries:
        duration = format_duration_short(entry.duration(now))
        if entry.status is EntryStatus.RUNNING:
            duration += "*"
        elif entry.status is EntryStatus.PAUSED:
            duration += "~"

        title = entry.title
        if len(title) > _TITLE_WIDTH:
            title = title[: _TITLE_WIDTH - 3] + "..."

        project_name = entry.project.name if entry.project is not None else ""
        rows.append(
            [
                entry.id,
                f"@{project_name}",
                title,
                duration,
                ", ".join(tag.name for tag in entry.tags),
                entry.start_time.strftime("%Y-%m-%d %H:%M"),
            ]
        )

    print(render_table(rows, header=_HEADER), end="")
    print(f"\n{_LEGEND}")