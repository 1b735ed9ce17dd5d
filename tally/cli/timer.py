"""Timer commands: start, stop, status, pause and resume."""

from __future__ import annotations

import sys
from datetime import datetime, timedelta
from typing import Sequence

from ..database import Database
from ..entries import (
    create_entry,
    create_pause,
    get_entry_by_id,
    get_last_entry,
    get_running_entry,
    pause_entry,
    reopen_entry,
    resume_entry,
    stop_entry,
)
from ..formatting import (
    format_duration,
    format_tags,
    format_tags_from_model,
    parse_time_input,
)
from ..model import Entry, EntryStatus, TallyError

_MANUAL = "Manual"


def _confirm(prompt: str) -> bool:
    print(prompt, end="", flush=True)
    line = sys.stdin.readline()
    if not line.endswith("\n"):
        raise TallyError("unexpected end of input")
    return line.strip().lower() in ("y", "yes")


def _headline(verb: str, entry: Entry) -> str:
    name = entry.project.name if entry.project is not None else ""
    text = f"{verb} timer for @{name}"
    if entry.title:
        text += f": {entry.title}"
    return text


def parse_start_args(args: Sequence[str]) -> tuple[str, str, list[str]]:
    """Split ``start`` arguments into project, title and tag names.

    ``@name`` is the project, ``+name`` a tag; everything else is joined into
    the title with spaces.
    """
    project = ""
    title_words: list[str] = []
    tags: list[str] = []
    for arg in args:
        if arg.startswith("@"):
            if project:
                raise TallyError("multiple projects specified")
            project = arg[1:]
        elif arg.startswith("+"):
            tags.append(arg[1:])
        else:
            title_words.append(arg)
    if not project:
        raise TallyError("project is required (use @projectname)")
    return project, " ".join(title_words), tags


def run_start(db: Database, args: Sequence[str]) -> None:
    """Start a new entry unless a timer is already running."""
    running = get_running_entry(db)
    if running is not None:
        print("Timer already running:")
        print_status(running)
        return

    project_name, title, tag_names = parse_start_args(args)
    project = db.get_or_create_project(project_name)
    tag_ids = [db.get_or_create_tag(name).id for name in tag_names]

    entry = create_entry(db, project.id, title, tag_ids)
    entry.project = project

    line = _headline("Started", entry)
    if tag_names:
        line += f" [{format_tags(tag_names)}]"
    print(line)


def run_stop(db: Database) -> None:
    """Stop the running or paused entry and report its worked time."""
    entry = get_running_entry(db)
    if entry is None:
        print("No timer running")
        return

    stop_entry(db, entry.id)
    entry = get_entry_by_id(db, entry.id)
    print(f"{_headline('Stopped', entry)} [{format_duration(entry.duration())}]")


def run_status(db: Database) -> None:
    """Show the current timer, if any."""
    entry = get_running_entry(db)
    if entry is None:
        print("No timer running")
        return
    print_status(entry)


def print_status(entry: Entry, now: datetime | None = None) -> None:
    """Print the state, start, elapsed time and pauses of an active entry."""
    now = now or datetime.now()
    state = "Paused" if entry.status is EntryStatus.PAUSED else "Running"
    name = entry.project.name if entry.project is not None else ""

    line = f"[{state}] @{name}"
    if entry.title:
        line += f": {entry.title}"
    if entry.tags:
        line += f" [{format_tags_from_model(entry.tags)}]"
    print(line)
    print(f"  Started: {entry.start_time.strftime('%H:%M:%S')}")
    print(f"  Elapsed: {format_duration(entry.duration(now))}")

    if entry.pauses:
        total = sum((pause.duration(now) for pause in entry.pauses), timedelta())
        print(f"  Paused:  {format_duration(total)} ({len(entry.pauses)} pause(s))")


def run_pause(
    db: Database, pause_from: str | None = None, pause_to: str | None = None
) -> None:
    """Pause the running timer now, or record a completed pause from ``pause_from``."""
    entry = get_running_entry(db)
    if entry is None:
        print("No timer running")
        return

    if pause_from:
        from_time = parse_time_input(pause_from)
        if from_time < entry.start_time:
            raise TallyError(
                "pause start time cannot be before entry start time "
                f"({entry.start_time.strftime('%H:%M:%S')})"
            )
        to_time = parse_time_input(pause_to) if pause_to else datetime.now()
        if to_time < from_time:
            raise TallyError("pause end time cannot be before pause start time")

        create_pause(db, entry.id, from_time, to_time, _MANUAL)
        print(
            f"Added pause: {from_time.strftime('%H:%M:%S')} - "
            f"{to_time.strftime('%H:%M:%S')} ({format_duration(to_time - from_time)})"
        )
        return

    if entry.status is EntryStatus.PAUSED:
        print("Timer is already paused")
        print_status(entry)
        return

    pause_entry(db, entry.id, _MANUAL)
    print(f"{_headline('Paused', entry)} [{format_duration(entry.duration())} elapsed]")


def run_resume(db: Database) -> None:
    """Resume a paused timer, or after confirmation reopen the last stopped entry."""
    entry = get_running_entry(db)
    if entry is not None:
        if entry.status is EntryStatus.RUNNING:
            print("Timer is already running")
            print_status(entry)
            return
        resume_entry(db, entry.id)
        print(_headline("Resumed", entry))
        return

    last = get_last_entry(db)
    if last is None or last.status is not EntryStatus.STOPPED:
        print("No timer to resume")
        return

    name = last.project.name if last.project is not None else ""
    print("Last entry:")
    print(f"  Project: @{name}")
    if last.title:
        print(f"  Title:   {last.title}")
    if last.tags:
        print(f"  Tags:    {format_tags_from_model(last.tags)}")
    print(f"  Started: {last.start_time.strftime('%Y-%m-%d %H:%M:%S')}")
    if last.end_time is not None:
        print(f"  Stopped: {last.end_time.strftime('%Y-%m-%d %H:%M:%S')}")
        print(f"  Gap:     {format_duration(datetime.now() - last.end_time)} ago")
    print()

    if not _confirm("Reopen this entry? A pause will be created for the gap. [y/N]: "):
        print("Cancelled")
        return

    if last.end_time is not None:
        create_pause(db, last.id, last.end_time, datetime.now(), _MANUAL)
    reopen_entry(db, last.id)
    print(_headline("Reopened", last))