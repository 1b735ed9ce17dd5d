"""Time entries and their pauses: creation, lifecycle changes and queries."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Sequence

from .database import Database, NotFoundError
from .model import Entry, EntryStatus, Pause, new_ulid

_ENTRY_COLUMNS = "id, project_id, title, start_time, end_time, status"


@dataclass
class ListEntriesOptions:
    """Filters for :func:`list_entries`.

    A ``limit`` of 0 returns every matching entry. ``date_from`` is inclusive,
    ``date_to`` exclusive; both apply to the entry's start time.
    """

    limit: int = 0
    project_id: str | None = None
    tag_ids: list[str] = field(default_factory=list)
    date_from: datetime | None = None
    date_to: datetime | None = None


def _load_entry(db: Database, row: Sequence[Any]) -> Entry:
    entry_id, project_id, title, start_time, end_time, status = row
    return Entry(
        id=entry_id,
        project_id=project_id,
        title=title or "",
        start_time=start_time,
        end_time=end_time,
        status=EntryStatus(status),
        project=db.get_project_by_id(project_id),
        tags=db.get_tags_for_entry(entry_id),
        pauses=get_pauses_for_entry(db, entry_id),
    )


def create_entry(
    db: Database, project_id: str, title: str, tag_ids: Sequence[str]
) -> Entry:
    """Start a new running entry for the project, tagged with ``tag_ids``."""
    entry = Entry(
        id=new_ulid(),
        project_id=project_id,
        title=title,
        start_time=datetime.now(),
        status=EntryStatus.RUNNING,
    )
    with db.transaction() as conn:
        conn.execute(
            "INSERT INTO entries (id, project_id, title, start_time, status) "
            "VALUES (?, ?, ?, ?, ?)",
            (entry.id, project_id, title, entry.start_time, EntryStatus.RUNNING),
        )
        conn.executemany(
            "INSERT INTO entry_tags (entry_id, tag_id) VALUES (?, ?)",
            [(entry.id, tag_id) for tag_id in tag_ids],
        )
    return entry


def get_running_entry(db: Database) -> Entry | None:
    """The most recently started running or paused entry, if any."""
    row = db.connection.execute(
        f"""
        SELECT {_ENTRY_COLUMNS}
        FROM entries
        WHERE status IN ('running', 'paused')
        ORDER BY start_time DESC LIMIT 1
        """
    ).fetchone()
    return _load_entry(db, row) if row else None


def get_entry_by_id(db: Database, entry_id: str) -> Entry:
    """The entry with ``entry_id``; raises :class:`NotFoundError` if absent."""
    row = db.connection.execute(
        f"SELECT {_ENTRY_COLUMNS} FROM entries WHERE id = ?", (entry_id,)
    ).fetchone()
    if row is None:
        raise NotFoundError(f"entry {entry_id} not found")
    return _load_entry(db, row)


def get_last_entry(db: Database) -> Entry | None:
    """The entry with the latest start time, or None when there are none."""
    row = db.connection.execute(
        "SELECT id FROM entries ORDER BY start_time DESC LIMIT 1"
    ).fetchone()
    return get_entry_by_id(db, row[0]) if row else None


def stop_entry(db: Database, entry_id: str) -> None:
    """Close any open pauses and mark the entry stopped now."""
    now = datetime.now()
    db.connection.execute(
        "UPDATE pauses SET resume_time = ? WHERE entry_id = ? AND resume_time IS NULL",
        (now, entry_id),
    )
    db.connection.execute(
        "UPDATE entries SET end_time = ?, status = ? WHERE id = ?",
        (now, EntryStatus.STOPPED, entry_id),
    )


def delete_entry(db: Database, entry_id: str) -> None:
    """Remove the entry together with its pauses and tag links."""
    with db.transaction() as conn:
        conn.execute("DELETE FROM pauses WHERE entry_id = ?", (entry_id,))
        conn.execute("DELETE FROM entry_tags WHERE entry_id = ?", (entry_id,))
        conn.execute("DELETE FROM entries WHERE id = ?", (entry_id,))


def pause_entry(db: Database, entry_id: str, reason: str) -> None:
    """Open a pause starting now and mark the entry paused."""
    with db.transaction() as conn:
        conn.execute(
            "INSERT INTO pauses (id, entry_id, pause_time, reason) VALUES (?, ?, ?, ?)",
            (new_ulid(), entry_id, datetime.now(), reason),
        )
        conn.execute(
            "UPDATE entries SET status = ? WHERE id = ?", (EntryStatus.PAUSED, entry_id)
        )


def resume_entry(db: Database, entry_id: str) -> None:
    """Close open pauses now and mark the entry running."""
    with db.transaction() as conn:
        conn.execute(
            "UPDATE pauses SET resume_time = ? WHERE entry_id = ? AND resume_time IS NULL",
            (datetime.now(), entry_id),
        )
        conn.execute(
            "UPDATE entries SET status = ? WHERE id = ?", (EntryStatus.RUNNING, entry_id)
        )


def reopen_entry(db: Database, entry_id: str) -> None:
    """Clear the end time of a stopped entry and mark it running."""
    db.connection.execute(
        "UPDATE entries SET end_time = NULL, status = ? WHERE id = ?",
        (EntryStatus.RUNNING, entry_id),
    )


def update_entry(
    db: Database,
    entry_id: str,
    project_id: str,
    title: str,
    start_time: datetime | None,
    end_time: datetime | None,
    tag_ids: Sequence[str],
) -> None:
    """Rewrite an entry's project, title, times and tags.

    The end time is written only together with a start time; with no start
    time neither is changed. The tag set is replaced by ``tag_ids``.
    """
    with db.transaction() as conn:
        if start_time is not None and end_time is not None:
            conn.execute(
                "UPDATE entries SET project_id = ?, title = ?, start_time = ?, end_time = ? "
                "WHERE id = ?",
                (project_id, title, start_time, end_time, entry_id),
            )
        elif start_time is not None:
            conn.execute(
                "UPDATE entries SET project_id = ?, title = ?, start_time = ? WHERE id = ?",
                (project_id, title, start_time, entry_id),
            )
        else:
            conn.execute(
                "UPDATE entries SET project_id = ?, title = ? WHERE id = ?",
                (project_id, title, entry_id),
            )
        conn.execute("DELETE FROM entry_tags WHERE entry_id = ?", (entry_id,))
        conn.executemany(
            "INSERT INTO entry_tags (entry_id, tag_id) VALUES (?, ?)",
            [(entry_id, tag_id) for tag_id in tag_ids],
        )


def list_entries(db: Database, options: ListEntriesOptions | None = None) -> list[Entry]:
    """Entries matching ``options``, newest first."""
    options = options or ListEntriesOptions()
    query = f"""
        SELECT DISTINCT e.id, e.project_id, e.title, e.start_time, e.end_time, e.status
        FROM entries e
        LEFT JOIN entry_tags et ON e.id = et.entry_id
        WHERE 1=1"""
    params: list[Any] = []

    if options.project_id is not None:
        query += " AND e.project_id = ?"
        params.append(options.project_id)
    if options.tag_ids:
        query += f" AND et.tag_id IN ({', '.join('?' for _ in options.tag_ids)})"
        params.extend(options.tag_ids)
    if options.date_from is not None:
        query += " AND e.start_time >= ?"
        params.append(options.date_from)
    if options.date_to is not None:
        query += " AND e.start_time < ?"
        params.append(options.date_to)

    query += " ORDER BY e.start_time DESC"
    if options.limit > 0:
        query += " LIMIT ?"
        params.append(options.limit)

    rows = db.connection.execute(query, params).fetchall()
    return [_load_entry(db, row) for row in rows]


def get_pauses_for_entry(db: Database, entry_id: str) -> list[Pause]:
    """Pauses of an entry, earliest first."""
    rows = db.connection.execute(
        """
        SELECT id, entry_id, pause_time, resume_time, COALESCE(reason, 'Manual')
        FROM pauses
        WHERE entry_id = ?
        ORDER BY pause_time
        """,
        (entry_id,),
    )
    return [Pause(*row) for row in rows]


def delete_pause(db: Database, pause_id: str) -> None:
    db.connection.execute("DELETE FROM pauses WHERE id = ?", (pause_id,))


def update_pause(
    db: Database, pause_id: str, pause_time: datetime, resume_time: datetime | None
) -> None:
    """Set a pause's times; a ``resume_time`` of None reopens it."""
    db.connection.execute(
        "UPDATE pauses SET pause_time = ?, resume_time = ? WHERE id = ?",
        (pause_time, resume_time, pause_id),
    )


def create_pause(
    db: Database,
    entry_id: str,
    pause_time: datetime,
    resume_time: datetime | None,
    reason: str,
) -> str:
    """Record a pause for an entry and return its id."""
    pause_id = new_ulid()
    db.connection.execute(
        "INSERT INTO pauses (id, entry_id, pause_time, resume_time, reason) "
        "VALUES (?, ?, ?, ?, ?)",
        (pause_id, entry_id, pause_time, resume_time, reason),
    )
    return pause_id