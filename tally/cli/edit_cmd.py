"""The ``edit`` command: change an entry as JSON in the user's editor."""

from __future__ import annotations

import json
import os
import subprocess
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from ..database import Database, NotFoundError
from ..entries import (
    create_pause,
    delete_pause,
    get_entry_by_id,
    get_last_entry,
    update_entry,
    update_pause,
)
from ..model import Entry, TallyError

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_EDITOR = "vim"


def _string_field(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise TallyError(f"invalid JSON: field {key!r} must be a string")
    return value


@dataclass
class EditablePause:
    """A pause as presented for editing; an empty ``id`` marks a new pause."""

    id: str = ""
    pause_time: str = ""
    resume_time: str = ""
    reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "pause_time": self.pause_time}
        if self.resume_time:
            data["resume_time"] = self.resume_time
        data["reason"] = self.reason
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "EditablePause":
        if not isinstance(data, dict):
            raise TallyError("invalid JSON: each pause must be an object")
        return cls(
            id=_string_field(data, "id"),
            pause_time=_string_field(data, "pause_time"),
            resume_time=_string_field(data, "resume_time"),
            reason=_string_field(data, "reason"),
        )


@dataclass
class EditableEntry:
    """An entry as presented for editing, with times as local-time strings."""

    id: str = ""
    project: str = ""
    title: str = ""
    tags: list[str] = field(default_factory=list)
    start_time: str = ""
    end_time: str = ""
    status: str = ""
    pauses: list[EditablePause] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "project": self.project,
            "title": self.title,
            "tags": list(self.tags),
            "start_time": self.start_time,
        }
        if self.end_time:
            data["end_time"] = self.end_time
        data["status"] = self.status
        if self.pauses:
            data["pauses"] = [pause.to_dict() for pause in self.pauses]
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False) + "\n"

    @classmethod
    def from_dict(cls, data: Any) -> "EditableEntry":
        if not isinstance(data, dict):
            raise TallyError("invalid JSON: expected an object")
        tags = data.get("tags") or []
        if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
            raise TallyError("invalid JSON: field 'tags' must be a list of strings")
        pauses = data.get("pauses") or []
        if not isinstance(pauses, list):
            raise TallyError("invalid JSON: field 'pauses' must be a list")
        return cls(
            id=_string_field(data, "id"),
            project=_string_field(data, "project"),
            title=_string_field(data, "title"),
            tags=list(tags),
            start_time=_string_field(data, "start_time"),
            end_time=_string_field(data, "end_time"),
            status=_string_field(data, "status"),
            pauses=[EditablePause.from_dict(p) for p in pauses],
        )


def build_editable(entry: Entry) -> EditableEntry:
    """The editable form of a stored entry."""
    return EditableEntry(
        id=entry.id,
        project=entry.project.name if entry.project is not None else "",
        title=entry.title,
        tags=[tag.name for tag in entry.tags],
        start_time=entry.start_time.strftime(TIME_FORMAT),
        end_time=entry.end_time.strftime(TIME_FORMAT) if entry.end_time else "",
        status=str(entry.status),
        pauses=[
            EditablePause(
                id=pause.id,
                pause_time=pause.pause_time.strftime(TIME_FORMAT),
                resume_time=(
                    pause.resume_time.strftime(TIME_FORMAT) if pause.resume_time else ""
                ),
                reason=pause.reason,
            )
            for pause in entry.pauses
        ],
    )


def parse_editable(text: str) -> EditableEntry:
    """Read an edited entry back from JSON text."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise TallyError(f"invalid JSON: {exc}") from exc
    return EditableEntry.from_dict(data)


def _parse_time(text: str, name: str) -> datetime:
    try:
        return datetime.strptime(text, TIME_FORMAT)
    except ValueError as exc:
        raise TallyError(f"invalid {name} format: {exc}") from exc


def apply_edit(db: Database, entry: Entry, updated: EditableEntry) -> None:
    """Write the edited fields, tags and pauses back to ``entry``."""
    start_time = _parse_time(updated.start_time, "start_time")
    end_time = _parse_time(updated.end_time, "end_time") if updated.end_time else None
    if end_time is not None and end_time < start_time:
        raise TallyError("end_time cannot be before start_time")

    project = db.get_or_create_project(updated.project)
    tag_ids = [
        db.get_or_create_tag(name).id
        for name in (raw.strip() for raw in updated.tags)
        if name
    ]
    update_entry(db, entry.id, project.id, updated.title, start_time, end_time, tag_ids)

    kept: set[str] = set()
    for pause in updated.pauses:
        pause_time = _parse_time(pause.pause_time, "pause_time")
        resume_time = (
            _parse_time(pause.resume_time, "resume_time") if pause.resume_time else None
        )
        if pause.id:
            kept.add(pause.id)
            update_pause(db, pause.id, pause_time, resume_time)
        else:
            create_pause(db, entry.id, pause_time, resume_time, pause.reason or "Manual")

    for pause in entry.pauses:
        if pause.id not in kept:
            delete_pause(db, pause.id)


def run_edit(db: Database, entry_id: str | None = None) -> None:
    """Open an entry (the latest by default) in ``$EDITOR`` and save the result."""
    if entry_id is None:
        last = get_last_entry(db)
        if last is None:
            print("No entries to edit")
            return
        entry_id = last.id

    try:
        entry = get_entry_by_id(db, entry_id)
    except NotFoundError as exc:
        raise TallyError(f"entry not found: {exc}") from exc

    with tempfile.NamedTemporaryFile(
        "w", prefix="tally-edit-", suffix=".json", delete=False, encoding="utf-8"
    ) as handle:
        path = Path(handle.name)
        handle.write(build_editable(entry).to_json())

    try:
        editor = os.environ.get("EDITOR") or DEFAULT_EDITOR
        try:
            result = subprocess.run([editor, str(path)], check=False)
        except OSError as exc:
            raise TallyError(f"editor failed: {exc}") from exc
        if result.returncode != 0:
            raise TallyError(f"editor failed: exit status {result.returncode}")
        text = path.read_text(encoding="utf-8")
    finally:
        path.unlink(missing_ok=True)

    apply_edit(db, entry, parse_editable(text))
    print("Entry updated successfully")