"""Domain objects for time tracking: projects, tags, entries, pauses and reports."""

from __future__ import annotations

import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

_CROCKFORD = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_ULID_LENGTH = 26


class TallyError(Exception):
    """Base class for errors raised by the time tracker."""


class EntryStatus(str, Enum):
    """Lifecycle state of a time entry."""

    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"

    def __str__(self) -> str:
        return self.value


def new_ulid() -> str:
    """Return a new ULID: 48-bit millisecond timestamp plus 80 random bits."""
    timestamp_ms = time.time_ns() // 1_000_000
    value = ((timestamp_ms & ((1 << 48) - 1)) << 80) | secrets.randbits(80)
    chars = []
    for _ in range(_ULID_LENGTH):
        chars.append(_CROCKFORD[value & 0x1F])
        value >>= 5
    return "".join(reversed(chars))


def _nanoseconds(delta: timedelta) -> int:
    return (delta.days * 86_400 + delta.seconds) * 1_000_000_000 + delta.microseconds * 1_000


def _json_time(moment: datetime) -> str:
    return moment.astimezone().isoformat()


@dataclass
class Project:
    id: str
    name: str
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "created_at": _json_time(self.created_at)}


@dataclass
class Tag:
    id: str
    name: str
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "created_at": _json_time(self.created_at)}


@dataclass
class Pause:
    id: str
    entry_id: str
    pause_time: datetime
    resume_time: datetime | None = None
    reason: str = "Manual"

    def duration(self, now: datetime | None = None) -> timedelta:
        """Length of the pause; an open pause runs until ``now``."""
        if self.resume_time is not None:
            return self.resume_time - self.pause_time
        return (now or datetime.now()) - self.pause_time

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "entry_id": self.entry_id,
            "pause_time": _json_time(self.pause_time),
        }
        if self.resume_time is not None:
            data["resume_time"] = _json_time(self.resume_time)
        data["reason"] = self.reason
        return data


@dataclass
class Entry:
    id: str
    project_id: str
    start_time: datetime
    title: str = ""
    end_time: datetime | None = None
    status: EntryStatus = EntryStatus.RUNNING
    project: Project | None = None
    tags: list[Tag] = field(default_factory=list)
    pauses: list[Pause] = field(default_factory=list)

    def duration(self, now: datetime | None = None) -> timedelta:
        """Worked time: elapsed time minus the time spent paused."""
        now = now or datetime.now()
        end = self.end_time if self.end_time is not None else now
        total = end - self.start_time
        for pause in self.pauses:
            if pause.resume_time is not None:
                total -= pause.resume_time - pause.pause_time
            elif self.status is EntryStatus.PAUSED:
                total -= now - pause.pause_time
        return total

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "project_id": self.project_id}
        if self.project is not None:
            data["project"] = self.project.to_dict()
        data["title"] = self.title
        data["start_time"] = _json_time(self.start_time)
        if self.end_time is not None:
            data["end_time"] = _json_time(self.end_time)
        data["status"] = EntryStatus(self.status).value
        if self.tags:
            data["tags"] = [tag.to_dict() for tag in self.tags]
        if self.pauses:
            data["pauses"] = [pause.to_dict() for pause in self.pauses]
        return data


@dataclass
class ReportEntry:
    """An entry as it appears in a report, with its worked duration fixed."""

    entry: Entry
    project_name: str
    tag_names: list[str]
    duration: timedelta

    def to_dict(self) -> dict[str, Any]:
        data = self.entry.to_dict()
        data["project_name"] = self.project_name
        data["tag_names"] = list(self.tag_names)
        data["duration"] = _nanoseconds(self.duration)
        return data


@dataclass
class ReportSummary:
    """Aggregated report data for one period."""

    period: str
    start_date: datetime
    end_date: datetime
    total_duration: timedelta = field(default_factory=timedelta)
    by_project: dict[str, timedelta] = field(default_factory=dict)
    by_tag: dict[str, timedelta] = field(default_factory=dict)
    entries: list[ReportEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_duration": _nanoseconds(self.total_duration),
            "by_project": {name: _nanoseconds(d) for name, d in self.by_project.items()},
            "by_tag": {name: _nanoseconds(d) for name, d in self.by_tag.items()},
            "entries": [entry.to_dict() for entry in self.entries],
            "period": self.period,
            "start_date": _json_time(self.start_date),
            "end_date": _json_time(self.end_date),
        }