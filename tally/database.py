"""SQLite storage: connection handling, schema, projects, tags and settings."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator

from .model import EntryStatus, Project, Tag, TallyError, new_ulid

SCHEMA = """
CREATE TABLE IF NOT EXISTS projects (
    id TEXT PRIMARY KEY,
    name TEXT UNIQUE NOT NULL,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS tags (
    id TEXT PRIMARY KEY,
    name TEXT UNIQUE NOT NULL,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS entries (
    id TEXT PRIMARY KEY,
    project_id TEXT NOT NULL,
    title TEXT,
    start_time DATETIME NOT NULL,
    end_time DATETIME,
    status TEXT DEFAULT 'running',
    FOREIGN KEY (project_id) REFERENCES projects(id)
);

CREATE TABLE IF NOT EXISTS entry_tags (
    entry_id TEXT,
    tag_id TEXT,
    PRIMARY KEY (entry_id, tag_id),
    FOREIGN KEY (entry_id) REFERENCES entries(id),
    FOREIGN KEY (tag_id) REFERENCES tags(id)
);

CREATE TABLE IF NOT EXISTS pauses (
    id TEXT PRIMARY KEY,
    entry_id TEXT NOT NULL,
    pause_time DATETIME NOT NULL,
    resume_time DATETIME,
    reason TEXT DEFAULT 'Manual',
    FOREIGN KEY (entry_id) REFERENCES entries(id)
);

CREATE TABLE IF NOT EXISTS config (
    key TEXT PRIMARY KEY,
    value TEXT
);

CREATE TABLE IF NOT EXISTS activity (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    last_activity DATETIME
);
"""

_MIGRATIONS = ("ALTER TABLE pauses ADD COLUMN reason TEXT DEFAULT 'Manual'",)


class NotFoundError(TallyError, LookupError):
    """A requested record does not exist."""


def _adapt_datetime(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value.isoformat(sep=" ", timespec="microseconds")


def _convert_datetime(raw: bytes) -> datetime:
    text = raw.decode()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    value = datetime.fromisoformat(text)
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value


sqlite3.register_adapter(datetime, _adapt_datetime)
sqlite3.register_adapter(EntryStatus, lambda status: status.value)
sqlite3.register_converter("DATETIME", _convert_datetime)


def default_data_dir() -> Path:
    """Directory holding the database: ``.tally`` in the user's home."""
    return Path.home() / ".tally"


def open_database(data_dir: str | Path | None = None) -> "Database":
    """Create the data directory if needed and open ``tally.db`` inside it."""
    directory = Path(data_dir) if data_dir is not None else default_data_dir()
    directory.mkdir(parents=True, exist_ok=True)
    return Database(directory / "tally.db")


class Database:
    """An open tracker database with the schema applied."""

    def __init__(self, path: str | Path) -> None:
        self.path = str(path)
        self.connection = sqlite3.connect(
            self.path,
            detect_types=sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES,
            isolation_level=None,
        )
        try:
            self.connection.executescript(SCHEMA)
            for migration in _MIGRATIONS:
                try:
                    self.connection.execute(migration)
                except sqlite3.OperationalError:
                    pass  # already applied
            self.connection.execute(
                "INSERT OR IGNORE INTO activity (id, last_activity) VALUES (1, datetime('now'))"
            )
        except Exception:
            self.connection.close()
            raise

    def close(self) -> None:
        self.connection.close()

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run the block in a transaction, rolling back if it raises."""
        self.connection.execute("BEGIN")
        try:
            yield self.connection
        except BaseException:
            self.connection.execute("ROLLBACK")
            raise
        else:
            self.connection.execute("COMMIT")

    # Projects

    def _find_project(self, column: str, value: str) -> Project | None:
        row = self.connection.execute(
            f"SELECT id, name, created_at FROM projects WHERE {column} = ?", (value,)
        ).fetchone()
        return Project(*row) if row else None

    def get_or_create_project(self, name: str) -> Project:
        existing = self._find_project("name", name)
        if existing is not None:
            return existing
        project = Project(new_ulid(), name, datetime.now())
        self.connection.execute(
            "INSERT INTO projects (id, name, created_at) VALUES (?, ?, ?)",
            (project.id, project.name, project.created_at),
        )
        return project

    def get_project_by_id(self, project_id: str) -> Project:
        project = self._find_project("id", project_id)
        if project is None:
            raise NotFoundError(f"project {project_id} not found")
        return project

    def get_project_by_name(self, name: str) -> Project | None:
        return self._find_project("name", name)

    # Tags

    def get_or_create_tag(self, name: str) -> Tag:
        existing = self.get_tag_by_name(name)
        if existing is not None:
            return existing
        tag = Tag(new_ulid(), name, datetime.now())
        self.connection.execute(
            "INSERT INTO tags (id, name, created_at) VALUES (?, ?, ?)",
            (tag.id, tag.name, tag.created_at),
        )
        return tag

    def get_tag_by_name(self, name: str) -> Tag | None:
        row = self.connection.execute(
            "SELECT id, name, created_at FROM tags WHERE name = ?", (name,)
        ).fetchone()
        return Tag(*row) if row else None

    def get_tags_for_entry(self, entry_id: str) -> list[Tag]:
        rows = self.connection.execute(
            """
            SELECT t.id, t.name, t.created_at
            FROM tags t
            JOIN entry_tags et ON t.id = et.tag_id
            WHERE et.entry_id = ?
            """,
            (entry_id,),
        )
        return [Tag(*row) for row in rows]

    # Settings

    def get_config(self, key: str) -> str:
        """Stored value for ``key``, or an empty string when unset."""
        row = self.connection.execute(
            "SELECT value FROM config WHERE key = ?", (key,)
        ).fetchone()
        if row is None or row[0] is None:
            return ""
        return row[0]

    def set_config(self, key: str, value: str) -> None:
        self.connection.execute(
            "INSERT OR REPLACE INTO config (key, value) VALUES (?, ?)", (key, value)
        )

    def list_config(self) -> dict[str, str]:
        rows = self.connection.execute("SELECT key, value FROM config")
        return {key: value if value is not None else "" for key, value in rows}