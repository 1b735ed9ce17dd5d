"""User settings stored in the database, with built-in defaults."""

from __future__ import annotations

from .database import Database

KEY_OUTPUT_FORMAT = "output.format"
KEY_DATA_LOCATION = "data.location"

_DEFAULTS: dict[str, str] = {
    KEY_OUTPUT_FORMAT: "table",
    KEY_DATA_LOCATION: "~/.tally",
}


def get_value(db: Database, key: str) -> str:
    """Stored value for ``key``, falling back to its default when unset."""
    value = db.get_config(key)
    if value == "" and key in _DEFAULTS:
        return _DEFAULTS[key]
    return value


def set_value(db: Database, key: str, value: str) -> None:
    """Store ``value`` under ``key``, replacing any earlier value."""
    db.set_config(key, value)


def list_settings(db: Database) -> dict[str, str]:
    """All defaults, overridden by whatever has been stored."""
    return {**_DEFAULTS, **db.list_config()}


def get_bool(db: Database, key: str) -> bool:
    """True only when the setting is exactly ``"true"``."""
    return get_value(db, key) == "true"


def set_bool(db: Database, key: str, value: bool) -> None:
    set_value(db, key, "true" if value else "false")


def valid_keys() -> list[str]:
    """Every setting name the tracker knows."""
    return list(_DEFAULTS)


def is_valid_key(key: str) -> bool:
    return key in _DEFAULTS