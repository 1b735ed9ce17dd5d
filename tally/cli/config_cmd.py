"""The ``config`` command: list, read and change settings."""

from __future__ import annotations

from ..config import (
    KEY_OUTPUT_FORMAT,
    get_value,
    is_valid_key,
    list_settings,
    set_value,
    valid_keys,
)
from ..database import Database
from ..formatting import render_table
from ..model import TallyError

OUTPUT_FORMATS = ("table", "json", "csv")


def _require_valid_key(key: str) -> None:
    if not is_valid_key(key):
        raise TallyError(
            f"unknown config key: {key}\nValid keys: {', '.join(valid_keys())}"
        )


def run_config_list(db: Database) -> None:
    """Print every setting with its current value."""
    settings = list_settings(db)
    rows = [[key, settings[key]] for key in valid_keys()]
    print(render_table(rows, header=["Key", "Value"]), end="")


def run_config_get(db: Database, key: str) -> None:
    """Print the value of one setting."""
    _require_valid_key(key)
    print(get_value(db, key))


def run_config_set(db: Database, key: str, value: str) -> None:
    """Validate and store one setting."""
    _require_valid_key(key)
    if key == KEY_OUTPUT_FORMAT and value not in OUTPUT_FORMATS:
        raise TallyError("value must be 'table', 'json', or 'csv'")
    set_value(db, key, value)
    print(f"{key} = {value}")