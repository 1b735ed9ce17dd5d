import io
import sys

import pytest

from tally.cli.delete_cmd import run_delete
from tally.database import Database, NotFoundError
from tally.entries import create_entry, get_entry_by_id, get_last_entry, stop_entry
from tally.model import TallyError


@pytest.fixture
def db(tmp_path):
    database = Database(tmp_path / "tally.db")
    yield database
    database.close()


def _add(db, project_name, title=""):
    project = db.get_or_create_project(project_name)
    entry = create_entry(db, project.id, title, [])
    stop_entry(db, entry.id)
    return entry


def test_no_entries(db, capsys):
    run_delete(db)
    assert capsys.readouterr().out == "No entries to delete\n"


def test_force_deletes_last(db, capsys):
    entry = _add(db, "work", "Fix bugs")
    run_delete(db, force=True)
    out = capsys.readouterr().out
    assert f"Entry: {entry.id}" in out
    assert "  Project: @work" in out
    assert "  Title:   Fix bugs" in out
    assert out.endswith("Entry deleted\n")
    assert get_last_entry(db) is None


def test_declined_confirmation_keeps_entry(db, capsys, monkeypatch):
    entry = _add(db, "work")
    monkeypatch.setattr(sys, "stdin", io.StringIO("n\n"))
    run_delete(db)
    assert capsys.readouterr().out.endswith("Cancelled\n")
    assert get_entry_by_id(db, entry.id).id == entry.id


@pytest.mark.parametrize("answer", ["y\n", "YES\n", "  yes  \n"])
def test_confirmed_deletion(db, monkeypatch, answer):
    entry = _add(db, "work")
    monkeypatch.setattr(sys, "stdin", io.StringIO(answer))
    run_delete(db)
    with pytest.raises(NotFoundError):
        get_entry_by_id(db, entry.id)


def test_specific_entry_only(db):
    first = _add(db, "work")
    second = _add(db, "home")
    run_delete(db, first.id, force=True)
    with pytest.raises(NotFoundError):
        get_entry_by_id(db, first.id)
    assert get_entry_by_id(db, second.id).project.name == "home"


def test_unknown_id_raises(db):
    with pytest.raises(TallyError, match="entry not found"):
        run_delete(db, "missing", force=True)


def test_end_of_input_raises(db, monkeypatch):
    entry = _add(db, "work")
    monkeypatch.setattr(sys, "stdin", io.StringIO(""))
    with pytest.raises(TallyError):
        run_delete(db)
    assert get_entry_by_id(db, entry.id).id == entry.id