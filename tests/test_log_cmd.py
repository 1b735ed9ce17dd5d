from datetime import datetime

import pytest

from tally.cli.log_cmd import print_entries_table, run_log
from tally.database import Database
from tally.entries import create_entry, stop_entry, update_entry
from tally.model import Entry, EntryStatus, Project, Tag, TallyError


@pytest.fixture
def db(tmp_path):
    database = Database(tmp_path / "tally.db")
    yield database
    database.close()


def _add(db, project_name, title, start, end, tags=()):
    project = db.get_or_create_project(project_name)
    tag_ids = [db.get_or_create_tag(name).id for name in tags]
    entry = create_entry(db, project.id, title, tag_ids)
    stop_entry(db, entry.id)
    update_entry(db, entry.id, project.id, title, start, end, tag_ids)
    return entry


def test_empty_database_reports_nothing(db, capsys):
    run_log(db)
    assert capsys.readouterr().out == "No entries found\n"


def test_unknown_project(db, capsys):
    run_log(db, ["@nope"])
    assert capsys.readouterr().out == "No entries found for project @nope\n"


def test_unknown_tag(db, capsys):
    run_log(db, ["+nope"])
    assert capsys.readouterr().out == "No entries found with tag +nope\n"


@pytest.mark.parametrize("flag", ["from", "to"])
def test_invalid_dates_raise(db, flag):
    kwargs = {f"date_{flag}": "2024/01/05"}
    with pytest.raises(TallyError, match=f"invalid --{flag} date"):
        run_log(db, **kwargs)


def test_project_filter(db, capsys):
    _add(db, "work", "alpha", datetime(2024, 3, 1, 9), datetime(2024, 3, 1, 10))
    _add(db, "home", "beta", datetime(2024, 3, 2, 9), datetime(2024, 3, 2, 10))
    run_log(db, ["@work"])
    out = capsys.readouterr().out
    assert "alpha" in out
    assert "beta" not in out


def test_tag_filter(db, capsys):
    _add(db, "work", "alpha", datetime(2024, 3, 1, 9), datetime(2024, 3, 1, 10), ["api"])
    _add(db, "work", "beta", datetime(2024, 3, 2, 9), datetime(2024, 3, 2, 10))
    run_log(db, ["+api"])
    out = capsys.readouterr().out
    assert "alpha" in out
    assert "beta" not in out


def test_limit(db, capsys):
    _add(db, "work", "older", datetime(2024, 3, 1, 9), datetime(2024, 3, 1, 10))
    _add(db, "work", "newer", datetime(2024, 3, 2, 9), datetime(2024, 3, 2, 10))
    run_log(db, limit=1)
    out = capsys.readouterr().out
    assert "newer" in out
    assert "older" not in out


def test_to_date_includes_whole_day(db, capsys):
    _add(db, "work", "inside", datetime(2024, 3, 5, 23), datetime(2024, 3, 5, 23, 30))
    _add(db, "work", "after", datetime(2024, 3, 6, 8), datetime(2024, 3, 6, 9))
    _add(db, "work", "before", datetime(2024, 3, 3, 8), datetime(2024, 3, 3, 9))
    run_log(db, date_from="2024-03-05", date_to="2024-03-05")
    out = capsys.readouterr().out
    assert "inside" in out
    assert "after" not in out
    assert "before" not in out


def test_table_truncates_titles_and_marks_status(capsys):
    project = Project("p1", "work", datetime(2024, 1, 1))
    long_title = "x" * 40
    start = datetime(2024, 3, 1, 9, 0)
    entries = [
        Entry(
            id="E1",
            project_id="p1",
            start_time=start,
            title=long_title,
            status=EntryStatus.RUNNING,
            project=project,
            tags=[Tag("t1", "api", start), Tag("t2", "db", start)],
        ),
        Entry(
            id="E2",
            project_id="p1",
            start_time=start,
            title="short",
            end_time=datetime(2024, 3, 1, 10, 30),
            status=EntryStatus.STOPPED,
            project=project,
        ),
    ]
    print_entries_table(entries, now=datetime(2024, 3, 1, 10))
    out = capsys.readouterr().out
    assert "x" * 27 + "..." in out
    assert "x" * 28 not in out
    assert "@work" in out
    assert "api, db" in out
    assert "1h 0m*" in out
    assert "1h 30m" in out
    assert "2024-03-01 09:00" in out
    assert out.endswith("\n* = running, ~ = paused\n")


def test_paused_entry_marked_with_tilde(capsys):
    start = datetime(2024, 3, 1, 9, 0)
    entry = Entry(
        id="E3",
        project_id="p1",
        start_time=start,
        status=EntryStatus.PAUSED,
        project=Project("p1", "work", start),
    )
    print_entries_table([entry], now=datetime(2024, 3, 1, 9, 20))
    assert "20m~" in capsys.readouterr().out