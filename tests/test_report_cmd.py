import csv
import io
import json
import sys
from datetime import datetime, timedelta

import pytest

from tally.cli.report_cmd import output_table, run_report, select_period
from tally.config import set_value
from tally.database import Database
from tally.entries import create_entry, stop_entry
from tally.formatting import format_duration, format_duration_short
from tally.model import ReportSummary, TallyError
from tally.reports import Period


@pytest.fixture
def db(tmp_path):
    database = Database(tmp_path / "tally.db")
    yield database
    database.close()


@pytest.fixture
def tracked(db):
    project = db.get_or_create_project("work")
    tag = db.get_or_create_tag("backend")
    entry = create_entry(db, project.id, "Fix bugs", [tag.id])
    stop_entry(db, entry.id)
    other = db.get_or_create_project("home")
    second = create_entry(db, other.id, "Garden", [])
    stop_entry(db, second.id)
    return db


def test_invalid_period_raises(tracked):
    with pytest.raises(TallyError, match="invalid period: bogus"):
        run_report(tracked, ["bogus"], "table")


def test_unknown_project_prints_message(tracked, capsys):
    run_report(tracked, ["today", "@nope"], "table")
    assert capsys.readouterr().out == "Project @nope not found\n"


def test_unknown_tag_prints_message(tracked, capsys):
    run_report(tracked, ["today", "+nope"], "table")
    assert capsys.readouterr().out == "Tag +nope not found\n"


def test_json_output_filtered_by_tag(tracked, capsys):
    run_report(tracked, ["today", "+backend"], "json")
    data = json.loads(capsys.readouterr().out)
    assert data["period"] == "today"
    assert len(data["entries"]) == 1
    assert data["entries"][0]["project_name"] == "work"
    assert data["entries"][0]["tag_names"] == ["backend"]
    assert set(data["by_tag"]) == {"backend"}


def test_json_output_all_projects(tracked, capsys):
    run_report(tracked, ["today"], "json")
    data = json.loads(capsys.readouterr().out)
    assert set(data["by_project"]) == {"work", "home"}
    assert data["total_duration"] == sum(data["by_project"].values())


def test_csv_output(tracked, capsys):
    run_report(tracked, ["today", "@work"], "csv")
    rows = list(csv.reader(io.StringIO(capsys.readouterr().out)))
    assert rows[0] == ["ID", "Project", "Title", "Duration (minutes)", "Tags", "Start", "End"]
    assert len(rows) == 2
    assert rows[1][1] == "work"
    assert rows[1][2] == "Fix bugs"
    assert rows[1][4] == "backend"
    assert float(rows[1][3]) >= 0
    assert rows[1][6] != ""


def test_table_output(tracked, capsys):
    run_report(tracked, ["today"], "table")
    out = capsys.readouterr().out
    assert "Report: today" in out
    assert "Entries:" in out
    assert "By Project:" in out
    assert "  @work" in out
    assert "  +backend" in out
    assert "Total: " in out


def test_default_format_comes_from_config(tracked, capsys):
    set_value(tracked, "output.format", "json")
    run_report(tracked, ["today"])
    data = json.loads(capsys.readouterr().out)
    assert data["period"] == "today"


def test_missing_period_uses_menu(tracked, capsys, monkeypatch):
    monkeypatch.setattr(sys, "stdin", io.StringIO("1\n"))
    run_report(tracked, [], "json")
    out = capsys.readouterr().out
    data = json.loads(out[out.index("{"):])
    assert data["period"] == "today"


def test_select_period_choice(monkeypatch, capsys):
    monkeypatch.setattr(sys, "stdin", io.StringIO("3\n"))
    assert select_period() is Period.WEEK
    assert "  8. lastYear" in capsys.readouterr().out


@pytest.mark.parametrize("text", ["9\n", "0\n", "abc\n", "5"])
def test_select_period_rejects_bad_input(monkeypatch, text):
    monkeypatch.setattr(sys, "stdin", io.StringIO(text))
    with pytest.raises(TallyError):
        select_period()


def test_output_table_empty_summary(capsys):
    summary = ReportSummary(
        period="week", start_date=datetime(2024, 1, 1), end_date=datetime(2024, 1, 8)
    )
    output_table(summary)
    out = capsys.readouterr().out
    assert "Period: 2024-01-01 to 2024-01-07" in out
    assert "Entries:" not in out
    assert out.endswith("Total: 0s\n")


def test_output_table_groups(capsys):
    spent = timedelta(hours=1, minutes=30)
    summary = ReportSummary(
        period="today",
        start_date=datetime(2024, 3, 5),
        end_date=datetime(2024, 3, 6),
        total_duration=spent,
        by_project={"work": spent},
        by_tag={"backend": spent},
    )
    output_table(summary)
    out = capsys.readouterr().out
    assert f"  @work  {format_duration_short(spent)}" in out
    assert f"  +backend  {format_duration_short(spent)}" in out
    assert f"Total: {format_duration(spent)}" in out