import json
import time
from datetime import datetime, timedelta

from tally.model import (
    Entry,
    EntryStatus,
    Pause,
    Project,
    ReportEntry,
    ReportSummary,
    Tag,
    new_ulid,
)

START = datetime(2024, 3, 4, 9, 0, 0)
ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"


def make_entry(**kwargs):
    values = dict(id="E1", project_id="P1", start_time=START)
    values.update(kwargs)
    return Entry(**values)


def test_new_ulid_shape():
    ulid = new_ulid()
    assert len(ulid) == 26
    assert all(ch in ALPHABET for ch in ulid)


def test_new_ulid_unique():
    ids = {new_ulid() for _ in range(200)}
    assert len(ids) == 200


def test_new_ulid_sorts_by_time():
    first = new_ulid()
    time.sleep(0.005)
    second = new_ulid()
    assert first < second


def test_closed_pause_duration():
    pause = Pause("X", "E1", START, START + timedelta(minutes=15))
    assert pause.duration(now=START + timedelta(hours=5)) == pause.resume_time - pause.pause_time


def test_open_pause_runs_until_now():
    now = START + timedelta(minutes=42)
    pause = Pause("X", "E1", START)
    assert pause.duration(now=now) == now - START


def test_stopped_entry_without_pauses():
    end = START + timedelta(hours=2)
    entry = make_entry(end_time=end, status=EntryStatus.STOPPED)
    assert entry.duration(now=end + timedelta(days=1)) == end - START


def test_entry_subtracts_closed_pauses():
    end = START + timedelta(hours=2)
    p_start = START + timedelta(minutes=30)
    p_end = START + timedelta(minutes=60)
    entry = make_entry(
        end_time=end,
        status=EntryStatus.STOPPED,
        pauses=[Pause("X", "E1", p_start, p_end)],
    )
    assert entry.duration() == (end - START) - (p_end - p_start)


def test_paused_entry_subtracts_open_pause():
    pause_at = START + timedelta(hours=1)
    now = START + timedelta(hours=3)
    entry = make_entry(status=EntryStatus.PAUSED, pauses=[Pause("X", "E1", pause_at)])
    assert entry.duration(now=now) == pause_at - START


def test_running_entry_ignores_open_pause():
    now = START + timedelta(hours=3)
    entry = make_entry(
        status=EntryStatus.RUNNING,
        pauses=[Pause("X", "E1", START + timedelta(hours=1))],
    )
    assert entry.duration(now=now) == now - START


def test_report_entry_to_dict():
    project = Project("P1", "work", START)
    entry = make_entry(project=project, title="Bugs")
    report_entry = ReportEntry(entry, "work", [], timedelta(seconds=1))
    data = report_entry.to_dict()
    assert data["duration"] == 1_000_000_000
    assert data["project_name"] == "work"
    assert data["project"]["id"] == "P1"
    assert data["tag_names"] == []
    assert "end_time" not in data
    assert "tags" not in data
    assert "pauses" not in data
    assert data["status"] == "running"
    assert json.loads(json.dumps(data)) == data


def test_report_entry_includes_tags_and_end():
    tag = Tag("T1", "backend", START)
    end = START + timedelta(hours=1)
    entry = make_entry(end_time=end, status=EntryStatus.STOPPED, tags=[tag])
    data = ReportEntry(entry, "work", ["backend"], end - START).to_dict()
    assert [t["name"] for t in data["tags"]] == ["backend"]
    assert datetime.fromisoformat(data["end_time"]).replace(tzinfo=None) == end


def test_report_summary_to_dict_round_trip():
    end = START + timedelta(days=1)
    entry = make_entry(end_time=START + timedelta(seconds=1), status=EntryStatus.STOPPED)
    summary = ReportSummary(
        period="today",
        start_date=START,
        end_date=end,
        total_duration=timedelta(seconds=1),
        by_project={"work": timedelta(seconds=1)},
        by_tag={},
        entries=[ReportEntry(entry, "work", [], timedelta(seconds=1))],
    )
    data = json.loads(json.dumps(summary.to_dict()))
    assert data["period"] == "today"
    assert data["by_project"] == {"work": data["total_duration"]}
    assert data["by_tag"] == {}
    assert len(data["entries"]) == 1
    assert datetime.fromisoformat(data["start_date"]).replace(tzinfo=None) == START
    assert datetime.fromisoformat(data["end_date"]).replace(tzinfo=None) == end