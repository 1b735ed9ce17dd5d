"""The ``report`` command: summarise tracked time over a period."""

from __future__ import annotations

import csv
import json
import re
import sys
from datetime import timedelta
from typing import Sequence

from ..config import KEY_OUTPUT_FORMAT, get_value
from ..database import Database
from ..formatting import format_duration, format_duration_short, render_table
from ..model import ReportSummary, TallyError
from ..reports import ALL_PERIODS, Period, ReportOptions, generate_report

_ENTRY_HEADER = ["ID", "Project", "Title", "Duration", "Tags", "Date"]
_CSV_HEADER = ["ID", "Project", "Title", "Duration (minutes)", "Tags", "Start", "End"]
_TITLE_WIDTH = 35
_CSV_TIME = "%Y-%m-%d %H:%M:%S"


def _valid_periods_text() -> str:
    return "[" + " ".join(period.value for period in ALL_PERIODS) + "]"


def run_report(
    db: Database, args: Sequence[str] = (), output_format: str | None = None
) -> None:
    """Print a report for the period, ``@project`` and ``+tag`` filters in ``args``."""
    if not output_format:
        output_format = get_value(db, KEY_OUTPUT_FORMAT)

    period_text = ""
    project_id: str | None = None
    tag_ids: list[str] = []

    for arg in args:
        if arg.startswith("@"):
            name = arg[1:]
            project = db.get_project_by_name(name)
            if project is None:
                print(f"Project @{name} not found")
                return
            project_id = project.id
        elif arg.startswith("+"):
            name = arg[1:]
            tag = db.get_tag_by_name(name)
            if tag is None:
                print(f"Tag +{name} not found")
                return
            tag_ids.append(tag.id)
        else:
            period_text = arg

    if period_text:
        try:
            period = Period(period_text)
        except ValueError:
            raise TallyError(
                f"invalid period: {period_text}\nValid periods: {_valid_periods_text()}"
            ) from None
    else:
        period = select_period()

    summary = generate_report(
        db, ReportOptions(period=period, project_id=project_id, tag_ids=tag_ids)
    )

    if output_format == "json":
        output_json(summary)
    elif output_format == "csv":
        output_csv(summary)
    else:
        output_table(summary)


def select_period() -> Period:
    """Ask on standard input which period to report on."""
    print("Select a report period:")
    print()
    for number, period in enumerate(ALL_PERIODS, start=1):
        print(f"  {number}. {period.value}")
    print()
    print(f"Enter number (1-{len(ALL_PERIODS)}): ", end="", flush=True)

    line = sys.stdin.readline()
    if not line.endswith("\n"):
        raise TallyError("unexpected end of input")

    match = re.match(r"[+-]?\d+", line.strip())
    if match is None:
        raise TallyError("invalid selection")
    choice = int(match.group())
    if not 1 <= choice <= len(ALL_PERIODS):
        raise TallyError(f"invalid selection: choose 1-{len(ALL_PERIODS)}")
    return ALL_PERIODS[choice - 1]


def output_table(summary: ReportSummary) -> None:
    """Print the report as entry, project and tag tables plus a total."""
    last_day = summary.end_date - timedelta(microseconds=1)
    print(f"\nReport: {summary.period}")
    print(
        f"Period: {summary.start_date.strftime('%Y-%m-%d')} to "
        f"{last_day.strftime('%Y-%m-%d')}\n"
    )

    if summary.entries:
        print("Entries:")
        rows = []
        for item in summary.entries:
            title = item.entry.title
            if len(title) > _TITLE_WIDTH:
                title = title[: _TITLE_WIDTH - 3] + "..."
            rows.append(
                [
                    item.entry.id,
                    f"@{item.project_name}",
                    title,
                    format_duration_short(item.duration),
                    ", ".join(item.tag_names),
                    item.entry.start_time.strftime("%Y-%m-%d %H:%M"),
                ]
            )
        print(render_table(rows, header=_ENTRY_HEADER), end="")
        print()

    if summary.by_project:
        print("By Project:")
        rows = [
            [f"  @{name}", format_duration_short(duration)]
            for name, duration in summary.by_project.items()
        ]
        print(render_table(rows), end="")
        print()

    if summary.by_tag:
        print("By Tag:")
        rows = [
            [f"  +{name}", format_duration_short(duration)]
            for name, duration in summary.by_tag.items()
        ]
        print(render_table(rows), end="")
        print()

    print(f"Total: {format_duration(summary.total_duration)}")


def output_json(summary: ReportSummary) -> None:
    """Print the report as indented JSON."""
    print(json.dumps(summary.to_dict(), indent=2, ensure_ascii=False))


def output_csv(summary: ReportSummary) -> None:
    """Print one CSV row per entry after a header row."""
    writer = csv.writer(sys.stdout, lineterminator="\n")
    writer.writerow(_CSV_HEADER)
    for item in summary.entries:
        entry = item.entry
        end = entry.end_time.strftime(_CSV_TIME) if entry.end_time is not None else ""
        writer.writerow(
            [
                entry.id,
                item.project_name,
                entry.title,
                f"{item.duration.total_seconds() / 60:.1f}",
                ",".join(item.tag_names),
                entry.start_time.strftime(_CSV_TIME),
                end,
            ]
        )