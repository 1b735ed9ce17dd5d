"""Time reports over named calendar periods."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from .database import Database
from .entries import ListEntriesOptions, list_entries
from .model import ReportEntry, ReportSummary


class Period(str, Enum):
    """A named reporting period, relative to the current day."""

    TODAY = "today"
    YESTERDAY = "yesterday"
    WEEK = "week"
    LAST_WEEK = "lastWeek"
    MONTH = "month"
    LAST_MONTH = "lastMonth"
    YEAR = "year"
    LAST_YEAR = "lastYear"

    def __str__(self) -> str:
        return self.value


ALL_PERIODS: list[Period] = list(Period)

_DAY = timedelta(days=1)


def _to_period(period: Period | str) -> Period:
    try:
        return Period(period)
    except ValueError:
        raise ValueError(f"invalid period: {period}") from None


def period_date_range(
    period: Period | str, now: datetime | None = None
) -> tuple[datetime, datetime]:
    """Start (inclusive) and end (exclusive) of ``period`` as seen at ``now``."""
    period = _to_period(period)
    now = now or datetime.now()
    today = datetime(now.year, now.month, now.day)
    week_start = today - timedelta(days=today.weekday())
    month_start = datetime(now.year, now.month, 1)

    if period is Period.TODAY:
        return today, today + _DAY
    if period is Period.YESTERDAY:
        return today - _DAY, today
    if period is Period.WEEK:
        return week_start, today + _DAY
    if period is Period.LAST_WEEK:
        return week_start - timedelta(days=7), week_start
    if period is Period.MONTH:
        return month_start, today + _DAY
    if period is Period.LAST_MONTH:
        if now.month == 1:
            return datetime(now.year - 1, 12, 1), month_start
        return datetime(now.year, now.month - 1, 1), month_start
    if period is Period.YEAR:
        return datetime(now.year, 1, 1), today + _DAY
    return datetime(now.year - 1, 1, 1), datetime(now.year, 1, 1)


@dataclass
class ReportOptions:
    period: Period | str
    project_id: str | None = None
    tag_ids: list[str] = field(default_factory=list)


def generate_report(
    db: Database, options: ReportOptions, now: datetime | None = None
) -> ReportSummary:
    """Aggregate the entries started within the period by project and tag."""
    now = now or datetime.now()
    period = _to_period(options.period)
    start, end = period_date_range(period, now)

    entries = list_entries(
        db,
        ListEntriesOptions(
            project_id=options.project_id,
            tag_ids=list(options.tag_ids),
            date_from=start,
            date_to=end,
        ),
    )

    summary = ReportSummary(period=period.value, start_date=start, end_date=end)
    for entry in entries:
        duration = entry.duration(now)
        summary.total_duration += duration

        project_name = entry.project.name if entry.project is not None else ""
        if entry.project is not None:
            summary.by_project[project_name] = (
                summary.by_project.get(project_name, timedelta()) + duration
            )
        tag_names = [tag.name for tag in entry.tags]
        for name in tag_names:
            summary.by_tag[name] = summary.by_tag.get(name, timedelta()) + duration

        summary.entries.append(
            ReportEntry(
                entry=entry,
                project_name=project_name,
                tag_names=tag_names,
                duration=duration,
            )
        )
    return summary