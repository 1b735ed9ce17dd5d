"""Text formatting shared by the commands: durations, tags, times and tables."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, Sequence

from .model import Tag, TallyError

_SECOND_NS = 1_000_000_000
_MINUTE_NS = 60 * _SECOND_NS
_HOUR_NS = 60 * _MINUTE_NS


def _nanoseconds(duration: timedelta) -> int:
    return (duration.days * 86_400 + duration.seconds) * _SECOND_NS + duration.microseconds * 1_000


def _round(ns: int, unit: int) -> int:
    """Round to a multiple of ``unit``, halves away from zero."""
    quotient, remainder = divmod(abs(ns), unit)
    if remainder * 2 >= unit:
        quotient += 1
    return quotient * unit if ns >= 0 else -quotient * unit


def _trunc_div(value: int, unit: int) -> int:
    quotient = abs(value) // unit
    return quotient if value >= 0 else -quotient


def format_duration(duration: timedelta) -> str:
    """Render as ``"2h 15m 30s"``, ``"45m 30s"`` or ``"30s"``, to the nearest second."""
    ns = _round(_nanoseconds(duration), _SECOND_NS)
    hours = _trunc_div(ns, _HOUR_NS)
    ns -= hours * _HOUR_NS
    minutes = _trunc_div(ns, _MINUTE_NS)
    ns -= minutes * _MINUTE_NS
    seconds = _trunc_div(ns, _SECOND_NS)
    if hours > 0:
        return f"{hours}h {minutes}m {seconds}s"
    if minutes > 0:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"


def format_duration_short(duration: timedelta) -> str:
    """Render as ``"2h 15m"`` or ``"45m"``, to the nearest minute."""
    ns = _round(_nanoseconds(duration), _MINUTE_NS)
    hours = _trunc_div(ns, _HOUR_NS)
    ns -= hours * _HOUR_NS
    minutes = _trunc_div(ns, _MINUTE_NS)
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_tags(tags: Iterable[str]) -> str:
    """Tag names prefixed with ``+`` and separated by spaces."""
    return " ".join(f"+{name}" for name in tags)


def format_tags_from_model(tags: Iterable[Tag]) -> str:
    return format_tags(tag.name for tag in tags)


_TIME_FORMATS = ("%H:%M:%S", "%H:%M")


def parse_time_input(text: str, now: datetime | None = None) -> datetime:
    """Parse ``HH:MM``, ``HH:MM:SS`` (taken as today) or ``YYYY-MM-DD HH:MM:SS``."""
    try:
        return datetime.strptime(text, "%Y-%m-%d %H:%M:%S")
    except ValueError:
        pass
    now = now or datetime.now()
    for fmt in _TIME_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        return datetime(now.year, now.month, now.day, parsed.hour, parsed.minute, parsed.second)
    raise TallyError(
        f"invalid time format: {text} (use HH:MM, HH:MM:SS, or YYYY-MM-DD HH:MM:SS)"
    )


def render_table(
    rows: Iterable[Sequence[object]], header: Sequence[str] | None = None
) -> str:
    """Borderless, left-aligned columns separated by two spaces.

    Header cells are shown in upper case. Each line ends with a newline.
    """
    lines = [[str(cell) for cell in row] for row in rows]
    if header is not None:
        lines.insert(0, [name.upper() for name in header])
    if not lines:
        return ""
    columns = max(len(line) for line in lines)
    for line in lines:
        line.extend([""] * (columns - len(line)))
    widths = [max(len(line[col]) for line in lines) for col in range(columns)]
    return "".join(
        "  ".join(cell.ljust(width) for cell, width in zip(line, widths)).rstrip() + "\n"
        for line in lines
    )