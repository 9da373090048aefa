"""Date resolution for search filters.

Accepts Unix timestamps (seconds or milliseconds), ISO 8601 / standard date
strings, and relative phrases ("3 days ago", "yesterday", "last week").
All values resolve to Unix timestamps in seconds; 0 means unbounded.
"""

import math
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from tgsearch.contracts.search_v1 import DateShortcut, SearchQuery
from tgsearch.orchestrators.search.constants import (
    DATE_SHORTCUT_SECONDS,
    MILLISECOND_EPOCH_THRESHOLD,
)
from tgsearch.orchestrators.search.errors import DateParseError

_UNIT_SECONDS = {
    "second": 1,
    "minute": 60,
    "hour": 3600,
    "day": 86400,
    "week": 7 * 86400,
    "month": 30 * 86400,
    "year": 365 * 86400,
}

_WORD_NUMBERS = {
    "a": 1,
    "an": 1,
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
    "ten": 10,
}

_AGO_RE = re.compile(
    r"^(?P<count>\d+|a|an|one|two|three|four|five|six|seven|eight|nine|ten)\s+"
    r"(?P<unit>second|minute|hour|day|week|month|year)s?\s+ago$"
)
_LAST_RE = re.compile(r"^(?:last|past|previous)\s+(?P<unit>hour|day|week|month|year)$")
_NUMERIC_RE = re.compile(r"^-?\d+(?:\.\d+)?$")

_STANDARD_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y/%m/%d",
    "%Y/%m/%d %H:%M:%S",
    "%d.%m.%Y",
    "%b %d %Y",
    "%B %d %Y",
    "%d %b %Y",
    "%d %B %Y",
)


@dataclass(frozen=True)
class TimeWindow:
    """Resolved search window in Unix seconds. 0 leaves that side open."""

    start: int = 0
    end: int = 0


def _epoch(dt: datetime) -> int:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp())


def _in_range(seconds: int, value: object) -> int:
    try:
        datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        raise DateParseError(f"Date out of range: {value}") from None
    return seconds


def _from_number(value: float, raw: object) -> int:
    if isinstance(value, float) and not math.isfinite(value):
        raise DateParseError(f"Unable to parse date: {raw!r}")
    if value > MILLISECOND_EPOCH_THRESHOLD:
        return _in_range(int(value // 1000), raw)
    return _in_range(int(value), raw)


def _parse_standard(text: str) -> int | None:
    try:
        return _epoch(datetime.fromisoformat(text))
    except ValueError:
        pass
    for fmt in _STANDARD_FORMATS:
        try:
            return _epoch(datetime.strptime(text, fmt))
        except ValueError:
            continue
    return None


def _parse_relative(text: str, now: datetime) -> int | None:
    phrase = " ".join(text.lower().split())
    if phrase == "now":
        return _epoch(now)
    # Calendar words keep the time of day.
    if phrase == "today":
        return _epoch(now)
    if phrase == "yesterday":
        return _epoch(now - timedelta(days=1))
    match = _AGO_RE.match(phrase)
    if match:
        raw = match.group("count")
        count = int(raw) if raw.isdigit() else _WORD_NUMBERS[raw]
        return _epoch(now) - count * _UNIT_SECONDS[match.group("unit")]
    match = _LAST_RE.match(phrase)
    if match:
        return _epoch(now) - _UNIT_SECONDS[match.group("unit")]
    return None


def parse_date_input(value: str | int | float, now: datetime | None = None) -> int:
    """Parse one date input into Unix seconds. Raises DateParseError."""
    if isinstance(value, bool):
        raise DateParseError(f"Unable to parse date: {value!r}")
    if isinstance(value, (int, float)):
        return _from_number(value, value)

    text = str(value).strip()
    if not text:
        raise DateParseError("Unable to parse date: empty value")
    if _NUMERIC_RE.match(text):
        return _from_number(float(text), text)

    parsed = _parse_standard(text)
    if parsed is not None:
        return parsed

    parsed = _parse_relative(text, now or datetime.now(timezone.utc))
    if parsed is not None:
        return _in_range(parsed, text)

    raise DateParseError(f"Unable to parse date: {text}")


def parse_date_shortcut(shortcut: DateShortcut | str, now: datetime | None = None) -> TimeWindow:
    """Resolve a convenience range anchored at `now`."""
    try:
        span = DATE_SHORTCUT_SECONDS[DateShortcut(shortcut)]
    except ValueError:
        raise DateParseError(f"Unknown date shortcut: {shortcut}") from None
    end = _epoch(now or datetime.now(timezone.utc))
    return TimeWindow(start=end - span, end=end)


def validate_date_range(start: int, end: int) -> bool:
    if start <= 0 or end <= 0:
        return False
    return start < end


def resolve_time_window(query: SearchQuery, now: datetime | None = None) -> TimeWindow:
    """Effective window for a query. startDate/endDate override dateRange.

    Raises DateParseError for unparseable inputs or a start not before the end.
    """
    start = end = 0
    if query.date_range is not None:
        window = parse_date_shortcut(query.date_range, now)
        start, end = window.start, window.end

    if query.start_date is not None:
        try:
            start = parse_date_input(query.start_date, now)
        except DateParseError as e:
            raise DateParseError(f"Invalid startDate: {e}") from e
    if query.end_date is not None:
        try:
            end = parse_date_input(query.end_date, now)
        except DateParseError as e:
            raise DateParseError(f"Invalid endDate: {e}") from e

    if start and end and not validate_date_range(start, end):
        raise DateParseError("Invalid date range: startDate must be before endDate")
    return TimeWindow(start=start, end=end)
