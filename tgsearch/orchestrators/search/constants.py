"""Shared typed constants for message search orchestration."""

from enum import StrEnum

from tgsearch.contracts.search_v1 import DateShortcut

# Telegram returns at most this many messages per search call.
REMOTE_MAX_PER_CALL = 100

SECONDS_PER_DAY = 86400

# Numeric epoch inputs above this are milliseconds (year 2286 in seconds).
MILLISECOND_EPOCH_THRESHOLD = 10_000_000_000

DATE_SHORTCUT_SECONDS: dict[DateShortcut, int] = {
    DateShortcut.LAST_24H: SECONDS_PER_DAY,
    DateShortcut.LAST_7_DAYS: SECONDS_PER_DAY * 7,
    DateShortcut.LAST_30_DAYS: SECONDS_PER_DAY * 30,
    DateShortcut.LAST_90_DAYS: SECONDS_PER_DAY * 90,
}

NO_SOURCES_ERROR = (
    "No groups found. The account is not a member of any matching groups."
)


class BreakerState(StrEnum):
    """Circuit breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


def all_sources_failed_error(source_count: int) -> str:
    return (
        f"All {source_count} group searches failed. "
        "Check search_errors.log for details."
    )
