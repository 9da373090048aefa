"""Exceptions raised inside the search engine.

None of these escape a single-source search: they are converted into
per-source failure outcomes there.
"""


class SearchEngineError(Exception):
    """Base class for search engine errors."""


class BreakerOpenError(SearchEngineError):
    """The circuit breaker is open; the remote call was not attempted."""

    def __init__(self, retry_in: float):
        self.retry_in = retry_in
        super().__init__(
            f"Circuit breaker is OPEN: remote search suspended, retry in {retry_in:.0f}s"
        )


class SourceResolutionError(SearchEngineError):
    """A source id could not be resolved (unknown, expired, or inaccessible)."""


class DateParseError(SearchEngineError, ValueError):
    """A date input matched none of the supported formats."""
