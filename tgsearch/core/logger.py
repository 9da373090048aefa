"""Structured logging: console, combined event log, and error log."""

import json
import logging
import os
import sys
import threading
import traceback
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

from tgsearch.core.config import config

# Platform error codes that are expected and recoverable.
OPERATIONAL_ERROR_CODES = frozenset({400, 401, 403, 404, 429})

_CONSOLE_KWARGS = frozenset({"exc_info", "stack_info", "stacklevel", "extra"})


def _format_duration(seconds: float) -> str:
    if seconds < 0:
        return "0s"
    if seconds >= 60:
        m = int(seconds // 60)
        s = seconds % 60
        if s < 0.05:
            return f"{m}m"
        return f"{m}m {s:.0f}s" if s >= 1 else f"{m}m {s:.1f}s"
    if seconds >= 0.05:
        return f"{seconds:.1f}s"
    if seconds > 0:
        return "<0.1s"
    return "0s"


def _short_reason(reason: str | None, max_len: int = 80) -> str:
    """One-line short reason for console (failed source)."""
    if not reason or not reason.strip():
        return ""
    s = reason.strip().replace("\n", " ").strip()
    return s[:max_len] + "..." if len(s) > max_len else s


def _use_color() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    try:
        return sys.stderr.isatty()
    except Exception:
        return False


def _c(role: str) -> str:
    if not _use_color():
        return ""
    codes = {
        "source": "\033[38;5;81m",
        "done_ok": "\033[38;5;78m",
        "done_fail": "\033[38;5;203m",
        "duration": "\033[38;5;221m",
    }
    return codes.get(role, "")


def _reset() -> str:
    if not _use_color():
        return ""
    return "\033[0m"


def error_code(error: BaseException) -> int | None:
    """Numeric platform error code carried by an exception, if any."""
    for attr in ("code", "error_code"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    return None


def is_operational_error(error: BaseException) -> bool:
    return error_code(error) in OPERATIONAL_ERROR_CODES


@dataclass
class LogEvent:
    event_type: str
    timestamp: str
    data: dict[str, Any]

    def to_dict(self) -> dict:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


class SearchLogger:
    def __init__(self):
        config.logs_dir.mkdir(parents=True, exist_ok=True)
        self.log_file = config.logs_dir / "combined.log"
        self.error_file = config.logs_dir / "search_errors.log"
        self._file_lock = threading.Lock()
        self._log_file_handle = open(self.log_file, "a", encoding="utf-8")
        self._error_file_handle = open(self.error_file, "a", encoding="utf-8")
        self._setup_console_logger()

    def _setup_console_logger(self):
        self.console = logging.getLogger("tgsearch")
        self.console.setLevel(logging.DEBUG)
        self._console_formatter = logging.Formatter(
            "%(asctime)s │ %(message)s", datefmt="%H:%M:%S"
        )
        if not self.console.handlers:
            # stdout belongs to the MCP stdio transport
            handler = logging.StreamHandler(sys.stderr)
            handler.setLevel(logging.INFO)
            handler.setFormatter(self._console_formatter)
            self.console.addHandler(handler)
        self._setup_third_party_console_logging()

    def _setup_third_party_console_logging(self):
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.WARNING)
        handler.setFormatter(self._console_formatter)
        for name in ("telethon", "mcp"):
            log = logging.getLogger(name)
            log.setLevel(logging.WARNING)
            log.propagate = False
            log.addHandler(handler)

    def log_event(self, event: LogEvent) -> None:
        line = event.to_json() + "\n"
        with self._file_lock:
            self._log_file_handle.write(line)
            self._log_file_handle.flush()
            if event.event_type in ("ERROR", "OPERATION_ERROR"):
                self._error_file_handle.write(line)
                self._error_file_handle.flush()

    def _timestamp(self) -> str:
        return datetime.now().isoformat()

    def search_started(self, query: str, source_count: int, discovered: bool):
        self.log_event(
            LogEvent(
                event_type="SEARCH_START",
                timestamp=self._timestamp(),
                data={
                    "query": query[:200],
                    "source_count": source_count,
                    "discovered": discovered,
                },
            )
        )
        origin = "discovered" if discovered else "explicit"
        self.console.info(
            f"Search {query[:60]!r} across {source_count} {origin} source(s)"
        )

    def source_result(
        self,
        source_id: str,
        success: bool,
        result_count: int,
        duration_ms: float,
        error_reason: str | None = None,
    ):
        self.log_event(
            LogEvent(
                event_type="SOURCE_RESULT",
                timestamp=self._timestamp(),
                data={
                    "source_id": source_id,
                    "success": success,
                    "result_count": result_count,
                    "duration_ms": duration_ms,
                    "error": error_reason,
                },
            )
        )
        duration = _format_duration(duration_ms / 1000)
        label = f"{_c('source')}{source_id}{_reset()}"
        timing = f"{_c('duration')}{duration}{_reset()}"
        if success:
            status = f"{_c('done_ok')}[ok]{_reset()}"
            self.console.info(f"  │ {label} {status} {result_count} result(s) {timing}")
        else:
            status = f"{_c('done_fail')}[failed]{_reset()}"
            reason = _short_reason(error_reason)
            suffix = f" {reason}" if reason else ""
            self.console.info(f"  │ {label} {status} {timing}{suffix}")

    def search_finished(
        self,
        query: str,
        returned: int,
        total_found: int,
        failed_sources: int,
        duration_ms: float,
    ):
        self.log_event(
            LogEvent(
                event_type="SEARCH_DONE",
                timestamp=self._timestamp(),
                data={
                    "query": query[:200],
                    "returned": returned,
                    "total_found": total_found,
                    "failed_sources": failed_sources,
                    "duration_ms": duration_ms,
                },
            )
        )
        failed = f", {failed_sources} failed" if failed_sources else ""
        self.console.info(
            f"Done: {returned}/{total_found} result(s){failed} "
            f"in {_format_duration(duration_ms / 1000)}"
        )

    def log_operation_error(
        self,
        operation: str,
        error: BaseException,
        context: dict[str, Any],
        operational: bool = False,
    ) -> None:
        """Record full diagnostics for a failed operation (operator-facing only).

        Errors are operational when the caller says so or when they carry a
        platform code in OPERATIONAL_ERROR_CODES; everything else is treated
        as a programming error.
        """
        operational = operational or is_operational_error(error)
        event = LogEvent(
            event_type="OPERATION_ERROR",
            timestamp=self._timestamp(),
            data={
                "operation": operation,
                "operational": operational,
                "error": {
                    "type": type(error).__name__,
                    "message": str(error),
                    "code": error_code(error),
                    "stack": "".join(
                        traceback.format_exception(
                            type(error), error, error.__traceback__
                        )
                    ),
                },
                "context": context,
            },
        )
        self.log_event(event)
        kind = "Operational" if operational else "Programming"
        self.console.warning(
            f"⚠️ {kind} error in {operation}: {_short_reason(str(error) or type(error).__name__)}"
        )

    def _console_kwargs(self, kwargs: dict[str, Any]) -> dict[str, Any]:
        return {k: v for k, v in kwargs.items() if k in _CONSOLE_KWARGS}

    def _record(self, event_type: str, message: str, args: tuple, **data: Any) -> None:
        text = message % args if args else message
        self.log_event(
            LogEvent(
                event_type=event_type,
                timestamp=self._timestamp(),
                data={"message": text[:500], **data},
            )
        )

    def error(self, message: str, *args, exception: Exception | None = None, **kwargs):
        self._record(
            "ERROR", message, args, exception=str(exception) if exception else None
        )
        log_kwargs = self._console_kwargs(kwargs)
        if exception and "exc_info" not in log_kwargs:
            log_kwargs["exc_info"] = exception
        self.console.error(f"❌ {message}", *args, **log_kwargs)

    def warning(self, message: str, *args, **kwargs):
        self._record("WARNING", message, args)
        self.console.warning(f"⚠️ {message}", *args, **self._console_kwargs(kwargs))

    def info(self, message: str, *args, **kwargs):
        # Console only.
        self.console.info(message, *args, **self._console_kwargs(kwargs))

    def close(self) -> None:
        with self._file_lock:
            self._log_file_handle.close()
            self._error_file_handle.close()


logger = SearchLogger()
