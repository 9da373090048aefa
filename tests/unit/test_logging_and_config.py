from __future__ import annotations

import json
from types import SimpleNamespace

import pytest

from tgsearch.core.config import Config
from tgsearch.core.logger import (
    SearchLogger,
    _format_duration,
    error_code,
    is_operational_error,
)


class CodedError(Exception):
    def __init__(self, message: str, code: int):
        super().__init__(message)
        self.code = code


@pytest.mark.parametrize(
    "seconds,expected",
    [(0, "0s"), (0.01, "<0.1s"), (1.26, "1.3s"), (60, "1m"), (75, "1m 15s")],
)
def test_format_duration(seconds, expected):
    assert _format_duration(seconds) == expected


def test_operational_error_codes():
    assert error_code(CodedError("FLOOD_WAIT", 429)) == 429
    assert is_operational_error(CodedError("FLOOD_WAIT", 429))
    assert is_operational_error(CodedError("CHANNEL_PRIVATE", 400))
    assert not is_operational_error(CodedError("INTERNAL", 500))
    assert not is_operational_error(KeyError("missing"))


@pytest.fixture
def search_logger(tmp_path, monkeypatch):
    monkeypatch.setattr("tgsearch.core.logger.config.logs_dir", tmp_path)
    instance = SearchLogger()
    yield instance
    instance.close()


def _events(path):
    return [json.loads(line) for line in path.read_text().splitlines()]


def test_operation_errors_reach_both_logs(search_logger, tmp_path):
    try:
        raise CodedError("CHANNEL_PRIVATE", 400)
    except CodedError as e:
        search_logger.log_operation_error(
            "search_single_group", e, {"group_id": "-100", "query": "bitcoin"}
        )

    [event] = _events(tmp_path / "search_errors.log")
    assert event["event_type"] == "OPERATION_ERROR"
    data = event["data"]
    assert data["operation"] == "search_single_group"
    assert data["operational"] is True
    assert data["error"]["code"] == 400
    assert "CodedError" in data["error"]["stack"]
    assert data["context"] == {"group_id": "-100", "query": "bitcoin"}
    assert _events(tmp_path / "combined.log") == [event]


def test_search_events_stay_out_of_error_log(search_logger, tmp_path):
    search_logger.search_started("bitcoin", 3, discovered=True)
    search_logger.source_result("-100", False, 0, 12.0, error_reason="boom")
    search_logger.search_finished("bitcoin", 0, 0, 1, 20.0)

    kinds = [e["event_type"] for e in _events(tmp_path / "combined.log")]
    assert kinds == ["SEARCH_START", "SOURCE_RESULT", "SEARCH_DONE"]
    assert (tmp_path / "search_errors.log").read_text() == ""


def test_config_reads_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("TELEGRAM_API_ID", "12345")
    monkeypatch.setenv("TELEGRAM_API_HASH", "abc")
    monkeypatch.setenv("TELEGRAM_PHONE", "+10000000000")
    monkeypatch.setenv("TGSEARCH_GLOBAL_RPS", "10")
    monkeypatch.setenv("TGSEARCH_BREAKER_THRESHOLD", "2")
    monkeypatch.setenv("TGSEARCH_LOGS_DIR", str(tmp_path))

    cfg = Config.load()

    assert cfg.telegram_api_id == 12345
    assert cfg.global_rps == 10.0
    assert cfg.breaker_failure_threshold == 2
    assert cfg.per_source_rps == 1.0
    assert cfg.logs_dir == tmp_path
    assert cfg.validate() == []


def test_config_validation_lists_missing_credentials(monkeypatch):
    for name in ("TELEGRAM_API_ID", "TELEGRAM_API_HASH", "TELEGRAM_PHONE"):
        monkeypatch.setenv(name, "")

    errors = Config.load().validate()

    assert errors == [
        "TELEGRAM_API_ID is not set",
        "TELEGRAM_API_HASH is not set",
        "TELEGRAM_PHONE is not set",
    ]


def test_governor_settings_follow_config():
    from tgsearch.orchestrators.search import GovernorSettings

    cfg = SimpleNamespace(
        global_rps=5.0,
        per_source_rps=0.5,
        breaker_failure_threshold=3,
        breaker_reset_seconds=30.0,
    )
    assert GovernorSettings.from_config(cfg) == GovernorSettings(5.0, 0.5, 3, 30.0)


def test_caller_can_mark_uncoded_errors_operational(search_logger, tmp_path):
    search_logger.log_operation_error(
        "search_single_group", KeyError("gone"), {}, operational=True
    )

    [event] = _events(tmp_path / "search_errors.log")
    assert event["data"]["operational"] is True
    assert event["data"]["error"]["code"] is None
