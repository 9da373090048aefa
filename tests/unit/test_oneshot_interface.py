from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from tgsearch.contracts.search_v1 import SearchResponse
from tgsearch.interfaces.oneshot import run_oneshot


class FakeSession:
    instances: list["FakeSession"] = []

    def __init__(self) -> None:
        self.closed = False
        FakeSession.instances.append(self)

    async def __aenter__(self) -> "FakeSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.closed = True

    def platform(self) -> str:
        return "platform"


@pytest.fixture
def fake_search(monkeypatch):
    FakeSession.instances = []
    search = AsyncMock(return_value=SearchResponse(success=True))
    factory = MagicMock(return_value=SimpleNamespace(search=search))
    monkeypatch.setattr("tgsearch.interfaces.oneshot.TelegramSession", FakeSession)
    monkeypatch.setattr("tgsearch.interfaces.oneshot.MessageSearchOrchestrator", factory)
    return SimpleNamespace(search=search, factory=factory)


@pytest.mark.asyncio
async def test_run_oneshot_prints_single_response(fake_search, capsys):
    code = await run_oneshot("bitcoin price", {"limit": 5, "sortBy": "date_desc"})

    out = capsys.readouterr().out
    assert code == 0
    assert json.loads(out)["success"] is True
    fake_search.factory.assert_called_once_with("platform")
    fake_search.search.assert_awaited_once_with(
        {"limit": 5, "sortBy": "date_desc", "query": "bitcoin price"}
    )
    assert FakeSession.instances[0].closed is True


@pytest.mark.asyncio
async def test_run_oneshot_failure_exit_code(fake_search, capsys):
    fake_search.search.return_value = SearchResponse.failure("No groups found")

    code = await run_oneshot("bitcoin")

    assert code == 1
    assert json.loads(capsys.readouterr().out)["error"] == "No groups found"


@pytest.mark.asyncio
async def test_run_oneshot_rejects_empty_query(fake_search, capsys):
    code = await run_oneshot("   ")
    out = capsys.readouterr().out
    assert code == 2
    assert "must not be empty" in out
    assert FakeSession.instances == []
