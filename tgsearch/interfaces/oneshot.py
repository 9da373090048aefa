"""One-shot interface: run a single search, print the JSON response, exit."""

from __future__ import annotations

import asyncio
from typing import Any

from tgsearch.orchestrators.search import MessageSearchOrchestrator
from tgsearch.services.telegram_session import TelegramSession


async def run_oneshot(query: str, options: dict[str, Any] | None = None) -> int:
    text = (query or "").strip()
    if not text:
        print("Error: query must not be empty")
        return 2

    async with TelegramSession() as session:
        orchestrator = MessageSearchOrchestrator(session.platform())
        response = await orchestrator.search({**(options or {}), "query": text})
    print(response.to_json())
    return 0 if response.success else 1


def main(query: str, options: dict[str, Any] | None = None) -> int:
    return asyncio.run(run_oneshot(query=query, options=options))
