from __future__ import annotations

import time
from typing import Any

import pytest

from tgsearch.contracts.search_v1 import SourceType
from tgsearch.orchestrators.search import GovernorSettings
from tgsearch.orchestrators.search.dates import TimeWindow
from tgsearch.orchestrators.search.errors import SourceResolutionError
from tgsearch.orchestrators.search.interface import (
    ConversationPage,
    MessagingPlatform,
    RawConversation,
    RawSearchPage,
    SourceHandle,
)


class FakePlatform(MessagingPlatform):
    """In-memory platform: a conversation directory plus canned search pages."""

    def __init__(self) -> None:
        self.conversations: list[RawConversation] = []
        self.handles: dict[str, SourceHandle] = {}
        self.pages: dict[str, RawSearchPage] = {}
        self.resolve_errors: dict[str, Exception] = {}
        self.search_errors: dict[str, Exception] = {}

        self.list_calls: list[tuple[Any, int, bool]] = []
        self.resolve_calls: list[str] = []
        self.resolve_times: dict[str, float] = {}
        self.search_calls: list[dict[str, Any]] = []

    def add_conversation(
        self,
        conv_id: str,
        source_type: SourceType | None = SourceType.SUPERGROUP,
        title: str | None = None,
        archived: bool = False,
    ) -> None:
        self.conversations.append(
            RawConversation(
                id=conv_id,
                title=title or f"Group {conv_id}",
                source_type=source_type,
                archived=archived,
            )
        )

    async def list_conversations(
        self,
        cursor: Any | None,
        page_size: int,
        include_archived: bool = False,
    ) -> ConversationPage:
        self.list_calls.append((cursor, page_size, include_archived))
        start = cursor or 0
        end = start + page_size
        next_cursor = end if end < len(self.conversations) else None
        return ConversationPage(
            conversations=self.conversations[start:end], next_cursor=next_cursor
        )

    async def resolve_source(self, identifier: str) -> SourceHandle:
        self.resolve_calls.append(identifier)
        self.resolve_times.setdefault(identifier, time.monotonic())
        if identifier in self.resolve_errors:
            raise self.resolve_errors[identifier]
        handle = self.handles.get(identifier)
        if handle is not None:
            return handle
        digits = identifier.lstrip("-")
        if not digits.isdigit():
            raise SourceResolutionError(f"Failed to resolve group: {identifier}")
        return SourceHandle(
            source_id=identifier,
            bare_id=int(digits),
            title=f"Group {identifier}",
            source_type=SourceType.SUPERGROUP,
        )

    async def search_messages(
        self,
        source: SourceHandle,
        query: str,
        window: TimeWindow,
        offset: int,
        limit: int,
    ) -> RawSearchPage:
        self.search_calls.append(
            {
                "source_id": source.source_id,
                "query": query,
                "window": window,
                "offset": offset,
                "limit": limit,
            }
        )
        if source.source_id in self.search_errors:
            raise self.search_errors[source.source_id]
        return self.pages.get(source.source_id, RawSearchPage())


@pytest.fixture
def fake_platform() -> FakePlatform:
    return FakePlatform()


@pytest.fixture
def fast_settings() -> GovernorSettings:
    """Rates high enough that no test waits on a token bucket."""
    return GovernorSettings(
        global_rate=1000.0,
        per_source_rate=1000.0,
        breaker_failure_threshold=5,
        breaker_reset_seconds=60.0,
    )
