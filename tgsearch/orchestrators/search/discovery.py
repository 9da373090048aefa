"""Source discovery: enumerate searchable conversations the account belongs to."""

import logging
from dataclasses import dataclass

from tgsearch.contracts.search_v1 import (
    DEFAULT_MAX_SOURCES,
    MAX_SOURCES_CEILING,
    SearchQuery,
    SourceDescriptor,
    SourceType,
)
from tgsearch.orchestrators.search.interface import MessagingPlatform, RawConversation

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100


@dataclass(frozen=True)
class DiscoveryOptions:
    max_sources: int = DEFAULT_MAX_SOURCES
    include_channel_like: bool = True
    include_archived: bool = False
    source_types: frozenset[SourceType] | None = None

    @classmethod
    def from_query(cls, query: SearchQuery) -> "DiscoveryOptions":
        return cls(
            max_sources=query.max_sources,
            include_channel_like=query.include_channel_like,
            include_archived=query.include_archived,
            source_types=(
                frozenset(query.source_type_filter)
                if query.source_type_filter
                else None
            ),
        )


class SourceDiscovery:
    """Pages through the conversation directory and keeps matching sources."""

    def __init__(self, platform: MessagingPlatform, page_size: int = DEFAULT_PAGE_SIZE):
        self._platform = platform
        self._page_size = max(1, page_size)

    def _accepts(self, conv: RawConversation, options: DiscoveryOptions) -> bool:
        if conv.source_type is None:
            return False
        if conv.archived and not options.include_archived:
            return False
        if conv.source_type == SourceType.CHANNEL and not options.include_channel_like:
            return False
        if options.source_types and conv.source_type not in options.source_types:
            return False
        return True

    async def discover(self, options: DiscoveryOptions) -> list[SourceDescriptor]:
        cap = min(max(1, options.max_sources), MAX_SOURCES_CEILING)
        found: list[SourceDescriptor] = []
        seen: set[str] = set()
        cursor = None
        pages = 0

        while len(found) < cap:
            page = await self._platform.list_conversations(
                cursor, self._page_size, include_archived=options.include_archived
            )
            pages += 1
            for conv in page.conversations:
                if conv.id in seen or not self._accepts(conv, options):
                    continue
                seen.add(conv.id)
                found.append(
                    SourceDescriptor(id=conv.id, title=conv.title, type=conv.source_type)
                )
                if len(found) >= cap:
                    break
            if len(page.conversations) < self._page_size or page.next_cursor is None:
                break
            cursor = page.next_cursor

        logger.info(
            "Discovery: %s source(s) from %s page(s) | cap=%s types=%s channels=%s archived=%s",
            len(found),
            pages,
            cap,
            sorted(options.source_types) if options.source_types else "all",
            options.include_channel_like,
            options.include_archived,
        )
        return found
