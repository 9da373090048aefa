"""Message search contract v1: shared types for search input, sources, and result payloads."""

from tgsearch.contracts.search_v1 import (
    MessageResult,
    SearchQuery,
    SearchResponse,
    SortOrder,
    SourceDescriptor,
    SourceType,
)

__all__ = [
    "MessageResult",
    "SearchQuery",
    "SearchResponse",
    "SortOrder",
    "SourceDescriptor",
    "SourceType",
]
