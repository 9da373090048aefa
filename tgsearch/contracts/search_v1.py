"""Message Search Contract v1.

Defines the canonical types for:
  - Search input (SearchQuery) with its bounds and defaults
  - Discovered sources (SourceDescriptor, SourceType)
  - Standardized result payload (MessageResult, SearchResponse)

Python attributes are snake_case; the wire format is camelCase
(``groupId``, ``relevanceScore``, ``failedGroups``). Dump with ``to_wire()``.
"""

from __future__ import annotations

import json
from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Bounds
# ---------------------------------------------------------------------------

MAX_LIMIT = 100
MAX_SOURCES_CEILING = 200
MAX_CONCURRENCY_LIMIT = 10
MAX_INTER_REQUEST_DELAY_MS = 5000

DEFAULT_LIMIT = 10
DEFAULT_MAX_SOURCES = 50
DEFAULT_CONCURRENCY_LIMIT = 3
DEFAULT_INTER_REQUEST_DELAY_MS = 1000


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class SortOrder(StrEnum):
    RELEVANCE = "relevance"
    DATE_DESC = "date_desc"
    DATE_ASC = "date_asc"


class DateShortcut(StrEnum):
    LAST_24H = "last24h"
    LAST_7_DAYS = "last7days"
    LAST_30_DAYS = "last30days"
    LAST_90_DAYS = "last90days"


class SourceType(StrEnum):
    """Closed set of searchable conversation kinds."""

    CHANNEL = "channel"  # broadcast, channel-like
    GIGAGROUP = "gigagroup"  # large group
    SUPERGROUP = "supergroup"
    BASICGROUP = "basicgroup"


class MediaType(StrEnum):
    PHOTO = "photo"
    VIDEO = "video"
    DOCUMENT = "document"
    AUDIO = "audio"
    VOICE = "voice"
    STICKER = "sticker"
    ANIMATION = "animation"
    NONE = "none"


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Search input
# ---------------------------------------------------------------------------


class SearchQuery(_WireModel):
    """Immutable input to one search invocation.

    Legacy option names (groupIds, maxGroups, includeChannels,
    includeArchivedChats, groupTypes, rateLimitDelay) are accepted as aliases.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    query: str = Field(strict=True, description="Search query (keyword or phrase)")
    limit: int = Field(
        default=DEFAULT_LIMIT,
        ge=1,
        le=MAX_LIMIT,
        strict=True,
        description="Maximum number of results to return (default: 10, max: 100)",
    )
    offset: int = Field(
        default=0,
        ge=0,
        strict=True,
        description="Number of results to skip for pagination (default: 0)",
    )
    sort_by: SortOrder = Field(
        default=SortOrder.RELEVANCE,
        description="relevance (default), date_desc (newest first), date_asc (oldest first)",
    )
    start_date: str | int | float | None = Field(
        default=None,
        description="Messages after this date: ISO 8601, Unix timestamp, or natural language (3 days ago)",
    )
    end_date: str | int | float | None = Field(
        default=None,
        description="Messages before this date. Same formats as startDate",
    )
    date_range: DateShortcut | None = Field(
        default=None,
        description="Convenience date range. Overridden by startDate/endDate if provided",
    )
    include_extended_metadata: bool = Field(
        default=False,
        strict=True,
        description="Include reactions, view counts, edit date and pinned flag",
    )
    source_ids: list[str] | None = Field(
        default=None,
        validation_alias=AliasChoices("sourceIds", "groupIds", "source_ids"),
        description="Specific conversation ids or usernames to search; skips discovery",
    )
    max_sources: int = Field(
        default=DEFAULT_MAX_SOURCES,
        ge=1,
        le=MAX_SOURCES_CEILING,
        strict=True,
        validation_alias=AliasChoices("maxSources", "maxGroups", "max_sources"),
        description="Maximum number of conversations to discover and search (default: 50, max: 200)",
    )
    include_channel_like: bool = Field(
        default=True,
        strict=True,
        validation_alias=AliasChoices(
            "includeChannelLike", "includeChannels", "include_channel_like"
        ),
        description="Include broadcast channels in discovery (default: true)",
    )
    include_archived: bool = Field(
        default=False,
        strict=True,
        validation_alias=AliasChoices(
            "includeArchived", "includeArchivedChats", "include_archived"
        ),
        description="Include archived conversations in discovery (default: false)",
    )
    source_type_filter: list[SourceType] | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "sourceTypeFilter", "groupTypes", "source_type_filter"
        ),
        description="Only discover these conversation types (default: all)",
    )
    concurrency_limit: int = Field(
        default=DEFAULT_CONCURRENCY_LIMIT,
        ge=1,
        le=MAX_CONCURRENCY_LIMIT,
        strict=True,
        description="Maximum number of parallel conversation searches (1-10, default: 3)",
    )
    inter_request_delay_ms: int = Field(
        default=DEFAULT_INTER_REQUEST_DELAY_MS,
        ge=0,
        le=MAX_INTER_REQUEST_DELAY_MS,
        strict=True,
        validation_alias=AliasChoices(
            "interRequestDelayMs", "rateLimitDelay", "inter_request_delay_ms"
        ),
        description="Stagger between request starts in milliseconds (0-5000, default: 1000)",
    )

    @field_validator("query")
    @classmethod
    def _validate_query(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("query must be a non-empty string")
        return value

    @field_validator("source_ids")
    @classmethod
    def _validate_source_ids(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        normalized: list[str] = []
        for raw in value:
            if not isinstance(raw, str) or not raw.strip():
                raise ValueError("source ids must be non-empty strings")
            normalized.append(raw.strip())
        return normalized or None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _validate_date_input(cls, value: Any):
        if isinstance(value, bool):
            raise ValueError("dates must be strings or numeric timestamps")
        if isinstance(value, str) and not value.strip():
            return None
        return value


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------


class SourceDescriptor(_WireModel):
    """One discovered conversation."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    id: str = Field(description="Opaque source identifier (marked numeric id)")
    title: str = Field(default="")
    type: SourceType


# ---------------------------------------------------------------------------
# Standardized result payload
# ---------------------------------------------------------------------------


class MediaInfo(_WireModel):
    type: MediaType
    filename: str | None = None
    mime_type: str | None = None
    size: int | None = None
    thumbnail_url: str | None = None


class ReplyInfo(_WireModel):
    """Reply reference. Only the id is populated; the parent is never fetched."""

    reply_to_message_id: int
    reply_to_sender_id: int | None = None
    reply_to_sender_name: str | None = None
    reply_to_text: str | None = None


class ForwardInfo(_WireModel):
    from_chat_id: int | None = None
    from_chat_name: str | None = None
    from_message_id: int | None = None
    date: str | None = None


class Reaction(_WireModel):
    emoji: str
    count: int


class ExtendedMetadata(_WireModel):
    reactions: list[Reaction] | None = None
    view_count: int | None = None
    edit_date: str | None = None
    is_pinned: bool | None = None


class MessageResult(_WireModel):
    """One matching message, normalized across sources."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    message_id: int
    sender_id: int
    sender_name: str
    sender_username: str | None = None
    text: str
    date: str = Field(description="ISO 8601 with UTC offset")
    link: str | None = None
    group_id: str
    group_title: str
    group_type: SourceType | None = None
    relevance_score: float | None = Field(default=None, ge=0.0, le=1.0)
    media: MediaInfo | None = None
    reply_to: ReplyInfo | None = None
    forwarded_from: ForwardInfo | None = None
    extended: ExtendedMetadata | None = None


class FailedGroup(_WireModel):
    group_id: str
    error: str


class SearchResponse(_WireModel):
    """Final response of one search invocation."""

    success: bool
    results: list[MessageResult] = Field(default_factory=list)
    total_found: int = 0
    has_more: bool = False
    sorted_by: SortOrder | None = None
    partial: bool | None = None
    failed_groups: list[FailedGroup] | None = None
    error: str | None = None

    @classmethod
    def failure(cls, error: str) -> "SearchResponse":
        return cls(success=False, results=[], total_found=0, has_more=False, error=error)

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_wire(), indent=indent, ensure_ascii=False)
