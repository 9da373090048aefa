"""Remote messaging platform interface used by discovery and single-source search.

Backends decode platform payloads into the raw types below exactly once;
nothing past this boundary inspects platform objects.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Literal

from tgsearch.contracts.search_v1 import SourceType
from tgsearch.orchestrators.search.dates import TimeWindow

PeerKind = Literal["user", "channel", "chat"]
DocumentAttributeKind = Literal["video", "audio", "voice", "sticker", "animated"]


@dataclass(frozen=True)
class PeerRef:
    kind: PeerKind
    id: int


@dataclass(frozen=True)
class SenderIdentity:
    id: int
    name: str
    username: str | None = None


@dataclass(frozen=True)
class PhotoMedia:
    size: int | None = None
    kind: Literal["photo"] = "photo"


@dataclass(frozen=True)
class DocumentMedia:
    mime_type: str = ""
    size: int | None = None
    filename: str | None = None
    # Type-bearing attributes in platform order; the first one decides the media type.
    attributes: tuple[DocumentAttributeKind, ...] = ()
    kind: Literal["document"] = "document"


@dataclass(frozen=True)
class UnknownMedia:
    kind: Literal["unknown"] = "unknown"


RawMedia = PhotoMedia | DocumentMedia | UnknownMedia


@dataclass(frozen=True)
class RawForward:
    from_peer: PeerRef | None = None
    channel_post: int | None = None
    date: int | None = None


@dataclass(frozen=True)
class RawReaction:
    emoji: str
    count: int


@dataclass(frozen=True)
class RawMessage:
    id: int
    date: int
    text: str
    from_peer: PeerRef | None = None
    reply_to_msg_id: int | None = None
    forward: RawForward | None = None
    media: RawMedia | None = None
    reactions: tuple[RawReaction, ...] | None = None
    views: int | None = None
    edit_date: int | None = None
    pinned: bool = False


@dataclass
class RawSearchPage:
    """One search response: messages plus the sender directory returned with them."""

    messages: list[RawMessage] = field(default_factory=list)
    senders: dict[int, SenderIdentity] = field(default_factory=dict)
    total_count: int = 0


@dataclass(frozen=True)
class RawConversation:
    """One directory entry. `source_type` is None for private chats."""

    id: str
    title: str
    source_type: SourceType | None
    archived: bool = False


@dataclass
class ConversationPage:
    conversations: list[RawConversation] = field(default_factory=list)
    next_cursor: Any | None = None


@dataclass(frozen=True)
class SourceHandle:
    """A resolved, queryable source."""

    source_id: str
    bare_id: int
    title: str
    source_type: SourceType | None = None
    username: str | None = None
    peer: Any = None

    @property
    def link_base(self) -> str:
        if self.username:
            return f"https://t.me/{self.username}"
        return f"https://t.me/c/{self.bare_id}"


class MessagingPlatform(ABC):
    """Capabilities the engine needs from the remote messaging platform."""

    @abstractmethod
    async def list_conversations(
        self,
        cursor: Any | None,
        page_size: int,
        include_archived: bool = False,
    ) -> ConversationPage:
        """Return one page of the account's conversations and the next cursor."""

    @abstractmethod
    async def resolve_source(self, identifier: str) -> SourceHandle:
        """Resolve an id, username, or invite hash. Raises SourceResolutionError."""

    @abstractmethod
    async def search_messages(
        self,
        source: SourceHandle,
        query: str,
        window: TimeWindow,
        offset: int,
        limit: int,
    ) -> RawSearchPage:
        """Search one source. The returned sender directory covers every message."""
