"""Single-source search: one governed, scored search against one conversation.

Never raises: every failure becomes a SourceSearchOutcome failure so one
source cannot abort its siblings.
"""

import time
from datetime import datetime, timezone

from tgsearch.contracts.search_v1 import (
    ExtendedMetadata,
    ForwardInfo,
    MediaInfo,
    MediaType,
    MessageResult,
    Reaction,
    ReplyInfo,
    SearchQuery,
)
from tgsearch.core.logger import logger
from tgsearch.observability import traceable
from tgsearch.orchestrators.search.constants import REMOTE_MAX_PER_CALL
from tgsearch.orchestrators.search.dates import resolve_time_window
from tgsearch.orchestrators.search.errors import DateParseError, SearchEngineError
from tgsearch.orchestrators.search.interface import (
    DocumentMedia,
    MessagingPlatform,
    PeerRef,
    PhotoMedia,
    RawForward,
    RawMedia,
    RawMessage,
    SenderIdentity,
    SourceHandle,
)
from tgsearch.orchestrators.search.models import SourceSearchOutcome
from tgsearch.orchestrators.search.rate_governor import RateGovernor
from tgsearch.orchestrators.search.scoring import calculate_relevance

_ATTRIBUTE_MEDIA_TYPES: dict[str, MediaType] = {
    "video": MediaType.VIDEO,
    "audio": MediaType.AUDIO,
    "voice": MediaType.VOICE,
    "sticker": MediaType.STICKER,
    "animated": MediaType.ANIMATION,
}

_PEER_FALLBACK_LABEL = {"user": "User", "channel": "Channel", "chat": "Chat"}


def _iso(ts: int) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


def _elapsed_ms(t0: float) -> float:
    return round((time.monotonic() - t0) * 1000, 1)


def _sanitize(error: BaseException) -> str:
    return str(error).strip() or type(error).__name__


def extract_media_info(media: RawMedia | None) -> MediaInfo | None:
    """Media descriptor for a decoded media payload; None when there is no media."""
    if media is None:
        return None
    if isinstance(media, PhotoMedia):
        return MediaInfo(type=MediaType.PHOTO, size=media.size)
    if isinstance(media, DocumentMedia):
        media_type = MediaType.DOCUMENT
        for attr in media.attributes:
            if attr in _ATTRIBUTE_MEDIA_TYPES:
                media_type = _ATTRIBUTE_MEDIA_TYPES[attr]
                break
        return MediaInfo(
            type=media_type,
            filename=media.filename,
            mime_type=media.mime_type,
            size=media.size,
        )
    return MediaInfo(type=MediaType.NONE)


def resolve_identity(
    peer: PeerRef | None, senders: dict[int, SenderIdentity]
) -> SenderIdentity:
    """Identity from the pre-fetched sender directory. Never calls the platform."""
    if peer is None:
        return SenderIdentity(id=0, name="Unknown")
    known = senders.get(peer.id)
    if known is not None:
        return SenderIdentity(id=peer.id, name=known.name, username=known.username)
    return SenderIdentity(id=peer.id, name=f"{_PEER_FALLBACK_LABEL[peer.kind]} {peer.id}")


def _forward_info(fwd: RawForward, senders: dict[int, SenderIdentity]) -> ForwardInfo:
    origin = resolve_identity(fwd.from_peer, senders) if fwd.from_peer else None
    return ForwardInfo(
        from_chat_id=origin.id if origin else None,
        from_chat_name=origin.name if origin else None,
        from_message_id=fwd.channel_post,
        date=_iso(fwd.date) if fwd.date else None,
    )


def _extended_metadata(msg: RawMessage) -> ExtendedMetadata:
    return ExtendedMetadata(
        reactions=(
            [Reaction(emoji=r.emoji, count=r.count) for r in msg.reactions]
            if msg.reactions
            else None
        ),
        view_count=msg.views or None,
        edit_date=_iso(msg.edit_date) if msg.edit_date else None,
        is_pinned=True if msg.pinned else None,
    )


def normalize_message(
    msg: RawMessage,
    handle: SourceHandle,
    senders: dict[int, SenderIdentity],
    query: SearchQuery,
) -> MessageResult:
    sender = resolve_identity(msg.from_peer, senders)
    return MessageResult(
        message_id=msg.id,
        sender_id=sender.id,
        sender_name=sender.name,
        sender_username=sender.username,
        text=msg.text,
        date=_iso(msg.date),
        link=f"{handle.link_base}/{msg.id}",
        group_id=handle.source_id,
        group_title=handle.title or "Unknown Group",
        group_type=handle.source_type,
        relevance_score=calculate_relevance(msg.text, query.query),
        media=extract_media_info(msg.media),
        reply_to=(
            ReplyInfo(reply_to_message_id=msg.reply_to_msg_id)
            if msg.reply_to_msg_id
            else None
        ),
        forwarded_from=_forward_info(msg.forward, senders) if msg.forward else None,
        extended=_extended_metadata(msg) if query.include_extended_metadata else None,
    )


class SingleSourceSearch:
    """Runs one source's search through the shared rate governor."""

    def __init__(self, platform: MessagingPlatform, governor: RateGovernor):
        self._platform = platform
        self._governor = governor

    @traceable(name="search_one_source", run_type="retriever")
    async def search_one(
        self,
        source_id: str,
        query: SearchQuery,
        now: datetime | None = None,
    ) -> SourceSearchOutcome:
        t0 = time.monotonic()
        try:
            handle = await self._governor.execute(
                source_id, lambda: self._platform.resolve_source(source_id)
            )

            try:
                window = resolve_time_window(query, now)
            except DateParseError as e:
                return SourceSearchOutcome.fail(source_id, str(e), _elapsed_ms(t0))

            limit = min(query.limit, REMOTE_MAX_PER_CALL)
            page = await self._governor.guarded_execute(
                source_id,
                lambda: self._platform.search_messages(
                    handle, query.query, window, query.offset, limit
                ),
            )

            results = [
                normalize_message(msg, handle, page.senders, query)
                for msg in page.messages
                if msg.text
            ]
            total = page.total_count or len(page.messages)
            return SourceSearchOutcome.ok(
                source_id,
                results=results,
                total_found=total,
                has_more=total > query.offset + len(results),
                execution_ms=_elapsed_ms(t0),
            )
        except Exception as e:
            elapsed = _elapsed_ms(t0)
            logger.log_operation_error(
                "search_single_group",
                e,
                {"group_id": source_id, "query": query.query, "execution_ms": elapsed},
                operational=isinstance(e, SearchEngineError),
            )
            return SourceSearchOutcome.fail(source_id, _sanitize(e), elapsed)
