"""Telegram backend: MessagingPlatform over a Telethon client.

Decodes Telegram TL objects into the engine's raw types once, here. Sender
identities come from the users/chats returned with each search response;
no per-message entity lookups are made.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from telethon import TelegramClient, functions, types
from telethon.errors import InviteHashExpiredError, InviteHashInvalidError

from tgsearch.contracts.search_v1 import SourceType
from tgsearch.orchestrators.search.dates import TimeWindow
from tgsearch.orchestrators.search.errors import SourceResolutionError
from tgsearch.orchestrators.search.interface import (
    ConversationPage,
    DocumentMedia,
    MessagingPlatform,
    PeerRef,
    PhotoMedia,
    RawConversation,
    RawForward,
    RawMedia,
    RawMessage,
    RawReaction,
    RawSearchPage,
    SenderIdentity,
    SourceHandle,
    UnknownMedia,
)

logger = logging.getLogger(__name__)

_NUMERIC_ID = re.compile(r"^-?\d+$")
_INVITE_LINK = re.compile(r"^(?:https?://)?t\.me/(?:\+|joinchat/)(?P<hash>[\w-]+)$")


@dataclass(frozen=True)
class DialogCursor:
    offset_date: datetime | None
    offset_id: int
    offset_peer: Any


def _epoch(value: datetime | None) -> int | None:
    if value is None:
        return None
    return int(value.timestamp())


def _window_bound(ts: int) -> datetime | None:
    return datetime.fromtimestamp(ts, tz=timezone.utc) if ts else None


def classify_entity(entity: Any) -> SourceType | None:
    """Source type of a chat entity; None for private chats and inaccessible or migrated groups."""
    if isinstance(entity, types.Chat):
        if entity.deactivated or entity.migrated_to is not None:
            return None
        return SourceType.BASICGROUP
    if isinstance(entity, types.Channel):
        if entity.broadcast:
            return SourceType.CHANNEL
        if entity.gigagroup:
            return SourceType.GIGAGROUP
        return SourceType.SUPERGROUP
    return None


def decode_peer(peer: Any) -> PeerRef | None:
    if isinstance(peer, types.PeerUser):
        return PeerRef("user", peer.user_id)
    if isinstance(peer, types.PeerChannel):
        return PeerRef("channel", peer.channel_id)
    if isinstance(peer, types.PeerChat):
        return PeerRef("chat", peer.chat_id)
    return None


def _photo_size(photo: Any) -> int | None:
    largest: int | None = None
    for size in getattr(photo, "sizes", None) or []:
        candidates = getattr(size, "sizes", None) or [getattr(size, "size", None)]
        for value in candidates:
            if isinstance(value, int) and (largest is None or value > largest):
                largest = value
    return largest


def decode_media(media: Any) -> RawMedia | None:
    if media is None:
        return None
    if isinstance(media, types.MessageMediaPhoto):
        return PhotoMedia(size=_photo_size(media.photo))
    if isinstance(media, types.MessageMediaDocument) and isinstance(
        media.document, types.Document
    ):
        doc = media.document
        filename: str | None = None
        kinds: list[str] = []
        for attr in doc.attributes or []:
            if isinstance(attr, types.DocumentAttributeFilename) and filename is None:
                filename = attr.file_name
            elif isinstance(attr, types.DocumentAttributeVideo):
                kinds.append("video")
            elif isinstance(attr, types.DocumentAttributeAudio):
                kinds.append("voice" if attr.voice else "audio")
            elif isinstance(attr, types.DocumentAttributeSticker):
                kinds.append("sticker")
            elif isinstance(attr, types.DocumentAttributeAnimated):
                kinds.append("animated")
        return DocumentMedia(
            mime_type=doc.mime_type or "",
            size=int(doc.size) if doc.size is not None else None,
            filename=filename,
            attributes=tuple(kinds),
        )
    return UnknownMedia()


def _decode_reactions(reactions: Any) -> tuple[RawReaction, ...] | None:
    results = getattr(reactions, "results", None)
    if not results:
        return None
    return tuple(
        RawReaction(
            emoji=getattr(rc.reaction, "emoticon", None) or "❓",
            count=rc.count,
        )
        for rc in results
    )


def decode_message(msg: Any) -> RawMessage | None:
    """Decode one search hit. Service and empty messages yield None."""
    if not isinstance(msg, types.Message):
        return None
    reply_to = (
        msg.reply_to.reply_to_msg_id
        if isinstance(msg.reply_to, types.MessageReplyHeader)
        else None
    )
    forward = None
    if msg.fwd_from is not None:
        forward = RawForward(
            from_peer=decode_peer(msg.fwd_from.from_id),
            channel_post=msg.fwd_from.channel_post,
            date=_epoch(msg.fwd_from.date),
        )
    return RawMessage(
        id=msg.id,
        date=_epoch(msg.date) or 0,
        text=msg.message or "",
        from_peer=decode_peer(msg.from_id),
        reply_to_msg_id=reply_to,
        forward=forward,
        media=decode_media(msg.media),
        reactions=_decode_reactions(msg.reactions),
        views=msg.views,
        edit_date=_epoch(msg.edit_date),
        pinned=bool(msg.pinned),
    )


def decode_senders(users: list[Any], chats: list[Any]) -> dict[int, SenderIdentity]:
    senders: dict[int, SenderIdentity] = {}
    for user in users or []:
        if not isinstance(user, types.User):
            continue
        name = f"{user.first_name or ''} {user.last_name or ''}".strip()
        senders[user.id] = SenderIdentity(
            id=user.id, name=name or "Unknown User", username=user.username
        )
    for chat in chats or []:
        chat_id = getattr(chat, "id", None)
        if chat_id is None:
            continue
        senders[chat_id] = SenderIdentity(
            id=chat_id,
            name=getattr(chat, "title", None) or "Unknown",
            username=getattr(chat, "username", None),
        )
    return senders


def decode_search_result(result: Any) -> RawSearchPage:
    if not hasattr(result, "messages"):
        raise LookupError("No messages found")
    messages = [m for m in (decode_message(raw) for raw in result.messages) if m]
    count = getattr(result, "count", None)
    return RawSearchPage(
        messages=messages,
        senders=decode_senders(result.users, result.chats),
        total_count=count if isinstance(count, int) else len(result.messages),
    )


class TelethonPlatform(MessagingPlatform):
    """Telegram access through an already connected, authorized client."""

    def __init__(self, client: TelegramClient):
        self._client = client

    async def list_conversations(
        self,
        cursor: DialogCursor | None,
        page_size: int,
        include_archived: bool = False,
    ) -> ConversationPage:
        kwargs: dict[str, Any] = {"limit": page_size}
        if cursor is not None:
            kwargs.update(
                offset_date=cursor.offset_date,
                offset_id=cursor.offset_id,
                offset_peer=cursor.offset_peer,
                ignore_pinned=True,
            )
        if not include_archived:
            kwargs["archived"] = False

        dialogs = await self._client.get_dialogs(**kwargs)
        conversations = [
            RawConversation(
                id=str(d.id),
                title=d.name or "",
                source_type=classify_entity(d.entity),
                archived=bool(d.archived),
            )
            for d in dialogs
        ]

        next_cursor = None
        if len(dialogs) >= page_size and dialogs:
            last = dialogs[-1]
            next_cursor = DialogCursor(
                offset_date=last.date,
                offset_id=last.message.id if last.message else 0,
                offset_peer=last.input_entity,
            )
        return ConversationPage(conversations=conversations, next_cursor=next_cursor)

    async def _resolve_invite(self, invite_hash: str) -> Any:
        try:
            invite = await self._client(
                functions.messages.CheckChatInviteRequest(hash=invite_hash)
            )
        except InviteHashExpiredError:
            raise SourceResolutionError("Invite link has expired") from None
        except InviteHashInvalidError:
            raise SourceResolutionError("Invite link is invalid") from None
        chat = getattr(invite, "chat", None)
        if chat is None:
            raise SourceResolutionError("Not a member of the invited group")
        return chat

    async def resolve_source(self, identifier: str) -> SourceHandle:
        ident = identifier.strip()
        try:
            invite = _INVITE_LINK.match(ident)
            if invite:
                entity = await self._resolve_invite(invite.group("hash"))
            elif ident.startswith("+"):
                entity = await self._resolve_invite(ident[1:])
            else:
                target: int | str = int(ident) if _NUMERIC_ID.match(ident) else ident
                entity = await self._client.get_entity(target)
        except SourceResolutionError:
            raise
        except Exception as e:
            raise SourceResolutionError(f"Failed to resolve group: {e}") from e

        source_type = classify_entity(entity)
        if source_type is None:
            raise SourceResolutionError(
                f"Failed to resolve group: {identifier} is not a group or channel"
            )
        return SourceHandle(
            source_id=identifier,
            bare_id=entity.id,
            title=getattr(entity, "title", "") or "",
            source_type=source_type,
            username=getattr(entity, "username", None),
            peer=entity,
        )

    async def search_messages(
        self,
        source: SourceHandle,
        query: str,
        window: TimeWindow,
        offset: int,
        limit: int,
    ) -> RawSearchPage:
        result = await self._client(
            functions.messages.SearchRequest(
                peer=source.peer,
                q=query,
                filter=types.InputMessagesFilterEmpty(),
                min_date=_window_bound(window.start),
                max_date=_window_bound(window.end),
                offset_id=0,
                add_offset=offset,
                limit=limit,
                max_id=0,
                min_id=0,
                hash=0,
            )
        )
        page = decode_search_result(result)
        logger.debug(
            "Telegram search %s: %s message(s), total=%s",
            source.source_id,
            len(page.messages),
            page.total_count,
        )
        return page
