"""
Транспорт поверх neonize (асинхронный клиент whatsmeow).

Модуль импортируется только из main.py, поэтому neonize остаётся
необязательной зависимостью (extra "whatsapp").
"""
import asyncio
import logging
import os
from typing import List, Optional, Set

from neonize.aioze.client import NewAClient
from neonize.aioze.events import (
    CallOfferEv,
    ConnectedEv,
    DisconnectedEv,
    GroupInfoEv,
    LoggedOutEv,
    MessageEv,
    PairStatusEv,
)
from neonize.proto.waE2E.WAWebProtobufsE2E_pb2 import ContextInfo, ExtendedTextMessage, Message
from neonize.utils.enum import ParticipantChange
from neonize.utils.jid import Jid2String, JIDToNonAD, build_jid

from transport.base import (
    CallEvent,
    ConnectionUpdate,
    GroupMetadata,
    GroupParticipantsUpdate,
    IncomingMessage,
    Participant,
    QuotedMessage,
    Transport,
)
from utils import normalize_jid

logger = logging.getLogger(__name__)

PARTICIPANT_ACTIONS = {
    "add": ParticipantChange.ADD,
    "remove": ParticipantChange.REMOVE,
    "promote": ParticipantChange.PROMOTE,
    "demote": ParticipantChange.DEMOTE,
}

MEDIA_FIELDS = {
    "imageMessage": "image",
    "videoMessage": "video",
    "audioMessage": "audio",
    "documentMessage": "document",
    "stickerMessage": "sticker",
}
MEDIA_BUILDERS = {
    "image": "build_image_message",
    "video": "build_video_message",
    "audio": "build_audio_message",
    "document": "build_document_message",
    "sticker": "build_sticker_message",
}


def to_jid(jid: str):
    user, _, server = jid.partition("@")
    return build_jid(user.split(":", 1)[0], server or "s.whatsapp.net")


def jid_str(jid) -> str:
    return Jid2String(JIDToNonAD(jid))


def _extract_text(message) -> str:
    if message.conversation:
        return message.conversation
    if message.HasField("extendedTextMessage"):
        return message.extendedTextMessage.text
    for field_name in ("imageMessage", "videoMessage", "documentMessage"):
        if message.HasField(field_name):
            return getattr(message, field_name).caption
    return ""


def _context_info(message):
    for field_name in ("extendedTextMessage", "imageMessage", "videoMessage", "documentMessage",
                       "audioMessage", "stickerMessage"):
        if message.HasField(field_name):
            sub = getattr(message, field_name)
            if sub.HasField("contextInfo"):
                return sub.contextInfo
    return None


def _media_type(message) -> Optional[str]:
    for field_name, media_type in MEDIA_FIELDS.items():
        if message.HasField(field_name):
            return media_type
    return None


def _quote_context(quoted) -> ContextInfo:
    """Контекст цитаты для ответа на входящее сообщение"""
    raw = getattr(quoted.raw, "Message", quoted.raw)
    context = ContextInfo(stanzaID=quoted.id, participant=quoted.sender)
    if raw is not None:
        context.quotedMessage.CopyFrom(raw)
    return context


def build_text_message(text: str, mentions: Optional[List[str]] = None, quoted=None) -> Message:
    """Текстовое сообщение с упоминаниями (contextInfo.mentionedJID) и необязательной цитатой"""
    context = _quote_context(quoted) if quoted is not None else ContextInfo()
    context.mentionedJID.extend(normalize_jid(jid) for jid in mentions or [])
    return Message(extendedTextMessage=ExtendedTextMessage(text=text, contextInfo=context))


class NeonizeTransport(Transport):
    """Адаптер neonize к интерфейсу Transport"""

    def __init__(self, session_path: str, bot_name: str, pair_phone: Optional[str] = None, client=None):
        super().__init__()
        self.pair_phone = pair_phone
        if client is None:
            os.makedirs(session_path, exist_ok=True)
            client = NewAClient(os.path.join(session_path, f"{bot_name.lower()}.sqlite3"))
        self.client = client
        self._me: Optional[str] = None
        self._connection_task: Optional[asyncio.Future] = None
        self._tasks: Set[asyncio.Future] = set()
        self._register_events()

    @property
    def me(self) -> Optional[str]:
        return self._me

    def _register_events(self) -> None:
        client = self.client

        @client.event(ConnectedEv)
        async def on_connected(_, __: ConnectedEv):
            try:
                me = await client.get_me()
                self._me = jid_str(me.JID)
            except Exception as e:
                logger.warning(f"Не удалось определить собственный JID: {str(e)}")
            await self._emit_connection(ConnectionUpdate(state="open"))

        @client.event(DisconnectedEv)
        async def on_disconnected(_, __: DisconnectedEv):
            await self._emit_connection(ConnectionUpdate(state="close", error="disconnected"))

        @client.event(LoggedOutEv)
        async def on_logged_out(_, event: LoggedOutEv):
            await self._emit_connection(ConnectionUpdate(state="close", logged_out=True, error=str(event.Reason)))

        @client.event(PairStatusEv)
        async def on_pair_status(_, event: PairStatusEv):
            logger.info(f"Устройство привязано: {jid_str(event.ID)}")

        @client.event(MessageEv)
        async def on_message(_, event: MessageEv):
            if self.on_message:
                await self.on_message(self._convert_message(event))

        @client.event(GroupInfoEv)
        async def on_group_info(_, event: GroupInfoEv):
            if not self.on_group_participants:
                return
            chat_id = jid_str(event.JID)
            author = jid_str(event.Sender) if event.HasField("Sender") else None
            for action, members in (("add", event.Join), ("remove", event.Leave),
                                    ("promote", event.Promote), ("demote", event.Demote)):
                if members:
                    await self.on_group_participants(GroupParticipantsUpdate(
                        chat_id=chat_id,
                        participants=[jid_str(jid) for jid in members],
                        action=action,
                        author=author
                    ))

        @client.event(CallOfferEv)
        async def on_call(_, event: CallOfferEv):
            if self.on_call:
                meta = event.basicCallMeta
                await self.on_call(CallEvent(call_id=meta.callID, caller=jid_str(meta.callCreator)))

    async def _emit_connection(self, update: ConnectionUpdate) -> None:
        if self.on_connection_update:
            await self.on_connection_update(update)

    def _convert_message(self, event: MessageEv) -> IncomingMessage:
        info = event.Info
        source = info.MessageSource
        message = event.Message
        context = _context_info(message)

        quoted = None
        mentions: List[str] = []
        if context is not None:
            mentions = list(context.mentionedJID)
            if context.stanzaID and context.HasField("quotedMessage"):
                quoted = QuotedMessage(
                    id=context.stanzaID,
                    sender=context.participant,
                    text=_extract_text(context.quotedMessage),
                    media_type=_media_type(context.quotedMessage),
                    raw=context.quotedMessage
                )

        return IncomingMessage(
            id=info.ID,
            chat_id=jid_str(source.Chat),
            sender=jid_str(source.Sender),
            text=_extract_text(message),
            is_group=source.IsGroup,
            from_me=source.IsFromMe,
            push_name=info.Pushname or None,
            mentions=mentions,
            quoted=quoted,
            media_type=_media_type(message),
            timestamp=int(info.Timestamp) // 1000 if info.Timestamp > 10 ** 12 else int(info.Timestamp),
            raw=event
        )

    async def connect(self) -> None:
        """Запускает клиент в фоне. О готовности сообщает событие ConnectedEv."""
        if self._connection_task and not self._connection_task.done():
            return
        if self.pair_phone:
            coro = self.client.PairPhone(self.pair_phone, show_push_notification=True)
        else:
            coro = self.client.connect()
        self._connection_task = asyncio.ensure_future(coro)
        self._connection_task.add_done_callback(self._on_connection_done)

    def _on_connection_done(self, task: asyncio.Future) -> None:
        """Падение подключения или привязки передаётся боту как закрытие соединения"""
        if task.cancelled() or task.exception() is None:
            return
        error = task.exception()
        logger.error(f"Клиент WhatsApp завершился с ошибкой: {str(error)}", exc_info=error)
        update = asyncio.ensure_future(self._emit_connection(ConnectionUpdate(state="close", error=str(error))))
        self._tasks.add(update)
        update.add_done_callback(self._tasks.discard)

    async def disconnect(self) -> None:
        await self.client.disconnect()
        if self._connection_task and not self._connection_task.done():
            self._connection_task.cancel()

    async def group_metadata(self, chat_id: str) -> GroupMetadata:
        info = await self.client.get_group_info(to_jid(chat_id))
        return GroupMetadata(
            id=chat_id,
            subject=info.GroupName.Name,
            description=info.GroupTopic.Topic,
            owner=jid_str(info.OwnerJID) if info.HasField("OwnerJID") else None,
            created_at=int(info.GroupCreated),
            participants=[
                Participant(id=jid_str(p.JID), is_admin=p.IsAdmin, is_super_admin=p.IsSuperAdmin)
                for p in info.Participants
            ]
        )

    async def send_text(self, chat_id, text, mentions=None, quoted=None) -> str:
        if quoted is not None and quoted.raw is None:
            quoted = None
        message = build_text_message(text, mentions, quoted) if mentions or quoted else text
        response = await self.client.send_message(to_jid(chat_id), message)
        return response.ID

    async def send_media(self, chat_id, media_type, data, caption="", mentions=None, quoted=None) -> str:
        if media_type not in MEDIA_BUILDERS:
            raise ValueError(f"Unsupported media type: {media_type}")

        kwargs = {}
        if caption and media_type in ("image", "video", "document"):
            kwargs["caption"] = caption
        message = await getattr(self.client, MEDIA_BUILDERS[media_type])(data, **kwargs)

        payload = getattr(message, f"{media_type}Message")
        if quoted is not None and quoted.raw is not None:
            payload.contextInfo.MergeFrom(_quote_context(quoted))
        if mentions:
            payload.contextInfo.mentionedJID.extend(normalize_jid(jid) for jid in mentions)

        response = await self.client.send_message(to_jid(chat_id), message)
        return response.ID

    async def group_participants_update(self, chat_id, participants, action) -> None:
        await self.client.update_group_participants(
            to_jid(chat_id), [to_jid(p) for p in participants], PARTICIPANT_ACTIONS[action]
        )

    async def group_update_subject(self, chat_id, subject) -> None:
        await self.client.set_group_name(to_jid(chat_id), subject)

    async def group_update_description(self, chat_id, description) -> None:
        await self.client.set_group_topic(to_jid(chat_id), "", "", description)

    async def group_update_picture(self, chat_id, image) -> None:
        await self.client.set_group_photo(to_jid(chat_id), image)

    async def group_setting_update(self, chat_id, setting) -> None:
        jid = to_jid(chat_id)
        if setting in ("announcement", "not_announcement"):
            await self.client.set_group_announce(jid, setting == "announcement")
        elif setting in ("locked", "unlocked"):
            await self.client.set_group_locked(jid, setting == "locked")
        else:
            raise ValueError(f"Unknown group setting: {setting}")

    async def profile_picture_url(self, jid) -> Optional[str]:
        picture = await self.client.get_profile_picture(to_jid(jid))
        return picture.URL or None

    async def download_media(self, message) -> bytes:
        if message.raw is None:
            raise ValueError("Message has no downloadable payload")
        # У MessageEv полезная нагрузка в .Message, у цитаты raw уже Message
        return await self.client.download_any(getattr(message.raw, "Message", message.raw))

    async def react(self, message, emoji) -> None:
        reaction = await self.client.build_reaction(
            to_jid(message.chat_id), to_jid(message.sender), message.id, emoji
        )
        await self.client.send_message(to_jid(message.chat_id), reaction)

    async def reject_call(self, call) -> None:
        await self.client.reject_call(to_jid(call.caller), call.call_id)
