"""
Абстракция транспорта WhatsApp.

Бот работает только с этим интерфейсом: конкретный клиент (neonize) адаптируется
к нему в transport/neonize_client.py, а тесты подставляют AsyncMock.
"""
import abc
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Optional, Union


@dataclass
class QuotedMessage:
    id: str
    sender: str
    text: str = ""
    media_type: Optional[str] = None
    raw: Any = None


@dataclass
class IncomingMessage:
    """Входящее сообщение в нормализованном виде"""
    id: str
    chat_id: str
    sender: str
    text: str = ""
    is_group: bool = False
    from_me: bool = False
    push_name: Optional[str] = None
    mentions: List[str] = field(default_factory=list)
    quoted: Optional[QuotedMessage] = None
    media_type: Optional[str] = None  # image | video | audio | document | sticker
    timestamp: int = 0
    raw: Any = None  # исходный объект клиента, нужен для скачивания медиа


@dataclass
class Participant:
    id: str
    is_admin: bool = False
    is_super_admin: bool = False


@dataclass
class GroupMetadata:
    id: str
    subject: str = ""
    description: str = ""
    owner: Optional[str] = None
    created_at: int = 0
    participants: List[Participant] = field(default_factory=list)

    def admins(self) -> List[str]:
        return [p.id for p in self.participants if p.is_admin or p.is_super_admin]


@dataclass
class GroupParticipantsUpdate:
    chat_id: str
    participants: List[str]
    action: str  # add | remove | promote | demote
    author: Optional[str] = None


@dataclass
class CallEvent:
    call_id: str
    caller: str
    is_video: bool = False


@dataclass
class ConnectionUpdate:
    state: str  # connecting | open | close
    logged_out: bool = False
    error: Optional[str] = None


MessageCallback = Callable[[IncomingMessage], Awaitable[None]]
ParticipantsCallback = Callable[[GroupParticipantsUpdate], Awaitable[None]]
ConnectionCallback = Callable[[ConnectionUpdate], Awaitable[None]]
CallCallback = Callable[[CallEvent], Awaitable[None]]


class Transport(abc.ABC):
    """
    Операции клиента WhatsApp, которые использует бот.

    События доставляются через атрибуты-колбэки on_message, on_group_participants,
    on_connection_update и on_call, которые бот выставляет перед connect().
    """

    def __init__(self):
        self.on_message: Optional[MessageCallback] = None
        self.on_group_participants: Optional[ParticipantsCallback] = None
        self.on_connection_update: Optional[ConnectionCallback] = None
        self.on_call: Optional[CallCallback] = None

    @property
    @abc.abstractmethod
    def me(self) -> Optional[str]:
        """JID аккаунта бота, None до подключения"""

    @abc.abstractmethod
    async def connect(self) -> None: ...

    @abc.abstractmethod
    async def disconnect(self) -> None: ...

    @abc.abstractmethod
    async def group_metadata(self, chat_id: str) -> GroupMetadata: ...

    @abc.abstractmethod
    async def send_text(
        self,
        chat_id: str,
        text: str,
        mentions: Optional[List[str]] = None,
        quoted: Optional[IncomingMessage] = None
    ) -> str:
        """Отправляет текст, возвращает ID отправленного сообщения"""

    @abc.abstractmethod
    async def send_media(
        self,
        chat_id: str,
        media_type: str,
        data: bytes,
        caption: str = "",
        mentions: Optional[List[str]] = None,
        quoted: Optional[IncomingMessage] = None
    ) -> str: ...

    @abc.abstractmethod
    async def group_participants_update(self, chat_id: str, participants: List[str], action: str) -> None:
        """action: add | remove | promote | demote"""

    @abc.abstractmethod
    async def group_update_subject(self, chat_id: str, subject: str) -> None: ...

    @abc.abstractmethod
    async def group_update_description(self, chat_id: str, description: str) -> None: ...

    @abc.abstractmethod
    async def group_update_picture(self, chat_id: str, image: bytes) -> None: ...

    @abc.abstractmethod
    async def group_setting_update(self, chat_id: str, setting: str) -> None:
        """setting: announcement | not_announcement | locked | unlocked"""

    @abc.abstractmethod
    async def profile_picture_url(self, jid: str) -> Optional[str]: ...

    @abc.abstractmethod
    async def download_media(self, message: Union[IncomingMessage, QuotedMessage]) -> bytes: ...

    @abc.abstractmethod
    async def react(self, message: IncomingMessage, emoji: str) -> None: ...

    @abc.abstractmethod
    async def reject_call(self, call: CallEvent) -> None: ...
