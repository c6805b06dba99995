import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from config import Config
from cooldowns import CooldownTracker
from permissions import PermissionService, Role
from scheduler import TaskScheduler
from transport.base import IncomingMessage, QuotedMessage, Transport
from utils import mentions_from_text, normalize_jid, parse_duration, format_duration

if TYPE_CHECKING:
    from plugin_manager import PluginDescriptor, PluginManager


@dataclass
class Services:
    """Общие зависимости бота, которые получает каждый обработчик"""
    config: Config
    db_path: str
    transport: Transport
    permissions: PermissionService
    plugins: "PluginManager"
    cooldowns: CooldownTracker
    scheduler: TaskScheduler
    started_at: float = field(default_factory=time.time)

    @property
    def uptime(self) -> float:
        return time.time() - self.started_at


class CommandContext:
    """
    Контекст одного вызова команды.

    Методы отправки привязаны к чату, из которого пришла команда.
    Плагин может дописать детали в ctx.audit, они попадут в запись аудита.
    """

    def __init__(
        self,
        message: IncomingMessage,
        command: str,
        args: List[str],
        plugin: "PluginDescriptor",
        services: Services
    ):
        self.message = message
        self.command = command
        self.args = list(args)
        self.plugin = plugin
        self.services = services
        self.audit: Dict[str, Any] = {}

    @property
    def sender(self) -> str:
        return self.message.sender

    @property
    def chat_id(self) -> str:
        return self.message.chat_id

    @property
    def is_group(self) -> bool:
        return self.message.is_group

    @property
    def config(self) -> Config:
        return self.services.config

    @property
    def db_path(self) -> str:
        return self.services.db_path

    @property
    def text(self) -> str:
        """Аргументы одной строкой"""
        return " ".join(self.args)

    @property
    def raw_args(self) -> str:
        """Текст после команды с сохранением переносов строк"""
        parts = (self.message.text or "").strip().split(None, 1)
        return parts[1] if len(parts) > 1 else ""

    async def reply(self, text: str, mentions: Optional[List[str]] = None) -> str:
        return await self.services.transport.send_text(self.chat_id, text, mentions=mentions, quoted=self.message)

    async def send_message(self, text: str, mentions: Optional[List[str]] = None) -> str:
        return await self.services.transport.send_text(self.chat_id, text, mentions=mentions)

    async def send_media(self, media_type: str, data: bytes, caption: str = "",
                         mentions: Optional[List[str]] = None) -> str:
        return await self.services.transport.send_media(
            self.chat_id, media_type, data, caption=caption, mentions=mentions, quoted=self.message
        )

    async def download_media(self, message: Optional[IncomingMessage] = None) -> bytes:
        return await self.services.transport.download_media(message or self.message)

    async def react(self, emoji: str) -> None:
        await self.services.transport.react(self.message, emoji)

    def extract_mentions(self) -> List[str]:
        """Упомянутые пользователи: из метаданных сообщения и из текста аргументов"""
        result = []
        for jid in list(self.message.mentions) + mentions_from_text(self.text):
            jid = normalize_jid(jid)
            if jid not in result:
                result.append(jid)
        return result

    def get_quoted_message(self) -> Optional[QuotedMessage]:
        return self.message.quoted

    def get_target(self) -> Optional[str]:
        """Цель модерации: первое упоминание или автор процитированного сообщения"""
        mentions = self.extract_mentions()
        if mentions:
            return mentions[0]
        quoted = self.get_quoted_message()
        return normalize_jid(quoted.sender) if quoted else None

    def args_without_mentions(self) -> List[str]:
        return [arg for arg in self.args if not arg.startswith("@")]

    async def get_role(self, user_id: Optional[str] = None) -> Role:
        return await self.services.permissions.get_role(user_id or self.sender, self.chat_id, self.is_group)

    @staticmethod
    def parse_duration(text: str) -> Optional[int]:
        return parse_duration(text)

    @staticmethod
    def format_duration(ms: int) -> str:
        return format_duration(ms)
