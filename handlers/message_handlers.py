import inspect
import logging
import time
from enum import Enum
from typing import List, Optional, Tuple

from audit import record_dispatch
from data.texts import TEXTS
from db import operations as db
from errors import CommandUsageError
from handlers.context import CommandContext, Services
from transport.base import IncomingMessage
from utils import format_duration, jid_to_phone

logger = logging.getLogger(__name__)

STATUS_BROADCAST = "status@broadcast"

# Подстроки ошибок транспорта -> понятный пользователю ответ
KNOWN_TRANSPORT_ERRORS = [
    ("not-admin", "bot_not_admin"),
    ("not-authorized", "action_forbidden"),
    ("forbidden", "action_forbidden"),
]


class DispatchOutcome(str, Enum):
    IGNORED = "ignored"  # не команда, пустое, своё или статус
    RESTRICTED = "restricted"  # отправитель в бане/муте, тишина без аудита
    UNKNOWN = "unknown"
    DENIED = "denied"
    COOLDOWN = "cooldown"
    USAGE_ERROR = "usage_error"
    FAILED = "failed"
    SUCCESS = "success"


def parse_command(text: str, prefix: str) -> Optional[Tuple[str, List[str]]]:
    """
    Разбирает текст команды: '.Warn @123 spam' -> ('warn', ['@123', 'spam']).
    Возвращает None, если текст не начинается с префикса.
    """
    text = (text or "").strip()
    if not text.startswith(prefix):
        return None

    tokens = text[len(prefix):].split()
    if not tokens:
        return None
    return tokens[0].lower(), tokens[1:]


def error_reply(error: Exception) -> str:
    message = str(error).lower()
    for needle, text_key in KNOWN_TRANSPORT_ERRORS:
        if needle in message:
            return TEXTS[text_key]
    return TEXTS["command_failed"]


class MessageDispatcher:
    """
    Обработка входящих сообщений: ограничения отправителя, разбор команды,
    поиск плагина, проверка прав и кулдауна, выполнение и аудит.
    """

    def __init__(self, services: Services):
        self.services = services

    @property
    def config(self):
        return self.services.config

    async def handle_messages(self, message: IncomingMessage) -> Optional[DispatchOutcome]:
        """Точка входа транспорта. Ошибки обработки логируются и не выходят наружу."""
        try:
            return await self.process_message(message)
        except Exception as e:
            logger.error(f"Ошибка при обработке сообщения {message.id} из {message.chat_id}: {str(e)}",
                         exc_info=True)
            return None

    async def process_message(self, message: IncomingMessage) -> DispatchOutcome:
        if message.chat_id == STATUS_BROADCAST or message.from_me:
            return DispatchOutcome.IGNORED

        text = (message.text or "").strip()
        if not text and not message.media_type:
            return DispatchOutcome.IGNORED

        db_path = self.services.db_path
        user = await db.ensure_user(message.sender, jid_to_phone(message.sender), message.push_name, db_path)
        await db.update_user_stats(message.sender, message.chat_id, messages_increment=1, db_path=db_path)

        if user.is_restricted(int(time.time())):
            logger.debug(f"Сообщение от ограниченного пользователя {message.sender} пропущено")
            return DispatchOutcome.RESTRICTED

        parsed = parse_command(text, self.config.prefix)
        if parsed is None:
            return DispatchOutcome.IGNORED

        command, args = parsed
        return await self.handle_command(message, command, args)

    async def handle_command(self, message: IncomingMessage, command: str, args: List[str]) -> DispatchOutcome:
        plugins = self.services.plugins
        plugin = plugins.get(command) or plugins.get_by_alias(command)
        if plugin is None:
            logger.debug(f"Неизвестная или отключённая команда '{command}' от {message.sender}")
            return DispatchOutcome.UNKNOWN

        started = time.monotonic()
        allowed = await self.services.permissions.has_permission(
            message.sender, plugin.permissions, message.chat_id, message.is_group
        )
        if not allowed:
            logger.info(f"Отказано в доступе: {message.sender} -> {plugin.name}")
            await self._safe_reply(message, TEXTS["permission_denied"])
            await self._audit(message, plugin.name, False, started, "Permission denied",
                              {"required": plugin.permissions})
            return DispatchOutcome.DENIED

        cooldowns = self.services.cooldowns
        if cooldowns.is_on_cooldown(message.sender, plugin.name):
            logger.debug(f"Команда {plugin.name} от {message.sender} на кулдауне")
            if self.config.notify_cooldown:
                remaining = format_duration(cooldowns.remaining(message.sender, plugin.name))
                await self._safe_reply(message, TEXTS["cooldown"].format(
                    remaining=remaining, command=self.config.prefix + plugin.name
                ))
            if self.config.audit_cooldown_blocks:
                await self._audit(message, plugin.name, False, started, "Cooldown active")
            return DispatchOutcome.COOLDOWN

        return await self.execute_plugin(plugin, message, command, args, started)

    async def execute_plugin(self, plugin, message: IncomingMessage, command: str, args: List[str],
                             started: Optional[float] = None) -> DispatchOutcome:
        started = started if started is not None else time.monotonic()
        ctx = CommandContext(message, command, args, plugin, self.services)

        try:
            result = plugin.execute(ctx)
            if inspect.isawaitable(result):
                await result
        except CommandUsageError as e:
            text = str(e) or TEXTS["usage"].format(usage=plugin.usage or self.config.prefix + plugin.name)
            await self._safe_reply(message, text)
            await self._audit(message, plugin.name, False, started, text, ctx.audit)
            return DispatchOutcome.USAGE_ERROR
        except Exception as e:
            logger.error(f"Ошибка при выполнении команды {plugin.name}: {str(e)}", exc_info=True)
            await self._safe_reply(message, error_reply(e))
            await self._audit(message, plugin.name, False, started, f"{type(e).__name__}: {str(e)}", ctx.audit)
            return DispatchOutcome.FAILED

        self.services.cooldowns.set_cooldown(message.sender, plugin.name, plugin.cooldown_ms)
        await db.update_user_stats(message.sender, message.chat_id, commands_increment=1,
                                   db_path=self.services.db_path)
        await self._audit(message, plugin.name, True, started, None, ctx.audit)
        return DispatchOutcome.SUCCESS

    async def _audit(self, message: IncomingMessage, command: str, success: bool, started: float,
                     error_message: Optional[str] = None, details: Optional[dict] = None) -> None:
        duration_ms = int((time.monotonic() - started) * 1000)
        await record_dispatch(
            self.services.db_path, self.config, message.sender, message.chat_id, command, success,
            error_message=error_message, duration_ms=duration_ms, details=details
        )

    async def _safe_reply(self, message: IncomingMessage, text: str) -> None:
        try:
            await self.services.transport.send_text(message.chat_id, text, quoted=message)
        except Exception as e:
            logger.error(f"Не удалось отправить ответ в {message.chat_id}: {str(e)}")
