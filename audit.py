"""
Аудит: запись результатов выполнения команд и журнал чувствительных действий.
"""
import logging
from typing import Any, Dict, Optional

from config import Config
from db import operations as db
from transport.base import Transport

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("audit")


def _format_fields(fields: Dict[str, Any]) -> str:
    return " ".join(f"{key}={value}" for key, value in fields.items() if value is not None)


def log_action(action: str, actor: Optional[str] = None, level: int = logging.INFO, **fields) -> None:
    """Пишет чувствительное действие (плагины, владельцы, модерация) в журнал аудита"""
    audit_logger.log(level, f"{action} {_format_fields(dict(fields, by=actor))}".strip())


async def record_dispatch(
    db_path: str,
    config: Config,
    user_id: str,
    chat_id: str,
    command: str,
    success: bool,
    error_message: Optional[str] = None,
    duration_ms: int = 0,
    details: Optional[Dict[str, Any]] = None
) -> Optional[int]:
    """
    Записывает одну попытку выполнения команды в command_logs и в лог.
    Ошибка записи в базу не должна ломать обработку сообщения, поэтому она логируется.
    """
    if config.logging.commands:
        status = "OK" if success else "FAIL"
        message = f"Команда {command} от {user_id} в {chat_id}: {status} ({duration_ms}ms)"
        if error_message:
            message += f" - {error_message}"
        if details:
            message += f" {details}"
        logger.info(message)

    try:
        return await db.log_command(
            user_id, chat_id, command, success,
            error_message=error_message,
            duration_ms=duration_ms,
            details=details,
            db_path=db_path
        )
    except Exception as e:
        logger.error(f"Не удалось записать аудит команды {command}: {str(e)}", exc_info=True)
        return None


async def notify_real_owner(transport: Transport, config: Config, text: str) -> bool:
    """Отправляет уведомление Real Owner в личные сообщения"""
    try:
        await transport.send_text(config.real_owner, text)
        return True
    except Exception as e:
        logger.error(f"Ошибка при отправке уведомления владельцу: {str(e)}")
        return False
