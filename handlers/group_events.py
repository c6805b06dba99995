import logging

from data.texts import TEXTS
from db import operations as db
from handlers.context import Services
from transport.base import CallEvent, GroupParticipantsUpdate
from utils import mention_tag, normalize_jid

logger = logging.getLogger(__name__)

# Настройки группы, управляющие приветствиями
GREETINGS = {
    "add": ("welcome", "welcome_message", "welcome_default"),
    "remove": ("goodbye", "goodbye_message", "goodbye_default"),
}


def render_greeting(template: str, member: str, group_name: str) -> str:
    """Подставляет {mention} и {group}. Прочие фигурные скобки остаются как есть."""
    return template.replace("{mention}", mention_tag(member)).replace("{group}", group_name)


class GroupEventHandler:
    """Приветствия/прощания при изменении состава группы и отклонение звонков"""

    def __init__(self, services: Services):
        self.services = services

    async def _group_name(self, chat_id: str) -> str:
        try:
            metadata = await self.services.transport.group_metadata(chat_id)
        except Exception as e:
            logger.warning(f"Не удалось получить название группы {chat_id}: {str(e)}")
            return "the group"
        await db.upsert_group(chat_id, metadata.subject, metadata.description, db_path=self.services.db_path)
        return metadata.subject or "the group"

    async def handle_participants(self, update: GroupParticipantsUpdate) -> int:
        """Отправляет приветствия/прощания. Возвращает количество отправленных сообщений."""
        greeting = GREETINGS.get(update.action)
        if greeting is None:
            return 0

        flag_key, template_key, default_key = greeting
        db_path = self.services.db_path
        try:
            enabled = await db.get_group_setting(update.chat_id, flag_key, "off", db_path=db_path)
            if enabled != "on":
                return 0

            template = await db.get_group_setting(update.chat_id, template_key, db_path=db_path)
            template = template or TEXTS[default_key]
            group_name = await self._group_name(update.chat_id)

            me = self.services.transport.me
            sent = 0
            for member in update.participants:
                if me and normalize_jid(member) == normalize_jid(me):
                    continue
                text = render_greeting(template, member, group_name)
                await self.services.transport.send_text(update.chat_id, text, mentions=[member])
                sent += 1
            return sent
        except Exception as e:
            logger.error(f"Ошибка при обработке участников группы {update.chat_id}: {str(e)}", exc_info=True)
            return 0

    async def handle_call(self, call: CallEvent) -> bool:
        if not self.services.config.reject_calls:
            return False
        try:
            await self.services.transport.reject_call(call)
            logger.info(f"Звонок от {call.caller} отклонён")
        except Exception as e:
            logger.error(f"Не удалось отклонить звонок {call.call_id}: {str(e)}")
            return False

        try:
            await self.services.transport.send_text(call.caller, TEXTS["call_rejected"])
        except Exception as e:
            logger.warning(f"Не удалось отправить уведомление о звонке {call.caller}: {str(e)}")
        return True
