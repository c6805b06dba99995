"""
Общие шаги модерационных команд: выбор цели, проверка иерархии, лимит предупреждений.
"""
import logging
from typing import Tuple

from data.texts import TEXTS
from db import operations as db
from errors import CommandUsageError
from handlers.context import CommandContext

logger = logging.getLogger(__name__)

WARN_ACTIONS = ("kick", "ban")


async def resolve_target(ctx: CommandContext, require_group: bool = True) -> str:
    """
    Возвращает JID цели из упоминания или цитаты.
    Модератор должен быть строго выше цели по роли.
    """
    if require_group and not ctx.is_group:
        raise CommandUsageError(TEXTS["group_only"])

    target = ctx.get_target()
    if not target:
        raise CommandUsageError(TEXTS["no_target"])

    if not await ctx.services.permissions.can_act_on(ctx.sender, target, ctx.chat_id, ctx.is_group):
        raise CommandUsageError(TEXTS["cannot_act_on"])
    return target


async def get_warn_settings(ctx: CommandContext) -> Tuple[int, str]:
    """Лимит предупреждений и действие при его достижении для текущего чата"""
    config = ctx.config
    limit = await db.get_group_setting(ctx.chat_id, "warn_limit", db_path=ctx.db_path)
    action = await db.get_group_setting(ctx.chat_id, "warn_action", db_path=ctx.db_path)

    try:
        limit = int(limit) if limit is not None else config.default_warn_limit
    except ValueError:
        logger.warning(f"Некорректный warn_limit '{limit}' в {ctx.chat_id}, используется значение по умолчанию")
        limit = config.default_warn_limit

    if action not in WARN_ACTIONS:
        action = config.default_warn_action
    return max(1, limit), action


async def remove_from_group(ctx: CommandContext, target: str) -> None:
    await ctx.services.transport.group_participants_update(ctx.chat_id, [target], "remove")
