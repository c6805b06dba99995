import logging

from audit import log_action
from data.texts import TEXTS
from db import operations as db
from handlers.moderation import get_warn_settings, remove_from_group, resolve_target
from utils import mention_tag

name = "warn"
description = "Warn a user; reaching the warning limit triggers kick or ban"
usage = ".warn @user [reason]"
aliases = ["warning"]
permissions = ["admin"]
cooldown = 1000

logger = logging.getLogger(__name__)


async def execute(ctx):
    target = await resolve_target(ctx)
    reason = " ".join(ctx.args_without_mentions()) or "No reason provided"

    count = await db.add_warning(target, ctx.db_path)
    limit, action = await get_warn_settings(ctx)
    ctx.audit.update({"target": target, "warnings": count, "limit": limit, "reason": reason})

    mention = mention_tag(target)
    await ctx.reply(
        TEXTS["warned"].format(mention=mention, count=count, limit=limit, reason=reason),
        mentions=[target]
    )
    log_action("USER_WARNED", actor=ctx.sender, target=target, group=ctx.chat_id, warnings=count, limit=limit)

    if count < limit:
        return

    if action == "ban":
        await db.ban_user(target, ctx.db_path)
    await remove_from_group(ctx, target)
    await db.clear_warnings(target, ctx.db_path)

    ctx.audit["action"] = action
    log_action("WARN_LIMIT_ACTION", actor=ctx.sender, level=logging.WARNING,
               target=target, group=ctx.chat_id, penalty=action)
    await ctx.send_message(
        TEXTS["warn_limit_reached"].format(
            mention=mention, limit=limit, action="banned" if action == "ban" else "removed"
        ),
        mentions=[target]
    )
