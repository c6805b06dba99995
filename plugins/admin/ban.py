import logging

from audit import log_action
from data.texts import TEXTS
from db import operations as db
from handlers.moderation import remove_from_group, resolve_target
from utils import mention_tag

name = "ban"
description = "Ban a user from using the bot and remove them from the group"
usage = ".ban @user [reason]"
permissions = ["admin"]
cooldown = 2000


async def execute(ctx):
    target = await resolve_target(ctx)
    reason = " ".join(ctx.args_without_mentions()) or "No reason provided"

    await db.ban_user(target, ctx.db_path)
    await remove_from_group(ctx, target)

    ctx.audit.update({"target": target, "reason": reason})
    log_action("USER_BANNED", actor=ctx.sender, level=logging.WARNING,
               target=target, group=ctx.chat_id, reason=reason)
    await ctx.send_message(TEXTS["banned"].format(mention=mention_tag(target)), mentions=[target])
