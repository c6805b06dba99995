from audit import log_action
from data.texts import TEXTS
from db import operations as db
from errors import CommandUsageError
from handlers.moderation import resolve_target
from utils import mention_tag

name = "mute"
description = "Ignore a user's commands for a period of time"
usage = ".mute @user <10m|2h|1d>"
permissions = ["admin"]
cooldown = 2000


async def execute(ctx):
    target = await resolve_target(ctx)

    args = ctx.args_without_mentions()
    duration = ctx.parse_duration(args[0]) if args else None
    if duration is None:
        raise CommandUsageError(TEXTS["invalid_duration"])

    until = await db.mute_user(target, duration // 1000, ctx.db_path)
    task_id = await ctx.services.scheduler.schedule("unmute", until, {
        "user_id": target,
        "chat_id": ctx.chat_id,
        "until": until,
    })

    ctx.audit.update({"target": target, "until": until, "task_id": task_id})
    log_action("USER_MUTED", actor=ctx.sender, target=target, group=ctx.chat_id, until=until)
    await ctx.reply(
        TEXTS["muted"].format(mention=mention_tag(target), duration=ctx.format_duration(duration)),
        mentions=[target]
    )
