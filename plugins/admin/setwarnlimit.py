from data.texts import TEXTS
from db import operations as db
from errors import CommandUsageError
from handlers.moderation import WARN_ACTIONS

name = "setwarnlimit"
description = "Set the warning limit and the action taken when it is reached"
usage = ".setwarnlimit <1-20> [kick|ban]"
aliases = ["warnlimit"]
permissions = ["admin"]
cooldown = 3000


async def execute(ctx):
    if not ctx.is_group:
        raise CommandUsageError(TEXTS["group_only"])
    if not ctx.args or not ctx.args[0].isdigit() or not 1 <= int(ctx.args[0]) <= 20:
        raise CommandUsageError(f"Usage: {usage}")

    limit = int(ctx.args[0])
    action = ctx.args[1].lower() if len(ctx.args) > 1 else ctx.config.default_warn_action
    if action not in WARN_ACTIONS:
        raise CommandUsageError(f"Usage: {usage}")

    await db.set_group_setting(ctx.chat_id, "warn_limit", str(limit), db_path=ctx.db_path)
    await db.set_group_setting(ctx.chat_id, "warn_action", action, db_path=ctx.db_path)
    ctx.audit.update({"limit": limit, "action": action})
    await ctx.reply(TEXTS["warn_limit_set"].format(limit=limit, action=action))
