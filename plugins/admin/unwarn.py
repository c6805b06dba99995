from data.texts import TEXTS
from db import operations as db
from handlers.moderation import get_warn_settings, resolve_target
from utils import mention_tag

name = "unwarn"
description = "Remove one warning from a user"
usage = ".unwarn @user"
aliases = ["delwarn"]
permissions = ["admin"]
cooldown = 1000


async def execute(ctx):
    target = await resolve_target(ctx)
    user = await db.get_user(target, ctx.db_path)
    mention = mention_tag(target)

    if user is None or user.warnings == 0:
        await ctx.reply(TEXTS["no_warnings"].format(mention=mention), mentions=[target])
        return

    count = await db.remove_warning(target, ctx.db_path)
    limit, _ = await get_warn_settings(ctx)
    ctx.audit.update({"target": target, "warnings": count})
    await ctx.reply(TEXTS["unwarned"].format(mention=mention, count=count, limit=limit), mentions=[target])
