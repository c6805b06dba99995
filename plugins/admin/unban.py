from audit import log_action
from data.texts import TEXTS
from db import operations as db
from handlers.moderation import resolve_target
from utils import mention_tag

name = "unban"
description = "Lift a user's ban"
usage = ".unban @user"
permissions = ["admin"]
cooldown = 2000


async def execute(ctx):
    target = await resolve_target(ctx, require_group=False)
    await db.unban_user(target, ctx.db_path)

    ctx.audit["target"] = target
    log_action("USER_UNBANNED", actor=ctx.sender, target=target)
    await ctx.reply(TEXTS["unbanned"].format(mention=mention_tag(target)), mentions=[target])
