import time

from audit import log_action
from data.texts import TEXTS
from db import operations as db
from errors import CommandUsageError
from handlers.moderation import resolve_target
from utils import mention_tag

name = "unrestrict"
description = "Lift a temporary command restriction"
usage = ".unrestrict @user"
aliases = ["untempmute"]
permissions = ["admin"]
cooldown = 1000


async def execute(ctx):
    target = await resolve_target(ctx)

    user = await db.get_user(target, ctx.db_path)
    if user is None or user.restricted_until <= int(time.time()):
        raise CommandUsageError(TEXTS["not_restricted"].format(mention=mention_tag(target)))

    await db.unrestrict_user(target, ctx.db_path)
    ctx.audit["target"] = target
    log_action("USER_UNRESTRICTED", actor=ctx.sender, target=target, group=ctx.chat_id)
    await ctx.reply(TEXTS["unrestricted"].format(mention=mention_tag(target)), mentions=[target])
