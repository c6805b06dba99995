from audit import log_action
from data.texts import TEXTS
from db import operations as db
from handlers.moderation import resolve_target
from utils import mention_tag

name = "unmute"
description = "Lift a user's mute"
usage = ".unmute @user"
permissions = ["admin"]
cooldown = 2000


async def execute(ctx):
    target = await resolve_target(ctx)
    await db.unmute_user(target, ctx.db_path)

    ctx.audit["target"] = target
    log_action("USER_UNMUTED", actor=ctx.sender, target=target, group=ctx.chat_id)
    await ctx.reply(TEXTS["unmuted"].format(mention=mention_tag(target)), mentions=[target])
