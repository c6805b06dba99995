from audit import log_action
from data.texts import TEXTS
from handlers.moderation import remove_from_group, resolve_target
from utils import mention_tag

name = "kick"
description = "Remove a user from the group"
usage = ".kick @user"
aliases = ["remove"]
permissions = ["admin"]
cooldown = 2000


async def execute(ctx):
    target = await resolve_target(ctx)
    await remove_from_group(ctx, target)

    ctx.audit["target"] = target
    log_action("USER_KICKED", actor=ctx.sender, target=target, group=ctx.chat_id)
    await ctx.send_message(TEXTS["kicked"].format(mention=mention_tag(target)), mentions=[target])
