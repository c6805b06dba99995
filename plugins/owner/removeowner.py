from data.texts import TEXTS
from errors import CommandUsageError, PermissionDeniedError, RoleChangeError
from utils import mention_tag

name = "removeowner"
description = "Revoke owner role from a user"
usage = ".removeowner @user"
aliases = ["delowner"]
permissions = ["real_owner"]
cooldown = 3000


async def execute(ctx):
    target = ctx.get_target()
    if not target:
        raise CommandUsageError(TEXTS["no_target"])

    try:
        removed = await ctx.services.permissions.remove_owner(ctx.sender, target)
    except (PermissionDeniedError, RoleChangeError) as e:
        raise CommandUsageError(TEXTS["owner_change_failed"].format(reason=str(e)))

    if not removed:
        raise CommandUsageError(TEXTS["owner_change_failed"].format(reason="That user is not an owner"))

    ctx.audit["target"] = target
    await ctx.reply(TEXTS["owner_removed"].format(mention=mention_tag(target)), mentions=[target])
