from data.texts import TEXTS
from errors import CommandUsageError, PermissionDeniedError, RoleChangeError
from utils import mention_tag

name = "addowner"
description = "Grant owner role to a user"
usage = ".addowner @user"
permissions = ["real_owner"]
cooldown = 3000


async def execute(ctx):
    target = ctx.get_target()
    if not target:
        raise CommandUsageError(TEXTS["no_target"])

    try:
        await ctx.services.permissions.add_owner(ctx.sender, target)
    except (PermissionDeniedError, RoleChangeError) as e:
        raise CommandUsageError(TEXTS["owner_change_failed"].format(reason=str(e)))

    ctx.audit["target"] = target
    await ctx.reply(TEXTS["owner_added"].format(mention=mention_tag(target)), mentions=[target])
