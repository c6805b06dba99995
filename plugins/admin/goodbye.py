from data.texts import TEXTS
from db import operations as db
from errors import CommandUsageError

name = "goodbye"
description = "Configure the goodbye message for leaving members ({mention} and {group} are replaced)"
usage = ".goodbye on|off|<message>"
permissions = ["admin"]
cooldown = 3000


async def execute(ctx):
    if not ctx.is_group:
        raise CommandUsageError(TEXTS["group_only"])
    if not ctx.args:
        raise CommandUsageError(f"Usage: {usage}")

    option = ctx.args[0].lower()
    if option in ("on", "off"):
        await db.set_group_setting(ctx.chat_id, "goodbye", option, db_path=ctx.db_path)
        await ctx.reply(f"✅ Goodbye messages turned {option}.")
        return

    await db.set_group_setting(ctx.chat_id, "goodbye_message", ctx.raw_args, db_path=ctx.db_path)
    await db.set_group_setting(ctx.chat_id, "goodbye", "on", db_path=ctx.db_path)
    await ctx.reply("✅ Goodbye message updated.")
