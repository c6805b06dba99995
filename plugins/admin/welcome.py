from data.texts import TEXTS
from db import operations as db
from errors import CommandUsageError

name = "welcome"
description = "Configure the welcome message for new members ({mention} and {group} are replaced)"
usage = ".welcome on|off|<message>"
permissions = ["admin"]
cooldown = 3000


async def execute(ctx):
    if not ctx.is_group:
        raise CommandUsageError(TEXTS["group_only"])
    if not ctx.args:
        raise CommandUsageError(f"Usage: {usage}")

    option = ctx.args[0].lower()
    if option in ("on", "off"):
        await db.set_group_setting(ctx.chat_id, "welcome", option, db_path=ctx.db_path)
        await ctx.reply(f"✅ Welcome messages turned {option}.")
        return

    await db.set_group_setting(ctx.chat_id, "welcome_message", ctx.raw_args, db_path=ctx.db_path)
    await db.set_group_setting(ctx.chat_id, "welcome", "on", db_path=ctx.db_path)
    await ctx.reply("✅ Welcome message updated.")
