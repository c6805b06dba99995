from data.texts import TEXTS
from db import operations as db
from utils import format_timestamp, mention_tag

name = "mystats"
description = "Show your activity statistics"
usage = ".mystats"
aliases = ["stats"]
permissions = ["user"]
cooldown = 5000


async def execute(ctx):
    user = await db.get_user(ctx.sender, ctx.db_path)
    totals = await db.get_user_totals(ctx.sender, ctx.db_path)
    role = await ctx.get_role()

    last_active = "never"
    if totals["last_active"]:
        last_active = format_timestamp(totals["last_active"], ctx.config.timezone)

    await ctx.reply(TEXTS["stats"].format(
        mention=mention_tag(ctx.sender),
        role=role.token,
        messages=totals["total_messages"],
        commands=totals["total_commands"],
        warnings=user.warnings if user else 0,
        last_active=last_active
    ), mentions=[ctx.sender])
