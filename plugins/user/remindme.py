from data.texts import TEXTS
from errors import CommandUsageError

name = "remindme"
description = "Set a reminder that survives restarts"
usage = ".remindme <10m|2h|1d> <text>"
aliases = ["remind"]
permissions = ["user"]
cooldown = 5000

MAX_REMINDER_MS = 30 * 86400 * 1000


async def execute(ctx):
    if len(ctx.args) < 2:
        raise CommandUsageError(f"Usage: {usage}")

    duration = ctx.parse_duration(ctx.args[0])
    if duration is None or duration > MAX_REMINDER_MS:
        raise CommandUsageError(TEXTS["invalid_duration"])

    text = " ".join(ctx.args[1:])
    task_id = await ctx.services.scheduler.schedule_in("reminder", duration, {
        "chat_id": ctx.chat_id,
        "user_id": ctx.sender,
        "text": text,
    })
    ctx.audit["task_id"] = task_id
    await ctx.reply(TEXTS["reminder_set"].format(duration=ctx.format_duration(duration)))
