import time

from data.texts import TEXTS
from utils import format_uptime

name = "ping"
description = "Check that the bot is alive"
usage = ".ping"
permissions = ["user"]
cooldown = 3000


async def execute(ctx):
    started = time.monotonic()
    await ctx.react("🏓")
    latency = int((time.monotonic() - started) * 1000)
    await ctx.reply(TEXTS["pong"].format(latency=latency, uptime=format_uptime(ctx.services.uptime)))
