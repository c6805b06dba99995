from data.texts import TEXTS
from errors import CommandUsageError, PluginNotFoundError, ProtectedPluginError

name = "removeplugin"
description = "Uninstall a plugin and delete its file"
usage = ".removeplugin <name>"
aliases = ["uninstallplugin"]
permissions = ["owner"]
cooldown = 5000


async def execute(ctx):
    if not ctx.args:
        raise CommandUsageError(f"Usage: {usage}")

    target = ctx.args[0].lower()
    try:
        plugin = await ctx.services.plugins.uninstall(target, actor=ctx.sender)
    except PluginNotFoundError:
        raise CommandUsageError(TEXTS["plugin_not_found"].format(name=target))
    except ProtectedPluginError as e:
        raise CommandUsageError(TEXTS["plugin_protected"].format(name=e.name, action=e.action))

    ctx.audit["plugin"] = plugin.name
    await ctx.reply(TEXTS["plugin_uninstalled"].format(name=plugin.name))
