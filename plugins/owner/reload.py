from data.texts import TEXTS
from errors import CommandUsageError, PluginNotFoundError, PluginValidationError

name = "reload"
description = "Reload one plugin or all plugins from disk"
usage = ".reload [name]"
permissions = ["owner"]
cooldown = 5000


async def execute(ctx):
    plugins = ctx.services.plugins

    if not ctx.args:
        count = await plugins.reload_all()
        ctx.audit["reloaded"] = count
        await ctx.reply(TEXTS["plugins_reloaded"].format(count=count))
        return

    target = ctx.args[0].lower()
    try:
        plugin = await plugins.reload(target)
    except PluginNotFoundError:
        raise CommandUsageError(TEXTS["plugin_not_found"].format(name=target))
    except PluginValidationError as e:
        reasons = "; ".join(e.reasons) or str(e)
        raise CommandUsageError(TEXTS["plugin_install_failed"].format(reason=reasons))

    ctx.audit["reloaded"] = plugin.name
    await ctx.reply(TEXTS["plugin_reloaded"].format(name=plugin.name))
