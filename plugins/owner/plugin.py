from data.texts import TEXTS
from errors import CommandUsageError, PluginNotFoundError, ProtectedPluginError

name = "plugin"
description = "Enable, disable or inspect plugins"
usage = ".plugin on|off|status <name> | .plugin list"
aliases = ["plugins"]
permissions = ["owner"]
cooldown = 1000


async def execute(ctx):
    plugins = ctx.services.plugins
    if not ctx.args:
        raise CommandUsageError(f"Usage: {usage}")

    action = ctx.args[0].lower()
    if action == "list":
        lines = [
            f"{'✅' if p.enabled else '⛔'} {p.name} [{p.category}]"
            for p in plugins.get_all()
        ]
        await ctx.reply(f"🔌 Plugins ({len(lines)}):\n" + "\n".join(lines))
        return

    if action not in ("on", "off", "status") or len(ctx.args) < 2:
        raise CommandUsageError(f"Usage: {usage}")

    target = ctx.args[1].lower()
    ctx.audit.update({"action": action, "plugin": target})

    if action == "status":
        plugin = plugins.find(target)
        if plugin is None:
            raise CommandUsageError(TEXTS["plugin_not_found"].format(name=target))
        state = "enabled" if plugin.enabled else "disabled"
        await ctx.reply(TEXTS["plugin_status"].format(
            name=plugin.name, category=plugin.category, state=state, description=plugin.description
        ))
        return

    try:
        plugin = await plugins.toggle(target, action == "on", actor=ctx.sender)
    except PluginNotFoundError:
        raise CommandUsageError(TEXTS["plugin_not_found"].format(name=target))
    except ProtectedPluginError as e:
        raise CommandUsageError(TEXTS["plugin_protected"].format(name=e.name, action=e.action))

    key = "plugin_enabled" if plugin.enabled else "plugin_disabled"
    await ctx.reply(TEXTS[key].format(name=plugin.name))
