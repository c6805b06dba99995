from data.texts import CATEGORY_ICONS
from permissions import level_of

name = "help"
description = "Show available commands or details about one command"
usage = ".help [command]"
aliases = ["menu", "commands"]
permissions = ["user"]
cooldown = 3000


def _required_level(plugin) -> int:
    levels = [level_of(token) for token in plugin.permissions]
    return min([level for level in levels if level > 0] or [1])


async def execute(ctx):
    plugins = ctx.services.plugins
    prefix = ctx.config.prefix

    if ctx.args:
        plugin = plugins.get(ctx.args[0]) or plugins.get_by_alias(ctx.args[0])
        if plugin is None:
            await ctx.reply(f"❌ Command {ctx.args[0]} not found.")
            return

        lines = [
            f"📖 {prefix}{plugin.name}",
            plugin.description,
            f"Usage: {plugin.usage or prefix + plugin.name}",
            f"Permissions: {', '.join(plugin.permissions)}",
            f"Cooldown: {ctx.format_duration(plugin.cooldown_ms)}",
        ]
        if plugin.aliases:
            lines.append(f"Aliases: {', '.join(plugin.aliases)}")
        await ctx.reply("\n".join(lines))
        return

    role = await ctx.get_role()
    sections = []
    for category in plugins.categories:
        available = [
            p for p in plugins.get_by_category(category)
            if p.enabled and _required_level(p) <= int(role)
        ]
        if not available:
            continue
        icon = CATEGORY_ICONS.get(category, "•")
        commands = "\n".join(f"  {prefix}{p.name} - {p.description}" for p in available)
        sections.append(f"{icon} {category.upper()}\n{commands}")

    header = f"🤖 {ctx.config.bot_name} commands (your role: {role.token})"
    footer = f"Type {prefix}help <command> for details."
    await ctx.reply("\n\n".join([header] + sections + [footer]))
