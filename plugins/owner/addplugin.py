from audit import notify_real_owner
from data.texts import TEXTS
from errors import CommandUsageError, MaliciousPluginError, PluginError, ProtectedPluginError

name = "addplugin"
description = "Install a plugin from pasted code or a replied-to .py document"
usage = ".addplugin <code> | reply to a .py file with .addplugin"
aliases = ["installplugin"]
permissions = ["owner"]
cooldown = 5000


async def _read_source(ctx):
    if ctx.raw_args.strip():
        return ctx.raw_args

    quoted = ctx.get_quoted_message()
    if quoted is None:
        return None
    if quoted.media_type == "document":
        return await ctx.download_media(quoted)
    return quoted.text or None


async def execute(ctx):
    content = await _read_source(ctx)
    if not content:
        raise CommandUsageError(f"Usage: {usage}")

    try:
        plugin, content_hash = await ctx.services.plugins.install(content, ctx.sender)
    except MaliciousPluginError as e:
        ctx.audit["blocked"] = e.patterns
        raise CommandUsageError(TEXTS["plugin_install_failed"].format(reason=", ".join(e.patterns)))
    except ProtectedPluginError as e:
        raise CommandUsageError(TEXTS["plugin_protected"].format(name=e.name, action=e.action))
    except PluginError as e:
        reasons = getattr(e, "reasons", None)
        raise CommandUsageError(TEXTS["plugin_install_failed"].format(
            reason=f"{e}: {'; '.join(reasons)}" if reasons else str(e)
        ))

    ctx.audit.update({"plugin": plugin.name, "sha256": content_hash})
    await ctx.reply(TEXTS["plugin_installed"].format(
        name=plugin.name, category=plugin.category, hash=content_hash
    ))

    if not ctx.services.permissions.is_real_owner(ctx.sender):
        await notify_real_owner(
            ctx.services.transport, ctx.config,
            f"🔌 Plugin {plugin.name} was installed by {ctx.sender}\nSHA256: {content_hash}"
        )
