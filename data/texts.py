"""
Тексты ответов пользователям
"""

TEXTS = {
    "permission_denied": "❌ You don't have permission to use this command.",
    "command_failed": "❌ An error occurred while executing this command.",
    "cooldown": "⏳ Please wait {remaining} before using {command} again.",
    "usage": "Usage: {usage}",

    "welcome_default": "👋 Welcome {mention} to {group}!",
    "goodbye_default": "👋 Goodbye {mention}.",
    "call_rejected": "📵 Calls are not supported. Please send a text message.",

    "no_target": "Please mention a user or reply to their message.",
    "invalid_duration": "Invalid duration. Use formats like 10m, 2h, 1d or 1w.",
    "group_only": "This command can only be used in groups.",
    "cannot_act_on": "❌ You cannot perform this action on that user.",
    "bot_not_admin": "❌ I need to be a group admin to do that.",
    "action_forbidden": "❌ WhatsApp refused this action.",

    "warned": "⚠️ {mention} has been warned ({count}/{limit}).\nReason: {reason}",
    "warn_limit_reached": "🚫 {mention} reached {limit} warnings and was {action}.",
    "unwarned": "✅ Removed a warning from {mention} ({count}/{limit}).",
    "no_warnings": "{mention} has no warnings.",
    "kicked": "👢 {mention} has been removed from the group.",
    "banned": "🔨 {mention} has been banned.",
    "unbanned": "✅ {mention} has been unbanned.",
    "muted": "🔇 {mention} has been muted for {duration}.",
    "unmuted": "🔊 {mention} has been unmuted.",
    "restricted": "🚫 {mention} cannot use bot commands for {duration}.",
    "unrestricted": "✅ {mention} can use bot commands again.",
    "not_restricted": "{mention} is not restricted.",
    "warn_limit_set": "✅ Warning limit set to {limit} (action: {action}).",

    "pong": "🏓 Pong! Latency: {latency}ms\nUptime: {uptime}",
    "reminder_set": "⏰ I'll remind you in {duration}.",
    "reminder": "⏰ Reminder for {mention}: {text}",
    "stats": (
        "📊 Stats for {mention}\n"
        "Role: {role}\n"
        "Messages: {messages}\n"
        "Commands: {commands}\n"
        "Warnings: {warnings}\n"
        "Last active: {last_active}"
    ),

    "plugin_enabled": "✅ Plugin {name} enabled.",
    "plugin_disabled": "⛔ Plugin {name} disabled.",
    "plugin_status": "🔌 {name} [{category}] - {state}\n{description}",
    "plugin_not_found": "❌ Plugin {name} not found.",
    "plugin_protected": "❌ Plugin {name} is protected and cannot be {action}.",
    "plugin_reloaded": "🔄 Plugin {name} reloaded.",
    "plugins_reloaded": "🔄 Reloaded {count} plugins.",
    "plugin_installed": "✅ Plugin {name} installed in {category}.\nSHA256: {hash}",
    "plugin_install_failed": "❌ Plugin rejected: {reason}",
    "plugin_uninstalled": "🗑️ Plugin {name} removed.",

    "owner_added": "✅ {mention} is now an owner.",
    "owner_removed": "✅ {mention} is no longer an owner.",
    "owner_change_failed": "❌ {reason}",
}

# Иконки категорий для .help
CATEGORY_ICONS = {
    "admin": "🛡️",
    "owner": "👑",
    "user": "👤",
    "media": "🎞️",
    "utility": "🧰",
    "moderation": "⚖️",
}
