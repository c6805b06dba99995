import json
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any


DEFAULT_CATEGORIES = ["admin", "owner", "user", "media", "utility", "moderation"]
DEFAULT_PROTECTED_PLUGINS = [
    "help", "ping", "plugin", "addplugin", "removeplugin", "addowner", "removeowner"
]


@dataclass
class LoggingModules:
    bot: bool = True
    handlers: bool = True
    database: bool = True
    plugins: bool = True
    audit: bool = True


@dataclass
class LoggingConfig:
    enabled: bool = True
    level: str = "INFO"
    modules: LoggingModules = field(default_factory=LoggingModules)
    log_dir: Optional[str] = "logs"  # None - только консоль
    max_bytes: int = 5 * 1024 * 1024  # 5MB на файл
    backup_count: int = 5
    commands: bool = True  # Логировать каждую команду в общий лог
    config: bool = True  # Выводить ключевые параметры при старте


@dataclass
class Config:
    # Основные параметры бота
    real_owner: str  # JID владельца, например 918810502592@s.whatsapp.net
    prefix: str = "."
    bot_name: str = "Vryzen"
    session_path: str = "sessions"
    db_path: str = "data/bot.db"
    timezone: str = "UTC"

    # Плагины
    plugins_dir: str = "plugins"
    plugin_categories: List[str] = field(default_factory=lambda: list(DEFAULT_CATEGORIES))
    protected_plugins: List[str] = field(default_factory=lambda: list(DEFAULT_PROTECTED_PLUGINS))
    hot_reload: bool = True
    reload_debounce_seconds: float = 0.5
    max_plugin_size_bytes: int = 256 * 1024

    # Диспетчер
    default_cooldown_ms: int = 3000
    notify_cooldown: bool = False  # Сообщать пользователю о кулдауне
    audit_cooldown_blocks: bool = False  # Писать в аудит заблокированные кулдауном вызовы

    # Модерация
    default_warn_limit: int = 3
    default_warn_action: str = "kick"  # kick | ban

    # Соединение
    max_reconnect_attempts: int = 5
    reconnect_delay_seconds: float = 5.0
    reject_calls: bool = True

    # Настройки логирования
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def __post_init__(self):
        if not self.prefix or not self.prefix.strip():
            raise ValueError("prefix must be a non-empty string")
        if not self.real_owner or "@" not in self.real_owner:
            raise ValueError("real_owner must be a WhatsApp JID, e.g. 15551234567@s.whatsapp.net")
        if self.default_cooldown_ms < 0:
            raise ValueError("default_cooldown_ms must be non-negative")
        if self.default_warn_limit < 1:
            raise ValueError("default_warn_limit must be at least 1")
        if self.default_warn_action not in ("kick", "ban"):
            raise ValueError("default_warn_action must be 'kick' or 'ban'")
        if self.max_reconnect_attempts < 0:
            raise ValueError("max_reconnect_attempts must be non-negative")

    @staticmethod
    def from_json_file(path: str) -> "Config":
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return Config.from_dict(data)

    @staticmethod
    def from_dict(data: Dict[str, Any], environ: Optional[Dict[str, str]] = None) -> "Config":
        """Собирает конфигурацию из словаря. Переменные окружения LOG_LEVEL и BOT_PREFIX имеют приоритет."""
        env = os.environ if environ is None else environ

        # Настройки логирования
        logging_data = data.get("logging", {})
        modules_data = logging_data.get("modules", {})
        logging_config = LoggingConfig(
            enabled=logging_data.get("enabled", True),
            level=str(env.get("LOG_LEVEL") or logging_data.get("level", "INFO")).upper(),
            modules=LoggingModules(
                bot=modules_data.get("bot", True),
                handlers=modules_data.get("handlers", True),
                database=modules_data.get("database", True),
                plugins=modules_data.get("plugins", True),
                audit=modules_data.get("audit", True)
            ),
            log_dir=logging_data.get("log_dir", "logs"),
            max_bytes=logging_data.get("max_bytes", 5 * 1024 * 1024),
            backup_count=logging_data.get("backup_count", 5),
            commands=logging_data.get("commands", True),
            config=logging_data.get("config", True)
        )

        return Config(
            real_owner=data.get("real_owner", ""),
            prefix=env.get("BOT_PREFIX") or data.get("prefix", "."),
            bot_name=data.get("bot_name", "Vryzen"),
            session_path=data.get("session_path", "sessions"),
            db_path=data.get("db_path", "data/bot.db"),
            timezone=data.get("timezone", "UTC"),

            plugins_dir=data.get("plugins_dir", "plugins"),
            plugin_categories=data.get("plugin_categories", list(DEFAULT_CATEGORIES)),
            protected_plugins=data.get("protected_plugins", list(DEFAULT_PROTECTED_PLUGINS)),
            hot_reload=data.get("hot_reload", True),
            reload_debounce_seconds=data.get("reload_debounce_seconds", 0.5),
            max_plugin_size_bytes=data.get("max_plugin_size_bytes", 256 * 1024),

            default_cooldown_ms=data.get("default_cooldown_ms", 3000),
            notify_cooldown=data.get("notify_cooldown", False),
            audit_cooldown_blocks=data.get("audit_cooldown_blocks", False),

            default_warn_limit=data.get("default_warn_limit", 3),
            default_warn_action=data.get("default_warn_action", "kick"),

            max_reconnect_attempts=data.get("max_reconnect_attempts", 5),
            reconnect_delay_seconds=data.get("reconnect_delay_seconds", 5.0),
            reject_calls=data.get("reject_calls", True),

            logging=logging_config
        )
