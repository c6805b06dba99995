"""
Исключения бота.

Ошибки команд (CommandUsageError) перехватываются диспетчером и превращаются
в ответ пользователю, ошибки плагинов - в отказ загрузки/установки.
"""


class BotError(Exception):
    """Базовое исключение бота"""


class CommandUsageError(BotError):
    """Неверные аргументы команды. Текст уходит пользователю как есть."""


class PermissionDeniedError(BotError):
    """Недостаточно прав для операции"""


class RoleChangeError(BotError):
    """Недопустимое изменение роли (например, попытка тронуть Real Owner)"""


class PluginError(BotError):
    """Базовая ошибка подсистемы плагинов"""


class PluginNotFoundError(PluginError):
    def __init__(self, name: str):
        super().__init__(f"Plugin '{name}' not found")
        self.name = name


class PluginValidationError(PluginError):
    """Модуль плагина не прошёл структурную проверку"""

    def __init__(self, message: str, reasons=None):
        super().__init__(message)
        self.reasons = list(reasons or [])


class ProtectedPluginError(PluginError):
    def __init__(self, name: str, action: str):
        super().__init__(f"Plugin '{name}' is protected and cannot be {action}")
        self.name = name
        self.action = action


class MaliciousPluginError(PluginError):
    """Исходник плагина совпал с чёрным списком шаблонов"""

    def __init__(self, patterns):
        super().__init__("Plugin contains potentially malicious code")
        self.patterns = list(patterns)


class FatalConnectionError(BotError):
    """Соединение потеряно окончательно (logout или исчерпан лимит переподключений)"""
