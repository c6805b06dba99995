from dataclasses import dataclass, field
from typing import Optional, Dict, Any

@dataclass
class User:
    """Модель пользователя WhatsApp"""
    id: str  # JID, PRIMARY KEY
    phone: Optional[str]
    name: Optional[str]
    role: str  # user | admin | owner | real_owner
    warnings: int
    banned: bool
    muted_until: int  # UNIX timestamp, 0 - без мута
    restricted_until: int  # UNIX timestamp, 0 - без ограничений
    created_at: int
    updated_at: int

    def is_restricted(self, now: int) -> bool:
        """Забанен, в муте или под ограничением на момент now"""
        return self.banned or self.muted_until > now or self.restricted_until > now

@dataclass
class Group:
    """Модель группы"""
    id: str
    name: Optional[str]
    description: Optional[str]
    locked: bool
    created_at: int
    updated_at: int

@dataclass
class Owner:
    """Модель владельца бота"""
    id: str
    phone: Optional[str]
    added_by: Optional[str]
    added_at: int

@dataclass
class PluginRecord:
    """Строка каталога плагинов"""
    name: str  # PRIMARY KEY
    category: str
    enabled: bool
    file_path: str
    metadata: Dict[str, Any]  # хранится как JSON
    installed_by: Optional[str]
    installed_at: int
    updated_at: int

@dataclass
class CommandLog:
    """Запись аудита одной попытки выполнения команды"""
    id: int
    user_id: str
    group_id: str
    command: str
    success: bool
    error_message: Optional[str]
    duration_ms: int
    details: Dict[str, Any]  # хранится как JSON
    executed_at: int

@dataclass
class UserStats:
    """Счетчики активности пользователя в чате"""
    user_id: str  # часть составного PRIMARY KEY
    group_id: str  # часть составного PRIMARY KEY
    messages_sent: int
    commands_used: int
    last_active: int

@dataclass
class ScheduledTask:
    """Отложенное действие, переживающее перезапуск"""
    id: int
    kind: str
    run_at: int  # UNIX timestamp
    payload: Dict[str, Any] = field(default_factory=dict)  # хранится как JSON
    created_at: int = 0
