import asyncio
import json
import logging
import os
import time
from contextlib import asynccontextmanager
from typing import List, Optional, Dict, Any, Callable

import aiosqlite

from db.models import (
    User,
    Group,
    Owner,
    PluginRecord,
    CommandLog,
    UserStats,
    ScheduledTask,
)

logger = logging.getLogger(__name__)

DB_PATH = "data/bot.db"

CREATE_TABLES_SCRIPT = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    phone TEXT,
    name TEXT,
    role TEXT NOT NULL DEFAULT 'user',
    warnings INTEGER NOT NULL DEFAULT 0,
    banned INTEGER NOT NULL DEFAULT 0,
    muted_until INTEGER NOT NULL DEFAULT 0,
    restricted_until INTEGER NOT NULL DEFAULT 0,
    created_at INTEGER NOT NULL,
    updated_at INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_users_phone ON users(phone);
CREATE INDEX IF NOT EXISTS idx_users_role ON users(role);

CREATE TABLE IF NOT EXISTS groups (
    id TEXT PRIMARY KEY,
    name TEXT,
    description TEXT,
    locked INTEGER NOT NULL DEFAULT 0,
    created_at INTEGER NOT NULL,
    updated_at INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS group_settings (
    group_id TEXT NOT NULL,
    setting_key TEXT NOT NULL,
    setting_value TEXT,
    PRIMARY KEY (group_id, setting_key)
);

CREATE TABLE IF NOT EXISTS owners (
    id TEXT PRIMARY KEY,
    phone TEXT,
    added_by TEXT,
    added_at INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS plugins (
    name TEXT PRIMARY KEY,
    category TEXT NOT NULL,
    enabled INTEGER NOT NULL DEFAULT 1,
    file_path TEXT,
    metadata TEXT NOT NULL DEFAULT '{}',
    installed_by TEXT,
    installed_at INTEGER NOT NULL,
    updated_at INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_plugins_category ON plugins(category);
CREATE INDEX IF NOT EXISTS idx_plugins_enabled ON plugins(enabled);

CREATE TABLE IF NOT EXISTS command_logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    group_id TEXT NOT NULL,
    command TEXT NOT NULL,
    success INTEGER NOT NULL,
    error_message TEXT,
    duration_ms INTEGER NOT NULL DEFAULT 0,
    details TEXT NOT NULL DEFAULT '{}',
    executed_at INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_command_logs_user ON command_logs(user_id);
CREATE INDEX IF NOT EXISTS idx_command_logs_command ON command_logs(command);

CREATE TABLE IF NOT EXISTS user_stats (
    user_id TEXT NOT NULL,
    group_id TEXT NOT NULL,
    messages_sent INTEGER NOT NULL DEFAULT 0,
    commands_used INTEGER NOT NULL DEFAULT 0,
    last_active INTEGER NOT NULL,
    PRIMARY KEY (user_id, group_id)
);
CREATE INDEX IF NOT EXISTS idx_user_stats_user ON user_stats(user_id);

CREATE TABLE IF NOT EXISTS scheduled_tasks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    kind TEXT NOT NULL,
    run_at INTEGER NOT NULL,
    payload TEXT NOT NULL DEFAULT '{}',
    created_at INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_scheduled_tasks_run_at ON scheduled_tasks(run_at);
"""

REQUIRED_TABLES = {
    "users", "groups", "group_settings", "owners", "plugins",
    "command_logs", "user_stats", "scheduled_tasks"
}


@asynccontextmanager
async def _connect(db_path: str):
    """Открывает соединение с WAL и доступом к колонкам по имени"""
    async with aiosqlite.connect(db_path) as db:
        await db.execute("PRAGMA journal_mode=WAL")  # Включаем WAL режим
        await db.execute("PRAGMA synchronous=NORMAL")
        db.row_factory = aiosqlite.Row
        yield db


async def retry_on_locked(func: Callable, *args, **kwargs) -> Any:
    """
    Повторяет операцию при блокировке базы данных.
    До 3 попыток с интервалом 0.1 секунды.
    """
    max_attempts = 3
    delay = 0.1

    for attempt in range(max_attempts):
        try:
            return await func(*args, **kwargs)
        except aiosqlite.OperationalError as e:
            if "database is locked" in str(e) and attempt < max_attempts - 1:
                logger.warning(f"База заблокирована, попытка {attempt + 1}/{max_attempts}")
                await asyncio.sleep(delay)
                continue
            raise
    return None


def _now() -> int:
    return int(time.time())


def _row_to_user(row) -> User:
    return User(
        id=row["id"],
        phone=row["phone"],
        name=row["name"],
        role=row["role"],
        warnings=row["warnings"],
        banned=bool(row["banned"]),
        muted_until=row["muted_until"],
        restricted_until=row["restricted_until"],
        created_at=row["created_at"],
        updated_at=row["updated_at"]
    )


def _row_to_plugin(row) -> PluginRecord:
    return PluginRecord(
        name=row["name"],
        category=row["category"],
        enabled=bool(row["enabled"]),
        file_path=row["file_path"],
        metadata=json.loads(row["metadata"] or "{}"),
        installed_by=row["installed_by"],
        installed_at=row["installed_at"],
        updated_at=row["updated_at"]
    )


def _row_to_command_log(row) -> CommandLog:
    return CommandLog(
        id=row["id"],
        user_id=row["user_id"],
        group_id=row["group_id"],
        command=row["command"],
        success=bool(row["success"]),
        error_message=row["error_message"],
        duration_ms=row["duration_ms"],
        details=json.loads(row["details"] or "{}"),
        executed_at=row["executed_at"]
    )


async def init_db(db_path: str = DB_PATH, real_owner: Optional[str] = None) -> None:
    """Создаёт таблицы и регистрирует Real Owner"""
    logger.info(f"Инициализация базы данных {db_path}...")

    # Убедимся, что директория существует
    db_dir = os.path.dirname(db_path)
    if db_dir and not os.path.exists(db_dir):
        os.makedirs(db_dir)

    async with _connect(db_path) as db:
        await db.executescript(CREATE_TABLES_SCRIPT)
        await db.commit()

        # Проверяем, что таблицы действительно созданы
        async with db.execute("SELECT name FROM sqlite_master WHERE type='table'") as cursor:
            existing_tables = {row[0] async for row in cursor}

        if not REQUIRED_TABLES.issubset(existing_tables):
            missing_tables = REQUIRED_TABLES - existing_tables
            raise RuntimeError(f"Failed to create tables: {missing_tables}")

        if real_owner:
            now = _now()
            phone = "+" + real_owner.split("@")[0]
            await db.execute(
                """
                INSERT INTO users (id, phone, name, role, created_at, updated_at)
                VALUES (?, ?, 'Real Owner', 'real_owner', ?, ?)
                ON CONFLICT(id) DO UPDATE SET role = 'real_owner'
                """,
                (real_owner, phone, now, now)
            )
            await db.execute(
                "INSERT OR IGNORE INTO owners (id, phone, added_by, added_at) VALUES (?, ?, 'SYSTEM', ?)",
                (real_owner, phone, now)
            )
            await db.commit()

    logger.info("База данных инициализирована успешно")


# --- Пользователи ---

async def get_user(user_id: str, db_path: str = DB_PATH) -> Optional[User]:
    async with _connect(db_path) as db:
        async with db.execute("SELECT * FROM users WHERE id = ?", (user_id,)) as cursor:
            row = await cursor.fetchone()
    return _row_to_user(row) if row else None


async def create_user(
    user_id: str,
    phone: Optional[str] = None,
    name: Optional[str] = None,
    db_path: str = DB_PATH
) -> User:
    """Создаёт пользователя, если его ещё нет. Существующая запись не перезаписывается."""
    logger.debug(f"Создание пользователя {user_id}")
    now = _now()

    async def _create():
        async with _connect(db_path) as db:
            await db.execute(
                """
                INSERT INTO users (id, phone, name, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO NOTHING
                """,
                (user_id, phone, name, now, now)
            )
            await db.commit()

    await retry_on_locked(_create)
    return await get_user(user_id, db_path)


async def ensure_user(
    user_id: str,
    phone: Optional[str] = None,
    name: Optional[str] = None,
    db_path: str = DB_PATH
) -> User:
    """Возвращает пользователя, создавая его при первом появлении"""
    user = await get_user(user_id, db_path)
    if user:
        if name and user.name != name:
            async with _connect(db_path) as db:
                await db.execute(
                    "UPDATE users SET name = ?, updated_at = ? WHERE id = ?",
                    (name, _now(), user_id)
                )
                await db.commit()
            user.name = name
        return user
    return await create_user(user_id, phone, name, db_path)


async def _update_user(db_path: str, user_id: str, assignments: str, params: tuple) -> bool:
    async def _update():
        async with _connect(db_path) as db:
            cursor = await db.execute(
                f"UPDATE users SET {assignments}, updated_at = ? WHERE id = ?",
                params + (_now(), user_id)
            )
            await db.commit()
            return cursor.rowcount > 0

    return await retry_on_locked(_update)


async def add_warning(user_id: str, db_path: str = DB_PATH) -> int:
    """Увеличивает счетчик предупреждений и возвращает новое значение"""
    await ensure_user(user_id, phone="+" + user_id.split("@")[0], db_path=db_path)
    await _update_user(db_path, user_id, "warnings = warnings + 1", ())
    user = await get_user(user_id, db_path)
    logger.info(f"Предупреждение пользователю {user_id}, всего: {user.warnings}")
    return user.warnings


async def remove_warning(user_id: str, db_path: str = DB_PATH) -> int:
    await _update_user(db_path, user_id, "warnings = MAX(0, warnings - 1)", ())
    user = await get_user(user_id, db_path)
    return user.warnings if user else 0


async def clear_warnings(user_id: str, db_path: str = DB_PATH) -> bool:
    return await _update_user(db_path, user_id, "warnings = 0", ())


async def ban_user(user_id: str, db_path: str = DB_PATH) -> bool:
    await ensure_user(user_id, phone="+" + user_id.split("@")[0], db_path=db_path)
    return await _update_user(db_path, user_id, "banned = 1", ())


async def unban_user(user_id: str, db_path: str = DB_PATH) -> bool:
    return await _update_user(db_path, user_id, "banned = 0", ())


async def mute_user(user_id: str, duration_seconds: int, db_path: str = DB_PATH) -> int:
    """Мутит пользователя и возвращает время окончания мута"""
    await ensure_user(user_id, phone="+" + user_id.split("@")[0], db_path=db_path)
    muted_until = _now() + duration_seconds
    await _update_user(db_path, user_id, "muted_until = ?", (muted_until,))
    return muted_until


async def unmute_user(user_id: str, db_path: str = DB_PATH) -> bool:
    return await _update_user(db_path, user_id, "muted_until = 0", ())


async def restrict_user(user_id: str, duration_seconds: int, db_path: str = DB_PATH) -> int:
    """Запрещает пользователю команды бота и возвращает время окончания ограничения"""
    await ensure_user(user_id, phone="+" + user_id.split("@")[0], db_path=db_path)
    restricted_until = _now() + duration_seconds
    await _update_user(db_path, user_id, "restricted_until = ?", (restricted_until,))
    return restricted_until


async def unrestrict_user(user_id: str, db_path: str = DB_PATH) -> bool:
    return await _update_user(db_path, user_id, "restricted_until = 0", ())


# --- Владельцы ---

async def add_owner(owner_id: str, phone: Optional[str], added_by: str, db_path: str = DB_PATH) -> None:
    now = _now()

    async def _add():
        async with _connect(db_path) as db:
            await db.execute(
                """
                INSERT INTO users (id, phone, role, created_at, updated_at)
                VALUES (?, ?, 'owner', ?, ?)
                ON CONFLICT(id) DO UPDATE SET role = 'owner', updated_at = excluded.updated_at
                """,
                (owner_id, phone, now, now)
            )
            await db.execute(
                "INSERT OR REPLACE INTO owners (id, phone, added_by, added_at) VALUES (?, ?, ?, ?)",
                (owner_id, phone, added_by, now)
            )
            await db.commit()

    await retry_on_locked(_add)
    logger.info(f"Добавлен владелец {owner_id} (добавил {added_by})")


async def remove_owner(owner_id: str, db_path: str = DB_PATH) -> bool:
    async def _remove():
        async with _connect(db_path) as db:
            await db.execute(
                "UPDATE users SET role = 'user', updated_at = ? WHERE id = ? AND role = 'owner'",
                (_now(), owner_id)
            )
            cursor = await db.execute("DELETE FROM owners WHERE id = ?", (owner_id,))
            await db.commit()
            return cursor.rowcount > 0

    removed = await retry_on_locked(_remove)
    logger.info(f"Удалён владелец {owner_id}: {removed}")
    return removed


async def is_owner(user_id: str, db_path: str = DB_PATH) -> bool:
    async with _connect(db_path) as db:
        async with db.execute("SELECT 1 FROM owners WHERE id = ?", (user_id,)) as cursor:
            return await cursor.fetchone() is not None


async def get_owners(db_path: str = DB_PATH) -> List[Owner]:
    async with _connect(db_path) as db:
        async with db.execute("SELECT * FROM owners ORDER BY added_at") as cursor:
            return [
                Owner(id=row["id"], phone=row["phone"], added_by=row["added_by"], added_at=row["added_at"])
                async for row in cursor
            ]


# --- Каталог плагинов ---

async def upsert_plugin(
    name: str,
    category: str,
    file_path: str,
    metadata: Optional[Dict[str, Any]] = None,
    installed_by: str = "SYSTEM",
    db_path: str = DB_PATH
) -> None:
    """Добавляет или обновляет строку каталога. Флаг enabled при обновлении не трогается."""
    now = _now()

    async def _upsert():
        async with _connect(db_path) as db:
            await db.execute(
                """
                INSERT INTO plugins (name, category, enabled, file_path, metadata, installed_by, installed_at, updated_at)
                VALUES (?, ?, 1, ?, ?, ?, ?, ?)
                ON CONFLICT(name) DO UPDATE SET
                    category = excluded.category,
                    file_path = excluded.file_path,
                    metadata = excluded.metadata,
                    updated_at = excluded.updated_at
                """,
                (name, category, file_path, json.dumps(metadata or {}), installed_by, now, now)
            )
            await db.commit()

    await retry_on_locked(_upsert)


async def get_plugin_record(name: str, db_path: str = DB_PATH) -> Optional[PluginRecord]:
    async with _connect(db_path) as db:
        async with db.execute("SELECT * FROM plugins WHERE name = ?", (name,)) as cursor:
            row = await cursor.fetchone()
    return _row_to_plugin(row) if row else None


async def set_plugin_enabled(name: str, enabled: bool, db_path: str = DB_PATH) -> bool:
    async def _set():
        async with _connect(db_path) as db:
            cursor = await db.execute(
                "UPDATE plugins SET enabled = ?, updated_at = ? WHERE name = ?",
                (1 if enabled else 0, _now(), name)
            )
            await db.commit()
            return cursor.rowcount > 0

    return await retry_on_locked(_set)


async def remove_plugin_record(name: str, db_path: str = DB_PATH) -> bool:
    async with _connect(db_path) as db:
        cursor = await db.execute("DELETE FROM plugins WHERE name = ?", (name,))
        await db.commit()
        return cursor.rowcount > 0


async def list_plugin_records(
    category: Optional[str] = None,
    enabled_only: bool = False,
    db_path: str = DB_PATH
) -> List[PluginRecord]:
    query = "SELECT * FROM plugins"
    clauses, params = [], []
    if category:
        clauses.append("category = ?")
        params.append(category)
    if enabled_only:
        clauses.append("enabled = 1")
    if clauses:
        query += " WHERE " + " AND ".join(clauses)
    query += " ORDER BY category, name"

    async with _connect(db_path) as db:
        async with db.execute(query, params) as cursor:
            return [_row_to_plugin(row) async for row in cursor]


# --- Группы и настройки групп ---

async def get_group(group_id: str, db_path: str = DB_PATH) -> Optional[Group]:
    async with _connect(db_path) as db:
        async with db.execute("SELECT * FROM groups WHERE id = ?", (group_id,)) as cursor:
            row = await cursor.fetchone()
    if not row:
        return None
    return Group(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        locked=bool(row["locked"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"]
    )


async def upsert_group(
    group_id: str,
    name: Optional[str] = None,
    description: Optional[str] = None,
    db_path: str = DB_PATH
) -> None:
    now = _now()
    async with _connect(db_path) as db:
        await db.execute(
            """
            INSERT INTO groups (id, name, description, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name = COALESCE(excluded.name, groups.name),
                description = COALESCE(excluded.description, groups.description),
                updated_at = excluded.updated_at
            """,
            (group_id, name, description, now, now)
        )
        await db.commit()


async def set_group_locked(group_id: str, locked: bool, db_path: str = DB_PATH) -> None:
    await upsert_group(group_id, db_path=db_path)
    async with _connect(db_path) as db:
        await db.execute(
            "UPDATE groups SET locked = ?, updated_at = ? WHERE id = ?",
            (1 if locked else 0, _now(), group_id)
        )
        await db.commit()


async def set_group_setting(group_id: str, key: str, value: str, db_path: str = DB_PATH) -> None:
    async def _set():
        async with _connect(db_path) as db:
            await db.execute(
                "INSERT OR REPLACE INTO group_settings (group_id, setting_key, setting_value) VALUES (?, ?, ?)",
                (group_id, key, value)
            )
            await db.commit()

    await retry_on_locked(_set)
    logger.debug(f"Настройка группы {group_id}: {key}={value}")


async def get_group_setting(
    group_id: str,
    key: str,
    default: Optional[str] = None,
    db_path: str = DB_PATH
) -> Optional[str]:
    async with _connect(db_path) as db:
        async with db.execute(
            "SELECT setting_value FROM group_settings WHERE group_id = ? AND setting_key = ?",
            (group_id, key)
        ) as cursor:
            row = await cursor.fetchone()
    return row["setting_value"] if row else default


async def get_group_settings(group_id: str, db_path: str = DB_PATH) -> Dict[str, str]:
    async with _connect(db_path) as db:
        async with db.execute(
            "SELECT setting_key, setting_value FROM group_settings WHERE group_id = ?",
            (group_id,)
        ) as cursor:
            return {row["setting_key"]: row["setting_value"] async for row in cursor}


async def delete_group_setting(group_id: str, key: str, db_path: str = DB_PATH) -> bool:
    async with _connect(db_path) as db:
        cursor = await db.execute(
            "DELETE FROM group_settings WHERE group_id = ? AND setting_key = ?",
            (group_id, key)
        )
        await db.commit()
        return cursor.rowcount > 0


# --- Аудит команд ---

async def log_command(
    user_id: str,
    group_id: str,
    command: str,
    success: bool,
    error_message: Optional[str] = None,
    duration_ms: int = 0,
    details: Optional[Dict[str, Any]] = None,
    db_path: str = DB_PATH
) -> int:
    """Добавляет запись аудита и возвращает её ID"""

    async def _log():
        async with _connect(db_path) as db:
            cursor = await db.execute(
                """
                INSERT INTO command_logs
                    (user_id, group_id, command, success, error_message, duration_ms, details, executed_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    user_id, group_id, command, 1 if success else 0, error_message,
                    duration_ms, json.dumps(details or {}, default=str), _now()
                )
            )
            await db.commit()
            return cursor.lastrowid

    return await retry_on_locked(_log)


async def get_command_logs(
    user_id: Optional[str] = None,
    command: Optional[str] = None,
    limit: int = 100,
    db_path: str = DB_PATH
) -> List[CommandLog]:
    query = "SELECT * FROM command_logs"
    clauses, params = [], []
    if user_id:
        clauses.append("user_id = ?")
        params.append(user_id)
    if command:
        clauses.append("command = ?")
        params.append(command)
    if clauses:
        query += " WHERE " + " AND ".join(clauses)
    query += " ORDER BY id ASC LIMIT ?"
    params.append(limit)

    async with _connect(db_path) as db:
        async with db.execute(query, params) as cursor:
            return [_row_to_command_log(row) async for row in cursor]


async def get_command_stats(limit: int = 100, db_path: str = DB_PATH) -> List[Dict[str, Any]]:
    """Количество вызовов, успешных и неудачных, по каждой команде"""
    async with _connect(db_path) as db:
        async with db.execute(
            """
            SELECT command, COUNT(*) AS count,
                   SUM(CASE WHEN success = 1 THEN 1 ELSE 0 END) AS successful,
                   SUM(CASE WHEN success = 0 THEN 1 ELSE 0 END) AS failed
            FROM command_logs
            GROUP BY command
            ORDER BY count DESC
            LIMIT ?
            """,
            (limit,)
        ) as cursor:
            return [dict(row) async for row in cursor]


# --- Статистика пользователей ---

async def update_user_stats(
    user_id: str,
    group_id: str,
    messages_increment: int = 0,
    commands_increment: int = 0,
    db_path: str = DB_PATH
) -> None:
    async def _update():
        async with _connect(db_path) as db:
            await db.execute(
                """
                INSERT INTO user_stats (user_id, group_id, messages_sent, commands_used, last_active)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(user_id, group_id) DO UPDATE SET
                    messages_sent = user_stats.messages_sent + excluded.messages_sent,
                    commands_used = user_stats.commands_used + excluded.commands_used,
                    last_active = excluded.last_active
                """,
                (user_id, group_id, messages_increment, commands_increment, _now())
            )
            await db.commit()

    await retry_on_locked(_update)


async def get_user_stats(user_id: str, group_id: str, db_path: str = DB_PATH) -> Optional[UserStats]:
    async with _connect(db_path) as db:
        async with db.execute(
            "SELECT * FROM user_stats WHERE user_id = ? AND group_id = ?",
            (user_id, group_id)
        ) as cursor:
            row = await cursor.fetchone()
    if not row:
        return None
    return UserStats(
        user_id=row["user_id"],
        group_id=row["group_id"],
        messages_sent=row["messages_sent"],
        commands_used=row["commands_used"],
        last_active=row["last_active"]
    )


async def get_user_totals(user_id: str, db_path: str = DB_PATH) -> Dict[str, int]:
    """Суммарная активность пользователя по всем чатам"""
    async with _connect(db_path) as db:
        async with db.execute(
            """
            SELECT COALESCE(SUM(messages_sent), 0) AS total_messages,
                   COALESCE(SUM(commands_used), 0) AS total_commands,
                   COUNT(*) AS chats_active,
                   COALESCE(MAX(last_active), 0) AS last_active
            FROM user_stats WHERE user_id = ?
            """,
            (user_id,)
        ) as cursor:
            row = await cursor.fetchone()
    return dict(row)


# --- Отложенные задачи ---

async def add_scheduled_task(
    kind: str,
    run_at: int,
    payload: Optional[Dict[str, Any]] = None,
    db_path: str = DB_PATH
) -> ScheduledTask:
    now = _now()

    async def _add():
        async with _connect(db_path) as db:
            cursor = await db.execute(
                "INSERT INTO scheduled_tasks (kind, run_at, payload, created_at) VALUES (?, ?, ?, ?)",
                (kind, run_at, json.dumps(payload or {}), now)
            )
            await db.commit()
            return cursor.lastrowid

    task_id = await retry_on_locked(_add)
    return ScheduledTask(id=task_id, kind=kind, run_at=run_at, payload=payload or {}, created_at=now)


async def get_pending_tasks(db_path: str = DB_PATH) -> List[ScheduledTask]:
    async with _connect(db_path) as db:
        async with db.execute("SELECT * FROM scheduled_tasks ORDER BY run_at") as cursor:
            return [
                ScheduledTask(
                    id=row["id"],
                    kind=row["kind"],
                    run_at=row["run_at"],
                    payload=json.loads(row["payload"] or "{}"),
                    created_at=row["created_at"]
                )
                async for row in cursor
            ]


async def delete_scheduled_task(task_id: int, db_path: str = DB_PATH) -> bool:
    async def _delete():
        async with _connect(db_path) as db:
            cursor = await db.execute("DELETE FROM scheduled_tasks WHERE id = ?", (task_id,))
            await db.commit()
            return cursor.rowcount > 0

    return await retry_on_locked(_delete)
