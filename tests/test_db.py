import time

import pytest

from db.operations import (
    init_db,
    get_user,
    ensure_user,
    add_warning,
    remove_warning,
    clear_warnings,
    ban_user,
    unban_user,
    mute_user,
    unmute_user,
    add_owner,
    remove_owner,
    is_owner,
    get_owners,
    upsert_plugin,
    get_plugin_record,
    set_plugin_enabled,
    remove_plugin_record,
    list_plugin_records,
    upsert_group,
    get_group,
    set_group_locked,
    set_group_setting,
    get_group_setting,
    get_group_settings,
    delete_group_setting,
    log_command,
    get_command_logs,
    get_command_stats,
    update_user_stats,
    get_user_stats,
    get_user_totals,
    add_scheduled_task,
    get_pending_tasks,
    delete_scheduled_task,
)
from conftest import REAL_OWNER, USER, TARGET, GROUP
from test_db_utils import count_rows, get_tables, verify_db_state


@pytest.mark.asyncio
async def test_db_initialization(test_db_path):
    """Тест инициализации базы данных"""
    await init_db(test_db_path, REAL_OWNER)
    assert await verify_db_state(test_db_path)
    assert "command_logs" in await get_tables(test_db_path)

    owner = await get_user(REAL_OWNER, test_db_path)
    assert owner.role == "real_owner"
    assert await is_owner(REAL_OWNER, test_db_path)

    # Повторная инициализация ничего не дублирует
    await init_db(test_db_path, REAL_OWNER)
    assert await count_rows(test_db_path, "owners") == 1


@pytest.mark.asyncio
async def test_db_creates_directory(tmp_path):
    db_path = str(tmp_path / "nested" / "dir" / "bot.db")
    await init_db(db_path)
    assert await verify_db_state(db_path)


@pytest.mark.asyncio
async def test_ensure_user(clean_db):
    """Пользователь создаётся при первом сообщении, имя обновляется"""
    user = await ensure_user(USER, "+30000000000", "Alice", clean_db)
    assert user.id == USER
    assert user.role == "user"
    assert user.warnings == 0
    assert not user.banned

    user = await ensure_user(USER, "+30000000000", "Alice B", clean_db)
    assert user.name == "Alice B"
    assert await count_rows(clean_db, "users") == 2  # + Real Owner


@pytest.mark.asyncio
async def test_warnings(clean_db):
    """Тест счётчика предупреждений"""
    assert await add_warning(TARGET, clean_db) == 1
    assert await add_warning(TARGET, clean_db) == 2
    assert await remove_warning(TARGET, clean_db) == 1
    assert await remove_warning(TARGET, clean_db) == 0
    assert await remove_warning(TARGET, clean_db) == 0

    await add_warning(TARGET, clean_db)
    await clear_warnings(TARGET, clean_db)
    assert (await get_user(TARGET, clean_db)).warnings == 0


@pytest.mark.asyncio
async def test_ban_and_mute(clean_db):
    """Бан и мут делают пользователя ограниченным"""
    now = int(time.time())

    await ban_user(TARGET, clean_db)
    user = await get_user(TARGET, clean_db)
    assert user.banned
    assert user.is_restricted(now)

    await unban_user(TARGET, clean_db)
    assert not (await get_user(TARGET, clean_db)).is_restricted(now)

    until = await mute_user(TARGET, 600, clean_db)
    user = await get_user(TARGET, clean_db)
    assert user.muted_until == until
    assert user.is_restricted(now)
    assert not user.is_restricted(until)

    await unmute_user(TARGET, clean_db)
    assert (await get_user(TARGET, clean_db)).muted_until == 0


@pytest.mark.asyncio
async def test_owners(clean_db):
    """Тест добавления и удаления владельцев"""
    await add_owner(USER, "+30000000000", REAL_OWNER, clean_db)
    assert await is_owner(USER, clean_db)
    assert (await get_user(USER, clean_db)).role == "owner"

    owners = await get_owners(clean_db)
    assert {o.id for o in owners} == {REAL_OWNER, USER}
    assert next(o for o in owners if o.id == USER).added_by == REAL_OWNER

    assert await remove_owner(USER, clean_db) is True
    assert not await is_owner(USER, clean_db)
    assert (await get_user(USER, clean_db)).role == "user"
    assert await remove_owner(USER, clean_db) is False


@pytest.mark.asyncio
async def test_plugin_catalog(clean_db):
    """Флаг enabled переживает повторную регистрацию плагина"""
    await upsert_plugin("echo", "user", "/plugins/user/echo.py", {"description": "Echo"}, db_path=clean_db)
    record = await get_plugin_record("echo", clean_db)
    assert record.enabled
    assert record.metadata == {"description": "Echo"}
    assert record.installed_by == "SYSTEM"

    assert await set_plugin_enabled("echo", False, clean_db)
    await upsert_plugin("echo", "user", "/plugins/user/echo.py", {"description": "Echo v2"},
                        installed_by="someone", db_path=clean_db)
    record = await get_plugin_record("echo", clean_db)
    assert not record.enabled
    assert record.metadata["description"] == "Echo v2"
    assert record.installed_by == "SYSTEM"

    await upsert_plugin("warn", "admin", "/plugins/admin/warn.py", db_path=clean_db)
    assert [r.name for r in await list_plugin_records(db_path=clean_db)] == ["warn", "echo"]
    assert [r.name for r in await list_plugin_records(category="user", db_path=clean_db)] == ["echo"]
    assert [r.name for r in await list_plugin_records(enabled_only=True, db_path=clean_db)] == ["warn"]

    assert await set_plugin_enabled("missing", True, clean_db) is False
    assert await remove_plugin_record("echo", clean_db)
    assert await get_plugin_record("echo", clean_db) is None


@pytest.mark.asyncio
async def test_groups_and_settings(clean_db):
    await upsert_group(GROUP, "Test Group", "About", db_path=clean_db)
    await upsert_group(GROUP, db_path=clean_db)
    group = await get_group(GROUP, clean_db)
    assert group.name == "Test Group"
    assert group.description == "About"
    assert not group.locked

    await set_group_locked(GROUP, True, clean_db)
    assert (await get_group(GROUP, clean_db)).locked

    assert await get_group_setting(GROUP, "warn_limit", "3", db_path=clean_db) == "3"
    await set_group_setting(GROUP, "warn_limit", "5", db_path=clean_db)
    await set_group_setting(GROUP, "welcome", "on", db_path=clean_db)
    assert await get_group_setting(GROUP, "warn_limit", db_path=clean_db) == "5"
    assert await get_group_settings(GROUP, clean_db) == {"warn_limit": "5", "welcome": "on"}

    assert await delete_group_setting(GROUP, "welcome", clean_db)
    assert await get_group_setting(GROUP, "welcome", db_path=clean_db) is None


@pytest.mark.asyncio
async def test_command_logs(clean_db):
    """Тест записи аудита команд"""
    first = await log_command(USER, GROUP, "ping", True, duration_ms=12, db_path=clean_db)
    second = await log_command(USER, GROUP, "kick", False, "Permission denied",
                               details={"required": ["admin"]}, db_path=clean_db)
    await log_command(TARGET, GROUP, "ping", True, db_path=clean_db)
    assert second > first

    logs = await get_command_logs(user_id=USER, db_path=clean_db)
    assert [log.command for log in logs] == ["ping", "kick"]
    assert logs[0].duration_ms == 12
    assert not logs[1].success
    assert logs[1].error_message == "Permission denied"
    assert logs[1].details == {"required": ["admin"]}

    assert len(await get_command_logs(command="ping", db_path=clean_db)) == 2

    stats = {row["command"]: row for row in await get_command_stats(db_path=clean_db)}
    assert stats["ping"]["count"] == 2
    assert stats["ping"]["successful"] == 2
    assert stats["kick"]["failed"] == 1


@pytest.mark.asyncio
async def test_user_stats(clean_db):
    await update_user_stats(USER, GROUP, messages_increment=1, db_path=clean_db)
    await update_user_stats(USER, GROUP, messages_increment=1, commands_increment=1, db_path=clean_db)
    await update_user_stats(USER, "other@g.us", messages_increment=3, db_path=clean_db)

    stats = await get_user_stats(USER, GROUP, clean_db)
    assert stats.messages_sent == 2
    assert stats.commands_used == 1

    totals = await get_user_totals(USER, clean_db)
    assert totals["total_messages"] == 5
    assert totals["total_commands"] == 1
    assert totals["chats_active"] == 2

    empty = await get_user_totals(TARGET, clean_db)
    assert empty["total_messages"] == 0
    assert empty["chats_active"] == 0


@pytest.mark.asyncio
async def test_scheduled_tasks(clean_db):
    """Отложенные задачи хранятся с payload и сортируются по времени"""
    late = await add_scheduled_task("reminder", 2000, {"text": "later"}, clean_db)
    early = await add_scheduled_task("unmute", 1000, {"user_id": TARGET}, clean_db)

    tasks = await get_pending_tasks(clean_db)
    assert [t.id for t in tasks] == [early.id, late.id]
    assert tasks[0].payload == {"user_id": TARGET}

    assert await delete_scheduled_task(early.id, clean_db)
    assert not await delete_scheduled_task(early.id, clean_db)
    assert len(await get_pending_tasks(clean_db)) == 1
