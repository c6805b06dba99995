"""
Тесты реестра плагинов: загрузка, алиасы, включение/выключение, защита,
установка и горячая перезагрузка.
"""
import asyncio
import hashlib
import os
import sys

import pytest
from watchdog.events import FileCreatedEvent, FileDeletedEvent

from config import Config
from db.operations import get_plugin_record
from errors import (
    MaliciousPluginError,
    PluginNotFoundError,
    PluginValidationError,
    ProtectedPluginError,
)
from plugin_manager import PluginFileHandler, PluginManager, inspect_source, validate_plugin
from conftest import USER, make_config_data
from test_db_utils import plugin_source, write_plugin

NO_EXECUTE = 'name = "foo"\ndescription = "Has no execute"\n'


@pytest.fixture
def manager(test_config, clean_db):
    return PluginManager(test_config, clean_db)


@pytest.mark.asyncio
async def test_load_all_isolates_failures(manager):
    """Сломанный плагин отклоняется, остальные загружаются"""
    plugins_dir = manager.plugins_dir
    write_plugin(plugins_dir, "user", "echo.py", plugin_source("echo"))
    foo_path = write_plugin(plugins_dir, "user", "foo.py", NO_EXECUTE)
    write_plugin(plugins_dir, "admin", "bar.py", plugin_source("bar", permissions=["moderator"]))
    write_plugin(plugins_dir, "user", "_private.py", plugin_source("hidden"))

    assert await manager.load_all() == 2
    assert manager.get("echo") is not None
    assert manager.get("foo") is None
    assert manager.find("hidden") is None
    assert foo_path in manager.failures
    assert "'execute' is missing or not callable" in manager.failures[foo_path]

    # Неизвестный токен прав не мешает загрузке
    assert manager.get("bar").permissions == ["user"]

    # Отсутствующие категории создаются
    assert os.path.isdir(os.path.join(plugins_dir, "owner"))
    assert os.path.isdir(os.path.join(plugins_dir, "media"))


@pytest.mark.asyncio
async def test_descriptor_and_catalog(manager, clean_db):
    path = write_plugin(manager.plugins_dir, "user", "echo.py",
                        'name = "Echo"\ndescription = " Repeat text "\n\nasync def execute(ctx):\n    pass\n')
    descriptor = await manager.load("user", path)

    assert descriptor.name == "echo"
    assert descriptor.description == "Repeat text"
    assert descriptor.permissions == ["user"]
    assert descriptor.cooldown_ms == 3000  # из конфигурации
    assert descriptor.aliases == []

    record = await get_plugin_record("echo", clean_db)
    assert record.category == "user"
    assert record.file_path == path
    assert record.metadata["cooldown"] == 3000


@pytest.mark.asyncio
async def test_aliases(manager):
    """Алиасы разрешаются в плагин, конфликтующие отбрасываются"""
    plugins_dir = manager.plugins_dir
    await manager.load("user", write_plugin(plugins_dir, "user", "echo.py",
                                            plugin_source("echo", aliases=["e", "say", "echo", "E"])))
    assert manager.get_by_alias("e").name == "echo"
    assert manager.get_by_alias("SAY").name == "echo"
    assert manager.get("echo").aliases == ["e", "say"]

    shout = await manager.load("user", write_plugin(plugins_dir, "user", "shout.py",
                                                    plugin_source("shout", aliases=["say", "yell", "echo"])))
    assert shout.aliases == ["yell"]
    assert manager.get_by_alias("say").name == "echo"

    # Имя нового плагина вытесняет совпадающий чужой алиас
    await manager.load("user", write_plugin(plugins_dir, "user", "e.py", plugin_source("e")))
    assert manager.get("e").name == "e"
    assert manager.get_by_alias("e") is None
    assert manager.get("echo").aliases == ["say"]


@pytest.mark.asyncio
async def test_reload_is_idempotent(manager):
    path = write_plugin(manager.plugins_dir, "user", "echo.py", plugin_source("echo", aliases=["e"]))
    await manager.load("user", path)
    before = manager.get("echo").metadata()

    first = await manager.reload("echo")
    second = await manager.reload("e")

    assert first.metadata() == second.metadata() == before
    assert [p.name for p in manager.get_all()] == ["echo"]
    assert manager.get_by_alias("e").name == "echo"
    assert await manager.reload_all() == 1

    with pytest.raises(PluginNotFoundError):
        await manager.reload("missing")


@pytest.mark.asyncio
async def test_quick_edit_is_picked_up(manager):
    """Правка сразу после загрузки подхватывается, .pyc в дереве плагинов не пишется"""
    dont_write_bytecode = sys.dont_write_bytecode
    path = write_plugin(manager.plugins_dir, "user", "echo.py", plugin_source("echo", description="first"))
    await manager.load("user", path)

    write_plugin(manager.plugins_dir, "user", "echo.py", plugin_source("echo", description="again"))
    descriptor = await manager.reload("echo")

    assert descriptor.description == "again"
    assert not os.path.exists(os.path.join(manager.plugins_dir, "user", "__pycache__"))
    assert sys.dont_write_bytecode == dont_write_bytecode


@pytest.mark.asyncio
async def test_toggle_persists(manager, test_config, clean_db):
    """Выключенный плагин не выполняется, состояние переживает перезапуск"""
    write_plugin(manager.plugins_dir, "user", "echo.py", plugin_source("echo", aliases=["e"]))
    await manager.load_all()

    await manager.toggle("echo", False, actor=USER)
    assert manager.get("echo") is None
    assert manager.get_by_alias("e") is None
    assert manager.find("echo").enabled is False
    assert not manager.is_enabled("echo")
    assert [p.enabled for p in manager.get_all()] == [False]
    assert (await get_plugin_record("echo", clean_db)).enabled is False

    restarted = PluginManager(test_config, clean_db)
    await restarted.load_all()
    assert restarted.get("echo") is None
    assert restarted.find("echo").enabled is False

    await restarted.toggle("e", True)
    assert restarted.get("echo") is not None
    assert (await get_plugin_record("echo", clean_db)).enabled is True

    with pytest.raises(PluginNotFoundError):
        await manager.toggle("missing", True)


@pytest.mark.asyncio
async def test_protected_plugins(manager):
    """Защищённые плагины нельзя выключить или удалить"""
    path = write_plugin(manager.plugins_dir, "user", "ping.py", plugin_source("ping"))
    await manager.load("user", path)
    assert manager.is_protected("PING")

    with pytest.raises(ProtectedPluginError) as exc_info:
        await manager.toggle("ping", False)
    assert exc_info.value.action == "disabled"

    with pytest.raises(ProtectedPluginError):
        await manager.uninstall("ping")

    with pytest.raises(ProtectedPluginError):
        await manager.install(plugin_source("ping", marker="evil"), USER)

    await manager.toggle("ping", True)
    assert manager.get("ping") is not None
    assert os.path.exists(path)


@pytest.mark.asyncio
async def test_uninstall(manager, clean_db):
    path = write_plugin(manager.plugins_dir, "user", "echo.py", plugin_source("echo", aliases=["e"]))
    await manager.load("user", path)

    removed = await manager.uninstall("e", actor=USER)
    assert removed.name == "echo"
    assert manager.find("echo") is None
    assert manager.get_by_alias("e") is None
    assert not os.path.exists(path)
    assert await get_plugin_record("echo", clean_db) is None

    with pytest.raises(PluginNotFoundError):
        await manager.uninstall("echo")


@pytest.mark.asyncio
async def test_file_removed_keeps_catalog_row(manager, clean_db):
    """Удаление файла выгружает плагин, строка каталога остаётся"""
    path = write_plugin(manager.plugins_dir, "user", "echo.py", plugin_source("echo"))
    await manager.load("user", path)
    os.remove(path)

    removed = await manager.handle_file_removed(path)
    assert removed.name == "echo"
    assert manager.find("echo") is None
    assert await get_plugin_record("echo", clean_db) is not None

    assert await manager.handle_file_removed(path) is None


@pytest.mark.asyncio
async def test_duplicate_name_from_other_file(manager):
    """Второй файл с тем же именем команды отклоняется"""
    await manager.load("user", write_plugin(manager.plugins_dir, "user", "echo.py", plugin_source("echo")))
    other = write_plugin(manager.plugins_dir, "admin", "echo2.py", plugin_source("echo", marker="other"))

    assert await manager.load("admin", other) is None
    assert manager.get("echo").category == "user"
    assert "already registered" in manager.failures[other][0]


@pytest.mark.asyncio
async def test_broken_edit_keeps_previous_version(manager):
    """Неудачная правка файла не вытесняет рабочую версию"""
    path = write_plugin(manager.plugins_dir, "user", "echo.py", plugin_source("echo", description="v1"))
    await manager.handle_file_change(path)
    assert manager.get("echo").description == "v1"

    write_plugin(manager.plugins_dir, "user", "echo.py", "name = 'echo'\ndef execute(ctx:\n")
    assert await manager.handle_file_change(path) is None
    assert manager.get("echo").description == "v1"
    assert path in manager.failures

    write_plugin(manager.plugins_dir, "user", "echo.py", 'name = "echo"\ndescription = "no execute"\n')
    assert await manager.handle_file_change(path) is None
    assert manager.get("echo").description == "v1"

    with pytest.raises(PluginValidationError):
        await manager.reload("echo")

    write_plugin(manager.plugins_dir, "user", "echo.py", plugin_source("echo", description="v2"))
    assert (await manager.handle_file_change(path)).description == "v2"
    assert path not in manager.failures


@pytest.mark.asyncio
async def test_renamed_command_in_same_file(manager):
    path = write_plugin(manager.plugins_dir, "user", "echo.py", plugin_source("echo"))
    await manager.load("user", path)

    write_plugin(manager.plugins_dir, "user", "echo.py", plugin_source("say"))
    await manager.handle_file_change(path)

    assert manager.find("echo") is None
    assert manager.get("say").file_path == path


@pytest.mark.asyncio
async def test_file_change_outside_categories_is_ignored(manager):
    path = write_plugin(manager.plugins_dir, "unknown", "echo.py", plugin_source("echo"))
    assert await manager.handle_file_change(path) is None
    assert manager.find("echo") is None


# --- Установка ---

@pytest.mark.asyncio
async def test_install_valid_plugin(manager, clean_db):
    content = plugin_source("shout", permissions=["admin"], aliases=["loud"])
    descriptor, content_hash = await manager.install(content, USER)

    assert descriptor.name == "shout"
    assert descriptor.category == "admin"
    assert content_hash == hashlib.sha256(content.encode("utf-8")).hexdigest()
    assert os.path.exists(os.path.join(manager.plugins_dir, "admin", "shout.py"))
    assert manager.get_by_alias("loud").name == "shout"

    record = await get_plugin_record("shout", clean_db)
    assert record.installed_by == USER


@pytest.mark.asyncio
@pytest.mark.parametrize("permissions,category", [
    (["user"], "user"),
    (["admin"], "admin"),
    (["owner"], "owner"),
    (["real_owner"], "owner"),
    (["admin", "owner"], "owner"),
])
async def test_install_category(manager, permissions, category):
    descriptor, _ = await manager.install(plugin_source("cmd", permissions=permissions), USER)
    assert descriptor.category == category


@pytest.mark.asyncio
async def test_install_media_category(manager):
    content = plugin_source("sticker", extra='category = "media"')
    descriptor, _ = await manager.install(content.encode("utf-8"), USER)
    assert descriptor.category == "media"


@pytest.mark.asyncio
@pytest.mark.parametrize("snippet,label", [
    ("import os", "system module import"),
    ("from subprocess import run", "system module import"),
    ("import json, subprocess as sp\nresult = sp.run([\"id\"])", "system module import"),
    ("import json as j, ctypes.util as cu", "system module import"),
    ("if True:\n    from socket import socket as s", "system module import"),
    ("x = eval('1')", "eval"),
    ("x = __import__('os')", "dynamic import"),
    ("data = open('/etc/passwd').read()", "file access"),
])
async def test_install_blacklist(manager, snippet, label):
    """Подозрительный исходник отклоняется до записи на диск"""
    content = plugin_source("evil", extra=snippet)
    with pytest.raises(MaliciousPluginError) as exc_info:
        await manager.install(content, USER)

    assert label in exc_info.value.patterns
    assert manager.find("evil") is None
    assert not os.path.exists(os.path.join(manager.plugins_dir, "user", "evil.py"))


@pytest.mark.asyncio
async def test_install_rejects_bad_content(manager):
    with pytest.raises(PluginValidationError) as exc_info:
        await manager.install(b"\x00\x01binary", USER)
    assert exc_info.value.reasons == ["binary content"]

    with pytest.raises(PluginValidationError):
        await manager.install(b"\xff\xfe\xfa", USER)

    with pytest.raises(PluginValidationError):
        await manager.install("   ", USER)

    oversize = plugin_source("big") + "\n# " + "x" * manager.config.max_plugin_size_bytes
    with pytest.raises(PluginValidationError) as exc_info:
        await manager.install(oversize, USER)
    assert exc_info.value.reasons == ["oversize content"]


@pytest.mark.asyncio
async def test_install_rejects_invalid_structure(manager):
    with pytest.raises(PluginValidationError) as exc_info:
        await manager.install(NO_EXECUTE, USER)
    assert "'execute' function is missing" in exc_info.value.reasons

    with pytest.raises(PluginValidationError):
        await manager.install("def execute(ctx:\n", USER)

    with pytest.raises(PluginValidationError):
        await manager.install(plugin_source("Bad-Name"), USER)

    assert manager.get_all() == []
    assert not os.path.exists(os.path.join(manager.plugins_dir, "user", "foo.py"))


@pytest.mark.asyncio
async def test_install_failed_load_restores_file(manager):
    """Если установленный файл не загрузился, прежняя версия возвращается"""
    original = plugin_source("echo", description="original")
    await manager.install(original, USER)

    # Проходит статическую проверку, но падает при импорте
    broken = plugin_source("echo", description="broken", extra="value = 1 / 0")
    with pytest.raises(PluginValidationError):
        await manager.install(broken, USER)

    with open(os.path.join(manager.plugins_dir, "user", "echo.py"), "r", encoding="utf-8") as f:
        assert f.read() == original
    assert manager.get("echo").description == "original"


@pytest.mark.asyncio
async def test_install_name_collision_across_categories(manager):
    await manager.install(plugin_source("echo"), USER)
    with pytest.raises(PluginValidationError):
        await manager.install(plugin_source("echo", permissions=["admin"]), USER)


# --- Статическая проверка ---

def test_inspect_source():
    values = inspect_source(plugin_source("echo", aliases=["e"], cooldown=500))
    assert values["name"] == "echo"
    assert values["aliases"] == ["e"]
    assert values["cooldown"] == 500
    assert values["__functions__"] == {"execute"}

    values = inspect_source("import json, subprocess as sp\nfrom .helpers import x\n\ndef execute(ctx):\n    import os.path\n")
    assert values["__imports__"] == {"json", "subprocess", "os"}


def test_validate_plugin_warnings():
    class Module:
        name = "echo"
        description = "Echo"
        permissions = ["user", "moderator"]
        aliases = "e"
        cooldown = -5
        usage = 42

        @staticmethod
        def execute(ctx):
            return None

    errors, warnings = validate_plugin(Module)
    assert errors == []
    assert len(warnings) == 4


# --- Горячая перезагрузка ---

async def wait_for(predicate, timeout: float = 5.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            return False
        await asyncio.sleep(0.05)
    return True


@pytest.mark.asyncio
async def test_file_handler_debounces_events(manager):
    """Серия событий по одному пути приводит к одной загрузке"""
    handler = PluginFileHandler(manager, asyncio.get_running_loop(), delay=0.05)
    path = write_plugin(manager.plugins_dir, "user", "echo.py", plugin_source("echo"))

    for _ in range(3):
        handler.on_created(FileCreatedEvent(path))
    assert await wait_for(lambda: manager.get("echo") is not None)
    assert not handler._pending
    assert await wait_for(lambda: not handler._tasks)

    os.remove(path)
    handler.on_deleted(FileDeletedEvent(path))
    assert await wait_for(lambda: manager.find("echo") is None)


@pytest.mark.asyncio
async def test_watcher_loads_new_file(tmp_path, clean_db):
    config = Config.from_dict(make_config_data(tmp_path, hot_reload=True), environ={})
    manager = PluginManager(config, clean_db)
    await manager.load_all()
    manager.start_watcher()
    try:
        write_plugin(manager.plugins_dir, "user", "echo.py", plugin_source("echo"))
        assert await wait_for(lambda: manager.get("echo") is not None)
    finally:
        manager.stop_watcher()


def test_watcher_disabled(test_config, test_db_path):
    manager = PluginManager(test_config, test_db_path)
    manager.start_watcher()
    assert manager._observer is None
