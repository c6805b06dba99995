"""
Реестр плагинов-команд и их загрузчик с горячей перезагрузкой.

Плагин - это файл plugins/<category>/<name>.py с атрибутами уровня модуля:
name, description, execute(ctx) и необязательными usage, aliases, permissions,
cooldown (мс), version, author.
"""
import ast
import asyncio
import hashlib
import importlib.util
import logging
import os
import re
import sys
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from config import Config
from audit import log_action
from db import operations as db
from errors import (
    MaliciousPluginError,
    PluginNotFoundError,
    PluginValidationError,
    ProtectedPluginError,
)
from permissions import validate_permission_list

logger = logging.getLogger(__name__)

MODULE_PREFIX = "wabot_plugin"
PLUGIN_NAME_RE = re.compile(r"^[a-z0-9_]+$")

BLOCKED_MODULES = frozenset({
    "os", "sys", "subprocess", "shutil", "ctypes", "socket", "importlib", "multiprocessing", "pty",
})

# Шаблоны, которые отклоняют установку плагина. Это сдерживающая мера, а не песочница.
BLACKLIST_PATTERNS = [
    (re.compile(r"^\s*(?:import|from)\s+(?:" + "|".join(sorted(BLOCKED_MODULES)) + r")\b",
                re.MULTILINE), "system module import"),
    (re.compile(r"__import__\s*\("), "dynamic import"),
    (re.compile(r"\beval\s*\("), "eval"),
    (re.compile(r"\bexec\s*\("), "exec"),
    (re.compile(r"\bcompile\s*\("), "compile"),
    (re.compile(r"\bos\.(?:system|popen|exec\w*|spawn\w*|fork|kill|remove|unlink|rmdir)\b"), "os process/filesystem call"),
    (re.compile(r"\bsubprocess\."), "subprocess"),
    (re.compile(r"create_subprocess_(?:exec|shell)"), "subprocess"),
    (re.compile(r"\bsys\.exit\b"), "process exit"),
    (re.compile(r"\bopen\s*\("), "file access"),
    (re.compile(r"\bshutil\."), "filesystem access"),
    (re.compile(r"__builtins__|\bglobals\s*\(\s*\)"), "builtins access"),
]


@dataclass
class PluginDescriptor:
    name: str
    category: str
    description: str
    execute: Callable[..., Any]
    file_path: str
    usage: str = ""
    aliases: List[str] = field(default_factory=list)
    permissions: List[str] = field(default_factory=lambda: ["user"])
    cooldown_ms: int = 3000
    enabled: bool = True
    version: str = "1.0.0"
    author: str = ""
    loaded_at: float = 0.0
    module_name: str = ""

    def metadata(self) -> Dict[str, Any]:
        """Метаданные для строки каталога"""
        return {
            "description": self.description,
            "usage": self.usage,
            "aliases": self.aliases,
            "permissions": self.permissions,
            "cooldown": self.cooldown_ms,
            "version": self.version,
            "author": self.author,
        }


def _is_str_list(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value)


def validate_plugin(module: Any) -> Tuple[List[str], List[str]]:
    """
    Проверяет структуру модуля плагина.
    Возвращает (ошибки, предупреждения). Любая ошибка отклоняет загрузку,
    предупреждения только логируются.
    """
    errors, warnings = [], []

    name = getattr(module, "name", None)
    if not isinstance(name, str) or not name.strip():
        errors.append("missing or empty 'name'")

    description = getattr(module, "description", None)
    if not isinstance(description, str) or not description.strip():
        errors.append("missing or empty 'description'")

    if not callable(getattr(module, "execute", None)):
        errors.append("'execute' is missing or not callable")

    permissions = getattr(module, "permissions", None)
    if permissions is not None:
        if not _is_str_list(permissions):
            warnings.append("'permissions' must be a list of strings")
        else:
            _, unknown = validate_permission_list(permissions)
            if unknown:
                warnings.append(f"unknown permission tokens: {', '.join(unknown)}")

    aliases = getattr(module, "aliases", None)
    if aliases is not None and not _is_str_list(aliases):
        warnings.append("'aliases' must be a list of strings")

    cooldown = getattr(module, "cooldown", None)
    if cooldown is not None and (isinstance(cooldown, bool) or not isinstance(cooldown, int) or cooldown < 0):
        warnings.append("'cooldown' must be a non-negative integer (ms)")

    usage = getattr(module, "usage", None)
    if usage is not None and not isinstance(usage, str):
        warnings.append("'usage' must be a string")

    return errors, warnings


def inspect_source(content: str) -> Dict[str, Any]:
    """
    Статически разбирает исходник плагина без выполнения.
    Возвращает литеральные значения присваиваний верхнего уровня и имена функций.
    """
    try:
        tree = ast.parse(content)
    except SyntaxError as e:
        raise PluginValidationError(f"Syntax error at line {e.lineno}: {e.msg}", [str(e)])

    values: Dict[str, Any] = {}
    functions = set()
    for node in tree.body:
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            functions.add(node.name)
        elif isinstance(node, (ast.Assign, ast.AnnAssign)):
            targets = node.targets if isinstance(node, ast.Assign) else [node.target]
            if node.value is None:
                continue
            try:
                value = ast.literal_eval(node.value)
            except ValueError:
                value = None
            for target in targets:
                if isinstance(target, ast.Name):
                    values[target.id] = value

    # Импорты на любой глубине, включая "import a, b as c" и импорты внутри функций
    imports = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            imports.update(alias.name.split(".")[0] for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module and not node.level:
            imports.add(node.module.split(".")[0])

    values["__functions__"] = functions
    values["__imports__"] = imports
    return values


class PluginFileHandler(FileSystemEventHandler):
    """
    Обработчик событий watchdog. Работает в потоке наблюдателя, поэтому
    только передаёт события в цикл asyncio и ничего не трогает в реестре.
    """

    def __init__(self, manager: "PluginManager", loop: asyncio.AbstractEventLoop, delay: float = 0.5):
        self.manager = manager
        self.loop = loop
        self.delay = delay
        self._pending: Dict[str, asyncio.TimerHandle] = {}
        self._tasks: Set[asyncio.Task] = set()

    @staticmethod
    def _is_plugin_file(path: str) -> bool:
        filename = os.path.basename(path)
        return filename.endswith(".py") and not filename.startswith("_")

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._is_plugin_file(event.src_path):
            self._post("change", event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._is_plugin_file(event.src_path):
            self._post("change", event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._is_plugin_file(event.src_path):
            self._post("delete", event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        if self._is_plugin_file(event.src_path):
            self._post("delete", event.src_path)
        if self._is_plugin_file(event.dest_path):
            self._post("change", event.dest_path)

    def _post(self, kind: str, path: str) -> None:
        self.loop.call_soon_threadsafe(self._debounce, kind, os.path.abspath(path))

    def _debounce(self, kind: str, path: str) -> None:
        """Выполняется в цикле asyncio: последнее событие по пути побеждает"""
        pending = self._pending.pop(path, None)
        if pending:
            pending.cancel()
        delay = 0 if kind == "delete" else self.delay
        self._pending[path] = self.loop.call_later(delay, self._fire, kind, path)

    def _fire(self, kind: str, path: str) -> None:
        self._pending.pop(path, None)
        if kind == "delete":
            task = asyncio.ensure_future(self.manager.handle_file_removed(path))
        else:
            task = asyncio.ensure_future(self.manager.handle_file_change(path))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def cancel_pending(self) -> None:
        for handle in self._pending.values():
            handle.cancel()
        self._pending.clear()


class PluginManager:
    """Реестр плагинов в памяти, синхронизированный с таблицей plugins"""

    def __init__(self, config: Config, db_path: str):
        self.config = config
        self.db_path = db_path
        self.plugins_dir = os.path.abspath(config.plugins_dir)
        self.categories = list(config.plugin_categories)
        self.protected = {name.lower() for name in config.protected_plugins}

        self._plugins: Dict[str, PluginDescriptor] = {}
        self._aliases: Dict[str, str] = {}  # alias -> имя плагина
        self._by_path: Dict[str, str] = {}  # абсолютный путь -> имя плагина
        self.failures: Dict[str, List[str]] = {}  # путь -> причины последнего отказа
        self._lock = asyncio.Lock()

        self._observer: Optional[Observer] = None
        self._handler: Optional[PluginFileHandler] = None

    # --- Загрузка ---

    def _category_dir(self, category: str) -> str:
        return os.path.join(self.plugins_dir, category)

    async def load_all(self) -> int:
        """Загружает все плагины по категориям. Ошибка одного плагина не мешает остальным."""
        loaded = 0
        for category in self.categories:
            category_dir = self._category_dir(category)
            if not os.path.isdir(category_dir):
                os.makedirs(category_dir, exist_ok=True)
                continue

            for filename in sorted(os.listdir(category_dir)):
                if not filename.endswith(".py") or filename.startswith("_"):
                    continue
                if await self.load(category, os.path.join(category_dir, filename)):
                    loaded += 1

        logger.info(f"Загружено плагинов: {loaded}, отклонено: {len(self.failures)}")
        return loaded

    async def load(self, category: str, file_path: str) -> Optional[PluginDescriptor]:
        """
        Загружает (или перезагружает) плагин из файла.
        Возвращает дескриптор или None, если модуль отклонён.
        """
        async with self._lock:
            return await self._load_locked(category, file_path)

    def _import_module(self, module_name: str, file_path: str):
        spec = importlib.util.spec_from_file_location(module_name, file_path)
        if spec is None or spec.loader is None:
            raise ImportError(f"Cannot create module spec for {file_path}")

        previous = sys.modules.get(module_name)
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        # Дерево плагинов не кэшируется в .pyc: правка в ту же секунду mtime должна подхватываться
        dont_write_bytecode = sys.dont_write_bytecode
        sys.dont_write_bytecode = True
        try:
            spec.loader.exec_module(module)
        except BaseException:
            # Неудачная правка не должна вытеснить рабочую версию
            if previous is not None:
                sys.modules[module_name] = previous
            else:
                sys.modules.pop(module_name, None)
            raise
        finally:
            sys.dont_write_bytecode = dont_write_bytecode
        return module, previous

    def _reject(self, file_path: str, reasons: List[str]) -> None:
        self.failures[file_path] = reasons
        logger.error(f"Плагин {file_path} отклонён: {'; '.join(reasons)}")

    async def _load_locked(
        self,
        category: str,
        file_path: str,
        installed_by: str = "SYSTEM"
    ) -> Optional[PluginDescriptor]:
        file_path = os.path.abspath(file_path)
        stem = os.path.splitext(os.path.basename(file_path))[0]
        module_name = f"{MODULE_PREFIX}_{category}_{stem}"

        try:
            module, previous = self._import_module(module_name, file_path)
        except Exception as e:
            self._reject(file_path, [f"import failed: {type(e).__name__}: {str(e)}"])
            return None

        errors, warnings = validate_plugin(module)
        if errors:
            if previous is not None:
                sys.modules[module_name] = previous
            else:
                sys.modules.pop(module_name, None)
            self._reject(file_path, errors)
            return None

        for warning in warnings:
            logger.warning(f"Плагин {file_path}: {warning}")

        name = module.name.strip().lower()
        existing = self._plugins.get(name)
        if existing and existing.file_path != file_path:
            self._reject(file_path, [f"name '{name}' is already registered by {existing.file_path}"])
            return None

        # Файл мог сменить имя команды: убираем старую регистрацию
        old_name = self._by_path.get(file_path)
        if old_name and old_name != name:
            self._unregister(old_name, drop_module=False)

        permissions = getattr(module, "permissions", None)
        if _is_str_list(permissions):
            permissions, _ = validate_permission_list(permissions)
        else:
            permissions = []
        if not permissions:
            permissions = ["user"]

        cooldown = getattr(module, "cooldown", None)
        if isinstance(cooldown, bool) or not isinstance(cooldown, int) or cooldown < 0:
            cooldown = self.config.default_cooldown_ms

        usage = getattr(module, "usage", "")
        if not isinstance(usage, str):
            usage = ""

        record = await db.get_plugin_record(name, self.db_path)
        descriptor = PluginDescriptor(
            name=name,
            category=category,
            description=module.description.strip(),
            execute=module.execute,
            file_path=file_path,
            usage=usage,
            aliases=self._accept_aliases(name, getattr(module, "aliases", None)),
            permissions=permissions,
            cooldown_ms=cooldown,
            enabled=record.enabled if record else True,
            version=str(getattr(module, "version", "1.0.0")),
            author=str(getattr(module, "author", "")),
            loaded_at=time.time(),
            module_name=module_name,
        )

        await db.upsert_plugin(
            name, category, file_path, descriptor.metadata(),
            installed_by=installed_by, db_path=self.db_path
        )

        self._register(descriptor)
        self.failures.pop(file_path, None)
        action = "перезагружен" if existing else "загружен"
        logger.info(f"Плагин {name} [{category}] {action}")
        return descriptor

    def _accept_aliases(self, name: str, aliases: Any) -> List[str]:
        """Отбрасывает алиасы, которые конфликтуют с чужими именами или алиасами"""
        if not _is_str_list(aliases):
            return []

        accepted = []
        for alias in aliases:
            alias = alias.strip().lower()
            if not alias or alias == name or alias in accepted:
                continue
            owner = self._aliases.get(alias)
            if (owner and owner != name) or (alias in self._plugins and alias != name):
                logger.warning(f"Алиас '{alias}' плагина {name} конфликтует с {owner or alias}, пропускаем")
                continue
            accepted.append(alias)
        return accepted

    def _register(self, descriptor: PluginDescriptor) -> None:
        name = descriptor.name

        # Старые алиасы этого плагина
        for alias in [a for a, owner in self._aliases.items() if owner == name]:
            del self._aliases[alias]

        # Новое имя вытесняет совпадающий чужой алиас
        other = self._aliases.pop(name, None)
        if other and other in self._plugins:
            logger.warning(f"Имя {name} совпадает с алиасом плагина {other}, алиас удалён")
            self._plugins[other].aliases = [a for a in self._plugins[other].aliases if a != name]

        self._plugins[name] = descriptor
        for alias in descriptor.aliases:
            self._aliases[alias] = name
        self._by_path[descriptor.file_path] = name

    def _unregister(self, name: str, drop_module: bool = True) -> Optional[PluginDescriptor]:
        descriptor = self._plugins.pop(name, None)
        if descriptor is None:
            return None
        for alias in descriptor.aliases:
            if self._aliases.get(alias) == name:
                del self._aliases[alias]
        if self._by_path.get(descriptor.file_path) == name:
            del self._by_path[descriptor.file_path]
        if drop_module:
            sys.modules.pop(descriptor.module_name, None)
        return descriptor

    # --- Управление ---

    def is_protected(self, name: str) -> bool:
        return name.lower() in self.protected

    async def reload(self, name: str) -> PluginDescriptor:
        descriptor = self.find(name)
        if descriptor is None:
            raise PluginNotFoundError(name)

        reloaded = await self.load(descriptor.category, descriptor.file_path)
        if reloaded is None:
            reasons = self.failures.get(descriptor.file_path, [])
            raise PluginValidationError(f"Reload of '{descriptor.name}' failed", reasons)

        log_action("PLUGIN_RELOADED", name=reloaded.name)
        return reloaded

    async def reload_all(self) -> int:
        count = 0
        for descriptor in self.get_all():
            if await self.load(descriptor.category, descriptor.file_path):
                count += 1
        log_action("PLUGINS_RELOADED", count=count)
        return count

    async def toggle(self, name: str, enabled: bool, actor: Optional[str] = None) -> PluginDescriptor:
        descriptor = self.find(name)
        if descriptor is None:
            raise PluginNotFoundError(name)
        if not enabled and self.is_protected(descriptor.name):
            raise ProtectedPluginError(descriptor.name, "disabled")

        async with self._lock:
            await db.set_plugin_enabled(descriptor.name, enabled, self.db_path)
            descriptor.enabled = enabled

        log_action("PLUGIN_TOGGLED", actor=actor, name=descriptor.name, enabled=enabled)
        return descriptor

    async def uninstall(self, name: str, actor: Optional[str] = None) -> PluginDescriptor:
        """Удаляет плагин из реестра, каталога и с диска"""
        if self.is_protected(name):
            raise ProtectedPluginError(name.lower(), "uninstalled")
        descriptor = self.find(name)
        if descriptor is None:
            raise PluginNotFoundError(name)
        if self.is_protected(descriptor.name):
            raise ProtectedPluginError(descriptor.name, "uninstalled")

        async with self._lock:
            self._unregister(descriptor.name)
            await db.remove_plugin_record(descriptor.name, self.db_path)
            if os.path.exists(descriptor.file_path):
                os.remove(descriptor.file_path)

        log_action("PLUGIN_UNINSTALLED", actor=actor, level=logging.WARNING, name=descriptor.name)
        return descriptor

    def _determine_category(self, values: Dict[str, Any]) -> str:
        permissions = values.get("permissions")
        tokens = [t.lower() for t in permissions] if _is_str_list(permissions) else []
        if "owner" in tokens or "real_owner" in tokens:
            category = "owner"
        elif "admin" in tokens:
            category = "admin"
        elif values.get("category") == "media":
            category = "media"
        else:
            category = "user"
        return category if category in self.categories else self.categories[0]

    async def install(self, content: Any, installed_by: str) -> Tuple[PluginDescriptor, str]:
        """
        Устанавливает плагин из присланного исходника.
        Исходник проверяется по чёрному списку и статически, но не выполняется до записи на диск.
        Возвращает дескриптор и sha256 исходника.
        """
        if isinstance(content, (bytes, bytearray)):
            if b"\x00" in content:
                raise PluginValidationError("Plugin must be a text file", ["binary content"])
            try:
                content = bytes(content).decode("utf-8")
            except UnicodeDecodeError:
                raise PluginValidationError("Plugin must be UTF-8 text", ["undecodable content"])
        if not isinstance(content, str) or not content.strip():
            raise PluginValidationError("Plugin source is empty", ["empty content"])
        if "\x00" in content:
            raise PluginValidationError("Plugin must be a text file", ["binary content"])

        size = len(content.encode("utf-8"))
        if size > self.config.max_plugin_size_bytes:
            raise PluginValidationError(
                f"Plugin is too large ({size} bytes, limit {self.config.max_plugin_size_bytes})",
                ["oversize content"]
            )

        matched = []
        for pattern, label in BLACKLIST_PATTERNS:
            if pattern.search(content) and label not in matched:
                matched.append(label)
        if matched:
            log_action("PLUGIN_INSTALL_BLOCKED", actor=installed_by, level=logging.WARNING, patterns=matched)
            raise MaliciousPluginError(matched)

        values = inspect_source(content)
        blocked = sorted(values["__imports__"] & BLOCKED_MODULES)
        if blocked:
            log_action("PLUGIN_INSTALL_BLOCKED", actor=installed_by, level=logging.WARNING, modules=blocked)
            raise MaliciousPluginError(["system module import"])

        reasons = []
        name = values.get("name")
        if not isinstance(name, str) or not name.strip():
            reasons.append("missing or empty 'name'")
        if not isinstance(values.get("description"), str) or not values["description"].strip():
            reasons.append("missing or empty 'description'")
        if "execute" not in values["__functions__"]:
            reasons.append("'execute' function is missing")
        if reasons:
            raise PluginValidationError("Invalid plugin structure", reasons)

        name = name.strip().lower()
        if not PLUGIN_NAME_RE.match(name):
            raise PluginValidationError(f"Invalid plugin name '{name}'", ["name must match [a-z0-9_]+"])

        category = self._determine_category(values)
        existing = self.find(name)
        if existing and self.is_protected(existing.name):
            raise ProtectedPluginError(existing.name, "replaced")
        if existing and existing.category != category:
            raise PluginValidationError(
                f"Plugin '{name}' already exists in category '{existing.category}'",
                ["name collision"]
            )

        category_dir = self._category_dir(category)
        os.makedirs(category_dir, exist_ok=True)
        file_path = os.path.join(category_dir, f"{name}.py")
        content_hash = hashlib.sha256(content.encode("utf-8")).hexdigest()

        async with self._lock:
            backup = None
            if os.path.exists(file_path):
                with open(file_path, "r", encoding="utf-8") as f:
                    backup = f.read()
            with open(file_path, "w", encoding="utf-8") as f:
                f.write(content)

            descriptor = await self._load_locked(category, file_path, installed_by=installed_by)
            if descriptor is None:
                # Возвращаем файл в прежнее состояние
                if backup is None:
                    os.remove(file_path)
                else:
                    with open(file_path, "w", encoding="utf-8") as f:
                        f.write(backup)
                raise PluginValidationError(
                    f"Plugin '{name}' failed to load",
                    self.failures.get(os.path.abspath(file_path), [])
                )

        log_action(
            "PLUGIN_INSTALLED", actor=installed_by, level=logging.WARNING,
            name=name, category=category, sha256=content_hash
        )
        return descriptor, content_hash

    # --- Поиск ---

    def get(self, name: str) -> Optional[PluginDescriptor]:
        """Плагин, пригодный к выполнению: отключённые считаются отсутствующими"""
        descriptor = self._plugins.get(name.lower())
        return descriptor if descriptor and descriptor.enabled else None

    def get_by_alias(self, alias: str) -> Optional[PluginDescriptor]:
        name = self._aliases.get(alias.lower())
        return self.get(name) if name else None

    def find(self, name: str) -> Optional[PluginDescriptor]:
        """Поиск по имени или алиасу без учёта флага enabled"""
        name = name.lower()
        descriptor = self._plugins.get(name)
        if descriptor is None and name in self._aliases:
            descriptor = self._plugins.get(self._aliases[name])
        return descriptor

    def is_enabled(self, name: str) -> bool:
        descriptor = self.find(name)
        return bool(descriptor and descriptor.enabled)

    def get_all(self) -> List[PluginDescriptor]:
        return sorted(self._plugins.values(), key=lambda d: d.name)

    def get_by_category(self, category: str) -> List[PluginDescriptor]:
        return [d for d in self.get_all() if d.category == category]

    # --- Наблюдение за файлами ---

    def _category_of(self, path: str) -> Optional[str]:
        relative = os.path.relpath(path, self.plugins_dir)
        parts = relative.split(os.sep)
        if len(parts) != 2 or parts[0] not in self.categories:
            return None
        return parts[0]

    async def handle_file_change(self, path: str) -> Optional[PluginDescriptor]:
        path = os.path.abspath(path)
        category = self._category_of(path)
        if category is None or not os.path.exists(path):
            return None
        try:
            return await self.load(category, path)
        except Exception as e:
            logger.error(f"Ошибка горячей перезагрузки {path}: {str(e)}", exc_info=True)
            return None

    async def handle_file_removed(self, path: str) -> Optional[PluginDescriptor]:
        """Удаляет плагин из памяти. Строка каталога остаётся."""
        path = os.path.abspath(path)
        async with self._lock:
            name = self._by_path.get(path)
            if name is None:
                self.failures.pop(path, None)
                return None
            descriptor = self._unregister(name)
        logger.info(f"Файл плагина {name} удалён, плагин выгружен")
        return descriptor

    def start_watcher(self) -> None:
        """Запускает наблюдатель watchdog. Вызывается из работающего цикла asyncio."""
        if not self.config.hot_reload or self._observer is not None:
            return

        os.makedirs(self.plugins_dir, exist_ok=True)
        loop = asyncio.get_running_loop()
        self._handler = PluginFileHandler(self, loop, self.config.reload_debounce_seconds)
        self._observer = Observer()
        self._observer.schedule(self._handler, self.plugins_dir, recursive=True)
        self._observer.daemon = True
        self._observer.start()
        logger.info(f"Горячая перезагрузка включена для {self.plugins_dir}")

    def stop_watcher(self) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=5)
        if self._handler:
            self._handler.cancel_pending()
        self._observer = None
        self._handler = None
        logger.info("Наблюдение за плагинами остановлено")
