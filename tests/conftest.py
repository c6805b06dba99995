import os
import shutil
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from config import Config
from cooldowns import CooldownTracker
from db.operations import init_db
from handlers.context import Services
from permissions import PermissionService
from plugin_manager import PluginManager
from scheduler import TaskScheduler
from transport.base import GroupMetadata, IncomingMessage, Participant, QuotedMessage, Transport
from test_db_utils import verify_db_state

REAL_OWNER = "10000000000@s.whatsapp.net"
ADMIN = "20000000000@s.whatsapp.net"
USER = "30000000000@s.whatsapp.net"
TARGET = "40000000000@s.whatsapp.net"
BOT_JID = "99999999999@s.whatsapp.net"
GROUP = "120363000000000000@g.us"

BUILTIN_PLUGINS_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "plugins")


def make_config_data(tmp_path, **overrides):
    data = {
        "real_owner": REAL_OWNER,
        "prefix": ".",
        "bot_name": "TestBot",
        "db_path": str(tmp_path / "test_bot.db"),
        "plugins_dir": str(tmp_path / "plugins"),
        "plugin_categories": ["admin", "owner", "user", "media"],
        "hot_reload": False,
        "reload_debounce_seconds": 0.05,
        "default_cooldown_ms": 3000,
        "max_reconnect_attempts": 3,
        "reconnect_delay_seconds": 0,
        "logging": {
            "enabled": True,
            "level": "DEBUG",
            "log_dir": None,
            "commands": True,
            "config": False
        }
    }
    data.update(overrides)
    return data


@pytest.fixture(scope="function")
def test_config(tmp_path):
    """Фикстура с тестовой конфигурацией и пустой папкой плагинов"""
    return Config.from_dict(make_config_data(tmp_path), environ={})


@pytest.fixture(scope="function")
def builtin_config(tmp_path):
    """Конфигурация с копией встроенных плагинов репозитория"""
    plugins_dir = tmp_path / "builtin_plugins"
    shutil.copytree(BUILTIN_PLUGINS_DIR, str(plugins_dir), ignore=shutil.ignore_patterns("__pycache__"))
    return Config.from_dict(
        make_config_data(tmp_path, plugins_dir=str(plugins_dir), plugin_categories=["admin", "owner", "user"]),
        environ={}
    )


@pytest_asyncio.fixture(scope="function")
async def test_db_path(tmp_path):
    """Фикстура создает путь к временной тестовой базе данных"""
    return str(tmp_path / "test_bot.db")


@pytest_asyncio.fixture(scope="function")
async def clean_db(test_db_path):
    """Инициализированная тестовая база с зарегистрированным Real Owner"""
    await init_db(test_db_path, REAL_OWNER)
    assert await verify_db_state(test_db_path), "Ошибка инициализации тестовой БД"
    yield test_db_path


@pytest.fixture(scope="function")
def group_metadata():
    return GroupMetadata(
        id=GROUP,
        subject="Test Group",
        description="Group for tests",
        participants=[
            Participant(id=ADMIN, is_admin=True),
            Participant(id=USER),
            Participant(id=TARGET),
            Participant(id=BOT_JID, is_admin=True),
        ]
    )


@pytest.fixture(scope="function")
def mock_transport(group_metadata):
    """Мок транспорта WhatsApp"""
    transport = AsyncMock(spec=Transport)
    transport.me = BOT_JID
    transport.group_metadata.return_value = group_metadata
    transport.send_text.return_value = "SENT_ID"
    transport.send_media.return_value = "SENT_ID"
    transport.download_media.return_value = b""
    return transport


def build_services(config, transport):
    return Services(
        config=config,
        db_path=config.db_path,
        transport=transport,
        permissions=PermissionService(config.real_owner, config.db_path, transport),
        plugins=PluginManager(config, config.db_path),
        cooldowns=CooldownTracker(),
        scheduler=TaskScheduler(config.db_path),
    )


@pytest_asyncio.fixture(scope="function")
async def services(test_config, mock_transport):
    await init_db(test_config.db_path, REAL_OWNER)
    services = build_services(test_config, mock_transport)
    yield services
    await services.scheduler.stop()
    services.cooldowns.clear()


@pytest_asyncio.fixture(scope="function")
async def builtin_services(builtin_config, mock_transport):
    """Сервисы с загруженными встроенными плагинами"""
    await init_db(builtin_config.db_path, REAL_OWNER)
    services = build_services(builtin_config, mock_transport)
    await services.plugins.load_all()
    yield services
    await services.scheduler.stop()
    services.cooldowns.clear()


@pytest.fixture(scope="function")
def make_message():
    """Фабрика входящих сообщений"""
    counter = {"value": 0}

    def _make(text, sender=USER, chat_id=GROUP, is_group=True, mentions=None, quoted=None, **kwargs):
        counter["value"] += 1
        return IncomingMessage(
            id=f"MSG{counter['value']}",
            chat_id=chat_id,
            sender=sender,
            text=text,
            is_group=is_group,
            mentions=list(mentions or []),
            quoted=quoted,
            **kwargs
        )

    return _make


@pytest.fixture(scope="function")
def quoted_from():
    def _make(sender, text="", media_type=None):
        return QuotedMessage(id="QUOTED1", sender=sender, text=text, media_type=media_type)
    return _make
