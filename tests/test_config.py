import json
import os

import pytest

from config import Config, DEFAULT_PROTECTED_PLUGINS
from conftest import REAL_OWNER


def test_config_from_dict(test_config):
    """Тест создания конфигурации из словаря"""
    assert test_config.real_owner == REAL_OWNER
    assert test_config.prefix == "."
    assert test_config.bot_name == "TestBot"
    assert test_config.default_cooldown_ms == 3000
    assert test_config.hot_reload is False
    assert test_config.logging.level == "DEBUG"
    assert test_config.logging.log_dir is None


def test_config_defaults():
    """Тест значений по умолчанию"""
    config = Config.from_dict({"real_owner": REAL_OWNER}, environ={})

    assert config.prefix == "."
    assert config.bot_name == "Vryzen"
    assert config.db_path == "data/bot.db"
    assert config.plugins_dir == "plugins"
    assert config.protected_plugins == DEFAULT_PROTECTED_PLUGINS
    assert config.notify_cooldown is False
    assert config.audit_cooldown_blocks is False
    assert config.default_warn_limit == 3
    assert config.default_warn_action == "kick"
    assert config.max_reconnect_attempts == 5
    assert config.logging.modules.plugins is True


@pytest.mark.parametrize("data", [
    {},  # Нет real_owner
    {"real_owner": "15551234567"},  # Не JID
    {"real_owner": REAL_OWNER, "prefix": ""},
    {"real_owner": REAL_OWNER, "prefix": "   "},
    {"real_owner": REAL_OWNER, "default_cooldown_ms": -1},
    {"real_owner": REAL_OWNER, "default_warn_limit": 0},
    {"real_owner": REAL_OWNER, "default_warn_action": "mute"},
    {"real_owner": REAL_OWNER, "max_reconnect_attempts": -1},
])
def test_config_validation(data):
    """Тест валидации конфигурации"""
    with pytest.raises(ValueError):
        Config.from_dict(data, environ={})


def test_config_env_overrides():
    """Переменные окружения имеют приоритет над файлом"""
    data = {"real_owner": REAL_OWNER, "prefix": "!", "logging": {"level": "info"}}
    config = Config.from_dict(data, environ={"LOG_LEVEL": "debug", "BOT_PREFIX": "#"})

    assert config.prefix == "#"
    assert config.logging.level == "DEBUG"


def test_config_logging_modules():
    data = {
        "real_owner": REAL_OWNER,
        "logging": {"modules": {"database": False, "audit": False}}
    }
    config = Config.from_dict(data, environ={})

    assert config.logging.modules.database is False
    assert config.logging.modules.audit is False
    assert config.logging.modules.bot is True


def test_config_from_json_file(tmp_path, monkeypatch):
    """Тест загрузки конфигурации из JSON файла"""
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("BOT_PREFIX", raising=False)

    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "real_owner": REAL_OWNER,
        "prefix": "/",
        "plugin_categories": ["admin", "user"],
        "protected_plugins": ["help"]
    }), encoding="utf-8")

    config = Config.from_json_file(str(path))
    assert config.prefix == "/"
    assert config.plugin_categories == ["admin", "user"]
    assert config.protected_plugins == ["help"]


def test_example_config_is_valid():
    """config.example.json из репозитория должен загружаться"""
    root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    with open(os.path.join(root, "config.example.json"), "r", encoding="utf-8") as f:
        data = json.load(f)

    config = Config.from_dict(data, environ={})
    assert config.real_owner.endswith("@s.whatsapp.net")
