import logging

import pytest

from space_ledger.core.config import Settings, get_settings
from space_ledger.core.logging import configure_logging, reset_logging


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    reset_logging()


def test_defaults(monkeypatch):
    monkeypatch.delenv("DATABASE__URL", raising=False)
    settings = Settings(_env_file=None)

    assert settings.database_url.startswith("sqlite+aiosqlite://")
    assert settings.enforce_freeze is True
    assert settings.ledger.main_space_name == "Main"
    assert settings.log_level == "INFO"


def test_nested_sections_read_from_environment(monkeypatch):
    monkeypatch.setenv("DATABASE__URL", "sqlite+aiosqlite:///./other.db")
    monkeypatch.setenv("LEDGER__ENFORCE_FREEZE", "false")
    monkeypatch.setenv("LEDGER__MAIN_SPACE_NAME", "Everyday")
    monkeypatch.setenv("LOGGING__LEVEL", "WARNING")

    settings = get_settings()

    assert settings.database_url == "sqlite+aiosqlite:///./other.db"
    assert settings.enforce_freeze is False
    assert settings.ledger.main_space_name == "Everyday"
    assert settings.log_level == "WARNING"


def test_debug_forces_debug_logging(monkeypatch):
    monkeypatch.setenv("DEBUG", "true")

    assert Settings(_env_file=None).log_level == "DEBUG"


def test_configure_logging_is_idempotent():
    settings = Settings(_env_file=None)

    logger = configure_logging(settings)
    configure_logging(settings)

    named = [h for h in logger.handlers if h.get_name() == "space_ledger-stream"]
    assert len(named) == 1
    assert logger.level == logging.INFO
