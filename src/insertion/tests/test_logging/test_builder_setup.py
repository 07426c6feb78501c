# src/insertion/tests/test_logging/test_builder_setup.py
import logging

import pytest

from insertion.config import get_settings
from insertion.core.logging.builder import make_dict_config, setup_logging
from insertion.core.logging.filters import OperationIdFilter


# Minimal Settings-like object: the builder only reads attributes
class DummySettings:
    LOG_FORMAT = "json"
    LOG_LEVEL = "INFO"
    LOG_TO_STDOUT = False
    LOG_DIR = None  # set per test
    LOG_MAX_BYTES = 1000
    LOG_BACKUP_COUNT = 1
    ENV = "testing"
    ENABLE_SQL_LOGGING = False


@pytest.fixture
def restore_logging():
    yield
    # put back the session-wide configuration installed by conftest
    setup_logging(get_settings())


def test_make_dict_config_uses_files_when_not_stdout(tmp_path):
    settings = DummySettings()
    settings.LOG_DIR = tmp_path
    cfg = make_dict_config(settings)

    assert "console" in cfg["handlers"]
    assert "file" in cfg["handlers"]
    assert "error_file" in cfg["handlers"]
    assert "error_console" not in cfg["handlers"]
    assert cfg["handlers"]["file"]["filename"].endswith("insertion.log")
    assert cfg["handlers"]["error_file"]["filename"].endswith("errors.log")
    assert "json" in cfg["formatters"]
    assert set(cfg["filters"]) == {"operation_id", "redact"}


def test_make_dict_config_stdout_only(tmp_path):
    settings = DummySettings()
    settings.LOG_DIR = tmp_path
    settings.LOG_TO_STDOUT = True
    cfg = make_dict_config(settings)

    assert "file" not in cfg["handlers"]
    assert "error_console" in cfg["handlers"]
    assert cfg["loggers"][""]["handlers"] == ["console", "error_console"]


def test_make_dict_config_sql_logging_toggle(tmp_path):
    settings = DummySettings()
    settings.LOG_DIR = tmp_path
    assert cfg_level(make_dict_config(settings)) == "WARNING"

    settings.ENABLE_SQL_LOGGING = True
    assert cfg_level(make_dict_config(settings)) == "DEBUG"


def cfg_level(cfg: dict) -> str:
    return cfg["loggers"]["sqlalchemy.engine"]["level"]


def test_setup_logging_creates_log_dir(tmp_path, restore_logging):
    settings = DummySettings()
    settings.LOG_DIR = tmp_path / "logs"
    assert not settings.LOG_DIR.exists()

    setup_logging(settings)

    assert settings.LOG_DIR.exists()
    root = logging.getLogger()
    assert root.handlers
    assert any(isinstance(f, OperationIdFilter) for f in root.filters)
