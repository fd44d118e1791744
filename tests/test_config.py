"""Tests for settings and logging configuration."""

import json
import logging

import pytest

from hera.config import Settings
from hera.logging_config import JsonFormatter, get_logging_config


def test_defaults_from_empty_environment():
    settings = Settings.from_env({})

    assert settings == Settings()
    assert settings.database_url is None
    assert settings.log_format == "console"
    assert settings.port == 8000


def test_settings_from_environment():
    settings = Settings.from_env(
        {
            "HERA_DATABASE_URL": "sqlite:////tmp/hera.db",
            "HERA_DEFAULT_ORGANIZATION_ID": "org-1",
            "HERA_LOG_LEVEL": "debug",
            "HERA_LOG_FORMAT": "JSON",
            "HERA_ECHO_SQL": "yes",
            "HERA_PORT": "9000",
        }
    )

    assert settings.database_url == "sqlite:////tmp/hera.db"
    assert settings.default_organization_id == "org-1"
    assert settings.log_level == "DEBUG"
    assert settings.log_format == "json"
    assert settings.echo_sql is True
    assert settings.port == 9000


@pytest.mark.parametrize("environ", [{"HERA_LOG_FORMAT": "xml"}, {"HERA_PORT": "eighty"}])
def test_invalid_settings(environ):
    with pytest.raises(ValueError):
        Settings.from_env(environ)


def test_logging_config_formats():
    console = get_logging_config("INFO", "console")
    json_config = get_logging_config("DEBUG", "json")

    assert "verbose" in console["formatters"]
    assert json_config["handlers"]["console"]["stream"] == "ext://sys.stdout"
    assert json_config["loggers"]["hera"]["level"] == "DEBUG"
    assert json_config["loggers"]["sqlalchemy.engine"]["level"] == "WARNING"


def test_json_formatter_includes_extras():
    record = logging.LogRecord("hera.test", logging.INFO, __file__, 1, "created %s", ("x",), None)
    record.entity_id = "e-1"

    entry = json.loads(JsonFormatter().format(record))

    assert entry["level"] == "INFO"
    assert entry["logger"] == "hera.test"
    assert entry["message"] == "created x"
    assert entry["extra"] == {"entity_id": "e-1"}
