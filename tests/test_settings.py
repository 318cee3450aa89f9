"""Tests for YAML-backed settings and logging setup."""

import json

import pytest
from loguru import logger

from idscheck.exceptions import ConfigurationError
from idscheck.logging_config import JSONFormatter, setup_logging, specification_context
from idscheck.settings import CONFIG_ENV_VAR, Settings, get_settings


def test_defaults_when_default_file_missing(monkeypatch, tmp_path):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    monkeypatch.chdir(tmp_path)
    settings = Settings.load()
    assert settings.logging.level == "INFO"
    assert settings.engine.max_concurrency == 32
    assert settings.engine.failure_detail_limit is None


def test_load_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "logging:\n  level: debug\n  json_format: true\nengine:\n  max_concurrency: 4\n  failure_detail_limit: 10\n",
        encoding="utf-8",
    )
    settings = Settings.load(path)
    assert settings.logging.level == "DEBUG"
    assert settings.logging.json_format is True
    assert settings.engine.max_concurrency == 4
    assert settings.engine.failure_detail_limit == 10


def test_env_var_selects_file(monkeypatch, tmp_path):
    path = tmp_path / "env.yaml"
    path.write_text("engine:\n  max_concurrency: 7\n", encoding="utf-8")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
    assert Settings.load().engine.max_concurrency == 7


@pytest.mark.parametrize(
    "content",
    [
        "engine:\n  max_concurrency: 0\n",
        "logging:\n  level: LOUD\n",
        "- just\n- a list\n",
        "engine: [unclosed\n",
    ],
)
def test_invalid_configuration(tmp_path, content):
    path = tmp_path / "bad.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigurationError):
        Settings.load(path)


def test_missing_explicit_file(tmp_path):
    with pytest.raises(ConfigurationError):
        Settings.load(tmp_path / "nope.yaml")


def test_get_settings_is_cached(tmp_path):
    path = tmp_path / "cached.yaml"
    path.write_text("engine:\n  max_concurrency: 3\n", encoding="utf-8")
    get_settings.cache_clear()
    try:
        assert get_settings(str(path)) is get_settings(str(path))
    finally:
        get_settings.cache_clear()


def test_json_log_file(tmp_path):
    log_file = tmp_path / "logs" / "idscheck.log"
    setup_logging(level="INFO", json_format=True, log_file=log_file)
    try:
        logger.info("Checked {} specifications", 3)
        with specification_context("Walls have a fire rating"):
            logger.bind(entity=12).warning("Missing value")
    finally:
        logger.remove()
    first, second = [json.loads(line) for line in log_file.read_text(encoding="utf-8").strip().splitlines()[-2:]]
    assert first["level"] == "INFO"
    assert first["message"] == "Checked 3 specifications"
    assert first["specification"] == "-"
    assert second["specification"] == "Walls have a fire rating"
    assert second["context"] == {"entity": "12"}


def test_text_log_names_the_specification(tmp_path):
    log_file = tmp_path / "idscheck.log"
    setup_logging(level="DEBUG", log_file=log_file)
    try:
        with specification_context("Slabs in storeys"):
            logger.debug("Collecting")
    finally:
        logger.remove()
    assert "| Slabs in storeys |" in log_file.read_text(encoding="utf-8")


def test_json_formatter_escapes_braces():
    formatter = JSONFormatter()

    class _Level:
        name = "INFO"

    class _Time:
        def isoformat(self):
            return "2024-01-01T00:00:00"

    rendered = formatter({"time": _Time(), "level": _Level(), "message": "{x}", "extra": {}})
    assert "{{" in rendered
    assert rendered.endswith("\n")
