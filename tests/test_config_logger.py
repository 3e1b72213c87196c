import json
import logging
from pathlib import Path

import pytest

from forestwatch.config import DEFAULT_MODEL, Settings
from forestwatch.logger import setup_logging, write_analysis_event


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("GEMINI_API_KEY", "API_KEY", "FORESTWATCH_MODEL",
                 "FORESTWATCH_LOG_DIR", "FORESTWATCH_KIOSK"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_settings_defaults(clean_env):
    s = Settings.from_env()
    assert s.api_key is None
    assert s.model == DEFAULT_MODEL
    assert s.log_dir == Path("logs")
    assert s.kiosk is False


def test_settings_prefers_gemini_key(clean_env):
    clean_env.setenv("API_KEY", "fallback")
    assert Settings.from_env().api_key == "fallback"
    clean_env.setenv("GEMINI_API_KEY", "primary")
    assert Settings.from_env().api_key == "primary"


def test_settings_overrides(clean_env, tmp_path):
    clean_env.setenv("FORESTWATCH_MODEL", "other-model")
    clean_env.setenv("FORESTWATCH_LOG_DIR", str(tmp_path))
    clean_env.setenv("FORESTWATCH_KIOSK", "1")
    s = Settings.from_env()
    assert (s.model, s.log_dir, s.kiosk) == ("other-model", tmp_path, True)


def test_empty_key_is_missing(clean_env):
    clean_env.setenv("GEMINI_API_KEY", "")
    assert Settings.from_env().api_key is None


def test_setup_logging_creates_dir(tmp_path):
    log_dir = tmp_path / "nested" / "logs"
    logfile = setup_logging(Settings(log_dir=log_dir))
    assert logfile == log_dir / "forestwatch.log"
    assert log_dir.is_dir()
    assert logging.getLogger("httpx").level == logging.WARNING


def test_write_analysis_event(tmp_path):
    path = write_analysis_event({"operation": "waste", "status": "failed", "error": "x"}, tmp_path)
    assert path.parent == tmp_path
    assert path.name.startswith("analysis_waste_") and path.suffix == ".json"
    assert json.loads(path.read_text()) == {"operation": "waste", "status": "failed", "error": "x"}
