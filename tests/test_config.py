"""Tests for config loading."""

import os
import tempfile

from shelflife.config import AppConfig, DEFAULT_DB_PATH, load_config
from shelflife.dates import DateNormalizer


def _write_toml(content: bytes) -> str:
    with tempfile.NamedTemporaryFile(suffix=".toml", delete=False) as f:
        f.write(content)
        f.flush()
        return f.name


def test_load_config_defaults(monkeypatch):
    """Loading with no path returns all defaults."""
    monkeypatch.delenv("SHELFLIFE_DB", raising=False)
    config = load_config()
    assert isinstance(config, AppConfig)
    assert config.expiry.soon_days == 3
    assert config.expiry.filter_days == 7
    assert config.expiry.recipe_days == 3
    assert config.expiry.ambiguous_order == "heuristic"
    assert config.expiry.labelled_order is None
    assert config.notifications.reminder_days == 3
    assert config.notifications.expired_alerts is True
    assert config.vision.backend == "gemini"
    assert config.database.path == DEFAULT_DB_PATH
    assert config.scheduler.check_schedule == "0 8 * * *"
    assert config.scheduler.days_ahead == 1


def test_load_config_nonexistent_file():
    """Loading a nonexistent file returns defaults."""
    config = load_config("/nonexistent/path.toml")
    assert config.expiry.soon_days == 3


def test_load_config_from_toml():
    """Loading a valid TOML file populates config."""
    path = _write_toml(b"""\
[expiry]
soon_days = 2
filter_days = 10
ambiguous_order = "dmy"
labelled_order = "dmy"

[notifications]
reminder_days = 5
recipe_suggestions = false

[vision]
backend = "claude"

[vision.claude]
api_key = "test-key-123"
model = "claude-test"

[database]
path = "/var/lib/shelflife.db"

[scheduler]
check_schedule = "30 6 * * *"
days_ahead = 2
""")
    try:
        config = load_config(path)
    finally:
        os.unlink(path)

    assert config.expiry.soon_days == 2
    assert config.expiry.filter_days == 10
    assert config.expiry.recipe_days == 3
    assert config.notifications.reminder_days == 5
    assert config.notifications.recipe_suggestions is False
    assert config.notifications.expiring_alerts is True
    assert config.vision.backend == "claude"
    assert config.vision.claude.api_key == "test-key-123"
    assert config.vision.claude.model == "claude-test"
    assert config.scheduler.check_schedule == "30 6 * * *"
    assert config.scheduler.refresh_schedule == "0 7 * * *"
    assert config.scheduler.days_ahead == 2


def test_expiry_config_builds_normalizer():
    path = _write_toml(b'[expiry]\nambiguous_order = "dmy"\n')
    try:
        config = load_config(path)
    finally:
        os.unlink(path)
    normalizer = config.expiry.normalizer()
    assert normalizer == DateNormalizer(ambiguous_order="dmy")
    assert normalizer.normalize("03/09/25") == "2025-09-03"


def test_load_config_env_override(monkeypatch):
    """Environment variables override empty API keys."""
    monkeypatch.setenv("ANTHROPIC_API_KEY", "env-anthropic-key")
    monkeypatch.setenv("GEMINI_API_KEY", "env-gemini-key")
    monkeypatch.setenv("SHELFLIFE_DB", "/tmp/env.db")

    config = load_config()
    assert config.vision.claude.api_key == "env-anthropic-key"
    assert config.vision.gemini.api_key == "env-gemini-key"
    assert config.database.path == "/tmp/env.db"


def test_load_config_file_key_takes_precedence(monkeypatch):
    """Config file API key takes precedence over env var."""
    monkeypatch.setenv("GEMINI_API_KEY", "env-key")
    path = _write_toml(b'[vision.gemini]\napi_key = "file-key"\n')
    try:
        config = load_config(path)
    finally:
        os.unlink(path)
    assert config.vision.gemini.api_key == "file-key"
