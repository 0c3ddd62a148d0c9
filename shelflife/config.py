"""TOML configuration loader."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None  # type: ignore[assignment]

from .dates import DateNormalizer
from .expiry import EXPIRING_SOON_DAYS, FILTER_EXPIRING_DAYS, RECIPE_EXPIRING_DAYS
from .store import NotificationSettings

DEFAULT_DB_PATH = "~/.config/shelflife/shelflife.db"


@dataclass
class ExpiryConfig:
    soon_days: int = EXPIRING_SOON_DAYS
    filter_days: int = FILTER_EXPIRING_DAYS
    recipe_days: int = RECIPE_EXPIRING_DAYS
    ambiguous_order: str = "heuristic"
    labelled_order: str | None = None

    def normalizer(self) -> DateNormalizer:
        return DateNormalizer(
            ambiguous_order=self.ambiguous_order,
            labelled_order=self.labelled_order,
        )


@dataclass
class GeminiVisionConfig:
    api_key: str = ""
    model: str = "gemini-2.0-flash"


@dataclass
class ClaudeVisionConfig:
    api_key: str = ""
    model: str = "claude-sonnet-4-5-20250929"


@dataclass
class VisionConfig:
    backend: str = "gemini"
    gemini: GeminiVisionConfig = field(default_factory=GeminiVisionConfig)
    claude: ClaudeVisionConfig = field(default_factory=ClaudeVisionConfig)


@dataclass
class DatabaseConfig:
    path: str = DEFAULT_DB_PATH


@dataclass
class SchedulerConfig:
    check_schedule: str = "0 8 * * *"
    refresh_schedule: str = "0 7 * * *"
    days_ahead: int = 1


@dataclass
class AppConfig:
    expiry: ExpiryConfig = field(default_factory=ExpiryConfig)
    notifications: NotificationSettings = field(default_factory=NotificationSettings)
    vision: VisionConfig = field(default_factory=VisionConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    API keys can be overridden via environment variables.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path)
        if p.exists():
            if tomllib is None:
                raise ImportError(
                    "tomli is required on Python < 3.11: pip install tomli"
                )
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    exp = raw.get("expiry", {})
    ntf = raw.get("notifications", {})
    vis = raw.get("vision", {})
    dbs = raw.get("database", {})
    sch = raw.get("scheduler", {})

    gemini_cfg = vis.get("gemini", {})
    claude_cfg = vis.get("claude", {})

    # Resolve API keys: config file → environment variable
    gemini_api_key = gemini_cfg.get("api_key", "") or os.environ.get(
        "GEMINI_API_KEY", ""
    )
    claude_api_key = claude_cfg.get("api_key", "") or os.environ.get(
        "ANTHROPIC_API_KEY", ""
    )

    defaults = NotificationSettings()

    return AppConfig(
        expiry=ExpiryConfig(
            soon_days=exp.get("soon_days", EXPIRING_SOON_DAYS),
            filter_days=exp.get("filter_days", FILTER_EXPIRING_DAYS),
            recipe_days=exp.get("recipe_days", RECIPE_EXPIRING_DAYS),
            ambiguous_order=exp.get("ambiguous_order", "heuristic"),
            labelled_order=exp.get("labelled_order"),
        ),
        notifications=NotificationSettings(
            expiring_alerts=ntf.get("expiring_alerts", defaults.expiring_alerts),
            expired_alerts=ntf.get("expired_alerts", defaults.expired_alerts),
            recipe_suggestions=ntf.get("recipe_suggestions", defaults.recipe_suggestions),
            reminder_days=ntf.get("reminder_days", defaults.reminder_days),
        ),
        vision=VisionConfig(
            backend=vis.get("backend", "gemini"),
            gemini=GeminiVisionConfig(
                api_key=gemini_api_key,
                model=gemini_cfg.get("model", "gemini-2.0-flash"),
            ),
            claude=ClaudeVisionConfig(
                api_key=claude_api_key,
                model=claude_cfg.get("model", "claude-sonnet-4-5-20250929"),
            ),
        ),
        database=DatabaseConfig(
            path=os.environ.get("SHELFLIFE_DB") or dbs.get("path", DEFAULT_DB_PATH),
        ),
        scheduler=SchedulerConfig(
            check_schedule=sch.get("check_schedule", "0 8 * * *"),
            refresh_schedule=sch.get("refresh_schedule", "0 7 * * *"),
            days_ahead=sch.get("days_ahead", 1),
        ),
    )
