"""
lms_insights/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

DEFAULT_COUNTRY_MARKERS: tuple[str, ...] = (
    "United Kingdom",
    "United Arab Emirates",
    "United States",
    "China",
    "Ireland",
    "India",
    "Pakistan",
    "Nigeria",
    "Malaysia",
    "Hong Kong",
    "Singapore",
)


def load_env_files() -> None:
    """
    Load simple KEY=VALUE pairs from `.env` and `.env.local` (if present).
    Existing process environment variables are not overwritten.
    """

    project_root = Path(__file__).resolve().parents[1]
    for filename in (".env", ".env.local"):
        env_path = project_root / filename
        if not env_path.exists():
            continue

        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


@dataclass(frozen=True)
class DashboardSettings:
    """
    Source locations and row-error reporting for the dashboard dataset.
    """

    data_dir: str = "public"
    lms_filename: str = "data for cursor.csv"
    engagement_filename: str = "Storylane all.csv"
    max_validation_errors: int = 500
    log_validation_errors: bool = True
    log_level: str = "INFO"

    @property
    def lms_path(self) -> Path:
        return Path(self.data_dir) / self.lms_filename

    @property
    def engagement_path(self) -> Path:
        return Path(self.data_dir) / self.engagement_filename


@dataclass(frozen=True)
class EngagementParsingSettings:
    """
    Tokenizer constants for StoryLane exports.
    """

    min_fields: int = 8
    fallback_delimiters: tuple[str, ...] = (",", "\t", ";")
    country_markers: tuple[str, ...] = DEFAULT_COUNTRY_MARKERS


@lru_cache(maxsize=1)
def get_dashboard_settings() -> DashboardSettings:
    """
    Return cached dashboard settings from environment variables.
    """

    return DashboardSettings(
        data_dir=_get_str_env("DASHBOARD_DATA_DIR", "public"),
        lms_filename=_get_str_env("DASHBOARD_LMS_FILE", "data for cursor.csv"),
        engagement_filename=_get_str_env("DASHBOARD_ENGAGEMENT_FILE", "Storylane all.csv"),
        max_validation_errors=max(1, _get_int_env("DASHBOARD_MAX_VALIDATION_ERRORS", 500)),
        log_validation_errors=_get_bool_env("DASHBOARD_LOG_VALIDATION_ERRORS", True),
        log_level=_get_str_env("LOG_LEVEL", "INFO").upper(),
    )


@lru_cache(maxsize=1)
def get_engagement_parsing_settings() -> EngagementParsingSettings:
    """
    Return the StoryLane tokenizer settings.
    """

    return EngagementParsingSettings()
