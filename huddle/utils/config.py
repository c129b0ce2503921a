"""Environment-driven runtime settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional


PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


def _env_optional(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    log_level: str
    database_path: Path
    room_list_address: str
    service_account: str
    booking_subject: str
    default_duration_minutes: int
    max_duration_minutes: int
    api_token: Optional[str]
    synthetic_random_seed: int
    demo_event_count: int


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read settings once per process; tests call ``get_settings.cache_clear()``."""
    return Settings(
        app_name=_env_str("HUDDLE_APP_NAME", "Huddle Room Finder"),
        app_version=_env_str("HUDDLE_APP_VERSION", "1.0.0"),
        log_level=_env_str("HUDDLE_LOG_LEVEL", "INFO"),
        database_path=Path(
            _env_str("HUDDLE_DATABASE_PATH", str(PROJECT_ROOT / "data" / "huddle.db"))
        ),
        room_list_address=_env_str(
            "HUDDLE_ROOM_LIST_ADDRESS", "conference-rooms@huddle.example.com"
        ),
        service_account=_env_str("HUDDLE_SERVICE_ACCOUNT", "huddle@huddle.example.com"),
        booking_subject=_env_str("HUDDLE_BOOKING_SUBJECT", "Group Huddle"),
        default_duration_minutes=_env_int("HUDDLE_DEFAULT_DURATION_MINUTES", 30),
        max_duration_minutes=_env_int("HUDDLE_MAX_DURATION_MINUTES", 240),
        api_token=_env_optional("HUDDLE_API_TOKEN"),
        synthetic_random_seed=_env_int("HUDDLE_SYNTHETIC_RANDOM_SEED", 42),
        demo_event_count=_env_int("HUDDLE_DEMO_EVENT_COUNT", 6),
    )
