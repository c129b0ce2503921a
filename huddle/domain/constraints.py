"""Domain-level validation rules for room selection."""

from __future__ import annotations

from dataclasses import dataclass

MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class SelectionConfig:
    default_duration_minutes: int
    max_duration_minutes: int
    room_list_address: str
    service_account: str


def validate_selection_config(config: SelectionConfig) -> None:
    if config.max_duration_minutes <= 0:
        raise ValueError("max_duration_minutes must be > 0")
    if config.max_duration_minutes >= MINUTES_PER_DAY:
        raise ValueError("max_duration_minutes must be shorter than one day")
    if not 0 < config.default_duration_minutes <= config.max_duration_minutes:
        raise ValueError("default_duration_minutes must be in (0, max_duration_minutes]")
    if "@" not in config.room_list_address:
        raise ValueError("room_list_address must be an email address")
    if "@" not in config.service_account:
        raise ValueError("service_account must be an email address")
