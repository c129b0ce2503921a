"""Tests for room selection config validation."""

from __future__ import annotations

import pytest

from huddle.domain.constraints import SelectionConfig, validate_selection_config


def valid_config(**overrides) -> SelectionConfig:
    """Return a valid baseline SelectionConfig, optionally overriding fields."""
    defaults = {
        "default_duration_minutes": 30,
        "max_duration_minutes": 240,
        "room_list_address": "rooms@test.example.com",
        "service_account": "huddle@test.example.com",
    }
    defaults.update(overrides)
    return SelectionConfig(**defaults)


def test_valid_config_passes() -> None:
    validate_selection_config(valid_config())


def test_max_duration_zero_raises() -> None:
    with pytest.raises(ValueError):
        validate_selection_config(valid_config(max_duration_minutes=0))


def test_multi_day_max_duration_raises() -> None:
    with pytest.raises(ValueError):
        validate_selection_config(valid_config(max_duration_minutes=24 * 60))


def test_default_above_max_raises() -> None:
    with pytest.raises(ValueError):
        validate_selection_config(valid_config(default_duration_minutes=300))


def test_default_zero_raises() -> None:
    with pytest.raises(ValueError):
        validate_selection_config(valid_config(default_duration_minutes=0))


@pytest.mark.parametrize("field", ["room_list_address", "service_account"])
def test_addresses_must_be_email(field: str) -> None:
    with pytest.raises(ValueError):
        validate_selection_config(valid_config(**{field: "not-an-address"}))


# --- Boundary values ---

def test_default_equal_to_max_passes() -> None:
    validate_selection_config(valid_config(default_duration_minutes=240))


def test_max_just_under_a_day_passes() -> None:
    validate_selection_config(
        valid_config(max_duration_minutes=24 * 60 - 1, default_duration_minutes=30)
    )
