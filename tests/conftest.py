from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional, Sequence

import pytest

from huddle.domain.models import (
    AttendeeAvailability,
    AttendeeReference,
    AvailabilityQueryOptions,
    AvailabilityResult,
    CalendarEvent,
    DirectoryEntry,
    ReservationRequest,
    TimeWindow,
)
from huddle.repository.calendar_repository import CalendarServiceError
from huddle.utils.config import get_settings


NOW = datetime(2026, 10, 19, 14, 0, tzinfo=timezone.utc)


class FakeCalendarGateway:
    """In-memory gateway that records every call made by the core."""

    def __init__(
        self,
        entries: Sequence[DirectoryEntry] = (),
        schedules: Optional[dict[str, list[CalendarEvent]]] = None,
        drop_results: int = 0,
        submit_error: Optional[str] = None,
    ) -> None:
        self.entries = list(entries)
        self.schedules = schedules or {}
        self.drop_results = drop_results
        self.submit_error = submit_error
        self.directory_calls: list[str] = []
        self.availability_calls: list[
            tuple[list[AttendeeReference], TimeWindow, AvailabilityQueryOptions]
        ] = []
        self.submitted: list[ReservationRequest] = []

    def list_directory_entries(self, group_address: str) -> list[DirectoryEntry]:
        self.directory_calls.append(group_address)
        return list(self.entries)

    def query_availability(self, attendees, window, options) -> AvailabilityResult:
        self.availability_calls.append((list(attendees), window, options))
        results = [
            AttendeeAvailability(
                address=attendee.address,
                events=tuple(self.schedules.get(attendee.address, ())),
            )
            for attendee in attendees
        ]
        if self.drop_results:
            results = results[: -self.drop_results]
        return AvailabilityResult(attendees=tuple(results))

    def submit_reservation(self, request: ReservationRequest) -> str:
        self.submitted.append(request)
        if self.submit_error is not None:
            raise CalendarServiceError(self.submit_error)
        return f"reservation-{len(self.submitted)}"


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_gateway():
    return FakeCalendarGateway


@pytest.fixture
def test_settings(tmp_path):
    get_settings.cache_clear()
    return replace(
        get_settings(),
        database_path=tmp_path / "huddle_test.db",
        room_list_address="rooms@test.example.com",
        service_account="huddle@test.example.com",
        default_duration_minutes=30,
        max_duration_minutes=240,
        api_token=None,
        synthetic_random_seed=7,
    )
