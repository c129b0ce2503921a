from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import pytest

from huddle.domain.models import (
    Availability,
    AttendeeReference,
    CalendarEvent,
    CandidateRoom,
    RoomMetadata,
)
from huddle.services.availability_service import (
    AvailabilityCorrelationError,
    AvailabilityEvaluator,
    build_look_ahead_window,
    build_query_window,
    is_free,
)


def _room(name: str, floor: int = 3, max_people: int = 6) -> CandidateRoom:
    return CandidateRoom(
        metadata=RoomMetadata(name=name, floor=floor, max_people=max_people),
        attendee=AttendeeReference(address=f"{name.lower()}@test.example.com"),
    )


def _event(now: datetime, start_offset: timedelta, end_offset: timedelta) -> CalendarEvent:
    return CalendarEvent(start_time=now + start_offset, end_time=now + end_offset)


def test_query_window_spans_the_utc_day(now) -> None:
    window = build_query_window(now, duration_minutes=30)

    assert window.start == datetime(2026, 10, 19, tzinfo=timezone.utc)
    assert window.end == datetime(2026, 10, 20, tzinfo=timezone.utc)
    assert window.duration == timedelta(days=1)


def test_query_window_extends_when_look_ahead_crosses_midnight() -> None:
    late = datetime(2026, 10, 19, 23, 30, tzinfo=timezone.utc)

    window = build_query_window(late, duration_minutes=60)

    assert window.start == datetime(2026, 10, 19, tzinfo=timezone.utc)
    assert window.end == datetime(2026, 10, 21, tzinfo=timezone.utc)


def test_query_window_normalises_other_timezones() -> None:
    pacific = timezone(timedelta(hours=-7))
    local_evening = datetime(2026, 10, 19, 20, 0, tzinfo=pacific)

    window = build_query_window(local_evening)

    assert window.start == datetime(2026, 10, 20, tzinfo=timezone.utc)


def test_room_without_events_is_free(now) -> None:
    for minutes in (1, 30, 239):
        assert is_free([], build_look_ahead_window(now, minutes))


def test_ongoing_event_blocks_any_duration(now) -> None:
    events = [_event(now, timedelta(minutes=-10), timedelta(minutes=10))]

    for minutes in (1, 5, 60):
        assert not is_free(events, build_look_ahead_window(now, minutes))


def test_event_starting_at_window_end_does_not_block(now) -> None:
    duration = 30
    events = [_event(now, timedelta(minutes=duration), timedelta(minutes=duration + 30))]

    assert is_free(events, build_look_ahead_window(now, duration))


def test_event_starting_just_before_window_end_blocks(now) -> None:
    duration = 30
    events = [
        _event(
            now,
            timedelta(minutes=duration) - timedelta(seconds=1),
            timedelta(minutes=duration + 30),
        )
    ]

    assert not is_free(events, build_look_ahead_window(now, duration))


def test_event_starting_exactly_now_blocks(now) -> None:
    events = [_event(now, timedelta(0), timedelta(minutes=30))]

    assert not is_free(events, build_look_ahead_window(now, 30))
    assert not is_free(events, build_look_ahead_window(now, 1))


def test_event_ending_exactly_now_does_not_block(now) -> None:
    events = [_event(now, timedelta(minutes=-30), timedelta(0))]

    assert is_free(events, build_look_ahead_window(now, 30))


def test_event_later_in_the_day_does_not_block(now) -> None:
    events = [_event(now, timedelta(hours=2), timedelta(hours=3))]

    assert is_free(events, build_look_ahead_window(now, 30))


def test_evaluate_marks_rooms_and_preserves_order(now, make_gateway) -> None:
    rooms = [_room("Alpha"), _room("Bravo"), _room("Charlie")]
    gateway = make_gateway(
        schedules={
            "alpha@test.example.com": [
                _event(now, timedelta(minutes=-5), timedelta(minutes=25))
            ],
            "charlie@test.example.com": [
                _event(now, timedelta(hours=4), timedelta(hours=5))
            ],
        }
    )

    evaluation = AvailabilityEvaluator(gateway).evaluate(rooms, 30, now)

    assert [room.name for room in evaluation.rooms] == ["Alpha", "Bravo", "Charlie"]
    assert [room.available for room in evaluation.rooms] == [
        Availability.BUSY,
        Availability.FREE,
        Availability.FREE,
    ]
    assert len(evaluation.raw_result) == 3
    assert evaluation.evaluated_at == now


def test_evaluate_submits_attendees_in_ranked_order_free_busy_only(now, make_gateway) -> None:
    rooms = [_room("Charlie"), _room("Alpha"), _room("Bravo")]
    gateway = make_gateway()

    AvailabilityEvaluator(gateway).evaluate(rooms, 15, now)

    assert len(gateway.availability_calls) == 1
    attendees, window, options = gateway.availability_calls[0]
    assert [attendee.address for attendee in attendees] == [
        "charlie@test.example.com",
        "alpha@test.example.com",
        "bravo@test.example.com",
    ]
    assert window == build_query_window(now, 15)
    assert options.free_busy_only is True
    assert options.max_suggestions_per_day == 0


def test_result_count_mismatch_is_fatal(now, make_gateway) -> None:
    rooms = [_room("Alpha"), _room("Bravo")]
    gateway = make_gateway(drop_results=1)

    with pytest.raises(AvailabilityCorrelationError, match=r"\(2\).*\(1\)"):
        AvailabilityEvaluator(gateway).evaluate(rooms, 30, now)

    assert all(room.available is Availability.UNKNOWN for room in rooms)


def test_rooms_sharing_an_address_share_one_schedule(now, make_gateway, caplog) -> None:
    first = _room("Alpha")
    second = CandidateRoom(
        metadata=RoomMetadata(name="Alpha Annex", floor=4, max_people=2),
        attendee=AttendeeReference(address="alpha@test.example.com"),
    )
    gateway = make_gateway(
        schedules={
            "alpha@test.example.com": [
                _event(now, timedelta(minutes=-5), timedelta(minutes=25))
            ],
        }
    )

    with caplog.at_level(logging.WARNING, logger="huddle.services.availability_service"):
        evaluation = AvailabilityEvaluator(gateway).evaluate([first, second], 30, now)

    assert [room.available for room in evaluation.rooms] == [
        Availability.BUSY,
        Availability.BUSY,
    ]
    assert "Duplicate room addresses" in caplog.text


def test_evaluate_without_rooms_skips_the_query(now, make_gateway) -> None:
    gateway = make_gateway()

    evaluation = AvailabilityEvaluator(gateway).evaluate([], 30, now)

    assert evaluation.rooms == []
    assert gateway.availability_calls == []
