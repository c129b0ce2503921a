"""Free/busy evaluation of ranked candidate rooms."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from typing import Sequence

from huddle.domain.models import (
    Availability,
    AvailabilityQueryOptions,
    AvailabilityResult,
    AttendeeReference,
    CalendarEvent,
    CandidateRoom,
    TimeWindow,
)
from huddle.repository.calendar_repository import CalendarGateway
from huddle.utils.logger import get_logger


logger = get_logger(__name__)

FREE_BUSY_OPTIONS = AvailabilityQueryOptions(free_busy_only=True, max_suggestions_per_day=0)


class AvailabilityCorrelationError(Exception):
    """Raised when free/busy results cannot be matched back to the queried rooms."""


@dataclass(frozen=True)
class AvailabilityEvaluation:
    rooms: list[CandidateRoom]
    raw_result: AvailabilityResult
    query_window: TimeWindow
    look_ahead: TimeWindow
    evaluated_at: datetime


def as_utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def build_look_ahead_window(now: datetime, duration_minutes: int) -> TimeWindow:
    now = as_utc(now)
    return TimeWindow(start=now, end=now + timedelta(minutes=duration_minutes))


def build_query_window(now: datetime, duration_minutes: int = 0) -> TimeWindow:
    """Whole UTC days starting today; free/busy lookups are day-granular."""
    now = as_utc(now)
    start = datetime.combine(now.date(), time.min, tzinfo=timezone.utc)
    end = start + timedelta(days=1)
    look_ahead_end = now + timedelta(minutes=duration_minutes)
    while end < look_ahead_end:
        end += timedelta(days=1)
    return TimeWindow(start=start, end=end)


def event_overlaps(event: CalendarEvent, look_ahead: TimeWindow) -> bool:
    """Half-open overlap of an event with ``[now, now + duration)``.

    Running events and events starting before the window closes conflict; an
    event ending exactly at ``now`` or starting exactly at the window end does
    not.
    """
    return (
        as_utc(event.start_time) < look_ahead.end
        and as_utc(event.end_time) > look_ahead.start
    )


def is_free(events: Sequence[CalendarEvent], look_ahead: TimeWindow) -> bool:
    return not any(event_overlaps(event, look_ahead) for event in events)


def pair_results(
    attendees: Sequence[AttendeeReference],
    result: AvailabilityResult,
) -> dict[str, tuple[CalendarEvent, ...]]:
    """Key each schedule by the attendee it was requested for."""
    if len(attendees) != len(result):
        raise AvailabilityCorrelationError(
            f"The number of queried rooms ({len(attendees)}) did not match "
            f"the number of availabilities ({len(result)})."
        )
    schedules = {
        attendee.address: schedule.events
        for attendee, schedule in zip(attendees, result.attendees)
    }
    if len(schedules) < len(attendees):
        # Rooms sharing a mailbox share one calendar; the last schedule wins.
        logger.warning(
            "Duplicate room addresses in free/busy query | rooms=%s | unique_addresses=%s",
            len(attendees),
            len(schedules),
        )
    return schedules


class AvailabilityEvaluator:
    """Marks each candidate room free or busy for the requested duration."""

    def __init__(self, gateway: CalendarGateway) -> None:
        self._gateway = gateway

    def evaluate(
        self,
        rooms: Sequence[CandidateRoom],
        duration_minutes: int,
        now: datetime,
    ) -> AvailabilityEvaluation:
        now = as_utc(now)
        ordered = list(rooms)
        query_window = build_query_window(now, duration_minutes)
        look_ahead = build_look_ahead_window(now, duration_minutes)

        if not ordered:
            return AvailabilityEvaluation(
                rooms=ordered,
                raw_result=AvailabilityResult(attendees=()),
                query_window=query_window,
                look_ahead=look_ahead,
                evaluated_at=now,
            )

        attendees = [room.attendee for room in ordered]
        result = self._gateway.query_availability(attendees, query_window, FREE_BUSY_OPTIONS)
        try:
            schedules = pair_results(attendees, result)
        except AvailabilityCorrelationError:
            logger.error(
                "Free/busy result count mismatch | rooms=%s | results=%s",
                len(attendees),
                len(result),
            )
            raise

        for room in ordered:
            events = schedules[room.address]
            room.available = (
                Availability.FREE if is_free(events, look_ahead) else Availability.BUSY
            )

        logger.info(
            "Availability evaluated | rooms=%s | free=%s | duration_minutes=%s | now=%s",
            len(ordered),
            sum(1 for room in ordered if room.is_available),
            duration_minutes,
            now.isoformat(),
        )
        return AvailabilityEvaluation(
            rooms=ordered,
            raw_result=result,
            query_window=query_window,
            look_ahead=look_ahead,
            evaluated_at=now,
        )
