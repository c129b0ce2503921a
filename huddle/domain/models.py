"""Domain models for room discovery, availability and booking."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Union


@dataclass(frozen=True)
class RoomMetadata:
    name: str
    floor: int
    max_people: int


@dataclass(frozen=True)
class AttendeeReference:
    """Calendar address used to invite a room as a participant."""

    address: str


class Availability(str, Enum):
    UNKNOWN = "unknown"
    FREE = "free"
    BUSY = "busy"


@dataclass
class CandidateRoom:
    """A bookable room for one selection cycle.

    Only ``available`` changes after construction; it is populated by the
    availability evaluator.
    """

    metadata: RoomMetadata
    attendee: AttendeeReference
    available: Availability = Availability.UNKNOWN

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def floor(self) -> int:
        return self.metadata.floor

    @property
    def max_people(self) -> int:
        return self.metadata.max_people

    @property
    def address(self) -> str:
        return self.attendee.address

    @property
    def is_available(self) -> bool:
        return self.available is Availability.FREE


@dataclass(frozen=True)
class TimeWindow:
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise ValueError("TimeWindow end must be after start")

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end


@dataclass(frozen=True)
class CalendarEvent:
    start_time: datetime
    end_time: datetime


@dataclass(frozen=True)
class AttendeeAvailability:
    address: str
    events: tuple[CalendarEvent, ...] = ()


@dataclass(frozen=True)
class AvailabilityResult:
    """Per-attendee schedules, in the order the attendees were queried."""

    attendees: tuple[AttendeeAvailability, ...]

    def __len__(self) -> int:
        return len(self.attendees)


@dataclass(frozen=True)
class AvailabilityQueryOptions:
    free_busy_only: bool = True
    max_suggestions_per_day: int = 0


@dataclass(frozen=True)
class DirectoryEntry:
    name: str
    address: str


class SendMode(str, Enum):
    SEND_TO_ALL_AND_SAVE_COPY = "send_to_all_and_save_copy"


@dataclass(frozen=True)
class ReservationRequest:
    subject: str
    body: str
    location: str
    start: datetime
    end: datetime
    required_attendees: tuple[str, ...]
    send_mode: SendMode = SendMode.SEND_TO_ALL_AND_SAVE_COPY


@dataclass(frozen=True)
class BookingReceipt:
    reservation_id: str
    room_address: str
    room_name: str
    floor: int
    start: datetime
    end: datetime
    duration_minutes: int
    required_attendees: tuple[str, ...]


@dataclass(frozen=True)
class SkippedEntry:
    """Directory label without room metadata, e.g. a distribution list."""

    raw_name: str


@dataclass(frozen=True)
class ParsedEntry:
    metadata: RoomMetadata


@dataclass(frozen=True)
class MalformedEntry:
    """Bracketed label whose metadata could not be decoded."""

    raw_name: str
    error: ValueError

    @property
    def reason(self) -> str:
        return str(self.error)


ParseOutcome = Union[SkippedEntry, ParsedEntry, MalformedEntry]
