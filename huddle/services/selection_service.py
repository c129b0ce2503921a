"""Room selection cycle: directory -> ranking -> free/busy -> booking."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

from huddle.domain.constraints import SelectionConfig, validate_selection_config
from huddle.domain.models import (
    AvailabilityResult,
    BookingReceipt,
    CandidateRoom,
    MalformedEntry,
)
from huddle.repository.calendar_repository import CalendarGateway, CalendarRepository
from huddle.services.availability_service import AvailabilityEvaluator
from huddle.services.booking_service import BookingCoordinator
from huddle.services.directory_service import build_candidate_rooms
from huddle.services.ranking_service import rank_rooms
from huddle.utils.config import Settings, get_settings
from huddle.utils.logger import get_logger


logger = get_logger(__name__)

Clock = Callable[[], datetime]


class SelectionError(Exception):
    """Base exception for room selection failures."""


class SelectionValidationError(SelectionError):
    """Raised when search or booking inputs are invalid."""


class NoRoomAvailableError(SelectionError):
    """Raised when every candidate room is busy."""


class RoomNotFoundError(SelectionError):
    """Raised when a requested room is not among the current candidates."""


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RoomSearchResult:
    rooms: list[CandidateRoom]
    malformed: list[MalformedEntry]
    skipped_count: int
    raw_availability: AvailabilityResult
    evaluated_at: datetime
    duration_minutes: int


def select_first_available(rooms: Sequence[CandidateRoom]) -> CandidateRoom:
    for room in rooms:
        if room.is_available:
            return room
    raise NoRoomAvailableError(f"None of the {len(rooms)} candidate rooms is free")


class RoomSelectionService:
    """Finds the closest free room to a preferred floor and books it."""

    def __init__(
        self,
        gateway: Optional[CalendarGateway] = None,
        settings: Optional[Settings] = None,
        clock: Clock = utc_now,
    ) -> None:
        self._settings = settings or get_settings()
        self._gateway = gateway or CalendarRepository(self._settings)
        self._clock = clock
        self._config = SelectionConfig(
            default_duration_minutes=self._settings.default_duration_minutes,
            max_duration_minutes=self._settings.max_duration_minutes,
            room_list_address=self._settings.room_list_address,
            service_account=self._settings.service_account,
        )
        validate_selection_config(self._config)
        self._evaluator = AvailabilityEvaluator(self._gateway)
        self._coordinator = BookingCoordinator(
            self._gateway,
            subject=self._settings.booking_subject,
        )

    @property
    def default_duration_minutes(self) -> int:
        return self._config.default_duration_minutes

    def _validate_inputs(self, preferred_floor: int, duration_minutes: int) -> None:
        if preferred_floor < 0:
            raise SelectionValidationError("preferred_floor must be >= 0")
        if not 0 < duration_minutes <= self._config.max_duration_minutes:
            raise SelectionValidationError(
                f"duration must be between 1 and {self._config.max_duration_minutes} minutes"
            )

    def _search(
        self,
        preferred_floor: int,
        duration_minutes: int,
        now: datetime,
    ) -> RoomSearchResult:
        entries = self._gateway.list_directory_entries(self._config.room_list_address)
        scan = build_candidate_rooms(entries)
        ranked = rank_rooms(scan.candidates, preferred_floor)
        evaluation = self._evaluator.evaluate(ranked, duration_minutes, now)
        return RoomSearchResult(
            rooms=evaluation.rooms,
            malformed=scan.malformed,
            skipped_count=len(scan.skipped),
            raw_availability=evaluation.raw_result,
            evaluated_at=evaluation.evaluated_at,
            duration_minutes=duration_minutes,
        )

    def find_rooms(self, *, preferred_floor: int, duration_minutes: int) -> RoomSearchResult:
        self._validate_inputs(preferred_floor, duration_minutes)
        return self._search(preferred_floor, duration_minutes, self._clock())

    def reserve_room(
        self,
        *,
        preferred_floor: int,
        duration_minutes: int,
        room_address: Optional[str] = None,
    ) -> BookingReceipt:
        self._validate_inputs(preferred_floor, duration_minutes)
        now = self._clock()
        search = self._search(preferred_floor, duration_minutes, now)

        if room_address is None:
            room = select_first_available(search.rooms)
        else:
            matches = [item for item in search.rooms if item.address == room_address]
            if not matches:
                raise RoomNotFoundError(f"Room {room_address} is not a bookable room")
            room = matches[0]

        logger.info(
            "Room selected | room=%s | floor=%s | preferred_floor=%s | available=%s",
            room.address,
            room.floor,
            preferred_floor,
            room.available.value,
        )
        return self._coordinator.book(
            room=room,
            duration_minutes=duration_minutes,
            organizer_address=self._config.service_account,
            now=search.evaluated_at,
        )
