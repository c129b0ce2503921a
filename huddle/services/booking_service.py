"""Reservation submission for a chosen room."""

from __future__ import annotations

from datetime import datetime, timedelta

from huddle.domain.models import BookingReceipt, CandidateRoom, ReservationRequest, SendMode
from huddle.repository.calendar_repository import CalendarGateway, CalendarServiceError
from huddle.services.availability_service import as_utc
from huddle.utils.logger import get_logger


logger = get_logger(__name__)

DEFAULT_SUBJECT = "Group Huddle"


class BookingFailedError(Exception):
    """Raised when the calendar service does not accept a reservation."""

    def __init__(self, room_address: str, start: datetime, end: datetime, detail: str) -> None:
        super().__init__(
            f"Booking {room_address} from {start.isoformat()} to {end.isoformat()} failed: {detail}"
        )
        self.room_address = room_address
        self.start = start
        self.end = end
        self.detail = detail


def build_reservation(
    room: CandidateRoom,
    duration_minutes: int,
    organizer_address: str,
    now: datetime,
    subject: str = DEFAULT_SUBJECT,
) -> ReservationRequest:
    start = as_utc(now).astimezone()
    return ReservationRequest(
        subject=subject,
        body=(
            f"I have scheduled '{room.name}' for you on floor {room.floor} "
            f"for the next {duration_minutes} minutes"
        ),
        location=f"{room.name} on Floor {room.floor}",
        start=start,
        end=start + timedelta(minutes=duration_minutes),
        required_attendees=(room.address, organizer_address),
        send_mode=SendMode.SEND_TO_ALL_AND_SAVE_COPY,
    )


class BookingCoordinator:
    """Books a room immediately for the requested duration.

    Availability is not checked again here; a concurrent caller can take the
    room between evaluation and booking.
    """

    def __init__(self, gateway: CalendarGateway, subject: str = DEFAULT_SUBJECT) -> None:
        self._gateway = gateway
        self._subject = subject

    def book(
        self,
        room: CandidateRoom,
        duration_minutes: int,
        organizer_address: str,
        now: datetime,
    ) -> BookingReceipt:
        request = build_reservation(
            room=room,
            duration_minutes=duration_minutes,
            organizer_address=organizer_address,
            now=now,
            subject=self._subject,
        )
        try:
            reservation_id = self._gateway.submit_reservation(request)
        except CalendarServiceError as exc:
            logger.error(
                "Booking rejected | room=%s | start=%s | end=%s | error=%s",
                room.address,
                request.start.isoformat(),
                request.end.isoformat(),
                exc,
            )
            raise BookingFailedError(
                room_address=room.address,
                start=request.start,
                end=request.end,
                detail=str(exc),
            ) from exc

        logger.info(
            "Room booked | reservation_id=%s | room=%s | floor=%s | duration_minutes=%s",
            reservation_id,
            room.address,
            room.floor,
            duration_minutes,
        )
        return BookingReceipt(
            reservation_id=reservation_id,
            room_address=room.address,
            room_name=room.name,
            floor=room.floor,
            start=request.start,
            end=request.end,
            duration_minutes=duration_minutes,
            required_attendees=request.required_attendees,
        )
