"""HTTP controller layer for room search and booking."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator

from huddle.controllers.dependencies import get_selection_service, require_token
from huddle.domain.models import Availability, BookingReceipt, CandidateRoom
from huddle.repository.calendar_repository import CalendarServiceError
from huddle.services.availability_service import AvailabilityCorrelationError
from huddle.services.booking_service import BookingFailedError
from huddle.services.selection_service import (
    NoRoomAvailableError,
    RoomNotFoundError,
    RoomSelectionService,
    SelectionValidationError,
)
from huddle.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/rooms", tags=["rooms"])


class RoomResponse(BaseModel):
    name: str
    floor: int = Field(ge=0)
    max_people: int = Field(ge=0)
    address: str
    available: Availability

    @classmethod
    def from_room(cls, room: CandidateRoom) -> "RoomResponse":
        return cls(
            name=room.name,
            floor=room.floor,
            max_people=room.max_people,
            address=room.address,
            available=room.available,
        )


class MalformedEntryResponse(BaseModel):
    raw_name: str
    reason: str


class RoomSearchResponse(BaseModel):
    evaluated_at: datetime
    duration: int = Field(gt=0)
    rooms: list[RoomResponse]
    malformed_entries: list[MalformedEntryResponse]


class BookRoomRequest(BaseModel):
    preferred_floor: int = Field(ge=0)
    duration: int | None = Field(default=None, gt=0)
    room_address: str | None = None

    @field_validator("room_address")
    @classmethod
    def validate_room_address(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        if "@" not in value:
            raise ValueError("room_address must be an email address")
        return value


class BookingResponse(BaseModel):
    reservation_id: str
    room_address: str
    room_name: str
    floor: int = Field(ge=0)
    start: datetime
    end: datetime
    duration: int = Field(gt=0)
    required_attendees: list[str]

    @classmethod
    def from_receipt(cls, receipt: BookingReceipt) -> "BookingResponse":
        return cls(
            reservation_id=receipt.reservation_id,
            room_address=receipt.room_address,
            room_name=receipt.room_name,
            floor=receipt.floor,
            start=receipt.start,
            end=receipt.end,
            duration=receipt.duration_minutes,
            required_attendees=list(receipt.required_attendees),
        )


@router.get(
    "",
    response_model=RoomSearchResponse,
    status_code=status.HTTP_200_OK,
)
async def search_rooms(
    preferred_floor: int = Query(ge=0),
    duration: int | None = Query(default=None, gt=0),
    service: RoomSelectionService = Depends(get_selection_service),
) -> RoomSearchResponse:
    """Rank rooms around the preferred floor and report who is free right now."""
    resolved_duration = duration or service.default_duration_minutes
    try:
        result = service.find_rooms(
            preferred_floor=preferred_floor,
            duration_minutes=resolved_duration,
        )
    except SelectionValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except (AvailabilityCorrelationError, CalendarServiceError) as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected room search failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to search rooms",
        ) from exc

    return RoomSearchResponse(
        evaluated_at=result.evaluated_at,
        duration=result.duration_minutes,
        rooms=[RoomResponse.from_room(room) for room in result.rooms],
        malformed_entries=[
            MalformedEntryResponse(raw_name=entry.raw_name, reason=entry.reason)
            for entry in result.malformed
        ],
    )


@router.post(
    "/book",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_token)],
)
async def book_room(
    payload: BookRoomRequest,
    service: RoomSelectionService = Depends(get_selection_service),
) -> BookingResponse:
    """Book the chosen room, or the closest free one, starting now."""
    try:
        receipt = service.reserve_room(
            preferred_floor=payload.preferred_floor,
            duration_minutes=payload.duration or service.default_duration_minutes,
            room_address=payload.room_address,
        )
    except SelectionValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except (NoRoomAvailableError, RoomNotFoundError) as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except (AvailabilityCorrelationError, BookingFailedError, CalendarServiceError) as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected booking failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to book room",
        ) from exc

    return BookingResponse.from_receipt(receipt)
