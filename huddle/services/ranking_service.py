"""Proximity ranking of candidate rooms."""

from __future__ import annotations

from typing import Sequence

from huddle.domain.models import CandidateRoom


def room_rank_key(room: CandidateRoom, preferred_floor: int) -> tuple[int, int]:
    return abs(room.floor - preferred_floor), room.max_people


def rank_rooms(rooms: Sequence[CandidateRoom], preferred_floor: int) -> list[CandidateRoom]:
    """Order rooms by floor distance, then by smallest capacity.

    ``sorted`` is stable, so rooms tied on both keys keep directory order.
    """
    return sorted(rooms, key=lambda room: room_rank_key(room, preferred_floor))
