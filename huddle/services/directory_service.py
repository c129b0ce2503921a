"""Room directory parsing.

Room mailboxes carry their metadata in a bracketed suffix of the display
name::

    Orca Room [Floor:3, Max:8]

Pairs inside the brackets are ``key:value`` separated by ``,`` or ``;``.
Keys are case-insensitive, ``Floor`` and ``Max`` are required, unknown keys
are ignored and values must be non-negative integers. Labels without ``[``
are not rooms and are skipped; bracketed labels that fail to decode are
reported as malformed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable

from huddle.domain.models import (
    AttendeeReference,
    CandidateRoom,
    DirectoryEntry,
    MalformedEntry,
    ParsedEntry,
    ParseOutcome,
    RoomMetadata,
    SkippedEntry,
)
from huddle.utils.logger import get_logger


logger = get_logger(__name__)

METADATA_OPEN = "["
METADATA_CLOSE = "]"
_PAIR_SEPARATOR = re.compile(r"[,;]")
_NON_NEGATIVE_INT = re.compile(r"^\d+$")


class RoomMetadataError(ValueError):
    """Raised when a bracketed room label cannot be decoded."""


@dataclass
class DirectoryScan:
    candidates: list[CandidateRoom] = field(default_factory=list)
    skipped: list[SkippedEntry] = field(default_factory=list)
    malformed: list[MalformedEntry] = field(default_factory=list)


def _parse_int(key: str, value: str, raw_name: str) -> int:
    if not _NON_NEGATIVE_INT.match(value):
        raise RoomMetadataError(
            f"{key} must be a non-negative integer in {raw_name!r}, got {value!r}"
        )
    try:
        return int(value)
    except ValueError as exc:
        raise RoomMetadataError(
            f"{key} is out of range in {raw_name[:80]!r}"
        ) from exc


def _parse_metadata(raw_name: str) -> RoomMetadata:
    open_index = raw_name.index(METADATA_OPEN)
    name = raw_name[:open_index].strip()
    suffix = raw_name[open_index + 1 :].rstrip()
    if not suffix.endswith(METADATA_CLOSE):
        raise RoomMetadataError(f"Unterminated metadata block in {raw_name!r}")
    if not name:
        raise RoomMetadataError(f"Missing room name in {raw_name!r}")

    fields: dict[str, str] = {}
    for pair in _PAIR_SEPARATOR.split(suffix[:-1]):
        if not pair.strip():
            continue
        key, sep, value = pair.partition(":")
        if not sep:
            raise RoomMetadataError(f"Expected key:value pair, got {pair.strip()!r}")
        fields[key.strip().lower()] = value.strip()

    for required in ("floor", "max"):
        if required not in fields:
            raise RoomMetadataError(f"Missing {required.title()} in {raw_name!r}")

    return RoomMetadata(
        name=name,
        floor=_parse_int("Floor", fields["floor"], raw_name),
        max_people=_parse_int("Max", fields["max"], raw_name),
    )


def parse_room_name(raw_name: str) -> ParseOutcome:
    """Classify one directory label as skipped, parsed or malformed."""
    if METADATA_OPEN not in raw_name:
        return SkippedEntry(raw_name=raw_name)
    try:
        return ParsedEntry(metadata=_parse_metadata(raw_name))
    except RoomMetadataError as exc:
        return MalformedEntry(raw_name=raw_name, error=exc)


def build_candidate_rooms(entries: Iterable[DirectoryEntry]) -> DirectoryScan:
    """Turn a directory snapshot into candidate rooms, keeping directory order."""
    scan = DirectoryScan()
    for entry in entries:
        outcome = parse_room_name(entry.name)
        if isinstance(outcome, ParsedEntry):
            scan.candidates.append(
                CandidateRoom(
                    metadata=outcome.metadata,
                    attendee=AttendeeReference(address=entry.address),
                )
            )
        elif isinstance(outcome, MalformedEntry):
            logger.warning(
                "Malformed room entry excluded | address=%s | reason=%s",
                entry.address,
                outcome.reason,
            )
            scan.malformed.append(outcome)
        else:
            scan.skipped.append(outcome)

    logger.debug(
        "Directory scanned | candidates=%s | skipped=%s | malformed=%s",
        len(scan.candidates),
        len(scan.skipped),
        len(scan.malformed),
    )
    return scan
