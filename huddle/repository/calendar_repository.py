"""Calendar and directory access.

``CalendarGateway`` is the contract the selection core depends on. The
SQLite-backed ``CalendarRepository`` implements it for local runs and tests;
a hosted calendar service client would implement the same three methods.
"""

from __future__ import annotations

import random
import sqlite3
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional, Protocol, Sequence

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
from huddle.utils.config import Settings, get_settings
from huddle.utils.logger import get_logger


logger = get_logger(__name__)

_DB_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S.%f"

DEMO_ROOMS: tuple[tuple[str, str], ...] = (
    ("Orca Room [Floor:3, Max:8]", "orca"),
    ("Puget Room [Floor:3, Max:4]", "puget"),
    ("Rainier Room [Floor:5, Max:12]", "rainier"),
    ("Olympic Room [Floor:2, Max:6]", "olympic"),
    ("Cascade Room [Floor:4, Max:20]", "cascade"),
    ("Salish Room [Floor:1, Max:10]", "salish"),
    ("Ballard Booth [Floor:3, Max:2]", "ballard"),
    ("Fremont Room [Floor:6, Max:8]", "fremont"),
)
DEMO_NON_ROOMS: tuple[tuple[str, str], ...] = (
    ("Facilities Team", "facilities"),
    ("All Conference Rooms", "all-rooms"),
)


class CalendarServiceError(Exception):
    """Raised when the calendar or directory service rejects a call."""


class CalendarGateway(Protocol):
    def list_directory_entries(self, group_address: str) -> list[DirectoryEntry]:
        ...

    def query_availability(
        self,
        attendees: Sequence[AttendeeReference],
        window: TimeWindow,
        options: AvailabilityQueryOptions,
    ) -> AvailabilityResult:
        """Return one schedule per attendee, in submission order."""
        ...

    def submit_reservation(self, request: ReservationRequest) -> str:
        """Persist and send a reservation; return its id."""
        ...


def _to_db_time(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(_DB_TIME_FORMAT)


def _from_db_time(value: str) -> datetime:
    return datetime.strptime(value, _DB_TIME_FORMAT).replace(tzinfo=timezone.utc)


class CalendarRepository:
    """SQLite-backed room directory and free/busy store."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def database_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._db_path)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON;")
        return connection

    def initialize_database(self) -> None:
        """Create tables before the API starts serving."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS DirectoryEntries (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        group_address TEXT NOT NULL,
                        display_name TEXT NOT NULL,
                        address TEXT NOT NULL UNIQUE
                    );
                    """
                )
                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Reservations (
                        id TEXT PRIMARY KEY,
                        subject TEXT NOT NULL,
                        body TEXT NOT NULL,
                        location TEXT NOT NULL,
                        start_time TEXT NOT NULL,
                        end_time TEXT NOT NULL,
                        required_attendees TEXT NOT NULL,
                        send_mode TEXT NOT NULL,
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                    );
                    """
                )
                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS CalendarEvents (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        address TEXT NOT NULL,
                        start_time TEXT NOT NULL,
                        end_time TEXT NOT NULL CHECK (end_time > start_time),
                        reservation_id TEXT,
                        FOREIGN KEY (reservation_id) REFERENCES Reservations(id)
                    );
                    """
                )
                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_calendar_events_address_start
                    ON CalendarEvents(address, start_time);
                    """
                )
        except sqlite3.Error as exc:
            logger.exception("Calendar store initialization failed")
            raise CalendarServiceError("Failed to initialize calendar store") from exc
        logger.info("Calendar store ready | path=%s", self._db_path)

    def add_directory_entry(self, group_address: str, display_name: str, address: str) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO DirectoryEntries (group_address, display_name, address)
                VALUES (?, ?, ?);
                """,
                (group_address, display_name, address),
            )

    def add_calendar_event(self, address: str, start_time: datetime, end_time: datetime) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO CalendarEvents (address, start_time, end_time)
                VALUES (?, ?, ?);
                """,
                (address, _to_db_time(start_time), _to_db_time(end_time)),
            )

    def count_directory_entries(self) -> int:
        with self._connect() as conn:
            row = conn.execute("SELECT COUNT(*) AS total FROM DirectoryEntries;").fetchone()
        return int(row["total"])

    def count_reservations(self) -> int:
        with self._connect() as conn:
            row = conn.execute("SELECT COUNT(*) AS total FROM Reservations;").fetchone()
        return int(row["total"])

    def seed_demo_directory_if_empty(self) -> int:
        """Insert demo rooms plus non-room mailboxes; return rows inserted."""
        if self.count_directory_entries() > 0:
            return 0

        domain = self._settings.room_list_address.partition("@")[2]
        group = self._settings.room_list_address
        rows = [
            (group, display_name, f"{alias}@{domain}")
            for display_name, alias in DEMO_ROOMS + DEMO_NON_ROOMS
        ]
        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO DirectoryEntries (group_address, display_name, address)
                VALUES (?, ?, ?);
                """,
                rows,
            )
        logger.info("Seeded demo directory | entries=%s | group=%s", len(rows), group)
        return len(rows)

    def seed_demo_events(self, now: datetime) -> int:
        """Scatter busy blocks around ``now`` so demo searches show conflicts."""
        rng = random.Random(self._settings.synthetic_random_seed)
        domain = self._settings.room_list_address.partition("@")[2]
        addresses = [f"{alias}@{domain}" for _, alias in DEMO_ROOMS]
        count = min(self._settings.demo_event_count, len(addresses))

        rows = []
        for address in rng.sample(addresses, count):
            start = now + timedelta(minutes=rng.randrange(-45, 90, 15))
            end = start + timedelta(minutes=rng.choice((30, 45, 60)))
            rows.append((address, _to_db_time(start), _to_db_time(end)))
        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO CalendarEvents (address, start_time, end_time)
                VALUES (?, ?, ?);
                """,
                rows,
            )
        logger.info("Seeded demo calendar events | events=%s", len(rows))
        return len(rows)

    def list_directory_entries(self, group_address: str) -> list[DirectoryEntry]:
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    """
                    SELECT display_name, address
                    FROM DirectoryEntries
                    WHERE group_address = ?
                    ORDER BY id;
                    """,
                    (group_address,),
                ).fetchall()
        except sqlite3.Error as exc:
            raise CalendarServiceError(
                f"Failed to list directory entries for {group_address}"
            ) from exc
        return [DirectoryEntry(name=row["display_name"], address=row["address"]) for row in rows]

    def query_availability(
        self,
        attendees: Sequence[AttendeeReference],
        window: TimeWindow,
        options: AvailabilityQueryOptions = AvailabilityQueryOptions(),
    ) -> AvailabilityResult:
        if not options.free_busy_only:
            raise CalendarServiceError("Only free/busy availability queries are supported")

        schedules: list[AttendeeAvailability] = []
        try:
            with self._connect() as conn:
                for attendee in attendees:
                    rows = conn.execute(
                        """
                        SELECT start_time, end_time
                        FROM CalendarEvents
                        WHERE address = ? AND start_time < ? AND end_time > ?
                        ORDER BY start_time;
                        """,
                        (attendee.address, _to_db_time(window.end), _to_db_time(window.start)),
                    ).fetchall()
                    schedules.append(
                        AttendeeAvailability(
                            address=attendee.address,
                            events=tuple(
                                CalendarEvent(
                                    start_time=_from_db_time(row["start_time"]),
                                    end_time=_from_db_time(row["end_time"]),
                                )
                                for row in rows
                            ),
                        )
                    )
        except sqlite3.Error as exc:
            raise CalendarServiceError("Free/busy query failed") from exc
        return AvailabilityResult(attendees=tuple(schedules))

    def submit_reservation(self, request: ReservationRequest) -> str:
        if not request.required_attendees:
            raise CalendarServiceError("Reservation has no required attendees")
        reservation_id = uuid.uuid4().hex
        start_time = _to_db_time(request.start)
        end_time = _to_db_time(request.end)
        try:
            with self._connect() as conn:
                known = conn.execute(
                    f"""
                    SELECT COUNT(*) AS total FROM DirectoryEntries
                    WHERE address IN ({",".join("?" for _ in request.required_attendees)});
                    """,
                    request.required_attendees,
                ).fetchone()
                if int(known["total"]) == 0:
                    raise CalendarServiceError(
                        "Reservation does not include a known room mailbox"
                    )
                conn.execute(
                    """
                    INSERT INTO Reservations (
                        id, subject, body, location, start_time, end_time,
                        required_attendees, send_mode
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?);
                    """,
                    (
                        reservation_id,
                        request.subject,
                        request.body,
                        request.location,
                        start_time,
                        end_time,
                        ";".join(request.required_attendees),
                        request.send_mode.value,
                    ),
                )
                conn.executemany(
                    """
                    INSERT INTO CalendarEvents (address, start_time, end_time, reservation_id)
                    VALUES (?, ?, ?, ?);
                    """,
                    [
                        (address, start_time, end_time, reservation_id)
                        for address in request.required_attendees
                    ],
                )
        except sqlite3.Error as exc:
            raise CalendarServiceError("Failed to save reservation") from exc

        logger.info(
            "Reservation saved and invitations sent | reservation_id=%s | attendees=%s",
            reservation_id,
            ",".join(request.required_attendees),
        )
        return reservation_id
