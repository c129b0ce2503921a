#!/usr/bin/env python3
"""Validate local Huddle environment readiness."""

from __future__ import annotations

import importlib
import shutil
import sys
import tempfile
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from huddle.repository.calendar_repository import DEMO_ROOMS, CalendarRepository
from huddle.services.selection_service import RoomSelectionService
from huddle.utils.config import get_settings

SEPARATOR_LINE = "=" * 44


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True
    temp_dir = tempfile.mkdtemp(prefix="huddle-env-")

    # CHECK 1 - Python version >= 3.11
    if sys.version_info >= (3, 11):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.11",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2 - Required packages importable
    package_names = ["fastapi", "uvicorn", "pydantic", "httpx", "pytest"]
    import_errors: list[str] = []
    for module_name in package_names:
        try:
            importlib.import_module(module_name)
        except ImportError as exc:
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    try:
        validation_settings = replace(
            get_settings(),
            database_path=Path(temp_dir) / "huddle_validation.db",
        )
        repository = CalendarRepository(validation_settings)

        # CHECK 3 - Calendar store initialization
        try:
            repository.initialize_database()
            ok, line = _print_result("Calendar store initialization", True)
        except Exception as exc:
            ok, line = _print_result("Calendar store initialization", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 4 - Demo directory seeding
        now = datetime.now(timezone.utc)
        try:
            seeded = repository.seed_demo_directory_if_empty()
            repository.seed_demo_events(now)
            if seeded == 0:
                raise RuntimeError("no directory entries were seeded")
            ok, line = _print_result("Demo directory", True, f": {seeded} entries")
        except Exception as exc:
            ok, line = _print_result("Demo directory", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 5 - Room search
        service = RoomSelectionService(
            gateway=repository,
            settings=validation_settings,
            clock=lambda: now,
        )
        try:
            search = service.find_rooms(preferred_floor=3, duration_minutes=30)
            if len(search.rooms) != len(DEMO_ROOMS):
                raise RuntimeError(
                    f"expected {len(DEMO_ROOMS)} rooms, got {len(search.rooms)}"
                )
            free = sum(1 for room in search.rooms if room.is_available)
            ok, line = _print_result(
                "Room search",
                True,
                f": {free}/{len(search.rooms)} rooms free",
            )
        except Exception as exc:
            ok, line = _print_result("Room search", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 6 - Booking
        try:
            receipt = service.reserve_room(preferred_floor=3, duration_minutes=30)
            ok, line = _print_result("Booking", True, f": {receipt.room_name}")
        except Exception as exc:
            ok, line = _print_result("Booking", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    print(SEPARATOR_LINE)
    print(" Huddle Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
