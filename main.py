"""
main.py - Server launcher and entry point.

Run this file to start the room finder API:

    python main.py

This file does NOT contain application logic. See app.py for the FastAPI
application, service wiring, and startup sequence.

Direct uvicorn usage:
    uvicorn app:app --reload
"""

from __future__ import annotations

import uvicorn


HOST = "127.0.0.1"
PORT = 8000


def main() -> None:
    """Start the room finder API server."""
    print("=" * 60)
    print("  Huddle - Conference Room Finder")
    print("=" * 60)
    print(f"  Server   : http://{HOST}:{PORT}")
    print(f"  Rooms    : http://{HOST}:{PORT}/rooms?preferred_floor=3")
    print(f"  API docs : http://{HOST}:{PORT}/docs")
    print("=" * 60)
    print("  Press CTRL+C to stop\n")

    # Blocks until CTRL+C
    uvicorn.run(
        "app:app",
        host=HOST,
        port=PORT,
        reload=True,
        log_level="info",
    )


if __name__ == "__main__":
    main()
