"""
Campus Events — Command-line front end.

Stands in for the mobile screens: signs in, loads the user's events and
prints the list a given tab would show.
"""

from __future__ import annotations

import asyncio
import logging
import sys

from src.config import settings
from src.core.event_filter import FilterMode, count_by_mode, visible_events
from src.core.event_repository import EventRepository, EventServiceError
from src.core.session_manager import SessionError, SessionManager
from src.core.validation import FormValidationError
from src.data.db import PreferencesDB
from src.data.models import Event

logger = logging.getLogger(__name__)


def format_event(event: Event) -> str:
    """One line per event: flags, date, times, title, type and location."""
    flags = ("★" if event.is_favorite else " ") + ("✓" if event.is_completed else " ")
    return (
        f"{flags} {event.date}  {event.start_time}-{event.end_time}  "
        f"{event.title} [{event.type.value}] @ {event.location}"
    )


async def show_events(mode: FilterMode, query: str = "") -> int:
    """Sign in, print the visible events for ``mode``; return an exit code."""
    from src.adapters.backend_factory import create_backend

    backend = create_backend()
    session = SessionManager(backend.accounts, backend.store)
    repo = EventRepository(backend.store, backend.blobs)

    await session.start()
    try:
        await session.sign_in(settings.CAMPUS_EMAIL, settings.CAMPUS_PASSWORD)
        events = await repo.list_for_user(session.session.uid)
    except FormValidationError as exc:
        for field, message in exc.errors.items():
            print(f"{field}: {message}", file=sys.stderr)
        return 2
    except (SessionError, EventServiceError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        session.close()

    counts = count_by_mode(events)
    tabs = "  ".join(f"{m.value} ({counts[m]})" for m in FilterMode)
    name = session.current_user.display_name if session.current_user else session.session.email
    print(f"{name} — theme: {PreferencesDB().get_theme()}")
    print(tabs)
    print()

    shown = visible_events(events, mode, query)
    if not shown:
        print("No events found.")
    for event in shown:
        print(format_event(event))
    return 0


def main(argv: list[str] | None = None) -> None:
    args = list(sys.argv[1:] if argv is None else argv)
    mode = FilterMode.UPCOMING
    if args and args[0] in {m.value for m in FilterMode}:
        mode = FilterMode(args.pop(0))
    query = " ".join(args)

    try:
        code = asyncio.run(show_events(mode, query))
    except Exception:
        logger.exception("Unhandled error")
        code = 1
    sys.exit(code)
