"""
Campus Events — Event Filter.

Derives the visible event list from the full in-memory list: filter by the
active tab, then search, then sort by date (soonest first). Pure functions;
no backend access.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Iterable

from src.data.models import Event


class FilterMode(str, Enum):
    UPCOMING = "upcoming"
    COMPLETED = "completed"
    FAVORITES = "favorites"


def parse_event_date(value: str) -> date | None:
    """Parse an ISO ``YYYY-MM-DD`` string; None if it isn't one."""
    try:
        return date.fromisoformat(value.strip())
    except (AttributeError, ValueError):
        return None


def matches_filter(event: Event, mode: FilterMode, today: date) -> bool:
    if mode == FilterMode.UPCOMING:
        if event.is_completed:
            return False
        event_date = parse_event_date(event.date)
        return event_date is not None and event_date >= today
    if mode == FilterMode.COMPLETED:
        return event.is_completed
    if mode == FilterMode.FAVORITES:
        # completed favorites belong to the Completed tab only
        return event.is_favorite and not event.is_completed
    raise ValueError(f"Unknown filter mode: {mode!r}")


def matches_search(event: Event, query: str) -> bool:
    """Case-insensitive substring match on title, location or type.

    A blank query matches everything; otherwise the query is used as typed.
    """
    if not query.strip():
        return True
    needle = query.lower()
    return (
        needle in event.title.lower()
        or needle in event.location.lower()
        or needle in event.type.value.lower()
    )


def _date_sort_key(event: Event) -> tuple[int, date]:
    event_date = parse_event_date(event.date)
    if event_date is None:
        return (1, date.max)
    return (0, event_date)


def visible_events(
    events: Iterable[Event],
    mode: FilterMode | str,
    query: str = "",
    today: date | None = None,
) -> list[Event]:
    """Return the events to show for ``mode`` and ``query``.

    Filter first, then search (skipped for a blank query), then a stable sort
    ascending by date. Undated events sort last in input order.

    Args:
        events: The signed-in user's full event list.
        mode: Active filter tab.
        query: Free-text search; whitespace-only is ignored.
        today: Reference day for the upcoming filter (defaults to today).
    """
    mode = FilterMode(mode)
    if today is None:
        today = date.today()

    result = [ev for ev in events if matches_filter(ev, mode, today)]
    if query and query.strip():
        result = [ev for ev in result if matches_search(ev, query)]

    # list.sort is stable: equal dates keep their input order
    result.sort(key=_date_sort_key)
    return result


def count_by_mode(
    events: Iterable[Event], today: date | None = None,
) -> dict[FilterMode, int]:
    """Number of events each tab would show with no search applied."""
    if today is None:
        today = date.today()
    events = list(events)
    return {
        mode: sum(1 for ev in events if matches_filter(ev, mode, today))
        for mode in FilterMode
    }
