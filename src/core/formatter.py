"""ICS Reader — Markdown table rendering for query results."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Sequence

from src.data.models import Event

if TYPE_CHECKING:
    from src.core.event_store import EventStore

NO_EVENTS_FOR_DATE = "No events for this date."
NO_EVENTS_TODAY = "No events for today."

TABLE_HEADER = "| Time | Event |\n|------|-------|\n"


def _cell(text: str) -> str:
    # A row must stay on one line and keep exactly two columns
    return " ".join(text.splitlines()).replace("|", "\\|")


def render_as_table(
    events: Sequence[Event], empty_message: str = NO_EVENTS_FOR_DATE
) -> str:
    """Render events as a two-column (time, summary) Markdown table.

    Times are HH:MM on the local 24-hour clock. An empty sequence yields
    ``empty_message`` instead of a header-only table.
    """
    if not events:
        return empty_message

    rows = [TABLE_HEADER]
    for event in events:
        start_time = event.start.astimezone().strftime("%H:%M")
        rows.append(f"| {start_time} | {_cell(event.summary)} |\n")
    return "".join(rows)


def render_events_for_date(store: EventStore, target: date) -> str:
    return render_as_table(store.events_on_date(target), NO_EVENTS_FOR_DATE)


def render_todays_events(store: EventStore, today: date | None = None) -> str:
    return render_as_table(store.todays_events(today), NO_EVENTS_TODAY)
