"""
ICS Reader — Data Models.

An Event is the normalized form of one VEVENT component: a title and two
absolute instants. Events live only in memory and are rebuilt from the
calendar documents on every load.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Event:
    """A timed calendar event extracted from an iCalendar document.

    start/end are timezone-aware. end >= start is not checked: whatever
    the document says is passed through.
    """

    summary: str          # "" when the component has no SUMMARY
    start: datetime
    end: datetime
