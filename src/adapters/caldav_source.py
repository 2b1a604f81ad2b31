"""CalDAV document source — raw VCALENDAR objects from a CalDAV calendar.

Supports iCloud, Nextcloud, Fastmail, and any CalDAV-compliant server.
Each calendar object resource on the server becomes one CalendarDocument;
its iCalendar text is parsed by the same code path as a local .ics file.
"""

from __future__ import annotations

import logging

import caldav

from src.config import settings
from src.ports.document_port import CalendarDocument, DocumentReadFailure

logger = logging.getLogger(__name__)


def _get_calendar() -> caldav.Calendar:
    """Connect to CalDAV server and return the configured calendar."""
    client = caldav.DAVClient(
        url=settings.CALDAV_URL,
        username=settings.CALDAV_USERNAME,
        password=settings.CALDAV_PASSWORD,
    )
    principal = client.principal()
    calendars = principal.calendars()

    if not calendars:
        raise DocumentReadFailure("No calendars found on the CalDAV server.")

    if settings.CALDAV_CALENDAR_NAME:
        for cal in calendars:
            if cal.name == settings.CALDAV_CALENDAR_NAME:
                return cal
        raise DocumentReadFailure(
            f"Calendar '{settings.CALDAV_CALENDAR_NAME}' not found. "
            f"Available: {[c.name for c in calendars]}"
        )

    return calendars[0]


def _event_reader(event: caldav.Event):
    def read() -> str:
        return event.data

    return read


class CalDAVSource:
    """DocumentSource over every event object in one CalDAV calendar."""

    def list_documents(self) -> list[CalendarDocument]:
        if not settings.CALDAV_URL:
            logger.warning("CALDAV_URL not set. Please configure the CalDAV source.")
            return []

        try:
            cal = _get_calendar()
            objects = cal.events()
        except DocumentReadFailure:
            raise
        except Exception as exc:
            logger.error("CalDAV error (list_documents): %s", exc)
            raise DocumentReadFailure(f"Failed to list CalDAV events: {exc}") from exc

        logger.info("Found %d CalDAV object(s) in '%s'", len(objects), cal.name)
        return [
            CalendarDocument(identifier=str(obj.url), reader=_event_reader(obj))
            for obj in objects
        ]
