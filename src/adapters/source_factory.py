"""Document source factory — creates the right adapter based on config."""

from __future__ import annotations

from src.config import settings
from src.ports.document_port import DocumentSource


def create_document_source() -> DocumentSource:
    """Return the document source matching the CALENDAR_SOURCE setting."""
    source = settings.CALENDAR_SOURCE.lower()

    if source == "directory":
        from src.adapters.directory_source import DirectorySource

        return DirectorySource(settings.ICS_DIRECTORY)

    if source == "caldav":
        from src.adapters.caldav_source import CalDAVSource

        return CalDAVSource()

    if source == "url":
        from src.adapters.url_source import UrlSource

        return UrlSource(settings.ICS_URLS, timeout=settings.HTTP_TIMEOUT_SECONDS)

    raise ValueError(f"Unknown CALENDAR_SOURCE: {source!r}")
