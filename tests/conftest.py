"""Shared test fixtures and configuration.

Sets up fake environment variables so src.config doesn't sys.exit(),
and provides fixtures for pinning the process time zone.
"""

import os

# Patch env vars BEFORE any src imports
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "fake-token-for-tests")
os.environ.setdefault("ALLOWED_USER_IDS", "12345")
os.environ.setdefault("CALENDAR_SOURCE", "directory")
os.environ.setdefault("ICS_DIRECTORY", "")

import time

import pytest


@pytest.fixture
def local_tz(monkeypatch):
    """Return a setter that switches the process local time zone (POSIX TZ string)."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset() not available on this platform")

    def _set(tz: str) -> None:
        monkeypatch.setenv("TZ", tz)
        time.tzset()

    yield _set
    monkeypatch.undo()
    time.tzset()


@pytest.fixture
def make_ics():
    """Return a builder for a VCALENDAR document wrapping the given VEVENT bodies."""

    def _build(*event_bodies: str, newline: str = "\r\n") -> str:
        lines = ["BEGIN:VCALENDAR", "VERSION:2.0", "PRODID:-//ICS Reader Tests//EN"]
        for body in event_bodies:
            lines.append("BEGIN:VEVENT")
            lines.extend(body.strip().splitlines())
            lines.append("END:VEVENT")
        lines.append("END:VCALENDAR")
        return newline.join(lines) + newline

    return _build
