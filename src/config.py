"""
ICS Reader — Centralized configuration.

Loads all settings from .env and validates required keys.
Only the adapters and the bot read settings; the parser and the event
store take everything they need as arguments.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (two levels up from src/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Telegram
    TELEGRAM_BOT_TOKEN: str

    # Security
    ALLOWED_USER_IDS: list[int] = []

    # Document source: "directory" | "caldav" | "url"
    CALENDAR_SOURCE: str = "directory"

    # Directory source — every *.ics file below this folder
    ICS_DIRECTORY: str = ""

    # CalDAV source
    CALDAV_URL: str = ""
    CALDAV_USERNAME: str = ""
    CALDAV_PASSWORD: str = ""
    CALDAV_CALENDAR_NAME: str = ""

    # URL source — comma-separated subscription feeds
    ICS_URLS: list[str] = []
    HTTP_TIMEOUT_SECONDS: float = 10.0

    # Morning digest
    MORNING_BRIEFING_HOUR: int = 8
    TIMEZONE: str = "UTC"

    @field_validator("ALLOWED_USER_IDS", mode="before")
    @classmethod
    def parse_user_ids(cls, v: str | list[int]) -> list[int]:
        if isinstance(v, list):
            return v
        if isinstance(v, str) and v.strip():
            return [int(uid.strip()) for uid in v.split(",") if uid.strip()]
        return []

    @field_validator("ICS_URLS", mode="before")
    @classmethod
    def parse_urls(cls, v: str | list[str]) -> list[str]:
        if isinstance(v, list):
            return v
        if isinstance(v, str) and v.strip():
            return [url.strip() for url in v.split(",") if url.strip()]
        return []

    @field_validator("MORNING_BRIEFING_HOUR", mode="before")
    @classmethod
    def parse_hour(cls, v: str | int) -> int:
        return int(v)


def _load_settings() -> Settings:
    """Load settings from environment, validating required keys."""
    token = os.getenv("TELEGRAM_BOT_TOKEN", "")

    if not token or token.startswith("your-"):
        print("ERROR: TELEGRAM_BOT_TOKEN is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    return Settings(
        TELEGRAM_BOT_TOKEN=token,
        ALLOWED_USER_IDS=os.getenv("ALLOWED_USER_IDS", ""),
        CALENDAR_SOURCE=os.getenv("CALENDAR_SOURCE", "directory"),
        ICS_DIRECTORY=os.getenv("ICS_DIRECTORY", ""),
        CALDAV_URL=os.getenv("CALDAV_URL", ""),
        CALDAV_USERNAME=os.getenv("CALDAV_USERNAME", ""),
        CALDAV_PASSWORD=os.getenv("CALDAV_PASSWORD", ""),
        CALDAV_CALENDAR_NAME=os.getenv("CALDAV_CALENDAR_NAME", ""),
        ICS_URLS=os.getenv("ICS_URLS", ""),
        HTTP_TIMEOUT_SECONDS=os.getenv("HTTP_TIMEOUT_SECONDS", "10"),
        MORNING_BRIEFING_HOUR=os.getenv("MORNING_BRIEFING_HOUR", "8"),
        TIMEZONE=os.getenv("TIMEZONE", "UTC"),
    )


# Singleton — imported by adapters and the bot as:
#   from src.config import settings
settings = _load_settings()
