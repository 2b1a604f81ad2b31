"""
ICS Reader — Daily digest.

Morning digest: a proactive daily push with today's events table, sent to
every allowed user. The events are refreshed first so the digest reflects
the documents as they are that morning.

This module is transport-agnostic: it depends on the NotificationPort
protocol and the EventLoader, not on Telegram.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Iterable
from zoneinfo import ZoneInfo

from src.core.formatter import render_todays_events

if TYPE_CHECKING:
    from src.core.loader import EventLoader
    from src.ports.notification_port import NotificationPort

logger = logging.getLogger(__name__)


def briefing_date(tz_name: str, now: datetime | None = None) -> date:
    """Return the calendar day in ``tz_name`` at ``now`` (default: the current instant).

    The digest job fires on the configured zone's clock, so "today" is read
    on that clock too, not on the process's local one.
    """
    moment = now or datetime.now(timezone.utc)
    return moment.astimezone(ZoneInfo(tz_name)).date()


async def build_morning_digest(loader: EventLoader, today: date | None = None) -> str:
    """Refresh events, then render today's table.

    Graceful degradation: if the refresh fails, the digest is built from
    the events of the last successful load.
    """
    try:
        report = await loader.refresh()
        logger.info("Morning digest: %s", report.message)
    except Exception as exc:
        logger.warning("Morning digest: refresh failed, using previous events: %s", exc)

    return "Good morning! Today's schedule:\n\n" + render_todays_events(loader.store, today)


async def send_morning_summary(
    loader: EventLoader,
    notifier: NotificationPort,
    user_ids: Iterable[int],
    today: date | None = None,
) -> None:
    """Send the morning digest for ``today`` to every user in ``user_ids``."""
    digest = await build_morning_digest(loader, today)
    for chat_id in user_ids:
        try:
            await notifier.send_message(chat_id, digest)
            logger.info("Morning digest sent to user %d", chat_id)
        except Exception as exc:
            logger.error("Failed to send morning digest to %d: %s", chat_id, exc)
