"""
ICS Reader — Telegram Bot.

Telegram is the presentation layer: it asks the event store which events
fall on a day and shows the rendered table. Events are loaded once at
startup and again on /refresh and before each morning digest.

Security-first: unauthorized users are silently ignored.
"""

from __future__ import annotations

import logging
from datetime import date
from datetime import time as dt_time
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable, Coroutine
from zoneinfo import ZoneInfo

from telegram import Update
from telegram.ext import (
    Application,
    ApplicationBuilder,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from src.config import settings
from src.core.event_store import EventStore
from src.core.formatter import render_events_for_date, render_todays_events
from src.core.loader import EventLoader, LoadInProgress
from src.core.target_date import parse_target_date, resolve_target_date

if TYPE_CHECKING:
    from src.ports.document_port import DocumentSource
    from src.ports.notification_port import NotificationPort

logger = logging.getLogger(__name__)

LOAD_ERROR_MESSAGE = "Error loading ICS files. Check logs for details."


# ---------------------------------------------------------------------------
# Security: silent-ignore decorator
# ---------------------------------------------------------------------------


def authorized_only(
    func: Callable[..., Coroutine[Any, Any, None]],
) -> Callable[..., Coroutine[Any, Any, None]]:
    """Decorator that silently ignores messages from unauthorized users.

    Does NOT send any response to strangers — the bot must not reveal
    its existence to unauthorized users.
    """

    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        user = update.effective_user
        if user is None or user.id not in settings.ALLOWED_USER_IDS:
            uid = user.id if user else "unknown"
            logger.warning("Unauthorized access attempt from user_id=%s", uid)
            return  # Silent ignore
        return await func(update, context)

    return wrapper


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


@authorized_only
async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start — welcome message."""
    await update.message.reply_text(
        "Welcome to ICS Reader!\n\n"
        "I read your .ics calendars and show what's on for a day:\n"
        "• /today for today's events\n"
        "• /events 2024-01-15 for any other day\n"
        "• Send me a note with a 'date: YYYY-MM-DD' line and I'll use that date\n\n"
        "Type /help for the full command list."
    )


@authorized_only
async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help — list available commands."""
    await update.message.reply_text(
        "Available commands:\n"
        "/today — Today's events\n"
        "/events <YYYY-MM-DD> — Events on a date (today if omitted)\n"
        "/refresh — Reload all ICS documents\n"
        "/help — Show this message"
    )


@authorized_only
async def cmd_today(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /today — today's events table."""
    loader: EventLoader = context.bot_data["loader"]
    await update.message.reply_text(render_todays_events(loader.store))


@authorized_only
async def cmd_events(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /events [date] — events table for a specific date."""
    loader: EventLoader = context.bot_data["loader"]
    arg = " ".join(context.args or []).strip()
    target = parse_target_date(arg)

    notice = ""
    if target is None:
        target = date.today()
        if arg:
            logger.info("/events: could not read '%s' as a date", arg)
            notice = f"Couldn't read '{arg}' as a date (use YYYY-MM-DD), showing today.\n"

    logger.info("/events for %s", target.isoformat())
    await update.message.reply_text(
        notice + _dated_reply(target, render_events_for_date(loader.store, target))
    )


@authorized_only
async def cmd_refresh(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /refresh — reload every document, report the aggregate count."""
    loader: EventLoader = context.bot_data["loader"]

    try:
        report = await loader.refresh()
    except LoadInProgress:
        await update.message.reply_text("A refresh is already running. Please wait.")
        return
    except Exception as exc:
        logger.error("/refresh failed: %s", exc)
        await update.message.reply_text(LOAD_ERROR_MESSAGE)
        return

    await update.message.reply_text(f"ICS events refreshed. {report.message}")


@authorized_only
async def handle_note(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle free text as a note: use its front matter date, else today."""
    loader: EventLoader = context.bot_data["loader"]
    target = resolve_target_date(update.message.text)
    await update.message.reply_text(
        _dated_reply(target, render_events_for_date(loader.store, target))
    )


def _dated_reply(target: date, table: str) -> str:
    return f"Events for {target.isoformat()}:\n\n{table}"


# ---------------------------------------------------------------------------
# App builder
# ---------------------------------------------------------------------------


async def _initial_load(app: Application) -> None:
    """post_init hook: load events once before polling starts."""
    loader: EventLoader = app.bot_data["loader"]
    try:
        report = await loader.refresh()
        logger.info(report.message)
    except Exception as exc:
        logger.error("Error loading ICS files at startup: %s", exc)


def build_app(
    source: DocumentSource | None = None,
    notifier: NotificationPort | None = None,
) -> Application:
    """Build and configure the Telegram Application with all handlers.

    Args:
        source: Document source. Defaults to the CALENDAR_SOURCE adapter.
        notifier: Notification port implementation. Defaults to TelegramNotifier
                  (created from the bot instance after app is built).
    """
    app = (
        ApplicationBuilder()
        .token(settings.TELEGRAM_BOT_TOKEN)
        .post_init(_initial_load)
        .build()
    )

    # Wire default adapters if not provided
    if source is None:
        from src.adapters.source_factory import create_document_source
        source = create_document_source()

    if notifier is None:
        from src.adapters.telegram_notifier import TelegramNotifier
        notifier = TelegramNotifier(app.bot)

    loader = EventLoader(source, EventStore())

    # Store shared objects in bot_data for handler access
    app.bot_data["loader"] = loader
    app.bot_data["notifier"] = notifier

    # Commands
    app.add_handler(CommandHandler("start", cmd_start))
    app.add_handler(CommandHandler("help", cmd_help))
    app.add_handler(CommandHandler("today", cmd_today))
    app.add_handler(CommandHandler("events", cmd_events))
    app.add_handler(CommandHandler("refresh", cmd_refresh))

    # Text messages (non-command) are treated as notes
    app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handle_note))

    _setup_morning_briefing(app, loader, notifier)

    logger.info("Telegram bot application built with %d handlers", len(app.handlers[0]))
    return app


def _setup_morning_briefing(
    app: Application,
    loader: EventLoader,
    notifier: NotificationPort,
) -> None:
    """Register the daily morning digest job."""
    from src.core.scheduler import briefing_date, send_morning_summary

    tz = ZoneInfo(settings.TIMEZONE)
    briefing_time = dt_time(hour=settings.MORNING_BRIEFING_HOUR, minute=0, tzinfo=tz)

    async def _morning_job_callback(context: ContextTypes.DEFAULT_TYPE) -> None:
        await send_morning_summary(
            loader,
            notifier,
            settings.ALLOWED_USER_IDS,
            today=briefing_date(settings.TIMEZONE),
        )

    app.job_queue.run_daily(
        _morning_job_callback,
        time=briefing_time,
        name="morning_briefing",
    )

    logger.info(
        "Morning digest scheduled at %02d:00 %s",
        settings.MORNING_BRIEFING_HOUR,
        settings.TIMEZONE,
    )


def main() -> None:
    """Entry point: build the app and start polling."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info("Starting ICS Reader bot...")
    app = build_app()
    app.run_polling()


if __name__ == "__main__":
    main()
