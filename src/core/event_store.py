"""
ICS Reader — Event Store & Query Engine.

Holds the events of the most recent load and answers "what happens on
day D?". A load builds a complete new collection and swaps it in with a
single assignment, so a query never sees a half-built collection.

Failures are contained per document: a document that cannot be read or
is not an iCalendar structure is logged and left out, and the load goes on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable

from src.core.ics_parser import UnsupportedInputShape, parse_events
from src.data.models import Event
from src.ports.document_port import CalendarDocument, DocumentReadFailure

logger = logging.getLogger(__name__)


@dataclass
class DocumentFailure:
    """A document that contributed nothing to a load, and why."""

    identifier: str
    kind: str      # "DocumentReadFailure" | "UnsupportedInputShape" | "UnexpectedError"
    detail: str


@dataclass
class LoadReport:
    """Outcome of one load: the aggregate count plus diagnostics."""

    event_count: int = 0
    documents_loaded: int = 0
    failures: list[DocumentFailure] = field(default_factory=list)
    skipped_lines: int = 0
    skipped_components: int = 0

    @property
    def message(self) -> str:
        return f"Loaded {self.event_count} events from ICS files."


def _as_document(doc: CalendarDocument | tuple[str, str | bytes]) -> CalendarDocument:
    if isinstance(doc, CalendarDocument):
        return doc
    try:
        identifier, text = doc
    except (TypeError, ValueError) as exc:
        raise DocumentReadFailure(
            f"expected a CalendarDocument or an (identifier, text) pair, got {doc!r}"
        ) from exc
    return CalendarDocument.from_text(str(identifier), text)


def _local_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    return value


class EventStore:
    """In-memory event collection, replaced wholesale on every load."""

    def __init__(self) -> None:
        self._events: tuple[Event, ...] = ()

    @property
    def events(self) -> tuple[Event, ...]:
        return self._events

    @property
    def is_empty(self) -> bool:
        return not self._events

    def load_all(
        self, documents: Iterable[CalendarDocument | tuple[str, str | bytes]]
    ) -> LoadReport:
        """Parse every document and replace the collection with the union.

        Accepts CalendarDocument objects or plain (identifier, text) pairs.
        Never raises for a bad document; see the returned report instead.
        """
        report = LoadReport()
        collected: list[Event] = []

        for item in documents:
            identifier = getattr(item, "identifier", None) or repr(item)
            try:
                doc = _as_document(item)
                identifier = doc.identifier
                logger.debug("Processing document: %s", identifier)
                text = doc.read()
                result = parse_events(text, identifier=identifier)
            except DocumentReadFailure as exc:
                logger.error("Error reading document %s: %s", identifier, exc)
                report.failures.append(
                    DocumentFailure(identifier, "DocumentReadFailure", str(exc))
                )
                continue
            except UnsupportedInputShape as exc:
                logger.error("Error processing document %s: %s", identifier, exc)
                report.failures.append(
                    DocumentFailure(identifier, "UnsupportedInputShape", str(exc))
                )
                continue
            except Exception as exc:
                logger.error("Unexpected error processing %s: %s", identifier, exc, exc_info=True)
                report.failures.append(
                    DocumentFailure(identifier, "UnexpectedError", f"{type(exc).__name__}: {exc}")
                )
                continue

            collected.extend(result.events)
            report.documents_loaded += 1
            report.skipped_lines += len(result.skipped_lines)
            report.skipped_components += result.skipped_components
            logger.debug("Found %d event(s) in %s", len(result.events), identifier)

        self._events = tuple(collected)
        report.event_count = len(self._events)
        logger.info(
            "Total events loaded: %d (%d document(s) ok, %d failed)",
            report.event_count,
            report.documents_loaded,
            len(report.failures),
        )
        return report

    def events_on_date(self, target: date | datetime | None = None) -> list[Event]:
        """Events starting on the given local calendar day, in collection order.

        ``None`` means today. Results are not sorted by time of day.
        """
        day = _local_date(target) if target is not None else date.today()
        snapshot = self._events
        return [event for event in snapshot if _local_date(event.start) == day]

    def todays_events(self, today: date | None = None) -> list[Event]:
        return self.events_on_date(today)
