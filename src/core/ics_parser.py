"""
ICS Reader — Calendar Parser.

Turns the raw text of an iCalendar document into a tree of components, then
into Event records. Parsing is best-effort: a content line that cannot be
split into name/params/value is recorded as Skipped and parsing continues;
a VEVENT without usable start/end times is dropped on its own. Only a
document whose component structure is broken as a whole is rejected.

Line unfolding, NAME;PARAM=X:VALUE splitting, text unescaping and the
date-time value grammar all come from the icalendar library; this module
only adds the tolerant tree building and the Event conversion on top.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Generic, Iterator, Sequence, TypeVar, Union

from icalendar import vDDDTypes
from icalendar.parser import Contentline, Contentlines

from src.data.models import Event

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class CalendarParseError(Exception):
    """Base class for everything the calendar parser can complain about."""


class MalformedLine(CalendarParseError):
    """A single content line could not be split into name, params and value."""


class MissingRequiredField(CalendarParseError):
    """An event component has no usable start or end date-time."""


class UnsupportedInputShape(CalendarParseError):
    """The document is not a BEGIN/END component structure at all."""


# ---------------------------------------------------------------------------
# Document tree
# ---------------------------------------------------------------------------


@dataclass
class RawProperty:
    """One parsed content line, e.g. ``DTSTART;TZID=Europe/Paris:20240115T090000``."""

    name: str                                    # upper-cased
    params: dict[str, str | list[str]]
    value: str                                   # backslash escapes decoded
    line_no: int = 0


@dataclass
class RawComponent:
    """A BEGIN:X ... END:X block with its properties and nested blocks."""

    name: str                                    # upper-cased, e.g. "VEVENT"
    properties: list[RawProperty] = field(default_factory=list)
    children: list[RawComponent] = field(default_factory=list)

    def get(self, name: str) -> RawProperty | None:
        """Return the first property called ``name`` (case-insensitive)."""
        wanted = name.upper()
        for prop in self.properties:
            if prop.name == wanted:
                return prop
        return None

    def walk(self) -> Iterator[RawComponent]:
        """Yield this component and all descendants, depth-first."""
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass
class Parsed(Generic[T]):
    value: T


@dataclass
class Skipped:
    line_no: int
    line: str
    reason: str


LineResult = Union[Parsed[RawProperty], Skipped]


@dataclass
class ParseReport:
    """Top-level components of a document plus every line that was skipped."""

    components: list[RawComponent] = field(default_factory=list)
    skipped: list[Skipped] = field(default_factory=list)


@dataclass
class EventParseResult:
    """Everything one document produced: events and what was dropped on the way."""

    events: list[Event] = field(default_factory=list)
    skipped_lines: list[Skipped] = field(default_factory=list)
    skipped_components: int = 0


# ---------------------------------------------------------------------------
# Lines
# ---------------------------------------------------------------------------


def unfold_lines(text: str | bytes) -> list[str]:
    """Undo line folding and split into logical content lines.

    A physical line starting with a space or tab continues the previous
    one; the line break and that single whitespace character are removed.
    """
    try:
        lines = Contentlines.from_ical(text)
    except ValueError as exc:
        raise UnsupportedInputShape(f"Cannot split document into content lines: {exc}") from exc
    return [str(line) for line in lines if line.strip()]


def parse_line(line: str, line_no: int = 0) -> LineResult:
    """Split one logical line into a RawProperty, or explain why not."""
    try:
        name, params, value = Contentline(line).parts()
    except (ValueError, AssertionError) as exc:
        reason = str(MalformedLine(exc))
        logger.debug("Skipping line %d: %s", line_no, reason)
        return Skipped(line_no=line_no, line=line, reason=reason)

    return Parsed(
        RawProperty(
            name=name.upper(),
            params={str(k).upper(): v for k, v in params.items()},
            value=value,
            line_no=line_no,
        )
    )


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


def parse_document(text: str | bytes) -> ParseReport:
    """Build the component tree of one iCalendar document.

    Raises:
        UnsupportedInputShape: no component at all, or a component left
            unterminated at the end of the text. An END naming another
            component still closes the innermost open one and is reported
            as a skipped line.
    """
    report = ParseReport()
    stack: list[RawComponent] = []

    for line_no, line in enumerate(unfold_lines(text), start=1):
        result = parse_line(line, line_no)
        if isinstance(result, Skipped):
            report.skipped.append(result)
            continue

        prop = result.value
        if prop.name == "BEGIN":
            comp_name = prop.value.strip().upper()
            if not comp_name:
                report.skipped.append(Skipped(line_no, line, "BEGIN without a component name"))
                continue
            component = RawComponent(name=comp_name)
            if stack:
                stack[-1].children.append(component)
            else:
                report.components.append(component)
            stack.append(component)

        elif prop.name == "END":
            comp_name = prop.value.strip().upper()
            if not stack:
                report.skipped.append(Skipped(line_no, line, "END outside of any component"))
                continue
            closed = stack.pop()
            if closed.name != comp_name:
                # The innermost open component is closed anyway.
                report.skipped.append(
                    Skipped(line_no, line, f"END:{comp_name} closes BEGIN:{closed.name}")
                )

        elif stack:
            stack[-1].properties.append(prop)

        else:
            report.skipped.append(Skipped(line_no, line, "property outside of any component"))

    if stack:
        raise UnsupportedInputShape(
            f"Unterminated component(s): {', '.join(c.name for c in stack)}"
        )
    if not report.components:
        raise UnsupportedInputShape("No BEGIN/END component found")

    return report


def extract_subcomponents(
    tree: RawComponent | Sequence[RawComponent], type_name: str
) -> list[RawComponent]:
    """Return every component named ``type_name`` at any depth, in document order.

    The root component(s) passed in are matched too.
    """
    roots = [tree] if isinstance(tree, RawComponent) else list(tree)
    wanted = type_name.upper()
    return [comp for root in roots for comp in root.walk() if comp.name == wanted]


# ---------------------------------------------------------------------------
# Event conversion
# ---------------------------------------------------------------------------


def _parse_value(prop: RawProperty) -> datetime | date | timedelta:
    try:
        return vDDDTypes.from_ical(prop.value.strip())
    except (ValueError, IndexError) as exc:
        raise MissingRequiredField(f"{prop.name}: unparseable value {prop.value!r}") from exc


def to_instant(prop: RawProperty) -> datetime:
    """Convert a DATE or DATE-TIME property into an aware datetime.

    UTC values ("Z" suffix) stay in UTC. Floating values are read in the
    process's local time zone. TZID parameters are not resolved and get the
    floating treatment. A plain DATE is local midnight.
    """
    value = _parse_value(prop)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.astimezone()
        return value
    if isinstance(value, date):
        return datetime.combine(value, time()).astimezone()
    raise MissingRequiredField(f"{prop.name}: expected a date or date-time, got {prop.value!r}")


def to_event(component: RawComponent) -> Event:
    """Read SUMMARY, DTSTART and DTEND (or DURATION) from a VEVENT.

    Raises:
        MissingRequiredField: DTSTART missing/unparseable, or no usable end.
    """
    summary_prop = component.get("SUMMARY")
    summary = summary_prop.value if summary_prop else ""

    dtstart = component.get("DTSTART")
    if dtstart is None:
        raise MissingRequiredField(f"{component.name} has no DTSTART")
    start = to_instant(dtstart)

    dtend = component.get("DTEND")
    duration_prop = component.get("DURATION")
    if dtend is not None:
        end = to_instant(dtend)
    elif duration_prop is not None:
        duration = _parse_value(duration_prop)
        if not isinstance(duration, timedelta):
            raise MissingRequiredField(f"DURATION: expected a duration, got {duration_prop.value!r}")
        end = start + duration
    elif _is_date_only(dtstart):
        end = start + timedelta(days=1)
    else:
        raise MissingRequiredField(f"{component.name} has neither DTEND nor DURATION")

    return Event(summary=summary, start=start, end=end)


def _is_date_only(prop: RawProperty) -> bool:
    value_type = prop.params.get("VALUE", "")
    return (isinstance(value_type, str) and value_type.upper() == "DATE") or len(prop.value.strip()) == 8


def parse_events(text: str | bytes, identifier: str = "") -> EventParseResult:
    """Parse one document end to end: tree, VEVENTs, Events.

    Event components that cannot be converted are dropped and counted;
    the rest of the document is still used.

    Raises:
        UnsupportedInputShape: see parse_document.
    """
    report = parse_document(text)
    result = EventParseResult(skipped_lines=report.skipped)

    vevents = extract_subcomponents(report.components, "VEVENT")
    logger.debug("Found %d VEVENT component(s) in %s", len(vevents), identifier or "<document>")

    for vevent in vevents:
        try:
            result.events.append(to_event(vevent))
        except MissingRequiredField as exc:
            result.skipped_components += 1
            logger.warning("Skipping event in %s: %s", identifier or "<document>", exc)

    if report.skipped:
        logger.info(
            "Skipped %d malformed line(s) in %s", len(report.skipped), identifier or "<document>"
        )
    return result
