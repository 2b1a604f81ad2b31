"""Tests for src.core.event_store — loading, failure isolation and date queries."""

from datetime import date, datetime
from unittest.mock import patch

import pytest

from src.core.event_store import EventStore, LoadReport
from src.ports.document_port import CalendarDocument, DocumentReadFailure

STANDUP = "SUMMARY:Standup\nDTSTART:20240115T090000\nDTEND:20240115T093000"
REVIEW = "SUMMARY:Review\nDTSTART:20240115T140000\nDTEND:20240115T150000"
LUNCH = "SUMMARY:Lunch\nDTSTART:20240115T120000\nDTEND:20240115T130000"
NEXT_DAY = "SUMMARY:Retro\nDTSTART:20240116T090000\nDTEND:20240116T100000"

PARSE_EVENTS_PATH = "src.core.event_store.parse_events"


def _failing_reader():
    raise OSError("permission denied")


# ---------------------------------------------------------------------------
# Tests for load_all
# ---------------------------------------------------------------------------


class TestLoadAll:
    def test_starts_empty(self):
        store = EventStore()
        assert store.is_empty
        assert store.events == ()

    def test_single_document(self, make_ics):
        store = EventStore()
        report = store.load_all([("work.ics", make_ics(STANDUP))])

        assert report.event_count == 1
        assert report.documents_loaded == 1
        assert report.failures == []
        assert store.events[0].summary == "Standup"
        assert store.events[0].start == datetime(2024, 1, 15, 9, 0).astimezone()
        assert store.events[0].end == datetime(2024, 1, 15, 9, 30).astimezone()

    def test_concatenates_in_source_and_component_order(self, make_ics):
        store = EventStore()
        store.load_all([
            ("a.ics", make_ics(REVIEW, STANDUP)),
            ("b.ics", make_ics(LUNCH)),
        ])
        assert [e.summary for e in store.events] == ["Review", "Standup", "Lunch"]

    def test_duplicates_across_documents_kept(self, make_ics):
        store = EventStore()
        store.load_all([("a.ics", make_ics(STANDUP)), ("b.ics", make_ics(STANDUP))])
        assert len(store.events) == 2

    def test_malformed_document_isolated(self, make_ics):
        store = EventStore()
        unterminated = "BEGIN:VCALENDAR\nBEGIN:VEVENT\n" + STANDUP + "\n"
        report = store.load_all([
            ("broken.ics", unterminated),
            ("good.ics", make_ics(LUNCH)),
        ])

        assert [e.summary for e in store.events] == ["Lunch"]
        assert report.documents_loaded == 1
        assert len(report.failures) == 1
        assert report.failures[0].identifier == "broken.ics"
        assert report.failures[0].kind == "UnsupportedInputShape"

    def test_read_failure_isolated(self, make_ics):
        store = EventStore()
        report = store.load_all([
            CalendarDocument("locked.ics", _failing_reader),
            CalendarDocument.from_text("ok.ics", make_ics(STANDUP)),
        ])

        assert report.event_count == 1
        assert report.failures[0].kind == "DocumentReadFailure"
        assert "permission denied" in report.failures[0].detail

    def test_malformed_components_counted(self, make_ics):
        store = EventStore()
        report = store.load_all([
            ("a.ics", make_ics(STANDUP, "SUMMARY:No times", LUNCH)),
        ])
        assert report.event_count == 2
        assert report.skipped_components == 1

    def test_reload_replaces_collection(self, make_ics):
        store = EventStore()
        store.load_all([("a.ics", make_ics(STANDUP, LUNCH))])
        before = store.events

        store.load_all([("b.ics", make_ics(REVIEW))])

        assert [e.summary for e in store.events] == ["Review"]
        # The previous snapshot is untouched
        assert [e.summary for e in before] == ["Standup", "Lunch"]

    def test_reload_with_nothing_returns_to_empty(self, make_ics):
        store = EventStore()
        store.load_all([("a.ics", make_ics(STANDUP))])
        report = store.load_all([])
        assert store.is_empty
        assert report.event_count == 0

    def test_accepts_bytes(self, make_ics):
        store = EventStore()
        store.load_all([("a.ics", make_ics(STANDUP).encode("utf-8"))])
        assert len(store.events) == 1

    def test_bad_pair_shape_isolated(self, make_ics):
        store = EventStore()
        report = store.load_all([("a.ics",), ("b.ics", make_ics(LUNCH))])

        assert [e.summary for e in store.events] == ["Lunch"]
        assert report.documents_loaded == 1
        assert len(report.failures) == 1
        assert report.failures[0].kind == "DocumentReadFailure"
        assert "a.ics" in report.failures[0].identifier

    def test_unexpected_error_has_its_own_kind(self, make_ics):
        store = EventStore()
        with patch(PARSE_EVENTS_PATH, side_effect=TypeError("boom")):
            report = store.load_all([("a.ics", make_ics(STANDUP))])

        assert store.is_empty
        assert report.failures[0].identifier == "a.ics"
        assert report.failures[0].kind == "UnexpectedError"
        assert report.failures[0].detail == "TypeError: boom"


class TestLoadReport:
    def test_message(self):
        assert LoadReport(event_count=3).message == "Loaded 3 events from ICS files."


# ---------------------------------------------------------------------------
# Tests for events_on_date
# ---------------------------------------------------------------------------


class TestEventsOnDate:
    @pytest.fixture
    def store(self, make_ics):
        store = EventStore()
        store.load_all([("a.ics", make_ics(REVIEW, NEXT_DAY, STANDUP))])
        return store

    def test_filters_by_day(self, store):
        events = store.events_on_date(date(2024, 1, 15))
        assert [e.summary for e in events] == ["Review", "Standup"]

    def test_keeps_collection_order(self, store):
        events = store.events_on_date(date(2024, 1, 15))
        # Review (14:00) stays ahead of Standup (09:00)
        assert events[0].summary == "Review"

    def test_datetime_target_is_truncated(self, store):
        events = store.events_on_date(datetime(2024, 1, 16, 23, 59))
        assert [e.summary for e in events] == ["Retro"]

    def test_no_match(self, store):
        assert store.events_on_date(date(2023, 12, 31)) == []

    def test_idempotent(self, store):
        first = store.events_on_date(date(2024, 1, 15))
        second = store.events_on_date(date(2024, 1, 15))
        assert first == second

    def test_default_is_today(self, make_ics):
        today = date.today()
        body = f"SUMMARY:Today\nDTSTART:{today:%Y%m%d}T100000\nDTEND:{today:%Y%m%d}T110000"
        store = EventStore()
        store.load_all([("a.ics", make_ics(body))])

        assert [e.summary for e in store.events_on_date()] == ["Today"]
        assert [e.summary for e in store.todays_events()] == ["Today"]

    def test_utc_event_uses_local_calendar_day(self, local_tz, make_ics):
        local_tz("JST-9")
        body = "SUMMARY:Late call\nDTSTART:20240115T233000Z\nDTEND:20240116T000000Z"
        store = EventStore()
        store.load_all([("a.ics", make_ics(body))])

        assert store.events_on_date(date(2024, 1, 15)) == []
        assert [e.summary for e in store.events_on_date(date(2024, 1, 16))] == ["Late call"]


class TestCalendarDocument:
    def test_read_wraps_errors(self):
        doc = CalendarDocument("x.ics", _failing_reader)
        with pytest.raises(DocumentReadFailure, match="x.ics"):
            doc.read()

    def test_from_text(self):
        assert CalendarDocument.from_text("x.ics", "abc").read() == "abc"
