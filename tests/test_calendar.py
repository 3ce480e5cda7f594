"""Summary: Tests for calendar services.

Importance: Ensures confirmed events land in the configured calendar.
Alternatives: Validate calendar output manually in a calendar app.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from pathlib import Path

import pytest

from actionpilot.calendar import IcsCalendarService, MockCalendarService
from actionpilot.models import ActionExecutionError, EventActionData


def _event(title: str, day: int, **extra: str) -> EventActionData:
    return EventActionData(
        title=title,
        start=datetime(2026, 10, day, 15, 0),
        end=datetime(2026, 10, day, 16, 0),
        **extra,
    )


def test_mock_calendar_lists_by_start() -> None:
    """Summary: Mock events are kept in memory and listed in start order.

    Importance: Keeps demos and tests deterministic.
    Alternatives: Return events in insertion order.
    """

    calendar = MockCalendarService()
    later_id = asyncio.run(calendar.create_event(_event("Later", 22)))
    asyncio.run(calendar.create_event(_event("Sooner", 20)))
    assert later_id.startswith("mock-")
    events = asyncio.run(calendar.list_events(5))
    assert [event.title for event in events] == ["Sooner", "Later"]
    assert len(asyncio.run(calendar.list_events(1))) == 1


def test_ics_calendar_round_trip(tmp_path: Path) -> None:
    """Summary: Events appended to the .ics file are read back intact.

    Importance: Validates escaping and the single VCALENDAR wrapper.
    Alternatives: Only check the raw file text.
    """

    path = tmp_path / "data" / "calendar.ics"
    calendar = IcsCalendarService(path)
    first = _event("Lunch, with Bob; maybe", 21, location="Cafe", description="line one\nline two")
    uid = asyncio.run(calendar.create_event(first))
    asyncio.run(calendar.create_event(_event("Team Sync", 20)))

    assert uid.endswith("@actionpilot")
    raw = path.read_text(encoding="utf-8")
    assert raw.count("BEGIN:VCALENDAR") == 1
    assert raw.count("END:VCALENDAR") == 1
    assert raw.count("BEGIN:VEVENT") == 2
    assert "SUMMARY:Lunch\\, with Bob\\; maybe" in raw

    events = asyncio.run(calendar.list_events(10))
    assert [event.title for event in events] == ["Team Sync", "Lunch, with Bob; maybe"]
    assert events[1] == first
    assert events[0].location is None


def test_ics_calendar_reads_external_file(tmp_path: Path) -> None:
    path = tmp_path / "imported.ics"
    path.write_text(
        """
BEGIN:VCALENDAR
BEGIN:VEVENT
UID:external-1
DTSTART:20261020T100000
DTEND:20261020T103000
SUMMARY:Quarterly
  Planning
END:VEVENT
BEGIN:VEVENT
UID:external-2
DTSTART;VALUE=DATE:20261019
DTEND;VALUE=DATE:20261020
SUMMARY:Holiday
END:VEVENT
END:VCALENDAR
        """.strip(),
        encoding="utf-8",
    )
    events = asyncio.run(IcsCalendarService(path).list_events(10))
    assert [event.title for event in events] == ["Holiday", "Quarterly Planning"]
    assert events[0].start == datetime(2026, 10, 19)
    assert events[1].end == datetime(2026, 10, 20, 10, 30)


def test_ics_calendar_reads_utc_times(tmp_path: Path) -> None:
    path = tmp_path / "utc.ics"
    path.write_text(
        "BEGIN:VCALENDAR\nBEGIN:VEVENT\nDTSTART:20261020T100000Z\nDTEND:20261020T110000Z\n"
        "SUMMARY:Remote\nEND:VEVENT\nEND:VCALENDAR\n",
        encoding="utf-8",
    )
    events = asyncio.run(IcsCalendarService(path).list_events(10))
    assert events[0].start == datetime(2026, 10, 20, 10, 0, tzinfo=timezone.utc)


def test_ics_calendar_missing_file_is_empty(tmp_path: Path) -> None:
    assert asyncio.run(IcsCalendarService(tmp_path / "none.ics").list_events(5)) == []


def test_ics_calendar_write_failure(tmp_path: Path) -> None:
    """Summary: File system errors surface as execution errors.

    Importance: The controller reports them as a failed result.
    Alternatives: Let OSError escape.
    """

    with pytest.raises(ActionExecutionError):
        asyncio.run(IcsCalendarService(tmp_path).create_event(_event("Nope", 20)))
