"""Summary: Calendar service interfaces and implementations.

Importance: Executes confirmed event actions against a calendar backend.
Alternatives: Call provider SDKs directly from the confirmation controller.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path

from actionpilot.models import ActionExecutionError, EventActionData, new_id

logger = logging.getLogger(__name__)


class CalendarService(ABC):
    """Summary: Abstract interface for creating and listing calendar events.

    Importance: Standardizes execution across mocked and file-backed calendars.
    Alternatives: Couple execution to a single calendar API.
    """

    @abstractmethod
    async def create_event(self, event: EventActionData) -> str:
        """Summary: Create an event and return its identifier.

        Importance: Carries out a confirmed create-event action.
        Alternatives: Return the provider payload instead of an identifier.
        """

    @abstractmethod
    async def list_events(self, limit: int) -> list[EventActionData]:
        """Summary: List events ordered by start time.

        Importance: Lets clients check what confirmed actions produced.
        Alternatives: Fetch events by date range instead of a limit.
        """


class MockCalendarService(CalendarService):
    """Summary: Keeps created events in memory.

    Importance: Supports offline demos and tests.
    Alternatives: Write events to a temporary file.
    """

    def __init__(self) -> None:
        self.events: dict[str, EventActionData] = {}

    async def create_event(self, event: EventActionData) -> str:
        """Summary: Store the event under a generated mock identifier.

        Importance: Lets tests assert exactly which events were created.
        Alternatives: Use sequential integer identifiers.
        """

        event_id = f"mock-{new_id()}"
        self.events[event_id] = event
        logger.info("Created mock event %s (%s).", event_id, event.title)
        return event_id

    async def list_events(self, limit: int) -> list[EventActionData]:
        return sorted(self.events.values(), key=lambda item: item.start)[:limit]


class IcsCalendarService(CalendarService):
    """Summary: Appends events to a local iCalendar (.ics) file.

    Importance: Produces calendar entries any calendar app can import, without OAuth.
    Alternatives: Use Google or Microsoft APIs with OAuth.
    """

    def __init__(self, ics_path: Path) -> None:
        """Summary: Initialize the iCalendar service.

        Importance: Allows a configurable calendar file location.
        Alternatives: Always write to a fixed path.
        """

        self._ics_path = ics_path

    async def create_event(self, event: EventActionData) -> str:
        """Summary: Append a VEVENT to the calendar file.

        Importance: File writes run off the event loop.
        Alternatives: Rewrite the whole calendar on every change.
        """

        event_id = f"{new_id()}@actionpilot"
        try:
            await asyncio.to_thread(self._append_event, event_id, event)
        except OSError as exc:
            raise ActionExecutionError(f"Could not write calendar file {self._ics_path}: {exc}") from exc
        logger.info("Wrote event %s to %s.", event_id, self._ics_path)
        return event_id

    async def list_events(self, limit: int) -> list[EventActionData]:
        """Summary: Read events back from the calendar file.

        Importance: Shows what confirmed actions wrote, including events from imported files.
        Alternatives: Keep a separate index of created events.
        """

        if not self._ics_path.exists():
            return []
        raw = await asyncio.to_thread(self._ics_path.read_text, encoding="utf-8")
        events = [
            EventActionData(
                title=_unescape_ics_text(item.get("SUMMARY", "Untitled")),
                start=_parse_ics_datetime(item.get("DTSTART", "")),
                end=_parse_ics_datetime(item.get("DTEND", "")),
                location=_unescape_ics_text(item["LOCATION"]) if "LOCATION" in item else None,
                description=_unescape_ics_text(item["DESCRIPTION"]) if "DESCRIPTION" in item else None,
            )
            for item in _parse_ics_events(raw)
            if item.get("DTSTART")
        ]
        return sorted(events, key=lambda item: item.start)[:limit]

    def _append_event(self, event_id: str, event: EventActionData) -> None:
        lines = [
            "BEGIN:VEVENT",
            f"UID:{event_id}",
            f"DTSTAMP:{datetime.now(timezone.utc).strftime('%Y%m%dT%H%M%SZ')}",
            f"DTSTART:{_format_ics_datetime(event.start)}",
            f"DTEND:{_format_ics_datetime(event.end)}",
            f"SUMMARY:{_escape_ics_text(event.title)}",
        ]
        if event.location:
            lines.append(f"LOCATION:{_escape_ics_text(event.location)}")
        if event.description:
            lines.append(f"DESCRIPTION:{_escape_ics_text(event.description)}")
        lines.append("END:VEVENT")

        if self._ics_path.exists():
            existing = self._ics_path.read_text(encoding="utf-8").rstrip().splitlines()
            if existing and existing[-1].strip() == "END:VCALENDAR":
                existing = existing[:-1]
        else:
            self._ics_path.parent.mkdir(parents=True, exist_ok=True)
            existing = ["BEGIN:VCALENDAR", "VERSION:2.0", "PRODID:-//ActionPilot//EN"]
        content = "\r\n".join(existing + lines + ["END:VCALENDAR"]) + "\r\n"
        self._ics_path.write_text(content, encoding="utf-8")


def _parse_ics_events(raw: str) -> list[dict[str, str]]:
    """Summary: Parse raw iCalendar data into event dictionaries.

    Importance: Extracts the fields needed to read events back.
    Alternatives: Use an iCalendar library for robust parsing.
    """

    unfolded_lines: list[str] = []
    for line in raw.splitlines():
        if line.startswith(" ") and unfolded_lines:
            unfolded_lines[-1] += line[1:]
        else:
            unfolded_lines.append(line.strip())
    events: list[dict[str, str]] = []
    current: dict[str, str] | None = None
    for line in unfolded_lines:
        if line == "BEGIN:VEVENT":
            current = {}
            continue
        if line == "END:VEVENT" and current is not None:
            events.append(current)
            current = None
            continue
        if current is None or ":" not in line:
            continue
        key, value = line.split(":", 1)
        current[key.split(";", 1)[0]] = value
    return events


def _format_ics_datetime(value: datetime) -> str:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    return value.strftime("%Y%m%dT%H%M%S")


def _parse_ics_datetime(value: str) -> datetime:
    """Summary: Parse a minimal iCalendar datetime string.

    Importance: Restores event times written by this service or imported files.
    Alternatives: Treat timestamps as raw strings.
    """

    cleaned = value.replace("Z", "")
    if len(cleaned) == 8:
        parsed = datetime.strptime(cleaned, "%Y%m%d")
    else:
        parsed = datetime.strptime(cleaned, "%Y%m%dT%H%M%S")
    if value.endswith("Z"):
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def _escape_ics_text(value: str) -> str:
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
    )


def _unescape_ics_text(value: str) -> str:
    result: list[str] = []
    escaped = False
    for char in value:
        if escaped:
            result.append("\n" if char in "nN" else char)
            escaped = False
        elif char == "\\":
            escaped = True
        else:
            result.append(char)
    return "".join(result)
