"""Summary: Pattern-based extraction of titles, dates, times, and addresses.

Importance: Turns free-form assistant and user text into the fields of a proposed action.
Alternatives: Ask an NLU model to fill slots, or use a date parsing library.

Every extractor is an ordered tuple of independent matchers. Matchers are tried in
priority order and the first non-empty capture wins.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta
from typing import Callable, Iterable

Matcher = Callable[[str], "str | None"]

_STOP_WORDS = r"(?:for|on|at|tomorrow|today|next|this|event|from)"
# Capture ends before a stop word, punctuation, or the end of the text.
_TITLE_END = rf"(?=\s+{_STOP_WORDS}\b|\s*[.,!?;:\n]|\s*$)"

_SINGLE_QUOTED = re.compile(r"(?<!\w)'([^'\n]+)'(?!\w)")
_DOUBLE_QUOTED = re.compile(r"\"([^\"\n]+)\"|“([^”\n]+)”")
_TITLED = re.compile(rf"\b(?:titled|called)\s+(.+?){_TITLE_END}", re.IGNORECASE)
_ACTION_VERB = re.compile(
    rf"\b(?:create|schedule|set\s+up|book|add)\s+(?:(?:an?|the)\s+)?(?:new\s+)?(.+?){_TITLE_END}",
    re.IGNORECASE,
)

_COMMAND_PREFIXES = (
    "create a new event for ",
    "create a new event called ",
    "create a new event ",
    "create an event for ",
    "create an event called ",
    "create an event ",
    "create event for ",
    "create event ",
    "create a meeting for ",
    "create a ",
    "create an ",
    "create ",
    "schedule a meeting for ",
    "schedule a meeting about ",
    "schedule an event for ",
    "schedule a ",
    "schedule an ",
    "schedule ",
    "set up a meeting for ",
    "set up a ",
    "set up an ",
    "set up ",
    "book a ",
    "book an ",
    "book ",
    "add an event for ",
    "add an event called ",
    "add a ",
    "add an ",
    "add ",
    "remind me to ",
    "remind me about ",
    "put ",
)

_WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
_MONTHS = (
    r"(?:jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|aug(?:ust)?"
    r"|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)"
)
_CLOCK = r"\d{1,2}(?::\d{2})?\s*(?:am|pm)?"

_DATE_TIME_SUFFIXES = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        rf"(?:^|\s+)from\s+{_CLOCK}(?:\s*(?:-|to|until)\s*{_CLOCK})?$",
        rf"(?:^|\s+)(?:at|@)\s+{_CLOCK}$",
        r"(?:^|\s+)\d{1,2}(?::\d{2})?\s*(?:am|pm)$",
        rf"(?:^|\s+)(?:on\s+|next\s+|this\s+)?(?:{'|'.join(_WEEKDAYS)})$",
        rf"(?:^|\s+)(?:on\s+)?{_MONTHS}\.?\s+\d{{1,2}}(?:st|nd|rd|th)?(?:,?\s+\d{{4}})?$",
        r"(?:^|\s+)(?:on\s+)?\d{1,2}/\d{1,2}(?:/\d{2,4})?$",
        r"(?:^|\s+)(?:on\s+)?\d{4}-\d{2}-\d{2}$",
        r"(?:^|\s+)(?:tomorrow|today|tonight)$",
        r"(?:^|\s+)(?:next|this)\s+(?:week|month)$",
        r"(?:^|\s+)for\s+\d+\s*(?:hours?|hrs?|minutes?|mins?)$",
    )
)

_AM_PM_TIME_PATTERNS = (
    re.compile(r"\bat\s+(\d{1,2}):(\d{2})\s*(am|pm)\b", re.IGNORECASE),
    re.compile(r"\bat\s+(\d{1,2})\s*(am|pm)\b", re.IGNORECASE),
    re.compile(r"\bat\s+(\d{1,2}):(\d{2})\b", re.IGNORECASE),
    re.compile(r"\b(\d{1,2}):(\d{2})\s*(am|pm)\b", re.IGNORECASE),
    re.compile(r"\b(\d{1,2})\s*(am|pm)\b", re.IGNORECASE),
)

_HOURS = re.compile(r"\b(?<![\d.])(\d+)\s*(?:hours?|hrs?)\b", re.IGNORECASE)
_MINUTES = re.compile(r"\b(?<![\d.])(\d+)\s*(?:minutes?|mins?)\b", re.IGNORECASE)
_EMAIL_ADDRESS = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
_PUNCTUATION = " \t\n.,!?;:-"


def _first_group(pattern: re.Pattern[str]) -> Matcher:
    def match(text: str) -> str | None:
        found = pattern.search(text)
        if not found:
            return None
        groups = [group for group in found.groups() if group]
        return groups[0].strip() if groups else None

    return match


def first_match(matchers: Iterable[Matcher], text: str) -> str | None:
    """Summary: Run matchers in order and return the first non-empty capture.

    Importance: Encodes the first-match-wins policy shared by every extractor.
    Alternatives: Score all candidates and pick the best one.
    """

    for matcher in matchers:
        captured = matcher(text)
        if captured:
            return captured
    return None


_NAME_MATCHERS: tuple[Matcher, ...] = (
    _first_group(_SINGLE_QUOTED),
    _first_group(_DOUBLE_QUOTED),
    _first_group(_TITLED),
    _first_group(_ACTION_VERB),
)


def extract_quoted_or_titled_name(text: str) -> str | None:
    """Summary: Find an event title in assistant text.

    Importance: Most assistant replies quote or name the event they are about to create.
    Alternatives: Take the whole sentence as the title.
    """

    return first_match(_NAME_MATCHERS, text)


def extract_title_from_imperative_user_message(text: str) -> str:
    """Summary: Derive a title from a command such as "schedule a dentist visit tomorrow".

    Importance: Fallback when the assistant reply does not name the event.
    Alternatives: Always fall back to a generic title.
    """

    title = text.strip()
    lowered = title.lower()
    for prefix in _COMMAND_PREFIXES:
        if lowered.startswith(prefix):
            title = title[len(prefix):]
            break
    title = _strip_date_time_suffixes(title)
    title = title.strip(_PUNCTUATION)
    if len(title) < 2:
        return ""
    return title


def _strip_date_time_suffixes(text: str) -> str:
    current = text.strip(_PUNCTUATION)
    while True:
        previous = current
        for pattern in _DATE_TIME_SUFFIXES:
            current = pattern.sub("", current).rstrip(_PUNCTUATION)
        if current == previous:
            return current


def title_case(text: str) -> str:
    """Upper-case the first letter of each whitespace-delimited token."""

    return re.sub(r"\S+", lambda token: token.group(0)[:1].upper() + token.group(0)[1:], text)


def resolve_date(search_text: str, now: datetime) -> datetime:
    """Summary: Resolve the day an event should happen on.

    Importance: Anchors the event start; the time of day is applied separately.
    Alternatives: Parse absolute dates with a general-purpose date library.
    """

    if re.search(r"\btomorrow\b", search_text, re.IGNORECASE):
        return now + timedelta(days=1)
    if re.search(r"\btoday\b", search_text, re.IGNORECASE):
        return now
    for weekday, name in enumerate(_WEEKDAYS):
        for pattern in (rf"\bnext\s+{name}\b", rf"\b(?:this|on)\s+{name}\b", rf"\b{name}\b"):
            if re.search(pattern, search_text, re.IGNORECASE):
                return _next_weekday(now, weekday)
    return now


def _next_weekday(now: datetime, weekday: int) -> datetime:
    days_ahead = (weekday - now.weekday()) % 7 or 7
    return now + timedelta(days=days_ahead)


def resolve_time(search_text: str) -> tuple[int, int] | None:
    """Summary: Find a clock time as (hour, minute).

    Importance: Sets the start time on the resolved date.
    Alternatives: Require the assistant to emit ISO timestamps.

    A time without an am/pm marker is used as written; "at 5:00" is 05:00.
    """

    for pattern in _AM_PM_TIME_PATTERNS:
        for found in pattern.finditer(search_text):
            clock = _to_clock(found.groups())
            if clock is not None:
                return clock
    return None


def _to_clock(groups: tuple[str, ...]) -> tuple[int, int] | None:
    hour = int(groups[0])
    minute = 0
    marker = None
    for group in groups[1:]:
        if group is None:
            continue
        if group.isdigit():
            minute = int(group)
        else:
            marker = group.lower()
    if marker is not None and not 1 <= hour <= 12:
        return None
    if marker == "pm" and hour < 12:
        hour += 12
    elif marker == "am" and hour == 12:
        hour = 0
    if hour > 23 or minute > 59:
        return None
    return hour, minute


def resolve_duration(search_text: str) -> int | None:
    """Summary: Find an event duration in seconds.

    Importance: Sets the event end; callers apply the one-hour default when absent.
    Alternatives: Parse ranges such as "3pm to 5pm".
    """

    hours = _HOURS.search(search_text)
    if hours:
        return int(hours.group(1)) * 3600
    minutes = _MINUTES.search(search_text)
    if minutes:
        return int(minutes.group(1)) * 60
    return None


def extract_email_address(text: str) -> str | None:
    found = _EMAIL_ADDRESS.search(text)
    return found.group(0) if found else None


def extract_quoted_field(text: str, label: str) -> str | None:
    """Summary: Extract a quoted value that follows a label, e.g. subject: "Status".

    Importance: Pulls email subject and body out of an assistant reply.
    Alternatives: Require labelled fields on separate lines.
    """

    found = re.search(rf"{re.escape(label)}[:\s]+\"([^\"]*)\"", text, re.IGNORECASE)
    return found.group(1) if found else None
