"""Summary: Builds proposed actions from detected intents and tool calls.

Importance: Produces the typed record the user confirms before anything happens.
Alternatives: Let the UI assemble actions from raw extraction results.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from actionpilot.detection import DetectedIntent
from actionpilot.extraction import (
    extract_email_address,
    extract_quoted_field,
    extract_quoted_or_titled_name,
    extract_title_from_imperative_user_message,
    resolve_date,
    resolve_duration,
    resolve_time,
    title_case,
)
from actionpilot.models import (
    ActionKind,
    EmailActionData,
    EventActionData,
    ProposedAction,
    ToolCall,
)

logger = logging.getLogger(__name__)

DEFAULT_EVENT_TITLE = "New Event"
DEFAULT_EMAIL_SUBJECT = "No Subject"
DEFAULT_EVENT_DURATION = timedelta(hours=1)
_PLACEHOLDER_TITLES = {"new event", "event"}


def build_event_action(raw_text: str, user_text: str, now: datetime) -> ProposedAction:
    """Summary: Build a create-event action from an assistant reply and the user request.

    Importance: Always returns something the user can review, even from sparse text.
    Alternatives: Refuse to propose when the title or time is missing.
    """

    title = extract_quoted_or_titled_name(raw_text) or ""
    if title.lower() in _PLACEHOLDER_TITLES:
        title = ""
    if not title:
        title = extract_title_from_imperative_user_message(user_text)
    title = title_case(title or DEFAULT_EVENT_TITLE)

    search_text = f"{raw_text} {user_text}"
    start = resolve_date(search_text, now)
    clock = resolve_time(search_text)
    if clock is not None:
        hour, minute = clock
        start = start.replace(hour=hour, minute=minute, second=0, microsecond=0)
    end = _event_end(start, resolve_duration(search_text))

    return ProposedAction(
        kind=ActionKind.CREATE_EVENT,
        event_data=EventActionData(title=title, start=start, end=end),
        summary=f"Create '{title}'",
    )


def build_email_action(raw_text: str) -> ProposedAction | None:
    """Summary: Build a send-email action, or nothing when no recipient is found.

    Importance: An email without an address cannot be sent, so it is never proposed.
    Alternatives: Propose the email and ask the user for the address.
    """

    to = extract_email_address(raw_text)
    if not to:
        return None
    email = EmailActionData(
        to=to,
        subject=extract_quoted_field(raw_text, "subject") or DEFAULT_EMAIL_SUBJECT,
        body=extract_quoted_field(raw_text, "body") or "",
    )
    return ProposedAction(kind=ActionKind.SEND_EMAIL, email_data=email, summary=f"Send email to {to}")


def build_action(intent: DetectedIntent, now: datetime) -> ProposedAction | None:
    """Build the action for a detected intent."""

    if intent.kind is ActionKind.CREATE_EVENT:
        return build_event_action(intent.raw_text, intent.user_text, now)
    if intent.kind is ActionKind.SEND_EMAIL:
        return build_email_action(intent.raw_text)
    return None


def build_action_from_tool_call(tool_call: ToolCall, now: datetime) -> ProposedAction | None:
    """Summary: Convert a structured tool call from the AI model into a proposed action.

    Importance: Structured calls are more reliable than text heuristics and take precedence.
    Alternatives: Execute tool calls immediately without confirmation.
    """

    params = tool_call.parameters
    if tool_call.name == "create_calendar_event":
        return _event_from_tool_call(params, now)
    if tool_call.name in ("send_email", "draft_email"):
        to = (params.get("to") or "").strip()
        if "@" not in to:
            logger.info("Ignoring %s tool call without a recipient.", tool_call.name)
            return None
        email = EmailActionData(
            to=to,
            subject=params.get("subject") or DEFAULT_EMAIL_SUBJECT,
            body=params.get("body") or "",
        )
        if tool_call.name == "draft_email":
            return ProposedAction(
                kind=ActionKind.DRAFT_EMAIL, email_data=email, summary=f"Save draft to {to}"
            )
        return ProposedAction(kind=ActionKind.SEND_EMAIL, email_data=email, summary=f"Send email to {to}")
    return None


def _event_from_tool_call(params: dict[str, str], now: datetime) -> ProposedAction | None:
    date_raw = params.get("date") or now.date().isoformat()
    time_raw = params.get("time") or ""
    try:
        day = datetime.strptime(date_raw, "%Y-%m-%d")
        clock = datetime.strptime(time_raw, "%H:%M")
        minutes = int(params.get("duration") or 60)
        start = day.replace(hour=clock.hour, minute=clock.minute)
        end = _event_end(start, minutes * 60)
    except (ValueError, OverflowError):
        logger.info("Ignoring create_calendar_event call with date=%r time=%r.", date_raw, time_raw)
        return None
    title = title_case((params.get("title") or "").strip() or DEFAULT_EVENT_TITLE)
    return ProposedAction(
        kind=ActionKind.CREATE_EVENT,
        event_data=EventActionData(
            title=title,
            start=start,
            end=end,
            location=params.get("location") or None,
            description=params.get("description") or None,
        ),
        summary=f"Create '{title}'",
    )


def _event_end(start: datetime, duration_seconds: int | None) -> datetime:
    """Summary: Add a duration to the start, falling back to the one-hour default.

    Importance: Zero, negative, or out-of-range durations still yield a valid event.
    Alternatives: Reject the proposal when the duration is unusable.
    """

    if not duration_seconds or duration_seconds < 0:
        return start + DEFAULT_EVENT_DURATION
    try:
        return start + timedelta(seconds=duration_seconds)
    except OverflowError:
        logger.info("Duration of %s seconds is out of range; using the default.", duration_seconds)
        return start + DEFAULT_EVENT_DURATION
