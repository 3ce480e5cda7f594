"""Summary: Domain model dataclasses for ActionPilot.

Importance: Defines the conversation and action entities shared across the engine.
Alternatives: Use Pydantic models or plain dictionaries directly.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


def new_id() -> str:
    """Return an opaque identifier for messages and actions."""

    return uuid.uuid4().hex


class Role(str, Enum):
    """Summary: Speaker of a conversation message.

    Importance: Lets inference find the user turn that preceded an assistant reply.
    Alternatives: Store roles as free-form strings.
    """

    USER = "user"
    ASSISTANT = "assistant"


_TOOL_DISPLAY_NAMES = {
    "create_calendar_event": "Creating event",
    "list_calendar_events": "Listing events",
    "send_email": "Sending email",
    "draft_email": "Drafting email",
    "search_emails": "Searching emails",
}


@dataclass(frozen=True)
class ToolCall:
    """Summary: Structured function call issued by the AI model.

    Importance: Takes precedence over heuristic inference for the same turn.
    Alternatives: Re-parse the assistant text even when a call is present.
    """

    name: str
    parameters: dict[str, str] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        return _TOOL_DISPLAY_NAMES.get(self.name, self.name)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "parameters": dict(self.parameters)}

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "ToolCall":
        parameters = {str(key): str(value) for key, value in (data.get("parameters") or {}).items()}
        return ToolCall(name=data["name"], parameters=parameters)


@dataclass(frozen=True)
class Message:
    """Summary: Represents one conversation turn.

    Importance: Core unit appended to the conversation log by users, the AI and the engine.
    Alternatives: Keep separate lists per role.
    """

    role: Role
    text: str
    tool_call: ToolCall | None = None
    id: str = field(default_factory=new_id)

    def to_dict(self) -> dict[str, Any]:
        """Summary: Serialize the message with client-facing field names.

        Importance: Keeps the JSON shape stable for chat clients.
        Alternatives: Let each client map dataclass fields itself.
        """

        return {
            "id": self.id,
            "role": self.role.value,
            "content": self.text,
            "toolCall": self.tool_call.to_dict() if self.tool_call else None,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Message":
        tool_call = data.get("toolCall")
        return Message(
            id=data.get("id") or new_id(),
            role=Role(data["role"]),
            text=data.get("content", ""),
            tool_call=ToolCall.from_dict(tool_call) if tool_call else None,
        )


class ActionKind(str, Enum):
    """Summary: Kinds of side effects the assistant can propose.

    Importance: Selects the execution collaborator and the confirmation wording.
    Alternatives: Use separate proposal classes per effect.
    """

    CREATE_EVENT = "create_event"
    UPDATE_EVENT = "update_event"
    DELETE_EVENT = "delete_event"
    SEND_EMAIL = "send_email"
    DRAFT_EMAIL = "draft_email"

    @property
    def label(self) -> str:
        return _KIND_LABELS[self]

    @property
    def confirm_text(self) -> str:
        return _KIND_CONFIRM_TEXT[self]

    @property
    def is_destructive(self) -> bool:
        return self is ActionKind.DELETE_EVENT

    @property
    def is_event(self) -> bool:
        return self in (ActionKind.CREATE_EVENT, ActionKind.UPDATE_EVENT, ActionKind.DELETE_EVENT)


_KIND_LABELS = {
    ActionKind.CREATE_EVENT: "Create Event",
    ActionKind.UPDATE_EVENT: "Update Event",
    ActionKind.DELETE_EVENT: "Delete Event",
    ActionKind.SEND_EMAIL: "Send Email",
    ActionKind.DRAFT_EMAIL: "Draft Email",
}

_KIND_CONFIRM_TEXT = {
    ActionKind.CREATE_EVENT: "Create",
    ActionKind.UPDATE_EVENT: "Update",
    ActionKind.DELETE_EVENT: "Delete",
    ActionKind.SEND_EMAIL: "Send",
    ActionKind.DRAFT_EMAIL: "Save Draft",
}


@dataclass(frozen=True)
class EventActionData:
    """Summary: Calendar event fields for a proposed event action.

    Importance: Carries everything the calendar collaborator needs to create the event.
    Alternatives: Pass raw provider payloads to the calendar service.
    """

    title: str
    start: datetime
    end: datetime
    location: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class EmailActionData:
    """Summary: Email fields for a proposed send or draft action.

    Importance: Carries recipient, subject, and body to the email collaborator.
    Alternatives: Build MIME messages directly during inference.
    """

    to: str
    subject: str = "No Subject"
    body: str = ""


@dataclass(frozen=True)
class ProposedAction:
    """Summary: A not-yet-executed action awaiting user confirmation.

    Importance: The only thing the UI needs to render a preview card.
    Alternatives: Execute inferred actions immediately without review.
    """

    kind: ActionKind
    summary: str
    event_data: EventActionData | None = None
    email_data: EmailActionData | None = None
    id: str = field(default_factory=new_id, compare=False)

    def __post_init__(self) -> None:
        if (self.event_data is None) == (self.email_data is None):
            raise ValueError("ProposedAction needs exactly one of event_data or email_data")
        if self.kind.is_event and self.event_data is None:
            raise ValueError(f"{self.kind.value} requires event_data")
        if not self.kind.is_event and self.email_data is None:
            raise ValueError(f"{self.kind.value} requires email_data")


@dataclass(frozen=True)
class ActionResult:
    """Summary: Outcome of executing a confirmed action.

    Importance: Surfaced once to the client after execution.
    Alternatives: Report outcomes only through chat messages.
    """

    success: bool
    message: str


class ActionExecutionError(RuntimeError):
    """Summary: Raised by calendar and email services when an action cannot be carried out.

    Importance: Lets the confirmation flow report a readable failure to the user.
    Alternatives: Return error strings from every service call.
    """
