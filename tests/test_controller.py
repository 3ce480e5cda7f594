"""Summary: Tests for the action confirmation controller.

Importance: Ensures side effects happen only after confirmation and exactly once.
Alternatives: Exercise the controller only through the HTTP API.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta

from actionpilot.calendar import CalendarService, MockCalendarService
from actionpilot.controller import DECLINE_MESSAGE, ActionConfirmationController, ControllerState
from actionpilot.conversation import ConversationStore
from actionpilot.email import MockEmailService
from actionpilot.models import (
    ActionExecutionError,
    ActionKind,
    EmailActionData,
    EventActionData,
    ProposedAction,
)

START = datetime(2026, 10, 20, 15, 0)


def _event_action(title: str = "Team Sync") -> ProposedAction:
    return ProposedAction(
        kind=ActionKind.CREATE_EVENT,
        summary=f"Create '{title}'",
        event_data=EventActionData(title=title, start=START, end=START + timedelta(hours=2)),
    )


def _email_action(kind: ActionKind = ActionKind.SEND_EMAIL) -> ProposedAction:
    return ProposedAction(
        kind=kind,
        summary="Send email to alice@example.com",
        email_data=EmailActionData(to="alice@example.com", subject="Status"),
    )


def _controller(
    calendar: CalendarService | None = None,
) -> tuple[ActionConfirmationController, ConversationStore, CalendarService, MockEmailService]:
    conversation = ConversationStore()
    calendar = calendar or MockCalendarService()
    email = MockEmailService()
    return ActionConfirmationController(conversation, calendar, email), conversation, calendar, email


class FailingCalendarService(MockCalendarService):
    async def create_event(self, event: EventActionData) -> str:
        raise ActionExecutionError("calendar is read-only")


class ProposingCalendarService(MockCalendarService):
    """Calendar that tries to propose another action while it executes."""

    def __init__(self) -> None:
        super().__init__()
        self.controller: ActionConfirmationController | None = None
        self.accepted: bool | None = None

    async def create_event(self, event: EventActionData) -> str:
        self.accepted = self.controller.propose(_event_action("Intruder"))
        return await super().create_event(event)


def test_confirm_creates_event_and_appends_messages() -> None:
    """Summary: Confirming executes once and appends result and confirmation messages.

    Importance: The user sees both the outcome and a readable confirmation.
    Alternatives: Report only the boolean outcome.
    """

    controller, conversation, calendar, _ = _controller()
    assert controller.state is ControllerState.IDLE
    assert controller.propose(_event_action())
    assert controller.state is ControllerState.PROPOSED
    assert len(calendar.events) == 0

    result = asyncio.run(controller.confirm())
    assert result is not None
    assert result.success
    assert result.message == "Event created: Team Sync"
    assert len(calendar.events) == 1
    assert controller.pending is None
    assert controller.state is ControllerState.IDLE
    texts = [message.text for message in conversation.messages()]
    assert texts == [
        "Event created: Team Sync",
        "Done! 'Team Sync' is on your calendar for Tue, Oct 20 from 3:00 PM to 5:00 PM.",
    ]


def test_second_confirm_is_a_no_op() -> None:
    controller, conversation, calendar, _ = _controller()
    controller.propose(_event_action())
    asyncio.run(controller.confirm())
    assert asyncio.run(controller.confirm()) is None
    assert len(calendar.events) == 1
    assert len(conversation) == 2


def test_confirm_without_pending_returns_none() -> None:
    controller, conversation, _, _ = _controller()
    assert asyncio.run(controller.confirm()) is None
    assert len(conversation) == 0


def test_new_proposal_replaces_pending() -> None:
    """Summary: At most one action is pending; the newest wins.

    Importance: Confirming must never execute a stale proposal.
    Alternatives: Queue proposals.
    """

    controller, _, calendar, _ = _controller()
    controller.propose(_event_action("First"))
    second = _event_action("Second")
    controller.propose(second)
    assert controller.pending is second
    asyncio.run(controller.confirm())
    assert [event.title for event in calendar.events.values()] == ["Second"]


def test_decline_drops_pending_without_side_effects() -> None:
    controller, conversation, calendar, _ = _controller()
    controller.propose(_event_action())
    assert controller.decline()
    assert controller.pending is None
    assert controller.state is ControllerState.IDLE
    assert len(calendar.events) == 0
    assert [message.text for message in conversation] == [DECLINE_MESSAGE]
    assert not controller.decline()
    assert asyncio.run(controller.confirm()) is None


def test_discard_is_silent() -> None:
    controller, conversation, _, _ = _controller()
    assert not controller.discard()
    controller.propose(_event_action())
    assert controller.discard()
    assert controller.pending is None
    assert len(conversation) == 0


def test_failure_produces_single_failure_message() -> None:
    """Summary: A collaborator error becomes a failed result, not an exception.

    Importance: The conversation always records what happened to a confirmed action.
    Alternatives: Propagate the error to the client.
    """

    controller, conversation, _, _ = _controller(FailingCalendarService())
    controller.propose(_event_action())
    result = asyncio.run(controller.confirm())
    assert result is not None
    assert not result.success
    assert result.message == "Failed to create event: calendar is read-only"
    assert [message.text for message in conversation] == [result.message]
    assert controller.state is ControllerState.IDLE
    assert controller.pending is None


def test_send_and_draft_email() -> None:
    controller, conversation, _, email = _controller()
    controller.propose(_email_action())
    result = asyncio.run(controller.confirm())
    assert result.message == "Email sent to alice@example.com"
    assert email.sent == [EmailActionData(to="alice@example.com", subject="Status")]
    assert conversation.messages()[-1].text == (
        "Done! Your email 'Status' was sent to alice@example.com."
    )

    controller.propose(_email_action(ActionKind.DRAFT_EMAIL))
    result = asyncio.run(controller.confirm())
    assert result.message == "Draft saved for alice@example.com"
    assert len(email.drafts) == 1


def test_take_result_returns_once() -> None:
    controller, _, _, _ = _controller()
    assert controller.take_result() is None
    controller.propose(_event_action())
    result = asyncio.run(controller.confirm())
    assert controller.take_result() == result
    assert controller.take_result() is None


def test_proposal_rejected_while_executing() -> None:
    """Summary: Proposals arriving mid-execution are ignored.

    Importance: The executing action cannot be swapped out from under itself.
    Alternatives: Queue the new proposal for after execution.
    """

    calendar = ProposingCalendarService()
    controller, _, _, _ = _controller(calendar)
    calendar.controller = controller
    controller.propose(_event_action())
    result = asyncio.run(controller.confirm())
    assert result.success
    assert calendar.accepted is False
    assert controller.pending is None
    assert [event.title for event in calendar.events.values()] == ["Team Sync"]


def test_unsupported_kind_fails_readably() -> None:
    controller, conversation, _, _ = _controller()
    action = ProposedAction(
        kind=ActionKind.DELETE_EVENT,
        summary="Delete 'Team Sync'",
        event_data=EventActionData(title="Team Sync", start=START, end=START + timedelta(hours=1)),
    )
    controller.propose(action)
    result = asyncio.run(controller.confirm())
    assert not result.success
    assert result.message == "Failed to delete event: Delete Event is not supported yet"
    assert len(conversation) == 1
