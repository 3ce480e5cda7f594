"""Summary: Tests for the assistant session service.

Importance: Covers the full turn from user text to a confirmable action.
Alternatives: Only test the pieces separately.
"""

from __future__ import annotations

import asyncio
from datetime import datetime

from actionpilot.ai import AiConversationClient, AiProvider, AiResult, MockAiProvider
from actionpilot.calendar import MockCalendarService
from actionpilot.controller import ActionConfirmationController
from actionpilot.conversation import ConversationStore
from actionpilot.email import MockEmailService
from actionpilot.models import ActionKind, Message, Role, ToolCall
from actionpilot.services import AssistantSession, infer_action

NOW = datetime(2026, 10, 19, 9, 30)


class ScriptedProvider(AiProvider):
    """Returns queued results and records the history it was given."""

    def __init__(self, *results: AiResult) -> None:
        self._results = list(results)
        self.histories: list[list[Message]] = []

    def generate_reply(self, text: str, history: list[Message]) -> AiResult:
        self.histories.append(history)
        return self._results.pop(0)


class BrokenProvider(AiProvider):
    def generate_reply(self, text: str, history: list[Message]) -> AiResult:
        raise RuntimeError("model offline")


def _session(provider: AiProvider) -> tuple[AssistantSession, MockCalendarService, MockEmailService]:
    conversation = ConversationStore()
    calendar = MockCalendarService()
    email = MockEmailService()
    session = AssistantSession(
        conversation=conversation,
        controller=ActionConfirmationController(conversation, calendar, email),
        ai_client=AiConversationClient(provider),
        clock=lambda: NOW,
    )
    return session, calendar, email


def test_turn_proposes_event_and_confirm_creates_it() -> None:
    """Summary: A reply announcing an event yields a proposal, and confirming creates it.

    Importance: The end-to-end happy path of the engine.
    Alternatives: Create events straight from the reply.
    """

    provider = ScriptedProvider(
        AiResult(text="I'll create an event called team sync at 3pm tomorrow for 2 hours", latency_ms=1)
    )
    session, calendar, _ = _session(provider)
    reply, action = asyncio.run(session.send_user_message("Set up a team sync"))
    assert reply.role is Role.ASSISTANT
    assert action is not None
    assert session.pending is action
    assert action.event_data.title == "Team Sync"
    assert action.event_data.start == datetime(2026, 10, 20, 15, 0)
    assert provider.histories == [[]]

    result = asyncio.run(session.confirm_pending())
    assert result.success
    assert len(calendar.events) == 1
    assert session.take_result() == result
    assert session.take_result() is None


def test_title_falls_back_to_preceding_user_message() -> None:
    provider = ScriptedProvider(AiResult(text="Sure, I'll create an event for you.", latency_ms=1))
    session, _, _ = _session(provider)
    _, action = asyncio.run(session.send_user_message("Schedule a dentist appointment tomorrow at 10am"))
    assert action.event_data.title == "Dentist Appointment"
    assert action.event_data.start == datetime(2026, 10, 20, 10, 0)


def test_plain_reply_proposes_nothing() -> None:
    session, _, _ = _session(MockAiProvider())
    reply, action = asyncio.run(session.send_user_message("What's on my calendar?"))
    assert action is None
    assert session.pending is None
    assert reply.text == "What's on my calendar?"
    assert len(session.conversation) == 2


def test_email_without_address_falls_through_to_nothing() -> None:
    session, _, _ = _session(MockAiProvider())
    _, action = asyncio.run(session.send_user_message("I'll send an email to Bob."))
    assert action is None


def test_new_turn_discards_unanswered_proposal() -> None:
    """Summary: A new user turn drops the previous unanswered proposal.

    Importance: Confirmation always applies to the latest request.
    Alternatives: Keep the proposal until explicitly declined.
    """

    provider = ScriptedProvider(
        AiResult(text="I'll create 'Gym' tomorrow", latency_ms=1),
        AiResult(text="Anything else?", latency_ms=1),
    )
    session, calendar, _ = _session(provider)
    asyncio.run(session.send_user_message("book gym"))
    assert session.pending is not None
    asyncio.run(session.send_user_message("never mind"))
    assert session.pending is None
    assert asyncio.run(session.confirm_pending()) is None
    assert len(calendar.events) == 0
    assert [message.role for message in provider.histories[1]] == [Role.USER, Role.ASSISTANT]


def test_tool_call_takes_precedence() -> None:
    """Summary: A structured call is used even when the text would infer something else.

    Importance: Avoids proposing two different actions for the same reply.
    Alternatives: Merge tool call and heuristic results.
    """

    call = ToolCall(
        name="send_email",
        parameters={"to": "carol@example.com", "subject": "Hi", "body": "Hello"},
    )
    provider = ScriptedProvider(AiResult(text="I'll create 'Party' tomorrow", latency_ms=1, tool_call=call))
    session, _, email = _session(provider)
    _, action = asyncio.run(session.send_user_message("email carol"))
    assert action.kind is ActionKind.SEND_EMAIL
    asyncio.run(session.confirm_pending())
    assert email.sent[0].to == "carol@example.com"


def test_ai_failure_appends_error_reply() -> None:
    session, _, _ = _session(BrokenProvider())
    reply, action = asyncio.run(session.send_user_message("hello"))
    assert action is None
    assert reply.text == "Sorry, I encountered an error: model offline"
    assert session.conversation.messages()[-1] == reply


def test_on_assistant_message_records_and_infers() -> None:
    session, _, _ = _session(MockAiProvider())
    session.conversation.add_user_message("remind me to call mom on Friday")
    message = Message(role=Role.ASSISTANT, text="I'll create an event for that.")
    action = session.on_assistant_message(message)
    assert message in session.conversation
    assert action.event_data.title == "Call Mom"
    assert action.event_data.start.date() == datetime(2026, 10, 23).date()
    session.on_assistant_message(message)
    assert len(session.conversation) == 2


def test_decline_pending() -> None:
    session, calendar, _ = _session(MockAiProvider())
    asyncio.run(session.send_user_message("I'll create 'Review' today"))
    assert session.decline_pending()
    assert not session.decline_pending()
    assert len(calendar.events) == 0


def test_infer_action_prefers_event_and_skips_unbuildable_email() -> None:
    action = infer_action("I'll send the invite and I'll create 'Launch'", "", NOW)
    assert action.kind is ActionKind.CREATE_EVENT
    assert infer_action("I'll send it to Bob", "", NOW) is None
    email = infer_action("I'll send a note to bob@example.com", "", NOW)
    assert email.kind is ActionKind.SEND_EMAIL


class TimingOutProvider(AiProvider):
    def generate_reply(self, text: str, history: list[Message]) -> AiResult:
        raise TimeoutError("The read operation timed out")


def test_ai_timeout_appends_error_reply() -> None:
    """Summary: A socket timeout from the provider ends the turn with an error reply.

    Importance: The user message is never left without an answer.
    Alternatives: Let the timeout propagate to the caller.
    """

    session, _, _ = _session(TimingOutProvider())
    reply, action = asyncio.run(session.send_user_message("hi"))
    assert action is None
    assert reply.text.startswith("Sorry, I encountered an error:")
    assert "timed out" in reply.text
    assert [message.role for message in session.conversation] == [Role.USER, Role.ASSISTANT]
