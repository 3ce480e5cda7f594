"""Summary: Confirmation state machine for proposed actions.

Importance: Guarantees nothing happens until the user confirms, and at most one action is pending.
Alternatives: Execute inferred actions directly and offer an undo.
"""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum

from actionpilot.calendar import CalendarService
from actionpilot.conversation import ConversationStore
from actionpilot.email import EmailService
from actionpilot.models import ActionKind, ActionResult, ProposedAction

logger = logging.getLogger(__name__)

DECLINE_MESSAGE = "No problem, I won't go ahead with that."


class ControllerState(str, Enum):
    IDLE = "idle"
    PROPOSED = "proposed"
    EXECUTING = "executing"


class ActionConfirmationController:
    """Summary: Holds at most one pending action and drives it to a result.

    Importance: Serializes proposal, confirmation, and execution for one conversation.
    Alternatives: Queue every proposal and let the user work through them.

    All methods must be called from the event loop that owns the conversation.
    """

    def __init__(
        self,
        conversation: ConversationStore,
        calendar: CalendarService,
        email: EmailService,
    ) -> None:
        self._conversation = conversation
        self._calendar = calendar
        self._email = email
        self._state = ControllerState.IDLE
        self._pending: ProposedAction | None = None
        self._last_result: ActionResult | None = None

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def pending(self) -> ProposedAction | None:
        return self._pending

    def propose(self, action: ProposedAction) -> bool:
        """Summary: Make an action the pending one, replacing any unresolved proposal.

        Importance: A newer request supersedes an older one instead of queueing behind it.
        Alternatives: Reject new proposals until the old one is resolved.
        """

        if self._state is ControllerState.EXECUTING:
            logger.warning("Ignoring proposal %s while another action is executing.", action.id)
            return False
        if self._pending is not None:
            logger.info("Replacing pending action %s with %s.", self._pending.id, action.id)
        self._pending = action
        self._state = ControllerState.PROPOSED
        logger.info("Proposed %s: %s.", action.kind.value, action.summary)
        return True

    async def confirm(self) -> ActionResult | None:
        """Summary: Execute the pending action and record the outcome.

        Importance: The only path from a proposal to a real side effect.
        Alternatives: Retry failed executions automatically.

        Returns None when nothing is pending, so duplicate taps are harmless.
        """

        if self._state is not ControllerState.PROPOSED or self._pending is None:
            return None
        action = self._pending
        self._state = ControllerState.EXECUTING
        try:
            confirmation = await self._execute(action)
        except Exception as exc:
            logger.warning("Action %s failed: %s", action.id, exc)
            result = ActionResult(success=False, message=f"Failed to {_verb(action.kind)}: {exc}")
            self._conversation.add_assistant_message(result.message)
        else:
            result = ActionResult(success=True, message=_success_message(action))
            self._conversation.add_assistant_message(result.message)
            self._conversation.add_assistant_message(confirmation)
            logger.info("Action %s completed.", action.id)
        finally:
            self._pending = None
            self._state = ControllerState.IDLE
        self._last_result = result
        return result

    def decline(self) -> bool:
        """Summary: Drop the pending action without side effects.

        Importance: Lets the user reject a wrong inference before anything happens.
        Alternatives: Keep declined actions for later review.
        """

        if self._state is not ControllerState.PROPOSED or self._pending is None:
            return False
        logger.info("Declined action %s.", self._pending.id)
        self._pending = None
        self._state = ControllerState.IDLE
        self._conversation.add_assistant_message(DECLINE_MESSAGE)
        return True

    def discard(self) -> bool:
        """Summary: Silently drop an unresolved proposal.

        Importance: A new user turn supersedes a proposal the user never answered.
        Alternatives: Keep the old proposal until it is explicitly declined.
        """

        if self._state is not ControllerState.PROPOSED or self._pending is None:
            return False
        logger.info("Discarding unresolved action %s.", self._pending.id)
        self._pending = None
        self._state = ControllerState.IDLE
        return True

    def take_result(self) -> ActionResult | None:
        """Return the last execution result once, then forget it."""

        result, self._last_result = self._last_result, None
        return result

    async def _execute(self, action: ProposedAction) -> str:
        if action.kind is ActionKind.CREATE_EVENT and action.event_data is not None:
            event = action.event_data
            await self._calendar.create_event(event)
            return (
                f"Done! '{event.title}' is on your calendar for "
                f"{event.start.strftime('%a, %b %d')} from "
                f"{_clock(event.start)} to {_clock(event.end)}."
            )
        if action.kind is ActionKind.SEND_EMAIL and action.email_data is not None:
            await self._email.send_email(action.email_data)
            return f"Done! Your email '{action.email_data.subject}' was sent to {action.email_data.to}."
        if action.kind is ActionKind.DRAFT_EMAIL and action.email_data is not None:
            await self._email.save_draft(action.email_data)
            return f"Done! I saved a draft to {action.email_data.to}."
        raise ValueError(f"{action.kind.label} is not supported yet")


def _verb(kind: ActionKind) -> str:
    return {
        ActionKind.CREATE_EVENT: "create event",
        ActionKind.UPDATE_EVENT: "update event",
        ActionKind.DELETE_EVENT: "delete event",
        ActionKind.SEND_EMAIL: "send email",
        ActionKind.DRAFT_EMAIL: "save draft",
    }[kind]


def _success_message(action: ProposedAction) -> str:
    if action.event_data is not None:
        return f"Event created: {action.event_data.title}"
    if action.kind is ActionKind.DRAFT_EMAIL:
        return f"Draft saved for {action.email_data.to}"
    return f"Email sent to {action.email_data.to}"


def _clock(value: datetime) -> str:
    return value.strftime("%I:%M %p").lstrip("0")
