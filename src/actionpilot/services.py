"""Summary: Conversation session service tying inference to confirmation.

Importance: Exposes the operations chat clients call for each turn and each tap.
Alternatives: Let every client wire the detector, builder, and controller itself.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from actionpilot.ai import AiConversationClient
from actionpilot.builder import build_action, build_action_from_tool_call
from actionpilot.controller import ActionConfirmationController
from actionpilot.conversation import ConversationStore
from actionpilot.detection import ActionIntentDetector
from actionpilot.models import ActionResult, Message, ProposedAction, Role


logger = logging.getLogger(__name__)


@dataclass
class AssistantSession:
    """Summary: One conversation with its log, pending action, and AI client.

    Importance: Keeps the single-pending-action invariant per conversation.
    Alternatives: Share one controller across all conversations.
    """

    conversation: ConversationStore
    controller: ActionConfirmationController
    ai_client: AiConversationClient
    detector: ActionIntentDetector = field(default_factory=ActionIntentDetector)
    clock: Callable[[], datetime] = datetime.now

    @property
    def pending(self) -> ProposedAction | None:
        return self.controller.pending

    async def send_user_message(self, text: str) -> tuple[Message, ProposedAction | None]:
        """Summary: Run a full turn: record the user text, ask the AI, infer an action.

        Importance: The AI call runs off the event loop so other work is not blocked.
        Alternatives: Call the AI synchronously on the caller's thread.
        """

        self.controller.discard()
        history = self.conversation.messages()
        self.conversation.add_user_message(text)
        try:
            reply = await asyncio.to_thread(self.ai_client.send_message, text, history)
        except RuntimeError as exc:
            logger.warning("AI request failed: %s", exc)
            reply = Message(role=Role.ASSISTANT, text=f"Sorry, I encountered an error: {exc}")
            self.conversation.append(reply)
            return reply, None
        return reply, self.on_assistant_message(reply)

    def on_assistant_message(self, message: Message) -> ProposedAction | None:
        """Summary: Record an assistant reply and propose the action it announces, if any.

        Importance: A structured tool call wins over text inference for the same turn.
        Alternatives: Always run text inference, even when a tool call is present.
        """

        if message not in self.conversation:
            self.conversation.append(message)
        action = self._infer(message)
        if action is None:
            return None
        if not self.controller.propose(action):
            return None
        return action

    async def confirm_pending(self) -> ActionResult | None:
        return await self.controller.confirm()

    def decline_pending(self) -> bool:
        return self.controller.decline()

    def take_result(self) -> ActionResult | None:
        return self.controller.take_result()

    def _infer(self, message: Message) -> ProposedAction | None:
        now = self.clock()
        if message.tool_call is not None:
            return build_action_from_tool_call(message.tool_call, now)
        user_message = self.conversation.last_user_message(before=message)
        user_text = user_message.text if user_message else ""
        return infer_action(message.text, user_text, now, self.detector)


def infer_action(
    assistant_text: str,
    user_text: str,
    now: datetime,
    detector: ActionIntentDetector | None = None,
) -> ProposedAction | None:
    """Summary: Build the first usable action announced by an assistant reply.

    Importance: Event creation is tried before email, and at most one action is returned.
    Alternatives: Propose every detected action at once.
    """

    for intent in (detector or ActionIntentDetector()).candidates(assistant_text, user_text):
        action = build_action(intent, now)
        if action is not None:
            return action
    return None
