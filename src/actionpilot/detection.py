"""Summary: Trigger-phrase detection of action intents in assistant replies.

Importance: Decides whether a plain-text reply announces an event or an email.
Alternatives: Ask the AI model to always use structured tool calls.
"""

from __future__ import annotations

from dataclasses import dataclass

from actionpilot.models import ActionKind

CREATE_EVENT_MARKER = "[CREATE_EVENT]"
SEND_EMAIL_MARKER = "[SEND_EMAIL]"

_CREATE_PHRASES = ("i'll create", "i will create")
_SEND_PHRASES = ("i'll send", "i will send")


@dataclass(frozen=True)
class DetectedIntent:
    """Summary: An intent found in an assistant reply, ready for the builder.

    Importance: Carries both texts so the builder can search them together.
    Alternatives: Pass the whole conversation to the builder.
    """

    kind: ActionKind
    raw_text: str
    user_text: str


@dataclass(frozen=True)
class ActionIntentDetector:
    """Summary: Marker and phrase based intent detector.

    Importance: Deterministic and fast; runs on every assistant reply.
    Alternatives: Use a classifier model to label replies.
    """

    def candidates(
        self, assistant_text: str, user_text: str, has_tool_call: bool = False
    ) -> list[DetectedIntent]:
        """Summary: Return every intent the reply expresses, event creation first.

        Importance: The caller builds them in order and keeps the first usable one.
        Alternatives: Return a single best guess.
        """

        if has_tool_call:
            return []
        normalized = _normalize(assistant_text)
        found: list[DetectedIntent] = []
        if CREATE_EVENT_MARKER in assistant_text or any(
            phrase in normalized for phrase in _CREATE_PHRASES
        ):
            found.append(DetectedIntent(ActionKind.CREATE_EVENT, assistant_text, user_text))
        if SEND_EMAIL_MARKER in assistant_text or any(
            phrase in normalized for phrase in _SEND_PHRASES
        ):
            found.append(DetectedIntent(ActionKind.SEND_EMAIL, assistant_text, user_text))
        return found

    def detect(
        self, assistant_text: str, user_text: str, has_tool_call: bool = False
    ) -> DetectedIntent | None:
        """Summary: Return the highest-priority intent, if any.

        Importance: Convenience for callers that only need a yes/no answer.
        Alternatives: Call candidates and take the first element.
        """

        found = self.candidates(assistant_text, user_text, has_tool_call)
        return found[0] if found else None


def _normalize(text: str) -> str:
    return text.lower().replace("’", "'")
