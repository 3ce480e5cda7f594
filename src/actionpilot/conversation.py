"""Summary: In-memory ordered conversation log.

Importance: Holds the turns inference reads and the result messages the engine appends.
Alternatives: Persist messages in SQLite or another store.
"""

from __future__ import annotations

from typing import Iterator

from actionpilot.models import Message, Role, ToolCall


class ConversationStore:
    """Summary: Append-only list of messages in conversation order.

    Importance: Insertion order is the conversation order the UI renders.
    Alternatives: Keep messages keyed by id and sort on read.
    """

    def __init__(self, messages: list[Message] | None = None) -> None:
        self._messages: list[Message] = list(messages or [])

    def append(self, message: Message) -> Message:
        self._messages.append(message)
        return message

    def add_user_message(self, text: str) -> Message:
        return self.append(Message(role=Role.USER, text=text))

    def add_assistant_message(self, text: str, tool_call: ToolCall | None = None) -> Message:
        return self.append(Message(role=Role.ASSISTANT, text=text, tool_call=tool_call))

    def messages(self) -> list[Message]:
        """Return a copy so callers cannot reorder the log."""

        return list(self._messages)

    def last_user_message(self, before: Message | None = None) -> Message | None:
        """Summary: Find the most recent user turn, optionally preceding a given message.

        Importance: Supplies the user request that an assistant reply answers.
        Alternatives: Pass the user text alongside every assistant message.
        """

        messages = self._messages
        if before is not None:
            for index, message in enumerate(messages):
                if message.id == before.id:
                    messages = messages[:index]
                    break
        for message in reversed(messages):
            if message.role is Role.USER:
                return message
        return None

    def __contains__(self, message: object) -> bool:
        return isinstance(message, Message) and any(item.id == message.id for item in self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(list(self._messages))
