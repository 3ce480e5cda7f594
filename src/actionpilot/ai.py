"""Summary: AI provider abstraction and the conversation client built on it.

Importance: Supplies the assistant replies the action engine interprets.
Alternatives: Call provider SDKs directly in the session service.
"""

from __future__ import annotations

import json
import logging
import time
import urllib.request
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from actionpilot.config import AppConfig
from actionpilot.models import Message, Role, ToolCall

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are ActionPilot, an assistant that manages the user's calendar and email. "
    "When you are about to create an event, say \"I'll create an event called '<title>'\" "
    "and mention the day, time, and duration. When you are about to send an email, say "
    "\"I'll send an email to <address>\" followed by subject: \"...\" and body: \"...\". "
    "Nothing happens until the user confirms."
)

TOOL_DEFINITIONS: list[dict[str, Any]] = [
    {
        "name": "create_calendar_event",
        "description": "Create a new calendar event",
        "parameters": {
            "type": "object",
            "properties": {
                "title": {"type": "string", "description": "Event title"},
                "date": {"type": "string", "description": "Event date in YYYY-MM-DD format"},
                "time": {"type": "string", "description": "Start time in HH:MM format (24-hour)"},
                "duration": {"type": "integer", "description": "Duration in minutes"},
            },
            "required": ["title", "date", "time"],
        },
    },
    {
        "name": "send_email",
        "description": "Send an email",
        "parameters": {
            "type": "object",
            "properties": {
                "to": {"type": "string", "description": "Recipient email address"},
                "subject": {"type": "string", "description": "Email subject"},
                "body": {"type": "string", "description": "Email body (plain text)"},
            },
            "required": ["to", "subject", "body"],
        },
    },
    {
        "name": "draft_email",
        "description": "Create an email draft for user review before sending",
        "parameters": {
            "type": "object",
            "properties": {
                "to": {"type": "string", "description": "Recipient email address"},
                "subject": {"type": "string", "description": "Email subject"},
                "body": {"type": "string", "description": "Email body (plain text)"},
            },
            "required": ["to", "subject", "body"],
        },
    },
]


@dataclass(frozen=True)
class AiResult:
    """Summary: Captures AI output and metadata.

    Importance: Normalizes downstream handling of AI responses.
    Alternatives: Use dicts or provider response objects.
    """

    text: str
    latency_ms: int
    tool_call: ToolCall | None = None


class AiProvider(ABC):
    """Summary: Abstract interface for conversational AI replies.

    Importance: Allows switching between local and cloud LLMs without refactors.
    Alternatives: Use a single vendor SDK and accept lock-in risk.
    """

    @abstractmethod
    def generate_reply(self, text: str, history: list[Message]) -> AiResult:
        """Summary: Generate the assistant reply to a user message.

        Importance: Standardizes AI outputs for the action engine.
        Alternatives: Return provider-specific response objects directly.
        """


class MockAiProvider(AiProvider):
    """Summary: Deterministic AI provider for local testing.

    Importance: Enables offline workflows and repeatable tests.
    Alternatives: Use a small local LLM for all development tasks.
    """

    def generate_reply(self, text: str, history: list[Message]) -> AiResult:
        """Summary: Echo the user text back as the assistant reply.

        Importance: Lets a user type an assistant-style reply to exercise the engine offline.
        Alternatives: Use fixture-based responses loaded from files.
        """

        started = time.time()
        response = text.strip()
        latency_ms = int((time.time() - started) * 1000)
        return AiResult(text=response, latency_ms=latency_ms)


class OllamaProvider(AiProvider):
    """Summary: AI provider that targets a local Ollama server.

    Importance: Supports privacy-sensitive workflows on local hardware.
    Alternatives: Use llama.cpp directly with a Python binding.
    """

    def __init__(self, base_url: str, model: str) -> None:
        self._base_url = base_url.rstrip("/")
        self._model = model

    def generate_reply(self, text: str, history: list[Message]) -> AiResult:
        """Summary: Generate a reply using the Ollama chat API.

        Importance: Enables local inference for the assistant.
        Alternatives: Use Ollama's CLI and parse its output.
        """

        payload = json.dumps(
            {"model": self._model, "messages": _chat_messages(text, history), "stream": False}
        )
        request = urllib.request.Request(
            url=f"{self._base_url}/api/chat",
            data=payload.encode("utf-8"),
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        started = time.time()
        try:
            with urllib.request.urlopen(request, timeout=60) as response:
                raw = json.loads(response.read().decode("utf-8"))
        except (OSError, ValueError) as exc:
            raise RuntimeError(f"Ollama request failed: {exc}") from exc
        latency_ms = int((time.time() - started) * 1000)
        try:
            content = raw["message"].get("content") or ""
        except (KeyError, TypeError, AttributeError) as exc:
            raise RuntimeError(f"Unexpected Ollama response: {raw!r:.200}") from exc
        return AiResult(text=content, latency_ms=latency_ms)


class OpenAiProvider(AiProvider):
    """Summary: AI provider using OpenAI's chat completion API with tool calling.

    Importance: Lets the model return structured actions instead of prose.
    Alternatives: Use other cloud providers or a local model.
    """

    def __init__(self, api_key: str, model: str) -> None:
        self._api_key = api_key
        self._model = model

    def generate_reply(self, text: str, history: list[Message]) -> AiResult:
        """Summary: Generate a reply using OpenAI chat completions.

        Importance: A returned function call is kept as a ToolCall on the reply.
        Alternatives: Use the responses API or a different provider.
        """

        payload = {
            "model": self._model,
            "messages": _chat_messages(text, history),
            "tools": [{"type": "function", "function": tool} for tool in TOOL_DEFINITIONS],
            "temperature": 0.2,
        }
        request = urllib.request.Request(
            url="https://api.openai.com/v1/chat/completions",
            data=json.dumps(payload).encode("utf-8"),
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self._api_key}",
            },
            method="POST",
        )
        started = time.time()
        try:
            with urllib.request.urlopen(request, timeout=60) as response:
                raw = json.loads(response.read().decode("utf-8"))
        except (OSError, ValueError) as exc:
            raise RuntimeError(f"OpenAI request failed: {exc}") from exc
        latency_ms = int((time.time() - started) * 1000)
        try:
            message = raw["choices"][0]["message"]
        except (KeyError, IndexError, TypeError) as exc:
            raise RuntimeError(f"Unexpected OpenAI response: {raw!r:.200}") from exc
        return AiResult(
            text=message.get("content") or "",
            latency_ms=latency_ms,
            tool_call=_parse_openai_tool_call(message),
        )


@dataclass(frozen=True)
class AiConversationClient:
    """Summary: Turns provider replies into conversation messages.

    Importance: The single entry point the session uses to talk to the AI model.
    Alternatives: Let the session call providers directly.
    """

    provider: AiProvider

    def send_message(self, text: str, history: list[Message]) -> Message:
        """Summary: Ask the provider for a reply and wrap it as an assistant message.

        Importance: Every provider failure surfaces as RuntimeError, which the session reports.
        Alternatives: Let each caller handle provider-specific exceptions.
        """

        try:
            result = self.provider.generate_reply(text, history)
        except (OSError, ValueError, KeyError) as exc:
            raise RuntimeError(f"AI request failed: {exc}") from exc
        logger.info("AI reply received in %s ms.", result.latency_ms)
        return Message(role=Role.ASSISTANT, text=result.text, tool_call=result.tool_call)


@dataclass(frozen=True)
class AiProviderFactory:
    """Summary: Factory for selecting AI providers from configuration.

    Importance: Keeps provider selection logic centralized.
    Alternatives: Wire providers manually at the application entrypoint.
    """

    config: AppConfig

    def build(self) -> AiProvider:
        if self.config.ai_provider == "ollama":
            return OllamaProvider(self.config.ollama_url, self.config.ollama_model)
        if self.config.ai_provider == "openai":
            if not self.config.openai_api_key:
                raise ValueError("OPENAI_API_KEY is required for openai provider")
            return OpenAiProvider(self.config.openai_api_key, self.config.openai_model)
        return MockAiProvider()


def _chat_messages(text: str, history: list[Message]) -> list[dict[str, str]]:
    messages = [{"role": "system", "content": SYSTEM_PROMPT}]
    messages.extend({"role": item.role.value, "content": item.text} for item in history)
    messages.append({"role": "user", "content": text})
    return messages


def _parse_openai_tool_call(message: dict[str, Any]) -> ToolCall | None:
    tool_calls = message.get("tool_calls") or []
    if not tool_calls:
        return None
    function = tool_calls[0].get("function", {})
    try:
        arguments = json.loads(function.get("arguments") or "{}")
    except json.JSONDecodeError:
        logger.warning("Discarding tool call %s with malformed arguments.", function.get("name"))
        return None
    return ToolCall(
        name=function.get("name", ""),
        parameters={key: str(value) for key, value in arguments.items()},
    )
