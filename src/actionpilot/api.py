"""Summary: FastAPI application for ActionPilot.

Importance: Exposes the chat turn and the confirm/decline taps to UI clients.
Alternatives: Use a CLI-only workflow or a different web framework.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import Depends, FastAPI, Header, HTTPException
from pydantic import BaseModel, Field

from actionpilot.app import build_context
from actionpilot.config import AppConfig
from actionpilot.models import Message, ProposedAction, Role, ToolCall


class ChatRequest(BaseModel):
    """Summary: Request payload for a user chat turn.

    Importance: Provides the central chat workflow over HTTP.
    Alternatives: Stream turns over a websocket.
    """

    text: str = Field(min_length=1)


class ToolCallPayload(BaseModel):
    name: str
    parameters: dict[str, str] = Field(default_factory=dict)


class AssistantMessageRequest(BaseModel):
    """Summary: Request payload for an assistant reply produced elsewhere.

    Importance: Lets clients that talk to the AI model themselves reuse the action engine.
    Alternatives: Require every reply to go through the built-in AI client.
    """

    text: str
    tool_call: ToolCallPayload | None = None


def action_payload(action: ProposedAction | None) -> dict[str, Any] | None:
    """Summary: Serialize a proposed action for preview cards.

    Importance: Carries the confirm label and destructive flag the UI needs.
    Alternatives: Expose dataclasses through a generic encoder.
    """

    if action is None:
        return None
    payload: dict[str, Any] = {
        "id": action.id,
        "kind": action.kind.value,
        "label": action.kind.label,
        "confirm_text": action.kind.confirm_text,
        "is_destructive": action.kind.is_destructive,
        "summary": action.summary,
        "event": None,
        "email": None,
    }
    if action.event_data is not None:
        payload["event"] = {
            "title": action.event_data.title,
            "start": action.event_data.start.isoformat(),
            "end": action.event_data.end.isoformat(),
            "location": action.event_data.location,
            "description": action.event_data.description,
        }
    if action.email_data is not None:
        payload["email"] = {
            "to": action.email_data.to,
            "subject": action.email_data.subject,
            "body": action.email_data.body,
        }
    return payload


def create_app(config: AppConfig) -> FastAPI:
    """Summary: Create a FastAPI app wired to one assistant session.

    Importance: Ensures the API layer shares the same configuration and backends.
    Alternatives: Instantiate services globally outside the factory.

    Endpoints that touch the session are async so it is only used on the event loop.
    """

    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    app = FastAPI(title="ActionPilot API", version="0.1.0")
    context = build_context(config)
    session = context.new_session()
    app.state.session = session

    def require_api_key(x_api_key: str | None = Header(default=None)) -> None:
        """Summary: Enforce API key authentication when configured.

        Importance: Adds a minimal security layer for local and private deployments.
        Alternatives: Use OAuth or session-based authentication.
        """

        if not config.api_key:
            return
        if x_api_key != config.api_key:
            raise HTTPException(status_code=401, detail="Invalid API key")

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/chat", dependencies=[Depends(require_api_key)])
    async def chat(payload: ChatRequest) -> dict[str, Any]:
        """Summary: Run one user turn through the AI model and the action engine.

        Importance: Main entry point for chat clients.
        Alternatives: Split AI calls and inference into separate requests.
        """

        reply, action = await session.send_user_message(payload.text)
        return {"reply": reply.to_dict(), "pending": action_payload(action)}

    @app.post("/assistant-messages", dependencies=[Depends(require_api_key)])
    async def assistant_message(payload: AssistantMessageRequest) -> dict[str, Any]:
        tool_call = (
            ToolCall(name=payload.tool_call.name, parameters=payload.tool_call.parameters)
            if payload.tool_call
            else None
        )
        message = Message(role=Role.ASSISTANT, text=payload.text, tool_call=tool_call)
        action = session.on_assistant_message(message)
        return {"message": message.to_dict(), "pending": action_payload(action)}

    @app.get("/messages", dependencies=[Depends(require_api_key)])
    async def list_messages() -> list[dict[str, Any]]:
        return [message.to_dict() for message in session.conversation]

    @app.get("/pending", dependencies=[Depends(require_api_key)])
    async def pending() -> dict[str, Any]:
        return {"pending": action_payload(session.pending)}

    @app.post("/pending/confirm", dependencies=[Depends(require_api_key)])
    async def confirm() -> dict[str, Any]:
        """Summary: Execute the pending action.

        Importance: The only HTTP path that causes a side effect.
        Alternatives: Confirm by action id to guard against stale previews.
        """

        result = await session.confirm_pending()
        if result is None:
            raise HTTPException(status_code=409, detail="No pending action")
        session.take_result()
        return {"success": result.success, "message": result.message}

    @app.post("/pending/decline", dependencies=[Depends(require_api_key)])
    async def decline() -> dict[str, bool]:
        if not session.decline_pending():
            raise HTTPException(status_code=409, detail="No pending action")
        return {"declined": True}

    @app.get("/events", dependencies=[Depends(require_api_key)])
    async def list_events(limit: int = 20) -> list[dict[str, Any]]:
        events = await context.calendar.list_events(limit)
        return [
            {
                "title": event.title,
                "start": event.start.isoformat(),
                "end": event.end.isoformat(),
                "location": event.location,
            }
            for event in events
        ]

    return app
