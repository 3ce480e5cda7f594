"""Summary: Command-line interface for ActionPilot.

Importance: Provides a local entry point for trying inference and confirmation.
Alternatives: Use the HTTP API or a desktop client.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from datetime import datetime

from actionpilot.app import build_context
from actionpilot.config import AppConfig
from actionpilot.models import ProposedAction
from actionpilot.services import infer_action


def build_parser() -> argparse.ArgumentParser:
    """Summary: Build the CLI argument parser.

    Importance: Defines supported commands for local operation.
    Alternatives: Use a CLI framework like Typer or Click.
    """

    parser = argparse.ArgumentParser(description="ActionPilot CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    infer = subparsers.add_parser("infer", help="Show the action an assistant reply would propose")
    infer.add_argument("text", type=str)
    infer.add_argument("--user", type=str, default="", help="The user message being answered")
    infer.add_argument("--now", type=str, default=None, help="Reference time (ISO 8601)")

    chat = subparsers.add_parser("chat", help="Run one chat turn")
    chat.add_argument("text", type=str)
    decision = chat.add_mutually_exclusive_group()
    decision.add_argument("--confirm", action="store_true", help="Execute the proposed action")
    decision.add_argument("--decline", action="store_true", help="Decline the proposed action")

    return parser


def format_action(action: ProposedAction) -> list[str]:
    """Summary: Render a proposed action as preview lines.

    Importance: Mirrors the preview card a chat UI would show.
    Alternatives: Print the dataclass repr.
    """

    lines = [f"{action.kind.label}: {action.summary}"]
    if action.event_data is not None:
        event = action.event_data
        lines.append(f"  Title: {event.title}")
        lines.append(f"  When:  {event.start:%Y-%m-%d %H:%M} - {event.end:%H:%M}")
    if action.email_data is not None:
        email = action.email_data
        lines.append(f"  To:      {email.to}")
        lines.append(f"  Subject: {email.subject}")
        lines.append(f"  Body:    {email.body}")
    lines.append(f"  [{action.kind.confirm_text}] / [Decline]")
    return lines


async def _run_chat(args: argparse.Namespace, config: AppConfig) -> None:
    session = build_context(config).new_session()
    reply, action = await session.send_user_message(args.text)
    print(reply.text)
    if action is None:
        return
    print("\n".join(format_action(action)))
    if args.confirm:
        result = await session.confirm_pending()
        if result is not None:
            print(result.message)
    elif args.decline:
        session.decline_pending()
        print(session.conversation.messages()[-1].text)


def run_cli() -> None:
    """Summary: Execute CLI commands based on arguments.

    Importance: Drives local workflows without a UI.
    Alternatives: Invoke services via an HTTP API.
    """

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    parser = build_parser()
    args = parser.parse_args()

    if args.command == "infer":
        now = datetime.fromisoformat(args.now) if args.now else datetime.now()
        action = infer_action(args.text, args.user, now)
        if action is None:
            print("No action.")
            return
        print("\n".join(format_action(action)))
        return

    if args.command == "chat":
        asyncio.run(_run_chat(args, AppConfig.from_env()))
        return


if __name__ == "__main__":
    run_cli()
