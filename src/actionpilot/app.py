"""Summary: Application factory wiring collaborators into sessions.

Importance: Centralizes dependency creation for the CLI and API layers.
Alternatives: Instantiate services manually in each entrypoint.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from actionpilot.ai import AiConversationClient, AiProviderFactory
from actionpilot.calendar import CalendarService, IcsCalendarService, MockCalendarService
from actionpilot.config import AppConfig
from actionpilot.controller import ActionConfirmationController
from actionpilot.conversation import ConversationStore
from actionpilot.email import (
    EmailService,
    EmlOutboxEmailService,
    MockEmailService,
    SmtpEmailService,
)
from actionpilot.services import AssistantSession


@dataclass(frozen=True)
class AppContext:
    """Summary: Shared collaborators for building conversation sessions.

    Importance: Reuses the AI client and action backends across conversations.
    Alternatives: Rebuild dependencies for every conversation.
    """

    config: AppConfig
    ai_client: AiConversationClient
    calendar: CalendarService
    email: EmailService

    def new_session(self) -> AssistantSession:
        """Summary: Build a session with a fresh conversation and controller.

        Importance: Each conversation gets its own pending-action slot.
        Alternatives: Share one controller across conversations.
        """

        conversation = ConversationStore()
        controller = ActionConfirmationController(conversation, self.calendar, self.email)
        return AssistantSession(
            conversation=conversation,
            controller=controller,
            ai_client=self.ai_client,
        )


def build_calendar_service(config: AppConfig) -> CalendarService:
    """Summary: Construct the configured calendar backend.

    Importance: Keeps backend selection in one place.
    Alternatives: Let each entrypoint pick its own calendar.
    """

    if config.calendar_provider == "ics":
        return IcsCalendarService(Path(config.ics_path))
    if config.calendar_provider == "mock":
        return MockCalendarService()
    raise ValueError(f"Unknown calendar provider: {config.calendar_provider}")


def build_email_service(config: AppConfig) -> EmailService:
    """Summary: Construct the configured email backend.

    Importance: Keeps backend selection in one place.
    Alternatives: Use dependency injection frameworks.
    """

    if config.email_provider == "eml":
        return EmlOutboxEmailService(Path(config.outbox_dir), config.sender_address)
    if config.email_provider == "smtp":
        if not config.smtp_host:
            raise ValueError("ACTIONPILOT_SMTP_HOST is required for smtp email provider")
        return SmtpEmailService(
            host=config.smtp_host,
            port=config.smtp_port,
            user=config.smtp_user,
            password=config.smtp_password,
            sender=config.sender_address,
        )
    if config.email_provider == "mock":
        return MockEmailService()
    raise ValueError(f"Unknown email provider: {config.email_provider}")


def build_context(config: AppConfig) -> AppContext:
    """Summary: Build shared context from configuration.

    Importance: Provides a single construction path for the application.
    Alternatives: Construct dependencies separately per request.
    """

    return AppContext(
        config=config,
        ai_client=AiConversationClient(AiProviderFactory(config).build()),
        calendar=build_calendar_service(config),
        email=build_email_service(config),
    )
