"""Summary: Email service interfaces and implementations.

Importance: Executes confirmed send and draft actions.
Alternatives: Rely solely on provider SDKs with vendor lock-in.
"""

from __future__ import annotations

import asyncio
import logging
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage
from email.utils import formatdate, make_msgid
from pathlib import Path

from actionpilot.models import ActionExecutionError, EmailActionData, new_id

logger = logging.getLogger(__name__)


class EmailService(ABC):
    """Summary: Abstract interface for outgoing email.

    Importance: Standardizes execution across mocked, file, and SMTP backends.
    Alternatives: Use provider-specific classes directly in the controller.
    """

    @abstractmethod
    async def send_email(self, email: EmailActionData) -> str:
        """Summary: Send an email and return a message identifier.

        Importance: Carries out a confirmed send-email action.
        Alternatives: Queue the email and send it later.
        """

    @abstractmethod
    async def save_draft(self, email: EmailActionData) -> str:
        """Summary: Store an email as a draft and return its identifier.

        Importance: Carries out a confirmed draft-email action.
        Alternatives: Treat drafts as unsent outbox entries.
        """


class MockEmailService(EmailService):
    """Summary: Records sent emails and drafts in memory.

    Importance: Supports offline demos and tests.
    Alternatives: Print emails to stdout.
    """

    def __init__(self) -> None:
        self.sent: list[EmailActionData] = []
        self.drafts: list[EmailActionData] = []

    async def send_email(self, email: EmailActionData) -> str:
        """Summary: Record the email as sent.

        Importance: Lets tests assert what would have been delivered.
        Alternatives: Print the email to stdout.
        """

        self.sent.append(email)
        logger.info("Recorded mock email to %s.", email.to)
        return f"mock-{new_id()}"

    async def save_draft(self, email: EmailActionData) -> str:
        """Record the email as a draft."""

        self.drafts.append(email)
        logger.info("Recorded mock draft to %s.", email.to)
        return f"mock-draft-{new_id()}"


class EmlOutboxEmailService(EmailService):
    """Summary: Writes outgoing emails as .eml files under an outbox directory.

    Importance: Produces real RFC 5322 messages without mail server credentials.
    Alternatives: Send through SMTP or a provider API.
    """

    def __init__(self, outbox_dir: Path, sender: str) -> None:
        """Summary: Initialize the outbox service.

        Importance: Sent mail lands in sent/, drafts in drafts/.
        Alternatives: Write everything to one folder.
        """

        self._outbox_dir = outbox_dir
        self._sender = sender

    async def send_email(self, email: EmailActionData) -> str:
        return await self._write(email, "sent")

    async def save_draft(self, email: EmailActionData) -> str:
        return await self._write(email, "drafts")

    async def _write(self, email: EmailActionData, folder: str) -> str:
        message = build_email_message(email, self._sender)
        path = self._outbox_dir / folder / f"{new_id()}.eml"
        try:
            await asyncio.to_thread(_write_bytes, path, message.as_bytes())
        except OSError as exc:
            raise ActionExecutionError(f"Could not write {path}: {exc}") from exc
        logger.info("Wrote email to %s at %s.", email.to, path)
        return message["Message-Id"]


class SmtpEmailService(EmailService):
    """Summary: Sends emails through an SMTP server.

    Importance: Provides real delivery for accounts that expose SMTP.
    Alternatives: Use Gmail or Microsoft Graph APIs instead of SMTP.
    """

    def __init__(self, host: str, port: int, user: str | None, password: str | None, sender: str) -> None:
        self._host = host
        self._port = port
        self._user = user
        self._password = password
        self._sender = sender

    async def send_email(self, email: EmailActionData) -> str:
        """Summary: Deliver the email through the SMTP server.

        Importance: Network IO runs off the event loop; failures become ActionExecutionError.
        Alternatives: Use an async SMTP client library.
        """

        message = build_email_message(email, self._sender)
        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as exc:
            raise ActionExecutionError(f"SMTP delivery to {email.to} failed: {exc}") from exc
        logger.info("Sent email to %s via %s.", email.to, self._host)
        return message["Message-Id"]

    async def save_draft(self, email: EmailActionData) -> str:
        raise ActionExecutionError("Saving drafts is not supported by the SMTP email service")

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self._host, self._port, timeout=30) as client:
            client.starttls()
            if self._user and self._password:
                client.login(self._user, self._password)
            client.send_message(message)


def build_email_message(email: EmailActionData, sender: str) -> EmailMessage:
    """Summary: Build a MIME message from email action data.

    Importance: Shared by the file and SMTP backends.
    Alternatives: Format raw RFC 5322 text by hand.
    """

    message = EmailMessage()
    message["From"] = sender
    message["To"] = email.to
    message["Subject"] = email.subject
    message["Date"] = formatdate(localtime=True)
    message["Message-Id"] = make_msgid(domain=sender.split("@", 1)[-1] or None)
    message.set_content(email.body)
    return message


def _write_bytes(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
