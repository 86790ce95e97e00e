"""Outbound participant notifications."""

from __future__ import annotations

import asyncio
import logging
import smtplib
from email.message import EmailMessage
from typing import Protocol

logger = logging.getLogger(__name__)

ACTIVATION_SUBJECT = "Confirm your waitlist registration"
CONFIRMATION_SUBJECT = "You are on the waitlist"


def mask_contact(contact: str) -> str:
    """Return a log-safe rendering of an e-mail address."""
    local, sep, domain = contact.partition("@")
    if not sep:
        return "***"
    return f"{local[:1]}***@{domain}"


class Notifier(Protocol):
    """Delivery channel for activation links and confirmations."""

    async def send_activation_link(self, contact: str, link: str, fingerprint: str) -> None: ...

    async def send_confirmation(self, contact: str) -> None: ...


class LogNotifier:
    """Notifier that only records deliveries in the log.

    Used when no SMTP relay is configured, e.g. in development.
    """

    async def send_activation_link(self, contact: str, link: str, fingerprint: str) -> None:
        logger.info(
            "Activation link for %s issued (fingerprint %s...)",
            mask_contact(contact),
            fingerprint[:12],
        )

    async def send_confirmation(self, contact: str) -> None:
        logger.info("Confirmation for %s issued", mask_contact(contact))


class SMTPNotifier:
    """Plain-text mail through an SMTP relay with STARTTLS."""

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        *,
        username: str | None = None,
        password: str | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.host = host
        self.port = port
        self.sender = sender
        self.username = username
        self.password = password
        self.timeout = timeout

    async def send_activation_link(self, contact: str, link: str, fingerprint: str) -> None:
        body = (
            "Thanks for registering.\n\n"
            f"Open the link below within the next few minutes to activate your place:\n\n{link}\n"
        )
        await asyncio.to_thread(self._send, contact, ACTIVATION_SUBJECT, body)

    async def send_confirmation(self, contact: str) -> None:
        body = "Your registration is confirmed. We will be in touch.\n"
        await asyncio.to_thread(self._send, contact, CONFIRMATION_SUBJECT, body)

    def build_message(self, recipient: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = recipient
        message["Subject"] = subject
        message.set_content(body)
        return message

    def _send(self, recipient: str, subject: str, body: str) -> None:
        message = self.build_message(recipient, subject, body)
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password or "")
            smtp.send_message(message)
        logger.debug("Mail '%s' delivered to %s", subject, mask_contact(recipient))
