"""Email transports — SMTP delivery and a logging transport for development.

Message composition is the notifier's job (see ``formatting``); a transport
only turns an ``EmailContent`` into a delivered message or an exception.
"""

from __future__ import annotations

import logging
import uuid
from collections import deque
from email.message import EmailMessage
from typing import TYPE_CHECKING, Protocol

import aiosmtplib

from tranzantions.errors.app_errors import DeliveryError

if TYPE_CHECKING:
    from tranzantions.config.settings import SMTPConfig
    from tranzantions.notifications.formatting import EmailContent

logger = logging.getLogger(__name__)


class EmailTransport(Protocol):
    """Delivers a composed email. Raises ``DeliveryError`` on failure."""

    async def send(self, content: EmailContent) -> str: ...


def build_message(content: EmailContent, sender: str) -> EmailMessage:
    """Build a multipart/alternative message with text and HTML parts."""
    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = content.to
    msg["Subject"] = content.subject
    msg.set_content(content.text)
    msg.add_alternative(content.html, subtype="html")
    return msg


class SMTPTransport:
    """Sends mail through an SMTP relay (Gmail by default) with aiosmtplib."""

    def __init__(self, config: SMTPConfig) -> None:
        self._config = config

    @property
    def is_configured(self) -> bool:
        return bool(self._config.username and self._config.password)

    async def send(self, content: EmailContent) -> str:
        """Send *content* and return the server's response message.

        Raises:
            DeliveryError: On missing credentials or any SMTP/network error.
        """
        if not self.is_configured:
            msg = "SMTP credentials not configured (TRANZ_SMTP__USERNAME / TRANZ_SMTP__PASSWORD)"
            raise DeliveryError(msg)

        message = build_message(content, self._config.sender)
        try:
            _, response = await aiosmtplib.send(
                message,
                hostname=self._config.host,
                port=self._config.port,
                username=self._config.username,
                password=self._config.password,
                start_tls=self._config.start_tls,
                timeout=self._config.timeout,
            )
        except (aiosmtplib.SMTPException, OSError) as exc:
            logger.warning("SMTP delivery to %s failed: %s", content.to, exc)
            raise DeliveryError(f"SMTP delivery failed: {exc}", cause=exc) from exc

        logger.info("Email %r sent to %s", content.subject, content.to)
        return response


class LogTransport:
    """Logs messages instead of sending them.

    The most recent *keep* messages stay in ``sent`` for inspection.
    """

    def __init__(self, *, keep: int = 100) -> None:
        self.sent: deque[EmailContent] = deque(maxlen=keep)

    async def send(self, content: EmailContent) -> str:  # noqa: ASYNC910
        message_id = f"log-{uuid.uuid4().hex[:12]}"
        self.sent.append(content)
        logger.info("[email:%s] to=%s subject=%r", message_id, content.to, content.subject)
        return message_id

    def reset(self) -> None:
        self.sent.clear()
