"""
Outgoing email.

``get_email_sender`` returns the transport selected by ``EMAIL__PROVIDER``:
SMTP (blocking ``smtplib`` run in a worker thread), Microsoft Graph ``sendMail``
over httpx, or a no-op sender that only logs.
"""

from __future__ import annotations

import asyncio
import smtplib
from email.message import EmailMessage
from email.utils import formataddr
from typing import Optional, Protocol, Sequence

import httpx

from boardmgmt.core.exceptions import ExternalServiceError
from boardmgmt.core.logging_config import get_logger
from boardmgmt.server.core.config import GraphConfig, SmtpConfig, settings

from .oauth import GraphTokenProvider

logger = get_logger(__name__)


class EmailSender(Protocol):
    async def send(self, to: Sequence[str], subject: str, html_body: str) -> None: ...


class NullEmailSender:
    """Sender used when no email provider is configured."""

    async def send(self, to: Sequence[str], subject: str, html_body: str) -> None:
        logger.info(f"Email provider disabled; skipping '{subject}' to {len(to)} recipient(s)")


class SmtpEmailSender:
    """Send HTML mail through an SMTP relay."""

    def __init__(self, config: Optional[SmtpConfig] = None) -> None:
        self.config = config or settings.smtp

    def _build(self, to: Sequence[str], subject: str, html_body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = formataddr((self.config.from_name, self.config.from_address))
        message["To"] = ", ".join(to)
        message["Subject"] = subject
        message.set_content("This message requires an HTML capable mail client.")
        message.add_alternative(html_body, subtype="html")
        return message

    def _send_blocking(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.config.host, self.config.port, timeout=self.config.timeout_seconds) as smtp:
            if self.config.use_tls:
                smtp.starttls()
            if self.config.username:
                smtp.login(self.config.username, self.config.password or "")
            smtp.send_message(message)

    async def send(self, to: Sequence[str], subject: str, html_body: str) -> None:
        recipients = [address for address in to if address]
        if not recipients:
            return
        if not self.config.host:
            raise ExternalServiceError("SMTP host is not configured.")
        message = self._build(recipients, subject, html_body)
        try:
            await asyncio.to_thread(self._send_blocking, message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP send failed for '{subject}': {e}", exc_info=True)
            raise ExternalServiceError("Sending email failed.") from e
        logger.info(f"Sent email '{subject}' to {len(recipients)} recipient(s) via SMTP")


class GraphEmailSender:
    """Send mail as the configured mailbox through Microsoft Graph."""

    def __init__(
        self,
        config: Optional[GraphConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
        tokens: Optional[GraphTokenProvider] = None,
    ) -> None:
        self.config = config or settings.graph
        self.client = client
        self.tokens = tokens or GraphTokenProvider(self.config, client)

    async def send(self, to: Sequence[str], subject: str, html_body: str) -> None:
        recipients = [address for address in to if address]
        if not recipients:
            return
        if not self.config.is_configured or not self.config.mailbox_address:
            raise ExternalServiceError("Microsoft Graph mail is not configured.")
        body = {
            "message": {
                "subject": subject,
                "body": {"contentType": "HTML", "content": html_body},
                "toRecipients": [{"emailAddress": {"address": address}} for address in recipients],
            },
            "saveToSentItems": False,
        }
        url = f"{self.config.base_url}/users/{self.config.mailbox_address}/sendMail"
        headers = {"Authorization": f"Bearer {await self.tokens.get_token()}"}
        try:
            async with self.tokens.client_context() as client:
                response = await client.post(url, json=body, headers=headers)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Graph sendMail failed for '{subject}': {e}", exc_info=True)
            raise ExternalServiceError("Sending email failed.") from e
        logger.info(f"Sent email '{subject}' to {len(recipients)} recipient(s) via Graph")


def get_email_sender() -> EmailSender:
    provider = (settings.email.provider or "none").strip().lower()
    if provider == "smtp":
        return SmtpEmailSender()
    if provider == "graph":
        return GraphEmailSender()
    return NullEmailSender()
