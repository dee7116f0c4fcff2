from __future__ import annotations

import asyncio
import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr
from typing import Any, Dict, List, Optional, Tuple

from .configuration import EmailConfig
from .repository import BackendError
from .schemas import EmailDispatchRequest, EmailResult

logger = logging.getLogger(__name__)

NEW_EVENT_NOTIFICATION = "new_event"


class SMTPMailer:
    def __init__(self, config: EmailConfig):
        self.config = config

    def is_configured(self) -> bool:
        return self.config.configured

    def send_email(self, subject: str, html: str, to_email: str) -> Tuple[bool, str]:
        if not self.is_configured():
            return False, "SMTP not configured"

        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = formataddr((self.config.sender_name, self.config.username))
        msg["To"] = to_email
        msg.set_content("This message requires an HTML capable mail client.")
        msg.add_alternative(html, subtype="html")

        try:
            with smtplib.SMTP(self.config.host, self.config.port, timeout=self.config.timeout_seconds) as smtp:
                if self.config.use_tls:
                    smtp.starttls()
                if self.config.password:
                    smtp.login(self.config.username, self.config.password)
                smtp.send_message(msg)
            return True, ""
        except (smtplib.SMTPException, OSError) as exc:
            return False, str(exc)[:400]


class EmailDispatcher:
    """
    Sends one announcement e-mail per volunteer and records each delivery.

    Sends run concurrently in worker threads. Delivery records and the event's
    ``email_sent`` flag are written best effort: failures are logged and do not
    change the per-recipient result.
    """

    def __init__(self, mailer, repository):
        self.mailer = mailer
        self.repository = repository

    async def dispatch(self, request: EmailDispatchRequest) -> Dict[str, Any]:
        recipients = request.volunteers or []
        results: List[EmailResult] = await asyncio.gather(
            *(self._send_one(recipient.email, request) for recipient in recipients)
        )

        try:
            await asyncio.to_thread(self.repository.mark_email_sent, request.event_id)
        except BackendError as exc:
            logger.warning("Error updating event email_sent status: %s", exc)

        successful = sum(1 for result in results if result.success)
        failed = len(results) - successful
        return {
            "message": f"Emails sent to volunteers: {successful} successful, {failed} failed",
            "results": [result.as_dict() for result in results],
        }

    async def _send_one(self, email: str, request: EmailDispatchRequest) -> EmailResult:
        ok, error = await asyncio.to_thread(self.mailer.send_email, request.subject, request.html_content, email)
        if not ok:
            logger.warning("Failed to send email to %s: %s", email, error)
            return EmailResult(success=False, email=email, error=error or "Unknown error")

        await self._record_delivery(email, request.event_id)
        return EmailResult(success=True, email=email)

    async def _record_delivery(self, email: str, event_id: Optional[int]) -> None:
        try:
            await asyncio.to_thread(self.repository.record_notification, email, event_id, NEW_EVENT_NOTIFICATION)
        except BackendError as exc:
            logger.warning("Error recording notification for %s: %s", email, exc)
