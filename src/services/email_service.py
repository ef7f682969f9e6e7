"""
Email Service

Sends transactional email with attachments through the SendGrid v3 API.
"""

import base64
from dataclasses import dataclass
from functools import lru_cache

import httpx

from core.logger import get_logger
from core.settings import get_settings

logger = get_logger(__name__)

SENDGRID_SEND_URL = "https://api.sendgrid.com/v3/mail/send"


@dataclass(frozen=True)
class Attachment:
    filename: str
    content: bytes
    mime_type: str = "application/pdf"


class EmailService:
    def __init__(
        self,
        api_key: str,
        from_email: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize Email Service

        Args:
            api_key: SendGrid API key
            from_email: Sender address, also copied on every message
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests)
        """
        self.api_key = api_key
        self.from_email = from_email
        self.timeout = timeout
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.from_email)

    async def send(
        self,
        to: str,
        subject: str,
        text: str,
        html: str | None = None,
        attachments: list[Attachment] | None = None,
    ) -> None:
        """
        Send one message

        Raises:
            httpx.HTTPError: If SendGrid rejects the message or is unreachable
        """
        personalization: dict = {"to": [{"email": to}]}
        if self.from_email.lower() != to.lower():
            personalization["cc"] = [{"email": self.from_email}]

        content = [{"type": "text/plain", "value": text}]
        if html:
            content.append({"type": "text/html", "value": html})

        payload: dict = {
            "personalizations": [personalization],
            "from": {"email": self.from_email},
            "subject": subject,
            "content": content,
        }
        if attachments:
            payload["attachments"] = [
                {
                    "content": base64.b64encode(attachment.content).decode("ascii"),
                    "filename": attachment.filename,
                    "type": attachment.mime_type,
                    "disposition": "attachment",
                }
                for attachment in attachments
            ]

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(
                SENDGRID_SEND_URL,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
            response.raise_for_status()

        logger.info(f"Email sent: subject={subject!r} attachments={len(attachments or [])}")


@lru_cache
def get_email_service() -> EmailService:
    """
    Get the global EmailService.
    Sending is skipped by callers when SendGrid is not configured.
    """
    settings = get_settings()
    return EmailService(
        api_key=settings.sendgrid_api_key,
        from_email=settings.sendgrid_from_email,
        timeout=settings.http_timeout_seconds,
    )
