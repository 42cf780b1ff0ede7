from __future__ import annotations

import logging
from dataclasses import dataclass

import requests
from requests import RequestException

from app.core.config import settings


logger = logging.getLogger(__name__)


@dataclass
class EmailContent:
    subject: str
    html: str
    text: str


class EmailClient:
    """Transactional e-mail through the Resend HTTP API.

    Sending is best effort: failures are logged and reported as ``False``.
    Without an API key the message is only logged, which keeps local and
    test environments from reaching the network.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        api_url: str | None = None,
        sender: str | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.RESEND_API_KEY
        self.api_url = api_url or settings.RESEND_API_URL
        self.sender = sender or settings.EMAIL_FROM
        self.session = session or requests.Session()

    def send(self, to: str | list[str], content: EmailContent) -> bool:
        recipients = [to] if isinstance(to, str) else list(to)
        if not recipients:
            return False
        if not self.api_key:
            logger.info("E-mail disabled; would send %r to %s", content.subject, ", ".join(recipients))
            return False

        payload = {
            "from": self.sender,
            "to": recipients,
            "subject": content.subject,
            "html": content.html,
            "text": content.text,
        }
        try:
            response = self.session.post(
                self.api_url,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=settings.HTTP_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
        except RequestException as exc:
            logger.warning("Failed to send e-mail %r to %s: %s", content.subject, recipients, exc)
            return False
        logger.info("E-mail %r sent to %s", content.subject, ", ".join(recipients))
        return True


_client: EmailClient | None = None


def get_email_client() -> EmailClient:
    global _client
    if _client is None:
        _client = EmailClient()
    return _client


def set_email_client(client: EmailClient | None) -> None:
    global _client
    _client = client


def send_email(to: str | list[str], content: EmailContent) -> bool:
    return get_email_client().send(to, content)
