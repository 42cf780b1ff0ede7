from __future__ import annotations

import logging
import re
from typing import Any

import requests
from requests import RequestException

from app.core.config import settings


logger = logging.getLogger(__name__)


def normalize_phone(phone: str | None) -> str | None:
    """Digits only, with the Brazilian 55 country code."""
    if not phone:
        return None
    digits = re.sub(r"\D", "", phone)
    if len(digits) in (10, 11):
        digits = f"55{digits}"
    if len(digits) < 12:
        return None
    return digits


class WhatsAppClient:
    def __init__(
        self,
        *,
        api_url: str | None = None,
        phone_number_id: str | None = None,
        access_token: str | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.api_url = (api_url or settings.WHATSAPP_API_URL).rstrip("/")
        self.phone_number_id = phone_number_id or settings.WHATSAPP_PHONE_NUMBER_ID
        self.access_token = access_token or settings.WHATSAPP_ACCESS_TOKEN
        self.session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.phone_number_id and self.access_token)

    def _post(self, payload: dict[str, Any]) -> bool:
        if not self.configured:
            logger.info("WhatsApp disabled; skipping message to %s", payload.get("to"))
            return False
        url = f"{self.api_url}/{self.phone_number_id}/messages"
        try:
            response = self.session.post(
                url,
                json=payload,
                headers={"Authorization": f"Bearer {self.access_token}"},
                timeout=settings.HTTP_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
        except RequestException as exc:
            logger.warning("WhatsApp send to %s failed: %s", payload.get("to"), exc)
            return False
        return True

    def send_text(self, phone: str, body: str) -> bool:
        to = normalize_phone(phone)
        if not to:
            logger.info("Invalid WhatsApp phone %r", phone)
            return False
        return self._post(
            {
                "messaging_product": "whatsapp",
                "to": to,
                "type": "text",
                "text": {"preview_url": False, "body": body},
            }
        )

    def send_template(
        self, phone: str, template: str, parameters: list[str] | None = None, language: str = "pt_BR"
    ) -> bool:
        to = normalize_phone(phone)
        if not to:
            logger.info("Invalid WhatsApp phone %r", phone)
            return False
        components = []
        if parameters:
            components.append(
                {"type": "body", "parameters": [{"type": "text", "text": p} for p in parameters]}
            )
        return self._post(
            {
                "messaging_product": "whatsapp",
                "to": to,
                "type": "template",
                "template": {"name": template, "language": {"code": language}, "components": components},
            }
        )


_client: WhatsAppClient | None = None


def get_whatsapp_client() -> WhatsAppClient:
    global _client
    if _client is None:
        _client = WhatsAppClient()
    return _client


def set_whatsapp_client(client: WhatsAppClient | None) -> None:
    global _client
    _client = client


def send_whatsapp_text(phone: str | None, body: str) -> bool:
    if not phone:
        return False
    return get_whatsapp_client().send_text(phone, body)
