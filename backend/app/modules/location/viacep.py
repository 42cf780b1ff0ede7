from __future__ import annotations

import logging
import re
from dataclasses import dataclass

import requests
from requests import RequestException

from app.core.config import settings


logger = logging.getLogger(__name__)


@dataclass
class CepAddress:
    cep: str
    street: str | None
    neighborhood: str | None
    city: str
    state: str


def clean_cep(cep: str) -> str:
    digits = re.sub(r"\D", "", cep or "")
    if len(digits) != 8:
        raise ValueError("CEP inválido")
    return digits


class ViaCepClient:
    def __init__(self, base_url: str | None = None, session: requests.Session | None = None):
        self.base_url = (base_url or settings.VIACEP_BASE_URL).rstrip("/")
        self.session = session or requests.Session()

    def lookup(self, cep: str) -> CepAddress | None:
        """Resolve a CEP to its address. ``None`` when ViaCEP does not know it."""
        digits = clean_cep(cep)
        try:
            response = self.session.get(f"{self.base_url}/{digits}/json/", timeout=settings.HTTP_TIMEOUT_SECONDS)
            response.raise_for_status()
            data = response.json()
        except (RequestException, ValueError) as exc:
            logger.warning("ViaCEP lookup failed for %s: %s", digits, exc)
            return None
        if data.get("erro"):
            return None
        return CepAddress(
            cep=data.get("cep") or f"{digits[:5]}-{digits[5:]}",
            street=data.get("logradouro") or None,
            neighborhood=data.get("bairro") or None,
            city=data.get("localidade") or "",
            state=data.get("uf") or "",
        )
