from __future__ import annotations

from functools import lru_cache

from .asaas import AsaasGateway
from .base import PaymentGateway


@lru_cache(maxsize=4)
def get_payment_gateway(name: str = "ASAAS") -> PaymentGateway:
    gateway = (name or "ASAAS").upper()
    if gateway == "ASAAS":
        return AsaasGateway()
    raise ValueError(f"Unsupported payment gateway: {name}")
