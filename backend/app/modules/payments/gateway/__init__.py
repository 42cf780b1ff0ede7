from .base import CreditCard, CreditCardHolder, CustomerInput, GatewayResult, PaymentGateway
from .factory import get_payment_gateway

__all__ = [
    "CreditCard",
    "CreditCardHolder",
    "CustomerInput",
    "GatewayResult",
    "PaymentGateway",
    "get_payment_gateway",
]
