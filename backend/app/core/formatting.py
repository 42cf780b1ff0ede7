"""Display helpers: BRL currency and Portuguese labels for stored option values."""

from __future__ import annotations

from typing import Iterable, Mapping


HOURLY_RATE_LABELS = {
    "UP_TO_25": "Até R$ 25/h",
    "FROM_26_TO_35": "R$ 26–35/h",
    "FROM_36_TO_45": "R$ 36–45/h",
    "FROM_46_TO_60": "R$ 46–60/h",
    "FROM_61_TO_80": "R$ 61–80/h",
    "OVER_80": "Acima de R$ 80/h",
}

AGE_RANGE_LABELS = {
    "NEWBORN": "Recém-nascido (0-3 meses)",
    "BABY": "Bebê (3-12 meses)",
    "TODDLER": "1 a 3 anos",
    "PRESCHOOL": "3 a 6 anos",
    "SCHOOL_AGE": "6 a 12 anos",
    "TEENAGER": "Adolescente",
}

SPECIAL_NEEDS_LABELS = {
    "AUTISM": "Autismo (TEA)",
    "ADHD": "TDAH",
    "DOWN_SYNDROME": "Síndrome de Down",
    "CEREBRAL_PALSY": "Paralisia cerebral",
    "PHYSICAL_DISABILITY": "Deficiência física",
    "VISUAL_IMPAIRMENT": "Deficiência visual",
    "HEARING_IMPAIRMENT": "Deficiência auditiva",
    "CHRONIC_ILLNESS": "Doenças crônicas",
    "FOOD_ALLERGIES": "Alergias alimentares graves",
    "OTHER": "Outras necessidades especiais",
}

NANNY_TYPE_LABELS = {
    "FOLGUISTA": "Folguista",
    "DIARISTA": "Diarista",
    "MENSALISTA": "Mensalista",
}

CONTRACT_REGIME_LABELS = {
    "AUTONOMA": "Autônoma",
    "PJ": "Pessoa Jurídica (PJ)",
    "CLT": "CLT",
}

MAX_TRAVEL_DISTANCE_LABELS = {
    "UP_TO_5KM": "Até 5 km",
    "UP_TO_10KM": "Até 10 km",
    "UP_TO_15KM": "Até 15 km",
    "UP_TO_20KM": "Até 20 km",
    "UP_TO_30KM": "Até 30 km",
    "ENTIRE_CITY": "Cidade toda",
}

SUBSCRIPTION_STATUS_LABELS = {
    "ACTIVE": "Ativa",
    "TRIALING": "Período de teste",
    "PAST_DUE": "Pagamento atrasado",
    "CANCELED": "Cancelada",
    "INCOMPLETE": "Aguardando pagamento",
    "EXPIRED": "Expirada",
}

PAYMENT_STATUS_LABELS = {
    "PENDING": "Pendente",
    "PROCESSING": "Processando",
    "CONFIRMED": "Confirmado",
    "PAID": "Pago",
    "FAILED": "Falhou",
    "CANCELED": "Cancelado",
    "REFUNDED": "Reembolsado",
    "PARTIALLY_REFUNDED": "Parcialmente reembolsado",
    "OVERDUE": "Vencido",
    "CHARGEBACK": "Chargeback",
    "AWAITING_RISK_ANALYSIS": "Em análise",
}

PAYMENT_METHOD_LABELS = {
    "CREDIT_CARD": "Cartão de crédito",
    "DEBIT_CARD": "Cartão de débito",
    "PIX": "PIX",
    "BOLETO": "Boleto",
    "BANK_TRANSFER": "Transferência bancária",
    "PAYPAL": "PayPal",
    "WALLET": "Carteira digital",
    "MANUAL": "Manual",
}

TICKET_STATUS_LABELS = {
    "OPEN": "Aberto",
    "IN_PROGRESS": "Em andamento",
    "RESOLVED": "Resolvido",
    "CLOSED": "Fechado",
}


def format_brl(value: float | int) -> str:
    """Format a number as Brazilian Real, e.g. ``R$ 1.234,56``."""
    formatted = f"{float(value):,.2f}"
    formatted = formatted.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"R$ {formatted}"


def get_label(labels: Mapping[str, str], value: str | None) -> str:
    if value is None:
        return ""
    return labels.get(value, str(value))


def get_labels(labels: Mapping[str, str], values: Iterable[str] | None) -> list[str]:
    if not values:
        return []
    return [get_label(labels, v) for v in values]
