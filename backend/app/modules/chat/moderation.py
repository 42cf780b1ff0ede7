"""Detection of contact information in user-written text.

Used on chat messages and profile texts to keep families and nannies from
moving the conversation off the platform. Obfuscations such as "onze nove
oito..." or "joao arroba gmail ponto com" are normalised before matching.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field


WORD_NUMBERS = {
    "zero": "0",
    "um": "1",
    "dois": "2",
    "tres": "3",
    "três": "3",
    "quatro": "4",
    "cinco": "5",
    "seis": "6",
    "sete": "7",
    "oito": "8",
    "nove": "9",
}

EMOJI_NUMBERS = {
    "0️⃣": "0", "1️⃣": "1", "2️⃣": "2", "3️⃣": "3",
    "4️⃣": "4", "5️⃣": "5", "6️⃣": "6", "7️⃣": "7",
    "8️⃣": "8", "9️⃣": "9",
    "⓪": "0", "①": "1", "②": "2", "③": "3", "④": "4",
    "⑤": "5", "⑥": "6", "⑦": "7", "⑧": "8", "⑨": "9",
}

_AT_PATTERNS = [
    re.compile(r"\barroba\b", re.I),
    re.compile(r"\bat\b", re.I),
    re.compile(r"\(at\)", re.I),
    re.compile(r"\[at\]", re.I),
    re.compile(r"\{at\}", re.I),
]
_DOT_PATTERN = re.compile(r"\b(?:ponto|dot|pont)\b", re.I)

_PHONE_PATTERNS = [
    re.compile(r"\b\d{2}[\s\-]?\d{4,5}[\s\-]?\d{4}\b"),
    re.compile(r"\b(?:\d[\s\-_.*|+~#]*){10,11}\b"),
    re.compile(r"\b(?:\d+[\s\-_.*|+~#]+){2,}\d+\b"),
]
_EMAIL_PATTERN = re.compile(r"\b[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}\b")
_OBFUSCATED_EMAIL_PATTERN = re.compile(
    r"\b[a-zA-Z0-9]+[\s\-_]*@[\s\-_]*[a-zA-Z0-9]+[\s\-_.]*(?:com|br|net|org|edu|gov)\b", re.I
)
_HANDLE_PATTERN = re.compile(r"@[\w.]+")
_SOCIAL_PATTERNS = [
    re.compile(r"\b(?:instagram|insta|ig)[\s:]+@?[\w.]+", re.I),
    re.compile(r"\b(?:whatsapp|whats|wpp|zap)[\s:]+\d+", re.I),
    re.compile(r"\b(?:telegram|tg)[\s:]+@?[\w.]+", re.I),
    re.compile(r"\b(?:facebook|fb)[\s:]+[\w.]+", re.I),
]
# TLD must start with a letter so prices like "1.500" are not read as hosts.
_URL_PATTERN = re.compile(
    r"(?:https?://)?(?:www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z][a-zA-Z0-9()]{0,5}\b"
    r"(?:[-a-zA-Z0-9()@:%_+.~#?&/=]*)",
    re.I,
)
_WHATSAPP_LINK_PATTERN = re.compile(r"(?:wa\.me|api\.whatsapp\.com|chat\.whatsapp\.com)/\d+", re.I)


@dataclass
class ContactDetectionResult:
    has_contact: bool = False
    phones: list[str] = field(default_factory=list)
    emails: list[str] = field(default_factory=list)
    social_media: list[str] = field(default_factory=list)
    urls: list[str] = field(default_factory=list)
    whatsapp_links: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def normalize_obfuscated_text(text: str) -> str:
    normalized = text.lower()
    for word, digit in WORD_NUMBERS.items():
        normalized = re.sub(rf"\b{word}\b", digit, normalized)
    for emoji, digit in EMOJI_NUMBERS.items():
        normalized = normalized.replace(emoji, digit)
    for pattern in _AT_PATTERNS:
        normalized = pattern.sub("@", normalized)
    return _DOT_PATTERN.sub(".", normalized)


def _unique(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))


def extract_phones(text: str) -> list[str]:
    cleaned = re.sub(r"[^\d\s]", " ", normalize_obfuscated_text(text))
    found: list[str] = []
    for pattern in _PHONE_PATTERNS:
        found.extend(re.sub(r"\D", "", m) for m in pattern.findall(cleaned))
    return [p for p in found if 10 <= len(p) <= 11]


def extract_emails(text: str) -> list[str]:
    normalized = normalize_obfuscated_text(text)
    return _EMAIL_PATTERN.findall(normalized) + _OBFUSCATED_EMAIL_PATTERN.findall(normalized)


def extract_social_media(text: str) -> list[str]:
    found = _HANDLE_PATTERN.findall(text)
    for pattern in _SOCIAL_PATTERNS:
        found.extend(pattern.findall(text))
    return found


def extract_urls(text: str) -> list[str]:
    return _URL_PATTERN.findall(text)


def extract_whatsapp_links(text: str) -> list[str]:
    return _WHATSAPP_LINK_PATTERN.findall(text)


def detect_contact_info(text: str) -> ContactDetectionResult:
    if not text:
        return ContactDetectionResult()

    phones = extract_phones(text)
    emails = extract_emails(text)
    social = extract_social_media(text)
    urls = extract_urls(text)
    links = extract_whatsapp_links(text)

    warnings = []
    if phones:
        warnings.append(f"Telefone detectado: {len(phones)} ocorrência(s)")
    if emails:
        warnings.append(f"E-mail detectado: {len(emails)} ocorrência(s)")
    if social:
        warnings.append(f"Rede social detectada: {len(social)} ocorrência(s)")
    if urls:
        warnings.append(f"URL detectada: {len(urls)} ocorrência(s)")
    if links:
        warnings.append(f"Link de WhatsApp detectado: {len(links)} ocorrência(s)")

    return ContactDetectionResult(
        has_contact=bool(phones or emails or social or urls or links),
        phones=_unique(phones),
        emails=_unique(emails),
        social_media=_unique(social),
        urls=_unique(urls),
        whatsapp_links=_unique(links),
        warnings=warnings,
    )


def is_safe_text(text: str) -> tuple[bool, str | None]:
    result = detect_contact_info(text)
    if result.has_contact:
        return False, ", ".join(result.warnings)
    return True, None
