from __future__ import annotations

from app.modules.chat.moderation import (
    detect_contact_info,
    extract_emails,
    extract_phones,
    is_safe_text,
    normalize_obfuscated_text,
)


def test_plain_message_is_safe() -> None:
    result = detect_contact_info("Tenho 5 anos de experiência e adoro crianças.")
    assert not result.has_contact
    assert result.warnings == []
    assert is_safe_text("Oi, tudo bem? Podemos conversar amanhã?") == (True, None)


def test_empty_text() -> None:
    assert not detect_contact_info("").has_contact


def test_phone_number_is_detected() -> None:
    result = detect_contact_info("Me chama no 11 98765-4321 por favor")
    assert result.has_contact
    assert "11987654321" in result.phones
    assert result.warnings[0].startswith("Telefone detectado")


def test_phone_spelled_out_in_words() -> None:
    text = "meu número é um um nove oito sete seis cinco quatro três dois um"
    assert "11987654321" in extract_phones(text)


def test_prices_are_not_phones_or_urls() -> None:
    result = detect_contact_info("O valor é R$ 1.500 por mês")
    assert not result.has_contact


def test_email_is_detected() -> None:
    result = detect_contact_info("Meu email é mariasilva@gmail.com")
    assert result.emails == ["mariasilva@gmail.com"]
    assert any(w.startswith("E-mail detectado") for w in result.warnings)


def test_obfuscated_email_is_detected() -> None:
    assert extract_emails("joao arroba gmail ponto com")


def test_social_media_handle() -> None:
    result = detect_contact_info("me segue no instagram: @maria.baba")
    assert result.has_contact
    assert result.social_media
    assert any(w.startswith("Rede social detectada") for w in result.warnings)


def test_whatsapp_link() -> None:
    result = detect_contact_info("chama em wa.me/5511987654321")
    assert result.whatsapp_links == ["wa.me/5511987654321"]
    safe, reason = is_safe_text("chama em wa.me/5511987654321")
    assert not safe
    assert "Link de WhatsApp detectado" in reason


def test_normalize_obfuscated_text() -> None:
    assert normalize_obfuscated_text("Um Dois três") == "1 2 3"
    assert normalize_obfuscated_text("joao arroba gmail ponto com") == "joao @ gmail . com"
    assert normalize_obfuscated_text("1️⃣2️⃣") == "12"
