from __future__ import annotations

import requests

from app.modules.notifications.whatsapp import WhatsAppClient, normalize_phone, send_whatsapp_text

from test_payments import FakeResponse, FakeSession


def _client(responses: list) -> tuple[WhatsAppClient, FakeSession]:
    session = FakeSession(responses)
    client = WhatsAppClient(
        api_url="https://graph.test/v19.0/",
        phone_number_id="12345",
        access_token="wa-token",
        session=session,
    )
    return client, session


def test_normalize_phone() -> None:
    assert normalize_phone("(11) 98765-4321") == "5511987654321"
    assert normalize_phone("+55 11 3456-7890") == "551134567890"
    assert normalize_phone("1234") is None
    assert normalize_phone(None) is None


def test_send_text() -> None:
    client, session = _client([FakeResponse(payload={"messages": [{"id": "wamid.1"}]})])

    assert client.send_text("11 98765-4321", "Olá!")

    method, url, kwargs = session.calls[0]
    assert (method, url) == ("POST", "https://graph.test/v19.0/12345/messages")
    assert kwargs["headers"]["Authorization"] == "Bearer wa-token"
    assert kwargs["json"]["to"] == "5511987654321"
    assert kwargs["json"]["text"]["body"] == "Olá!"


def test_send_template_parameters() -> None:
    client, session = _client([FakeResponse(payload={})])

    assert client.send_template("11987654321", "nova_candidatura", ["Joana"])

    template = session.calls[0][2]["json"]["template"]
    assert template["language"] == {"code": "pt_BR"}
    assert template["components"][0]["parameters"] == [{"type": "text", "text": "Joana"}]


def test_failures_return_false() -> None:
    client, session = _client([requests.ConnectionError("offline"), FakeResponse(status_code=400, payload={})])
    assert not client.send_text("11987654321", "Oi")
    assert not client.send_text("11987654321", "Oi")
    assert not client.send_text("123", "Oi")
    assert len(session.calls) == 2


def test_unconfigured_client_skips() -> None:
    session = FakeSession([])
    client = WhatsAppClient(phone_number_id="", access_token="", session=session)
    assert not client.configured
    assert not client.send_text("11987654321", "Oi")
    assert not send_whatsapp_text(None, "Oi")
    assert session.calls == []
