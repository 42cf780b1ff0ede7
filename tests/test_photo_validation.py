from __future__ import annotations

import json

from openai import OpenAIError

from app.modules.llm.base import ChatCompletionProvider
from app.modules.llm.photo_validation import (
    PhotoIssueType,
    get_validation_summary,
    parse_analysis,
    validate_profile_photo,
)


class StubProvider(ChatCompletionProvider):
    def __init__(self, reply: str | Exception) -> None:
        self.reply = reply
        self.calls: list[dict] = []

    def generate(self, messages, *, temperature=None, max_tokens=None, json_mode=False, model=None) -> str:
        self.calls.append({"messages": messages, "json_mode": json_mode, "model": model})
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply

    def name(self) -> str:
        return "stub"


def _analysis(**fields) -> str:
    data = {"faceDetected": True, "qualityScore": 8, "issues": [], "suggestions": []}
    data.update(fields)
    return json.dumps(data)


def test_good_photo_is_approved() -> None:
    provider = StubProvider(_analysis())
    result = validate_profile_photo("data:image/png;base64,AAAA", provider=provider)

    assert result.is_valid
    assert get_validation_summary(result) == {"status": "approved", "message": "Foto aprovada!"}
    call = provider.calls[0]
    assert call["json_mode"]
    image = call["messages"][1]["content"][1]["image_url"]["url"]
    assert image == "data:image/jpeg;base64,AAAA"


def test_blocking_issue_rejects_photo() -> None:
    result = parse_analysis(_analysis(issues=[{"type": PhotoIssueType.SUNGLASSES, "severity": "error"}]))
    assert not result.is_valid
    summary = get_validation_summary(result)
    assert summary["status"] == "rejected"
    assert "óculos escuros" in summary["message"]


def test_warning_and_low_score() -> None:
    warned = parse_analysis(_analysis(issues=[{"type": PhotoIssueType.POOR_LIGHTING, "severity": "warning"}]))
    assert warned.is_valid
    assert get_validation_summary(warned)["message"].endswith("Escolha outra foto para continuar.")

    blurry = parse_analysis(_analysis(qualityScore=3))
    assert not blurry.is_valid
    assert "qualidade" in get_validation_summary(blurry)["message"]


def test_no_face() -> None:
    result = parse_analysis(_analysis(faceDetected=False))
    assert not result.is_valid
    assert "rosto" in get_validation_summary(result)["message"]


def test_unknown_issue_type_gets_generic_message() -> None:
    result = parse_analysis(_analysis(issues=[{"type": "blurry_background"}]))
    assert result.issues[0].severity == "warning"
    assert result.issues[0].message == "Problema detectado: blurry_background"


def test_unavailable_screening_accepts_photo() -> None:
    for reply in (OpenAIError("quota"), "", "not json"):
        result = validate_profile_photo("AAAA", provider=StubProvider(reply))
        assert result.is_valid
