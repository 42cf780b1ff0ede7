"""Profile photo screening with a vision model.

The model reports a face flag, a 0-10 quality score and a list of issues;
severities are fixed here so a photo is only valid with a face, no
blocking issue and a score of at least 5.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field

from openai import OpenAIError

from app.core.config import settings

from .base import ChatCompletionProvider
from .factory import get_chat_provider

logger = logging.getLogger(__name__)

MIN_QUALITY_SCORE = 5


class PhotoIssueType:
    NO_FACE = "no_face"
    FACE_PARTIALLY_HIDDEN = "face_partially_hidden"
    SUNGLASSES = "sunglasses"
    HAT_OR_CAP = "hat_or_cap"
    MASK = "mask"
    LOW_QUALITY = "low_quality"
    POOR_LIGHTING = "poor_lighting"
    MULTIPLE_FACES = "multiple_faces"
    INAPPROPRIATE_CONTENT = "inappropriate_content"
    NOT_A_PERSON = "not_a_person"
    ROTATED_IMAGE = "rotated_image"


ISSUE_MESSAGES = {
    PhotoIssueType.NO_FACE: "Não foi possível detectar um rosto na foto",
    PhotoIssueType.FACE_PARTIALLY_HIDDEN: "O rosto está parcialmente escondido",
    PhotoIssueType.SUNGLASSES: "A foto contém óculos escuros - os olhos devem estar visíveis",
    PhotoIssueType.HAT_OR_CAP: "A foto contém boné ou chapéu - prefira uma foto sem acessórios na cabeça",
    PhotoIssueType.MASK: "A foto contém máscara - o rosto deve estar completamente visível",
    PhotoIssueType.LOW_QUALITY: "A qualidade da imagem está baixa",
    PhotoIssueType.POOR_LIGHTING: "A iluminação da foto está ruim - prefira ambientes bem iluminados",
    PhotoIssueType.MULTIPLE_FACES: "A foto contém mais de uma pessoa - use uma foto individual",
    PhotoIssueType.INAPPROPRIATE_CONTENT: "A foto contém conteúdo inadequado",
    PhotoIssueType.NOT_A_PERSON: "A foto não parece ser de uma pessoa",
    PhotoIssueType.ROTATED_IMAGE: "A foto está rotacionada ou de lado - ajuste a orientação",
}

SYSTEM_PROMPT = """Você é um especialista em análise de fotos de perfil para uma plataforma de babás e cuidadores infantis.

Analise a foto fornecida e retorne um JSON com os seguintes campos:

{
  "faceDetected": boolean (se há um rosto humano visível na foto),
  "qualityScore": number (0-10, qualidade geral da foto para perfil profissional),
  "issues": [{"type": string, "severity": "warning" | "error"}],
  "suggestions": ["array de sugestões de melhoria"]
}

TIPOS DE PROBLEMAS: no_face, face_partially_hidden, sunglasses, hat_or_cap, mask,
low_quality, poor_lighting, multiple_faces, inappropriate_content, not_a_person, rotated_image.

SEVERIDADE:
- "error": no_face, not_a_person, inappropriate_content, mask, sunglasses, rotated_image
- "warning": hat_or_cap, low_quality, poor_lighting, face_partially_hidden, multiple_faces

CRITÉRIOS PARA QUALIDADE (qualityScore):
- 9-10: Foto profissional, rosto claro, boa iluminação, fundo neutro
- 7-8: Boa foto, rosto visível, iluminação adequada
- 5-6: Foto aceitável, alguns problemas menores
- 3-4: Foto com problemas significativos
- 0-2: Foto inadequada para perfil profissional

IMPORTANTE:
- Óculos de grau são permitidos (não confundir com óculos escuros)
- Maquiagem e brincos são permitidos
- A foto deve mostrar claramente o rosto da pessoa"""

_DATA_URL_PREFIX = re.compile(r"^data:image/\w+;base64,")


@dataclass
class PhotoIssue:
    type: str
    severity: str
    message: str


@dataclass
class PhotoValidationResult:
    is_valid: bool
    issues: list[PhotoIssue] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    face_detected: bool = True
    quality_score: float = MIN_QUALITY_SCORE


def permissive_result() -> PhotoValidationResult:
    return PhotoValidationResult(is_valid=True, face_detected=True, quality_score=MIN_QUALITY_SCORE)


def parse_analysis(content: str) -> PhotoValidationResult:
    analysis = json.loads(content)
    issues = [
        PhotoIssue(
            type=item.get("type", ""),
            severity=item.get("severity", "warning"),
            message=ISSUE_MESSAGES.get(item.get("type", ""), f"Problema detectado: {item.get('type')}"),
        )
        for item in analysis.get("issues") or []
    ]
    face_detected = bool(analysis.get("faceDetected"))
    score = float(analysis.get("qualityScore") or 0)
    has_errors = any(issue.severity == "error" for issue in issues)
    return PhotoValidationResult(
        is_valid=face_detected and not has_errors and score >= MIN_QUALITY_SCORE,
        issues=issues,
        suggestions=list(analysis.get("suggestions") or []),
        face_detected=face_detected,
        quality_score=score,
    )


def validate_profile_photo(
    image_base64: str, provider: ChatCompletionProvider | None = None
) -> PhotoValidationResult:
    data = _DATA_URL_PREFIX.sub("", image_base64.strip())
    messages = [
        {"role": "system", "content": SYSTEM_PROMPT},
        {
            "role": "user",
            "content": [
                {"type": "text", "text": "Analise esta foto de perfil e retorne o resultado em JSON:"},
                {"type": "image_url", "image_url": {"url": f"data:image/jpeg;base64,{data}", "detail": "low"}},
            ],
        },
    ]
    try:
        provider = provider or get_chat_provider()
        content = provider.generate(
            messages, temperature=0.3, max_tokens=500, json_mode=True, model=settings.OPENAI_VISION_MODEL
        )
        if not content:
            raise ValueError("empty response")
        return parse_analysis(content)
    except (OpenAIError, RuntimeError, ValueError) as exc:
        # Photo is accepted when the screening itself is unavailable.
        logger.warning("Photo validation unavailable, accepting photo: %s", exc)
        return permissive_result()


def get_validation_summary(result: PhotoValidationResult) -> dict[str, str]:
    if not result.face_detected:
        return {
            "status": "rejected",
            "message": "Não conseguimos identificar um rosto na foto. Escolha uma foto onde seu rosto esteja bem visível.",
        }
    errors = [i for i in result.issues if i.severity == "error"]
    if errors:
        return {"status": "rejected", "message": errors[0].message}
    warnings = [i for i in result.issues if i.severity == "warning"]
    if warnings:
        return {"status": "rejected", "message": f"{warnings[0].message}. Escolha outra foto para continuar."}
    if result.quality_score < MIN_QUALITY_SCORE:
        return {
            "status": "rejected",
            "message": "A qualidade da foto está baixa. Escolha uma foto mais nítida e bem iluminada.",
        }
    return {"status": "approved", "message": "Foto aprovada!"}
