"""Trust seals shown on nanny profiles.

Seals are cumulative: IDENTIFICADA needs a complete profile, a valid identity
document and a verified e-mail; VERIFICADA adds an active Pro plan, facial
validation and the background check; CONFIAVEL adds three published reviews.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any


class NannySeal:
    IDENTIFICADA = "IDENTIFICADA"
    VERIFICADA = "VERIFICADA"
    CONFIAVEL = "CONFIAVEL"


MIN_REVIEWS_FOR_CONFIAVEL = 3

SEAL_DISPLAY_NAMES = {
    NannySeal.IDENTIFICADA: "Selo Identificada",
    NannySeal.VERIFICADA: "Selo Verificada",
    NannySeal.CONFIAVEL: "Selo Confiável",
}

SEAL_DESCRIPTIONS = {
    NannySeal.IDENTIFICADA: "Perfil completo com documento e e-mail verificados pela Cuidly.",
    NannySeal.VERIFICADA: "Identidade confirmada com validação facial e verificação de antecedentes.",
    NannySeal.CONFIAVEL: "Babá verificada com avaliações positivas de famílias na Cuidly.",
}


@dataclass
class SealRequirement:
    met: bool = False
    missing: list[str] = field(default_factory=list)


@dataclass
class SealResult:
    seal: str | None = None
    identificada: SealRequirement = field(default_factory=SealRequirement)
    verificada: SealRequirement = field(default_factory=SealRequirement)
    confiavel: SealRequirement = field(default_factory=SealRequirement)

    def to_dict(self) -> dict[str, Any]:
        return {
            "seal": self.seal,
            "displayName": get_seal_display_name(self.seal),
            "description": get_seal_description(self.seal),
            "requirements": {
                "identificada": {"met": self.identificada.met, "missing": self.identificada.missing},
                "verificada": {"met": self.verificada.met, "missing": self.verificada.missing},
                "confiavel": {"met": self.confiavel.met, "missing": self.confiavel.missing},
            },
        }


def profile_missing_fields(nanny: Any) -> list[str]:
    missing: list[str] = []

    if not nanny.name:
        missing.append("Nome")
    if not nanny.cpf:
        missing.append("CPF")
    if not nanny.birth_date:
        missing.append("Data de nascimento")
    if not nanny.gender:
        missing.append("Gênero")
    if not nanny.photo_url:
        missing.append("Foto de perfil")
    if not nanny.city or not nanny.state or not nanny.neighborhood:
        missing.append("Localização (bairro, cidade, estado)")
    if not nanny.about_me:
        missing.append("Sobre mim")

    if nanny.experience_years is None:
        missing.append("Anos de experiência")
    if not nanny.age_ranges_experience:
        missing.append("Faixas etárias")
    if not nanny.strengths:
        missing.append("Pontos fortes")
    if not nanny.accepted_activities:
        missing.append("Atividades aceitas")

    if not nanny.nanny_types:
        missing.append("Tipo de babá")
    if not nanny.contract_regimes:
        missing.append("Regime de contratação")
    if not nanny.hourly_rate_range:
        missing.append("Faixa de valor")
    if not nanny.max_children_care:
        missing.append("Máximo de crianças")
    if not nanny.max_travel_distance:
        missing.append("Raio de deslocamento")

    if not nanny.availability_slots:
        missing.append("Disponibilidade semanal")

    return missing


def calculate_nanny_seal(
    nanny: Any,
    *,
    email_verified: bool,
    has_pro_subscription: bool,
    published_review_count: int,
    today: date | None = None,
) -> SealResult:
    today = today or date.today()
    result = SealResult()

    missing = profile_missing_fields(nanny)
    expiration = nanny.document_expiration_date
    document_expired = expiration is not None and expiration < today
    if not (nanny.document_validated and not document_expired):
        if document_expired:
            missing.append("Documento de identidade expirado")
        else:
            missing.append("Documento de identidade (RG ou CNH)")
    if not email_verified:
        missing.append("E-mail verificado")

    result.identificada = SealRequirement(met=not missing, missing=missing)
    if not result.identificada.met:
        return result
    result.seal = NannySeal.IDENTIFICADA

    missing = []
    if not has_pro_subscription:
        missing.append("Assinatura Pro ativa")
    if not nanny.personal_data_validated:
        missing.append("Validação facial")
    if not nanny.criminal_background_validated:
        missing.append("Verificação de segurança")

    result.verificada = SealRequirement(met=not missing, missing=missing)
    if not result.verificada.met:
        return result
    result.seal = NannySeal.VERIFICADA

    missing = []
    if published_review_count < MIN_REVIEWS_FOR_CONFIAVEL:
        remaining = MIN_REVIEWS_FOR_CONFIAVEL - published_review_count
        missing.append(
            f"{remaining} avaliações restantes ({published_review_count}/{MIN_REVIEWS_FOR_CONFIAVEL})"
        )
    result.confiavel = SealRequirement(met=not missing, missing=missing)
    if result.confiavel.met:
        result.seal = NannySeal.CONFIAVEL
    return result


def get_seal_display_name(seal: str | None) -> str:
    return SEAL_DISPLAY_NAMES.get(seal or "", "")


def get_seal_description(seal: str | None) -> str:
    return SEAL_DESCRIPTIONS.get(seal or "", "")
