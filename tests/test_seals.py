from __future__ import annotations

from datetime import date
from types import SimpleNamespace

import pytest

from app.modules.nannies.schemas import NannyUpdate, NannyValidationUpdate
from app.modules.nannies.seals import NannySeal, calculate_nanny_seal, profile_missing_fields
from app.modules.nannies.service import NanniesService
from app.modules.subscriptions.plans import SubscriptionPlan
from factories import make_nanny

TODAY = date(2026, 6, 1)

COMPLETE_PROFILE = dict(
    name="Ana Paula",
    cpf="123.456.789-09",
    birth_date=date(1990, 5, 4),
    gender="FEMALE",
    photo_url="https://cdn.example.com/ana.jpg",
    city="São Paulo",
    state="SP",
    neighborhood="Pinheiros",
    about_me="Cuido de crianças há dez anos.",
    experience_years=10,
    age_ranges_experience=["BABY", "TODDLER"],
    strengths=["PACIENCIA"],
    accepted_activities=["COOKING"],
    nanny_types=["MENSALISTA"],
    contract_regimes=["CLT"],
    hourly_rate_range="FROM_26_TO_35",
    max_children_care=2,
    max_travel_distance="UP_TO_10KM",
    availability_slots=["MONDAY_MORNING"],
)


def _profile(**overrides) -> SimpleNamespace:
    data = dict(
        COMPLETE_PROFILE,
        document_validated=True,
        document_expiration_date=date(2030, 1, 1),
        personal_data_validated=True,
        criminal_background_validated=True,
    )
    data.update(overrides)
    return SimpleNamespace(**data)


def test_complete_profile_has_nothing_missing() -> None:
    assert profile_missing_fields(_profile()) == []


def test_missing_profile_fields_are_listed() -> None:
    missing = profile_missing_fields(_profile(cpf=None, neighborhood=None, experience_years=None))
    assert missing == ["CPF", "Localização (bairro, cidade, estado)", "Anos de experiência"]


def test_no_seal_without_verified_email() -> None:
    result = calculate_nanny_seal(
        _profile(), email_verified=False, has_pro_subscription=True, published_review_count=5, today=TODAY
    )
    assert result.seal is None
    assert result.identificada.missing == ["E-mail verificado"]


def test_expired_document_blocks_identificada() -> None:
    result = calculate_nanny_seal(
        _profile(document_expiration_date=date(2026, 5, 31)),
        email_verified=True,
        has_pro_subscription=True,
        published_review_count=5,
        today=TODAY,
    )
    assert result.seal is None
    assert "Documento de identidade expirado" in result.identificada.missing


def test_identificada_without_pro_plan() -> None:
    result = calculate_nanny_seal(
        _profile(criminal_background_validated=False),
        email_verified=True,
        has_pro_subscription=False,
        published_review_count=0,
        today=TODAY,
    )
    assert result.seal == NannySeal.IDENTIFICADA
    assert result.verificada.missing == ["Assinatura Pro ativa", "Verificação de segurança"]


def test_verificada_needs_three_reviews_for_confiavel() -> None:
    result = calculate_nanny_seal(
        _profile(), email_verified=True, has_pro_subscription=True, published_review_count=1, today=TODAY
    )
    assert result.seal == NannySeal.VERIFICADA
    assert result.confiavel.missing == ["2 avaliações restantes (1/3)"]
    assert result.to_dict()["displayName"] == "Selo Verificada"


def test_confiavel_seal() -> None:
    result = calculate_nanny_seal(
        _profile(), email_verified=True, has_pro_subscription=True, published_review_count=3, today=TODAY
    )
    assert result.seal == NannySeal.CONFIAVEL
    assert result.to_dict()["requirements"]["confiavel"] == {"met": True, "missing": []}


def test_service_seal_uses_subscription_and_email(db) -> None:
    nanny = make_nanny(
        db,
        plan=SubscriptionPlan.NANNY_PRO,
        email_verified=True,
        document_validated=True,
        personal_data_validated=True,
        criminal_background_validated=True,
        **{k: v for k, v in COMPLETE_PROFILE.items() if k != "name"},
    )
    result = NanniesService(db).get_seal(nanny)
    assert result.seal == NannySeal.VERIFICADA


def test_free_nanny_stops_at_identificada(db) -> None:
    nanny = make_nanny(
        db,
        email_verified=True,
        document_validated=True,
        **{k: v for k, v in COMPLETE_PROFILE.items() if k != "name"},
    )
    assert NanniesService(db).get_seal(nanny).seal == NannySeal.IDENTIFICADA


def test_about_me_rejects_contact_info(db) -> None:
    nanny = make_nanny(db)
    with pytest.raises(ValueError, match="Sobre mim"):
        NanniesService(db).update_profile(nanny, NannyUpdate(about_me="Me chama no 11 98765-4321"))


def test_validation_rejection_clears_flags(db) -> None:
    nanny = make_nanny(db, document_validated=True, personal_data_validated=True)
    service = NanniesService(db)

    updated = service.set_validation(
        nanny.id,
        NannyValidationUpdate(approve=False, document_validated=True, reason="Documento ilegível"),
    )
    assert updated.document_validated is False
    assert updated.personal_data_validated is True


def test_validation_for_unknown_nanny(db) -> None:
    with pytest.raises(LookupError):
        NanniesService(db).set_validation("missing", NannyValidationUpdate(approve=True))
