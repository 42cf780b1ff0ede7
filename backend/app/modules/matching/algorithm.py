"""Job to nanny compatibility scoring.

A nanny first goes through eliminatory filters; survivors are scored on
job fit (80 points), trust (20 points) and up to 10 bonus points for
distance and budget.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Sequence

from .budget import get_rate_range, ranges_overlap
from .distance import haversine_km, max_travel_distance_to_km
from .types import ChildData, FamilyData, JobData, MatchResult, NannyProfile, ScoreComponent

MAX_SCORES = {
    "ageRange": 25,
    "nannyType": 15,
    "activities": 15,
    "contractRegime": 10,
    "availability": 10,
    "childrenCount": 5,
    "seal": 8,
    "reviews": 12,
    "distanceBonus": 5,
    "budgetBonus": 5,
}

FIT_KEYS = ("ageRange", "nannyType", "activities", "contractRegime", "availability", "childrenCount")
TRUST_KEYS = ("seal", "reviews")
BONUS_KEYS = ("distanceBonus", "budgetBonus")

DISTANCE_TOLERANCE = 1.2
COMPATIBLE_REGIMES = {("AUTONOMA", "PJ"), ("PJ", "AUTONOMA")}


class Requirement:
    SPECIAL_NEEDS_EXPERIENCE = "SPECIAL_NEEDS_EXPERIENCE"
    NON_SMOKER = "NON_SMOKER"
    DRIVER_LICENSE = "DRIVER_LICENSE"


# ---- Age ranges ----

def get_age_range(age: float | None) -> str | None:
    if age is None:
        return None
    if age < 0.25:
        return "NEWBORN"
    if age < 1:
        return "BABY"
    if age < 3:
        return "TODDLER"
    if age < 6:
        return "PRESCHOOL"
    if age < 13:
        return "SCHOOL_AGE"
    return "TEENAGER"


def calculate_age(birth_date: date | None, today: date | None = None) -> float | None:
    """Age in years; babies under one year get a fractional age in months/12."""
    if birth_date is None:
        return None
    today = today or date.today()
    age = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        age -= 1
    if age == 0:
        months = (today.year - birth_date.year) * 12 + today.month - birth_date.month
        return months / 12
    return age


def get_children_age_ranges(children: Sequence[ChildData], today: date | None = None) -> list[str]:
    """Age ranges youngest first; unborn children count as newborns."""
    aged = []
    for child in children:
        if child.unborn:
            continue
        age = calculate_age(child.birth_date, today)
        age_range = get_age_range(age)
        if age_range is not None:
            aged.append((age, age_range))
    aged.sort(key=lambda item: item[0])
    unborn = sum(1 for c in children if c.unborn)
    return ["NEWBORN"] * unborn + [r for _, r in aged]


def _distance(nanny: NannyProfile, family: FamilyData) -> float | None:
    if not (nanny.latitude and nanny.longitude and family.latitude and family.longitude):
        return None
    return haversine_km(nanny.latitude, nanny.longitude, family.latitude, family.longitude)


def _children_count(family: FamilyData, children: Sequence[ChildData]) -> int:
    return family.number_of_children if family.number_of_children is not None else len(children)


# ---- Eliminatory filters ----

def check_eliminatory_filters(
    nanny: NannyProfile,
    job: JobData,
    family: FamilyData,
    children: Sequence[ChildData],
    today: date | None = None,
) -> list[str]:
    reasons: list[str] = []
    requirements = job.mandatory_requirements or []

    ranges = get_children_age_ranges(children, today)
    if ranges and ranges[0] not in nanny.age_ranges_experience:
        reasons.append(f"Babá não tem experiência com a faixa etária da criança mais nova ({ranges[0]})")

    count = _children_count(family, children)
    if nanny.max_children_care is not None and count > nanny.max_children_care:
        reasons.append(f"Família tem {count} crianças, babá aceita até {nanny.max_children_care}")

    special = [c for c in children if c.has_special_needs]
    if special and Requirement.SPECIAL_NEEDS_EXPERIENCE in requirements:
        if not nanny.has_special_needs_experience:
            reasons.append("Família requer experiência com necessidades especiais")
        else:
            required: list[str] = []
            for child in special:
                for kind in child.special_needs_types or []:
                    if kind not in required:
                        required.append(kind)
            specialties = set(nanny.special_needs_specialties or [])
            unmatched = [
                kind for kind in required
                if kind != "OTHER" and kind not in specialties and "OTHER" not in specialties
            ]
            if unmatched:
                reasons.append(f"Babá não tem experiência com: {', '.join(unmatched)}")

    distance = _distance(nanny, family)
    if distance is not None:
        max_km = max_travel_distance_to_km(nanny.max_travel_distance)
        if distance > max_km * DISTANCE_TOLERANCE:
            reasons.append(f"Distância ({distance:.1f} km) excede o raio máximo da babá ({max_km} km)")

    if family.has_pets and nanny.comfortable_with_pets == "NO":
        reasons.append("Família tem animais e babá não se sente confortável")

    if Requirement.NON_SMOKER in requirements and nanny.is_smoker:
        reasons.append("Família requer babá não fumante")

    if Requirement.DRIVER_LICENSE in requirements and not nanny.has_cnh:
        reasons.append("Família requer babá com CNH")

    family_range = get_rate_range(family.hourly_rate_range)
    nanny_range = get_rate_range(nanny.hourly_rate_range)
    if family_range and nanny_range and not ranges_overlap(family_range, nanny_range):
        reasons.append(
            f"Orçamento incompatível: família paga {family.hourly_rate_range}, babá quer {nanny.hourly_rate_range}"
        )

    if family.availability_slots and nanny.availability_slots:
        if not set(family.availability_slots) & set(nanny.availability_slots):
            reasons.append("Nenhuma disponibilidade em comum entre família e babá")

    return reasons


# ---- Job fit (80) ----

def age_range_score(nanny: NannyProfile, children: Sequence[ChildData], today: date | None = None) -> ScoreComponent:
    max_score = MAX_SCORES["ageRange"]
    ranges = get_children_age_ranges(children, today)
    if not ranges:
        return ScoreComponent(max_score, max_score, "Sem crianças cadastradas")
    matched = [r for r in ranges if r in nanny.age_ranges_experience]
    if len(matched) == len(ranges):
        return ScoreComponent(25, max_score, "Todas as faixas etárias compatíveis")
    if matched and matched[0] == ranges[0]:
        return ScoreComponent(18, max_score, f"Criança mais nova compatível ({len(matched)}/{len(ranges)} faixas)")
    if matched:
        return ScoreComponent(8, max_score, f"Compatibilidade parcial ({len(matched)}/{len(ranges)} faixas)")
    return ScoreComponent(0, max_score, "Nenhuma faixa etária compatível")


def nanny_type_score(nanny: NannyProfile, family: FamilyData) -> ScoreComponent:
    max_score = MAX_SCORES["nannyType"]
    if not family.nanny_type:
        return ScoreComponent(max_score, max_score, "Família não especificou tipo de babá")
    if family.nanny_type in nanny.nanny_types:
        return ScoreComponent(15, max_score, f"Match: babá atua como {family.nanny_type}")
    return ScoreComponent(0, max_score, f"Babá não atua como {family.nanny_type}")


def activities_score(nanny: NannyProfile, family: FamilyData) -> ScoreComponent:
    max_score = MAX_SCORES["activities"]
    if not family.domestic_help_expected:
        return ScoreComponent(max_score, max_score, "Família não especificou atividades")
    count = sum(1 for a in family.domestic_help_expected if a in nanny.accepted_activities)
    if count >= 5:
        score = 15
    elif count >= 3:
        score = 10
    elif count >= 1:
        score = 5
    else:
        score = 0
    return ScoreComponent(score, max_score, f"{count} atividades em comum")


def contract_regime_score(nanny: NannyProfile, family: FamilyData) -> ScoreComponent:
    max_score = MAX_SCORES["contractRegime"]
    if not family.contract_regime:
        return ScoreComponent(max_score, max_score, "Família não especificou regime")
    if family.contract_regime in nanny.contract_regimes:
        return ScoreComponent(10, max_score, f"Match exato: {family.contract_regime}")
    if any((family.contract_regime, regime) in COMPATIBLE_REGIMES for regime in nanny.contract_regimes):
        return ScoreComponent(5, max_score, "Regime compatível com ressalva")
    return ScoreComponent(0, max_score, f"Babá não aceita {family.contract_regime}")


def availability_score(nanny: NannyProfile, family: FamilyData) -> ScoreComponent:
    max_score = MAX_SCORES["availability"]
    if not nanny.availability_slots:
        return ScoreComponent(max_score, max_score, "Babá não informou disponibilidade")
    if not family.availability_slots:
        return ScoreComponent(max_score, max_score, "Família não informou disponibilidade")
    common = [s for s in family.availability_slots if s in nanny.availability_slots]
    ratio = len(common) / len(family.availability_slots)
    if ratio >= 0.7:
        return ScoreComponent(10, max_score, f"Boa sobreposição ({round(ratio * 100)}%)")
    if common:
        return ScoreComponent(5, max_score, f"Interseção mínima ({len(common)} slots)")
    return ScoreComponent(0, max_score, "Sem disponibilidade em comum")


def children_count_score(nanny: NannyProfile, family: FamilyData, children: Sequence[ChildData]) -> ScoreComponent:
    max_score = MAX_SCORES["childrenCount"]
    count = _children_count(family, children)
    if nanny.max_children_care is None:
        return ScoreComponent(max_score, max_score, "Babá não informou limite de crianças")
    if nanny.max_children_care > count:
        return ScoreComponent(5, max_score, f"Totalmente compatível ({count} crianças, limite {nanny.max_children_care})")
    if nanny.max_children_care == count:
        return ScoreComponent(3, max_score, f"No limite ({count} crianças)")
    return ScoreComponent(0, max_score, f"Excede limite da babá ({count} > {nanny.max_children_care})")


# ---- Trust (20) ----

def seal_score(nanny: NannyProfile) -> ScoreComponent:
    max_score = MAX_SCORES["seal"]
    if nanny.document_validated and nanny.personal_data_validated and nanny.criminal_background_validated:
        return ScoreComponent(8, max_score, "Selo Confiável (Identificada + facial + antecedentes)")
    if nanny.document_validated and nanny.personal_data_validated:
        return ScoreComponent(4, max_score, "Selo Verificada (Identificada + facial)")
    return ScoreComponent(0, max_score, "Selo Identificada")


def reviews_score(nanny: NannyProfile) -> ScoreComponent:
    max_score = MAX_SCORES["reviews"]
    if not nanny.review_count or nanny.average_rating is None:
        return ScoreComponent(6, max_score, "Sem avaliações")
    avg = nanny.average_rating
    summary = f"{avg:.1f}★, {nanny.review_count} avaliações"
    if avg >= 4.8:
        return ScoreComponent(12, max_score, f"Excelente ({summary})")
    if avg >= 4.5:
        return ScoreComponent(9, max_score, f"Muito bom ({summary})")
    if avg >= 4.0:
        return ScoreComponent(5, max_score, f"Bom ({summary})")
    return ScoreComponent(2, max_score, f"Regular ({summary})")


# ---- Bonus (10) ----

def distance_bonus(nanny: NannyProfile, family: FamilyData) -> ScoreComponent:
    max_score = MAX_SCORES["distanceBonus"]
    distance = _distance(nanny, family)
    if distance is None:
        return ScoreComponent(0, max_score, "Coordenadas não disponíveis")
    ratio = distance / max_travel_distance_to_km(nanny.max_travel_distance)
    if ratio <= 0.5:
        return ScoreComponent(5, max_score, f"Muito próxima ({distance:.1f} km, {round(ratio * 100)}% do raio)")
    if ratio <= 1.0:
        return ScoreComponent(3, max_score, f"Dentro do raio ({distance:.1f} km)")
    if ratio <= DISTANCE_TOLERANCE:
        return ScoreComponent(1, max_score, f"No limite ({distance:.1f} km)")
    return ScoreComponent(0, max_score, f"Fora do raio ({distance:.1f} km)")


def budget_bonus(nanny: NannyProfile, family: FamilyData) -> ScoreComponent:
    max_score = MAX_SCORES["budgetBonus"]
    if not family.hourly_rate_range or not nanny.hourly_rate_range:
        return ScoreComponent(0, max_score, "Faixa salarial não informada")
    family_range = get_rate_range(family.hourly_rate_range)
    nanny_range = get_rate_range(nanny.hourly_rate_range)
    if family_range is None or nanny_range is None:
        return ScoreComponent(0, max_score, "Faixa salarial inválida")
    if nanny_range.min <= family_range.max:
        if nanny_range.min <= family_range.min:
            return ScoreComponent(5, max_score, "Valor da babá dentro do orçamento")
        return ScoreComponent(5, max_score, "Overlap de valores")
    if nanny_range.min - family_range.max <= 10:
        return ScoreComponent(2, max_score, "Valor ligeiramente acima (negociável)")
    return ScoreComponent(0, max_score, "Valores muito diferentes")


def _eliminated_breakdown() -> dict[str, ScoreComponent]:
    return {key: ScoreComponent(0, max_score, "Eliminado") for key, max_score in MAX_SCORES.items()}


def calculate_match_score(
    job: JobData,
    family: FamilyData,
    children: Sequence[ChildData],
    nanny: NannyProfile,
    today: date | None = None,
) -> MatchResult:
    reasons = check_eliminatory_filters(nanny, job, family, children, today)
    if reasons:
        return MatchResult(0, 0, 0, 0, False, reasons, _eliminated_breakdown())

    breakdown = {
        "ageRange": age_range_score(nanny, children, today),
        "nannyType": nanny_type_score(nanny, family),
        "activities": activities_score(nanny, family),
        "contractRegime": contract_regime_score(nanny, family),
        "availability": availability_score(nanny, family),
        "childrenCount": children_count_score(nanny, family, children),
        "seal": seal_score(nanny),
        "reviews": reviews_score(nanny),
        "distanceBonus": distance_bonus(nanny, family),
        "budgetBonus": budget_bonus(nanny, family),
    }
    fit = sum(breakdown[k].score for k in FIT_KEYS)
    trust = sum(breakdown[k].score for k in TRUST_KEYS)
    bonus = sum(breakdown[k].score for k in BONUS_KEYS)
    return MatchResult(fit + trust + bonus, fit, trust, bonus, True, [], breakdown)


def _last_active_ts(nanny: NannyProfile) -> float:
    if nanny.last_active_at is None:
        return 0.0
    value = nanny.last_active_at
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


def find_best_matches(
    job: JobData,
    family: FamilyData,
    children: Sequence[ChildData],
    nannies: Sequence[NannyProfile],
    limit: int = 20,
    min_score: int = 0,
    today: date | None = None,
) -> list[tuple[NannyProfile, MatchResult]]:
    scored = [(nanny, calculate_match_score(job, family, children, nanny, today)) for nanny in nannies]
    eligible = [(n, r) for n, r in scored if r.is_eligible and r.score >= min_score]
    eligible.sort(
        key=lambda item: (
            item[1].score,
            item[1].fit_score,
            item[1].breakdown["reviews"].score,
            item[1].breakdown["seal"].score,
            _last_active_ts(item[0]),
        ),
        reverse=True,
    )
    return eligible[:limit]
