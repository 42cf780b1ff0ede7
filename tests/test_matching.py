from __future__ import annotations

from datetime import date, datetime, timezone

from app.modules.matching.algorithm import (
    Requirement,
    budget_bonus,
    calculate_age,
    calculate_match_score,
    contract_regime_score,
    distance_bonus,
    find_best_matches,
    get_age_range,
    get_children_age_ranges,
)
from app.modules.matching.budget import (
    BudgetStatus,
    calculate_budget_overlap,
    format_budget_summary,
    is_budget_compatible,
)
from app.modules.matching.distance import haversine_km, max_travel_distance_to_km, sort_by_distance
from app.modules.matching.schedule import (
    calculate_schedule_overlap,
    format_schedule_summary,
    meets_schedule_requirement,
    slots_to_schedule,
)
from app.modules.matching.types import ChildData, FamilyData, JobData, NannyProfile


TODAY = date(2026, 1, 15)
SAO_PAULO = (-23.55, -46.63)
CAMPINAS = (-22.9056, -47.0608)


def _family(**overrides) -> FamilyData:
    data = dict(
        id="fam-1",
        nanny_type="MENSALISTA",
        contract_regime="CLT",
        hourly_rate_range="FROM_26_TO_35",
        availability_slots=["MONDAY_MORNING", "TUESDAY_MORNING"],
        latitude=SAO_PAULO[0],
        longitude=SAO_PAULO[1],
    )
    data.update(overrides)
    return FamilyData(**data)


def _nanny(nanny_id: str = "nanny-1", **overrides) -> NannyProfile:
    data = dict(
        id=nanny_id,
        age_ranges_experience=["TODDLER", "PRESCHOOL"],
        max_travel_distance="UP_TO_10KM",
        max_children_care=2,
        nanny_types=["MENSALISTA"],
        contract_regimes=["CLT"],
        hourly_rate_range="FROM_26_TO_35",
        document_validated=True,
        personal_data_validated=True,
        criminal_background_validated=True,
        average_rating=4.9,
        review_count=5,
        availability_slots=["MONDAY_MORNING", "TUESDAY_MORNING"],
        latitude=SAO_PAULO[0],
        longitude=SAO_PAULO[1],
    )
    data.update(overrides)
    return NannyProfile(**data)


def _toddler(**overrides) -> ChildData:
    data = dict(id="child-1", birth_date=date(2024, 6, 1))
    data.update(overrides)
    return ChildData(**data)


JOB = JobData(id="job-1")


def test_age_range_boundaries() -> None:
    assert get_age_range(None) is None
    assert get_age_range(0.1) == "NEWBORN"
    assert get_age_range(0.25) == "BABY"
    assert get_age_range(2) == "TODDLER"
    assert get_age_range(5) == "PRESCHOOL"
    assert get_age_range(12) == "SCHOOL_AGE"
    assert get_age_range(13) == "TEENAGER"


def test_calculate_age_uses_months_under_one_year() -> None:
    assert calculate_age(date(2025, 10, 15), TODAY) == 0.25
    assert calculate_age(date(2024, 6, 1), TODAY) == 1
    assert calculate_age(date(2016, 1, 16), TODAY) == 9
    assert calculate_age(None, TODAY) is None


def test_children_age_ranges_put_unborn_first() -> None:
    children = [
        ChildData(id="a", birth_date=date(2017, 3, 1)),
        ChildData(id="b", unborn=True, expected_birth_date=date(2026, 4, 1)),
        ChildData(id="c", birth_date=date(2024, 2, 1)),
    ]
    assert get_children_age_ranges(children, TODAY) == ["NEWBORN", "TODDLER", "SCHOOL_AGE"]


def test_perfect_match_scores_full_points() -> None:
    result = calculate_match_score(JOB, _family(), [_toddler()], _nanny(), TODAY)

    assert result.is_eligible
    assert result.fit_score == 80
    assert result.trust_score == 20
    assert result.bonus_score == 10
    assert result.score == 110
    assert result.to_dict()["breakdown"]["ageRange"] == {
        "score": 25,
        "maxScore": 25,
        "details": "Todas as faixas etárias compatíveis",
    }


def test_missing_age_range_experience_eliminates() -> None:
    nanny = _nanny(age_ranges_experience=["SCHOOL_AGE"])
    result = calculate_match_score(JOB, _family(), [_toddler()], nanny, TODAY)

    assert not result.is_eligible
    assert result.score == 0
    assert "faixa etária da criança mais nova (TODDLER)" in result.elimination_reasons[0]
    assert all(c.score == 0 for c in result.breakdown.values())


def test_requirements_and_pets_eliminate() -> None:
    job = JobData(id="job-2", mandatory_requirements=[Requirement.NON_SMOKER, Requirement.DRIVER_LICENSE])
    nanny = _nanny(is_smoker=True, has_cnh=False, comfortable_with_pets="NO")
    result = calculate_match_score(job, _family(has_pets=True), [_toddler()], nanny, TODAY)

    assert not result.is_eligible
    assert "Família requer babá não fumante" in result.elimination_reasons
    assert "Família requer babá com CNH" in result.elimination_reasons
    assert "Família tem animais e babá não se sente confortável" in result.elimination_reasons


def test_special_needs_specialties() -> None:
    job = JobData(id="job-3", mandatory_requirements=[Requirement.SPECIAL_NEEDS_EXPERIENCE])
    child = _toddler(has_special_needs=True, special_needs_types=["AUTISM"])

    without = _nanny(has_special_needs_experience=False)
    assert "Família requer experiência com necessidades especiais" in calculate_match_score(
        job, _family(), [child], without, TODAY
    ).elimination_reasons

    wrong = _nanny(has_special_needs_experience=True, special_needs_specialties=["ADHD"])
    reasons = calculate_match_score(job, _family(), [child], wrong, TODAY).elimination_reasons
    assert reasons == ["Babá não tem experiência com: AUTISM"]

    generalist = _nanny(has_special_needs_experience=True, special_needs_specialties=["OTHER"])
    assert calculate_match_score(job, _family(), [child], generalist, TODAY).is_eligible


def test_distance_and_budget_eliminate() -> None:
    far = _nanny(latitude=CAMPINAS[0], longitude=CAMPINAS[1])
    result = calculate_match_score(JOB, _family(), [_toddler()], far, TODAY)
    assert any(r.startswith("Distância") for r in result.elimination_reasons)

    expensive = _nanny(hourly_rate_range="OVER_80")
    result = calculate_match_score(JOB, _family(), [_toddler()], expensive, TODAY)
    assert any(r.startswith("Orçamento incompatível") for r in result.elimination_reasons)


def test_no_common_availability_eliminates() -> None:
    nanny = _nanny(availability_slots=["SATURDAY_NIGHT"])
    result = calculate_match_score(JOB, _family(), [_toddler()], nanny, TODAY)
    assert result.elimination_reasons == ["Nenhuma disponibilidade em comum entre família e babá"]


def test_too_many_children_eliminates() -> None:
    result = calculate_match_score(JOB, _family(number_of_children=3), [_toddler()], _nanny(), TODAY)
    assert result.elimination_reasons == ["Família tem 3 crianças, babá aceita até 2"]


def test_distance_tolerance_gives_partial_bonus() -> None:
    # 0.1 degree of latitude is about 11.1 km, inside the 20% tolerance of 10 km
    nanny = _nanny(latitude=SAO_PAULO[0] + 0.1)
    result = calculate_match_score(JOB, _family(), [_toddler()], nanny, TODAY)

    assert result.is_eligible
    assert distance_bonus(nanny, _family()).score == 1


def test_missing_coordinates_give_no_distance_bonus() -> None:
    component = distance_bonus(_nanny(latitude=None), _family())
    assert component.score == 0
    assert component.details == "Coordenadas não disponíveis"


def test_budget_bonus_levels() -> None:
    family = _family()
    assert budget_bonus(_nanny(hourly_rate_range="UP_TO_25"), family).score == 5
    assert budget_bonus(_nanny(hourly_rate_range="FROM_36_TO_45"), family).score == 2
    assert budget_bonus(_nanny(hourly_rate_range="FROM_61_TO_80"), family).score == 0
    assert budget_bonus(_nanny(hourly_rate_range=None), family).score == 0


def test_contract_regime_compatibility() -> None:
    assert contract_regime_score(_nanny(contract_regimes=["AUTONOMA"]), _family(contract_regime="PJ")).score == 5
    assert contract_regime_score(_nanny(contract_regimes=["CLT"]), _family(contract_regime="PJ")).score == 0
    assert contract_regime_score(_nanny(), _family(contract_regime=None)).score == 10


def test_unrated_nanny_gets_neutral_review_score() -> None:
    result = calculate_match_score(JOB, _family(), [_toddler()], _nanny(average_rating=None, review_count=0), TODAY)
    assert result.breakdown["reviews"].score == 6


def test_partial_fit_breakdown() -> None:
    family = _family(
        nanny_type="FOLGUISTA",
        domestic_help_expected=["COOKING", "CLEANING", "LAUNDRY"],
        availability_slots=["MONDAY_MORNING", "TUESDAY_MORNING", "WEDNESDAY_MORNING"],
    )
    nanny = _nanny(
        accepted_activities=["COOKING"],
        availability_slots=["MONDAY_MORNING"],
        max_children_care=1,
        criminal_background_validated=False,
    )
    result = calculate_match_score(JOB, family, [_toddler()], nanny, TODAY)

    assert result.is_eligible
    assert result.breakdown["nannyType"].score == 0
    assert result.breakdown["activities"].score == 5
    assert result.breakdown["availability"].score == 5
    assert result.breakdown["childrenCount"].score == 3
    assert result.breakdown["seal"].score == 4


def test_find_best_matches_orders_and_filters() -> None:
    recent = datetime(2026, 1, 14, tzinfo=timezone.utc)
    older = datetime(2025, 12, 1, tzinfo=timezone.utc)
    nannies = [
        _nanny("weaker", nanny_types=["DIARISTA"]),
        _nanny("ineligible", age_ranges_experience=[]),
        _nanny("best-old", last_active_at=older),
        _nanny("best-recent", last_active_at=recent),
    ]

    matches = find_best_matches(JOB, _family(), [_toddler()], nannies, today=TODAY)
    assert [n.id for n, _ in matches] == ["best-recent", "best-old", "weaker"]

    limited = find_best_matches(JOB, _family(), [_toddler()], nannies, limit=1, today=TODAY)
    assert [n.id for n, _ in limited] == ["best-recent"]

    strict = find_best_matches(JOB, _family(), [_toddler()], nannies, min_score=100, today=TODAY)
    assert {n.id for n, _ in strict} == {"best-old", "best-recent"}


def test_haversine_and_travel_distance() -> None:
    assert haversine_km(*SAO_PAULO, *SAO_PAULO) == 0
    assert 80 < haversine_km(*SAO_PAULO, *CAMPINAS) < 90
    assert max_travel_distance_to_km("ENTIRE_CITY") == 50
    assert max_travel_distance_to_km(None) == 10


def test_sort_by_distance_puts_unknown_last() -> None:
    points = {"far": CAMPINAS, "none": None, "near": (-23.56, -46.64)}
    ordered = sort_by_distance(SAO_PAULO, points, points.get)
    assert ordered == ["near", "far", "none"]


def test_budget_overlap() -> None:
    within = calculate_budget_overlap(2000, 3000, 2500)
    assert within.status == BudgetStatus.WITHIN_BUDGET
    assert format_budget_summary(within) == "Valor dentro do orçamento"

    above = calculate_budget_overlap(2000, 3000, 3300)
    assert above.status == BudgetStatus.NO_MATCH
    assert above.difference == 300
    assert format_budget_summary(above) == "Valor 10% acima do orçamento"
    assert not is_budget_compatible(2000, 3000, 3300)

    assert calculate_budget_overlap(2000, 3000, None).status == BudgetStatus.NO_RATE
    assert calculate_budget_overlap(None, None, 2500).status == BudgetStatus.NO_BUDGET
    assert calculate_budget_overlap(2000, 3000, 1500).status == BudgetStatus.BELOW_BUDGET


def test_schedule_overlap() -> None:
    job = {
        "monday": {"enabled": True, "startTime": "08:00", "endTime": "12:00"},
        "tuesday": {"enabled": True, "startTime": "08:00", "endTime": "12:00"},
    }
    nanny = {"monday": {"enabled": True, "startTime": "10:00", "endTime": "14:00"}}

    result = calculate_schedule_overlap(job, nanny)
    assert result.overlap_percentage == 25
    assert result.matching_days == ["monday"]
    assert result.missing_days == ["tuesday"]
    assert result.days["monday"].overlap_start == "10:00"
    assert format_schedule_summary(result) == "25% de disponibilidade (2.0h de 8.0h/semana) - Indisponível: Ter"
    assert not meets_schedule_requirement(job, nanny)


def test_schedule_without_job_requirements() -> None:
    result = calculate_schedule_overlap(None, None)
    assert result.overlap_percentage == 100
    assert format_schedule_summary(result) == "Sem requisitos de horário específicos"


def test_full_schedule_cover() -> None:
    job = {"monday": {"enabled": True, "startTime": "08:00", "endTime": "12:00"}}
    nanny = {"monday": {"enabled": True, "startTime": "06:00", "endTime": "18:00"}}
    result = calculate_schedule_overlap(job, nanny)
    assert result.overlap_percentage == 100
    assert format_schedule_summary(result) == "Disponibilidade total (4.0h/semana)"


def test_slots_to_schedule() -> None:
    schedule = slots_to_schedule(["MONDAY_MORNING", "MONDAY_AFTERNOON", "FRIDAY_NIGHT", "BOGUS_SLOT"])
    assert schedule == {
        "monday": {"enabled": True, "startTime": "06:00", "endTime": "18:00"},
        "friday": {"enabled": True, "startTime": "18:00", "endTime": "23:00"},
    }
    assert slots_to_schedule(None) == {}
