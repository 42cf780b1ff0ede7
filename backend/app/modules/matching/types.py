from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any


@dataclass
class NannyProfile:
    id: str
    name: str | None = None
    is_smoker: bool | None = None
    has_cnh: bool | None = None
    experience_years: int | None = None
    has_special_needs_experience: bool | None = None
    special_needs_specialties: list[str] = field(default_factory=list)
    age_ranges_experience: list[str] = field(default_factory=list)
    max_travel_distance: str | None = None
    max_children_care: int | None = None
    comfortable_with_pets: str | None = None
    accepted_activities: list[str] = field(default_factory=list)
    nanny_types: list[str] = field(default_factory=list)
    contract_regimes: list[str] = field(default_factory=list)
    hourly_rate_range: str | None = None
    document_validated: bool = False
    personal_data_validated: bool = False
    criminal_background_validated: bool = False
    average_rating: float | None = None
    review_count: int = 0
    last_active_at: datetime | None = None
    latitude: float | None = None
    longitude: float | None = None
    availability_slots: list[str] = field(default_factory=list)


@dataclass
class JobData:
    id: str
    mandatory_requirements: list[str] = field(default_factory=list)
    children_ids: list[str] = field(default_factory=list)


@dataclass
class FamilyData:
    id: str
    has_pets: bool = False
    number_of_children: int | None = None
    nanny_type: str | None = None
    contract_regime: str | None = None
    hourly_rate_range: str | None = None
    domestic_help_expected: list[str] = field(default_factory=list)
    availability_slots: list[str] = field(default_factory=list)
    latitude: float | None = None
    longitude: float | None = None


@dataclass
class ChildData:
    id: str
    birth_date: date | None = None
    expected_birth_date: date | None = None
    unborn: bool = False
    has_special_needs: bool = False
    special_needs_types: list[str] = field(default_factory=list)


@dataclass
class ScoreComponent:
    score: int
    max_score: int
    details: str | None = None


@dataclass
class MatchResult:
    score: int
    fit_score: int
    trust_score: int
    bonus_score: int
    is_eligible: bool
    elimination_reasons: list[str]
    breakdown: dict[str, ScoreComponent]

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "fitScore": self.fit_score,
            "trustScore": self.trust_score,
            "bonusScore": self.bonus_score,
            "isEligible": self.is_eligible,
            "eliminationReasons": list(self.elimination_reasons),
            "breakdown": {
                key: {"score": c.score, "maxScore": c.max_score, "details": c.details}
                for key, c in self.breakdown.items()
            },
        }
