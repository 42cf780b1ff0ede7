from __future__ import annotations

from pydantic import BaseModel

from app.modules.nannies.schemas import NannyPublicRead


class ScoreComponentRead(BaseModel):
    score: int
    maxScore: int
    details: str | None = None


class MatchRead(BaseModel):
    nanny: NannyPublicRead
    score: int
    fitScore: int
    trustScore: int
    bonusScore: int
    isEligible: bool
    eliminationReasons: list[str]
    breakdown: dict[str, ScoreComponentRead]
    averageRating: float
    totalReviews: int
    schedule: dict
