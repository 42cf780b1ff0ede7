from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ReviewCreate(BaseModel):
    target_id: str
    rating: int = Field(ge=1, le=5)
    comment: str | None = Field(default=None, max_length=2000)


class ReviewRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    type: str
    family_id: str
    nanny_id: str
    rating: int
    comment: str | None = None
    status: str
    is_published: bool
    published_at: datetime | None = None
    created_at: datetime


class ReviewListRead(BaseModel):
    reviews: list[ReviewRead]
    average_rating: float
    total_reviews: int
    visible_limit: int | None = None
    is_limited: bool = False


class ReviewModerationRequest(BaseModel):
    action: Literal["APPROVE", "REJECT", "HIDE"]
    reason: str | None = Field(default=None, max_length=1000)
