from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class FavoriteCreate(BaseModel):
    nanny_id: str = Field(min_length=1, max_length=36)


class FavoriteRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    family_id: str
    nanny_id: str
    created_at: datetime


class FavoriteNanny(BaseModel):
    id: str
    name: str
    photo_url: str | None = None
    experience_years: int | None = None
    hourly_rate_range: str | None = None
    city: str | None = None
    state: str | None = None


class FavoriteListItem(BaseModel):
    id: str
    nanny_id: str
    created_at: datetime
    nanny: FavoriteNanny
