from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from app.modules.matching.schedule import DAYS_OF_WEEK, time_to_minutes


class DaySchedule(BaseModel):
    enabled: bool = True
    startTime: str = Field(pattern=r"^\d{2}:\d{2}$")
    endTime: str = Field(pattern=r"^\d{2}:\d{2}$")


def _check_schedule(value: dict[str, DaySchedule]) -> dict[str, DaySchedule]:
    for day, slot in value.items():
        if day not in DAYS_OF_WEEK:
            raise ValueError(f"Dia inválido: {day}")
        if slot.enabled and time_to_minutes(slot.endTime) <= time_to_minutes(slot.startTime):
            raise ValueError(f"Horário inválido em {day}")
    return value


Schedule = Annotated[dict[str, DaySchedule], AfterValidator(_check_schedule)]


class JobCreate(BaseModel):
    title: str = Field(min_length=3, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    children_ids: list[str] = Field(default_factory=list)
    mandatory_requirements: list[str] = Field(default_factory=list)
    nanny_type: str | None = None
    contract_regime: str | None = None
    hourly_rate_range: str | None = None
    schedule: Schedule = Field(default_factory=dict)


class JobUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=3, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    children_ids: list[str] | None = None
    mandatory_requirements: list[str] | None = None
    nanny_type: str | None = None
    contract_regime: str | None = None
    hourly_rate_range: str | None = None
    schedule: Schedule | None = None
    status: str | None = Field(default=None, pattern="^(ACTIVE|PAUSED)$")


class JobRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    family_id: str
    title: str
    description: str | None = None
    children_ids: list[str] = Field(default_factory=list)
    mandatory_requirements: list[str] = Field(default_factory=list)
    nanny_type: str | None = None
    contract_regime: str | None = None
    hourly_rate_range: str | None = None
    schedule: dict = Field(default_factory=dict)
    status: str
    expires_at: datetime | None = None
    created_at: datetime


class OpenJobRead(JobRead):
    city: str | None = None
    neighborhood: str | None = None
    distance_km: float | None = None
    boosted: bool = False


class ApplicationCreate(BaseModel):
    message: str | None = Field(default=None, max_length=2000)


class ApplicationDecision(BaseModel):
    accept: bool


class ApplicationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    job_id: str
    nanny_id: str
    message: str | None = None
    status: str
    created_at: datetime
