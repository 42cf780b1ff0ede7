from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class NannyUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    cpf: str | None = Field(default=None, max_length=14)
    birth_date: date | None = None
    gender: str | None = Field(default=None, max_length=30)
    phone: str | None = Field(default=None, max_length=30)
    photo_url: str | None = Field(default=None, max_length=500)
    about_me: str | None = Field(default=None, max_length=3000)

    cep: str | None = Field(default=None, max_length=9)
    street: str | None = Field(default=None, max_length=255)
    neighborhood: str | None = Field(default=None, max_length=150)
    city: str | None = Field(default=None, max_length=150)
    state: str | None = Field(default=None, min_length=2, max_length=2)

    experience_years: int | None = Field(default=None, ge=0, le=60)
    age_ranges_experience: list[str] | None = None
    strengths: list[str] | None = None
    accepted_activities: list[str] | None = None
    nanny_types: list[str] | None = None
    contract_regimes: list[str] | None = None
    certifications: list[str] | None = None
    hourly_rate_range: str | None = None
    max_children_care: int | None = Field(default=None, ge=1, le=10)
    max_travel_distance: str | None = None
    comfortable_with_pets: str | None = None
    is_smoker: bool | None = None
    has_cnh: bool | None = None
    has_special_needs_experience: bool | None = None
    special_needs_specialties: list[str] | None = None
    availability_slots: list[str] | None = None


class NannyPublicRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str | None = None
    gender: str | None = None
    photo_url: str | None = None
    about_me: str | None = None
    neighborhood: str | None = None
    city: str | None = None
    state: str | None = None
    experience_years: int | None = None
    age_ranges_experience: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    accepted_activities: list[str] = Field(default_factory=list)
    nanny_types: list[str] = Field(default_factory=list)
    contract_regimes: list[str] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)
    hourly_rate_range: str | None = None
    max_children_care: int | None = None
    max_travel_distance: str | None = None
    comfortable_with_pets: str | None = None
    is_smoker: bool | None = None
    has_cnh: bool | None = None
    has_special_needs_experience: bool | None = None
    special_needs_specialties: list[str] = Field(default_factory=list)
    availability_slots: list[str] = Field(default_factory=list)


class NannyRead(NannyPublicRead):
    user_id: str
    cpf: str | None = None
    birth_date: date | None = None
    phone: str | None = None
    cep: str | None = None
    street: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    document_validated: bool
    document_expiration_date: date | None = None
    personal_data_validated: bool
    criminal_background_validated: bool
    created_at: datetime


class NannyValidationUpdate(BaseModel):
    document_validated: bool | None = None
    document_expiration_date: date | None = None
    personal_data_validated: bool | None = None
    criminal_background_validated: bool | None = None
    approve: bool = True
    reason: str | None = Field(default=None, max_length=1000)


class PhotoValidationRequest(BaseModel):
    image_base64: str = Field(min_length=16)


class NearbyNannyRead(NannyPublicRead):
    distance_km: float
