from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ChildBase(BaseModel):
    name: str | None = Field(default=None, max_length=150)
    birth_date: date | None = None
    expected_birth_date: date | None = None
    unborn: bool = False
    has_special_needs: bool = False
    special_needs_types: list[str] = Field(default_factory=list)
    special_needs_description: str | None = Field(default=None, max_length=2000)


class ChildCreate(ChildBase):
    @model_validator(mode="after")
    def check_dates(self) -> "ChildCreate":
        if self.unborn and not self.expected_birth_date:
            raise ValueError("Informe a data prevista de nascimento")
        if not self.unborn and not self.birth_date:
            raise ValueError("Informe a data de nascimento")
        return self


class ChildUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=150)
    birth_date: date | None = None
    expected_birth_date: date | None = None
    unborn: bool | None = None
    has_special_needs: bool | None = None
    special_needs_types: list[str] | None = None
    special_needs_description: str | None = Field(default=None, max_length=2000)


class ChildRead(ChildBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    family_id: str
    created_at: datetime


class FamilyUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=30)
    cpf: str | None = Field(default=None, max_length=14)
    cep: str | None = Field(default=None, max_length=9)
    street: str | None = Field(default=None, max_length=255)
    number: str | None = Field(default=None, max_length=20)
    neighborhood: str | None = Field(default=None, max_length=150)
    city: str | None = Field(default=None, max_length=150)
    state: str | None = Field(default=None, min_length=2, max_length=2)
    has_pets: bool | None = None
    number_of_children: int | None = Field(default=None, ge=0, le=20)
    nanny_type: str | None = None
    contract_regime: str | None = None
    hourly_rate_range: str | None = None
    domestic_help_expected: list[str] | None = None
    availability_slots: list[str] | None = None


class FamilyRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    name: str | None = None
    phone: str | None = None
    cep: str | None = None
    street: str | None = None
    number: str | None = None
    neighborhood: str | None = None
    city: str | None = None
    state: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    has_pets: bool
    number_of_children: int | None = None
    nanny_type: str | None = None
    contract_regime: str | None = None
    hourly_rate_range: str | None = None
    domestic_help_expected: list[str] = Field(default_factory=list)
    availability_slots: list[str] = Field(default_factory=list)
    children: list[ChildRead] = Field(default_factory=list)
    created_at: datetime


class FamilyAdminRead(FamilyRead):
    cpf: str | None = None
