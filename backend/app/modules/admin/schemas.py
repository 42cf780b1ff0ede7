from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from .permissions import ALL_PERMISSIONS


def _validate_permissions(value: list[str]) -> list[str]:
    unknown = [p for p in value if p not in ALL_PERMISSIONS]
    if unknown:
        raise ValueError(f"Permissões inválidas: {', '.join(unknown)}")
    # keep order, drop duplicates
    return list(dict.fromkeys(value))


class AdminUserCreate(BaseModel):
    email: EmailStr
    name: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=8, max_length=256)
    permissions: list[str] = Field(default_factory=list)
    is_super_admin: bool = False

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("permissions")
    @classmethod
    def check_permissions(cls, value: list[str]) -> list[str]:
        return _validate_permissions(value)


class AdminUserUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    password: str | None = Field(default=None, min_length=8, max_length=256)
    permissions: list[str] | None = None
    is_super_admin: bool | None = None
    status: Literal["ACTIVE", "INACTIVE"] | None = None

    @field_validator("permissions")
    @classmethod
    def check_permissions(cls, value: list[str] | None) -> list[str] | None:
        return _validate_permissions(value) if value is not None else None


class AdminUserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str | None = None
    is_super_admin: bool
    status: str
    permissions: list[str]
    last_login_at: datetime | None = None
    created_at: datetime
