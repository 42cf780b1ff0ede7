from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.modules.subscriptions.plans import SubscriptionPlan


DiscountTypeLiteral = Literal["PERCENTAGE", "FIXED", "FREE_TRIAL_DAYS"]
AppliesToLiteral = Literal["ALL", "FAMILIES", "NANNIES", "SPECIFIC_PLAN"]


def _normalize_code(value: str) -> str:
    code = value.strip().upper()
    if len(code) < 3:
        raise ValueError("Código deve ter no mínimo 3 caracteres")
    if len(code) > 50:
        raise ValueError("Código deve ter no máximo 50 caracteres")
    return code


def _normalize_emails(value: list[str]) -> list[str]:
    emails = [e.strip().lower() for e in value if e and e.strip()]
    return list(dict.fromkeys(emails))


def _validate_plans(value: list[str]) -> list[str]:
    unknown = [p for p in value if p not in SubscriptionPlan.ALL]
    if unknown:
        raise ValueError(f"Planos inválidos: {', '.join(unknown)}")
    return value


class CouponCreate(BaseModel):
    code: str
    description: str | None = None
    discount_type: DiscountTypeLiteral
    discount_value: float = Field(gt=0)
    max_discount: float | None = Field(default=None, gt=0)
    min_purchase_amount: float | None = Field(default=None, ge=0)
    usage_limit: int | None = Field(default=None, gt=0)
    applies_to: AppliesToLiteral = "ALL"
    applicable_plans: list[str] = Field(default_factory=list)
    has_user_restriction: bool = False
    allowed_emails: list[str] = Field(default_factory=list)
    start_date: datetime
    end_date: datetime
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        return _normalize_code(value)

    @field_validator("allowed_emails")
    @classmethod
    def normalize_emails(cls, value: list[str]) -> list[str]:
        return _normalize_emails(value)

    @field_validator("applicable_plans")
    @classmethod
    def check_plans(cls, value: list[str]) -> list[str]:
        return _validate_plans(value)

    @model_validator(mode="after")
    def check_rules(self) -> "CouponCreate":
        if self.discount_type == "PERCENTAGE" and self.discount_value > 100:
            raise ValueError("Percentual não pode ser maior que 100%")
        if self.end_date <= self.start_date:
            raise ValueError("Data de término deve ser após a data de início")
        if self.applies_to == "SPECIFIC_PLAN" and not self.applicable_plans:
            raise ValueError("Selecione pelo menos um plano")
        if self.has_user_restriction and not self.allowed_emails:
            raise ValueError("Informe pelo menos um e-mail permitido")
        return self


class CouponUpdate(BaseModel):
    code: str | None = None
    description: str | None = None
    discount_type: DiscountTypeLiteral | None = None
    discount_value: float | None = Field(default=None, gt=0)
    max_discount: float | None = Field(default=None, gt=0)
    min_purchase_amount: float | None = Field(default=None, ge=0)
    usage_limit: int | None = Field(default=None, gt=0)
    applies_to: AppliesToLiteral | None = None
    applicable_plans: list[str] | None = None
    has_user_restriction: bool | None = None
    allowed_emails: list[str] | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    is_active: bool | None = None

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str | None) -> str | None:
        return _normalize_code(value) if value is not None else None

    @field_validator("allowed_emails")
    @classmethod
    def normalize_emails(cls, value: list[str] | None) -> list[str] | None:
        return _normalize_emails(value) if value is not None else None

    @field_validator("applicable_plans")
    @classmethod
    def check_plans(cls, value: list[str] | None) -> list[str] | None:
        return _validate_plans(value) if value is not None else None

    @model_validator(mode="after")
    def check_rules(self) -> "CouponUpdate":
        if self.discount_type == "PERCENTAGE" and self.discount_value and self.discount_value > 100:
            raise ValueError("Percentual não pode ser maior que 100%")
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise ValueError("Data de término deve ser após a data de início")
        if self.applies_to == "SPECIFIC_PLAN" and self.applicable_plans is not None and not self.applicable_plans:
            raise ValueError("Selecione pelo menos um plano")
        return self


class CouponRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    code: str
    description: str | None = None
    discount_type: str
    discount_value: float
    max_discount: float | None = None
    min_purchase_amount: float | None = None
    usage_limit: int | None = None
    usage_count: int
    applies_to: str
    applicable_plans: list[str]
    has_user_restriction: bool
    allowed_emails: list[str]
    start_date: datetime
    end_date: datetime
    is_active: bool
    created_at: datetime


class CouponValidateRequest(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    plan: str
    billing_interval: str = "MONTH"


class CouponValidationRead(BaseModel):
    is_valid: bool
    coupon_id: str | None = None
    code: str | None = None
    discount_type: str | None = None
    original_amount: float | None = None
    discount_amount: float | None = None
    final_amount: float | None = None
    trial_days: int | None = None
    is_free_trial: bool = False
    error_code: str | None = None
    message: str | None = None
