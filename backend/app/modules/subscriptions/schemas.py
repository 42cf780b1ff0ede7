from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .plans import BillingInterval, SubscriptionPlan


CancellationReason = Literal[
    "FOUND_WHAT_I_NEEDED",
    "TOO_EXPENSIVE",
    "NOT_USING",
    "MISSING_FEATURES",
    "TECHNICAL_ISSUES",
    "OTHER",
]


class SubscriptionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    nanny_id: str | None = None
    family_id: str | None = None
    plan: str
    status: str
    billing_interval: str | None = None
    current_period_start: datetime
    current_period_end: datetime
    cancel_at_period_end: bool
    canceled_at: datetime | None = None
    cancellation_reason: str | None = None
    payment_gateway: str
    external_subscription_id: str | None = None
    created_at: datetime


class CancelSubscriptionRequest(BaseModel):
    reason: CancellationReason
    feedback: str | None = Field(default=None, max_length=2000)

    @model_validator(mode="after")
    def require_feedback_for_other(self) -> "CancelSubscriptionRequest":
        if self.reason == "OTHER" and not (self.feedback and self.feedback.strip()):
            raise ValueError("Por favor, descreva o motivo do cancelamento")
        return self


class BoostRequest(BaseModel):
    job_id: str | None = None


class AdminChangePlanRequest(BaseModel):
    plan: str
    billing_interval: str | None = None

    @model_validator(mode="after")
    def check_values(self) -> "AdminChangePlanRequest":
        if self.plan not in SubscriptionPlan.ALL:
            raise ValueError("Plano inválido")
        if self.billing_interval is not None and self.billing_interval not in BillingInterval.ALL:
            raise ValueError("Periodicidade inválida")
        return self


class AdminCancelRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)
