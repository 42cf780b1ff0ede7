from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, JSONType, UTCDateTime, utcnow


class DiscountType:
    PERCENTAGE = "PERCENTAGE"
    FIXED = "FIXED"
    FREE_TRIAL_DAYS = "FREE_TRIAL_DAYS"


class CouponApplicability:
    ALL = "ALL"
    FAMILIES = "FAMILIES"
    NANNIES = "NANNIES"
    SPECIFIC_PLAN = "SPECIFIC_PLAN"


class Coupon(Base):
    __tablename__ = "coupons"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    code: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    discount_type: Mapped[str] = mapped_column(String(20))
    discount_value: Mapped[float] = mapped_column(Float)
    max_discount: Mapped[float | None] = mapped_column(Float, default=None)
    min_purchase_amount: Mapped[float | None] = mapped_column(Float, default=None)
    usage_limit: Mapped[int | None] = mapped_column(Integer, default=None)
    usage_count: Mapped[int] = mapped_column(Integer, default=0)
    applies_to: Mapped[str] = mapped_column(String(20), default=CouponApplicability.ALL)
    applicable_plans: Mapped[list] = mapped_column(JSONType, default=list)
    has_user_restriction: Mapped[bool] = mapped_column(Boolean, default=False)
    allowed_emails: Mapped[list] = mapped_column(JSONType, default=list)
    start_date: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    end_date: Mapped[datetime] = mapped_column(UTCDateTime)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_by_id: Mapped[str | None] = mapped_column(String(36), default=None)
    deleted_at: Mapped[datetime | None] = mapped_column(UTCDateTime, default=None)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow)


class CouponUsage(Base):
    __tablename__ = "coupon_usages"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    coupon_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("coupons.id", ondelete="CASCADE"), index=True
    )
    user_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), index=True, default=None
    )
    email: Mapped[str | None] = mapped_column(String(255), default=None)
    plan: Mapped[str] = mapped_column(String(30))
    billing_interval: Mapped[str | None] = mapped_column(String(20), default=None)
    original_amount: Mapped[float] = mapped_column(Float)
    discount_amount: Mapped[float] = mapped_column(Float)
    final_amount: Mapped[float] = mapped_column(Float)
    subscription_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("subscriptions.id", ondelete="SET NULL"), default=None
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
