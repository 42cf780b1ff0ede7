from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, UTCDateTime, utcnow


class SubscriptionStatus:
    ACTIVE = "ACTIVE"
    TRIALING = "TRIALING"
    PAST_DUE = "PAST_DUE"
    CANCELED = "CANCELED"
    INCOMPLETE = "INCOMPLETE"
    EXPIRED = "EXPIRED"


class PaymentGatewayName:
    ASAAS = "ASAAS"
    STRIPE = "STRIPE"
    MANUAL = "MANUAL"


class BoostType:
    JOB = "JOB"
    NANNY_PROFILE = "NANNY_PROFILE"


class Subscription(Base):
    __tablename__ = "subscriptions"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    nanny_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("nannies.id", ondelete="CASCADE"), unique=True, default=None
    )
    family_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("families.id", ondelete="CASCADE"), unique=True, default=None
    )
    plan: Mapped[str] = mapped_column(String(30))
    status: Mapped[str] = mapped_column(String(30), default=SubscriptionStatus.ACTIVE)
    billing_interval: Mapped[str | None] = mapped_column(String(20), default=None)
    current_period_start: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    current_period_end: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    cancel_at_period_end: Mapped[bool] = mapped_column(Boolean, default=False)
    canceled_at: Mapped[datetime | None] = mapped_column(UTCDateTime, default=None)
    cancellation_reason: Mapped[str | None] = mapped_column(String(50), default=None)
    cancellation_feedback: Mapped[str | None] = mapped_column(Text, default=None)
    payment_gateway: Mapped[str] = mapped_column(String(20), default=PaymentGatewayName.MANUAL)
    external_customer_id: Mapped[str | None] = mapped_column(String(100), index=True, default=None)
    external_subscription_id: Mapped[str | None] = mapped_column(String(100), index=True, default=None)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow)


class ProfileView(Base):
    __tablename__ = "profile_views"
    __table_args__ = (
        UniqueConstraint("family_id", "nanny_id", name="uq_profile_view_family_nanny"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    family_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("families.id", ondelete="CASCADE"), index=True
    )
    nanny_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("nannies.id", ondelete="CASCADE"), index=True
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)


class Boost(Base):
    __tablename__ = "boosts"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    type: Mapped[str] = mapped_column(String(20))
    job_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("jobs.id", ondelete="CASCADE"), index=True, default=None
    )
    family_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("families.id", ondelete="CASCADE"), index=True, default=None
    )
    nanny_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("nannies.id", ondelete="CASCADE"), index=True, default=None
    )
    start_date: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    end_date: Mapped[datetime] = mapped_column(UTCDateTime)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
