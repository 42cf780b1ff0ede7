from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.modules.chat.models import Conversation, Message
from app.modules.families.models import Family
from app.modules.jobs.models import Job
from app.modules.nannies.models import Nanny
from app.modules.users.models import User
from .models import Boost, BoostType, ProfileView, Subscription


class SubscriptionsRepository:
    def __init__(self, db: Session):
        self.db = db

    # ---- Subscriptions ----
    def get(self, subscription_id: str) -> Optional[Subscription]:
        return self.db.get(Subscription, subscription_id)

    def get_for(self, *, family_id: str | None = None, nanny_id: str | None = None) -> Optional[Subscription]:
        if nanny_id:
            return self.db.scalar(select(Subscription).where(Subscription.nanny_id == nanny_id))
        if family_id:
            return self.db.scalar(select(Subscription).where(Subscription.family_id == family_id))
        return None

    def get_by_external_subscription_id(self, external_id: str) -> Optional[Subscription]:
        stmt = select(Subscription).where(Subscription.external_subscription_id == external_id)
        return self.db.scalar(stmt)

    def get_by_external_customer_id(self, customer_id: str) -> Optional[Subscription]:
        stmt = (
            select(Subscription)
            .where(Subscription.external_customer_id == customer_id)
            .order_by(Subscription.created_at.desc())
        )
        return self.db.scalars(stmt).first()

    def list(
        self,
        *,
        status: str | None = None,
        plan: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Subscription], int]:
        stmt = select(Subscription)
        if status:
            stmt = stmt.where(Subscription.status == status)
        if plan:
            stmt = stmt.where(Subscription.plan == plan)
        total = self.db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        rows = self.db.scalars(stmt.order_by(Subscription.created_at.desc()).limit(limit).offset(offset))
        return list(rows), total

    def list_expired_trials(self, now: datetime) -> list[Subscription]:
        stmt = select(Subscription).where(
            Subscription.status == "TRIALING", Subscription.current_period_end < now
        )
        return list(self.db.scalars(stmt))

    def get_owner(self, subscription: Subscription) -> tuple[Optional[User], Optional[str]]:
        """The consumer user behind a subscription and the profile display name."""
        profile = None
        if subscription.nanny_id:
            profile = self.db.get(Nanny, subscription.nanny_id)
        elif subscription.family_id:
            profile = self.db.get(Family, subscription.family_id)
        if profile is None:
            return None, None
        user = self.db.get(User, profile.user_id)
        name = profile.name or (user.full_name if user else None)
        return user, name

    def save(self, subscription: Subscription) -> Subscription:
        self.db.add(subscription)
        self.db.commit()
        self.db.refresh(subscription)
        return subscription

    # ---- Profile views ----
    def has_viewed(self, family_id: str, nanny_id: str) -> bool:
        stmt = select(ProfileView.id).where(
            ProfileView.family_id == family_id, ProfileView.nanny_id == nanny_id
        )
        return self.db.scalar(stmt) is not None

    def count_profile_views(self, family_id: str) -> int:
        stmt = select(func.count()).select_from(ProfileView).where(ProfileView.family_id == family_id)
        return self.db.scalar(stmt) or 0

    def add_profile_view(self, family_id: str, nanny_id: str) -> bool:
        self.db.add(ProfileView(family_id=family_id, nanny_id=nanny_id))
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            return False
        return True

    # ---- Boosts ----
    def count_job_boosts_since(self, family_id: str, since: datetime) -> int:
        stmt = (
            select(func.count())
            .select_from(Boost)
            .join(Job, Job.id == Boost.job_id)
            .where(Job.family_id == family_id, Boost.type == BoostType.JOB, Boost.created_at >= since)
        )
        return self.db.scalar(stmt) or 0

    def latest_profile_boost_since(self, nanny_id: str, since: datetime) -> Optional[Boost]:
        stmt = (
            select(Boost)
            .where(
                Boost.nanny_id == nanny_id,
                Boost.type == BoostType.NANNY_PROFILE,
                Boost.created_at >= since,
            )
            .order_by(Boost.created_at.desc())
        )
        return self.db.scalars(stmt).first()

    def active_boosts(self, now: datetime, *, boost_type: str) -> list[Boost]:
        stmt = select(Boost).where(
            Boost.type == boost_type,
            Boost.is_active.is_(True),
            Boost.start_date <= now,
            Boost.end_date > now,
        )
        return list(self.db.scalars(stmt))

    def add_boost(self, boost: Boost) -> Boost:
        self.db.add(boost)
        self.db.commit()
        self.db.refresh(boost)
        return boost

    # ---- Conversations ----
    def count_family_conversations(self, family_id: str) -> int:
        stmt = select(func.count()).select_from(Conversation).where(Conversation.family_id == family_id)
        return self.db.scalar(stmt) or 0

    def conversation_exists(self, family_id: str, nanny_id: str) -> bool:
        stmt = select(Conversation.id).where(
            Conversation.family_id == family_id, Conversation.nanny_id == nanny_id
        )
        return self.db.scalar(stmt) is not None

    def count_nanny_messages(self, conversation_id: str, nanny_id: str) -> int:
        stmt = (
            select(func.count())
            .select_from(Message)
            .where(
                Message.conversation_id == conversation_id,
                Message.sender_nanny_id == nanny_id,
                Message.deleted_at.is_(None),
            )
        )
        return self.db.scalar(stmt) or 0

    def first_message(self, conversation_id: str) -> Optional[Message]:
        stmt = (
            select(Message)
            .where(Message.conversation_id == conversation_id, Message.deleted_at.is_(None))
            .order_by(Message.seq.asc())
        )
        return self.db.scalars(stmt).first()

    def last_nanny_message_seq(self, conversation_id: str, nanny_id: str) -> Optional[int]:
        stmt = select(func.max(Message.seq)).where(
            Message.conversation_id == conversation_id,
            Message.sender_nanny_id == nanny_id,
            Message.deleted_at.is_(None),
        )
        return self.db.scalar(stmt)

    def count_family_messages_after(self, conversation_id: str, seq: int) -> int:
        stmt = (
            select(func.count())
            .select_from(Message)
            .where(
                Message.conversation_id == conversation_id,
                Message.sender_family_id.is_not(None),
                Message.seq > seq,
                Message.deleted_at.is_(None),
            )
        )
        return self.db.scalar(stmt) or 0

    # ---- Jobs ----
    def get_job(self, job_id: str) -> Optional[Job]:
        return self.db.get(Job, job_id)
