from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.orm import Session

from app.core.database import as_utc, utcnow
from . import plans
from .models import Boost, BoostType, PaymentGatewayName, Subscription, SubscriptionStatus
from .plans import SubscriptionPlan, UNLIMITED
from .repository import SubscriptionsRepository


logger = logging.getLogger(__name__)

ACTIVE_STATUSES = (SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING)
PAID_PLANS = (SubscriptionPlan.FAMILY_PLUS, SubscriptionPlan.NANNY_PRO)

FREE_PLAN_DURATION = timedelta(days=365 * 100)
PROFILE_BOOST_DURATION = timedelta(hours=24)
JOB_BOOST_DURATION = timedelta(days=7)
PROFILE_BOOST_COOLDOWN = timedelta(days=7)


class EntitlementCode:
    NO_SUBSCRIPTION = "NO_SUBSCRIPTION"
    CONVERSATION_LIMIT_REACHED = "CONVERSATION_LIMIT_REACHED"
    NOT_NANNY = "NOT_NANNY"
    WAITING_FAMILY_RESPONSE = "WAITING_FAMILY_RESPONSE"


@dataclass
class ProfileViewCheck:
    can_view: bool
    views_used: int
    view_limit: int
    already_viewed: bool = False
    reason: str | None = None


@dataclass
class ProfileViewUsage:
    views_used: int
    view_limit: int
    remaining_views: int
    is_unlimited: bool


@dataclass
class BoostCheck:
    can_use: bool
    reason: str | None = None
    next_available: datetime | None = None


@dataclass
class ConversationCheck:
    can_start: bool
    conversations_used: int
    conversation_limit: int
    reason: str | None = None
    code: str | None = None


@dataclass
class JobExpiration:
    expires: bool
    is_expired: bool
    expires_at: datetime | None = None
    days_remaining: int | None = None
    reason: str | None = None


@dataclass
class MessageCheck:
    can_send: bool
    reason: str | None = None
    code: str | None = None


def is_active_status(status: str | None) -> bool:
    return status in ACTIVE_STATUSES


def compute_job_expiration(created_at: datetime, expiration_days: int, now: datetime) -> JobExpiration:
    if expiration_days == UNLIMITED:
        return JobExpiration(expires=False, is_expired=False)
    return job_expiration_from_deadline(created_at, created_at + timedelta(days=expiration_days), now)


def job_expiration_from_deadline(created_at: datetime, expires_at: datetime | None, now: datetime) -> JobExpiration:
    """Expiration state of a job whose deadline was fixed when it was created."""
    if expires_at is None:
        return JobExpiration(expires=False, is_expired=False)
    created_at, expires_at = as_utc(created_at), as_utc(expires_at)
    expiration_days = round((expires_at - created_at).total_seconds() / 86400)
    is_expired = now >= expires_at
    remaining = (expires_at - now).total_seconds() / 86400
    days_remaining = 0 if is_expired else max(0, math.ceil(remaining))
    reason = None
    if is_expired:
        reason = (
            f"Esta vaga expirou. Vagas do plano gratuito duram {expiration_days} dias. "
            "Assine o Plus para vagas sem expiração."
        )
    return JobExpiration(
        expires=True,
        is_expired=is_expired,
        expires_at=expires_at,
        days_remaining=days_remaining,
        reason=reason,
    )


class SubscriptionService:
    """Plan entitlements for families and nannies.

    Every check looks the subscription up by ``family_id`` or ``nanny_id``;
    ACTIVE and TRIALING subscriptions grant their plan's features and any
    other status grants nothing.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = SubscriptionsRepository(db)

    # ---- Lookup ----
    def get_subscription(self, *, family_id: str | None = None, nanny_id: str | None = None) -> Subscription | None:
        return self.repo.get_for(family_id=family_id, nanny_id=nanny_id)

    def _active(self, family_id: str | None, nanny_id: str | None) -> Subscription | None:
        sub = self.get_subscription(family_id=family_id, nanny_id=nanny_id)
        if sub is None or not is_active_status(sub.status):
            return None
        return sub

    def get_plan_features(self, *, family_id: str | None = None, nanny_id: str | None = None) -> dict[str, Any] | None:
        sub = self._active(family_id, nanny_id)
        return plans.get_plan_features(sub.plan) if sub else None

    def is_subscription_active(self, *, family_id: str | None = None, nanny_id: str | None = None) -> bool:
        return self._active(family_id, nanny_id) is not None

    def has_active_subscription(self, *, family_id: str | None = None, nanny_id: str | None = None) -> bool:
        """True only for an active paid plan."""
        sub = self._active(family_id, nanny_id)
        return sub is not None and sub.plan in PAID_PLANS

    # ---- Feature entitlements ----
    def can_see_reviews(self, *, family_id: str | None = None, nanny_id: str | None = None) -> bool:
        features = self.get_plan_features(family_id=family_id, nanny_id=nanny_id) or {}
        return features.get("seeReviews", 0) != 0

    def get_user_review_limit(self, *, family_id: str | None = None, nanny_id: str | None = None) -> int:
        sub = self._active(family_id, nanny_id)
        return plans.get_review_limit(sub.plan) if sub else 0

    def can_favorite(self, *, family_id: str | None = None) -> bool:
        features = self.get_plan_features(family_id=family_id) or {}
        return features.get("favorite") is True

    def can_apply_to_jobs(self, *, nanny_id: str | None = None) -> bool:
        features = self.get_plan_features(nanny_id=nanny_id) or {}
        return features.get("applyToJobs") is True

    def has_matching(self, *, family_id: str | None = None, nanny_id: str | None = None) -> bool:
        sub = self._active(family_id, nanny_id)
        return sub is not None and plans.has_matching_feature(sub.plan)

    def can_create_job(self, *, family_id: str | None = None) -> bool:
        sub = self._active(family_id, None)
        return sub is not None and plans.is_family_plan(sub.plan)

    def get_user_job_limit(self, *, family_id: str | None = None) -> int:
        sub = self._active(family_id, None)
        return plans.get_job_limit(sub.plan) if sub else 0

    def can_contact_nanny(self, *, family_id: str | None = None) -> bool:
        sub = self._active(family_id, None)
        return sub is not None and sub.plan == SubscriptionPlan.FAMILY_PLUS

    def has_nanny_premium(self, *, nanny_id: str | None = None) -> bool:
        sub = self._active(None, nanny_id)
        return sub is not None and sub.plan == SubscriptionPlan.NANNY_PRO

    def has_unlimited_messaging(self, *, nanny_id: str | None = None) -> bool:
        features = self.get_plan_features(nanny_id=nanny_id) or {}
        return features.get("unlimitedMessaging") is True

    # ---- Profile views ----
    def get_profile_view_limit(self, family_id: str) -> int:
        sub = self._active(family_id, None)
        if sub is None:
            return 0
        return plans.get_plan_features(sub.plan).get("viewProfiles", 0)

    def can_view_profile(self, family_id: str, nanny_id: str) -> ProfileViewCheck:
        view_limit = self.get_profile_view_limit(family_id)
        if view_limit == UNLIMITED:
            return ProfileViewCheck(can_view=True, views_used=0, view_limit=UNLIMITED)

        views_used = self.repo.count_profile_views(family_id)
        if self.repo.has_viewed(family_id, nanny_id):
            return ProfileViewCheck(
                can_view=True, views_used=views_used, view_limit=view_limit, already_viewed=True
            )
        if views_used >= view_limit:
            return ProfileViewCheck(
                can_view=False,
                views_used=views_used,
                view_limit=view_limit,
                reason=(
                    f"Você atingiu o limite de {view_limit} perfis. "
                    "Assine o plano Plus para acesso ilimitado."
                ),
            )
        return ProfileViewCheck(can_view=True, views_used=views_used, view_limit=view_limit)

    def register_profile_view(self, family_id: str, nanny_id: str) -> bool:
        """Record a view; False when the pair was already recorded."""
        return self.repo.add_profile_view(family_id, nanny_id)

    def get_profile_view_usage(self, family_id: str) -> ProfileViewUsage:
        view_limit = self.get_profile_view_limit(family_id)
        views_used = self.repo.count_profile_views(family_id)
        unlimited = view_limit == UNLIMITED
        return ProfileViewUsage(
            views_used=views_used,
            view_limit=view_limit,
            remaining_views=UNLIMITED if unlimited else max(0, view_limit - views_used),
            is_unlimited=unlimited,
        )

    # ---- Boosts ----
    def can_use_boost(self, *, family_id: str | None = None, nanny_id: str | None = None) -> BoostCheck:
        sub = self._active(family_id, nanny_id)
        if sub is None:
            return BoostCheck(can_use=False, reason="Assinatura inativa")

        features = plans.get_plan_features(sub.plan)
        if plans.is_family_plan(sub.plan):
            per_cycle = features.get("boostPerCycle", 0)
            if not per_cycle:
                return BoostCheck(can_use=False, reason="Seu plano não inclui boosts")
            if not family_id:
                return BoostCheck(can_use=False, reason="Usuário não é uma família")
            used = self.repo.count_job_boosts_since(family_id, sub.current_period_start)
            if used >= per_cycle:
                return BoostCheck(
                    can_use=False,
                    reason="Você já usou seu boost neste ciclo de cobrança",
                    next_available=sub.current_period_end,
                )
            return BoostCheck(can_use=True)

        if plans.is_nanny_plan(sub.plan):
            if not features.get("weeklyBoost", 0):
                return BoostCheck(can_use=False, reason="Seu plano não inclui boosts")
            if not nanny_id:
                return BoostCheck(can_use=False, reason="Usuário não é uma babá")
            recent = self.repo.latest_profile_boost_since(nanny_id, utcnow() - PROFILE_BOOST_COOLDOWN)
            if recent is not None:
                return BoostCheck(
                    can_use=False,
                    reason="Você já usou seu boost esta semana",
                    next_available=recent.created_at + PROFILE_BOOST_COOLDOWN,
                )
            return BoostCheck(can_use=True)

        return BoostCheck(can_use=False, reason="Plano inválido")

    def activate_boost(self, *, family_id: str | None = None, nanny_id: str | None = None, job_id: str | None = None) -> Boost:
        check = self.can_use_boost(family_id=family_id, nanny_id=nanny_id)
        if not check.can_use:
            raise ValueError(check.reason or "Boost indisponível")

        now = utcnow()
        if nanny_id:
            boost = Boost(
                type=BoostType.NANNY_PROFILE,
                nanny_id=nanny_id,
                start_date=now,
                end_date=now + PROFILE_BOOST_DURATION,
            )
        else:
            job = self.repo.get_job(job_id) if job_id else None
            if job is None or job.family_id != family_id:
                raise LookupError("Vaga não encontrada")
            boost = Boost(
                type=BoostType.JOB,
                job_id=job.id,
                family_id=family_id,
                start_date=now,
                end_date=now + JOB_BOOST_DURATION,
            )
        boost = self.repo.add_boost(boost)
        logger.info("Boost %s activated (%s)", boost.id, boost.type)
        return boost

    # ---- Conversations ----
    def can_start_conversation(self, family_id: str, nanny_id: str) -> ConversationCheck:
        sub = self._active(family_id, None)
        if sub is None:
            return ConversationCheck(
                can_start=False,
                conversations_used=0,
                conversation_limit=0,
                reason="Assinatura inativa",
                code=EntitlementCode.NO_SUBSCRIPTION,
            )

        limit = plans.get_max_conversations(sub.plan)
        if limit == UNLIMITED:
            return ConversationCheck(can_start=True, conversations_used=0, conversation_limit=UNLIMITED)

        used = self.repo.count_family_conversations(family_id)
        if self.repo.conversation_exists(family_id, nanny_id):
            return ConversationCheck(can_start=True, conversations_used=used, conversation_limit=limit)
        if used >= limit:
            return ConversationCheck(
                can_start=False,
                conversations_used=used,
                conversation_limit=limit,
                reason=(
                    f"Você atingiu o limite de {limit} conversas. "
                    "Assine o Plus para contato ilimitado."
                ),
                code=EntitlementCode.CONVERSATION_LIMIT_REACHED,
            )
        return ConversationCheck(can_start=True, conversations_used=used, conversation_limit=limit)

    def can_start_conversation_for_job(self, family_id: str, job_id: str | None, nanny_id: str) -> ConversationCheck:
        # The limit counts every conversation of the family, whatever the job.
        return self.can_start_conversation(family_id, nanny_id)

    def can_nanny_send_message(self, nanny_id: str | None, conversation_id: str) -> MessageCheck:
        sub = self._active(None, nanny_id)
        if sub is None:
            return MessageCheck(can_send=False, reason="Assinatura inativa", code=EntitlementCode.NO_SUBSCRIPTION)
        if sub.plan != SubscriptionPlan.NANNY_FREE:
            return MessageCheck(can_send=True)
        if not nanny_id:
            return MessageCheck(can_send=False, reason="Usuário não é uma babá", code=EntitlementCode.NOT_NANNY)

        if self.repo.count_nanny_messages(conversation_id, nanny_id) == 0:
            return MessageCheck(can_send=True)

        first = self.repo.first_message(conversation_id)
        if first is not None and first.sender_family_id:
            return MessageCheck(can_send=True)

        last_seq = self.repo.last_nanny_message_seq(conversation_id, nanny_id)
        if last_seq is None:
            return MessageCheck(can_send=True)
        if self.repo.count_family_messages_after(conversation_id, last_seq) > 0:
            return MessageCheck(can_send=True)

        return MessageCheck(
            can_send=False,
            reason=(
                "Aguarde a família responder para enviar outra mensagem. "
                "Assine o Pro para mensagens ilimitadas."
            ),
            code=EntitlementCode.WAITING_FAMILY_RESPONSE,
        )

    # ---- Jobs ----
    def get_job_expiration_info(self, family_id: str, job_id: str, now: datetime | None = None) -> JobExpiration:
        job = self.repo.get_job(job_id)
        if job is None or job.family_id != family_id:
            return JobExpiration(expires=False, is_expired=False)
        return job_expiration_from_deadline(job.created_at, job.expires_at, now or utcnow())

    def is_job_expired(self, family_id: str, job_id: str, now: datetime | None = None) -> JobExpiration:
        return self.get_job_expiration_info(family_id, job_id, now)

    # ---- Lifecycle ----
    def create_free_subscription(self, *, family_id: str | None = None, nanny_id: str | None = None, commit: bool = True) -> Subscription:
        now = utcnow()
        sub = Subscription(
            family_id=family_id,
            nanny_id=nanny_id,
            plan=SubscriptionPlan.NANNY_FREE if nanny_id else SubscriptionPlan.FAMILY_FREE,
            status=SubscriptionStatus.ACTIVE,
            current_period_start=now,
            current_period_end=now + FREE_PLAN_DURATION,
            payment_gateway=PaymentGatewayName.MANUAL,
        )
        if not commit:
            self.db.add(sub)
            self.db.flush()
            return sub
        return self.repo.save(sub)

    def downgrade_to_free(self, sub: Subscription) -> Subscription:
        now = utcnow()
        sub.plan = SubscriptionPlan.NANNY_FREE if sub.nanny_id else SubscriptionPlan.FAMILY_FREE
        sub.status = SubscriptionStatus.ACTIVE
        sub.billing_interval = None
        sub.current_period_start = now
        sub.current_period_end = now + FREE_PLAN_DURATION
        sub.cancel_at_period_end = False
        sub.payment_gateway = PaymentGatewayName.MANUAL
        sub.external_subscription_id = None
        return self.repo.save(sub)

    def expire_trials(self, now: datetime | None = None) -> dict[str, Any]:
        now = now or utcnow()
        expired = self.repo.list_expired_trials(now)
        ids: list[str] = []
        for sub in expired:
            self.downgrade_to_free(sub)
            ids.append(sub.id)
        logger.info("Expired %s trial subscriptions", len(ids))
        return {"expired": len(ids), "subscriptionIds": ids}
