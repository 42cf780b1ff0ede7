from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Callable

from sqlalchemy.orm import Session

from app.core.database import utcnow
from app.core.errors import SubscriptionRequiredError
from app.modules.audit.service import AuditService
from app.modules.families.models import Family
from app.modules.nannies.models import Nanny
from app.modules.notifications import templates
from app.modules.notifications.email import EmailContent, send_email
from app.modules.subscriptions import plans
from app.modules.subscriptions.repository import SubscriptionsRepository
from app.modules.subscriptions.service import SubscriptionService
from app.modules.users.models import User
from .models import Review, ReviewStatus, ReviewType
from .repository import ReviewsRepository
from .schemas import ReviewCreate


logger = logging.getLogger(__name__)

PUBLICATION_DELAY = timedelta(days=14)

MODERATION_STATUS = {
    "APPROVE": ReviewStatus.APPROVED,
    "REJECT": ReviewStatus.REJECTED,
    "HIDE": ReviewStatus.HIDDEN,
}


def review_snapshot(review: Review) -> dict[str, Any]:
    return {
        "type": review.type,
        "familyId": review.family_id,
        "nannyId": review.nanny_id,
        "rating": review.rating,
        "comment": review.comment,
        "status": review.status,
        "isPublished": review.is_published,
    }


class ReviewsService:
    def __init__(
        self,
        db: Session,
        audit: AuditService | None = None,
        email_sender: Callable[[str, EmailContent], bool] = send_email,
    ):
        self.db = db
        self.repo = ReviewsRepository(db)
        self.subscriptions = SubscriptionService(db)
        self.audit = audit
        self.email_sender = email_sender

    def create(self, *, data: ReviewCreate, family_id: str | None = None, nanny_id: str | None = None) -> Review:
        """A family reviews a nanny or a nanny reviews a family.

        Reviews stay hidden until the other side also reviews or the
        publication delay runs out.
        """
        if family_id:
            review_type = ReviewType.FAMILY_TO_NANNY
            nanny_id = data.target_id
            if self.db.get(Nanny, nanny_id) is None:
                raise LookupError("Babá não encontrada")
            feature = "rateNannies"
        elif nanny_id:
            review_type = ReviewType.NANNY_TO_FAMILY
            family_id = data.target_id
            if self.db.get(Family, family_id) is None:
                raise LookupError("Família não encontrada")
            feature = "rateFamilies"
        else:
            raise LookupError("Perfil não encontrado")

        reviewer = {"family_id": family_id} if review_type == ReviewType.FAMILY_TO_NANNY else {"nanny_id": nanny_id}
        features = self.subscriptions.get_plan_features(**reviewer) or {}
        if not features.get(feature):
            raise SubscriptionRequiredError("Seu plano não permite avaliar")

        if not SubscriptionsRepository(self.db).conversation_exists(family_id, nanny_id):
            raise ValueError("Você só pode avaliar usuários com quem teve contato")
        if self.repo.get_for_pair(family_id, nanny_id, review_type):
            raise ValueError("Você já avaliou este usuário")

        review = self.repo.add(
            Review(
                type=review_type,
                family_id=family_id,
                nanny_id=nanny_id,
                rating=data.rating,
                comment=data.comment,
                status=ReviewStatus.APPROVED,
            )
        )
        counterpart_type = (
            ReviewType.NANNY_TO_FAMILY if review_type == ReviewType.FAMILY_TO_NANNY else ReviewType.FAMILY_TO_NANNY
        )
        counterpart = self.repo.get_for_pair(family_id, nanny_id, counterpart_type)
        published: list[Review] = []
        if counterpart is not None:
            now = utcnow()
            for item in (review, counterpart):
                if not item.is_published:
                    item.is_published = True
                    item.published_at = now
                    published.append(item)
        self.db.commit()
        self.db.refresh(review)
        for item in published:
            self.notify_published(item)
        return review

    def list_for_nanny(self, nanny_id: str, *, viewer_family_id: str | None = None) -> dict[str, Any]:
        average, total = self.repo.stats(nanny_id=nanny_id)
        limit: int | None = None
        if viewer_family_id:
            limit = self.subscriptions.get_user_review_limit(family_id=viewer_family_id)
            if limit == plans.UNLIMITED:
                limit = None
        reviews = self.repo.list_received(nanny_id=nanny_id, limit=limit)
        return {
            "reviews": reviews,
            "average_rating": round(average, 1),
            "total_reviews": total,
            "visible_limit": limit,
            "is_limited": limit is not None and total > limit,
        }

    def list_for_family(self, family_id: str) -> dict[str, Any]:
        average, total = self.repo.stats(family_id=family_id)
        return {
            "reviews": self.repo.list_received(family_id=family_id),
            "average_rating": round(average, 1),
            "total_reviews": total,
        }

    def publish_due_reviews(self, now: datetime | None = None) -> dict[str, Any]:
        now = now or utcnow()
        due = self.repo.list_due_for_publication(now - PUBLICATION_DELAY)
        for review in due:
            review.is_published = True
            review.published_at = now
        self.db.commit()

        notified = 0
        for review in due:
            if self.notify_published(review):
                notified += 1
        logger.info("Published %d reviews, %d notifications sent", len(due), notified)
        return {"success": True, "published": len(due), "notificationsSent": notified}

    def notify_published(self, review: Review) -> bool:
        family = self.db.get(Family, review.family_id)
        nanny = self.db.get(Nanny, review.nanny_id)
        if family is None or nanny is None:
            return False
        if review.type == ReviewType.FAMILY_TO_NANNY:
            target, reviewer_name = nanny, family.name or "Uma família"
        else:
            target, reviewer_name = family, nanny.name or "Uma babá"
        user = self.db.get(User, target.user_id)
        if user is None:
            return False
        content = templates.review_published_email(
            templates.first_name(target.name or user.full_name), reviewer_name, review.rating
        )
        return self.email_sender(user.email, content)

    # ---- Admin ----
    def moderate(self, review_id: str, action: str, moderator_id: str, moderator_email: str,
                 reason: str | None = None) -> Review:
        review = self.repo.get(review_id)
        if review is None:
            raise LookupError("Avaliação não encontrada")
        status = MODERATION_STATUS.get(action)
        if status is None:
            raise ValueError("Ação de moderação inválida")
        review.status = status
        review.moderated_by = moderator_id
        review.moderation_note = reason
        review = self.repo.save(review)
        if self.audit:
            self.audit.log_review_moderation(review.id, action, review_snapshot(review), moderator_email, reason)
        return review

    def stats(self) -> dict[str, Any]:
        by_status = self.repo.count_by_status()
        _, nanny_total = self.repo.stats()
        return {
            "total": sum(by_status.values()),
            "byStatus": by_status,
            "publishedVisible": nanny_total,
        }
