from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from app.core.errors import SubscriptionRequiredError
from app.modules.audit.constants import AuditTable
from app.modules.audit.service import AuditService
from app.modules.chat.moderation import is_safe_text
from app.modules.location.service import fill_address_coordinates
from app.modules.matching.distance import haversine_km
from app.modules.reviews.repository import ReviewsRepository
from app.modules.subscriptions.service import SubscriptionService
from app.modules.users.models import User
from .models import Nanny
from .repository import NanniesRepository
from .schemas import NannyUpdate, NannyValidationUpdate
from .seals import SealResult, calculate_nanny_seal


logger = logging.getLogger(__name__)

ADDRESS_FIELDS = ("cep", "street", "neighborhood", "city", "state")
VALIDATION_FIELDS = (
    "document_validated",
    "document_expiration_date",
    "personal_data_validated",
    "criminal_background_validated",
)


class NanniesService:
    def __init__(self, db: Session, audit: AuditService | None = None):
        self.db = db
        self.repo = NanniesRepository(db)
        self.subscriptions = SubscriptionService(db)
        self.audit = audit

    def update_profile(self, nanny: Nanny, data: NannyUpdate) -> Nanny:
        changes = data.model_dump(exclude_unset=True)
        if changes.get("about_me"):
            safe, reason = is_safe_text(changes["about_me"])
            if not safe:
                raise ValueError(
                    f"O texto \"Sobre mim\" não pode conter informações de contato ({reason})"
                )
        if any(k in changes and changes[k] != getattr(nanny, k) for k in ADDRESS_FIELDS):
            nanny.latitude = None
            nanny.longitude = None
        for key, value in changes.items():
            setattr(nanny, key, value)
        fill_address_coordinates(nanny)
        return self.repo.save(nanny)

    def get_seal(self, nanny: Nanny) -> SealResult:
        user = self.db.get(User, nanny.user_id)
        return calculate_nanny_seal(
            nanny,
            email_verified=bool(user and user.email_verified),
            has_pro_subscription=self.subscriptions.has_nanny_premium(nanny_id=nanny.id),
            published_review_count=ReviewsRepository(self.db).count_published_for_nanny(nanny.id),
        )

    def view_profile(self, nanny_id: str, *, family_id: str | None = None) -> dict[str, Any]:
        """Public profile; families consume their profile-view allowance."""
        nanny = self.repo.get(nanny_id)
        if nanny is None:
            raise LookupError("Babá não encontrada")
        if family_id:
            check = self.subscriptions.can_view_profile(family_id, nanny_id)
            if not check.can_view:
                raise SubscriptionRequiredError(
                    check.reason,
                    code="PROFILE_VIEW_LIMIT",
                    details={"viewsUsed": check.views_used, "viewLimit": check.view_limit},
                )
            if not check.already_viewed:
                self.subscriptions.register_profile_view(family_id, nanny_id)

        average, total = ReviewsRepository(self.db).stats(nanny_id=nanny.id)
        return {
            "nanny": nanny,
            "seal": self.get_seal(nanny).to_dict(),
            "averageRating": round(average, 1),
            "totalReviews": total,
        }

    def search_nearby(
        self, lat: float, lng: float, radius_km: float, *, city: str | None = None, limit: int = 50
    ) -> list[tuple[Nanny, float]]:
        found = []
        for nanny in self.repo.list_with_coordinates(city):
            distance = haversine_km(lat, lng, nanny.latitude, nanny.longitude)
            if distance <= radius_km:
                found.append((nanny, round(distance, 1)))
        found.sort(key=lambda item: item[1])
        return found[:limit]

    # ---- Admin ----
    def admin_detail(self, nanny_id: str, viewer_email: str) -> Nanny:
        nanny = self.repo.get(nanny_id)
        if nanny is None:
            raise LookupError("Babá não encontrada")
        if self.audit:
            self.audit.log_personal_data_view(AuditTable.NANNIES, nanny.id, viewer_email, "nanny_profile")
        return nanny

    def set_validation(self, nanny_id: str, data: NannyValidationUpdate) -> Nanny:
        nanny = self.repo.get(nanny_id)
        if nanny is None:
            raise LookupError("Babá não encontrada")
        changes = data.model_dump(include=set(VALIDATION_FIELDS), exclude_unset=True)
        if not data.approve:
            # Rejection clears every flag that was sent.
            changes = {k: (None if k == "document_expiration_date" else False) for k in changes}
        for key, value in changes.items():
            setattr(nanny, key, value)
        nanny = self.repo.save(nanny)

        if self.audit:
            snapshot = {k: getattr(nanny, k) for k in VALIDATION_FIELDS}
            if snapshot.get("document_expiration_date"):
                snapshot["document_expiration_date"] = snapshot["document_expiration_date"].isoformat()
            if data.approve:
                self.audit.log_validation_approve(nanny.id, snapshot)
            else:
                self.audit.log_validation_reject(nanny.id, snapshot, data.reason)
        return nanny
