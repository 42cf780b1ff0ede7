from __future__ import annotations

from datetime import timedelta

import pytest

from app.core.database import utcnow
from app.core.errors import SubscriptionRequiredError
from app.modules.audit.constants import AuditAction
from app.modules.audit.service import AuditService
from app.modules.chat.service import ChatService
from app.modules.reviews.models import ReviewStatus, ReviewType
from app.modules.reviews.schemas import ReviewCreate
from app.modules.reviews.service import ReviewsService
from factories import make_admin, make_family, make_nanny

from test_payments import RecordingSender


def _pair(db, **family_fields):
    family = make_family(db, **family_fields)
    nanny = make_nanny(db)
    ChatService(db).start_by_family(family.id, nanny.id, message="Olá")
    return family, nanny


def test_review_waits_for_counterpart(db) -> None:
    family, nanny = _pair(db)
    sender = RecordingSender()
    svc = ReviewsService(db, email_sender=sender)

    review = svc.create(data=ReviewCreate(target_id=nanny.id, rating=5, comment="Excelente"), family_id=family.id)
    assert review.type == ReviewType.FAMILY_TO_NANNY
    assert review.status == ReviewStatus.APPROVED
    assert not review.is_published
    assert svc.list_for_nanny(nanny.id)["total_reviews"] == 0

    svc.create(data=ReviewCreate(target_id=family.id, rating=4), nanny_id=nanny.id)

    db.refresh(review)
    assert review.is_published
    listing = svc.list_for_nanny(nanny.id)
    assert listing["total_reviews"] == 1
    assert listing["average_rating"] == 5.0
    assert svc.list_for_family(family.id)["average_rating"] == 4.0
    assert len(sender.sent) == 2


def test_review_requires_prior_contact(db) -> None:
    family = make_family(db)
    nanny = make_nanny(db)
    with pytest.raises(ValueError, match="teve contato"):
        ReviewsService(db).create(data=ReviewCreate(target_id=nanny.id, rating=3), family_id=family.id)


def test_review_only_once(db) -> None:
    family, nanny = _pair(db)
    svc = ReviewsService(db, email_sender=RecordingSender())
    svc.create(data=ReviewCreate(target_id=nanny.id, rating=5), family_id=family.id)
    with pytest.raises(ValueError, match="já avaliou"):
        svc.create(data=ReviewCreate(target_id=nanny.id, rating=1), family_id=family.id)


def test_review_needs_a_plan(db) -> None:
    family = make_family(db, plan=None)
    nanny = make_nanny(db)
    with pytest.raises(SubscriptionRequiredError):
        ReviewsService(db).create(data=ReviewCreate(target_id=nanny.id, rating=4), family_id=family.id)
    with pytest.raises(LookupError):
        ReviewsService(db).create(data=ReviewCreate(target_id="missing", rating=4), family_id=family.id)


def test_publish_due_reviews_and_viewer_limit(db) -> None:
    nanny = make_nanny(db)
    chat = ChatService(db)
    sender = RecordingSender()
    svc = ReviewsService(db, email_sender=sender)
    families = [make_family(db) for _ in range(2)]
    for family in families:
        chat.start_by_family(family.id, nanny.id)
        svc.create(data=ReviewCreate(target_id=nanny.id, rating=4), family_id=family.id)

    assert svc.publish_due_reviews(utcnow())["published"] == 0
    result = svc.publish_due_reviews(utcnow() + timedelta(days=15))
    assert result == {"success": True, "published": 2, "notificationsSent": 2}

    free_viewer = make_family(db)
    limited = svc.list_for_nanny(nanny.id, viewer_family_id=free_viewer.id)
    assert len(limited["reviews"]) == 1
    assert limited["visible_limit"] == 1
    assert limited["is_limited"]
    assert len(svc.list_for_nanny(nanny.id)["reviews"]) == 2


def test_moderation_hides_review_and_is_audited(db) -> None:
    family, nanny = _pair(db)
    admin = make_admin(db, super_admin=True)
    audit = AuditService(db, admin_user_id=admin.id)
    svc = ReviewsService(db, audit=audit, email_sender=RecordingSender())
    review = svc.create(data=ReviewCreate(target_id=nanny.id, rating=1), family_id=family.id)
    svc.create(data=ReviewCreate(target_id=family.id, rating=5), nanny_id=nanny.id)

    hidden = svc.moderate(review.id, "HIDE", admin.id, admin.email, reason="Ofensivo")

    assert hidden.status == ReviewStatus.HIDDEN
    assert svc.list_for_nanny(nanny.id)["total_reviews"] == 0
    logs = audit.get_by_record("reviews", review.id)
    assert [log.action for log in logs] == [AuditAction.MODERATE]
    assert logs[0].data["reason"] == "Ofensivo"
    with pytest.raises(ValueError):
        svc.moderate(review.id, "DELETE", admin.id, admin.email)
    with pytest.raises(LookupError):
        svc.moderate("missing", "HIDE", admin.id, admin.email)
