from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from app.api.deps import DbDep, ProfileIds, audit_for, require_permission
from app.modules.admin.models import AdminUser
from app.modules.admin.permissions import AdminPermission
from .schemas import ReviewCreate, ReviewListRead, ReviewModerationRequest, ReviewRead
from .service import ReviewsService


logger = logging.getLogger(__name__)

router = APIRouter(tags=["reviews"])
public_router = APIRouter(prefix="/reviews")
admin_router = APIRouter(prefix="/admin/reviews")

ReviewsAdmin = Annotated[AdminUser, Depends(require_permission(AdminPermission.REVIEWS))]


@public_router.post("", response_model=ReviewRead, status_code=status.HTTP_201_CREATED)
def create_review(data: ReviewCreate, db: DbDep, owner: ProfileIds):
    try:
        return ReviewsService(db).create(data=data, **owner)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@public_router.get("/nanny/{nanny_id}", response_model=ReviewListRead)
def list_nanny_reviews(nanny_id: str, db: DbDep, owner: ProfileIds):
    return ReviewsService(db).list_for_nanny(nanny_id, viewer_family_id=owner.get("family_id"))


@public_router.get("/family/{family_id}", response_model=ReviewListRead)
def list_family_reviews(family_id: str, db: DbDep, _: ProfileIds):
    return ReviewsService(db).list_for_family(family_id)


@admin_router.get("")
def list_reviews(
    db: DbDep,
    _: ReviewsAdmin,
    status_filter: str | None = Query(default=None, alias="status"),
    review_type: str | None = Query(default=None, alias="type"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
):
    items, total = ReviewsService(db).repo.list(
        status=status_filter, review_type=review_type, limit=limit, offset=offset
    )
    return {"items": [ReviewRead.model_validate(r) for r in items], "total": total}


@admin_router.get("/stats")
def review_stats(db: DbDep, _: ReviewsAdmin):
    return ReviewsService(db).stats()


@admin_router.post("/{review_id}/moderate", response_model=ReviewRead)
def moderate_review(
    review_id: str, data: ReviewModerationRequest, db: DbDep, admin: ReviewsAdmin, request: Request
):
    svc = ReviewsService(db, audit_for(admin, db, request))
    try:
        return svc.moderate(review_id, data.action, admin.id, admin.email, data.reason)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


router.include_router(public_router)
router.include_router(admin_router)
