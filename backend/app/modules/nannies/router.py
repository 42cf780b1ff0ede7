from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from app.api.deps import (
    CurrentNanny,
    CurrentUser,
    DbDep,
    ProfileIds,
    audit_for,
    require_any_permission,
    require_permission,
)
from app.modules.admin.models import AdminUser
from app.modules.admin.permissions import AdminPermission
from app.modules.llm.photo_validation import get_validation_summary, validate_profile_photo
from .schemas import (
    NannyPublicRead,
    NannyRead,
    NannyUpdate,
    NannyValidationUpdate,
    NearbyNannyRead,
    PhotoValidationRequest,
)
from .service import NanniesService


logger = logging.getLogger(__name__)

router = APIRouter(tags=["nannies"])
public_router = APIRouter(prefix="/nannies")
admin_router = APIRouter(prefix="/admin/nannies")

NanniesAdmin = Annotated[AdminUser, Depends(require_permission(AdminPermission.NANNIES))]
ValidationsAdmin = Annotated[
    AdminUser, Depends(require_any_permission(AdminPermission.NANNIES, AdminPermission.VALIDATIONS))
]


@public_router.get("/me", response_model=NannyRead)
def get_my_profile(nanny: CurrentNanny):
    return nanny


@public_router.patch("/me", response_model=NannyRead)
def update_my_profile(data: NannyUpdate, db: DbDep, nanny: CurrentNanny):
    try:
        return NanniesService(db).update_profile(nanny, data)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@public_router.post("/me/photo/validate")
def validate_photo(data: PhotoValidationRequest, _: CurrentNanny):
    result = validate_profile_photo(data.image_base64)
    return {**asdict(result), "summary": get_validation_summary(result)}


@public_router.get("/me/seal")
def get_my_seal(db: DbDep, nanny: CurrentNanny):
    return NanniesService(db).get_seal(nanny).to_dict()


@public_router.get("/nearby", response_model=list[NearbyNannyRead])
def nearby_nannies(
    db: DbDep,
    _: CurrentUser,
    lat: float = Query(ge=-90, le=90),
    lng: float = Query(ge=-180, le=180),
    radius_km: float = Query(default=10, gt=0, le=100),
    city: str | None = None,
    limit: int = Query(default=50, ge=1, le=200),
):
    found = NanniesService(db).search_nearby(lat, lng, radius_km, city=city, limit=limit)
    return [
        NearbyNannyRead(**NannyPublicRead.model_validate(nanny).model_dump(), distance_km=distance)
        for nanny, distance in found
    ]


@public_router.get("/{nanny_id}")
def get_nanny(nanny_id: str, db: DbDep, owner: ProfileIds):
    try:
        profile = NanniesService(db).view_profile(nanny_id, family_id=owner.get("family_id"))
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return {**profile, "nanny": NannyPublicRead.model_validate(profile["nanny"])}


@admin_router.get("")
def list_nannies(
    db: DbDep,
    _: NanniesAdmin,
    q: str | None = None,
    city: str | None = None,
    pending_validation: bool | None = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
):
    items, total = NanniesService(db).repo.search(
        query=q, city=city, pending_validation=pending_validation, limit=limit, offset=offset
    )
    return {"items": [NannyRead.model_validate(n) for n in items], "total": total}


@admin_router.get("/{nanny_id}", response_model=NannyRead)
def get_nanny_admin(nanny_id: str, db: DbDep, admin: NanniesAdmin, request: Request):
    svc = NanniesService(db, audit_for(admin, db, request))
    try:
        return svc.admin_detail(nanny_id, admin.email)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@admin_router.patch("/{nanny_id}/validation", response_model=NannyRead)
def update_validation(
    nanny_id: str, data: NannyValidationUpdate, db: DbDep, admin: ValidationsAdmin, request: Request
):
    svc = NanniesService(db, audit_for(admin, db, request))
    try:
        return svc.set_validation(nanny_id, data)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


router.include_router(public_router)
router.include_router(admin_router)
