from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from app.api.deps import CurrentFamily, DbDep, audit_for, require_permission
from app.modules.admin.models import AdminUser
from app.modules.admin.permissions import AdminPermission
from .schemas import ChildCreate, ChildRead, ChildUpdate, FamilyAdminRead, FamilyRead, FamilyUpdate
from .service import FamiliesService


logger = logging.getLogger(__name__)

router = APIRouter(tags=["families"])
public_router = APIRouter(prefix="/families")
admin_router = APIRouter(prefix="/admin/families")

FamiliesAdmin = Annotated[AdminUser, Depends(require_permission(AdminPermission.FAMILIES))]


@public_router.get("/me", response_model=FamilyRead)
def get_my_family(family: CurrentFamily):
    return family


@public_router.patch("/me", response_model=FamilyRead)
def update_my_family(data: FamilyUpdate, db: DbDep, family: CurrentFamily):
    return FamiliesService(db).update_profile(family, data)


@public_router.get("/me/children", response_model=list[ChildRead])
def list_children(family: CurrentFamily):
    return family.children


@public_router.post("/me/children", response_model=ChildRead, status_code=status.HTTP_201_CREATED)
def add_child(data: ChildCreate, db: DbDep, family: CurrentFamily):
    return FamiliesService(db).add_child(family, data)


@public_router.patch("/me/children/{child_id}", response_model=ChildRead)
def update_child(child_id: str, data: ChildUpdate, db: DbDep, family: CurrentFamily):
    try:
        return FamiliesService(db).update_child(family, child_id, data)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@public_router.delete("/me/children/{child_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_child(child_id: str, db: DbDep, family: CurrentFamily):
    try:
        FamiliesService(db).delete_child(family, child_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@admin_router.get("")
def list_families(
    db: DbDep,
    _: FamiliesAdmin,
    q: str | None = None,
    city: str | None = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
):
    items, total = FamiliesService(db).repo.search(query=q, city=city, limit=limit, offset=offset)
    return {"items": [FamilyRead.model_validate(f) for f in items], "total": total}


@admin_router.get("/{family_id}", response_model=FamilyAdminRead)
def get_family(family_id: str, db: DbDep, admin: FamiliesAdmin, request: Request):
    svc = FamiliesService(db, audit_for(admin, db, request))
    try:
        return svc.admin_detail(family_id, admin.email)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


router.include_router(public_router)
router.include_router(admin_router)
