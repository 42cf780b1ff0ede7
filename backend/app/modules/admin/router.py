from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.api.deps import DbDep, audit_for, require_super_admin
from .models import AdminUser
from .permissions import ALL_PERMISSIONS
from .schemas import AdminUserCreate, AdminUserRead, AdminUserUpdate
from .service import AdminUsersService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/admin-users", tags=["admin"])

SuperAdmin = Annotated[AdminUser, Depends(require_super_admin)]


@router.get("/permissions", response_model=list[str])
def list_permissions(_: SuperAdmin):
    return list(ALL_PERMISSIONS)


@router.get("", response_model=list[AdminUserRead])
def list_admin_users(db: DbDep, _: SuperAdmin):
    return AdminUsersService(db).repo.list()


@router.post("", response_model=AdminUserRead, status_code=status.HTTP_201_CREATED)
def create_admin_user(data: AdminUserCreate, db: DbDep, admin: SuperAdmin, request: Request):
    svc = AdminUsersService(db, audit_for(admin, db, request))
    try:
        return svc.create(data)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.patch("/{admin_id}", response_model=AdminUserRead)
def update_admin_user(
    admin_id: str, data: AdminUserUpdate, db: DbDep, admin: SuperAdmin, request: Request
):
    svc = AdminUsersService(db, audit_for(admin, db, request))
    try:
        return svc.update(admin_id, data)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.delete("/{admin_id}", response_model=AdminUserRead)
def deactivate_admin_user(admin_id: str, db: DbDep, admin: SuperAdmin, request: Request):
    svc = AdminUsersService(db, audit_for(admin, db, request))
    try:
        return svc.deactivate(admin_id, admin.id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
