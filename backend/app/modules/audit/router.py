from __future__ import annotations

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.deps import DbDep, require_permission
from app.modules.admin.models import AdminUser
from app.modules.admin.permissions import AdminPermission
from .constants import AUDIT_ACTIONS, AUDIT_TABLES
from .schemas import AuditLogFilters, AuditLogPage, AuditLogRead
from .service import AuditService


router = APIRouter(prefix="/admin/audit-logs", tags=["audit"])

AuditAdmin = Annotated[AdminUser, Depends(require_permission(AdminPermission.AUDIT_LOGS))]


@router.get("", response_model=AuditLogPage)
def list_audit_logs(
    db: DbDep,
    _: AuditAdmin,
    action: str | None = None,
    table: str | None = None,
    admin_user_id: str | None = None,
    record_id: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=25, ge=1, le=200),
):
    filters = AuditLogFilters(
        action=action,
        table=table,
        admin_user_id=admin_user_id,
        record_id=record_id,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )
    return AuditService(db).get_audit_logs(filters)


@router.get("/meta")
def audit_metadata(_: AuditAdmin):
    return {"actions": list(AUDIT_ACTIONS), "tables": list(AUDIT_TABLES)}


@router.get("/record/{table}/{record_id}", response_model=list[AuditLogRead])
def list_record_history(table: str, record_id: str, db: DbDep, _: AuditAdmin):
    return AuditService(db).get_by_record(table, record_id)


@router.get("/admin/{admin_user_id}", response_model=list[AuditLogRead])
def list_admin_history(
    admin_user_id: str, db: DbDep, _: AuditAdmin, limit: int = Query(default=100, ge=1, le=500)
):
    return AuditService(db).get_by_admin_user(admin_user_id, limit=limit)


@router.get("/{log_id}", response_model=AuditLogRead)
def get_audit_log(log_id: str, db: DbDep, _: AuditAdmin):
    entry = AuditService(db).get_by_id(log_id)
    if not entry:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Registro não encontrado")
    return entry
