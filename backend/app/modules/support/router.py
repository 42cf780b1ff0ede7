from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.deps import CurrentUser, DbDep, ProfileIds, require_permission
from app.modules.admin.models import AdminUser
from app.modules.admin.permissions import AdminPermission
from .schemas import TicketCreate, TicketDetail, TicketRead, TicketReply, TicketStatusUpdate
from .service import SupportService


logger = logging.getLogger(__name__)

router = APIRouter(tags=["support"])
public_router = APIRouter(prefix="/support/tickets")
admin_router = APIRouter(prefix="/admin/support/tickets")

SupportAdmin = Annotated[AdminUser, Depends(require_permission(AdminPermission.SUPPORT))]


@public_router.post("", response_model=TicketDetail, status_code=status.HTTP_201_CREATED)
def open_ticket(data: TicketCreate, db: DbDep, user: CurrentUser, owner: ProfileIds):
    return SupportService(db).open_ticket(user, data, **owner)


@public_router.get("", response_model=list[TicketRead])
def list_my_tickets(db: DbDep, owner: ProfileIds):
    return SupportService(db).repo.list_for(**owner)


@public_router.get("/{ticket_id}", response_model=TicketDetail)
def get_my_ticket(ticket_id: str, db: DbDep, owner: ProfileIds):
    try:
        return SupportService(db).get_own(ticket_id, **owner)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@public_router.post("/{ticket_id}/messages", response_model=TicketDetail)
def reply_my_ticket(ticket_id: str, data: TicketReply, db: DbDep, user: CurrentUser, owner: ProfileIds):
    try:
        return SupportService(db).reply_as_user(user, ticket_id, data.message, **owner)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@admin_router.get("")
def list_tickets(
    db: DbDep,
    _: SupportAdmin,
    status_filter: str | None = Query(default=None, alias="status"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
):
    items, total = SupportService(db).repo.list(status=status_filter, limit=limit, offset=offset)
    return {"items": [TicketRead.model_validate(t) for t in items], "total": total}


@admin_router.get("/{ticket_id}", response_model=TicketDetail)
def get_ticket(ticket_id: str, db: DbDep, _: SupportAdmin):
    try:
        return SupportService(db).get(ticket_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@admin_router.post("/{ticket_id}/reply", response_model=TicketDetail)
def reply_ticket(ticket_id: str, data: TicketReply, db: DbDep, admin: SupportAdmin):
    try:
        return SupportService(db).reply_as_admin(admin.id, ticket_id, data.message)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@admin_router.patch("/{ticket_id}/status", response_model=TicketRead)
def update_ticket_status(ticket_id: str, data: TicketStatusUpdate, db: DbDep, _: SupportAdmin):
    try:
        return SupportService(db).set_status(ticket_id, data.status)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


router.include_router(public_router)
router.include_router(admin_router)
