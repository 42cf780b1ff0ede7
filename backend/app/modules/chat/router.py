from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from app.api.deps import CurrentFamily, DbDep, ProfileIds, audit_for, require_permission
from app.modules.admin.models import AdminUser
from app.modules.admin.permissions import AdminPermission
from .schemas import (
    ConversationDetail,
    ConversationRead,
    ConversationStart,
    MessageCreate,
    MessageDeleteRequest,
    MessageRead,
)
from .service import ChatService


logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])
public_router = APIRouter(prefix="/conversations")
admin_router = APIRouter(prefix="/admin/chat")

ChatAdmin = Annotated[AdminUser, Depends(require_permission(AdminPermission.CHAT))]


@public_router.get("", response_model=list[ConversationRead])
def list_conversations(db: DbDep, owner: ProfileIds):
    return ChatService(db).list_conversations(**owner)


@public_router.post("", response_model=ConversationRead, status_code=status.HTTP_201_CREATED)
def start_conversation(data: ConversationStart, db: DbDep, family: CurrentFamily):
    try:
        return ChatService(db).start_by_family(
            family.id, data.nanny_id, job_id=data.job_id, message=data.message
        )
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@public_router.get("/{conversation_id}", response_model=ConversationDetail)
def get_conversation(conversation_id: str, db: DbDep, owner: ProfileIds, after_seq: int | None = None):
    svc = ChatService(db)
    try:
        conversation = svc.get_conversation(conversation_id, **owner)
        messages = svc.list_messages(conversation_id, after_seq=after_seq, **owner)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    detail = ConversationDetail.model_validate(conversation, from_attributes=True)
    detail.messages = [MessageRead.model_validate(m) for m in messages]
    return detail


@public_router.post(
    "/{conversation_id}/messages", response_model=MessageRead, status_code=status.HTTP_201_CREATED
)
def send_message(conversation_id: str, data: MessageCreate, db: DbDep, owner: ProfileIds):
    try:
        return ChatService(db).send_message(conversation_id, data.body, **owner)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@admin_router.get("/conversations")
def list_all_conversations(
    db: DbDep,
    _: ChatAdmin,
    family_id: str | None = None,
    nanny_id: str | None = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
):
    items, total = ChatService(db).repo.search_conversations(
        family_id=family_id, nanny_id=nanny_id, limit=limit, offset=offset
    )
    return {"items": [ConversationRead.model_validate(c) for c in items], "total": total}


@admin_router.get("/conversations/{conversation_id}")
def view_conversation(conversation_id: str, db: DbDep, admin: ChatAdmin, request: Request):
    svc = ChatService(db, audit_for(admin, db, request))
    try:
        view = svc.admin_view(conversation_id, admin.email)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return {
        "conversation": ConversationRead.model_validate(view["conversation"]),
        "participants": view["participants"],
        "messages": [
            {**MessageRead.model_validate(m).model_dump(), "deleted_at": m.deleted_at} for m in view["messages"]
        ],
    }


@admin_router.get("/messages/flagged")
def list_flagged_messages(
    db: DbDep,
    _: ChatAdmin,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
):
    items, total = ChatService(db).repo.list_flagged(limit=limit, offset=offset)
    return {"items": [MessageRead.model_validate(m) for m in items], "total": total}


@admin_router.delete("/messages/{message_id}", response_model=MessageRead)
def delete_message(
    message_id: str,
    db: DbDep,
    admin: ChatAdmin,
    request: Request,
    data: MessageDeleteRequest | None = None,
):
    svc = ChatService(db, audit_for(admin, db, request))
    try:
        return svc.delete_message(message_id, admin.email, data.reason if data else None)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


router.include_router(public_router)
router.include_router(admin_router)
