from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class TicketCreate(BaseModel):
    subject: str = Field(min_length=3, max_length=200)
    category: str = Field(default="OTHER", max_length=50)
    message: str = Field(min_length=1, max_length=5000)


class TicketReply(BaseModel):
    message: str = Field(max_length=5000)


class TicketStatusUpdate(BaseModel):
    status: str = Field(pattern="^(OPEN|IN_PROGRESS|RESOLVED|CLOSED)$")


class TicketMessageRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    sender_user_id: str | None = None
    sender_admin_id: str | None = None
    body: str
    created_at: datetime


class TicketRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    nanny_id: str | None = None
    family_id: str | None = None
    subject: str
    category: str
    status: str
    resolved_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class TicketDetail(TicketRead):
    messages: list[TicketMessageRead] = Field(default_factory=list)
