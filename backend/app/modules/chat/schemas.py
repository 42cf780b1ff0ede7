from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ConversationStart(BaseModel):
    nanny_id: str
    job_id: str | None = None
    message: str | None = Field(default=None, max_length=4000)


class MessageCreate(BaseModel):
    body: str = Field(min_length=1, max_length=4000)


class MessageRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    conversation_id: str
    seq: int
    sender_type: str
    sender_family_id: str | None = None
    sender_nanny_id: str | None = None
    body: str
    flagged: bool
    moderation_warnings: list[str] = Field(default_factory=list)
    created_at: datetime


class ConversationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    job_id: str | None = None
    family_id: str
    nanny_id: str
    started_by: str
    last_message_at: datetime | None = None
    created_at: datetime


class ConversationDetail(ConversationRead):
    messages: list[MessageRead] = Field(default_factory=list)


class MessageDeleteRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=1000)
