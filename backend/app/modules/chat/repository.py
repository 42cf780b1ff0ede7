from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from .models import Conversation, Message


class ChatRepository:
    def __init__(self, db: Session):
        self.db = db

    # Conversations -------------------------------------------------------
    def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        return self.db.get(Conversation, conversation_id)

    def get_for_pair(self, family_id: str, nanny_id: str) -> Optional[Conversation]:
        stmt = select(Conversation).where(
            Conversation.family_id == family_id, Conversation.nanny_id == nanny_id
        )
        return self.db.scalar(stmt)

    def list_conversations(
        self, *, family_id: str | None = None, nanny_id: str | None = None, limit: int = 50
    ) -> Sequence[Conversation]:
        stmt = select(Conversation)
        if family_id:
            stmt = stmt.where(Conversation.family_id == family_id)
        if nanny_id:
            stmt = stmt.where(Conversation.nanny_id == nanny_id)
        stmt = stmt.order_by(
            func.coalesce(Conversation.last_message_at, Conversation.created_at).desc()
        ).limit(limit)
        return list(self.db.scalars(stmt))

    def add_conversation(self, conversation: Conversation) -> Conversation:
        self.db.add(conversation)
        self.db.flush()
        return conversation

    # Messages ------------------------------------------------------------
    def get_message(self, message_id: str) -> Optional[Message]:
        return self.db.get(Message, message_id)

    def next_seq(self, conversation_id: str) -> int:
        stmt = select(func.max(Message.seq)).where(Message.conversation_id == conversation_id)
        return (self.db.scalar(stmt) or 0) + 1

    def add_message(self, message: Message) -> Message:
        self.db.add(message)
        self.db.flush()
        return message

    def list_messages(
        self,
        conversation_id: str,
        *,
        after_seq: int | None = None,
        include_deleted: bool = False,
        limit: int | None = None,
    ) -> Sequence[Message]:
        stmt = select(Message).where(Message.conversation_id == conversation_id)
        if not include_deleted:
            stmt = stmt.where(Message.deleted_at.is_(None))
        if after_seq is not None:
            stmt = stmt.where(Message.seq > after_seq)
        stmt = stmt.order_by(Message.seq.asc())
        if limit:
            stmt = stmt.limit(limit)
        return list(self.db.scalars(stmt))

    def list_flagged(self, *, limit: int = 50, offset: int = 0) -> tuple[list[Message], int]:
        stmt = select(Message).where(Message.flagged.is_(True), Message.deleted_at.is_(None))
        total = self.db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        rows = self.db.scalars(stmt.order_by(Message.created_at.desc()).limit(limit).offset(offset))
        return list(rows), total

    def message_count(self, conversation_id: str) -> int:
        stmt = select(func.count(Message.id)).where(
            Message.conversation_id == conversation_id, Message.deleted_at.is_(None)
        )
        return self.db.scalar(stmt) or 0

    def search_conversations(
        self, *, family_id: str | None = None, nanny_id: str | None = None, limit: int = 50, offset: int = 0
    ) -> tuple[list[Conversation], int]:
        stmt = select(Conversation)
        if family_id or nanny_id:
            stmt = stmt.where(
                or_(Conversation.family_id == family_id, Conversation.nanny_id == nanny_id)
            )
        total = self.db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        rows = self.db.scalars(stmt.order_by(Conversation.created_at.desc()).limit(limit).offset(offset))
        return list(rows), total
