from __future__ import annotations

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .models import SupportTicket, SupportTicketMessage


class SupportRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, ticket_id: str) -> Optional[SupportTicket]:
        return self.db.get(SupportTicket, ticket_id)

    def list_for(self, *, family_id: str | None = None, nanny_id: str | None = None) -> list[SupportTicket]:
        stmt = select(SupportTicket)
        if nanny_id:
            stmt = stmt.where(SupportTicket.nanny_id == nanny_id)
        elif family_id:
            stmt = stmt.where(SupportTicket.family_id == family_id)
        else:
            return []
        return list(self.db.scalars(stmt.order_by(SupportTicket.updated_at.desc())))

    def list(self, *, status: str | None = None, limit: int = 50, offset: int = 0) -> tuple[list[SupportTicket], int]:
        stmt = select(SupportTicket)
        if status:
            stmt = stmt.where(SupportTicket.status == status)
        total = self.db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        rows = self.db.scalars(stmt.order_by(SupportTicket.created_at.desc()).limit(limit).offset(offset))
        return list(rows), total

    def add(self, ticket: SupportTicket) -> SupportTicket:
        self.db.add(ticket)
        self.db.flush()
        return ticket

    def add_message(self, message: SupportTicketMessage) -> SupportTicketMessage:
        self.db.add(message)
        self.db.flush()
        return message

    def save(self, ticket: SupportTicket) -> SupportTicket:
        self.db.add(ticket)
        self.db.commit()
        self.db.refresh(ticket)
        return ticket
