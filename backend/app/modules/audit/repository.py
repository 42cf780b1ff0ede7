from __future__ import annotations

from datetime import datetime
from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .models import AuditLog


class AuditRepository:
    def __init__(self, db: Session):
        self.db = db

    def add(self, entry: AuditLog) -> AuditLog:
        self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)
        return entry

    def add_many(self, entries: Sequence[AuditLog]) -> None:
        self.db.add_all(list(entries))
        self.db.commit()

    def get(self, log_id: str) -> AuditLog | None:
        return self.db.get(AuditLog, log_id)

    def search(
        self,
        *,
        action: str | None = None,
        table_name: str | None = None,
        admin_user_id: str | None = None,
        record_id: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        limit: int = 25,
        offset: int = 0,
    ) -> tuple[list[AuditLog], int]:
        stmt = select(AuditLog)
        if action:
            stmt = stmt.where(AuditLog.action == action)
        if table_name:
            stmt = stmt.where(AuditLog.table_name == table_name)
        if admin_user_id:
            stmt = stmt.where(AuditLog.admin_user_id == admin_user_id)
        if record_id:
            stmt = stmt.where(AuditLog.record_id == record_id)
        if start_date:
            stmt = stmt.where(AuditLog.created_at >= start_date)
        if end_date:
            stmt = stmt.where(AuditLog.created_at <= end_date)

        total = self.db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        page = stmt.order_by(AuditLog.created_at.desc()).limit(limit).offset(offset)
        return list(self.db.scalars(page)), total

    def list_by_record(self, table_name: str, record_id: str) -> list[AuditLog]:
        stmt = (
            select(AuditLog)
            .where(AuditLog.table_name == table_name, AuditLog.record_id == record_id)
            .order_by(AuditLog.created_at.desc())
        )
        return list(self.db.scalars(stmt))

    def list_by_admin_user(self, admin_user_id: str, limit: int = 100) -> list[AuditLog]:
        stmt = (
            select(AuditLog)
            .where(AuditLog.admin_user_id == admin_user_id)
            .order_by(AuditLog.created_at.desc())
            .limit(limit)
        )
        return list(self.db.scalars(stmt))
