from __future__ import annotations

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .models import AdminUser


class AdminUsersRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, admin_id: str) -> Optional[AdminUser]:
        return self.db.get(AdminUser, admin_id)

    def get_by_email(self, email: str) -> Optional[AdminUser]:
        stmt = select(AdminUser).where(func.lower(AdminUser.email) == email.strip().lower())
        return self.db.scalar(stmt)

    def list(self) -> list[AdminUser]:
        stmt = select(AdminUser).order_by(AdminUser.created_at.desc())
        return list(self.db.scalars(stmt))

    def save(self, admin: AdminUser) -> AdminUser:
        self.db.add(admin)
        self.db.commit()
        self.db.refresh(admin)
        return admin
