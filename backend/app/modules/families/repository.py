from __future__ import annotations

from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from .models import Child, Family


class FamiliesRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, family_id: str) -> Optional[Family]:
        return self.db.get(Family, family_id)

    def get_by_user_id(self, user_id: str) -> Optional[Family]:
        stmt = select(Family).where(Family.user_id == user_id)
        return self.db.scalar(stmt)

    def get_with_children(self, family_id: str) -> Optional[Family]:
        stmt = select(Family).options(selectinload(Family.children)).where(Family.id == family_id)
        return self.db.scalar(stmt)

    def search(
        self, *, query: str | None = None, city: str | None = None, limit: int = 50, offset: int = 0
    ) -> tuple[list[Family], int]:
        stmt = select(Family)
        if query:
            like = f"%{query.strip()}%"
            stmt = stmt.where(or_(Family.name.ilike(like), Family.phone.ilike(like)))
        if city:
            stmt = stmt.where(func.lower(Family.city) == city.strip().lower())
        total = self.db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        rows = self.db.scalars(stmt.order_by(Family.created_at.desc()).limit(limit).offset(offset))
        return list(rows), total

    def get_child(self, family_id: str, child_id: str) -> Optional[Child]:
        stmt = select(Child).where(Child.id == child_id, Child.family_id == family_id)
        return self.db.scalar(stmt)

    def add(self, family: Family) -> Family:
        self.db.add(family)
        self.db.flush()
        return family

    def save(self, obj: Family | Child) -> Family | Child:
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def delete_child(self, child: Child) -> None:
        self.db.delete(child)
        self.db.commit()
