from __future__ import annotations

from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from .models import Nanny


class NanniesRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, nanny_id: str) -> Optional[Nanny]:
        return self.db.get(Nanny, nanny_id)

    def get_by_user_id(self, user_id: str) -> Optional[Nanny]:
        stmt = select(Nanny).where(Nanny.user_id == user_id)
        return self.db.scalar(stmt)

    def list_with_coordinates(self, city: str | None = None) -> list[Nanny]:
        stmt = select(Nanny).where(Nanny.latitude.is_not(None), Nanny.longitude.is_not(None))
        if city:
            stmt = stmt.where(func.lower(Nanny.city) == city.strip().lower())
        return list(self.db.scalars(stmt))

    def list_all(self) -> list[Nanny]:
        return list(self.db.scalars(select(Nanny).order_by(Nanny.created_at.asc())))

    def search(
        self,
        *,
        query: str | None = None,
        city: str | None = None,
        pending_validation: bool | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Nanny], int]:
        stmt = select(Nanny)
        if query:
            like = f"%{query.strip()}%"
            stmt = stmt.where(or_(Nanny.name.ilike(like), Nanny.phone.ilike(like)))
        if city:
            stmt = stmt.where(func.lower(Nanny.city) == city.strip().lower())
        if pending_validation:
            stmt = stmt.where(
                or_(
                    Nanny.document_validated.is_(False),
                    Nanny.personal_data_validated.is_(False),
                    Nanny.criminal_background_validated.is_(False),
                )
            )
        total = self.db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        rows = self.db.scalars(stmt.order_by(Nanny.created_at.desc()).limit(limit).offset(offset))
        return list(rows), total

    def add(self, nanny: Nanny) -> Nanny:
        self.db.add(nanny)
        self.db.flush()
        return nanny

    def save(self, nanny: Nanny) -> Nanny:
        self.db.add(nanny)
        self.db.commit()
        self.db.refresh(nanny)
        return nanny
