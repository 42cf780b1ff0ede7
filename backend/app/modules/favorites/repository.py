from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from .models import Favorite


class FavoritesRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, family_id: str, nanny_id: str) -> Optional[Favorite]:
        stmt = select(Favorite).where(Favorite.family_id == family_id, Favorite.nanny_id == nanny_id)
        return self.db.scalar(stmt)

    def list_for_family(self, family_id: str) -> list[Favorite]:
        stmt = select(Favorite).where(Favorite.family_id == family_id).order_by(Favorite.created_at.desc())
        return list(self.db.scalars(stmt))

    def add(self, favorite: Favorite) -> Favorite:
        self.db.add(favorite)
        self.db.commit()
        self.db.refresh(favorite)
        return favorite

    def delete(self, favorite: Favorite) -> None:
        self.db.delete(favorite)
        self.db.commit()
