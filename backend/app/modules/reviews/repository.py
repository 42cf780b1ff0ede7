from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .models import Review, ReviewStatus, ReviewType


VISIBLE_STATUSES = (ReviewStatus.APPROVED,)


class ReviewsRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, review_id: str) -> Optional[Review]:
        return self.db.get(Review, review_id)

    def get_for_pair(self, family_id: str, nanny_id: str, review_type: str) -> Optional[Review]:
        stmt = select(Review).where(
            Review.family_id == family_id, Review.nanny_id == nanny_id, Review.type == review_type
        )
        return self.db.scalar(stmt)

    def _visible(self, *, nanny_id: str | None = None, family_id: str | None = None):
        stmt = select(Review).where(Review.is_published.is_(True), Review.status.in_(VISIBLE_STATUSES))
        if nanny_id:
            stmt = stmt.where(Review.nanny_id == nanny_id, Review.type == ReviewType.FAMILY_TO_NANNY)
        if family_id:
            stmt = stmt.where(Review.family_id == family_id, Review.type == ReviewType.NANNY_TO_FAMILY)
        return stmt

    def list_received(
        self, *, nanny_id: str | None = None, family_id: str | None = None, limit: int | None = None
    ) -> list[Review]:
        stmt = self._visible(nanny_id=nanny_id, family_id=family_id).order_by(Review.published_at.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.db.scalars(stmt))

    def stats(self, *, nanny_id: str | None = None, family_id: str | None = None) -> tuple[float, int]:
        sub = self._visible(nanny_id=nanny_id, family_id=family_id).subquery()
        avg, count = self.db.execute(select(func.avg(sub.c.rating), func.count())).one()
        return float(avg or 0), int(count or 0)

    def count_published_for_nanny(self, nanny_id: str) -> int:
        return self.stats(nanny_id=nanny_id)[1]

    def list_due_for_publication(self, cutoff: datetime) -> list[Review]:
        stmt = select(Review).where(Review.is_published.is_(False), Review.created_at <= cutoff)
        return list(self.db.scalars(stmt))

    def list(
        self, *, status: str | None = None, review_type: str | None = None, limit: int = 50, offset: int = 0
    ) -> tuple[list[Review], int]:
        stmt = select(Review)
        if status:
            stmt = stmt.where(Review.status == status)
        if review_type:
            stmt = stmt.where(Review.type == review_type)
        total = self.db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        rows = self.db.scalars(stmt.order_by(Review.created_at.desc()).limit(limit).offset(offset))
        return list(rows), total

    def count_by_status(self) -> dict[str, int]:
        rows = self.db.execute(select(Review.status, func.count()).group_by(Review.status)).all()
        return {status: count for status, count in rows}

    def add(self, review: Review) -> Review:
        self.db.add(review)
        self.db.flush()
        return review

    def save(self, review: Review) -> Review:
        self.db.add(review)
        self.db.commit()
        self.db.refresh(review)
        return review
