from __future__ import annotations

from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from .models import Coupon, CouponUsage


class CouponsRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, coupon_id: str) -> Optional[Coupon]:
        coupon = self.db.get(Coupon, coupon_id)
        if coupon is None or coupon.deleted_at is not None:
            return None
        return coupon

    def get_by_code(self, code: str) -> Optional[Coupon]:
        stmt = select(Coupon).where(Coupon.code == code.strip().upper(), Coupon.deleted_at.is_(None))
        return self.db.scalar(stmt)

    def code_exists(self, code: str, exclude_id: str | None = None) -> bool:
        stmt = select(Coupon.id).where(Coupon.code == code)
        if exclude_id:
            stmt = stmt.where(Coupon.id != exclude_id)
        return self.db.scalar(stmt) is not None

    def list(
        self,
        *,
        search: str | None = None,
        is_active: bool | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Coupon], int]:
        stmt = select(Coupon).where(Coupon.deleted_at.is_(None))
        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(or_(Coupon.code.ilike(pattern), Coupon.description.ilike(pattern)))
        if is_active is not None:
            stmt = stmt.where(Coupon.is_active.is_(is_active))
        total = self.db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        rows = self.db.scalars(stmt.order_by(Coupon.created_at.desc()).limit(limit).offset(offset))
        return list(rows), total

    def list_usages(self, coupon_id: str) -> list[CouponUsage]:
        stmt = (
            select(CouponUsage)
            .where(CouponUsage.coupon_id == coupon_id)
            .order_by(CouponUsage.created_at.desc())
        )
        return list(self.db.scalars(stmt))

    def add_usage(self, usage: CouponUsage) -> CouponUsage:
        self.db.add(usage)
        self.db.flush()
        return usage

    def save(self, coupon: Coupon) -> Coupon:
        self.db.add(coupon)
        self.db.commit()
        self.db.refresh(coupon)
        return coupon
