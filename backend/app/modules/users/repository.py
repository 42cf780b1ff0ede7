from __future__ import annotations

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.database import utcnow
from .models import User


class UsersRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: str) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        # E-mails are stored lowercased; the lower() keeps legacy rows reachable
        stmt = select(User).where(func.lower(User.email) == email.strip().lower())
        return self.db.scalar(stmt)

    def email_taken(self, email: str) -> bool:
        return self.get_by_email(email) is not None

    def touch(self, user: User) -> None:
        """Record activity; matching uses it to break score ties."""
        user.last_active_at = utcnow()
        self.db.commit()

    def add(self, user: User) -> User:
        self.db.add(user)
        self.db.flush()
        return user

    def save(self, user: User) -> User:
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user
