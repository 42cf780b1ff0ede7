from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.core.security import get_password_hash, verify_password
from app.modules.families.models import Family
from app.modules.nannies.models import Nanny
from app.modules.subscriptions.service import SubscriptionService
from .models import User, UserRole
from .schemas import UserCreate, UserUpdate
from .repository import UsersRepository


logger = logging.getLogger(__name__)


class UsersService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = UsersRepository(db)

    def register_user(self, data: UserCreate) -> User:
        """Create the account, its empty profile and the free subscription in one commit."""
        if self.repo.email_taken(data.email):
            raise ValueError("E-mail já cadastrado")
        user = self.repo.add(
            User(
                email=data.email,
                full_name=data.full_name,
                hashed_password=get_password_hash(data.password),
                role=data.role,
                is_active=True,
            )
        )

        subscriptions = SubscriptionService(self.db)
        if data.role == UserRole.NANNY:
            nanny = Nanny(user_id=user.id, name=data.full_name)
            self.db.add(nanny)
            self.db.flush()
            subscriptions.create_free_subscription(nanny_id=nanny.id, commit=False)
        else:
            family = Family(user_id=user.id, name=data.full_name)
            self.db.add(family)
            self.db.flush()
            subscriptions.create_free_subscription(family_id=family.id, commit=False)

        self.db.commit()
        self.db.refresh(user)
        logger.info("Registered %s user %s", user.role, user.id)
        return user

    def update(self, user: User, data: UserUpdate) -> User:
        if data.full_name is not None:
            user.full_name = data.full_name
        if data.password:
            user.hashed_password = get_password_hash(data.password)
        return self.repo.save(user)

    def authenticate(self, email: str, password: str) -> User | None:
        user = self.repo.get_by_email(email)
        if not user:
            return None
        if not verify_password(password, user.hashed_password):
            return None
        return user
