"""Builders for the rows most tests need."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

from sqlalchemy.orm import Session

from app.core.database import utcnow
from app.core.security import ADMIN_SCOPE, create_access_token, get_password_hash
from app.modules.admin.models import AdminUser
from app.modules.families.models import Child, Family
from app.modules.nannies.models import Nanny
from app.modules.subscriptions.models import Subscription, SubscriptionStatus
from app.modules.subscriptions.plans import SubscriptionPlan
from app.modules.users.models import User, UserRole

PASSWORD = "senha-segura-123"
_PASSWORD_HASH = get_password_hash(PASSWORD)

_counter = {"n": 0}


def _email(prefix: str) -> str:
    _counter["n"] += 1
    return f"{prefix}{_counter['n']}@example.com"


def make_user(db: Session, role: str, email: str | None = None, **fields: Any) -> User:
    user = User(
        email=email or _email(role.lower()),
        hashed_password=_PASSWORD_HASH,
        full_name=fields.pop("full_name", "Maria Silva"),
        role=role,
        is_active=True,
        **fields,
    )
    db.add(user)
    db.flush()
    return user


def _subscribe(db: Session, plan: str, *, family_id: str | None = None, nanny_id: str | None = None,
               **fields: Any) -> Subscription:
    now = utcnow()
    sub = Subscription(
        family_id=family_id,
        nanny_id=nanny_id,
        plan=plan,
        status=fields.pop("status", SubscriptionStatus.ACTIVE),
        current_period_start=fields.pop("current_period_start", now),
        current_period_end=fields.pop("current_period_end", now + timedelta(days=30)),
        **fields,
    )
    db.add(sub)
    db.flush()
    return sub


def make_family(db: Session, plan: str | None = SubscriptionPlan.FAMILY_FREE, email: str | None = None,
                **fields: Any) -> Family:
    user = make_user(db, UserRole.FAMILY, email=email)
    family = Family(user_id=user.id, name=fields.pop("name", "Família Souza"), **fields)
    db.add(family)
    db.flush()
    if plan:
        _subscribe(db, plan, family_id=family.id)
    db.commit()
    return family


def make_nanny(db: Session, plan: str | None = SubscriptionPlan.NANNY_FREE, email: str | None = None,
               **fields: Any) -> Nanny:
    user = make_user(db, UserRole.NANNY, email=email, email_verified=fields.pop("email_verified", False))
    nanny = Nanny(user_id=user.id, name=fields.pop("name", "Ana Paula"), **fields)
    db.add(nanny)
    db.flush()
    if plan:
        _subscribe(db, plan, nanny_id=nanny.id)
    db.commit()
    return nanny


def make_child(db: Session, family: Family, **fields: Any) -> Child:
    child = Child(family_id=family.id, **fields)
    db.add(child)
    db.commit()
    return child


def make_admin(db: Session, permissions: list[str] | None = None, super_admin: bool = False) -> AdminUser:
    admin = AdminUser(
        email=_email("admin"),
        name="Admin",
        hashed_password=_PASSWORD_HASH,
        is_super_admin=super_admin,
        permissions=list(permissions or []),
    )
    db.add(admin)
    db.commit()
    return admin


def user_headers(user_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


def admin_headers(admin: AdminUser) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(admin.id, scope=ADMIN_SCOPE)}"}


def cron_headers() -> dict[str, str]:
    return {"Authorization": "Bearer cron-test-secret"}
