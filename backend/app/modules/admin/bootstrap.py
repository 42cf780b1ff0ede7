from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import get_password_hash

from .models import AdminUser, AdminUserStatus
from .permissions import ALL_PERMISSIONS
from .repository import AdminUsersRepository


logger = logging.getLogger(__name__)


def ensure_default_admin(db: Session) -> None:
    email = settings.ADMIN_EMAIL
    password = settings.ADMIN_PASSWORD
    if not email or not password:
        logger.info("ADMIN_EMAIL or ADMIN_PASSWORD not set; skipping admin bootstrap")
        return

    repo = AdminUsersRepository(db)
    try:
        existing = repo.get_by_email(email)
        if existing:
            # Keep the configured account usable: active, super admin, env password
            existing.is_super_admin = True
            existing.status = AdminUserStatus.ACTIVE
            existing.hashed_password = get_password_hash(password)
            repo.save(existing)
            logger.info("Default admin %s ensured", existing.email)
            return

        admin = AdminUser(
            email=email.strip().lower(),
            name=settings.ADMIN_FULL_NAME,
            hashed_password=get_password_hash(password),
            is_super_admin=True,
            status=AdminUserStatus.ACTIVE,
            permissions=list(ALL_PERMISSIONS),
        )
        repo.save(admin)
        logger.info("Default admin %s created", admin.email)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to bootstrap default admin")
