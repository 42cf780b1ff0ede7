from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from app.core.database import utcnow
from app.core.security import get_password_hash, verify_password
from app.modules.audit.service import AuditService

from .models import AdminUser, AdminUserStatus
from .repository import AdminUsersRepository
from .schemas import AdminUserCreate, AdminUserUpdate


logger = logging.getLogger(__name__)


def admin_snapshot(admin: AdminUser) -> dict[str, Any]:
    return {
        "email": admin.email,
        "name": admin.name,
        "isSuperAdmin": admin.is_super_admin,
        "status": admin.status,
        "permissions": list(admin.permissions or []),
        "hashed_password": admin.hashed_password,
    }


class AdminUsersService:
    def __init__(self, db: Session, audit: AuditService | None = None):
        self.db = db
        self.repo = AdminUsersRepository(db)
        self.audit = audit or AuditService(db)

    def authenticate(self, email: str, password: str) -> AdminUser | None:
        admin = self.repo.get_by_email(email)
        if not admin or not admin.is_active:
            return None
        if not verify_password(password, admin.hashed_password):
            return None
        admin.last_login_at = utcnow()
        self.repo.save(admin)
        return admin

    def create(self, data: AdminUserCreate) -> AdminUser:
        if self.repo.get_by_email(data.email):
            raise ValueError("Já existe um usuário com este e-mail")
        admin = AdminUser(
            email=data.email,
            name=data.name,
            hashed_password=get_password_hash(data.password),
            permissions=list(data.permissions),
            is_super_admin=data.is_super_admin,
            status=AdminUserStatus.ACTIVE,
        )
        admin = self.repo.save(admin)
        self.audit.log_admin_create(admin.id, admin_snapshot(admin))
        logger.info("Admin user %s created", admin.email)
        return admin

    def update(self, admin_id: str, data: AdminUserUpdate) -> AdminUser:
        admin = self.repo.get(admin_id)
        if not admin:
            raise LookupError("Usuário não encontrado")
        before = admin_snapshot(admin)

        if data.name is not None:
            admin.name = data.name
        if data.password:
            admin.hashed_password = get_password_hash(data.password)
        if data.is_super_admin is not None:
            admin.is_super_admin = data.is_super_admin
        if data.status is not None:
            admin.status = data.status
        if data.permissions is not None:
            admin.permissions = list(data.permissions)

        admin = self.repo.save(admin)
        after = admin_snapshot(admin)

        if before["permissions"] != after["permissions"]:
            self.audit.log_permission_change(
                admin.id, admin.email, before["permissions"], after["permissions"]
            )
        self.audit.log_admin_update(admin.id, before, after)
        return admin

    def deactivate(self, admin_id: str, acting_admin_id: str) -> AdminUser:
        if admin_id == acting_admin_id:
            raise ValueError("Você não pode desativar sua própria conta")
        return self.update(admin_id, AdminUserUpdate(status=AdminUserStatus.INACTIVE))
