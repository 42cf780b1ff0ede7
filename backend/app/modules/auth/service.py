from __future__ import annotations

import logging

from fastapi import Request
from sqlalchemy.orm import Session

from app.api.deps import get_client_ip
from app.core.security import ADMIN_SCOPE, USER_SCOPE, create_access_token
from app.modules.admin.models import AdminUser
from app.modules.admin.service import AdminUsersService
from app.modules.audit.service import AuditService
from app.modules.users.models import User
from app.modules.users.service import UsersService


logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: Session):
        self.db = db
        self.users = UsersService(db)

    def login(self, email: str, password: str) -> tuple[str, User] | None:
        user = self.users.authenticate(email, password)
        if not user or not user.is_active:
            return None
        return create_access_token(subject=user.id, scope=USER_SCOPE), user

    def admin_login(self, email: str, password: str, request: Request | None = None) -> tuple[str, AdminUser] | None:
        admin = AdminUsersService(self.db).authenticate(email, password)
        if admin is None:
            logger.info("Admin login refused for %s", email)
            return None
        audit = AuditService(
            self.db,
            admin_user_id=admin.id,
            ip_address=get_client_ip(request) if request else None,
            user_agent=request.headers.get("user-agent") if request else None,
        )
        audit.log_login(admin.id, admin.email)
        return create_access_token(subject=admin.id, scope=ADMIN_SCOPE), admin
