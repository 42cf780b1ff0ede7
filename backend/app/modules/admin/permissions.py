from __future__ import annotations

from typing import Iterable

from app.core.errors import AuthorizationError

from .models import AdminUser


class AdminPermission:
    NANNIES = "NANNIES"
    FAMILIES = "FAMILIES"
    SUBSCRIPTIONS = "SUBSCRIPTIONS"
    COUPONS = "COUPONS"
    REVIEWS = "REVIEWS"
    SUPPORT = "SUPPORT"
    CHAT = "CHAT"
    VALIDATIONS = "VALIDATIONS"
    REPORTS = "REPORTS"
    AUDIT_LOGS = "AUDIT_LOGS"
    ADMIN_USERS = "ADMIN_USERS"


ALL_PERMISSIONS = tuple(v for k, v in vars(AdminPermission).items() if not k.startswith("_"))


def has_permission(admin: AdminUser | None, permission: str) -> bool:
    if admin is None or not admin.is_active:
        return False
    if admin.is_super_admin:
        return True
    return permission in (admin.permissions or [])


def has_any_permission(admin: AdminUser | None, permissions: Iterable[str]) -> bool:
    return any(has_permission(admin, p) for p in permissions)


def check_permission(admin: AdminUser | None, permission: str) -> AdminUser:
    if admin is None or not admin.is_active:
        raise AuthorizationError("Não autenticado", 401, "UNAUTHORIZED")
    if not has_permission(admin, permission):
        raise AuthorizationError(
            f"Acesso negado. Permissao necessaria: {permission}", 403, "MISSING_PERMISSION"
        )
    return admin


def check_any_permission(admin: AdminUser | None, permissions: Iterable[str]) -> AdminUser:
    permissions = list(permissions)
    if admin is None or not admin.is_active:
        raise AuthorizationError("Não autenticado", 401, "UNAUTHORIZED")
    if not has_any_permission(admin, permissions):
        raise AuthorizationError(
            f"Acesso negado. Permissoes necessarias: {' ou '.join(permissions)}",
            403,
            "MISSING_PERMISSION",
        )
    return admin


def check_super_admin(admin: AdminUser | None) -> AdminUser:
    if admin is None or not admin.is_active:
        raise AuthorizationError("Não autenticado", 401, "UNAUTHORIZED")
    if not admin.is_super_admin:
        raise AuthorizationError(
            "Acesso negado. Apenas super administradores podem executar esta acao.",
            403,
            "NOT_SUPER_ADMIN",
        )
    return admin
