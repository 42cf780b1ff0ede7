from __future__ import annotations

from typing import Annotated, Callable

import jwt
from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.errors import AuthorizationError
from app.core.security import ADMIN_SCOPE, USER_SCOPE, decode_access_token, secrets_match
from app.modules.admin.models import AdminUser
from app.modules.admin.permissions import check_any_permission, check_permission, check_super_admin
from app.modules.admin.repository import AdminUsersRepository
from app.modules.audit.service import AuditService
from app.modules.families.models import Family
from app.modules.families.repository import FamiliesRepository
from app.modules.nannies.models import Nanny
from app.modules.nannies.repository import NanniesRepository
from app.modules.users.models import User
from app.modules.users.repository import UsersRepository


bearer_scheme = HTTPBearer(auto_error=False)

DbDep = Annotated[Session, Depends(get_db)]
CredentialsDep = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]


def _token_payload(credentials: HTTPAuthorizationCredentials | None, scope: str) -> dict | None:
    if credentials is None or not credentials.scheme.lower() == "bearer":
        return None
    try:
        payload = decode_access_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Sessão expirada")
    except jwt.PyJWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token inválido")
    if payload.get("scope", USER_SCOPE) != scope or not payload.get("sub"):
        return None
    return payload


def get_current_user(db: DbDep, credentials: CredentialsDep) -> User:
    payload = _token_payload(credentials, USER_SCOPE)
    if payload is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Não autenticado")

    repo = UsersRepository(db)
    user = repo.get_by_id(payload["sub"])
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Usuário inativo ou inexistente")
    repo.touch(user)
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def get_current_family(db: DbDep, user: CurrentUser) -> Family:
    family = FamiliesRepository(db).get_by_user_id(user.id) if user.is_family else None
    if family is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Apenas famílias podem acessar este recurso")
    return family


def get_current_nanny(db: DbDep, user: CurrentUser) -> Nanny:
    nanny = NanniesRepository(db).get_by_user_id(user.id) if user.is_nanny else None
    if nanny is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Apenas babás podem acessar este recurso")
    return nanny


CurrentFamily = Annotated[Family, Depends(get_current_family)]
CurrentNanny = Annotated[Nanny, Depends(get_current_nanny)]


def get_profile_ids(db: DbDep, user: CurrentUser) -> dict[str, str]:
    """``{"family_id": ...}`` or ``{"nanny_id": ...}`` for the signed-in user."""
    if user.is_nanny:
        nanny = NanniesRepository(db).get_by_user_id(user.id)
        if nanny is not None:
            return {"nanny_id": nanny.id}
    elif user.is_family:
        family = FamiliesRepository(db).get_by_user_id(user.id)
        if family is not None:
            return {"family_id": family.id}
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Perfil não encontrado")


ProfileIds = Annotated[dict[str, str], Depends(get_profile_ids)]


def get_current_admin(db: DbDep, credentials: CredentialsDep) -> AdminUser:
    payload = _token_payload(credentials, ADMIN_SCOPE)
    if payload is None:
        raise AuthorizationError("Não autenticado", 401, "UNAUTHORIZED")
    admin = AdminUsersRepository(db).get(payload["sub"])
    if not admin or not admin.is_active:
        raise AuthorizationError("Não autenticado", 401, "UNAUTHORIZED")
    return admin


CurrentAdmin = Annotated[AdminUser, Depends(get_current_admin)]


def require_permission(permission: str) -> Callable[..., AdminUser]:
    def dependency(admin: CurrentAdmin) -> AdminUser:
        return check_permission(admin, permission)

    return dependency


def require_any_permission(*permissions: str) -> Callable[..., AdminUser]:
    def dependency(admin: CurrentAdmin) -> AdminUser:
        return check_any_permission(admin, permissions)

    return dependency


def require_super_admin(admin: CurrentAdmin) -> AdminUser:
    return check_super_admin(admin)


def get_client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.headers.get("x-real-ip") or (request.client.host if request.client else None)


def audit_for(admin: AdminUser, db: Session, request: Request) -> AuditService:
    return AuditService(
        db,
        admin_user_id=admin.id,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )


def verify_cron_secret(authorization: Annotated[str | None, Header()] = None) -> None:
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:]
    if not secrets_match(token, settings.CRON_SECRET):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
