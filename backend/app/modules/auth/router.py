from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request, status

from app.core.config import settings
from app.api.deps import CurrentAdmin, CurrentUser, DbDep
from .schemas import LoginRequest, TokenResponse
from .service import AuthService


router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: DbDep):
    result = AuthService(db).login(payload.email, payload.password)
    if not result:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Credenciais inválidas")
    token, user = result
    return TokenResponse(access_token=token, expires_in=settings.AUTH_TOKEN_TTL_SECONDS, role=user.role)


@router.post("/admin/login", response_model=TokenResponse)
def admin_login(payload: LoginRequest, db: DbDep, request: Request):
    result = AuthService(db).admin_login(payload.email, payload.password, request)
    if not result:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Credenciais inválidas")
    token, _ = result
    return TokenResponse(access_token=token, expires_in=settings.AUTH_TOKEN_TTL_SECONDS, role="ADMIN")


@router.get("/me", response_model=dict)
def me(current: CurrentUser):
    return {
        "id": current.id,
        "email": current.email,
        "full_name": current.full_name,
        "role": current.role,
        "email_verified": current.email_verified,
    }


@router.get("/admin/me", response_model=dict)
def admin_me(admin: CurrentAdmin):
    return {
        "id": admin.id,
        "email": admin.email,
        "name": admin.name,
        "is_super_admin": admin.is_super_admin,
        "permissions": list(admin.permissions or []),
    }
