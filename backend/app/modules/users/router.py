from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from app.api.deps import CurrentUser, DbDep
from .schemas import UserCreate, UserRead, UserUpdate
from .service import UsersService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def register_user(data: UserCreate, db: DbDep):
    svc = UsersService(db)
    try:
        logger.info("Registering user %s", data.email)
        user = svc.register_user(data)
    except ValueError as e:
        logger.info("Registration failed for %s: %s", data.email, e)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return user


@router.get("/me", response_model=UserRead)
def read_me(current: CurrentUser):
    return current


@router.patch("/me", response_model=UserRead)
def update_me(data: UserUpdate, db: DbDep, current: CurrentUser):
    return UsersService(db).update(current, data)
