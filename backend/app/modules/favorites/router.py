from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from app.api.deps import CurrentFamily, DbDep
from .schemas import FavoriteCreate, FavoriteListItem, FavoriteRead
from .service import FavoritesService


router = APIRouter(prefix="/favorites", tags=["favorites"])


@router.get("", response_model=list[FavoriteListItem])
def list_favorites(db: DbDep, family: CurrentFamily):
    return FavoritesService(db).list(family)


@router.post("", response_model=FavoriteRead)
def add_favorite(data: FavoriteCreate, db: DbDep, family: CurrentFamily):
    try:
        return FavoritesService(db).add(family, data.nanny_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.delete("/{nanny_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_favorite(nanny_id: str, db: DbDep, family: CurrentFamily):
    try:
        FavoritesService(db).remove(family, nanny_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
