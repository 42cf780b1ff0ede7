from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, status

from app.api.deps import CurrentFamily, DbDep
from .schemas import MatchRead
from .service import MatchingService


router = APIRouter(prefix="/matching", tags=["matching"])


@router.get("/jobs/{job_id}", response_model=list[MatchRead])
def match_job(
    job_id: str,
    db: DbDep,
    family: CurrentFamily,
    limit: int = Query(default=20, ge=1, le=100),
    min_score: int = Query(default=0, ge=0, le=110),
):
    try:
        return MatchingService(db).matches_for_job(job_id, family.id, limit=limit, min_score=min_score)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
