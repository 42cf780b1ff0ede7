from __future__ import annotations

import logging
from dataclasses import asdict

from fastapi import APIRouter, HTTPException, Query, status

from app.api.deps import CurrentFamily, CurrentNanny, CurrentUser, DbDep
from .schemas import (
    ApplicationCreate,
    ApplicationDecision,
    ApplicationRead,
    JobCreate,
    JobRead,
    JobUpdate,
    OpenJobRead,
)
from .service import JobsService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.post("", response_model=JobRead, status_code=status.HTTP_201_CREATED)
def create_job(data: JobCreate, db: DbDep, family: CurrentFamily):
    try:
        return JobsService(db).create(family, data)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.get("/mine", response_model=list[JobRead])
def list_my_jobs(db: DbDep, family: CurrentFamily, status_filter: str | None = Query(default=None, alias="status")):
    return JobsService(db).list_mine(family, status_filter)


@router.get("/open", response_model=list[OpenJobRead])
def list_open_jobs(
    db: DbDep,
    nanny: CurrentNanny,
    radius_km: float | None = Query(default=None, gt=0, le=100),
    limit: int = Query(default=50, ge=1, le=200),
):
    found = JobsService(db).list_open(nanny, radius_km=radius_km, limit=limit)
    return [
        OpenJobRead(
            **JobRead.model_validate(item["job"]).model_dump(),
            city=item["city"],
            neighborhood=item["neighborhood"],
            distance_km=item["distance_km"],
            boosted=item["boosted"],
        )
        for item in found
    ]


@router.get("/applications/mine", response_model=list[ApplicationRead])
def list_my_applications(db: DbDep, nanny: CurrentNanny):
    return JobsService(db).list_my_applications(nanny)


@router.post("/applications/{application_id}/withdraw", response_model=ApplicationRead)
def withdraw_application(application_id: str, db: DbDep, nanny: CurrentNanny):
    try:
        return JobsService(db).withdraw(nanny, application_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.post("/applications/{application_id}/decision", response_model=ApplicationRead)
def decide_application(application_id: str, data: ApplicationDecision, db: DbDep, family: CurrentFamily):
    try:
        return JobsService(db).decide(family, application_id, data.accept)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.get("/{job_id}", response_model=JobRead)
def get_job(job_id: str, db: DbDep, _: CurrentUser):
    try:
        return JobsService(db).get(job_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.patch("/{job_id}", response_model=JobRead)
def update_job(job_id: str, data: JobUpdate, db: DbDep, family: CurrentFamily):
    try:
        return JobsService(db).update(family, job_id, data)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.post("/{job_id}/close", response_model=JobRead)
def close_job(job_id: str, db: DbDep, family: CurrentFamily):
    try:
        return JobsService(db).close(family, job_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.get("/{job_id}/expiration")
def job_expiration(job_id: str, db: DbDep, family: CurrentFamily):
    try:
        return asdict(JobsService(db).expiration_info(family, job_id))
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.post("/{job_id}/boost", status_code=status.HTTP_201_CREATED)
def boost_job(job_id: str, db: DbDep, family: CurrentFamily):
    try:
        boost = JobsService(db).boost(family, job_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return {"id": boost.id, "jobId": boost.job_id, "startDate": boost.start_date, "endDate": boost.end_date}


@router.get("/{job_id}/applications", response_model=list[ApplicationRead])
def list_job_applications(job_id: str, db: DbDep, family: CurrentFamily):
    try:
        return JobsService(db).list_applications(family, job_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.post("/{job_id}/apply", response_model=ApplicationRead, status_code=status.HTTP_201_CREATED)
def apply_to_job(job_id: str, data: ApplicationCreate, db: DbDep, nanny: CurrentNanny):
    try:
        return JobsService(db).apply(nanny, job_id, data.message)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
