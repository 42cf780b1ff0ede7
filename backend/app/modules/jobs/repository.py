from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import case, func, or_, select
from sqlalchemy.orm import Session

from app.modules.subscriptions.models import Boost, BoostType
from .models import ApplicationStatus, Job, JobApplication, JobStatus


class JobsRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, job_id: str) -> Optional[Job]:
        return self.db.get(Job, job_id)

    def list_for_family(self, family_id: str, status: str | None = None) -> list[Job]:
        stmt = select(Job).where(Job.family_id == family_id)
        if status:
            stmt = stmt.where(Job.status == status)
        return list(self.db.scalars(stmt.order_by(Job.created_at.desc())))

    def count_active(self, family_id: str) -> int:
        stmt = (
            select(func.count())
            .select_from(Job)
            .where(Job.family_id == family_id, Job.status == JobStatus.ACTIVE)
        )
        return self.db.scalar(stmt) or 0

    def list_open(self, now: datetime, limit: int = 100) -> list[Job]:
        """Open jobs with currently boosted ones first, then newest."""
        boosted = (
            select(Boost.id)
            .where(
                Boost.job_id == Job.id,
                Boost.type == BoostType.JOB,
                Boost.is_active.is_(True),
                Boost.start_date <= now,
                Boost.end_date > now,
            )
            .exists()
        )
        stmt = (
            select(Job)
            .where(Job.status == JobStatus.ACTIVE, or_(Job.expires_at.is_(None), Job.expires_at > now))
            .order_by(case((boosted, 0), else_=1), Job.created_at.desc())
            .limit(limit)
        )
        return list(self.db.scalars(stmt))

    def list_due_for_expiration(self, now: datetime) -> list[Job]:
        stmt = select(Job).where(
            Job.status.in_((JobStatus.ACTIVE, JobStatus.PAUSED)),
            Job.expires_at.is_not(None),
            Job.expires_at <= now,
        )
        return list(self.db.scalars(stmt))

    def add(self, job: Job) -> Job:
        self.db.add(job)
        self.db.commit()
        self.db.refresh(job)
        return job

    def save(self, obj: Job | JobApplication) -> Job | JobApplication:
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    # Applications ---------------------------------------------------------
    def get_application(self, application_id: str) -> Optional[JobApplication]:
        return self.db.get(JobApplication, application_id)

    def get_application_for(self, job_id: str, nanny_id: str) -> Optional[JobApplication]:
        stmt = select(JobApplication).where(
            JobApplication.job_id == job_id, JobApplication.nanny_id == nanny_id
        )
        return self.db.scalar(stmt)

    def list_applications(self, job_id: str) -> list[JobApplication]:
        stmt = (
            select(JobApplication)
            .where(JobApplication.job_id == job_id, JobApplication.status != ApplicationStatus.WITHDRAWN)
            .order_by(JobApplication.created_at.asc())
        )
        return list(self.db.scalars(stmt))

    def list_for_nanny(self, nanny_id: str) -> list[JobApplication]:
        stmt = (
            select(JobApplication)
            .where(JobApplication.nanny_id == nanny_id)
            .order_by(JobApplication.created_at.desc())
        )
        return list(self.db.scalars(stmt))
