from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Callable

from sqlalchemy.orm import Session

from app.core.database import as_utc, utcnow
from app.core.errors import SubscriptionRequiredError
from app.modules.chat.service import ChatService
from app.modules.families.models import Family
from app.modules.matching.distance import haversine_km
from app.modules.nannies.models import Nanny
from app.modules.notifications.whatsapp import send_whatsapp_text
from app.modules.subscriptions import plans
from app.modules.subscriptions.models import BoostType
from app.modules.subscriptions.repository import SubscriptionsRepository
from app.modules.subscriptions.service import JobExpiration, SubscriptionService
from .models import ApplicationStatus, Job, JobApplication, JobStatus
from .repository import JobsRepository
from .schemas import JobCreate, JobUpdate


logger = logging.getLogger(__name__)

CLOSED_STATUSES = (JobStatus.CLOSED, JobStatus.EXPIRED)


class JobsService:
    def __init__(self, db: Session, whatsapp_sender: Callable[[str | None, str], bool] = send_whatsapp_text):
        self.db = db
        self.repo = JobsRepository(db)
        self.subscriptions = SubscriptionService(db)
        self.whatsapp_sender = whatsapp_sender

    # ---- Family side ----
    def create(self, family: Family, data: JobCreate) -> Job:
        if not self.subscriptions.can_create_job(family_id=family.id):
            raise SubscriptionRequiredError("Seu plano não permite criar vagas", code="JOB_CREATION_NOT_ALLOWED")

        limit = self.subscriptions.get_user_job_limit(family_id=family.id)
        active = self.repo.count_active(family.id)
        if limit != plans.UNLIMITED and active >= limit:
            raise SubscriptionRequiredError(
                f"Você atingiu o limite de {limit} vaga(s) ativa(s) do seu plano",
                code="JOB_LIMIT_REACHED",
                details={"activeJobs": active, "jobLimit": limit},
            )
        self._check_children(family, data.children_ids)

        sub = self.subscriptions.get_subscription(family_id=family.id)
        days = plans.get_job_expiration_days(sub.plan if sub else None)
        now = utcnow()
        job = Job(
            family_id=family.id,
            created_at=now,
            expires_at=None if days == plans.UNLIMITED else now + timedelta(days=days),
            **data.model_dump(),
        )
        job = self.repo.add(job)
        logger.info("Job %s created by family %s", job.id, family.id)
        return job

    def _check_children(self, family: Family, children_ids: list[str] | None) -> None:
        known = {child.id for child in family.children}
        unknown = [cid for cid in children_ids or [] if cid not in known]
        if unknown:
            raise ValueError("Criança não pertence a esta família")

    def _refresh_status(self, job: Job) -> Job:
        """Jobs past their expiration date are marked EXPIRED on read."""
        if job.status in (JobStatus.ACTIVE, JobStatus.PAUSED) and job.expires_at and as_utc(job.expires_at) <= utcnow():
            job.status = JobStatus.EXPIRED
            job = self.repo.save(job)
        return job

    def list_mine(self, family: Family, status: str | None = None) -> list[Job]:
        return [self._refresh_status(job) for job in self.repo.list_for_family(family.id, status)]

    def get(self, job_id: str, *, family_id: str | None = None) -> Job:
        job = self.repo.get(job_id)
        if job is None or (family_id and job.family_id != family_id):
            raise LookupError("Vaga não encontrada")
        return self._refresh_status(job)

    def update(self, family: Family, job_id: str, data: JobUpdate) -> Job:
        job = self.get(job_id, family_id=family.id)
        if job.status in CLOSED_STATUSES:
            raise ValueError("Vagas encerradas ou expiradas não podem ser editadas")
        changes = data.model_dump(exclude_unset=True)
        if "children_ids" in changes:
            self._check_children(family, changes["children_ids"])
        for key, value in changes.items():
            setattr(job, key, value)
        return self.repo.save(job)

    def close(self, family: Family, job_id: str) -> Job:
        job = self.get(job_id, family_id=family.id)
        if job.status == JobStatus.CLOSED:
            return job
        job.status = JobStatus.CLOSED
        logger.info("Job %s closed", job.id)
        return self.repo.save(job)

    def expiration_info(self, family: Family, job_id: str) -> JobExpiration:
        job = self.get(job_id, family_id=family.id)
        return self.subscriptions.get_job_expiration_info(family.id, job.id)

    def boost(self, family: Family, job_id: str):
        job = self.get(job_id, family_id=family.id)
        if job.status != JobStatus.ACTIVE:
            raise ValueError("Apenas vagas ativas podem receber boost")
        return self.subscriptions.activate_boost(family_id=family.id, job_id=job.id)

    def list_applications(self, family: Family, job_id: str) -> list[JobApplication]:
        job = self.get(job_id, family_id=family.id)
        return self.repo.list_applications(job.id)

    def decide(self, family: Family, application_id: str, accept: bool) -> JobApplication:
        application = self.repo.get_application(application_id)
        job = self.repo.get(application.job_id) if application else None
        if application is None or job is None or job.family_id != family.id:
            raise LookupError("Candidatura não encontrada")
        if application.status != ApplicationStatus.PENDING:
            raise ValueError("Esta candidatura já foi respondida")
        application.status = ApplicationStatus.ACCEPTED if accept else ApplicationStatus.REJECTED
        return self.repo.save(application)

    # ---- Nanny side ----
    def list_open(
        self, nanny: Nanny | None = None, *, radius_km: float | None = None, limit: int = 50
    ) -> list[dict[str, Any]]:
        """Open jobs, boosted first, then newest; optionally within ``radius_km`` of the nanny."""
        now = utcnow()
        boosted = {b.job_id for b in SubscriptionsRepository(self.db).active_boosts(now, boost_type=BoostType.JOB)}
        origin = None
        if nanny is not None and nanny.latitude is not None and nanny.longitude is not None:
            origin = (nanny.latitude, nanny.longitude)

        results = []
        for job in self.repo.list_open(now):
            family = self.db.get(Family, job.family_id)
            distance = None
            if origin and family and family.latitude is not None and family.longitude is not None:
                distance = haversine_km(origin[0], origin[1], family.latitude, family.longitude)
            if radius_km is not None and (distance is None or distance > radius_km):
                continue
            results.append(
                {
                    "job": job,
                    "city": family.city if family else None,
                    "neighborhood": family.neighborhood if family else None,
                    "distance_km": distance,
                    "boosted": job.id in boosted,
                }
            )
        results.sort(key=lambda item: (not item["boosted"], -item["job"].created_at.timestamp()))
        return results[:limit]

    def apply(self, nanny: Nanny, job_id: str, message: str | None = None) -> JobApplication:
        if not self.subscriptions.can_apply_to_jobs(nanny_id=nanny.id):
            raise SubscriptionRequiredError("Seu plano não permite se candidatar a vagas", code="APPLY_NOT_ALLOWED")
        job = self.get(job_id)
        if job.status != JobStatus.ACTIVE:
            raise ValueError("Esta vaga não está mais aberta")

        application = self.repo.get_application_for(job.id, nanny.id)
        if application is not None and application.status != ApplicationStatus.WITHDRAWN:
            raise ValueError("Você já se candidatou a esta vaga")
        if application is None:
            application = JobApplication(job_id=job.id, nanny_id=nanny.id)
        application.status = ApplicationStatus.PENDING
        application.message = message
        self.db.add(application)

        ChatService(self.db).start_by_application(nanny.id, job.family_id, job.id, message, commit=False)
        application = self.repo.save(application)
        logger.info("Nanny %s applied to job %s", nanny.id, job.id)
        self._notify_family(job, nanny)
        return application

    def _notify_family(self, job: Job, nanny: Nanny) -> bool:
        family = self.db.get(Family, job.family_id)
        if family is None or not family.phone:
            return False
        body = (
            f"Cuidly: {nanny.name or 'Uma babá'} se candidatou à sua vaga \"{job.title}\". "
            "Abra o app para ver o perfil e responder."
        )
        return self.whatsapp_sender(family.phone, body)

    def withdraw(self, nanny: Nanny, application_id: str) -> JobApplication:
        application = self.repo.get_application(application_id)
        if application is None or application.nanny_id != nanny.id:
            raise LookupError("Candidatura não encontrada")
        if application.status != ApplicationStatus.PENDING:
            raise ValueError("Apenas candidaturas pendentes podem ser retiradas")
        application.status = ApplicationStatus.WITHDRAWN
        return self.repo.save(application)

    def list_my_applications(self, nanny: Nanny) -> list[JobApplication]:
        return self.repo.list_for_nanny(nanny.id)

    # ---- Cron ----
    def expire_jobs(self, now: datetime | None = None) -> dict[str, Any]:
        now = now or utcnow()
        ids = []
        for job in self.repo.list_due_for_expiration(now):
            job.status = JobStatus.EXPIRED
            ids.append(job.id)
        self.db.commit()
        logger.info("Expired %s jobs", len(ids))
        return {"expired": len(ids), "jobIds": ids}
