from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from app.core.errors import SubscriptionRequiredError
from app.modules.families.models import Child, Family
from app.modules.jobs.models import Job
from app.modules.nannies.models import Nanny
from app.modules.nannies.repository import NanniesRepository
from app.modules.reviews.repository import ReviewsRepository
from app.modules.subscriptions.service import SubscriptionService
from app.modules.users.models import User
from .algorithm import find_best_matches
from .schedule import calculate_schedule_overlap, format_schedule_summary, slots_to_schedule
from .types import ChildData, FamilyData, JobData, NannyProfile


logger = logging.getLogger(__name__)


def to_family_data(family: Family) -> FamilyData:
    return FamilyData(
        id=family.id,
        has_pets=bool(family.has_pets),
        number_of_children=family.number_of_children,
        nanny_type=family.nanny_type,
        contract_regime=family.contract_regime,
        hourly_rate_range=family.hourly_rate_range,
        domestic_help_expected=list(family.domestic_help_expected or []),
        availability_slots=list(family.availability_slots or []),
        latitude=family.latitude,
        longitude=family.longitude,
    )


def to_child_data(child: Child) -> ChildData:
    return ChildData(
        id=child.id,
        birth_date=child.birth_date,
        expected_birth_date=child.expected_birth_date,
        unborn=bool(child.unborn),
        has_special_needs=bool(child.has_special_needs),
        special_needs_types=list(child.special_needs_types or []),
    )


def to_nanny_profile(nanny: Nanny, *, average_rating: float | None, review_count: int, user: User | None) -> NannyProfile:
    return NannyProfile(
        id=nanny.id,
        name=nanny.name,
        is_smoker=nanny.is_smoker,
        has_cnh=nanny.has_cnh,
        experience_years=nanny.experience_years,
        has_special_needs_experience=nanny.has_special_needs_experience,
        special_needs_specialties=list(nanny.special_needs_specialties or []),
        age_ranges_experience=list(nanny.age_ranges_experience or []),
        max_travel_distance=nanny.max_travel_distance,
        max_children_care=nanny.max_children_care,
        comfortable_with_pets=nanny.comfortable_with_pets,
        accepted_activities=list(nanny.accepted_activities or []),
        nanny_types=list(nanny.nanny_types or []),
        contract_regimes=list(nanny.contract_regimes or []),
        hourly_rate_range=nanny.hourly_rate_range,
        document_validated=bool(nanny.document_validated),
        personal_data_validated=bool(nanny.personal_data_validated),
        criminal_background_validated=bool(nanny.criminal_background_validated),
        average_rating=average_rating,
        review_count=review_count,
        last_active_at=user.last_active_at if user else None,
        latitude=nanny.latitude,
        longitude=nanny.longitude,
        availability_slots=list(nanny.availability_slots or []),
    )


class MatchingService:
    def __init__(self, db: Session):
        self.db = db
        self.subscriptions = SubscriptionService(db)
        self.reviews = ReviewsRepository(db)

    def _job_inputs(self, job: Job, family: Family) -> tuple[JobData, FamilyData, list[ChildData]]:
        children = family.children
        if job.children_ids:
            children = [c for c in children if c.id in set(job.children_ids)]
        family_data = to_family_data(family)
        # Job-level preferences take precedence over the family profile.
        for attr in ("nanny_type", "contract_regime", "hourly_rate_range"):
            value = getattr(job, attr)
            if value:
                setattr(family_data, attr, value)
        job_data = JobData(
            id=job.id,
            mandatory_requirements=list(job.mandatory_requirements or []),
            children_ids=list(job.children_ids or []),
        )
        return job_data, family_data, [to_child_data(c) for c in children]

    def _candidates(self) -> list[tuple[Nanny, NannyProfile]]:
        candidates = []
        for nanny in NanniesRepository(self.db).list_all():
            average, count = self.reviews.stats(nanny_id=nanny.id)
            user = self.db.get(User, nanny.user_id)
            if user is not None and not user.is_active:
                continue
            profile = to_nanny_profile(
                nanny, average_rating=average if count else None, review_count=count, user=user
            )
            candidates.append((nanny, profile))
        return candidates

    def matches_for_job(
        self, job_id: str, family_id: str, *, limit: int = 20, min_score: int = 0
    ) -> list[dict[str, Any]]:
        job = self.db.get(Job, job_id)
        if job is None or job.family_id != family_id:
            raise LookupError("Vaga não encontrada")
        if not self.subscriptions.has_matching(family_id=family_id):
            raise SubscriptionRequiredError(
                "O matching de babás está disponível apenas no plano Plus",
                code="MATCHING_REQUIRED",
            )

        family = self.db.get(Family, family_id)
        job_data, family_data, children = self._job_inputs(job, family)
        candidates = self._candidates()
        by_id = {profile.id: nanny for nanny, profile in candidates}
        ranked = find_best_matches(
            job_data, family_data, children, [p for _, p in candidates], limit=limit, min_score=min_score
        )
        logger.info("Matching for job %s: %s of %s nannies ranked", job.id, len(ranked), len(candidates))

        results = []
        for profile, match in ranked:
            schedule = calculate_schedule_overlap(job.schedule, slots_to_schedule(profile.availability_slots))
            results.append(
                {
                    "nanny": by_id[profile.id],
                    "averageRating": round(profile.average_rating or 0, 1),
                    "totalReviews": profile.review_count,
                    "schedule": {
                        "overlapPercentage": schedule.overlap_percentage,
                        "summary": format_schedule_summary(schedule),
                    },
                    **match.to_dict(),
                }
            )
        return results
