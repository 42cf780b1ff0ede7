"""Scheduled jobs, triggered by an external scheduler with the cron secret."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from app.api.deps import DbDep, verify_cron_secret
from app.modules.jobs.service import JobsService
from app.modules.payments.operations import PaymentOperationsRetrier
from app.modules.reviews.service import ReviewsService
from app.modules.subscriptions.service import SubscriptionService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["cron"], dependencies=[Depends(verify_cron_secret)])


@router.get("/retry-payment-operations")
def retry_payment_operations(db: DbDep):
    return PaymentOperationsRetrier(db).retry_pending()


@router.get("/publish-reviews")
def publish_reviews(db: DbDep):
    return ReviewsService(db).publish_due_reviews()


@router.get("/expire-trials")
def expire_trials(db: DbDep):
    return SubscriptionService(db).expire_trials()


@router.get("/expire-jobs")
def expire_jobs(db: DbDep):
    return JobsService(db).expire_jobs()
