from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Sequence

from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from .constants import SENSITIVE_FIELDS, AuditAction, AuditTable
from .models import AuditLog
from .repository import AuditRepository
from .schemas import AuditLogFilters, AuditLogPage, AuditLogRead


logger = logging.getLogger(__name__)


@dataclass
class AuditEntry:
    action: str
    table: str
    record_id: str | int | None
    data: Mapping[str, Any] | None = None
    admin_user_id: str | None = None


def _json_key(value: Any) -> str:
    return json.dumps(jsonable_encoder(value), sort_keys=True, default=str)


def compute_changes(
    before: Mapping[str, Any], after: Mapping[str, Any]
) -> dict[str, dict[str, Any]]:
    """Field-level diff over the union of keys; values compared as JSON."""
    changes: dict[str, dict[str, Any]] = {}
    for key in list(dict.fromkeys([*before.keys(), *after.keys()])):
        old = before.get(key)
        new = after.get(key)
        if _json_key(old) != _json_key(new):
            changes[key] = {"from": old, "to": new}
    return changes


def sanitize_admin_data(data: Mapping[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if k not in SENSITIVE_FIELDS}


class AuditService:
    """Append-only record of administrative actions.

    The acting admin and request metadata are bound at construction so that
    route handlers can create one service per request and call the helpers
    without threading the actor through every call.
    """

    def __init__(
        self,
        db: Session,
        *,
        admin_user_id: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ):
        self.db = db
        self.repo = AuditRepository(db)
        self.admin_user_id = admin_user_id
        self.ip_address = ip_address
        self.user_agent = user_agent

    # ---- Writing ----
    def _build(self, entry: AuditEntry) -> AuditLog:
        return AuditLog(
            action=entry.action,
            table_name=entry.table,
            record_id=str(entry.record_id) if entry.record_id is not None else None,
            admin_user_id=entry.admin_user_id or self.admin_user_id,
            data=jsonable_encoder(dict(entry.data)) if entry.data is not None else None,
            ip_address=self.ip_address,
            user_agent=self.user_agent,
        )

    def log(
        self,
        action: str,
        table: str,
        record_id: str | int | None,
        data: Mapping[str, Any] | None = None,
        *,
        admin_user_id: str | None = None,
    ) -> AuditLog:
        entry = self._build(AuditEntry(action, table, record_id, data, admin_user_id))
        logger.info(
            "audit %s %s/%s by %s", entry.action, entry.table_name, entry.record_id, entry.admin_user_id
        )
        return self.repo.add(entry)

    def log_many(self, entries: Sequence[AuditEntry]) -> None:
        if not entries:
            return
        self.repo.add_many([self._build(entry) for entry in entries])

    def log_create(self, table: str, record_id: str, data: Mapping[str, Any]) -> AuditLog:
        return self.log(AuditAction.CREATE, table, record_id, {"after": dict(data)})

    def log_update(
        self, table: str, record_id: str, before: Mapping[str, Any], after: Mapping[str, Any]
    ) -> AuditLog:
        changes = compute_changes(before, after)
        return self.log(
            AuditAction.UPDATE,
            table,
            record_id,
            {"before": dict(before), "after": dict(after), "changes": changes},
        )

    def log_delete(self, table: str, record_id: str, data: Mapping[str, Any]) -> AuditLog:
        return self.log(AuditAction.DELETE, table, record_id, {"before": dict(data)})

    def log_login(self, admin_user_id: str, email: str) -> AuditLog:
        return self.log(
            AuditAction.LOGIN,
            AuditTable.ADMIN_USERS,
            admin_user_id,
            {"email": email},
            admin_user_id=admin_user_id,
        )

    # ---- Admin users ----
    def log_admin_create(self, record_id: str, admin_data: Mapping[str, Any]) -> AuditLog:
        return self.log_create(AuditTable.ADMIN_USERS, record_id, sanitize_admin_data(admin_data))

    def log_admin_update(
        self, record_id: str, before: Mapping[str, Any], after: Mapping[str, Any]
    ) -> AuditLog:
        return self.log_update(
            AuditTable.ADMIN_USERS, record_id, sanitize_admin_data(before), sanitize_admin_data(after)
        )

    def log_permission_change(
        self,
        record_id: str,
        admin_email: str,
        before_permissions: Sequence[str],
        after_permissions: Sequence[str],
    ) -> AuditLog:
        return self.log(
            AuditAction.CHANGE_PERMISSIONS,
            AuditTable.ADMIN_USERS,
            record_id,
            {
                "adminEmail": admin_email,
                "before": {"permissions": list(before_permissions)},
                "after": {"permissions": list(after_permissions)},
                "added": [p for p in after_permissions if p not in before_permissions],
                "removed": [p for p in before_permissions if p not in after_permissions],
            },
        )

    # ---- Subscriptions and payments ----
    def log_subscription_cancel(
        self, subscription_id: str, subscription_data: Mapping[str, Any], reason: str | None = None
    ) -> AuditLog:
        return self.log(
            AuditAction.CANCEL_SUBSCRIPTION,
            AuditTable.SUBSCRIPTIONS,
            subscription_id,
            {"subscription": dict(subscription_data), "reason": reason},
        )

    def log_plan_change(
        self, subscription_id: str, target_id: str, from_plan: Mapping[str, Any], to_plan: Mapping[str, Any]
    ) -> AuditLog:
        return self.log(
            AuditAction.CHANGE_PLAN,
            AuditTable.SUBSCRIPTIONS,
            subscription_id,
            {"targetId": target_id, "fromPlan": dict(from_plan), "toPlan": dict(to_plan)},
        )

    def log_refund(self, payment_id: str, payment_data: Mapping[str, Any], reason: str | None = None) -> AuditLog:
        return self.log(
            AuditAction.REFUND_PAYMENT,
            AuditTable.PAYMENTS,
            payment_id,
            {"payment": dict(payment_data), "reason": reason},
        )

    # ---- Validations ----
    def log_validation_approve(self, nanny_id: str, validation_data: Mapping[str, Any]) -> AuditLog:
        return self.log(AuditAction.APPROVE, AuditTable.VALIDATION_REQUESTS, nanny_id, dict(validation_data))

    def log_validation_reject(
        self, nanny_id: str, validation_data: Mapping[str, Any], reason: str | None = None
    ) -> AuditLog:
        return self.log(
            AuditAction.REJECT,
            AuditTable.VALIDATION_REQUESTS,
            nanny_id,
            {**dict(validation_data), "reason": reason},
        )

    # ---- Moderation ----
    def log_review_moderation(
        self,
        review_id: str,
        moderation_action: str,
        review_data: Mapping[str, Any],
        moderator_email: str,
        reason: str | None = None,
    ) -> AuditLog:
        return self.log(
            AuditAction.MODERATE,
            AuditTable.REVIEWS,
            review_id,
            {
                "moderationAction": moderation_action,
                "review": dict(review_data),
                "moderatedBy": moderator_email,
                "reason": reason,
            },
        )

    def log_conversation_view(
        self, conversation_id: str, viewer_email: str, participants: Sequence[Mapping[str, Any]]
    ) -> AuditLog:
        return self.log(
            AuditAction.VIEW_CONVERSATION,
            AuditTable.CONVERSATIONS,
            conversation_id,
            {
                "viewedBy": viewer_email,
                "participants": [dict(p) for p in participants],
                "accessedAt": datetime.now(timezone.utc).isoformat(),
            },
        )

    def log_message_delete(
        self,
        message_id: str,
        conversation_id: str,
        message_content: str,
        deleter_email: str,
        reason: str | None = None,
    ) -> AuditLog:
        return self.log(
            AuditAction.DELETE_MESSAGE,
            AuditTable.MESSAGES,
            message_id,
            {
                "conversationId": conversation_id,
                "messageContent": message_content,
                "deletedBy": deleter_email,
                "reason": reason,
            },
        )

    def log_personal_data_view(
        self, table: str, record_id: str, viewer_email: str, data_type: str
    ) -> AuditLog:
        return self.log(
            AuditAction.VIEW_PERSONAL_DATA,
            table,
            record_id,
            {
                "viewedBy": viewer_email,
                "dataType": data_type,
                "accessedAt": datetime.now(timezone.utc).isoformat(),
            },
        )

    # ---- Coupons ----
    def log_coupon_create(self, coupon_id: str, coupon_data: Mapping[str, Any]) -> AuditLog:
        return self.log_create(AuditTable.COUPONS, coupon_id, coupon_data)

    def log_coupon_update(
        self, coupon_id: str, before: Mapping[str, Any], after: Mapping[str, Any]
    ) -> AuditLog:
        return self.log_update(AuditTable.COUPONS, coupon_id, before, after)

    def log_coupon_delete(self, coupon_id: str, coupon_data: Mapping[str, Any]) -> AuditLog:
        return self.log_delete(AuditTable.COUPONS, coupon_id, coupon_data)

    # ---- Reading ----
    def get_audit_logs(self, filters: AuditLogFilters) -> AuditLogPage:
        page = max(1, filters.page)
        limit = max(1, filters.limit)
        items, total = self.repo.search(
            action=filters.action,
            table_name=filters.table,
            admin_user_id=filters.admin_user_id,
            record_id=filters.record_id,
            start_date=filters.start_date,
            end_date=filters.end_date,
            limit=limit,
            offset=(page - 1) * limit,
        )
        return AuditLogPage(
            items=[AuditLogRead.model_validate(item) for item in items],
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit) if total else 0,
        )

    def get_by_id(self, log_id: str) -> AuditLog | None:
        return self.repo.get(log_id)

    def get_by_record(self, table: str, record_id: str) -> list[AuditLog]:
        return self.repo.list_by_record(table, record_id)

    def get_by_admin_user(self, admin_user_id: str, limit: int = 100) -> list[AuditLog]:
        return self.repo.list_by_admin_user(admin_user_id, limit=limit)
