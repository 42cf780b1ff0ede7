from __future__ import annotations

import pytest

from app.modules.audit.constants import AuditAction, AuditTable
from app.modules.audit.schemas import AuditLogFilters
from app.modules.audit.service import AuditService, compute_changes, sanitize_admin_data
from app.modules.support.models import TicketStatus
from app.modules.support.schemas import TicketCreate
from app.modules.support.service import SupportService
from app.modules.users.models import User
from factories import make_admin, make_family, make_nanny

from test_payments import RecordingSender


def _open(db, sender=None):
    family = make_family(db)
    user = db.get(User, family.user_id)
    svc = SupportService(db, email_sender=sender or RecordingSender())
    ticket = svc.open_ticket(
        user,
        TicketCreate(subject="Problema no pagamento", category="BILLING", message="  Fui cobrada duas vezes  "),
        family_id=family.id,
    )
    return svc, family, user, ticket


# ---- Support ----

def test_open_ticket(db) -> None:
    _, _, user, ticket = _open(db)
    assert ticket.status == TicketStatus.OPEN
    assert [m.body for m in ticket.messages] == ["Fui cobrada duas vezes"]
    assert ticket.messages[0].sender_user_id == user.id


def test_only_owner_sees_ticket(db) -> None:
    svc, family, _, ticket = _open(db)
    other = make_nanny(db)
    assert svc.get_own(ticket.id, family_id=family.id).id == ticket.id
    with pytest.raises(LookupError):
        svc.get_own(ticket.id, nanny_id=other.id)


def test_admin_reply_moves_to_in_progress_and_notifies(db) -> None:
    sender = RecordingSender()
    svc, _, user, ticket = _open(db, sender)
    admin = make_admin(db)

    replied = svc.reply_as_admin(admin.id, ticket.id, "Já estornamos a cobrança duplicada.")

    assert replied.status == TicketStatus.IN_PROGRESS
    assert len(replied.messages) == 2
    assert replied.messages[-1].sender_admin_id == admin.id
    to, content = sender.sent[0]
    assert to == user.email
    assert content.subject == "Resposta ao seu chamado: Problema no pagamento"


def test_admin_reply_validation(db) -> None:
    svc, _, _, ticket = _open(db)
    with pytest.raises(ValueError):
        svc.reply_as_admin("admin-1", ticket.id, "   ")
    with pytest.raises(LookupError):
        svc.reply_as_admin("admin-1", "missing", "Olá")


def test_user_reply_reopens_resolved_ticket(db) -> None:
    svc, family, user, ticket = _open(db)
    resolved = svc.set_status(ticket.id, TicketStatus.RESOLVED)
    assert resolved.resolved_at is not None

    reopened = svc.reply_as_user(user, ticket.id, "Ainda não recebi o estorno", family_id=family.id)
    assert reopened.status == TicketStatus.OPEN
    assert reopened.resolved_at is None


def test_closed_ticket_rejects_replies(db) -> None:
    svc, family, user, ticket = _open(db)
    svc.set_status(ticket.id, TicketStatus.CLOSED)
    with pytest.raises(ValueError, match="fechado"):
        svc.reply_as_user(user, ticket.id, "Olá?", family_id=family.id)
    with pytest.raises(ValueError):
        svc.set_status(ticket.id, "ARCHIVED")


# ---- Audit ----

def test_compute_changes() -> None:
    changes = compute_changes({"a": 1, "b": [1, 2], "c": "x"}, {"a": 1, "b": [2, 1], "d": True})
    assert changes == {
        "b": {"from": [1, 2], "to": [2, 1]},
        "c": {"from": "x", "to": None},
        "d": {"from": None, "to": True},
    }


def test_sanitize_admin_data() -> None:
    assert sanitize_admin_data({"email": "a@b.com", "hashed_password": "x", "password": "y"}) == {
        "email": "a@b.com"
    }


def test_log_update_records_request_metadata(db) -> None:
    admin = make_admin(db, super_admin=True)
    audit = AuditService(db, admin_user_id=admin.id, ip_address="10.0.0.1", user_agent="pytest")

    entry = audit.log_update(AuditTable.COUPONS, "c1", {"discount": 10}, {"discount": 15})

    assert entry.action == AuditAction.UPDATE
    assert entry.admin_user_id == admin.id
    assert entry.ip_address == "10.0.0.1"
    assert entry.data["changes"] == {"discount": {"from": 10, "to": 15}}


def test_audit_log_filters_and_pages(db) -> None:
    admin = make_admin(db, super_admin=True)
    audit = AuditService(db, admin_user_id=admin.id)
    for i in range(3):
        audit.log_create(AuditTable.COUPONS, f"c{i}", {"code": f"C{i}"})
    audit.log_login(admin.id, admin.email)

    page = audit.get_audit_logs(AuditLogFilters(table=AuditTable.COUPONS, limit=2))
    assert page.total == 3
    assert page.total_pages == 2
    assert len(page.items) == 2

    logins = audit.get_audit_logs(AuditLogFilters(action=AuditAction.LOGIN))
    assert logins.total == 1
    assert len(audit.get_by_record(AuditTable.COUPONS, "c1")) == 1
    assert len(audit.get_by_admin_user(admin.id)) == 4
