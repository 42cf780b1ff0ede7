from __future__ import annotations

from app.modules.admin.permissions import AdminPermission
from factories import PASSWORD, admin_headers, cron_headers, make_admin, make_family, user_headers


def _register(client, email: str, role: str) -> dict[str, str]:
    resp = client.post(
        "/users/register",
        json={"email": email, "password": PASSWORD, "role": role, "full_name": "Ana Souza"},
    )
    assert resp.status_code == 201, resp.text
    login = client.post("/auth/login", json={"email": email, "password": PASSWORD})
    assert login.status_code == 200, login.text
    assert login.json()["role"] == role
    return {"Authorization": f"Bearer {login.json()['access_token']}"}


def test_health(client) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_register_login_and_me(client) -> None:
    headers = _register(client, "Ana@Cuidly.com.br", "FAMILY")

    me = client.get("/auth/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["email"] == "ana@cuidly.com.br"

    again = client.post(
        "/users/register", json={"email": "ana@cuidly.com.br", "password": PASSWORD, "role": "FAMILY"}
    )
    assert again.status_code == 400

    bad = client.post("/auth/login", json={"email": "ana@cuidly.com.br", "password": "senha-errada-1"})
    assert bad.status_code == 401


def test_anonymous_requests_are_rejected(client) -> None:
    assert client.get("/auth/me").status_code == 401
    assert client.post("/jobs", json={"title": "Vaga"}).status_code == 401


def test_job_apply_and_chat_flow(client) -> None:
    family = _register(client, "familia@cuidly.com.br", "FAMILY")
    nanny = _register(client, "baba@cuidly.com.br", "NANNY")

    job = client.post("/jobs", json={"title": "Babá para as tardes"}, headers=family)
    assert job.status_code == 201, job.text
    job_id = job.json()["id"]

    second = client.post("/jobs", json={"title": "Outra vaga"}, headers=family)
    assert second.status_code == 403
    assert second.json()["code"] == "JOB_LIMIT_REACHED"
    assert second.json()["details"] == {"activeJobs": 1, "jobLimit": 1}

    applied = client.post(f"/jobs/{job_id}/apply", json={"message": "Tenho interesse"}, headers=nanny)
    assert applied.status_code == 201, applied.text
    assert client.post(f"/jobs/{job_id}/apply", json={}, headers=nanny).status_code == 400

    conversations = client.get("/conversations", headers=family).json()
    assert len(conversations) == 1
    conversation_id = conversations[0]["id"]

    sent = client.post(
        f"/conversations/{conversation_id}/messages",
        json={"body": "Pode me mandar email em ana@gmail.com"},
        headers=family,
    )
    assert sent.status_code == 201, sent.text
    assert sent.json()["flagged"] is True

    detail = client.get(f"/conversations/{conversation_id}", headers=nanny)
    assert [m["seq"] for m in detail.json()["messages"]] == [1, 2]


def test_free_nanny_waits_for_reply_over_http(client) -> None:
    family = _register(client, "familia2@cuidly.com.br", "FAMILY")
    nanny = _register(client, "baba2@cuidly.com.br", "NANNY")
    job_id = client.post("/jobs", json={"title": "Babá noturna"}, headers=family).json()["id"]
    client.post(f"/jobs/{job_id}/apply", json={"message": "Olá"}, headers=nanny)
    conversation_id = client.get("/conversations", headers=nanny).json()[0]["id"]

    blocked = client.post(f"/conversations/{conversation_id}/messages", json={"body": "Oi?"}, headers=nanny)
    assert blocked.status_code == 403
    assert blocked.json()["code"] == "WAITING_FAMILY_RESPONSE"


def test_support_ticket_admin_reply(client, db) -> None:
    family = make_family(db)
    headers = user_headers(family.user_id)
    ticket = client.post(
        "/support/tickets",
        json={"subject": "Dúvida sobre o plano", "message": "Como cancelo?"},
        headers=headers,
    )
    assert ticket.status_code == 201, ticket.text
    ticket_id = ticket.json()["id"]

    admin = admin_headers(make_admin(db, permissions=[AdminPermission.SUPPORT]))
    empty = client.post(f"/admin/support/tickets/{ticket_id}/reply", json={"message": "  "}, headers=admin)
    assert empty.status_code == 400
    missing = client.post("/admin/support/tickets/nao-existe/reply", json={"message": "Olá"}, headers=admin)
    assert missing.status_code == 404

    replied = client.post(
        f"/admin/support/tickets/{ticket_id}/reply", json={"message": "Pelo menu Assinatura."}, headers=admin
    )
    assert replied.status_code == 200
    assert replied.json()["status"] == "IN_PROGRESS"


def test_admin_permissions_are_enforced(client, db) -> None:
    admin = admin_headers(make_admin(db, permissions=[AdminPermission.CHAT]))
    assert client.get("/admin/support/tickets", headers=admin).status_code == 403
    assert client.get("/admin/admin-users", headers=admin).status_code == 403

    family = make_family(db)
    assert client.get("/admin/support/tickets", headers=user_headers(family.user_id)).status_code == 401


def test_cron_requires_secret(client) -> None:
    assert client.get("/cron/expire-jobs").status_code == 401
    assert client.get("/cron/expire-jobs", headers={"Authorization": "Bearer wrong"}).status_code == 401

    resp = client.get("/cron/expire-jobs", headers=cron_headers())
    assert resp.status_code == 200
    assert resp.json() == {"expired": 0, "jobIds": []}


def test_payment_webhook_requires_token(client) -> None:
    event = {"id": "evt_1", "event": "PAYMENT_CONFIRMED", "payment": {"id": "pay_1"}}

    assert client.post("/webhooks/payment", json=event).status_code == 400
    denied = client.post("/webhooks/payment?gateway=asaas", json=event)
    assert denied.status_code == 401

    accepted = client.post(
        "/webhooks/payment?gateway=asaas",
        json=event,
        headers={"asaas-access-token": "webhook-test-token"},
    )
    assert accepted.status_code == 200
