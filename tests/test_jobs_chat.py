from __future__ import annotations

from datetime import timedelta

import pytest

from app.core.database import as_utc, utcnow
from app.core.errors import SubscriptionRequiredError
from app.modules.chat.models import SenderType
from app.modules.chat.service import ChatService
from app.modules.jobs.models import ApplicationStatus, Job, JobStatus
from app.modules.jobs.repository import JobsRepository
from app.modules.jobs.schemas import JobCreate, JobUpdate
from app.modules.jobs.service import JobsService
from app.modules.subscriptions.models import Boost, BoostType
from app.modules.subscriptions.plans import SubscriptionPlan
from app.modules.subscriptions.service import SubscriptionService
from factories import make_child, make_family, make_nanny


def _job(**fields) -> JobCreate:
    data = {"title": "Babá para as manhãs"}
    data.update(fields)
    return JobCreate(**data)


def test_free_family_job_limit_and_expiration(db) -> None:
    family = make_family(db)
    svc = JobsService(db)

    job = svc.create(family, _job())
    assert job.status == JobStatus.ACTIVE
    assert as_utc(job.expires_at) - as_utc(job.created_at) == timedelta(days=7)

    with pytest.raises(SubscriptionRequiredError) as exc:
        svc.create(family, _job(title="Segunda vaga"))
    assert exc.value.code == "JOB_LIMIT_REACHED"
    assert "1 vaga(s)" in exc.value.message


def test_closing_a_job_frees_the_slot(db) -> None:
    family = make_family(db)
    svc = JobsService(db)
    job = svc.create(family, _job())
    svc.close(family, job.id)

    assert svc.create(family, _job(title="Outra vaga")).status == JobStatus.ACTIVE


def test_plus_family_gets_thirty_day_jobs(db) -> None:
    family = make_family(db, plan=SubscriptionPlan.FAMILY_PLUS)
    job = JobsService(db).create(family, _job())
    assert as_utc(job.expires_at) - as_utc(job.created_at) == timedelta(days=30)


def test_job_children_must_belong_to_family(db) -> None:
    family = make_family(db)
    other = make_family(db)
    stranger = make_child(db, other, name="Lia")
    with pytest.raises(ValueError, match="Criança não pertence"):
        JobsService(db).create(family, _job(children_ids=[stranger.id]))


def test_schedule_validation() -> None:
    with pytest.raises(ValueError):
        _job(schedule={"monday": {"startTime": "12:00", "endTime": "08:00"}})
    with pytest.raises(ValueError):
        _job(schedule={"funday": {"startTime": "08:00", "endTime": "12:00"}})
    job = _job(schedule={"monday": {"startTime": "08:00", "endTime": "12:00"}})
    assert job.schedule["monday"].enabled


def test_expired_job_is_marked_on_read(db) -> None:
    family = make_family(db)
    svc = JobsService(db)
    job = svc.create(family, _job())
    job.expires_at = utcnow() - timedelta(minutes=1)
    db.commit()

    assert svc.get(job.id).status == JobStatus.EXPIRED
    with pytest.raises(ValueError):
        svc.update(family, job.id, JobUpdate(title="Novo título"))


def test_expire_jobs_cron(db) -> None:
    family = make_family(db, plan=SubscriptionPlan.FAMILY_PLUS)
    svc = JobsService(db)
    due = svc.create(family, _job(title="Vencida"))
    fresh = svc.create(family, _job(title="Vigente"))
    due.expires_at = utcnow() - timedelta(days=1)
    db.commit()

    result = svc.expire_jobs()

    assert result == {"expired": 1, "jobIds": [due.id]}
    db.refresh(fresh)
    assert fresh.status == JobStatus.ACTIVE


def test_other_family_cannot_see_job(db) -> None:
    family = make_family(db)
    other = make_family(db)
    job = JobsService(db).create(family, _job())
    with pytest.raises(LookupError):
        JobsService(db).get(job.id, family_id=other.id)


def test_apply_opens_conversation(db) -> None:
    family = make_family(db)
    nanny = make_nanny(db)
    svc = JobsService(db)
    job = svc.create(family, _job())

    application = svc.apply(nanny, job.id, "Olá! Tenho interesse na vaga.")

    assert application.status == ApplicationStatus.PENDING
    conversations = ChatService(db).list_conversations(family_id=family.id)
    assert len(conversations) == 1
    assert conversations[0].started_by == SenderType.NANNY
    messages = ChatService(db).list_messages(conversations[0].id, nanny_id=nanny.id)
    assert [m.body for m in messages] == ["Olá! Tenho interesse na vaga."]

    with pytest.raises(ValueError, match="já se candidatou"):
        svc.apply(nanny, job.id)


def test_withdraw_and_reapply(db) -> None:
    family = make_family(db)
    nanny = make_nanny(db)
    svc = JobsService(db)
    job = svc.create(family, _job())
    application = svc.apply(nanny, job.id)

    svc.withdraw(nanny, application.id)
    assert svc.list_applications(family, job.id) == []

    again = svc.apply(nanny, job.id)
    assert again.id == application.id
    assert again.status == ApplicationStatus.PENDING


def test_decide_application(db) -> None:
    family = make_family(db)
    nanny = make_nanny(db)
    svc = JobsService(db)
    job = svc.create(family, _job())
    application = svc.apply(nanny, job.id)

    assert svc.decide(family, application.id, accept=True).status == ApplicationStatus.ACCEPTED
    with pytest.raises(ValueError):
        svc.decide(family, application.id, accept=False)


def test_cannot_apply_to_closed_job(db) -> None:
    family = make_family(db)
    nanny = make_nanny(db)
    svc = JobsService(db)
    job = svc.create(family, _job())
    svc.close(family, job.id)
    with pytest.raises(ValueError, match="não está mais aberta"):
        svc.apply(nanny, job.id)


def test_boosted_jobs_come_first(db) -> None:
    plus = make_family(db, plan=SubscriptionPlan.FAMILY_PLUS)
    free = make_family(db)
    svc = JobsService(db)
    boosted = svc.create(plus, _job(title="Vaga destacada"))
    newer = svc.create(free, _job(title="Vaga recente"))

    svc.boost(plus, boosted.id)
    listed = svc.list_open()

    assert [item["job"].id for item in listed] == [boosted.id, newer.id]
    assert listed[0]["boosted"] is True
    with pytest.raises(ValueError):
        svc.boost(plus, boosted.id)


def test_old_boosted_job_stays_in_open_listing(db) -> None:
    family = make_family(db, plan=SubscriptionPlan.FAMILY_PLUS)
    now = utcnow()
    old = Job(family_id=family.id, title="Vaga antiga", created_at=now - timedelta(days=5))
    db.add(old)
    db.flush()
    for day in range(3):
        db.add(Job(family_id=family.id, title=f"Vaga {day}", created_at=now - timedelta(days=day)))
    db.add(
        Boost(
            type=BoostType.JOB,
            job_id=old.id,
            family_id=family.id,
            start_date=now - timedelta(hours=1),
            end_date=now + timedelta(days=6),
        )
    )
    db.commit()

    listed = JobsRepository(db).list_open(now, limit=2)

    assert listed[0].id == old.id
    assert listed[1].title == "Vaga 0"


def test_expiration_info_keeps_deadline_after_upgrade(db) -> None:
    family = make_family(db)
    svc = JobsService(db)
    job = svc.create(family, _job())
    job.created_at = utcnow() - timedelta(days=8)
    job.expires_at = job.created_at + timedelta(days=7)
    SubscriptionService(db).get_subscription(family_id=family.id).plan = SubscriptionPlan.FAMILY_PLUS
    db.commit()

    info = svc.expiration_info(family, job.id)

    assert info.is_expired
    assert info.days_remaining == 0
    assert info.reason == (
        "Esta vaga expirou. Vagas do plano gratuito duram 7 dias. Assine o Plus para vagas sem expiração."
    )


def test_expiration_info_counts_remaining_days(db) -> None:
    family = make_family(db)
    svc = JobsService(db)
    job = svc.create(family, _job())

    info = svc.expiration_info(family, job.id)

    assert info.expires
    assert not info.is_expired
    assert info.days_remaining == 7
    assert info.reason is None


def test_free_family_conversation_limit(db) -> None:
    family = make_family(db)
    first = make_nanny(db)
    second = make_nanny(db)
    chat = ChatService(db)

    chat.start_by_family(family.id, first.id, message="Olá, tudo bem?")
    again = chat.start_by_family(family.id, first.id, message="Ainda tem disponibilidade?")
    assert len(chat.list_messages(again.id, family_id=family.id)) == 2

    with pytest.raises(SubscriptionRequiredError) as exc:
        chat.start_by_family(family.id, second.id)
    assert exc.value.code == "CONVERSATION_LIMIT_REACHED"


def test_plus_family_has_unlimited_conversations(db) -> None:
    family = make_family(db, plan=SubscriptionPlan.FAMILY_PLUS)
    chat = ChatService(db)
    for _ in range(3):
        chat.start_by_family(family.id, make_nanny(db).id)
    assert len(chat.list_conversations(family_id=family.id)) == 3


def test_free_nanny_waits_for_family_reply(db) -> None:
    family = make_family(db)
    nanny = make_nanny(db)
    chat = ChatService(db)
    conversation = chat.start_by_application(nanny.id, family.id, None, "Olá, vi sua vaga")

    with pytest.raises(SubscriptionRequiredError) as exc:
        chat.send_message(conversation.id, "Conseguiu ver?", nanny_id=nanny.id)
    assert exc.value.code == "WAITING_FAMILY_RESPONSE"

    chat.send_message(conversation.id, "Vi sim, obrigada!", family_id=family.id)
    message = chat.send_message(conversation.id, "Que ótimo!", nanny_id=nanny.id)
    assert message.seq == 3


def test_pro_nanny_messages_freely(db) -> None:
    family = make_family(db)
    nanny = make_nanny(db, plan=SubscriptionPlan.NANNY_PRO)
    chat = ChatService(db)
    conversation = chat.start_by_application(nanny.id, family.id, None, "Olá")

    chat.send_message(conversation.id, "Posso começar segunda", nanny_id=nanny.id)
    assert len(chat.list_messages(conversation.id, family_id=family.id)) == 2


def test_message_with_contact_is_flagged(db) -> None:
    family = make_family(db)
    nanny = make_nanny(db)
    chat = ChatService(db)
    conversation = chat.start_by_family(family.id, nanny.id)

    message = chat.send_message(conversation.id, "Me chama no 11 98765-4321", family_id=family.id)

    assert message.flagged
    assert message.moderation_warnings
    assert message.body == "Me chama no 11 98765-4321"


def test_outsider_cannot_read_conversation(db) -> None:
    family = make_family(db)
    nanny = make_nanny(db)
    outsider = make_nanny(db)
    chat = ChatService(db)
    conversation = chat.start_by_family(family.id, nanny.id)

    with pytest.raises(LookupError):
        chat.send_message(conversation.id, "Oi", nanny_id=outsider.id)
    with pytest.raises(ValueError):
        chat.send_message(conversation.id, "   ", family_id=family.id)


def test_deleted_messages_are_hidden_from_participants(db) -> None:
    family = make_family(db)
    nanny = make_nanny(db)
    chat = ChatService(db)
    conversation = chat.start_by_family(family.id, nanny.id, message="Olá")
    message = chat.list_messages(conversation.id, family_id=family.id)[0]

    chat.delete_message(message.id, "moderacao@cuidly.com", "Conteúdo impróprio")

    assert chat.list_messages(conversation.id, family_id=family.id) == []
    assert len(chat.admin_view(conversation.id, "moderacao@cuidly.com")["messages"]) == 1
    with pytest.raises(LookupError):
        chat.delete_message(message.id, "moderacao@cuidly.com")


def test_application_notifies_family_on_whatsapp(db) -> None:
    sent: list[tuple[str | None, str]] = []
    family = make_family(db, phone="(11) 98765-4321")
    nanny = make_nanny(db, name="Joana")
    svc = JobsService(db, whatsapp_sender=lambda phone, body: sent.append((phone, body)) or True)
    job = svc.create(family, _job())

    svc.apply(nanny, job.id)

    assert sent == [
        (
            "(11) 98765-4321",
            'Cuidly: Joana se candidatou à sua vaga "Babá para as manhãs". Abra o app para ver o perfil e responder.',
        )
    ]
