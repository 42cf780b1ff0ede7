from __future__ import annotations

import logging
from typing import Callable

from sqlalchemy.orm import Session

from app.core.database import utcnow
from app.modules.families.models import Family
from app.modules.nannies.models import Nanny
from app.modules.notifications.email import EmailContent, send_email
from app.modules.notifications.templates import support_reply_email
from app.modules.users.models import User
from .models import SupportTicket, SupportTicketMessage, TicketStatus
from .repository import SupportRepository
from .schemas import TicketCreate


logger = logging.getLogger(__name__)


class SupportService:
    def __init__(
        self,
        db: Session,
        email_sender: Callable[[str, EmailContent], bool] = send_email,
    ):
        self.db = db
        self.repo = SupportRepository(db)
        self.email_sender = email_sender

    def open_ticket(self, user: User, data: TicketCreate, *, family_id: str | None = None,
                    nanny_id: str | None = None) -> SupportTicket:
        ticket = self.repo.add(
            SupportTicket(
                family_id=family_id,
                nanny_id=nanny_id,
                subject=data.subject.strip(),
                category=data.category,
                status=TicketStatus.OPEN,
            )
        )
        self.repo.add_message(SupportTicketMessage(ticket_id=ticket.id, sender_user_id=user.id, body=data.message.strip()))
        logger.info("Support ticket %s opened by user %s", ticket.id, user.id)
        return self.repo.save(ticket)

    def get_own(self, ticket_id: str, *, family_id: str | None = None, nanny_id: str | None = None) -> SupportTicket:
        ticket = self.repo.get(ticket_id)
        owned = ticket is not None and (
            (nanny_id and ticket.nanny_id == nanny_id) or (family_id and ticket.family_id == family_id)
        )
        if not owned:
            raise LookupError("Chamado não encontrado")
        return ticket

    def reply_as_user(self, user: User, ticket_id: str, message: str, *, family_id: str | None = None,
                      nanny_id: str | None = None) -> SupportTicket:
        ticket = self.get_own(ticket_id, family_id=family_id, nanny_id=nanny_id)
        body = message.strip()
        if not body:
            raise ValueError("A mensagem não pode estar vazia")
        if ticket.status == TicketStatus.CLOSED:
            raise ValueError("Este chamado está fechado")
        self.repo.add_message(SupportTicketMessage(ticket_id=ticket.id, sender_user_id=user.id, body=body))
        if ticket.status == TicketStatus.RESOLVED:
            ticket.status = TicketStatus.OPEN
            ticket.resolved_at = None
        ticket.updated_at = utcnow()
        return self.repo.save(ticket)

    # ---- Admin ----
    def get(self, ticket_id: str) -> SupportTicket:
        ticket = self.repo.get(ticket_id)
        if ticket is None:
            raise LookupError("Chamado não encontrado")
        return ticket

    def reply_as_admin(self, admin_id: str, ticket_id: str, message: str) -> SupportTicket:
        body = (message or "").strip()
        if not body:
            raise ValueError("A mensagem não pode estar vazia")
        ticket = self.get(ticket_id)

        self.repo.add_message(SupportTicketMessage(ticket_id=ticket.id, sender_admin_id=admin_id, body=body))
        if ticket.status == TicketStatus.OPEN:
            ticket.status = TicketStatus.IN_PROGRESS
        ticket.updated_at = utcnow()
        ticket = self.repo.save(ticket)
        self._notify_reply(ticket, body)
        return ticket

    def _notify_reply(self, ticket: SupportTicket, body: str) -> bool:
        profile = self.db.get(Nanny, ticket.nanny_id) if ticket.nanny_id else self.db.get(Family, ticket.family_id)
        user = self.db.get(User, profile.user_id) if profile else None
        if user is None:
            logger.warning("Support ticket %s has no reachable owner", ticket.id)
            return False
        name = profile.name or user.full_name or "usuário"
        content = support_reply_email(name, ticket.id, ticket.subject, body)
        return self.email_sender(user.email, content)

    def set_status(self, ticket_id: str, status: str) -> SupportTicket:
        if status not in TicketStatus.ALL:
            raise ValueError("Status inválido")
        ticket = self.get(ticket_id)
        ticket.status = status
        ticket.resolved_at = utcnow() if status == TicketStatus.RESOLVED else None
        logger.info("Support ticket %s moved to %s", ticket.id, status)
        return self.repo.save(ticket)
