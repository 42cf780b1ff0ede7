"""Family and nanny conversations.

Every message body goes through contact detection; messages that leak
phones, e-mails or social handles are kept but flagged for moderation.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from app.core.database import utcnow
from app.core.errors import SubscriptionRequiredError
from app.modules.audit.service import AuditService
from app.modules.families.models import Family
from app.modules.nannies.models import Nanny
from app.modules.subscriptions.service import SubscriptionService
from .models import Conversation, Message, SenderType
from .moderation import detect_contact_info
from .repository import ChatRepository


logger = logging.getLogger(__name__)


class ChatService:
    def __init__(self, db: Session, audit: AuditService | None = None):
        self.db = db
        self.repo = ChatRepository(db)
        self.subscriptions = SubscriptionService(db)
        self.audit = audit

    def _participant(self, conversation: Conversation, *, family_id: str | None, nanny_id: str | None) -> str:
        if family_id and conversation.family_id == family_id:
            return SenderType.FAMILY
        if nanny_id and conversation.nanny_id == nanny_id:
            return SenderType.NANNY
        raise LookupError("Conversa não encontrada")

    def get_conversation(
        self, conversation_id: str, *, family_id: str | None = None, nanny_id: str | None = None
    ) -> Conversation:
        conversation = self.repo.get_conversation(conversation_id)
        if conversation is None:
            raise LookupError("Conversa não encontrada")
        self._participant(conversation, family_id=family_id, nanny_id=nanny_id)
        return conversation

    def list_conversations(self, *, family_id: str | None = None, nanny_id: str | None = None) -> list[Conversation]:
        return list(self.repo.list_conversations(family_id=family_id, nanny_id=nanny_id))

    def start_by_family(
        self, family_id: str, nanny_id: str, *, job_id: str | None = None, message: str | None = None
    ) -> Conversation:
        if self.db.get(Nanny, nanny_id) is None:
            raise LookupError("Babá não encontrada")
        existing = self.repo.get_for_pair(family_id, nanny_id)
        if existing is None:
            if job_id:
                check = self.subscriptions.can_start_conversation_for_job(family_id, job_id, nanny_id)
            else:
                check = self.subscriptions.can_start_conversation(family_id, nanny_id)
            if not check.can_start and not self.subscriptions.can_contact_nanny(family_id=family_id):
                raise SubscriptionRequiredError(
                    check.reason or "Seu plano não permite iniciar conversas",
                    code=check.code or "CONVERSATION_LIMIT_REACHED",
                    details={
                        "conversationsUsed": check.conversations_used,
                        "conversationLimit": check.conversation_limit,
                    },
                )
        conversation = existing or self.repo.add_conversation(
            Conversation(family_id=family_id, nanny_id=nanny_id, job_id=job_id, started_by=SenderType.FAMILY)
        )
        if message:
            self._append(conversation, SenderType.FAMILY, message)
        self.db.commit()
        self.db.refresh(conversation)
        return conversation

    def start_by_application(
        self, nanny_id: str, family_id: str, job_id: str, message: str | None = None, *, commit: bool = True
    ) -> Conversation:
        """Open (or reuse) the conversation created when a nanny applies to a job."""
        conversation = self.repo.get_for_pair(family_id, nanny_id)
        if conversation is None:
            conversation = self.repo.add_conversation(
                Conversation(family_id=family_id, nanny_id=nanny_id, job_id=job_id, started_by=SenderType.NANNY)
            )
        if message:
            self._append(conversation, SenderType.NANNY, message)
        if commit:
            self.db.commit()
        return conversation

    def send_message(
        self, conversation_id: str, body: str, *, family_id: str | None = None, nanny_id: str | None = None
    ) -> Message:
        conversation = self.repo.get_conversation(conversation_id)
        if conversation is None:
            raise LookupError("Conversa não encontrada")
        sender = self._participant(conversation, family_id=family_id, nanny_id=nanny_id)
        if not body.strip():
            raise ValueError("A mensagem não pode estar vazia")

        if sender == SenderType.NANNY:
            check = self.subscriptions.can_nanny_send_message(nanny_id, conversation.id)
            if not check.can_send:
                raise SubscriptionRequiredError(check.reason or "Envio indisponível", code=check.code or "MESSAGE_BLOCKED")

        message = self._append(conversation, sender, body)
        self.db.commit()
        self.db.refresh(message)
        return message

    def _append(self, conversation: Conversation, sender: str, body: str) -> Message:
        detection = detect_contact_info(body)
        if detection.has_contact:
            logger.info("Message in conversation %s flagged: %s", conversation.id, detection.warnings)
        message = Message(
            conversation_id=conversation.id,
            seq=self.repo.next_seq(conversation.id),
            sender_type=sender,
            sender_family_id=conversation.family_id if sender == SenderType.FAMILY else None,
            sender_nanny_id=conversation.nanny_id if sender == SenderType.NANNY else None,
            body=body.strip(),
            flagged=detection.has_contact,
            moderation_warnings=list(detection.warnings),
        )
        self.repo.add_message(message)
        conversation.last_message_at = message.created_at or utcnow()
        return message

    def list_messages(
        self,
        conversation_id: str,
        *,
        family_id: str | None = None,
        nanny_id: str | None = None,
        after_seq: int | None = None,
    ) -> list[Message]:
        conversation = self.get_conversation(conversation_id, family_id=family_id, nanny_id=nanny_id)
        return list(self.repo.list_messages(conversation.id, after_seq=after_seq))

    # ---- Admin ----
    def admin_view(self, conversation_id: str, viewer_email: str) -> dict[str, Any]:
        conversation = self.repo.get_conversation(conversation_id)
        if conversation is None:
            raise LookupError("Conversa não encontrada")
        family = self.db.get(Family, conversation.family_id)
        nanny = self.db.get(Nanny, conversation.nanny_id)
        participants = [
            {"type": SenderType.FAMILY, "id": conversation.family_id, "name": family.name if family else None},
            {"type": SenderType.NANNY, "id": conversation.nanny_id, "name": nanny.name if nanny else None},
        ]
        if self.audit:
            self.audit.log_conversation_view(conversation.id, viewer_email, participants)
        return {
            "conversation": conversation,
            "participants": participants,
            "messages": list(self.repo.list_messages(conversation.id, include_deleted=True)),
        }

    def delete_message(self, message_id: str, deleter_email: str, reason: str | None = None) -> Message:
        message = self.repo.get_message(message_id)
        if message is None or message.deleted_at is not None:
            raise LookupError("Mensagem não encontrada")
        message.deleted_at = utcnow()
        self.db.commit()
        if self.audit:
            self.audit.log_message_delete(message.id, message.conversation_id, message.body, deleter_email, reason)
        logger.info("Message %s deleted by %s", message.id, deleter_email)
        return message
