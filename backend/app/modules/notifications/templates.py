"""Transactional e-mail bodies (Portuguese)."""

from __future__ import annotations

from datetime import datetime
from html import escape

from app.core.config import settings
from app.core.formatting import format_brl
from .email import EmailContent


SUPPORT_PREVIEW_LENGTH = 300


def _layout(title: str, paragraphs: list[str], cta: tuple[str, str] | None = None) -> str:
    body = "".join(f"<p>{p}</p>" for p in paragraphs)
    if cta:
        label, url = cta
        body += (
            f'<p><a href="{escape(url)}" style="background:#7c3aed;color:#fff;'
            f'padding:12px 24px;border-radius:6px;text-decoration:none">{escape(label)}</a></p>'
        )
    return (
        '<div style="font-family:Arial,sans-serif;max-width:600px;margin:0 auto">'
        f"<h2>{escape(title)}</h2>{body}"
        "<p>Equipe Cuidly</p></div>"
    )


def _text(paragraphs: list[str], cta: tuple[str, str] | None = None) -> str:
    lines = list(paragraphs)
    if cta:
        lines.append(f"{cta[0]}: {cta[1]}")
    lines.append("Equipe Cuidly")
    return "\n\n".join(lines)


def _date(value: datetime | None) -> str:
    return value.strftime("%d/%m/%Y") if value else ""


def first_name(full_name: str | None) -> str:
    if not full_name:
        return ""
    return full_name.strip().split(" ")[0]


def welcome_subscription_email(name: str, plan_name: str, period_end: datetime | None) -> EmailContent:
    greeting = f"Olá, {escape(name)}!" if name else "Olá!"
    paragraphs = [
        greeting,
        f"Sua assinatura do plano <strong>{escape(plan_name)}</strong> está ativa.",
        f"Seu período atual vai até {_date(period_end)}.",
    ]
    cta = ("Acessar a Cuidly", f"{settings.APP_BASE_URL}/app")
    return EmailContent(
        subject=f"Bem-vinda ao {plan_name}!",
        html=_layout("Assinatura ativada", paragraphs, cta),
        text=_text([p.replace("<strong>", "").replace("</strong>", "") for p in paragraphs], cta),
    )


def renewal_email(name: str, plan_name: str, amount: float, period_end: datetime | None) -> EmailContent:
    paragraphs = [
        f"Olá, {escape(name)}!",
        f"Sua assinatura do plano {escape(plan_name)} foi renovada no valor de {format_brl(amount)}.",
        f"Próxima renovação em {_date(period_end)}.",
    ]
    return EmailContent(
        subject=f"Assinatura renovada - {plan_name}",
        html=_layout("Assinatura renovada", paragraphs),
        text=_text(paragraphs),
    )


def payment_receipt_email(
    name: str,
    plan_name: str,
    amount: float,
    paid_at: datetime | None,
    payment_method: str | None = None,
    invoice_url: str | None = None,
) -> EmailContent:
    paragraphs = [
        f"Olá, {escape(name)}!",
        f"Recebemos seu pagamento de {format_brl(amount)} referente ao plano {escape(plan_name)}.",
        f"Data do pagamento: {_date(paid_at)}.",
    ]
    if payment_method:
        paragraphs.append(f"Forma de pagamento: {escape(payment_method)}.")
    cta = ("Ver fatura", invoice_url) if invoice_url else None
    return EmailContent(
        subject=f"Recibo de pagamento - {plan_name}",
        html=_layout("Pagamento confirmado", paragraphs, cta),
        text=_text(paragraphs, cta),
    )


def payment_failed_email(name: str, plan_name: str, amount: float, invoice_url: str | None = None) -> EmailContent:
    paragraphs = [
        f"Olá, {escape(name)}!",
        f"Não conseguimos confirmar o pagamento de {format_brl(amount)} do plano {escape(plan_name)}.",
        "Regularize o pagamento para continuar aproveitando todos os recursos.",
    ]
    cta = ("Pagar agora", invoice_url or f"{settings.APP_BASE_URL}/app/assinatura")
    return EmailContent(
        subject="Problema com seu pagamento - Cuidly",
        html=_layout("Pagamento pendente", paragraphs, cta),
        text=_text(paragraphs, cta),
    )


def cancellation_email(name: str, plan_name: str, access_until: datetime | None) -> EmailContent:
    paragraphs = [
        f"Olá, {escape(name)}!",
        f"Confirmamos o cancelamento da sua assinatura do plano {escape(plan_name)}.",
        f"Você continua com acesso aos recursos até {_date(access_until)}.",
        "Mudou de ideia? Você pode reverter o cancelamento antes dessa data.",
    ]
    cta = ("Gerenciar assinatura", f"{settings.APP_BASE_URL}/app/assinatura")
    return EmailContent(
        subject="Cancelamento confirmado - Cuidly",
        html=_layout("Assinatura cancelada", paragraphs, cta),
        text=_text(paragraphs, cta),
    )


def support_reply_email(name: str, ticket_id: str, ticket_subject: str, reply: str) -> EmailContent:
    preview = reply
    if len(preview) > SUPPORT_PREVIEW_LENGTH:
        preview = preview[:SUPPORT_PREVIEW_LENGTH] + "..."
    paragraphs = [
        f'Olá, {escape(name)}! Sua solicitação sobre "{escape(ticket_subject)}" recebeu uma resposta.',
        f"<em>{escape(preview)}</em>",
    ]
    cta = ("Ver chamado", f"{settings.APP_BASE_URL}/app/suporte/chamados/{ticket_id}")
    return EmailContent(
        subject=f"Resposta ao seu chamado: {ticket_subject}",
        html=_layout("Nova resposta do suporte", paragraphs, cta),
        text=_text(
            [f'Olá, {name}! Sua solicitação sobre "{ticket_subject}" recebeu uma resposta.', preview], cta
        ),
    )


def review_published_email(name: str, reviewer_name: str, rating: int) -> EmailContent:
    paragraphs = [
        f"Olá, {escape(name)}!",
        f"{escape(reviewer_name)} avaliou você com {rating} de 5 estrelas.",
        "A avaliação já está visível no seu perfil.",
    ]
    cta = ("Ver avaliação", f"{settings.APP_BASE_URL}/app/avaliacoes")
    return EmailContent(
        subject="Você recebeu uma nova avaliação - Cuidly",
        html=_layout("Nova avaliação publicada", paragraphs, cta),
        text=_text(paragraphs, cta),
    )
