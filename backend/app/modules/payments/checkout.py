"""Paid-plan checkout.

Trial coupons activate a ``TRIALING`` subscription without touching the
gateway. Every other checkout makes sure the user has a gateway customer,
creates the recurring charge for the chosen method and stores the
subscription with the external ids so the webhook can find it later.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Callable

from sqlalchemy.orm import Session

from app.core.database import utcnow
from app.modules.coupons.service import CouponsService, CouponValidation
from app.modules.families.repository import FamiliesRepository
from app.modules.nannies.repository import NanniesRepository
from app.modules.notifications import templates
from app.modules.notifications.email import EmailContent, send_email
from app.modules.subscriptions.models import PaymentGatewayName, Subscription, SubscriptionStatus
from app.modules.subscriptions.plans import (
    calculate_period_end,
    get_billing_interval_display_name,
    get_plan_display_name,
    is_family_plan,
    is_free_plan,
    is_nanny_plan,
)
from app.modules.subscriptions.pricing import get_plan_price, is_valid_billing_interval
from app.modules.subscriptions.repository import SubscriptionsRepository
from app.modules.users.models import User
from .gateway import CreditCard, CreditCardHolder, CustomerInput, PaymentGateway, get_payment_gateway
from .models import Payment, PaymentMethod, PaymentStatus
from .repository import PaymentsRepository
from .schemas import CheckoutRequest


logger = logging.getLogger(__name__)

DEFAULT_PHONE = "11999999999"


class CheckoutService:
    def __init__(
        self,
        db: Session,
        gateway: PaymentGateway | None = None,
        email_sender: Callable[[str, EmailContent], bool] = send_email,
    ):
        self.db = db
        self._gateway = gateway
        self.subscriptions = SubscriptionsRepository(db)
        self.payments = PaymentsRepository(db)
        self.coupons = CouponsService(db)
        self.send_email = email_sender

    @property
    def gateway(self) -> PaymentGateway:
        if self._gateway is None:
            self._gateway = get_payment_gateway(PaymentGatewayName.ASAAS)
        return self._gateway

    def _profile(self, user: User):
        if user.is_nanny:
            return NanniesRepository(self.db).get_by_user_id(user.id)
        return FamiliesRepository(self.db).get_by_user_id(user.id)

    def _validate_plan(self, user: User, data: CheckoutRequest) -> None:
        if is_free_plan(data.plan):
            raise ValueError("Plano inválido para assinatura")
        if user.is_family and not is_family_plan(data.plan):
            raise ValueError("Este plano não está disponível para famílias")
        if user.is_nanny and not is_nanny_plan(data.plan):
            raise ValueError("Este plano não está disponível para babás")
        if not is_valid_billing_interval(data.plan, data.billing_interval):
            raise ValueError("Periodicidade inválida para este plano")

    def _ensure_customer(self, user: User, profile: Any, subscription: Subscription) -> str:
        if subscription.external_customer_id:
            return subscription.external_customer_id
        result = self.gateway.create_customer(
            CustomerInput(
                user_id=user.id,
                name=profile.name,
                email=user.email,
                user_type="nanny" if user.is_nanny else "family",
                cpf_cnpj=profile.cpf,
                phone=profile.phone,
            )
        )
        if not result.success:
            raise ValueError(result.error or "Erro ao criar cliente no gateway")
        subscription.external_customer_id = result.data.get("externalCustomerId")
        subscription.payment_gateway = PaymentGatewayName.ASAAS
        return subscription.external_customer_id

    def checkout(self, user: User, data: CheckoutRequest) -> dict[str, Any]:
        self._validate_plan(user, data)
        profile = self._profile(user)
        if profile is None:
            raise LookupError("Perfil não encontrado")
        owner = {"nanny_id": profile.id} if user.is_nanny else {"family_id": profile.id}
        subscription = self.subscriptions.get_for(**owner)
        if subscription is None:
            subscription = Subscription(plan=data.plan, **owner)
            self.db.add(subscription)

        price = get_plan_price(data.plan, data.billing_interval) or 0.0
        validation: CouponValidation | None = None
        if data.coupon_code:
            validation = self.coupons.validate(
                data.coupon_code,
                plan=data.plan,
                billing_interval=data.billing_interval,
                user_role=user.role,
                user_email=user.email,
                amount=price,
            )
            if not validation.is_valid:
                raise ValueError(validation.message)

        if validation is not None and validation.is_free_trial:
            return self._start_trial(user, profile, subscription, data, validation)

        if not profile.name:
            raise ValueError("Complete seu perfil antes de assinar. O nome é obrigatório.")
        if not profile.cpf:
            raise ValueError("Complete seu perfil antes de assinar. O CPF é obrigatório.")

        final_amount = validation.final_amount if validation else price
        customer_id = self._ensure_customer(user, profile, subscription)
        description = f"Assinatura {get_plan_display_name(data.plan)} - {get_billing_interval_display_name(data.billing_interval)}"

        response: dict[str, Any] = {
            "payment_method": data.payment_method,
            "discount_amount": validation.discount_amount if validation else 0.0,
            "final_amount": final_amount,
        }
        payment: Payment | None = None
        now = utcnow()

        if data.payment_method == PaymentMethod.CREDIT_CARD:
            card = data.credit_card
            holder_name = data.card_holder.name if data.card_holder else profile.name
            result = self.gateway.create_subscription_with_card(
                customer_id=customer_id,
                billing_interval=data.billing_interval,
                value=final_amount,
                card=CreditCard(
                    holder_name=card.holder_name or holder_name,
                    number=card.number,
                    expiry_month=card.expiry_month,
                    expiry_year=card.expiry_year,
                    ccv=card.ccv,
                ),
                holder=CreditCardHolder(
                    name=holder_name,
                    email=user.email,
                    cpf_cnpj=data.card_holder.cpf_cnpj if data.card_holder else profile.cpf,
                    postal_code=profile.cep or "",
                    address_number=getattr(profile, "number", None) or "S/N",
                    phone=profile.phone or DEFAULT_PHONE,
                    mobile_phone=profile.phone or DEFAULT_PHONE,
                ),
                description=description,
            )
            if not result.success:
                raise ValueError(result.error or "Erro ao processar pagamento")
            subscription.status = SubscriptionStatus.ACTIVE
            subscription.external_subscription_id = result.data.get("externalSubscriptionId")
            first = self.gateway.get_subscription_payments(subscription.external_subscription_id)
            items = (first.data.get("data") or []) if first.success else []
            payment = Payment(
                amount=final_amount,
                status=PaymentStatus.CONFIRMED,
                payment_method=PaymentMethod.CREDIT_CARD,
                payment_gateway=PaymentGatewayName.ASAAS,
                external_payment_id=items[0].get("id") if items else None,
                description=description,
                paid_at=now,
                payment_metadata={"cardLastDigits": card.number[-4:]},
            )
            response["message"] = "Assinatura ativada com sucesso!"

        elif data.payment_method == PaymentMethod.PIX:
            result = self.gateway.create_pix_subscription(
                customer_id=customer_id,
                billing_interval=data.billing_interval,
                value=final_amount,
                description=description,
            )
            if not result.success:
                raise ValueError(result.error or "Erro ao gerar cobrança PIX")
            subscription.status = SubscriptionStatus.INCOMPLETE
            subscription.external_subscription_id = result.data.get("externalSubscriptionId")
            qr_code = result.data.get("pixQrCode") or {}
            payment = Payment(
                amount=final_amount,
                status=PaymentStatus.PENDING,
                payment_method=PaymentMethod.PIX,
                payment_gateway=PaymentGatewayName.ASAAS,
                external_payment_id=result.data.get("externalPaymentId"),
                description=description,
                payment_metadata={
                    "pixQrCode": qr_code.get("encodedImage"),
                    "pixCopyPaste": qr_code.get("payload"),
                    "pixExpiresAt": qr_code.get("expirationDate"),
                },
            )
            response["pix_qr_code"] = qr_code
            response["message"] = "Pague o PIX para ativar sua assinatura"

        else:
            result = self.gateway.create_subscription(
                customer_id=customer_id,
                plan=data.plan,
                billing_interval=data.billing_interval,
                billing_type=data.payment_method,
                value=final_amount,
            )
            if not result.success:
                raise ValueError(result.error or "Erro ao criar assinatura")
            subscription.status = SubscriptionStatus.INCOMPLETE
            subscription.external_subscription_id = result.data.get("externalSubscriptionId")
            link = self.gateway.create_payment_link(subscription.external_subscription_id)
            response["checkout_url"] = link.data.get("checkoutUrl") if link.success else None
            response["message"] = "Conclua o pagamento para ativar sua assinatura"

        subscription.plan = data.plan
        subscription.billing_interval = data.billing_interval
        subscription.payment_gateway = PaymentGatewayName.ASAAS
        subscription.current_period_start = now
        subscription.current_period_end = calculate_period_end(now, data.billing_interval)
        subscription.cancel_at_period_end = False
        subscription.canceled_at = None
        self.db.flush()

        if payment is not None:
            payment.subscription_id = subscription.id
            self.payments.add(payment)
            response["payment_id"] = payment.id
        if validation is not None and validation.discount_amount:
            self.coupons.apply(
                validation,
                user_id=user.id,
                email=user.email,
                plan=data.plan,
                billing_interval=data.billing_interval,
                subscription_id=subscription.id,
            )
        self.db.commit()
        logger.info(
            "Checkout %s for user %s: plan=%s status=%s", data.payment_method, user.id, data.plan, subscription.status
        )

        if subscription.status == SubscriptionStatus.ACTIVE:
            plan_name = get_plan_display_name(data.plan)
            self.send_email(
                user.email,
                templates.welcome_subscription_email(
                    templates.first_name(profile.name), plan_name, subscription.current_period_end
                ),
            )

        response.update({"subscription_id": subscription.id, "status": subscription.status})
        return response

    def _start_trial(
        self,
        user: User,
        profile: Any,
        subscription: Subscription,
        data: CheckoutRequest,
        validation: CouponValidation,
    ) -> dict[str, Any]:
        now = utcnow()
        trial_days = validation.trial_days or 0
        trial_end = now + timedelta(days=trial_days)
        subscription.plan = data.plan
        subscription.billing_interval = data.billing_interval
        subscription.status = SubscriptionStatus.TRIALING
        subscription.current_period_start = now
        subscription.current_period_end = trial_end
        subscription.cancel_at_period_end = False
        subscription.canceled_at = None
        self.db.flush()
        self.coupons.apply(
            validation,
            user_id=user.id,
            email=user.email,
            plan=data.plan,
            billing_interval=data.billing_interval,
            subscription_id=subscription.id,
        )
        self.db.commit()
        logger.info("Trial of %s days started for user %s on %s", trial_days, user.id, data.plan)

        self.send_email(
            user.email,
            templates.welcome_subscription_email(
                templates.first_name(profile.name or user.full_name), get_plan_display_name(data.plan), trial_end
            ),
        )
        return {
            "subscription_id": subscription.id,
            "status": SubscriptionStatus.TRIALING,
            "payment_method": data.payment_method,
            "trial_days": trial_days,
            "trial_end_date": trial_end,
            "discount_amount": validation.discount_amount or 0.0,
            "final_amount": 0.0,
            "message": f"Período de teste de {trial_days} dias ativado!",
        }
