import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Awaitable, Callable

from app.application.interfaces.booking_repo import BookingRepo
from app.application.interfaces.clock import Clock
from app.application.interfaces.notifier import Notifier
from app.application.interfaces.payment_repo import PaymentRepo
from app.application.interfaces.stripe_gateway import StripeGateway
from app.application.interfaces.subscription_repo import SubscriptionRepo
from app.application.interfaces.transaction_manager import TransactionManager
from app.application.interfaces.webhook_event_repo import WebhookEventRepo
from app.domain.entities.payment import PaymentStatus
from app.domain.entities.subscription import Subscription, SubscriptionTier
from app.domain.errors import InvalidInputError, InvalidSignatureError, WebhookProcessingError

SUBSCRIPTION_CREATED = "customer.subscription.created"
SUBSCRIPTION_UPDATED = "customer.subscription.updated"
SUBSCRIPTION_DELETED = "customer.subscription.deleted"
SUBSCRIPTION_TRIAL_WILL_END = "customer.subscription.trial_will_end"
INVOICE_PAYMENT_SUCCEEDED = "invoice.payment_succeeded"
INVOICE_PAYMENT_FAILED = "invoice.payment_failed"
PAYMENT_INTENT_SUCCEEDED = "payment_intent.succeeded"
PAYMENT_INTENT_FAILED = "payment_intent.payment_failed"

Handler = Callable[[str, dict[str, Any]], Awaitable[None]]


def _format_amount(cents: Any, currency: Any) -> str:
    amount = Decimal(int(cents or 0)) / Decimal(100)
    return f"{amount} {str(currency or '').upper()}".strip()


def _parse_tier(value: Any) -> SubscriptionTier | None:
    try:
        return SubscriptionTier(value) if value else None
    except ValueError:
        return None


class HandlePaymentWebhookUseCase:
    """
    Procesa eventos firmados del procesador de pagos.

    Orden: verificar la firma sobre los bytes crudos, registrar el evento por
    su id externo, aplicar el handler y marcar el resultado. Un id ya
    procesado se reconoce sin volver a aplicarse; los handlers son upserts
    por id externo, de modo que una entrega concurrente del mismo evento no
    duplica efectos. Los tipos desconocidos se reconocen sin acción.
    """

    def __init__(
        self,
        stripe_gateway: StripeGateway,
        webhook_event_repo: WebhookEventRepo,
        subscription_repo: SubscriptionRepo,
        payment_repo: PaymentRepo,
        booking_repo: BookingRepo,
        notifier: Notifier,
        transaction_manager: TransactionManager,
        clock: Clock,
        stripe_webhook_secret: str | None,
    ) -> None:
        self._stripe_gateway = stripe_gateway
        self._webhook_event_repo = webhook_event_repo
        self._subscription_repo = subscription_repo
        self._payment_repo = payment_repo
        self._booking_repo = booking_repo
        self._notifier = notifier
        self._tx = transaction_manager
        self._clock = clock
        self._stripe_webhook_secret = stripe_webhook_secret
        self._logger = logging.getLogger(__name__)
        self._handlers: dict[str, Handler] = {
            SUBSCRIPTION_CREATED: self._on_subscription_created,
            SUBSCRIPTION_UPDATED: self._on_subscription_changed,
            SUBSCRIPTION_DELETED: self._on_subscription_changed,
            INVOICE_PAYMENT_SUCCEEDED: self._on_invoice_payment_succeeded,
            INVOICE_PAYMENT_FAILED: self._on_invoice_payment_failed,
            SUBSCRIPTION_TRIAL_WILL_END: self._on_trial_will_end,
            PAYMENT_INTENT_SUCCEEDED: self._on_payment_intent_succeeded,
            PAYMENT_INTENT_FAILED: self._on_payment_intent_failed,
        }

    async def execute(self, raw_body: bytes, signature: str | None) -> dict:
        if not signature or not self._stripe_webhook_secret:
            raise InvalidSignatureError("Missing webhook signature or secret")

        event = await self._stripe_gateway.parse_webhook_event(
            payload=raw_body,
            signature_header=signature,
            webhook_secret=self._stripe_webhook_secret,
        )
        event_id = event.get("id")
        event_type = event.get("type")
        if not isinstance(event_id, str) or not event_id or not isinstance(event_type, str) or not event_type:
            raise InvalidInputError("event", "missing id or type")

        async with self._tx.start():
            record, created = await self._webhook_event_repo.record_received(
                stripe_event_id=event_id,
                event_type=event_type,
                payload=event,
                now=self._clock.now(),
            )
        if not created and record.processed:
            self._logger.info(
                "Webhook event already processed",
                extra={"stripe_event_id": event_id, "event_type": event_type},
            )
            return {"received": True, "duplicate": True}

        data = event.get("data") or {}
        data_object = data.get("object") if isinstance(data, dict) else None
        if not isinstance(data_object, dict):
            data_object = {}

        handler = self._handlers.get(event_type)
        try:
            async with self._tx.start():
                if handler is None:
                    self._logger.info(
                        "Unhandled webhook event type",
                        extra={"stripe_event_id": event_id, "event_type": event_type},
                    )
                else:
                    await handler(event_id, data_object)
                await self._webhook_event_repo.mark_processed(event_id, now=self._clock.now())
        except Exception as exc:
            self._logger.exception(
                "Webhook event processing failed",
                extra={"stripe_event_id": event_id, "event_type": event_type},
            )
            message = getattr(exc, "message", None) or str(exc) or exc.__class__.__name__
            async with self._tx.start():
                await self._webhook_event_repo.mark_failed(event_id, message, now=self._clock.now())
            raise WebhookProcessingError(event_id, message) from exc

        self._logger.info(
            "Webhook event processed",
            extra={"stripe_event_id": event_id, "event_type": event_type},
        )
        return {"received": True}

    # === Suscripciones ===

    async def _upsert_subscription(
        self,
        agent_id: str,
        stripe_subscription: dict[str, Any],
        tier: SubscriptionTier | None,
    ) -> Subscription | None:
        subscription = await self._subscription_repo.get_by_agent(agent_id)
        if subscription is None:
            if tier is None:
                self._logger.warning(
                    "No local subscription and no tier in event, skipping upsert",
                    extra={"agent_id": agent_id, "stripe_subscription_id": stripe_subscription.get("id")},
                )
                return None
            subscription = Subscription.from_stripe(agent_id, stripe_subscription, tier)
        else:
            subscription.apply_stripe_state(stripe_subscription)
            if tier is not None:
                subscription.tier = tier
        return await self._subscription_repo.upsert(subscription)

    async def _on_subscription_created(self, event_id: str, obj: dict[str, Any]) -> None:
        metadata = obj.get("metadata") or {}
        agent_id = metadata.get("user_id")
        tier = _parse_tier(metadata.get("tier"))
        if not agent_id or tier is None:
            self._logger.warning(
                "Subscription created without user_id/tier metadata",
                extra={"stripe_event_id": event_id, "stripe_subscription_id": obj.get("id")},
            )
            return
        await self._upsert_subscription(agent_id, obj, tier)

    async def _on_subscription_changed(self, event_id: str, obj: dict[str, Any]) -> None:
        metadata = obj.get("metadata") or {}
        agent_id = metadata.get("user_id")
        if not agent_id:
            self._logger.warning(
                "Subscription event without user_id metadata",
                extra={"stripe_event_id": event_id, "stripe_subscription_id": obj.get("id")},
            )
            return
        await self._upsert_subscription(agent_id, obj, _parse_tier(metadata.get("tier")))

    async def _sync_invoice_subscription(self, event_id: str, invoice: dict[str, Any]) -> str | None:
        subscription_id = invoice.get("subscription")
        if not subscription_id:
            parent = invoice.get("parent") or {}
            subscription_id = (parent.get("subscription_details") or {}).get("subscription")
        if isinstance(subscription_id, dict):
            subscription_id = subscription_id.get("id")
        if not subscription_id:
            self._logger.info("Invoice without subscription", extra={"stripe_event_id": event_id})
            return None

        stripe_subscription = await self._stripe_gateway.retrieve_subscription(subscription_id)
        metadata = stripe_subscription.get("metadata") or {}
        agent_id = metadata.get("user_id")
        if not agent_id:
            self._logger.warning(
                "Subscription without user_id metadata",
                extra={"stripe_event_id": event_id, "stripe_subscription_id": subscription_id},
            )
            return None
        await self._upsert_subscription(agent_id, stripe_subscription, _parse_tier(metadata.get("tier")))
        return agent_id

    async def _on_invoice_payment_succeeded(self, event_id: str, invoice: dict[str, Any]) -> None:
        agent_id = await self._sync_invoice_subscription(event_id, invoice)
        if agent_id:
            amount = _format_amount(invoice.get("amount_paid"), invoice.get("currency"))
            await self._notifier.notify_user(
                agent_id, f"Payment successful for {amount}", source_event_id=event_id
            )

    async def _on_invoice_payment_failed(self, event_id: str, invoice: dict[str, Any]) -> None:
        agent_id = await self._sync_invoice_subscription(event_id, invoice)
        if agent_id:
            amount = _format_amount(invoice.get("amount_due"), invoice.get("currency"))
            await self._notifier.notify_user(
                agent_id,
                f"Payment failed for {amount}. Please update your payment method.",
                source_event_id=event_id,
            )

    async def _on_trial_will_end(self, event_id: str, obj: dict[str, Any]) -> None:
        agent_id = (obj.get("metadata") or {}).get("user_id")
        trial_end = obj.get("trial_end")
        if not agent_id or not trial_end:
            self._logger.warning("Trial ending event without user_id/trial_end", extra={"stripe_event_id": event_id})
            return
        ends_on = datetime.fromtimestamp(int(trial_end), tz=timezone.utc).date().isoformat()
        await self._notifier.notify_user(
            agent_id,
            f"Your trial ends on {ends_on}. Please update your payment method to continue.",
            source_event_id=event_id,
        )

    # === Pagos de clientes ===

    async def _on_payment_intent_succeeded(self, event_id: str, obj: dict[str, Any]) -> None:
        await self._apply_payment_status(event_id, obj, PaymentStatus.SUCCEEDED)

    async def _on_payment_intent_failed(self, event_id: str, obj: dict[str, Any]) -> None:
        await self._apply_payment_status(event_id, obj, PaymentStatus.FAILED)

    async def _apply_payment_status(self, event_id: str, obj: dict[str, Any], status: PaymentStatus) -> None:
        intent_id = obj.get("id")
        if not intent_id:
            self._logger.warning("Payment intent event without id", extra={"stripe_event_id": event_id})
            return
        payment = await self._payment_repo.update_status(intent_id, status)
        if payment is None:
            self._logger.warning(
                "No local payment for payment intent",
                extra={"stripe_event_id": event_id, "payment_intent_id": intent_id},
            )
            return
        self._logger.info(
            "Payment status updated",
            extra={"payment_intent_id": intent_id, "status": status.value, "booking_id": payment.booking_id},
        )
        if payment.booking_id:
            await self._refresh_booking_payments(payment.booking_id)

    async def _refresh_booking_payments(self, booking_id: int) -> None:
        booking = await self._booking_repo.get_by_id(booking_id)
        if booking is None:
            return
        payments = await self._payment_repo.list_by_booking(booking_id)
        amount_paid = sum((p.amount for p in payments if p.is_successful), Decimal("0"))
        booking.apply_payments(amount_paid)
        await self._booking_repo.update_payment_totals(
            booking_id=booking_id,
            amount_paid=booking.amount_paid,
            payment_status=booking.payment_status,
        )
