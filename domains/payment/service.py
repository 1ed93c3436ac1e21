import logging
from dataclasses import dataclass
from typing import Optional

from domains.notifications.sms import SmsDispatcher
from domains.payment.idempotency import IdempotencyGuard
from domains.payment.ledger import PaymentLedger
from domains.payment.schemas import WaveWebhookEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfirmationResult:
    processed: bool = False
    duplicate: bool = False
    notification_sent: bool = False
    recorded: bool = False


def merchant_message(event: WaveWebhookEvent) -> str:
    amount = (
        f"{event.amount} {event.currency or 'GMD'}" if event.amount is not None else "n/a"
    )
    return f"✅ Wave payment received for order #{event.order_id}. Amount: {amount}."


class PaymentConfirmationService:
    def __init__(
        self,
        guard: IdempotencyGuard,
        sms: SmsDispatcher,
        owner_phone: str = "",
        ledger: Optional[PaymentLedger] = None,
    ) -> None:
        self.guard = guard
        self.sms = sms
        self.owner_phone = owner_phone
        self.ledger = ledger

    def handle(self, event: WaveWebhookEvent) -> ConfirmationResult:
        """
        Verified Wave event -> merchant SMS + ledger row, at most once per order
        """
        if not event.is_successful_checkout:
            logger.info(
                f" ℹ️ [Webhook] Ignoring {event.event_type} "
                f"({event.payment_status}) for {event.order_id}."
            )
            return ConfirmationResult()

        order_id = event.order_id or ""
        if not self.guard.should_process(order_id):
            logger.info(f" ♻️ [Webhook] Duplicate confirmation for {order_id}.")
            return ConfirmationResult(duplicate=True)

        logger.info(f" 💰 [Webhook] Payment confirmed for {order_id}.")

        notification_sent = False
        if self.owner_phone:
            result = self.sms.send(self.owner_phone, merchant_message(event))
            notification_sent = result.sent
        else:
            logger.warning(" ⚠️ [Webhook] OWNER_PHONE not set; merchant not notified.")

        recorded = False
        if self.ledger is not None:
            recorded = self.ledger.record(
                order_id=order_id,
                amount=event.amount,
                currency=event.currency,
                status=event.payment_status or "succeeded",
                provider_event_id=event.event_id,
            )

        return ConfirmationResult(
            processed=True,
            notification_sent=notification_sent,
            recorded=recorded,
        )
