import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi.concurrency import run_in_threadpool

from domains.notifications.sms import SmsDispatcher
from domains.orders.schemas import InboundOrder
from domains.orders.wave import WaveClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntakeResult:
    order_id: str
    payment_url: str
    notification_sent: bool
    provider_response: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": "payment_created",
            "order_id": self.order_id,
            "payment_url": self.payment_url,
            "notification_sent": self.notification_sent,
            "wave": self.provider_response,
        }


def customer_message(order: InboundOrder, payment_url: str) -> str:
    return (
        f"Thank you for your order #{order.order_id}. "
        f"Amount: {order.amount_text} {order.currency}. "
        f"Pay securely with Wave: {payment_url}"
    )


class OrderIntakeService:
    def __init__(
        self, wave: WaveClient, sms: SmsDispatcher, currency: str = "GMD"
    ) -> None:
        self.wave = wave
        self.sms = sms
        self.currency = currency

    async def accept(self, payload: Any) -> IntakeResult:
        """
        Validate the order, create the Wave checkout, text the link.

        Validation and Wave errors propagate (RelayError subclasses); an SMS
        failure only shows up as notification_sent=False.
        """
        order = InboundOrder.from_payload(payload, currency=self.currency)
        logger.info(
            f" 📦 [Orders] Order accepted {order.order_id} "
            f"({order.amount_text} {order.currency})"
        )

        session = await self.wave.create_checkout_session(order)

        # checkout 已經建立，簡訊失敗也要回成功
        result = await run_in_threadpool(
            self.sms.send, order.phone, customer_message(order, session.payment_url)
        )
        if not result.sent:
            logger.warning(
                f" ⚠️ [Orders] Payment link for {order.order_id} not sent: {result.error}"
            )

        return IntakeResult(
            order_id=order.order_id,
            payment_url=session.payment_url,
            notification_sent=result.sent,
            provider_response=session.raw_provider_response,
        )
