from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from pydantic import BaseModel

CHECKOUT_COMPLETED = "checkout.session.completed"
PAYMENT_SUCCEEDED = "succeeded"


class WaveWebhookEvent(BaseModel):
    event_id: Optional[str] = None
    event_type: Optional[str] = None
    timestamp: int
    payment_status: Optional[str] = None
    order_id: Optional[str] = None
    amount: Optional[Decimal] = None
    currency: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any], timestamp: int) -> "WaveWebhookEvent":
        """
        Wave sends {"id", "type", "data": {...checkout session...}}.
        Unknown shapes still parse; fields we can't find stay None.
        """
        data = payload.get("data")
        if not isinstance(data, dict):
            data = {}

        amount: Optional[Decimal] = None
        raw_amount = data.get("amount")
        if raw_amount not in (None, ""):
            try:
                amount = Decimal(str(raw_amount))
            except InvalidOperation:
                amount = None

        reference = data.get("client_reference")
        return cls(
            event_id=_as_str(payload.get("id")),
            event_type=_as_str(payload.get("type")),
            timestamp=timestamp,
            payment_status=_as_str(data.get("payment_status")),
            order_id=_as_str(reference),
            amount=amount,
            currency=_as_str(data.get("currency")),
        )

    @property
    def is_successful_checkout(self) -> bool:
        return (
            self.event_type == CHECKOUT_COMPLETED
            and self.payment_status == PAYMENT_SUCCEEDED
            and bool(self.order_id)
        )


def _as_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)
