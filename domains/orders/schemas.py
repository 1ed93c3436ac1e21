import re
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict

from core.errors import InvalidAmount, InvalidPhone, MissingFields

PHONE_PATTERN = re.compile(r"^\+?\d{7,15}$")
_PHONE_NOISE = re.compile(r"[\s\-().]")

ORDER_ID_KEYS = ("orderId", "order_id", "id")
AMOUNT_KEYS = ("amount", "total_price", "total")
PHONE_KEYS = ("phone", "client_phone")


def _first(source: Dict[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = source.get(key)
        if value not in (None, ""):
            return value
    return None


def _unwrap(payload: Dict[str, Any]) -> Dict[str, Any]:
    # GloriaFood: {"count": 1, "orders": [{...}]}
    orders = payload.get("orders")
    if isinstance(orders, list) and orders and isinstance(orders[0], dict):
        return orders[0]
    return payload


def normalize_phone(raw: Any) -> str:
    return _PHONE_NOISE.sub("", str(raw))


def format_amount(amount: Decimal) -> str:
    """
    Decimal("100.00") -> "100", Decimal("99.50") -> "99.5"
    """
    return format(amount.normalize(), "f")


class InboundOrder(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: str
    amount: Decimal
    currency: str = "GMD"
    phone: str

    @classmethod
    def from_payload(cls, payload: Any, currency: str = "GMD") -> "InboundOrder":
        if not isinstance(payload, dict):
            raise MissingFields("order payload must be a JSON object")
        source = _unwrap(payload)

        order_id = _first(source, ORDER_ID_KEYS)
        amount = _first(source, AMOUNT_KEYS)
        phone = _first(source, PHONE_KEYS)
        if phone is None:
            customer = source.get("customer")
            if isinstance(customer, dict):
                phone = _first(customer, PHONE_KEYS)

        missing: List[str] = [
            name
            for name, value in (("order_id", order_id), ("amount", amount), ("phone", phone))
            if value is None
        ]
        if missing:
            raise MissingFields(
                "order_id, amount, and phone are required", details={"missing": missing}
            )

        # float 會多出 ".0"，去掉點之後變成別的號碼
        if isinstance(phone, bool) or not isinstance(phone, (str, int)):
            raise InvalidPhone(f"phone {phone!r} must be a string")
        normalized_phone = normalize_phone(phone)
        if not PHONE_PATTERN.match(normalized_phone):
            raise InvalidPhone(f"phone {phone!r} is not a valid number")

        if isinstance(amount, bool):
            raise InvalidAmount(f"amount {amount!r} is not a number")
        try:
            value = Decimal(str(amount).strip())
        except InvalidOperation as err:
            raise InvalidAmount(f"amount {amount!r} is not a number") from err
        if not value.is_finite() or value <= 0:
            raise InvalidAmount(f"amount {amount!r} must be positive")

        return cls(
            order_id=str(order_id),
            amount=value,
            currency=currency,
            phone=normalized_phone,
        )

    @property
    def amount_text(self) -> str:
        return format_amount(self.amount)


class CheckoutSession(BaseModel):
    order_id: str
    payment_url: str
    raw_provider_response: Optional[Dict[str, Any]] = None
