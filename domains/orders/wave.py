import logging
from typing import Any, Dict, Optional, Sequence

import httpx

from core.errors import NoPaymentUrl, ProviderError
from domains.orders.schemas import CheckoutSession, InboundOrder

logger = logging.getLogger(__name__)

CHECKOUT_PATH = "/v1/checkout/sessions"

# Wave 回傳的欄位名稱不固定，依序找
PAYMENT_URL_FIELDS: Sequence[str] = (
    "wave_launch_url",
    "launch_url",
    "checkout_url",
    "payment_url",
    "url",
)


def extract_payment_url(data: Any, fields: Sequence[str] = PAYMENT_URL_FIELDS) -> Optional[str]:
    if not isinstance(data, dict):
        return None
    for field in fields:
        value = data.get(field)
        if isinstance(value, str) and value:
            return value
    return None


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class WaveClient:
    """
    Wave Checkout API. One attempt per call, no retry.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str,
        success_url: str,
        error_url: str,
    ) -> None:
        self.http_client = http_client
        self.api_key = api_key
        self.success_url = success_url
        self.error_url = error_url

    @classmethod
    def build_http_client(cls, base_url: str, timeout: float = 10.0) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def create_checkout_session(self, order: InboundOrder) -> CheckoutSession:
        body: Dict[str, Any] = {
            "amount": order.amount_text,
            "currency": order.currency,
            "client_reference": order.order_id,
            "success_url": self.success_url,
            "error_url": self.error_url,
        }
        logger.info(f" 💳 [Wave] Creating checkout session for {order.order_id}...")
        try:
            response = await self.http_client.post(
                CHECKOUT_PATH,
                json=body,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        except httpx.HTTPError as e:
            logger.error(f" ❌ [Wave] Request failed: {e}")
            raise ProviderError("Wave payment creation failed", details=str(e)) from e

        data = _response_body(response)
        logger.debug(f" 💳 [Wave] Raw response: {data}")

        if not response.is_success:
            logger.error(f" ❌ [Wave] Responded {response.status_code}: {data}")
            raise ProviderError(
                "Wave payment creation failed",
                details={"status_code": response.status_code, "body": data},
            )

        payment_url = extract_payment_url(data)
        if not payment_url:
            logger.error(f" ❌ [Wave] No payment URL in response for {order.order_id}")
            raise NoPaymentUrl("Wave response has no payment URL", details=data)

        return CheckoutSession(
            order_id=order.order_id,
            payment_url=payment_url,
            raw_provider_response=data if isinstance(data, dict) else None,
        )
