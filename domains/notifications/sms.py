import logging
from dataclasses import dataclass
from typing import Any, Optional

from twilio.rest import Client

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationResult:
    sent: bool
    error: Optional[str] = None
    sid: Optional[str] = None


class SmsDispatcher:
    """
    Best-effort SMS. send() never raises; callers check result.sent
    """

    def __init__(self, client: Optional[Any], from_number: str) -> None:
        self.client = client
        self.from_number = from_number

    @classmethod
    def from_credentials(
        cls, account_sid: str, auth_token: str, from_number: str
    ) -> "SmsDispatcher":
        if not (account_sid and auth_token and from_number):
            logger.warning(" ⚠️ [SMS] Twilio is not configured; SMS disabled.")
            return cls(None, from_number)
        return cls(Client(account_sid, auth_token), from_number)

    def send(self, to: str, body: str) -> NotificationResult:
        if self.client is None:
            return NotificationResult(sent=False, error="sms not configured")

        logger.info(f" 📱 [SMS] Sending to {to}...")
        try:
            message = self.client.messages.create(
                body=body, from_=self.from_number, to=to
            )
        except Exception as e:
            # 通知失敗不影響主流程，記錄下來就好
            logger.error(f" ❌ [SMS] Failed to notify {to}: {e}")
            return NotificationResult(sent=False, error=str(e))

        logger.info(f" ✅ [SMS] Delivered to provider ({message.sid}).")
        return NotificationResult(sent=True, sid=message.sid)
