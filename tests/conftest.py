from typing import Callable
from unittest.mock import MagicMock

import httpx
import pytest

from core.config import Settings
from domains.notifications.sms import SmsDispatcher
from domains.orders.wave import WaveClient
from tests.factories import WaveStub

WEBHOOK_SECRET = "whsec_test_secret"  # noqa: S105
OWNER_PHONE = "+2207111111"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        wave_api_key="wave_sn_test",
        wave_webhook_secret=WEBHOOK_SECRET,
        wave_api_base="https://api.wave.test",
        owner_phone=OWNER_PHONE,
        checkout_success_url="https://shop.test/ok",
        checkout_error_url="https://shop.test/fail",
    )


@pytest.fixture
def twilio_client() -> MagicMock:
    client = MagicMock()
    client.messages.create.return_value.sid = "SM123"
    return client


@pytest.fixture
def sms(twilio_client: MagicMock) -> SmsDispatcher:
    return SmsDispatcher(twilio_client, from_number="+15550001111")


@pytest.fixture
def wave_stub() -> WaveStub:
    return WaveStub()


@pytest.fixture
def make_wave_client(settings: Settings) -> Callable[[WaveStub], WaveClient]:
    def _make(stub: WaveStub) -> WaveClient:
        http_client = httpx.AsyncClient(
            base_url=settings.wave_api_base,
            transport=httpx.MockTransport(stub.handler),
        )
        return WaveClient(
            http_client,
            api_key=settings.wave_api_key,
            success_url=settings.checkout_success_url,
            error_url=settings.checkout_error_url,
        )

    return _make

