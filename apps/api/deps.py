import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

import httpx
from fastapi import Request
from sqlalchemy import Engine

from core.cache import get_redis_client
from core.config import Settings
from core.database import init_db, make_engine
from domains.notifications.sms import SmsDispatcher
from domains.orders.service import OrderIntakeService
from domains.orders.wave import WaveClient
from domains.payment.idempotency import (
    IdempotencyGuard,
    InMemoryIdempotencyGuard,
    RedisIdempotencyGuard,
)
from domains.payment.ledger import PaymentLedger
from domains.payment.service import PaymentConfirmationService

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """
    Collaborators built once at startup and shared by every request
    """

    intake: OrderIntakeService
    confirmation: PaymentConfirmationService
    ledger: Optional[PaymentLedger] = None
    http_client: Optional[httpx.AsyncClient] = None
    engine: Optional[Engine] = None

    async def aclose(self) -> None:
        if self.http_client is not None:
            await self.http_client.aclose()
        if self.engine is not None:
            self.engine.dispose()


def build_guard(settings: Settings) -> IdempotencyGuard:
    if settings.redis_url:
        return RedisIdempotencyGuard(
            get_redis_client(settings.redis_url),
            ttl=timedelta(hours=settings.idempotency_ttl_hours),
        )
    logger.warning(" ⚠️ REDIS_URL not set; duplicate suppression is in-memory only.")
    return InMemoryIdempotencyGuard()


def build_services(settings: Settings) -> Services:
    if not settings.wave_webhook_secret:
        logger.warning(" ⚠️ WAVE_WEBHOOK_SECRET not set; every Wave webhook will be rejected.")

    http_client = WaveClient.build_http_client(
        settings.wave_api_base, timeout=settings.http_timeout_seconds
    )
    wave = WaveClient(
        http_client,
        api_key=settings.wave_api_key,
        success_url=settings.checkout_success_url,
        error_url=settings.checkout_error_url,
    )
    sms = SmsDispatcher.from_credentials(
        settings.twilio_account_sid,
        settings.twilio_auth_token,
        settings.twilio_from_number,
    )

    engine: Optional[Engine] = None
    ledger: Optional[PaymentLedger] = None
    if settings.database_url:
        engine = make_engine(settings.database_url)
        init_db(engine)
        ledger = PaymentLedger(engine)

    return Services(
        intake=OrderIntakeService(wave, sms, currency=settings.checkout_currency),
        confirmation=PaymentConfirmationService(
            build_guard(settings), sms, owner_phone=settings.owner_phone, ledger=ledger
        ),
        ledger=ledger,
        http_client=http_client,
        engine=engine,
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_intake_service(request: Request) -> OrderIntakeService:
    return get_services(request).intake


def get_confirmation_service(request: Request) -> PaymentConfirmationService:
    return get_services(request).confirmation
