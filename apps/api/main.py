import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import Body, Depends, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from apps.api.deps import (
    Services,
    build_services,
    get_confirmation_service,
    get_intake_service,
    get_services,
)
from core.config import Settings, get_settings, load_settings
from core.errors import RelayError
from core.log import setup_logging
from core.security import VerifiedEvent, require_order_source, require_wave_signature
from domains.orders.service import OrderIntakeService
from domains.payment.schemas import WaveWebhookEvent
from domains.payment.service import PaymentConfirmationService

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None, services: Optional[Services] = None
) -> FastAPI:
    """
    Build the relay app. Pass `services` to inject collaborators (tests);
    otherwise they are built from `settings` when the app starts.
    """
    settings = settings or load_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned: Optional[Services] = None
        if getattr(app.state, "services", None) is None:
            owned = build_services(settings)
            if settings.otel_enabled and owned.engine is not None:
                from core.telemetry import instrument_engine

                instrument_engine(owned.engine)
            app.state.services = owned
        logger.info(f" 🚀 {settings.service_name} ready.")
        yield
        if owned is not None:
            logger.info(" 🧹 Closing clients...")
            await owned.aclose()
            app.state.services = None

    app = FastAPI(title=settings.service_name, lifespan=lifespan)
    app.state.settings = settings
    app.state.services = services
    app.dependency_overrides[get_settings] = lambda: settings

    if settings.otel_enabled:
        from core.telemetry import instrument_app, setup_telemetry

        setup_telemetry(settings)
        instrument_app(app, with_redis=bool(settings.redis_url))

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f" ❌ Unhandled error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content=RelayError().to_dict())

    @app.get("/", response_class=PlainTextResponse)
    async def root() -> str:
        return f"🚀 {settings.service_name} is running"

    @app.get("/health")
    async def health() -> Dict[str, str]:
        return {
            "status": "ok",
            "service": settings.service_name,
            "time": datetime.now(timezone.utc).isoformat(),
        }

    @app.post(
        "/orders/accepted",
        tags=["orders"],
        dependencies=[Depends(require_order_source)],
    )
    async def order_accepted(
        payload: Any = Body(None),  # noqa: B008
        intake: OrderIntakeService = Depends(get_intake_service),  # noqa: B008
    ) -> Dict[str, Any]:
        result = await intake.accept(payload)
        return result.to_dict()

    @app.post("/webhooks/wave", tags=["webhook"])
    def wave_webhook(
        verified: VerifiedEvent = Depends(require_wave_signature),  # noqa: B008
        confirmation: PaymentConfirmationService = Depends(  # noqa: B008
            get_confirmation_service
        ),
    ) -> Dict[str, Any]:
        event = WaveWebhookEvent.from_payload(verified.payload, verified.timestamp)
        result = confirmation.handle(event)
        return {
            "received": True,
            "processed": result.processed,
            "duplicate": result.duplicate,
        }

    @app.get("/payments/{order_id}", tags=["payments"])
    def get_payment_status(
        order_id: str, services: Services = Depends(get_services)  # noqa: B008
    ) -> Dict[str, str]:
        """
        讓使用者輪詢 (Poll) 付款狀態
        """
        payment = services.ledger.get(order_id) if services.ledger else None
        if payment is None:
            return {"order_id": order_id, "status": "PENDING_OR_NOT_FOUND"}
        return {"order_id": order_id, "status": payment.status}

    return app


app = create_app()
