import logging
from typing import Optional

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.instrumentation.redis import RedisInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from sqlalchemy import Engine

from core.config import Settings

logger = logging.getLogger(__name__)


def setup_telemetry(settings: Settings) -> TracerProvider:
    """
    Trace the relay under its own service name, exporting spans over OTLP gRPC
    :param settings: service_name, service_version, otel_endpoint
    :return: TracerProvider:
    """
    provider = TracerProvider(
        resource=Resource.create(
            attributes={
                "service.name": settings.service_name,
                "service.version": settings.service_version,
            }
        )
    )
    exporter = OTLPSpanExporter(endpoint=settings.otel_endpoint, insecure=True)
    provider.add_span_processor(BatchSpanProcessor(exporter))

    trace.set_tracer_provider(provider)
    logger.info(f" 🔭 Tracing {settings.service_name} -> {settings.otel_endpoint}")
    return provider


def instrument_app(app: Optional[FastAPI], with_redis: bool = False) -> None:
    """
    Auto-Instrument the relay: inbound routes, Wave calls, guard
    :param app:
    :param with_redis:
    :return:
    """
    if app:
        FastAPIInstrumentor.instrument_app(app)

    if with_redis:
        RedisInstrumentor().instrument()

    HTTPXClientInstrumentor().instrument()


def instrument_engine(engine: Engine) -> None:
    # engine 在 lifespan 才建立，所以分開處理
    SQLAlchemyInstrumentor().instrument(engine=engine)
