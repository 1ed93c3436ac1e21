import os
from functools import lru_cache

from pydantic import BaseModel


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    service_name: str = "mavuno-api"
    port: int = 8080
    log_level: str = "INFO"

    # Wave (payment provider)
    wave_api_key: str = ""
    wave_webhook_secret: str = ""
    wave_api_base: str = "https://api.wave.com"
    wave_signature_encoding: str = "hex"
    wave_signature_tolerance: int = 300
    checkout_currency: str = "GMD"
    checkout_success_url: str = "https://example.com/payment-success"
    checkout_error_url: str = "https://example.com/payment-failed"
    http_timeout_seconds: float = 10.0

    # Twilio (SMS)
    twilio_account_sid: str = ""
    twilio_auth_token: str = ""
    twilio_from_number: str = ""
    owner_phone: str = ""

    # order webhook sender (GloriaFood)
    order_webhook_secret: str = ""
    order_webhook_user_agent: str = ""

    # storage
    redis_url: str = ""
    idempotency_ttl_hours: int = 720
    database_url: str = ""

    otel_enabled: bool = False
    otel_endpoint: str = "http://localhost:4317"
    service_version: str = "0.1.0"

    @property
    def sms_configured(self) -> bool:
        return bool(
            self.twilio_account_sid
            and self.twilio_auth_token
            and self.twilio_from_number
        )


def load_settings() -> Settings:
    """
    Read every option from the process environment
    """
    return Settings(
        service_name=os.getenv("SERVICE_NAME", "mavuno-api"),
        port=int(os.getenv("PORT", "8080")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        wave_api_key=os.getenv("WAVE_API_KEY", ""),
        wave_webhook_secret=os.getenv("WAVE_WEBHOOK_SECRET", ""),
        wave_api_base=os.getenv("WAVE_API_BASE", "https://api.wave.com"),
        wave_signature_encoding=os.getenv("WAVE_SIGNATURE_ENCODING", "hex"),
        wave_signature_tolerance=int(os.getenv("WAVE_SIGNATURE_TOLERANCE", "300")),
        checkout_currency=os.getenv("CHECKOUT_CURRENCY", "GMD"),
        checkout_success_url=os.getenv(
            "CHECKOUT_SUCCESS_URL", "https://example.com/payment-success"
        ),
        checkout_error_url=os.getenv(
            "CHECKOUT_ERROR_URL", "https://example.com/payment-failed"
        ),
        http_timeout_seconds=float(os.getenv("HTTP_TIMEOUT_SECONDS", "10")),
        twilio_account_sid=os.getenv("TWILIO_ACCOUNT_SID", ""),
        twilio_auth_token=os.getenv("TWILIO_AUTH_TOKEN", ""),
        twilio_from_number=os.getenv("TWILIO_FROM_NUMBER", ""),
        owner_phone=os.getenv("OWNER_PHONE", ""),
        order_webhook_secret=os.getenv("ORDER_WEBHOOK_SECRET", ""),
        order_webhook_user_agent=os.getenv("ORDER_WEBHOOK_USER_AGENT", ""),
        redis_url=os.getenv("REDIS_URL", ""),
        idempotency_ttl_hours=int(os.getenv("IDEMPOTENCY_TTL_HOURS", "720")),
        database_url=os.getenv("DATABASE_URL", ""),
        otel_enabled=_env_bool("OTEL_ENABLED"),
        otel_endpoint=os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317"),
        service_version=os.getenv("SERVICE_VERSION", "0.1.0"),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
