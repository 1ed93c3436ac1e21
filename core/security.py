import base64
import hashlib
import hmac
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from fastapi import Depends, Request

from core.config import Settings, get_settings
from core.errors import (
    Expired,
    MalformedHeader,
    MalformedPayload,
    SignatureMismatch,
    SignatureRejected,
    Unauthorized,
)

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "Wave-Signature"
DEFAULT_TOLERANCE_SECONDS = 300
MAX_TIMESTAMP_DIGITS = 20


@dataclass(frozen=True)
class VerifiedEvent:
    timestamp: int
    payload: Dict[str, Any]


def parse_signature_header(header: Optional[str]) -> Tuple[int, List[str]]:
    """
    "t=1639081943,v1=abc,v1=def" -> (1639081943, ["abc", "def"])
    """
    if not header:
        raise MalformedHeader(f"{SIGNATURE_HEADER} header is required")

    timestamp: Optional[int] = None
    signatures: List[str] = []
    for item in header.split(","):
        key, sep, value = item.strip().partition("=")
        if not sep:
            continue
        key, value = key.strip(), value.strip()
        if key == "t":
            # unix time 最多十幾位數，太長的直接擋掉
            if not value.isdigit() or len(value) > MAX_TIMESTAMP_DIGITS:
                raise MalformedHeader("timestamp is not a unix time")
            try:
                timestamp = int(value)
            except ValueError as err:
                raise MalformedHeader("timestamp is not a unix time") from err
        elif key == "v1" and value:
            signatures.append(value)

    if timestamp is None or not signatures:
        raise MalformedHeader(f"{SIGNATURE_HEADER} needs t and at least one v1")
    return timestamp, signatures


def compute_signature(
    timestamp: int, raw_body: bytes, secret: bytes, encoding: str = "hex"
) -> str:
    # 一定要用原始 body，重新 json.dumps 會改到 bytes
    signed_payload = str(timestamp).encode() + raw_body
    digest = hmac.new(secret, signed_payload, hashlib.sha256)
    if encoding == "base64":
        return base64.b64encode(digest.digest()).decode()
    if encoding != "hex":
        raise ValueError(f"unknown signature encoding: {encoding}")
    return digest.hexdigest()


def build_signature_header(
    raw_body: bytes,
    secret: bytes,
    timestamp: Optional[int] = None,
    extra_signatures: Iterable[str] = (),
    encoding: str = "hex",
) -> str:
    ts = int(time.time()) if timestamp is None else timestamp
    parts = [f"t={ts}", f"v1={compute_signature(ts, raw_body, secret, encoding)}"]
    parts.extend(f"v1={sig}" for sig in extra_signatures)
    return ",".join(parts)


def _matches(expected: str, received: str) -> bool:
    expected_bytes = expected.encode()
    received_bytes = received.encode()
    if len(expected_bytes) != len(received_bytes):
        return False
    return hmac.compare_digest(expected_bytes, received_bytes)


def verify_wave_signature(
    header: Optional[str],
    raw_body: bytes,
    secret: bytes,
    now: Optional[float] = None,
    tolerance: int = DEFAULT_TOLERANCE_SECONDS,
    encoding: str = "hex",
) -> VerifiedEvent:
    """
    Verify a Wave webhook and only then parse its body.

    Raises MalformedHeader, Expired or SignatureMismatch for untrusted
    requests, MalformedPayload when an authentic body is not a JSON object.
    An empty secret rejects everything.
    """
    if not secret:
        raise SignatureRejected("webhook secret is not configured")

    timestamp, signatures = parse_signature_header(header)

    current = time.time() if now is None else now
    if abs(current - timestamp) > tolerance:
        raise Expired(f"timestamp outside the {tolerance}s window")

    expected = compute_signature(timestamp, raw_body, secret, encoding)
    # rotation: any of the v1 values may be the valid one
    if not any([_matches(expected, sig) for sig in signatures]):
        raise SignatureMismatch("no v1 signature matched")

    try:
        payload = json.loads(raw_body)
    except ValueError as err:
        raise MalformedPayload("verified body is not valid JSON") from err
    if not isinstance(payload, dict):
        raise MalformedPayload("verified body is not a JSON object")

    return VerifiedEvent(timestamp=timestamp, payload=payload)


async def require_wave_signature(
    request: Request,
    settings: Settings = Depends(get_settings),  # noqa: B008
) -> VerifiedEvent:
    """
    FastAPI dependency: raw body + Wave-Signature -> VerifiedEvent
    """
    if not settings.wave_webhook_secret:
        logger.error(" ❌ [Webhook] WAVE_WEBHOOK_SECRET is not set; rejecting webhook.")
        raise SignatureRejected("webhook secret is not configured")

    body_bytes = await request.body()
    try:
        return verify_wave_signature(
            request.headers.get(SIGNATURE_HEADER),
            body_bytes,
            settings.wave_webhook_secret.encode(),
            tolerance=settings.wave_signature_tolerance,
            encoding=settings.wave_signature_encoding,
        )
    except SignatureRejected as err:
        logger.warning(f" 🚫 [Webhook] Rejected Wave webhook: {err}")
        raise


def _secret_matches(candidate: str, secret: str) -> bool:
    return hmac.compare_digest(candidate.encode(), secret.encode())


async def require_order_source(
    request: Request,
    settings: Settings = Depends(get_settings),  # noqa: B008
) -> bool:
    """
    Shared-secret and user-agent checks for the order webhook (both optional)
    """
    secret = settings.order_webhook_secret
    if secret:
        authorization = request.headers.get("Authorization", "")
        if authorization.lower().startswith("bearer "):
            authorization = authorization[len("bearer ") :]
        candidates = [authorization, request.headers.get("X-Webhook-Secret", "")]
        if not any([_secret_matches(c, secret) for c in candidates if c]):
            logger.warning(" 🚫 [Orders] Order webhook secret is missing or invalid")
            raise Unauthorized("order webhook secret is missing or invalid")

    agent = settings.order_webhook_user_agent
    if agent and agent not in request.headers.get("User-Agent", ""):
        logger.warning(" 🚫 [Orders] Unexpected User-Agent on order webhook")
        raise Unauthorized("unexpected User-Agent")
    return True
