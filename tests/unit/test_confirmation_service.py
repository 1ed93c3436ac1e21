from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from domains.payment.idempotency import InMemoryIdempotencyGuard
from domains.payment.schemas import WaveWebhookEvent
from domains.payment.service import PaymentConfirmationService, merchant_message
from tests.factories import completed_event


@pytest.fixture
def ledger() -> MagicMock:
    ledger = MagicMock()
    ledger.record.return_value = True
    return ledger


@pytest.fixture
def service(sms, settings, ledger) -> PaymentConfirmationService:
    return PaymentConfirmationService(
        InMemoryIdempotencyGuard(), sms, owner_phone=settings.owner_phone, ledger=ledger
    )


def event(payload=None) -> WaveWebhookEvent:
    return WaveWebhookEvent.from_payload(payload or completed_event(), timestamp=1)


def test_parses_wave_checkout_event() -> None:
    parsed = event()

    assert parsed.event_type == "checkout.session.completed"
    assert parsed.payment_status == "succeeded"
    assert parsed.order_id == "A1"
    assert parsed.amount == Decimal("100")
    assert parsed.event_id == "EV_A1"
    assert parsed.is_successful_checkout


def test_unknown_shape_still_parses() -> None:
    parsed = WaveWebhookEvent.from_payload({"type": "merchant.payment_received"}, 5)

    assert parsed.order_id is None
    assert parsed.timestamp == 5
    assert not parsed.is_successful_checkout


def test_duplicate_delivery_notifies_merchant_once(service, twilio_client, ledger, settings) -> None:
    first = service.handle(event())
    second = service.handle(event())

    assert first.processed and first.notification_sent and first.recorded
    assert second.duplicate and not second.processed
    twilio_client.messages.create.assert_called_once()
    kwargs = twilio_client.messages.create.call_args.kwargs
    assert kwargs["to"] == settings.owner_phone
    assert "#A1" in kwargs["body"]
    assert "100 GMD" in kwargs["body"]
    ledger.record.assert_called_once_with(
        order_id="A1",
        amount=Decimal("100"),
        currency="GMD",
        status="succeeded",
        provider_event_id="EV_A1",
    )


@pytest.mark.parametrize(
    "change",
    [
        {"type": "checkout.session.payment_failed"},
        {"data": {**completed_event()["data"], "payment_status": "processing"}},
        {"data": {**completed_event()["data"], "client_reference": None}},
    ],
)
def test_events_of_no_interest_are_ignored(service, twilio_client, ledger, change) -> None:
    result = service.handle(event({**completed_event(), **change}))

    assert not result.processed
    assert not result.duplicate
    twilio_client.messages.create.assert_not_called()
    ledger.record.assert_not_called()


def test_ignored_event_does_not_consume_guard(service, twilio_client) -> None:
    failed = {**completed_event(), "type": "checkout.session.payment_failed"}
    service.handle(event(failed))

    assert service.handle(event()).processed


def test_missing_owner_phone_still_records(sms, twilio_client, ledger) -> None:
    service = PaymentConfirmationService(InMemoryIdempotencyGuard(), sms, ledger=ledger)

    result = service.handle(event())

    assert result.processed and result.recorded
    assert not result.notification_sent
    twilio_client.messages.create.assert_not_called()


def test_sms_failure_is_not_fatal(service, twilio_client, ledger) -> None:
    twilio_client.messages.create.side_effect = RuntimeError("Twilio down")

    result = service.handle(event())

    assert result.processed and not result.notification_sent
    ledger.record.assert_called_once()


def test_works_without_ledger(sms, settings) -> None:
    service = PaymentConfirmationService(
        InMemoryIdempotencyGuard(), sms, owner_phone=settings.owner_phone
    )

    result = service.handle(event())

    assert result.processed and not result.recorded


def test_zero_amount_is_shown_not_hidden() -> None:
    zero = event(completed_event(amount="0"))

    assert "0 GMD" in merchant_message(zero)
    assert "n/a" not in merchant_message(zero)


def test_missing_amount_shows_placeholder() -> None:
    payload = completed_event()
    del payload["data"]["amount"]

    assert "n/a" in merchant_message(event(payload))
