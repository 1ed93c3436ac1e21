import asyncio

import pytest

from core.errors import InvalidPhone, ProviderError
from domains.orders.service import OrderIntakeService
from tests.factories import WaveStub


def test_accept_creates_checkout_and_texts_customer(
    make_wave_client, wave_stub, sms, twilio_client
) -> None:
    service = OrderIntakeService(make_wave_client(wave_stub), sms)

    result = asyncio.run(
        service.accept({"order_id": "A1", "amount": 100, "phone": "+2207000000"})
    )

    assert result.payment_url == "https://pay/x"
    assert result.notification_sent is True
    assert result.to_dict()["status"] == "payment_created"
    assert result.to_dict()["wave"] == {"wave_launch_url": "https://pay/x"}
    assert len(wave_stub.requests) == 1

    twilio_client.messages.create.assert_called_once()
    kwargs = twilio_client.messages.create.call_args.kwargs
    assert kwargs["to"] == "+2207000000"
    assert "https://pay/x" in kwargs["body"]
    assert "#A1" in kwargs["body"]


def test_invalid_phone_never_calls_wave(make_wave_client, wave_stub, sms, twilio_client) -> None:
    service = OrderIntakeService(make_wave_client(wave_stub), sms)

    with pytest.raises(InvalidPhone):
        asyncio.run(service.accept({"order_id": "A1", "amount": 100, "phone": "12"}))

    assert wave_stub.requests == []
    twilio_client.messages.create.assert_not_called()


def test_provider_error_sends_no_sms(make_wave_client, sms, twilio_client) -> None:
    stub = WaveStub(status_code=500, body={"message": "internal"})
    service = OrderIntakeService(make_wave_client(stub), sms)

    with pytest.raises(ProviderError) as exc:
        asyncio.run(
            service.accept({"order_id": "A1", "amount": 100, "phone": "+2207000000"})
        )

    assert exc.value.details["body"] == {"message": "internal"}
    twilio_client.messages.create.assert_not_called()


def test_sms_failure_does_not_fail_intake(make_wave_client, wave_stub, sms, twilio_client) -> None:
    twilio_client.messages.create.side_effect = RuntimeError("Twilio down")
    service = OrderIntakeService(make_wave_client(wave_stub), sms)

    result = asyncio.run(
        service.accept({"order_id": "A1", "amount": 100, "phone": "+2207000000"})
    )

    assert result.payment_url == "https://pay/x"
    assert result.notification_sent is False


def test_currency_comes_from_service(make_wave_client, wave_stub, sms) -> None:
    service = OrderIntakeService(make_wave_client(wave_stub), sms, currency="XOF")

    asyncio.run(service.accept({"orderId": "B2", "amount": "5000", "phone": "+2217000000"}))

    assert wave_stub.sent_json()["currency"] == "XOF"
