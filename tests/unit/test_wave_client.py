import asyncio

import httpx
import pytest

from core.errors import NoPaymentUrl, ProviderError
from domains.orders.schemas import InboundOrder
from domains.orders.wave import WaveClient, extract_payment_url
from tests.factories import WaveStub

ORDER = InboundOrder(order_id="A1", amount="100.00", phone="+2207000000")


def test_sends_checkout_request(make_wave_client, wave_stub) -> None:
    wave = make_wave_client(wave_stub)

    session = asyncio.run(wave.create_checkout_session(ORDER))

    assert session.order_id == "A1"
    assert session.payment_url == "https://pay/x"
    request = wave_stub.requests[0]
    assert request.method == "POST"
    assert request.url == "https://api.wave.test/v1/checkout/sessions"
    assert request.headers["Authorization"] == "Bearer wave_sn_test"
    assert wave_stub.sent_json() == {
        "amount": "100",
        "currency": "GMD",
        "client_reference": "A1",
        "success_url": "https://shop.test/ok",
        "error_url": "https://shop.test/fail",
    }


@pytest.mark.parametrize(
    "body,url",
    [
        ({"wave_launch_url": "https://a", "launch_url": "https://b"}, "https://a"),
        ({"launch_url": "https://b", "checkout_url": "https://c"}, "https://b"),
        ({"checkout_url": "https://c"}, "https://c"),
        ({"payment_url": "https://d", "url": "https://e"}, "https://d"),
        ({"url": "https://e"}, "https://e"),
        ({"wave_launch_url": "", "url": "https://e"}, "https://e"),
    ],
)
def test_payment_url_probe_order(body, url) -> None:
    assert extract_payment_url(body) == url


def test_payment_url_missing() -> None:
    assert extract_payment_url({"id": "cos-1"}) is None
    assert extract_payment_url(["https://x"]) is None


def test_provider_error_keeps_provider_body(make_wave_client) -> None:
    stub = WaveStub(
        status_code=400,
        body={"code": "request-validation-error", "message": "Bad amount"},
    )
    wave = make_wave_client(stub)

    with pytest.raises(ProviderError) as exc:
        asyncio.run(wave.create_checkout_session(ORDER))

    assert exc.value.kind == "ProviderError"
    assert exc.value.status_code == 502
    assert exc.value.details["status_code"] == 400
    assert exc.value.details["body"]["code"] == "request-validation-error"
    assert len(stub.requests) == 1


def test_no_payment_url(make_wave_client) -> None:
    wave = make_wave_client(WaveStub(body={"id": "cos-1", "checkout_status": "open"}))

    with pytest.raises(NoPaymentUrl) as exc:
        asyncio.run(wave.create_checkout_session(ORDER))

    assert exc.value.details == {"id": "cos-1", "checkout_status": "open"}


def test_transport_failure_is_provider_error(settings) -> None:
    def boom(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    wave = WaveClient(
        httpx.AsyncClient(
            base_url=settings.wave_api_base, transport=httpx.MockTransport(boom)
        ),
        api_key="k",
        success_url="s",
        error_url="e",
    )

    with pytest.raises(ProviderError):
        asyncio.run(wave.create_checkout_session(ORDER))
