from unittest.mock import MagicMock

from twilio.base.exceptions import TwilioRestException

from domains.notifications.sms import SmsDispatcher


def test_send_passes_body_from_and_to(sms, twilio_client) -> None:
    result = sms.send("+2207000000", "hello")

    assert result.sent is True
    assert result.sid == "SM123"
    twilio_client.messages.create.assert_called_once_with(
        body="hello", from_="+15550001111", to="+2207000000"
    )


def test_twilio_error_is_reported_not_raised(sms, twilio_client) -> None:
    twilio_client.messages.create.side_effect = TwilioRestException(
        400, "https://api.twilio.com/Messages.json", msg="invalid To number"
    )

    result = sms.send("+2207000000", "hello")

    assert result.sent is False
    assert result.error


def test_network_error_is_reported_not_raised() -> None:
    client = MagicMock()
    client.messages.create.side_effect = ConnectionError("Twilio unreachable")

    result = SmsDispatcher(client, "+15550001111").send("+2207000000", "hi")

    assert result.sent is False
    assert result.error == "Twilio unreachable"


def test_unconfigured_dispatcher_does_not_send() -> None:
    dispatcher = SmsDispatcher.from_credentials("", "", "")

    result = dispatcher.send("+2207000000", "hi")

    assert result.sent is False
    assert result.error == "sms not configured"
