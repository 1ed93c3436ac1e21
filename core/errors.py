from typing import Any, Dict, Optional


class RelayError(Exception):
    """
    Base error; every subclass knows its own HTTP status
    """

    kind = "InternalError"
    status_code = 500

    def __init__(self, message: str = "", details: Optional[Any] = None) -> None:
        super().__init__(message or self.kind)
        self.message = message or self.kind
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.kind, "message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


# --- webhook verification ---
class SignatureRejected(RelayError):
    kind = "SignatureRejected"
    status_code = 401


class MalformedHeader(SignatureRejected):
    kind = "MalformedHeader"


class Expired(SignatureRejected):
    kind = "Expired"


class SignatureMismatch(SignatureRejected):
    kind = "SignatureMismatch"


class MalformedPayload(RelayError):
    # body was authentic, content was not
    kind = "MalformedPayload"
    status_code = 500


class Unauthorized(RelayError):
    kind = "Unauthorized"
    status_code = 401


# --- order intake ---
class IntakeRejected(RelayError):
    status_code = 400


class MissingFields(IntakeRejected):
    kind = "MissingFields"


class InvalidPhone(IntakeRejected):
    kind = "InvalidPhone"


class InvalidAmount(IntakeRejected):
    kind = "InvalidAmount"


class ProviderError(RelayError):
    kind = "ProviderError"
    status_code = 502


class NoPaymentUrl(ProviderError):
    kind = "NoPaymentUrl"
