"""Exception types raised by the Bundlr client."""
from typing import Dict, Optional, Type


class BundlrError(Exception):
    """Base class for every error raised by python_bundlr."""


# ----------------------- Validation -----------------------
class ValidationError(BundlrError):
    """Input rejected before any network call was made."""


class EmptyPayloadError(ValidationError):
    pass


class TagsTooLargeError(ValidationError):
    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"Tags exceed {limit} bytes after serialization ({size} bytes)")


class InvalidFieldLengthError(ValidationError):
    def __init__(self, field: str, actual: int, expected: int):
        self.field = field
        self.actual = actual
        self.expected = expected
        super().__init__(f"{field} must be {expected} bytes, got {actual}")


class InvalidKeyError(ValidationError):
    pass


class SignatureError(ValidationError):
    """Signature missing, wrongly sized or already applied."""


class EncodingError(BundlrError):
    pass


class ProtocolError(BundlrError):
    """Node answered with a body that could not be interpreted."""


class InsufficientBalanceError(BundlrError):
    def __init__(self, price: int, balance: int):
        self.price = price
        self.balance = balance
        super().__init__(
            f"Bundlr account has insufficient balance. Required {price} atomic units "
            f"but only {balance} are available. Fund the account before uploading."
        )


# ----------------------- Transport -----------------------
class TransportError(BundlrError):
    """Node returned a non-success HTTP status."""

    def __init__(self, status_code: int, reason: Optional[str] = None, body: str = "",
                 operation: str = "Bundlr request"):
        self.status_code = status_code
        self.reason = reason or ""
        self.body = body
        self.operation = operation
        super().__init__(f"{operation} failed ({status_code} {self.reason}): {body}")


class BadRequest(TransportError):
    pass


class Unauthorized(TransportError):
    pass


class PaymentRequired(TransportError):
    pass


class NotFound(TransportError):
    pass


class PayloadTooLarge(TransportError):
    pass


class TooManyRequests(TransportError):
    pass


class ServerError(TransportError):
    pass


_STATUS_ERRORS: Dict[int, Type[TransportError]] = {
    400: BadRequest,
    401: Unauthorized,
    402: PaymentRequired,
    404: NotFound,
    413: PayloadTooLarge,
    429: TooManyRequests,
}


def get_error_from_status(status_code: int, reason: Optional[str], body: str,
                          operation: str = "Bundlr request") -> TransportError:
    """Map an HTTP status code to the matching TransportError subclass.

    :param status_code: HTTP status returned by the node.
    :param reason: Reason phrase of the response.
    :param body: Response body, kept verbatim in the message.
    :param operation: Human readable name of the failed operation.
    """
    error_cls = _STATUS_ERRORS.get(status_code)
    if error_cls is None:
        error_cls = ServerError if status_code >= 500 else TransportError
    return error_cls(status_code, reason, body, operation)
