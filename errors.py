# errors.py
"""
Exceptions raised by the CRM client.

Two kinds reach callers:
- CRMError: the vendor rejected the request (validation, business rule,
  declined payment). OrderDeclineError marks an HTTP 402 decline.
- OperationalError: the transport failed or the response body could not be
  decoded.
"""

from typing import Any, Optional


class CRMClientError(Exception):
    """Base class for errors carrying the HTTP exchange that produced them."""

    name = "CRMClientError"
    default_status_code = 500
    is_custom_error = True
    severity = "error"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        request_body: Any = None,
        response_body: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = (
            status_code if status_code is not None else self.default_status_code
        )
        self.request_body = request_body
        self.response_body = response_body

    def to_dict(self) -> dict[str, Any]:
        """Serialize for CLI output and structured logs."""
        return {
            "name": self.name,
            "message": self.message,
            "statusCode": self.status_code,
            "requestBody": self.request_body,
            "responseBody": self.response_body,
        }


class CRMError(CRMClientError):
    """Raised when the vendor returns an error response with a JSON body."""

    name = "CRMError"
    default_status_code = 400


class OrderDeclineError(CRMError):
    """Raised when the vendor declines payment (HTTP 402)."""

    name = "OrderDecline"


class OperationalError(CRMClientError):
    """Raised when the request fails in transport or the body is not JSON."""

    name = "OperationalError"
    default_status_code = 500


class PaymentTypeError(ValueError):
    """Raised when a card brand has no vendor payment type code."""

    pass
