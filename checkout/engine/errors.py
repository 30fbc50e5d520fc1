"""
Classification of pawaPay failures into PawaPayError subclasses.

Precedence:
  1. A ``failureReason.failureCode`` in the response body is surfaced as-is.
  2. Otherwise the HTTP status maps to a fixed customer-facing message.
  3. Transport failures become TIMEOUT or NETWORK_ERROR.
  4. Anything else is UNKNOWN_ERROR.
"""

from typing import Any, Optional

import httpx

from checkout.engine.retry import (
    NetworkError,
    PawaPayError,
    ProviderClientError,
    ProviderServerError,
    UnknownError,
)

# Provider failure codes that denote a temporary condition on their side.
RETRYABLE_FAILURE_CODES = {
    "PROVIDER_TEMPORARILY_UNAVAILABLE",
    "SYSTEM_TEMPORARILY_UNAVAILABLE",
    "RATE_LIMIT_EXCEEDED",
}

HTTP_ERROR_MESSAGES = {
    400: "Invalid payment request - please check your details",
    401: "Authentication failed - please contact support",
    403: "Payment not authorized - please contact support",
    404: "Payment service not found - please try again",
    429: "Too many requests - please wait and try again",
    500: "Payment service temporarily unavailable - please try again",
    502: "Payment service is currently down - please try again later",
    503: "Payment service is currently down - please try again later",
    504: "Payment service is currently down - please try again later",
}


def http_error_message(status: int) -> str:
    return HTTP_ERROR_MESSAGES.get(status, f"Payment failed with error {status} - please try again")


def is_retryable_failure_code(code: Optional[str]) -> bool:
    return code in RETRYABLE_FAILURE_CODES


def _json_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def failure_reason_of(body: Any) -> Optional[dict]:
    """Extract ``failureReason`` from a provider body, if it carries one."""
    if isinstance(body, list) and len(body) == 1:
        body = body[0]
    if isinstance(body, dict) and isinstance(body.get("failureReason"), dict):
        return body["failureReason"]
    return None


def error_from_failure_reason(reason: dict, status: Optional[int] = None) -> PawaPayError:
    code = reason.get("failureCode") or "PAWAPAY_ERROR"
    message = reason.get("failureMessage") or "Payment processing failed"
    cls = ProviderServerError if status is not None and status >= 500 else ProviderClientError
    return cls(
        message,
        code=code,
        retryable=is_retryable_failure_code(code),
        status_code=status,
    )


def classify_response(response: httpx.Response) -> PawaPayError:
    """Turn a non-2xx provider response into a PawaPayError."""
    status = response.status_code
    reason = failure_reason_of(_json_body(response))
    if reason is not None:
        return error_from_failure_reason(reason, status)

    cls = ProviderServerError if status >= 500 else ProviderClientError
    return cls(
        http_error_message(status),
        code=f"HTTP_{status}",
        retryable=status >= 500,
        status_code=status,
    )


def classify_transport_error(exc: Exception) -> PawaPayError:
    """Turn an exception raised while talking to the provider into a PawaPayError."""
    if isinstance(exc, httpx.TimeoutException):
        return NetworkError("Request timeout - please try again", code="TIMEOUT", retryable=True)

    if isinstance(exc, httpx.NetworkError):
        return NetworkError(
            "Network connection failed - please check your internet connection",
            code="NETWORK_ERROR",
            retryable=True,
        )

    return UnknownError(str(exc) or "An unexpected error occurred")
