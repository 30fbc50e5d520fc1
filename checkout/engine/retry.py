"""
Exponential backoff retry logic for pawaPay calls.

Transient failures (any 5xx from the provider, timeouts, DNS failures,
refused connections) are retried with exponential backoff; client errors
(4xx) are not. The policy is a small immutable object so call sites share
one definition and tests can inject a fake sleep.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger("checkout.retry")

T = TypeVar("T")

MAX_RETRIES = 3
BASE_DELAY = 1.0
MAX_DELAY = 30.0


class PawaPayError(Exception):
    """
    Base exception for everything that can fail in a payment flow.

    Attributes:
        code: Machine readable code (provider failureCode, HTTP_503, TIMEOUT, ...).
        message: Text safe to show to the customer.
        retryable: Whether the customer may immediately try again.
        status_code: HTTP status returned by the provider, if any.
    """

    default_status = 500

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        retryable: bool = False,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.retryable = retryable
        self.status_code = status_code

    @property
    def http_status(self) -> int:
        """Status our own API answers with for this error. Never a 2xx."""
        if self.status_code and self.status_code >= 400:
            return self.status_code
        return self.default_status

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": False,
            "error": self.message,
            "code": self.code,
            "retryable": self.retryable,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, status_code={self.status_code!r})"


class ValidationError(PawaPayError):
    """Request rejected locally before reaching the provider."""

    default_status = 400

    def __init__(self, message: str, code: str = "VALIDATION_ERROR", details: Optional[dict] = None):
        super().__init__(message, code=code, retryable=False)
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        body.update(self.details)
        return body


class ProviderClientError(PawaPayError):
    """4xx from pawaPay, or a request the provider rejected."""

    default_status = 400


class ProviderServerError(PawaPayError):
    """5xx from pawaPay."""

    default_status = 502


class NetworkError(PawaPayError):
    """The provider could not be reached (timeout, DNS, connection refused)."""

    default_status = 502

    @property
    def http_status(self) -> int:
        return 504 if self.code == "TIMEOUT" else self.default_status


class SignatureError(PawaPayError):
    """Webhook signature did not verify."""

    default_status = 400

    def __init__(self, message: str = "Invalid webhook signature"):
        super().__init__(message, code="INVALID_SIGNATURE", retryable=False)


class UnknownError(PawaPayError):
    """Anything we cannot classify."""


def is_transient(error: PawaPayError) -> bool:
    """Default retry predicate: 5xx responses and connection-level failures."""
    return isinstance(error, (ProviderServerError, NetworkError))


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry configuration for one outbound call.

    Attempt 0 runs immediately. After failed attempt ``n`` the policy
    sleeps ``base_delay * 2**n`` seconds (capped at ``max_delay``) before
    trying again, up to ``max_retries`` retries in total.
    """

    max_retries: int = MAX_RETRIES
    base_delay: float = BASE_DELAY
    max_delay: float = MAX_DELAY
    is_retryable: Callable[[PawaPayError], bool] = is_transient
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep

    def delay_for(self, attempt: int) -> float:
        return min(self.base_delay * (2 ** attempt), self.max_delay)

    def with_retries(self, max_retries: Optional[int]) -> "RetryPolicy":
        if max_retries is None or max_retries == self.max_retries:
            return self
        return RetryPolicy(
            max_retries=max_retries,
            base_delay=self.base_delay,
            max_delay=self.max_delay,
            is_retryable=self.is_retryable,
            sleep=self.sleep,
        )

    async def run(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """
        Execute an async callable, retrying transient PawaPayErrors.

        Raises:
            PawaPayError: The first non-retryable error, or the last error
                once retries are exhausted.
        """
        for attempt in range(self.max_retries + 1):
            try:
                return await func(*args, **kwargs)
            except PawaPayError as e:
                if not self.is_retryable(e):
                    raise

                if attempt >= self.max_retries:
                    logger.error("Exhausted %d retries for provider call: %r", self.max_retries, e)
                    raise

                sleep_for = self.delay_for(attempt)
                logger.warning(
                    "Retriable error on attempt %d/%d: %r - sleeping %.1fs",
                    attempt + 1,
                    self.max_retries + 1,
                    e,
                    sleep_for,
                )
                await self.sleep(sleep_for)

        raise UnknownError("Unknown error after retries")


async def with_retry(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    policy: Optional[RetryPolicy] = None,
    **kwargs: Any,
) -> T:
    """Run ``func`` under ``policy`` (the default policy when omitted)."""
    return await (policy or RetryPolicy()).run(func, *args, **kwargs)
