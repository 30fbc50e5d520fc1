"""
pawaPay gateway client.

Wraps the two provider endpoints this service needs:
  - POST /v2/paymentpage       open a hosted payment page
  - GET  /v2/deposits/{id}     fetch a deposit's status

Every call goes through a RetryPolicy and every failure leaves as a
PawaPayError subclass. Configuration is an immutable GatewayConfig handed
in at construction; pass an ``httpx.AsyncClient`` to point the client at
a fake endpoint.
"""

import logging
import time
import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Optional
from urllib.parse import quote

import httpx

from checkout.config import Settings
from checkout.engine.errors import (
    classify_response,
    classify_transport_error,
    error_from_failure_reason,
)
from checkout.engine.retry import RetryPolicy, UnknownError, ValidationError
from checkout.engine.status import unwrap_deposit_payload
from checkout.limits.validator import validate_amount
from checkout.providers.base import (
    DepositStatus,
    PaymentGateway,
    PaymentPageRequest,
    PaymentSession,
)

logger = logging.getLogger("checkout.pawapay")

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


@dataclass(frozen=True)
class GatewayConfig:
    """Process-wide, read-only provider settings."""

    base_url: str
    api_token: str
    timeout_s: float = 30.0
    max_retries: int = 3
    retry_base_delay_s: float = 1.0
    session_ttl: timedelta = timedelta(minutes=30)

    @classmethod
    def from_settings(cls, settings: Settings) -> "GatewayConfig":
        return cls(
            base_url=settings.pawapay_base_url,
            api_token=settings.pawapay_api_token,
            timeout_s=settings.request_timeout_s,
            max_retries=settings.max_retries,
            retry_base_delay_s=settings.retry_base_delay_s,
            session_ttl=timedelta(minutes=settings.session_ttl_minutes),
        )

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_token}",
            "Content-Type": "application/json",
        }


def _base36(number: int) -> str:
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits)) or "0"


def generate_deposit_id(prefix: Optional[str] = None) -> str:
    """
    Generate a globally unique deposit ID.

    Without a prefix this is a random UUIDv4, which is what pawaPay
    expects. With a prefix the ID reads ``{prefix}_{ms timestamp base36}_{uuid4 hex}``.
    """
    if not prefix:
        return str(uuid.uuid4())
    return f"{prefix}_{_base36(time.time_ns() // 1_000_000)}_{uuid.uuid4().hex}"


class PawaPayClient(PaymentGateway):
    """Gateway implementation that talks to the pawaPay REST API over httpx."""

    def __init__(
        self,
        config: GatewayConfig,
        http_client: Optional[httpx.AsyncClient] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self._config = config
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout_s,
        )
        self._retry = retry_policy or RetryPolicy(
            max_retries=config.max_retries,
            base_delay=config.retry_base_delay_s,
        )

    @property
    def config(self) -> GatewayConfig:
        return self._config

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """
        One HTTP attempt. Returns 2xx responses (and 404s, which callers
        interpret); raises a classified PawaPayError for everything else.
        """
        try:
            response = await self._http.request(
                method,
                path,
                headers=self._config.headers,
                timeout=self._config.timeout_s,
                **kwargs,
            )
        except httpx.HTTPError as exc:
            raise classify_transport_error(exc) from exc

        if response.is_success or response.status_code == 404:
            return response
        raise classify_response(response)

    async def create_payment_session(
        self,
        request: PaymentPageRequest,
        retries: Optional[int] = None,
        validate_limits: bool = True,
        session_id: Optional[str] = None,
    ) -> PaymentSession:
        if validate_limits:
            try:
                amount = float(request.amount)
            except (TypeError, ValueError):
                raise ValidationError("Invalid amount", code="AMOUNT_VALIDATION_FAILED") from None

            validation = validate_amount(amount, request.country, request.currency)
            if not validation.is_valid:
                raise ValidationError(
                    validation.error or "Invalid amount",
                    code="AMOUNT_VALIDATION_FAILED",
                )

        session = PaymentSession.open(
            request.deposit_id,
            metadata={
                "sessionId": session_id,
                "country": request.country,
                "currency": request.currency,
                "amount": request.amount,
            },
            ttl=self._config.session_ttl,
        )

        policy = self._retry.with_retries(retries)
        response = await policy.run(self._request, "POST", "/v2/paymentpage", json=request.to_payload())
        if response.status_code == 404:
            raise classify_response(response)

        body = _json_or_none(response)
        if not isinstance(body, dict):
            raise UnknownError("Unexpected response from payment provider")

        if body.get("status") == "REJECTED":
            reason = body.get("failureReason")
            if not isinstance(reason, dict):
                reason = {}
            logger.warning(
                "Payment page rejected for deposit %s: %s",
                request.deposit_id,
                reason.get("failureCode"),
            )
            raise error_from_failure_reason(reason)

        redirect_url = body.get("redirectUrl")
        if not redirect_url:
            raise UnknownError("Payment provider did not return a redirect URL")

        session.mark_redirected(redirect_url)
        logger.info("Payment page created for deposit %s", session.deposit_id)
        return session

    async def get_deposit_status(self, deposit_id: str, retries: Optional[int] = None) -> DepositStatus:
        policy = self._retry.with_retries(retries)
        response = await policy.run(self._request, "GET", f"/v2/deposits/{quote(deposit_id, safe='')}")

        if response.status_code == 404:
            logger.info("Deposit %s not found yet, reporting PENDING", deposit_id)
            return DepositStatus.pending(deposit_id)

        data = unwrap_deposit_payload(_json_or_none(response))
        if data is None:
            logger.info("Empty status body for deposit %s, reporting PENDING", deposit_id)
            return DepositStatus.pending(deposit_id)

        deposit = DepositStatus.from_payload(data, deposit_id=deposit_id)
        logger.debug("Deposit %s status %s", deposit.deposit_id, deposit.status.value)
        return deposit


def _json_or_none(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None
