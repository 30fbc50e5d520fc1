"""Tests for the pawaPay gateway client against a scripted endpoint."""

import json

import httpx
import pytest

from conftest import API_TOKEN, deposit_payload

from checkout.engine.retry import (
    NetworkError,
    ProviderClientError,
    ProviderServerError,
    UnknownError,
    ValidationError,
)
from checkout.models.enums import DepositState, SessionStatus
from checkout.providers.base import PaymentPageRequest
from checkout.providers.pawapay import GatewayConfig, generate_deposit_id

DEPOSIT_ID = "8917c345-4791-4285-a416-62f24b6982db"


def page_request(**overrides) -> PaymentPageRequest:
    fields = {
        "deposit_id": DEPOSIT_ID,
        "return_url": f"https://shop.example/payment/return?depositId={DEPOSIT_ID}",
        "amount": "5000",
        "currency": "CDF",
        "country": "COD",
        "reason": "Order 1042",
        "phone_number": "243812345678",
        "customer_message": "Order 1042",
    }
    fields.update(overrides)
    return PaymentPageRequest(**fields)


def redirect_response() -> httpx.Response:
    return httpx.Response(200, json={"depositId": DEPOSIT_ID, "redirectUrl": f"https://pay.example/{DEPOSIT_ID}"})


class TestCreatePaymentSession:
    @pytest.mark.asyncio
    async def test_success(self, gateway, fake_pawapay):
        fake_pawapay.queue(redirect_response())

        session = await gateway.create_payment_session(page_request(), session_id="sess-1")

        assert session.deposit_id == DEPOSIT_ID
        assert session.status is SessionStatus.REDIRECTED
        assert session.redirect_url == f"https://pay.example/{DEPOSIT_ID}"
        assert session.metadata["sessionId"] == "sess-1"
        assert session.metadata["currency"] == "CDF"

        (request,) = fake_pawapay.requests
        assert request.method == "POST"
        assert request.url.path == "/v2/paymentpage"
        assert request.headers["Authorization"] == f"Bearer {API_TOKEN}"
        body = json.loads(request.content)
        assert body["depositId"] == DEPOSIT_ID
        assert body["amountDetails"] == {"amount": "5000", "currency": "CDF"}
        assert body["phoneNumber"] == "243812345678"
        assert body["country"] == "COD"

    @pytest.mark.asyncio
    async def test_amount_outside_limits_never_reaches_provider(self, gateway, fake_pawapay):
        with pytest.raises(ValidationError) as exc_info:
            await gateway.create_payment_session(page_request(amount="50", currency="KES", country="KEN"))

        assert exc_info.value.code == "AMOUNT_VALIDATION_FAILED"
        assert exc_info.value.message == "Minimum amount is 100 KES"
        assert exc_info.value.retryable is False
        assert fake_pawapay.requests == []

    @pytest.mark.asyncio
    async def test_limit_check_can_be_skipped(self, gateway, fake_pawapay):
        fake_pawapay.queue(redirect_response())
        session = await gateway.create_payment_session(page_request(amount="1"), validate_limits=False)
        assert session.status is SessionStatus.REDIRECTED
        assert len(fake_pawapay.requests) == 1

    @pytest.mark.asyncio
    async def test_retries_server_errors_with_backoff(self, gateway, fake_pawapay, recording_sleep):
        fake_pawapay.queue(httpx.Response(503), httpx.Response(503), redirect_response())

        session = await gateway.create_payment_session(page_request())

        assert session.status is SessionStatus.REDIRECTED
        assert len(fake_pawapay.requests) == 3
        assert recording_sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, gateway, fake_pawapay, recording_sleep):
        fake_pawapay.queue(*[httpx.Response(502) for _ in range(4)])

        with pytest.raises(ProviderServerError) as exc_info:
            await gateway.create_payment_session(page_request())

        assert exc_info.value.status_code == 502
        assert exc_info.value.retryable is True
        assert len(fake_pawapay.requests) == 4
        assert recording_sleep.delays == [1.0, 2.0, 4.0]

    @pytest.mark.asyncio
    async def test_per_call_retry_override(self, gateway, fake_pawapay, recording_sleep):
        fake_pawapay.queue(httpx.Response(503))

        with pytest.raises(ProviderServerError):
            await gateway.create_payment_session(page_request(), retries=0)

        assert len(fake_pawapay.requests) == 1
        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self, gateway, fake_pawapay, recording_sleep):
        fake_pawapay.queue(httpx.Response(400, json={
            "failureReason": {"failureCode": "INVALID_AMOUNT", "failureMessage": "Amount has too many decimals"},
        }))

        with pytest.raises(ProviderClientError) as exc_info:
            await gateway.create_payment_session(page_request())

        assert exc_info.value.code == "INVALID_AMOUNT"
        assert exc_info.value.status_code == 400
        assert len(fake_pawapay.requests) == 1
        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_rejected_page(self, gateway, fake_pawapay):
        fake_pawapay.queue(httpx.Response(200, json={
            "depositId": DEPOSIT_ID,
            "status": "REJECTED",
            "failureReason": {"failureCode": "INVALID_CURRENCY", "failureMessage": "Currency not supported"},
        }))

        with pytest.raises(ProviderClientError) as exc_info:
            await gateway.create_payment_session(page_request())

        assert exc_info.value.code == "INVALID_CURRENCY"
        assert exc_info.value.http_status == 400

    @pytest.mark.asyncio
    async def test_timeouts_exhaust_to_network_error(self, gateway, fake_pawapay, recording_sleep):
        fake_pawapay.queue(*[httpx.ReadTimeout("timed out") for _ in range(4)])

        with pytest.raises(NetworkError) as exc_info:
            await gateway.create_payment_session(page_request())

        assert exc_info.value.code == "TIMEOUT"
        assert len(fake_pawapay.requests) == 4
        assert recording_sleep.delays == [1.0, 2.0, 4.0]

    @pytest.mark.asyncio
    async def test_connection_refused_then_success(self, gateway, fake_pawapay):
        fake_pawapay.queue(httpx.ConnectError("Connection refused"), redirect_response())
        session = await gateway.create_payment_session(page_request())
        assert session.redirect_url.endswith(DEPOSIT_ID)

    @pytest.mark.asyncio
    async def test_rejected_page_with_malformed_reason(self, gateway, fake_pawapay):
        fake_pawapay.queue(httpx.Response(200, json={"status": "REJECTED", "failureReason": "DUPLICATE"}))

        with pytest.raises(ProviderClientError) as exc_info:
            await gateway.create_payment_session(page_request())

        assert exc_info.value.code == "PAWAPAY_ERROR"
        assert exc_info.value.message == "Payment processing failed"

    @pytest.mark.asyncio
    async def test_missing_redirect_url(self, gateway, fake_pawapay):
        fake_pawapay.queue(httpx.Response(200, json={"depositId": DEPOSIT_ID}))
        with pytest.raises(UnknownError):
            await gateway.create_payment_session(page_request())

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response", [httpx.Response(200), httpx.Response(200, json=["unexpected"])])
    async def test_unreadable_success_body(self, gateway, fake_pawapay, response):
        fake_pawapay.queue(response)

        with pytest.raises(UnknownError) as exc_info:
            await gateway.create_payment_session(page_request())

        assert exc_info.value.status_code is None
        assert exc_info.value.http_status == 500


class TestGetDepositStatus:
    @pytest.mark.asyncio
    async def test_not_found_yet_is_pending(self, gateway, fake_pawapay):
        fake_pawapay.queue(httpx.Response(404))

        deposit = await gateway.get_deposit_status(DEPOSIT_ID)

        assert deposit.deposit_id == DEPOSIT_ID
        assert deposit.status is DepositState.PENDING
        assert len(fake_pawapay.requests) == 1
        assert fake_pawapay.requests[0].url.path == f"/v2/deposits/{DEPOSIT_ID}"

    @pytest.mark.asyncio
    async def test_deposit_id_stays_one_path_segment(self, gateway, fake_pawapay):
        fake_pawapay.queue(httpx.Response(404))

        await gateway.get_deposit_status("x/../../v1/balances")

        assert fake_pawapay.requests[0].url.raw_path == b"/v2/deposits/x%2F..%2F..%2Fv1%2Fbalances"

    @pytest.mark.asyncio
    async def test_array_wrapped_body(self, gateway, fake_pawapay):
        fake_pawapay.queue(httpx.Response(200, json=[deposit_payload()]))

        deposit = await gateway.get_deposit_status(DEPOSIT_ID)

        assert deposit.status is DepositState.COMPLETED
        assert deposit.deposited_amount == "5000"
        assert deposit.correspondent == "VODACOM_MPESA_COD"

    @pytest.mark.asyncio
    async def test_bare_and_wrapped_bodies_agree(self, gateway, fake_pawapay):
        fake_pawapay.queue(httpx.Response(200, json=deposit_payload()), httpx.Response(200, json=[deposit_payload()]))

        bare = await gateway.get_deposit_status(DEPOSIT_ID)
        wrapped = await gateway.get_deposit_status(DEPOSIT_ID)

        assert bare == wrapped

    @pytest.mark.asyncio
    async def test_v2_envelope(self, gateway, fake_pawapay):
        fake_pawapay.queue(httpx.Response(200, json={"status": "FOUND", "data": deposit_payload(status="SUBMITTED")}))
        deposit = await gateway.get_deposit_status(DEPOSIT_ID)
        assert deposit.status is DepositState.SUBMITTED

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [[], {"status": "NOT_FOUND"}])
    async def test_empty_body_is_pending(self, gateway, fake_pawapay, body):
        fake_pawapay.queue(httpx.Response(200, json=body))
        deposit = await gateway.get_deposit_status(DEPOSIT_ID)
        assert deposit.status is DepositState.PENDING

    @pytest.mark.asyncio
    async def test_unknown_status_is_an_error(self, gateway, fake_pawapay):
        fake_pawapay.queue(httpx.Response(200, json=deposit_payload(status="MYSTERY")))
        with pytest.raises(UnknownError) as exc_info:
            await gateway.get_deposit_status(DEPOSIT_ID)
        assert exc_info.value.code == "UNKNOWN_DEPOSIT_STATUS"

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self, gateway, fake_pawapay, recording_sleep):
        fake_pawapay.queue(httpx.Response(500), httpx.Response(200, json=deposit_payload()))
        deposit = await gateway.get_deposit_status(DEPOSIT_ID)
        assert deposit.status is DepositState.COMPLETED
        assert recording_sleep.delays == [1.0]

    @pytest.mark.asyncio
    async def test_auth_failure(self, gateway, fake_pawapay):
        fake_pawapay.queue(httpx.Response(401))
        with pytest.raises(ProviderClientError) as exc_info:
            await gateway.get_deposit_status(DEPOSIT_ID)
        assert exc_info.value.code == "HTTP_401"
        assert len(fake_pawapay.requests) == 1


class TestDepositIds:
    def test_no_duplicates(self):
        ids = {generate_deposit_id() for _ in range(100_000)}
        assert len(ids) == 100_000

    def test_prefixed_ids_are_unique(self):
        ids = {generate_deposit_id("eYote") for _ in range(10_000)}
        assert len(ids) == 10_000

    def test_prefixed_format(self):
        prefix, timestamp, random_part = generate_deposit_id("eYote").split("_")
        assert prefix == "eYote"
        assert timestamp.isalnum()
        assert len(random_part) == 32

    def test_default_is_uuid(self):
        deposit_id = generate_deposit_id()
        assert len(deposit_id) == 36
        assert deposit_id[14] == "4"


class TestGatewayConfig:
    def test_from_settings(self, test_settings):
        config = GatewayConfig.from_settings(test_settings)
        assert config.base_url == test_settings.pawapay_base_url
        assert config.timeout_s == 30.0
        assert config.max_retries == 3
        assert config.headers["Authorization"] == f"Bearer {API_TOKEN}"
