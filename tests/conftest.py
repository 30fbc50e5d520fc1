"""Shared test fixtures."""

from typing import Union

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from checkout.api.deps import get_gateway
from checkout.config import Settings, get_settings
from checkout.database import build_engine, get_session, init_db, session_factory
from checkout.engine.retry import RetryPolicy
from checkout.main import app
from checkout.providers.pawapay import GatewayConfig, PawaPayClient

PAWAPAY_URL = "https://pawapay.test"
API_TOKEN = "test-token"
WEBHOOK_SECRET = "whsec_test"


class RecordingSleep:
    """Drop-in for asyncio.sleep that records delays instead of waiting."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class FakePawaPay:
    """Scripted pawaPay endpoint served through httpx.MockTransport."""

    def __init__(self):
        self.script: list[Union[httpx.Response, Exception]] = []
        self.requests: list[httpx.Request] = []

    def queue(self, *items: Union[httpx.Response, Exception]) -> None:
        self.script.extend(items)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.script:
            raise AssertionError(f"Unexpected provider call: {request.method} {request.url}")
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def deposit_payload(**overrides) -> dict:
    """A completed deposit as pawaPay reports it."""
    payload = {
        "depositId": "8917c345-4791-4285-a416-62f24b6982db",
        "status": "COMPLETED",
        "requestedAmount": "5000",
        "depositedAmount": "5000",
        "currency": "CDF",
        "country": "COD",
        "correspondent": "VODACOM_MPESA_COD",
        "payer": {"type": "MSISDN", "address": {"value": "243812345678"}},
        "created": "2026-10-19T10:00:00Z",
        "completed": "2026-10-19T10:01:10Z",
        "statementDescription": "Order 1042",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def fake_pawapay() -> FakePawaPay:
    return FakePawaPay()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest_asyncio.fixture
async def gateway(fake_pawapay: FakePawaPay, recording_sleep: RecordingSleep):
    """PawaPayClient wired to the fake endpoint, with instant backoff."""
    config = GatewayConfig(base_url=PAWAPAY_URL, api_token=API_TOKEN)
    http_client = httpx.AsyncClient(base_url=PAWAPAY_URL, transport=httpx.MockTransport(fake_pawapay.handler))
    client = PawaPayClient(
        config,
        http_client=http_client,
        retry_policy=RetryPolicy(max_retries=3, base_delay=1.0, sleep=recording_sleep),
    )
    yield client
    await http_client.aclose()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        pawapay_base_url=PAWAPAY_URL,
        pawapay_api_token=API_TOKEN,
        pawapay_webhook_secret=WEBHOOK_SECRET,
        webhook_require_signature=False,
        callback_base_url="https://shop.example",
        database_url="sqlite+aiosqlite:///:memory:",
    )


@pytest_asyncio.fixture
async def db_session(test_settings: Settings):
    """Audit session on a private in-memory database."""
    engine = build_engine(test_settings.database_url)
    await init_db(engine)
    try:
        async with session_factory(engine)() as session:
            yield session
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def api_client(gateway: PawaPayClient, db_session: AsyncSession, test_settings: Settings):
    """HTTP client for the app with gateway, database and settings overridden."""

    async def _session():
        yield db_session

    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_settings] = lambda: test_settings

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client

    app.dependency_overrides.clear()
