"""
Mobile Money Checkout — pawaPay hosted payment page API.

Lets a customer pay by mobile money (DR Congo, Uganda, Ghana, Zambia,
Kenya, Tanzania, Rwanda): the browser posts a payment form, is redirected
to pawaPay's hosted page, then polls for the final status while pawaPay
confirms it by webhook.

Start the server:
    uvicorn checkout.main:app --reload
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from checkout import __version__
from checkout.api.countries import router as countries_router
from checkout.api.health import router as health_router
from checkout.api.payments import router as payments_router
from checkout.api.webhooks import router as webhooks_router
from checkout.config import settings
from checkout.database import init_db
from checkout.engine.retry import PawaPayError
from checkout.providers.pawapay import GatewayConfig, PawaPayClient

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger("checkout.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize the database and the shared pawaPay client."""
    await init_db()
    if not settings.pawapay_api_token:
        logger.warning("PAWAPAY_API_TOKEN is not set; provider calls will be rejected")
    gateway = PawaPayClient(GatewayConfig.from_settings(settings))
    app.state.gateway = gateway
    try:
        yield
    finally:
        await gateway.aclose()


app = FastAPI(
    title="Mobile Money Checkout",
    description=(
        "Hosted mobile money checkout on top of pawaPay. Validates amounts and phone "
        "numbers per market, opens payment pages with retry and backoff, reports "
        "deposit status and verifies signed webhooks."
    ),
    version=__version__,
    lifespan=lifespan,
)


@app.exception_handler(PawaPayError)
async def pawapay_error_handler(request: Request, exc: PawaPayError):
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "header"))
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": message, "code": "VALIDATION_ERROR", "retryable": False},
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every API request with timing."""
    start = time.perf_counter()
    response = await call_next(request)
    duration = round((time.perf_counter() - start) * 1000, 1)
    if request.url.path.startswith("/api"):
        logger.info("%s %s -> %d (%sms)", request.method, request.url.path, response.status_code, duration)
    return response


app.include_router(health_router)
app.include_router(countries_router, prefix="/api")
app.include_router(payments_router, prefix="/api")
app.include_router(webhooks_router, prefix="/api")
