"""
Payment session endpoints.

POST /payments                       — Validate, then open a pawaPay payment page.
GET  /payments/status?depositId=     — Current provider status of a deposit.
GET  /payments/{deposit_id}/events   — Audit trail for a deposit.

Each request walks RECEIVED -> VALIDATED -> SUBMITTED_TO_PROVIDER and ends
RESPONDED or ERRORED. Nothing is carried between requests; errors leave as
PawaPayError and are rendered by the application's exception handler.
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, Depends, Header, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from checkout.api.deps import get_gateway
from checkout.audit.logger import list_events, log_event
from checkout.config import Settings, get_settings
from checkout.database import get_session
from checkout.engine.retry import PawaPayError, ValidationError
from checkout.engine.status import resolve_session_status
from checkout.limits.country_limits import get_country
from checkout.limits.validator import to_provider_amount, validate_amount, validate_phone_number
from checkout.models.enums import EventAction
from checkout.providers.base import PaymentGateway, PaymentPageRequest
from checkout.providers.pawapay import generate_deposit_id

logger = logging.getLogger("checkout.api")

router = APIRouter(prefix="/payments", tags=["payments"])


class CreatePaymentRequest(BaseModel):
    deposit_id: Optional[str] = Field(None, alias="depositId", max_length=100)
    reason: str = Field(..., min_length=1, max_length=255)
    country: str = Field(..., min_length=3, max_length=3)
    amount: float = Field(..., gt=0)
    phone_number: str = Field(..., alias="phoneNumber", min_length=1)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    language: Optional[str] = Field(None, min_length=2, max_length=2)

    model_config = {"populate_by_name": True}


class CreatePaymentResponse(BaseModel):
    success: bool = True
    depositId: str
    redirectUrl: str
    sessionId: str
    expiresAt: str
    message: str = "Payment page created successfully"


class DepositStatusResponse(BaseModel):
    success: bool = True
    deposit: dict[str, Any]
    sessionStatus: str


class EventOut(BaseModel):
    id: int
    action: str
    details: Optional[dict] = None
    timestamp: Optional[str]


class EventsResponse(BaseModel):
    success: bool = True
    depositId: str
    events: list[EventOut]


def _validated_request(
    body: CreatePaymentRequest,
    settings: Settings,
    session_id: str,
) -> PaymentPageRequest:
    """Run every local check and build the provider request, or raise ValidationError."""
    country_code = body.country.upper()
    country = get_country(country_code)
    if country is None:
        raise ValidationError(f"Payment not supported for {country_code}", code="UNSUPPORTED_COUNTRY")

    currency = (body.currency or country["currency"]).upper()

    phone = validate_phone_number(body.phone_number, country_code)
    if not phone.is_valid:
        raise ValidationError(phone.error or "Invalid phone number format", code="INVALID_PHONE_NUMBER")

    amount = validate_amount(body.amount, country_code, currency)
    if not amount.is_valid:
        details = {}
        if amount.limits:
            details["limits"] = {
                "minAmount": amount.limits.min_amount,
                "maxAmount": amount.limits.max_amount,
                "currency": amount.limits.currency,
            }
        raise ValidationError(
            amount.error or "Amount validation failed",
            code="AMOUNT_VALIDATION_FAILED",
            details=details,
        )

    deposit_id = body.deposit_id or generate_deposit_id()
    return PaymentPageRequest(
        deposit_id=deposit_id,
        return_url=f"{settings.callback_base_url.rstrip('/')}/payment/return?depositId={deposit_id}",
        amount=to_provider_amount(body.amount, currency),
        currency=currency,
        country=country_code,
        reason=body.reason,
        phone_number=phone.formatted,
        customer_message=body.reason,
        language=(body.language or settings.default_language).upper(),
        metadata=[
            {"fieldName": "sessionId", "fieldValue": session_id},
            {"fieldName": "source", "fieldValue": "checkout"},
        ],
    )


@router.post("", response_model=CreatePaymentResponse)
async def create_payment(
    body: CreatePaymentRequest,
    x_session_id: Optional[str] = Header(None),
    gateway: PaymentGateway = Depends(get_gateway),
    settings: Settings = Depends(get_settings),
    session: AsyncSession = Depends(get_session),
):
    """
    Open a hosted payment page and return its redirect URL.

    Validation failures answer 400 before pawaPay is contacted. Provider
    failures answer with the provider's status (or 500/502/504) and a
    ``retryable`` hint for the browser.
    """
    session_id = x_session_id or str(uuid.uuid4())
    logger.debug("RECEIVED payment request country=%s session=%s", body.country, session_id)

    request = _validated_request(body, settings, session_id)
    logger.debug("VALIDATED deposit=%s", request.deposit_id)

    try:
        logger.debug("SUBMITTED_TO_PROVIDER deposit=%s", request.deposit_id)
        payment_session = await gateway.create_payment_session(request, session_id=session_id)
    except PawaPayError as e:
        logger.warning("ERRORED deposit=%s code=%s", request.deposit_id, e.code)
        await log_event(session, EventAction.SESSION_FAILED, deposit_id=request.deposit_id, details={
            "code": e.code,
            "error": e.message,
            "retryable": e.retryable,
            "status_code": e.status_code,
        })
        await session.commit()
        raise

    await log_event(session, EventAction.SESSION_CREATED, deposit_id=payment_session.deposit_id, details={
        "session_status": payment_session.status.value,
        "country": request.country,
        "currency": request.currency,
        "amount": request.amount,
        "session_id": session_id,
    })
    await session.commit()
    logger.info("RESPONDED deposit=%s", payment_session.deposit_id)

    return CreatePaymentResponse(
        depositId=payment_session.deposit_id,
        redirectUrl=payment_session.redirect_url,
        sessionId=session_id,
        expiresAt=payment_session.expires_at.isoformat(),
    )


@router.get("/status", response_model=DepositStatusResponse)
async def get_payment_status(
    deposit_id: str = Query(..., alias="depositId", min_length=1, max_length=100),
    gateway: PaymentGateway = Depends(get_gateway),
    session: AsyncSession = Depends(get_session),
):
    """
    Fetch the deposit from pawaPay.

    A deposit pawaPay has not indexed yet comes back as PENDING rather
    than an error, so the browser can keep polling.
    """
    deposit = await gateway.get_deposit_status(deposit_id)
    session_status = resolve_session_status(
        deposit.status,
        deposit.created_at,
        datetime.now(timezone.utc),
    )

    await log_event(session, EventAction.STATUS_CHECKED, deposit_id=deposit_id, details={
        "status": deposit.status.value,
        "session_status": session_status.value,
    })
    await session.commit()

    return DepositStatusResponse(deposit=deposit.to_payload(), sessionStatus=session_status.value)


@router.get("/{deposit_id}/events", response_model=EventsResponse)
async def get_payment_events(deposit_id: str, session: AsyncSession = Depends(get_session)):
    """Everything this service has recorded about a deposit, oldest first."""
    events = []
    for event in await list_events(session, deposit_id):
        details = None
        if event.details:
            try:
                details = json.loads(event.details)
            except (json.JSONDecodeError, TypeError):
                details = {"raw": event.details}

        events.append(EventOut(
            id=event.id,
            action=event.action,
            details=details,
            timestamp=event.timestamp.isoformat() if event.timestamp else None,
        ))

    return EventsResponse(depositId=deposit_id, events=events)
