"""
pawaPay callback endpoint.

POST /webhooks/pawapay — Deposit status callback (signed with x-pawapay-signature).
GET  /webhooks/pawapay — Reachability check used when configuring the callback URL.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from checkout.audit.logger import log_event
from checkout.config import Settings, get_settings
from checkout.database import get_session
from checkout.engine.retry import PawaPayError
from checkout.models.enums import EventAction
from checkout.webhooks.processor import process_webhook

logger = logging.getLogger("checkout.api")

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


class WebhookAck(BaseModel):
    success: bool = True
    message: str = "Webhook processed successfully"
    depositId: str


@router.post("/pawapay", response_model=WebhookAck)
async def pawapay_webhook(
    request: Request,
    x_pawapay_signature: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
    session: AsyncSession = Depends(get_session),
):
    """
    Accept a deposit status callback.

    Deliveries that fail verification or lack depositId/status answer 400
    and leave no trace in the audit trail. Accepted deliveries are
    acknowledged with 200; duplicates are acknowledged again.
    """
    payload = await request.body()
    try:
        result = process_webhook(
            payload,
            signature=x_pawapay_signature,
            secret=settings.pawapay_webhook_secret or None,
            require_signature=settings.webhook_require_signature,
        )
    except PawaPayError as e:
        logger.warning("Webhook rejected: %s (%s)", e.message, e.code)
        raise

    await log_event(session, EventAction.WEBHOOK_RECEIVED, deposit_id=result.deposit_id, details={
        "status": result.status.value,
        "session_status": result.session_status.value,
        "signed": bool(x_pawapay_signature),
    })
    await session.commit()
    logger.info("Webhook processed: deposit=%s status=%s", result.deposit_id, result.status.value)

    return WebhookAck(depositId=result.deposit_id)


@router.get("/pawapay")
async def pawapay_webhook_info():
    return {"message": "PawaPay webhook endpoint is active"}
