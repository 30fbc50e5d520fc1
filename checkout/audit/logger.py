"""
Append-only audit trail for deposits.

Every interaction with a deposit gets one entry with:
  - Deposit ID (the only key shared with pawaPay)
  - Action (session_created, status_checked, webhook_received, ...)
  - Details (amounts, statuses, error codes)
  - Timestamp (UTC)

Entries are never modified or deleted, and nothing in the payment flow
reads them back: they exist for support and reconciliation.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from checkout.models.enums import EventAction
from checkout.models.event import PaymentEvent

logger = logging.getLogger("checkout.audit")


async def log_event(
    session: AsyncSession,
    action: EventAction,
    deposit_id: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
) -> PaymentEvent:
    """
    Create an audit log entry.

    Args:
        session: Database session. The caller commits.
        action: What happened.
        deposit_id: The deposit this event relates to, if known.
        details: Arbitrary context (serialized to JSON).

    Returns:
        The created PaymentEvent record.
    """
    serialized = json.dumps(details, default=str) if details else None
    entry = PaymentEvent(
        deposit_id=deposit_id,
        action=action.value,
        details=serialized,
        timestamp=datetime.now(timezone.utc),
    )
    session.add(entry)
    logger.info(
        "AUDIT | deposit=%s action=%s | %s",
        deposit_id or "-",
        action.value,
        serialized[:200] if serialized else "",
    )
    return entry


async def list_events(session: AsyncSession, deposit_id: str) -> list[PaymentEvent]:
    """All audit entries for a deposit, oldest first."""
    result = await session.execute(
        select(PaymentEvent)
        .where(PaymentEvent.deposit_id == deposit_id)
        .order_by(PaymentEvent.timestamp.asc(), PaymentEvent.id.asc())
    )
    return list(result.scalars().all())
