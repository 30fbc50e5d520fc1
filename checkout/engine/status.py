"""
Mapping between pawaPay's deposit vocabulary and the local session lifecycle.

The two vocabularies are deliberately separate types. ``to_session_status``
is the single place they meet, and it covers every DepositState member.
Values pawaPay sends that are not in DepositState are reported as errors.
"""

from datetime import datetime, timedelta
from typing import Any, Optional

from checkout.engine.retry import UnknownError
from checkout.models.enums import DepositState, SessionStatus

SESSION_TTL = timedelta(minutes=30)

_SESSION_STATUS_BY_DEPOSIT_STATE = {
    DepositState.ENQUEUED: SessionStatus.REDIRECTED,
    DepositState.PENDING: SessionStatus.REDIRECTED,
    DepositState.SUBMITTED: SessionStatus.REDIRECTED,
    DepositState.COMPLETED: SessionStatus.COMPLETED,
    DepositState.FAILED: SessionStatus.FAILED,
    DepositState.REJECTED: SessionStatus.FAILED,
}


def parse_deposit_state(value: Any) -> DepositState:
    """Parse a provider status string, rejecting anything outside the vocabulary."""
    try:
        return DepositState(str(value).upper())
    except ValueError:
        raise UnknownError(
            f"Unrecognized deposit status from provider: {value!r}",
            code="UNKNOWN_DEPOSIT_STATUS",
        ) from None


def to_session_status(state: DepositState) -> SessionStatus:
    return _SESSION_STATUS_BY_DEPOSIT_STATE[state]


def resolve_session_status(
    state: DepositState,
    created: Optional[datetime],
    now: datetime,
    ttl: timedelta = SESSION_TTL,
) -> SessionStatus:
    """
    Local view of a deposit: the mapped status, or EXPIRED when the deposit
    is still in flight past the session validity window.
    """
    status = to_session_status(state)
    if status is SessionStatus.REDIRECTED and created is not None and now > created + ttl:
        return SessionStatus.EXPIRED
    return status


def unwrap_deposit_payload(body: Any) -> Optional[dict]:
    """
    Return the deposit object from a status response, or None if absent.

    pawaPay has been seen answering with a bare object, a one-element
    array, and the v2 envelope ``{"status": "FOUND", "data": {...}}``.
    """
    if isinstance(body, list):
        body = body[0] if body else None

    if not isinstance(body, dict) or not body:
        return None

    if "data" in body and body.get("status") in ("FOUND", "NOT_FOUND"):
        data = body.get("data")
        return data if isinstance(data, dict) and data else None

    if body.get("status") == "NOT_FOUND":
        return None

    return body
