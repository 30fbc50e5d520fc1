"""Enumerations for the checkout domain model."""

from enum import Enum


class SessionStatus(str, Enum):
    """Local lifecycle of a payment session (merchant side)."""

    CREATED = "CREATED"
    REDIRECTED = "REDIRECTED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    EXPIRED = "EXPIRED"


class DepositState(str, Enum):
    """Deposit status vocabulary owned by pawaPay."""

    ENQUEUED = "ENQUEUED"
    PENDING = "PENDING"
    SUBMITTED = "SUBMITTED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REJECTED = "REJECTED"

    @property
    def is_failure(self) -> bool:
        return self in (DepositState.FAILED, DepositState.REJECTED)

    @property
    def is_final(self) -> bool:
        return self.is_failure or self is DepositState.COMPLETED


class EventAction(str, Enum):
    """Actions recorded in the payment audit trail."""

    SESSION_CREATED = "session_created"
    SESSION_FAILED = "session_failed"
    STATUS_CHECKED = "status_checked"
    WEBHOOK_RECEIVED = "webhook_received"
