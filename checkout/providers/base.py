"""
Payment gateway interface and the records exchanged with it.

The gateway is the only component that talks to pawaPay. Route handlers
depend on this interface so tests can hand them any implementation.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from checkout.engine.status import SESSION_TTL, parse_deposit_state
from checkout.models.enums import DepositState, SessionStatus


@dataclass
class PaymentPageRequest:
    """Request to open a pawaPay hosted payment page."""

    deposit_id: str
    return_url: str
    amount: str  # Decimal string in major units, e.g. "1500.00"
    currency: str  # ISO 4217
    country: str  # ISO 3166-1 alpha-3
    reason: str
    phone_number: Optional[str] = None
    customer_message: Optional[str] = None
    language: str = "FR"
    metadata: list[dict[str, Any]] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "depositId": self.deposit_id,
            "returnUrl": self.return_url,
            "amountDetails": {"amount": self.amount, "currency": self.currency},
            "language": self.language,
            "country": self.country,
            "reason": self.reason,
        }
        if self.customer_message:
            # pawaPay accepts 4-22 characters
            payload["customerMessage"] = self.customer_message[:22]
        if self.phone_number:
            payload["phoneNumber"] = self.phone_number
        if self.metadata:
            payload["metadata"] = self.metadata
        return payload


@dataclass
class PaymentSession:
    """
    One attempt to collect money from a customer, as seen locally.

    Only lives for the duration of the call that created it; pawaPay's
    deposit record is the authority on what actually happened.
    """

    deposit_id: str
    status: SessionStatus
    created_at: datetime
    expires_at: datetime
    redirect_url: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def open(
        cls,
        deposit_id: str,
        metadata: Optional[dict[str, Any]] = None,
        ttl: timedelta = SESSION_TTL,
        now: Optional[datetime] = None,
    ) -> "PaymentSession":
        created = now or datetime.now(timezone.utc)
        return cls(
            deposit_id=deposit_id,
            status=SessionStatus.CREATED,
            created_at=created,
            expires_at=created + ttl,
            metadata=dict(metadata or {}),
        )

    def mark_redirected(self, redirect_url: str) -> None:
        if self.status is not SessionStatus.CREATED:
            raise ValueError(f"Cannot redirect a session in status {self.status.value}")
        self.status = SessionStatus.REDIRECTED
        self.redirect_url = redirect_url

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or datetime.now(timezone.utc)) >= self.expires_at


@dataclass(frozen=True)
class FailureReason:
    failure_code: str
    failure_message: str = ""

    def to_payload(self) -> dict[str, str]:
        return {"failureCode": self.failure_code, "failureMessage": self.failure_message}


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass
class DepositStatus:
    """pawaPay's record of a deposit, fetched by polling or pushed by webhook."""

    deposit_id: str
    status: DepositState
    requested_amount: Optional[str] = None
    deposited_amount: Optional[str] = None
    currency: Optional[str] = None
    country: Optional[str] = None
    correspondent: Optional[str] = None
    payer_phone: Optional[str] = None
    created: Optional[str] = None
    completed: Optional[str] = None
    statement_description: Optional[str] = None
    failure_reason: Optional[FailureReason] = None

    def __post_init__(self):
        # failureReason is present exactly when the deposit failed
        if self.status.is_failure and self.failure_reason is None:
            self.failure_reason = FailureReason("OTHER_ERROR", "Deposit failed without a reason")
        elif not self.status.is_failure:
            self.failure_reason = None

    @property
    def amount(self) -> Optional[str]:
        return self.deposited_amount or self.requested_amount

    @property
    def created_at(self) -> Optional[datetime]:
        return _parse_timestamp(self.created)

    @classmethod
    def pending(cls, deposit_id: str) -> "DepositStatus":
        """Placeholder for a deposit pawaPay has not indexed yet."""
        return cls(deposit_id=deposit_id, status=DepositState.PENDING)

    @classmethod
    def from_payload(cls, data: dict[str, Any], deposit_id: Optional[str] = None) -> "DepositStatus":
        """
        Build from pawaPay's camelCase JSON.

        Accepts both the v1 flat amount fields and the v2 ``amount`` /
        ``payer.accountDetails`` layout.

        Raises:
            UnknownError: If ``status`` is not a known DepositState.
        """
        payer = _as_dict(data.get("payer"))
        account = _as_dict(payer.get("accountDetails"))
        phone = _as_dict(payer.get("address")).get("value") or account.get("phoneNumber")
        reason = data.get("failureReason")
        return cls(
            deposit_id=data.get("depositId") or deposit_id or "",
            status=parse_deposit_state(data.get("status")),
            requested_amount=_as_str(data.get("requestedAmount") or data.get("amount")),
            deposited_amount=_as_str(data.get("depositedAmount")),
            currency=data.get("currency"),
            country=data.get("country"),
            correspondent=data.get("correspondent") or account.get("provider"),
            payer_phone=phone,
            created=data.get("created"),
            completed=data.get("completed"),
            statement_description=data.get("statementDescription"),
            failure_reason=(
                FailureReason(reason.get("failureCode") or "OTHER_ERROR", reason.get("failureMessage") or "")
                if isinstance(reason, dict)
                else None
            ),
        )

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "depositId": self.deposit_id,
            "status": self.status.value,
            "requestedAmount": self.requested_amount,
            "currency": self.currency,
            "country": self.country,
            "correspondent": self.correspondent,
            "payer": {"type": "MSISDN", "address": {"value": self.payer_phone}} if self.payer_phone else None,
            "created": self.created,
            "statementDescription": self.statement_description,
        }
        if self.deposited_amount is not None:
            payload["depositedAmount"] = self.deposited_amount
        if self.completed is not None:
            payload["completed"] = self.completed
        if self.failure_reason is not None:
            payload["failureReason"] = self.failure_reason.to_payload()
        return payload


def _as_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


class PaymentGateway(ABC):
    """Abstract interface to the mobile money provider."""

    @abstractmethod
    async def create_payment_session(
        self,
        request: PaymentPageRequest,
        retries: Optional[int] = None,
        validate_limits: bool = True,
        session_id: Optional[str] = None,
    ) -> PaymentSession:
        """
        Open a hosted payment page for the customer.

        Raises:
            ValidationError: Amount outside configured limits.
            PawaPayError: Provider or network failure after retries.
        """
        ...

    @abstractmethod
    async def get_deposit_status(self, deposit_id: str, retries: Optional[int] = None) -> DepositStatus:
        """
        Fetch the provider's record of a deposit.

        A deposit the provider does not know yet is reported as PENDING.
        """
        ...
