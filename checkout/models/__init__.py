from checkout.models.enums import DepositState, EventAction, SessionStatus
from checkout.models.event import Base, PaymentEvent

__all__ = [
    "Base",
    "PaymentEvent",
    "DepositState",
    "EventAction",
    "SessionStatus",
]
