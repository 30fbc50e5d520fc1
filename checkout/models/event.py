"""SQLAlchemy models for the checkout audit trail."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PaymentEvent(Base):
    """
    Immutable audit trail entry for a deposit.

    Session creation, status polls and webhook callbacks each append one
    row. Rows are never updated and never consulted when deciding the
    outcome of a payment: pawaPay stays the source of truth.
    """

    __tablename__ = "payment_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    deposit_id = Column(String(100), nullable=True, index=True)
    action = Column(String(50), nullable=False)
    details = Column(Text, nullable=True)
    timestamp = Column(DateTime(timezone=True), default=_utcnow)
