"""SQLAlchemy ORM models for the owner-scoped collections"""

import uuid
from sqlalchemy import Column, String, Boolean, Numeric, DateTime, Date, Text, JSON
from sqlalchemy.orm import declarative_base
from finance_tracker.utils.date_utils import utcnow

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


class TransactionRecord(Base):
    """Income/expense entry"""

    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(Text, nullable=False, index=True)
    type = Column(String(16), nullable=False)  # income | expense
    amount = Column(Numeric(14, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    category = Column(Text, nullable=False)
    description = Column(Text, nullable=False, default="")
    date = Column(Date, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


class SavingsTransactionRecord(Base):
    """Mobile-money deposit or withdrawal"""

    __tablename__ = "savings_transactions"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(Text, nullable=False, index=True)
    amount = Column(Numeric(14, 2), nullable=False)
    type = Column(String(16), nullable=False)  # deposit | withdrawal
    service = Column(String(16), nullable=False)
    phone_number = Column(Text, nullable=False)
    status = Column(String(16), nullable=False, default="pending")
    transaction_id = Column(Text, nullable=True, index=True)  # gateway reference
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


class SavingsGoalRecord(Base):
    """Savings target"""

    __tablename__ = "savings_goals"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    target_amount = Column(Numeric(14, 2), nullable=False)
    current_amount = Column(Numeric(14, 2), nullable=False, default=0)
    deadline = Column(Date, nullable=False)
    category = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


class PaymentWebhookEvent(Base):
    """Inbound gateway status callback, kept for audit"""

    __tablename__ = "payment_webhook_event"

    id = Column(String(36), primary_key=True, default=_new_id)
    provider = Column(Text, nullable=False, default="mesomb")
    reference = Column(Text, nullable=True, index=True)
    status = Column(Text, nullable=True)
    payload = Column(JSON, nullable=False)
    received_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
