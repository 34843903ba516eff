"""Data access layer for owner-scoped collections"""

from decimal import Decimal
from typing import Any, Dict, List, Optional
from sqlalchemy import case
from sqlalchemy.orm import Session
from finance_tracker.infrastructure.database.models import (
    PaymentWebhookEvent,
    SavingsGoalRecord,
    SavingsTransactionRecord,
    TransactionRecord,
)


class _OwnedRepository:
    """Every query filters on user_id; another owner's record is simply not found"""

    model = None

    def __init__(self, db: Session):
        self.db = db

    def _owned(self, user_id: str):
        return self.db.query(self.model).filter(self.model.user_id == user_id)

    def get(self, user_id: str, record_id: str):
        return self._owned(user_id).filter(self.model.id == record_id).first()

    def create(self, user_id: str, **fields: Any):
        record = self.model(user_id=user_id, **fields)
        self.db.add(record)
        self.db.flush()  # Get ID without committing
        return record

    def update(self, user_id: str, record_id: str, updates: Dict[str, Any]):
        """Apply a partial update; returns None when the record is not owned by user_id"""
        record = self.get(user_id, record_id)
        if record is None:
            return None
        for key, value in updates.items():
            setattr(record, key, value)
        self.db.flush()
        return record

    def delete(self, user_id: str, record_id: str) -> bool:
        record = self.get(user_id, record_id)
        if record is None:
            return False
        self.db.delete(record)
        self.db.flush()
        return True


class TransactionRepository(_OwnedRepository):
    """Repository for income/expense transactions"""

    model = TransactionRecord

    def list_by_owner(self, user_id: str) -> List[TransactionRecord]:
        """Newest first by transaction date"""
        return (
            self._owned(user_id)
            .order_by(TransactionRecord.date.desc(), TransactionRecord.created_at.desc())
            .all()
        )


class SavingsTransactionRepository(_OwnedRepository):
    """Repository for savings deposits and withdrawals"""

    model = SavingsTransactionRecord

    def list_by_owner(self, user_id: str) -> List[SavingsTransactionRecord]:
        """Most recently created first"""
        return self._owned(user_id).order_by(SavingsTransactionRecord.created_at.desc()).all()

    def get_by_reference(self, user_id: str, reference: str) -> Optional[SavingsTransactionRecord]:
        """Lookup by gateway reference within one owner's records"""
        return self._owned(user_id).filter(SavingsTransactionRecord.transaction_id == reference).first()

    def find_by_reference(self, reference: str) -> Optional[SavingsTransactionRecord]:
        """
        Lookup by gateway reference across owners.

        Only for gateway callbacks, which carry no owner; anything answering a
        user must go through get_by_reference.
        """
        return (
            self.db.query(SavingsTransactionRecord)
            .filter(SavingsTransactionRecord.transaction_id == reference)
            .first()
        )


class SavingsGoalRepository(_OwnedRepository):
    """Repository for savings goals"""

    model = SavingsGoalRecord

    def list_by_owner(self, user_id: str) -> List[SavingsGoalRecord]:
        return self._owned(user_id).order_by(SavingsGoalRecord.created_at.desc()).all()

    def add_contribution(self, user_id: str, goal_id: str, amount: Decimal) -> bool:
        """
        Single conditional UPDATE so concurrent contributions cannot overshoot.

        Applies only while the goal is active and current + amount <= target;
        reaching the target exactly completes the goal. Returns False when no
        row matched.
        """
        new_amount = SavingsGoalRecord.current_amount + amount
        updated = (
            self._owned(user_id)
            .filter(
                SavingsGoalRecord.id == goal_id,
                SavingsGoalRecord.is_active.is_(True),
                new_amount <= SavingsGoalRecord.target_amount,
            )
            .update(
                {
                    SavingsGoalRecord.current_amount: new_amount,
                    SavingsGoalRecord.is_active: case((new_amount < SavingsGoalRecord.target_amount, True), else_=False),
                },
                synchronize_session=False,
            )
        )
        self.db.flush()
        return updated == 1


class WebhookEventRepository:
    """Repository for inbound gateway callbacks"""

    def __init__(self, db: Session):
        self.db = db

    def record(self, payload: Dict[str, Any], reference: Optional[str], status: Optional[str]) -> PaymentWebhookEvent:
        event = PaymentWebhookEvent(payload=payload, reference=reference, status=status)
        self.db.add(event)
        self.db.flush()
        return event
