"""Live adapter over the owner's savings transactions and goals"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
from finance_tracker.config import settings
from finance_tracker.domain.exceptions import RecordNotFoundError, ValidationError
from finance_tracker.domain.models import (
    CarrierService,
    SavingsGoal,
    SavingsKind,
    SavingsStats,
    SavingsStatus,
    SavingsSummary,
    SavingsTransaction,
)
from finance_tracker.domain.savings import apply_contribution, savings_stats, savings_summary
from finance_tracker.infrastructure.database.models import SavingsGoalRecord, SavingsTransactionRecord
from finance_tracker.infrastructure.database.repositories import SavingsGoalRepository, SavingsTransactionRepository
from finance_tracker.infrastructure.store.base import LiveStore
from finance_tracker.infrastructure.store.hub import SAVINGS_GOALS, SAVINGS_TRANSACTIONS
from finance_tracker.utils.date_utils import as_utc

_GOAL_FIELDS = {"name", "target_amount", "current_amount", "deadline", "category", "description", "is_active"}


def to_savings_transaction(record: SavingsTransactionRecord) -> SavingsTransaction:
    return SavingsTransaction(
        id=record.id,
        owner_id=record.user_id,
        amount=Decimal(record.amount),
        kind=SavingsKind(record.type),
        service=CarrierService(record.service),
        phone_number=record.phone_number,
        status=SavingsStatus(record.status),
        transaction_id=record.transaction_id,
        description=record.description,
        created_at=as_utc(record.created_at),
        updated_at=as_utc(record.updated_at),
    )


def to_savings_goal(record: SavingsGoalRecord) -> SavingsGoal:
    return SavingsGoal(
        id=record.id,
        owner_id=record.user_id,
        name=record.name,
        target_amount=Decimal(record.target_amount),
        current_amount=Decimal(record.current_amount),
        deadline=record.deadline,
        category=record.category,
        description=record.description,
        is_active=bool(record.is_active),
        created_at=as_utc(record.created_at),
        updated_at=as_utc(record.updated_at),
    )


def _positive(value: Any, field: str) -> Decimal:
    amount = Decimal(str(value))
    if amount <= 0:
        raise ValidationError(f"{field} must be greater than 0")
    return amount


def _goal_columns(updates: Dict[str, Any]) -> Dict[str, Any]:
    unknown = set(updates) - _GOAL_FIELDS
    if unknown:
        raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")

    columns = dict(updates)
    if "target_amount" in columns:
        columns["target_amount"] = _positive(columns["target_amount"], "Target amount")
    if "current_amount" in columns:
        current = Decimal(str(columns["current_amount"]))
        if current < 0:
            raise ValidationError("Current amount cannot be negative")
        columns["current_amount"] = current
    if "name" in columns and not columns["name"]:
        raise ValidationError("Name is required")
    return columns


class SavingsStore(LiveStore):
    """Owner-scoped savings transactions and goals, most recently created first"""

    collections = (SAVINGS_TRANSACTIONS, SAVINGS_GOALS)

    def _reset(self) -> None:
        self.transactions: List[SavingsTransaction] = []
        self.goals: List[SavingsGoal] = []

    def _query(self, db: Session, collection: str, owner_id: str) -> List[Any]:
        if collection == SAVINGS_TRANSACTIONS:
            return [to_savings_transaction(r) for r in SavingsTransactionRepository(db).list_by_owner(owner_id)]
        return [to_savings_goal(r) for r in SavingsGoalRepository(db).list_by_owner(owner_id)]

    def _apply(self, collection: str, snapshot: List[Any]) -> None:
        if collection == SAVINGS_TRANSACTIONS:
            self.transactions = snapshot
        else:
            self.goals = snapshot

    # Savings transactions

    def add_savings_transaction(
        self,
        amount: Decimal,
        kind: SavingsKind | str,
        service: CarrierService | str,
        phone_number: str,
        status: SavingsStatus | str,
        transaction_id: Optional[str] = None,
        description: Optional[str] = None,
    ) -> str:
        """Record a gateway outcome. Deposits never move goal progress."""
        try:
            columns = {
                "amount": _positive(amount, "Amount"),
                "type": SavingsKind(kind).value,
                "service": CarrierService(service).value,
                "status": SavingsStatus(status).value,
            }
        except ValueError as e:
            raise ValidationError(str(e)) from e

        owner_id = self._require_owner()
        with self._write(SAVINGS_TRANSACTIONS, "Failed to add savings transaction") as db:
            record = SavingsTransactionRepository(db).create(
                owner_id,
                phone_number=phone_number,
                transaction_id=transaction_id,
                description=description,
                **columns,
            )
            new_id = record.id
        return new_id

    # Goals

    def add_savings_goal(
        self,
        name: str,
        target_amount: Decimal,
        deadline: date,
        category: str,
        description: Optional[str] = None,
    ) -> str:
        """New goals start at zero and active"""
        if not name:
            raise ValidationError("Name is required")
        target = _positive(target_amount, "Target amount")

        owner_id = self._require_owner()
        with self._write(SAVINGS_GOALS, "Failed to add savings goal") as db:
            record = SavingsGoalRepository(db).create(
                owner_id,
                name=name,
                target_amount=target,
                current_amount=Decimal("0"),
                deadline=deadline,
                category=category,
                description=description,
                is_active=True,
            )
            new_id = record.id
        return new_id

    def update_savings_goal(self, goal_id: str, **updates: Any) -> None:
        columns = _goal_columns(updates)
        owner_id = self._require_owner()
        with self._write(SAVINGS_GOALS, "Failed to update savings goal") as db:
            if SavingsGoalRepository(db).update(owner_id, goal_id, columns) is None:
                raise RecordNotFoundError(f"Savings goal {goal_id} not found")

    def delete_savings_goal(self, goal_id: str) -> None:
        owner_id = self._require_owner()
        with self._write(SAVINGS_GOALS, "Failed to delete savings goal") as db:
            if not SavingsGoalRepository(db).delete(owner_id, goal_id):
                raise RecordNotFoundError(f"Savings goal {goal_id} not found")

    def contribute_to_goal(self, goal_id: str, amount: Decimal) -> Optional[SavingsGoal]:
        """
        Move a goal's progress forward by `amount`.

        This is the only path that changes current_amount besides a direct
        update; a goal reaching its target is marked completed (inactive).
        The write is conditional on the stored amounts, so a contribution
        racing another one is rejected instead of overshooting the target.
        """
        amount = Decimal(str(amount))
        owner_id = self._require_owner()
        with self._write(SAVINGS_GOALS, "Failed to update savings goal") as db:
            repo = SavingsGoalRepository(db)
            record = repo.get(owner_id, goal_id)
            if record is None:
                raise RecordNotFoundError(f"Savings goal {goal_id} not found")
            goal = to_savings_goal(record)
            apply_contribution(goal, amount)
            if not repo.add_contribution(owner_id, goal_id, amount):
                raise ValidationError(f"Goal '{goal.name}' changed while contributing; nothing was added")
        return self.get_goal(goal_id)

    def get_transaction(self, savings_id: str) -> Optional[SavingsTransaction]:
        """Lookup in the current snapshot, then in the store if the snapshot lags behind"""
        found = next((t for t in self.transactions if t.id == savings_id), None)
        if found is not None:
            return found
        return self._read_one(
            lambda db, owner_id: SavingsTransactionRepository(db).get(owner_id, savings_id),
            to_savings_transaction,
        )

    def get_goal(self, goal_id: str) -> Optional[SavingsGoal]:
        """Lookup in the current snapshot, then in the store if the snapshot lags behind"""
        found = next((g for g in self.goals if g.id == goal_id), None)
        if found is not None:
            return found
        return self._read_one(lambda db, owner_id: SavingsGoalRepository(db).get(owner_id, goal_id), to_savings_goal)

    # Derived

    def get_savings_stats(self, now: datetime | None = None) -> SavingsStats:
        return savings_stats(self.transactions, self.goals, now=now)

    def get_savings_summary(self, now: datetime | None = None) -> SavingsSummary:
        return savings_summary(self.transactions, self.goals, now=now, limit=settings.recent_transactions_limit)
