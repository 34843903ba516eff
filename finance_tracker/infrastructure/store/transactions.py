"""Live adapter over the owner's income/expense transactions"""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List
from sqlalchemy.orm import Session
from finance_tracker.config import settings
from finance_tracker.domain.exceptions import RecordNotFoundError, ValidationError
from finance_tracker.domain.models import Currency, DashboardStats, Transaction, TransactionKind
from finance_tracker.domain.reporting import dashboard_totals
from finance_tracker.infrastructure.database.models import TransactionRecord
from finance_tracker.infrastructure.database.repositories import TransactionRepository
from finance_tracker.infrastructure.store.base import LiveStore
from finance_tracker.infrastructure.store.hub import TRANSACTIONS
from finance_tracker.utils.date_utils import as_utc

_UPDATABLE = {"kind", "amount", "currency", "category", "description", "date"}


def to_transaction(record: TransactionRecord) -> Transaction:
    """Map a stored record to the domain shape"""
    return Transaction(
        id=record.id,
        owner_id=record.user_id,
        kind=TransactionKind(record.type),
        amount=Decimal(record.amount),
        currency=Currency(record.currency),
        category=record.category,
        description=record.description or "",
        date=record.date,
        created_at=as_utc(record.created_at),
        updated_at=as_utc(record.updated_at),
    )


def _columns(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Validate transaction fields and translate them to column values"""
    columns: Dict[str, Any] = {}
    try:
        if "kind" in fields:
            columns["type"] = TransactionKind(fields["kind"]).value
        if "currency" in fields:
            columns["currency"] = Currency(fields["currency"]).value
    except ValueError as e:
        raise ValidationError(str(e)) from e

    if "amount" in fields:
        amount = Decimal(str(fields["amount"]))
        if amount <= 0:
            raise ValidationError("Amount must be greater than 0")
        columns["amount"] = amount
    if "category" in fields:
        if not fields["category"]:
            raise ValidationError("Category is required")
        columns["category"] = fields["category"]
    if "description" in fields:
        columns["description"] = fields["description"] or ""
    if "date" in fields:
        if not isinstance(fields["date"], date):
            raise ValidationError("Date must be a calendar date")
        columns["date"] = fields["date"]
    return columns


class TransactionStore(LiveStore):
    """Owner-scoped transactions, newest first by date"""

    collections = (TRANSACTIONS,)

    def _reset(self) -> None:
        self.transactions: List[Transaction] = []

    def _query(self, db: Session, collection: str, owner_id: str) -> List[Transaction]:
        return [to_transaction(r) for r in TransactionRepository(db).list_by_owner(owner_id)]

    def _apply(self, collection: str, snapshot: List[Transaction]) -> None:
        self.transactions = snapshot

    def add_transaction(
        self,
        kind: TransactionKind | str,
        amount: Decimal,
        category: str,
        description: str,
        date: date,
        currency: Currency | str | None = None,
    ) -> str:
        """Create a transaction and return its id"""
        columns = _columns(
            {
                "kind": kind,
                "amount": amount,
                "currency": currency or settings.default_currency,
                "category": category,
                "description": description,
                "date": date,
            }
        )
        owner_id = self._require_owner()
        with self._write(TRANSACTIONS, "Failed to add transaction") as db:
            record = TransactionRepository(db).create(owner_id, **columns)
            new_id = record.id
        return new_id

    def update_transaction(self, transaction_id: str, **updates: Any) -> None:
        unknown = set(updates) - _UPDATABLE
        if unknown:
            raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        columns = _columns(updates)
        owner_id = self._require_owner()
        with self._write(TRANSACTIONS, "Failed to update transaction") as db:
            if TransactionRepository(db).update(owner_id, transaction_id, columns) is None:
                raise RecordNotFoundError(f"Transaction {transaction_id} not found")

    def delete_transaction(self, transaction_id: str) -> None:
        owner_id = self._require_owner()
        with self._write(TRANSACTIONS, "Failed to delete transaction") as db:
            if not TransactionRepository(db).delete(owner_id, transaction_id):
                raise RecordNotFoundError(f"Transaction {transaction_id} not found")

    def get(self, transaction_id: str) -> Transaction | None:
        """Lookup in the current snapshot, then in the store if the snapshot lags behind"""
        found = next((t for t in self.transactions if t.id == transaction_id), None)
        if found is not None:
            return found
        return self._read_one(lambda db, owner_id: TransactionRepository(db).get(owner_id, transaction_id), to_transaction)

    def get_stats(self) -> DashboardStats:
        return dashboard_totals(self.transactions)
