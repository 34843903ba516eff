"""Integration tests for the live store adapters against the test database"""

import pytest
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from decimal import Decimal
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from finance_tracker.domain.exceptions import NotAuthenticatedError, RecordNotFoundError, StoreError, ValidationError
from finance_tracker.domain.models import CarrierService, SavingsKind, SavingsStatus, TransactionKind
from finance_tracker.infrastructure.database.repositories import SavingsGoalRepository
from finance_tracker.infrastructure.store.hub import SAVINGS_GOALS, SAVINGS_TRANSACTIONS, TRANSACTIONS, SnapshotHub, hub
from finance_tracker.infrastructure.store.savings import SavingsStore
from finance_tracker.infrastructure.store.transactions import TransactionStore

OWNER = "user_alice"
OTHER_OWNER = "user_bob"


def _add(store: TransactionStore, kind: str, amount: str, day: date, category: str = "General") -> str:
    return store.add_transaction(kind=kind, amount=Decimal(amount), category=category, description="", date=day)


def test_new_store_starts_empty_and_synced(session_factory):
    with TransactionStore(session_factory, OWNER) as store:
        assert store.synced is True
        assert store.loading is False
        assert store.transactions == []
        assert store.error is None


def test_add_replaces_snapshot(session_factory):
    with TransactionStore(session_factory, OWNER) as store:
        first = _add(store, "income", "5000", date(2024, 1, 15))
        second = _add(store, "expense", "2000", date(2024, 1, 20))

        assert [t.id for t in store.transactions] == [second, first]
        assert store.get(first).kind == TransactionKind.INCOME
        assert store.get(first).currency.value == "USD"
        assert store.get_stats().balance == Decimal("3000")


def test_same_day_ordered_by_creation(session_factory):
    with TransactionStore(session_factory, OWNER) as store:
        older = _add(store, "expense", "10", date(2024, 2, 1))
        newer = _add(store, "expense", "20", date(2024, 2, 1))

        assert [t.id for t in store.transactions] == [newer, older]


def test_other_subscribers_receive_mutations(session_factory):
    """A second store bound to the same owner sees writes made through the first"""
    with TransactionStore(session_factory, OWNER) as writer, TransactionStore(session_factory, OWNER) as reader:
        _add(writer, "income", "100", date(2024, 3, 1))

        assert len(reader.transactions) == 1
        assert reader.transactions[0].amount == Decimal("100")


def test_update_and_delete(session_factory):
    with TransactionStore(session_factory, OWNER) as store:
        transaction_id = _add(store, "expense", "45", date(2024, 3, 2), "Food")

        store.update_transaction(transaction_id, amount=Decimal("50"), category="Groceries")
        updated = store.get(transaction_id)
        assert updated.amount == Decimal("50")
        assert updated.category == "Groceries"
        assert updated.kind == TransactionKind.EXPENSE

        store.delete_transaction(transaction_id)
        assert store.transactions == []


def test_invalid_update_rejected(session_factory):
    with TransactionStore(session_factory, OWNER) as store:
        transaction_id = _add(store, "expense", "45", date(2024, 3, 2))

        with pytest.raises(ValidationError):
            store.update_transaction(transaction_id, amount=Decimal("0"))
        with pytest.raises(ValidationError):
            store.update_transaction(transaction_id, owner_id=OTHER_OWNER)

        assert store.get(transaction_id).amount == Decimal("45")


def test_other_owner_records_not_found(session_factory):
    with TransactionStore(session_factory, OWNER) as alice, TransactionStore(session_factory, OTHER_OWNER) as bob:
        transaction_id = _add(alice, "income", "100", date(2024, 3, 1))

        assert bob.transactions == []
        with pytest.raises(RecordNotFoundError):
            bob.update_transaction(transaction_id, amount=Decimal("1"))
        with pytest.raises(RecordNotFoundError):
            bob.delete_transaction(transaction_id)

        assert alice.get(transaction_id).amount == Decimal("100")


def test_unbound_store_refuses_writes(session_factory):
    store = TransactionStore(session_factory)

    assert store.synced is False
    with pytest.raises(NotAuthenticatedError):
        _add(store, "income", "100", date(2024, 3, 1))


def test_rebind_releases_previous_subscription(session_factory):
    with TransactionStore(session_factory, OWNER) as store:
        _add(store, "income", "100", date(2024, 3, 1))
        assert hub.subscriber_count(TRANSACTIONS, OWNER) == 1

        store.bind(OTHER_OWNER)

        assert hub.subscriber_count(TRANSACTIONS, OWNER) == 0
        assert hub.subscriber_count(TRANSACTIONS, OTHER_OWNER) == 1
        assert store.transactions == []

    assert hub.subscriber_count() == 0


def test_sign_out_clears_lists(session_factory):
    store = SavingsStore(session_factory, OWNER)
    store.add_savings_goal("Laptop", Decimal("1000"), date(2024, 12, 31), "Electronics")

    store.bind(None)

    assert store.goals == []
    assert store.transactions == []
    assert hub.subscriber_count(SAVINGS_GOALS, OWNER) == 0


def test_load_failure_keeps_error(session_factory, monkeypatch):
    def broken(self, db, collection, owner_id):
        raise StoreError("Failed to load transactions")

    monkeypatch.setattr(TransactionStore, "_query", broken)

    with TransactionStore(session_factory, OWNER) as store:
        assert store.synced is False
        assert store.loading is False
        assert store.error == "Failed to load transactions"


def test_savings_transaction_recorded(session_factory):
    with SavingsStore(session_factory, OWNER) as store:
        savings_id = store.add_savings_transaction(
            amount=Decimal("1000"),
            kind=SavingsKind.DEPOSIT,
            service=CarrierService.MTN,
            phone_number="677550203",
            status=SavingsStatus.SUCCESS,
            transaction_id="mesomb_1",
        )

        saved = store.transactions[0]
        assert saved.id == savings_id
        assert saved.status == SavingsStatus.SUCCESS
        assert saved.transaction_id == "mesomb_1"
        assert store.get_savings_stats().total_savings == Decimal("1000")


def test_deposit_does_not_move_goals(session_factory):
    with SavingsStore(session_factory, OWNER) as store:
        goal_id = store.add_savings_goal("Laptop", Decimal("1000"), date(2024, 12, 31), "Electronics")
        store.add_savings_transaction(
            amount=Decimal("500"),
            kind="deposit",
            service="ORANGE",
            phone_number="650550203",
            status="success",
        )

        assert store.get_goal(goal_id).current_amount == 0
        assert store.get_goal(goal_id).is_active is True


def test_contribute_to_goal(session_factory):
    with SavingsStore(session_factory, OWNER) as store:
        goal_id = store.add_savings_goal("Laptop", Decimal("1000"), date(2024, 12, 31), "Electronics")

        goal = store.contribute_to_goal(goal_id, Decimal("400"))
        assert goal.current_amount == Decimal("400")
        assert goal.is_active is True

        goal = store.contribute_to_goal(goal_id, Decimal("600"))
        assert goal.current_amount == Decimal("1000")
        assert goal.is_active is False
        assert store.get_savings_stats().completed_goals == 1

        with pytest.raises(ValidationError):
            store.contribute_to_goal(goal_id, Decimal("1"))


def test_contribution_overshoot_leaves_goal_unchanged(session_factory):
    with SavingsStore(session_factory, OWNER) as store:
        goal_id = store.add_savings_goal("Phone", Decimal("300"), date(2024, 12, 31), "Electronics")

        with pytest.raises(ValidationError):
            store.contribute_to_goal(goal_id, Decimal("301"))

        assert store.get_goal(goal_id).current_amount == 0


def test_goal_update_and_delete(session_factory):
    with SavingsStore(session_factory, OWNER) as store, SavingsStore(session_factory, OTHER_OWNER) as other:
        goal_id = store.add_savings_goal("Trip", Decimal("2000"), date(2025, 6, 1), "Travel")

        store.update_savings_goal(goal_id, name="Trip to Kribi", target_amount=Decimal("2500"))
        assert store.get_goal(goal_id).name == "Trip to Kribi"
        assert store.get_goal(goal_id).target_amount == Decimal("2500")

        with pytest.raises(RecordNotFoundError):
            other.delete_savings_goal(goal_id)

        store.delete_savings_goal(goal_id)
        assert store.goals == []
        assert hub.subscriber_count(SAVINGS_TRANSACTIONS, OWNER) == 1


def test_write_failure_keeps_last_snapshot(session_factory, monkeypatch):
    def failing_commit(self):
        raise SQLAlchemyError("disk I/O error")

    with TransactionStore(session_factory, OWNER) as store:
        first = _add(store, "income", "100", date(2024, 3, 1))
        monkeypatch.setattr(Session, "commit", failing_commit)

        with pytest.raises(StoreError, match="Failed to add transaction"):
            _add(store, "expense", "40", date(2024, 3, 2))

        assert store.error == "Failed to add transaction"
        assert [t.id for t in store.transactions] == [first]

    monkeypatch.undo()
    with TransactionStore(session_factory, OWNER) as fresh:
        assert [t.id for t in fresh.transactions] == [first]


def test_get_reads_through_when_reload_fails(session_factory, monkeypatch):
    def failing_query(self, db, collection, owner_id):
        raise SQLAlchemyError("connection reset")

    with TransactionStore(session_factory, OWNER) as store, SavingsStore(session_factory, OWNER) as savings:
        monkeypatch.setattr(TransactionStore, "_query", failing_query)
        monkeypatch.setattr(SavingsStore, "_query", failing_query)

        transaction_id = _add(store, "income", "100", date(2024, 3, 1))
        goal_id = savings.add_savings_goal("Bike", Decimal("500"), date(2025, 1, 1), "Transport")

        assert store.transactions == []
        assert store.error == "Failed to load transactions"
        assert store.get(transaction_id).amount == Decimal("100")
        assert savings.get_goal(goal_id).name == "Bike"
        assert store.get("missing") is None


def test_stale_contribution_cannot_overshoot(session_factory, monkeypatch):
    """A contribution validated against an outdated amount is refused, not applied"""
    with SavingsStore(session_factory, OWNER) as store, SavingsStore(session_factory, OWNER) as rival:
        goal_id = store.add_savings_goal("Laptop", Decimal("1000"), date(2030, 12, 31), "Electronics")
        store.contribute_to_goal(goal_id, Decimal("900"))

        original_get = SavingsGoalRepository.get
        raced = []

        def get_then_rival_contributes(self, user_id, record_id):
            record = original_get(self, user_id, record_id)
            if not raced:
                raced.append(record_id)
                rival.contribute_to_goal(goal_id, Decimal("100"))
            return record

        monkeypatch.setattr(SavingsGoalRepository, "get", get_then_rival_contributes)

        with pytest.raises(ValidationError):
            store.contribute_to_goal(goal_id, Decimal("100"))

        goal = store.get_goal(goal_id)
        assert goal.current_amount == Decimal("1000")
        assert goal.is_active is False


def test_hub_survives_concurrent_subscribe_and_release():
    local_hub = SnapshotHub()
    received = []

    def churn_then_keep(worker: int):
        for _ in range(200):
            local_hub.subscribe(
                TRANSACTIONS, OWNER, loader=list, on_snapshot=lambda s: None, on_error=lambda m: None
            ).unsubscribe()
        return local_hub.subscribe(
            TRANSACTIONS, OWNER, loader=lambda: [worker], on_snapshot=received.append, on_error=lambda m: None
        )

    with ThreadPoolExecutor(max_workers=8) as pool:
        kept = list(pool.map(churn_then_keep, range(8)))

    assert local_hub.subscriber_count(TRANSACTIONS, OWNER) == 8
    received.clear()
    local_hub.publish(TRANSACTIONS, OWNER)
    assert sorted(snapshot[0] for snapshot in received) == list(range(8))

    for subscription in kept:
        subscription.unsubscribe()
    assert local_hub.subscriber_count() == 0
