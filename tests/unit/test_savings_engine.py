"""Unit tests for savings statistics, status mapping and goal progress"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from finance_tracker.domain.exceptions import ValidationError
from finance_tracker.domain.models import (
    CarrierService,
    CollectResult,
    SavingsGoal,
    SavingsKind,
    SavingsStatus,
    SavingsTransaction,
)
from finance_tracker.domain.savings import (
    apply_contribution,
    reconcile_status,
    savings_rate,
    savings_stats,
    savings_summary,
    status_from_result,
)

NOW = datetime(2024, 5, 20, 9, 0, tzinfo=timezone.utc)


def _savings(amount: str, kind: str = "deposit", status: str = "success", created_at: datetime = NOW, n: int = 0):
    return SavingsTransaction(
        id=f"sav_{n}_{amount}_{kind}_{status}",
        owner_id="user_alice",
        amount=Decimal(amount),
        kind=SavingsKind(kind),
        service=CarrierService.MTN,
        phone_number="677550203",
        status=SavingsStatus(status),
        created_at=created_at,
        updated_at=created_at,
    )


def _goal(current: str = "0", target: str = "1000", active: bool = True, name: str = "Laptop"):
    return SavingsGoal(
        id=f"goal_{name}",
        owner_id="user_alice",
        name=name,
        target_amount=Decimal(target),
        current_amount=Decimal(current),
        deadline=date(2024, 12, 31),
        category="Electronics",
        is_active=active,
        created_at=NOW,
        updated_at=NOW,
    )


def test_stats_ignore_pending_and_failed():
    """deposit 1000 success, deposit 500 pending, withdrawal 200 success"""
    transactions = [
        _savings("1000"),
        _savings("500", status="pending"),
        _savings("200", kind="withdrawal"),
    ]

    stats = savings_stats(transactions, [], now=NOW)

    assert stats.total_deposits == Decimal("1000")
    assert stats.total_withdrawals == Decimal("200")
    assert stats.total_savings == Decimal("800")
    assert stats.savings_rate == Decimal("80.00")


def test_stats_rate_with_larger_withdrawal():
    transactions = [_savings("1000"), _savings("400", kind="withdrawal"), _savings("50", status="failed")]

    stats = savings_stats(transactions, [], now=NOW)

    assert stats.total_savings == Decimal("600")
    assert stats.savings_rate == Decimal("60.00")


def test_stats_without_deposits():
    stats = savings_stats([], [], now=NOW)

    assert stats.total_savings == 0
    assert stats.savings_rate == 0
    assert stats.monthly_savings == 0
    assert stats.active_goals == 0
    assert stats.completed_goals == 0


def test_monthly_savings_use_creation_month():
    last_month = datetime(2024, 4, 30, 23, 59, tzinfo=timezone.utc)
    last_year = datetime(2023, 5, 10, tzinfo=timezone.utc)
    transactions = [
        _savings("300"),
        _savings("100", kind="withdrawal"),
        _savings("700", created_at=last_month),
        _savings("900", created_at=last_year),
    ]

    stats = savings_stats(transactions, [], now=NOW)

    assert stats.monthly_savings == Decimal("200")
    assert stats.total_savings == Decimal("1800")


def test_goal_counts():
    goals = [_goal(name="a"), _goal(name="b"), _goal(active=False, name="c")]

    stats = savings_stats([], goals, now=NOW)

    assert stats.active_goals == 2
    assert stats.completed_goals == 1


@pytest.mark.parametrize(
    "savings,deposits,expected",
    [
        (Decimal("1"), Decimal("3"), Decimal("33.33")),
        (Decimal("2"), Decimal("3"), Decimal("66.67")),
        (Decimal("1"), Decimal("8"), Decimal("12.50")),
        (Decimal("5"), Decimal("0"), Decimal("0")),
    ],
)
def test_savings_rate_rounding(savings, deposits, expected):
    assert savings_rate(savings, deposits) == expected


def test_summary_keeps_order_and_limits_recent():
    transactions = [_savings(str(100 + i), n=i) for i in range(7)]
    goals = [_goal(name="open"), _goal(active=False, name="done")]

    summary = savings_summary(transactions, goals, now=NOW)

    assert [t.amount for t in summary.recent_transactions] == [Decimal(str(100 + i)) for i in range(5)]
    assert [g.name for g in summary.active_goals] == ["open"]
    assert summary.stats.active_goals == 1


def test_contribution_moves_progress():
    new_amount, still_active = apply_contribution(_goal(current="200"), Decimal("300"))

    assert new_amount == Decimal("500")
    assert still_active is True


def test_contribution_reaching_target_completes_goal():
    new_amount, still_active = apply_contribution(_goal(current="900"), Decimal("100"))

    assert new_amount == Decimal("1000")
    assert still_active is False


def test_contribution_overshooting_target_rejected():
    with pytest.raises(ValidationError):
        apply_contribution(_goal(current="900"), Decimal("150"))


def test_contribution_to_completed_goal_rejected():
    with pytest.raises(ValidationError):
        apply_contribution(_goal(current="1000", active=False), Decimal("1"))


def test_contribution_must_be_positive():
    with pytest.raises(ValidationError):
        apply_contribution(_goal(), Decimal("0"))


def test_status_from_result():
    assert status_from_result(CollectResult(True, "ok", "SUCCESS")) == SavingsStatus.SUCCESS
    assert status_from_result(CollectResult(True, "ok", "PENDING")) == SavingsStatus.PENDING
    assert status_from_result(CollectResult(False, "no", "FAILED")) == SavingsStatus.FAILED
    assert status_from_result(CollectResult(False, "no", "ERROR", error="boom")) == SavingsStatus.FAILED


def test_reconcile_only_moves_pending_records():
    assert reconcile_status(SavingsStatus.PENDING, "SUCCESS") == SavingsStatus.SUCCESS
    assert reconcile_status(SavingsStatus.PENDING, "failed") == SavingsStatus.FAILED
    assert reconcile_status(SavingsStatus.PENDING, "PENDING") is None
    assert reconcile_status(SavingsStatus.PENDING, None) is None
    assert reconcile_status(SavingsStatus.SUCCESS, "FAILED") is None
    assert reconcile_status(SavingsStatus.FAILED, "SUCCESS") is None
