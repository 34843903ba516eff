"""Savings statistics, summary and goal progress"""

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List
from finance_tracker.domain.exceptions import ValidationError
from finance_tracker.domain.models import (
    CollectResult,
    SavingsGoal,
    SavingsKind,
    SavingsStats,
    SavingsStatus,
    SavingsSummary,
    SavingsTransaction,
)
from finance_tracker.utils.date_utils import as_utc, utcnow

RECENT_TRANSACTIONS = 5


def _net(transactions: List[SavingsTransaction]) -> tuple[Decimal, Decimal]:
    deposits = sum((t.amount for t in transactions if t.kind == SavingsKind.DEPOSIT), Decimal("0"))
    withdrawals = sum((t.amount for t in transactions if t.kind == SavingsKind.WITHDRAWAL), Decimal("0"))
    return deposits, withdrawals


def savings_rate(total_savings: Decimal, total_deposits: Decimal) -> Decimal:
    """Share of deposits still saved, as a percentage rounded half-up to 2 places"""
    if total_deposits <= 0:
        return Decimal("0")
    rate = total_savings / total_deposits * 100
    return rate.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def savings_stats(
    transactions: List[SavingsTransaction],
    goals: List[SavingsGoal],
    now: datetime | None = None,
) -> SavingsStats:
    """
    Roll up savings activity.

    Requirements:
    - Only transactions with status=success count (pending and failed are ignored)
    - Monthly savings use the creation timestamp, current month and year only
    - Savings rate is 0 when nothing was deposited
    """
    now = as_utc(now or utcnow())
    successful = [t for t in transactions if t.status == SavingsStatus.SUCCESS]

    total_deposits, total_withdrawals = _net(successful)
    total_savings = total_deposits - total_withdrawals

    this_month = []
    for t in successful:
        created = as_utc(t.created_at)
        if created.year == now.year and created.month == now.month:
            this_month.append(t)
    monthly_deposits, monthly_withdrawals = _net(this_month)

    return SavingsStats(
        total_savings=total_savings,
        total_deposits=total_deposits,
        total_withdrawals=total_withdrawals,
        monthly_savings=monthly_deposits - monthly_withdrawals,
        savings_rate=savings_rate(total_savings, total_deposits),
        active_goals=sum(1 for g in goals if g.is_active),
        completed_goals=sum(1 for g in goals if not g.is_active),
    )


def savings_summary(
    transactions: List[SavingsTransaction],
    goals: List[SavingsGoal],
    now: datetime | None = None,
    limit: int = RECENT_TRANSACTIONS,
) -> SavingsSummary:
    """Stats plus the first `limit` transactions as given and the active goals"""
    return SavingsSummary(
        stats=savings_stats(transactions, goals, now=now),
        recent_transactions=list(transactions[:limit]),
        active_goals=[g for g in goals if g.is_active],
    )


def apply_contribution(goal: SavingsGoal, amount: Decimal) -> tuple[Decimal, bool]:
    """
    Compute a goal's progress after adding `amount`.

    Returns (new current amount, still active). Reaching the target exactly
    completes the goal; overshooting it is rejected.
    """
    if amount <= 0:
        raise ValidationError("Contribution must be greater than 0")
    if not goal.is_active:
        raise ValidationError(f"Goal '{goal.name}' is no longer active")

    new_amount = goal.current_amount + amount
    if new_amount > goal.target_amount:
        remaining = goal.target_amount - goal.current_amount
        raise ValidationError(f"Contribution exceeds the remaining {remaining} for goal '{goal.name}'")

    return new_amount, new_amount < goal.target_amount


def status_from_result(result: CollectResult) -> SavingsStatus:
    """Initial status of the savings record written after a collection attempt"""
    if not result.success:
        return SavingsStatus.FAILED
    if result.status.upper() == "PENDING":
        return SavingsStatus.PENDING
    return SavingsStatus.SUCCESS


_FINAL_GATEWAY_STATUSES = {
    "SUCCESS": SavingsStatus.SUCCESS,
    "SUCCESSFUL": SavingsStatus.SUCCESS,
    "FAILED": SavingsStatus.FAILED,
    "FAIL": SavingsStatus.FAILED,
    "ERROR": SavingsStatus.FAILED,
    "CANCELED": SavingsStatus.FAILED,
    "CANCELLED": SavingsStatus.FAILED,
}


def reconcile_status(current: SavingsStatus, reported: str | None) -> SavingsStatus | None:
    """
    New status for a record after a gateway callback, or None to leave it alone.

    Only pending records move, and only to a final status; success and
    failed are never rewritten.
    """
    if current != SavingsStatus.PENDING or not reported:
        return None
    return _FINAL_GATEWAY_STATUSES.get(reported.strip().upper())
