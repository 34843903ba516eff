"""Transaction aggregation engine - dashboard totals, period rollups and yearly reports"""

import calendar
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional
from finance_tracker.domain.models import (
    DashboardStats,
    MonthlyData,
    PeriodSummary,
    Transaction,
    TransactionKind,
    YearlyReport,
)
from finance_tracker.utils.date_utils import in_current_week


def _total(transactions: Iterable[Transaction], kind: TransactionKind) -> Decimal:
    return sum((t.amount for t in transactions if t.kind == kind), Decimal("0"))


def summarize(transactions: List[Transaction]) -> PeriodSummary:
    """Income, expenses and balance for any slice of transactions"""
    income = _total(transactions, TransactionKind.INCOME)
    expenses = _total(transactions, TransactionKind.EXPENSE)
    return PeriodSummary(income=income, expenses=expenses, balance=income - expenses)


def dashboard_totals(transactions: List[Transaction]) -> DashboardStats:
    """
    Totals over the entire list, no date filtering.

    Decimal sums are exact, so balance == income - expenses holds for any
    input and the result does not depend on list order.
    """
    summary = summarize(transactions)
    return DashboardStats(
        total_income=summary.income,
        total_expenses=summary.expenses,
        balance=summary.balance,
        transaction_count=len(transactions),
    )


def today_summary(transactions: List[Transaction], today: date | None = None) -> PeriodSummary:
    """Rollup of transactions dated today"""
    today = today or date.today()
    return summarize([t for t in transactions if t.date == today])


def week_summary(transactions: List[Transaction], today: date | None = None) -> PeriodSummary:
    """
    Rollup of the current week.

    The week starts on the most recent Sunday (inclusive) and ends today
    (inclusive); future-dated transactions are left out.
    """
    today = today or date.today()
    return summarize([t for t in transactions if in_current_week(t.date, today)])


def available_years(transactions: List[Transaction]) -> List[int]:
    """Distinct years with data, newest first. Empty list means no report."""
    return sorted({t.date.year for t in transactions}, reverse=True)


def yearly_report(transactions: List[Transaction], year: int) -> YearlyReport:
    """
    Build the month-by-month report for one year.

    Requirements:
    - Always twelve entries, January first, zero-filled for empty months
    - Year totals are the sums of the twelve month entries
    """
    year_transactions = [t for t in transactions if t.date.year == year]

    months = []
    for month in range(1, 13):
        summary = summarize([t for t in year_transactions if t.date.month == month])
        months.append(
            MonthlyData(
                month=month,
                name=calendar.month_name[month],
                income=summary.income,
                expenses=summary.expenses,
                balance=summary.balance,
            )
        )

    total_income = sum((m.income for m in months), Decimal("0"))
    total_expenses = sum((m.expenses for m in months), Decimal("0"))

    return YearlyReport(
        year=year,
        months=months,
        total_income=total_income,
        total_expenses=total_expenses,
        balance=total_income - total_expenses,
    )


def latest_report(transactions: List[Transaction], year: int | None = None) -> Optional[YearlyReport]:
    """
    Report for `year`, or for the most recent year with data.

    Returns None when there are no transactions at all.
    """
    years = available_years(transactions)
    if not years:
        return None
    return yearly_report(transactions, year if year is not None else years[0])
