"""GET /v1/reports/* - Dashboard totals and yearly reports"""

from typing import Optional
from fastapi import APIRouter, Depends, Query

from finance_tracker.api.v1.schemas import (
    DashboardResponse,
    PeriodSummarySchema,
    YearlyReportResponse,
    YearlyReportSchema,
)
from finance_tracker.api.dependencies import get_transaction_store
from finance_tracker.domain.reporting import available_years, latest_report, today_summary, week_summary
from finance_tracker.infrastructure.store.transactions import TransactionStore

router = APIRouter()


@router.get("/reports/dashboard", response_model=DashboardResponse)
def get_dashboard(store: TransactionStore = Depends(get_transaction_store)):
    """
    Dashboard figures for the signed-in user.

    Returns:
        All-time totals plus today's and this week's rollups
    """
    stats = store.get_stats()
    return DashboardResponse(
        total_income=stats.total_income,
        total_expenses=stats.total_expenses,
        balance=stats.balance,
        transaction_count=stats.transaction_count,
        today=PeriodSummarySchema.model_validate(today_summary(store.transactions)),
        this_week=PeriodSummarySchema.model_validate(week_summary(store.transactions)),
    )


@router.get("/reports/yearly", response_model=YearlyReportResponse)
def get_yearly_report(
    year: Optional[int] = Query(None, description="Defaults to the most recent year with data"),
    store: TransactionStore = Depends(get_transaction_store),
):
    """
    Month-by-month report for one year.

    Returns:
        Available years (newest first) and twelve month entries; report is
        null when the user has no transactions
    """
    report = latest_report(store.transactions, year)
    return YearlyReportResponse(
        available_years=available_years(store.transactions),
        report=YearlyReportSchema.model_validate(report) if report else None,
    )
