"""Pydantic schemas for API request/response validation"""

import datetime as dt
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from finance_tracker.domain.models import (
    CarrierService,
    Currency,
    SavingsKind,
    SavingsStatus,
    TransactionKind,
)


class _FromDomain(BaseModel):
    """Built straight from the domain dataclasses"""

    model_config = ConfigDict(from_attributes=True)


# Transactions

class TransactionCreate(BaseModel):
    """Request body for POST /v1/transactions"""

    kind: TransactionKind
    amount: Decimal = Field(..., gt=0, description="Amount in the transaction currency")
    currency: Optional[Currency] = None
    category: str = Field(..., min_length=1)
    description: str = ""
    date: dt.date


class TransactionUpdate(BaseModel):
    """Request body for PATCH /v1/transactions/{id}; only the fields sent are changed"""

    kind: Optional[TransactionKind] = None
    amount: Optional[Decimal] = Field(None, gt=0)
    currency: Optional[Currency] = None
    category: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    date: Optional[dt.date] = None


class TransactionSchema(_FromDomain):
    id: str
    kind: TransactionKind
    amount: float
    currency: Currency
    category: str
    description: str
    date: dt.date
    created_at: dt.datetime
    updated_at: dt.datetime


class TransactionListResponse(BaseModel):
    transactions: List[TransactionSchema]
    count: int


class CategoriesResponse(BaseModel):
    categories: List[str]


# Reports

class PeriodSummarySchema(_FromDomain):
    income: float
    expenses: float
    balance: float


class DashboardResponse(BaseModel):
    """Response for GET /v1/reports/dashboard"""

    total_income: float
    total_expenses: float
    balance: float
    transaction_count: int
    today: PeriodSummarySchema
    this_week: PeriodSummarySchema


class MonthlyDataSchema(_FromDomain):
    month: int
    name: str
    income: float
    expenses: float
    balance: float


class YearlyReportSchema(_FromDomain):
    year: int
    months: List[MonthlyDataSchema]
    total_income: float
    total_expenses: float
    balance: float


class YearlyReportResponse(BaseModel):
    """Response for GET /v1/reports/yearly; report is null when there is no data"""

    available_years: List[int]
    report: Optional[YearlyReportSchema] = None


# Savings

class SavingsTransactionSchema(_FromDomain):
    id: str
    amount: float
    kind: SavingsKind
    service: CarrierService
    phone_number: str
    status: SavingsStatus
    transaction_id: Optional[str] = None
    description: Optional[str] = None
    created_at: dt.datetime
    updated_at: dt.datetime


class SavingsGoalSchema(_FromDomain):
    id: str
    name: str
    target_amount: float
    current_amount: float
    deadline: dt.date
    category: str
    description: Optional[str] = None
    is_active: bool
    created_at: dt.datetime
    updated_at: dt.datetime


class SavingsStatsSchema(_FromDomain):
    total_savings: float
    total_deposits: float
    total_withdrawals: float
    monthly_savings: float
    savings_rate: float
    active_goals: int
    completed_goals: int


class SavingsSummaryResponse(_FromDomain):
    stats: SavingsStatsSchema
    recent_transactions: List[SavingsTransactionSchema]
    active_goals: List[SavingsGoalSchema]


class DepositRequest(BaseModel):
    """Request body for POST /v1/savings/deposits"""

    amount: Decimal = Field(..., gt=0)
    service: CarrierService
    phone_number: str = Field(..., min_length=1)
    description: Optional[str] = None


class DepositResponse(BaseModel):
    success: bool
    message: str
    status: str
    simulated: bool
    error: Optional[str] = None
    gateway_reference: Optional[str] = None
    savings_transaction: SavingsTransactionSchema


class GoalCreate(BaseModel):
    """Request body for POST /v1/savings/goals"""

    name: str = Field(..., min_length=1)
    target_amount: Decimal = Field(..., gt=0)
    deadline: dt.date
    category: str = Field(..., min_length=1)
    description: Optional[str] = None


class GoalUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    target_amount: Optional[Decimal] = Field(None, gt=0)
    current_amount: Optional[Decimal] = Field(None, ge=0)
    deadline: Optional[dt.date] = None
    category: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class ContributionRequest(BaseModel):
    amount: Decimal = Field(..., gt=0)
