"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional


class TransactionKind(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class SavingsKind(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


class SavingsStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


class CarrierService(str, Enum):
    MTN = "MTN"
    ORANGE = "ORANGE"
    MOOV = "MOOV"


class Currency(str, Enum):
    XAF = "XAF"
    USD = "USD"
    NGN = "NGN"
    EUR = "EUR"


@dataclass
class Transaction:
    """Income or expense ledger entry owned by one user"""

    id: str
    owner_id: str
    kind: TransactionKind
    amount: Decimal
    currency: Currency
    category: str
    description: str
    date: date
    created_at: datetime
    updated_at: datetime


@dataclass
class SavingsTransaction:
    """Mobile-money deposit or withdrawal recorded after a gateway call"""

    id: str
    owner_id: str
    amount: Decimal
    kind: SavingsKind
    service: CarrierService
    phone_number: str
    status: SavingsStatus
    created_at: datetime
    updated_at: datetime
    transaction_id: Optional[str] = None  # external gateway reference
    description: Optional[str] = None


@dataclass
class SavingsGoal:
    """Savings target with a deadline"""

    id: str
    owner_id: str
    name: str
    target_amount: Decimal
    current_amount: Decimal
    deadline: date
    category: str
    is_active: bool
    created_at: datetime
    updated_at: datetime
    description: Optional[str] = None


@dataclass
class PeriodSummary:
    """Income, expenses and balance over some slice of transactions"""

    income: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")


@dataclass
class DashboardStats:
    total_income: Decimal
    total_expenses: Decimal
    balance: Decimal
    transaction_count: int


@dataclass
class MonthlyData:
    month: int  # 1 = January
    name: str
    income: Decimal
    expenses: Decimal
    balance: Decimal


@dataclass
class YearlyReport:
    year: int
    months: List[MonthlyData]
    total_income: Decimal
    total_expenses: Decimal
    balance: Decimal


@dataclass
class SavingsStats:
    total_savings: Decimal
    total_deposits: Decimal
    total_withdrawals: Decimal
    monthly_savings: Decimal
    savings_rate: Decimal  # percent, two decimals
    active_goals: int
    completed_goals: int


@dataclass
class SavingsSummary:
    stats: SavingsStats
    recent_transactions: List[SavingsTransaction] = field(default_factory=list)
    active_goals: List[SavingsGoal] = field(default_factory=list)


@dataclass
class GatewayTransaction:
    """Transaction block of a gateway collection response"""

    pk: str
    amount: Decimal
    service: str
    payer: str
    status: str
    created_at: str


@dataclass
class CollectResult:
    """Normalized outcome of a collection request"""

    success: bool
    message: str
    status: str
    transaction: Optional[GatewayTransaction] = None
    error: Optional[str] = None
    simulated: bool = False
