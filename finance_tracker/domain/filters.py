"""Search and filter over the in-memory transaction list"""

from datetime import date
from enum import Enum
from typing import List, Optional
from finance_tracker.domain.models import Transaction, TransactionKind
from finance_tracker.utils.date_utils import in_current_week, in_same_month


class DateRange(str, Enum):
    ALL = "all"
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"


def _in_range(value: date, date_range: DateRange, today: date) -> bool:
    if date_range == DateRange.TODAY:
        return value == today
    if date_range == DateRange.WEEK:
        return in_current_week(value, today)
    if date_range == DateRange.MONTH:
        return in_same_month(value, today)
    return True


def filter_transactions(
    transactions: List[Transaction],
    kind: Optional[TransactionKind] = None,
    category: Optional[str] = None,
    date_range: DateRange = DateRange.ALL,
    search: Optional[str] = None,
    today: date | None = None,
) -> List[Transaction]:
    """
    Narrow a transaction list, keeping its order.

    `search` is a case-insensitive substring match on description or category.
    """
    today = today or date.today()
    term = search.strip().lower() if search else ""

    result = []
    for t in transactions:
        if kind is not None and t.kind != kind:
            continue
        if category and t.category != category:
            continue
        if not _in_range(t.date, date_range, today):
            continue
        if term and term not in t.description.lower() and term not in t.category.lower():
            continue
        result.append(t)
    return result


def list_categories(transactions: List[Transaction]) -> List[str]:
    return sorted({t.category for t in transactions})
