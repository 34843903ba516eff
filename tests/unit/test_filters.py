"""Unit tests for transaction search and filters"""

import pytest
from datetime import date
from finance_tracker.domain.filters import DateRange, filter_transactions, list_categories
from finance_tracker.domain.models import TransactionKind

TODAY = date(2024, 5, 8)  # Wednesday


@pytest.fixture
def transactions(make_transaction):
    return [
        make_transaction("expense", "12", TODAY, "Food", "Lunch at Mama Ngozi"),
        make_transaction("income", "500", date(2024, 5, 5), "Salary", "May salary"),
        make_transaction("expense", "60", date(2024, 5, 1), "Transport", "Taxi fares"),
        make_transaction("expense", "80", date(2024, 4, 28), "Food", "Groceries"),
    ]


def test_no_filters_keeps_everything_in_order(transactions):
    assert filter_transactions(transactions, today=TODAY) == transactions


def test_filter_by_kind(transactions):
    result = filter_transactions(transactions, kind=TransactionKind.INCOME, today=TODAY)

    assert [t.category for t in result] == ["Salary"]


def test_filter_by_category(transactions):
    result = filter_transactions(transactions, category="Food", today=TODAY)

    assert [t.description for t in result] == ["Lunch at Mama Ngozi", "Groceries"]


@pytest.mark.parametrize(
    "date_range,expected",
    [
        (DateRange.TODAY, 1),
        (DateRange.WEEK, 2),
        (DateRange.MONTH, 3),
        (DateRange.ALL, 4),
    ],
)
def test_filter_by_date_range(transactions, date_range, expected):
    assert len(filter_transactions(transactions, date_range=date_range, today=TODAY)) == expected


def test_search_matches_description_or_category(transactions):
    assert len(filter_transactions(transactions, search="FOOD", today=TODAY)) == 2
    assert len(filter_transactions(transactions, search="taxi", today=TODAY)) == 1
    assert filter_transactions(transactions, search="  ", today=TODAY) == transactions


def test_filters_combine(transactions):
    result = filter_transactions(
        transactions,
        kind=TransactionKind.EXPENSE,
        date_range=DateRange.MONTH,
        search="food",
        today=TODAY,
    )

    assert [t.description for t in result] == ["Lunch at Mama Ngozi"]


def test_list_categories(transactions):
    assert list_categories(transactions) == ["Food", "Salary", "Transport"]
