"""/v1/transactions - Owner-scoped income and expense entries"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, Response

from finance_tracker.api.v1.schemas import (
    CategoriesResponse,
    TransactionCreate,
    TransactionListResponse,
    TransactionSchema,
    TransactionUpdate,
)
from finance_tracker.api.dependencies import get_transaction_store
from finance_tracker.domain.filters import DateRange, filter_transactions, list_categories
from finance_tracker.domain.models import TransactionKind
from finance_tracker.infrastructure.store.transactions import TransactionStore

router = APIRouter()


@router.get("/transactions", response_model=TransactionListResponse)
def list_transactions(
    kind: Optional[TransactionKind] = Query(None, description="income or expense"),
    category: Optional[str] = Query(None),
    date_range: DateRange = Query(DateRange.ALL),
    search: Optional[str] = Query(None, description="Matches description or category"),
    store: TransactionStore = Depends(get_transaction_store),
):
    """Transactions newest first, optionally filtered"""
    transactions = filter_transactions(
        store.transactions,
        kind=kind,
        category=category,
        date_range=date_range,
        search=search,
    )
    return TransactionListResponse(
        transactions=[TransactionSchema.model_validate(t) for t in transactions],
        count=len(transactions),
    )


@router.get("/transactions/categories", response_model=CategoriesResponse)
def get_categories(store: TransactionStore = Depends(get_transaction_store)):
    return CategoriesResponse(categories=list_categories(store.transactions))


@router.post("/transactions", response_model=TransactionSchema, status_code=201)
def create_transaction(
    request_body: TransactionCreate,
    store: TransactionStore = Depends(get_transaction_store),
):
    transaction_id = store.add_transaction(
        kind=request_body.kind,
        amount=request_body.amount,
        category=request_body.category,
        description=request_body.description,
        date=request_body.date,
        currency=request_body.currency,
    )
    return TransactionSchema.model_validate(store.get(transaction_id))


@router.patch("/transactions/{transaction_id}", response_model=TransactionSchema)
def update_transaction(
    transaction_id: str,
    request_body: TransactionUpdate,
    store: TransactionStore = Depends(get_transaction_store),
):
    store.update_transaction(transaction_id, **request_body.model_dump(exclude_unset=True, exclude_none=True))
    return TransactionSchema.model_validate(store.get(transaction_id))


@router.delete("/transactions/{transaction_id}", status_code=204)
def delete_transaction(
    transaction_id: str,
    store: TransactionStore = Depends(get_transaction_store),
):
    store.delete_transaction(transaction_id)
    return Response(status_code=204)
