"""Dependency injection for FastAPI endpoints"""

from typing import Iterator, Optional
from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.orm import sessionmaker
from finance_tracker.infrastructure.clients.mesomb import MesombGateway
from finance_tracker.infrastructure.clients.payments import PaymentGatewayClient
from finance_tracker.infrastructure.database.session import get_session_factory
from finance_tracker.infrastructure.store.base import LiveStore
from finance_tracker.infrastructure.store.savings import SavingsStore
from finance_tracker.infrastructure.store.transactions import TransactionStore


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_owner_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Owner identity issued by the identity provider and forwarded by the auth proxy"""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="User not authenticated")
    return x_user_id


def ensure_synced(store: LiveStore) -> None:
    """A store that never received its first snapshot has nothing trustworthy to serve"""
    if not store.synced:
        raise HTTPException(status_code=503, detail=store.error or "Store unavailable")


def get_payment_client() -> PaymentGatewayClient:
    """Provide payment relay client instance"""
    return PaymentGatewayClient()


def get_mesomb_gateway() -> MesombGateway:
    """Provide MeSomb gateway instance"""
    return MesombGateway()


def get_transaction_store(
    owner_id: str = Depends(get_owner_id),
    session_factory: sessionmaker = Depends(get_session_factory),
) -> Iterator[TransactionStore]:
    """Live transaction snapshot for the request; released when the request ends"""
    with TransactionStore(session_factory, owner_id) as store:
        ensure_synced(store)
        yield store


def get_savings_store(
    owner_id: str = Depends(get_owner_id),
    session_factory: sessionmaker = Depends(get_session_factory),
) -> Iterator[SavingsStore]:
    """Live savings snapshot for the request; released when the request ends"""
    with SavingsStore(session_factory, owner_id) as store:
        ensure_synced(store)
        yield store
