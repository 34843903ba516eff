"""POST /api/webhooks/mesomb - Gateway status callbacks"""

import logging
from typing import Any, Dict, Optional, Tuple
from fastapi import APIRouter, Body, Depends, Request
from sqlalchemy.orm import Session

from finance_tracker.api.dependencies import get_mesomb_gateway, get_request_id
from finance_tracker.domain.exceptions import PaymentGatewayError
from finance_tracker.domain.models import SavingsStatus
from finance_tracker.domain.savings import reconcile_status
from finance_tracker.infrastructure.clients.mesomb import MesombGateway
from finance_tracker.infrastructure.database.repositories import (
    SavingsTransactionRepository,
    WebhookEventRepository,
)
from finance_tracker.infrastructure.database.session import get_db
from finance_tracker.infrastructure.observability.metrics import webhook_counter
from finance_tracker.infrastructure.store.hub import SAVINGS_TRANSACTIONS, hub

router = APIRouter()


def extract_reference(payload: Dict[str, Any]) -> Tuple[Optional[str], Optional[str]]:
    """(gateway reference, reported status) from a callback body or its transaction block"""
    transaction = payload.get("transaction")
    if not isinstance(transaction, dict):
        transaction = {}

    reference = transaction.get("pk") or payload.get("pk") or payload.get("reference")
    status = payload.get("status") or transaction.get("status")
    return (str(reference) if reference else None, str(status) if status else None)


@router.post("/webhooks/mesomb")
async def receive_mesomb_webhook(
    request: Request,
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    gateway: MesombGateway = Depends(get_mesomb_gateway),
):
    """
    Record a gateway callback and settle the matching pending deposit.

    The callback body is unauthenticated, so the status it reports is only a
    hint: a pending deposit moves to the status the gateway itself reports
    for the reference. Callbacks that cannot be confirmed are recorded as
    unverified and change nothing. Records that already reached success or
    failed keep their status. The gateway always gets an acknowledgement.
    """
    request_id = get_request_id(request)
    reference, reported = extract_reference(payload)

    WebhookEventRepository(db).record(payload, reference, reported)

    record = SavingsTransactionRepository(db).find_by_reference(reference) if reference else None
    confirmed: Optional[str] = None

    if record is None:
        result = "unmatched"
    elif SavingsStatus(record.status) != SavingsStatus.PENDING:
        result = "ignored"
    else:
        confirmed = await _confirm_status(gateway, reference, request_id)
        new_status = reconcile_status(SavingsStatus.PENDING, confirmed)
        if confirmed is None:
            result = "unverified"
        elif new_status is None:
            result = "ignored"
        else:
            record.status = new_status.value
            result = "reconciled"

    db.commit()

    if result == "reconciled":
        hub.publish(SAVINGS_TRANSACTIONS, record.user_id)

    webhook_counter.labels(result=result).inc()
    logging.info(
        "MeSomb webhook received",
        extra={
            "request_id": request_id,
            "step": "webhook",
            "reference": reference,
            "gateway_status": reported,
            "confirmed_status": confirmed,
            "webhook_result": result,
        },
    )

    return {"success": True, "message": "Webhook received"}


async def _confirm_status(gateway: MesombGateway, reference: str, request_id: str) -> Optional[str]:
    """Gateway-side status for `reference`; None when it cannot be obtained"""
    if not gateway.configured:
        logging.warning(
            "Webhook not verified: payment gateway not configured",
            extra={"request_id": request_id, "reference": reference},
        )
        return None
    try:
        return await gateway.fetch_status(reference)
    except PaymentGatewayError as e:
        logging.error(
            f"Webhook status lookup failed: {e}",
            extra={"request_id": request_id, "reference": reference},
        )
        return None
