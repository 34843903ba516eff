"""/api/payments/* - Server-side relay in front of the MeSomb gateway"""

import time
import logging
from datetime import datetime, timezone
from typing import Any, Dict
from fastapi import APIRouter, Body, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from finance_tracker.api.dependencies import get_mesomb_gateway, get_owner_id, get_request_id
from finance_tracker.api.rate_limit import limiter, payment_rate_limit
from finance_tracker.domain.exceptions import PaymentGatewayError, ValidationError
from finance_tracker.domain.validation import validate_collect_request
from finance_tracker.infrastructure.clients.mesomb import MesombGateway
from finance_tracker.infrastructure.database.repositories import SavingsTransactionRepository
from finance_tracker.infrastructure.database.session import get_db
from finance_tracker.infrastructure.observability.logging import log_collection
from finance_tracker.infrastructure.observability.metrics import record_collection

router = APIRouter()


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.post("/payments/collect")
@limiter.limit(payment_rate_limit)
async def collect_payment(
    request: Request,
    payload: Dict[str, Any] = Body(...),
    gateway: MesombGateway = Depends(get_mesomb_gateway),
):
    """
    Collect money from a mobile-money account.

    Body: {amount, service, payer, trxID?, description?}

    Returns the normalized gateway result. Validation problems answer 400,
    a missing gateway configuration 503 and gateway failures 500, each with
    {success: false, message}.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        amount, service, payer = validate_collect_request(payload)
    except ValidationError as e:
        return JSONResponse(status_code=400, content={"success": False, "message": str(e)})

    if not gateway.configured:
        logging.error("Payment gateway not configured", extra={"request_id": request_id})
        return JSONResponse(
            status_code=503,
            content={"success": False, "message": "Payment gateway not configured"},
        )

    trx_id = payload.get("trxID") or f"spendwise_{int(time.time() * 1000)}"
    description = payload.get("description") or "SpendWise payment"

    logging.info(
        "Processing collection",
        extra={
            "request_id": request_id,
            "step": "collection_start",
            "carrier_service": service.value,
            "reference": trx_id,
        },
    )

    try:
        result = await gateway.collect(
            amount=amount, service=service, payer=payer, trx_id=trx_id, description=description
        )
    except PaymentGatewayError as e:
        record_collection(service.value, False, "ERROR")
        logging.error(
            f"Payment processing failed: {e}",
            extra={"request_id": request_id, "carrier_service": service.value, "reference": trx_id},
        )
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "message": "Payment processing failed",
                "error": str(e),
                "timestamp": _timestamp(),
            },
        )

    duration_ms = (time.time() - start_time) * 1000
    record_collection(service.value, result["success"], result["status"])
    log_collection(
        request_id,
        None,
        service.value,
        result["success"],
        result["status"],
        False,
        duration_ms,
        reference=result["transaction"]["pk"],
    )

    return {**result, "timestamp": _timestamp()}


@router.get("/payments/status/{transaction_id}")
@limiter.limit(payment_rate_limit)
def get_payment_status(
    transaction_id: str,
    request: Request,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db),
):
    """
    Status of one of the caller's savings records by gateway reference.
    References belonging to other owners answer 404 like unknown ones.

    Returns:
        {transaction_id, status, amount, service, updated_at}
    """
    record = SavingsTransactionRepository(db).get_by_reference(owner_id, transaction_id)
    if not record:
        raise HTTPException(status_code=404, detail=f"Transaction {transaction_id} not found")

    return {
        "transaction_id": record.transaction_id,
        "status": record.status,
        "amount": float(record.amount),
        "service": record.service,
        "updated_at": record.updated_at.isoformat() if record.updated_at else None,
    }
