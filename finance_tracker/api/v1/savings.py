"""/v1/savings - Savings summary, mobile-money deposits and goals"""

import time
from fastapi import APIRouter, Depends, HTTPException, Request, Response

from finance_tracker.api.v1.schemas import (
    ContributionRequest,
    DepositRequest,
    DepositResponse,
    GoalCreate,
    GoalUpdate,
    SavingsGoalSchema,
    SavingsSummaryResponse,
    SavingsTransactionSchema,
)
from finance_tracker.api.dependencies import get_payment_client, get_request_id, get_savings_store
from finance_tracker.domain.models import SavingsKind
from finance_tracker.domain.savings import status_from_result
from finance_tracker.domain.validation import is_valid_payer_number
from finance_tracker.infrastructure.clients.payments import PaymentGatewayClient
from finance_tracker.infrastructure.observability.logging import log_collection
from finance_tracker.infrastructure.observability.metrics import record_collection
from finance_tracker.infrastructure.store.savings import SavingsStore

router = APIRouter()


@router.get("/savings/summary", response_model=SavingsSummaryResponse)
def get_summary(store: SavingsStore = Depends(get_savings_store)):
    """Stats, five most recent savings transactions and the active goals"""
    return SavingsSummaryResponse.model_validate(store.get_savings_summary())


@router.get("/savings/transactions", response_model=list[SavingsTransactionSchema])
def list_savings_transactions(store: SavingsStore = Depends(get_savings_store)):
    return [SavingsTransactionSchema.model_validate(t) for t in store.transactions]


@router.post("/savings/deposits", response_model=DepositResponse, status_code=201)
async def create_deposit(
    request_body: DepositRequest,
    request: Request,
    store: SavingsStore = Depends(get_savings_store),
    payment_client: PaymentGatewayClient = Depends(get_payment_client),
):
    """
    Pull money from the user's mobile-money account into savings.

    Flow:
    1. Validate the payer number for the chosen carrier
    2. Send the collection request through the payment relay
    3. Persist a savings transaction for the outcome, success or not
    4. Return the normalized result with the stored record

    Goals are not credited here; use the contributions endpoint.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    # 1. Validate before any network call
    if not is_valid_payer_number(request_body.phone_number, request_body.service):
        raise HTTPException(status_code=400, detail="Please enter a valid phone number for the selected service")

    description = request_body.description or "Savings deposit"

    # 2. Collect
    result = await payment_client.collect(
        amount=request_body.amount,
        service=request_body.service,
        payer=request_body.phone_number,
        trx_id=f"savings_general-savings_{int(time.time() * 1000)}",
        description=description,
    )

    # 3. Persist the outcome
    reference = result.transaction.pk if result.transaction else None
    savings_id = store.add_savings_transaction(
        amount=request_body.amount,
        kind=SavingsKind.DEPOSIT,
        service=request_body.service,
        phone_number=request_body.phone_number,
        status=status_from_result(result),
        transaction_id=reference,
        description=description,
    )

    # Record metrics and logs
    duration_ms = (time.time() - start_time) * 1000
    record_collection(request_body.service.value, result.success, result.status)
    log_collection(
        request_id,
        store.owner_id,
        request_body.service.value,
        result.success,
        result.status,
        result.simulated,
        duration_ms,
        reference=reference,
    )

    saved = store.get_transaction(savings_id)
    return DepositResponse(
        success=result.success,
        message=result.message,
        status=result.status,
        simulated=result.simulated,
        error=result.error,
        gateway_reference=reference,
        savings_transaction=SavingsTransactionSchema.model_validate(saved),
    )


@router.get("/savings/goals", response_model=list[SavingsGoalSchema])
def list_goals(store: SavingsStore = Depends(get_savings_store)):
    return [SavingsGoalSchema.model_validate(g) for g in store.goals]


@router.post("/savings/goals", response_model=SavingsGoalSchema, status_code=201)
def create_goal(request_body: GoalCreate, store: SavingsStore = Depends(get_savings_store)):
    goal_id = store.add_savings_goal(
        name=request_body.name,
        target_amount=request_body.target_amount,
        deadline=request_body.deadline,
        category=request_body.category,
        description=request_body.description,
    )
    return SavingsGoalSchema.model_validate(store.get_goal(goal_id))


@router.patch("/savings/goals/{goal_id}", response_model=SavingsGoalSchema)
def update_goal(goal_id: str, request_body: GoalUpdate, store: SavingsStore = Depends(get_savings_store)):
    store.update_savings_goal(goal_id, **request_body.model_dump(exclude_unset=True, exclude_none=True))
    return SavingsGoalSchema.model_validate(store.get_goal(goal_id))


@router.delete("/savings/goals/{goal_id}", status_code=204)
def delete_goal(goal_id: str, store: SavingsStore = Depends(get_savings_store)):
    store.delete_savings_goal(goal_id)
    return Response(status_code=204)


@router.post("/savings/goals/{goal_id}/contributions", response_model=SavingsGoalSchema)
def contribute(goal_id: str, request_body: ContributionRequest, store: SavingsStore = Depends(get_savings_store)):
    """Explicitly move a goal's progress; completes the goal when the target is reached"""
    return SavingsGoalSchema.model_validate(store.contribute_to_goal(goal_id, request_body.amount))
