"""
Bistro API — Payments API

Flow:
  1. POST /create-payment-intent → processor client secret (no local write)
  2. Client confirms the charge with the processor
  3. POST /payment → Payment recorded, covered orders retired
"""
from fastapi import APIRouter, Depends, Response, status

from bistro.api.deps import get_payment_store, get_settlement_coordinator
from bistro.db.payments import PaymentStore
from bistro.schemas.payment import (
    PaymentIntentRequest,
    PaymentIntentResponse,
    PaymentResponse,
    SettlementRequest,
    SettlementResponse,
)
from bistro.services.settlement import (
    SettlementCoordinator,
    SettlementDescriptor,
    SettlementOutcome,
)

router = APIRouter(tags=["payments"])


@router.post("/create-payment-intent", response_model=PaymentIntentResponse)
async def create_payment_intent(
    payload: PaymentIntentRequest,
    coordinator: SettlementCoordinator = Depends(get_settlement_coordinator),
):
    client_secret = await coordinator.authorize(payload.total_price)
    return PaymentIntentResponse(client_secret=client_secret)


@router.post("/payment", response_model=SettlementResponse, status_code=status.HTTP_201_CREATED)
async def settle_payment(
    payload: SettlementRequest,
    response: Response,
    coordinator: SettlementCoordinator = Depends(get_settlement_coordinator),
):
    """
    Record a completed charge and retire the orders it covers.
    A replayed transactionId returns the stored payment (200) instead of a
    second record; a failed retirement is reported as 202 and queued for
    reconciliation.
    """
    result = await coordinator.settle(SettlementDescriptor(
        email=payload.email,
        price=payload.price,
        transaction_id=payload.transaction_id,
        order_ids=payload.order_ids,
        menu_ids=payload.menu_ids,
        status=payload.status,
    ))
    payment = PaymentResponse.model_validate(result.payment)

    if result.outcome == SettlementOutcome.DUPLICATE:
        response.status_code = status.HTTP_200_OK
        response.headers["X-Idempotency-Replay"] = "true"
        return SettlementResponse(
            message="Payment already recorded for this transaction",
            payment=payment,
            deleted_count=0,
            duplicate=True,
        )

    if result.outcome == SettlementOutcome.PARTIAL:
        response.status_code = status.HTTP_202_ACCEPTED
        return SettlementResponse(
            message="Payment recorded; order clean-up is pending reconciliation",
            payment=payment,
            deleted_count=result.deleted_count,
            reconciliation_id=result.reconciliation_id,
        )

    return SettlementResponse(
        message="Payment saved & orders deleted successfully",
        payment=payment,
        deleted_count=result.deleted_count,
    )


@router.get("/payments/{email}", response_model=list[PaymentResponse])
async def payment_history(email: str, payments: PaymentStore = Depends(get_payment_store)):
    return await payments.list_by_email(email)
