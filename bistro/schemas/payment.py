"""
Bistro API — Payment and settlement schemas
"""
from datetime import datetime
from typing import Any
from pydantic import EmailStr, Field, field_validator

from bistro.models.payment import PaymentStatus, ReconciliationStatus
from bistro.schemas.common import CamelModel


class PaymentIntentRequest(CamelModel):
    # Left untyped so that strings and booleans reach the amount validator
    # and fail with 400 instead of being coerced.
    total_price: Any = None


class PaymentIntentResponse(CamelModel):
    client_secret: str


class SettlementRequest(CamelModel):
    email: EmailStr
    price: float = Field(..., ge=0, allow_inf_nan=False)
    transaction_id: str = Field(..., min_length=1, max_length=255)
    order_ids: list[str] = Field(..., min_length=1)
    menu_ids: list[str] = Field(..., min_length=1)
    status: PaymentStatus = PaymentStatus.COMPLETED

    @field_validator("status")
    @classmethod
    def status_must_be_settleable(cls, v: PaymentStatus) -> PaymentStatus:
        if v == PaymentStatus.FAILED:
            raise ValueError("A failed charge cannot be settled.")
        return v


class PaymentResponse(CamelModel):
    id: str
    email: str
    price: float
    transaction_id: str
    date: datetime | None = None
    order_ids: list[str]
    menu_ids: list[str]
    status: PaymentStatus


class SettlementResponse(CamelModel):
    message: str
    payment: PaymentResponse
    deleted_count: int
    duplicate: bool = False
    reconciliation_id: str | None = None


class ReconciliationResponse(CamelModel):
    id: str
    payment_id: str
    transaction_id: str
    order_ids: list[str]
    status: ReconciliationStatus
    attempts: int
    last_error: str | None = None
    created_at: datetime | None = None
    resolved_at: datetime | None = None


class ReconcileReportResponse(CamelModel):
    examined: int
    resolved: int
    failed: int
    orders_retired: int
