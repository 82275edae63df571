"""
Bistro API — Payment and reconciliation models

[IMMUTABLE] payments — one row per successful external charge. The unique
constraint on transaction_id is the idempotency anchor for settlement.
[OPERATIONAL] settlement_reconciliations — partial settlements awaiting
order retirement.
"""
import uuid
from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import String, Float, Integer, DateTime, func, Enum, JSON, Text
from sqlalchemy.orm import Mapped, mapped_column
from bistro.db.database import Base


class PaymentStatus(str, PyEnum):
    PENDING = "Pending"
    COMPLETED = "Completed"
    FAILED = "Failed"


class ReconciliationStatus(str, PyEnum):
    PENDING = "pending"
    RESOLVED = "resolved"


class Payment(Base):
    __tablename__ = "payments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    transaction_id: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    order_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    menu_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus, name="payment_status", values_callable=lambda e: [m.value for m in e]),
        default=PaymentStatus.PENDING,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<Payment id={self.id} transaction_id={self.transaction_id} status={self.status}>"


class SettlementReconciliation(Base):
    """
    Written when a Payment was persisted but its Orders could not be retired.
    Swept by the reconciliation task until the retirement succeeds.
    """
    __tablename__ = "settlement_reconciliations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    payment_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    transaction_id: Mapped[str] = mapped_column(String(255), nullable=False)
    order_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    status: Mapped[ReconciliationStatus] = mapped_column(
        Enum(ReconciliationStatus, name="reconciliation_status",
             values_callable=lambda e: [m.value for m in e]),
        default=ReconciliationStatus.PENDING,
        index=True,
        nullable=False,
    )
    attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
