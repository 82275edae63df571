"""
Bistro API — Payment and reconciliation stores

Payments are insert-only. ``transaction_id`` carries a unique constraint so
that two concurrent inserts for the same external charge cannot both win;
the loser sees DuplicateTransaction.
"""
import logging
from datetime import datetime, timezone
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bistro.core.errors import DuplicateTransaction
from bistro.models.payment import (
    Payment,
    PaymentStatus,
    ReconciliationStatus,
    SettlementReconciliation,
)

logger = logging.getLogger(__name__)


class PaymentStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_transaction_id(self, transaction_id: str) -> Payment | None:
        result = await self.db.execute(
            select(Payment).where(Payment.transaction_id == transaction_id)
        )
        return result.scalar_one_or_none()

    async def create(
        self,
        email: str,
        price: float,
        transaction_id: str,
        order_ids: list[str],
        menu_ids: list[str],
        status: PaymentStatus = PaymentStatus.COMPLETED,
    ) -> Payment:
        payment = Payment(
            email=email,
            price=price,
            transaction_id=transaction_id,
            order_ids=list(order_ids),
            menu_ids=list(menu_ids),
            status=status,
        )
        self.db.add(payment)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateTransaction(transaction_id)
        except SQLAlchemyError:
            await self.db.rollback()
            raise
        await self.db.refresh(payment)
        # Detached so later rollbacks on this session cannot expire it
        self.db.expunge(payment)
        return payment

    async def list_by_email(self, email: str) -> list[Payment]:
        result = await self.db.execute(
            select(Payment).where(Payment.email == email).order_by(Payment.date.desc())
        )
        return list(result.scalars().all())

    async def count_by_transaction_id(self, transaction_id: str) -> int:
        result = await self.db.execute(
            select(Payment.id).where(Payment.transaction_id == transaction_id)
        )
        return len(result.all())


class ReconciliationStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def open(self, payment: Payment, order_ids: list[str], error: str) -> SettlementReconciliation:
        record = SettlementReconciliation(
            payment_id=payment.id,
            transaction_id=payment.transaction_id,
            order_ids=list(order_ids),
            status=ReconciliationStatus.PENDING,
            attempts=1,
            last_error=error[:2000],
        )
        self.db.add(record)
        try:
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise
        await self.db.refresh(record)
        return record

    async def list_pending(self, max_attempts: int | None = None) -> list[SettlementReconciliation]:
        query = (
            select(SettlementReconciliation)
            .where(SettlementReconciliation.status == ReconciliationStatus.PENDING)
            .order_by(SettlementReconciliation.created_at)
        )
        if max_attempts is not None:
            query = query.where(SettlementReconciliation.attempts < max_attempts)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def mark_resolved(self, record: SettlementReconciliation) -> None:
        record.status = ReconciliationStatus.RESOLVED
        record.resolved_at = datetime.now(tz=timezone.utc)
        record.last_error = None
        await self.db.commit()

    async def record_failure(self, record: SettlementReconciliation, error: str) -> None:
        # The failed retirement rolled back the session, which expired the record
        await self.db.refresh(record)
        record.attempts += 1
        record.last_error = error[:2000]
        await self.db.commit()

    async def reload(self, record: SettlementReconciliation) -> None:
        await self.db.refresh(record)
