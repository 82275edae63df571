"""
Bistro API — Settlement Coordinator

Step A (authorize): amount → processor client secret. No local writes.
Step B (settle):    payment descriptor → Payment row, then order retirement.

Settlement is a two-step saga over two tables:
  1. INSERT payment (commit), the durable proof of the charge
  2. DELETE orders WHERE id IN (...) (commit)
If step 1 fails nothing is retired and the caller retries. If step 2 fails
the payment stands, a reconciliation record is opened, and the result is
reported as partial.

transaction_id is the idempotency anchor: a replay (or the loser of a
concurrent race, via the unique constraint) gets the stored Payment back
and no retirement is attempted.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from bistro.core.errors import DuplicateTransaction, InvalidRequest, UpstreamFailure
from bistro.db.orders import OrderStore
from bistro.db.payments import PaymentStore, ReconciliationStore
from bistro.models.payment import Payment, PaymentStatus
from bistro.services.payment_client import PaymentAuthorizationClient

logger = logging.getLogger(__name__)

SETTLEABLE_STATUSES = (PaymentStatus.COMPLETED, PaymentStatus.PENDING)


class SettlementOutcome(str, Enum):
    SETTLED = "settled"
    DUPLICATE = "duplicate"
    PARTIAL = "partial"


@dataclass(frozen=True)
class SettlementDescriptor:
    email: str
    price: float
    transaction_id: str
    order_ids: list[str]
    menu_ids: list[str]
    status: PaymentStatus = PaymentStatus.COMPLETED


@dataclass(frozen=True)
class SettlementResult:
    payment: Payment
    deleted_count: int
    outcome: SettlementOutcome
    reconciliation_id: str | None = None


class SettlementCoordinator:
    def __init__(
        self,
        orders: OrderStore,
        payments: PaymentStore,
        reconciliations: ReconciliationStore,
        processor: PaymentAuthorizationClient,
    ):
        self.orders = orders
        self.payments = payments
        self.reconciliations = reconciliations
        self.processor = processor

    async def authorize(self, amount: Any) -> str:
        return await self.processor.create_intent(amount)

    async def settle(self, descriptor: SettlementDescriptor) -> SettlementResult:
        if not descriptor.order_ids or not descriptor.menu_ids:
            raise InvalidRequest("orderIds and menuIds must be non-empty.")
        if not descriptor.transaction_id:
            raise InvalidRequest("transactionId is required.")
        if descriptor.status not in SETTLEABLE_STATUSES:
            raise InvalidRequest("A failed charge cannot be settled.")

        try:
            existing = await self.payments.get_by_transaction_id(descriptor.transaction_id)
        except SQLAlchemyError:
            logger.exception("Payment lookup failed for %s", descriptor.transaction_id)
            raise UpstreamFailure("Failed to process payment.")
        if existing is not None:
            return self._replay(existing, descriptor)

        try:
            payment = await self.payments.create(
                email=descriptor.email,
                price=descriptor.price,
                transaction_id=descriptor.transaction_id,
                order_ids=descriptor.order_ids,
                menu_ids=descriptor.menu_ids,
                status=descriptor.status,
            )
        except DuplicateTransaction:
            existing = await self.payments.get_by_transaction_id(descriptor.transaction_id)
            if existing is None:
                raise UpstreamFailure("Failed to process payment.")
            return self._replay(existing, descriptor)
        except SQLAlchemyError:
            logger.exception("Payment persistence failed for %s", descriptor.transaction_id)
            raise UpstreamFailure("Failed to process payment.")

        logger.info(
            "Payment %s recorded for %s (transaction %s, %d orders)",
            payment.id, payment.email, payment.transaction_id, len(descriptor.order_ids),
        )

        try:
            deleted = await self.orders.retire(descriptor.order_ids)
        except SQLAlchemyError as exc:
            return await self._partial(payment, descriptor.order_ids, exc)

        return SettlementResult(payment=payment, deleted_count=deleted, outcome=SettlementOutcome.SETTLED)

    def _replay(self, existing: Payment, descriptor: SettlementDescriptor) -> SettlementResult:
        if existing.email != descriptor.email or existing.order_ids != list(descriptor.order_ids):
            logger.warning(
                "Replay of transaction %s carries different details than payment %s",
                descriptor.transaction_id, existing.id,
            )
        else:
            logger.info("Transaction %s already settled as payment %s", existing.transaction_id, existing.id)
        return SettlementResult(payment=existing, deleted_count=0, outcome=SettlementOutcome.DUPLICATE)

    async def _partial(self, payment: Payment, order_ids: list[str], exc: Exception) -> SettlementResult:
        logger.error(
            "Partial settlement: payment %s (transaction %s) recorded but orders %s not retired: %s",
            payment.id, payment.transaction_id, order_ids, exc,
        )
        reconciliation_id = None
        try:
            record = await self.reconciliations.open(payment, order_ids, error=str(exc))
            reconciliation_id = record.id
        except SQLAlchemyError:
            logger.critical(
                "Could not open reconciliation for payment %s (transaction %s); "
                "orders %s need manual retirement",
                payment.id, payment.transaction_id, order_ids,
                exc_info=True,
            )
        return SettlementResult(
            payment=payment,
            deleted_count=0,
            outcome=SettlementOutcome.PARTIAL,
            reconciliation_id=reconciliation_id,
        )
