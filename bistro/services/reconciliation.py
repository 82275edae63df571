"""
Bistro API — Partial settlement reconciliation sweep
"""
import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from bistro.db.orders import OrderStore
from bistro.db.payments import ReconciliationStore

logger = logging.getLogger(__name__)


@dataclass
class ReconcileReport:
    examined: int = 0
    resolved: int = 0
    failed: int = 0
    orders_retired: int = 0


async def reconcile_pending(
    orders: OrderStore,
    reconciliations: ReconciliationStore,
    max_attempts: int,
) -> ReconcileReport:
    """Retry order retirement for every pending partial settlement."""
    report = ReconcileReport()
    records = await reconciliations.list_pending(max_attempts=max_attempts)

    for record in records:
        await reconciliations.reload(record)
        report.examined += 1
        try:
            deleted = await orders.retire(record.order_ids)
        except SQLAlchemyError as exc:
            report.failed += 1
            await reconciliations.record_failure(record, str(exc))
            if record.attempts >= max_attempts:
                logger.error(
                    "Reconciliation %s for transaction %s gave up after %d attempts",
                    record.id, record.transaction_id, record.attempts,
                )
            else:
                logger.warning(
                    "Reconciliation %s attempt %d failed: %s",
                    record.id, record.attempts, exc,
                )
            continue

        await reconciliations.mark_resolved(record)
        report.resolved += 1
        report.orders_retired += deleted
        logger.info(
            "Reconciliation %s resolved: retired %d orders for transaction %s",
            record.id, deleted, record.transaction_id,
        )

    return report
