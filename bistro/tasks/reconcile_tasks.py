"""
Bistro API — Celery tasks (partial settlement sweep)

Runs the same sweep as POST /reconciliations/run, on its own engine so the
worker never shares the API process's connection pool.
"""
import asyncio
import logging
from dataclasses import asdict

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from bistro.core.celery_app import celery_app
from bistro.core.config import get_settings
from bistro.db.orders import OrderStore
from bistro.db.payments import ReconciliationStore
from bistro.services.reconciliation import reconcile_pending

settings = get_settings()
logger = logging.getLogger(__name__)


async def _sweep(database_url: str) -> dict:
    engine = create_async_engine(database_url, pool_pre_ping=True)
    try:
        sessions = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
        async with sessions() as session:
            report = await reconcile_pending(
                OrderStore(session),
                ReconciliationStore(session),
                settings.RECONCILE_MAX_ATTEMPTS,
            )
    finally:
        await engine.dispose()
    return asdict(report)


@celery_app.task(
    name="bistro.reconcile_partial_settlements",
    bind=True,
    max_retries=3,
    default_retry_delay=30,
    acks_late=True,
)
def reconcile_partial_settlements(self):
    try:
        report = asyncio.run(_sweep(settings.database_url))
    except Exception as exc:
        logger.exception("Reconciliation sweep failed")
        raise self.retry(exc=exc)

    if report["examined"]:
        logger.info("Reconciliation sweep: %s", report)
    return report
