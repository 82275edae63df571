"""
Bistro API — Partial settlement reconciliation (admin)
"""
from fastapi import APIRouter, Depends

from bistro.api.deps import get_order_store, get_reconciliation_store, require_admin
from bistro.core.config import get_settings
from bistro.core.gate import AdminCapability
from bistro.db.orders import OrderStore
from bistro.db.payments import ReconciliationStore
from bistro.schemas.payment import ReconcileReportResponse, ReconciliationResponse
from bistro.services.reconciliation import reconcile_pending

settings = get_settings()
router = APIRouter(prefix="/reconciliations", tags=["reconciliation"])


@router.get("", response_model=list[ReconciliationResponse])
async def list_pending_reconciliations(
    admin: AdminCapability = Depends(require_admin),
    reconciliations: ReconciliationStore = Depends(get_reconciliation_store),
):
    """Payments whose orders are still awaiting retirement."""
    return await reconciliations.list_pending()


@router.post("/run", response_model=ReconcileReportResponse)
async def run_reconciliation(
    admin: AdminCapability = Depends(require_admin),
    orders: OrderStore = Depends(get_order_store),
    reconciliations: ReconciliationStore = Depends(get_reconciliation_store),
):
    report = await reconcile_pending(orders, reconciliations, settings.RECONCILE_MAX_ATTEMPTS)
    return ReconcileReportResponse(
        examined=report.examined,
        resolved=report.resolved,
        failed=report.failed,
        orders_retired=report.orders_retired,
    )
