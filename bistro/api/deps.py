"""
Bistro API — FastAPI dependencies

Stores are built per request around the request's session. The gate
dependencies run before any handler body, so a rejected caller never
reaches a mutation.
"""
from functools import lru_cache

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from bistro.core.gate import AdminCapability, Identity, authenticate, authorize_admin
from bistro.db.database import get_db
from bistro.db.menu import MenuStore
from bistro.db.orders import OrderStore
from bistro.db.payments import PaymentStore, ReconciliationStore
from bistro.db.users import UserStore
from bistro.services.payment_client import PaymentAuthorizationClient
from bistro.services.settlement import SettlementCoordinator


def get_order_store(db: AsyncSession = Depends(get_db)) -> OrderStore:
    return OrderStore(db)


def get_payment_store(db: AsyncSession = Depends(get_db)) -> PaymentStore:
    return PaymentStore(db)


def get_reconciliation_store(db: AsyncSession = Depends(get_db)) -> ReconciliationStore:
    return ReconciliationStore(db)


def get_user_store(db: AsyncSession = Depends(get_db)) -> UserStore:
    return UserStore(db)


def get_menu_store(db: AsyncSession = Depends(get_db)) -> MenuStore:
    return MenuStore(db)


@lru_cache()
def get_payment_client() -> PaymentAuthorizationClient:
    return PaymentAuthorizationClient()


def get_settlement_coordinator(
    orders: OrderStore = Depends(get_order_store),
    payments: PaymentStore = Depends(get_payment_store),
    reconciliations: ReconciliationStore = Depends(get_reconciliation_store),
    processor: PaymentAuthorizationClient = Depends(get_payment_client),
) -> SettlementCoordinator:
    return SettlementCoordinator(orders, payments, reconciliations, processor)


async def require_identity(authorization: str | None = Header(None)) -> Identity:
    return authenticate(authorization)


async def require_admin(
    identity: Identity = Depends(require_identity),
    users: UserStore = Depends(get_user_store),
) -> AdminCapability:
    return await authorize_admin(identity, users)
