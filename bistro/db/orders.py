"""
Bistro API — Order store
"""
import logging
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bistro.models.order import Order, OrderStatus

logger = logging.getLogger(__name__)


class OrderStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, **fields) -> Order:
        order = Order(**fields, status=OrderStatus.PENDING)
        self.db.add(order)
        await self.db.commit()
        await self.db.refresh(order)
        return order

    async def list_by_email(self, email: str) -> list[Order]:
        result = await self.db.execute(select(Order).where(Order.email == email))
        return list(result.scalars().all())

    async def get(self, order_id: str) -> Order | None:
        return await self.db.get(Order, order_id)

    async def delete(self, order_id: str) -> Order | None:
        """Remove a single order, returning it, or None if it does not exist."""
        order = await self.db.get(Order, order_id)
        if order is None:
            return None
        await self.db.delete(order)
        await self.db.commit()
        return order

    async def retire(self, order_ids: list[str]) -> int:
        """
        Retire every order in ``order_ids`` with one set-membership delete.
        Returns how many rows were removed; ids that are already gone are
        ignored, so repeating a retirement is a no-op.
        """
        ids = list(dict.fromkeys(order_ids))
        try:
            result = await self.db.execute(delete(Order).where(Order.id.in_(ids)))
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise
        return result.rowcount or 0
