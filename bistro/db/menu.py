"""
Bistro API — Catalog store
"""
from typing import Any
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from bistro.core.gate import AdminCapability
from bistro.models.product import Product


class MenuStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_all(self) -> list[Product]:
        result = await self.db.execute(select(Product).order_by(Product.created_at))
        return list(result.scalars().all())

    async def get(self, item_id: str) -> Product | None:
        return await self.db.get(Product, item_id)

    async def create(self, fields: dict[str, Any], admin: AdminCapability) -> Product:
        item = Product(**fields)
        self.db.add(item)
        await self.db.commit()
        await self.db.refresh(item)
        return item

    async def update(self, item_id: str, changes: dict[str, Any], admin: AdminCapability) -> Product | None:
        item = await self.db.get(Product, item_id)
        if item is None:
            return None
        for key, value in changes.items():
            setattr(item, key, value)
        await self.db.commit()
        await self.db.refresh(item)
        return item

    async def delete(self, item_id: str, admin: AdminCapability) -> int:
        result = await self.db.execute(delete(Product).where(Product.id == item_id))
        await self.db.commit()
        return result.rowcount or 0
