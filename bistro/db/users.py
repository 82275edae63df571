"""
Bistro API — User store
"""
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from bistro.core.gate import AdminCapability
from bistro.models.user import User, UserRole


class UserStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_or_create(self, email: str, name: str | None = None,
                            photo_url: str | None = None) -> tuple[User, bool]:
        """Return ``(user, created)``. New accounts always start as customers."""
        existing = await self.get_by_email(email)
        if existing is not None:
            return existing, False

        user = User(email=email, name=name, photo_url=photo_url, role=UserRole.CUSTOMER)
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            # Concurrent signup with the same email won the insert
            await self.db.rollback()
            existing = await self.get_by_email(email)
            if existing is None:
                raise
            return existing, False
        await self.db.refresh(user)
        return user, True

    async def list_all(self, admin: AdminCapability) -> list[User]:
        result = await self.db.execute(select(User).order_by(User.created_at))
        return list(result.scalars().all())

    async def promote_to_admin(self, user_id: str, admin: AdminCapability) -> tuple[int, int]:
        """Returns ``(matched, modified)``."""
        user = await self.db.get(User, user_id)
        if user is None:
            return 0, 0
        if user.role == UserRole.ADMIN:
            return 1, 0
        user.role = UserRole.ADMIN
        await self.db.commit()
        return 1, 1

    async def delete(self, user_id: str, admin: AdminCapability) -> User | None:
        user = await self.db.get(User, user_id)
        if user is None:
            return None
        await self.db.delete(user)
        await self.db.commit()
        return user
