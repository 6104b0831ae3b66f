from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import retry_on_transient

from .models import Order


class OrderRepository:

    @staticmethod
    async def create_order(db: AsyncSession, order: Order) -> Order:
        """Writes the order and its items as one unit: one commit, or nothing."""
        try:
            db.add(order)
            await db.flush()
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return order

    @staticmethod
    @retry_on_transient()
    async def list_for_user(db: AsyncSession, user_id: int) -> Sequence[Order]:
        result = await db.execute(
            select(Order)
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        return result.scalars().all()

    @staticmethod
    @retry_on_transient()
    async def get_for_user(db: AsyncSession, user_id: int, order_id: int) -> Optional[Order]:
        # Owner filter is part of the lookup so foreign orders read as missing.
        result = await db.execute(
            select(Order).where(Order.id == order_id, Order.user_id == user_id)
        )
        return result.scalars().first()
