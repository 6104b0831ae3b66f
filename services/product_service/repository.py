from typing import Iterable, Optional, Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import retry_on_transient

from .models import Product


def _search_filter(search: Optional[str]):
    if not search:
        return None
    # Literal substring match; % and _ in the input are not wildcards.
    return or_(
        Product.name.icontains(search, autoescape=True),
        Product.description.icontains(search, autoescape=True),
    )


class ProductRepository:

    @staticmethod
    async def create_product(db: AsyncSession, product: Product) -> Product:
        db.add(product)
        await db.commit()
        await db.refresh(product)
        return product

    @staticmethod
    @retry_on_transient()
    async def count_products(db: AsyncSession, search: Optional[str] = None) -> int:
        query = select(func.count()).select_from(Product)
        criteria = _search_filter(search)
        if criteria is not None:
            query = query.where(criteria)
        result = await db.execute(query)
        return result.scalar_one()

    @staticmethod
    @retry_on_transient()
    async def list_products(
        db: AsyncSession, search: Optional[str] = None, offset: int = 0, limit: int = 10
    ) -> Sequence[Product]:
        query = select(Product).order_by(Product.id).offset(offset).limit(limit)
        criteria = _search_filter(search)
        if criteria is not None:
            query = query.where(criteria)
        result = await db.execute(query)
        return result.scalars().all()

    @staticmethod
    @retry_on_transient()
    async def get_product_by_id(db: AsyncSession, product_id: int) -> Optional[Product]:
        result = await db.execute(select(Product).where(Product.id == product_id))
        return result.scalars().first()

    @staticmethod
    async def get_products_for_checkout(
        db: AsyncSession, product_ids: Iterable[int]
    ) -> dict[int, Product]:
        """Loads products by id with a shared row lock held until commit.

        The lock keeps prices stable between reading them and writing the
        order; backends without FOR SHARE (SQLite) simply ignore it.
        """
        ids = set(product_ids)
        if not ids:
            return {}
        result = await db.execute(
            select(Product).where(Product.id.in_(ids)).with_for_update(read=True)
        )
        return {product.id: product for product in result.scalars().all()}

    @staticmethod
    async def update_product(db: AsyncSession, product: Product) -> Product:
        db.add(product)
        await db.commit()
        await db.refresh(product)
        return product

    @staticmethod
    async def delete_product(db: AsyncSession, product: Product) -> None:
        await db.delete(product)
        await db.commit()

    @staticmethod
    async def is_empty(db: AsyncSession) -> bool:
        result = await db.execute(select(Product.id).limit(1))
        return result.first() is None
