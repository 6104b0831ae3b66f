from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence, Union

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import ErrorKind, Failure

from .models import Product, utc_now
from .repository import ProductRepository
from .schemas import ProductCreate, ProductUpdate

logger = structlog.get_logger(__name__)

CENT = Decimal("0.01")
MAX_PAGE_SIZE = 100

PRODUCT_NOT_FOUND = Failure(ErrorKind.NOT_FOUND, "Product not found")


@dataclass(frozen=True)
class ProductPage:
    items: Sequence[Product]
    total: int
    page: int
    page_size: int


class ProductService:

    @staticmethod
    async def create_product(db: AsyncSession, data: ProductCreate) -> Product:
        now = utc_now()
        product = Product(
            name=data.name,
            description=data.description,
            price=data.price.quantize(CENT),
            image_url=data.image_url,
            created_at=now,
            updated_at=now,
        )
        product = await ProductRepository.create_product(db, product)
        logger.info("product_created", product_id=product.id)
        return product

    @staticmethod
    async def list_products(
        db: AsyncSession, search: Optional[str] = None, page: int = 1, page_size: int = 10
    ) -> Union[ProductPage, Failure]:
        if page < 1 or page_size < 1 or page_size > MAX_PAGE_SIZE:
            return Failure(
                ErrorKind.MALFORMED_INPUT,
                f"page must be >= 1 and pageSize between 1 and {MAX_PAGE_SIZE}",
            )
        search = (search or "").strip() or None
        total = await ProductRepository.count_products(db, search)
        items = await ProductRepository.list_products(
            db, search, offset=(page - 1) * page_size, limit=page_size
        )
        return ProductPage(items=items, total=total, page=page, page_size=page_size)

    @staticmethod
    async def get_product_by_id(db: AsyncSession, product_id: int) -> Union[Product, Failure]:
        product = await ProductRepository.get_product_by_id(db, product_id)
        if product is None:
            return PRODUCT_NOT_FOUND
        return product

    @staticmethod
    async def update_product(
        db: AsyncSession, product_id: int, data: ProductUpdate
    ) -> Union[Product, Failure]:
        product = await ProductRepository.get_product_by_id(db, product_id)
        if product is None:
            return PRODUCT_NOT_FOUND

        product.name = data.name
        product.description = data.description
        product.price = data.price.quantize(CENT)
        product.image_url = data.image_url
        product.updated_at = utc_now()
        product = await ProductRepository.update_product(db, product)
        logger.info("product_updated", product_id=product.id)
        return product

    @staticmethod
    async def delete_product(db: AsyncSession, product_id: int) -> Optional[Failure]:
        product = await ProductRepository.get_product_by_id(db, product_id)
        if product is None:
            return PRODUCT_NOT_FOUND
        await ProductRepository.delete_product(db, product)
        logger.info("product_deleted", product_id=product_id)
        return None
