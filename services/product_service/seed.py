from decimal import Decimal

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Product, utc_now
from .repository import ProductRepository

logger = structlog.get_logger(__name__)

DEMO_PRODUCTS = [
    {
        "name": "Premium men's T-shirt",
        "description": "100% cotton, breathable, made for summer",
        "price": Decimal("299000.00"),
        "image_url": "https://via.placeholder.com/300x300?text=Mens+T-Shirt",
    },
    {
        "name": "Women's jeans",
        "description": "Slim fit jeans in premium denim",
        "price": Decimal("599000.00"),
        "image_url": "https://via.placeholder.com/300x300?text=Womens+Jeans",
    },
    {
        "name": "Hoodie jacket",
        "description": "Warm unisex hoodie for winter",
        "price": Decimal("799000.00"),
        "image_url": "https://via.placeholder.com/300x300?text=Hoodie",
    },
]


async def seed_catalog(db: AsyncSession) -> int:
    """Inserts the demo products if the catalog is empty. Returns rows added."""
    if not await ProductRepository.is_empty(db):
        return 0
    now = utc_now()
    db.add_all(Product(created_at=now, updated_at=now, **data) for data in DEMO_PRODUCTS)
    await db.commit()
    logger.info("catalog_seeded", count=len(DEMO_PRODUCTS))
    return len(DEMO_PRODUCTS)
