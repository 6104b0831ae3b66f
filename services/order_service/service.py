"""
Checkout: price an order from the live catalog and store it.

Validation is all-or-nothing. Every referenced product is loaded (under a
shared row lock) before anything is written; one unknown id rejects the
whole order. Name and price are copied onto each item so later catalog
edits never change an existing order.
"""
from decimal import Decimal
from typing import Sequence, Tuple, Union

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from services.product_service.repository import ProductRepository
from shared.errors import ErrorKind, Failure
from shared.observability import (
    shop_checkout_duration_seconds,
    shop_order_amount,
    shop_orders_total,
)
from shared.security import Identity

from .models import Order, OrderItem
from .repository import OrderRepository
from .schemas import MAX_QUANTITY

logger = structlog.get_logger(__name__)

CENT = Decimal("0.01")
# Largest value Order.total_amount (Numeric(14, 2)) can hold.
MAX_TOTAL = Decimal("999999999999.99")

# (product_id, quantity)
OrderLine = Tuple[int, int]

EMPTY_ORDER = Failure(ErrorKind.MALFORMED_INPUT, "No items in order")
BAD_QUANTITY = Failure(
    ErrorKind.MALFORMED_INPUT, f"Quantity must be between 1 and {MAX_QUANTITY}"
)
TOTAL_TOO_LARGE = Failure(ErrorKind.MALFORMED_INPUT, "Order total is too large")
ORDER_NOT_FOUND = Failure(ErrorKind.NOT_FOUND, "Order not found")


def line_total(unit_price: Decimal, quantity: int) -> Decimal:
    return unit_price * quantity


class OrderService:

    @staticmethod
    async def create_order(
        db: AsyncSession, identity: Identity, lines: Sequence[OrderLine]
    ) -> Union[Order, Failure]:
        with shop_checkout_duration_seconds.time():
            result = await OrderService._create_order(db, identity, lines)
        if isinstance(result, Failure):
            shop_orders_total.labels(outcome=result.kind.value).inc()
        else:
            shop_orders_total.labels(outcome="created").inc()
            shop_order_amount.observe(float(result.total_amount))
        return result

    @staticmethod
    async def _create_order(
        db: AsyncSession, identity: Identity, lines: Sequence[OrderLine]
    ) -> Union[Order, Failure]:
        if not lines:
            return EMPTY_ORDER
        if any(not 1 <= quantity <= MAX_QUANTITY for _, quantity in lines):
            return BAD_QUANTITY

        products = await ProductRepository.get_products_for_checkout(
            db, (product_id for product_id, _ in lines)
        )
        missing = sorted({product_id for product_id, _ in lines if product_id not in products})
        if missing:
            # Release the read locks; nothing has been written.
            await db.rollback()
            logger.info("order_rejected", user_id=identity.user_id, missing_products=missing)
            return Failure(
                ErrorKind.MALFORMED_INPUT,
                "Product(s) not found: " + ", ".join(str(pid) for pid in missing),
            )

        order = Order(user_id=identity.user_id, status="pending")
        total = Decimal("0")
        for product_id, quantity in lines:
            product = products[product_id]
            unit_price = Decimal(product.price).quantize(CENT)
            order.items.append(
                OrderItem(
                    product_id=product.id,
                    product_name=product.name,
                    unit_price=unit_price,
                    quantity=quantity,
                )
            )
            total += line_total(unit_price, quantity)
        if total > MAX_TOTAL:
            await db.rollback()
            logger.info("order_rejected", user_id=identity.user_id, total_amount=str(total))
            return TOTAL_TOO_LARGE
        order.total_amount = total.quantize(CENT)

        order = await OrderRepository.create_order(db, order)
        logger.info(
            "order_created",
            order_id=order.id,
            user_id=identity.user_id,
            items=len(order.items),
            total_amount=str(order.total_amount),
        )
        return order

    @staticmethod
    async def list_orders(db: AsyncSession, identity: Identity) -> Sequence[Order]:
        return await OrderRepository.list_for_user(db, identity.user_id)

    @staticmethod
    async def get_order(
        db: AsyncSession, identity: Identity, order_id: int
    ) -> Union[Order, Failure]:
        order = await OrderRepository.get_for_user(db, identity.user_id, order_id)
        if order is None:
            return ORDER_NOT_FOUND
        return order
