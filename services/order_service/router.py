from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.errors import raise_for_failure
from shared.security import Identity, get_current_user

from .schemas import OrderCreate, OrderResponse
from .service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: OrderCreate,
    response: Response,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    lines = [(item.product_id, item.quantity) for item in payload.items]
    order = raise_for_failure(await OrderService.create_order(db, identity, lines))
    response.headers["Location"] = f"/orders/{order.id}"
    return order


@router.get("", response_model=list[OrderResponse])
async def list_orders(
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.list_orders(db, identity)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return raise_for_failure(await OrderService.get_order(db, identity, order_id))
