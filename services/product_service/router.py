from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.errors import raise_for_failure, to_http_exception
from shared.security import get_current_user

from .schemas import ProductCreate, ProductResponse, ProductUpdate
from .service import ProductService

router = APIRouter(prefix="/products", tags=["Products"])


@router.get("", response_model=list[ProductResponse])
async def list_products(
    response: Response,
    search: Optional[str] = Query(default=None),
    page: int = Query(default=1),
    page_size: int = Query(default=10, alias="pageSize"),
    db: AsyncSession = Depends(get_db),
):
    result = raise_for_failure(await ProductService.list_products(db, search, page, page_size))
    response.headers["X-Total-Count"] = str(result.total)
    response.headers["X-Page"] = str(result.page)
    response.headers["X-Page-Size"] = str(result.page_size)
    return result.items


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: int, db: AsyncSession = Depends(get_db)):
    return raise_for_failure(await ProductService.get_product_by_id(db, product_id))


# Catalog mutations require any authenticated user.
@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(get_current_user)],
)
async def create_product(
    product: ProductCreate,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    created = await ProductService.create_product(db, product)
    response.headers["Location"] = f"/products/{created.id}"
    return created


@router.put(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(get_current_user)],
)
async def update_product(
    product_id: int,
    product: ProductUpdate,
    db: AsyncSession = Depends(get_db),
):
    raise_for_failure(await ProductService.update_product(db, product_id, product))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(get_current_user)],
)
async def delete_product(product_id: int, db: AsyncSession = Depends(get_db)):
    failure = await ProductService.delete_product(db, product_id)
    if failure is not None:
        raise to_http_exception(failure)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
