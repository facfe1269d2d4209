"""
Product catalog API
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_session
from api.security import get_current_user, require_admin
from db.repositories import products as products_repo
from errors import NotFoundError
from schemas import ProductCreate, ProductOut, ProductUpdate

router = APIRouter()


@router.get("", response_model=list[ProductOut], dependencies=[Depends(get_current_user)])
async def list_products(
    active_only: bool = Query(False),
    session: AsyncSession = Depends(get_session),
):
    return await products_repo.list_products(session, active_only=active_only)


@router.post(
    "",
    response_model=ProductOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_product(body: ProductCreate, session: AsyncSession = Depends(get_session)):
    return await products_repo.create(session, body.model_dump())


@router.put("/{product_id}", response_model=ProductOut, dependencies=[Depends(require_admin)])
async def update_product(
    product_id: UUID,
    body: ProductUpdate,
    session: AsyncSession = Depends(get_session),
):
    product = await products_repo.update(session, product_id, body.model_dump(exclude_unset=True))
    if product is None:
        raise NotFoundError("Product", product_id)
    return product
