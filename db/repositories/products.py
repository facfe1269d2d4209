"""Product repository: the SKU catalog."""
import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy import update as sa_update
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Product
from errors import ConflictError

logger = logging.getLogger(__name__)


async def list_products(session: AsyncSession, active_only: bool = False) -> list[Product]:
    """Return catalog products ordered by SKU."""
    stmt = select(Product)
    if active_only:
        stmt = stmt.where(Product.is_active == True)  # noqa: E712
    result = await session.execute(stmt.order_by(Product.sku))
    return list(result.scalars().all())


async def get(session: AsyncSession, product_id: UUID) -> Optional[Product]:
    return await session.get(Product, product_id)


async def get_by_sku(session: AsyncSession, sku: str) -> Optional[Product]:
    """Return the Product with this SKU, or None."""
    result = await session.execute(select(Product).where(Product.sku == sku.strip()))
    return result.scalar_one_or_none()


async def create(session: AsyncSession, data: dict) -> Product:
    """Insert a product. Raises ConflictError if the SKU exists.

    data dict keys: sku, name, price, units, is_active
    """
    data = {**data, "sku": data["sku"].strip()}
    if await get_by_sku(session, data["sku"]) is not None:
        raise ConflictError(f"Product SKU {data['sku']!r} already exists")
    product = Product(**data)
    session.add(product)
    await session.flush()
    logger.info("Created product %s (%s)", product.sku, product.price)
    return product


async def update(session: AsyncSession, product_id: UUID, data: dict) -> Optional[Product]:
    """Apply a partial update. Returns None when the product does not exist."""
    if not data:
        return await get(session, product_id)
    if "sku" in data:
        existing = await get_by_sku(session, data["sku"])
        if existing is not None and existing.id != product_id:
            raise ConflictError(f"Product SKU {data['sku']!r} already exists")
    result = await session.execute(
        sa_update(Product)
        .where(Product.id == product_id)
        .values(**data)
        .returning(Product),
        execution_options={"populate_existing": True},
    )
    await session.flush()
    return result.scalar_one_or_none()
