# storefront/db/repositories/brands.py
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import select

from storefront.db.models.brands import Brand


async def list_brands(db: AsyncSession, active_only: bool = False) -> List[Brand]:
    stmt = select(Brand).order_by(Brand.name)
    if active_only:
        stmt = stmt.where(Brand.is_active.is_(True))
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_brand_by_id(db: AsyncSession, brand_id: UUID) -> Optional[Brand]:
    result = await db.execute(select(Brand).where(Brand.id == brand_id))
    return result.scalar_one_or_none()


async def get_brand_by_slug(db: AsyncSession, slug: str) -> Optional[Brand]:
    result = await db.execute(select(Brand).where(Brand.slug == slug))
    return result.scalar_one_or_none()
