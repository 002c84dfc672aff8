# storefront/db/repositories/products.py
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy import Select
from sqlalchemy.sql import func, or_, select

from storefront.db.models.order_items import OrderItem
from storefront.db.models.products import Product
from storefront.db.models.reviews import Review


def products_with_relations() -> Select:
    return select(Product).options(selectinload(Product.category), selectinload(Product.brand))


async def get_product_by_id(db: AsyncSession, product_id: UUID) -> Optional[Product]:
    result = await db.execute(
        products_with_relations()
        .where(Product.id == product_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_active_product_by_slug(db: AsyncSession, slug: str) -> Optional[Product]:
    result = await db.execute(
        products_with_relations().where(Product.slug == slug, Product.is_active.is_(True))
    )
    return result.scalar_one_or_none()


async def find_product_id(
    db: AsyncSession,
    *,
    slug: Optional[str] = None,
    sku: Optional[str] = None,
    exclude_id: Optional[UUID] = None,
) -> Optional[UUID]:
    stmt = select(Product.id)
    if slug is not None:
        stmt = stmt.where(Product.slug == slug)
    if sku is not None:
        stmt = stmt.where(Product.sku == sku)
    if exclude_id is not None:
        stmt = stmt.where(Product.id != exclude_id)
    result = await db.execute(stmt.limit(1))
    return result.scalar_one_or_none()


async def has_order_items(db: AsyncSession, product_id: UUID) -> bool:
    result = await db.execute(select(OrderItem.id).where(OrderItem.product_id == product_id).limit(1))
    return result.first() is not None


async def search_products(
    db: AsyncSession,
    *,
    search: Optional[str] = None,
    category_id: Optional[UUID] = None,
    brand_id: Optional[UUID] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    sort: str = "created_at",
    order: str = "desc",
    limit: int = 20,
    offset: int = 0,
) -> List[Product]:
    stmt = products_with_relations()

    if search:
        stmt = stmt.where(Product.name.ilike(f"%{search}%"))
    if category_id is not None:
        stmt = stmt.where(Product.category_id == category_id)
    if brand_id is not None:
        stmt = stmt.where(Product.brand_id == brand_id)
    if min_price is not None:
        stmt = stmt.where(Product.price >= min_price)
    if max_price is not None:
        stmt = stmt.where(Product.price <= max_price)

    if sort == "rating":
        ratings = (
            select(Review.product_id, func.avg(Review.rating).label("average"))
            .where(Review.is_approved.is_(True))
            .group_by(Review.product_id)
            .subquery()
        )
        stmt = stmt.outerjoin(ratings, ratings.c.product_id == Product.id)
        column = ratings.c.average
    else:
        column = getattr(Product, sort)
    stmt = stmt.order_by(column.asc() if order == "asc" else column.desc(), Product.id)

    result = await db.execute(stmt.offset(offset).limit(limit))
    return list(result.scalars().all())


async def list_storefront_products(
    db: AsyncSession,
    *,
    category_id: Optional[UUID] = None,
    search: Optional[str] = None,
) -> List[Product]:
    stmt = products_with_relations().where(Product.is_active.is_(True))
    if category_id is not None:
        stmt = stmt.where(Product.category_id == category_id)
    if search:
        term = f"%{search}%"
        stmt = stmt.where(or_(
            Product.name.ilike(term),
            Product.description.ilike(term),
            Product.short_description.ilike(term),
            Product.sku.ilike(term),
        ))
    result = await db.execute(stmt.order_by(Product.created_at.desc()))
    return list(result.scalars().all())


async def list_featured_products(db: AsyncSession, limit: int = 8) -> List[Product]:
    result = await db.execute(
        products_with_relations()
        .where(Product.is_featured.is_(True), Product.is_active.is_(True))
        .order_by(Product.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def list_related_products(db: AsyncSession, product: Product, limit: int = 4) -> List[Product]:
    result = await db.execute(
        products_with_relations()
        .where(
            Product.category_id == product.category_id,
            Product.is_active.is_(True),
            Product.id != product.id,
        )
        .limit(limit)
    )
    return list(result.scalars().all())
