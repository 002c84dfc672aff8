# storefront/api/v1/routes_catalog.py
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.logger import AppLogger
from storefront.core.pipeline import READ, RequestGuard, get_logger, success_response
from storefront.db.base import get_db
from storefront.domain.catalog import service as catalog
from storefront.domain.catalog.schemas import BrandOut, CategoryOut, ProductOut


router = APIRouter(
    prefix="/api",
    tags=["catalog"],
    dependencies=[Depends(RequestGuard(READ, ["GET"], access="public"))],
)


@router.get("/products")
async def list_products_endpoint(
    category: Optional[str] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    logger: AppLogger = Depends(get_logger),
):
    products = await catalog.list_storefront_products(db, logger, category_slug=category, search=search)
    return success_response([ProductOut.model_validate(p) for p in products])


@router.get("/products/featured")
async def featured_products_endpoint(
    db: AsyncSession = Depends(get_db),
    logger: AppLogger = Depends(get_logger),
):
    products = await catalog.list_featured_products(db, logger)
    return success_response([ProductOut.model_validate(p) for p in products])


@router.get("/products/{slug}")
async def get_product_endpoint(
    slug: str,
    db: AsyncSession = Depends(get_db),
    logger: AppLogger = Depends(get_logger),
):
    product = await catalog.get_storefront_product(db, logger, slug)
    return success_response(ProductOut.model_validate(product))


@router.get("/products/{slug}/related")
async def related_products_endpoint(
    slug: str,
    db: AsyncSession = Depends(get_db),
    logger: AppLogger = Depends(get_logger),
):
    products = await catalog.list_related_products(db, logger, slug)
    return success_response([ProductOut.model_validate(p) for p in products])


@router.get("/categories")
async def list_categories_endpoint(
    db: AsyncSession = Depends(get_db),
    logger: AppLogger = Depends(get_logger),
):
    categories = await catalog.list_categories(db, logger, active_only=True)
    return success_response([CategoryOut.model_validate(c) for c in categories])


@router.get("/brands")
async def list_brands_endpoint(
    db: AsyncSession = Depends(get_db),
    logger: AppLogger = Depends(get_logger),
):
    brands = await catalog.list_brands(db, logger, active_only=True)
    return success_response([BrandOut.model_validate(b) for b in brands])
