# storefront/domain/catalog/service.py
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.errors import ConflictError, NotFoundError, ValidationError
from storefront.core.logger import AppLogger
from storefront.db.models.brands import Brand
from storefront.db.models.categories import Category
from storefront.db.models.products import Product
from storefront.db.operations import db_operation
from storefront.db.repositories import brands as brand_repo
from storefront.db.repositories import categories as category_repo
from storefront.db.repositories import products as product_repo
from storefront.domain.validation.sanitizers import sanitize_html, sanitize_sku, sanitize_slug
from storefront.domain.validation.schemas import BrandCreate, CategoryCreate, ProductCreate, ProductSearch


def _required(value: str, field: str, message: str) -> str:
    if not value:
        raise ValidationError(f"{field}: {message}", field)
    return value


def _optional_html(value: Optional[str]) -> Optional[str]:
    return sanitize_html(value) if value else None


def _clean_slug(value: str) -> str:
    return _required(sanitize_slug(value), "slug", "Slug must contain at least one letter or number")


def _clean_specifications(specifications: Dict[str, Any]) -> Dict[str, Any]:
    return {
        sanitize_html(key): sanitize_html(value) if isinstance(value, str) else value
        for key, value in specifications.items()
    }


def sanitize_category(data: CategoryCreate) -> Dict[str, Any]:
    values = data.model_dump()
    values["name"] = _required(sanitize_html(data.name), "name", "Category name is required")
    values["slug"] = _clean_slug(data.slug)
    values["description"] = _optional_html(data.description)
    values["image_url"] = _optional_html(data.image_url)
    return values


def sanitize_brand(data: BrandCreate) -> Dict[str, Any]:
    values = data.model_dump()
    values["name"] = _required(sanitize_html(data.name), "name", "Brand name is required")
    values["slug"] = _clean_slug(data.slug)
    values["logo_url"] = _optional_html(data.logo_url)
    return values


def sanitize_product(data: ProductCreate) -> Dict[str, Any]:
    values = data.model_dump()
    values["name"] = _required(sanitize_html(data.name), "name", "Product name is required")
    values["slug"] = _clean_slug(data.slug)
    values["sku"] = _required(sanitize_sku(data.sku), "sku", "SKU is required")
    values["description"] = sanitize_html(data.description)
    values["short_description"] = sanitize_html(data.short_description)
    values["warranty_info"] = _optional_html(data.warranty_info)
    values["images"] = [sanitize_html(url) for url in data.images]
    values["specifications"] = _clean_specifications(data.specifications)
    return values


# ---------- Categories ----------

async def list_categories(db: AsyncSession, logger: AppLogger, active_only: bool = False) -> List[Category]:
    async with db_operation(logger, "select", "categories"):
        return await category_repo.list_categories(db, active_only=active_only)


async def create_category(db: AsyncSession, logger: AppLogger, data: CategoryCreate) -> Category:
    values = sanitize_category(data)

    async with db_operation(logger, "select", "categories"):
        existing = await category_repo.get_category_by_slug(db, values["slug"])
    if existing is not None:
        raise ConflictError("A category with this slug already exists")

    category = Category(**values)
    async with db_operation(logger, "insert", "categories"):
        db.add(category)
        await db.commit()
        await db.refresh(category)
    return category


# ---------- Brands ----------

async def list_brands(db: AsyncSession, logger: AppLogger, active_only: bool = False) -> List[Brand]:
    async with db_operation(logger, "select", "brands"):
        return await brand_repo.list_brands(db, active_only=active_only)


async def create_brand(db: AsyncSession, logger: AppLogger, data: BrandCreate) -> Brand:
    values = sanitize_brand(data)

    async with db_operation(logger, "select", "brands"):
        existing = await brand_repo.get_brand_by_slug(db, values["slug"])
    if existing is not None:
        raise ConflictError("A brand with this slug already exists")

    brand = Brand(**values)
    async with db_operation(logger, "insert", "brands"):
        db.add(brand)
        await db.commit()
        await db.refresh(brand)
    return brand


# ---------- Products (admin) ----------

async def search_products(db: AsyncSession, logger: AppLogger, params: ProductSearch) -> List[Product]:
    async with db_operation(logger, "select", "products"):
        category_id = brand_id = None
        # unknown category/brand slugs leave the filter off
        if params.category:
            category = await category_repo.get_category_by_slug(db, params.category)
            category_id = category.id if category else None
        if params.brand:
            brand = await brand_repo.get_brand_by_slug(db, params.brand)
            brand_id = brand.id if brand else None

        return await product_repo.search_products(
            db,
            search=params.search,
            category_id=category_id,
            brand_id=brand_id,
            min_price=params.min_price,
            max_price=params.max_price,
            sort=params.sort,
            order=params.order,
            limit=params.limit,
            offset=params.offset,
        )


async def get_product(db: AsyncSession, logger: AppLogger, product_id: UUID) -> Product:
    async with db_operation(logger, "select", "products"):
        product = await product_repo.get_product_by_id(db, product_id)
    if product is None:
        raise NotFoundError("Product")
    return product


async def _check_product_references(
    db: AsyncSession,
    logger: AppLogger,
    values: Dict[str, Any],
    current: Optional[Product] = None,
) -> None:
    """Slug/SKU uniqueness and category/brand existence, in that order."""
    exclude_id = current.id if current else None
    async with db_operation(logger, "select", "products"):
        slug_taken = sku_taken = None
        if current is None or values["slug"] != current.slug:
            slug_taken = await product_repo.find_product_id(db, slug=values["slug"], exclude_id=exclude_id)
        if current is None or values["sku"] != current.sku:
            sku_taken = await product_repo.find_product_id(db, sku=values["sku"], exclude_id=exclude_id)
        category = await category_repo.get_category_by_id(db, values["category_id"])
        brand = await brand_repo.get_brand_by_id(db, values["brand_id"])

    if slug_taken is not None:
        raise ConflictError("A product with this slug already exists")
    if sku_taken is not None:
        raise ConflictError("A product with this SKU already exists")
    if category is None:
        raise ValidationError("Category not found", "category_id")
    if brand is None:
        raise ValidationError("Brand not found", "brand_id")


async def create_product(db: AsyncSession, logger: AppLogger, data: ProductCreate) -> Product:
    values = sanitize_product(data)
    await _check_product_references(db, logger, values)

    product = Product(**values)
    async with db_operation(logger, "insert", "products"):
        db.add(product)
        await db.commit()
        product = await product_repo.get_product_by_id(db, product.id)
    return product


async def update_product(db: AsyncSession, logger: AppLogger, product_id: UUID, data: ProductCreate) -> Product:
    product = await get_product(db, logger, product_id)

    values = sanitize_product(data)
    await _check_product_references(db, logger, values, current=product)

    for key, value in values.items():
        setattr(product, key, value)

    async with db_operation(logger, "update", "products"):
        await db.commit()
        product = await product_repo.get_product_by_id(db, product_id)
    return product


async def delete_product(db: AsyncSession, logger: AppLogger, product_id: UUID) -> Dict[str, Any]:
    product = await get_product(db, logger, product_id)

    async with db_operation(logger, "select", "order_items"):
        ordered = await product_repo.has_order_items(db, product_id)
    if ordered:
        raise ValidationError("Cannot delete product that has been ordered. Consider deactivating it instead.")

    deleted = {"id": product.id, "name": product.name}
    async with db_operation(logger, "delete", "products"):
        await db.delete(product)
        await db.commit()
    return deleted


# ---------- Storefront ----------

async def list_storefront_products(
    db: AsyncSession,
    logger: AppLogger,
    category_slug: Optional[str] = None,
    search: Optional[str] = None,
) -> List[Product]:
    async with db_operation(logger, "select", "products"):
        category_id = None
        if category_slug:
            category = await category_repo.get_category_by_slug(db, category_slug)
            category_id = category.id if category else None
        return await product_repo.list_storefront_products(db, category_id=category_id, search=search)


async def list_featured_products(db: AsyncSession, logger: AppLogger) -> List[Product]:
    async with db_operation(logger, "select", "products"):
        return await product_repo.list_featured_products(db)


async def get_storefront_product(db: AsyncSession, logger: AppLogger, slug: str) -> Product:
    async with db_operation(logger, "select", "products"):
        product = await product_repo.get_active_product_by_slug(db, slug)
    if product is None:
        raise NotFoundError("Product")
    return product


async def list_related_products(db: AsyncSession, logger: AppLogger, slug: str) -> List[Product]:
    product = await get_storefront_product(db, logger, slug)
    async with db_operation(logger, "select", "products"):
        return await product_repo.list_related_products(db, product)
