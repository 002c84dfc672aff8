# storefront/api/v1/routes_admin_products.py
import re
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.errors import ValidationError, measure_performance
from storefront.core.logger import AppLogger
from storefront.core.pipeline import (
    DELETE,
    READ,
    WRITE,
    RequestGuard,
    get_logger,
    parse_json_body,
    parse_query_params,
    success_response,
)
from storefront.db.base import get_db
from storefront.domain.catalog import service as catalog
from storefront.domain.catalog.schemas import DeletedProduct, ProductOut
from storefront.domain.validation.validators import validate_product, validate_product_search


router = APIRouter(prefix="/api/admin/products", tags=["admin"])

UUID_PATTERN = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$", re.IGNORECASE)


def product_uuid(product_id: str) -> UUID:
    if not UUID_PATTERN.match(product_id):
        raise ValidationError("Invalid product ID format", "id")
    return UUID(product_id)


@router.get("", dependencies=[Depends(RequestGuard(READ, ["GET"]))])
async def list_products_endpoint(
    request: Request,
    db: AsyncSession = Depends(get_db),
    logger: AppLogger = Depends(get_logger),
):
    params = validate_product_search(parse_query_params(request))
    if not params.success:
        raise ValidationError("Invalid query parameters")

    products = await measure_performance(
        logger,
        "admin product search",
        lambda: catalog.search_products(db, logger, params.data),
        {"sort": params.data.sort, "limit": params.data.limit},
    )
    return success_response([ProductOut.model_validate(p) for p in products], "Products retrieved successfully")


@router.post("", dependencies=[Depends(RequestGuard(WRITE, ["POST"]))])
async def create_product_endpoint(
    request: Request,
    db: AsyncSession = Depends(get_db),
    logger: AppLogger = Depends(get_logger),
):
    payload = await parse_json_body(request, validate_product)
    product = await catalog.create_product(db, logger, payload)
    return success_response(ProductOut.model_validate(product), "Product created successfully", status_code=201)


@router.get("/{product_id}", dependencies=[Depends(RequestGuard(READ, ["GET"]))])
async def get_product_endpoint(
    product_id: str,
    db: AsyncSession = Depends(get_db),
    logger: AppLogger = Depends(get_logger),
):
    product = await catalog.get_product(db, logger, product_uuid(product_id))
    return success_response(ProductOut.model_validate(product), "Product retrieved successfully")


@router.put("/{product_id}", dependencies=[Depends(RequestGuard(WRITE, ["PUT"]))])
async def update_product_endpoint(
    product_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    logger: AppLogger = Depends(get_logger),
):
    uuid_ = product_uuid(product_id)
    payload = await parse_json_body(request, validate_product)
    product = await catalog.update_product(db, logger, uuid_, payload)
    return success_response(ProductOut.model_validate(product), "Product updated successfully")


@router.delete("/{product_id}", dependencies=[Depends(RequestGuard(DELETE, ["DELETE"]))])
async def delete_product_endpoint(
    product_id: str,
    db: AsyncSession = Depends(get_db),
    logger: AppLogger = Depends(get_logger),
):
    deleted = await catalog.delete_product(db, logger, product_uuid(product_id))
    return success_response(DeletedProduct(**deleted), "Product deleted successfully")
