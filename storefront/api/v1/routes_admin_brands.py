# storefront/api/v1/routes_admin_brands.py
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.logger import AppLogger
from storefront.core.pipeline import READ, WRITE, RequestGuard, get_logger, parse_json_body, success_response
from storefront.db.base import get_db
from storefront.domain.catalog import service as catalog
from storefront.domain.catalog.schemas import BrandOut
from storefront.domain.validation.validators import validate_brand


router = APIRouter(prefix="/api/admin/brands", tags=["admin"])


@router.get("", dependencies=[Depends(RequestGuard(READ, ["GET"]))])
async def list_brands_endpoint(
    db: AsyncSession = Depends(get_db),
    logger: AppLogger = Depends(get_logger),
):
    brands = await catalog.list_brands(db, logger)
    return success_response([BrandOut.model_validate(b) for b in brands], "Brands retrieved successfully")


@router.post("", dependencies=[Depends(RequestGuard(WRITE, ["POST"]))])
async def create_brand_endpoint(
    request: Request,
    db: AsyncSession = Depends(get_db),
    logger: AppLogger = Depends(get_logger),
):
    payload = await parse_json_body(request, validate_brand)
    brand = await catalog.create_brand(db, logger, payload)
    return success_response(BrandOut.model_validate(brand), "Brand created successfully", status_code=201)
