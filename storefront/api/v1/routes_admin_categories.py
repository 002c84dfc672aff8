# storefront/api/v1/routes_admin_categories.py
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.logger import AppLogger
from storefront.core.pipeline import READ, WRITE, RequestGuard, get_logger, parse_json_body, success_response
from storefront.db.base import get_db
from storefront.domain.catalog import service as catalog
from storefront.domain.catalog.schemas import CategoryOut
from storefront.domain.validation.validators import validate_category


router = APIRouter(prefix="/api/admin/categories", tags=["admin"])


@router.get("", dependencies=[Depends(RequestGuard(READ, ["GET"]))])
async def list_categories_endpoint(
    db: AsyncSession = Depends(get_db),
    logger: AppLogger = Depends(get_logger),
):
    categories = await catalog.list_categories(db, logger)
    return success_response(
        [CategoryOut.model_validate(c) for c in categories],
        "Categories retrieved successfully",
    )


@router.post("", dependencies=[Depends(RequestGuard(WRITE, ["POST"]))])
async def create_category_endpoint(
    request: Request,
    db: AsyncSession = Depends(get_db),
    logger: AppLogger = Depends(get_logger),
):
    payload = await parse_json_body(request, validate_category)
    category = await catalog.create_category(db, logger, payload)
    return success_response(CategoryOut.model_validate(category), "Category created successfully", status_code=201)
