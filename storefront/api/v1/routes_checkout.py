# storefront/api/v1/routes_checkout.py
from fastapi import APIRouter, Depends, Request

from storefront.core.logger import AppLogger
from storefront.core.pipeline import WRITE, RequestGuard, get_logger, parse_json_body, success_response
from storefront.domain.checkout.service import confirm_checkout, validate_checkout


router = APIRouter(prefix="/api/checkout", tags=["checkout"])


@router.post("/confirmation", dependencies=[Depends(RequestGuard(WRITE, ["POST"], access="public"))])
async def confirm_checkout_endpoint(
    request: Request,
    logger: AppLogger = Depends(get_logger),
):
    payload = await parse_json_body(request, validate_checkout)
    confirmation = confirm_checkout(logger, payload)
    return success_response(confirmation, "Order received", status_code=201)
