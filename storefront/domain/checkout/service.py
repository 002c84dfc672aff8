# storefront/domain/checkout/service.py
import time
from datetime import datetime, timezone
from typing import Any

from storefront.core.logger import AppLogger
from storefront.domain.cart.store import Cart
from storefront.domain.validation.sanitizers import sanitize_html
from storefront.domain.validation.validators import safe_parse
from .schemas import CheckoutConfirmation, CheckoutRequest, ConfirmationLine


def validate_checkout(data: Any):
    return safe_parse(CheckoutRequest, data)


def generate_order_number() -> str:
    return f"MD{str(int(time.time() * 1000))[-6:]}"


def confirm_checkout(logger: AppLogger, data: CheckoutRequest) -> CheckoutConfirmation:
    cart = Cart(items=data.items)

    lines = [
        ConfirmationLine(
            id=item.id,
            name=sanitize_html(item.name),
            quantity=item.quantity,
            unit_price=item.price,
            line_total=round(item.price * item.quantity, 2),
        )
        for item in cart.items
    ]

    confirmation = CheckoutConfirmation(
        order_number=generate_order_number(),
        placed_at=datetime.now(timezone.utc),
        customer_name=sanitize_html(data.customer_name),
        customer_email=data.customer_email,
        payment_method=sanitize_html(data.payment_method) if data.payment_method else None,
        shipping_address=data.shipping_address.model_copy(update={
            field: sanitize_html(value) for field, value in data.shipping_address.model_dump().items()
        }),
        items=lines,
        item_count=cart.total_items(),
        total_amount=data.total_amount,
        status=data.status,
        payment_status=data.payment_status,
    )
    logger.info("Checkout confirmed", {
        "order_number": confirmation.order_number,
        "item_count": confirmation.item_count,
        "total_amount": confirmation.total_amount,
    })
    return confirmation
