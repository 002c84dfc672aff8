# storefront/domain/checkout/schemas.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from storefront.domain.cart.store import CartItem
from storefront.domain.validation.schemas import Address, OrderCreate


class CheckoutRequest(OrderCreate):
    items: List[CartItem] = Field(..., min_length=1)


class ConfirmationLine(BaseModel):
    id: str
    name: str
    quantity: int
    unit_price: float
    line_total: float


class CheckoutConfirmation(BaseModel):
    order_number: str
    placed_at: datetime
    customer_name: str
    customer_email: str
    payment_method: Optional[str]
    shipping_address: Address
    items: List[ConfirmationLine]
    item_count: int
    total_amount: float
    status: str
    payment_status: str
