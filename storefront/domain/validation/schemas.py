# storefront/domain/validation/schemas.py
from decimal import Decimal
from typing import Annotated, Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import AfterValidator, AnyUrl, BaseModel, EmailStr, Field, StringConstraints, TypeAdapter
from pydantic import ValidationError as PydanticValidationError


MAX_AMOUNT = 999999.99

_url_adapter = TypeAdapter(AnyUrl)


def _two_decimal_places(value: float) -> float:
    # 19.99 * 100 is not integral in binary floating point, so check the decimal repr
    if Decimal(str(value)) % Decimal("0.01") != 0:
        raise ValueError("Value must have at most 2 decimal places")
    return value


def _url(value: str) -> str:
    try:
        _url_adapter.validate_python(value)
    except PydanticValidationError:
        raise ValueError("Invalid URL") from None
    return value


def _max_255(value: str) -> str:
    if len(value) > 255:
        raise ValueError("Email must be less than 255 characters")
    return value


def trimmed(min_length: int = 0, max_length: Optional[int] = None, pattern: Optional[str] = None):
    return Annotated[str, StringConstraints(
        strip_whitespace=True,
        min_length=min_length,
        max_length=max_length,
        pattern=pattern,
    )]


Name = trimmed(1, 255)
Slug = trimmed(1, 255, r"^[a-z0-9-]+$")
Sku = trimmed(1, 100, r"^[A-Z0-9_-]+$")
Url = Annotated[str, AfterValidator(_url)]
Email = Annotated[EmailStr, AfterValidator(_max_255)]
Money = Annotated[float, Field(gt=0, le=MAX_AMOUNT), AfterValidator(_two_decimal_places)]
Phone = trimmed(0, 50, r"^\+?[\d\s\-\(\)]+$")

OrderStatus = Literal["pending", "processing", "shipped", "delivered", "cancelled"]
PaymentStatus = Literal["pending", "paid", "failed", "refunded"]


class ProductCreate(BaseModel):
    name: Name
    slug: Slug
    description: trimmed(10, 5000)
    short_description: trimmed(10, 500)
    price: Money
    original_price: Optional[Money] = None
    stock_quantity: int = Field(..., ge=0, le=999999)
    sku: Sku
    images: List[Url] = Field(..., min_length=1, max_length=10)
    specifications: Dict[str, Any] = Field(default_factory=dict)
    warranty_info: Optional[trimmed(0, 1000)] = None
    is_active: bool = True
    is_featured: bool = False
    category_id: UUID
    brand_id: UUID


class CategoryCreate(BaseModel):
    name: Name
    slug: Slug
    description: Optional[trimmed(0, 1000)] = None
    image_url: Optional[Url] = None
    is_active: bool = True


class BrandCreate(BaseModel):
    name: Name
    slug: Slug
    logo_url: Optional[Url] = None
    is_active: bool = True


class Address(BaseModel):
    street: trimmed(1, 255)
    city: trimmed(1, 100)
    state: trimmed(1, 100)
    zip: trimmed(1, 20)
    country: trimmed(1, 100)


class OrderCreate(BaseModel):
    customer_name: Name
    customer_email: Email
    customer_phone: Optional[Phone] = None
    shipping_address: Address
    billing_address: Address
    total_amount: Money
    status: OrderStatus = "pending"
    payment_status: PaymentStatus = "pending"
    payment_method: Optional[str] = Field(None, max_length=100)
    notes: Optional[trimmed(0, 1000)] = None


class OrderItemCreate(BaseModel):
    order_id: UUID
    product_id: UUID
    quantity: int = Field(..., gt=0, le=999)
    unit_price: Money
    total_price: Money


class ReviewCreate(BaseModel):
    product_id: UUID
    name: Name
    email: Email
    rating: int = Field(..., ge=1, le=5)
    comment: trimmed(10, 2000)
    is_approved: bool = False


class AdminLogin(BaseModel):
    email: Email
    password: str = Field(..., min_length=8, max_length=128)


class ProductSearch(BaseModel):
    search: Optional[trimmed(0, 255)] = None
    category: Optional[trimmed(0, 255)] = None
    brand: Optional[trimmed(0, 255)] = None
    min_price: Optional[float] = Field(None, ge=0, le=MAX_AMOUNT)
    max_price: Optional[float] = Field(None, ge=0, le=MAX_AMOUNT)
    sort: Literal["name", "price", "created_at", "rating"] = "created_at"
    order: Literal["asc", "desc"] = "desc"
    limit: int = Field(20, ge=1, le=100)
    offset: int = Field(0, ge=0)
