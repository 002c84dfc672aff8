# storefront/domain/validation/validators.py
from dataclasses import dataclass, field
from typing import Any, Generic, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .schemas import (
    AdminLogin,
    BrandCreate,
    CategoryCreate,
    OrderCreate,
    OrderItemCreate,
    ProductCreate,
    ProductSearch,
    ReviewCreate,
)


M = TypeVar("M", bound=BaseModel)


@dataclass
class ValidationResult(Generic[M]):
    success: bool
    data: Optional[M] = None
    issues: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def error(self) -> Optional[str]:
        if self.success:
            return None
        if not self.issues:
            return "Invalid request data"
        return ", ".join(f"{path}: {message}" if path else message for path, message in self.issues)


def _issue(err: dict) -> Tuple[str, str]:
    path = ".".join(str(part) for part in err["loc"])
    if err["type"] == "value_error" and "error" in err.get("ctx", {}):
        return path, str(err["ctx"]["error"])
    return path, err["msg"]


def safe_parse(model: Type[M], data: Any) -> ValidationResult[M]:
    try:
        return ValidationResult(success=True, data=model.model_validate(data))
    except PydanticValidationError as exc:
        return ValidationResult(success=False, issues=[_issue(err) for err in exc.errors()])


def validate_product(data: Any) -> ValidationResult[ProductCreate]:
    return safe_parse(ProductCreate, data)


def validate_category(data: Any) -> ValidationResult[CategoryCreate]:
    return safe_parse(CategoryCreate, data)


def validate_brand(data: Any) -> ValidationResult[BrandCreate]:
    return safe_parse(BrandCreate, data)


def validate_order(data: Any) -> ValidationResult[OrderCreate]:
    return safe_parse(OrderCreate, data)


def validate_order_item(data: Any) -> ValidationResult[OrderItemCreate]:
    return safe_parse(OrderItemCreate, data)


def validate_review(data: Any) -> ValidationResult[ReviewCreate]:
    return safe_parse(ReviewCreate, data)


def validate_admin_login(data: Any) -> ValidationResult[AdminLogin]:
    return safe_parse(AdminLogin, data)


def validate_product_search(data: Any) -> ValidationResult[ProductSearch]:
    return safe_parse(ProductSearch, data)
