# storefront/domain/catalog/schemas.py
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel


class CategorySummary(BaseModel):
    id: UUID
    name: str
    slug: str

    class Config:
        from_attributes = True


class BrandSummary(BaseModel):
    id: UUID
    name: str
    slug: str

    class Config:
        from_attributes = True


class CategoryOut(BaseModel):
    id: UUID
    name: str
    slug: str
    description: Optional[str]
    image_url: Optional[str]
    is_active: bool
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class BrandOut(BaseModel):
    id: UUID
    name: str
    slug: str
    logo_url: Optional[str]
    is_active: bool
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class ProductOut(BaseModel):
    id: UUID
    name: str
    slug: str
    description: str
    short_description: str
    price: float
    original_price: Optional[float]
    stock_quantity: int
    sku: str
    images: List[str]
    specifications: Dict[str, Any]
    warranty_info: Optional[str]
    meta_title: Optional[str]
    meta_description: Optional[str]
    is_active: bool
    is_featured: bool
    category_id: UUID
    brand_id: UUID
    category: Optional[CategorySummary]
    brand: Optional[BrandSummary]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class DeletedProduct(BaseModel):
    id: UUID
    name: str
