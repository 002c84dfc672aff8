# storefront/db/models/products.py
from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from storefront.db.base import Base
from storefront.db.models.brands import Brand
from storefront.db.models.categories import Category


class Product(Base):
    """A sellable catalog item.

    Slug and SKU are unique at the database level; the admin routes check
    them up front for a friendlier error, but the constraints are what
    actually guarantee uniqueness under concurrent writes.
    """

    __tablename__ = "products"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=False)
    short_description = Column(String(500), nullable=False)

    price = Column(Numeric(10, 2), nullable=False)
    original_price = Column(Numeric(10, 2), nullable=True)
    stock_quantity = Column(Integer, nullable=False, default=0)
    sku = Column(String(100), nullable=False, unique=True)

    images = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=list)
    specifications = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=dict)
    warranty_info = Column(Text, nullable=True)
    meta_title = Column(String(255), nullable=True)
    meta_description = Column(Text, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    is_featured = Column(Boolean, nullable=False, default=False)

    category_id = Column(UUID(as_uuid=True), ForeignKey("categories.id"), nullable=False)
    brand_id = Column(UUID(as_uuid=True), ForeignKey("brands.id"), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    category = relationship(Category, back_populates="products")
    brand = relationship(Brand, back_populates="products")

    __table_args__ = (
        Index("ix_products_category_active", "category_id", "is_active"),
        Index("ix_products_brand_id", "brand_id"),
    )
