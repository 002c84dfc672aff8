# storefront/db/models/orders.py
from sqlalchemy import JSON, Column, DateTime, Numeric, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from storefront.db.base import Base


class Order(Base):
    """A customer order with its addresses and payment state.

    Addresses are stored as JSON snapshots so later edits to a customer's
    details do not rewrite past orders.
    """

    __tablename__ = "orders"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255), nullable=False, index=True)
    customer_phone = Column(String(50), nullable=True)

    shipping_address = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False)
    billing_address = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False)

    total_amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String, nullable=False, default="pending")
    payment_status = Column(String, nullable=False, default="pending")
    payment_method = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    items = relationship("OrderItem", back_populates="order")
