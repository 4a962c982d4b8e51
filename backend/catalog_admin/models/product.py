from sqlalchemy import Column, String, Float, Boolean, DateTime, Index, Text
from sqlalchemy.dialects.postgresql import JSONB
from datetime import datetime, timezone

from catalog_admin.db.base import Base
from catalog_admin.core.config import settings
from catalog_admin.utils.ids import new_object_id


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Product(Base):
    __tablename__ = "products"

    id = Column(String(24), primary_key=True, default=new_object_id)
    title = Column(String, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)
    brand = Column(String, nullable=True, index=True)
    category = Column(String(24), nullable=True, index=True)
    main_attribute_id = Column(String(24), nullable=True)
    image_url = Column(String, nullable=False)

    # Simple-product pricing; variant products price per variant
    price = Column(Float, nullable=True, index=True)
    sale_price = Column(Float, nullable=True)
    offer_start = Column(DateTime(timezone=True), nullable=True)
    offer_end = Column(DateTime(timezone=True), nullable=True)
    currency = Column(String(8), default=lambda: (settings.DEFAULT_CURRENCY or "USD").upper(), nullable=False)

    stock = Column(Float, nullable=True)
    total_stock = Column(Float, default=0, nullable=False, index=True)

    # Embedded variant documents: [{id, sku, price, sale_price, stock, image_url, barcode, values: [...]}]
    variants = Column(JSONB, default=list, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index("ix_products_created_at", created_at.desc()),
    )
