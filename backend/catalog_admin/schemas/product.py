from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict, Any
from datetime import datetime


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


# Request schemas. Numeric and id fields stay loosely typed on purpose:
# the variant validator owns those checks and reports them field by field.

class VariantValueIn(CamelModel):
    attribute_id: Any = None
    attributes_value_id: Any = None
    stock: Any = None
    image_url: Any = None

class VariantIn(CamelModel):
    id: Any = None
    sku: Optional[str] = None
    price: Any = None
    sale_price: Any = None
    stock: Any = None
    image_url: Optional[str] = None
    barcode: Optional[str] = None
    values: Optional[List[VariantValueIn]] = None

class ProductCreate(CamelModel):
    title: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    brand: Optional[str] = None
    category: Any = None
    main_attribute_id: Optional[str] = None
    image_url: Optional[str] = None
    price: Any = None
    sale_price: Any = None
    offer_start: Optional[datetime] = None
    offer_end: Optional[datetime] = None
    currency: Optional[str] = None
    stock: Any = None
    variants: Optional[List[VariantIn]] = None
    is_active: Optional[bool] = None

class ProductUpdate(ProductCreate):
    """Sparse update: only fields present in the body are applied."""

    id: Any = None
    main_build: Any = None

class BulkDeleteRequest(CamelModel):
    ids: Any = None


# Response schemas

class VariantValueOut(CamelModel):
    attribute_id: str
    attributes_value_id: List[str]
    stock: float
    image_url: Optional[str] = None

class VariantOut(CamelModel):
    id: str
    sku: Optional[str] = None
    price: float
    sale_price: Optional[float] = None
    stock: float
    image_url: Optional[str] = None
    barcode: Optional[str] = None
    values: List[VariantValueOut] = []

class ProductOut(CamelModel):
    id: str
    title: str
    slug: str
    description: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    main_attribute_id: Optional[str] = None
    image_url: str
    price: Optional[float] = None
    sale_price: Optional[float] = None
    offer_start: Optional[datetime] = None
    offer_end: Optional[datetime] = None
    currency: str
    stock: Optional[float] = None
    total_stock: float
    variants: List[VariantOut] = []
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class ResolvedAttribute(CamelModel):
    id: Optional[str] = None
    name: Optional[str] = None
    code: Optional[str] = None
    type: Optional[str] = None
    is_active: Optional[bool] = None

class ResolvedAttributeValue(CamelModel):
    id: Optional[str] = None
    label: Optional[str] = None
    value: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None

class ResolvedPair(CamelModel):
    attribute: ResolvedAttribute
    values: List[ResolvedAttributeValue] = []
    stock: Optional[float] = None
    image_url: Optional[str] = None

class ResolvedVariant(CamelModel):
    id: Optional[str] = None
    sku: Optional[str] = None
    price: Optional[float] = None
    sale_price: Optional[float] = None
    stock: Optional[float] = None
    image_url: Optional[str] = None
    barcode: Optional[str] = None
    effective_price: Optional[float] = None
    discount_percent: int = 0
    attributes_resolved: List[ResolvedPair] = []

class ProductResolved(ProductOut):
    """Admin read model: variants carry resolved attribute/value records."""

    has_variants: bool = False
    effective_price: Optional[float] = None
    discount_percent: int = 0
    variants: List[ResolvedVariant] = []

class ProductListItem(CamelModel):
    id: str
    title: str
    slug: str
    brand: Optional[str] = None
    image_url: Optional[str] = None
    currency: Optional[str] = None
    category: Optional[str] = None
    is_active: bool = True
    total_stock: float = 0
    main_attribute_id: Optional[str] = None
    has_variants: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class ProductListResponse(CamelModel):
    items: List[ProductListItem]
    page: int
    limit: int
    total: int
    pages: int

class BulkDeleteResponse(CamelModel):
    requested: List[str]
    deleted_count: int
