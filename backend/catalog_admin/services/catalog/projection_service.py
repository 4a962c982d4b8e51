from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from catalog_admin.services.catalog.aggregates import product_pricing, variant_pricing
from catalog_admin.services.catalog.contracts import AttributeCatalog, AttributeRecord
from catalog_admin.services.catalog.variant_validator import as_id_list, distinct_attribute_ids

PRODUCT_FIELDS = (
    "id",
    "title",
    "slug",
    "description",
    "brand",
    "category",
    "main_attribute_id",
    "image_url",
    "price",
    "sale_price",
    "offer_start",
    "offer_end",
    "currency",
    "stock",
    "total_stock",
    "is_active",
    "created_at",
    "updated_at",
)

LookupMaps = Tuple[Dict[str, Dict[str, Any]], Dict[str, Dict[str, Dict[str, Any]]]]


class ProductProjectionService:
    """Expands stored attribute/value id references into full records for reads."""

    @staticmethod
    def _attribute_placeholder(attribute_id: Any) -> Dict[str, Any]:
        return {"id": attribute_id, "name": None, "code": None, "type": None, "is_active": None}

    @staticmethod
    def _value_placeholder(value_id: Any) -> Dict[str, Any]:
        return {"id": value_id, "label": None, "value": None, "meta": None}

    @staticmethod
    def _build_lookup_maps(attributes: Sequence[AttributeRecord]) -> LookupMaps:
        attr_by_id: Dict[str, Dict[str, Any]] = {}
        values_by_attr: Dict[str, Dict[str, Dict[str, Any]]] = {}
        for attr in attributes:
            attr_by_id[attr.id] = {
                "id": attr.id,
                "name": attr.name,
                "code": attr.code,
                "type": attr.type,
                "is_active": attr.is_active,
            }
            values_by_attr[attr.id] = {
                value.id: {
                    "id": value.id,
                    "label": value.label,
                    "value": value.value,
                    "meta": value.meta,
                }
                for value in attr.values
            }
        return attr_by_id, values_by_attr

    @classmethod
    def _resolve_pair(cls, pair: Mapping[str, Any], maps: LookupMaps) -> Dict[str, Any]:
        attr_by_id, values_by_attr = maps
        attribute_id = pair.get("attribute_id")
        attribute = attr_by_id.get(attribute_id) or cls._attribute_placeholder(attribute_id)
        value_map = values_by_attr.get(attribute_id, {})
        values = [
            value_map.get(value_id) or cls._value_placeholder(value_id)
            for value_id in as_id_list(pair.get("attributes_value_id"))
        ]
        return {
            "attribute": dict(attribute),
            "values": [dict(v) for v in values],
            "stock": pair.get("stock"),
            "image_url": pair.get("image_url"),
        }

    @classmethod
    def _resolve_variant(cls, variant: Mapping[str, Any], maps: LookupMaps) -> Dict[str, Any]:
        pairs = variant.get("values") or []
        return {
            "id": variant.get("id"),
            "sku": variant.get("sku"),
            "price": variant.get("price"),
            "sale_price": variant.get("sale_price"),
            "stock": variant.get("stock"),
            "image_url": variant.get("image_url"),
            "barcode": variant.get("barcode"),
            **variant_pricing(variant),
            "attributes_resolved": [cls._resolve_pair(pair, maps) for pair in pairs if isinstance(pair, Mapping)],
        }

    @classmethod
    def build_projection(
        cls,
        *,
        product: Mapping[str, Any],
        attributes: Sequence[AttributeRecord],
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        maps = cls._build_lookup_maps(attributes)
        variants = [v for v in product.get("variants") or [] if isinstance(v, Mapping)]
        flat = {name: product.get(name) for name in PRODUCT_FIELDS}
        return {
            **flat,
            "has_variants": bool(variants),
            **product_pricing(product, now),
            "variants": [cls._resolve_variant(v, maps) for v in variants],
        }

    async def resolve(
        self,
        product: Mapping[str, Any],
        catalog: AttributeCatalog,
        *,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        variants = [v for v in product.get("variants") or [] if isinstance(v, Mapping)]
        attribute_ids = distinct_attribute_ids(variants)
        attributes: List[AttributeRecord] = await catalog.find_by_ids(attribute_ids) if attribute_ids else []
        return self.build_projection(product=product, attributes=attributes, now=now)


product_projection_service = ProductProjectionService()
