from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from catalog_admin.core.logging import get_logger
from catalog_admin.services.catalog.contracts import AttributeCatalog, AttributeRecord
from catalog_admin.services.catalog.failures import ValidationFailure
from catalog_admin.utils.ids import new_object_id, normalize_object_id

logger = get_logger(__name__)


@dataclass(frozen=True)
class SingleValueRef:
    value_id: str

    def ids(self) -> List[str]:
        return [self.value_id]


@dataclass(frozen=True)
class MultiValueRef:
    value_ids: Tuple[str, ...]

    def ids(self) -> List[str]:
        return list(self.value_ids)


ValueRef = Union[SingleValueRef, MultiValueRef]
# (canonical attribute id, value reference) for one variant pair
PairRef = Tuple[str, ValueRef]


def parse_value_ref(raw: Any) -> Optional[ValueRef]:
    """Parse ``attributesValueId`` (one id or a non-empty list of ids); None if malformed.

    Ids come back in canonical lower-case form.
    """
    if isinstance(raw, str):
        value_id = normalize_object_id(raw)
        return SingleValueRef(value_id) if value_id else None
    if isinstance(raw, (list, tuple)):
        value_ids = [normalize_object_id(item) for item in raw]
        if not value_ids or None in value_ids:
            return None
        return MultiValueRef(tuple(value_ids))
    return None


def as_id_list(raw: Any) -> List[str]:
    """Coerce a stored value reference to a list of ids without validating them."""
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return [str(item) for item in raw]
    return [str(raw)]


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _non_negative(value: Any) -> bool:
    return is_number(value) and value >= 0


@dataclass(frozen=True)
class VariantValidationResult:
    variants: List[Dict[str, Any]] = field(default_factory=list)
    attribute_ids: List[str] = field(default_factory=list)
    failure: Optional[ValidationFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


def _fail(message: str, **kwargs: Any) -> VariantValidationResult:
    return VariantValidationResult(failure=ValidationFailure(message, **kwargs))


def _check_shape(variants: Sequence[Mapping[str, Any]]) -> Optional[ValidationFailure]:
    for idx, variant in enumerate(variants):
        if not isinstance(variant, Mapping):
            return ValidationFailure("Each variant must be an object", field="variants", index=idx)
        values = variant.get("values")
        if (
            not _non_negative(variant.get("price"))
            or not _non_negative(variant.get("stock"))
            or not isinstance(values, (list, tuple))
            or not values
        ):
            return ValidationFailure(
                "Each variant must include price, stock, and non-empty values[]",
                field="variants",
                index=idx,
            )
        sale_price = variant.get("sale_price")
        if sale_price is not None and not _non_negative(sale_price):
            return ValidationFailure(
                "salePrice must be a non-negative number if provided",
                field="salePrice",
                index=idx,
            )
    return None


def _check_pairs(variants: Sequence[Mapping[str, Any]]) -> Tuple[Optional[ValidationFailure], Dict[Tuple[int, int], PairRef]]:
    refs: Dict[Tuple[int, int], PairRef] = {}
    for v_idx, variant in enumerate(variants):
        for p_idx, pair in enumerate(variant["values"]):
            if not isinstance(pair, Mapping):
                return ValidationFailure("values[] entries must be objects", field="values", index=v_idx), refs
            attribute_id = pair.get("attribute_id")
            canonical_id = normalize_object_id(attribute_id)
            if canonical_id is None:
                return (
                    ValidationFailure(
                        f"Invalid attributeId '{attribute_id}' (expect 24-hex)",
                        field="attributeId",
                        index=v_idx,
                    ),
                    refs,
                )
            ref = parse_value_ref(pair.get("attributes_value_id"))
            if ref is None:
                return (
                    ValidationFailure(
                        "attributesValueId must be 24-hex (string or non-empty string[]) "
                        f"for attributeId {attribute_id}",
                        field="attributesValueId",
                        index=v_idx,
                    ),
                    refs,
                )
            refs[(v_idx, p_idx)] = (canonical_id, ref)
    return None, refs


def _check_pair_fields(variants: Sequence[Mapping[str, Any]]) -> Optional[ValidationFailure]:
    for v_idx, variant in enumerate(variants):
        for pair in variant["values"]:
            if not _non_negative(pair.get("stock")):
                return ValidationFailure(
                    "values[].stock must be a non-negative number",
                    field="values.stock",
                    index=v_idx,
                )
            image_url = pair.get("image_url")
            if image_url is not None and not isinstance(image_url, str):
                return ValidationFailure(
                    "values[].imageUrl must be a string if provided",
                    field="values.imageUrl",
                    index=v_idx,
                )
    return None


def distinct_attribute_ids(variants: Sequence[Mapping[str, Any]]) -> List[str]:
    ids: Dict[str, None] = {}
    for variant in variants:
        for pair in variant.get("values") or []:
            if not isinstance(pair, Mapping):
                continue
            attribute_id = pair.get("attribute_id")
            if attribute_id is not None:
                ids.setdefault(str(attribute_id), None)
    return list(ids)


def _normalize(
    variants: Sequence[Mapping[str, Any]],
    refs: Mapping[Tuple[int, int], PairRef],
) -> List[Dict[str, Any]]:
    normalized: List[Dict[str, Any]] = []
    for v_idx, variant in enumerate(variants):
        variant_id = variant.get("id")
        normalized.append(
            {
                "id": normalize_object_id(variant_id) or new_object_id(),
                "sku": variant.get("sku"),
                "price": variant["price"],
                "sale_price": variant.get("sale_price"),
                "stock": variant["stock"],
                "image_url": variant.get("image_url"),
                "barcode": variant.get("barcode"),
                "values": [
                    {
                        "attribute_id": refs[(v_idx, p_idx)][0],
                        "attributes_value_id": refs[(v_idx, p_idx)][1].ids(),
                        "stock": pair["stock"],
                        "image_url": pair.get("image_url"),
                    }
                    for p_idx, pair in enumerate(variant["values"])
                ],
            }
        )
    return normalized


async def validate_variants(
    variants: Any,
    catalog: AttributeCatalog,
) -> VariantValidationResult:
    """Validate candidate variants against the attribute catalog.

    Stages run in order and the first failing stage wins. Unknown attribute
    ids and unknown value ids are reported in full for their stage rather
    than one at a time. Only one catalog lookup is issued.
    """
    if not isinstance(variants, (list, tuple)) or not variants:
        return _fail("variants must be a non-empty array", field="variants")

    failure = _check_shape(variants)
    if failure:
        return VariantValidationResult(failure=failure)

    failure, refs = _check_pairs(variants)
    if failure:
        return VariantValidationResult(failure=failure)

    failure = _check_pair_fields(variants)
    if failure:
        return VariantValidationResult(failure=failure)

    attribute_ids = list(dict.fromkeys(attr_id for attr_id, _ in refs.values()))
    attributes = await catalog.find_by_ids(attribute_ids)
    by_id: Dict[str, AttributeRecord] = {a.id: a for a in attributes}
    missing = [attr_id for attr_id in attribute_ids if attr_id not in by_id]
    if missing:
        logger.info("variant validation: unknown attribute ids %s", missing)
        return _fail("Unknown attributeId(s)", field="attributeId", details={"attributeIds": missing})

    bad_by_attr: Dict[str, Dict[str, None]] = {}
    for attr_id, ref in refs.values():
        allowed = by_id[attr_id].value_ids()
        for value_id in ref.ids():
            if value_id not in allowed:
                bad_by_attr.setdefault(attr_id, {}).setdefault(value_id, None)
    if bad_by_attr:
        violations = [
            {"attributeId": attr_id, "missingValueIds": list(value_ids)}
            for attr_id, value_ids in bad_by_attr.items()
        ]
        first = violations[0]
        return _fail(
            "attributesValueId contains value(s) not defined on attribute",
            field="attributesValueId",
            details={
                "attributeId": first["attributeId"],
                "missingValueIds": first["missingValueIds"],
                "violations": violations,
            },
        )

    return VariantValidationResult(
        variants=_normalize(variants, refs),
        attribute_ids=attribute_ids,
    )
