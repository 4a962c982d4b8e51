from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence

from catalog_admin.services.catalog.failures import ValidationFailure
from catalog_admin.services.catalog.variant_validator import distinct_attribute_ids
from catalog_admin.utils.ids import is_object_id, normalize_object_id


@dataclass(frozen=True)
class MainAttributeResult:
    main_attribute_id: Optional[str] = None
    failure: Optional[ValidationFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


def _fail(message: str, **kwargs: Any) -> MainAttributeResult:
    return MainAttributeResult(failure=ValidationFailure(message, field="mainAttributeId", **kwargs))


def first_variant_missing(variants: Sequence[Mapping[str, Any]], attribute_id: str) -> Optional[int]:
    for idx, variant in enumerate(variants):
        if not any(pair.get("attribute_id") == attribute_id for pair in variant.get("values") or []):
            return idx
    return None


def resolve_main_attribute(
    variants: Sequence[Mapping[str, Any]],
    requested: Optional[str] = None,
) -> MainAttributeResult:
    """Pick the attribute every variant varies along.

    One distinct attribute across all variants is taken as the main attribute
    regardless of ``requested`` (which must still be well-formed when given).
    With several, ``requested`` is mandatory and must be one of them. Either
    way every variant has to carry a pair for the chosen attribute.
    """
    attribute_ids = distinct_attribute_ids(variants)
    if not attribute_ids:
        return _fail("Variant product requires at least one attribute")

    if requested is not None and requested != "":
        if not is_object_id(requested):
            return _fail("mainAttributeId must be 24-hex")
        requested = normalize_object_id(requested)

    if len(attribute_ids) == 1:
        main_attribute_id = attribute_ids[0]
    else:
        if not requested:
            return _fail(
                "Multiple attributes detected across variants. Provide 'mainAttributeId' explicitly.",
                details={"attributeIds": attribute_ids},
            )
        if requested not in attribute_ids:
            return _fail("mainAttributeId must be used in every variant.values")
        main_attribute_id = requested

    missing_idx = first_variant_missing(variants, main_attribute_id)
    if missing_idx is not None:
        return _fail(
            f"Variant at index {missing_idx} does not include a pair for mainAttributeId {main_attribute_id}",
            index=missing_idx,
        )
    return MainAttributeResult(main_attribute_id=main_attribute_id)
