from __future__ import annotations

from catalog_admin.services.catalog.main_attribute import resolve_main_attribute
from catalog_fakes import COLOR_ATTR, COLOR_BLACK, SIZE_ATTR, SIZE_M, SIZE_S, UNKNOWN_ID


def _variant(*pairs):
    return {
        "price": 1,
        "stock": 1,
        "values": [{"attribute_id": a, "attributes_value_id": [v], "stock": 1} for a, v in pairs],
    }


def test_single_attribute_is_inferred() -> None:
    variants = [_variant((SIZE_ATTR, SIZE_S)), _variant((SIZE_ATTR, SIZE_M))]

    result = resolve_main_attribute(variants)

    assert result.ok
    assert result.main_attribute_id == SIZE_ATTR


def test_single_attribute_ignores_well_formed_request() -> None:
    result = resolve_main_attribute([_variant((SIZE_ATTR, SIZE_S))], COLOR_ATTR)

    assert result.main_attribute_id == SIZE_ATTR


def test_malformed_request_is_rejected() -> None:
    result = resolve_main_attribute([_variant((SIZE_ATTR, SIZE_S))], "main")

    assert result.failure.field == "mainAttributeId"
    assert "24-hex" in result.failure.message


def test_multiple_attributes_require_explicit_choice() -> None:
    variants = [_variant((SIZE_ATTR, SIZE_S), (COLOR_ATTR, COLOR_BLACK))]

    result = resolve_main_attribute(variants)

    assert result.failure.field == "mainAttributeId"
    assert result.failure.details == {"attributeIds": [SIZE_ATTR, COLOR_ATTR]}


def test_multiple_attributes_with_valid_choice() -> None:
    variants = [
        _variant((SIZE_ATTR, SIZE_S), (COLOR_ATTR, COLOR_BLACK)),
        _variant((SIZE_ATTR, SIZE_M), (COLOR_ATTR, COLOR_BLACK)),
    ]

    result = resolve_main_attribute(variants, COLOR_ATTR)

    assert result.main_attribute_id == COLOR_ATTR


def test_choice_must_be_used_by_variants() -> None:
    variants = [_variant((SIZE_ATTR, SIZE_S), (COLOR_ATTR, COLOR_BLACK))]

    result = resolve_main_attribute(variants, UNKNOWN_ID)

    assert not result.ok
    assert "every variant" in result.failure.message


def test_variant_without_main_pair_is_reported_by_index() -> None:
    variants = [
        _variant((SIZE_ATTR, SIZE_S), (COLOR_ATTR, COLOR_BLACK)),
        _variant((COLOR_ATTR, COLOR_BLACK)),
    ]

    result = resolve_main_attribute(variants, SIZE_ATTR)

    assert result.failure.index == 1
    assert SIZE_ATTR in result.failure.message


def test_no_attributes_is_a_failure() -> None:
    result = resolve_main_attribute([])

    assert not result.ok


def test_upper_case_choice_resolves_to_canonical_id() -> None:
    variants = [_variant((SIZE_ATTR, SIZE_S), (COLOR_ATTR, COLOR_BLACK))]

    result = resolve_main_attribute(variants, COLOR_ATTR.upper())

    assert result.ok
    assert result.main_attribute_id == COLOR_ATTR


def test_choice_with_trailing_newline_is_malformed() -> None:
    variants = [_variant((SIZE_ATTR, SIZE_S), (COLOR_ATTR, COLOR_BLACK))]

    result = resolve_main_attribute(variants, COLOR_ATTR + "\n")

    assert result.failure.field == "mainAttributeId"
    assert "24-hex" in result.failure.message
