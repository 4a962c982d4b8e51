from __future__ import annotations

import pytest

from catalog_admin.utils.ids import filter_object_ids, is_object_id, new_object_id, normalize_object_id
from catalog_admin.utils.pagination import clamp_limit, compute_total_pages, page_offset


@pytest.mark.parametrize(
    "total, size, expected",
    [(0, 12, 0), (1, 12, 1), (12, 12, 1), (13, 12, 2), (5, 0, 5)],
)
def test_compute_total_pages(total, size, expected) -> None:
    assert compute_total_pages(total, size) == expected


def test_clamp_limit() -> None:
    assert clamp_limit(None, default=12, maximum=100) == 12
    assert clamp_limit(500, default=12, maximum=100) == 100
    assert clamp_limit(0, default=12, maximum=100) == 1


def test_page_offset() -> None:
    assert page_offset(None, 12) == (1, 0)
    assert page_offset(-3, 12) == (1, 0)
    assert page_offset(3, 12) == (3, 24)


def test_object_ids() -> None:
    generated = new_object_id()

    assert is_object_id(generated)
    assert not is_object_id("xyz")
    assert not is_object_id(123)
    assert filter_object_ids([generated, "bad", generated, None]) == [generated]


@pytest.mark.parametrize(
    "value",
    ["0123456789abcdef01234567\n", " 0123456789abcdef01234567", "0123456789abcdef012345678", "0123456789abcdef0123456g"],
)
def test_object_id_must_match_whole_string(value) -> None:
    assert not is_object_id(value)
    assert normalize_object_id(value) is None


def test_object_ids_are_canonicalized_to_lower_case() -> None:
    upper = "0123456789ABCDEF01234567"

    assert is_object_id(upper)
    assert normalize_object_id(upper) == "0123456789abcdef01234567"
    assert filter_object_ids([upper, upper.lower(), "0123456789abcdef01234567\n"]) == ["0123456789abcdef01234567"]
