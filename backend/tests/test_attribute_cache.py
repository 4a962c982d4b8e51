from __future__ import annotations

import pytest

from catalog_admin.models.attribute import Attribute
from catalog_admin.services.catalog import attribute_cache as cache_module
from catalog_admin.services.catalog.attribute_cache import AttributeLookupCache
from catalog_admin.services.catalog.attribute_catalog import SqlAttributeCatalog
from catalog_fakes import COLOR_ATTR, SIZE_ATTR, SIZE_S, UNKNOWN_ID, color_attribute, size_attribute


def test_get_many_splits_hits_and_misses() -> None:
    cache = AttributeLookupCache(maxsize=4, ttl_seconds=60)
    cache.set_many([size_attribute()])

    found, missing = cache.get_many([SIZE_ATTR, COLOR_ATTR])

    assert list(found) == [SIZE_ATTR]
    assert missing == [COLOR_ATTR]
    assert cache.stats() == {"size": 1, "hits": 1, "misses": 1, "hit_rate": 0.5}


def test_empty_cache_stats() -> None:
    cache = AttributeLookupCache(maxsize=4, ttl_seconds=60)

    assert cache.stats() == {"size": 0, "hits": 0, "misses": 0, "hit_rate": 0.0}


def test_entries_expire_after_ttl(monkeypatch) -> None:
    clock = {"now": 1000.0}
    monkeypatch.setattr(cache_module.time, "time", lambda: clock["now"])
    cache = AttributeLookupCache(maxsize=4, ttl_seconds=10)
    cache.set_many([size_attribute()])

    clock["now"] += 11
    found, missing = cache.get_many([SIZE_ATTR])

    assert found == {}
    assert missing == [SIZE_ATTR]
    assert cache.stats()["size"] == 0


def test_least_recently_used_entry_is_evicted() -> None:
    cache = AttributeLookupCache(maxsize=1, ttl_seconds=0)
    cache.set_many([size_attribute()])
    cache.set_many([color_attribute()])

    found, missing = cache.get_many([SIZE_ATTR, COLOR_ATTR])

    assert list(found) == [COLOR_ATTR]
    assert missing == [SIZE_ATTR]


def test_invalidate() -> None:
    cache = AttributeLookupCache(maxsize=4, ttl_seconds=60)
    cache.set_many([size_attribute(), color_attribute()])

    cache.invalidate([SIZE_ATTR])
    assert cache.get_many([SIZE_ATTR])[1] == [SIZE_ATTR]

    cache.invalidate()
    assert cache.stats()["size"] == 0


def test_zero_size_cache_stores_nothing() -> None:
    cache = AttributeLookupCache(maxsize=0, ttl_seconds=60)
    cache.set_many([size_attribute()])

    assert cache.get_many([SIZE_ATTR]) == ({}, [SIZE_ATTR])


def test_to_record_reads_jsonb_values() -> None:
    row = Attribute(
        id=SIZE_ATTR,
        name="Size",
        code="size",
        type="size",
        is_active=True,
        values=[{"id": SIZE_S, "label": "S", "value": "s", "meta": {"order": 1}}, "junk"],
    )

    record = SqlAttributeCatalog.to_record(row)

    assert record.value_ids() == {SIZE_S}
    assert record.values[0].meta == {"order": 1}


class _CountingCatalog(SqlAttributeCatalog):
    def __init__(self, cache):
        super().__init__(db=None, cache=cache)
        self.fetched = []

    async def _fetch(self, ids):
        self.fetched.append(list(ids))
        known = {SIZE_ATTR: size_attribute(), COLOR_ATTR: color_attribute()}
        return [known[i] for i in ids if i in known]


@pytest.mark.asyncio
async def test_catalog_only_fetches_uncached_ids() -> None:
    cache = AttributeLookupCache(maxsize=8, ttl_seconds=60)
    catalog = _CountingCatalog(cache)

    first = await catalog.find_by_ids([SIZE_ATTR, "bad", UNKNOWN_ID])
    second = await catalog.find_by_ids([COLOR_ATTR, SIZE_ATTR])

    assert [r.id for r in first] == [SIZE_ATTR]
    assert [r.id for r in second] == [COLOR_ATTR, SIZE_ATTR]
    assert catalog.fetched == [[SIZE_ATTR, UNKNOWN_ID], [COLOR_ATTR]]


@pytest.mark.asyncio
async def test_catalog_skips_lookup_for_no_valid_ids() -> None:
    catalog = _CountingCatalog(cache=None)

    assert await catalog.find_by_ids(["bad", None]) == []
    assert catalog.fetched == []
