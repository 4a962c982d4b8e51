from __future__ import annotations

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from catalog_admin.core.config import settings
from catalog_admin.services.catalog.contracts import AttributeRecord


@dataclass(frozen=True)
class AttributeCacheEntry:
    record: AttributeRecord
    expires_at: float


class AttributeLookupCache:
    """Bounded LRU of attribute records keyed by attribute id."""

    def __init__(self, *, maxsize: int, ttl_seconds: float):
        self.maxsize = max(0, int(maxsize))
        self.ttl_seconds = max(0.0, float(ttl_seconds))
        self._items: OrderedDict[str, AttributeCacheEntry] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get_many(self, ids: Sequence[str]) -> Tuple[Dict[str, AttributeRecord], List[str]]:
        """Split ``ids`` into cached records and ids that still need a lookup."""
        found: Dict[str, AttributeRecord] = {}
        missing: List[str] = []
        now = time.time()
        with self._lock:
            for attr_id in ids:
                entry = self._items.get(attr_id) if self.maxsize > 0 else None
                if entry is None or (entry.expires_at and entry.expires_at < now):
                    if entry is not None:
                        self._items.pop(attr_id, None)
                    self.misses += 1
                    missing.append(attr_id)
                    continue
                self._items.move_to_end(attr_id)
                self.hits += 1
                found[attr_id] = entry.record
        return found, missing

    def set_many(self, records: Iterable[AttributeRecord]) -> None:
        if self.maxsize <= 0:
            return
        expires_at = 0.0
        if self.ttl_seconds > 0:
            expires_at = time.time() + self.ttl_seconds
        with self._lock:
            for record in records:
                self._items[record.id] = AttributeCacheEntry(record=record, expires_at=expires_at)
                self._items.move_to_end(record.id)
            while len(self._items) > self.maxsize:
                self._items.popitem(last=False)

    def invalidate(self, ids: Optional[Iterable[str]] = None) -> None:
        with self._lock:
            if ids is None:
                self._items.clear()
                return
            for attr_id in ids:
                self._items.pop(attr_id, None)

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            size = len(self._items)
            hits, misses = self.hits, self.misses
        total = hits + misses
        return {
            "size": size,
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / total, 4) if total > 0 else 0.0,
        }


attribute_lookup_cache = AttributeLookupCache(
    maxsize=int(getattr(settings, "ATTRIBUTE_CACHE_MAX_ITEMS", 512)),
    ttl_seconds=float(getattr(settings, "ATTRIBUTE_CACHE_TTL_SECONDS", 60)),
)
