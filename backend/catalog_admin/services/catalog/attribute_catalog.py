from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_admin.core.logging import get_logger
from catalog_admin.models.attribute import Attribute
from catalog_admin.services.catalog.attribute_cache import AttributeLookupCache
from catalog_admin.services.catalog.contracts import AttributeRecord, AttributeValueRecord
from catalog_admin.utils.ids import filter_object_ids

logger = get_logger(__name__)


class SqlAttributeCatalog:
    """Attribute lookups against the ``attributes`` table."""

    def __init__(self, db: AsyncSession, *, cache: Optional[AttributeLookupCache] = None):
        self.db = db
        self.cache = cache

    @staticmethod
    def _value_record(raw: Mapping[str, Any]) -> AttributeValueRecord:
        meta = raw.get("meta")
        return AttributeValueRecord(
            id=str(raw.get("id")),
            label=raw.get("label"),
            value=raw.get("value"),
            meta=meta if isinstance(meta, dict) else None,
        )

    @classmethod
    def to_record(cls, row: Attribute) -> AttributeRecord:
        return AttributeRecord(
            id=str(row.id),
            name=row.name,
            code=row.code,
            type=row.type,
            is_active=bool(row.is_active),
            values=tuple(cls._value_record(v) for v in (row.values or []) if isinstance(v, dict)),
        )

    async def _fetch(self, ids: Sequence[str]) -> List[AttributeRecord]:
        if not ids:
            return []
        stmt = select(Attribute).where(Attribute.id.in_(list(ids)))
        result = await self.db.execute(stmt)
        return [self.to_record(row) for row in result.scalars().all()]

    async def find_by_ids(self, ids: Sequence[str]) -> List[AttributeRecord]:
        cleaned = filter_object_ids(ids)
        if not cleaned:
            return []
        if self.cache is None:
            return await self._fetch(cleaned)

        cached, missing = self.cache.get_many(cleaned)
        fetched = await self._fetch(missing)
        self.cache.set_many(fetched)
        by_id: Dict[str, AttributeRecord] = dict(cached)
        by_id.update({record.id: record for record in fetched})
        logger.debug(
            "attribute lookup: %d cached, %d fetched, %d unknown",
            len(cached),
            len(fetched),
            len(cleaned) - len(by_id),
        )
        return [by_id[attr_id] for attr_id in cleaned if attr_id in by_id]
