from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from catalog_admin.services.catalog.filters import Predicate

ProductDocument = Dict[str, Any]
SortSpec = Tuple[str, int]  # (field, 1 | -1)


class DocumentNotFoundError(LookupError):
    """Raised by a product store when a save targets a document that no longer exists."""


class DuplicateKeyError(Exception):
    """Raised by a product store when a unique field (e.g. slug) collides."""

    def __init__(self, message: str = "duplicate key", *, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


@dataclass(frozen=True)
class AttributeValueRecord:
    id: str
    label: Optional[str] = None
    value: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class AttributeRecord:
    id: str
    name: Optional[str] = None
    code: Optional[str] = None
    type: Optional[str] = None
    is_active: Optional[bool] = None
    values: Tuple[AttributeValueRecord, ...] = field(default_factory=tuple)

    def value_ids(self) -> set[str]:
        return {v.id for v in self.values}


class AttributeCatalog(Protocol):
    async def find_by_ids(self, ids: Sequence[str]) -> List[AttributeRecord]:
        """Return the attributes matching ``ids``; unknown ids are simply absent."""
        ...


class ProductStore(Protocol):
    async def count(self, predicate: Optional[Predicate]) -> int:
        ...

    async def query_page(
        self,
        predicate: Optional[Predicate],
        *,
        sort: SortSpec,
        skip: int,
        limit: int,
    ) -> List[ProductDocument]:
        ...

    async def create(self, doc: ProductDocument) -> ProductDocument:
        ...

    async def find_by_id(self, product_id: str) -> Optional[ProductDocument]:
        ...

    async def save(self, doc: ProductDocument) -> ProductDocument:
        ...

    async def delete_many(self, ids: Sequence[str]) -> int:
        ...
