from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import sqlalchemy as sa
from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import JSONPATH
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_admin.core.logging import get_logger
from catalog_admin.models.product import Product
from catalog_admin.services.catalog.contracts import (
    DocumentNotFoundError,
    DuplicateKeyError,
    ProductDocument,
    SortSpec,
)
from catalog_admin.services.catalog.filters import (
    And,
    AnyElement,
    FieldPredicate,
    Not,
    Or,
    Predicate,
)

logger = get_logger(__name__)

DOCUMENT_COLUMNS = (
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
    "variants",
    "is_active",
    "created_at",
    "updated_at",
)

_JSONPATH_OPS = {"gt": ">", "gte": ">=", "lt": "<", "lte": "<="}
_ELEMENT_FIELDS = {"price", "sale_price", "stock"}
UNIQUE_VIOLATION = "23505"


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _column(path: str):
    if path not in DOCUMENT_COLUMNS:
        raise ValueError(f"Unknown product field: {path}")
    return getattr(Product, path)


def _compile_field(node: FieldPredicate):
    if node.op == "not_empty":
        length = func.jsonb_array_length(func.coalesce(_column(node.path), sa.text("'[]'::jsonb")))
        return length > 0 if node.value else length == 0

    column = _column(node.path)
    if node.op == "eq":
        return column == node.value
    if node.op == "ieq":
        return func.lower(column) == str(node.value).lower()
    if node.op == "icontains":
        return column.ilike(f"%{_escape_like(str(node.value))}%", escape="\\")
    if node.op == "gt":
        return column > node.value
    if node.op == "gte":
        return column >= node.value
    if node.op == "lt":
        return column < node.value
    return column <= node.value


def _compile_any_element(node: AnyElement):
    inner = node.predicate
    if not isinstance(inner, FieldPredicate) or inner.op not in _JSONPATH_OPS or inner.path not in _ELEMENT_FIELDS:
        raise ValueError("Element predicates support numeric comparisons on price, sale_price, stock")
    path = f"$[*] ? (@.{inner.path} {_JSONPATH_OPS[inner.op]} $bound)"
    return func.jsonb_path_exists(
        _column(node.path),
        sa.cast(path, JSONPATH),
        func.jsonb_build_object("bound", inner.value),
    )


def compile_predicate(predicate: Optional[Predicate]):
    """Translate a predicate tree into a SQLAlchemy boolean expression."""
    if predicate is None:
        return sa.true()
    if isinstance(predicate, FieldPredicate):
        return _compile_field(predicate)
    if isinstance(predicate, AnyElement):
        return _compile_any_element(predicate)
    if isinstance(predicate, And):
        return sa.and_(*[compile_predicate(item) for item in predicate.items])
    if isinstance(predicate, Or):
        return sa.or_(*[compile_predicate(item) for item in predicate.items])
    if isinstance(predicate, Not):
        return sa.not_(compile_predicate(predicate.item))
    raise TypeError(f"Unknown predicate node: {type(predicate).__name__}")


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code:
        return str(code) == UNIQUE_VIOLATION
    return "unique" in str(exc).lower()


class SqlProductStore:
    """Product documents persisted as rows with an embedded JSONB ``variants`` column."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def to_document(row: Product) -> ProductDocument:
        doc: Dict[str, Any] = {name: getattr(row, name) for name in DOCUMENT_COLUMNS}
        doc["variants"] = list(doc.get("variants") or [])
        return doc

    @staticmethod
    def _apply(row: Product, doc: ProductDocument) -> None:
        for name in DOCUMENT_COLUMNS:
            if name == "id" or name not in doc:
                continue
            value = doc[name]
            if name == "variants":
                # fresh list so the JSONB column is flagged dirty
                value = [dict(v) for v in value or []]
            setattr(row, name, value)

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            if _is_unique_violation(exc):
                raise DuplicateKeyError(str(exc.orig or exc)) from exc
            raise

    async def count(self, predicate: Optional[Predicate]) -> int:
        stmt = select(func.count()).select_from(Product).where(compile_predicate(predicate))
        result = await self.db.execute(stmt)
        return int(result.scalar() or 0)

    async def query_page(
        self,
        predicate: Optional[Predicate],
        *,
        sort: SortSpec,
        skip: int,
        limit: int,
    ) -> List[ProductDocument]:
        field, direction = sort
        column = _column(field)
        order = column.desc() if direction < 0 else column.asc()
        stmt = (
            select(Product)
            .where(compile_predicate(predicate))
            .order_by(order, Product.id)
            .offset(max(0, int(skip)))
            .limit(max(1, int(limit)))
        )
        result = await self.db.execute(stmt)
        return [self.to_document(row) for row in result.scalars().all()]

    async def create(self, doc: ProductDocument) -> ProductDocument:
        row = Product(id=doc.get("id"))
        self._apply(row, doc)
        self.db.add(row)
        await self._commit()
        await self.db.refresh(row)
        return self.to_document(row)

    async def find_by_id(self, product_id: str) -> Optional[ProductDocument]:
        row = await self.db.get(Product, product_id)
        return self.to_document(row) if row is not None else None

    async def save(self, doc: ProductDocument) -> ProductDocument:
        row = await self.db.get(Product, doc["id"])
        if row is None:
            raise DocumentNotFoundError(doc["id"])
        self._apply(row, doc)
        await self._commit()
        await self.db.refresh(row)
        return self.to_document(row)

    async def delete_many(self, ids: Sequence[str]) -> int:
        if not ids:
            return 0
        result = await self.db.execute(delete(Product).where(Product.id.in_(list(ids))))
        await self.db.commit()
        return int(result.rowcount or 0)
