"""Backend-neutral predicate trees for product listing.

``build_product_filter`` turns list query parameters into a small tree of
``FieldPredicate`` / ``AnyElement`` / ``And`` / ``Or`` / ``Not`` nodes. The
SQL store compiles the tree to SQLAlchemy expressions; ``evaluate`` runs it
against plain product documents.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from catalog_admin.utils.ids import normalize_object_id

FIELD_OPS = {"eq", "ieq", "icontains", "gt", "gte", "lt", "lte", "not_empty"}

DEFAULT_SORT = "-created_at"
SORTABLE_FIELDS = {"created_at", "updated_at", "title", "price", "total_stock", "slug"}


@dataclass(frozen=True)
class FieldPredicate:
    path: str
    op: str
    value: Any = None

    def __post_init__(self) -> None:
        if self.op not in FIELD_OPS:
            raise ValueError(f"Unsupported predicate op: {self.op}")


@dataclass(frozen=True)
class AnyElement:
    """Matches when at least one element of the list at ``path`` matches ``predicate``."""

    path: str
    predicate: "Predicate"


@dataclass(frozen=True)
class And:
    items: Tuple["Predicate", ...]


@dataclass(frozen=True)
class Or:
    items: Tuple["Predicate", ...]


@dataclass(frozen=True)
class Not:
    item: "Predicate"


Predicate = Union[FieldPredicate, AnyElement, And, Or, Not]


def _price_bound(op: str, bound: float) -> Predicate:
    # A product qualifies if any of its prices (sale or base, product or variant) meets the bound.
    return Or(
        (
            FieldPredicate("sale_price", op, bound),
            FieldPredicate("price", op, bound),
            AnyElement("variants", FieldPredicate("sale_price", op, bound)),
            AnyElement("variants", FieldPredicate("price", op, bound)),
        )
    )


def build_product_filter(
    *,
    search: Optional[str] = None,
    brand: Optional[str] = None,
    category: Optional[str] = None,
    in_stock: bool = False,
    has_variants: Optional[bool] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
) -> Optional[Predicate]:
    """Build the list filter. Returns None when nothing narrows the result."""
    clauses = []

    text = (search or "").strip()
    if text:
        clauses.append(
            Or(
                (
                    FieldPredicate("title", "icontains", text),
                    FieldPredicate("description", "icontains", text),
                    FieldPredicate("brand", "icontains", text),
                )
            )
        )

    brand_text = (brand or "").strip()
    if brand_text:
        clauses.append(FieldPredicate("brand", "ieq", brand_text))

    category_id = normalize_object_id((category or "").strip())
    if category_id:
        clauses.append(FieldPredicate("category", "eq", category_id))

    if in_stock:
        clauses.append(FieldPredicate("total_stock", "gt", 0))

    if has_variants is not None:
        clauses.append(FieldPredicate("variants", "not_empty", bool(has_variants)))

    if min_price is not None:
        clauses.append(_price_bound("gte", float(min_price)))
    if max_price is not None:
        clauses.append(_price_bound("lte", float(max_price)))

    if not clauses:
        return None
    if len(clauses) == 1:
        return clauses[0]
    return And(tuple(clauses))


def parse_sort(sort: Optional[str]) -> Tuple[str, int]:
    """``"-created_at"`` -> ``("created_at", -1)``; unknown fields fall back to the default."""
    raw = str(sort or "").strip() or DEFAULT_SORT
    direction = -1 if raw.startswith("-") else 1
    field = raw.lstrip("-+")
    if field not in SORTABLE_FIELDS:
        return parse_sort(DEFAULT_SORT)
    return field, direction


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _compare(op: str, actual: Any, expected: Any) -> bool:
    if actual is None:
        return False
    try:
        if op == "gt":
            return actual > expected
        if op == "gte":
            return actual >= expected
        if op == "lt":
            return actual < expected
        if op == "lte":
            return actual <= expected
    except TypeError:
        return False
    raise ValueError(f"Unsupported comparison: {op}")


def _evaluate_field(node: FieldPredicate, doc: Mapping[str, Any]) -> bool:
    actual = doc.get(node.path)
    if node.op == "eq":
        return actual == node.value
    if node.op == "ieq":
        return isinstance(actual, str) and actual.lower() == str(node.value).lower()
    if node.op == "icontains":
        return isinstance(actual, str) and str(node.value).lower() in actual.lower()
    if node.op == "not_empty":
        return bool(actual) is bool(node.value)
    if node.op in {"gt", "gte", "lt", "lte"} and not _is_number(actual):
        return False
    return _compare(node.op, actual, node.value)


def evaluate(predicate: Optional[Predicate], doc: Mapping[str, Any]) -> bool:
    """Evaluate ``predicate`` against a plain product document (None matches everything)."""
    if predicate is None:
        return True
    if isinstance(predicate, FieldPredicate):
        return _evaluate_field(predicate, doc)
    if isinstance(predicate, AnyElement):
        elements = doc.get(predicate.path) or []
        return any(isinstance(el, dict) and evaluate(predicate.predicate, el) for el in elements)
    if isinstance(predicate, And):
        return all(evaluate(item, doc) for item in predicate.items)
    if isinstance(predicate, Or):
        return any(evaluate(item, doc) for item in predicate.items)
    if isinstance(predicate, Not):
        return not evaluate(predicate.item, doc)
    raise TypeError(f"Unknown predicate node: {type(predicate).__name__}")


def describe(predicate: Optional[Predicate]) -> Dict[str, Any]:
    """Plain-dict rendering of a predicate, for logs."""
    if predicate is None:
        return {}
    if isinstance(predicate, FieldPredicate):
        return {predicate.path: {predicate.op: predicate.value}}
    if isinstance(predicate, AnyElement):
        return {predicate.path: {"any": describe(predicate.predicate)}}
    if isinstance(predicate, And):
        return {"and": [describe(item) for item in predicate.items]}
    if isinstance(predicate, Or):
        return {"or": [describe(item) for item in predicate.items]}
    return {"not": describe(predicate.item)}
