from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, MutableMapping, Optional, Tuple

from catalog_admin.services.catalog.failures import ValidationFailure
from catalog_admin.services.catalog.variant_validator import is_number

_SLUG_SEPARATORS = re.compile(r"[^a-z0-9]+")


def normalize_slug(text: Any) -> str:
    """``"Crew Socks!!"`` -> ``"crew-socks"``. Idempotent."""
    lowered = str(text or "").lower().strip()
    return _SLUG_SEPARATORS.sub("-", lowered).strip("-")


def resolve_slug(
    *,
    current_slug: Optional[str],
    title: Optional[str],
    title_changed: bool,
    explicit_slug: Optional[str],
) -> Tuple[Optional[str], Optional[ValidationFailure]]:
    """Explicit slug wins; otherwise a title change re-derives it."""
    if explicit_slug is not None and str(explicit_slug).strip():
        slug = normalize_slug(explicit_slug)
    elif title_changed or not current_slug:
        slug = normalize_slug(title)
    else:
        return current_slug, None
    if not slug:
        return None, ValidationFailure("slug must contain at least one letter or digit", field="slug")
    return slug, None


def apply_aggregates(doc: MutableMapping[str, Any]) -> Optional[ValidationFailure]:
    """Recompute ``total_stock`` in place.

    Variant products price and stock per variant, so their product-level
    ``stock`` and pricing fields are cleared.
    """
    variants = doc.get("variants") or []
    if variants:
        doc["total_stock"] = sum(v.get("stock") or 0 for v in variants)
        for name in ("stock", "price", "sale_price", "offer_start", "offer_end"):
            doc[name] = None
        return None

    if not is_number(doc.get("price")):
        return ValidationFailure("Simple product requires 'price' (number)", field="price")
    if not is_number(doc.get("stock")):
        return ValidationFailure("Simple product requires 'stock' (number)", field="stock")
    if doc["price"] < 0:
        return ValidationFailure("price must be a non-negative number", field="price")
    if doc["stock"] < 0:
        return ValidationFailure("stock must be a non-negative number", field="stock")
    doc["variants"] = []
    doc["total_stock"] = doc["stock"]
    return None


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def offer_active(
    offer_start: Optional[datetime],
    offer_end: Optional[datetime],
    now: datetime,
) -> bool:
    now = _as_utc(now)
    start = _as_utc(offer_start)
    end = _as_utc(offer_end)
    return (start is None or start <= now) and (end is None or end >= now)


def effective_price(
    price: Optional[float],
    sale_price: Optional[float],
    *,
    offer_start: Optional[datetime] = None,
    offer_end: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> Optional[float]:
    now = now or datetime.now(timezone.utc)
    if is_number(sale_price) and offer_active(offer_start, offer_end, now):
        return sale_price
    return price


def discount_percent(price: Optional[float], effective: Optional[float]) -> int:
    if is_number(price) and is_number(effective) and price > 0 and effective < price:
        # round half up
        return int(math.floor((price - effective) / price * 100 + 0.5))
    return 0


def product_pricing(doc: Mapping[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    effective = effective_price(
        doc.get("price"),
        doc.get("sale_price"),
        offer_start=doc.get("offer_start"),
        offer_end=doc.get("offer_end"),
        now=now,
    )
    return {
        "effective_price": effective,
        "discount_percent": discount_percent(doc.get("price"), effective),
    }


def variant_pricing(variant: Mapping[str, Any]) -> Dict[str, Any]:
    # Variants have no offer window: a sale price always applies.
    price = variant.get("price")
    sale_price = variant.get("sale_price")
    effective = sale_price if is_number(sale_price) else price
    return {
        "effective_price": effective,
        "discount_percent": discount_percent(price, effective),
    }
