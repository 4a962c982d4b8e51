from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Callable, Dict, List, Mapping, Optional, Tuple

from fastapi import HTTPException

from catalog_admin.core.config import settings
from catalog_admin.core.exceptions import (
    CatalogInternalException,
    ProductConflictException,
    ProductNotFoundException,
    ProductValidationException,
)
from catalog_admin.core.logging import get_logger
from catalog_admin.services.catalog.aggregates import apply_aggregates, resolve_slug
from catalog_admin.services.catalog.contracts import (
    AttributeCatalog,
    DocumentNotFoundError,
    DuplicateKeyError,
    ProductDocument,
    ProductStore,
)
from catalog_admin.services.catalog.failures import ValidationFailure
from catalog_admin.services.catalog.filters import build_product_filter, describe, parse_sort
from catalog_admin.services.catalog.main_attribute import resolve_main_attribute
from catalog_admin.services.catalog.projection_service import (
    ProductProjectionService,
    product_projection_service,
)
from catalog_admin.services.catalog.variant_validator import is_number, validate_variants
from catalog_admin.utils.debug_log import debug_log
from catalog_admin.utils.ids import filter_object_ids, new_object_id, normalize_object_id
from catalog_admin.utils.pagination import clamp_limit, compute_total_pages, page_offset

logger = get_logger(__name__)

# Plain fields copied from the request when present; slug/category/variants have their own rules.
UPDATABLE_FIELDS = (
    "title",
    "description",
    "brand",
    "currency",
    "price",
    "sale_price",
    "offer_start",
    "offer_end",
    "stock",
    "is_active",
    "image_url",
    "main_attribute_id",
)

LIST_ITEM_FIELDS = (
    "id",
    "title",
    "slug",
    "brand",
    "image_url",
    "currency",
    "category",
    "is_active",
    "total_stock",
    "main_attribute_id",
    "created_at",
    "updated_at",
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _raise(failure: Optional[ValidationFailure]) -> None:
    if failure is not None:
        raise failure.to_exception()


def _check_product_fields(doc: Mapping[str, Any]) -> Optional[ValidationFailure]:
    title = doc.get("title")
    if not isinstance(title, str) or not title.strip():
        return ValidationFailure("title is required", field="title")
    image_url = doc.get("image_url")
    if not isinstance(image_url, str) or not image_url.strip():
        return ValidationFailure("imageUrl is required", field="imageUrl")
    if not isinstance(doc.get("is_active"), bool):
        return ValidationFailure("isActive must be a boolean", field="isActive")
    currency = doc.get("currency")
    if not isinstance(currency, str) or not currency.strip():
        return ValidationFailure("currency must be a non-empty string", field="currency")
    price = doc.get("price")
    if price is not None and (not is_number(price) or price < 0):
        return ValidationFailure("price must be a non-negative number", field="price")
    sale_price = doc.get("sale_price")
    if sale_price is not None and (not is_number(sale_price) or sale_price < 0):
        return ValidationFailure("salePrice must be a non-negative number", field="salePrice")
    start, end = doc.get("offer_start"), doc.get("offer_end")
    if isinstance(start, datetime) and isinstance(end, datetime):
        if start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)
        if end.tzinfo is None:
            end = end.replace(tzinfo=timezone.utc)
        if start > end:
            return ValidationFailure("offerStart must not be after offerEnd", field="offerStart")
    return None


def _normalize_category(value: Any) -> Tuple[Optional[str], Optional[ValidationFailure]]:
    if value is None:
        return None, None
    category = normalize_object_id(value)
    if category is not None:
        return category, None
    return None, ValidationFailure("category must be a 24-hex ObjectId or null", field="category")


def _normalize_currency(value: Any) -> Any:
    if isinstance(value, str) and value.strip():
        return value.strip().upper()
    return value


class ProductService:
    """Product create/read/update/delete on top of a document store and an attribute catalog.

    Every write validates fully before touching the store, so a rejected
    request never leaves a partial write behind. Concurrent updates of the
    same product are last-write-wins.
    """

    def __init__(
        self,
        store: ProductStore,
        catalog: AttributeCatalog,
        *,
        projector: ProductProjectionService = product_projection_service,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.catalog = catalog
        self.projector = projector
        self.clock = clock

    @asynccontextmanager
    async def _guard(self, action: str) -> AsyncIterator[None]:
        """Map store/catalog errors to the API error taxonomy."""
        try:
            yield
        except HTTPException:
            raise
        except DuplicateKeyError as exc:
            logger.info("%s rejected: duplicate key (%s)", action, exc)
            raise ProductConflictException() from exc
        except DocumentNotFoundError as exc:
            raise ProductNotFoundException() from exc
        except Exception as exc:
            logger.exception("Failed to %s", action)
            raise CatalogInternalException(f"Failed to {action}", details=str(exc)) from exc

    async def _prepare_variants(
        self,
        variants: Any,
        requested_main: Optional[str],
    ) -> Tuple[List[Dict[str, Any]], str]:
        validation = await validate_variants(variants, self.catalog)
        _raise(validation.failure)
        main = resolve_main_attribute(validation.variants, requested_main)
        _raise(main.failure)
        return validation.variants, main.main_attribute_id

    async def create(self, payload: Mapping[str, Any]) -> ProductDocument:
        async with self._guard("create product"):
            doc: Dict[str, Any] = {name: payload.get(name) for name in UPDATABLE_FIELDS}
            doc["currency"] = _normalize_currency(payload.get("currency") or settings.DEFAULT_CURRENCY)
            doc["is_active"] = True if payload.get("is_active") is None else payload.get("is_active")
            _raise(_check_product_fields(doc))

            slug, failure = resolve_slug(
                current_slug=None,
                title=doc["title"],
                title_changed=True,
                explicit_slug=payload.get("slug"),
            )
            _raise(failure)
            doc["slug"] = slug

            doc["category"], failure = _normalize_category(payload.get("category"))
            _raise(failure)

            variants = payload.get("variants")
            if variants:
                doc["variants"], doc["main_attribute_id"] = await self._prepare_variants(
                    variants, payload.get("main_attribute_id")
                )
            else:
                doc["variants"] = []
                doc["main_attribute_id"] = None
            _raise(apply_aggregates(doc))

            now = self.clock()
            doc.update({"id": new_object_id(), "created_at": now, "updated_at": now})
            created = await self.store.create(doc)

        logger.info("Created product %s (%s), %d variant(s)", created["id"], created["slug"], len(created["variants"]))
        debug_log({"event": "product.create", "id": created["id"], "slug": created["slug"]})
        return created

    async def get_resolved(self, product_id: str) -> Dict[str, Any]:
        product_id = normalize_object_id(product_id)
        if product_id is None:
            raise ProductNotFoundException()
        async with self._guard("fetch product"):
            product = await self.store.find_by_id(product_id)
            if product is None:
                raise ProductNotFoundException()
            return await self.projector.resolve(product, self.catalog, now=self.clock())

    async def update(self, fields: Mapping[str, Any]) -> ProductDocument:
        """Apply only the fields present in ``fields``; ``variants`` replaces the whole set."""
        product_id = normalize_object_id(fields.get("id"))
        if product_id is None:
            raise ProductValidationException(
                "Valid 'id' (24-hex ObjectId) is required in the request body", field="id"
            )
        if "main_build" in fields:
            raise ProductValidationException("mainBuild is not supported.", field="mainBuild")

        async with self._guard("update product"):
            current = await self.store.find_by_id(product_id)
            if current is None:
                raise ProductNotFoundException()

            doc: Dict[str, Any] = dict(current)
            for name in UPDATABLE_FIELDS:
                if name in fields:
                    doc[name] = fields[name]
            if "currency" in fields:
                doc["currency"] = _normalize_currency(doc["currency"])
            _raise(_check_product_fields(doc))

            slug, failure = resolve_slug(
                current_slug=current.get("slug"),
                title=doc["title"],
                title_changed="title" in fields and fields["title"] != current.get("title"),
                explicit_slug=fields.get("slug"),
            )
            _raise(failure)
            doc["slug"] = slug

            if "category" in fields:
                doc["category"], failure = _normalize_category(fields["category"])
                _raise(failure)

            if "variants" in fields:
                variants = fields["variants"]
                if not isinstance(variants, list):
                    raise ProductValidationException("variants must be an array when provided", field="variants")
                if variants:
                    doc["variants"], doc["main_attribute_id"] = await self._prepare_variants(
                        variants, doc.get("main_attribute_id")
                    )
                else:
                    doc["variants"] = []
            elif doc.get("variants") and "main_attribute_id" in fields:
                main = resolve_main_attribute(doc["variants"], fields["main_attribute_id"])
                _raise(main.failure)
                doc["main_attribute_id"] = main.main_attribute_id

            if not doc.get("variants"):
                doc["main_attribute_id"] = None
            _raise(apply_aggregates(doc))

            doc["updated_at"] = self.clock()
            saved = await self.store.save(doc)

        logger.info("Updated product %s (fields: %s)", product_id, sorted(k for k in fields if k != "id"))
        debug_log({"event": "product.update", "id": product_id, "fields": sorted(fields)})
        return saved

    async def bulk_delete(self, ids: Any) -> Dict[str, Any]:
        if not isinstance(ids, list) or not ids:
            raise ProductValidationException(
                "Body must include non-empty 'ids' array of ObjectId strings", field="ids"
            )
        valid_ids = filter_object_ids(ids)
        if not valid_ids:
            raise ProductValidationException("No valid 24-hex ids provided", field="ids")

        async with self._guard("delete products"):
            deleted = await self.store.delete_many(valid_ids)

        logger.info("Deleted %d of %d requested product(s)", deleted, len(valid_ids))
        debug_log({"event": "product.delete", "requested": valid_ids, "deleted": deleted})
        return {"requested": valid_ids, "deleted_count": deleted}

    async def list_products(
        self,
        *,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        search: Optional[str] = None,
        brand: Optional[str] = None,
        category: Optional[str] = None,
        in_stock: bool = False,
        has_variants: Optional[bool] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        sort: Optional[str] = None,
    ) -> Dict[str, Any]:
        safe_limit = clamp_limit(
            limit,
            default=settings.PRODUCT_LIST_DEFAULT_LIMIT,
            maximum=settings.PRODUCT_LIST_MAX_LIMIT,
        )
        safe_page, offset = page_offset(page, safe_limit)
        predicate = build_product_filter(
            search=search,
            brand=brand,
            category=category,
            in_stock=in_stock,
            has_variants=has_variants,
            min_price=min_price,
            max_price=max_price,
        )
        sort_spec = parse_sort(sort)
        logger.debug("list products filter=%s sort=%s", describe(predicate), sort_spec)

        async with self._guard("list products"):
            total = await self.store.count(predicate)
            docs = await self.store.query_page(predicate, sort=sort_spec, skip=offset, limit=safe_limit)

        items = [
            {
                **{name: doc.get(name) for name in LIST_ITEM_FIELDS},
                "has_variants": bool(doc.get("variants")),
            }
            for doc in docs
        ]
        return {
            "items": items,
            "page": safe_page,
            "limit": safe_limit,
            "total": total,
            "pages": compute_total_pages(total, safe_limit),
        }
