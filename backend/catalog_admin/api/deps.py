from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_admin.core.config import settings
from catalog_admin.db.session import get_db
from catalog_admin.services.catalog.attribute_cache import attribute_lookup_cache
from catalog_admin.services.catalog.attribute_catalog import SqlAttributeCatalog
from catalog_admin.services.catalog.product_service import ProductService
from catalog_admin.services.catalog.product_store import SqlProductStore


async def get_product_service(db: AsyncSession = Depends(get_db)) -> ProductService:
    """
    Dependency wiring the product service to the request's database session.
    """
    cache = attribute_lookup_cache if settings.ATTRIBUTE_CACHE_ENABLED else None
    return ProductService(
        SqlProductStore(db),
        SqlAttributeCatalog(db, cache=cache),
    )
