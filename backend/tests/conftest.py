from __future__ import annotations

import pytest

from catalog_admin.services.catalog.product_service import ProductService
from catalog_fakes import (
    FIXED_NOW,
    InMemoryAttributeCatalog,
    InMemoryProductStore,
    color_attribute,
    size_attribute,
)


@pytest.fixture
def catalog() -> InMemoryAttributeCatalog:
    return InMemoryAttributeCatalog([size_attribute(), color_attribute()])


@pytest.fixture
def store() -> InMemoryProductStore:
    return InMemoryProductStore()


@pytest.fixture
def service(store, catalog) -> ProductService:
    return ProductService(store, catalog, clock=lambda: FIXED_NOW)
