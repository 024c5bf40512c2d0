"""
Pytest configuration and fixtures for the test suite.

This module contains shared fixtures used across all tests. Object
factories live in ``factories.py``.
"""

from __future__ import annotations

import pytest
from factories import make_store

from core.config import Settings, ViesSettings
from services.vat.catalog import ZoneCatalog, eu_catalog, swiss_catalog
from services.vat.events import FieldPathAddressResolver
from services.vat.regimes import TaxRegime, build_regime
from services.vat.types import Store


@pytest.fixture()
def settings() -> Settings:
    """Settings with VIES validation disabled."""
    return Settings(vies=ViesSettings(enabled=False))


@pytest.fixture()
def address_resolver() -> FieldPathAddressResolver:
    """Resolver reading conference venues."""
    return FieldPathAddressResolver({"conference": "venue|address"})


@pytest.fixture()
def eu_vat(settings: Settings, address_resolver: FieldPathAddressResolver) -> TaxRegime:
    """European Union VAT regime."""
    return build_regime("european_union_vat", settings=settings, address_resolver=address_resolver)


@pytest.fixture()
def swiss_vat(settings: Settings, address_resolver: FieldPathAddressResolver) -> TaxRegime:
    """Swiss VAT regime."""
    return build_regime("swiss_vat", settings=settings, address_resolver=address_resolver)


@pytest.fixture()
def eu_zones() -> ZoneCatalog:
    """European Union VAT catalog."""
    return eu_catalog()


@pytest.fixture()
def swiss_zones() -> ZoneCatalog:
    """Swiss VAT catalog."""
    return swiss_catalog()


@pytest.fixture()
def german_store() -> Store:
    """A store in Berlin."""
    return make_store("DE", "10115")


@pytest.fixture()
def swiss_store() -> Store:
    """A store in Zurich."""
    return make_store("CH", "8001")
