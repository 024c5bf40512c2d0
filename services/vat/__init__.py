"""VAT zone resolution and rate selection package."""

from services.vat.catalog import ZoneCatalog, eu_catalog, swiss_catalog
from services.vat.engine import ZoneResolutionEngine
from services.vat.errors import ConfigurationDefect, RateNotFoundError
from services.vat.events import AddressResolver, FieldPathAddressResolver
from services.vat.policies import EuropeanUnionVatPolicy, SwissVatPolicy
from services.vat.regimes import REGIME_IDS, TaxRegime, build_regime
from services.vat.tax_numbers import TaxNumber, TaxNumberValidator
from services.vat.types import (
    Address,
    CustomerProfile,
    Entity,
    OrderItem,
    ResolvedRate,
    Store,
    TaxableType,
)
from services.vat.vies import ViesClient
from services.vat.zones import RateSchedule, TaxZone, Territory

__all__ = [
    "REGIME_IDS",
    "Address",
    "AddressResolver",
    "ConfigurationDefect",
    "CustomerProfile",
    "Entity",
    "EuropeanUnionVatPolicy",
    "FieldPathAddressResolver",
    "OrderItem",
    "RateNotFoundError",
    "RateSchedule",
    "ResolvedRate",
    "Store",
    "SwissVatPolicy",
    "TaxNumber",
    "TaxNumberValidator",
    "TaxRegime",
    "TaxZone",
    "TaxableType",
    "Territory",
    "ViesClient",
    "ZoneCatalog",
    "ZoneResolutionEngine",
    "build_regime",
    "eu_catalog",
    "swiss_catalog",
]
