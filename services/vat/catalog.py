"""Zone catalogs of the VAT regimes."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from typing import TYPE_CHECKING

from core.logging import get_logger
from core.result import Failure, Success
from services.vat import data
from services.vat.errors import (
    InvalidCatalogError,
    UnknownRateError,
    ZoneNotFoundError,
)
from services.vat.postal import PostalFilter
from services.vat.zones import PercentageEntry, RateSchedule, TaxZone, Territory

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from core.result import Result
    from services.vat.data import ZoneDefinition
    from services.vat.types import Address

logger = get_logger(__name__)


def _build_territory(definition: Mapping[str, str]) -> Territory:
    included = definition.get("included_postal_codes")
    excluded = definition.get("excluded_postal_codes")
    postal_filter = None
    if included or excluded:
        postal_filter = PostalFilter.from_rules(included=included, excluded=excluded)
    return Territory(country_code=definition["country_code"], postal_filter=postal_filter)


def _build_entry(percentage: tuple[str, ...]) -> PercentageEntry:
    if len(percentage) not in (2, 3):
        msg = f"Percentage must be (number, start[, end]), got {percentage!r}"
        raise InvalidCatalogError(msg)
    try:
        return PercentageEntry(
            value=Decimal(percentage[0]),
            start_date=date.fromisoformat(percentage[1]),
            end_date=date.fromisoformat(percentage[2]) if len(percentage) == 3 else None,
        )
    except (ValueError, InvalidOperation) as e:
        msg = f"Invalid percentage {percentage!r}: {e}"
        raise InvalidCatalogError(msg) from e


def build_zone(definition: ZoneDefinition) -> TaxZone:
    """
    Build a validated tax zone from its definition.

    Args:
        definition: Zone definition as found in ``services.vat.data``.

    Returns:
        The tax zone.

    Raises:
        InvalidCatalogError: If the definition violates a catalog invariant.
    """
    rates: dict[str, RateSchedule] = {}
    for rate in definition["rates"]:
        if rate["id"] in rates:
            msg = f"Tax zone '{definition['id']}' defines rate '{rate['id']}' twice"
            raise InvalidCatalogError(msg)
        rates[rate["id"]] = RateSchedule(
            id=rate["id"],
            label=rate["label"],
            entries=tuple(_build_entry(percentage) for percentage in rate["percentages"]),
            is_default=bool(rate.get("default", False)),
        )

    return TaxZone(
        id=definition["id"],
        label=definition["label"],
        display_label=definition["display_label"],
        territories=tuple(_build_territory(t) for t in definition["territories"]),
        rates=rates,
    )


def _index(zones: Iterable[TaxZone]) -> dict[str, TaxZone]:
    indexed: dict[str, TaxZone] = {}
    for zone in zones:
        if zone.id in indexed:
            msg = f"Tax zone '{zone.id}' is defined twice"
            raise InvalidCatalogError(msg)
        indexed[zone.id] = zone
    return indexed


@dataclass(frozen=True, slots=True)
class ZoneCatalog:
    """
    The zones of a tax regime.

    Attributes:
        regime_id: Id of the regime owning the catalog.
        version: Version of the zone data.
        zones: Zones of the regime by id, in matching order.
        external_zones: Zones of another regime, only used to detect that a
            customer is claimed by it.
        ic_zone_id: Id of the synthetic Intra-Community zone, if the regime
            has one.
    """

    regime_id: str
    version: str
    zones: Mapping[str, TaxZone] = field(default_factory=dict)
    external_zones: Mapping[str, TaxZone] = field(default_factory=dict)
    ic_zone_id: str | None = None

    def __post_init__(self) -> None:
        """Validate the Intra-Community zone reference."""
        if self.ic_zone_id is not None and self.ic_zone_id not in self.zones:
            msg = f"Catalog '{self.regime_id}' has no zone '{self.ic_zone_id}'"
            raise InvalidCatalogError(msg)

    @property
    def ic_zone(self) -> TaxZone | None:
        """Return the Intra-Community zone, if the regime has one."""
        if self.ic_zone_id is None:
            return None
        return self.zones[self.ic_zone_id]

    def match_zones(self, address: Address) -> tuple[TaxZone, ...]:
        """Return the zones matching an address, in catalog order."""
        return tuple(zone for zone in self.zones.values() if zone.match(address))

    def match_external_zones(self, address: Address) -> tuple[TaxZone, ...]:
        """Return the external zones matching an address, in catalog order."""
        return tuple(zone for zone in self.external_zones.values() if zone.match(address))

    def matches(self, address: Address) -> bool:
        """Check if any zone of the regime matches an address."""
        return any(zone.match(address) for zone in self.zones.values())

    def get_zone(self, zone_id: str) -> Result[TaxZone, ZoneNotFoundError]:
        """
        Get a zone by id.

        Args:
            zone_id: Zone id.

        Returns:
            Result containing the zone or ZoneNotFoundError.
        """
        zone = self.zones.get(zone_id)
        if zone is None:
            return Failure(ZoneNotFoundError(zone_id))
        return Success(zone)

    def get_rate(
        self,
        zone_id: str,
        rate_id: str,
    ) -> Result[RateSchedule, ZoneNotFoundError | UnknownRateError]:
        """
        Get a rate schedule of a zone.

        Args:
            zone_id: Zone id.
            rate_id: Rate id.

        Returns:
            Result containing the rate schedule or the lookup error.
        """
        zone = self.zones.get(zone_id)
        if zone is None:
            return Failure(ZoneNotFoundError(zone_id))
        rate = zone.get_rate(rate_id)
        if rate is None:
            return Failure(UnknownRateError(zone_id, rate_id))
        return Success(rate)

    def rate_at(self, zone_id: str, rate_id: str, on: date) -> Decimal:
        """
        Return the percentage of a zone's rate in force on a date.

        Raises:
            ZoneNotFoundError: If the zone is unknown.
            UnknownRateError: If the zone has no such rate.
            RateNotFoundError: If no percentage covers the date.
        """
        result = self.get_rate(zone_id, rate_id)
        if isinstance(result, Failure):
            raise result.error
        return result.value.rate_at(on)

    def country_codes(self) -> list[str]:
        """Return the sorted country codes covered by the regime's zones."""
        codes: set[str] = set()
        for zone in self.zones.values():
            if zone.id != self.ic_zone_id:
                codes |= zone.country_codes
        return sorted(codes)

    def rate_summary(self, on: date) -> dict[str, dict[str, Decimal]]:
        """
        Summarize the rates in force on a date.

        Args:
            on: Reference date.

        Returns:
            Mapping of zone label to {rate label: percentage}. Rates with no
            percentage in force are left out.
        """
        summary: dict[str, dict[str, Decimal]] = {}
        for zone in self.zones.values():
            rates: dict[str, Decimal] = {}
            for rate in zone.rates.values():
                entry = rate.entry_at(on)
                if entry is not None:
                    rates[rate.label] = entry.value
            summary[zone.label] = rates
        return summary


def build_catalog(
    regime_id: str,
    definitions: Iterable[ZoneDefinition],
    external_definitions: Iterable[ZoneDefinition] = (),
    ic_zone_id: str | None = None,
    version: str = data.CATALOG_VERSION,
) -> ZoneCatalog:
    """
    Build and validate a zone catalog.

    Raises:
        InvalidCatalogError: If any definition violates a catalog invariant.
    """
    try:
        catalog = ZoneCatalog(
            regime_id=regime_id,
            version=version,
            zones=_index(build_zone(d) for d in definitions),
            external_zones=_index(build_zone(d) for d in external_definitions),
            ic_zone_id=ic_zone_id,
        )
    except InvalidCatalogError as e:
        logger.error("Invalid tax zone catalog", regime=regime_id, error=e.message)
        raise

    logger.debug(
        "Tax zone catalog built",
        regime=regime_id,
        version=version,
        zones=len(catalog.zones),
        external_zones=len(catalog.external_zones),
    )
    return catalog


@lru_cache
def eu_catalog() -> ZoneCatalog:
    """Return the European Union VAT catalog, with Switzerland as external zone."""
    return build_catalog(
        "european_union_vat",
        data.EU_ZONES,
        external_definitions=data.SWISS_ZONES,
        ic_zone_id=data.IC_ZONE_ID,
    )


@lru_cache
def swiss_catalog() -> ZoneCatalog:
    """Return the Swiss VAT catalog."""
    return build_catalog("swiss_vat", data.SWISS_ZONES)
