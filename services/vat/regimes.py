"""VAT regimes: catalog, decision rules and tax number validation together."""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.config import get_settings
from core.logging import get_logger
from services.vat.catalog import eu_catalog, swiss_catalog
from services.vat.engine import ZoneResolutionEngine
from services.vat.policies import EuropeanUnionVatPolicy, SwissVatPolicy
from services.vat.tax_numbers import (
    EU_TAX_NUMBER_RULES,
    SWISS_TAX_NUMBER_RULES,
    TaxNumberValidator,
)
from services.vat.types import ResolvedRate
from services.vat.vies import ViesClient

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import date
    from decimal import Decimal

    from core.config import Settings
    from services.vat.catalog import ZoneCatalog
    from services.vat.events import AddressResolver
    from services.vat.policies import ResolutionPolicy
    from services.vat.tax_numbers import RegistryChecker, TaxNumberRules
    from services.vat.types import CustomerProfile, OrderItem, Store
    from services.vat.zones import TaxZone

logger = get_logger(__name__)

EUROPEAN_UNION_VAT = "european_union_vat"
SWISS_VAT = "swiss_vat"

REGIME_LABELS: dict[str, str] = {
    EUROPEAN_UNION_VAT: "European Union VAT",
    SWISS_VAT: "Swiss VAT",
}

REGIME_IDS: tuple[str, ...] = tuple(REGIME_LABELS)


class TaxRegime:
    """
    A VAT regime ready to tax order items.

    Attributes:
        id: Regime id (e.g. 'european_union_vat').
        label: Regime name.
        catalog: Zones of the regime.
        engine: Zone resolution engine.
        tax_numbers: Tax number validator.
    """

    def __init__(
        self,
        regime_id: str,
        catalog: ZoneCatalog,
        policy: ResolutionPolicy,
        tax_number_rules: TaxNumberRules,
        address_resolver: AddressResolver | None = None,
        registry: RegistryChecker | None = None,
        validate_with_registry: bool = False,
        owned_client: ViesClient | None = None,
    ) -> None:
        """
        Initialize the regime.

        Args:
            regime_id: Regime id.
            catalog: Zones of the regime.
            policy: Decision rules of the regime.
            tax_number_rules: Tax number structure of the regime.
            address_resolver: Finds event addresses.
            registry: Online tax number registry, if any.
            validate_with_registry: Whether tax numbers are validated online.
            owned_client: VIES client created for this regime, closed by close().
        """
        self.id = regime_id
        self.label = REGIME_LABELS.get(regime_id, regime_id)
        self.catalog = catalog
        self.engine = ZoneResolutionEngine(catalog, policy, address_resolver)
        self.tax_numbers = TaxNumberValidator(
            tax_number_rules,
            catalog.country_codes(),
            registry=registry,
            validate_with_registry=validate_with_registry,
        )
        self._owned_client = owned_client

    def __enter__(self) -> TaxRegime:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the VIES client created for this regime, if any."""
        if self._owned_client is not None:
            self._owned_client.close()
            self._owned_client = None

    def resolve_zones(
        self,
        order_item: OrderItem,
        customer_profile: CustomerProfile,
        store: Store,
    ) -> tuple[TaxZone, ...]:
        """Resolve the zones taxing an order item."""
        return self.engine.resolve_zones(order_item, customer_profile, store)

    def resolve_rates(
        self,
        order_item: OrderItem,
        customer_profile: CustomerProfile,
        store: Store,
    ) -> tuple[ResolvedRate, ...]:
        """
        Resolve the rates applying to an order item.

        Each resolved zone contributes the rate requested by the order item,
        or its default rate if it does not define that rate.

        Returns:
            One ResolvedRate per zone, in zone order.

        Raises:
            RateNotFoundError: If a rate has no percentage on the calculation date.
        """
        on = order_item.calculation_date
        resolved: list[ResolvedRate] = []
        for zone in self.resolve_zones(order_item, customer_profile, store):
            rate = zone.get_rate(order_item.rate_id) if order_item.rate_id else None
            if rate is None:
                rate = zone.default_rate
            resolved.append(
                ResolvedRate(
                    zone_id=zone.id,
                    zone_label=zone.label,
                    display_label=zone.display_label,
                    rate_id=rate.id,
                    rate_label=rate.label,
                    percentage=rate.rate_at(on),
                )
            )
        logger.debug(
            "Resolved tax rates",
            regime=self.id,
            rates={rate.zone_id: rate.percentage for rate in resolved},
        )
        return tuple(resolved)

    def rate_at(self, zone_id: str, rate_id: str, on: date) -> Decimal:
        """Return the percentage of a zone's rate in force on a date."""
        return self.catalog.rate_at(zone_id, rate_id, on)

    def negative_rate_applicable(
        self,
        rates: Sequence[ResolvedRate],
        prices_include_tax: bool,
        store: Store,
    ) -> bool:
        """
        Check if a tax-inclusive price needs a compensating negative tax line.

        Args:
            rates: Rates resolved for the order item.
            prices_include_tax: Whether store prices include tax.
            store: Selling store.
        """
        return self.engine.policy.negative_rate_applicable(
            rates,
            prices_include_tax,
            self.catalog.matches(store.address),
            self.catalog,
        )


def build_regime(
    regime_id: str,
    *,
    settings: Settings | None = None,
    address_resolver: AddressResolver | None = None,
    registry: RegistryChecker | None = None,
) -> TaxRegime:
    """
    Build a VAT regime.

    Args:
        regime_id: One of REGIME_IDS.
        settings: Application settings (defaults to get_settings()).
        address_resolver: Finds event addresses.
        registry: Tax number registry. For EU VAT a VIES client is created
            from settings when none is given and VIES validation is enabled.

    Returns:
        The regime.

    Raises:
        ValueError: If the regime id is unknown.
    """
    settings = settings or get_settings()

    if regime_id == EUROPEAN_UNION_VAT:
        vies = settings.vies
        owned_client = None
        if registry is None and vies.enabled:
            owned_client = ViesClient(base_url=vies.base_url, timeout=vies.timeout, retries=vies.retries)
            registry = owned_client
        regime = TaxRegime(
            regime_id,
            eu_catalog(),
            EuropeanUnionVatPolicy(),
            EU_TAX_NUMBER_RULES,
            address_resolver=address_resolver,
            registry=registry,
            validate_with_registry=vies.enabled,
            owned_client=owned_client,
        )
    elif regime_id == SWISS_VAT:
        regime = TaxRegime(
            regime_id,
            swiss_catalog(),
            SwissVatPolicy(),
            SWISS_TAX_NUMBER_RULES,
            address_resolver=address_resolver,
        )
    else:
        msg = f"Unknown tax regime: {regime_id}. Must be one of {list(REGIME_IDS)}"
        raise ValueError(msg)

    logger.info(
        "Tax regime built",
        regime=regime_id,
        catalog_version=regime.catalog.version,
        zones=len(regime.catalog.zones),
    )
    return regime
