"""
Zone decision policies of the VAT regimes.

The resolution engine gathers the facts of a transaction into a
ResolutionContext; a policy turns them into the zones that tax it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from services.vat.errors import InvalidCatalogError
from services.vat.types import TaxableType

if TYPE_CHECKING:
    from collections.abc import Sequence

    from services.vat.catalog import ZoneCatalog
    from services.vat.types import Address, CustomerProfile, OrderItem, ResolvedRate, Store
    from services.vat.zones import TaxZone

# Digital goods are taxed at destination from this year on.
DIGITAL_DESTINATION_YEAR = 2015


@dataclass(frozen=True, slots=True)
class ResolutionContext:
    """
    Facts about a transaction, computed once per resolution.

    Attributes:
        order_item: Order item being taxed.
        customer_profile: Customer billing profile.
        store: Selling store.
        customer_zones: Regime zones matching the customer address.
        customer_external_zones: External zones matching the customer address.
        store_zones: Regime zones matching the store address.
        store_registration_zones: Regime zones the store is registered in.
        event_address: Address of the event, for event items where it was found.
    """

    order_item: OrderItem
    customer_profile: CustomerProfile
    store: Store
    customer_zones: tuple[TaxZone, ...]
    customer_external_zones: tuple[TaxZone, ...]
    store_zones: tuple[TaxZone, ...]
    store_registration_zones: tuple[TaxZone, ...]
    event_address: Address | None = None

    @property
    def customer_country(self) -> str | None:
        """Return the customer's country code."""
        return self.customer_profile.address.country_code

    @property
    def store_country(self) -> str | None:
        """Return the store's country code."""
        return self.store.address.country_code

    @property
    def is_digital(self) -> bool:
        """Check if the item is a digital good sold under the destination rule."""
        return (
            self.order_item.taxable_type == TaxableType.DIGITAL_GOODS
            and self.order_item.calculation_date.year >= DIGITAL_DESTINATION_YEAR
        )

    @property
    def is_event(self) -> bool:
        """Check if the item is an event."""
        return self.order_item.taxable_type == TaxableType.EVENTS

    @property
    def has_tax_number(self) -> bool:
        """Check if the customer declared a tax number. Its validity is not checked."""
        return self.customer_profile.has_tax_number


@dataclass(frozen=True, slots=True)
class ZoneDecision:
    """
    Zones chosen by a policy.

    Attributes:
        zones: Zones taxing the transaction, possibly empty.
        reason: Short code naming the rule that decided, for audit logs.
    """

    zones: tuple[TaxZone, ...]
    reason: str


class ResolutionPolicy(Protocol):
    """Regime-specific decision rules."""

    @property
    def regime_id(self) -> str:
        """Return the id of the regime."""
        ...

    def decide(self, context: ResolutionContext, catalog: ZoneCatalog) -> ZoneDecision:
        """Choose the zones taxing a transaction."""
        ...

    def negative_rate_applicable(
        self,
        rates: Sequence[ResolvedRate],
        prices_include_tax: bool,
        matches_store_address: bool,
        catalog: ZoneCatalog,
    ) -> bool:
        """Check if a tax-inclusive price needs a compensating negative tax line."""
        ...


def negative_rate_applicable(
    resolved_rates: Sequence[ResolvedRate],
    prices_include_tax: bool,
    matches_store_address: bool,
    zero_rate_zone_id: str | None = None,
) -> bool:
    """
    Check if a tax-inclusive price must be compensated by a negative tax line.

    This is the case when the store's own tax is included in the price, but
    the transaction resolves to no rate at all or only to the zero-rated
    zone (e.g. an export, or an Intra-Community supply).

    Args:
        resolved_rates: Rates resolved for the order item.
        prices_include_tax: Whether store prices include tax.
        matches_store_address: Whether the regime covers the store address.
        zero_rate_zone_id: Zone whose sole presence counts as untaxed.

    Returns:
        True if a negative rate applies.
    """
    if not (prices_include_tax and matches_store_address):
        return False
    if not resolved_rates:
        return True
    return (
        zero_rate_zone_id is not None
        and len(resolved_rates) == 1
        and resolved_rates[0].zone_id == zero_rate_zone_id
    )


class EuropeanUnionVatPolicy:
    """
    Cross-border rules of EU VAT.

    Rules are tried in order and the first one that applies decides:

    1. A store outside the EU but registered in it only charges VAT on B2C
       digital sales, at destination.
    2. B2B sales to another country (except events) are Intra-Community
       supplies.
    3. Events are taxed where they are held.
    4. Digital goods are taxed at destination.
    5. Physical goods are taxed at origin, unless the store is registered in
       the customer's zone (distance selling threshold crossed).
    """

    regime_id = "european_union_vat"

    def decide(self, context: ResolutionContext, catalog: ZoneCatalog) -> ZoneDecision:
        """Choose the EU zones taxing a transaction."""
        if not context.store_zones and context.store_registration_zones:
            if context.is_digital and not context.has_tax_number:
                return ZoneDecision(context.customer_zones, "foreign_store_digital")
            return ZoneDecision((), "foreign_store")

        if (
            not context.is_event
            and context.has_tax_number
            and context.customer_country != context.store_country
        ):
            return ZoneDecision((self._ic_zone(catalog),), "intra_community")

        if context.is_event:
            return self._decide_event(context, catalog)

        if context.is_digital:
            return ZoneDecision(context.customer_zones, "digital_destination")

        # Only the first customer zone is checked for a registration.
        customer_zone = context.customer_zones[0] if context.customer_zones else None
        if customer_zone is not None and context.store.is_registered_in(customer_zone.id):
            return ZoneDecision(context.customer_zones, "distance_selling")
        return ZoneDecision(context.store_zones, "origin")

    def _decide_event(self, context: ResolutionContext, catalog: ZoneCatalog) -> ZoneDecision:
        event_address = context.event_address
        if event_address is None:
            return ZoneDecision(context.store_zones, "event_without_address")

        if context.has_tax_number and context.customer_country != event_address.country_code:
            return ZoneDecision((self._ic_zone(catalog),), "event_intra_community")

        return ZoneDecision(catalog.match_zones(event_address), "event_location")

    @staticmethod
    def _ic_zone(catalog: ZoneCatalog) -> TaxZone:
        ic_zone = catalog.ic_zone
        if ic_zone is None:
            msg = f"Catalog '{catalog.regime_id}' has no Intra-Community zone"
            raise InvalidCatalogError(msg)
        return ic_zone

    def negative_rate_applicable(
        self,
        rates: Sequence[ResolvedRate],
        prices_include_tax: bool,
        matches_store_address: bool,
        catalog: ZoneCatalog,
    ) -> bool:
        """Check for a negative rate, counting an Intra-Community result as untaxed."""
        return negative_rate_applicable(
            rates,
            prices_include_tax,
            matches_store_address,
            zero_rate_zone_id=catalog.ic_zone_id,
        )


class SwissVatPolicy:
    """
    Swiss VAT rules.

    Swiss zones tax a customer they match only when the transaction is
    domestic: the store (or, for events, the event) must be in the
    customer's country. Cross-border cases are left to EU VAT, so the two
    regimes never both claim the same order item.
    """

    regime_id = "swiss_vat"

    def decide(self, context: ResolutionContext, catalog: ZoneCatalog) -> ZoneDecision:
        """Choose the Swiss zones taxing a transaction."""
        candidates = context.customer_zones
        if not candidates:
            return ZoneDecision((), "not_claimed")

        if not context.is_event:
            if context.customer_country != context.store_country:
                return ZoneDecision((), "foreign_store")
            return ZoneDecision(candidates, "domestic")

        event_address = context.event_address
        if event_address is None:
            return ZoneDecision((), "event_without_address")
        if event_address.country_code != context.customer_country:
            return ZoneDecision((), "foreign_event")
        return ZoneDecision(candidates, "domestic_event")

    def negative_rate_applicable(
        self,
        rates: Sequence[ResolvedRate],
        prices_include_tax: bool,
        matches_store_address: bool,
        catalog: ZoneCatalog,
    ) -> bool:
        """Check for a negative rate when no rate was resolved."""
        return negative_rate_applicable(rates, prices_include_tax, matches_store_address)
