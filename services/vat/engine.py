"""Zone resolution engine."""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.logging import get_logger
from services.vat.events import FieldPathAddressResolver
from services.vat.policies import ResolutionContext
from services.vat.types import TaxableType

if TYPE_CHECKING:
    from services.vat.catalog import ZoneCatalog
    from services.vat.events import AddressResolver
    from services.vat.policies import ResolutionPolicy
    from services.vat.types import CustomerProfile, OrderItem, Store
    from services.vat.zones import TaxZone

logger = get_logger(__name__)


class ZoneResolutionEngine:
    """
    Resolves the tax zones of an order item.

    The engine matches the customer, store and event addresses against the
    catalog and lets the regime's policy decide. It keeps no state between
    calls and is safe to share between threads.

    Example:
        >>> engine = ZoneResolutionEngine(eu_catalog(), EuropeanUnionVatPolicy())
        >>> [zone.id for zone in engine.resolve_zones(item, profile, store)]
        ['de']
    """

    def __init__(
        self,
        catalog: ZoneCatalog,
        policy: ResolutionPolicy,
        address_resolver: AddressResolver | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            catalog: Zones of the regime.
            policy: Decision rules of the regime.
            address_resolver: Finds event addresses. Without one, no event
                address is ever found.
        """
        self._catalog = catalog
        self._policy = policy
        self._address_resolver = address_resolver or FieldPathAddressResolver()

    @property
    def catalog(self) -> ZoneCatalog:
        """Return the catalog used for matching."""
        return self._catalog

    @property
    def policy(self) -> ResolutionPolicy:
        """Return the decision policy."""
        return self._policy

    def build_context(
        self,
        order_item: OrderItem,
        customer_profile: CustomerProfile,
        store: Store,
    ) -> ResolutionContext | None:
        """
        Gather the facts of a transaction.

        Returns:
            The context, or None if the customer is matched neither by the
            regime nor by an external zone, in which case nothing is taxed.
        """
        customer_address = customer_profile.address
        customer_zones = self._catalog.match_zones(customer_address)
        customer_external_zones = self._catalog.match_external_zones(customer_address)
        if not customer_zones and not customer_external_zones:
            return None

        event_address = None
        if order_item.taxable_type == TaxableType.EVENTS:
            event_address = self._address_resolver.resolve(order_item)

        return ResolutionContext(
            order_item=order_item,
            customer_profile=customer_profile,
            store=store,
            customer_zones=customer_zones,
            customer_external_zones=customer_external_zones,
            store_zones=self._catalog.match_zones(store.address),
            store_registration_zones=tuple(
                zone for zone in self._catalog.zones.values() if store.is_registered_in(zone.id)
            ),
            event_address=event_address,
        )

    def resolve_zones(
        self,
        order_item: OrderItem,
        customer_profile: CustomerProfile,
        store: Store,
    ) -> tuple[TaxZone, ...]:
        """
        Resolve the zones taxing an order item.

        Args:
            order_item: Order item being taxed.
            customer_profile: Customer billing profile.
            store: Selling store.

        Returns:
            The zones in catalog order. Empty when the transaction is not
            taxed under this regime.

        Raises:
            ConfigurationDefect: If the catalog lacks a zone the rules need.
        """
        context = self.build_context(order_item, customer_profile, store)
        if context is None:
            logger.debug(
                "Customer outside tax regime",
                regime=self._policy.regime_id,
                country=customer_profile.address.country_code,
            )
            return ()

        decision = self._policy.decide(context, self._catalog)
        logger.debug(
            "Resolved tax zones",
            regime=self._policy.regime_id,
            reason=decision.reason,
            zones=[zone.id for zone in decision.zones],
            taxable_type=order_item.taxable_type.value,
        )
        return decision.zones
