"""Types consumed and produced by VAT zone resolution."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import date
    from decimal import Decimal


class TaxableType(str, Enum):
    """Classification of an order item for tax purposes."""

    PHYSICAL_GOODS = "physical_goods"
    DIGITAL_GOODS = "digital_goods"
    EVENTS = "events"


@dataclass(frozen=True, slots=True)
class Address:
    """
    Postal address of a party, reduced to what zone matching needs.

    Attributes:
        country_code: ISO 3166-1 alpha-2 code. None for incomplete addresses.
        postal_code: Postal code as entered (optional).
    """

    country_code: str | None
    postal_code: str | None = None


@runtime_checkable
class HasFields(Protocol):
    """An entity whose fields can be read by name."""

    def get_field(self, name: str) -> object | None:
        """Return the value of a field, or None if it is empty or missing."""
        ...


@dataclass(frozen=True, slots=True)
class Entity:
    """
    Generic field holder used for products and the entities they reference.

    Attributes:
        bundle: Entity type (e.g. the product type 'conference').
        fields: Field values by name. Values are plain data, Addresses or
            other entities.
    """

    bundle: str
    fields: Mapping[str, object] = field(default_factory=dict)

    def get_field(self, name: str) -> object | None:
        """Return a field value, or None if the field is empty or missing."""
        return self.fields.get(name)


@dataclass(frozen=True, slots=True)
class Store:
    """
    The selling store.

    Attributes:
        address: Store address.
        registrations: Ids of zones where the store voluntarily registered
            to collect tax.
    """

    address: Address
    registrations: frozenset[str] = frozenset()

    def is_registered_in(self, zone_id: str) -> bool:
        """Check if the store holds a tax registration for a zone."""
        return zone_id in self.registrations


@dataclass(frozen=True, slots=True)
class CustomerProfile:
    """
    Billing profile of the customer.

    Attributes:
        address: Customer address.
        tax_number: Declared tax identifier, taken at face value.
    """

    address: Address
    tax_number: str | None = None

    @property
    def has_tax_number(self) -> bool:
        """Check if a non-empty tax number was declared."""
        return bool(self.tax_number)


@dataclass(frozen=True, slots=True)
class OrderItem:
    """
    An order item being taxed.

    Attributes:
        taxable_type: Physical goods, digital goods or event.
        calculation_date: Date used for rate selection and the 2015 digital rule.
        product: Purchased product, used to resolve event addresses.
        rate_id: Requested rate (e.g. 'reduced'); zones without it fall back
            to their default rate.
    """

    taxable_type: TaxableType
    calculation_date: date
    product: Entity | None = None
    rate_id: str | None = None


@dataclass(frozen=True, slots=True)
class ResolvedRate:
    """
    A zone and the rate that applies to an order item in it.

    Attributes:
        zone_id: Zone id (e.g. 'de').
        zone_label: Zone name (e.g. 'Germany').
        display_label: Label shown next to the tax line (e.g. 'VAT').
        rate_id: Rate id (e.g. 'standard').
        rate_label: Rate name (e.g. 'Standard').
        percentage: Decimal fraction in force (e.g. Decimal('0.19')).
    """

    zone_id: str
    zone_label: str
    display_label: str
    rate_id: str
    rate_label: str
    percentage: Decimal
