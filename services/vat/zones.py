"""Tax zones, their territories and dated rate schedules."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from services.vat.errors import InvalidCatalogError, RateNotFoundError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from services.vat.postal import PostalFilter
    from services.vat.types import Address


@dataclass(frozen=True, slots=True)
class PercentageEntry:
    """
    A percentage in force over a period.

    Attributes:
        value: Decimal fraction (e.g. Decimal('0.19') for 19%).
        start_date: First day the percentage applies.
        end_date: First day it no longer applies. None if open-ended.
    """

    value: Decimal
    start_date: date
    end_date: date | None = None

    def __post_init__(self) -> None:
        """Validate the period and value."""
        if self.value < 0 or self.value >= 1:
            msg = f"Percentage must be a fraction in [0, 1), got {self.value}"
            raise InvalidCatalogError(msg)
        if self.end_date is not None and self.end_date <= self.start_date:
            msg = (
                f"Percentage period ends ({self.end_date}) "
                f"on or before it starts ({self.start_date})"
            )
            raise InvalidCatalogError(msg)

    def covers(self, on: date) -> bool:
        """Check if the percentage is in force on a date."""
        if on < self.start_date:
            return False
        return self.end_date is None or on < self.end_date


@dataclass(frozen=True, slots=True)
class RateSchedule:
    """
    A named rate of a zone (e.g. 'standard') and its percentage history.

    Entries are ordered by start date, do not overlap, and only the last
    one may be open-ended.
    """

    id: str
    label: str
    entries: tuple[PercentageEntry, ...]
    is_default: bool = False

    def __post_init__(self) -> None:
        """Validate entry ordering."""
        if not self.entries:
            msg = f"Rate '{self.id}' has no percentages"
            raise InvalidCatalogError(msg)

        for previous, current in zip(self.entries, self.entries[1:], strict=False):
            if previous.end_date is None:
                msg = f"Rate '{self.id}' has an open-ended percentage before the last one"
                raise InvalidCatalogError(msg)
            if current.start_date < previous.end_date:
                msg = (
                    f"Rate '{self.id}' has overlapping or unordered percentages "
                    f"starting {previous.start_date} and {current.start_date}"
                )
                raise InvalidCatalogError(msg)

    def entry_at(self, on: date) -> PercentageEntry | None:
        """Return the entry in force on a date, if any."""
        for entry in self.entries:
            if entry.covers(on):
                return entry
        return None

    def rate_at(self, on: date) -> Decimal:
        """
        Return the percentage in force on a date.

        Args:
            on: Calculation date.

        Returns:
            The percentage as a decimal fraction.

        Raises:
            RateNotFoundError: If no entry covers the date.
        """
        entry = self.entry_at(on)
        if entry is None:
            raise RateNotFoundError(self.id, on)
        return entry.value


@dataclass(frozen=True, slots=True)
class Territory:
    """A country, optionally narrowed by postal codes."""

    country_code: str
    postal_filter: PostalFilter | None = None

    def match(self, address: Address) -> bool:
        """Check if an address lies in the territory."""
        if not address.country_code or address.country_code != self.country_code:
            return False
        return self.postal_filter is None or self.postal_filter.accepts(address.postal_code)


@dataclass(frozen=True, slots=True)
class TaxZone:
    """
    A tax jurisdiction.

    Attributes:
        id: Zone id (e.g. 'de').
        label: Zone name (e.g. 'Germany').
        display_label: Label of the tax line (e.g. 'VAT').
        territories: Territories covered; the zone matches if any does.
        rates: Rate schedules by id, in catalog order. Exactly one is default.
    """

    id: str
    label: str
    display_label: str
    territories: tuple[Territory, ...]
    rates: Mapping[str, RateSchedule] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate rates."""
        if not self.rates:
            msg = f"Tax zone '{self.id}' has no rates"
            raise InvalidCatalogError(msg)

        for rate_id, rate in self.rates.items():
            if rate_id != rate.id:
                msg = f"Tax zone '{self.id}' lists rate '{rate.id}' under '{rate_id}'"
                raise InvalidCatalogError(msg)

        defaults = [rate.id for rate in self.rates.values() if rate.is_default]
        if len(defaults) != 1:
            msg = f"Tax zone '{self.id}' must have exactly one default rate, found {defaults}"
            raise InvalidCatalogError(msg)

    def match(self, address: Address) -> bool:
        """Check if an address lies in any territory of the zone."""
        return any(territory.match(address) for territory in self.territories)

    @property
    def default_rate(self) -> RateSchedule:
        """Return the default rate."""
        return next(rate for rate in self.rates.values() if rate.is_default)

    @property
    def country_codes(self) -> frozenset[str]:
        """Return the country codes of the zone's territories."""
        return frozenset(territory.country_code for territory in self.territories)

    def get_rate(self, rate_id: str) -> RateSchedule | None:
        """Return a rate by id, if the zone defines it."""
        return self.rates.get(rate_id)
