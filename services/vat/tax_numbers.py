"""Tax number (VAT identifier) validation."""

from __future__ import annotations

import re
from collections import OrderedDict
from dataclasses import dataclass, field
from time import monotonic
from typing import TYPE_CHECKING, Protocol

from core.logging import get_logger
from core.result import Failure

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from core.result import Result
    from services.vat.errors import RegistryError

logger = get_logger(__name__)

_SEPARATORS = re.compile(r"[\s.\-]")

# Lifetime of a cached registry confirmation, in seconds
CACHE_TTL = 3600  # 1 hour
# Maximum number of cached registry confirmations
CACHE_MAX_SIZE = 1024


@dataclass(frozen=True, slots=True)
class TaxNumber:
    """A tax number as declared by a customer."""

    raw_value: str

    @property
    def normalized(self) -> str:
        """Return the number upper-cased, without spaces, dots or dashes."""
        return _SEPARATORS.sub("", self.raw_value).upper()

    @property
    def country_prefix(self) -> str:
        """Return the first two characters, upper-cased."""
        return self.raw_value.strip()[:2].upper()

    @property
    def national_part(self) -> str:
        """Return the normalized number without its country prefix."""
        return self.normalized[2:]

    def matches(self, pattern: re.Pattern[str]) -> bool:
        """Check if the normalized number has the given structure."""
        return pattern.fullmatch(self.normalized) is not None


@dataclass(frozen=True, slots=True)
class TaxNumberRules:
    """
    Tax number structure of a regime.

    Attributes:
        pattern: Structure of a normalized number, prefix included.
        prefix_substitutions: Number prefix of countries that do not use
            their ISO code (e.g. Greece uses 'EL').
        uses_registry: Whether numbers are certified by an online registry.
    """

    pattern: re.Pattern[str]
    prefix_substitutions: Mapping[str, str] = field(default_factory=dict)
    uses_registry: bool = False

    def prefix_for(self, country_code: str) -> str:
        """Return the number prefix expected for a country."""
        return self.prefix_substitutions.get(country_code, country_code)


EU_TAX_NUMBER_RULES = TaxNumberRules(
    pattern=re.compile(r"[A-Z]{2}[0-9A-Z+*]{2,12}"),
    prefix_substitutions={"GR": "EL"},
    uses_registry=True,
)

SWISS_TAX_NUMBER_RULES = TaxNumberRules(
    pattern=re.compile(r"CHE[0-9]{9}(MWST|TVA|IVA)?"),
    # Liechtenstein and the enclaves use Swiss UID numbers.
    prefix_substitutions={"LI": "CH", "DE": "CH", "IT": "CH"},
)


class RegistryChecker(Protocol):
    """Online registry certifying tax numbers (e.g. VIES)."""

    def check_vat(self, country_code: str, vat_number: str) -> Result[bool, RegistryError]:
        """Check a number, given without its country prefix."""
        ...


class TaxNumberValidator:
    """
    Validates tax numbers against the countries of a regime.

    Registry confirmations are cached per (prefix, number) for
    ``cache_ttl`` seconds, keeping at most ``cache_max_size`` of them.
    Rejections and registry failures are not cached.
    """

    def __init__(
        self,
        rules: TaxNumberRules,
        country_codes: Iterable[str],
        registry: RegistryChecker | None = None,
        validate_with_registry: bool = False,
        use_cache: bool = True,
        cache_ttl: float = CACHE_TTL,
        cache_max_size: int = CACHE_MAX_SIZE,
    ) -> None:
        """
        Initialize the validator.

        Args:
            rules: Tax number structure of the regime.
            country_codes: Countries covered by the regime.
            registry: Online registry, if one is available.
            validate_with_registry: Whether validate() consults the registry.
            use_cache: Whether to cache registry confirmations.
            cache_ttl: Lifetime of a cached confirmation in seconds.
            cache_max_size: Maximum number of cached confirmations.
        """
        self._rules = rules
        self._country_codes = frozenset(country_codes)
        self._registry = registry
        self._validate_with_registry = validate_with_registry
        self._use_cache = use_cache
        self._cache_ttl = cache_ttl
        self._cache_max_size = cache_max_size
        # (prefix, number) -> expiry time of the confirmation
        self._cache: OrderedDict[tuple[str, str], float] = OrderedDict()

    def format_is_valid(self, tax_number: str | TaxNumber, country_code: str) -> bool:
        """
        Check the structure of a tax number for a country.

        The number must have the regime's structure, the country must be
        covered by the regime, and the number must start with the country's
        prefix.
        """
        number = tax_number if isinstance(tax_number, TaxNumber) else TaxNumber(tax_number)
        country_code = country_code.upper()
        if not number.matches(self._rules.pattern):
            return False
        if country_code not in self._country_codes:
            return False
        return number.country_prefix == self._rules.prefix_for(country_code)

    def is_valid(self, tax_number: str | TaxNumber, country_code: str) -> bool:
        """
        Check a tax number for a country, certifying it with the registry.

        A well-formed number is only valid if the registry confirms it. If
        the registry cannot be reached the number is not valid.
        """
        number = tax_number if isinstance(tax_number, TaxNumber) else TaxNumber(tax_number)
        if not self.format_is_valid(number, country_code):
            return False
        if not self._rules.uses_registry:
            return True

        if self._registry is None:
            logger.warning("No tax number registry available", country=country_code)
            return False

        key = (number.country_prefix, number.national_part)
        if self._use_cache and self._is_cached(key):
            return True

        result = self._registry.check_vat(*key)
        if isinstance(result, Failure):
            logger.warning(
                "Tax number registry check failed",
                country=key[0],
                error_code=result.error.code.value,
                error=result.error.message,
                details=result.error.details,
            )
            return False

        if self._use_cache and result.value:
            self._remember(key)
        return result.value

    def _is_cached(self, key: tuple[str, str]) -> bool:
        expires_at = self._cache.get(key)
        if expires_at is None:
            return False
        if expires_at <= monotonic():
            del self._cache[key]
            return False
        return True

    def _remember(self, key: tuple[str, str]) -> None:
        self._cache[key] = monotonic() + self._cache_ttl
        self._cache.move_to_end(key)
        while len(self._cache) > self._cache_max_size:
            self._cache.popitem(last=False)

    def validate(self, tax_number: str | TaxNumber, country_code: str) -> bool:
        """Check a tax number with the registry if enabled, by format otherwise."""
        if self._validate_with_registry:
            return self.is_valid(tax_number, country_code)
        return self.format_is_valid(tax_number, country_code)

    def clear_cache(self) -> None:
        """Clear the cached registry confirmations."""
        self._cache.clear()
