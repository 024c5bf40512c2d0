"""
Postal code filters for tax territories.

A territory can narrow its country to a subset of postal codes through an
inclusion and/or an exclusion rule. Rules are authored as strings:

- a comma separated list of codes and ``start:end`` numeric ranges,
  e.g. ``"6691, 6991:6993"``;
- a regular expression between slashes, e.g. ``"/(35|38|51|52)[0-9]{3}/"``.
  Patterns are searched anywhere in the postal code, not anchored.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Protocol

from services.vat.errors import InvalidCatalogError

_NON_DIGITS = re.compile(r"\D")

_REGEX_FLAGS: dict[str, re.RegexFlag] = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
}


def _digits(value: str) -> int | None:
    """Return the integer made of the digits of a value, or None if it has none."""
    digits = _NON_DIGITS.sub("", value)
    if not digits:
        return None
    return int(digits)


class PostalCodeRule(Protocol):
    """A parsed inclusion or exclusion rule."""

    def matches(self, postal_code: str) -> bool:
        """Check if a postal code is covered by the rule."""
        ...


@dataclass(frozen=True, slots=True)
class PostalCodeRange:
    """Inclusive numeric range of postal codes."""

    start: int
    end: int

    def contains(self, postal_code: str) -> bool:
        """Check if a postal code falls in the range. Codes without digits never do."""
        number = _digits(postal_code)
        if number is None:
            return False
        return self.start <= number <= self.end


@dataclass(frozen=True, slots=True)
class PostalCodeList:
    """
    List of exact postal codes and numeric ranges.

    Attributes:
        codes: Exact codes.
        ranges: Inclusive numeric ranges.
    """

    codes: frozenset[str] = frozenset()
    ranges: tuple[PostalCodeRange, ...] = ()

    def matches(self, postal_code: str) -> bool:
        """Check if a postal code is listed or falls in a listed range."""
        code = postal_code.strip()
        if code in self.codes:
            return True
        return any(postal_range.contains(code) for postal_range in self.ranges)


@dataclass(frozen=True, slots=True)
class PostalCodePattern:
    """Regular expression searched in the raw postal code."""

    pattern: re.Pattern[str]

    def matches(self, postal_code: str) -> bool:
        """Check if the pattern occurs in the postal code."""
        return self.pattern.search(postal_code) is not None


def _parse_pattern(rule: str) -> PostalCodePattern:
    """Parse a ``/pattern/flags`` rule."""
    end = rule.rfind("/")
    if end == 0:
        msg = f"Unterminated postal code pattern: {rule!r}"
        raise InvalidCatalogError(msg)

    flags = 0
    for flag in rule[end + 1 :]:
        if flag not in _REGEX_FLAGS:
            msg = f"Unsupported flag {flag!r} in postal code pattern: {rule!r}"
            raise InvalidCatalogError(msg)
        flags |= _REGEX_FLAGS[flag]

    try:
        return PostalCodePattern(re.compile(rule[1:end], flags))
    except re.error as e:
        msg = f"Invalid postal code pattern {rule!r}: {e}"
        raise InvalidCatalogError(msg) from e


def _parse_list(rule: str) -> PostalCodeList:
    """Parse a comma separated list of codes and ranges."""
    codes: set[str] = set()
    ranges: list[PostalCodeRange] = []

    for item in (part.strip() for part in rule.split(",")):
        if not item:
            continue
        bounds = item.split(":")
        if len(bounds) == 1:
            codes.add(item)
            continue

        start = _digits(bounds[0]) if len(bounds) == 2 else None
        end = _digits(bounds[1]) if len(bounds) == 2 else None
        if start is None or end is None or start > end:
            msg = f"Invalid postal code range: {item!r}"
            raise InvalidCatalogError(msg)
        ranges.append(PostalCodeRange(start, end))

    return PostalCodeList(codes=frozenset(codes), ranges=tuple(ranges))


def parse_postal_code_rule(rule: str | None) -> PostalCodeRule | None:
    """
    Parse an inclusion or exclusion rule.

    Args:
        rule: Rule string, or None/blank for no rule.

    Returns:
        The parsed rule, or None if no rule was given.

    Raises:
        InvalidCatalogError: If the rule is malformed.
    """
    if rule is None or not rule.strip():
        return None

    rule = rule.strip()
    if rule.startswith("/"):
        return _parse_pattern(rule)
    return _parse_list(rule)


@dataclass(frozen=True, slots=True)
class PostalFilter:
    """
    Inclusion and exclusion rules narrowing a territory.

    A postal code is accepted if it matches the included rule (when present)
    and does not match the excluded rule (when present).
    """

    included: PostalCodeRule | None = None
    excluded: PostalCodeRule | None = None

    @classmethod
    def from_rules(
        cls,
        included: str | None = None,
        excluded: str | None = None,
    ) -> PostalFilter:
        """Build a filter from rule strings."""
        return cls(
            included=parse_postal_code_rule(included),
            excluded=parse_postal_code_rule(excluded),
        )

    def accepts(self, postal_code: str | None) -> bool:
        """
        Check if a postal code passes the filter.

        A missing postal code is treated as an empty one: it fails any
        inclusion rule and passes any exclusion rule.
        """
        code = postal_code or ""
        if self.included is not None and not self.included.matches(code):
            return False
        return self.excluded is None or not self.excluded.matches(code)
