"""
Result pattern for explicit error handling.

Lookups and registry calls return either a Success or a Failure value
instead of raising, so callers decide how an expected failure degrades.

Example:
    >>> result = catalog.get_zone("de")
    >>> if result.is_success():
    ...     print(result.unwrap().label)
    ... else:
    ...     print(f"Error: {result.error}")
    Germany
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Never


@dataclass(frozen=True, slots=True)
class Success[T]:
    """
    Represents a successful result containing a value.

    Attributes:
        value: The success value.
    """

    value: T

    def is_success(self) -> bool:
        """Return True if this is a Success."""
        return True

    def is_failure(self) -> bool:
        """Return False if this is a Success."""
        return False

    def unwrap(self) -> T:
        """Return the contained success value."""
        return self.value

    def unwrap_or(self, _default: T) -> T:
        """Return the success value, ignoring the default."""
        return self.value


@dataclass(frozen=True, slots=True)
class Failure[E]:
    """
    Represents a failed result containing an error.

    Attributes:
        error: The error value.
    """

    error: E

    def is_success(self) -> bool:
        """Return False if this is a Failure."""
        return False

    def is_failure(self) -> bool:
        """Return True if this is a Failure."""
        return True

    def unwrap(self) -> Never:
        """
        Raise an error since this is a Failure.

        Raises:
            ValueError: Always, since Failure has no success value.
        """
        raise ValueError(f"Cannot unwrap Failure: {self.error}")

    def unwrap_or[T](self, default: T) -> T:
        """Return the default value since this is a Failure."""
        return default


# Type alias for Result
type Result[T, E] = Success[T] | Failure[E]


def success[T](value: T) -> Success[T]:
    """Create a Success result."""
    return Success(value)


def failure[E](error: E) -> Failure[E]:
    """Create a Failure result."""
    return Failure(error)
