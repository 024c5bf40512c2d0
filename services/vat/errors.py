"""Error types for VAT zone resolution."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import date


class ConfigurationDefect(Exception):
    """A tax catalog is authored incorrectly. Tax cannot be guessed."""

    def __init__(self, message: str) -> None:
        """Initialize with error message."""
        self.message = message
        super().__init__(message)


class RateNotFoundError(ConfigurationDefect):
    """No percentage entry of a rate covers the requested date."""

    def __init__(self, rate_id: str, on: date) -> None:
        """Initialize with the rate id and the requested date."""
        self.rate_id = rate_id
        self.date = on
        super().__init__(f"No percentage of rate '{rate_id}' is in force on {on.isoformat()}")


class InvalidCatalogError(ConfigurationDefect):
    """A zone, rate or schedule violates the catalog invariants."""


class ZoneNotFoundError(Exception):
    """Raised when a zone id is not part of a catalog."""

    def __init__(self, zone_id: str) -> None:
        """Initialize with the zone id."""
        self.zone_id = zone_id
        super().__init__(f"Unknown tax zone: {zone_id}")


class UnknownRateError(Exception):
    """Raised when a zone does not define a rate id."""

    def __init__(self, zone_id: str, rate_id: str) -> None:
        """Initialize with the zone and rate ids."""
        self.zone_id = zone_id
        self.rate_id = rate_id
        super().__init__(f"Tax zone '{zone_id}' has no rate '{rate_id}'")


class RegistryErrorCode(str, Enum):
    """Error codes for tax number registry checks."""

    UNKNOWN = "unknown"
    NETWORK = "network"
    TIMEOUT = "timeout"
    PARSE = "parse"
    INVALID_REQUEST = "invalid_request"
    SERVICE_UNAVAILABLE = "service_unavailable"


@dataclass(frozen=True, slots=True)
class RegistryError:
    """
    Failure of an online tax number registry check.

    Attributes:
        code: Error code identifying the type of error.
        message: Human-readable error message.
        country_code: Country the check was made for.
        details: Additional error details (optional).
    """

    code: RegistryErrorCode
    message: str
    country_code: str
    details: str | None = None

    def __str__(self) -> str:
        """Return string representation of the error."""
        return f"[{self.country_code}] {self.code.value}: {self.message}"

    @property
    def is_retryable(self) -> bool:
        """Check if this error type is retryable."""
        return self.code in {
            RegistryErrorCode.NETWORK,
            RegistryErrorCode.TIMEOUT,
            RegistryErrorCode.SERVICE_UNAVAILABLE,
        }


def NetworkError(
    country_code: str,
    message: str = "Network error",
    details: str | None = None,
) -> RegistryError:
    """Create a network error."""
    return RegistryError(
        code=RegistryErrorCode.NETWORK,
        message=message,
        country_code=country_code,
        details=details,
    )


def RegistryTimeoutError(
    country_code: str,
    message: str = "Request timeout",
) -> RegistryError:
    """Create a timeout error."""
    return RegistryError(
        code=RegistryErrorCode.TIMEOUT,
        message=message,
        country_code=country_code,
    )


def ServiceUnavailableError(
    country_code: str,
    message: str = "Registry unavailable",
    details: str | None = None,
) -> RegistryError:
    """Create a service unavailable error."""
    return RegistryError(
        code=RegistryErrorCode.SERVICE_UNAVAILABLE,
        message=message,
        country_code=country_code,
        details=details,
    )


def RegistryParseError(
    country_code: str,
    message: str = "Failed to parse response",
    details: str | None = None,
) -> RegistryError:
    """Create a parse error."""
    return RegistryError(
        code=RegistryErrorCode.PARSE,
        message=message,
        country_code=country_code,
        details=details,
    )


def InvalidRequestError(
    country_code: str,
    message: str = "Invalid request",
    details: str | None = None,
) -> RegistryError:
    """Create an invalid request error."""
    return RegistryError(
        code=RegistryErrorCode.INVALID_REQUEST,
        message=message,
        country_code=country_code,
        details=details,
    )
