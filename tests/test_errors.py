"""Tests for VAT error types."""

from __future__ import annotations

from datetime import date

import pytest

from services.vat.errors import (
    ConfigurationDefect,
    InvalidCatalogError,
    InvalidRequestError,
    NetworkError,
    RateNotFoundError,
    RegistryErrorCode,
    RegistryParseError,
    RegistryTimeoutError,
    ServiceUnavailableError,
    UnknownRateError,
    ZoneNotFoundError,
)


class TestConfigurationDefects:
    """Tests for catalog defect exceptions."""

    def test_rate_not_found(self) -> None:
        """RateNotFoundError should carry the rate and date."""
        error = RateNotFoundError("standard", date(2015, 6, 1))

        assert isinstance(error, ConfigurationDefect)
        assert error.rate_id == "standard"
        assert error.date == date(2015, 6, 1)
        assert str(error) == "No percentage of rate 'standard' is in force on 2015-06-01"

    def test_invalid_catalog(self) -> None:
        """InvalidCatalogError is a configuration defect."""
        error = InvalidCatalogError("Tax zone 'xx' has no rates")

        assert isinstance(error, ConfigurationDefect)
        assert error.message == "Tax zone 'xx' has no rates"

    def test_lookup_errors(self) -> None:
        """Lookup errors should name what was not found."""
        assert str(ZoneNotFoundError("xx")) == "Unknown tax zone: xx"
        assert str(UnknownRateError("de", "hotel")) == "Tax zone 'de' has no rate 'hotel'"


class TestRegistryErrors:
    """Tests for registry error factories."""

    @pytest.mark.parametrize(
        ("factory", "code", "message", "retryable"),
        [
            (NetworkError, RegistryErrorCode.NETWORK, "Network error", True),
            (RegistryTimeoutError, RegistryErrorCode.TIMEOUT, "Request timeout", True),
            (ServiceUnavailableError, RegistryErrorCode.SERVICE_UNAVAILABLE, "Registry unavailable", True),
            (RegistryParseError, RegistryErrorCode.PARSE, "Failed to parse response", False),
            (InvalidRequestError, RegistryErrorCode.INVALID_REQUEST, "Invalid request", False),
        ],
    )
    def test_factories(
        self,
        factory: object,
        code: RegistryErrorCode,
        message: str,
        retryable: bool,
    ) -> None:
        """Factories should set code, default message and retryability."""
        error = factory(country_code="DE")  # type: ignore[operator]

        assert error.code == code
        assert error.message == message
        assert error.country_code == "DE"
        assert error.is_retryable is retryable

    def test_str(self) -> None:
        """Errors should render with their country and code."""
        error = NetworkError(country_code="EL", message="Request failed")

        assert str(error) == "[EL] network: Request failed"
