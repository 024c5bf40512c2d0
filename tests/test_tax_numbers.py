"""Tests for tax number validation."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from core.result import failure, success
from services.vat.errors import NetworkError
from services.vat.tax_numbers import (
    CACHE_TTL,
    EU_TAX_NUMBER_RULES,
    SWISS_TAX_NUMBER_RULES,
    TaxNumber,
    TaxNumberValidator,
)
from services.vat.vies import ViesClient

EU_COUNTRIES = ["AT", "DE", "FR", "GR", "IT"]


@pytest.fixture()
def registry() -> MagicMock:
    """Registry confirming every number."""
    mock = MagicMock()
    mock.check_vat.return_value = success(True)
    return mock


@pytest.fixture()
def eu_validator(registry: MagicMock) -> TaxNumberValidator:
    """EU validator backed by a registry."""
    return TaxNumberValidator(EU_TAX_NUMBER_RULES, EU_COUNTRIES, registry=registry)


@pytest.fixture()
def swiss_validator() -> TaxNumberValidator:
    """Swiss validator."""
    return TaxNumberValidator(SWISS_TAX_NUMBER_RULES, ["CH", "LI", "DE", "IT"])


class TestTaxNumber:
    """Tests for TaxNumber."""

    def test_normalized(self) -> None:
        """Separators should be removed and letters upper-cased."""
        assert TaxNumber(" de 123.456-789 ").normalized == "DE123456789"

    def test_country_prefix(self) -> None:
        """The prefix is the first two characters."""
        assert TaxNumber(" el123456789").country_prefix == "EL"

    def test_national_part(self) -> None:
        """The national part is the normalized number without prefix."""
        assert TaxNumber("FR 12 345678901").national_part == "12345678901"


class TestFormatIsValid:
    """Tests for TaxNumberValidator.format_is_valid."""

    @pytest.mark.parametrize(
        ("tax_number", "country_code"),
        [
            ("DE123456789", "DE"),
            ("de 123 456 789", "DE"),
            ("DE123456789", "de"),
            ("ATU12345678", "AT"),
            ("FR12345678901", "FR"),
            ("EL123456789", "GR"),
        ],
    )
    def test_valid(self, eu_validator: TaxNumberValidator, tax_number: str, country_code: str) -> None:
        """Well-formed numbers with the country's prefix are valid."""
        assert eu_validator.format_is_valid(tax_number, country_code)

    @pytest.mark.parametrize(
        ("tax_number", "country_code"),
        [
            # Greece uses the EL prefix.
            ("GR123456789", "GR"),
            # Prefix of another country.
            ("DE123456789", "GR"),
            ("DE123456789", "FR"),
            # Country outside the regime.
            ("US123456789", "US"),
            ("CH123456789", "CH"),
            # Malformed.
            ("DE1", "DE"),
            ("123456789", "DE"),
            ("DE12345678901234", "DE"),
            ("", "DE"),
        ],
    )
    def test_invalid(self, eu_validator: TaxNumberValidator, tax_number: str, country_code: str) -> None:
        """Malformed numbers, foreign prefixes and unknown countries are invalid."""
        assert not eu_validator.format_is_valid(tax_number, country_code)

    def test_format_check_does_not_call_registry(
        self,
        eu_validator: TaxNumberValidator,
        registry: MagicMock,
    ) -> None:
        """format_is_valid should not go online."""
        eu_validator.format_is_valid("DE123456789", "DE")

        registry.check_vat.assert_not_called()

    @pytest.mark.parametrize(
        "tax_number",
        ["CHE123456789", "CHE-123.456.789", "CHE-123.456.789 MWST", "CHE123456789TVA", "che123456789iva"],
    )
    def test_swiss_valid(self, swiss_validator: TaxNumberValidator, tax_number: str) -> None:
        """Swiss UID numbers are valid for Switzerland."""
        assert swiss_validator.format_is_valid(tax_number, "CH")

    @pytest.mark.parametrize("country_code", ["LI", "DE", "IT", "li"])
    def test_swiss_numbers_for_other_regime_countries(
        self,
        swiss_validator: TaxNumberValidator,
        country_code: str,
    ) -> None:
        """Liechtenstein and the enclaves use Swiss UID numbers."""
        assert swiss_validator.format_is_valid("CHE-123.456.789 MWST", country_code)

    @pytest.mark.parametrize(
        ("tax_number", "country_code"),
        [
            ("CHE12345678", "CH"),
            ("CHE123456789VAT", "CH"),
            ("DE123456789", "CH"),
            ("LI123456789", "LI"),
            ("CHE123456789", "AT"),
        ],
    )
    def test_swiss_invalid(
        self,
        swiss_validator: TaxNumberValidator,
        tax_number: str,
        country_code: str,
    ) -> None:
        """Other structures and countries are invalid."""
        assert not swiss_validator.format_is_valid(tax_number, country_code)


class TestIsValid:
    """Tests for TaxNumberValidator.is_valid."""

    def test_registry_confirms(self, eu_validator: TaxNumberValidator, registry: MagicMock) -> None:
        """Numbers confirmed by the registry are valid."""
        assert eu_validator.is_valid("EL 123 456 789", "GR")

        registry.check_vat.assert_called_once_with("EL", "123456789")

    def test_registry_rejects(self, eu_validator: TaxNumberValidator, registry: MagicMock) -> None:
        """Numbers unknown to the registry are invalid."""
        registry.check_vat.return_value = success(False)

        assert not eu_validator.is_valid("DE123456789", "DE")

    def test_malformed_number_not_checked(self, eu_validator: TaxNumberValidator, registry: MagicMock) -> None:
        """Numbers failing the format check never reach the registry."""
        assert not eu_validator.is_valid("DE123456789", "FR")

        registry.check_vat.assert_not_called()

    def test_registry_failure_is_invalid(self, eu_validator: TaxNumberValidator, registry: MagicMock) -> None:
        """Registry failures degrade to invalid instead of raising."""
        registry.check_vat.return_value = failure(NetworkError(country_code="DE"))

        assert eu_validator.is_valid("DE123456789", "DE") is False

    def test_malformed_registry_response_is_invalid(self) -> None:
        """Unexpected registry bodies should degrade to invalid instead of raising."""
        client = ViesClient()
        validator = TaxNumberValidator(EU_TAX_NUMBER_RULES, EU_COUNTRIES, registry=client)
        with patch.object(client, "_get_client") as mock_get_client:
            mock_http = MagicMock()
            mock_http.post.return_value.status_code = 200
            mock_http.post.return_value.text = "[]"
            mock_http.post.return_value.json.return_value = []
            mock_get_client.return_value = mock_http

            assert validator.is_valid("DE123456789", "DE") is False

    def test_answers_are_cached(self, eu_validator: TaxNumberValidator, registry: MagicMock) -> None:
        """The registry should be asked once per number."""
        assert eu_validator.is_valid("DE123456789", "DE")
        assert eu_validator.is_valid("de 123 456 789", "DE")

        registry.check_vat.assert_called_once()

    def test_failures_are_not_cached(self, eu_validator: TaxNumberValidator, registry: MagicMock) -> None:
        """A failed check should be retried on the next call."""
        registry.check_vat.side_effect = [failure(NetworkError(country_code="DE")), success(True)]

        assert not eu_validator.is_valid("DE123456789", "DE")
        assert eu_validator.is_valid("DE123456789", "DE")
        assert registry.check_vat.call_count == 2

    def test_rejections_are_not_cached(self, eu_validator: TaxNumberValidator, registry: MagicMock) -> None:
        """A number rejected once should be asked again, it may have been registered since."""
        registry.check_vat.side_effect = [success(False), success(True)]

        assert not eu_validator.is_valid("DE123456789", "DE")
        assert eu_validator.is_valid("DE123456789", "DE")
        assert registry.check_vat.call_count == 2

    def test_cached_answers_expire(self, eu_validator: TaxNumberValidator, registry: MagicMock) -> None:
        """Confirmations should be asked again once their lifetime is over."""
        with patch("services.vat.tax_numbers.monotonic") as mock_clock:
            mock_clock.return_value = 0.0
            eu_validator.is_valid("DE123456789", "DE")
            mock_clock.return_value = CACHE_TTL - 1
            eu_validator.is_valid("DE123456789", "DE")
            assert registry.check_vat.call_count == 1

            mock_clock.return_value = CACHE_TTL + 1
            eu_validator.is_valid("DE123456789", "DE")

        assert registry.check_vat.call_count == 2

    def test_cache_size_is_bounded(self, registry: MagicMock) -> None:
        """The oldest confirmation should be dropped when the cache is full."""
        validator = TaxNumberValidator(
            EU_TAX_NUMBER_RULES,
            EU_COUNTRIES,
            registry=registry,
            cache_max_size=1,
        )

        validator.is_valid("DE123456789", "DE")
        validator.is_valid("DE987654321", "DE")
        validator.is_valid("DE987654321", "DE")
        assert registry.check_vat.call_count == 2

        validator.is_valid("DE123456789", "DE")
        assert registry.check_vat.call_count == 3

    def test_clear_cache(self, eu_validator: TaxNumberValidator, registry: MagicMock) -> None:
        """clear_cache should forget registry answers."""
        eu_validator.is_valid("DE123456789", "DE")
        eu_validator.clear_cache()
        eu_validator.is_valid("DE123456789", "DE")

        assert registry.check_vat.call_count == 2

    def test_cache_disabled(self, registry: MagicMock) -> None:
        """Without cache every check goes to the registry."""
        validator = TaxNumberValidator(EU_TAX_NUMBER_RULES, EU_COUNTRIES, registry=registry, use_cache=False)

        validator.is_valid("DE123456789", "DE")
        validator.is_valid("DE123456789", "DE")

        assert registry.check_vat.call_count == 2

    def test_no_registry_is_invalid(self) -> None:
        """Format validity alone never certifies an EU number."""
        validator = TaxNumberValidator(EU_TAX_NUMBER_RULES, EU_COUNTRIES)

        assert validator.format_is_valid("DE123456789", "DE")
        assert not validator.is_valid("DE123456789", "DE")

    def test_swiss_numbers_have_no_registry(self, swiss_validator: TaxNumberValidator) -> None:
        """Swiss numbers are valid when well-formed."""
        assert swiss_validator.is_valid("CHE-123.456.789 MWST", "CH")
        assert not swiss_validator.is_valid("CHE123", "CH")


class TestValidate:
    """Tests for TaxNumberValidator.validate."""

    def test_format_only_by_default(self, eu_validator: TaxNumberValidator, registry: MagicMock) -> None:
        """Without registry validation, validate checks the format."""
        registry.check_vat.return_value = success(False)

        assert eu_validator.validate("DE123456789", "DE")
        registry.check_vat.assert_not_called()

    def test_with_registry(self, registry: MagicMock) -> None:
        """With registry validation, validate asks the registry."""
        registry.check_vat.return_value = success(False)
        validator = TaxNumberValidator(
            EU_TAX_NUMBER_RULES,
            EU_COUNTRIES,
            registry=registry,
            validate_with_registry=True,
        )

        assert not validator.validate("DE123456789", "DE")
        registry.check_vat.assert_called_once_with("DE", "123456789")
