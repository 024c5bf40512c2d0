"""HTTP client for the EU VIES VAT number registry."""

from __future__ import annotations

from typing import Any

import httpx

from core.logging import get_logger
from core.result import Result, failure, success
from services.vat.errors import (
    InvalidRequestError,
    NetworkError,
    RegistryError,
    RegistryParseError,
    RegistryTimeoutError,
    ServiceUnavailableError,
)

logger = get_logger(__name__)

# Default timeout for registry requests
DEFAULT_TIMEOUT = 10.0
# Base URL of the VIES REST API
BASE_URL = "https://ec.europa.eu/taxation_customs/vies/rest-api"

# VIES error codes meaning the member state service is temporarily unavailable
UNAVAILABLE_CODES = frozenset(
    {
        "SERVICE_UNAVAILABLE",
        "MS_UNAVAILABLE",
        "TIMEOUT",
        "MS_MAX_CONCURRENT_REQ",
        "GLOBAL_MAX_CONCURRENT_REQ",
    }
)


class ViesClient:
    """
    HTTP client for the VIES registry.

    Requests are bounded by a timeout; retryable failures are retried at
    most ``retries`` times.

    Attributes:
        base_url: VIES REST API base URL.
        timeout: Request timeout in seconds.
        retries: Number of retries after a retryable failure.
    """

    def __init__(
        self,
        base_url: str = BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        retries: int = 1,
    ) -> None:
        """
        Initialize the VIES client.

        Args:
            base_url: VIES REST API base URL.
            timeout: Request timeout in seconds.
            retries: Retries after a retryable failure (0 or 1).

        Raises:
            ValueError: If timeout or retries are out of range.
        """
        if timeout <= 0:
            msg = "timeout must be positive"
            raise ValueError(msg)
        if retries not in (0, 1):
            msg = "retries must be 0 or 1"
            raise ValueError(msg)

        self.base_url = base_url
        self.timeout = timeout
        self.retries = retries
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/json",
                },
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def _make_request(
        self,
        country_code: str,
        payload: dict[str, Any],
    ) -> Result[dict[str, Any], RegistryError]:
        """
        Post a check request to the registry.

        Args:
            country_code: Country the check is made for.
            payload: JSON body.

        Returns:
            Result containing response data or RegistryError.
        """
        client = self._get_client()

        try:
            response = client.post("/check-vat-number", json=payload)
        except httpx.TimeoutException:
            logger.error("VIES request timeout", country=country_code)
            return failure(RegistryTimeoutError(country_code=country_code))
        except httpx.RequestError as e:
            logger.error("VIES request error", country=country_code, error=str(e))
            return failure(
                NetworkError(
                    country_code=country_code,
                    message="Request failed",
                    details=str(e),
                )
            )

        if response.status_code == 429 or response.status_code >= 500:
            logger.warning(
                "VIES unavailable",
                country=country_code,
                status_code=response.status_code,
            )
            return failure(
                ServiceUnavailableError(
                    country_code=country_code,
                    message=f"API returned status {response.status_code}",
                    details=response.text[:500],
                )
            )

        if response.status_code >= 400:
            logger.error(
                "VIES API error",
                country=country_code,
                status_code=response.status_code,
                response_text=response.text[:500],
            )
            return failure(
                InvalidRequestError(
                    country_code=country_code,
                    message=f"API returned status {response.status_code}",
                    details=response.text[:500],
                )
            )

        try:
            data = response.json()
        except ValueError as e:
            logger.error("Failed to parse VIES response", country=country_code, error=str(e))
            return failure(RegistryParseError(country_code=country_code, details=str(e)))

        if not isinstance(data, dict):
            logger.error("VIES response is not an object", country=country_code)
            return failure(
                RegistryParseError(
                    country_code=country_code,
                    message="Response is not a JSON object",
                    details=response.text[:500],
                )
            )
        return success(data)

    def _parse_answer(
        self,
        country_code: str,
        data: dict[str, Any],
    ) -> Result[bool, RegistryError]:
        """Turn a registry response into a validity answer."""
        error_code = self._error_code(data)
        if error_code is not None:
            if error_code in UNAVAILABLE_CODES:
                return failure(
                    ServiceUnavailableError(
                        country_code=country_code,
                        message="Member state service unavailable",
                        details=error_code,
                    )
                )
            return failure(
                InvalidRequestError(
                    country_code=country_code,
                    message="Request rejected by VIES",
                    details=error_code,
                )
            )

        valid = data.get("valid")
        if not isinstance(valid, bool):
            return failure(
                RegistryParseError(
                    country_code=country_code,
                    message="Response has no validity flag",
                    details=str(data)[:500],
                )
            )
        return success(valid)

    @staticmethod
    def _error_code(data: dict[str, Any]) -> str | None:
        """Return the VIES error code of a response, if it reports one."""
        wrappers = data.get("errorWrappers")
        if wrappers:
            first = wrappers[0] if isinstance(wrappers, list) else None
            if isinstance(first, dict):
                return str(first.get("error", "UNKNOWN"))
            return "UNKNOWN"
        user_error = data.get("userError")
        if user_error and user_error not in ("VALID", "INVALID"):
            return str(user_error)
        return None

    def check_vat(self, country_code: str, vat_number: str) -> Result[bool, RegistryError]:
        """
        Check a VAT number with VIES.

        Args:
            country_code: VIES country code (e.g. 'DE', 'EL').
            vat_number: Number without its country prefix.

        Returns:
            Result containing whether the number is registered, or RegistryError.
        """
        payload = {"countryCode": country_code, "vatNumber": vat_number}
        logger.info("Checking VAT number with VIES", country=country_code)

        result: Result[bool, RegistryError] = failure(NetworkError(country_code=country_code))
        for attempt in range(self.retries + 1):
            response = self._make_request(country_code, payload)
            result = (
                self._parse_answer(country_code, response.value)
                if response.is_success()
                else response
            )
            if result.is_success() or not result.error.is_retryable:
                return result
            if attempt < self.retries:
                logger.info(
                    "Retrying VIES check",
                    country=country_code,
                    error_code=result.error.code.value,
                )
        return result
