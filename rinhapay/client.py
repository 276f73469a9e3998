"""HTTP client for one external payment processor."""

from __future__ import annotations

import httpx

from rinhapay.models import HealthStatus, Payment, parse_health_status

_HEALTH_TIMEOUT = 2.0


class ProcessorError(Exception):
    """Raised when a payment processor cannot be reached or answers badly."""


class ProcessorClient:
    """Talks to a payment processor at a base URL."""

    def __init__(self, base_url: str, name: str, timeout: float) -> None:
        self._base_url = base_url
        self._name = name
        self._timeout = timeout
        self._http = httpx.Client(timeout=timeout)

    @property
    def name(self) -> str:
        """The processor's name, such as ``default`` or ``fallback``."""
        return self._name

    def process_payment(self, payment: Payment, timeout: float | None = None) -> None:
        """Submit a payment; raise ProcessorError unless the processor accepts it."""
        effective = self._timeout if timeout is None else min(timeout, self._timeout)
        if effective <= 0:
            raise ProcessorError("deadline exceeded before the request was sent")
        try:
            response = self._http.post(
                f"{self._base_url}/payments",
                json=payment.to_dict(),
                timeout=effective,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise ProcessorError(f"error executing request: {exc}") from exc

        if not 200 <= response.status_code < 300:
            raise ProcessorError(f"invalid processor response: {response.status_code}")

    def check_health(self, timeout: float | None = None) -> HealthStatus:
        """Fetch the processor's reported health."""
        effective = _HEALTH_TIMEOUT if timeout is None else min(timeout, _HEALTH_TIMEOUT)
        if effective <= 0:
            raise ProcessorError("deadline exceeded before the request was sent")
        try:
            response = self._http.get(
                f"{self._base_url}/payments/service-health",
                timeout=effective,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise ProcessorError(f"error executing request: {exc}") from exc

        if response.status_code != 200:
            raise ProcessorError(f"invalid response: {response.status_code}")

        try:
            return parse_health_status(response.json())
        except ValueError as exc:
            raise ProcessorError(f"error decoding response: {exc}") from exc

    def close(self) -> None:
        """Release the underlying connections."""
        self._http.close()

    def __enter__(self) -> ProcessorClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()