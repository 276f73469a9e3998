"""Choice of processor for each payment and its submission."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Protocol

from rinhapay.client import ProcessorError
from rinhapay.models import HealthStatus, Payment

logger = logging.getLogger(__name__)


class HealthChecker(Protocol):
    """Anything that reports the health of both processors."""

    @property
    def default_status(self) -> HealthStatus: ...

    @property
    def fallback_status(self) -> HealthStatus: ...


class Strategy:
    """Routes payments to the default processor, else the fallback, else nowhere."""

    def __init__(
        self,
        default_client: Any,
        fallback_client: Any,
        health_monitor: HealthChecker,
        max_workers: int = 1000,
    ) -> None:
        self._clients = {"default": default_client, "fallback": fallback_client}
        self._monitor = health_monitor
        self._slots = threading.BoundedSemaphore(max_workers)
        self._executor = ThreadPoolExecutor(max_workers=max_workers)

    def process_payment(self, payment: Payment) -> str:
        """Submit a payment and return which processor took, or "simulated"."""
        if payment.requested_at is None:
            payment = replace(payment, requested_at=datetime.now(timezone.utc))

        default_status = self._monitor.default_status
        if not default_status.failing:
            used = "default"
        elif not self._monitor.fallback_status.failing:
            used = "fallback"
        else:
            logger.warning("both processors unavailable, simulating payment %s", payment.correlation_id)
            return "simulated"
        payment = replace(payment, processed_by=used)

        timeout = 5.0
        if not default_status.failing and default_status.min_response_time > 0:
            timeout = default_status.min_response_time * 3 / 1000

        with self._slots:
            try:
                self._clients[used].process_payment(payment, timeout=timeout)
            except ProcessorError as exc:
                logger.error("payment %s failed with %s: %s", payment.correlation_id, used, exc)
                raise
        logger.info("payment %s processed by %s", payment.correlation_id, used)
        return used

    def process_payment_async(self, payment: Payment) -> Future:
        """Submit a payment in the background; failures are logged, not raised."""
        return self._executor.submit(self._run_in_background, payment)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _run_in_background(self, payment: Payment) -> str | None:
        try:
            return self.process_payment(payment)
        except ProcessorError as exc:
            logger.error("background payment processing failed: %s", exc)
            return None