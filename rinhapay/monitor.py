"""Periodic health checking of the default and fallback processors."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import replace
from typing import Protocol

from rinhapay.client import ProcessorError
from rinhapay.models import HealthStatus

logger = logging.getLogger(__name__)

_CHECK_BUDGET = 3.0


class _HealthSource(Protocol):
    def check_health(self, timeout: float | None = None) -> HealthStatus: ...


def _unknown() -> HealthStatus:
    return HealthStatus(failing=True, min_response_time=0)


class HealthMonitor:
    """Keeps the latest health of both processors, refreshed on an interval."""

    def __init__(
        self,
        default_client: _HealthSource,
        fallback_client: _HealthSource,
        interval: float,
        pause: float = 1.0,
    ) -> None:
        self._default_client = default_client
        self._fallback_client = fallback_client
        self._interval = interval
        self._pause = pause
        self._default_status = _unknown()
        self._fallback_status = _unknown()
        self._lock = threading.Lock()
        self._stopped = threading.Event()

    def start(self) -> None:
        """Run checks every interval until stop() is called; blocks."""
        self._spawn_check()
        while not self._stopped.wait(self._interval):
            self._spawn_check()

    def stop(self) -> None:
        """Make start() return."""
        self._stopped.set()

    def check_health(self) -> None:
        """Probe both processors once and record what was found."""
        deadline = time.monotonic() + _CHECK_BUDGET

        status = self._probe(self._default_client, "default", deadline)
        with self._lock:
            self._default_status = status

        # Spacing the two probes keeps the processors' rate limits happy.
        time.sleep(self._pause)

        status = self._probe(self._fallback_client, "fallback", deadline)
        with self._lock:
            self._fallback_status = status

    @property
    def default_status(self) -> HealthStatus:
        with self._lock:
            return self._default_status

    @property
    def fallback_status(self) -> HealthStatus:
        with self._lock:
            return self._fallback_status

    def _spawn_check(self) -> None:
        threading.Thread(target=self.check_health, name="health-check", daemon=True).start()

    @staticmethod
    def _probe(client: _HealthSource, label: str, deadline: float) -> HealthStatus:
        started = time.monotonic()
        remaining = deadline - started
        try:
            if remaining <= 0:
                raise ProcessorError("health check deadline exceeded")
            status = client.check_health(timeout=remaining)
        except ProcessorError as exc:
            logger.warning("health check of the %s processor failed: %s", label, exc)
            return _unknown()

        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.info("%s processor answered in %dms", label, elapsed_ms)
        return replace(status, min_response_time=elapsed_ms)