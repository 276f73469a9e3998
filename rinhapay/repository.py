"""Persistent record of accepted payments and their summaries."""

from __future__ import annotations

import logging
import sqlite3
import threading
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal

from rinhapay.models import Payment, ProcessorSummary, SummaryResponse

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_DEFAULT_WINDOW = timedelta(hours=24)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS payments (
        correlation_id TEXT PRIMARY KEY,
        amount_cents INTEGER NOT NULL,
        requested_at INTEGER NOT NULL,
        processor TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_payments_requested_at ON payments(requested_at)",
    "CREATE INDEX IF NOT EXISTS idx_payments_processor ON payments(processor)",
)

_SUMMARY_QUERY = """
    SELECT processor, COUNT(*), COALESCE(SUM(amount_cents), 0)
    FROM payments
    WHERE requested_at BETWEEN ? AND ?
    GROUP BY processor
"""


class RepositoryError(Exception):
    """Raised when the payment store cannot be read or written."""


def _to_micros(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return (moment - _EPOCH) // timedelta(microseconds=1)


def _to_cents(amount: float) -> int:
    return int(Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP) * 100)


class Repository:
    """Stores payments in an SQLite database and sums them per processor."""

    def __init__(self, path: str = ":memory:") -> None:
        self._lock = threading.Lock()
        self._cache: dict[str, Payment] = {}
        try:
            self._db = sqlite3.connect(path, check_same_thread=False)
            with self._db:
                for statement in _SCHEMA:
                    self._db.execute(statement)
        except sqlite3.Error as exc:
            raise RepositoryError(f"cannot open payment store: {exc}") from exc
        logger.info("payment store ready at %s", path)

    def save_payment(self, payment: Payment) -> None:
        """Record a payment; a second payment with the same id is ignored."""
        if not payment.processed_by:
            payment = replace(payment, processed_by="simulated")
        if payment.requested_at is None:
            payment = replace(payment, requested_at=datetime.now(timezone.utc))

        with self._lock:
            self._cache[payment.correlation_id] = payment
            try:
                with self._db:
                    self._db.execute(
                        "INSERT OR IGNORE INTO payments "
                        "(correlation_id, amount_cents, requested_at, processor) "
                        "VALUES (?, ?, ?, ?)",
                        (
                            payment.correlation_id,
                            _to_cents(payment.amount),
                            _to_micros(payment.requested_at),
                            payment.processed_by,
                        ),
                    )
            except sqlite3.Error as exc:
                logger.error("failed to save payment: %s", exc)
                raise RepositoryError(f"failed to save payment: {exc}") from exc

        logger.info(
            "payment %s saved with processor %s", payment.correlation_id, payment.processed_by
        )

    def get_summary(
        self, start: datetime | None = None, end: datetime | None = None
    ) -> SummaryResponse:
        """Sum payments requested between start and end, both inclusive.

        Without bounds the last 24 hours are summed. Simulated payments count
        towards the default processor.
        """
        now = datetime.now(timezone.utc)
        lower = start if start is not None else now - _DEFAULT_WINDOW
        upper = end if end is not None else now

        with self._lock:
            try:
                rows = self._db.execute(
                    _SUMMARY_QUERY, (_to_micros(lower), _to_micros(upper))
                ).fetchall()
            except sqlite3.Error as exc:
                logger.error("failed to query payments: %s", exc)
                raise RepositoryError(f"failed to query payments: {exc}") from exc

        totals = {"default": [0, 0], "fallback": [0, 0]}
        for processor, requests, cents in rows:
            bucket = "default" if processor == "simulated" else processor
            if bucket in totals:
                totals[bucket][0] += requests
                totals[bucket][1] += cents

        return SummaryResponse(
            default=ProcessorSummary(totals["default"][0], totals["default"][1] / 100),
            fallback=ProcessorSummary(totals["fallback"][0], totals["fallback"][1] / 100),
        )

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self._db.close()

    def __enter__(self) -> Repository:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()