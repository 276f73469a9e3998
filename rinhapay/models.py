"""Payment, summary and health-status records exchanged by the service."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

_UUID4 = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$"
)


class InvalidRequestError(ValueError):
    """Raised when an incoming document does not have the expected shape."""


@dataclass(frozen=True)
class Payment:
    """A payment accepted by the service."""

    correlation_id: str
    amount: float
    requested_at: datetime | None = None
    processed_by: str = ""

    def to_dict(self) -> dict[str, Any]:
        """The JSON document sent to a payment processor."""
        moment = self.requested_at
        if moment is not None:
            if moment.tzinfo is None:
                moment = moment.replace(tzinfo=timezone.utc)
            moment = moment.isoformat().replace("+00:00", "Z")
        return {"correlationId": self.correlation_id, "amount": self.amount, "requestedAt": moment}


@dataclass(frozen=True)
class PaymentRequest:
    correlation_id: str
    amount: float


@dataclass(frozen=True)
class PaymentResponse:
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message}


@dataclass(frozen=True)
class ProcessorSummary:
    total_requests: int = 0
    total_amount: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"totalRequests": self.total_requests, "totalAmount": self.total_amount}


@dataclass(frozen=True)
class SummaryResponse:
    default: ProcessorSummary = field(default_factory=ProcessorSummary)
    fallback: ProcessorSummary = field(default_factory=ProcessorSummary)

    def to_dict(self) -> dict[str, Any]:
        return {"default": self.default.to_dict(), "fallback": self.fallback.to_dict()}


@dataclass(frozen=True)
class HealthStatus:
    failing: bool
    min_response_time: int = 0


def parse_payment_request(data: Any) -> PaymentRequest:
    """Validate a decoded JSON body and return the payment request it holds."""
    if not isinstance(data, Mapping):
        raise InvalidRequestError("request body must be a JSON object")
    correlation_id = data.get("correlationId")
    if not isinstance(correlation_id, str) or not _UUID4.match(correlation_id):
        raise InvalidRequestError("correlationId must be a version 4 UUID")
    amount = data.get("amount")
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise InvalidRequestError("amount must be a number")
    if not amount > 0:
        raise InvalidRequestError("amount must be greater than zero")
    return PaymentRequest(correlation_id=correlation_id, amount=float(amount))


def parse_health_status(data: Any) -> HealthStatus:
    """Build a health status from a processor's decoded health document."""
    if not isinstance(data, Mapping):
        raise InvalidRequestError("health document must be a JSON object")
    failing = data.get("failing", False)
    if not isinstance(failing, bool):
        raise InvalidRequestError("failing must be a boolean")
    min_response_time = data.get("minResponseTime", 0)
    if isinstance(min_response_time, bool) or not isinstance(min_response_time, int):
        raise InvalidRequestError("minResponseTime must be an integer")
    return HealthStatus(failing=failing, min_response_time=min_response_time)