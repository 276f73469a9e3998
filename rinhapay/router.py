"""HTTP routes for submitting payments and reading their summary."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Any

from flask import Flask, jsonify, request

from rinhapay.models import (
    InvalidRequestError,
    Payment,
    PaymentResponse,
    parse_payment_request,
)
from rinhapay.repository import RepositoryError

_RFC3339 = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:\d{2})$"
)


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp; raise ValueError if it is not one."""
    match = _RFC3339.match(value)
    if match is None:
        raise ValueError(f"not an RFC 3339 timestamp: {value!r}")
    year, month, day, hour, minute, second, fraction, offset = match.groups()

    if offset == "Z":
        zone = timezone.utc
    else:
        sign = 1 if offset[0] == "+" else -1
        hours, minutes = int(offset[1:3]), int(offset[4:6])
        if hours > 23 or minutes > 59:
            raise ValueError(f"invalid time zone offset: {offset!r}")
        zone = timezone(sign * timedelta(hours=hours, minutes=minutes))

    microsecond = int((fraction or "0")[:6].ljust(6, "0"))
    return datetime(
        int(year),
        int(month),
        int(day),
        int(hour),
        int(minute),
        int(second),
        microsecond,
        tzinfo=zone,
    )


def _optional_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return parse_timestamp(value)
    except ValueError:
        return None


def create_app(strategy: Any, repo: Any) -> Flask:
    """Build the web application that accepts payments and reports summaries."""
    app = Flask(__name__)

    @app.post("/payments")
    def handle_payment():
        body = request.get_json(force=True, silent=True)
        try:
            submitted = parse_payment_request(body)
        except InvalidRequestError:
            return jsonify(error="Invalid request format"), 400

        payment = Payment(
            correlation_id=submitted.correlation_id,
            amount=submitted.amount,
            requested_at=datetime.now(timezone.utc),
        )

        try:
            repo.save_payment(payment)
        except RepositoryError:
            return jsonify(error="Failed to save payment"), 500

        strategy.process_payment_async(payment)

        return jsonify(PaymentResponse(message="Payment processing initiated").to_dict()), 201

    @app.get("/payments-summary")
    def handle_summary():
        start = _optional_timestamp(request.args.get("from"))
        end = _optional_timestamp(request.args.get("to"))

        try:
            summary = repo.get_summary(start, end)
        except RepositoryError:
            return jsonify(error="Failed to get summary"), 500

        return jsonify(summary.to_dict()), 200

    return app