import json
import uuid
from datetime import datetime, timezone

import httpx
import pytest
import respx

from rinhapay.client import ProcessorClient, ProcessorError
from rinhapay.models import HealthStatus, Payment

BASE = "http://default.test"


def _payment():
    moment = datetime(2024, 3, 4, 5, 6, 7, tzinfo=timezone.utc)
    return Payment(str(uuid.uuid4()), 19.9, moment)


def test_process_payment_posts_payment_json():
    payment = _payment()
    with respx.mock:
        route = respx.post(f"{BASE}/payments").mock(return_value=httpx.Response(200))
        with ProcessorClient(BASE, "default", 5.0) as client:
            client.process_payment(payment)
    assert route.call_count == 1
    request = route.calls.last.request
    assert json.loads(request.content) == payment.to_dict()
    assert request.headers["content-type"] == "application/json"


def test_process_payment_accepts_any_2xx():
    with respx.mock:
        route = respx.post(f"{BASE}/payments").mock(return_value=httpx.Response(201))
        with ProcessorClient(BASE, "default", 5.0) as client:
            client.process_payment(_payment())
    assert route.called


@pytest.mark.parametrize("status", [400, 422, 500, 503])
def test_process_payment_rejects_error_status(status):
    with respx.mock:
        respx.post(f"{BASE}/payments").mock(return_value=httpx.Response(status))
        with ProcessorClient(BASE, "default", 5.0) as client:
            with pytest.raises(ProcessorError, match=str(status)):
                client.process_payment(_payment())


def test_process_payment_wraps_transport_errors():
    with respx.mock:
        respx.post(f"{BASE}/payments").mock(side_effect=httpx.ConnectError("refused"))
        with ProcessorClient(BASE, "default", 5.0) as client:
            with pytest.raises(ProcessorError):
                client.process_payment(_payment())


def test_process_payment_uses_shorter_deadline():
    with respx.mock:
        route = respx.post(f"{BASE}/payments").mock(return_value=httpx.Response(200))
        with ProcessorClient(BASE, "default", 5.0) as client:
            client.process_payment(_payment(), timeout=0.3)
    assert route.calls.last.request.extensions["timeout"]["read"] == pytest.approx(0.3)


def test_check_health_returns_reported_status():
    with respx.mock:
        respx.get(f"{BASE}/payments/service-health").mock(
            return_value=httpx.Response(200, json={"failing": False, "minResponseTime": 7})
        )
        with ProcessorClient(BASE, "default", 5.0) as client:
            status = client.check_health()
    assert status == HealthStatus(failing=False, min_response_time=7)


def test_check_health_caps_timeout():
    with respx.mock:
        route = respx.get(f"{BASE}/payments/service-health").mock(
            return_value=httpx.Response(200, json={"failing": True, "minResponseTime": 0})
        )
        with ProcessorClient(BASE, "default", 30.0) as client:
            client.check_health(timeout=10.0)
    assert route.calls.last.request.extensions["timeout"]["read"] == pytest.approx(2.0)


def test_check_health_rejects_non_200():
    with respx.mock:
        respx.get(f"{BASE}/payments/service-health").mock(return_value=httpx.Response(429))
        with ProcessorClient(BASE, "default", 5.0) as client:
            with pytest.raises(ProcessorError, match="429"):
                client.check_health()


def test_check_health_rejects_undecodable_body():
    with respx.mock:
        respx.get(f"{BASE}/payments/service-health").mock(
            return_value=httpx.Response(200, content=b"nope")
        )
        with ProcessorClient(BASE, "default", 5.0) as client:
            with pytest.raises(ProcessorError):
                client.check_health()


def test_check_health_with_expired_deadline_raises():
    with respx.mock:
        with ProcessorClient(BASE, "default", 5.0) as client:
            with pytest.raises(ProcessorError):
                client.check_health(timeout=0)


def test_name_is_reported():
    with ProcessorClient(BASE, "fallback", 1.0) as client:
        assert client.name == "fallback"