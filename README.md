# rinhapay

A small HTTP service that accepts payments, records them, and forwards
each one to a payment processor. Two processors are known: a *default*
one and a *fallback* one. A health monitor polls both, and each payment
goes to the default processor while it is healthy, to the fallback
processor when only that one is, and is not sent anywhere when neither
is available.

## HTTP interface

`POST /payments`

```json
{"correlationId": "4a7901b8-7d26-4d9d-aa19-4dc1c7cf60b3", "amount": 19.90}
```

The body must be a JSON object whose `correlationId` is a lower-case
version 4 UUID and whose `amount` is a number greater than zero;
otherwise the reply is `400` with `{"error": "Invalid request format"}`.
An accepted payment is stored, handed to the strategy's worker pool, and
answered with `201`:

```json
{"message": "Payment processing initiated"}
```

If the payment cannot be stored the reply is `500` with
`{"error": "Failed to save payment"}`.

`GET /payments-summary?from=<RFC 3339>&to=<RFC 3339>`

Both query parameters are optional and both bounds are inclusive.
Without `from` the window starts 24 hours ago; without `to` it ends now.
Values that are not RFC 3339 timestamps are ignored. The reply totals
the payments in the window per processor:

```json
{
  "default":  {"totalRequests": 3, "totalAmount": 59.7},
  "fallback": {"totalRequests": 0, "totalAmount": 0.0}
}
```

Payments are recorded when they are accepted, before a processor has
been chosen, so they are stored as simulated; simulated payments are
counted under `default`. Amounts are stored rounded to whole cents.

## Processor contract

`ProcessorClient` reaches a processor through its base URL:

- `POST {base}/payments` with `correlationId`, `amount` and
  `requestedAt` as JSON; any 2xx reply counts as success.
- `GET {base}/payments/service-health` returning
  `{"failing": false, "minResponseTime": 100}`.

Failures of either call raise `ProcessorError`.

## Modules

- `rinhapay.models` – the `Payment`, `PaymentRequest`,
  `PaymentResponse`, `ProcessorSummary`, `SummaryResponse` and
  `HealthStatus` records, with `parse_payment_request` and
  `parse_health_status` raising `InvalidRequestError` on bad input.
- `rinhapay.client` – `ProcessorClient` and `ProcessorError`.
- `rinhapay.monitor` – `HealthMonitor`. Both processors count as failing
  until the first check; `check_health()` probes them once, pausing
  between the two, and `start()` repeats that every interval until
  `stop()` is called. The recorded `min_response_time` is the measured
  answer time in milliseconds.
- `rinhapay.strategy` – `Strategy`, whose `process_payment` returns
  `"default"`, `"fallback"` or `"simulated"`, and whose
  `process_payment_async` runs it in a thread pool and logs failures.
- `rinhapay.repository` – `Repository`, an SQLite store (in memory by
  default) raising `RepositoryError`; a second payment with the same
  correlation id is ignored.
- `rinhapay.router` – `create_app(strategy, repo)`, returning the Flask
  application, and `parse_timestamp`.
- `rinhapay.server` – `Server`, a threaded WSGI server.

## Wiring it together

```python
import threading

from rinhapay.client import ProcessorClient
from rinhapay.monitor import HealthMonitor
from rinhapay.repository import Repository
from rinhapay.router import create_app
from rinhapay.server import Server
from rinhapay.strategy import Strategy

default_client = ProcessorClient("http://localhost:8001", "default", 5.0)
fallback_client = ProcessorClient("http://localhost:8002", "fallback", 5.0)

monitor = HealthMonitor(default_client, fallback_client, 5.0, 1.0)
threading.Thread(target=monitor.start, daemon=True).start()

strategy = Strategy(default_client, fallback_client, monitor, 1000)
repo = Repository("payments.db")

server = Server(9999, create_app(strategy, repo), "0.0.0.0")
try:
    server.start()
finally:
    server.shutdown()
    monitor.stop()
    strategy.shutdown(True)
    repo.close()
    default_client.close()
    fallback_client.close()
```

`HealthMonitor.start()` and `Server.start()` both block, which is why
the monitor runs in its own thread. The Flask application returned by
`create_app` can also be served by any WSGI server.

## What the package does not do

- It installs no command: the service is started from Python code as
  shown above.
- It reads no configuration from files or the environment; processor
  URLs, timeouts, the check interval, the port and the database path are
  all passed in by the caller.
- Storage is a local SQLite file or an in-memory database; no database
  server is used and there is no connection retrying.

## Tests

The test suite uses pytest and respx, available through the `test`
extra:

```
pip install -e .[test]
pytest
```