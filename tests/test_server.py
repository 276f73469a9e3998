import socket
import threading
import time

import httpx
import pytest

from rinhapay.server import Server


def hello_app(environ, start_response):
    start_response("200 OK", [("Content-Type", "text/plain")])
    return [b"hello " + environ["PATH_INFO"].encode()]


def _free_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def _get(url):
    for _ in range(200):
        try:
            return httpx.get(url, timeout=2.0)
        except httpx.ConnectError:
            time.sleep(0.05)
    raise AssertionError(f"server at {url} never answered")


@pytest.fixture
def running():
    port = _free_port()
    server = Server(port, hello_app, host="127.0.0.1")
    thread = threading.Thread(target=server.start, daemon=True)
    thread.start()
    yield server, port, thread
    server.shutdown()
    thread.join(5)


def test_serves_application(running):
    _, port, _ = running
    response = _get(f"http://127.0.0.1:{port}/ping")
    assert response.status_code == 200
    assert response.text == "hello /ping"


def test_shutdown_stops_serving(running):
    server, port, thread = running
    assert _get(f"http://127.0.0.1:{port}/").status_code == 200
    server.shutdown()
    thread.join(5)
    assert not thread.is_alive()
    with pytest.raises(httpx.ConnectError):
        httpx.get(f"http://127.0.0.1:{port}/", timeout=2.0)


def test_port_given_as_text(running):
    port = _free_port()
    server = Server(str(port), hello_app, host="127.0.0.1")
    thread = threading.Thread(target=server.start, daemon=True)
    thread.start()
    try:
        assert _get(f"http://127.0.0.1:{port}/text").text == "hello /text"
    finally:
        server.shutdown()
        thread.join(5)
    assert not thread.is_alive()


def test_start_after_shutdown_is_refused():
    server = Server(_free_port(), hello_app, host="127.0.0.1")
    server.shutdown()
    with pytest.raises(RuntimeError):
        server.start()


def test_start_fails_when_port_is_taken():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as holder:
        holder.bind(("127.0.0.1", 0))
        holder.listen()
        port = holder.getsockname()[1]
        server = Server(port, hello_app, host="127.0.0.1")
        with pytest.raises(OSError):
            server.start()