"""Threaded HTTP server hosting the payment application."""

from __future__ import annotations

import logging
import threading
from socketserver import ThreadingMixIn
from typing import Any
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

logger = logging.getLogger(__name__)


class _ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    pass


class _LoggingHandler(WSGIRequestHandler):
    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


class Server:
    """Serves a WSGI application on a port until shut down."""

    def __init__(self, port: int | str, app: Any, host: str = "") -> None:
        self._address = (host, int(port))
        self._app = app
        self._lock = threading.Lock()
        self._httpd: _ThreadingWSGIServer | None = None
        self._closed = False

    def start(self) -> None:
        """Bind and serve until shutdown() is called; blocks."""
        with self._lock:
            if self._closed:
                raise RuntimeError("server has been shut down")
            httpd = make_server(
                *self._address,
                self._app,
                server_class=_ThreadingWSGIServer,
                handler_class=_LoggingHandler,
            )
            self._httpd = httpd
        logger.info("listening on port %d", httpd.server_port)
        try:
            httpd.serve_forever(poll_interval=0.2)
        finally:
            httpd.server_close()

    def shutdown(self) -> None:
        """Stop serving and wait for the serving loop to end."""
        with self._lock:
            self._closed = True
            httpd = self._httpd
        if httpd is not None:
            httpd.shutdown()