"""Static file server for the page under test."""

from __future__ import annotations

import functools
import http.server
import logging
import threading
from pathlib import Path

logger = logging.getLogger(__name__)


class _QuietHandler(http.server.SimpleHTTPRequestHandler):
    def log_message(self, format, *args):  # noqa: A002
        logger.debug("%s - %s", self.address_string(), format % args)


class _HTTPServer(http.server.ThreadingHTTPServer):
    # Only one run may own the port at a time
    allow_reuse_port = False


class StaticServer:
    """Serves a directory over HTTP on a background thread.

    Usable as a context manager; ``close`` may be called any number of times
    and releases the socket only on the first call.
    """

    def __init__(self, directory: str | Path, host: str = "localhost", port: int = 8080):
        self.directory = Path(directory)
        self.host = host
        self.port = port
        self._httpd: _HTTPServer | None = None
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._httpd is not None

    def url_for(self, page: str) -> str:
        return f"http://{self.host}:{self.port}/{page.lstrip('/')}"

    def start(self) -> "StaticServer":
        if self._httpd is not None:
            return self
        if not self.directory.is_dir():
            raise FileNotFoundError(f"Serve directory not found: {self.directory}")

        handler = functools.partial(_QuietHandler, directory=str(self.directory))
        self._httpd = _HTTPServer((self.host, self.port), handler)
        # Port 0 asks the OS for a free port
        self.port = self._httpd.server_address[1]
        self._thread = threading.Thread(target=self._httpd.serve_forever, daemon=True)
        self._thread.start()
        logger.info("Serving %s at http://%s:%d/", self.directory, self.host, self.port)
        return self

    def close(self) -> None:
        httpd, self._httpd = self._httpd, None
        if httpd is None:
            return
        httpd.shutdown()
        httpd.server_close()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None
        logger.debug("Static server on port %d closed", self.port)

    def __enter__(self) -> "StaticServer":
        return self.start()

    def __exit__(self, *exc) -> None:
        self.close()
