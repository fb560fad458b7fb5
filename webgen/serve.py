"""
serve.py

Responsibility: Serve the output directory as plain static files over HTTP.
"""

from __future__ import annotations

import logging
from functools import partial
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

from webgen.errors import ConfigError, ServeError

logger = logging.getLogger(__name__)


def parse_addr(addr: str) -> tuple[str, int]:
    """
    Split `host:port` (or `:port`) into its parts. An empty host binds all
    interfaces.
    """
    host, sep, port = addr.strip().rpartition(":")
    if not sep:
        host, port = "", addr.strip()
    try:
        number = int(port)
    except ValueError:
        raise ConfigError(f"Invalid HTTP address {addr!r} (expected host:port or :port)") from None
    if not 0 <= number <= 65535:
        raise ConfigError(f"Invalid HTTP port in {addr!r}")
    return host.strip("[]"), number


def make_server(out_dir: str | Path, addr: str) -> ThreadingHTTPServer:
    host, port = parse_addr(addr)
    handler = partial(SimpleHTTPRequestHandler, directory=str(out_dir))
    try:
        return ThreadingHTTPServer((host, port), handler)
    except OSError as e:
        raise ServeError(f"Cannot listen on {addr}: {e}") from e


def serve(out_dir: str | Path, addr: str) -> None:
    """Block serving `out_dir` on `addr` until interrupted or the server fails."""
    server = make_server(out_dir, addr)
    logger.info("Listening on HTTP %s", addr)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("HTTP server stopped")
    except OSError as e:
        raise ServeError(f"HTTP server failed: {e}") from e
    finally:
        server.server_close()
