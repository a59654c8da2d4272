"""
Local static server the headless browser renders routes against.

- Serves the built site, dot-files included
- Falls back to the root index.html for unknown paths so client routing works
- Compresses text assets with brotli/gzip when the client accepts it
- Optionally speaks HTTPS with a throwaway self-signed certificate
"""
from __future__ import annotations

import asyncio
import contextlib
import gzip
import io
import os
import socket
import ssl
import sys
import threading
from functools import partial
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from typing import Optional

import brotli

from .options import DEFAULT_PORT
from .tls import generate_self_signed_cert, server_context

INDEX_DOCUMENT = "index.html"
COMPRESSIBLE_EXTENSIONS = {".html", ".htm", ".css", ".js", ".mjs", ".json", ".svg"}


class StaticHandler(SimpleHTTPRequestHandler):
    # Extend MIME map for common modern types
    extensions_map = {
        **getattr(SimpleHTTPRequestHandler, "extensions_map", {}),
        ".js": "application/javascript",
        ".mjs": "application/javascript",
        ".json": "application/json",
        ".wasm": "application/wasm",
        "": "application/octet-stream",
    }

    def end_headers(self):
        self.send_header("Cache-Control", "no-store, no-cache, must-revalidate, max-age=0")
        super().end_headers()

    def log_message(self, fmt, *args):
        if getattr(self.server, "log_requests", False):
            sys.stdout.write("[HTTP] " + (fmt % args) + "\n")

    def _apply_spa_fallback(self):
        """Point self.path at the root index document when nothing on disk matches."""
        fs_path = self.translate_path(self.path)
        if os.path.isfile(fs_path):
            return
        if os.path.isdir(fs_path) and os.path.isfile(os.path.join(fs_path, INDEX_DOCUMENT)):
            return
        self.path = "/" + INDEX_DOCUMENT

    def _accepted_encoding(self) -> Optional[str]:
        accept = self.headers.get("Accept-Encoding", "") or ""
        tokens = {t.split(";", 1)[0].strip().lower() for t in accept.split(",")}
        if "br" in tokens:
            return "br"
        if "gzip" in tokens:
            return "gzip"
        return None

    def _send_compressed(self, fs_path: str, encoding: str):
        with open(fs_path, "rb") as f:
            raw = f.read()
        if encoding == "br":
            data = brotli.compress(raw)
        else:
            buf = io.BytesIO()
            with gzip.GzipFile(fileobj=buf, mode="wb", compresslevel=6) as gz:
                gz.write(raw)
            data = buf.getvalue()
        self.send_response(200)
        self.send_header("Content-Type", self.guess_type(fs_path))
        self.send_header("Content-Encoding", encoding)
        self.send_header("Vary", "Accept-Encoding")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def do_GET(self):
        self._apply_spa_fallback()
        fs_path = self.translate_path(self.path)
        if os.path.isdir(fs_path) and self.path.split("?", 1)[0].endswith("/"):
            fs_path = os.path.join(fs_path, INDEX_DOCUMENT)
        _, ext = os.path.splitext(fs_path)
        if os.path.isfile(fs_path) and ext.lower() in COMPRESSIBLE_EXTENSIONS:
            encoding = self._accepted_encoding()
            if encoding:
                return self._send_compressed(fs_path, encoding)
        return super().do_GET()

    def do_HEAD(self):
        self._apply_spa_fallback()
        return super().do_HEAD()


class PrerenderHTTPServer(ThreadingHTTPServer):
    daemon_threads = True
    log_requests = False

    def finish_request(self, request, client_address):
        # TLS handshake runs on the request thread, not the accept loop
        if isinstance(request, ssl.SSLSocket):
            request.do_handshake()
        super().finish_request(request, client_address)

    def handle_error(self, request, client_address):
        # Clients rejecting the self-signed cert or hanging up early are routine
        if isinstance(sys.exc_info()[1], (ssl.SSLError, ConnectionError)):
            return
        super().handle_error(request, client_address)


def find_free_port(preferred: int = DEFAULT_PORT, host: str = "127.0.0.1", tries: int = 100) -> int:
    """Return `preferred` if it can be bound, otherwise the next free port above it.

    A preferred port of 0 lets the OS pick one.
    """
    if preferred == 0:
        with contextlib.closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
            s.bind((host, 0))
            return s.getsockname()[1]
    last = min(preferred + tries, 65536)
    for port in range(preferred, last):
        with contextlib.closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
            # Match the listener, which also sets SO_REUSEADDR
            s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            try:
                s.bind((host, port))
            except OSError:
                continue
            return port
    raise OSError(f"No free port found between {preferred} and {last - 1}")


class LocalServer:
    """A static file server running on a background thread."""

    def __init__(
        self,
        static_dir: str,
        port: int,
        use_https: bool = False,
        host: str = "127.0.0.1",
        log_requests: bool = False,
    ):
        self.static_dir = static_dir
        self.port = port
        self.use_https = use_https
        self.host = host
        self.log_requests = log_requests
        self.httpd: Optional[PrerenderHTTPServer] = None
        self.thread: Optional[threading.Thread] = None
        self._ready = threading.Event()

    @property
    def url(self) -> str:
        scheme = "https" if self.use_https else "http"
        return f"{scheme}://localhost:{self.port}"

    def start(self):
        if self.httpd is not None:
            raise RuntimeError("Server already started")
        handler = partial(StaticHandler, directory=self.static_dir)
        # Binding happens here; OSError (port in use) propagates to the caller
        httpd = PrerenderHTTPServer((self.host, self.port), handler)
        httpd.log_requests = self.log_requests
        if self.use_https:
            try:
                cert_pem, key_pem = generate_self_signed_cert()
                ctx = server_context(cert_pem, key_pem)
                httpd.socket = ctx.wrap_socket(httpd.socket, server_side=True, do_handshake_on_connect=False)
            except BaseException:
                httpd.server_close()
                raise
        self.httpd = httpd
        self.port = httpd.server_address[1]
        self._ready.clear()
        self.thread = threading.Thread(target=self._serve, args=(httpd,), daemon=True)
        self.thread.start()

    def _serve(self, httpd: PrerenderHTTPServer):
        self._ready.set()
        httpd.serve_forever(poll_interval=0.1)

    async def wait_until_ready(self, timeout: float = 10.0):
        if self.httpd is None:
            raise RuntimeError("Server not started")
        ready = await asyncio.to_thread(self._ready.wait, timeout)
        if not ready:
            raise TimeoutError(f"Server on port {self.port} did not start within {timeout}s")

    def stop(self):
        httpd, self.httpd = self.httpd, None
        if httpd:
            self._ready.wait(timeout=5)
            httpd.shutdown()
            httpd.server_close()
        if self.thread:
            self.thread.join(timeout=2)
            self.thread = None
