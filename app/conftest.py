"""Pytest 配置文件"""

import asyncio
import json
import socket
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest


class EchoHandler(BaseHTTPRequestHandler):
    """Small JSON server used by the end-to-end tests.

    /echo      -> {"method": ..., "body": <parsed request body>}
    /headers   -> the request headers as a JSON object
    /empty     -> 200 with no body
    /invalid   -> 200 with the text "Invalid JSON"
    /missing   -> 404 with a JSON error body
    /slow      -> waits half a second, then answers like /echo
    """

    def _read_body(self) -> bytes:
        length = int(self.headers.get("Content-Length") or 0)
        return self.rfile.read(length) if length else b""

    def _send(self, status: int, payload: bytes, content_type: str = "application/json") -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        if payload:
            self.wfile.write(payload)

    def _handle(self) -> None:
        raw = self._read_body()
        if self.path == "/slow":
            time.sleep(0.5)

        if self.path in ("/echo", "/slow"):
            body = json.loads(raw or b"{}")
            self._send(200, json.dumps({"method": self.command, "body": body}).encode("utf-8"))
        elif self.path == "/headers":
            self._send(200, json.dumps(dict(self.headers.items())).encode("utf-8"))
        elif self.path == "/empty":
            self._send(200, b"")
        elif self.path == "/invalid":
            self._send(200, b"Invalid JSON")
        elif self.path == "/missing":
            self._send(404, b'{"error": "not found"}')
        else:
            self._send(200, b"")

    do_GET = _handle
    do_POST = _handle
    do_PUT = _handle
    do_DELETE = _handle

    def log_message(self, format, *args):
        pass


class QuietServer(ThreadingHTTPServer):
    daemon_threads = True

    def handle_error(self, request, client_address):
        # clients that time out close the socket mid-response
        pass


@pytest.fixture(scope="session")
def echo_server():
    """Base URL of a local HTTP server running for the whole test session."""
    server = QuietServer(("127.0.0.1", 0), EchoHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address[:2]
    yield f"http://{host}:{port}"
    server.shutdown()
    server.server_close()


@pytest.fixture
def unused_port():
    """A local port with no listener."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


class Outcomes:
    """Records what a request delivered to its two continuations."""

    def __init__(self):
        self.successes = []
        self.errors = []
        self.done = asyncio.Event()

    def on_success(self, result):
        self.successes.append(result)
        self.done.set()

    def on_error(self, result):
        self.errors.append(result)
        self.done.set()

    @property
    def count(self) -> int:
        return len(self.successes) + len(self.errors)

    async def wait(self, timeout: float = 5.0):
        await asyncio.wait_for(self.done.wait(), timeout)


@pytest.fixture
def outcomes():
    return Outcomes()
