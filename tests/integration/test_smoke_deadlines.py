"""Integration tests — smoke-test time bounds against real sockets."""

from __future__ import annotations

import socket
import threading
import time
from http.server import BaseHTTPRequestHandler, HTTPServer
from socketserver import ThreadingMixIn

import pytest

from tests.helpers.fakes import FakeRunner
from workshop_pack.core.models import ProbeResult
from workshop_pack.ops import smoke
from workshop_pack.ops.smoke import SmokeTimeouts, run_smoke_test

BODY_BYTES = 40
BYTE_INTERVAL = 0.25

TIMEOUTS = SmokeTimeouts(
    process=0.5, ports=0.5, readiness=1, sample=1, ui=1, public_ip=1, external=1,
)


class TrickleHandler(BaseHTTPRequestHandler):
    """Sends headers at once, then the body one byte at a time."""

    def do_GET(self):
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(BODY_BYTES))
        self.end_headers()
        try:
            for _ in range(BODY_BYTES):
                if self.server.stopping.is_set():
                    return
                self.wfile.write(b" ")
                self.wfile.flush()
                time.sleep(BYTE_INTERVAL)
        except (BrokenPipeError, ConnectionResetError):
            pass

    def log_message(self, format, *args):
        pass


class TrickleServer(ThreadingMixIn, HTTPServer):
    daemon_threads = True
    allow_reuse_address = True

    def __init__(self):
        super().__init__(("127.0.0.1", 0), TrickleHandler)
        self.stopping = threading.Event()

    @property
    def port(self) -> int:
        return self.server_address[1]


@pytest.fixture
def trickle_server():
    server = TrickleServer()
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.stopping.set()
    server.shutdown()
    server.server_close()


@pytest.fixture
def closed_port():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


class TestSmokeDeadlines:
    def test_trickling_server_cannot_stretch_the_run(self, trickle_server, monkeypatch):
        monkeypatch.setattr(smoke, "PUBLIC_IP_URL", f"http://127.0.0.1:{trickle_server.port}/ip")

        started = time.monotonic()
        report = run_smoke_test(
            api_port=trickle_server.port, timeouts=TIMEOUTS, runner=FakeRunner(),
        )
        elapsed = time.monotonic() - started

        assert elapsed <= TIMEOUTS.total
        ready = report.get(f"http://localhost:{trickle_server.port}/ready")
        assert ready.result is ProbeResult.FAIL
        assert "timed out" in ready.detail
        sample = report.get(f"http://localhost:{trickle_server.port}/api/v1/recipe")
        assert sample.result is ProbeResult.FAIL
        assert "timed out" in sample.detail

    def test_unreachable_endpoints_finish_within_budget(self, closed_port, monkeypatch):
        monkeypatch.setattr(smoke, "PUBLIC_IP_URL", f"http://127.0.0.1:{closed_port}/ip")

        started = time.monotonic()
        report = run_smoke_test(api_port=closed_port, timeouts=TIMEOUTS, runner=FakeRunner())
        elapsed = time.monotonic() - started

        assert elapsed <= TIMEOUTS.total
        failed = {p.target for p in report.failed}
        assert f"http://localhost:{closed_port}/ready" in failed
        assert f"http://localhost:{closed_port}/api/v1/recipe" in failed
        assert f"http://127.0.0.1:{closed_port}/ip" in failed
