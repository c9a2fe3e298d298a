"""First-go smoke test — bounded, read-only checks against a running workshop.

The sequence is linear: processes, listening ports, UI-port discovery,
API readiness, a sample API call plus the UI root, then an external
reachability hint. Every network call and command carries its own
timeout, each step is isolated from the others, and nothing is raised to
the caller: failures are recorded as probes.
"""

from __future__ import annotations

import ipaddress
import json
import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, fields
from typing import Any

import requests

from workshop_pack.core.logging import ScaffoldLogger
from workshop_pack.core.models import Probe, ProbeKind, ProbeResult, SmokeState
from workshop_pack.ops.commands import CommandRunner
from workshop_pack.ops.ports import DEFAULT_PORTS

logger = logging.getLogger(__name__)

PROCESS_PATTERNS: tuple[str, ...] = ("uvicorn", "streamlit")
UI_PORT_PRIORITY: tuple[int, ...] = (8501, 8502)
PUBLIC_IP_URL = "https://ifconfig.me"
SAMPLE_QUERY = {"cuisine": "Mexican", "dietary": "vegan"}
PREVIEW_LIMIT = 2


@dataclass(frozen=True)
class SmokeTimeouts:
    """Per-probe timeouts in seconds."""

    process: float = 5.0
    ports: float = 5.0
    readiness: float = 6.0
    sample: float = 12.0
    ui: float = 6.0
    public_ip: float = 3.0
    external: float = 6.0

    @property
    def total(self) -> float:
        # Two process probes share the per-process timeout.
        return sum(getattr(self, f.name) for f in fields(self)) + self.process


@dataclass
class SmokeReport:
    probes: list[Probe] = field(default_factory=list)
    state: SmokeState = field(default_factory=SmokeState)

    @property
    def failed(self) -> list[Probe]:
        return [p for p in self.probes if p.result is ProbeResult.FAIL]

    def get(self, target: str) -> Probe | None:
        return next((p for p in self.probes if p.target == target), None)


class DeadlineExceeded(requests.Timeout):
    """An HTTP call did not complete within its wall-clock timeout."""


def within_deadline(call: Callable[[], Any], timeout: float) -> Any:
    """Run ``call`` on a worker thread and wait at most ``timeout`` seconds.

    ``requests`` bounds each socket wait, not the whole exchange, so a server
    trickling its body can keep a call open far past ``timeout``. The worker
    is a daemon thread: an abandoned call never holds the process open.
    """
    outcome: dict[str, Any] = {}

    def run() -> None:
        try:
            outcome["value"] = call()
        except Exception as e:  # noqa: BLE001
            outcome["error"] = e

    worker = threading.Thread(target=run, name="smoke-probe", daemon=True)
    worker.start()
    worker.join(timeout)
    if worker.is_alive():
        raise DeadlineExceeded(f"no complete response within {timeout:g}s")
    if "error" in outcome:
        raise outcome["error"]
    return outcome["value"]


def _http_error(e: Exception) -> str:
    if isinstance(e, requests.Timeout):
        return "timed out"
    if isinstance(e, requests.ConnectionError):
        return "connection refused or unreachable"
    return f"{type(e).__name__}: {e}"


def _compact(data: Any, limit: int = 200) -> str:
    text = json.dumps(data, separators=(",", ":"), default=str)
    return text if len(text) <= limit else text[: limit - 3] + "..."


def normalize_base_path(base_path: str) -> str:
    base = "/" + base_path.strip().strip("/")
    return "" if base == "/" else base


def parse_listening_ports(output: str) -> set[int]:
    """Extract local ports from ``ss -ltn`` output."""
    ports: set[int] = set()
    for line in output.splitlines():
        parts = line.split()
        if len(parts) < 4 or parts[0] == "State":
            continue
        _, _, port = parts[3].rpartition(":")
        if port.isdigit():
            ports.add(int(port))
    return ports


def summarize_recipe_payload(data: Any) -> dict[str, Any]:
    """Reduce a recipe response to its shape: presence, counts and a short preview."""
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    ingredients = data.get("ingredients") or []
    products = data.get("products") or []
    preview = [
        {"displayName": p.get("displayName"), "price": p.get("price")}
        for p in products[:PREVIEW_LIMIT]
        if isinstance(p, dict)
    ]
    return {
        "ok": data.get("recipe") is not None,
        "ingredients_len": len(ingredients) if isinstance(ingredients, list) else 0,
        "products_preview": preview,
    }


# -- Probes --

def probe_process(pattern: str, runner: CommandRunner, timeout: float) -> Probe:
    result = runner.run(["pgrep", "-fa", pattern], timeout=timeout)
    if result.missing:
        return Probe(ProbeKind.PROCESS, pattern, timeout, ProbeResult.SKIPPED, "pgrep not available")
    if result.ok:
        first = result.stdout.strip().splitlines()[0] if result.stdout.strip() else ""
        return Probe(ProbeKind.PROCESS, pattern, timeout, ProbeResult.PASS, first)
    return Probe(ProbeKind.PROCESS, pattern, timeout, ProbeResult.FAIL, f"{pattern} not found")


def probe_listening_ports(
    expected: Iterable[int],
    state: SmokeState,
    runner: CommandRunner,
    timeout: float,
) -> Probe:
    expected = list(expected)
    target = "listening " + "/".join(map(str, expected))
    result = runner.run(["ss", "-ltn"], timeout=timeout)
    if not result.ok:
        reason = "ss not available" if result.missing else "ss failed"
        return Probe(ProbeKind.PORT, target, timeout, ProbeResult.FAIL, reason)
    bound = parse_listening_ports(result.stdout)
    state.listening_ports = [p for p in expected if p in bound]
    if not state.listening_ports:
        return Probe(ProbeKind.PORT, target, timeout, ProbeResult.FAIL, "none bound")
    detail = "bound: " + ", ".join(map(str, state.listening_ports))
    return Probe(ProbeKind.PORT, target, timeout, ProbeResult.PASS, detail)


def discover_ui_port(expected: Iterable[int], state: SmokeState) -> Probe:
    expected = set(expected)
    for port in UI_PORT_PRIORITY:
        if port in expected and port in state.listening_ports:
            state.discovered_ui_port = port
            return Probe(ProbeKind.PORT, "ui", 0.0, ProbeResult.PASS, f"UI_PORT={port}")
    return Probe(ProbeKind.PORT, "ui", 0.0, ProbeResult.SKIPPED, "UI_PORT=none")


def probe_readiness(api_port: int, http: Any, timeout: float) -> Probe:
    url = f"http://localhost:{api_port}/ready"
    try:
        resp = within_deadline(lambda: http.get(url, timeout=timeout), timeout)
    except requests.RequestException as e:
        return Probe(ProbeKind.HTTP, url, timeout, ProbeResult.FAIL, f"API /ready failed: {_http_error(e)}")
    if not resp.ok:
        return Probe(ProbeKind.HTTP, url, timeout, ProbeResult.FAIL, f"API /ready failed: HTTP {resp.status_code}")
    try:
        detail = _compact(resp.json())
    except ValueError:
        detail = resp.text.strip()[:200]
    return Probe(ProbeKind.HTTP, url, timeout, ProbeResult.PASS, detail)


def probe_sample(api_port: int, api_base_path: str, http: Any, timeout: float) -> Probe:
    url = f"http://localhost:{api_port}{normalize_base_path(api_base_path)}/recipe"
    try:
        resp = within_deadline(lambda: http.get(url, params=SAMPLE_QUERY, timeout=timeout), timeout)
    except requests.RequestException as e:
        return Probe(ProbeKind.HTTP, url, timeout, ProbeResult.FAIL, f"API sample failed: {_http_error(e)}")
    if not resp.ok:
        return Probe(ProbeKind.HTTP, url, timeout, ProbeResult.FAIL, f"API sample failed: HTTP {resp.status_code}")
    try:
        shape = summarize_recipe_payload(resp.json())
    except ValueError as e:
        return Probe(ProbeKind.HTTP, url, timeout, ProbeResult.FAIL, f"API sample failed: {e}")
    return Probe(ProbeKind.HTTP, url, timeout, ProbeResult.PASS, _compact(shape, limit=400))


def probe_ui_root(state: SmokeState, http: Any, timeout: float) -> Probe:
    if state.discovered_ui_port is None:
        return Probe(ProbeKind.HTTP, "ui /", timeout, ProbeResult.SKIPPED, "no UI port listening")
    url = f"http://localhost:{state.discovered_ui_port}/"
    try:
        resp = within_deadline(lambda: http.get(url, timeout=timeout), timeout)
    except requests.RequestException as e:
        return Probe(ProbeKind.HTTP, url, timeout, ProbeResult.FAIL, _http_error(e))
    result = ProbeResult.PASS if resp.status_code < 400 else ProbeResult.FAIL
    return Probe(ProbeKind.HTTP, url, timeout, result, f"-> {resp.status_code}")


def probe_public_ip(state: SmokeState, http: Any, timeout: float) -> Probe:
    try:
        resp = within_deadline(lambda: http.get(PUBLIC_IP_URL, timeout=timeout), timeout)
        candidate = resp.text.strip() if resp.ok else ""
        ipaddress.ip_address(candidate)
    except requests.RequestException as e:
        return Probe(ProbeKind.HTTP, PUBLIC_IP_URL, timeout, ProbeResult.FAIL, f"Public IP: unknown ({_http_error(e)})")
    except ValueError:
        return Probe(ProbeKind.HTTP, PUBLIC_IP_URL, timeout, ProbeResult.FAIL, "Public IP: unknown")
    state.public_ip = candidate
    return Probe(ProbeKind.HTTP, PUBLIC_IP_URL, timeout, ProbeResult.PASS, f"Public IP: {candidate}")


def probe_external_head(state: SmokeState, http: Any, timeout: float) -> Probe:
    if state.public_ip is None or state.discovered_ui_port is None:
        return Probe(ProbeKind.HTTP, "external ui", timeout, ProbeResult.SKIPPED, "needs public IP and UI port")
    host = f"[{state.public_ip}]" if ":" in state.public_ip else state.public_ip
    url = f"http://{host}:{state.discovered_ui_port}/"
    try:
        resp = within_deadline(lambda: http.head(url, timeout=timeout, allow_redirects=False), timeout)
    except requests.RequestException as e:
        return Probe(ProbeKind.HTTP, url, timeout, ProbeResult.FAIL, _http_error(e))
    status_line = f"HTTP {resp.status_code} {resp.reason or ''}".strip()
    result = ProbeResult.PASS if resp.status_code < 400 else ProbeResult.FAIL
    return Probe(ProbeKind.HTTP, url, timeout, result, status_line)


def _isolated(kind: ProbeKind, target: str, timeout: float, step: Callable[[], Probe]) -> Probe:
    # A broken probe must not stop the ones after it.
    try:
        return step()
    except Exception as e:  # noqa: BLE001
        logger.debug("Probe %s crashed", target, exc_info=True)
        return Probe(kind, target, timeout, ProbeResult.FAIL, f"{type(e).__name__}: {e}")


def run_smoke_test(
    expected_ports: Iterable[int] = DEFAULT_PORTS,
    api_port: int = 8010,
    api_base_path: str = "/api/v1",
    *,
    timeouts: SmokeTimeouts | None = None,
    runner: CommandRunner | None = None,
    http: Any = None,
    log: ScaffoldLogger | None = None,
) -> SmokeReport:
    """Run the bounded smoke test. Never raises."""
    timeouts = timeouts or SmokeTimeouts()
    runner = runner or CommandRunner(use_sudo=False)
    http = http if http is not None else requests
    log = log or ScaffoldLogger()
    expected = list(expected_ports)
    report = SmokeReport()
    state = report.state

    steps: list[tuple[ProbeKind, str, float, Callable[[], Probe]]] = [
        *(
            (ProbeKind.PROCESS, pattern, timeouts.process,
             lambda pattern=pattern: probe_process(pattern, runner, timeouts.process))
            for pattern in PROCESS_PATTERNS
        ),
        (ProbeKind.PORT, "listening", timeouts.ports,
         lambda: probe_listening_ports(expected, state, runner, timeouts.ports)),
        (ProbeKind.PORT, "ui", 0.0, lambda: discover_ui_port(expected, state)),
        (ProbeKind.HTTP, "ready", timeouts.readiness,
         lambda: probe_readiness(api_port, http, timeouts.readiness)),
        (ProbeKind.HTTP, "recipe", timeouts.sample,
         lambda: probe_sample(api_port, api_base_path, http, timeouts.sample)),
        (ProbeKind.HTTP, "ui /", timeouts.ui, lambda: probe_ui_root(state, http, timeouts.ui)),
        (ProbeKind.HTTP, PUBLIC_IP_URL, timeouts.public_ip,
         lambda: probe_public_ip(state, http, timeouts.public_ip)),
        (ProbeKind.HTTP, "external ui", timeouts.external,
         lambda: probe_external_head(state, http, timeouts.external)),
    ]

    log.info("----- First-go Smoke Test (bounded) -----")
    for kind, target, timeout, step in steps:
        probe = _isolated(kind, target, timeout, step)
        report.probes.append(probe)
        log.probe(probe)
    log.info("----- Smoke Test complete -----")
    return report
