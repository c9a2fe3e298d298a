"""Port preparation — open workshop ports in firewalld and iptables.

The two mechanisms are independent and may both be present on a host, so
both always run. Each rule is ensured idempotently and reported as
applied, already-present, unavailable or failed. Nothing here raises and
nothing is ever rolled back.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from workshop_pack.core.logging import ScaffoldLogger
from workshop_pack.core.models import RuleOutcome
from workshop_pack.ops.commands import CommandRunner

logger = logging.getLogger(__name__)

DEFAULT_PORTS: tuple[int, ...] = (8010, 8501, 8502)
FIREWALL_ZONE = "public"
FILTER_CHAIN = "INPUT"


@dataclass
class PortReport:
    """Per-port outcome of both mechanisms."""

    dynamic: dict[int, RuleOutcome] = field(default_factory=dict)
    static: dict[int, RuleOutcome] = field(default_factory=dict)
    reloaded: bool = False
    open_ports: str = ""  # firewalld's own listing after reload

    @staticmethod
    def _available(outcomes: dict[int, RuleOutcome]) -> bool:
        return any(o is not RuleOutcome.UNAVAILABLE for o in outcomes.values())

    @property
    def dynamic_available(self) -> bool:
        return self._available(self.dynamic)

    @property
    def static_available(self) -> bool:
        return self._available(self.static)


def dynamic_firewall_tool(runner: CommandRunner) -> str | None:
    """Path to firewall-cmd when firewalld is running, else None."""
    systemctl = runner.locate("systemctl")
    if systemctl is None:
        return None
    if not runner.run([systemctl, "is-active", "--quiet", "firewalld"], timeout=5).ok:
        return None
    return runner.locate("firewall-cmd")


def ensure_dynamic_firewall_rule(
    port: int,
    runner: CommandRunner,
    tool: str | None = None,
) -> RuleOutcome:
    """Ensure a permanent ``port/tcp`` allow rule in the public zone."""
    tool = tool or dynamic_firewall_tool(runner)
    if tool is None:
        return RuleOutcome.UNAVAILABLE
    port_proto = f"{port}/tcp"
    query = runner.run(
        [tool, f"--zone={FIREWALL_ZONE}", f"--query-port={port_proto}", "--permanent"],
        privileged=True,
    )
    if query.ok:
        return RuleOutcome.ALREADY_PRESENT
    added = runner.run(
        [tool, f"--zone={FIREWALL_ZONE}", f"--add-port={port_proto}", "--permanent"],
        privileged=True,
    )
    return RuleOutcome.APPLIED if added.ok else RuleOutcome.FAILED


def ensure_static_filter_rule(
    port: int,
    runner: CommandRunner,
    tool: str | None = None,
) -> RuleOutcome:
    """Ensure an iptables ACCEPT rule for ``port`` at the head of INPUT."""
    tool = tool or runner.locate("iptables")
    if tool is None:
        return RuleOutcome.UNAVAILABLE
    rule = ["-p", "tcp", "--dport", str(port), "-j", "ACCEPT"]
    check = runner.run([tool, "-C", FILTER_CHAIN, *rule], privileged=True)
    if check.ok:
        return RuleOutcome.ALREADY_PRESENT
    inserted = runner.run([tool, "-I", FILTER_CHAIN, *rule], privileged=True)
    return RuleOutcome.APPLIED if inserted.ok else RuleOutcome.FAILED


def open_ports(
    ports: Iterable[int] = DEFAULT_PORTS,
    runner: CommandRunner | None = None,
    log: ScaffoldLogger | None = None,
) -> PortReport:
    """Open ``ports`` through firewalld and iptables, best-effort."""
    runner = runner or CommandRunner()
    log = log or ScaffoldLogger()
    ports = list(ports)
    report = PortReport()

    firewall_cmd = dynamic_firewall_tool(runner)
    if firewall_cmd is None:
        log.info("firewalld not active; skipping firewall-cmd")
        report.dynamic = {p: RuleOutcome.UNAVAILABLE for p in ports}
    else:
        for port in ports:
            outcome = ensure_dynamic_firewall_rule(port, runner, firewall_cmd)
            if outcome is RuleOutcome.FAILED:
                log.warning(f"firewall-cmd could not open {port}/tcp")
            report.dynamic[port] = outcome
        if RuleOutcome.APPLIED in report.dynamic.values():
            report.reloaded = runner.run([firewall_cmd, "--reload"], timeout=30, privileged=True).ok
        listing = runner.run([firewall_cmd, f"--zone={FIREWALL_ZONE}", "--list-ports"], privileged=True)
        report.open_ports = listing.stdout.strip()
        log.info(f"firewalld ports opened (if available): {report.open_ports or '-'}")

    iptables = runner.locate("iptables")
    if iptables is None:
        log.info("iptables not installed; skipping packet-filter rules")
        report.static = {p: RuleOutcome.UNAVAILABLE for p in ports}
    else:
        for port in ports:
            outcome = ensure_static_filter_rule(port, runner, iptables)
            if outcome is RuleOutcome.FAILED:
                log.warning(f"iptables could not add an ACCEPT rule for {port}/tcp")
            report.static[port] = outcome
        log.info(f"iptables {FILTER_CHAIN} dport rules ensured for {', '.join(map(str, ports))}.")

    logger.debug("Port report: %s", report)
    return report


UI_PROCESS_PATTERN = "streamlit run .*recipe-streamlit-app/app.py"


def find_port_conflicts(dest: str | Path, runner: CommandRunner | None = None) -> list[str]:
    """UI-server processes started from a different project directory."""
    runner = runner or CommandRunner(use_sudo=False)
    result = runner.run(["pgrep", "-fa", UI_PROCESS_PATTERN], timeout=5)
    if not result.ok:
        return []
    own = f"{Path(dest)}/recipe-streamlit-app"
    return [line for line in result.stdout.splitlines() if line.strip() and own not in line]


def warn_port_conflicts(
    dest: str | Path,
    runner: CommandRunner | None = None,
    log: ScaffoldLogger | None = None,
) -> list[str]:
    log = log or ScaffoldLogger()
    others = find_port_conflicts(dest, runner)
    if others:
        log.warning(
            "Other Streamlit instances detected which may occupy 8501/8502:\n"
            + "\n".join(others)
            + "\nTip to stop: kill <pid>   # verify the PID belongs to an older project"
        )
    return others
