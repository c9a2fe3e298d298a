"""Rich summaries printed at the end of a verbose run."""

from __future__ import annotations

from pathlib import Path

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from workshop_pack.core.models import ProbeResult, ResolvedConfig, RuleOutcome
from workshop_pack.ops.ports import PortReport
from workshop_pack.ops.smoke import SmokeReport
from workshop_pack.scaffold.runner import ScaffoldResult

OUTCOME_STYLES = {
    RuleOutcome.APPLIED: "green",
    RuleOutcome.ALREADY_PRESENT: "cyan",
    RuleOutcome.UNAVAILABLE: "dim",
    RuleOutcome.FAILED: "red",
}

PROBE_STYLES = {
    ProbeResult.PASS: "green",
    ProbeResult.FAIL: "red",
    ProbeResult.SKIPPED: "dim",
}


def render_scaffold_summary(console: Console, result: ScaffoldResult) -> None:
    table = Table(title="Workshop Pack", box=box.ROUNDED)
    table.add_column("File", style="bold")
    table.add_column("Action", justify="center")
    table.add_column("Existed", justify="center")

    for decision in result.decisions:
        try:
            label = str(Path(decision.path).relative_to(result.dest))
        except ValueError:
            label = decision.path
        action = "[green]written[/green]" if decision.written else "[cyan]skipped[/cyan]"
        table.add_row(label, action, "yes" if decision.existed_before else "no")

    console.print(table)


def render_ports(console: Console, report: PortReport) -> None:
    table = Table(title="Port Rules", box=box.ROUNDED)
    table.add_column("Port", justify="right", style="bold")
    table.add_column("firewalld", justify="center")
    table.add_column("iptables", justify="center")

    for port in sorted(set(report.dynamic) | set(report.static)):
        cells = []
        for outcome in (report.dynamic.get(port), report.static.get(port)):
            if outcome is None:
                cells.append("-")
            else:
                style = OUTCOME_STYLES[outcome]
                cells.append(f"[{style}]{outcome.value}[/{style}]")
        table.add_row(str(port), *cells)

    console.print(table)


def render_smoke(console: Console, report: SmokeReport) -> None:
    table = Table(title="Smoke Test", box=box.ROUNDED)
    table.add_column("Probe")
    table.add_column("Target")
    table.add_column("Timeout", justify="right")
    table.add_column("Result", justify="center")

    for probe in report.probes:
        style = PROBE_STYLES[probe.result]
        timeout = f"{probe.timeout_seconds:g}s" if probe.timeout_seconds else "-"
        table.add_row(
            probe.kind.value,
            probe.target,
            timeout,
            f"[{style}]{probe.result.value}[/{style}]",
        )

    console.print(table)
    console.print(f"UI_PORT={report.state.discovered_ui_port or 'none'}")


def render_next_steps(console: Console, config: ResolvedConfig) -> None:
    port = config.api_port or "$API_PORT"
    base = config.api_base_path or "$API_BASE_PATH"
    ui_port = config.streamlit_port or "$STREAMLIT_PORT"
    console.print(
        Panel(
            "\n".join([
                "[bold]Next:[/bold] use the prompts in recipe-guide.json. After building the API, run:",
                f"  python3 -m uvicorn recipe-api.app.main:app --host 0.0.0.0 --port {port}",
                f"API endpoint (default): http://localhost:{port}{base}/recipe",
                "",
                "[bold]Frontend:[/bold]",
                f"  python -m streamlit run recipe-streamlit-app/app.py --server.port={ui_port} --server.headless=true",
                f"  export API_BASE_URL=http://localhost:{port}{base}",
                "",
                "[dim]Start uvicorn without --reload first so import errors surface deterministically.[/dim]",
                f"[dim]If a previous dev server holds the port: fuser -k {port}/tcp[/dim]",
            ]),
            title="[bold]Workshop pack[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )
