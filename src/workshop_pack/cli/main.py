"""workshop-pack CLI — main entry point."""

from __future__ import annotations

import click
from rich.console import Console

from workshop_pack.cli.report import render_next_steps, render_ports, render_scaffold_summary, render_smoke
from workshop_pack.config import get_settings
from workshop_pack.core.errors import WorkshopPackError
from workshop_pack.core.logging import ScaffoldLogger, Verbosity, setup_logging
from workshop_pack.ops.ports import DEFAULT_PORTS, open_ports, warn_port_conflicts
from workshop_pack.ops.smoke import run_smoke_test
from workshop_pack.scaffold.render import RenderMode
from workshop_pack.scaffold.runner import run_scaffold

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)


@click.command()
@click.option(
    "-d",
    "--dest",
    default=".",
    type=click.Path(file_okay=False),
    help="Directory to scaffold into (default: current directory).",
)
@click.option("-f", "--force", is_flag=True, help="Overwrite existing files.")
@click.option(
    "-O",
    "--open-ports",
    "open_ports_flag",
    is_flag=True,
    help="Open ports 8010, 8501 and 8502 in firewalld and iptables.",
)
@click.option(
    "-T",
    "--smoke-test",
    is_flag=True,
    help="Run bounded first-go smoke tests against the running API and UI.",
)
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(dir_okay=False),
    help="workshop-config.yaml to read defaults from (default: DEST/workshop-config.yaml).",
)
@click.option(
    "--substitute",
    is_flag=True,
    help="Replace $NAME placeholders in generated documents with resolved defaults.",
)
@click.option("-v", "--verbose", count=True, help="Verbose output (-vv for debug). Also set by VERBOSE.")
def main(
    dest: str,
    force: bool,
    open_ports_flag: bool,
    smoke_test: bool,
    config_path: str | None,
    substitute: bool,
    verbose: int,
):
    """Scaffold the workshop memory bank, rules, config template and prompt guide.

    Existing files are kept unless --force is given. Port opening and the
    smoke test are diagnostic and never change the exit code.
    """
    settings = get_settings()
    if settings.is_verbose:
        verbose = max(verbose, 1)
    verbosity = Verbosity(min(verbose, Verbosity.DEBUG))
    setup_logging(verbosity >= Verbosity.DEBUG)
    log = ScaffoldLogger(verbosity, console=console, err_console=err_console)

    log.info(f"Scaffolding Workshop Pack into: {dest}")
    log.info(f"Force overwrite: {int(force)}")
    log.info(f"Open ports: {int(open_ports_flag)}")
    log.info(f"Run tests: {int(smoke_test)}")
    log.info("---------------------------------------------")

    render_mode = RenderMode.SUBSTITUTE if substitute else RenderMode.LITERAL
    try:
        result = run_scaffold(dest, force=force, config_path=config_path, render_mode=render_mode, log=log)
    except (OSError, WorkshopPackError) as e:
        err_console.print(f"[red]Error:[/red] could not scaffold {dest}: {e}")
        raise SystemExit(1) from e

    if log.verbose:
        log.info(f"Auth mode: {result.config.auth_mode or 'instance_principals'}")

    if open_ports_flag:
        report = open_ports(DEFAULT_PORTS, log=log)
        if log.verbose:
            render_ports(console, report)
    if log.verbose:
        warn_port_conflicts(result.dest, log=log)
    if smoke_test:
        api_port = result.config.api_port or settings.api_port
        base_path = result.config.api_base_path or settings.api_base_path
        smoke = run_smoke_test(DEFAULT_PORTS, api_port, base_path, log=log)
        if log.verbose:
            render_smoke(console, smoke)

    log.info("Workshop pack setup complete.")
    if log.verbose:
        render_scaffold_summary(console, result)
        render_next_steps(console, result.config)


def cli():
    """Entrypoint that loads .env before running the CLI."""
    from dotenv import load_dotenv

    load_dotenv()
    main()
