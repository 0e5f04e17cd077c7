"""
Qubic RPC CLI

Command-line front end for the Qubic RPC client.

Commands:
  status  - Show the latest processed tick and epoch
  ping    - Measure round-trip time to a network
  health  - Probe networks and classify their health
  query   - Query a smart contract (with optional fallback chain)
  send    - Sign and broadcast a transfer
  wallet  - Create a wallet or show its address
"""

from __future__ import annotations

import sys
from typing import Optional

import click

from .config import load_settings
from .logging_config import setup_logging


# ============ Constants ============

VERSION = "0.1.0"


# ============ Banner ============


def _print_banner() -> None:
    border = click.style("  ◆ ═══════════════════════════════ ◆", fg="cyan")
    click.echo()
    click.echo(border)
    click.echo(
        click.style("        Q U B I C   R P C", fg="bright_white", bold=True)
        + click.style(f"   v{VERSION}", dim=True)
    )
    click.echo(border)
    click.echo()


# ============ Main CLI Group ============


@click.group(invoke_without_command=True)
@click.version_option(version=VERSION, prog_name="qubic-rpc")
@click.option("--log-level", help="Logging level (DEBUG, INFO, WARNING, ERROR; default: QUBIC_LOG_LEVEL)")
@click.option("--log-file", help="Also write logs to this file  [default: QUBIC_LOG_FILE]")
@click.pass_context
def cli(ctx: click.Context, log_level: Optional[str], log_file: Optional[str]) -> None:
    """Qubic RPC - query, probe and transact on Qubic networks."""
    try:
        settings = load_settings()
    except ValueError:
        # Commands that need the settings report the bad value themselves.
        settings = None
    setup_logging(settings, level=log_level, log_file=log_file)
    if ctx.invoked_subcommand is None:
        _print_banner()
        click.echo(ctx.get_help())


# ============ Commands ============

from .commands.network import health, ping, status
from .commands.query import query
from .commands.wallet import send, wallet

cli.add_command(status)
cli.add_command(ping)
cli.add_command(health)
cli.add_command(query)
cli.add_command(send)
cli.add_command(wallet)


# ============ Entry Points ============


def main() -> None:
    """Qubic RPC CLI entry point."""
    # Box-drawing characters in the banner need UTF-8 on Windows consoles
    if sys.platform == "win32":
        try:
            sys.stdout.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
            sys.stderr.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
        except (AttributeError, OSError):
            pass
    cli()


if __name__ == "__main__":
    main()
