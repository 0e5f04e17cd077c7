"""
Network commands - status, latency and health of Qubic endpoints.
"""

from __future__ import annotations

import asyncio
import sys
from typing import Optional

import click

from ..rpc.errors import RpcError
from ..rpc.health import HealthStatus
from ..rpc.network import Network
from . import common

_STATUS_COLORS = {
    HealthStatus.HEALTHY: "green",
    HealthStatus.DEGRADED: "yellow",
    HealthStatus.SLOW: "yellow",
    HealthStatus.UNHEALTHY: "red",
}


@click.command()
@click.option("--network", "-n", type=common.NETWORK_CHOICES, help="Network to query")
@click.option("--retry-preset", type=common.PRESET_CHOICES, help="Retry preset")
def status(network: Optional[str], retry_preset: Optional[str]) -> None:
    """Show the latest processed tick and epoch."""

    async def run():
        async with common.make_client(network, retry_preset) as client:
            return client.network, await client.get_status()

    try:
        chain, info = asyncio.run(run())
    except (RpcError, ValueError) as exc:
        common.fail(str(exc))

    click.echo(f"  Network:        {chain.value}")
    click.echo(f"  Tick:           {info.tick}")
    click.echo(f"  Epoch:          {info.epoch}")
    click.echo(f"  Skipped ticks:  {info.skipped_tick_count}")


@click.command()
@click.option("--network", "-n", type=common.NETWORK_CHOICES, help="Network to ping")
def ping(network: Optional[str]) -> None:
    """Measure the round-trip time of a status call."""

    async def run() -> float:
        async with common.make_client(network, "no_retry") as client:
            return await client.ping()

    try:
        elapsed = asyncio.run(run())
    except (RpcError, ValueError) as exc:
        common.fail(str(exc))
    click.echo(f"  Round trip: {elapsed * 1000:.1f} ms")


@click.command()
@click.option(
    "--network",
    "-n",
    "networks",
    type=common.NETWORK_CHOICES,
    multiple=True,
    help="Network to probe (repeatable; default: all)",
)
def health(networks: tuple[str, ...]) -> None:
    """
    Probe endpoints once each and classify their health.

    Exits non-zero when no probed network is usable.
    """
    targets = [Network.parse(n) for n in networks] or list(Network)

    async def run():
        async with common.make_client(targets[0].value) as client:
            return await client.check_health_many(targets)

    try:
        results = asyncio.run(run())
    except ValueError as exc:
        common.fail(str(exc))

    for network, result in zip(targets, results):
        line = (
            click.style(f"  {network.value:<8}", bold=True)
            + click.style(f"  {result.status.label:<9}", fg=_STATUS_COLORS[result.status])
            + click.style(f"  {result.response_time * 1000:8.1f} ms", dim=True)
        )
        click.echo(line)
        if result.error:
            click.echo(click.style(f"            {result.error}", dim=True))

    if not any(r.is_usable() for r in results):
        sys.exit(1)
