"""
Query command - read-only smart contract calls with optional fallback.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import click

from ..rpc.errors import FallbackError, RpcError
from ..rpc.network import Network
from ..utils import hex_to_bytes
from . import common


@click.command()
@click.option("--contract", "contract_index", required=True, type=int, help="Contract index")
@click.option("--input-type", required=True, type=int, help="Contract function number")
@click.option("--data", "data_hex", default="", help="Hex-encoded function input")
@click.option(
    "--network",
    "-n",
    "networks",
    type=common.NETWORK_CHOICES,
    multiple=True,
    help="Network to query; repeat to set a fallback order",
)
@click.option("--retry-preset", type=common.PRESET_CHOICES, help="Retry preset")
def query(
    contract_index: int,
    input_type: int,
    data_hex: str,
    networks: tuple[str, ...],
    retry_preset: Optional[str],
) -> None:
    """
    Query a smart contract.

    With several --network flags the networks are tried in the given order
    until one answers.
    """
    try:
        request = hex_to_bytes(data_hex) if data_hex else b""
    except ValueError as exc:
        common.fail(f"--data: {exc}")

    chain = [Network.parse(n) for n in networks] or None

    async def run():
        async with common.make_client(networks[0] if networks else None, retry_preset) as client:
            return await client.query_smart_contract(contract_index, input_type, request, networks=chain)

    try:
        response = asyncio.run(run())
    except FallbackError as exc:
        for step in exc.trail:
            click.echo(f"  {step.network.value}: {step.outcome}", err=True)
        common.fail(str(exc.last_error))
    except (RpcError, ValueError) as exc:
        common.fail(str(exc))

    click.echo(f"  Network:  {response.network.value}")
    if len(response.trail) > 1:
        tried = " -> ".join(f"{s.network.value} ({s.outcome})" for s in response.trail)
        click.echo(f"  Tried:    {tried}")
    click.echo(f"  Response: {response.data.hex() or '(empty)'}")
