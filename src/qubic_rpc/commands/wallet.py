"""
Wallet commands - create wallets, show addresses, send transfers.

Key material comes from QUBIC_SEED / QUBIC_PRIVATE_KEY (environment or
~/.qubic-rpc/.env). Commands only build wallets and ask them to sign.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Optional

import click
from dotenv import set_key

from .. import config
from ..keys.crypto import CryptoError
from ..keys.wallet import Wallet, load_wallet, public_key_from_address
from ..rpc.errors import RpcError
from ..rpc.tx import build_transaction, sign_transaction
from . import common

DEFAULT_TICK_OFFSET = 10


def save_seed(seed: str, env_path: Optional[Path] = None) -> Path:
    """Store a seed as QUBIC_SEED in the .env file (mode 0600 on Unix)."""
    env_path = env_path or config.QUBIC_ENV
    env_path.parent.mkdir(parents=True, exist_ok=True)
    env_path.touch(exist_ok=True)
    set_key(str(env_path), "QUBIC_SEED", seed, quote_mode="never")
    if os.name != "nt":
        env_path.chmod(0o600)
    return env_path


def _load_or_exit() -> Wallet:
    try:
        return load_wallet()
    except ValueError as exc:
        common.fail(str(exc))


@click.group()
def wallet() -> None:
    """Manage Qubic wallets."""


@wallet.command("new")
@click.option("--save", is_flag=True, help="Write the seed to ~/.qubic-rpc/.env")
def wallet_new(save: bool) -> None:
    """Generate a new wallet from a random seed."""
    new_wallet, seed = Wallet.generate()
    click.echo(f"  Address:     {new_wallet.address}")
    click.echo(f"  Public key:  {new_wallet.public_key_hex}")
    if save:
        path = save_seed(seed)
        click.echo(f"  Seed saved:  {path}")
    else:
        click.echo(f"  Seed:        {seed}")
        click.secho("  Store this seed offline. Anyone holding it controls the wallet.", fg="yellow")


@wallet.command("address")
def wallet_address() -> None:
    """Show the configured wallet's address."""
    current = _load_or_exit()
    click.echo(f"Address: {current.address}")


@click.command()
@click.option("--to", "destination", required=True, help="Destination address")
@click.option("--amount", required=True, type=int, help="Amount to transfer")
@click.option(
    "--tick-offset",
    default=DEFAULT_TICK_OFFSET,
    show_default=True,
    type=click.IntRange(min=1),
    help="Ticks ahead of the latest processed tick",
)
@click.option("--network", "-n", type=common.NETWORK_CHOICES, help="Network to send on")
@click.option("--retry-preset", type=common.PRESET_CHOICES, help="Retry preset")
@click.option("--dry-run", is_flag=True, help="Sign and print, but do not broadcast")
def send(
    destination: str,
    amount: int,
    tick_offset: int,
    network: Optional[str],
    retry_preset: Optional[str],
    dry_run: bool,
) -> None:
    """Sign and broadcast a transfer."""
    sender = _load_or_exit()
    try:
        destination_key = public_key_from_address(destination)
    except CryptoError as exc:
        common.fail(str(exc))

    async def run():
        async with common.make_client(network, retry_preset) as client:
            current = await client.get_current_tick()
            tx = build_transaction(
                sender.public_key,
                destination_key,
                amount,
                current + tick_offset,
                last_known_tick=current,
            )
            signed = sign_transaction(tx, sender)
            if dry_run:
                return signed, None
            return signed, await client.broadcast_transaction(signed)

    try:
        signed, result = asyncio.run(run())
    except (RpcError, ValueError) as exc:
        common.fail(str(exc))

    click.echo(f"  Tx id:   {signed.transaction_id()}")
    click.echo(f"  Tick:    {signed.transaction.tick}")
    if result is None:
        click.echo(f"  Encoded: {signed.encoded()}")
        click.secho("  Dry run: not broadcast.", fg="yellow")
        return
    click.echo(f"  Status:  {result.status}")
    if result.peers_broadcasted is not None:
        click.echo(f"  Peers:   {result.peers_broadcasted}")
