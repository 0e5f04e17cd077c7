"""
Shared plumbing for CLI commands: settings, client construction, error exit.
"""

from __future__ import annotations

import sys
from typing import NoReturn, Optional

import click

from ..config import Settings, load_settings
from ..rpc.client import QubicRpcClient
from ..rpc.network import Network
from ..rpc.retry import RetryConfig

NETWORK_CHOICES = click.Choice([n.value for n in Network], case_sensitive=False)
PRESET_CHOICES = click.Choice(["default", "conservative", "aggressive", "no_retry"], case_sensitive=False)


def make_client(
    network: Optional[str] = None,
    retry_preset: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> QubicRpcClient:
    """Build a client from settings, with CLI flags taking precedence."""
    settings = settings or load_settings()
    retry_config = RetryConfig.preset(retry_preset) if retry_preset else settings.retry_config()
    return QubicRpcClient(
        Network.parse(network) if network else settings.network,
        registry=settings.registry(),
        retry_config=retry_config,
        timeout=settings.timeout,
        health_thresholds=settings.health_thresholds(),
    )


def fail(message: str) -> NoReturn:
    click.secho(f"ERROR: {message}", fg="red", err=True)
    sys.exit(1)
