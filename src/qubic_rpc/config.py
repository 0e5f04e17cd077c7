"""
Configuration - environment-driven client settings.

Values are read from the process environment, optionally seeded from
~/.qubic-rpc/.env. Variables already exported in the environment win over
values in the file.

Variables:
    QUBIC_NETWORK             mainnet | testnet | staging (default: mainnet)
    QUBIC_RETRY_PRESET        default | conservative | aggressive | no_retry
    QUBIC_TIMEOUT             per-attempt HTTP timeout in seconds (default: 30)
    QUBIC_RPC_URL_<NETWORK>   base URL override, e.g. a local ledger simulator
    QUBIC_HEALTH_DEGRADED_MS  probe latency above which a node is Degraded (1000)
    QUBIC_HEALTH_SLOW_MS      probe latency above which a node is Slow (5000)
    QUBIC_LOG_LEVEL           logging level name (default: WARNING)
    QUBIC_LOG_FILE            optional log file path
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from .rpc.health import HealthThresholds
from .rpc.network import EndpointRegistry, Network
from .rpc.retry import RetryConfig

QUBIC_DIR = Path.home() / ".qubic-rpc"
QUBIC_ENV = QUBIC_DIR / ".env"

DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class Settings:
    network: Network = Network.MAINNET
    retry_preset: str = "default"
    timeout: float = DEFAULT_TIMEOUT
    url_overrides: Mapping[Network, str] = field(default_factory=dict)
    degraded_after_ms: float = 1000.0
    slow_after_ms: float = 5000.0
    log_level: str = "WARNING"
    log_file: Optional[str] = None

    def retry_config(self) -> RetryConfig:
        return RetryConfig.preset(self.retry_preset)

    def health_thresholds(self) -> HealthThresholds:
        return HealthThresholds(
            degraded_after=self.degraded_after_ms / 1000.0,
            slow_after=self.slow_after_ms / 1000.0,
        )

    def registry(self) -> EndpointRegistry:
        registry = EndpointRegistry.default()
        for network, base_url in self.url_overrides.items():
            registry = registry.with_override(network, base_url)
        return registry


def _env_float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def settings_from_env(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build settings from a mapping of environment variables."""
    environ = os.environ if environ is None else environ

    network = Network.parse(environ.get("QUBIC_NETWORK", "mainnet"))
    retry_preset = environ.get("QUBIC_RETRY_PRESET", "default")
    # Fail early on an unknown preset name.
    RetryConfig.preset(retry_preset)

    overrides = {}
    for candidate in Network:
        url = environ.get(f"QUBIC_RPC_URL_{candidate.name}")
        if url:
            overrides[candidate] = url

    return Settings(
        network=network,
        retry_preset=retry_preset,
        timeout=_env_float(environ, "QUBIC_TIMEOUT", DEFAULT_TIMEOUT),
        url_overrides=overrides,
        degraded_after_ms=_env_float(environ, "QUBIC_HEALTH_DEGRADED_MS", 1000.0),
        slow_after_ms=_env_float(environ, "QUBIC_HEALTH_SLOW_MS", 5000.0),
        log_level=environ.get("QUBIC_LOG_LEVEL", "WARNING"),
        log_file=environ.get("QUBIC_LOG_FILE") or None,
    )


def load_settings(env_path: Optional[Path] = None) -> Settings:
    """
    Load settings from ~/.qubic-rpc/.env (if present) and the environment.

    Args:
        env_path: Path to .env file (default: ~/.qubic-rpc/.env)

    Returns:
        Immutable Settings
    """
    env_path = env_path or QUBIC_ENV
    if env_path.exists():
        load_dotenv(env_path, override=False)
    return settings_from_env()
