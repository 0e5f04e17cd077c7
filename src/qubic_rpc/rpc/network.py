"""
Networks and the endpoint registry.

The set of networks is closed. Each network carries exactly one base URL
and one capability flag telling whether the V2 query API is exposed.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional


class Network(Enum):
    MAINNET = "mainnet"
    TESTNET = "testnet"
    STAGING = "staging"

    @classmethod
    def parse(cls, name: "str | Network") -> "Network":
        """Resolve a network name or alias (main, test, stage)."""
        if isinstance(name, Network):
            return name
        key = name.strip().lower()
        network = _ALIASES.get(key)
        if network is None:
            choices = ", ".join(n.value for n in cls)
            raise ValueError(f"Unknown network {name!r}. Expected one of: {choices}")
        return network

    @property
    def base_url(self) -> str:
        return DEFAULT_ENDPOINTS[self].base_url

    @property
    def supports_v2(self) -> bool:
        return DEFAULT_ENDPOINTS[self].supports_v2

    @property
    def api_version(self) -> str:
        return "v2" if self.supports_v2 else "v1"


_ALIASES = {
    "mainnet": Network.MAINNET,
    "main": Network.MAINNET,
    "testnet": Network.TESTNET,
    "test": Network.TESTNET,
    "staging": Network.STAGING,
    "stage": Network.STAGING,
}


@dataclass(frozen=True)
class Endpoint:
    network: Network
    base_url: str
    supports_v2: bool = False

    def url(self, path: str, version: str = "v1") -> str:
        return f"{self.base_url.rstrip('/')}/{version}/{path.lstrip('/')}"

    @property
    def api_version(self) -> str:
        return "v2" if self.supports_v2 else "v1"


DEFAULT_ENDPOINTS: Mapping[Network, Endpoint] = MappingProxyType({
    Network.MAINNET: Endpoint(Network.MAINNET, "https://rpc.qubic.org", supports_v2=False),
    Network.TESTNET: Endpoint(Network.TESTNET, "https://testnet-rpc.qubic.org", supports_v2=False),
    Network.STAGING: Endpoint(Network.STAGING, "https://rpc-staging.qubic.org", supports_v2=True),
})


@dataclass(frozen=True)
class EndpointRegistry:
    """Immutable Network -> Endpoint mapping.

    Overrides return a new registry, so one instance can be shared by
    concurrent calls without locking.
    """

    endpoints: Mapping[Network, Endpoint]

    @classmethod
    def default(cls) -> "EndpointRegistry":
        return cls(DEFAULT_ENDPOINTS)

    def resolve(self, network: Network) -> Endpoint:
        return self.endpoints[network]

    def with_override(
        self,
        network: Network,
        base_url: str,
        supports_v2: Optional[bool] = None,
    ) -> "EndpointRegistry":
        current = self.endpoints[network]
        updated = replace(
            current,
            base_url=base_url.rstrip("/"),
            supports_v2=current.supports_v2 if supports_v2 is None else supports_v2,
        )
        endpoints = dict(self.endpoints)
        endpoints[network] = updated
        return EndpointRegistry(MappingProxyType(endpoints))
