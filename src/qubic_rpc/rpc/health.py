"""
Health monitor - classify an endpoint from a single status probe.

A probe is exactly one attempt against ``/v1/status``, whatever retry config
the transport carries. The monitor keeps no state; each call returns a
fresh immutable ``NetworkHealth`` snapshot.

Default thresholds (configurable):
    elapsed <  1.0s            -> HEALTHY
    1.0s <= elapsed < 5.0s     -> DEGRADED
    elapsed >= 5.0s            -> SLOW
    any failure                -> UNHEALTHY
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from typing import Any, Callable, Optional, Sequence

from ..utils import to_rfc3339, utc_now
from .errors import RpcError
from .retry import RetryConfig
from .transport import Transport

logger = logging.getLogger(__name__)

PROBE_PATH = "status"


class HealthStatus(IntEnum):
    """Ordered from best to worst."""

    HEALTHY = 0
    DEGRADED = 1
    SLOW = 2
    UNHEALTHY = 3

    @property
    def label(self) -> str:
        return self.name.lower()


_DESCRIPTIONS = {
    HealthStatus.HEALTHY: "Network is healthy and responsive",
    HealthStatus.DEGRADED: "Network is functional but with reduced performance",
    HealthStatus.SLOW: "Network is slow but operational",
    HealthStatus.UNHEALTHY: "Network is not available or not responding",
}


@dataclass(frozen=True)
class HealthThresholds:
    """Latency bounds in seconds."""

    degraded_after: float = 1.0
    slow_after: float = 5.0

    def __post_init__(self) -> None:
        if self.degraded_after < 0 or self.slow_after < self.degraded_after:
            raise ValueError("thresholds must satisfy 0 <= degraded_after <= slow_after")

    def classify(self, elapsed: float) -> HealthStatus:
        if elapsed < self.degraded_after:
            return HealthStatus.HEALTHY
        if elapsed < self.slow_after:
            return HealthStatus.DEGRADED
        return HealthStatus.SLOW


@dataclass(frozen=True)
class NetworkHealth:
    status: HealthStatus
    response_time: float
    timestamp: datetime
    endpoint: str = ""
    error: Optional[str] = None

    def is_usable(self) -> bool:
        return self.status is not HealthStatus.UNHEALTHY

    def status_description(self) -> str:
        return _DESCRIPTIONS[self.status]

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.label,
            "response_time_ms": round(self.response_time * 1000, 3),
            "timestamp": to_rfc3339(self.timestamp),
            "endpoint": self.endpoint,
            "error": self.error,
        }


class HealthMonitor:
    def __init__(
        self,
        thresholds: Optional[HealthThresholds] = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.thresholds = thresholds or HealthThresholds()
        self._clock = clock

    async def probe(self, transport: Transport) -> NetworkHealth:
        """Probe one endpoint with a single status request."""
        url = transport.endpoint.url(PROBE_PATH)
        start = self._clock()
        try:
            await transport.call("GET", PROBE_PATH, retry_config=RetryConfig.no_retry())
        except RpcError as exc:
            elapsed = self._clock() - start
            logger.debug("Probe %s failed after %.3fs: %s", url, elapsed, exc)
            return NetworkHealth(
                status=HealthStatus.UNHEALTHY,
                response_time=elapsed,
                timestamp=utc_now(),
                endpoint=url,
                error=str(exc),
            )

        elapsed = self._clock() - start
        status = self.thresholds.classify(elapsed)
        logger.debug("Probe %s: %s in %.3fs", url, status.label, elapsed)
        return NetworkHealth(
            status=status,
            response_time=elapsed,
            timestamp=utc_now(),
            endpoint=url,
        )

    async def probe_many(self, transports: Sequence[Transport]) -> list[NetworkHealth]:
        """Probe several endpoints concurrently; results keep input order."""
        return list(await asyncio.gather(*(self.probe(t) for t in transports)))
