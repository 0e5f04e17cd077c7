"""
Retry policy - classified retries with deterministic exponential backoff.

The delay after failed attempt ``n`` (0-indexed) is

    min(initial_delay * backoff_multiplier ** n, max_delay)

and no more than ``max_attempts`` attempts are ever made. There is no
jitter, so the delay sequence is fully determined by the config.

A single logical call moves through:

    PENDING -> ATTEMPTING (x up to max_attempts)
            -> SUCCEEDED | FATAL | NOT_FOUND | EXHAUSTED

ATTEMPTING is re-entered only after a RETRYABLE failure with attempts left.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Iterator, Optional, TypeVar

from .errors import Classification, ExhaustedError, RpcError, classify

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryConfig:
    """Retry configuration. Delays are in seconds."""

    max_attempts: int = 3
    initial_delay: float = 0.5
    max_delay: float = 10.0
    backoff_multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be non-negative")
        if self.backoff_multiplier <= 1.0:
            raise ValueError("backoff_multiplier must be greater than 1.0")

    @classmethod
    def default(cls) -> "RetryConfig":
        return cls()

    @classmethod
    def conservative(cls) -> "RetryConfig":
        """Fewer, slower retries for production use."""
        return cls(max_attempts=2, initial_delay=1.0, max_delay=5.0, backoff_multiplier=1.5)

    @classmethod
    def aggressive(cls) -> "RetryConfig":
        """More, faster retries for development."""
        return cls(max_attempts=5, initial_delay=0.2, max_delay=15.0, backoff_multiplier=2.5)

    @classmethod
    def no_retry(cls) -> "RetryConfig":
        return cls(max_attempts=1, initial_delay=0.0, max_delay=0.0)

    @classmethod
    def preset(cls, name: str) -> "RetryConfig":
        factory = _PRESETS.get(name.strip().lower().replace("-", "_"))
        if factory is None:
            choices = ", ".join(sorted(_PRESETS))
            raise ValueError(f"Unknown retry preset {name!r}. Expected one of: {choices}")
        return factory()

    def delay(self, attempt: int) -> float:
        """Backoff delay after failed attempt ``attempt`` (0-indexed)."""
        if attempt < 0:
            raise ValueError("attempt must be non-negative")
        if self.initial_delay == 0:
            return 0.0
        try:
            uncapped = self.initial_delay * self.backoff_multiplier ** attempt
        except OverflowError:
            return self.max_delay
        return min(uncapped, self.max_delay)

    def delays(self) -> Iterator[float]:
        """Every delay a fully failing call waits through, in order."""
        for attempt in range(self.max_attempts - 1):
            yield self.delay(attempt)


_PRESETS: dict[str, Callable[[], RetryConfig]] = {
    "default": RetryConfig.default,
    "conservative": RetryConfig.conservative,
    "aggressive": RetryConfig.aggressive,
    "no_retry": RetryConfig.no_retry,
}


class CallState(str, Enum):
    PENDING = "pending"
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    FATAL = "fatal"
    NOT_FOUND = "not_found"
    EXHAUSTED = "exhausted"

    @property
    def terminal(self) -> bool:
        return self not in (CallState.PENDING, CallState.ATTEMPTING)


_TRANSITIONS = {
    CallState.PENDING: {CallState.ATTEMPTING},
    CallState.ATTEMPTING: {
        CallState.ATTEMPTING,
        CallState.SUCCEEDED,
        CallState.FATAL,
        CallState.NOT_FOUND,
        CallState.EXHAUSTED,
    },
}


@dataclass
class CallTrace:
    """Bookkeeping for one logical call. Never shared between calls."""

    endpoint: str = ""
    state: CallState = CallState.PENDING
    attempts: int = 0
    delays: list[float] = field(default_factory=list)
    errors: list[RpcError] = field(default_factory=list)

    def transition(self, new_state: CallState) -> None:
        allowed = _TRANSITIONS.get(self.state, set())
        if new_state not in allowed:
            raise RuntimeError(f"Illegal call transition {self.state.value} -> {new_state.value}")
        self.state = new_state
        if new_state is CallState.ATTEMPTING:
            self.attempts += 1


def _terminal_state(classification: Classification) -> CallState:
    if classification is Classification.NOT_FOUND:
        return CallState.NOT_FOUND
    return CallState.FATAL


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    config: RetryConfig,
    *,
    endpoint: str = "",
    sleep: Optional[Sleep] = None,
    trace: Optional[CallTrace] = None,
) -> T:
    """
    Run ``operation`` under the retry policy.

    Args:
        operation: Zero-argument coroutine factory; one call = one attempt
        config: Retry configuration
        endpoint: Endpoint label used in errors and logs
        sleep: Awaitable sleep used for backoff (default: asyncio.sleep)
        trace: Optional CallTrace to record state transitions into

    Returns:
        The operation's result on the first successful attempt

    Raises:
        RpcError: Immediately on a FATAL or NOT_FOUND classification
        ExhaustedError: When every attempt failed with a RETRYABLE error
    """
    sleep = sleep or asyncio.sleep
    trace = trace if trace is not None else CallTrace(endpoint=endpoint)

    while True:
        trace.transition(CallState.ATTEMPTING)
        try:
            result = await operation()
        except RpcError as exc:
            exc.attempts = trace.attempts
            classification = classify(exc)
            if classification is not Classification.RETRYABLE:
                trace.transition(_terminal_state(classification))
                logger.debug("%s: %s after %d attempt(s)", endpoint, classification.value, trace.attempts)
                raise
            trace.errors.append(exc)
            if trace.attempts >= config.max_attempts:
                break
            delay = config.delay(trace.attempts - 1)
            trace.delays.append(delay)
            logger.warning(
                "Attempt %d/%d against %s failed (%s). Retrying in %.2fs...",
                trace.attempts,
                config.max_attempts,
                endpoint or "<unknown endpoint>",
                exc.detail,
                delay,
            )
            await sleep(delay)
            continue

        trace.transition(CallState.SUCCEEDED)
        return result

    trace.transition(CallState.EXHAUSTED)
    last_error = trace.errors[-1]
    logger.info("%s: retries exhausted after %d attempts", endpoint, trace.attempts)
    raise ExhaustedError(endpoint, attempts=trace.attempts, last_error=last_error) from last_error
