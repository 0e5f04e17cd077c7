"""
RPC error taxonomy and the error classifier.

Every outcome of a single transport attempt maps to exactly one
``Classification``:

    2xx                       -> SUCCESS
    521, 502, 503             -> RETRYABLE (endpoint temporarily down)
    timeout / connection loss -> RETRYABLE
    404                       -> NOT_FOUND (never retried)
    any other status          -> FATAL
    anything else             -> FATAL
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Sequence, Union

import httpx

RETRYABLE_STATUSES = frozenset({502, 503, 521})


class Classification(str, Enum):
    SUCCESS = "success"
    RETRYABLE = "retryable"
    FATAL = "fatal"
    NOT_FOUND = "not_found"


class ValidationError(ValueError):
    pass


class RpcError(Exception):
    """Base class for every error that crosses the client boundary."""

    kind = "fatal"

    def __init__(self, detail: str, endpoint: str = "", attempts: int = 1) -> None:
        super().__init__(detail)
        self.detail = detail
        self.endpoint = endpoint
        self.attempts = attempts

    @property
    def classification(self) -> Classification:
        return classify(self)

    def __str__(self) -> str:
        where = self.endpoint or "<unknown endpoint>"
        return f"[{self.kind}] {where}: {self.detail}"


class HttpError(RpcError):
    def __init__(self, status: int, body: str = "", endpoint: str = "", attempts: int = 1) -> None:
        snippet = body[:200]
        detail = f"HTTP {status}" + (f": {snippet}" if snippet else "")
        super().__init__(detail, endpoint=endpoint, attempts=attempts)
        self.status = status
        self.body = body

    @property
    def kind(self) -> str:  # type: ignore[override]
        return classify_status(self.status).value


class RpcTimeoutError(RpcError):
    kind = "retryable"

    def __init__(self, endpoint: str = "", attempts: int = 1) -> None:
        super().__init__("request timed out", endpoint=endpoint, attempts=attempts)


class RpcConnectionError(RpcError):
    kind = "retryable"

    def __init__(self, message: str, endpoint: str = "", attempts: int = 1) -> None:
        super().__init__(f"connection failed: {message}", endpoint=endpoint, attempts=attempts)


class ServerError(RpcError):
    """The server answered 2xx but the payload was unusable."""

    def __init__(self, message: str, endpoint: str = "", attempts: int = 1) -> None:
        super().__init__(f"server error: {message}", endpoint=endpoint, attempts=attempts)
        self.message = message


class NotFoundError(RpcError):
    kind = "not_found"

    def __init__(self, endpoint: str = "", body: str = "", attempts: int = 1) -> None:
        detail = "HTTP 404 (resource or feature not available on this network)"
        super().__init__(detail, endpoint=endpoint, attempts=attempts)
        self.status = 404
        self.body = body


class ExhaustedError(RpcError):
    kind = "exhausted"

    def __init__(self, endpoint: str, attempts: int, last_error: Optional[RpcError] = None) -> None:
        detail = f"gave up after {attempts} attempts"
        if last_error is not None:
            detail += f" (last error: {last_error.detail})"
        super().__init__(detail, endpoint=endpoint, attempts=attempts)
        self.last_error = last_error


class FallbackError(RpcError):
    """Every network in a fallback chain failed."""

    def __init__(self, trail: Sequence["object"], last_error: RpcError) -> None:
        names = ", ".join(str(getattr(step, "network", step)) for step in trail)
        detail = f"all networks failed [{names}]; last error: {last_error}"
        super().__init__(detail, endpoint=last_error.endpoint, attempts=last_error.attempts)
        self.trail = tuple(trail)
        self.last_error = last_error

    @property
    def kind(self) -> str:  # type: ignore[override]
        return self.last_error.kind


Outcome = Union[int, BaseException]


def classify_status(status: int) -> Classification:
    if 200 <= status < 300:
        return Classification.SUCCESS
    if status == 404:
        return Classification.NOT_FOUND
    if status in RETRYABLE_STATUSES:
        return Classification.RETRYABLE
    return Classification.FATAL


def classify(outcome: Outcome) -> Classification:
    """Classify a status code or a transport/response exception."""
    if isinstance(outcome, bool):
        return Classification.FATAL
    if isinstance(outcome, int):
        return classify_status(outcome)
    if isinstance(outcome, FallbackError):
        return classify(outcome.last_error)
    if isinstance(outcome, NotFoundError):
        return Classification.NOT_FOUND
    if isinstance(outcome, HttpError):
        return classify_status(outcome.status)
    if isinstance(outcome, (RpcTimeoutError, RpcConnectionError)):
        return Classification.RETRYABLE
    if isinstance(outcome, (httpx.TimeoutException, httpx.TransportError)):
        return Classification.RETRYABLE
    if isinstance(outcome, httpx.HTTPStatusError):
        return classify_status(outcome.response.status_code)
    return Classification.FATAL
