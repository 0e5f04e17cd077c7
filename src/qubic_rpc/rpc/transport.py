"""
Transport - one logical RPC call against one endpoint.

Each attempt is a single HTTP request through httpx. Failures are turned
into typed ``RpcError`` values and fed to the retry policy; only the final
outcome leaves this module.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import httpx

from .errors import (
    HttpError,
    NotFoundError,
    RpcConnectionError,
    RpcTimeoutError,
    ServerError,
)
from .network import Endpoint
from .retry import CallTrace, RetryConfig, Sleep, with_retry

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}


@dataclass(frozen=True)
class CallResult:
    data: Any
    status_code: int
    url: str
    attempts: int
    elapsed: float


class Transport:
    """
    Executes RPC calls against a single endpoint with classified retries.

    The transport holds only immutable configuration; every call gets its
    own ``CallTrace``, so one instance can serve concurrent calls.

    Example:
        >>> async with httpx.AsyncClient() as http:
        ...     endpoint = EndpointRegistry.default().resolve(Network.MAINNET)
        ...     transport = Transport(http, endpoint, RetryConfig())
        ...     result = await transport.call("GET", "status")
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        endpoint: Endpoint,
        retry_config: Optional[RetryConfig] = None,
        sleep: Optional[Sleep] = None,
        clock=time.monotonic,
    ) -> None:
        self.http_client = http_client
        self.endpoint = endpoint
        self.retry_config = retry_config or RetryConfig()
        self._sleep = sleep
        self._clock = clock

    async def call(
        self,
        method: str,
        path: str,
        *,
        version: str = "v1",
        json: Any = None,
        params: Optional[Mapping[str, Any]] = None,
        retry_config: Optional[RetryConfig] = None,
    ) -> CallResult:
        """
        Execute one logical call, retrying RETRYABLE failures.

        Args:
            method: HTTP method
            path: Path below the version prefix (e.g. "status")
            version: API version prefix ("v1" or "v2")
            json: JSON body for POST requests
            params: Query string parameters
            retry_config: Per-call override of the transport's retry config

        Returns:
            CallResult with the decoded JSON body and the attempt count

        Raises:
            RpcError: NotFoundError, HttpError, ServerError or ExhaustedError
        """
        url = self.endpoint.url(path, version)
        config = retry_config or self.retry_config
        trace = CallTrace(endpoint=url)
        start = self._clock()
        last_status = 0

        async def attempt() -> Any:
            nonlocal last_status
            data, last_status = await self._attempt(method, url, json, params)
            return data

        data = await with_retry(attempt, config, endpoint=url, sleep=self._sleep, trace=trace)
        return CallResult(
            data=data,
            status_code=last_status,
            url=url,
            attempts=trace.attempts,
            elapsed=self._clock() - start,
        )

    async def get(self, path: str, **kwargs: Any) -> Any:
        result = await self.call("GET", path, **kwargs)
        return result.data

    async def post(self, path: str, body: Any, **kwargs: Any) -> Any:
        result = await self.call("POST", path, json=body, **kwargs)
        return result.data

    async def _attempt(
        self,
        method: str,
        url: str,
        body: Any,
        params: Optional[Mapping[str, Any]],
    ) -> tuple[Any, int]:
        logger.debug("%s %s", method, url)
        try:
            response = await self.http_client.request(
                method,
                url,
                json=body,
                params=params,
                headers=DEFAULT_HEADERS,
            )
        except httpx.TimeoutException as exc:
            raise RpcTimeoutError(endpoint=url) from exc
        except httpx.TransportError as exc:
            raise RpcConnectionError(str(exc) or type(exc).__name__, endpoint=url) from exc
        except httpx.RequestError as exc:
            # DecodingError, TooManyRedirects: the exchange completed but is unusable
            raise ServerError(f"{type(exc).__name__}: {exc}", endpoint=url) from exc

        status = response.status_code
        if status == 404:
            raise NotFoundError(endpoint=url, body=response.text)
        if not response.is_success:
            raise HttpError(status, response.text, endpoint=url)

        if not response.content:
            return {}, status
        try:
            return response.json(), status
        except ValueError as exc:
            raise ServerError(f"invalid JSON response: {exc}", endpoint=url) from exc
