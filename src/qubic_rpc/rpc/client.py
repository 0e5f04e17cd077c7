"""
RPC Client - the single public surface for talking to a Qubic network.

Composes the endpoint registry, one ``Transport`` per network and the
retry policy. Every operation is a coroutine; the client holds no mutable
per-call state, so concurrent calls on one instance are independent.

Usage:
    async with QubicRpcClient(Network.TESTNET) as client:
        status = await client.get_status()
        tick = status.tick + 10
"""

from __future__ import annotations

import logging
import time
from urllib.parse import quote
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence, TypeVar, Union

import httpx

from ..keys.crypto import SignatureError
from ..keys.wallet import address_from_public_key
from ..utils import base64_decode, base64_encode
from .errors import FallbackError, NotFoundError, RpcError, ServerError, ValidationError
from .health import HealthMonitor, HealthThresholds, NetworkHealth
from .models import (
    BlockInfo,
    BroadcastResult,
    ContractResponse,
    EntityInfo,
    NetworkAttempt,
    NetworkStatus,
    Pagination,
    QueryRanges,
    QuorumInfo,
    RangeFilter,
    SmartContractInfo,
    TickData,
    TickDataPage,
    TickDataQuery,
    TransactionRecord,
    TransactionsPage,
    TransactionsQuery,
)
from .network import EndpointRegistry, Network
from .retry import RetryConfig, Sleep
from .transport import Transport
from .tx import SignedTransaction

logger = logging.getLogger(__name__)

T = TypeVar("T")

QUORUM_THRESHOLD = 451
DEFAULT_TIMEOUT = 30.0
# Tick window scanned by the V1 transaction fallback when no lower bound is given.
V1_TICK_WINDOW = 1000

Identity = Union[str, bytes]


def _identity(value: Identity) -> str:
    if isinstance(value, (bytes, bytearray)):
        return address_from_public_key(bytes(value))
    if not value:
        raise ValidationError("Identity must not be empty")
    return value


def _path_segment(identity: str) -> str:
    # base64 addresses may contain "/" and "+"
    return quote(identity, safe="")


class QubicRpcClient:
    """
    Async Qubic RPC client.

    Args:
        network: Network used by every operation that takes no explicit chain
        registry: Endpoint registry (default: built-in public endpoints)
        retry_config: Retry policy shared by all calls
        timeout: Per-attempt HTTP timeout in seconds
        http_client: Pre-built httpx.AsyncClient (not closed by this client)
        sleep: Awaitable used for backoff waits
        health_thresholds: Latency bounds for health probes
    """

    def __init__(
        self,
        network: Union[Network, str] = Network.MAINNET,
        *,
        registry: Optional[EndpointRegistry] = None,
        retry_config: Optional[RetryConfig] = None,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None,
        sleep: Optional[Sleep] = None,
        health_thresholds: Optional[HealthThresholds] = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.network = Network.parse(network)
        self.registry = registry or EndpointRegistry.default()
        self.retry_config = retry_config or RetryConfig.default()
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)
        self._sleep = sleep
        self._clock = clock
        self._monitor = HealthMonitor(health_thresholds, clock=clock)
        self._transports: dict[Network, Transport] = {}

    async def __aenter__(self) -> "QubicRpcClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    @property
    def base_url(self) -> str:
        return self.registry.resolve(self.network).base_url

    def transport(self, network: Optional[Network] = None) -> Transport:
        network = network or self.network
        transport = self._transports.get(network)
        if transport is None:
            transport = Transport(
                self._http,
                self.registry.resolve(network),
                self.retry_config,
                sleep=self._sleep,
            )
            self._transports[network] = transport
        return transport

    # ============ Status / Entity ============

    async def get_status(self) -> NetworkStatus:
        data = await self.transport().get("status")
        return NetworkStatus.from_dict(data)

    async def get_current_tick(self) -> int:
        status = await self.get_status()
        return status.tick

    async def get_entity(self, identity: Identity) -> EntityInfo:
        """Look up an entity. NotFoundError on networks without the feature."""
        data = await self.transport().get(f"entity/{_path_segment(_identity(identity))}")
        return EntityInfo.from_dict(data)

    async def get_balance(self, identity: Identity) -> int:
        entity = await self.get_entity(identity)
        return entity.balance

    async def get_quorum(self) -> QuorumInfo:
        data = await self.transport().get("quorum")
        return QuorumInfo.from_dict(data)

    async def is_network_ready(self) -> bool:
        """True when the quorum reaches 451 of 676 computors."""
        quorum = await self.get_quorum()
        return quorum.quorum_size >= QUORUM_THRESHOLD

    async def get_block(self, tick: int) -> BlockInfo:
        if tick <= 0:
            raise ValidationError(f"Tick must be positive, got {tick}")
        data = await self.transport().get(f"block/{tick}")
        return BlockInfo.from_dict(data)

    async def get_smart_contract(self, contract_index: int) -> SmartContractInfo:
        """Contract metadata. NotFoundError on networks without the feature."""
        if contract_index < 0:
            raise ValidationError(f"Contract index must not be negative, got {contract_index}")
        data = await self.transport().get(f"contract/{contract_index}")
        return SmartContractInfo.from_dict(data)

    # ============ Smart Contracts ============

    async def with_fallback(
        self,
        networks: Sequence[Network],
        operation: Callable[[Transport], Awaitable[T]],
    ) -> tuple[T, Network, tuple[NetworkAttempt, ...]]:
        """
        Run ``operation`` against each network in order until one succeeds.

        Fatal and exhausted failures move on to the next network. NotFound
        is raised at once.

        Returns:
            (result, network that produced it, trail of attempts)

        Raises:
            NotFoundError: From the first network reporting it
            FallbackError: When every network failed
        """
        if not networks:
            raise ValidationError("Fallback chain must name at least one network")

        trail: list[NetworkAttempt] = []
        last_error: Optional[RpcError] = None
        for network in networks:
            try:
                result = await operation(self.transport(network))
            except NotFoundError as exc:
                trail.append(NetworkAttempt(network, "not_found", str(exc)))
                raise
            except RpcError as exc:
                trail.append(NetworkAttempt(network, exc.kind, str(exc)))
                last_error = exc
                logger.info("Network %s failed (%s), trying next", network.value, exc.kind)
                continue
            trail.append(NetworkAttempt(network, "success"))
            return result, network, tuple(trail)

        raise FallbackError(trail, last_error)

    async def query_smart_contract(
        self,
        contract_index: int,
        input_type: int,
        request_data: bytes = b"",
        *,
        networks: Optional[Sequence[Network]] = None,
    ) -> ContractResponse:
        """
        Query a smart contract function.

        Args:
            contract_index: Contract index on the network
            input_type: Contract function number
            request_data: Raw function input
            networks: Ordered fallback chain (default: this client's network only)

        Returns:
            ContractResponse with the decoded response bytes and the trail
        """
        body = {
            "contractIndex": contract_index,
            "inputType": input_type,
            "inputSize": len(request_data),
            "requestData": base64_encode(request_data),
        }

        async def attempt(transport: Transport) -> bytes:
            data = await transport.post("querySmartContract", body)
            encoded = data.get("responseData") if isinstance(data, Mapping) else None
            if encoded is None:
                raise ServerError("missing responseData", endpoint=transport.endpoint.url("querySmartContract"))
            try:
                return base64_decode(encoded)
            except ValueError as exc:
                raise ServerError(
                    f"responseData is not base64: {exc}",
                    endpoint=transport.endpoint.url("querySmartContract"),
                ) from exc

        chain = list(networks) if networks is not None else [self.network]
        payload, network, trail = await self.with_fallback(chain, attempt)
        return ContractResponse(data=payload, network=network, trail=trail)

    # ============ Transactions ============

    async def broadcast_transaction(self, signed_tx: SignedTransaction) -> BroadcastResult:
        """
        Broadcast a signed transaction.

        Raises:
            SignatureError: If the signature does not verify (nothing is sent)
        """
        if not signed_tx.verify():
            raise SignatureError("Refusing to broadcast a transaction whose signature does not verify")
        tx_id = signed_tx.transaction_id()
        data = await self.transport().post(
            "broadcast-transaction",
            {"encodedTransaction": signed_tx.encoded()},
        )
        logger.info("Broadcast transaction %s", tx_id)
        return BroadcastResult.from_dict(data if isinstance(data, Mapping) else {}, fallback_tx_id=tx_id)

    # ============ V2 Queries ============

    def _supports_v2(self) -> bool:
        return self.registry.resolve(self.network).supports_v2

    async def get_transactions_for_identity(self, query: TransactionsQuery) -> TransactionsPage:
        """Transaction history, V2 when available, otherwise the V1 archive shape."""
        if self._supports_v2():
            data = await self.transport().post("getTransactionsForIdentity", query.to_dict(), version="v2")
            return TransactionsPage.from_dict(data)
        return await self._transactions_v1(query)

    async def get_tick_data(self, query: TickDataQuery) -> TickDataPage:
        if self._supports_v2():
            data = await self.transport().post("getTickData", query.to_dict(), version="v2")
            return TickDataPage.from_dict(data)
        return await self._tick_data_v1(query)

    async def get_identity_transactions(
        self, identity: Identity, limit: Optional[int] = None, offset: int = 0
    ) -> TransactionsPage:
        pagination = Pagination(size=limit, offset=offset) if limit is not None else Pagination(offset=offset)
        return await self.get_transactions_for_identity(
            TransactionsQuery(identity=_identity(identity), pagination=pagination)
        )

    async def get_transactions_with_amount_filter(
        self,
        identity: Identity,
        min_amount: Optional[int] = None,
        max_amount: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> TransactionsPage:
        query = TransactionsQuery(
            identity=_identity(identity),
            ranges=QueryRanges(amount=RangeFilter.between(min_amount, max_amount)),
            pagination=Pagination(size=limit) if limit is not None else Pagination(),
        )
        return await self.get_transactions_for_identity(query)

    async def get_transactions_in_tick_range(
        self,
        identity: Identity,
        start_tick: Optional[int] = None,
        end_tick: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> TransactionsPage:
        query = TransactionsQuery(
            identity=_identity(identity),
            ranges=QueryRanges(tick_number=RangeFilter.between(start_tick, end_tick)),
            pagination=Pagination(size=limit) if limit is not None else Pagination(),
        )
        return await self.get_transactions_for_identity(query)

    async def get_recent_ticks(self, limit: Optional[int] = None) -> TickDataPage:
        pagination = Pagination(size=limit) if limit is not None else Pagination()
        return await self.get_tick_data(TickDataQuery(pagination=pagination))

    async def _transactions_v1(self, query: TransactionsQuery) -> TransactionsPage:
        ranges = query.ranges or QueryRanges()
        tick_range = ranges.tick_number or RangeFilter()
        end = tick_range.upper_bound()
        if end is None:
            end = await self.get_current_tick()
        start = tick_range.lower_bound()
        if start is None:
            start = max(1, end - V1_TICK_WINDOW + 1)

        data = await self.transport().get(
            f"identities/{_path_segment(query.identity)}/transfer-transactions",
            params={"startTick": start, "endTick": end},
        )
        records = []
        per_tick = data.get("transferTransactionsPerTick") if isinstance(data, Mapping) else None
        for tick in per_tick or []:
            for item in tick.get("transactions") or []:
                records.append(TransactionRecord.from_dict(item))

        if ranges.amount is not None:
            records = [r for r in records if ranges.amount.admits(r.amount)]
        if query.filters is not None and query.filters.input_type is not None:
            wanted = int(query.filters.input_type)
            records = [r for r in records if r.input_type == wanted]

        records.sort(key=lambda r: r.tick_number, reverse=True)
        page = query.pagination
        window = records[page.offset : page.offset + page.size]
        return TransactionsPage(
            transactions=tuple(window),
            total_count=len(records),
            offset=page.offset,
            size=len(window),
        )

    async def _tick_data_v1(self, query: TickDataQuery) -> TickDataPage:
        """
        Walk ``/v1/ticks/{tick}/tick-data`` newest first.

        V1 has no tick count, so ``total_count`` is the number of tick
        numbers in the covered range, empty ticks included. Without a lower
        bound the range ends at the page window, ``offset + size`` ticks
        below the upper bound.
        """
        page = query.pagination
        tick_range = (query.ranges or QueryRanges()).tick_number or RangeFilter()
        high = tick_range.upper_bound()
        if high is None:
            high = await self.get_current_tick()
        low = tick_range.lower_bound()
        if low is None:
            low = max(1, high - (page.offset + page.size) + 1)

        total = max(0, high - low + 1)
        first = high - page.offset
        last = max(low, first - page.size + 1)

        ticks: list[TickData] = []
        transport = self.transport()
        for tick in range(first, last - 1, -1):
            try:
                data = await transport.get(f"ticks/{tick}/tick-data")
            except NotFoundError:
                logger.debug("Tick %d has no data, skipping", tick)
                continue
            if not isinstance(data, Mapping) or data.get("tickData", data) is None:
                continue
            ticks.append(TickData.from_dict(data))

        return TickDataPage(ticks=tuple(ticks), total_count=total, offset=page.offset, size=len(ticks))

    # ============ Health ============

    async def check_health(self, network: Optional[Network] = None) -> NetworkHealth:
        """Single-attempt probe of one network (default: this client's)."""
        return await self._monitor.probe(self.transport(network))

    async def check_health_many(self, networks: Sequence[Network]) -> list[NetworkHealth]:
        return await self._monitor.probe_many([self.transport(n) for n in networks])

    async def ping(self) -> float:
        """Round-trip time of a status call, in seconds."""
        start = self._clock()
        await self.get_status()
        return self._clock() - start

    async def first_usable_network(self, candidates: Sequence[Network]) -> Optional[Network]:
        """Probe candidates in order and return the first usable one."""
        for network in candidates:
            health = await self.check_health(network)
            if health.is_usable():
                return network
            logger.info("Network %s unusable: %s", network.value, health.error)
        return None

    # ============ Raw Access ============

    async def raw_get(self, path: str) -> Any:
        return await self.transport().get(path.lstrip("/"))

    async def raw_post(self, path: str, body: Any) -> Any:
        return await self.transport().post(path.lstrip("/"), body)
