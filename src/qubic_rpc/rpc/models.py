"""
Wire models for the Qubic RPC API.

Responses are parsed into frozen dataclasses through ``from_dict``, which
accepts both camelCase and snake_case keys. Query models serialize through
``to_dict`` into the V2 request shape.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from ..utils import base64_encode
from .errors import ValidationError
from .network import Network

PAGE_SIZE_CEILING = 1024
OFFSET_CEILING = 10_000
DEFAULT_PAGE_SIZE = 100


def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _int(value: Any, default: int = 0) -> int:
    if value is None or value == "":
        return default
    return int(value)


@dataclass(frozen=True)
class TickInfo:
    tick_number: int
    epoch: int

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "TickInfo":
        return cls(
            tick_number=_int(_pick(payload, "tickNumber", "tick_number", "tick")),
            epoch=_int(_pick(payload, "epoch")),
        )


@dataclass(frozen=True)
class SkippedTick:
    start_tick: int
    end_tick: int

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "SkippedTick":
        return cls(
            start_tick=_int(_pick(payload, "startTick", "start_tick")),
            end_tick=_int(_pick(payload, "endTick", "end_tick")),
        )


@dataclass(frozen=True)
class NetworkStatus:
    last_processed_tick: TickInfo
    skipped_ticks: tuple[SkippedTick, ...] = ()
    last_processed_ticks_per_epoch: Mapping[str, int] = field(default_factory=dict)
    empty_ticks_per_epoch: Mapping[str, int] = field(default_factory=dict)
    processed_epochs: int = 0

    @property
    def tick(self) -> int:
        return self.last_processed_tick.tick_number

    @property
    def epoch(self) -> int:
        return self.last_processed_tick.epoch

    @property
    def skipped_tick_count(self) -> int:
        return len(self.skipped_ticks)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "NetworkStatus":
        last = _pick(payload, "lastProcessedTick", "last_processed_tick", default={})
        skipped = _pick(payload, "skippedTicks", "skipped_ticks", default=[])
        per_epoch = _pick(payload, "lastProcessedTicksPerEpoch", default={})
        empty = _pick(payload, "emptyTicksPerEpoch", default={})
        intervals = _pick(payload, "processedTickIntervalsPerEpoch", default=[])
        return cls(
            last_processed_tick=TickInfo.from_dict(last),
            skipped_ticks=tuple(SkippedTick.from_dict(item) for item in skipped),
            last_processed_ticks_per_epoch={str(k): _int(v) for k, v in per_epoch.items()},
            empty_ticks_per_epoch={str(k): _int(v) for k, v in empty.items()},
            processed_epochs=len(intervals),
        )


@dataclass(frozen=True)
class EntityInfo:
    identity: str
    balance: int
    valid_for_tick: int = 0
    latest_incoming_transfer_tick: int = 0
    latest_outgoing_transfer_tick: int = 0
    incoming_amount: int = 0
    outgoing_amount: int = 0

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "EntityInfo":
        data = payload
        for wrapper in ("entity", "balance"):
            if isinstance(payload.get(wrapper), Mapping):
                data = payload[wrapper]
                break
        return cls(
            identity=str(_pick(data, "id", "identity", "publicKey", default="")),
            balance=_int(_pick(data, "balance")),
            valid_for_tick=_int(_pick(data, "validForTick", "tick")),
            latest_incoming_transfer_tick=_int(
                _pick(data, "latestIncomingTransferTick", "latest_incoming_transfer_tick")
            ),
            latest_outgoing_transfer_tick=_int(
                _pick(data, "latestOutgoingTransferTick", "latest_outgoing_transfer_tick")
            ),
            incoming_amount=_int(_pick(data, "incomingAmount")),
            outgoing_amount=_int(_pick(data, "outgoingAmount")),
        )


@dataclass(frozen=True)
class QuorumInfo:
    quorum_size: int
    total_computors: int
    online_computors: int
    epoch: int

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "QuorumInfo":
        return cls(
            quorum_size=_int(_pick(payload, "quorumSize", "quorum_size")),
            total_computors=_int(_pick(payload, "totalComputors", "total_computors")),
            online_computors=_int(_pick(payload, "onlineComputors", "online_computors")),
            epoch=_int(_pick(payload, "epoch")),
        )


def _key_text(value: Any) -> str:
    # Keys arrive either as an address string or as a list of 32 byte values.
    if isinstance(value, (list, tuple)):
        return base64_encode(bytes(value))
    return "" if value is None else str(value)


@dataclass(frozen=True)
class BlockInfo:
    tick: int
    epoch: int
    number_of_transactions: int
    transactions: tuple[TransactionRecord, ...] = ()
    timestamp: int = 0

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "BlockInfo":
        data = payload.get("block", payload)
        transactions = tuple(
            TransactionRecord.from_dict(item) for item in _pick(data, "transactions", default=[])
        )
        return cls(
            tick=_int(_pick(data, "tick", "tickNumber")),
            epoch=_int(_pick(data, "epoch")),
            number_of_transactions=_int(
                _pick(data, "numberOfTransactions", "number_of_transactions"),
                default=len(transactions),
            ),
            transactions=transactions,
            timestamp=_int(_pick(data, "timestamp")),
        )


@dataclass(frozen=True)
class SmartContractInfo:
    index: int
    code_size: int
    state_size: int
    creator: str
    creation_tick: int

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "SmartContractInfo":
        data = payload.get("contract", payload)
        return cls(
            index=_int(_pick(data, "index", "contractIndex")),
            code_size=_int(_pick(data, "codeSize", "code_size")),
            state_size=_int(_pick(data, "stateSize", "state_size")),
            creator=_key_text(_pick(data, "creator")),
            creation_tick=_int(_pick(data, "creationTick", "creation_tick")),
        )


@dataclass(frozen=True)
class BroadcastResult:
    tx_id: str
    status: str = "broadcast"
    message: Optional[str] = None
    peers_broadcasted: Optional[int] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any], fallback_tx_id: str = "") -> "BroadcastResult":
        peers = _pick(payload, "peersBroadcasted")
        return cls(
            tx_id=str(_pick(payload, "txId", "transactionId", default=fallback_tx_id)),
            status=str(_pick(payload, "status", default="broadcast")),
            message=_pick(payload, "message"),
            peers_broadcasted=None if peers is None else int(peers),
        )


@dataclass(frozen=True)
class NetworkAttempt:
    """One step of a fallback chain."""

    network: Network
    outcome: str
    error: Optional[str] = None


@dataclass(frozen=True)
class ContractResponse:
    data: bytes
    network: Network
    trail: tuple[NetworkAttempt, ...] = ()


# ============ V2 Query Model ============


@dataclass(frozen=True)
class RangeFilter:
    gt: Optional[str] = None
    gte: Optional[str] = None
    lt: Optional[str] = None
    lte: Optional[str] = None

    @classmethod
    def between(cls, start: Optional[int] = None, end: Optional[int] = None) -> "RangeFilter":
        """Inclusive range; either bound may be omitted."""
        return cls(
            gte=None if start is None else str(start),
            lte=None if end is None else str(end),
        )

    def to_dict(self) -> dict[str, str]:
        bounds = (("gt", self.gt), ("gte", self.gte), ("lt", self.lt), ("lte", self.lte))
        return {k: v for k, v in bounds if v is not None}

    def lower_bound(self) -> Optional[int]:
        """Smallest integer admitted by the filter, if bounded below."""
        candidates = []
        if self.gte is not None:
            candidates.append(int(self.gte))
        if self.gt is not None:
            candidates.append(int(self.gt) + 1)
        return max(candidates) if candidates else None

    def upper_bound(self) -> Optional[int]:
        """Largest integer admitted by the filter, if bounded above."""
        candidates = []
        if self.lte is not None:
            candidates.append(int(self.lte))
        if self.lt is not None:
            candidates.append(int(self.lt) - 1)
        return min(candidates) if candidates else None

    def admits(self, value: int) -> bool:
        low, high = self.lower_bound(), self.upper_bound()
        return (low is None or value >= low) and (high is None or value <= high)


@dataclass(frozen=True)
class QueryRanges:
    amount: Optional[RangeFilter] = None
    tick_number: Optional[RangeFilter] = None
    timestamp: Optional[RangeFilter] = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.amount is not None:
            out["amount"] = self.amount.to_dict()
        if self.tick_number is not None:
            out["tickNumber"] = self.tick_number.to_dict()
        if self.timestamp is not None:
            out["timestamp"] = self.timestamp.to_dict()
        return out


@dataclass(frozen=True)
class QueryFilters:
    input_type: Optional[str] = None
    transaction_type: Optional[str] = None
    execution_status: Optional[str] = None

    def to_dict(self) -> dict[str, str]:
        out = {}
        if self.input_type is not None:
            out["inputType"] = self.input_type
        if self.transaction_type is not None:
            out["transactionType"] = self.transaction_type
        if self.execution_status is not None:
            out["executionStatus"] = self.execution_status
        return out


@dataclass(frozen=True)
class Pagination:
    size: int = DEFAULT_PAGE_SIZE
    offset: int = 0

    def __post_init__(self) -> None:
        if not 1 <= self.size <= PAGE_SIZE_CEILING:
            raise ValidationError(f"Page size must be between 1 and {PAGE_SIZE_CEILING}.")
        if not 0 <= self.offset <= OFFSET_CEILING:
            raise ValidationError(f"Offset must be between 0 and {OFFSET_CEILING}.")

    def to_dict(self) -> dict[str, int]:
        return {"size": self.size, "offset": self.offset}


@dataclass(frozen=True)
class TransactionsQuery:
    identity: str
    filters: Optional[QueryFilters] = None
    ranges: Optional[QueryRanges] = None
    pagination: Pagination = field(default_factory=Pagination)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"identity": self.identity, "pagination": self.pagination.to_dict()}
        if self.filters is not None:
            out["filters"] = self.filters.to_dict()
        if self.ranges is not None:
            out["ranges"] = self.ranges.to_dict()
        return out


@dataclass(frozen=True)
class TickDataQuery:
    filters: Optional[QueryFilters] = None
    ranges: Optional[QueryRanges] = None
    pagination: Pagination = field(default_factory=Pagination)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"pagination": self.pagination.to_dict()}
        if self.filters is not None:
            out["filters"] = self.filters.to_dict()
        if self.ranges is not None:
            out["ranges"] = self.ranges.to_dict()
        return out


@dataclass(frozen=True)
class TransactionRecord:
    tx_id: str
    source_id: str
    dest_id: str
    amount: int
    tick_number: int
    input_type: int = 0
    input_size: int = 0
    input_hex: Optional[str] = None
    signature_hex: str = ""
    timestamp: Optional[str] = None
    execution_status: Optional[str] = None
    money_flew: Optional[bool] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "TransactionRecord":
        # V1 archive responses nest the fields under "transaction".
        data = payload.get("transaction", payload)
        return cls(
            tx_id=str(_pick(data, "txId", "hash", default="")),
            source_id=str(_pick(data, "sourceId", default="")),
            dest_id=str(_pick(data, "destId", default="")),
            amount=_int(_pick(data, "amount")),
            tick_number=_int(_pick(data, "tickNumber")),
            input_type=_int(_pick(data, "inputType")),
            input_size=_int(_pick(data, "inputSize")),
            input_hex=_pick(data, "inputHex"),
            signature_hex=str(_pick(data, "signatureHex", default="")),
            timestamp=_pick(payload, "timestamp", default=_pick(data, "timestamp")),
            execution_status=_pick(payload, "executionStatus", default=_pick(data, "executionStatus")),
            money_flew=_pick(payload, "moneyFlew", default=_pick(data, "moneyFlew")),
        )


@dataclass(frozen=True)
class TransactionsPage:
    transactions: tuple[TransactionRecord, ...]
    total_count: int
    offset: int
    size: int

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "TransactionsPage":
        items = _pick(payload, "transactions", default=[])
        return cls(
            transactions=tuple(TransactionRecord.from_dict(item) for item in items),
            total_count=_int(_pick(payload, "totalCount"), default=len(items)),
            offset=_int(_pick(payload, "offset")),
            size=_int(_pick(payload, "size"), default=len(items)),
        )


@dataclass(frozen=True)
class TickData:
    tick_number: int
    epoch: int
    timestamp: Optional[str] = None
    transaction_count: int = 0
    signature: str = ""

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "TickData":
        # V1 tick-data responses wrap the body in "tickData".
        data = payload.get("tickData", payload) or {}
        tx_ids = _pick(data, "transactionIds", default=[])
        return cls(
            tick_number=_int(_pick(data, "tickNumber")),
            epoch=_int(_pick(data, "epoch")),
            timestamp=None if _pick(data, "timestamp") is None else str(_pick(data, "timestamp")),
            transaction_count=_int(_pick(data, "transactionCount"), default=len(tx_ids)),
            signature=str(_pick(data, "signature", "signatureHex", default="")),
        )


@dataclass(frozen=True)
class TickDataPage:
    ticks: tuple[TickData, ...]
    total_count: int
    offset: int
    size: int

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "TickDataPage":
        items = _pick(payload, "tickData", default=[])
        return cls(
            ticks=tuple(TickData.from_dict(item) for item in items),
            total_count=_int(_pick(payload, "totalCount"), default=len(items)),
            offset=_int(_pick(payload, "offset")),
            size=_int(_pick(payload, "size"), default=len(items)),
        )
