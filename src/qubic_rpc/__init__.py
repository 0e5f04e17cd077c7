__all__ = [
    # Client
    "QubicRpcClient",
    "Network",
    "Endpoint",
    "EndpointRegistry",
    # Retry
    "RetryConfig",
    "CallState",
    "CallTrace",
    "with_retry",
    # Health
    "HealthMonitor",
    "HealthStatus",
    "HealthThresholds",
    "NetworkHealth",
    # Errors
    "Classification",
    "classify",
    "classify_status",
    "RpcError",
    "HttpError",
    "RpcTimeoutError",
    "RpcConnectionError",
    "ServerError",
    "NotFoundError",
    "ExhaustedError",
    "FallbackError",
    "ValidationError",
    # Transactions
    "Transaction",
    "SignedTransaction",
    "TransactionBuilder",
    "build_transaction",
    "sign_transaction",
    # Models
    "NetworkStatus",
    "EntityInfo",
    "QuorumInfo",
    "BlockInfo",
    "SmartContractInfo",
    "BroadcastResult",
    "ContractResponse",
    "RangeFilter",
    "QueryRanges",
    "QueryFilters",
    "Pagination",
    "TransactionsQuery",
    "TickDataQuery",
    "TransactionsPage",
    "TickDataPage",
    # Keys
    "Wallet",
    "CryptoError",
    "InvalidKeyMaterial",
    "SignatureError",
    "generate_seed",
    "k12",
    "verify",
    # Config
    "Settings",
    "load_settings",
]

from .keys.crypto import CryptoError, InvalidKeyMaterial, SignatureError, k12, verify
from .keys.wallet import Wallet, generate_seed
from .config import Settings, load_settings
from .rpc.errors import (
    Classification,
    ExhaustedError,
    FallbackError,
    HttpError,
    NotFoundError,
    RpcConnectionError,
    RpcError,
    RpcTimeoutError,
    ServerError,
    ValidationError,
    classify,
    classify_status,
)
from .rpc.network import Endpoint, EndpointRegistry, Network
from .rpc.retry import CallState, CallTrace, RetryConfig, with_retry
from .rpc.health import HealthMonitor, HealthStatus, HealthThresholds, NetworkHealth
from .rpc.models import (
    BlockInfo,
    BroadcastResult,
    ContractResponse,
    EntityInfo,
    NetworkStatus,
    Pagination,
    QueryFilters,
    QueryRanges,
    QuorumInfo,
    RangeFilter,
    SmartContractInfo,
    TickDataPage,
    TickDataQuery,
    TransactionsPage,
    TransactionsQuery,
)
from .rpc.tx import SignedTransaction, Transaction, TransactionBuilder, build_transaction, sign_transaction
from .rpc.client import QubicRpcClient
