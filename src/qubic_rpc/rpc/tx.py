"""
Transaction Builder - Build, sign, and encode Qubic transfers.

Canonical encoding (little-endian integers):

    source (32) | destination (32) | amount u64 | tick u64
    | input_type u16 | input_size u16 | input_data (input_size bytes)

The signed form appends the 64-byte Ed25519 signature over the canonical
bytes. The transaction id is the hex KangarooTwelve digest of the signed
form.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Any, Optional

from ..keys.crypto import KEY_SIZE, SIGNATURE_SIZE, SignatureError, k12_hex, verify
from ..keys.wallet import Wallet, address_from_public_key
from ..utils import base64_encode
from .errors import ValidationError

MAX_AMOUNT = 2**64 - 1
MAX_INPUT_SIZE = 1024
TRANSFER_INPUT_TYPE = 0

_HEADER = struct.Struct("<32s32sQQHH")


@dataclass(frozen=True)
class Transaction:
    source: bytes
    destination: bytes
    amount: int
    tick: int
    input_type: int = TRANSFER_INPUT_TYPE
    input_data: bytes = b""

    @property
    def input_size(self) -> int:
        return len(self.input_data)

    def to_bytes(self) -> bytes:
        header = _HEADER.pack(
            self.source,
            self.destination,
            self.amount,
            self.tick,
            self.input_type,
            self.input_size,
        )
        return header + self.input_data

    def to_dict(self) -> dict[str, Any]:
        return {
            "sourceId": address_from_public_key(self.source),
            "destId": address_from_public_key(self.destination),
            "amount": str(self.amount),
            "tickNumber": self.tick,
            "inputType": self.input_type,
            "inputSize": self.input_size,
            "inputHex": self.input_data.hex(),
        }


@dataclass(frozen=True)
class SignedTransaction:
    transaction: Transaction
    signature: bytes

    def to_bytes(self) -> bytes:
        return self.transaction.to_bytes() + self.signature

    def transaction_id(self) -> str:
        return k12_hex(self.to_bytes())

    def verify(self) -> bool:
        """Check the signature against the source key."""
        if len(self.signature) != SIGNATURE_SIZE:
            return False
        return verify(self.transaction.to_bytes(), self.signature, self.transaction.source)

    def encoded(self) -> str:
        return base64_encode(self.to_bytes())

    def to_dict(self) -> dict[str, Any]:
        data = self.transaction.to_dict()
        data["signatureHex"] = self.signature.hex()
        data["txId"] = self.transaction_id()
        return data


def build_transaction(
    source: bytes,
    destination: bytes,
    amount: int,
    tick: int,
    *,
    last_known_tick: Optional[int] = None,
    input_type: int = TRANSFER_INPUT_TYPE,
    input_data: bytes = b"",
) -> Transaction:
    """
    Build an unsigned transaction, validating every field.

    Args:
        source: 32-byte source public key
        destination: 32-byte destination public key
        amount: Transfer amount, 1..2^64-1
        tick: Target tick, must be positive
        last_known_tick: Latest tick observed; the target must lie beyond it
        input_type: Smart contract input type (0 for a plain transfer)
        input_data: Contract payload, at most 1024 bytes

    Returns:
        Unsigned Transaction

    Raises:
        ValidationError: On any out-of-range field
    """
    if len(source) != KEY_SIZE:
        raise ValidationError(f"Source key must be {KEY_SIZE} bytes, got {len(source)}")
    if len(destination) != KEY_SIZE:
        raise ValidationError(f"Destination key must be {KEY_SIZE} bytes, got {len(destination)}")
    if isinstance(amount, bool) or not 1 <= amount <= MAX_AMOUNT:
        raise ValidationError(f"Amount must be between 1 and {MAX_AMOUNT}, got {amount}")
    if tick <= 0:
        raise ValidationError(f"Tick must be positive, got {tick}")
    if last_known_tick is not None and tick <= last_known_tick:
        raise ValidationError(f"Tick {tick} is not after the last known tick {last_known_tick}")
    if not 0 <= input_type <= 0xFFFF:
        raise ValidationError(f"Input type must fit in 16 bits, got {input_type}")
    if len(input_data) > MAX_INPUT_SIZE:
        raise ValidationError(f"Input data exceeds {MAX_INPUT_SIZE} bytes ({len(input_data)})")
    if input_type == TRANSFER_INPUT_TYPE and input_data:
        raise ValidationError("A plain transfer (input type 0) cannot carry input data")

    return Transaction(
        source=bytes(source),
        destination=bytes(destination),
        amount=amount,
        tick=tick,
        input_type=input_type,
        input_data=bytes(input_data),
    )


class TransactionBuilder:
    """
    Fluent builder over ``build_transaction``.

    Example:
        >>> tx = (TransactionBuilder()
        ...       .source(wallet.public_key)
        ...       .destination(dest_key)
        ...       .amount(1000)
        ...       .tick(status.tick + 10)
        ...       .build())
    """

    def __init__(self) -> None:
        self._source: Optional[bytes] = None
        self._destination: Optional[bytes] = None
        self._amount: Optional[int] = None
        self._tick: Optional[int] = None
        self._last_known_tick: Optional[int] = None
        self._input_type = TRANSFER_INPUT_TYPE
        self._input_data = b""

    def source(self, public_key: bytes) -> "TransactionBuilder":
        self._source = public_key
        return self

    def destination(self, public_key: bytes) -> "TransactionBuilder":
        self._destination = public_key
        return self

    def amount(self, amount: int) -> "TransactionBuilder":
        self._amount = amount
        return self

    def tick(self, tick: int, last_known_tick: Optional[int] = None) -> "TransactionBuilder":
        self._tick = tick
        self._last_known_tick = last_known_tick
        return self

    def input(self, input_type: int, data: bytes = b"") -> "TransactionBuilder":
        self._input_type = input_type
        self._input_data = data
        return self

    def build(self) -> Transaction:
        missing = [
            name
            for name, value in (
                ("source", self._source),
                ("destination", self._destination),
                ("amount", self._amount),
                ("tick", self._tick),
            )
            if value is None
        ]
        if missing:
            raise ValidationError(f"Missing transaction fields: {', '.join(missing)}")
        return build_transaction(
            self._source,
            self._destination,
            self._amount,
            self._tick,
            last_known_tick=self._last_known_tick,
            input_type=self._input_type,
            input_data=self._input_data,
        )


def sign_transaction(tx: Transaction, wallet: Wallet) -> SignedTransaction:
    """
    Sign a transaction with the wallet that owns its source key.

    Raises:
        ValidationError: If the wallet is not the transaction's source
        SignatureError: If the produced signature does not verify
    """
    if wallet.public_key != tx.source:
        raise ValidationError("Wallet public key does not match the transaction source")
    signed = SignedTransaction(transaction=tx, signature=wallet.sign(tx.to_bytes()))
    if not signed.verify():
        raise SignatureError("Signature failed self-verification")
    return signed
