"""
Wallet - Ed25519 key ownership for Qubic transactions.

A ``Wallet`` exclusively owns its signing key. Callers get the public key,
the address and signatures, never the private key bytes.

Key material can be supplied via the environment (or ~/.qubic-rpc/.env):
- QUBIC_SEED: 55-character seed
- QUBIC_PRIVATE_KEY: 64-character hex private key

The core never writes key material to disk.
"""

from __future__ import annotations

import os
import secrets
import string
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from cryptography.hazmat.primitives.asymmetric import ed25519
from dotenv import load_dotenv

from ..config import QUBIC_ENV
from ..utils import base64_decode, base64_encode
from . import crypto

if TYPE_CHECKING:
    from ..rpc.tx import SignedTransaction

_SEED_CHARSET = string.ascii_letters + string.digits


def generate_seed() -> str:
    """Generate a new random 55-character alphanumeric seed."""
    return "".join(secrets.choice(_SEED_CHARSET) for _ in range(crypto.SEED_LENGTH))


def address_from_public_key(public_key: bytes) -> str:
    """Encode a 32-byte public key as an address (base64)."""
    if len(public_key) != crypto.KEY_SIZE:
        raise crypto.InvalidKeyMaterial(f"Public key must be {crypto.KEY_SIZE} bytes.")
    return base64_encode(public_key)


def public_key_from_address(address: str) -> bytes:
    """Decode an address back to its 32-byte public key."""
    try:
        public_key = base64_decode(address)
    except ValueError as exc:
        raise crypto.InvalidKeyMaterial(f"Invalid address: {address!r}") from exc
    if len(public_key) != crypto.KEY_SIZE:
        raise crypto.InvalidKeyMaterial("Invalid address length.")
    return public_key


def is_valid_address(address: str) -> bool:
    try:
        public_key_from_address(address)
    except crypto.InvalidKeyMaterial:
        return False
    return True


@dataclass(frozen=True, eq=False)
class Wallet:
    _signing_key: ed25519.Ed25519PrivateKey = field(repr=False)
    public_key: bytes = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "public_key", crypto.public_key_bytes(self._signing_key))

    @classmethod
    def from_seed(cls, seed: str) -> "Wallet":
        return cls(crypto.load_signing_key(crypto.private_key_from_seed(seed)))

    @classmethod
    def from_private_key_hex(cls, private_key_hex: str) -> "Wallet":
        return cls(crypto.load_signing_key(crypto.private_key_from_hex(private_key_hex)))

    @classmethod
    def from_private_key(cls, private_key: bytes) -> "Wallet":
        return cls(crypto.load_signing_key(private_key))

    @classmethod
    def from_secret(cls, secret: str) -> "Wallet":
        """Build a wallet from either a 55-char seed or a 64-char hex key."""
        secret = secret.strip()
        if len(secret) == crypto.SEED_LENGTH:
            return cls.from_seed(secret)
        if len(secret) == crypto.PRIVATE_KEY_HEX_LENGTH:
            return cls.from_private_key_hex(secret)
        raise crypto.InvalidKeyMaterial(
            f"Expected a {crypto.SEED_LENGTH}-character seed or a "
            f"{crypto.PRIVATE_KEY_HEX_LENGTH}-character hex private key."
        )

    @classmethod
    def generate(cls) -> tuple["Wallet", str]:
        """Create a wallet from a fresh random seed. Returns (wallet, seed)."""
        seed = generate_seed()
        return cls.from_seed(seed), seed

    @property
    def address(self) -> str:
        return address_from_public_key(self.public_key)

    @property
    def public_key_hex(self) -> str:
        return self.public_key.hex()

    def sign(self, message: bytes) -> bytes:
        """Sign arbitrary bytes. Returns the 64-byte signature."""
        return crypto.sign(message, self._signing_key)

    def verify(self, message: bytes, signature: bytes) -> bool:
        return crypto.verify(message, signature, self.public_key)

    def create_transfer(self, to: bytes, amount: int, tick: int) -> "SignedTransaction":
        """Build and sign a plain transfer from this wallet."""
        from ..rpc.tx import build_transaction, sign_transaction

        return sign_transaction(build_transaction(self.public_key, to, amount, tick), self)

    def create_contract_transaction(
        self,
        contract: bytes,
        amount: int,
        tick: int,
        input_type: int,
        input_data: bytes = b"",
    ) -> "SignedTransaction":
        """Build and sign a smart contract call from this wallet."""
        from ..rpc.tx import build_transaction, sign_transaction

        tx = build_transaction(
            self.public_key,
            contract,
            amount,
            tick,
            input_type=input_type,
            input_data=input_data,
        )
        return sign_transaction(tx, self)

    def verify_transaction(self, signed: "SignedTransaction") -> bool:
        """True if ``signed`` comes from this wallet and its signature holds."""
        return signed.transaction.source == self.public_key and signed.verify()

    def __repr__(self) -> str:
        return f"Wallet(address={self.address!r})"


def load_wallet(env_path: Optional[Path] = None) -> Wallet:
    """
    Load a wallet from the environment or a .env file.

    Args:
        env_path: Path to .env file (default: ~/.qubic-rpc/.env)

    Returns:
        Wallet built from QUBIC_SEED or QUBIC_PRIVATE_KEY

    Raises:
        ValueError: If neither variable is set
        InvalidKeyMaterial: If the configured value is malformed
    """
    env_path = env_path or QUBIC_ENV

    if env_path.exists():
        load_dotenv(env_path, override=False)

    seed = os.environ.get("QUBIC_SEED")
    if seed:
        return Wallet.from_seed(seed.strip())

    private_key = os.environ.get("QUBIC_PRIVATE_KEY")
    if private_key:
        return Wallet.from_private_key_hex(private_key.strip())

    raise ValueError(
        f"No wallet configured. Set QUBIC_SEED or QUBIC_PRIVATE_KEY "
        f"(environment or {env_path})."
    )
