"""
Qubic Cryptographic Primitives.

Provides:
- KangarooTwelve (K12) hashing for key derivation and content addressing
- Ed25519 key derivation from 55-character seeds or raw 32-byte keys
- Ed25519 signing and verification over canonical transaction bytes

Key derivation follows the client convention: the private key is the
double K12 digest of the seed's ASCII bytes.
"""

from __future__ import annotations

import string

from Crypto.Hash import KangarooTwelve
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519

from ..utils import hex_to_bytes

SEED_LENGTH = 55
PRIVATE_KEY_HEX_LENGTH = 64
KEY_SIZE = 32
SIGNATURE_SIZE = 64
DIGEST_SIZE = 32

SEED_ALPHABET = frozenset(string.ascii_letters + string.digits)


class CryptoError(ValueError):
    pass


class InvalidKeyMaterial(CryptoError):
    pass


class SignatureError(CryptoError):
    pass


def k12(data: bytes, digest_size: int = DIGEST_SIZE) -> bytes:
    """Compute a KangarooTwelve digest (no customization string)."""
    hasher = KangarooTwelve.new()
    hasher.update(data)
    return hasher.read(digest_size)


def k12_hex(data: bytes) -> str:
    return k12(data).hex()


def validate_seed(seed: str) -> None:
    if not isinstance(seed, str):
        raise InvalidKeyMaterial("Seed must be a string.")
    if len(seed) != SEED_LENGTH:
        raise InvalidKeyMaterial(
            f"Seed must be exactly {SEED_LENGTH} characters, got {len(seed)}."
        )
    if not set(seed) <= SEED_ALPHABET:
        raise InvalidKeyMaterial("Seed may only contain ASCII letters and digits.")


def private_key_from_seed(seed: str) -> bytes:
    """Derive the 32-byte Ed25519 private key from a 55-character seed."""
    validate_seed(seed)
    return k12(k12(seed.encode("ascii")))


def private_key_from_hex(private_key_hex: str) -> bytes:
    """Parse a 64-character hex private key. A ``0x`` prefix is not accepted."""
    if not isinstance(private_key_hex, str):
        raise InvalidKeyMaterial("Private key must be a hex string.")
    if len(private_key_hex) != PRIVATE_KEY_HEX_LENGTH:
        raise InvalidKeyMaterial(
            f"Private key must be exactly {PRIVATE_KEY_HEX_LENGTH} hex characters, "
            f"got {len(private_key_hex)}."
        )
    try:
        return hex_to_bytes(private_key_hex, KEY_SIZE)
    except ValueError as exc:
        raise InvalidKeyMaterial("Private key contains non-hex characters.") from exc


def load_signing_key(private_key: bytes) -> ed25519.Ed25519PrivateKey:
    if len(private_key) != KEY_SIZE:
        raise InvalidKeyMaterial(f"Private key must be {KEY_SIZE} bytes.")
    return ed25519.Ed25519PrivateKey.from_private_bytes(private_key)


def public_key_bytes(signing_key: ed25519.Ed25519PrivateKey) -> bytes:
    return signing_key.public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )


def sign(message: bytes, signing_key: ed25519.Ed25519PrivateKey) -> bytes:
    """Sign ``message`` and return the 64-byte Ed25519 signature."""
    return signing_key.sign(message)


def verify(message: bytes, signature: bytes, public_key: bytes) -> bool:
    """Return True when ``signature`` is a valid signature of ``message``.

    Malformed signatures or public keys verify as False; this function
    never raises for bad input.
    """
    if len(signature) != SIGNATURE_SIZE or len(public_key) != KEY_SIZE:
        return False
    try:
        verify_key = ed25519.Ed25519PublicKey.from_public_bytes(public_key)
        verify_key.verify(signature, message)
    except (InvalidSignature, ValueError):
        return False
    return True
