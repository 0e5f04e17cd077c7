from __future__ import annotations

import base64
import binascii
import re
from datetime import datetime, timezone

_HEX_RE = re.compile(r"^[0-9a-fA-F]*$")


def base64_encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def base64_decode(value: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"Invalid base64 value: {value!r}") from exc


def hex_to_bytes(value: str, length: int | None = None) -> bytes:
    """Decode a hex string, optionally requiring an exact byte length.

    A leading ``0x`` is accepted. Odd-length input and non-hex characters
    are rejected rather than padded.
    """
    raw = value.removeprefix("0x")
    if len(raw) % 2 or not _HEX_RE.match(raw):
        raise ValueError("Value is not a valid hex string.")
    data = bytes.fromhex(raw)
    if length is not None and len(data) != length:
        raise ValueError(f"Expected {length} bytes, got {len(data)}.")
    return data


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_rfc3339() -> str:
    return utc_now().isoformat().replace("+00:00", "Z")


def to_rfc3339(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
