"""Unit tests for utils.py functions."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from qubic_rpc.utils import (
    base64_decode,
    base64_encode,
    hex_to_bytes,
    to_rfc3339,
    utc_now_rfc3339,
)


class TestBase64:
    def test_encode_known_value(self) -> None:
        assert base64_encode(b"qubic") == "cXViaWM="

    def test_decode_known_value(self) -> None:
        assert base64_decode("cXViaWM=") == b"qubic"

    def test_decode_rejects_garbage(self) -> None:
        with pytest.raises(ValueError):
            base64_decode("not base64!!")

    def test_empty(self) -> None:
        assert base64_encode(b"") == ""
        assert base64_decode("") == b""


class TestHexToBytes:
    def test_plain_hex(self) -> None:
        assert hex_to_bytes("00ff10") == b"\x00\xff\x10"

    def test_accepts_0x_prefix(self) -> None:
        assert hex_to_bytes("0xabcd") == b"\xab\xcd"

    def test_rejects_odd_length(self) -> None:
        with pytest.raises(ValueError):
            hex_to_bytes("abc")

    def test_rejects_non_hex(self) -> None:
        with pytest.raises(ValueError):
            hex_to_bytes("zz")

    def test_length_enforced(self) -> None:
        assert hex_to_bytes("aa" * 32, 32) == b"\xaa" * 32
        with pytest.raises(ValueError, match="Expected 32 bytes"):
            hex_to_bytes("aa" * 31, 32)


class TestTimestamps:
    def test_utc_now_rfc3339_ends_with_z(self) -> None:
        assert utc_now_rfc3339().endswith("Z")

    def test_to_rfc3339_converts_to_utc(self) -> None:
        plus_two = timezone(timedelta(hours=2))
        value = datetime(2024, 1, 1, 12, 0, tzinfo=plus_two)
        assert to_rfc3339(value) == "2024-01-01T10:00:00Z"
