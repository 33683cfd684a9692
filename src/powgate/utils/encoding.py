"""Byte-level encodings shared by the miner and the wire codec."""

from __future__ import annotations

import binascii
import time

TIMESTAMP_SIZE_BYTES = 8
MAX_TIMESTAMP_MS = 2**64 - 1


def bytes_to_hex(data: bytes) -> str:
    """Encode bytes as lowercase hex, two digits per byte, no prefix."""
    return data.hex()


def hex_to_bytes(value: str, *, expected_length: int | None = None) -> bytes:
    """Decode a hex string produced by :func:`bytes_to_hex`.

    Args:
        value: Hex string (either case accepted, no ``0x`` prefix)
        expected_length: Required decoded length in bytes, if any

    Returns:
        Decoded bytes

    Raises:
        ValueError: If the string is not valid hex or has the wrong length
    """
    try:
        data = binascii.unhexlify(value)
    except (ValueError, TypeError) as exc:
        raise ValueError(f"invalid hex string: {value!r}") from exc
    if expected_length is not None and len(data) != expected_length:
        raise ValueError(f"expected {expected_length} bytes, got {len(data)}")
    return data


def timestamp_to_bytes(timestamp_ms: int) -> bytes:
    """Encode a millisecond timestamp as an unsigned 64-bit big-endian value."""
    if not 0 <= timestamp_ms <= MAX_TIMESTAMP_MS:
        raise ValueError(f"timestamp out of range: {timestamp_ms}")
    return timestamp_ms.to_bytes(TIMESTAMP_SIZE_BYTES, "big", signed=False)


def now_ms() -> int:
    """Return the current wall-clock time in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000
