"""Auxiliary fields bound into the load hash.

The gateway protocol has been deployed in a few shapes: plain value,
value + tag, value + tag + timestamp, and value + timestamp. All of them are
one :class:`AuxBindings` with whichever fields are present, serialised in a
fixed order (tag, then timestamp).
"""

from __future__ import annotations

from dataclasses import dataclass

from powgate.utils.encoding import MAX_TIMESTAMP_MS, timestamp_to_bytes


@dataclass(frozen=True)
class AuxBindings:
    """Optional metadata committed to before the nonce search starts."""

    tag: bytes | None = None
    timestamp: int | None = None

    def __post_init__(self) -> None:
        if self.timestamp is not None and not 0 <= self.timestamp <= MAX_TIMESTAMP_MS:
            raise ValueError(f"timestamp out of range: {self.timestamp}")

    @classmethod
    def none(cls) -> AuxBindings:
        return cls()

    @classmethod
    def tagged(cls, tag: bytes) -> AuxBindings:
        return cls(tag=tag)

    @classmethod
    def timed(cls, timestamp: int) -> AuxBindings:
        return cls(timestamp=timestamp)

    @classmethod
    def tagged_timed(cls, tag: bytes, timestamp: int) -> AuxBindings:
        return cls(tag=tag, timestamp=timestamp)

    @property
    def is_empty(self) -> bool:
        return self.tag is None and self.timestamp is None

    def serialize(self) -> bytes:
        """Return the bytes appended to the payload when computing the load hash.

        Absent fields contribute nothing.
        """
        out = bytearray()
        if self.tag is not None:
            out.extend(self.tag)
        if self.timestamp is not None:
            out.extend(timestamp_to_bytes(self.timestamp))
        return bytes(out)
