"""Hash primitives used by the proof-of-work protocol.

The reference gateway hashes with SHA-256. BLAKE3 is available for gateways
configured to use it; both produce 32-byte digests.
"""

from __future__ import annotations

import hashlib
from collections.abc import Callable
from typing import Literal

import blake3

HashAlgorithm = Literal["sha256", "blake3"]
HashFunction = Callable[[bytes], bytes]

DIGEST_SIZE_BYTES = 32


def sha256_digest(data: bytes) -> bytes:
    """Return the SHA-256 digest of the supplied data."""
    return hashlib.sha256(data).digest()


def blake3_digest(data: bytes) -> bytes:
    """Return the 32-byte BLAKE3 digest of the supplied data."""
    return blake3.blake3(data).digest()


_HASH_FUNCTIONS: dict[str, HashFunction] = {
    "sha256": sha256_digest,
    "blake3": blake3_digest,
}


def get_hash_function(hash_algorithm: HashAlgorithm = "sha256") -> HashFunction:
    """Look up the digest function for a hash algorithm name.

    Args:
        hash_algorithm: Hash algorithm to use

    Returns:
        Callable mapping bytes to a 32-byte digest

    Raises:
        ValueError: If the algorithm is not supported
    """
    try:
        return _HASH_FUNCTIONS[hash_algorithm]
    except KeyError:
        raise ValueError(f"Unsupported hash algorithm: {hash_algorithm}") from None


def get_available_hash_algorithms() -> list[HashAlgorithm]:
    """Return the supported hash algorithms, preferred first."""
    return ["sha256", "blake3"]
