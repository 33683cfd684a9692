"""Proof-of-Work helpers.

This module holds the primitives shared by the miner and by anything that
checks a submission: load-hash and work-hash construction, the difficulty
predicate and difficulty validation.

A work hash is ``H(H(payload || bindings) || nonce)`` and is valid for
difficulty ``d`` when its first ``d`` bytes are zero.
"""
from __future__ import annotations

from typing import Final

from powgate.core.bindings import AuxBindings
from powgate.core.errors import InvalidDifficultyError
from powgate.utils.hash import DIGEST_SIZE_BYTES, HashFunction, sha256_digest

NONCE_SIZE_BYTES: Final[int] = 32
MAX_DIFFICULTY: Final[int] = DIGEST_SIZE_BYTES


def validate_difficulty(difficulty: int) -> int:
    """Return ``difficulty`` unchanged if it is a usable leading-zero-byte count.

    Raises:
        InvalidDifficultyError: If difficulty is not an int in ``[0, 32]``
    """
    if isinstance(difficulty, bool) or not isinstance(difficulty, int):
        raise InvalidDifficultyError(f"difficulty must be an integer, got {difficulty!r}")
    if not 0 <= difficulty <= MAX_DIFFICULTY:
        raise InvalidDifficultyError(
            f"difficulty must be between 0 and {MAX_DIFFICULTY}, got {difficulty}"
        )
    return difficulty


def parse_difficulty(raw: str | int) -> int:
    """Parse a difficulty coming from text input (CLI, env, forms)."""
    if isinstance(raw, str):
        try:
            value = int(raw.strip(), 10)
        except ValueError:
            raise InvalidDifficultyError(f"difficulty is not an integer: {raw!r}") from None
        return validate_difficulty(value)
    return validate_difficulty(raw)


def meets_difficulty(work_hash: bytes, difficulty: int) -> bool:
    """Return True if the first ``difficulty`` bytes of ``work_hash`` are zero.

    Stops at the first non-zero byte. A hash shorter than ``difficulty`` never
    qualifies.
    """
    if difficulty > len(work_hash):
        return False
    for i in range(difficulty):
        if work_hash[i] != 0:
            return False
    return True


def count_leading_zero_bytes(work_hash: bytes) -> int:
    """Return the number of leading zero bytes, i.e. the highest difficulty met."""
    zeros = 0
    for byte in work_hash:
        if byte != 0:
            break
        zeros += 1
    return zeros


def compute_load_hash(
    payload: bytes,
    bindings: AuxBindings | None = None,
    hash_function: HashFunction = sha256_digest,
) -> bytes:
    """Hash the payload together with its auxiliary bindings."""
    aux = bindings.serialize() if bindings is not None else b""
    return hash_function(bytes(payload) + aux)


def compute_work_hash(
    load_hash: bytes,
    nonce: bytes,
    hash_function: HashFunction = sha256_digest,
) -> bytes:
    """Hash a load hash with a candidate nonce."""
    return hash_function(load_hash + nonce)


def verify(
    load_hash: bytes,
    nonce: bytes,
    work_hash: bytes,
    difficulty: int,
    hash_function: HashFunction = sha256_digest,
) -> bool:
    """Validate a proposed proof-of-work solution.

    Args:
        load_hash: Digest of the payload and its bindings (32 bytes).
        nonce: Random value found by the miner (32 bytes).
        work_hash: Claimed ``H(load_hash || nonce)``.
        difficulty: Number of leading zero bytes required.
        hash_function: Hash primitive used by the miner.

    Returns:
        True if recomputing the work hash reproduces ``work_hash`` and it
        satisfies ``difficulty``; False otherwise.
    """
    validate_difficulty(difficulty)
    if len(load_hash) != DIGEST_SIZE_BYTES or len(nonce) != NONCE_SIZE_BYTES:
        return False
    if compute_work_hash(load_hash, nonce, hash_function) != work_hash:
        return False
    return meets_difficulty(work_hash, difficulty)
