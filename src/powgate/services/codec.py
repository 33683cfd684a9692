"""Submission codec.

Turns a mined solution into the gateway's wire record and interprets the
gateway's listing responses.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import TypeAdapter, ValidationError

from powgate.core import pow as core_pow
from powgate.core.bindings import AuxBindings
from powgate.core.errors import MalformedResponseError
from powgate.schemas.submission import (
    WIRE_FIELD_NAMES,
    ContentEntry,
    SubmissionRecord,
)
from powgate.utils.encoding import bytes_to_hex, hex_to_bytes
from powgate.utils.hash import DIGEST_SIZE_BYTES, HashFunction, sha256_digest

_ENTRY_LIST = TypeAdapter(list[ContentEntry])


def encode_submission(
    payload: bytes,
    bindings: AuxBindings | None,
    nonce: bytes,
    work_hash: bytes,
) -> SubmissionRecord:
    """Build the wire record for a mined payload.

    Args:
        payload: Content bytes; must be UTF-8 since ``val`` is a JSON string
        bindings: The exact bindings the load hash was computed with
        nonce: Winning 32-byte nonce
        work_hash: Resulting 32-byte work hash

    Returns:
        Record with hex-encoded binary fields

    Raises:
        ValueError: If the payload or tag is not UTF-8, or a binary field has
            the wrong length
    """
    if len(nonce) != core_pow.NONCE_SIZE_BYTES:
        raise ValueError(f"nonce must be {core_pow.NONCE_SIZE_BYTES} bytes")
    if len(work_hash) != DIGEST_SIZE_BYTES:
        raise ValueError(f"work hash must be {DIGEST_SIZE_BYTES} bytes")
    bindings = bindings or AuxBindings.none()
    return SubmissionRecord(
        val=bytes(payload).decode("utf-8"),
        tag=bindings.tag.decode("utf-8") if bindings.tag is not None else None,
        time=bindings.timestamp,
        nonce=bytes_to_hex(nonce),
        work_hash=bytes_to_hex(work_hash),
    )


def decode_submission(body: Mapping[str, Any]) -> SubmissionRecord:
    """Read a submission body written in any supported wire schema.

    Raises:
        MalformedResponseError: If the body is not a JSON object or carries no
            valid nonce/work field pair
    """
    if not isinstance(body, Mapping):
        raise MalformedResponseError(
            f"submission body must be a JSON object, got {type(body).__name__}"
        )
    for nonce_field, work_field in WIRE_FIELD_NAMES.values():
        if nonce_field in body and work_field in body:
            try:
                return SubmissionRecord(
                    val=body.get("val"),
                    tag=body.get("tag"),
                    time=body.get("time"),
                    nonce=body[nonce_field],
                    work_hash=body[work_field],
                )
            except ValidationError as exc:
                raise MalformedResponseError(f"invalid submission body: {exc}") from exc
    raise MalformedResponseError("submission body carries no nonce/work field pair")


def record_bindings(record: SubmissionRecord) -> AuxBindings:
    """Rebuild the bindings a record was mined with from its plaintext fields."""
    return AuxBindings(
        tag=record.tag.encode("utf-8") if record.tag is not None else None,
        timestamp=record.time,
    )


def verify_submission(
    record: SubmissionRecord,
    difficulty: int,
    hash_function: HashFunction = sha256_digest,
) -> bool:
    """Check a record the way the gateway does.

    The load hash is recomputed from ``val``/``tag``/``time``, the work hash
    from the load hash and nonce, and the result must equal the transmitted
    work hash and meet ``difficulty``.
    """
    load_hash = core_pow.compute_load_hash(
        record.val.encode("utf-8"), record_bindings(record), hash_function
    )
    return core_pow.verify(
        load_hash,
        hex_to_bytes(record.nonce),
        hex_to_bytes(record.work_hash),
        difficulty,
        hash_function,
    )


def decode_list_response(raw: bytes | str) -> list[ContentEntry]:
    """Parse a listing body into entries.

    Raises:
        MalformedResponseError: If the body is not a JSON array of objects
            carrying at least ``val`` and ``added``
    """
    try:
        data = json.loads(raw)
    except (ValueError, TypeError) as exc:
        raise MalformedResponseError(f"listing is not valid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise MalformedResponseError(f"listing must be a JSON array, got {type(data).__name__}")
    try:
        return _ENTRY_LIST.validate_python(data)
    except ValidationError as exc:
        raise MalformedResponseError(f"listing entries are malformed: {exc}") from exc


def sort_by_recency_descending(entries: Iterable[ContentEntry]) -> list[ContentEntry]:
    """Order entries newest first; ties keep their input order."""
    return sorted(entries, key=lambda entry: entry.added, reverse=True)


def content_path(work_hash: bytes | str) -> str:
    """Return the retrieval path for a piece of content."""
    if isinstance(work_hash, bytes):
        if len(work_hash) != DIGEST_SIZE_BYTES:
            raise ValueError(f"work hash must be {DIGEST_SIZE_BYTES} bytes")
        return f"/{bytes_to_hex(work_hash)}"
    return f"/{bytes_to_hex(hex_to_bytes(work_hash, expected_length=DIGEST_SIZE_BYTES))}"
