"""Schemas for gateway submissions and listings."""
from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from powgate.core.pow import NONCE_SIZE_BYTES
from powgate.utils.hash import DIGEST_SIZE_BYTES

HEX_NONCE_LENGTH = NONCE_SIZE_BYTES * 2
HEX_WORK_LENGTH = DIGEST_SIZE_BYTES * 2
_HEX_DIGITS = frozenset("0123456789abcdef")


class WireSchema(str, Enum):
    """Field naming used by a gateway for the nonce and work hash."""

    CANONICAL = "canonical"
    GARRY = "garry"
    LEGACY = "legacy"


# (nonce field, work field) per wire schema
WIRE_FIELD_NAMES: dict[WireSchema, tuple[str, str]] = {
    WireSchema.CANONICAL: ("nonce", "work_hash"),
    WireSchema.GARRY: ("salt", "work"),
    WireSchema.LEGACY: ("noncehex", "workhex"),
}


def _check_hex(value: str, length: int, field_name: str) -> str:
    if len(value) != length or not set(value) <= _HEX_DIGITS:
        raise ValueError(f"{field_name} must be {length} lowercase hex characters")
    return value


class SubmissionRecord(BaseModel):
    """The unit posted to the gateway.

    ``nonce`` and ``work_hash`` are lowercase hex; ``tag`` and ``time`` are
    only present for protocol variants that bind them.
    """

    model_config = ConfigDict(frozen=True)

    val: str
    tag: str | None = None
    time: int | None = Field(default=None, ge=0, le=2**64 - 1)
    nonce: str
    work_hash: str

    @field_validator("nonce")
    @classmethod
    def _nonce_is_hex(cls, value: str) -> str:
        return _check_hex(value, HEX_NONCE_LENGTH, "nonce")

    @field_validator("work_hash")
    @classmethod
    def _work_is_hex(cls, value: str) -> str:
        return _check_hex(value, HEX_WORK_LENGTH, "work_hash")

    @property
    def content_path(self) -> str:
        """Path under which the gateway serves this content."""
        return f"/{self.work_hash}"

    def to_wire(self, schema: WireSchema | str = WireSchema.CANONICAL) -> dict[str, Any]:
        """Render the JSON body for a gateway speaking ``schema``."""
        nonce_field, work_field = WIRE_FIELD_NAMES[WireSchema(schema)]
        body: dict[str, Any] = {"val": self.val}
        if self.tag is not None:
            body["tag"] = self.tag
        if self.time is not None:
            body["time"] = self.time
        body[nonce_field] = self.nonce
        body[work_field] = self.work_hash
        return body


class ContentEntry(BaseModel):
    """One item of a gateway listing.

    Only ``val`` and ``added`` are required; gateways that echo the proof
    fields have them carried through.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    val: str
    added: float
    nonce: str | None = Field(default=None, alias="salt")
    work: str | None = None
    time: int | None = None


class ContentBlob(BaseModel):
    """Raw content fetched by work hash."""

    model_config = ConfigDict(frozen=True)

    work_hash: str
    val: bytes
    salt: str | None = None
    time: str | None = None
