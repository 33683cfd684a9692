"""Gateway client for submitting proof-of-work content.

This module provides the GatewayClient class that handles all communication
with a content-addressed storage gateway. It includes:

- HTTP client with configurable base URL and timeout
- Submission of mined records in the gateway's wire schema
- Prefix listings sorted newest first
- Content retrieval by work hash
- Outcome counters (accepted, rejected by status, transport failures)

Requests are sent once; retries are left to the caller.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

import httpx

from powgate.core.bindings import AuxBindings
from powgate.core.errors import (
    ContentNotFoundError,
    GatewayTransportError,
    SubmissionRejectedError,
)
from powgate.core.settings import settings
from powgate.schemas.submission import ContentBlob, ContentEntry, SubmissionRecord, WireSchema
from powgate.services.codec import (
    content_path,
    decode_list_response,
    encode_submission,
    sort_by_recency_descending,
)
from powgate.services.miner import Miner, PowSolution, ProgressCallback
from powgate.utils.encoding import now_ms

# Configure logger for this module
logger = logging.getLogger(__name__)

# HTTP status codes
HTTP_OK = 200
HTTP_NOT_FOUND = 404


@dataclass
class GatewayStats:
    """Running counts of gateway outcomes for one client."""

    submitted: int = 0
    accepted: int = 0
    rejected_by_status: Counter[int] = field(default_factory=Counter)
    transport_failures: int = 0
    listings: int = 0
    entries_listed: int = 0
    fetched: int = 0
    not_found: int = 0

    def record_submission(self, status: int) -> None:
        self.submitted += 1
        if status == HTTP_OK:
            self.accepted += 1
        else:
            self.rejected_by_status[status] += 1

    def snapshot(self) -> dict[str, Any]:
        return {
            "submitted": self.submitted,
            "accepted": self.accepted,
            "rejected_by_status": dict(self.rejected_by_status),
            "transport_failures": self.transport_failures,
            "listings": self.listings,
            "entries_listed": self.entries_listed,
            "fetched": self.fetched,
            "not_found": self.not_found,
        }


@dataclass(frozen=True)
class GatewayConfig:
    """Immutable configuration for gateway operations."""

    base_url: str
    timeout_seconds: float
    wire_schema: WireSchema
    difficulty: int
    workers: int
    mining_timeout_seconds: float | None


@dataclass(frozen=True)
class PublishResult:
    """Outcome of a successful publish."""

    record: SubmissionRecord
    solution: PowSolution

    @property
    def work_hash_hex(self) -> str:
        return self.record.work_hash

    @property
    def content_path(self) -> str:
        return self.record.content_path


def load_gateway_config() -> GatewayConfig:
    """Build configuration object from global settings."""

    return GatewayConfig(
        base_url=settings.gateway_base_url,
        timeout_seconds=float(settings.http_timeout_seconds),
        wire_schema=WireSchema(settings.wire_schema),
        difficulty=settings.difficulty,
        workers=settings.workers,
        mining_timeout_seconds=settings.mining_timeout_seconds,
    )


class GatewayClient:
    """HTTP client wrapper for gateway interactions."""

    def __init__(
        self,
        config: GatewayConfig | None = None,
        *,
        miner: Miner | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or load_gateway_config()
        self.miner = miner or Miner()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()
        self._stats = GatewayStats()

    async def __aenter__(self) -> GatewayClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    base_url=self.config.base_url,
                    timeout=httpx.Timeout(self.config.timeout_seconds),
                    transport=self._transport,
                )
        return self._client

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_data: Any | None = None,
    ) -> httpx.Response:
        client = await self._ensure_client()
        try:
            return await client.request(method, path, json=json_data)
        except httpx.HTTPError as exc:
            self._stats.transport_failures += 1
            raise GatewayTransportError(f"Gateway request failed: {exc}") from exc

    async def submit(self, record: SubmissionRecord) -> None:
        """Post a record to the gateway.

        Raises:
            SubmissionRejectedError: If the gateway answers with anything but 200
            GatewayTransportError: If the gateway cannot be reached
        """
        body = record.to_wire(self.config.wire_schema)
        response = await self._request("POST", "/", json_data=body)
        self._stats.record_submission(response.status_code)
        if response.status_code != HTTP_OK:
            logger.warning(
                "Gateway rejected work %s with status %d", record.work_hash, response.status_code
            )
            raise SubmissionRejectedError(response.status_code, response.text)
        logger.info("Gateway accepted work %s", record.work_hash)

    async def list_entries(self, prefix: str = "") -> list[ContentEntry]:
        """Fetch entries matching ``prefix``, newest first.

        Raises:
            SubmissionRejectedError: On a non-2xx status
            MalformedResponseError: If the body is not a list of entries
            GatewayTransportError: If the gateway cannot be reached
        """
        response = await self._request("GET", f"/list/{quote(prefix, safe='')}")
        if not response.is_success:
            raise SubmissionRejectedError(response.status_code, response.text)
        entries = decode_list_response(response.content)
        self._stats.listings += 1
        self._stats.entries_listed += len(entries)
        logger.debug("Listed %d entries for prefix %r", len(entries), prefix)
        return sort_by_recency_descending(entries)

    async def fetch_content(self, work_hash: bytes | str) -> ContentBlob:
        """Retrieve content by its work hash.

        Raises:
            ContentNotFoundError: If the gateway does not know the work hash
            SubmissionRejectedError: On any other non-2xx status
            GatewayTransportError: If the gateway cannot be reached
        """
        path = content_path(work_hash)
        response = await self._request("GET", path)
        if response.status_code == HTTP_NOT_FOUND:
            self._stats.not_found += 1
            raise ContentNotFoundError(response.status_code, response.text)
        if not response.is_success:
            raise SubmissionRejectedError(response.status_code, response.text)
        self._stats.fetched += 1
        return ContentBlob(
            work_hash=path[1:],
            val=response.content,
            salt=response.headers.get("Salt"),
            time=response.headers.get("Time"),
        )

    async def publish(
        self,
        val: str,
        *,
        difficulty: int | None = None,
        tag: str | None = None,
        timed: bool = True,
        progress: ProgressCallback | None = None,
    ) -> PublishResult:
        """Mine and submit ``val`` in one step.

        The timestamp, when bound, is taken once before mining starts and sent
        verbatim so the gateway derives the same load hash.
        """
        payload = val.encode("utf-8")
        bindings = AuxBindings(
            tag=tag.encode("utf-8") if tag is not None else None,
            timestamp=now_ms() if timed else None,
        )
        difficulty = self.config.difficulty if difficulty is None else difficulty
        solution = await self.miner.solve_async(
            payload,
            bindings,
            difficulty,
            workers=self.config.workers,
            timeout=self.config.mining_timeout_seconds,
            progress=progress,
        )
        record = encode_submission(payload, bindings, solution.nonce, solution.work_hash)
        await self.submit(record)
        return PublishResult(record=record, solution=solution)

    def get_stats(self) -> dict[str, Any]:
        """Return a snapshot of this client's gateway outcome counters."""
        return self._stats.snapshot()

    async def close(self) -> None:
        """Clean up underlying HTTP client resources."""

        async with self._client_lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None

