# tests/conftest.py
from __future__ import annotations

import json
import random
from collections.abc import Callable

import httpx
import pytest

from powgate.schemas.submission import WireSchema
from powgate.services.gateway import GatewayClient, GatewayConfig
from powgate.services.miner import Miner

GATEWAY_URL = "http://gateway.test"
HELLO_SEED = 20240601


def seeded_random(seed: int = HELLO_SEED) -> Callable[[int], bytes]:
    """Deterministic stand-in for the secure random source."""
    return random.Random(seed).randbytes


@pytest.fixture
def seeded_miner() -> Miner:
    return Miner(random_source=seeded_random(), hash_algorithm="sha256", progress_interval=1000)


@pytest.fixture
def gateway_config() -> GatewayConfig:
    return GatewayConfig(
        base_url=GATEWAY_URL,
        timeout_seconds=5.0,
        wire_schema=WireSchema.CANONICAL,
        difficulty=1,
        workers=1,
        mining_timeout_seconds=30.0,
    )


@pytest.fixture
def make_client(
    gateway_config: GatewayConfig, seeded_miner: Miner
) -> Callable[..., GatewayClient]:
    """Build a GatewayClient whose HTTP traffic goes to ``handler``."""

    def _make(
        handler: Callable[[httpx.Request], httpx.Response],
        config: GatewayConfig | None = None,
    ) -> GatewayClient:
        return GatewayClient(
            config or gateway_config,
            miner=seeded_miner,
            transport=httpx.MockTransport(handler),
        )

    return _make


def json_body(request: httpx.Request) -> dict:
    return json.loads(request.content)
