from dataclasses import replace

import httpx
import pytest

from powgate.core.errors import (
    ContentNotFoundError,
    GatewayTransportError,
    InvalidDifficultyError,
    MalformedResponseError,
    MiningCancelledError,
    SubmissionRejectedError,
)
from powgate.schemas.submission import WireSchema
from powgate.services.codec import decode_submission, encode_submission, verify_submission
from powgate.services.gateway import GatewayClient, load_gateway_config
from tests.conftest import GATEWAY_URL, json_body

NONCE = bytes(range(32))
WORK = b"\x00" * 2 + bytes(range(30))


def _record():
    return encode_submission(b"hello", None, NONCE, WORK)


@pytest.mark.asyncio
async def test_submit_posts_canonical_body(make_client):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200)

    async with make_client(handler) as client:
        await client.submit(_record())

    (request,) = seen
    assert request.method == "POST"
    assert str(request.url) == f"{GATEWAY_URL}/"
    assert json_body(request) == {"val": "hello", "nonce": NONCE.hex(), "work_hash": WORK.hex()}


@pytest.mark.asyncio
async def test_submit_uses_configured_wire_schema(make_client, gateway_config):
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json_body(request))
        return httpx.Response(200)

    config = replace(gateway_config, wire_schema=WireSchema.GARRY)
    async with make_client(handler, config) as client:
        await client.submit(_record())

    assert bodies == [{"val": "hello", "salt": NONCE.hex(), "work": WORK.hex()}]


@pytest.mark.asyncio
async def test_submit_rejection_carries_verbatim_body(make_client):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, text="invalid work: -2\n")

    async with make_client(handler) as client:
        with pytest.raises(SubmissionRejectedError) as exc_info:
            await client.submit(_record())

    assert exc_info.value.status == 400
    assert exc_info.value.message == "invalid work: -2\n"


@pytest.mark.asyncio
async def test_submit_non_200_success_is_rejected(make_client):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(202, text="queued")

    async with make_client(handler) as client:
        with pytest.raises(SubmissionRejectedError) as exc_info:
            await client.submit(_record())
    assert exc_info.value.status == 202


@pytest.mark.asyncio
async def test_transport_error_is_wrapped(make_client):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with make_client(handler) as client:
        with pytest.raises(GatewayTransportError) as exc_info:
            await client.submit(_record())
        stats = client.get_stats()

    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
    assert stats["transport_failures"] == 1
    assert stats["submitted"] == 0


@pytest.mark.asyncio
async def test_list_entries_sorted_newest_first(make_client):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/list/he"
        return httpx.Response(
            200,
            json=[
                {"val": "a", "added": 5},
                {"val": "b", "added": 5},
                {"val": "c", "added": 9},
            ],
        )

    async with make_client(handler) as client:
        entries = await client.list_entries("he")

    assert [e.val for e in entries] == ["c", "a", "b"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "prefix,raw_path",
    [("a?b", b"/list/a%3Fb"), ("#news", b"/list/%23news"), ("x/y", b"/list/x%2Fy"), ("", b"/list/")],
)
async def test_list_entries_escapes_prefix(make_client, prefix, raw_path):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    async with make_client(handler) as client:
        await client.list_entries(prefix)

    (request,) = seen
    assert request.url.raw_path == raw_path
    assert request.url.query == b""
    assert request.url.fragment == ""

@pytest.mark.asyncio
async def test_list_entries_malformed(make_client):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"{not json")

    async with make_client(handler) as client:
        with pytest.raises(MalformedResponseError):
            await client.list_entries("x")


@pytest.mark.asyncio
async def test_list_entries_error_status(make_client):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, text="slow down")

    async with make_client(handler) as client:
        with pytest.raises(SubmissionRejectedError) as exc_info:
            await client.list_entries("x")
    assert exc_info.value.message == "slow down"


@pytest.mark.asyncio
async def test_fetch_content(make_client):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == f"/{WORK.hex()}"
        return httpx.Response(
            200, content=b"hello", headers={"Salt": NONCE.hex(), "Time": "000001"}
        )

    async with make_client(handler) as client:
        blob = await client.fetch_content(WORK)

    assert blob.val == b"hello"
    assert blob.work_hash == WORK.hex()
    assert blob.salt == NONCE.hex()
    assert blob.time == "000001"


@pytest.mark.asyncio
async def test_fetch_content_not_found(make_client):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="not found")

    async with make_client(handler) as client:
        with pytest.raises(ContentNotFoundError):
            await client.fetch_content(WORK.hex())


@pytest.mark.asyncio
async def test_publish_mines_and_submits(make_client):
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json_body(request))
        return httpx.Response(200)

    async with make_client(handler) as client:
        result = await client.publish("hello", difficulty=1, tag="news")

    (body,) = bodies
    record = decode_submission(body)
    assert record == result.record
    assert record.tag == "news"
    assert record.time is not None
    assert verify_submission(record, 1)
    assert result.content_path == f"/{result.work_hash_hex}"
    assert result.solution.work_hash.hex() == result.work_hash_hex


@pytest.mark.asyncio
async def test_publish_untimed_uses_config_difficulty(make_client):
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json_body(request))
        return httpx.Response(200)

    async with make_client(handler) as client:
        result = await client.publish("hello", timed=False)

    assert "time" not in bodies[0]
    assert result.solution.difficulty == 1
    assert verify_submission(result.record, 1)


@pytest.mark.asyncio
async def test_publish_invalid_difficulty_sends_nothing(make_client):
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("nothing should be sent")

    async with make_client(handler) as client:
        with pytest.raises(InvalidDifficultyError):
            await client.publish("hello", difficulty=99)


@pytest.mark.asyncio
async def test_publish_mining_timeout(make_client, gateway_config):
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("nothing should be sent")

    config = replace(gateway_config, mining_timeout_seconds=0.1)
    async with make_client(handler, config) as client:
        with pytest.raises(MiningCancelledError):
            await client.publish("hello", difficulty=8)


@pytest.mark.asyncio
async def test_stats_count_outcomes(make_client):
    statuses = iter([200, 400, 400, 503])

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return httpx.Response(next(statuses))
        if request.url.path.startswith("/list/"):
            return httpx.Response(200, json=[{"val": "a", "added": 1}, {"val": "b", "added": 2}])
        if request.url.path == f"/{WORK.hex()}":
            return httpx.Response(200, content=b"hello")
        return httpx.Response(404)

    async with make_client(handler) as client:
        for _ in range(4):
            try:
                await client.submit(_record())
            except SubmissionRejectedError:
                pass
        await client.list_entries("a")
        await client.fetch_content(WORK)
        with pytest.raises(ContentNotFoundError):
            await client.fetch_content(NONCE)
        stats = client.get_stats()

    assert stats == {
        "submitted": 4,
        "accepted": 1,
        "rejected_by_status": {400: 2, 503: 1},
        "transport_failures": 0,
        "listings": 1,
        "entries_listed": 2,
        "fetched": 1,
        "not_found": 1,
    }


@pytest.mark.asyncio
async def test_close_is_idempotent(make_client):
    client = make_client(lambda request: httpx.Response(200, json=[]))
    await client.list_entries()
    await client.close()
    await client.close()


def test_load_gateway_config_from_settings(mocker):
    mocker.patch("powgate.services.gateway.settings.gateway_url", "http://example.test/")
    config = load_gateway_config()
    assert config.base_url == "http://example.test"
    assert config.wire_schema in set(WireSchema)


def test_default_client_uses_settings():
    client = GatewayClient()
    assert client.config == load_gateway_config()
