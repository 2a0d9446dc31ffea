"""Tests for the async upload client."""
import json

import httpx
import pytest

from python_bundlr import AsyncBundlrClient, BundlrConfig, DataItem
from python_bundlr.errors import BundlrError, PayloadTooLarge, TagsTooLargeError
from python_bundlr.tags import Tag
from python_bundlr.utils.encoding import b58encode

from conftest import GATEWAY_URL, NODE_URL, RecordingTransport


def _client(signer, config, handler):
    transport = RecordingTransport(handler)
    http = httpx.AsyncClient(transport=transport)
    return AsyncBundlrClient(signer, config=config, http_client=http), transport


@pytest.mark.asyncio
async def test_async_upload(signer, config):
    client, transport = _client(signer, config, lambda request: httpx.Response(200, json={"id": "abc123"}))

    result = await client.upload(b"hello", file_name="hello.txt", content_type="text/plain")

    request = transport.requests[0]
    assert request.method == "POST"
    assert str(request.url) == f"{NODE_URL}/tx/solana"
    assert request.headers["Content-Type"] == "application/octet-stream"
    assert request.headers["Accept"] == "application/json"
    item = DataItem.from_bytes(request.content)
    assert item.verify()
    assert item.data == b"hello"
    assert result.transaction_id == "abc123"
    assert result.uri == f"{GATEWAY_URL}/abc123"
    await client.aclose()


@pytest.mark.asyncio
async def test_async_upload_empty_receipt_uses_item_id(signer, config):
    client, transport = _client(signer, config, lambda request: httpx.Response(200, json={}))
    result = await client.upload(b"hello")
    assert result.transaction_id == DataItem.from_bytes(transport.requests[0].content).id
    await client.aclose()


@pytest.mark.asyncio
async def test_async_upload_error_status(signer, config):
    client, _ = _client(signer, config, lambda request: httpx.Response(413, text="payload too large"))
    with pytest.raises(PayloadTooLarge) as exc:
        await client.upload(b"hello")
    assert "413" in str(exc.value)
    assert "payload too large" in str(exc.value)
    await client.aclose()


@pytest.mark.asyncio
async def test_async_oversized_tags_make_no_request(signer, config):
    client, transport = _client(signer, config, lambda request: httpx.Response(200, json={"id": "x"}))
    with pytest.raises(TagsTooLargeError):
        await client.upload(b"hello", tags=[Tag("n" * 2500, "v" * 2500)])
    assert transport.requests == []
    await client.aclose()


@pytest.mark.asyncio
async def test_async_upload_requires_key(config):
    client = AsyncBundlrClient(config=config)
    with pytest.raises(BundlrError, match="Private key required"):
        await client.upload(b"hello")


@pytest.mark.asyncio
async def test_async_price_and_balance(signer, config):
    def handler(request):
        if request.url.path == "/price/solana/2048":
            return httpx.Response(200, text="99999999999999999999")
        if request.url.path == "/account/balance/solana":
            assert request.url.params["address"] == b58encode(signer.public_key)
            return httpx.Response(200, json={"balance": "42"})
        return httpx.Response(404)

    client, _ = _client(signer, config, handler)
    assert await client.get_price(2048) == 99999999999999999999
    assert await client.get_balance() == 42
    await client.aclose()


@pytest.mark.asyncio
async def test_async_upload_many(signer, config):
    def handler(request):
        item = DataItem.from_bytes(request.content)
        if item.data == b"bad":
            return httpx.Response(500, text="disk full")
        return httpx.Response(200, text=json.dumps({"id": item.id}))

    client, transport = _client(signer, config, handler)
    results = await client.upload_many({"a.txt": b"first", "b.txt": b"bad", "c.json": b"{}"})

    assert set(results) == {"a.txt", "b.txt", "c.json"}
    assert results["a.txt"].content_type == "text/plain"
    assert results["c.json"].content_type == "application/json"
    assert "disk full" in results["b.txt"]["error"]
    assert len(transport.requests) == 3
    await client.aclose()


@pytest.mark.asyncio
async def test_async_check_balance(signer):
    config = BundlrConfig(node_url=NODE_URL, check_balance=True)

    def handler(request):
        if request.url.path.startswith("/price/"):
            return httpx.Response(200, text="10")
        if request.url.path.startswith("/account/balance/"):
            return httpx.Response(200, json={"balance": "10"})
        return httpx.Response(200, json={"id": "funded"})

    client, transport = _client(signer, config, handler)
    result = await client.upload(b"hello")
    assert result.transaction_id == "funded"
    assert [r.method for r in transport.requests].count("POST") == 1
    await client.aclose()
