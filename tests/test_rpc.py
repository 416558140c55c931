from __future__ import annotations

import base64
import json

import httpx
import pytest

from conftest import node_record
from mnhost.services.core.rpc import RpcClient, split_alias
from mnhost.services.errors import RpcProtocolError, RpcTransportError


def _client(handler) -> RpcClient:
    return RpcClient(transport=httpx.MockTransport(handler))


def test_split_alias():
    assert split_alias("masternode status") == ("masternode", ["status"])
    assert split_alias("getblockcount") == ("getblockcount", [])


@pytest.mark.anyio
async def test_call_posts_envelope_with_basic_auth():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"result": 1234, "error": None, "id": "mnhost"})

    result = await _client(handler).call(node_record("mn1"), "getblockcount")

    assert result == 1234
    assert seen["url"] == "http://127.0.0.1:51473/"
    assert seen["auth"] == "Basic " + base64.b64encode(b"user:secret").decode()
    assert seen["body"]["method"] == "getblockcount"
    assert seen["body"]["params"] == []
    assert seen["body"]["jsonrpc"] == "1.0"


@pytest.mark.anyio
async def test_alias_params_are_prepended():
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"result": {"status": 4}, "error": None})

    await _client(handler).call_alias(node_record("mn1"), "masternode status", ["extra"])

    assert bodies[0]["method"] == "masternode"
    assert bodies[0]["params"] == ["status", "extra"]


@pytest.mark.anyio
async def test_error_envelope_is_protocol_error():
    def handler(request):
        return httpx.Response(200, json={"result": None, "error": {"code": -28, "message": "Loading block index..."}})

    with pytest.raises(RpcProtocolError) as excinfo:
        await _client(handler).call(node_record("mn1"), "getblockcount")

    assert excinfo.value.rpc_code == -28
    assert "Loading block index" in str(excinfo.value)


@pytest.mark.anyio
async def test_http_failure_is_transport_error_with_daemon_message():
    def handler(request):
        return httpx.Response(500, json={"result": None, "error": {"code": -8, "message": "Block height out of range"}})

    with pytest.raises(RpcTransportError) as excinfo:
        await _client(handler).call(node_record("mn1"), "getblockhash", [999999])

    assert excinfo.value.http_status == 500
    assert "Block height out of range" in str(excinfo.value)


@pytest.mark.anyio
async def test_unauthorized_is_transport_error():
    with pytest.raises(RpcTransportError) as excinfo:
        await _client(lambda request: httpx.Response(401)).call(node_record("mn1"), "getblockcount")
    assert excinfo.value.http_status == 401


@pytest.mark.anyio
async def test_connection_refused_is_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(RpcTransportError):
        await _client(handler).call(node_record("mn1"), "getblockcount")


@pytest.mark.anyio
async def test_malformed_body_is_protocol_error():
    with pytest.raises(RpcProtocolError):
        await _client(lambda request: httpx.Response(200, content=b"<html>")).call(node_record("mn1"), "getblockcount")
