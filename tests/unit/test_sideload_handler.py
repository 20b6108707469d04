"""Tests for the JSON-RPC sideload dispatcher."""

import asyncio
import io
import json

import pytest

from image_relay.sideload.handler import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    SideloadHandler,
)


@pytest.fixture
def handler():
    handler = SideloadHandler()
    handler.register_method("ping", lambda params: {"pong": True})

    async def echo(params):
        return params

    def boom(params):
        raise RuntimeError("exploded")

    handler.register_method("echo", echo)
    handler.register_method("boom", boom)
    return handler


def request(method, params=None, msg_id=1):
    msg = {"jsonrpc": "2.0", "method": method}
    if params is not None:
        msg["params"] = params
    if msg_id is not None:
        msg["id"] = msg_id
    return json.dumps(msg)


@pytest.mark.asyncio
async def test_sync_method(handler):
    response = json.loads(await handler.handle_request(request("ping")))

    assert response == {"jsonrpc": "2.0", "id": 1, "result": {"pong": True}}


@pytest.mark.asyncio
async def test_async_method(handler):
    response = json.loads(await handler.handle_request(request("echo", {"a": 1}, msg_id="x")))

    assert response["id"] == "x"
    assert response["result"] == {"a": 1}


@pytest.mark.asyncio
async def test_parse_error(handler):
    response = json.loads(await handler.handle_request("{nope"))

    assert response["error"]["code"] == PARSE_ERROR
    assert response["id"] is None


@pytest.mark.asyncio
async def test_non_object_request(handler):
    response = json.loads(await handler.handle_request("[1]"))

    assert response["error"]["code"] == INVALID_REQUEST


@pytest.mark.asyncio
async def test_unknown_method(handler):
    response = json.loads(await handler.handle_request(request("teleport")))

    assert response["error"]["code"] == METHOD_NOT_FOUND


@pytest.mark.asyncio
async def test_invalid_params(handler):
    response = json.loads(await handler.handle_request(request("echo", [1, 2])))

    assert response["error"]["code"] == INVALID_PARAMS


@pytest.mark.asyncio
async def test_method_error(handler):
    response = json.loads(await handler.handle_request(request("boom")))

    assert response["error"] == {"code": INTERNAL_ERROR, "message": "exploded"}


@pytest.mark.asyncio
async def test_notifications_get_no_response(handler):
    assert await handler.handle_request(request("ping", msg_id=None)) is None
    assert await handler.handle_request(request("teleport", msg_id=None)) is None
    assert await handler.handle_request(request("boom", msg_id=None)) is None


def test_methods_are_listed(handler):
    assert handler.methods == ["boom", "echo", "ping"]


def feed(*lines):
    reader = asyncio.StreamReader()
    for line in lines:
        reader.feed_data((line + "\n").encode())
    reader.feed_eof()
    return reader


@pytest.mark.asyncio
async def test_serve_writes_one_line_per_reply():
    output = io.StringIO()
    handler = SideloadHandler(output=output)
    handler.register_method("ping", lambda params: {"pong": True})

    await handler.serve(feed(request("ping", msg_id=1), "", request("ping", msg_id=None), request("ping", msg_id=2)))

    replies = [json.loads(line) for line in output.getvalue().splitlines()]
    assert [reply["id"] for reply in replies] == [1, 2]


@pytest.mark.asyncio
async def test_serve_stops_after_shutdown():
    output = io.StringIO()
    handler = SideloadHandler(output=output)
    handler.register_method("ping", lambda params: {"pong": True})

    def shutdown(params):
        handler.stop()
        return {}

    handler.register_method("shutdown", shutdown)

    await handler.serve(feed(request("shutdown", msg_id=1), request("ping", msg_id=2)))

    replies = [json.loads(line) for line in output.getvalue().splitlines()]
    assert replies == [{"jsonrpc": "2.0", "id": 1, "result": {}}]
