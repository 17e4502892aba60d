import json

import httpx
import pytest

from toolcost.errors import RemoteProtocolError, RemoteUnavailable
from toolcost.jsonrpc import JsonRpcClient, decode_payload


def _client(handler):
    return JsonRpcClient("https://mcp.example.test/org/acme/", "secret", transport=httpx.MockTransport(handler))


def test_request_envelope_and_headers():
    seen = []

    def handler(request):
        seen.append(request)
        body = json.loads(request.content)
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": {"ok": True}})

    with _client(handler) as client:
        assert client.initialize() == {"ok": True}
        assert client.request("ping") == {"ok": True}

    first = json.loads(seen[0].content)
    assert str(seen[0].url) == "https://mcp.example.test/org/acme"
    assert seen[0].headers["Authorization"] == "Bearer secret"
    assert first["jsonrpc"] == "2.0"
    assert first["id"] == 1
    assert first["method"] == "initialize"
    assert first["params"]["protocolVersion"] == "2024-11-05"
    assert first["params"]["clientInfo"]["name"] == "toolcost-benchmark"

    second = json.loads(seen[1].content)
    assert second["id"] == 2
    assert "params" not in second


def test_session_id_is_echoed():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(
            200,
            json={"jsonrpc": "2.0", "id": 1, "result": {}},
            headers={"Mcp-Session-Id": "abc123"},
        )

    with _client(handler) as client:
        client.initialize()
        client.list_tools()

    assert "Mcp-Session-Id" not in seen[0].headers
    assert seen[1].headers["Mcp-Session-Id"] == "abc123"


def test_sse_framed_response():
    def handler(request):
        text = 'event: message\ndata: {"jsonrpc":"2.0","id":1,"result":{"tools":[{"name":"list_services"}]}}\n\n'
        return httpx.Response(200, text=text, headers={"Content-Type": "text/event-stream"})

    with _client(handler) as client:
        assert client.list_tools() == {"tools": [{"name": "list_services"}]}


def test_call_tool_text_returns_first_text_item():
    def handler(request):
        body = json.loads(request.content)
        assert body["method"] == "tools/call"
        assert body["params"] == {"name": "search_tools", "arguments": {"query": "create"}}
        result = {"content": [{"type": "image", "data": "..."}, {"type": "text", "text": '{"tools": []}'}]}
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": result})

    with _client(handler) as client:
        assert client.call_tool_text("search_tools", {"query": "create"}) == '{"tools": []}'


def test_call_tool_text_defaults_to_empty_object():
    def handler(request):
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": {"content": []}})

    with _client(handler) as client:
        assert client.call_tool_text("list_services", {}) == "{}"


def test_error_object_is_surfaced_verbatim():
    def handler(request):
        return httpx.Response(
            200,
            json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32601, "message": "Method not found"}},
        )

    with _client(handler) as client:
        with pytest.raises(RemoteProtocolError) as exc_info:
            client.list_tools()

    assert exc_info.value.code == -32601
    assert exc_info.value.message == "Method not found"
    assert exc_info.value.method == "tools/list"


def test_http_error_is_remote_unavailable():
    def handler(request):
        return httpx.Response(401, text="invalid token")

    with _client(handler) as client:
        with pytest.raises(RemoteUnavailable, match="401"):
            client.initialize()


def test_transport_error_is_remote_unavailable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with _client(handler) as client:
        with pytest.raises(RemoteUnavailable, match="connection refused"):
            client.initialize()


def test_decode_payload_rejects_garbage():
    with pytest.raises(RemoteProtocolError) as exc_info:
        decode_payload("<html>gateway timeout</html>")
    assert exc_info.value.code == -32700


@pytest.mark.parametrize(
    "method, result",
    [
        ("list_tools", ["list_services"]),
        ("list_tools", {"tools": "list_services"}),
        ("call_tool_text", "plain text"),
        ("call_tool_text", {"content": ["plain text"]}),
        ("call_tool_text", {"content": [{"type": "text", "text": None}]}),
    ],
)
def test_unexpected_result_shapes_are_protocol_errors(method, result):
    def handler(request):
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": result})

    with _client(handler) as client:
        call = getattr(client, method)
        args = () if method == "list_tools" else ("list_services", {})
        with pytest.raises(RemoteProtocolError) as exc_info:
            call(*args)
    assert exc_info.value.code == -32700
