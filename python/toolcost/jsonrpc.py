"""JSON-RPC 2.0 client for MCP servers over streamable HTTP."""

import json
import logging
from typing import Any, Dict, Optional

import httpx

from .config import CLIENT_NAME, CLIENT_VERSION, DEFAULT_REQUEST_TIMEOUT, SUPPORTED_PROTOCOL_VERSION
from .errors import RemoteProtocolError, RemoteUnavailable

logger = logging.getLogger(__name__)

PARSE_ERROR = -32700
SESSION_HEADER = "Mcp-Session-Id"


def decode_payload(text: str) -> Dict[str, Any]:
    """Decode a JSON-RPC response body, plain JSON or SSE framed."""
    # SSE style: event: message\ndata: {...}\n\n
    data_lines = [line.strip()[5:].strip() for line in text.splitlines() if line.startswith("data:")]
    payload = data_lines[-1] if data_lines else text
    try:
        data = json.loads(payload)
    except ValueError as exc:
        raise RemoteProtocolError(PARSE_ERROR, f"invalid JSON payload: {payload[:200]}") from exc
    if not isinstance(data, dict):
        raise RemoteProtocolError(PARSE_ERROR, f"unexpected payload: {payload[:200]}")
    return data


class JsonRpcClient:
    """Minimal MCP client over streamable HTTP: initialize, tools/list, tools/call."""

    def __init__(
        self,
        url: str,
        token: str,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.url = url.rstrip("/")
        self.token = token
        self.session_id: Optional[str] = None
        self._request_id = 0
        self._client = httpx.Client(timeout=timeout, transport=transport)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json, text/event-stream",
            "Authorization": f"Bearer {self.token}",
        }
        if self.session_id:
            headers[SESSION_HEADER] = self.session_id
        return headers

    def request(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        self._request_id += 1
        body: Dict[str, Any] = {"jsonrpc": "2.0", "id": self._request_id, "method": method}
        if params is not None:
            body["params"] = params

        logger.debug(f"-> {method} (id={self._request_id})")
        try:
            resp = self._client.post(self.url, json=body, headers=self._headers())
        except httpx.HTTPError as exc:
            raise RemoteUnavailable(f"MCP request failed: {exc}") from exc

        if resp.status_code >= 400:
            raise RemoteUnavailable(
                f"MCP request failed: {resp.status_code} {resp.reason_phrase}\n{resp.text[:200]}"
            )
        if resp.headers.get(SESSION_HEADER):
            self.session_id = resp.headers[SESSION_HEADER]

        data = decode_payload(resp.text)
        error = data.get("error")
        if error:
            if not isinstance(error, dict):
                raise RemoteProtocolError(0, str(error), method=method)
            raise RemoteProtocolError(error.get("code", 0), error.get("message", ""), method=method)
        return data.get("result")

    def initialize(self, protocol_version: str = SUPPORTED_PROTOCOL_VERSION) -> Any:
        return self.request(
            "initialize",
            {
                "protocolVersion": protocol_version,
                "capabilities": {},
                "clientInfo": {"name": CLIENT_NAME, "version": CLIENT_VERSION},
            },
        )

    def list_tools(self) -> Dict[str, Any]:
        result = self.request("tools/list") or {"tools": []}
        if not isinstance(result, dict) or not isinstance(result.get("tools", []), list):
            raise RemoteProtocolError(
                PARSE_ERROR, f"unexpected tools/list result: {result!r:.200}", method="tools/list"
            )
        return result

    def call_tool(self, name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        result = self.request("tools/call", {"name": name, "arguments": arguments}) or {}
        if not isinstance(result, dict):
            raise RemoteProtocolError(
                PARSE_ERROR, f"unexpected tools/call result: {result!r:.200}", method="tools/call"
            )
        return result

    def call_tool_text(self, name: str, arguments: Dict[str, Any]) -> str:
        """Call a tool and return its first text content item."""
        for item in self.call_tool(name, arguments).get("content") or []:
            if not isinstance(item, dict) or not isinstance(item.get("text", ""), str):
                raise RemoteProtocolError(
                    PARSE_ERROR, f"unexpected content item: {item!r:.200}", method="tools/call"
                )
            if item.get("type", "text") == "text" and "text" in item:
                return item["text"]
        return "{}"

    def close(self):
        self._client.close()
