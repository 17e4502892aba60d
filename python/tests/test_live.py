"""Tests for the live measurement adapter."""

import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import httpx

from toolcost.benchmark import Pricing
from toolcost.errors import MissingCredential, RemoteProtocolError
from toolcost.jsonrpc import JsonRpcClient
from toolcost.live import (
    load_env_file,
    org_slug_from_url,
    resolve_endpoint,
    resolve_token,
    run_live_benchmark,
)
from toolcost.meta_tools import META_TOOLS, meta_tools_tokens
from toolcost.tokens import count_tokens

LIST_SERVICES = json.dumps(
    {
        "services": [
            {"name": "Linear", "slug": "linear", "toolCount": 120, "sampleTools": ["create_issue"]},
            {"name": "GitHub", "slug": "github", "toolCount": 80, "sampleTools": ["create_pr"]},
        ],
        "total": 2,
    }
)
SEARCH_TOOLS = json.dumps(
    {
        "tools": [
            {"name": f"linear/create_{i}", "description": "Create a thing", "project": "linear"}
            for i in range(8)
        ],
        "total": 8,
    }
)
DESCRIBE_TOOLS = json.dumps(
    {
        "tools": [
            {"name": "linear/create_0", "description": "Create", "inputSchema": {"type": "object"}, "project": "linear"}
        ],
        "notFound": [],
    }
)


class FakeServer:
    """Answers the MCP calls made during a live run and records them."""

    def __init__(self, tools=None, texts=None):
        self.calls = []
        self.tools = tools if tools is not None else [t.to_dict() for t in META_TOOLS]
        self.texts = {
            "list_services": LIST_SERVICES,
            "search_tools": SEARCH_TOOLS,
            "describe_tools": DESCRIBE_TOOLS,
            **(texts or {}),
        }

    def __call__(self, request):
        body = json.loads(request.content)
        self.calls.append((body["method"], body.get("params")))
        if body["method"] == "initialize":
            result = {"protocolVersion": "2024-11-05", "serverInfo": {"name": "fake"}}
        elif body["method"] == "tools/list":
            result = {"tools": self.tools}
        else:
            text = self.texts[body["params"]["name"]]
            result = {"content": [{"type": "text", "text": text}]}
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})

    def client(self):
        return JsonRpcClient("https://mcp.example.test/org/acme", "secret", transport=httpx.MockTransport(self))


class RunLiveBenchmarkTest(unittest.TestCase):
    """Validates the measured meta-tools workflow."""

    def test_sequential_workflow(self):
        server = FakeServer()
        with server.client() as client:
            run_live_benchmark(client, "acme")

        self.assertEqual(
            [call[0] for call in server.calls],
            ["initialize", "tools/list", "tools/call", "tools/call", "tools/call"],
        )
        self.assertEqual(server.calls[2][1], {"name": "list_services", "arguments": {}})
        self.assertEqual(
            server.calls[3][1],
            {"name": "search_tools", "arguments": {"query": "create", "limit": 50}},
        )
        self.assertEqual(
            server.calls[4][1]["arguments"]["tools"],
            [f"linear/create_{i}" for i in range(5)],
        )

    def test_measurements_and_estimate(self):
        server = FakeServer()
        with server.client() as client:
            result = run_live_benchmark(client, "acme", pricing=Pricing(monthly_requests_per_user=10))

        self.assertEqual(result.org_slug, "acme")
        self.assertEqual(result.services, {"Linear": 120, "GitHub": 80})
        self.assertEqual(result.service_count, 2)
        self.assertEqual(result.total_tools, 200)
        self.assertTrue(result.has_meta_tools)
        self.assertEqual(result.list_services_tokens, count_tokens(LIST_SERVICES))
        self.assertEqual(result.search_tools_tokens, count_tokens(SEARCH_TOOLS))
        self.assertEqual(result.describe_tools_tokens, count_tokens(DESCRIBE_TOOLS))
        self.assertEqual(result.indirection_tokens, meta_tools_tokens())
        self.assertEqual(result.expansion_estimate, 200 * 140)

        workflow = (
            result.indirection_tokens * 3
            + result.list_services_tokens
            + result.search_tools_tokens
            + result.describe_tools_tokens
        )
        self.assertEqual(result.fair.indirection_workflow_tokens, workflow)
        self.assertEqual(result.fair.difference, 200 * 140 - workflow)
        self.assertAlmostEqual(result.cost_per_user_per_month, result.cost_per_request * 10)

    def test_average_tokens_per_operation_is_configurable(self):
        server = FakeServer()
        with server.client() as client:
            result = run_live_benchmark(client, "acme", average_tokens_per_operation=90)
        self.assertEqual(result.expansion_estimate, 200 * 90)
        self.assertEqual(result.average_tokens_per_operation, 90)

    def test_missing_meta_tools_warns(self):
        server = FakeServer(tools=[{"name": "create_issue"}])
        with server.client() as client:
            with self.assertLogs("toolcost.live", level="WARNING"):
                result = run_live_benchmark(client, "acme")
        self.assertFalse(result.has_meta_tools)
        self.assertEqual(result.tool_names, ("create_issue",))

    def test_non_json_tool_text_is_protocol_error(self):
        server = FakeServer(texts={"list_services": "Service listing unavailable"})
        with server.client() as client:
            with self.assertRaises(RemoteProtocolError):
                run_live_benchmark(client, "acme")

    def test_services_sharing_a_name_are_all_counted(self):
        listing = json.dumps(
            {
                "services": [
                    {"name": "GitHub", "slug": "github", "toolCount": 100},
                    {"name": "GitHub", "slug": "github-enterprise", "toolCount": 50},
                ],
                "total": 2,
            }
        )
        server = FakeServer(texts={"list_services": listing})
        with server.client() as client:
            result = run_live_benchmark(client, "acme")

        self.assertEqual(result.total_tools, 150)
        self.assertEqual(result.expansion_estimate, 150 * 140)
        self.assertEqual(result.services, {"GitHub": 150})
        self.assertEqual(result.service_count, 2)
        self.assertEqual(result.to_dict()["services"]["count"], 2)

    def test_service_count_falls_back_to_listed_entries(self):
        listing = json.dumps({"services": [{"name": "Linear", "toolCount": 3}]})
        server = FakeServer(texts={"list_services": listing})
        with server.client() as client:
            self.assertEqual(run_live_benchmark(client, "acme").service_count, 1)

    def test_malformed_service_entries_are_protocol_errors(self):
        for listing in (
            {"services": [{"name": "A", "toolCount": None}]},
            {"services": [{"name": "A", "toolCount": "12"}]},
            {"services": ["A"]},
            {"services": {"A": 3}},
        ):
            with self.subTest(listing=listing):
                server = FakeServer(texts={"list_services": json.dumps(listing)})
                with server.client() as client:
                    with self.assertRaises(RemoteProtocolError) as ctx:
                        run_live_benchmark(client, "acme")
                self.assertEqual(ctx.exception.code, -32700)

    def test_malformed_search_hits_are_protocol_errors(self):
        server = FakeServer(texts={"search_tools": json.dumps({"tools": [None]})})
        with server.client() as client:
            with self.assertRaises(RemoteProtocolError):
                run_live_benchmark(client, "acme")

    def test_result_serializes(self):
        server = FakeServer()
        with server.client() as client:
            data = run_live_benchmark(client, "acme").to_dict()
        self.assertEqual(data["services"]["names"], ["Linear", "GitHub"])
        self.assertEqual(data["tokenMeasurements"]["fullExpansionEstimate"], 28_000)
        json.dumps(data)


class ResolveEndpointTest(unittest.TestCase):
    def test_environments(self):
        self.assertEqual(resolve_endpoint("acme")[0], "https://mcp.air-lock.ai/org/acme")
        self.assertEqual(resolve_endpoint("acme", env="staging")[0], "https://mcp.staging.air-lock.ai/org/acme")
        self.assertEqual(resolve_endpoint("acme", env="pr42")[0], "https://mcp.pr42.dev.air-lock.ai/org/acme")

    def test_url_wins(self):
        url = "https://mcp.example.test/org/widgets?x=1"
        self.assertEqual(resolve_endpoint("acme", url=url), (url, "widgets"))

    def test_requires_slug_or_url(self):
        with self.assertRaises(ValueError):
            resolve_endpoint()

    def test_org_slug_from_url(self):
        self.assertEqual(org_slug_from_url("https://host/path"), "unknown")


class ResolveTokenTest(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.env_file = Path(self._tmp.name) / ".env"

    def tearDown(self):
        self._tmp.cleanup()

    def test_flag_wins(self):
        with patch.dict(os.environ, {"TOOLCOST_MCP_TOKEN": "from-env"}):
            self.assertEqual(resolve_token(" from-flag ", self.env_file), "from-flag")

    def test_environment(self):
        with patch.dict(os.environ, {"TOOLCOST_MCP_TOKEN": "from-env"}):
            self.assertEqual(resolve_token(None, self.env_file), "from-env")

    def test_env_file(self):
        self.env_file.write_text('# secrets\nOTHER=1\nTOOLCOST_MCP_TOKEN="from-file"\n')
        with patch.dict(os.environ, {}, clear=True):
            self.assertEqual(resolve_token(None, self.env_file), "from-file")

    def test_missing_token(self):
        with patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(MissingCredential) as ctx:
                resolve_token("   ", self.env_file)
        self.assertIn("--token", str(ctx.exception))


def test_load_env_file_missing(tmp_path):
    assert load_env_file(tmp_path / "absent") == {}
