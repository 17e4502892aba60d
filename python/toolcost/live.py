"""Measure the meta-tools workflow against a running MCP endpoint.

Only the meta-tools side is measured. The endpoint never lists a flattened
definition per operation, so the full-expansion side is an estimate:
``total_tools * average_tokens_per_operation``, with the average taken from
the static catalog benchmarks unless the caller passes another one.
"""

import json
import logging
import os
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from .benchmark import Pricing, fair_comparison
from .config import (
    DEFAULT_AVG_TOKENS_PER_OPERATION,
    DEFAULT_SEARCH_LIMIT,
    DEFAULT_SEARCH_QUERY,
    DESCRIBE_SAMPLE_SIZE,
    DEV_URL_TEMPLATE,
    PRODUCTION_URL_TEMPLATE,
    STAGING_URL_TEMPLATE,
    TOKEN_ENV_VAR,
)
from .errors import MissingCredential, RemoteProtocolError
from .jsonrpc import PARSE_ERROR, JsonRpcClient
from .meta_tools import META_TOOL_NAMES, meta_tools_tokens
from .models import LiveBenchmarkResult
from .tokens import count_tokens

logger = logging.getLogger(__name__)

ORG_SLUG_PATTERN = re.compile(r"/org/([^/?]+)")


def org_slug_from_url(url: str) -> str:
    match = ORG_SLUG_PATTERN.search(url)
    return match.group(1) if match else "unknown"


def resolve_endpoint(
    org_slug: Optional[str] = None,
    url: Optional[str] = None,
    env: str = "production",
) -> Tuple[str, str]:
    """Work out the MCP endpoint URL and organization slug.

    Args:
        org_slug: Organization slug.
        url: Full endpoint URL; wins over ``org_slug``.
        env: ``production``, ``staging`` or a dev stage name.

    Returns:
        Tuple of (url, org_slug).
    """
    if url:
        return url, org_slug_from_url(url)
    if not org_slug:
        raise ValueError("Either an org slug or an endpoint URL is required")
    if env == "production":
        return PRODUCTION_URL_TEMPLATE.format(slug=org_slug), org_slug
    if env == "staging":
        return STAGING_URL_TEMPLATE.format(slug=org_slug), org_slug
    return DEV_URL_TEMPLATE.format(stage=env, slug=org_slug), org_slug


def load_env_file(path: Path) -> Dict[str, str]:
    """
    Minimal .env loader: key=value per line, no interpolation.
    """
    env: Dict[str, str] = {}
    if not path.exists():
        return env
    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, val = line.split("=", 1)
        env[key.strip()] = val.strip().strip("\"'")
    return env


def resolve_token(token: Optional[str] = None, env_file: Union[str, Path, None] = ".env") -> str:
    """Return the MCP access token from the flag, environment or .env file."""
    candidates = [token, os.environ.get(TOKEN_ENV_VAR)]
    if env_file is not None:
        candidates.append(load_env_file(Path(env_file)).get(TOKEN_ENV_VAR))
    for candidate in candidates:
        if candidate and candidate.strip():
            return candidate.strip()
    raise MissingCredential(
        "No MCP access token provided. Copy the MCP access token from your "
        "project's Connection tab and pass it with --token, or set "
        f"{TOKEN_ENV_VAR} in the environment or in a .env file."
    )


def _parse(text: str, tool: str) -> Dict[str, Any]:
    try:
        data = json.loads(text)
    except ValueError as exc:
        raise RemoteProtocolError(PARSE_ERROR, f"{tool} returned non-JSON text: {text[:200]}") from exc
    if not isinstance(data, dict):
        raise RemoteProtocolError(PARSE_ERROR, f"{tool} returned unexpected payload: {text[:200]}")
    return data


def _entries(data: Dict[str, Any], key: str, tool: str) -> List[Dict[str, Any]]:
    entries = data.get(key, [])
    if not isinstance(entries, list) or not all(isinstance(e, dict) for e in entries):
        raise RemoteProtocolError(PARSE_ERROR, f"{tool} returned malformed '{key}': {entries!r:.200}")
    return entries


def _tool_count(service: Dict[str, Any]) -> int:
    count = service.get("toolCount", 0)
    if isinstance(count, bool) or not isinstance(count, int) or count < 0:
        raise RemoteProtocolError(PARSE_ERROR, f"list_services returned invalid toolCount: {service!r:.200}")
    return count


def run_live_benchmark(
    client: JsonRpcClient,
    org_slug: str,
    pricing: Optional[Pricing] = None,
    average_tokens_per_operation: int = DEFAULT_AVG_TOKENS_PER_OPERATION,
    search_query: str = DEFAULT_SEARCH_QUERY,
    search_limit: int = DEFAULT_SEARCH_LIMIT,
    describe_sample_size: int = DESCRIBE_SAMPLE_SIZE,
) -> LiveBenchmarkResult:
    """Walk the meta-tools workflow once and measure each response.

    Calls are sequential: initialize, tools/list, list_services,
    search_tools, describe_tools on the first search hits.
    """
    pricing = pricing or Pricing()

    logger.info(f"Initializing MCP session with {client.url}")
    client.initialize()

    tool_names = tuple(str(t.get("name", "")) for t in _entries(client.list_tools(), "tools", "tools/list"))
    logger.info(f"Found {len(tool_names)} tools: {', '.join(tool_names)}")
    has_meta_tools = all(name in tool_names for name in META_TOOL_NAMES)
    if not has_meta_tools:
        logger.warning("Expected meta-tools not found. This may be a project-specific endpoint.")

    list_text = client.call_tool_text("list_services", {})
    list_tokens = count_tokens(list_text)
    listing = _parse(list_text, "list_services")
    entries = _entries(listing, "services", "list_services")
    # Display names may repeat; counts for a shared name are added together
    services: Dict[str, int] = {}
    total_tools = 0
    for service in entries:
        count = _tool_count(service)
        name = str(service.get("name") or service.get("slug") or "unknown")
        services[name] = services.get(name, 0) + count
        total_tools += count
    # The server's own total wins over the number of listed entries
    service_count = listing.get("total")
    if isinstance(service_count, bool) or not isinstance(service_count, int):
        service_count = len(entries)
    logger.info(f"list_services: {service_count} services, {total_tools} tools, {list_tokens} tokens")

    search_text = client.call_tool_text("search_tools", {"query": search_query, "limit": search_limit})
    search_tokens = count_tokens(search_text)
    hits = _entries(_parse(search_text, "search_tools"), "tools", "search_tools")
    logger.info(f"search_tools: {len(hits)} matches, {search_tokens} tokens")

    sample = [hit.get("name", "") for hit in hits[:describe_sample_size]]
    describe_text = client.call_tool_text("describe_tools", {"tools": sample})
    describe_tokens = count_tokens(describe_text)
    described = _entries(_parse(describe_text, "describe_tools"), "tools", "describe_tools")
    logger.info(f"describe_tools: {len(described)} tools described, {describe_tokens} tokens")

    indirection_tokens = meta_tools_tokens()
    expansion_estimate = total_tools * average_tokens_per_operation
    fair = fair_comparison(
        indirection_tokens,
        expansion_estimate,
        (list_tokens, search_tokens, describe_tokens),
    )

    return LiveBenchmarkResult(
        org_slug=org_slug,
        timestamp=datetime.now(timezone.utc).isoformat(),
        services=services,
        service_count=service_count,
        total_tools=total_tools,
        tool_names=tool_names,
        has_meta_tools=has_meta_tools,
        list_services_tokens=list_tokens,
        search_tools_tokens=search_tokens,
        describe_tools_tokens=describe_tokens,
        indirection_tokens=indirection_tokens,
        expansion_estimate=expansion_estimate,
        average_tokens_per_operation=average_tokens_per_operation,
        fair=fair,
        cost_per_request=pricing.cost_per_request(fair.difference),
        cost_per_user_per_month=pricing.cost_per_user_per_month(fair.difference),
    )
