"""Command line entry point for the static and live benchmarks."""

import argparse
import logging
import sys

from . import report, tokens
from .benchmark import Pricing, run_benchmarks
from .config import (
    DEFAULT_AVG_TOKENS_PER_OPERATION,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SEARCH_QUERY,
)
from .errors import ToolcostError
from .jsonrpc import JsonRpcClient
from .live import resolve_endpoint, resolve_token, run_live_benchmark

logger = logging.getLogger("toolcost")


def _pricing(args: argparse.Namespace) -> Pricing:
    pricing = Pricing.from_env()
    return Pricing(
        price_per_million_tokens=(
            args.price_per_million
            if args.price_per_million is not None
            else pricing.price_per_million_tokens
        ),
        monthly_requests_per_user=(
            args.monthly_requests
            if args.monthly_requests is not None
            else pricing.monthly_requests_per_user
        ),
    )


def run_static(args: argparse.Namespace) -> int:
    pricing = _pricing(args)
    results = run_benchmarks(args.catalog_dir, pricing)
    if args.format == "json":
        print(report.render_json(results, pricing))
    elif args.format == "markdown":
        print(report.render_markdown(results, pricing))
    else:
        print(report.render_terminal(results, pricing))
    return 0


def run_live(args: argparse.Namespace) -> int:
    url, org_slug = resolve_endpoint(args.org_slug, args.url, args.env)
    token = resolve_token(args.token)
    with JsonRpcClient(url, token, timeout=args.timeout) as client:
        result = run_live_benchmark(
            client,
            org_slug,
            pricing=_pricing(args),
            average_tokens_per_operation=args.avg_tokens_per_operation,
            search_query=args.query,
        )
    if args.format == "json":
        print(report.render_live_json(result))
    else:
        print(report.render_live_terminal(result))
    return 0


def parse_args(argv: list) -> argparse.Namespace:
    """Parse CLI arguments.

    Args:
        argv: Argument list.

    Returns:
        Parsed arguments.
    """
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--exact", action="store_true", help="Count with tiktoken cl100k_base")
    common.add_argument("--price-per-million", type=float, default=None, help="USD per 1M input tokens")
    common.add_argument("--monthly-requests", type=int, default=None, help="Requests per user per month")
    common.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    parser = argparse.ArgumentParser(
        description="Compare meta-tools against full tool expansion in context tokens."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    static = subparsers.add_parser("static", parents=[common], help="Benchmark OpenAPI catalogs")
    static.add_argument("--catalog-dir", default=None, help="Directory of OpenAPI JSON catalogs")
    static.add_argument("--format", choices=("terminal", "json", "markdown"), default="terminal")
    static.set_defaults(handler=run_static)

    live = subparsers.add_parser("live", parents=[common], help="Measure a running MCP endpoint")
    live.add_argument("--org-slug", help="Organization slug")
    live.add_argument("--url", help="Full MCP endpoint URL (alternative to --org-slug)")
    live.add_argument("--token", help="MCP access token")
    live.add_argument("--env", default="production", help="production, staging or a dev stage name")
    live.add_argument("--format", choices=("terminal", "json"), default="terminal")
    live.add_argument("--query", default=DEFAULT_SEARCH_QUERY, help="search_tools query")
    live.add_argument(
        "--avg-tokens-per-operation",
        type=int,
        default=DEFAULT_AVG_TOKENS_PER_OPERATION,
        help="Assumed tokens per expanded tool (the live path cannot measure it)",
    )
    live.add_argument("--timeout", type=float, default=DEFAULT_REQUEST_TIMEOUT, help="HTTP timeout (s)")
    live.set_defaults(handler=run_live)
    return parser.parse_args(argv)


def main(argv: list = None) -> int:
    """Entry point for the toolcost command."""
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    tokens.use_exact(args.exact)
    try:
        return args.handler(args)
    except (ToolcostError, ValueError) as e:
        logger.error(f"Benchmark failed: {e}")
        return 1
    finally:
        tokens.release()


if __name__ == "__main__":
    raise SystemExit(main())
