"""Render benchmark results as a terminal table, markdown or JSON."""

import json
from typing import List, Optional, Sequence

from .benchmark import Pricing, fair_comparison_for
from .config import DEFAULT_DESCRIBE_RESPONSE_TOKENS, DEFAULT_SEARCH_RESPONSE_TOKENS, META_TOOL_EXPOSURES
from .meta_tools import META_TOOLS
from .models import BenchmarkResult, LiveBenchmarkResult
from .tokens import count_tool_tokens

LARGE_ORG_THRESHOLD = 100
BREAK_EVEN_NOTE = "~15-20 tools (2-3 typical APIs)"


def format_number(n: int) -> str:
    return f"{n:,}"


def format_percent(n: float) -> str:
    return f"{n:.1f}%"


def format_cost(dollars: float) -> str:
    if abs(dollars) < 0.01:
        return f"${dollars:.4f}"
    return f"${dollars:.3f}"


def format_monthly_cost(dollars: float) -> str:
    if abs(dollars) >= 1000:
        return f"${dollars / 1000:.1f}k"
    if abs(dollars) >= 1:
        return f"${dollars:.0f}"
    return f"${dollars:.2f}"


def _summary_stats(results: Sequence[BenchmarkResult]):
    percentages = [r.percentage_saved for r in results]
    return max(percentages), sum(percentages) / len(percentages)


def render_json(results: Sequence[BenchmarkResult], pricing: Optional[Pricing] = None) -> str:
    pricing = pricing or Pricing()
    return json.dumps(
        {
            "results": [r.to_dict() for r in results],
            "fairComparison": [
                {"scenario": r.scenario, **fair_comparison_for(r).to_dict()} for r in results
            ],
            "meta": {
                "metaTools": [tool.to_dict() for tool in META_TOOLS],
                "pricePerMillionTokens": pricing.price_per_million_tokens,
                "monthlyRequestsPerUser": pricing.monthly_requests_per_user,
            },
        },
        indent=2,
    )


def render_terminal(results: Sequence[BenchmarkResult], pricing: Optional[Pricing] = None) -> str:
    pricing = pricing or Pricing()
    lines: List[str] = []
    lines.append("=" * 100)
    lines.append("META-TOOLS TOKEN SAVINGS BENCHMARK")
    lines.append("=" * 100)

    lines.append(f"\nMeta-Tools ({len(META_TOOLS)} tools):")
    lines.append("-" * 50)
    total = 0
    for tool in META_TOOLS:
        tokens = count_tool_tokens(tool)
        total += tokens
        lines.append(f"  {tool.name:<20}: {format_number(tokens):>6} tokens")
    lines.append("-" * 50)
    lines.append(f"  {'TOTAL':<20}: {format_number(total):>6} tokens")

    lines.append("\nBenchmark Results:")
    header = (
        f"| {'Scenario':<37}| {'APIs':<4}| {'Tools':<5}| {'Meta':<7}| {'Full':<9}"
        f"| {'Saved':<9}| {'%':<6}| {'$/req':<8}| {'$/user/mo':<9}|"
    )
    lines.append("-" * len(header))
    lines.append(header)
    lines.append("-" * len(header))
    for r in results:
        lines.append(
            f"| {r.scenario:<37}| {r.service_count:<4}| {r.total_tools:<5}"
            f"| {format_number(r.indirection_tokens):<7}| {format_number(r.expansion_tokens):<9}"
            f"| {format_number(r.tokens_saved):<9}| {format_percent(r.percentage_saved):<6}"
            f"| {format_cost(r.cost_per_request):<8}| {format_monthly_cost(r.cost_per_user_per_month):<9}|"
        )
    lines.append("-" * len(header))

    large = next((r for r in results if r.total_tools > LARGE_ORG_THRESHOLD), None)
    if large is not None:
        fair = fair_comparison_for(large)
        overhead = DEFAULT_SEARCH_RESPONSE_TOKENS + DEFAULT_DESCRIBE_RESPONSE_TOKENS
        lines.append("\nFair Comparison (including meta-tools workflow overhead):")
        lines.append("-" * 70)
        lines.append(f"  Scenario: {large.scenario}")
        lines.append("  Meta-tools workflow (search -> describe -> execute):")
        lines.append(
            f"    {META_TOOL_EXPOSURES} API calls x {large.indirection_tokens} tool defs"
            f" + ~{overhead} response tokens"
        )
        lines.append(f"    Total: ~{format_number(fair.indirection_workflow_tokens)} tokens")
        lines.append("  Full expansion workflow (direct execute):")
        lines.append(f"    1 API call x {format_number(large.expansion_tokens)} tool defs")
        lines.append(f"    Total: ~{format_number(fair.expansion_tokens)} tokens")
        lines.append(
            f"  Savings: {format_number(fair.difference)} tokens ({format_percent(fair.percentage_saved)})"
        )

    if results:
        max_savings, avg_savings = _summary_stats(results)
        lines.append("\n" + "=" * 100)
        lines.append("SUMMARY")
        lines.append("=" * 100)
        lines.append(f"  Results across {len(results)} scenarios:")
        lines.append(f"  - Maximum savings: {format_percent(max_savings)}")
        lines.append(f"  - Average savings: {format_percent(avg_savings)}")
        lines.append(f"  - Break-even: {BREAK_EVEN_NOTE}")
        lines.append(
            f"  Pricing: ${pricing.price_per_million_tokens}/1M input tokens,"
            f" {format_number(pricing.monthly_requests_per_user)} requests/user/month"
        )
    return "\n".join(lines)


def render_markdown(results: Sequence[BenchmarkResult], pricing: Optional[Pricing] = None) -> str:
    pricing = pricing or Pricing()
    lines = ["# Meta-Tools Token Savings Benchmark", ""]

    lines.append(f"## Meta-Tools Definition ({len(META_TOOLS)} tools)")
    lines.append("")
    lines.append("| Tool | Tokens |")
    lines.append("|------|--------|")
    total = 0
    for tool in META_TOOLS:
        tokens = count_tool_tokens(tool)
        total += tokens
        lines.append(f"| {tool.name} | {tokens} |")
    lines.append(f"| **TOTAL** | **{total}** |")
    lines.append("")

    lines.append("## Benchmark Results")
    lines.append("")
    lines.append(
        f"*Based on ~{format_number(pricing.monthly_requests_per_user)} requests/user/month"
        f" and ${pricing.price_per_million_tokens}/1M input tokens*"
    )
    lines.append("")
    lines.append("| Scenario | APIs | Tools | Meta Tokens | Full Tokens | Saved | % Saved | $/req | $/user/mo |")
    lines.append("|----------|------|-------|-------------|-------------|-------|---------|-------|-----------|")
    for r in results:
        lines.append(
            f"| {r.scenario} | {r.service_count} | {r.total_tools} | {format_number(r.indirection_tokens)}"
            f" | {format_number(r.expansion_tokens)} | {format_number(r.tokens_saved)}"
            f" | {format_percent(r.percentage_saved)} | {format_cost(r.cost_per_request)}"
            f" | {format_monthly_cost(r.cost_per_user_per_month)} |"
        )

    if results:
        max_savings, avg_savings = _summary_stats(results)
        lines.append("")
        lines.append("## Key Findings")
        lines.append("")
        lines.append(f"- **Maximum savings**: {format_percent(max_savings)}")
        lines.append(f"- **Average savings**: {format_percent(avg_savings)}")
        lines.append(f"- **Break-even point**: {BREAK_EVEN_NOTE}")
    return "\n".join(lines)


def render_live_json(result: LiveBenchmarkResult) -> str:
    return json.dumps(result.to_dict(), indent=2)


def render_live_terminal(result: LiveBenchmarkResult) -> str:
    lines = ["=" * 70, "LIVE BENCHMARK RESULTS", "=" * 70]
    lines.append(f"\nOrganization: {result.org_slug}")
    lines.append(f"   Timestamp: {result.timestamp}")

    lines.append(f"\nServices ({result.service_count}):")
    for name, tools in result.services.items():
        lines.append(f"   - {name}: {tools} tools")
    lines.append(f"   Total: {result.total_tools} tools")

    lines.append("\nToken Measurements:")
    lines.append(f"   Meta-tool definitions:    {result.indirection_tokens} tokens (constant)")
    lines.append(f"   list_services response:   {result.list_services_tokens} tokens")
    lines.append(f"   search_tools response:    {result.search_tools_tokens} tokens")
    lines.append(f"   describe_tools response:  {result.describe_tools_tokens} tokens")
    lines.append(
        f"   Full expansion estimate:  {format_number(result.expansion_estimate)} tokens"
        f" ({result.average_tokens_per_operation} tokens/tool, estimated)"
    )

    fair = result.fair
    lines.append("\nFair Comparison:")
    lines.append(f"   Meta-tools workflow:  {format_number(fair.indirection_workflow_tokens)} tokens")
    lines.append(f"   Full expansion:       {format_number(fair.expansion_tokens)} tokens")
    if fair.difference > 0:
        lines.append(
            f"   Savings:              {format_number(fair.difference)} tokens"
            f" ({format_percent(fair.percentage_saved)})"
        )
    else:
        lines.append(f"   Extra cost:           {format_number(abs(fair.difference))} tokens")
    lines.append(
        f"   $/req: {format_cost(result.cost_per_request)}"
        f"   $/user/mo: {format_monthly_cost(result.cost_per_user_per_month)}"
    )

    lines.append(f"\n{fair.recommendation}")
    lines.append("=" * 70)
    return "\n".join(lines)
