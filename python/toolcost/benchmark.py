"""Token cost comparison: meta-tools versus full expansion.

Two framings are computed separately:

* ``compare`` is the naive one: the tool definitions sent with a single
  request, four meta-tools against every expanded operation.
* ``fair_comparison`` charges the meta-tools for their workflow: the
  definitions ride along on three round trips (search, describe, execute)
  and the search and describe responses land in the context too, while the
  expanded tools need a single call.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from .catalog import load_catalogs, normalize
from .config import (
    DEFAULT_DESCRIBE_RESPONSE_TOKENS,
    DEFAULT_MONTHLY_REQUESTS_PER_USER,
    DEFAULT_PRICE_PER_MILLION_TOKENS,
    DEFAULT_SEARCH_RESPONSE_TOKENS,
    META_TOOL_EXPOSURES,
    MONTHLY_REQUESTS_ENV_VAR,
    PRICE_ENV_VAR,
)
from .errors import CatalogUnavailable
from .meta_tools import meta_tools_tokens
from .models import BenchmarkResult, Catalog, FairComparison
from .synthetic import generate
from .tokens import count_tool_tokens

logger = logging.getLogger(__name__)

TOKENS_PER_MILLION = 1_000_000


@dataclass(frozen=True)
class Pricing:
    price_per_million_tokens: float = DEFAULT_PRICE_PER_MILLION_TOKENS
    monthly_requests_per_user: int = DEFAULT_MONTHLY_REQUESTS_PER_USER

    @classmethod
    def from_env(cls) -> "Pricing":
        price = os.environ.get(PRICE_ENV_VAR)
        requests = os.environ.get(MONTHLY_REQUESTS_ENV_VAR)
        return cls(
            price_per_million_tokens=float(price) if price else DEFAULT_PRICE_PER_MILLION_TOKENS,
            monthly_requests_per_user=int(requests) if requests else DEFAULT_MONTHLY_REQUESTS_PER_USER,
        )

    def cost_per_request(self, tokens: int) -> float:
        return tokens / TOKENS_PER_MILLION * self.price_per_million_tokens

    def cost_per_user_per_month(self, tokens: int) -> float:
        return self.cost_per_request(tokens) * self.monthly_requests_per_user


def percentage_of(saved: int, baseline: int) -> float:
    return saved / baseline * 100 if baseline > 0 else 0.0


def compare(
    scenario: str,
    catalogs: Sequence[Catalog],
    pricing: Optional[Pricing] = None,
) -> BenchmarkResult:
    """Compare the meta-tools against fully expanded catalogs.

    Args:
        scenario: Label for the result.
        catalogs: Connected services, one catalog each.
        pricing: Pricing knobs; defaults to ``Pricing()``.

    Returns:
        BenchmarkResult for the naive (single request) framing. A negative
        ``tokens_saved`` means full expansion is cheaper.
    """
    pricing = pricing or Pricing()
    indirection_tokens = meta_tools_tokens()

    total_tools = 0
    expansion_tokens = 0
    for catalog in catalogs:
        tools = normalize(catalog)
        total_tools += len(tools)
        expansion_tokens += sum(count_tool_tokens(tool) for tool in tools)

    tokens_saved = expansion_tokens - indirection_tokens
    return BenchmarkResult(
        scenario=scenario,
        service_count=len(catalogs),
        total_tools=total_tools,
        indirection_tokens=indirection_tokens,
        expansion_tokens=expansion_tokens,
        tokens_saved=tokens_saved,
        percentage_saved=percentage_of(tokens_saved, expansion_tokens),
        cost_per_request=pricing.cost_per_request(tokens_saved),
        cost_per_user_per_month=pricing.cost_per_user_per_month(tokens_saved),
    )


def recommendation(percentage_saved: float) -> str:
    if percentage_saved > 80:
        return "Meta-tools strongly recommended - significant savings"
    if percentage_saved > 50:
        return "Meta-tools recommended - good savings"
    if percentage_saved > 0:
        return "Meta-tools slightly better - marginal savings"
    return "Full expansion may be better for this small setup"


def fair_comparison(
    indirection_tokens: int,
    expansion_tokens: int,
    response_tokens: Iterable[int],
) -> FairComparison:
    """Compare the meta-tools workflow against one fully expanded call.

    Args:
        indirection_tokens: Tokens of the meta-tool definitions.
        expansion_tokens: Tokens of every expanded tool definition.
        response_tokens: Tokens of each discovery response the workflow
            pulls into the context (search, describe, ...).

    Returns:
        FairComparison; ``difference`` is negative when expansion wins.
    """
    workflow = indirection_tokens * META_TOOL_EXPOSURES + sum(response_tokens)
    difference = expansion_tokens - workflow
    percentage = percentage_of(difference, expansion_tokens)
    return FairComparison(
        indirection_workflow_tokens=workflow,
        expansion_tokens=expansion_tokens,
        difference=difference,
        percentage_saved=percentage,
        recommendation=recommendation(percentage),
    )


def fair_comparison_for(
    result: BenchmarkResult,
    search_response_tokens: int = DEFAULT_SEARCH_RESPONSE_TOKENS,
    describe_response_tokens: int = DEFAULT_DESCRIBE_RESPONSE_TOKENS,
) -> FairComparison:
    return fair_comparison(
        result.indirection_tokens,
        result.expansion_tokens,
        (search_response_tokens, describe_response_tokens),
    )


def build_scenarios(samples: Sequence[Catalog]) -> List[Tuple[str, List[Catalog]]]:
    """Scenario ladder from single APIs up to a twenty-odd service enterprise."""
    scenarios: List[Tuple[str, List[Catalog]]] = []
    for catalog in samples:
        scenarios.append((f"Single API ({catalog.name})", [catalog]))
    if len(samples) >= 2:
        scenarios.append(("Two APIs", list(samples[:2])))
    if len(samples) >= 3:
        scenarios.append(("Three APIs (typical org)", list(samples[:3])))

    medium = list(samples[:3]) + [
        generate(50, name="Service A"),
        generate(40, name="Service B"),
    ]
    scenarios.append((f"Medium org ({len(medium)} APIs)", medium))

    large = list(samples) + [generate(20 + i * 5, name=f"Service {i + 1}") for i in range(7)]
    scenarios.append((f"Large org ({len(large)} APIs)", large))

    enterprise = list(samples) + [generate(25 + i * 3, name=f"Service {i + 1}") for i in range(17)]
    scenarios.append((f"Enterprise ({len(enterprise)} APIs)", enterprise))
    return scenarios


def run_benchmarks(
    catalog_dir: Union[str, Path, None] = None,
    pricing: Optional[Pricing] = None,
) -> List[BenchmarkResult]:
    """Load the sample catalogs and run every scenario.

    Raises:
        CatalogUnavailable: If no catalog could be loaded at all.
    """
    samples = load_catalogs(catalog_dir)
    if not samples:
        raise CatalogUnavailable(str(catalog_dir or "sample catalogs"), "no catalogs loaded")

    results = []
    for scenario, catalogs in build_scenarios(samples):
        result = compare(scenario, catalogs, pricing)
        logger.debug(
            f"{scenario}: {result.total_tools} tools, "
            f"{result.expansion_tokens} expanded vs {result.indirection_tokens} meta tokens"
        )
        results.append(result)
    return results
