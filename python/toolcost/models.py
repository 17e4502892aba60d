"""Records shared by the catalog, benchmark and live modules."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple


@dataclass(frozen=True)
class ToolDefinition:
    """A tool as an MCP server advertises it: name, description, inputSchema."""

    name: str
    description: str
    input_schema: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        # Key order is part of the measured payload.
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


@dataclass(frozen=True)
class Parameter:
    name: str
    location: str = "query"
    required: bool = False
    schema: Dict[str, Any] = field(default_factory=dict)
    description: Optional[str] = None


@dataclass(frozen=True)
class OperationDescriptor:
    """One path + verb pair of an OpenAPI document."""

    path: str
    method: str
    operation_id: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    parameters: Tuple[Parameter, ...] = ()
    request_body_schema: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class Catalog:
    """Operations of one connected service, keyed by path then verb."""

    name: str
    paths: Mapping[str, Mapping[str, OperationDescriptor]]

    @property
    def operation_count(self) -> int:
        return sum(len(methods) for methods in self.paths.values())

    def operations(self) -> List[OperationDescriptor]:
        return [op for methods in self.paths.values() for op in methods.values()]


@dataclass(frozen=True)
class BenchmarkResult:
    scenario: str
    service_count: int
    total_tools: int
    indirection_tokens: int
    expansion_tokens: int
    tokens_saved: int
    percentage_saved: float
    cost_per_request: float
    cost_per_user_per_month: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class FairComparison:
    """Meta-tools workflow (three round trips) against one expanded call."""

    indirection_workflow_tokens: int
    expansion_tokens: int
    difference: int
    percentage_saved: float
    recommendation: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class LiveBenchmarkResult:
    """One live run. ``services`` maps display name to tool count, summed
    when names repeat; ``service_count`` is the server-reported total."""

    org_slug: str
    timestamp: str
    services: Dict[str, int]
    service_count: int
    total_tools: int
    tool_names: Tuple[str, ...]
    has_meta_tools: bool
    list_services_tokens: int
    search_tools_tokens: int
    describe_tools_tokens: int
    indirection_tokens: int
    expansion_estimate: int
    average_tokens_per_operation: int
    fair: FairComparison
    cost_per_request: float
    cost_per_user_per_month: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "orgSlug": self.org_slug,
            "timestamp": self.timestamp,
            "services": {
                "count": self.service_count,
                "names": list(self.services),
            },
            "tools": {
                "total": self.total_tools,
                "perService": dict(self.services),
                "listed": list(self.tool_names),
                "hasMetaTools": self.has_meta_tools,
            },
            "tokenMeasurements": {
                "listServicesResponse": self.list_services_tokens,
                "searchToolsResponse": self.search_tools_tokens,
                "describeToolsResponse": self.describe_tools_tokens,
                "metaToolDefinitions": self.indirection_tokens,
                "fullExpansionEstimate": self.expansion_estimate,
                "averageTokensPerOperation": self.average_tokens_per_operation,
            },
            "fairComparison": self.fair.to_dict(),
            "costPerRequest": self.cost_per_request,
            "costPerUserPerMonth": self.cost_per_user_per_month,
        }
