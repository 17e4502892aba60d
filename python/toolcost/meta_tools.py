"""The four meta-tools that front every connected service."""

from .models import ToolDefinition
from .tokens import count_tool_tokens

META_TOOLS = (
    ToolDefinition(
        name="list_services",
        description=(
            "List all connected services/projects in the organization. "
            "Returns service names, slugs, tool counts, and sample tools."
        ),
        input_schema={
            "type": "object",
            "properties": {},
            "required": [],
        },
    ),
    ToolDefinition(
        name="search_tools",
        description=(
            "Search for tools by keyword across all connected services. "
            "Returns matching tools with names, descriptions, and project info."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Search query to match against tool names and descriptions",
                },
                "limit": {
                    "type": "number",
                    "description": "Maximum number of results to return (default: 20)",
                },
            },
            "required": ["query"],
        },
    ),
    ToolDefinition(
        name="describe_tools",
        description=(
            "Get detailed information and input schemas for specific tools. "
            "Use after search_tools to get full schemas before executing."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "tools": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Array of tool names to describe (use namespaced format: project-slug/tool-name)",
                },
            },
            "required": ["tools"],
        },
    ),
    ToolDefinition(
        name="execute_tool",
        description=(
            "Execute a tool from any connected service in the organization. "
            'Use namespaced format: "project-slug/tool-name".'
        ),
        input_schema={
            "type": "object",
            "properties": {
                "tool": {
                    "type": "string",
                    "description": 'The namespaced tool name (e.g., "linear/create_issue", "github/create_pr")',
                },
                "arguments": {
                    "type": "object",
                    "additionalProperties": True,
                    "description": "Arguments to pass to the tool",
                },
            },
            "required": ["tool"],
        },
    ),
)

META_TOOL_NAMES = tuple(tool.name for tool in META_TOOLS)


def meta_tools_tokens() -> int:
    """Token cost of exposing the meta-tools; independent of catalog size."""
    return sum(count_tool_tokens(tool) for tool in META_TOOLS)
