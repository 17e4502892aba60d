"""OpenAPI catalogs: loading documents and flattening them into MCP tools."""

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from .errors import CatalogUnavailable
from .models import Catalog, OperationDescriptor, Parameter, ToolDefinition

logger = logging.getLogger(__name__)

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")
JSON_CONTENT_TYPE = "application/json"
NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")
PARAMETER_REF_PREFIX = "#/components/parameters/"

SAMPLE_CATALOG_DIR = Path(__file__).parent / "sample_catalogs"


def sample_catalog_dir() -> Path:
    return SAMPLE_CATALOG_DIR


def _resolve_parameter(raw: Any, components: Mapping[str, Any]) -> Optional[Mapping[str, Any]]:
    """Follow a local ``#/components/parameters/...`` reference.

    Returns None for parameters that cannot become a tool property; the
    operation itself is kept.
    """
    if isinstance(raw, Mapping) and "$ref" in raw:
        ref = raw["$ref"]
        target = None
        if isinstance(ref, str) and ref.startswith(PARAMETER_REF_PREFIX):
            target = components.get(ref[len(PARAMETER_REF_PREFIX):])
        if not isinstance(target, Mapping):
            logger.debug(f"Skipping unresolved parameter reference {ref!r}")
            return None
        raw = target
    if not isinstance(raw, Mapping) or not isinstance(raw.get("name"), str):
        logger.debug(f"Skipping parameter without a name: {raw!r}")
        return None
    return raw


def _parse_parameter(raw: Mapping[str, Any]) -> Parameter:
    return Parameter(
        name=raw["name"],
        location=raw.get("in", "query"),
        required=bool(raw.get("required", False)),
        schema=dict(raw.get("schema") or {}),
        description=raw.get("description"),
    )


def _json_body_schema(operation: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    content = (operation.get("requestBody") or {}).get("content") or {}
    schema = (content.get(JSON_CONTENT_TYPE) or {}).get("schema")
    return dict(schema) if isinstance(schema, Mapping) else None


def parse_operation(
    path: str,
    method: str,
    operation: Mapping[str, Any],
    parameter_components: Optional[Mapping[str, Any]] = None,
) -> OperationDescriptor:
    components = parameter_components or {}
    resolved = (_resolve_parameter(p, components) for p in operation.get("parameters") or ())
    return OperationDescriptor(
        path=path,
        method=method,
        operation_id=operation.get("operationId"),
        summary=operation.get("summary"),
        description=operation.get("description"),
        parameters=tuple(_parse_parameter(p) for p in resolved if p is not None),
        request_body_schema=_json_body_schema(operation),
    )


def parse_catalog(document: Any, name: Optional[str] = None, source: str = "<memory>") -> Catalog:
    """Build a Catalog from an OpenAPI 3 document.

    Args:
        document: Decoded OpenAPI document.
        name: Catalog name; defaults to ``info.title``.
        source: Where the document came from, for error messages.

    Returns:
        Catalog with one descriptor per path + verb pair.

    Raises:
        CatalogUnavailable: If the document has no usable ``paths`` mapping.
    """
    if not isinstance(document, Mapping):
        raise CatalogUnavailable(source, "document is not a JSON object")
    raw_paths = document.get("paths")
    if not isinstance(raw_paths, Mapping):
        raise CatalogUnavailable(source, "document has no 'paths' object")

    components = document.get("components")
    parameter_components = components.get("parameters") if isinstance(components, Mapping) else None
    if not isinstance(parameter_components, Mapping):
        parameter_components = {}

    paths: Dict[str, Dict[str, OperationDescriptor]] = {}
    try:
        for path, item in raw_paths.items():
            if not isinstance(item, Mapping):
                continue
            # Path-level 'parameters', 'summary', 'servers' etc. are not operations
            paths[path] = {
                method: parse_operation(path, method, operation, parameter_components)
                for method, operation in item.items()
                if method in HTTP_METHODS and isinstance(operation, Mapping)
            }
    except (KeyError, TypeError, AttributeError) as e:
        raise CatalogUnavailable(source, f"malformed operation: {e}") from e

    if name is None:
        info = document.get("info")
        name = info.get("title") if isinstance(info, Mapping) else None
    return Catalog(name=name or source, paths=paths)


def load_catalog(path: Union[str, os.PathLike]) -> Catalog:
    """Read one OpenAPI JSON file.

    Raises:
        CatalogUnavailable: If the file cannot be read or decoded.
    """
    source = str(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            document = json.load(f)
    except OSError as e:
        raise CatalogUnavailable(source, str(e)) from e
    except ValueError as e:
        raise CatalogUnavailable(source, f"invalid JSON: {e}") from e
    return parse_catalog(document, source=source)


def load_catalogs(directory: Union[str, os.PathLike, None] = None) -> List[Catalog]:
    """Load every ``*.json`` catalog in a directory, skipping the bad ones."""
    directory = Path(directory) if directory is not None else SAMPLE_CATALOG_DIR
    if not directory.is_dir():
        logger.warning(f"Could not load catalogs from {directory}: not a directory")
        return []

    catalogs = []
    for path in sorted(directory.glob("*.json")):
        try:
            catalogs.append(load_catalog(path))
        except CatalogUnavailable as e:
            logger.warning(f"Skipping catalog: {e}")
    logger.debug(f"Loaded {len(catalogs)} catalogs from {directory}")
    return catalogs


def tool_name(operation: OperationDescriptor) -> str:
    if operation.operation_id:
        return operation.operation_id
    return f"{operation.method}_{NON_ALNUM.sub('_', operation.path)}"


def tool_description(operation: OperationDescriptor) -> str:
    return (
        operation.description
        or operation.summary
        or f"{operation.method.upper()} {operation.path}"
    )


def input_schema(operation: OperationDescriptor) -> Dict[str, Any]:
    properties: Dict[str, Any] = {}
    required: List[str] = []

    for param in operation.parameters:
        prop: Dict[str, Any] = {
            "type": param.schema.get("type") or "string",
            "description": param.description or f"{param.name} parameter",
        }
        if param.schema.get("enum"):
            prop["enum"] = list(param.schema["enum"])
        properties[param.name] = prop
        if param.required:
            required.append(param.name)

    body = operation.request_body_schema
    if body:
        if isinstance(body.get("properties"), Mapping):
            properties.update(body["properties"])
        if isinstance(body.get("required"), list):
            required.extend(body["required"])

    return {
        "type": "object",
        "properties": properties,
        "required": list(dict.fromkeys(required)),
    }


def normalize(catalog: Catalog) -> List[ToolDefinition]:
    """Flatten a catalog into one MCP tool per operation.

    Order follows the catalog's paths, then verbs. A name already used in
    this output gets a numeric suffix so every tool stays addressable.
    """
    tools = []
    seen: Dict[str, int] = {}
    for operation in catalog.operations():
        name = tool_name(operation)
        if name in seen:
            seen[name] += 1
            candidate = f"{name}_{seen[name]}"
            while candidate in seen:
                seen[name] += 1
                candidate = f"{name}_{seen[name]}"
            name = candidate
        seen[name] = 1
        tools.append(
            ToolDefinition(
                name=name,
                description=tool_description(operation),
                input_schema=input_schema(operation),
            )
        )
    return tools
