"""Synthetic catalogs for benchmarking beyond the bundled samples."""

from typing import Dict, Optional

from .models import Catalog, OperationDescriptor, Parameter

METHODS = ("get", "post", "put", "patch", "delete")
PATH_SHAPES = (
    "/{resource}",
    "/{resource}/{{id}}",
    "/{resource}/{{id}}/details",
    "/{resource}/{{id}}/actions",
    "/{resource}/search",
)
OPERATIONS_PER_RESOURCE = len(PATH_SHAPES)

ID_PARAMETER = Parameter(name="id", location="path", required=True, schema={"type": "string"})


def _body_schema() -> Dict:
    return {
        "type": "object",
        "properties": {
            "name": {"type": "string"},
            "description": {"type": "string"},
            "status": {"type": "string", "enum": ["active", "inactive"]},
        },
        "required": ["name"],
    }


def generate(operation_count: int, name: Optional[str] = None) -> Catalog:
    """Generate a catalog with exactly ``operation_count`` operations.

    Operation ``i`` targets ``resource{i // 5}`` with path shape and verb
    ``i % 5``, so every group of five covers each shape and verb once.
    """
    if operation_count < 0:
        raise ValueError(f"operation_count must be >= 0, got {operation_count}")

    paths: Dict[str, Dict[str, OperationDescriptor]] = {}
    for i in range(operation_count):
        resource = f"resource{i // OPERATIONS_PER_RESOURCE}"
        shape = i % OPERATIONS_PER_RESOURCE
        path = PATH_SHAPES[shape].format(resource=resource)
        method = METHODS[i % len(METHODS)]

        paths.setdefault(path, {})[method] = OperationDescriptor(
            path=path,
            method=method,
            operation_id=f"{method}_{resource}_{shape}",
            summary=f"{method.upper()} operation for {resource}",
            description=f"Performs a {method} operation on the {resource} resource.",
            parameters=(ID_PARAMETER,) if "{id}" in path else (),
            request_body_schema=_body_schema() if method in ("post", "put", "patch") else None,
        )

    return Catalog(name=name or f"Synthetic API ({operation_count} endpoints)", paths=paths)
