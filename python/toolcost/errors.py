"""Failure kinds raised by the benchmark core and its collaborators."""

from typing import Optional


class ToolcostError(Exception):
    """Base class for benchmark failures."""


class CatalogUnavailable(ToolcostError):
    """A catalog document could not be loaded or parsed."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Catalog unavailable ({source}): {reason}")


class RemoteUnavailable(ToolcostError):
    """The live endpoint could not be reached or answered with an HTTP error."""


class RemoteProtocolError(ToolcostError):
    """The live endpoint returned a JSON-RPC error object."""

    def __init__(self, code: int, message: str, method: Optional[str] = None):
        self.code = code
        self.message = message
        self.method = method
        prefix = f"{method}: " if method else ""
        super().__init__(f"{prefix}MCP error: {message} (code: {code})")


class MissingCredential(ToolcostError):
    """No access token was supplied for the live endpoint."""
