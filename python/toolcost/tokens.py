"""Token estimation for tool definitions and JSON-RPC payloads."""

import json
import logging
import math
import re
import threading
import typing

from .config import ENCODING_NAME
from .models import ToolDefinition

logger = logging.getLogger(__name__)

STRUCTURAL_CHARS = re.compile(r'[{}\[\]:,"]')
CAMEL_BOUNDARY = re.compile(r"([a-z])([A-Z])")
NON_ALNUM = re.compile(r"[^a-zA-Z0-9\s]")


class HeuristicEstimator:
    """Approximate counts tuned for JSON text.

    Punctuation density tracks token density in tool definitions, so the
    estimate averages a structure/word based count with a chars/4 count.
    """

    name = "heuristic"

    def count(self, text: str) -> int:
        if not text:
            return 0
        structural = len(STRUCTURAL_CHARS.findall(text))
        words = NON_ALNUM.sub(" ", CAMEL_BOUNDARY.sub(r"\1 \2", text)).split()

        estimate = math.ceil(structural * 0.5 + len(words) * 1.3)
        simple_estimate = math.ceil(len(text) / 4)
        return math.ceil((estimate + simple_estimate) / 2)


_encoder = None
_encoder_lock = threading.Lock()


def get_encoder() -> typing.Any:
    """Return the process-wide cl100k_base encoder, creating it on first use.

    Returns:
        Token encoder with an encode method.
    """
    global _encoder
    if _encoder is None:
        with _encoder_lock:
            if _encoder is None:
                import tiktoken

                logger.debug(f"Loading {ENCODING_NAME} encoding")
                _encoder = tiktoken.get_encoding(ENCODING_NAME)
    return _encoder


def release_encoder() -> None:
    """Drop the encoder. Call once when the process is done counting."""
    global _encoder
    with _encoder_lock:
        _encoder = None


def encoder_loaded() -> bool:
    return _encoder is not None


class TiktokenEstimator:
    """Exact counts against the cl100k_base vocabulary."""

    name = "tiktoken"

    def count(self, text: str) -> int:
        if not text:
            return 0
        return len(get_encoder().encode(text))


_active: typing.Any = HeuristicEstimator()


def get_estimator() -> typing.Any:
    return _active


def set_estimator(estimator: typing.Any) -> None:
    """Select the single estimator used for the rest of the run.

    Args:
        estimator: Object with a ``count(text) -> int`` method.
    """
    global _active
    _active = estimator


def use_exact(exact: bool = True) -> None:
    set_estimator(TiktokenEstimator() if exact else HeuristicEstimator())


def count_tokens(text: str) -> int:
    """Count tokens for a text payload with the active estimator.

    Args:
        text: Input string to tokenize.

    Returns:
        Token count, never negative.
    """
    return _active.count(text)


def serialize_tool(tool: ToolDefinition) -> str:
    return json.dumps(tool.to_dict(), indent=2, ensure_ascii=False)


def count_tool_tokens(tool: ToolDefinition) -> int:
    """Count tokens for a tool definition as pretty-printed JSON."""
    return count_tokens(serialize_tool(tool))


def release() -> None:
    """Release estimator resources at process end."""
    release_encoder()
