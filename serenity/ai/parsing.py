"""
Tolerant parsing of model output.

Models are asked for bare JSON but often wrap it in markdown code fences or
return prose. Parsers here never raise: they return a tagged result the caller
can branch on.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, List, Optional, Union

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\n?")


def strip_code_fences(raw: Optional[str]) -> str:
    """Remove ```json / ``` fences and surrounding whitespace."""
    return _FENCE_RE.sub("", raw or "").strip()


def load_json(raw: Optional[str]) -> Any:
    """Parse JSON after fence stripping. Raises ValueError on invalid input."""
    cleaned = strip_code_fences(raw)
    if not cleaned:
        raise ValueError("Empty content")
    return json.loads(cleaned)


@dataclass(frozen=True)
class TagsParsed:
    tags: List[str]


@dataclass(frozen=True)
class TagsFallback:
    reason: str
    tags: List[str] = field(default_factory=list)


TagResult = Union[TagsParsed, TagsFallback]


def parse_tags(raw: Optional[str]) -> TagResult:
    """
    Parse a JSON array of tags from model output.

    Args:
        raw (str): Raw completion text, possibly fenced.

    Returns:
        TagResult: TagsParsed with the cleaned tags, or TagsFallback with an
        empty list when the output is not a JSON array.
    """
    try:
        data = load_json(raw)
    except ValueError as e:
        logger.warning(f"Failed to parse tags from model output {raw!r}: {e}")
        return TagsFallback(reason=f"invalid JSON: {e}")

    if not isinstance(data, list):
        logger.warning(f"Tag output is not a JSON array: {raw!r}")
        return TagsFallback(reason="not a JSON array")

    tags = [str(t).strip() for t in data if t is not None and str(t).strip()]
    return TagsParsed(tags=tags)


def parse_object_list(raw: Optional[str]) -> List[dict]:
    """Parse a JSON array of objects, returning [] on anything else."""
    try:
        data = load_json(raw)
    except ValueError as e:
        logger.warning(f"Failed to parse JSON array from model output: {e}")
        return []
    if not isinstance(data, list):
        return []
    return [item for item in data if isinstance(item, dict)]
