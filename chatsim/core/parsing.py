"""Structured output parsing for model responses."""

from __future__ import annotations

import re
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from chatsim.core.errors import DecisionParseError

_T = TypeVar("_T", bound=BaseModel)

_OPENING_FENCE = re.compile(r"^```(?:json)?\s*\n?", re.IGNORECASE)
_CLOSING_FENCE = re.compile(r"\n?```\s*$")


def strip_markdown_fences(text: str) -> str:
    """Remove a markdown code fence wrapped around a JSON payload."""
    text = text.strip()
    text = _OPENING_FENCE.sub("", text)
    return _CLOSING_FENCE.sub("", text).strip()


def message_text(message: Any) -> str:
    """Extract plain text from a chat model response."""
    content = getattr(message, "content", message)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return str(content or "")


def parse_structured(text: str, schema: type[_T]) -> _T:
    """Strip fences from ``text`` and validate it against ``schema``."""
    payload = strip_markdown_fences(text)
    try:
        return schema.model_validate_json(payload)
    except ValidationError as e:
        raise DecisionParseError(
            f"Model output does not match {schema.__name__}: {payload[:200]!r}"
        ) from e
