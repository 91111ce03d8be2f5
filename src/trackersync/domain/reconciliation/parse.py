"""Decoding of raw extraction output.

The parser only strips fenced code-block markers and decodes JSON. It does not
validate field types or ranges; callers do that on the decoded value.
"""

from __future__ import annotations

import json
import re
from typing import Any

from trackersync.domain.errors import ParseError

_FENCE_PATTERN = re.compile(r"```[A-Za-z0-9_-]*[ \t]*\n?|\n?```")


def strip_code_fences(raw: str) -> str:
    """Remove Markdown code fences (with or without a language tag) and trim."""

    return _FENCE_PATTERN.sub("", raw).strip()


def parse_structured(raw: str) -> Any:
    """Decode ``raw`` into a JSON value or raise ``ParseError`` carrying the raw text."""

    cleaned = strip_code_fences(raw)
    if not cleaned:
        raise ParseError("Extraction output is empty", raw=raw)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Extraction output is not valid JSON: {exc.msg}", raw=raw) from exc
