from __future__ import annotations  # Tolerant JSON extraction from free-form LLM text

import json
import logging
import re
from typing import Any, Optional

logger = logging.getLogger(__name__)

_ARRAY_RE = re.compile(r"\[[\s\S]*\]")
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def extract_json(text: Any, *, expect_list: bool = False) -> Optional[Any]:
    """Locate a JSON array/object inside ``text``; ``None`` when nothing parses.

    Tries, in order: the outermost ``[...]`` (only when a list is expected),
    the outermost ``{...}``, then the whole string.
    """

    if not isinstance(text, str) or not text.strip():
        return None
    cleaned = strip_code_fences(text)
    candidates = []
    if expect_list:
        match = _ARRAY_RE.search(cleaned)
        if match:
            candidates.append(match.group(0))
    match = _OBJECT_RE.search(cleaned)
    if match:
        candidates.append(match.group(0))
    candidates.append(cleaned)

    for candidate in candidates:
        try:
            return json.loads(candidate)
        except (json.JSONDecodeError, RecursionError):
            continue
    logger.debug("No JSON found in LLM text: %.200s", text)
    return None


def extract_object(text: Any) -> Optional[dict]:
    """Like :func:`extract_json` but only accepts a JSON object."""

    parsed = extract_json(text)
    return parsed if isinstance(parsed, dict) else None


def strip_code_fences(content: str) -> str:  # Remove common markdown fences from LLM output
    text = content.strip()
    if text.startswith("```"):
        lines = text.splitlines()
        if lines:
            lines = lines[1:]
            while lines and lines[0].strip() == "":
                lines = lines[1:]
            while lines and lines[-1].strip() == "":
                lines = lines[:-1]
            if lines and lines[-1].strip() == "```":
                lines = lines[:-1]
            text = "\n".join(lines).strip()
    return text


__all__ = ["extract_json", "extract_object", "strip_code_fences"]
