from __future__ import annotations  # Re-export llm_gateway public API

from .json_extract import extract_json, extract_object, strip_code_fences
from .llm_gateway import LlmGatewayError, call_with_fallback, describe_failure, with_retry, with_timeout

__all__ = [
    "LlmGatewayError",
    "call_with_fallback",
    "describe_failure",
    "extract_json",
    "extract_object",
    "strip_code_fences",
    "with_retry",
    "with_timeout",
]
