"""Parsers for semi-structured generative model output."""

from .llm_output import (
    extract_json_object,
    normalize_label,
    parse_list_items,
    parse_suggestions,
    strip_code_fence,
)

__all__ = [
    "extract_json_object",
    "normalize_label",
    "parse_list_items",
    "parse_suggestions",
    "strip_code_fence",
]
