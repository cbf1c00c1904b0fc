"""Parsers for the text shapes the generative model is asked to produce.

Each parser documents its grammar and what happens to input that does not
follow it. None of them perform network calls.

List items (category names, measures)::

    item   := marker? text
    marker := digits ("." | ")" | "．" | "、") | "-" | "*" | "・" | "•"

Blank lines are dropped and markdown emphasis is removed from the text.

Suggestion lines::

    line := "-"? text "icon:" icon

A line without the ``icon:`` tag keeps its text and receives the default
icon; an icon outside the vocabulary is replaced by the default icon; blank
lines and lines whose text is empty are dropped.

JSON payloads: the first balanced ``{...}`` object in the response is decoded;
surrounding prose and code fences are ignored.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Iterable, List, Optional

from anzen.errors import ResponseParseError
from anzen.models import Suggestion

_LIST_MARKER = re.compile(r"^\s*(?:\d+\s*[.)．、](?!\d)|[-*・•])\s*")
_EMPHASIS = re.compile(r"\*\*|__|`")
_QUOTES = "\"'「」『』“”‘’`"
_LABEL_TRIM = _QUOTES + "。. \t\u3000"
_SUGGESTION_LINE = re.compile(
    r"^\s*(?:[-*・•]|\d+\s*[.)．、](?!\d))?\s*(?P<text>.*?)"
    r"\s*(?<![A-Za-z])icon\s*[:：]\s*(?P<icon>\S+)",
    re.IGNORECASE,
)
_ICON_TRIM = "[]()<>\"'`.,;、。"


def strip_code_fence(text: str) -> str:
    """Remove a surrounding markdown code fence, if any."""

    stripped = text.strip()
    if stripped.startswith("```") and stripped.endswith("```"):
        lines = stripped.splitlines()
        if len(lines) >= 2:
            return "\n".join(lines[1:-1]).strip()
    return stripped


def parse_list_items(text: str) -> List[str]:
    """Return list items with numbering, bullets and emphasis removed."""

    items: List[str] = []
    for raw_line in strip_code_fence(text or "").splitlines():
        line = _EMPHASIS.sub("", raw_line)
        line = _LIST_MARKER.sub("", line, count=1).strip()
        if line:
            items.append(line)
    return items


def normalize_label(text: str) -> str:
    """Reduce a one-line model answer to a bare label.

    Only the first non-blank line is considered; list markers, emphasis,
    surrounding quotes and trailing full stops are removed.
    """

    items = parse_list_items(text)
    if not items:
        return ""
    return items[0].strip(_LABEL_TRIM)


def extract_json_object(text: str) -> Dict[str, Any]:
    """Decode the first balanced JSON object embedded in ``text``.

    Raises:
        ResponseParseError: If no balanced object exists or it is not valid JSON.
    """

    if not text:
        raise ResponseParseError("Empty response; no JSON object present")

    start = text.find("{")
    while start != -1:
        end = _find_object_end(text, start)
        if end is None:
            break
        candidate = text[start : end + 1]
        try:
            payload = json.loads(candidate)
        except json.JSONDecodeError as exc:
            raise ResponseParseError(f"Malformed JSON object in response: {exc}") from exc
        if isinstance(payload, dict):
            return payload
        start = text.find("{", end + 1)
    raise ResponseParseError("No balanced JSON object found in response")


def _find_object_end(text: str, start: int) -> Optional[int]:
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return None


def parse_suggestions(
    text: str,
    *,
    icons: Iterable[str],
    default_icon: str,
    limit: int | None = None,
) -> List[Suggestion]:
    """Turn a ``- <text> icon: <icon>`` list into suggestions, preserving order."""

    vocabulary = {icon.lower(): icon for icon in icons}
    suggestions: List[Suggestion] = []
    for raw_line in strip_code_fence(text or "").splitlines():
        if not raw_line.strip():
            continue
        line = _EMPHASIS.sub("", raw_line)
        match = _SUGGESTION_LINE.match(line)
        if match:
            body = match.group("text")
            icon = vocabulary.get(match.group("icon").strip(_ICON_TRIM).lower(), default_icon)
        else:
            body = _LIST_MARKER.sub("", line, count=1)
            icon = default_icon
        body = body.strip()
        if not body:
            continue
        suggestions.append(Suggestion(text=body, icon=icon))
        if limit is not None and len(suggestions) >= limit:
            break
    return suggestions


__all__ = [
    "extract_json_object",
    "normalize_label",
    "parse_list_items",
    "parse_suggestions",
    "strip_code_fence",
]
