"""Tests for the model-output parsers."""

from __future__ import annotations

import pytest

from anzen.errors import ResponseParseError
from anzen.parsing.llm_output import (
    extract_json_object,
    normalize_label,
    parse_list_items,
    parse_suggestions,
)
from anzen.settings.config import DEFAULT_ICONS

DEFAULT_ICON = "triangle-exclamation"


def _parse(text: str):
    return parse_suggestions(text, icons=DEFAULT_ICONS, default_icon=DEFAULT_ICON)


def test_parse_list_items_strips_numbering_bullets_and_emphasis():
    text = "1. **墜落・転落**\n2) 挟まれ・巻き込まれ\n\n- 感電\n・熱中症\n10．切れ・こすれ"

    assert parse_list_items(text) == ["墜落・転落", "挟まれ・巻き込まれ", "感電", "熱中症", "切れ・こすれ"]


def test_parse_list_items_keeps_decimal_numbers_in_text():
    assert parse_list_items("1.5m以上の高所では安全帯を使用する") == ["1.5m以上の高所では安全帯を使用する"]


def test_parse_list_items_ignores_code_fence():
    assert parse_list_items("```\n1. A\n2. B\n```") == ["A", "B"]


def test_normalize_label_removes_quotes_and_trailing_period():
    assert normalize_label("「墜落・転落」。") == "墜落・転落"
    assert normalize_label("  1. Falls.\nextra commentary") == "Falls"
    assert normalize_label("\n\n") == ""


def test_parse_suggestions_reads_text_and_icon():
    suggestions = _parse("- Wear a helmet. icon: helmet-safety")

    assert [(s.text, s.icon) for s in suggestions] == [("Wear a helmet.", "helmet-safety")]


def test_parse_suggestions_defaults_icon_for_untagged_line():
    suggestions = _parse("Check the ladder")

    assert [(s.text, s.icon) for s in suggestions] == [("Check the ladder", DEFAULT_ICON)]


def test_parse_suggestions_strips_bullet_from_untagged_line():
    suggestions = _parse("- Be careful")

    assert [(s.text, s.icon) for s in suggestions] == [("Be careful", DEFAULT_ICON)]


def test_parse_suggestions_drops_empty_lines_and_preserves_order():
    text = "- First icon: fire\n\n   \n- Second icon: bolt\n2. Third"

    suggestions = _parse(text)

    assert [s.text for s in suggestions] == ["First", "Second", "Third"]
    assert [s.icon for s in suggestions] == ["fire", "bolt", DEFAULT_ICON]


def test_parse_suggestions_ignores_icon_inside_a_word():
    suggestions = _parse("- Check the silicon: seal first icon: tools")

    assert [(s.text, s.icon) for s in suggestions] == [("Check the silicon: seal first", "tools")]


def test_parse_suggestions_reads_tag_directly_after_japanese_text():
    suggestions = _parse("- 手袋を着用するicon: tools")

    assert [(s.text, s.icon) for s in suggestions] == [("手袋を着用する", "tools")]

def test_parse_suggestions_replaces_unknown_icon():
    suggestions = _parse("- Keep exits clear icon: rocket")

    assert suggestions[0].icon == DEFAULT_ICON
    assert suggestions[0].text == "Keep exits clear"


def test_parse_suggestions_accepts_bracketed_icon_and_limit():
    text = "\n".join(f"- Item {index} icon: [wind]" for index in range(15))

    suggestions = parse_suggestions(text, icons=DEFAULT_ICONS, default_icon=DEFAULT_ICON, limit=10)

    assert len(suggestions) == 10
    assert {s.icon for s in suggestions} == {"wind"}


def test_extract_json_object_ignores_surrounding_prose():
    text = 'Here you go:\n```json\n{"en": {"name": "Falls {high}", "measures": ["a"]}}\n```\nThanks'

    payload = extract_json_object(text)

    assert payload == {"en": {"name": "Falls {high}", "measures": ["a"]}}


def test_extract_json_object_raises_without_object():
    with pytest.raises(ResponseParseError):
        extract_json_object("no json here")


def test_extract_json_object_raises_on_malformed_object():
    with pytest.raises(ResponseParseError):
        extract_json_object('{"en": {"name": "x",}}')
