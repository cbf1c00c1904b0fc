"""Prompt templates for the offline catalog stages.

Categories are authored in Japanese, so the instructions for the build steps
are written in Japanese as well. The translation prompt asks for a single JSON
object keyed by target language.
"""

from __future__ import annotations

import json
from typing import Iterable, Mapping, Sequence

from anzen.models import CaseRecord

LANGUAGE_NAMES: Mapping[str, str] = {
    "ja": "日本語",
    "en": "英語",
    "bn": "ベンガル語",
    "zh": "簡体字中国語",
}


def language_label(code: str) -> str:
    name = LANGUAGE_NAMES.get(code)
    return f"{name}({code})" if name else code


def _case_summaries(cases: Iterable[CaseRecord], *, include_measures: bool) -> str:
    blocks = []
    for case in cases:
        lines = [f"タイトル: {case.title}", f"原因: {case.cause}"]
        if include_measures:
            lines.append(f"対策: {case.measures}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def category_names_prompt(cases: Sequence[CaseRecord], *, count: int, max_chars: int) -> str:
    samples = "\n\n".join(f"- タイトル: {case.title}\n  原因: {case.cause}" for case in cases)
    return (
        "あなたは経験豊富な労働安全コンサルタントです。"
        f"以下の労働災害事例リストを分析し、これらの事例を包括的に分類するためのカテゴリを{count}個作成してください。"
        f"各カテゴリ名は日本語で最大{max_chars}文字とし、互いに似すぎないよう網羅的に作成してください。"
        "回答はカテゴリ名だけを番号付きリスト形式（1. カテゴリ名）で出力し、他の文章は含めないでください。\n\n"
        f"【労働災害事例リスト】\n{samples}\n\n回答:"
    )


def classification_prompt(case: CaseRecord, names: Sequence[str]) -> str:
    return (
        "あなたは分類のエキスパートです。"
        "以下の災害事例に最も適切なカテゴリを指定カテゴリリストから一つだけ選び、そのカテゴリ名だけを回答してください。\n\n"
        f"【指定カテゴリリスト】\n{', '.join(names)}\n\n"
        f"【分析対象の災害事例】\nタイトル: {case.title}\n原因: {case.cause}\n\n"
        "回答（カテゴリ名のみ）:"
    )


def description_prompt(name: str, cases: Sequence[CaseRecord], *, target_chars: int) -> str:
    return (
        f"以下の災害事例群はすべて「{name}」に分類されます。"
        f"これらの事例に共通する事故の状況を{target_chars}文字程度で要約してください。\n\n"
        f"【事例群】\n{_case_summaries(cases, include_measures=True)}\n\n要約:"
    )


def measures_prompt(name: str, cases: Sequence[CaseRecord], *, count: int, target_chars: int) -> str:
    return (
        f"以下の災害事例群はすべて「{name}」に分類されます。"
        f"これらの事例から実施すべき最も重要な対策を{count}つ、それぞれ{target_chars}文字程度で要約してください。"
        "回答は番号付きリスト形式（1. 対策）のみで出力し、タイトルや前置きは省略してください。\n\n"
        f"【事例群】\n{_case_summaries(cases, include_measures=True)}\n\n対策:"
    )


def translation_prompt(
    *,
    name: str,
    description: str,
    measures: Sequence[str],
    base_language: str,
    targets: Sequence[str],
) -> str:
    source = json.dumps(
        {"name": name, "description": description, "measures": list(measures)},
        ensure_ascii=False,
        indent=2,
    )
    placeholder = {"name": "...", "description": "...", "measures": ["..."] * len(measures)}
    expected = json.dumps({lang: placeholder for lang in targets}, ensure_ascii=False, indent=2)
    target_labels = "、".join(language_label(lang) for lang in targets)
    return (
        "あなたはプロの翻訳家です。"
        f"以下の{language_label(base_language)}のJSONオブジェクトの各値を、{target_labels}に正確に翻訳してください。"
        "measures の要素数は元の配列と同じにしてください。"
        "回答は指定されたJSON形式のみとし、他の言葉は一切含めないでください。\n\n"
        f"【翻訳対象のJSON】\n{source}\n\n【出力形式のJSON】\n{expected}\n"
    )


__all__ = [
    "LANGUAGE_NAMES",
    "category_names_prompt",
    "classification_prompt",
    "description_prompt",
    "language_label",
    "measures_prompt",
    "translation_prompt",
]
