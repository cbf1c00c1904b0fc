"""Prompt templates used while answering a search request."""

from __future__ import annotations

from typing import Sequence

from anzen.catalog.prompts import language_label
from anzen.models import InternalCase

NO_RELATED_CASES = "社内で最近発生した関連事故事例はありません。"


def query_translation_prompt(text: str, *, target_language: str) -> str:
    return (
        f"以下のテキストを{language_label(target_language)}に翻訳してください。"
        "翻訳結果のテキストだけを返し、専門用語はできるだけ正確に翻訳してください。\n\n"
        f'テキスト:\n"{text}"\n\n翻訳:'
    )


def related_cases_context(cases: Sequence[InternalCase]) -> str:
    if not cases:
        return NO_RELATED_CASES
    blocks = [
        f"- タイトル: {case.title}\n  状況: {case.description}\n  原因: {case.cause}\n  対策: {case.measures}"
        for case in cases
    ]
    return "【社内で最近発生した関連事故事例】\n" + "\n\n".join(blocks)


def suggestions_prompt(
    *,
    query: str,
    category_name: str,
    related_context: str,
    icons: Sequence[str],
    count: int,
    lang: str,
) -> str:
    return (
        "あなたは非常に慎重な労働安全の専門家です。\n"
        "以下の社内の関連事故事例を最優先で参照し、ユーザーの作業内容に関連性が高い場合はその教訓を必ず反映させてください。\n"
        f"その上で、ユーザーの作業内容に対して追加で注意すべき実践的な安全対策を{count}個、重要な順に、"
        "簡潔な箇条書き（- 対策文）で提案してください。\n"
        "各対策文には、アイコンリストから最も関連性の高いアイコン名を1つだけ選び、"
        '"icon: アイコン名" の形式で行末に付記してください。\n'
        f"回答は{language_label(lang)}で記述してください。\n\n"
        f"{related_context}\n\n"
        f"【アイコンリスト】\n{', '.join(icons)}\n\n"
        f"【ユーザーの作業内容】\n{query}\n\n"
        f"【関連する災害カテゴリ】\n名前: {category_name}\n\n"
        "【出力形式の例】\n"
        "- ヘルメットを必ず着用してください。 icon: helmet-safety\n"
        "- 足元が不安定な場所では作業しないでください。 icon: person-falling\n\n"
        "【追加の安全提案】\n"
    )


__all__ = ["NO_RELATED_CASES", "query_translation_prompt", "related_cases_context", "suggestions_prompt"]
