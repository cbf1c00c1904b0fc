"""Cosine similarity and first-seen-wins nearest-neighbour selection."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Generic, Iterable, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return the cosine similarity of two equal-length vectors.

    A zero-norm vector on either side yields ``0.0`` rather than an error.

    Raises:
        ValueError: If the vectors differ in length.
    """

    if len(a) != len(b):
        raise ValueError(f"Vector length mismatch: {len(a)} != {len(b)}")
    dot = math.fsum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(math.fsum(x * x for x in a))
    norm_b = math.sqrt(math.fsum(y * y for y in b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return dot / (norm_a * norm_b)


@dataclass(frozen=True, slots=True)
class Match(Generic[T]):
    item: T
    score: float


def best_match(
    query: Sequence[float],
    candidates: Iterable[Tuple[T, Optional[Sequence[float]]]],
) -> Optional[Match[T]]:
    """Return the candidate most similar to ``query``.

    Candidates are scanned in the given order and the current best is replaced
    only on a strictly greater score, so the first candidate wins ties.
    Candidates without a vector, or whose length differs from the query, are
    skipped. Returns ``None`` when nothing is comparable.
    """

    best: Optional[Match[T]] = None
    for item, vector in candidates:
        if not vector or len(vector) != len(query):
            continue
        score = cosine_similarity(query, vector)
        if best is None or score > best.score:
            best = Match(item=item, score=score)
    return best


__all__ = ["Match", "best_match", "cosine_similarity"]
