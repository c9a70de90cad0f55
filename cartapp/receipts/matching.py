"""Fuzzy product-name comparison used to pair receipt lines with cart lines."""

from __future__ import annotations

from collections import Counter
from typing import Protocol

from rapidfuzz import fuzz

DEFAULT_THRESHOLD = 0.7
DEFAULT_MIN_SUBSTRING_LENGTH = 3


class StringSimilarity(Protocol):
    def __call__(self, a: str, b: str) -> float: ...


def normalize_name(name: str | None) -> str:
    """Lowercase, drop everything but letters/digits/whitespace, collapse spaces.

    Works on any script (Hebrew, Cyrillic, ...), not only ASCII.
    """
    if not name:
        return ""
    lowered = str(name).lower()
    kept = "".join(ch for ch in lowered if ch.isalnum() or ch.isspace())
    return " ".join(kept.split())


def dice_coefficient(a: str, b: str) -> float:
    """Sørensen-Dice coefficient over character bigrams, ignoring whitespace."""
    first = "".join(a.split())
    second = "".join(b.split())
    if first == second:
        return 1.0
    if len(first) < 2 or len(second) < 2:
        return 0.0

    first_bigrams = Counter(first[i:i + 2] for i in range(len(first) - 1))
    intersection = 0
    for i in range(len(second) - 1):
        bigram = second[i:i + 2]
        if first_bigrams[bigram] > 0:
            first_bigrams[bigram] -= 1
            intersection += 1

    return 2.0 * intersection / (len(first) + len(second) - 2)


def rapidfuzz_ratio(a: str, b: str) -> float:
    """Normalized Indel similarity from rapidfuzz, scaled to [0, 1]."""
    return fuzz.ratio(a, b) / 100.0


_METRICS: dict[str, StringSimilarity] = {
    "dice": dice_coefficient,
    "rapidfuzz": rapidfuzz_ratio,
}


def get_similarity(metric: str) -> StringSimilarity:
    try:
        return _METRICS[metric]
    except KeyError:
        raise ValueError(
            f"Unknown similarity metric: {metric!r} "
            f"(choose from {', '.join(sorted(_METRICS))})"
        ) from None


class NameMatcher:
    """Decides whether two free-text product names denote the same product."""

    def __init__(
        self,
        threshold: float = DEFAULT_THRESHOLD,
        min_substring_length: int = DEFAULT_MIN_SUBSTRING_LENGTH,
        similarity: StringSimilarity = dice_coefficient,
    ) -> None:
        self.threshold = threshold
        self.min_substring_length = min_substring_length
        self._similarity = similarity

    def is_similar(self, name_a: str | None, name_b: str | None) -> bool:
        norm_a = normalize_name(name_a)
        norm_b = normalize_name(name_b)

        if norm_a == norm_b:
            return True

        # Containment only counts when the shorter name is long enough
        # that it can't match almost anything.
        shorter, longer = sorted((norm_a, norm_b), key=len)
        if len(shorter) >= self.min_substring_length and shorter in longer:
            return True

        return self._similarity(norm_a, norm_b) >= self.threshold


_default_matcher = NameMatcher()


def is_similar(name_a: str | None, name_b: str | None) -> bool:
    """Compare two names with the default threshold and Dice metric."""
    return _default_matcher.is_similar(name_a, name_b)
