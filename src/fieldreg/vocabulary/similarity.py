"""String similarity scorers for fuzzy vocabulary matching.

Scorers are swappable: anything with a ``score(a, b) -> float`` method
returning a value in [0, 1] can be handed to VocabularyNormalizer.
"""

from __future__ import annotations

import re
from difflib import SequenceMatcher
from typing import Protocol, runtime_checkable

_TOKEN_PATTERN = re.compile(r"[a-z0-9]+")


@runtime_checkable
class SimilarityScorer(Protocol):
    """Protocol for fuzzy string similarity."""

    name: str

    def score(self, a: str, b: str) -> float:
        """Score the similarity of two strings.

        Args:
            a: First string.
            b: Second string.

        Returns:
            Similarity in [0, 1]; 1.0 means identical after normalization.
        """
        ...


class SequenceRatioScorer:
    """Character-level similarity using difflib's ratio.

    Case-insensitive. Good at typos and small spelling variations
    ("Departmnt of Defense" vs "Department of Defense").
    """

    name = "sequence"

    def score(self, a: str, b: str) -> float:
        a, b = a.strip().lower(), b.strip().lower()
        if not a or not b:
            return 0.0
        return SequenceMatcher(None, a, b).ratio()


class TokenOverlapScorer:
    """Word-level Jaccard similarity.

    Ignores word order and punctuation ("Defense, Department of" vs
    "Department of Defense" scores 1.0).
    """

    name = "token"

    def score(self, a: str, b: str) -> float:
        tokens_a = set(_TOKEN_PATTERN.findall(a.lower()))
        tokens_b = set(_TOKEN_PATTERN.findall(b.lower()))
        if not tokens_a or not tokens_b:
            return 0.0
        return len(tokens_a & tokens_b) / len(tokens_a | tokens_b)


_SCORERS: dict[str, type] = {
    SequenceRatioScorer.name: SequenceRatioScorer,
    TokenOverlapScorer.name: TokenOverlapScorer,
}


def get_scorer(name: str) -> SimilarityScorer:
    """Create a scorer by name.

    Raises:
        ValueError: If the name is not a known scorer.
    """
    scorer_cls = _SCORERS.get(name)
    if scorer_cls is None:
        raise ValueError(f"Unknown similarity scorer {name!r}; available: {sorted(_SCORERS)}")
    return scorer_cls()
