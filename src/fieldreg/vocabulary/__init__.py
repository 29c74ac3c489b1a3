"""Controlled vocabulary normalization.

Provides:
- VocabularyNormalizer: Exact, alias and fuzzy matching of field values
- SimilarityScorer: Swappable fuzzy scoring (sequence ratio, token overlap)
- UnmatchedValueCollector: In-memory sink for values needing review
"""

from fieldreg.vocabulary.normalizer import (
    DEFAULT_FUZZY_THRESHOLD,
    VocabularyMatch,
    VocabularyNormalizer,
    normalize,
)
from fieldreg.vocabulary.similarity import (
    SequenceRatioScorer,
    SimilarityScorer,
    TokenOverlapScorer,
    get_scorer,
)
from fieldreg.vocabulary.unmatched import (
    UnmatchedValue,
    UnmatchedValueCollector,
    UnmatchedValueSink,
)

__all__ = [
    "DEFAULT_FUZZY_THRESHOLD",
    "VocabularyMatch",
    "VocabularyNormalizer",
    "normalize",
    "SequenceRatioScorer",
    "SimilarityScorer",
    "TokenOverlapScorer",
    "get_scorer",
    "UnmatchedValue",
    "UnmatchedValueCollector",
    "UnmatchedValueSink",
]
