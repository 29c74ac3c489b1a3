"""Controlled-vocabulary normalization of metadata values.

Maps raw extracted or source values onto canonical vocabulary entries using:
1. Exact matching against canonical values (case-insensitive)
2. Alias matching (case-insensitive)
3. Fuzzy matching (optional, per vocabulary)

Values that match nothing pass through unchanged and are reported to an
unmatched-values sink for review.

Normalization is idempotent: a canonical value always exact-matches itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

from loguru import logger

from fieldreg.core.types import Metadata
from fieldreg.vocabulary.similarity import SequenceRatioScorer, SimilarityScorer
from fieldreg.vocabulary.unmatched import UnmatchedValue, UnmatchedValueSink

if TYPE_CHECKING:
    from fieldreg.registry.model import Vocabulary
    from fieldreg.registry.registry import FieldRegistry
    from fieldreg.registry.snapshot import RegistrySnapshot

DEFAULT_FUZZY_THRESHOLD = 0.85


@dataclass(frozen=True)
class VocabularyMatch:
    """Outcome of matching one raw value.

    Attributes:
        value: The normalized value (canonical, or the raw value unchanged).
        match_type: How it was found: exact, alias, fuzzy, none, or
            passthrough (field has no vocabulary).
        score: Similarity score (1.0 for exact/alias, 0.0 for none).
        matched_term: Canonical value or alias that matched, if any.
    """

    value: Any
    match_type: str
    score: float = 0.0
    matched_term: str | None = None


class VocabularyNormalizer:
    """Normalizes field values against the registry's vocabularies.

    Example:
        normalizer = VocabularyNormalizer(snapshot)
        normalizer.normalize("ordering_agency", "Dept of Homeland Security")
        # "Department of Homeland Security"

        normalizer.match("ordering_agency", "department of homeland security")
        # VocabularyMatch(value="Department of Homeland Security", match_type="exact", ...)
    """

    def __init__(
        self,
        source: Union["RegistrySnapshot", "FieldRegistry"],
        *,
        scorer: SimilarityScorer | None = None,
        default_threshold: float = DEFAULT_FUZZY_THRESHOLD,
        unmatched_sink: UnmatchedValueSink | None = None,
    ):
        """Initialize the normalizer.

        Args:
            source: Snapshot or registry providing field vocabularies.
            scorer: Similarity scorer for fuzzy matching.
            default_threshold: Fuzzy threshold for vocabularies that do
                not declare one.
            unmatched_sink: Receives values no vocabulary entry matched.
        """
        self._registry: "FieldRegistry" = getattr(source, "registry", source)
        self._scorer = scorer or SequenceRatioScorer()
        self._default_threshold = default_threshold
        self._unmatched_sink = unmatched_sink
        # Per-vocabulary lowercase canonical lookup, built once
        self._canonical_index: dict[str, dict[str, str]] = {
            name: {value.lower(): value for value in vocabulary.values}
            for name, vocabulary in self._registry.vocabularies().items()
        }

    @property
    def scorer(self) -> SimilarityScorer:
        return self._scorer

    def match(self, field_name: str, raw_value: Any) -> VocabularyMatch:
        """Match a raw value against the field's vocabulary.

        Does not report unmatched values; use normalize() for that.
        """
        vocabulary = self._registry.vocabulary_for(field_name)
        if vocabulary is None or not isinstance(raw_value, str):
            return VocabularyMatch(raw_value, "passthrough")

        key = raw_value.strip().lower()
        if not key:
            return VocabularyMatch(raw_value, "passthrough")

        # 1. Exact canonical match
        canonical = self._canonical_index.get(vocabulary.name, {}).get(key)
        if canonical is not None:
            return VocabularyMatch(canonical, "exact", 1.0, canonical)

        # 2. Alias match
        canonical = vocabulary.aliases.get(key)
        if canonical is not None:
            return VocabularyMatch(canonical, "alias", 1.0, raw_value.strip())

        # 3. Fuzzy match
        if vocabulary.fuzzy:
            fuzzy = self._fuzzy_match(vocabulary, raw_value.strip())
            if fuzzy is not None:
                return fuzzy

        return VocabularyMatch(raw_value, "none")

    def normalize(self, field_name: str, raw_value: Any) -> Any:
        """Normalize a single value for a field.

        Returns:
            The canonical value, or raw_value unchanged when the field has
            no vocabulary or nothing matched.
        """
        result = self.match(field_name, raw_value)
        if result.match_type == "none":
            self._report_unmatched(field_name, raw_value)
        elif result.match_type in ("alias", "fuzzy"):
            logger.debug(
                f"Normalized {field_name}: {raw_value!r} -> {result.value!r} "
                f"({result.match_type}, score={result.score:.2f})"
            )
        return result.value

    def normalize_value(self, field_name: str, value: Any) -> Any:
        """Normalize a scalar or a list of values.

        Lists are normalized element-wise; duplicates produced by
        normalization are removed, keeping first occurrence order.
        """
        if isinstance(value, list):
            normalized: list[Any] = []
            for item in value:
                item = self.normalize(field_name, item)
                if item not in normalized:
                    normalized.append(item)
            return normalized
        return self.normalize(field_name, value)

    def normalize_record(self, record: Metadata) -> dict[str, Any]:
        """Normalize every vocabulary-backed field of a flat record.

        Returns:
            A new record; fields without a vocabulary are copied unchanged.
        """
        normalized: dict[str, Any] = {}
        for name, value in record.items():
            if self._registry.vocabulary_for(name) is None:
                normalized[name] = value
            else:
                normalized[name] = self.normalize_value(name, value)
        return normalized

    def _fuzzy_match(self, vocabulary: "Vocabulary", raw: str) -> VocabularyMatch | None:
        threshold = vocabulary.fuzzy_threshold or self._default_threshold

        # Candidates: every canonical value and every alias, each mapped to
        # the canonical value it stands for
        candidates: list[tuple[str, str]] = [(value, value) for value in vocabulary.values]
        candidates.extend(vocabulary.aliases.items())

        best: tuple[float, str, str] | None = None
        for term, canonical in candidates:
            score = self._scorer.score(raw, term)
            if score < threshold:
                continue
            if best is None or _better(score, canonical, best[0], best[1]):
                best = (score, canonical, term)

        if best is None:
            return None
        score, canonical, term = best
        return VocabularyMatch(canonical, "fuzzy", score, term)

    def _report_unmatched(self, field_name: str, raw_value: Any) -> None:
        vocabulary = self._registry.vocabulary_for(field_name)
        entry = UnmatchedValue(
            field=field_name,
            vocabulary=vocabulary.name if vocabulary else "",
            value=str(raw_value),
        )
        logger.debug(f"No vocabulary match for {field_name}: {raw_value!r}")
        if self._unmatched_sink is not None:
            self._unmatched_sink.record(entry)


def _better(score: float, canonical: str, best_score: float, best_canonical: str) -> bool:
    """Order fuzzy candidates: higher score, then shorter canonical, then lexicographic."""
    return (-score, len(canonical), canonical) < (-best_score, len(best_canonical), best_canonical)


def normalize(
    field_name: str,
    raw_value: Any,
    source: Union["RegistrySnapshot", "FieldRegistry"],
) -> Any:
    """Functional form of VocabularyNormalizer.normalize() with default settings."""
    return VocabularyNormalizer(source).normalize(field_name, raw_value)
