"""Side channel for values that matched no vocabulary entry.

Unmatched values are not errors; they are collected so operators can
review them and extend vocabularies or alias tables.
"""

from __future__ import annotations

import threading
from collections import Counter
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class UnmatchedValue:
    """A raw value that no vocabulary entry matched."""

    field: str
    vocabulary: str
    value: str


@runtime_checkable
class UnmatchedValueSink(Protocol):
    """Protocol for receiving unmatched vocabulary values."""

    def record(self, entry: UnmatchedValue) -> None:
        """Record one unmatched value."""
        ...


class UnmatchedValueCollector:
    """Thread-safe in-memory sink.

    Example:
        collector = UnmatchedValueCollector()
        normalizer = VocabularyNormalizer(registry, unmatched_sink=collector)
        normalizer.normalize("ordering_agency", "Bureau of Nothing")

        collector.counts()
        # {UnmatchedValue("ordering_agency", "agencies", "Bureau of Nothing"): 1}
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts: Counter[UnmatchedValue] = Counter()

    def record(self, entry: UnmatchedValue) -> None:
        with self._lock:
            self._counts[entry] += 1

    def entries(self) -> list[UnmatchedValue]:
        """Get distinct unmatched values in first-seen order."""
        with self._lock:
            return list(self._counts)

    def counts(self) -> dict[UnmatchedValue, int]:
        with self._lock:
            return dict(self._counts)

    def drain(self) -> dict[UnmatchedValue, int]:
        """Return all counts and reset the collector."""
        with self._lock:
            drained = dict(self._counts)
            self._counts.clear()
            return drained

    def __len__(self) -> int:
        with self._lock:
            return len(self._counts)
