"""Per-document metadata pipeline over the published registry snapshot.

Wires ProfileResolver, Reconciler, VocabularyNormalizer and facet
derivation to a SnapshotStore. Every call pins one snapshot for its whole
duration, so a concurrent reload never mixes old and new definitions within
a single document.

Usage:
    store = SnapshotStore()
    store.reload_from_files(config.registry)
    pipeline = MetadataPipeline(store, config)

    plan = pipeline.plan("Task Order", "sam_notice")
    # hand plan.tiers to the extraction step, then:
    record = pipeline.finalize(extracted, source_metadata, "sam_notice")
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any

from loguru import logger

from ..core.config import Config
from ..core.exceptions import ConfigError
from ..core.types import ClassificationResult, Metadata, SourceMetadata
from ..facets.deriver import FacetCatalog
from ..reconciliation.reconciler import Reconciler
from ..registry.snapshot import RegistrySnapshot, SnapshotStore
from ..resolution.profiles import FieldTiers, ProfileResolver, ResolvedFields, group_by_tier
from ..vocabulary.normalizer import VocabularyNormalizer
from ..vocabulary.similarity import get_scorer
from ..vocabulary.unmatched import UnmatchedValueSink


@dataclass(frozen=True)
class ExtractionPlan:
    """What to extract from one document.

    Attributes:
        classification: Resolved classification, or None if unclassified.
        content_type: Origin system of the document.
        fields: Field name -> ResolvedField.
        tiers: The same fields partitioned by requirement tier.
        snapshot_version: Version of the snapshot the plan was built from.
    """

    classification: ClassificationResult | None
    content_type: str
    fields: ResolvedFields
    tiers: FieldTiers
    snapshot_version: int

    @property
    def is_empty(self) -> bool:
        return not self.fields


@dataclass
class _SnapshotComponents:
    snapshot: RegistrySnapshot
    resolver: ProfileResolver
    reconciler: Reconciler
    normalizer: VocabularyNormalizer
    facets: FacetCatalog


class MetadataPipeline:
    """Resolve → reconcile → normalize for documents, against one store.

    Components are built lazily per snapshot and rebuilt after a reload.

    Attributes:
        store: Snapshot store the pipeline reads from.
        config: Configuration (resolution cache size, vocabulary matching).
    """

    def __init__(
        self,
        store: SnapshotStore,
        config: Config | None = None,
        *,
        unmatched_sink: UnmatchedValueSink | None = None,
    ):
        """Initialize the pipeline.

        Args:
            store: Snapshot store; must have a published snapshot before use.
            config: Configuration; defaults to Config().
            unmatched_sink: Receives values no vocabulary entry matched.
        """
        self.store = store
        self.config = config or Config()
        self._unmatched_sink = unmatched_sink
        try:
            self._scorer = get_scorer(self.config.vocabulary.similarity)
        except ValueError as e:
            raise ConfigError(str(e)) from e
        self._lock = threading.Lock()
        self._components: _SnapshotComponents | None = None

    def _for(self, snapshot: RegistrySnapshot) -> _SnapshotComponents:
        components = self._components
        if components is not None and components.snapshot is snapshot:
            return components

        with self._lock:
            components = self._components
            if components is None or components.snapshot is not snapshot:
                components = _SnapshotComponents(
                    snapshot=snapshot,
                    resolver=ProfileResolver(
                        snapshot, cache_size=self.config.resolution.cache_size
                    ),
                    reconciler=Reconciler(snapshot),
                    normalizer=VocabularyNormalizer(
                        snapshot,
                        scorer=self._scorer,
                        default_threshold=self.config.vocabulary.fuzzy_threshold,
                        unmatched_sink=self._unmatched_sink,
                    ),
                    facets=FacetCatalog.from_source(snapshot),
                )
                self._components = components
                logger.debug(f"Pipeline components built for snapshot v{snapshot.version}")
        return components

    def classify(self, label: str | None) -> ClassificationResult | None:
        """Resolve a label against the current taxonomy."""
        return self.store.current().taxonomy.classify(label)

    def plan(self, classification: str | None, content_type: str) -> ExtractionPlan:
        """Decide which fields to extract for a document."""
        components = self._for(self.store.current())
        fields = components.resolver.resolve(classification, content_type)
        return ExtractionPlan(
            classification=components.snapshot.taxonomy.classify(classification),
            content_type=content_type,
            fields=fields,
            tiers=group_by_tier(fields),
            snapshot_version=components.snapshot.version,
        )

    def finalize(
        self,
        extracted: Metadata,
        source_metadata: SourceMetadata,
        content_type: str,
    ) -> dict[str, Any]:
        """Reconcile extracted values with source values, then normalize.

        Returns:
            The canonical flat metadata record for indexing.
        """
        components = self._for(self.store.current())
        record = components.reconciler.reconcile(extracted, source_metadata, content_type)
        return components.normalizer.normalize_record(record)

    def normalize(self, field_name: str, raw_value: Any) -> Any:
        return self._for(self.store.current()).normalizer.normalize(field_name, raw_value)

    def facets(self) -> FacetCatalog:
        return self._for(self.store.current()).facets
