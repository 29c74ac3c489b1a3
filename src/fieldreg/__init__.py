"""fieldreg - classification-driven metadata field registry.

Decides which metadata fields to extract for a classified document,
reconciles extracted values with source-system values, normalizes values
against controlled vocabularies, and derives search facets, all from one
declarative registry.
"""

from fieldreg.core import (
    Config,
    FieldRegError,
    ReconciliationStrategy,
    RegistryValidationError,
    Requirement,
    ValidationIssue,
    ValidationMode,
)
from fieldreg.facets import FacetCatalog, FacetDefinition, derive_facets
from fieldreg.reconciliation import Reconciler, reconcile, to_namespaced
from fieldreg.registry import (
    FieldDefinition,
    FieldRegistry,
    RegistrySnapshot,
    SnapshotStore,
    build_snapshot,
)
from fieldreg.resolution import ProfileResolver, group_by_tier, resolve
from fieldreg.services import ExtractionPlan, MetadataPipeline
from fieldreg.taxonomy import TaxonomyIndex
from fieldreg.vocabulary import UnmatchedValueCollector, VocabularyNormalizer, normalize

__version__ = "0.1.0"

__all__ = [
    "Config",
    "FieldRegError",
    "RegistryValidationError",
    "Requirement",
    "ReconciliationStrategy",
    "ValidationIssue",
    "ValidationMode",
    "TaxonomyIndex",
    "FieldDefinition",
    "FieldRegistry",
    "RegistrySnapshot",
    "SnapshotStore",
    "build_snapshot",
    "ProfileResolver",
    "group_by_tier",
    "resolve",
    "Reconciler",
    "reconcile",
    "to_namespaced",
    "VocabularyNormalizer",
    "UnmatchedValueCollector",
    "normalize",
    "FacetCatalog",
    "FacetDefinition",
    "derive_facets",
    "ExtractionPlan",
    "MetadataPipeline",
]
