"""Core configuration, errors and shared types for fieldreg."""

from .config import (
    Config,
    RegistryConfig,
    ResolutionConfig,
    VocabularyConfig,
    parse_validation_mode,
)
from .exceptions import (
    ConfigError,
    FieldRegError,
    RegistryLoadError,
    RegistryValidationError,
    TaxonomyError,
)
from .types import (
    COMMON_SENTINEL,
    ClassificationResult,
    Metadata,
    ReconciliationStrategy,
    Requirement,
    SourceMetadata,
    ValidationIssue,
    ValidationIssueKind,
    ValidationMode,
)

__all__ = [
    "Config",
    "RegistryConfig",
    "VocabularyConfig",
    "ResolutionConfig",
    "parse_validation_mode",
    "FieldRegError",
    "ConfigError",
    "TaxonomyError",
    "RegistryLoadError",
    "RegistryValidationError",
    "COMMON_SENTINEL",
    "ClassificationResult",
    "Metadata",
    "SourceMetadata",
    "Requirement",
    "ReconciliationStrategy",
    "ValidationMode",
    "ValidationIssue",
    "ValidationIssueKind",
]
