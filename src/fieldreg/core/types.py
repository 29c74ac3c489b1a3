"""Type definitions for fieldreg."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping


# Flat per-document record: canonical field name -> value
Metadata = Mapping[str, Any]

# Source-system record: namespace -> field -> value
SourceMetadata = Mapping[str, Mapping[str, Any]]

# Profile key marking a field that applies to every classification
COMMON_SENTINEL = "__common__"


class Requirement(Enum):
    """Extraction priority tier."""

    REQUIRED = "required"
    EXPECTED = "expected"
    OPTIONAL = "optional"


class ReconciliationStrategy(Enum):
    """Policy for merging an extracted value with a source value."""

    SOURCE_WINS = "source_wins"
    EXTRACTED_WINS = "extracted_wins"
    MERGE = "merge"


class ValidationMode(Enum):
    """What to do with validation issues at load time."""

    STRICT = "strict"
    LENIENT = "lenient"


class ValidationIssueKind(Enum):
    """Category of a load-time validation issue."""

    MALFORMED_SCHEMA = "malformed_schema"
    DUPLICATE_FIELD = "duplicate_field"
    UNKNOWN_LABEL = "unknown_label"
    UNPARSABLE_PATH = "unparsable_path"
    UNKNOWN_NAMESPACE = "unknown_namespace"
    INVALID_RECONCILIATION = "invalid_reconciliation"
    INVALID_REQUIREMENT = "invalid_requirement"
    UNKNOWN_VOCABULARY = "unknown_vocabulary"


@dataclass(frozen=True)
class ValidationIssue:
    """A non-fatal problem found while loading or validating the registry.

    Attributes:
        field: Field, vocabulary or namespace name, depending on scope.
        kind: Issue category.
        message: Human-readable description.
        scope: What the issue is attached to ("field", "vocabulary", "namespace").
    """

    field: str
    kind: ValidationIssueKind
    message: str
    scope: str = "field"

    def __str__(self) -> str:
        """Convert to string representation."""
        return f"{self.scope} {self.field!r} [{self.kind.value}]: {self.message}"


@dataclass(frozen=True)
class ClassificationResult:
    """A document's classification resolved against the taxonomy."""

    label: str
    domain: str
    category: str
    path: str
