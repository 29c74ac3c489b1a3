"""Cross-reference validation for a loaded field registry.

Checks that every reference a field definition makes resolves:

- structured profile keys are taxonomy leaf labels
- source override targets name a namespace the registry knows
- source override reconciliation values are valid strategies
- vocabulary references name a loaded vocabulary

Validation accumulates issues and never stops early. Whether those issues
are fatal is decided by the caller (see fieldreg.registry.snapshot).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fieldreg.core.types import ReconciliationStrategy, ValidationIssue, ValidationIssueKind
from fieldreg.registry.model import StructuredProfile

if TYPE_CHECKING:
    from fieldreg.registry.registry import FieldRegistry
    from fieldreg.taxonomy.index import TaxonomyIndex


def validate_registry(
    registry: "FieldRegistry",
    taxonomy: "TaxonomyIndex",
) -> list[ValidationIssue]:
    """Validate registry cross-references.

    Args:
        registry: Loaded registry.
        taxonomy: Taxonomy the profile labels must belong to.

    Returns:
        Issues found, in field declaration order.
    """
    issues: list[ValidationIssue] = []
    labels = taxonomy.all_leaf_labels()
    allowed = [s.value for s in ReconciliationStrategy]

    for definition in registry.fields():
        if isinstance(definition.profile, StructuredProfile):
            for label in definition.profile.entries:
                if label not in labels:
                    issues.append(ValidationIssue(
                        field=definition.name,
                        kind=ValidationIssueKind.UNKNOWN_LABEL,
                        message=f"profile label {label!r} is not a taxonomy leaf label",
                    ))

        for content_type, override in definition.source_overrides.items():
            if override.target is not None and not registry.has_namespace(
                override.target.namespace
            ):
                issues.append(ValidationIssue(
                    field=definition.name,
                    kind=ValidationIssueKind.UNKNOWN_NAMESPACE,
                    message=(
                        f"override for {content_type!r} targets unknown namespace "
                        f"{override.target.namespace!r}"
                    ),
                ))
            if override.reconciliation is None:
                issues.append(ValidationIssue(
                    field=definition.name,
                    kind=ValidationIssueKind.INVALID_RECONCILIATION,
                    message=(
                        f"override for {content_type!r} has an invalid reconciliation; "
                        f"expected one of {allowed}"
                    ),
                ))

        if definition.vocabulary and registry.vocabulary(definition.vocabulary) is None:
            issues.append(ValidationIssue(
                field=definition.name,
                kind=ValidationIssueKind.UNKNOWN_VOCABULARY,
                message=f"vocabulary {definition.vocabulary!r} is not defined",
            ))

    return issues
