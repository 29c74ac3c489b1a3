"""Immutable registry snapshots and atomic publication.

A RegistrySnapshot bundles the taxonomy, field definitions and
vocabularies that were loaded together. Snapshots are never modified after
construction; a reload builds a new snapshot and swaps the store's
reference to it, so readers always see either the old or the new snapshot
in full.

Usage:
    store = SnapshotStore()
    store.reload(taxonomy_tree, field_definitions, validation_mode="strict")

    snapshot = store.current()      # lock-free; hold it for one document
    snapshot.registry.get("contract_number")
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping

from loguru import logger

from fieldreg.core.config import parse_validation_mode
from fieldreg.core.exceptions import FieldRegError, RegistryValidationError
from fieldreg.core.types import ValidationIssue, ValidationIssueKind, ValidationMode
from fieldreg.registry.registry import FieldRegistry, load_field_definitions
from fieldreg.taxonomy.index import TaxonomyIndex, read_taxonomy_tree
from fieldreg.utils.hashing import fingerprint

if TYPE_CHECKING:
    from fieldreg.core.config import RegistryConfig


@dataclass(frozen=True, eq=False)
class RegistrySnapshot:
    """Taxonomy, field definitions and vocabularies versioned as one unit.

    Attributes:
        taxonomy: Classification taxonomy.
        registry: Field registry (validated against the taxonomy).
        version: Publication counter; 0 for snapshots never published.
        fingerprint: Stable hash of the raw inputs.
        issues: Validation issues found while building (lenient mode only).
    """

    taxonomy: TaxonomyIndex
    registry: FieldRegistry
    version: int = 0
    fingerprint: str = ""
    issues: tuple[ValidationIssue, ...] = ()

    def with_version(self, version: int) -> "RegistrySnapshot":
        return RegistrySnapshot(
            taxonomy=self.taxonomy,
            registry=self.registry,
            version=version,
            fingerprint=self.fingerprint,
            issues=self.issues,
        )


def build_snapshot(
    taxonomy_tree: Mapping[str, Any],
    definitions: Mapping[str, Any],
    validation_mode: ValidationMode | str = ValidationMode.LENIENT,
) -> RegistrySnapshot:
    """Build a snapshot: load, validate, then apply the validation mode.

    Args:
        taxonomy_tree: Parsed taxonomy structure.
        definitions: Parsed field definitions.
        validation_mode: "strict" raises on any issue; "lenient" logs
            issues and drops the offending field definitions.

    Returns:
        A new, unpublished RegistrySnapshot.

    Raises:
        TaxonomyError: If the taxonomy is malformed.
        RegistryValidationError: In strict mode, if any issue was found.
    """
    mode = parse_validation_mode(validation_mode)
    taxonomy = TaxonomyIndex.build(taxonomy_tree)

    registry, issues = FieldRegistry.load(definitions)
    issues.extend(registry.validate(taxonomy))

    if issues and mode is ValidationMode.STRICT:
        raise RegistryValidationError(issues)

    if issues:
        for issue in issues:
            logger.warning(f"Registry validation: {issue}")
        # A duplicate was never added, so its name refers to the kept definition
        offending = {
            issue.field
            for issue in issues
            if issue.scope == "field" and issue.kind is not ValidationIssueKind.DUPLICATE_FIELD
        }
        registry = registry.without(offending)
        logger.warning(
            f"Lenient load dropped {len(offending)} field definition(s): {sorted(offending)}"
        )

    return RegistrySnapshot(
        taxonomy=taxonomy,
        registry=registry,
        fingerprint=fingerprint(taxonomy_tree, definitions),
        issues=tuple(issues),
    )


class SnapshotStore:
    """Holds the currently published snapshot.

    Readers call current() without locking; the returned snapshot is
    immutable and stays valid even after a newer one is published.
    Writers are serialized so versions increase monotonically.
    """

    def __init__(self, snapshot: RegistrySnapshot | None = None):
        self._write_lock = threading.Lock()
        self._version = 0
        self._current: RegistrySnapshot | None = None
        if snapshot is not None:
            self.publish(snapshot)

    def current(self) -> RegistrySnapshot:
        """Get the published snapshot.

        Raises:
            FieldRegError: If nothing has been published yet.
        """
        snapshot = self._current
        if snapshot is None:
            raise FieldRegError("No registry snapshot has been published")
        return snapshot

    @property
    def loaded(self) -> bool:
        return self._current is not None

    def publish(self, snapshot: RegistrySnapshot) -> RegistrySnapshot:
        """Publish a snapshot, assigning it the next version.

        Returns:
            The published snapshot (a versioned copy of the argument).
        """
        with self._write_lock:
            self._version += 1
            published = snapshot.with_version(self._version)
            # Single reference assignment is the publication point
            self._current = published
        logger.info(
            f"Published registry snapshot v{published.version}: "
            f"{len(published.registry)} fields, {len(published.taxonomy)} labels, "
            f"fingerprint={published.fingerprint[:12]}"
        )
        return published

    def reload(
        self,
        taxonomy_tree: Mapping[str, Any],
        definitions: Mapping[str, Any],
        validation_mode: ValidationMode | str = ValidationMode.LENIENT,
    ) -> RegistrySnapshot:
        """Build and publish a new snapshot.

        A failed build (strict-mode validation, malformed taxonomy) leaves
        the previously published snapshot in place.
        """
        snapshot = build_snapshot(taxonomy_tree, definitions, validation_mode)
        return self.publish(snapshot)

    def reload_from_files(self, config: "RegistryConfig") -> RegistrySnapshot:
        """Build and publish a snapshot from the configured file paths.

        Raises:
            FieldRegError: If either path is not configured.
            RegistryLoadError: If a file cannot be read or parsed.
        """
        if config.taxonomy_path is None or config.registry_path is None:
            raise FieldRegError("Both taxonomy_path and registry_path must be configured")

        taxonomy_tree = read_taxonomy_tree(config.taxonomy_path)
        definitions = load_field_definitions(config.registry_path)
        logger.info(
            f"Reloading registry from {config.taxonomy_path} and {config.registry_path}"
        )
        return self.reload(taxonomy_tree, definitions, config.validation_mode)
