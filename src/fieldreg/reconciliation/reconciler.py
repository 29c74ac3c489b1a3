"""Merging extracted metadata with source-system metadata.

For every field that declares a source override for the document's content
type, the value found at the override's target path in the source metadata
is merged into the extracted record according to the override's
reconciliation strategy:

- source_wins: the source value replaces the extracted one
- extracted_wins: the source value only fills a missing or null field
- merge: list values are unioned (extracted items first, no duplicates);
  anything else behaves like source_wins

A missing source value never removes an extracted one. Overrides that are
malformed (unparsable path, invalid strategy) are registry defects: they are
logged and skipped rather than surfaced per document.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping, Union

from loguru import logger

from fieldreg.core.types import Metadata, ReconciliationStrategy, SourceMetadata

if TYPE_CHECKING:
    from fieldreg.registry.model import FieldDefinition, SourceOverride
    from fieldreg.registry.registry import FieldRegistry
    from fieldreg.registry.snapshot import RegistrySnapshot

_MISSING = object()


@dataclass(frozen=True)
class ReconciliationDecision:
    """What reconciliation did with one overridden field.

    Attributes:
        field: Canonical field name.
        strategy: Strategy declared by the override (None if invalid).
        applied: Whether the record value changed.
        reason: Short explanation, e.g. "source value absent".
    """

    field: str
    strategy: ReconciliationStrategy | None
    applied: bool
    reason: str


def _registry_of(source: Union["RegistrySnapshot", "FieldRegistry"]) -> "FieldRegistry":
    return getattr(source, "registry", source)


def _lookup_source(override: "SourceOverride", source_metadata: SourceMetadata) -> Any:
    namespace = source_metadata.get(override.target.namespace, _MISSING)
    if namespace is _MISSING:
        return _MISSING
    if not isinstance(namespace, Mapping):
        raise TypeError(
            f"source namespace {override.target.namespace!r} is "
            f"{type(namespace).__name__}, not a mapping"
        )
    return namespace.get(override.target.field_name, _MISSING)


def merge_lists(extracted: list[Any], source: list[Any]) -> list[Any]:
    """Union two lists, keeping extracted items first and dropping duplicates."""
    merged: list[Any] = []
    for item in [*extracted, *source]:
        if item not in merged:
            merged.append(item)
    return merged


def _apply(
    definition: "FieldDefinition",
    override: "SourceOverride",
    record: dict[str, Any],
    source_metadata: SourceMetadata,
) -> ReconciliationDecision:
    name = definition.name
    strategy = override.reconciliation

    if override.target is None or strategy is None:
        logger.warning(
            f"Registry defect: field {name!r} has a malformed override for "
            f"{override.content_type!r} (path={override.raw_path!r}); skipping"
        )
        return ReconciliationDecision(name, strategy, False, "malformed override")

    try:
        source_value = _lookup_source(override, source_metadata)
    except TypeError as e:
        logger.warning(f"Registry defect: cannot reconcile field {name!r}: {e}; skipping")
        return ReconciliationDecision(name, strategy, False, "malformed source namespace")

    if source_value is _MISSING or source_value is None:
        return ReconciliationDecision(name, strategy, False, "source value absent")

    current = record.get(name)

    if strategy is ReconciliationStrategy.EXTRACTED_WINS:
        if current is not None:
            return ReconciliationDecision(name, strategy, False, "extracted value kept")
        record[name] = copy.deepcopy(source_value)
        return ReconciliationDecision(name, strategy, True, "filled from source")

    if (
        strategy is ReconciliationStrategy.MERGE
        and isinstance(current, list)
        and isinstance(source_value, list)
    ):
        record[name] = copy.deepcopy(merge_lists(current, source_value))
        return ReconciliationDecision(name, strategy, True, "lists merged")

    record[name] = copy.deepcopy(source_value)
    return ReconciliationDecision(name, strategy, True, "source value applied")


class Reconciler:
    """Reconciliation bound to one registry or snapshot.

    Example:
        reconciler = Reconciler(snapshot)
        record = reconciler.reconcile(
            extracted={},
            source_metadata={"sam": {"agency": "DHS"}},
            content_type="sam_notice",
        )
        # {"ordering_agency": "DHS"}
    """

    def __init__(self, source: Union["RegistrySnapshot", "FieldRegistry"]):
        self._registry = _registry_of(source)

    def reconcile(
        self,
        extracted: Metadata,
        source_metadata: SourceMetadata,
        content_type: str,
    ) -> dict[str, Any]:
        """Merge source values into a copy of the extracted record.

        Args:
            extracted: Flat field name -> value record from extraction.
            source_metadata: Nested namespace -> field -> value record from
                the origin system.
            content_type: Origin system of the document.

        Returns:
            A new flat record; neither input is modified.
        """
        record, _ = self._run(extracted, source_metadata, content_type)
        return record

    def explain(
        self,
        extracted: Metadata,
        source_metadata: SourceMetadata,
        content_type: str,
    ) -> list[ReconciliationDecision]:
        """Report what reconcile() would do for each overridden field."""
        _, decisions = self._run(extracted, source_metadata, content_type)
        return decisions

    def _run(
        self,
        extracted: Metadata,
        source_metadata: SourceMetadata,
        content_type: str,
    ) -> tuple[dict[str, Any], list[ReconciliationDecision]]:
        # Deep copy so the result never shares mutable values with the inputs
        record = copy.deepcopy(dict(extracted or {}))
        source_metadata = source_metadata or {}
        decisions: list[ReconciliationDecision] = []

        for definition in self._registry.fields():
            override = definition.override_for(content_type)
            if override is None:
                continue
            decisions.append(_apply(definition, override, record, source_metadata))

        applied = sum(1 for d in decisions if d.applied)
        logger.debug(
            f"Reconciled content_type={content_type!r}: "
            f"{applied}/{len(decisions)} overrides applied"
        )
        return record, decisions


def reconcile(
    extracted: Metadata,
    source_metadata: SourceMetadata,
    content_type: str,
    source: Union["RegistrySnapshot", "FieldRegistry"],
) -> dict[str, Any]:
    """Functional form of Reconciler.reconcile()."""
    return Reconciler(source).reconcile(extracted, source_metadata, content_type)


UNREGISTERED_NAMESPACE = "_unregistered"


def to_namespaced(
    record: Metadata,
    source: Union["RegistrySnapshot", "FieldRegistry"],
) -> dict[str, dict[str, Any]]:
    """Nest a flat record under each field's own namespace.

    Keys that are not registry fields are kept under "_unregistered" so
    nothing is silently dropped on the way to the index.
    """
    registry = _registry_of(source)
    nested: dict[str, dict[str, Any]] = {}
    for name, value in record.items():
        definition = registry.get(name)
        namespace = definition.namespace if definition is not None else UNREGISTERED_NAMESPACE
        nested.setdefault(namespace, {})[name] = value
    return nested
