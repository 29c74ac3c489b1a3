"""Field registry: loading and normalizing field definitions.

Loading accepts definitions in any of the supported extraction-profile
encodings and normalizes them once, so resolution, reconciliation and facet
derivation never branch on the original format.

Loading never aborts part-way: every structural problem is recorded as a
ValidationIssue and the best-effort registry is returned alongside them.
"""

from __future__ import annotations

from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Iterable, Iterator, Mapping

from loguru import logger

from fieldreg.core.types import (
    COMMON_SENTINEL,
    ReconciliationStrategy,
    Requirement,
    ValidationIssue,
    ValidationIssueKind,
)
from fieldreg.registry.model import (
    CommonProfile,
    ExtractionProfile,
    FieldDefinition,
    FieldPath,
    ProfileEntry,
    SourceOverride,
    StructuredProfile,
    Vocabulary,
)
from fieldreg.utils.files import read_structured_file

if TYPE_CHECKING:
    from fieldreg.taxonomy.index import TaxonomyIndex


class FieldRegistry:
    """Immutable collection of field definitions and vocabularies.

    Example:
        registry, issues = FieldRegistry.load({
            "namespaces": {
                "contract": {"fields": {
                    "contract_number": {
                        "type": "string",
                        "extraction_profiles": {
                            "Task Order": {"requirement": "expected"},
                        },
                    },
                }},
            },
        })

        registry.get("contract_number").profile
        # StructuredProfile(entries={"Task Order": ProfileEntry(...)})
    """

    def __init__(
        self,
        fields: Iterable[FieldDefinition],
        *,
        namespaces: Iterable[str] = (),
        vocabularies: Mapping[str, Vocabulary] | None = None,
    ):
        """Initialize the registry.

        Use load() to build from raw definitions.

        Args:
            fields: Field definitions in declaration order; names must be unique.
            namespaces: Declared namespaces, including ones with no fields.
            vocabularies: Vocabulary name -> Vocabulary.
        """
        self._fields: MappingProxyType[str, FieldDefinition] = MappingProxyType(
            {definition.name: definition for definition in fields}
        )
        declared = dict.fromkeys(namespaces)
        for definition in self._fields.values():
            declared.setdefault(definition.namespace, None)
        self._namespaces: tuple[str, ...] = tuple(declared)
        self._vocabularies: MappingProxyType[str, Vocabulary] = MappingProxyType(
            dict(vocabularies or {})
        )

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    @classmethod
    def load(
        cls, definitions: Mapping[str, Any]
    ) -> tuple["FieldRegistry", list[ValidationIssue]]:
        """Load and normalize field definitions.

        Args:
            definitions: Parsed definitions with "namespaces" and optional
                "vocabularies" sections.

        Returns:
            Tuple of (best-effort registry, structural issues found).
        """
        issues: list[ValidationIssue] = []

        if not isinstance(definitions, Mapping):
            issues.append(ValidationIssue(
                field="<root>",
                kind=ValidationIssueKind.MALFORMED_SCHEMA,
                message=f"definitions must be a mapping, got {type(definitions).__name__}",
            ))
            return cls([]), issues

        vocabularies = _load_vocabularies(definitions.get("vocabularies") or {}, issues)

        raw_namespaces = definitions.get("namespaces") or {}
        if not isinstance(raw_namespaces, Mapping):
            issues.append(ValidationIssue(
                field="<root>",
                kind=ValidationIssueKind.MALFORMED_SCHEMA,
                message="'namespaces' must map namespace names to definitions",
            ))
            raw_namespaces = {}

        fields: dict[str, FieldDefinition] = {}
        for namespace, body in raw_namespaces.items():
            if not isinstance(body, Mapping):
                issues.append(ValidationIssue(
                    field=str(namespace),
                    kind=ValidationIssueKind.MALFORMED_SCHEMA,
                    message=f"namespace {namespace!r} must be a mapping",
                    scope="namespace",
                ))
                continue

            raw_fields = body.get("fields") or {}
            if not isinstance(raw_fields, Mapping):
                issues.append(ValidationIssue(
                    field=str(namespace),
                    kind=ValidationIssueKind.MALFORMED_SCHEMA,
                    message=f"'fields' of namespace {namespace!r} must be a mapping",
                    scope="namespace",
                ))
                continue

            for name, spec in raw_fields.items():
                name = str(name)
                # Issues of a discarded duplicate must not be charged to the kept definition
                field_issues: list[ValidationIssue] = []
                definition = _parse_field(str(namespace), name, spec, field_issues)
                existing = fields.get(name)
                if existing is not None:
                    issues.append(ValidationIssue(
                        field=name,
                        kind=ValidationIssueKind.DUPLICATE_FIELD,
                        message=(
                            f"declared in both {existing.namespace!r} and "
                            f"{str(namespace)!r}; keeping the first"
                        ),
                    ))
                    continue
                issues.extend(field_issues)
                if definition is None:
                    continue
                fields[name] = definition

        registry = cls(
            fields.values(),
            namespaces=[str(ns) for ns in raw_namespaces],
            vocabularies=vocabularies,
        )
        logger.debug(
            f"Loaded field registry: {len(registry)} fields, "
            f"{len(registry.namespaces())} namespaces, "
            f"{len(vocabularies)} vocabularies, {len(issues)} issues"
        )
        return registry, issues

    def validate(self, taxonomy: "TaxonomyIndex") -> list[ValidationIssue]:
        """Check cross-references against a taxonomy and this registry.

        See fieldreg.registry.validation.validate_registry.
        """
        from fieldreg.registry.validation import validate_registry

        return validate_registry(self, taxonomy)

    def without(self, names: Iterable[str]) -> "FieldRegistry":
        """Get a copy of this registry with the named fields removed."""
        dropped = set(names)
        return FieldRegistry(
            (d for d in self._fields.values() if d.name not in dropped),
            namespaces=self._namespaces,
            vocabularies=self._vocabularies,
        )

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    def fields(self) -> tuple[FieldDefinition, ...]:
        """Get all field definitions in declaration order."""
        return tuple(self._fields.values())

    def get(self, name: str) -> FieldDefinition | None:
        return self._fields.get(name)

    def namespaces(self) -> tuple[str, ...]:
        return self._namespaces

    def has_namespace(self, namespace: str) -> bool:
        return namespace in self._namespaces

    def fields_in(self, namespace: str) -> list[FieldDefinition]:
        return [d for d in self._fields.values() if d.namespace == namespace]

    def vocabulary(self, name: str | None) -> Vocabulary | None:
        if not name:
            return None
        return self._vocabularies.get(name)

    def vocabularies(self) -> Mapping[str, Vocabulary]:
        return self._vocabularies

    def vocabulary_for(self, field_name: str) -> Vocabulary | None:
        """Get the vocabulary configured for a field, if any."""
        definition = self._fields.get(field_name)
        if definition is None:
            return None
        return self.vocabulary(definition.vocabulary)

    def __len__(self) -> int:
        return len(self._fields)

    def __iter__(self) -> Iterator[FieldDefinition]:
        return iter(self._fields.values())

    def __contains__(self, name: object) -> bool:
        return name in self._fields


# =============================================================================
# Normalization helpers
# =============================================================================


def _issue(field: str, kind: ValidationIssueKind, message: str) -> ValidationIssue:
    return ValidationIssue(field=field, kind=kind, message=message)


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    return bool(value)


def _parse_field(
    namespace: str,
    name: str,
    spec: Any,
    issues: list[ValidationIssue],
) -> FieldDefinition | None:
    """Parse one raw field spec, recording issues.

    Returns None only when the spec is unusable as a whole.
    """
    if spec is None:
        spec = {}
    if not isinstance(spec, Mapping):
        issues.append(_issue(
            name, ValidationIssueKind.MALFORMED_SCHEMA,
            f"field spec must be a mapping, got {type(spec).__name__}",
        ))
        return None

    profile = _parse_profile(name, spec.get("extraction_profiles"), issues)
    overrides = _parse_overrides(name, spec.get("source_overrides"), issues)

    vocabulary = spec.get("vocabulary")
    if vocabulary is not None and not isinstance(vocabulary, str):
        issues.append(_issue(
            name, ValidationIssueKind.MALFORMED_SCHEMA,
            "'vocabulary' must be a vocabulary name",
        ))
        vocabulary = None

    return FieldDefinition(
        namespace=namespace,
        name=name,
        data_type=str(spec.get("type") or spec.get("data_type") or "string"),
        description=str(spec.get("description") or ""),
        profile=profile,
        source_overrides=overrides,
        indexed=_as_bool(spec.get("indexed"), True),
        facetable=_as_bool(spec.get("facetable"), False),
        facet_type=spec.get("facet_type"),
        vocabulary=vocabulary,
        display_name=str(spec.get("display_name") or ""),
        facet_alias=spec.get("facet_alias"),
    )


def _parse_profile(
    name: str,
    raw: Any,
    issues: list[ValidationIssue],
) -> ExtractionProfile:
    """Normalize the three extraction-profile encodings.

    - "__common__" (or a list/map holding only it) -> CommonProfile
    - ["Label", ...] -> every label at requirement "expected"
    - {"Label": {"requirement": ..., "extraction_hints": [...]}} -> as-is
    """
    if raw is None:
        return StructuredProfile()

    if raw == COMMON_SENTINEL:
        return CommonProfile()

    if isinstance(raw, list):
        labels = [label for label in raw if isinstance(label, str)]
        if len(labels) != len(raw):
            issues.append(_issue(
                name, ValidationIssueKind.MALFORMED_SCHEMA,
                "legacy extraction_profiles list must contain only labels",
            ))
        if COMMON_SENTINEL in labels:
            if len(labels) > 1:
                issues.append(_issue(
                    name, ValidationIssueKind.MALFORMED_SCHEMA,
                    f"{COMMON_SENTINEL!r} cannot be combined with specific labels",
                ))
            return CommonProfile()
        return StructuredProfile({label: ProfileEntry() for label in labels})

    if isinstance(raw, Mapping):
        if COMMON_SENTINEL in raw:
            if len(raw) > 1:
                issues.append(_issue(
                    name, ValidationIssueKind.MALFORMED_SCHEMA,
                    f"{COMMON_SENTINEL!r} cannot be combined with specific labels",
                ))
            entry = _parse_entry(name, COMMON_SENTINEL, raw[COMMON_SENTINEL], issues)
            return CommonProfile(entry or ProfileEntry())

        entries: dict[str, ProfileEntry] = {}
        for label, body in raw.items():
            entry = _parse_entry(name, str(label), body, issues)
            if entry is not None:
                entries[str(label)] = entry
        return StructuredProfile(entries)

    issues.append(_issue(
        name, ValidationIssueKind.MALFORMED_SCHEMA,
        f"unsupported extraction_profiles encoding: {type(raw).__name__}",
    ))
    return StructuredProfile()


def _parse_entry(
    name: str,
    label: str,
    body: Any,
    issues: list[ValidationIssue],
) -> ProfileEntry | None:
    if body is None:
        return ProfileEntry()
    if isinstance(body, str):
        body = {"requirement": body}
    if not isinstance(body, Mapping):
        issues.append(_issue(
            name, ValidationIssueKind.MALFORMED_SCHEMA,
            f"profile entry for {label!r} must be a mapping",
        ))
        return None

    raw_requirement = body.get("requirement", Requirement.EXPECTED.value)
    try:
        requirement = Requirement(raw_requirement)
    except ValueError:
        issues.append(_issue(
            name, ValidationIssueKind.INVALID_REQUIREMENT,
            f"requirement {raw_requirement!r} for {label!r} is not one of "
            f"{[r.value for r in Requirement]}",
        ))
        return None

    hints = body.get("extraction_hints", body.get("extractionHints")) or []
    if isinstance(hints, str):
        hints = [hints]
    if not isinstance(hints, list):
        issues.append(_issue(
            name, ValidationIssueKind.MALFORMED_SCHEMA,
            f"extraction_hints for {label!r} must be a list of strings",
        ))
        hints = []
    return ProfileEntry(requirement, tuple(str(hint) for hint in hints))


def _parse_overrides(
    name: str,
    raw: Any,
    issues: list[ValidationIssue],
) -> dict[str, SourceOverride]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        issues.append(_issue(
            name, ValidationIssueKind.MALFORMED_SCHEMA,
            "source_overrides must map content types to overrides",
        ))
        return {}

    overrides: dict[str, SourceOverride] = {}
    for content_type, body in raw.items():
        content_type = str(content_type)
        if not isinstance(body, Mapping):
            issues.append(_issue(
                name, ValidationIssueKind.MALFORMED_SCHEMA,
                f"override for {content_type!r} must be a mapping",
            ))
            continue

        raw_path = body.get("field")
        target = FieldPath.parse(raw_path)
        if target is None:
            issues.append(_issue(
                name, ValidationIssueKind.UNPARSABLE_PATH,
                f"override for {content_type!r} has path {raw_path!r}, "
                f"expected 'namespace.field'",
            ))

        raw_strategy = body.get("reconciliation", ReconciliationStrategy.SOURCE_WINS.value)
        try:
            strategy: ReconciliationStrategy | None = ReconciliationStrategy(raw_strategy)
        except ValueError:
            # Reported by validate(); kept so the defect stays visible downstream
            strategy = None

        overrides[content_type] = SourceOverride(
            content_type=content_type,
            raw_path="" if raw_path is None else str(raw_path),
            target=target,
            reconciliation=strategy,
        )
    return overrides


def _load_vocabularies(
    raw: Any,
    issues: list[ValidationIssue],
) -> dict[str, Vocabulary]:
    if not isinstance(raw, Mapping):
        issues.append(ValidationIssue(
            field="<vocabularies>",
            kind=ValidationIssueKind.MALFORMED_SCHEMA,
            message="'vocabularies' must map names to definitions",
            scope="vocabulary",
        ))
        return {}

    vocabularies: dict[str, Vocabulary] = {}
    for name, body in raw.items():
        vocabulary = _parse_vocabulary(str(name), body, issues)
        if vocabulary is not None:
            vocabularies[vocabulary.name] = vocabulary
    return vocabularies


def _parse_vocabulary(
    name: str,
    body: Any,
    issues: list[ValidationIssue],
) -> Vocabulary | None:
    def report(message: str) -> None:
        issues.append(ValidationIssue(
            field=name,
            kind=ValidationIssueKind.MALFORMED_SCHEMA,
            message=message,
            scope="vocabulary",
        ))

    if isinstance(body, list):
        body = {"values": body}
    if not isinstance(body, Mapping):
        report("vocabulary must be a mapping or a list of values")
        return None

    values = body.get("values") or []
    if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
        report("'values' must be a list of strings")
        return None
    values = list(dict.fromkeys(v.strip() for v in values if v.strip()))
    canonical_by_lower = {v.lower(): v for v in values}

    raw_aliases = body.get("aliases") or {}
    if not isinstance(raw_aliases, Mapping):
        report("'aliases' must map alias to canonical value")
        raw_aliases = {}
    aliases: dict[str, str] = {}
    for alias, canonical in raw_aliases.items():
        target = canonical_by_lower.get(str(canonical).strip().lower())
        if target is None:
            # An alias to a non-canonical value would break idempotence
            report(f"alias {alias!r} maps to {canonical!r}, which is not a canonical value")
            continue
        aliases[str(alias).strip().lower()] = target

    threshold = body.get("fuzzy_threshold")
    if threshold is not None:
        try:
            threshold = float(threshold)
        except (TypeError, ValueError):
            report(f"fuzzy_threshold {threshold!r} is not a number")
            threshold = None
        else:
            if not 0.0 < threshold <= 1.0:
                report(f"fuzzy_threshold {threshold} must be in (0, 1]")
                threshold = None

    return Vocabulary(
        name=name,
        values=tuple(values),
        aliases=aliases,
        fuzzy=bool(body.get("fuzzy", False)),
        fuzzy_threshold=threshold,
    )


def load_field_definitions(path: Path | str) -> dict[str, Any]:
    """Load raw field definitions from a YAML or JSON file.

    Args:
        path: Path to the definitions file.

    Returns:
        Parsed definitions suitable for FieldRegistry.load().

    Raises:
        RegistryLoadError: If the file cannot be read or parsed.
    """
    data = read_structured_file(path)
    if data is None:
        return {}
    return data
