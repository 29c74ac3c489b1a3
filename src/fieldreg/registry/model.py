"""Field definition model.

Every extraction-profile encoding the registry accepts is normalized at
load time into one of two variants:

- CommonProfile: the field applies to every classified document
- StructuredProfile: the field applies to specific taxonomy labels

Downstream components only ever see these two shapes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Union

from fieldreg.core.types import ReconciliationStrategy, Requirement


def _frozen_mapping(value: Mapping | None) -> Mapping:
    return MappingProxyType(dict(value or {}))


@dataclass(frozen=True)
class ProfileEntry:
    """Extraction settings for one field under one classification.

    Attributes:
        requirement: Extraction priority tier.
        extraction_hints: Free-text hints for the extraction prompt.
    """

    requirement: Requirement = Requirement.EXPECTED
    extraction_hints: tuple[str, ...] = ()


@dataclass(frozen=True)
class CommonProfile:
    """Profile for a field extracted from every classified document."""

    entry: ProfileEntry = field(default_factory=ProfileEntry)


@dataclass(frozen=True)
class StructuredProfile:
    """Profile mapping taxonomy labels to extraction settings."""

    entries: Mapping[str, ProfileEntry] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "entries", _frozen_mapping(self.entries))

    def get(self, label: str) -> ProfileEntry | None:
        return self.entries.get(label)


ExtractionProfile = Union[CommonProfile, StructuredProfile]


@dataclass(frozen=True)
class FieldPath:
    """A parsed "namespace.field" reference."""

    namespace: str
    field_name: str

    @classmethod
    def parse(cls, raw: object) -> "FieldPath | None":
        """Parse a dotted path.

        Returns:
            The parsed path, or None if raw is not "namespace.field".
        """
        if not isinstance(raw, str):
            return None
        parts = raw.strip().split(".")
        if len(parts) != 2 or not all(part.strip() for part in parts):
            return None
        return cls(parts[0].strip(), parts[1].strip())

    def __str__(self) -> str:
        """Convert to string representation."""
        return f"{self.namespace}.{self.field_name}"


@dataclass(frozen=True)
class SourceOverride:
    """Rule stating a field's authoritative value comes from a source system.

    Attributes:
        content_type: Origin system this override applies to.
        raw_path: The path string as declared.
        target: Parsed target path, or None when raw_path was unparsable.
        reconciliation: Merge policy, or None when the declared value was invalid.
    """

    content_type: str
    raw_path: str
    target: FieldPath | None
    reconciliation: ReconciliationStrategy | None


@dataclass(frozen=True)
class Vocabulary:
    """A controlled vocabulary for one or more fields.

    Attributes:
        name: Vocabulary identifier referenced from field definitions.
        values: Canonical values in declared order.
        aliases: Lowercased alias -> canonical value.
        fuzzy: Whether fuzzy matching is enabled.
        fuzzy_threshold: Minimum similarity for a fuzzy match, or None to
            use the configured default.
    """

    name: str
    values: tuple[str, ...] = ()
    aliases: Mapping[str, str] = field(default_factory=dict)
    fuzzy: bool = False
    fuzzy_threshold: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "aliases", _frozen_mapping(self.aliases))


@dataclass(frozen=True)
class FieldDefinition:
    """A metadata field declared in the registry.

    Attributes:
        namespace: Namespace the field lives in (e.g., "contract").
        name: Canonical field name, unique across the registry.
        data_type: Declared value type ("string", "date", "list", ...).
        description: Human-readable description.
        profile: Normalized extraction profile.
        source_overrides: content_type -> SourceOverride.
        indexed: Whether the field is written to the search index.
        facetable: Whether the field is exposed as a search facet.
        facet_type: Facet widget/type hint ("keyword", "date", ...).
        vocabulary: Name of the controlled vocabulary, if any.
        display_name: Label for UIs; derived from name when empty.
        facet_alias: Canonical facet this field stands in for.
    """

    namespace: str
    name: str
    data_type: str = "string"
    description: str = ""
    profile: ExtractionProfile = field(default_factory=StructuredProfile)
    source_overrides: Mapping[str, SourceOverride] = field(default_factory=dict)
    indexed: bool = True
    facetable: bool = False
    facet_type: str | None = None
    vocabulary: str | None = None
    display_name: str = ""
    facet_alias: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "source_overrides", _frozen_mapping(self.source_overrides))

    @property
    def path(self) -> FieldPath:
        return FieldPath(self.namespace, self.name)

    @property
    def is_common(self) -> bool:
        return isinstance(self.profile, CommonProfile)

    def override_for(self, content_type: str) -> SourceOverride | None:
        return self.source_overrides.get(content_type)
