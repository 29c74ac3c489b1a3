"""Classification-driven extraction profile resolution.

Given a document's classification label and content type, decides which
registry fields an extraction step should look for, at what priority and
with which hints. Fields whose value is authoritatively supplied by the
document's source system (a source_wins override for its content type) are
left out, since extracting them would be wasted effort.

Resolution depends only on (classification, content_type, snapshot), so
ProfileResolver caches results keyed on that triple.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import TYPE_CHECKING, Mapping, Union

from loguru import logger

from fieldreg.core.types import ReconciliationStrategy, Requirement
from fieldreg.registry.model import CommonProfile

if TYPE_CHECKING:
    from fieldreg.registry.registry import FieldRegistry
    from fieldreg.registry.snapshot import RegistrySnapshot


@dataclass(frozen=True)
class ResolvedField:
    """One field to extract for a document.

    Attributes:
        requirement: Extraction priority tier.
        hints: Extraction hints for the prompt.
        is_common: Whether the field applies to every classification.
    """

    requirement: Requirement
    hints: tuple[str, ...] = ()
    is_common: bool = False


ResolvedFields = Mapping[str, ResolvedField]


@dataclass(frozen=True)
class FieldTiers:
    """Resolved field names partitioned for prompt construction."""

    required: tuple[str, ...] = ()
    expected: tuple[str, ...] = ()
    optional: tuple[str, ...] = ()
    common: tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.required) + len(self.expected) + len(self.optional) + len(self.common)


_EMPTY: ResolvedFields = MappingProxyType({})


def resolve(
    classification: str | None,
    content_type: str,
    source: Union["RegistrySnapshot", "FieldRegistry"],
) -> ResolvedFields:
    """Resolve the fields to extract for one document.

    Args:
        classification: Taxonomy leaf label, or None for unclassified content.
        content_type: Origin system of the document (e.g., "sam_notice").
        source: A snapshot (labels are checked against its taxonomy) or a
            bare registry (any non-empty label counts as classified).

    Returns:
        Read-only mapping of field name -> ResolvedField in registry
        declaration order. Empty when the document is unclassified.

    Example:
        resolve("Task Order", "asset", snapshot)
        # {"contract_number": ResolvedField(Requirement.EXPECTED, ...), ...}
    """
    if not classification:
        return _EMPTY

    taxonomy = getattr(source, "taxonomy", None)
    registry: "FieldRegistry" = getattr(source, "registry", source)

    if taxonomy is not None and classification not in taxonomy:
        logger.debug(f"Unknown classification {classification!r}; treating as unclassified")
        return _EMPTY

    resolved: dict[str, ResolvedField] = {}
    for definition in registry.fields():
        profile = definition.profile

        if isinstance(profile, CommonProfile):
            resolved[definition.name] = ResolvedField(
                requirement=profile.entry.requirement,
                hints=profile.entry.extraction_hints,
                is_common=True,
            )
            continue

        entry = profile.get(classification)
        if entry is None:
            continue

        override = definition.override_for(content_type)
        if override is not None and override.reconciliation is ReconciliationStrategy.SOURCE_WINS:
            continue

        resolved[definition.name] = ResolvedField(
            requirement=entry.requirement,
            hints=entry.extraction_hints,
        )

    return MappingProxyType(resolved)


def group_by_tier(resolved: ResolvedFields) -> FieldTiers:
    """Partition resolved fields by requirement tier.

    Common fields are grouped under "common" regardless of their tier.
    """
    tiers: dict[str, list[str]] = {"required": [], "expected": [], "optional": [], "common": []}
    for name, field in resolved.items():
        if field.is_common:
            tiers["common"].append(name)
        else:
            tiers[field.requirement.value].append(name)
    return FieldTiers(**{tier: tuple(names) for tier, names in tiers.items()})


class ProfileResolver:
    """Profile resolution bound to one snapshot, with result caching.

    Example:
        resolver = ProfileResolver(store.current())
        fields = resolver.resolve("Task Order", "sam_notice")
        tiers = resolver.resolve_tiers("Task Order", "sam_notice")
    """

    def __init__(
        self,
        source: Union["RegistrySnapshot", "FieldRegistry"],
        *,
        cache_size: int = 256,
    ):
        """Initialize the resolver.

        Args:
            source: Snapshot (or bare registry) to resolve against.
            cache_size: Maximum cached (classification, content_type) pairs;
                0 disables caching.
        """
        self._source = source
        if cache_size > 0:
            self._cached = lru_cache(maxsize=cache_size)(self._resolve_uncached)
        else:
            self._cached = self._resolve_uncached

    @property
    def source(self) -> Union["RegistrySnapshot", "FieldRegistry"]:
        return self._source

    def _resolve_uncached(self, classification: str | None, content_type: str) -> ResolvedFields:
        resolved = resolve(classification, content_type, self._source)
        logger.debug(
            f"Resolved {len(resolved)} fields for classification={classification!r}, "
            f"content_type={content_type!r}"
        )
        return resolved

    def resolve(self, classification: str | None, content_type: str) -> ResolvedFields:
        return self._cached(classification, content_type)

    def resolve_tiers(self, classification: str | None, content_type: str) -> FieldTiers:
        return group_by_tier(self.resolve(classification, content_type))

    def cache_info(self):
        """Get lru_cache statistics, or None when caching is disabled."""
        info = getattr(self._cached, "cache_info", None)
        return info() if info else None
