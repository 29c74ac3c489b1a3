"""Search facet definitions derived from the field registry.

Facets are a pure projection of facetable field definitions, so the query
layer and the registry can never disagree about which filters exist.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Iterable, Union

from loguru import logger

if TYPE_CHECKING:
    from fieldreg.registry.registry import FieldRegistry
    from fieldreg.registry.snapshot import RegistrySnapshot


@dataclass(frozen=True)
class FacetDefinition:
    """A filterable search dimension.

    Attributes:
        name: Facet name; the field's facet_alias when it stands in for a
            differently named canonical facet, else the field name.
        field_path: "<namespace>.<field>" path in the index.
        display_name: Label for UIs.
        facet_type: Facet type hint ("keyword", "date", ...).
        vocabulary: Controlled vocabulary backing the facet values, if any.
    """

    name: str
    field_path: str
    display_name: str
    facet_type: str | None = None
    vocabulary: str | None = None


def _derive(registry: "FieldRegistry") -> tuple[FacetDefinition, ...]:
    facets = []
    for definition in registry.fields():
        if not definition.facetable:
            continue
        name = definition.facet_alias or definition.name
        display_name = definition.display_name or name.replace("_", " ").title()
        facets.append(FacetDefinition(
            name=name,
            field_path=str(definition.path),
            display_name=display_name,
            facet_type=definition.facet_type,
            vocabulary=definition.vocabulary,
        ))
    logger.debug(f"Derived {len(facets)} facets from {len(registry)} fields")
    return tuple(facets)


# Snapshots and registries hash by identity, so this caches per snapshot
_derive_cached = lru_cache(maxsize=8)(_derive)


def derive_facets(
    source: Union["RegistrySnapshot", "FieldRegistry"],
) -> tuple[FacetDefinition, ...]:
    """Get facet definitions for every facetable field, in declaration order."""
    return _derive_cached(getattr(source, "registry", source))


class FacetCatalog:
    """Facet definitions grouped by facet name for the query layer.

    Several fields can stand in for one facet (e.g., a SAM agency field and
    a CRM account-name field both backing "agency").

    Example:
        catalog = FacetCatalog(derive_facets(snapshot))
        catalog.field_paths("agency")
        # ["sam.agency", "salesforce.account_name"]
        catalog.validate_filters({"agency": "DHS", "colour": "red"})
        # ["colour"]
    """

    def __init__(self, facets: Iterable[FacetDefinition]):
        self._facets = tuple(facets)
        self._by_name: dict[str, list[FacetDefinition]] = {}
        for facet in self._facets:
            self._by_name.setdefault(facet.name, []).append(facet)

    @classmethod
    def from_source(
        cls, source: Union["RegistrySnapshot", "FieldRegistry"]
    ) -> "FacetCatalog":
        return cls(derive_facets(source))

    def names(self) -> list[str]:
        return list(self._by_name)

    def get(self, name: str) -> list[FacetDefinition]:
        return list(self._by_name.get(name, []))

    def field_paths(self, name: str) -> list[str]:
        return [facet.field_path for facet in self._by_name.get(name, [])]

    def validate_filters(self, filters: Iterable[str]) -> list[str]:
        """Get the filter names that are not known facets.

        Args:
            filters: Filter names, or a mapping of filter name -> value.

        Returns:
            Unknown names in input order; empty when all are valid.
        """
        return [name for name in filters if name not in self._by_name]

    def as_dicts(self) -> list[dict[str, Any]]:
        """Serialize every facet definition for API responses."""
        return [asdict(facet) for facet in self._facets]

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __len__(self) -> int:
        return len(self._facets)

    def __iter__(self):
        return iter(self._facets)
