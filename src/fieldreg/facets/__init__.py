"""Search facets derived from the field registry."""

from fieldreg.facets.deriver import FacetCatalog, FacetDefinition, derive_facets

__all__ = ["FacetCatalog", "FacetDefinition", "derive_facets"]
