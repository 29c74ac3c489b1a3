"""Document classification taxonomy.

Provides:
- TaxonomyIndex: Reverse label lookup and materialized paths
- TaxonomyNode: A leaf of the Domain → Category → Type hierarchy
- load_taxonomy: Build an index from a YAML/JSON file
"""

from fieldreg.taxonomy.index import (
    TaxonomyIndex,
    TaxonomyNode,
    load_taxonomy,
    read_taxonomy_tree,
    slugify,
)

__all__ = [
    "TaxonomyIndex",
    "TaxonomyNode",
    "load_taxonomy",
    "read_taxonomy_tree",
    "slugify",
]
